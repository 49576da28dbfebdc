from .capabilities import CAN_MANAGE_SCHEDULES, require_schedule_manager

__all__ = ["CAN_MANAGE_SCHEDULES", "require_schedule_manager"]
