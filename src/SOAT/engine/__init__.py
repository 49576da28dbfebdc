from .aggregation import (
    DIMENSIONS,
    LEVEL_FIELDS,
    Completeness,
    DimensionAverages,
    average_dimensions,
    is_assessed,
    round_half_up,
    summarize,
)
from .guard import ASSESSMENT_INCOMPLETE, FUTURE_SCHEDULE, TransitionDecision, can_transition
from .status import NON_TERMINAL, ScheduleSnapshot, ScheduleStatus, ensure_aware, natural_status, utcnow

__all__ = [
    "DIMENSIONS",
    "LEVEL_FIELDS",
    "Completeness",
    "DimensionAverages",
    "average_dimensions",
    "is_assessed",
    "round_half_up",
    "summarize",
    "ASSESSMENT_INCOMPLETE",
    "FUTURE_SCHEDULE",
    "TransitionDecision",
    "can_transition",
    "NON_TERMINAL",
    "ScheduleSnapshot",
    "ScheduleStatus",
    "ensure_aware",
    "natural_status",
    "utcnow",
]
