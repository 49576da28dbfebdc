from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from SOAT.engine.aggregation import Completeness
from SOAT.engine.status import ScheduleSnapshot, ScheduleStatus
from SOAT.exceptions import GuardViolation

FUTURE_SCHEDULE = "future schedule"
ASSESSMENT_INCOMPLETE = "assessment incomplete"

_FUTURE_ALLOWED = (ScheduleStatus.SCHEDULED, ScheduleStatus.CANCELLED)


@dataclass(frozen=True)
class TransitionDecision:
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed

    def raise_if_rejected(
        self,
        current: ScheduleStatus,
        requested: ScheduleStatus,
        schedule_id: Optional[int] = None,
    ) -> None:
        if not self.allowed:
            raise GuardViolation(self.reason or "rejected", current.value, requested.value, schedule_id)


ALLOWED = TransitionDecision(True)


def can_transition(
    current: ScheduleStatus,
    requested: ScheduleStatus,
    schedule: ScheduleSnapshot,
    completeness: Completeness,
    now: datetime,
) -> TransitionDecision:
    """
    Validate a status change. The caller applies the mutation only when the
    returned decision is truthy.
    """
    if requested is ScheduleStatus.CANCELLED:
        return ALLOWED
    if schedule.is_future(now):
        if requested in _FUTURE_ALLOWED:
            return ALLOWED
        return TransitionDecision(False, FUTURE_SCHEDULE)
    if requested is ScheduleStatus.COMPLETED and not completeness.is_complete:
        return TransitionDecision(False, ASSESSMENT_INCOMPLETE)
    return ALLOWED
