from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Any, Optional

from SOAT.engine.aggregation import Completeness
from SOAT.exceptions import ValidationError


class ScheduleStatus(str, Enum):
    """Wire tokens are the enum values; note the hyphen in ``in-progress``."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: Any) -> "ScheduleStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValidationError(f"unknown status token: {value!r}", field="status", cause=exc) from exc

    @property
    def is_terminal(self) -> bool:
        # terminal for the sweep only; a manual change may still leave these states
        return self in (ScheduleStatus.COMPLETED, ScheduleStatus.CANCELLED)

    def __str__(self) -> str:
        return self.value


NON_TERMINAL = (ScheduleStatus.SCHEDULED, ScheduleStatus.IN_PROGRESS)


def ensure_aware(moment: datetime, tz: tzinfo) -> datetime:
    """Interpret a naive datetime in ``tz``; aware values pass through."""
    if moment.tzinfo is None or moment.tzinfo.utcoffset(moment) is None:
        return moment.replace(tzinfo=tz)
    return moment


@dataclass(frozen=True)
class ScheduleSnapshot:
    """The slice of a schedule the resolver and guard decide on."""

    id: int
    school_id: int
    scheduled_datetime: datetime
    status: ScheduleStatus
    version: int = 1
    cancelled_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, schedule: Any, tz: tzinfo) -> "ScheduleSnapshot":
        return cls(
            id=schedule.id,
            school_id=schedule.school_id,
            scheduled_datetime=schedule.scheduled_datetime(tz),
            status=ScheduleStatus.parse(schedule.status),
            version=schedule.version or 1,
            cancelled_at=schedule.cancelled_at,
        )

    def is_future(self, now: datetime) -> bool:
        return now < self.scheduled_datetime


def natural_status(
    schedule: ScheduleSnapshot,
    completeness: Completeness,
    now: datetime,
) -> ScheduleStatus:
    """Status implied by the clock and the assessment data alone."""
    if schedule.status is ScheduleStatus.CANCELLED:
        return ScheduleStatus.CANCELLED
    if schedule.is_future(now):
        return ScheduleStatus.SCHEDULED
    if completeness.is_complete:
        return ScheduleStatus.COMPLETED
    return ScheduleStatus.IN_PROGRESS


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
