# src/SOAT/services/transitions.py
from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Any, Callable, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from SOAT.app_logger import get_logger
from SOAT.core.config import settings
from SOAT.db.models import Schedule
from SOAT.engine.guard import can_transition
from SOAT.engine.status import ScheduleSnapshot, ScheduleStatus, ensure_aware, utcnow
from SOAT.exceptions import NotFoundError
from SOAT.services.aggregator import AssessmentAggregator
from SOAT.services.stores import Stores

log = get_logger("transitions")


class StatusChangeService:
    """Manual status changes requested by a schedule manager, checked by the guard."""

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        *,
        tz: Optional[tzinfo] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.sessionmaker = sessionmaker
        self.tz = tz or settings.school_tz
        self.clock = clock

    async def change_status(
        self,
        schedule_id: int,
        requested: Any,
        *,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Tuple[Schedule, ScheduleStatus]:
        """
        Apply ``requested`` to the schedule if the guard allows it.

        Returns the refreshed schedule and the status it held before. Raises
        GuardViolation when the rules reject the change and ConflictError when
        another writer changed the schedule in between.
        """
        target = ScheduleStatus.parse(requested)
        now = ensure_aware(now or self.clock(), self.tz)

        async with self.sessionmaker() as session:
            async with session.begin():
                stores = Stores.for_session(session)
                schedule = await stores.schedules.get(schedule_id, for_update=True)
                if schedule is None:
                    raise NotFoundError("Schedule not found", "schedule", schedule_id)

                snapshot = ScheduleSnapshot.from_model(schedule, self.tz)
                previous = snapshot.status
                completeness = await AssessmentAggregator(stores).compute_for(schedule)

                decision = can_transition(previous, target, snapshot, completeness, now)
                if not decision:
                    log.warning(
                        "rejected status change for schedule %s: %s -> %s (%s)",
                        schedule_id, previous.value, target.value, decision.reason,
                    )
                decision.raise_if_rejected(previous, target, schedule_id)

                if target is not previous:
                    await stores.schedules.update_status(
                        schedule_id,
                        previous,
                        target,
                        expected_version=snapshot.version,
                        cancellation_reason=reason,
                        now=now,
                    )

            # the CAS write bypasses the identity map
            await session.refresh(schedule)
            return schedule, previous
