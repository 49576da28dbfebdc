# src/SOAT/services/sweeper.py
"""
Batch reconciliation of stored schedule statuses with their natural status.

Nothing schedules this pass: callers (the HTTP endpoint, the CLI, an external
cron) invoke it. Stored statuses therefore lag the clock by at most the
interval between two invocations.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from SOAT.app_logger import get_logger
from SOAT.core.config import settings
from SOAT.engine.guard import can_transition
from SOAT.engine.status import (
    NON_TERMINAL,
    ScheduleSnapshot,
    ensure_aware,
    natural_status,
    utcnow,
)
from SOAT.exceptions import ConflictError, SOATError, SweepFailure
from SOAT.services.aggregator import AssessmentAggregator
from SOAT.services.stores import Stores

log = get_logger("sweeper")


@dataclass
class SweepReport:
    examined: int = 0
    updated: int = 0
    conflicts: int = 0
    failed: List[int] = field(default_factory=list)
    errors: List[SweepFailure] = field(default_factory=list)
    transitions: List[tuple] = field(default_factory=list)  # (schedule_id, old, new)

    @property
    def retryable(self) -> bool:
        """True when every failure can be cleared by simply sweeping again."""
        return all(err.is_retryable() for err in self.errors)


class AutoUpdateSweeper:
    """
    Re-evaluates every ``scheduled`` / ``in-progress`` schedule and persists
    any drift between the stored and the natural status.

    Each schedule is handled in its own session and transaction, so one
    failing or contended schedule never affects the others.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        *,
        tz: Optional[tzinfo] = None,
        concurrency: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.sessionmaker = sessionmaker
        self.tz = tz or settings.school_tz
        self.concurrency = max(1, concurrency or settings.SWEEP_CONCURRENCY)
        self.clock = clock

    async def run(self, now: Optional[datetime] = None) -> int:
        """Sweep once and return the number of schedules whose status changed."""
        report = await self.sweep(now)
        return report.updated

    async def sweep(self, now: Optional[datetime] = None) -> SweepReport:
        now = ensure_aware(now or self.clock(), self.tz)

        async with self.sessionmaker() as session:
            candidate_ids = await Stores.for_session(session).schedules.list_ids_by_status(NON_TERMINAL)

        report = SweepReport(examined=len(candidate_ids))
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _one(schedule_id: int) -> None:
            async with semaphore:
                await self._reconcile(schedule_id, now, report)

        await asyncio.gather(*(_one(sid) for sid in candidate_ids))

        log.info(
            "sweep at %s: examined=%d updated=%d conflicts=%d failed=%d",
            now.isoformat(), report.examined, report.updated, report.conflicts, len(report.failed),
        )
        return report

    async def _reconcile(self, schedule_id: int, now: datetime, report: SweepReport) -> None:
        try:
            async with self.sessionmaker() as session:
                async with session.begin():
                    changed = await self._reconcile_in(session, schedule_id, now)
        except ConflictError:
            # another writer moved it; the next sweep re-reads it
            report.conflicts += 1
            return
        except (SOATError, SQLAlchemyError) as exc:
            err = SweepFailure(schedule_id, cause=exc)
            log.error("sweep failed for schedule %s: %s", schedule_id, exc, extra={"error": err.to_dict()})
            report.failed.append(schedule_id)
            report.errors.append(err)
            return

        if changed is not None:
            report.updated += 1
            report.transitions.append((schedule_id, changed[0].value, changed[1].value))

    async def _reconcile_in(
        self,
        session: AsyncSession,
        schedule_id: int,
        now: datetime,
    ) -> Optional[tuple]:
        stores = Stores.for_session(session)
        schedule = await stores.schedules.get(schedule_id, for_update=True)
        if schedule is None:
            return None

        snapshot = ScheduleSnapshot.from_model(schedule, self.tz)
        if snapshot.status not in NON_TERMINAL:
            return None

        completeness = await AssessmentAggregator(stores).compute_for(schedule)
        target = natural_status(snapshot, completeness, now)
        if target is snapshot.status:
            return None

        decision = can_transition(snapshot.status, target, snapshot, completeness, now)
        if not decision:
            log.warning(
                "sweep skipped schedule %s: %s -> %s rejected (%s)",
                schedule_id, snapshot.status.value, target.value, decision.reason,
            )
            return None

        await stores.schedules.update_status(
            schedule_id, snapshot.status, target, expected_version=snapshot.version, now=now,
        )
        return snapshot.status, target


def sweep_concurrency_for(url: str, requested: Optional[int] = None) -> int:
    """SQLite serializes writers per file; parallel units of work only contend there."""
    if url.startswith("sqlite"):
        return 1
    return max(1, requested or settings.SWEEP_CONCURRENCY)


__all__ = ["AutoUpdateSweeper", "SweepReport", "sweep_concurrency_for"]
