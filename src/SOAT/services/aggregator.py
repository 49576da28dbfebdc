from __future__ import annotations

from typing import Optional

from SOAT.db.models import Schedule
from SOAT.engine.aggregation import Completeness, summarize
from SOAT.exceptions import NotFoundError
from SOAT.services.stores import Stores
from SOAT.services.summary_cache import AssessmentSummaryCache


class AssessmentAggregator:
    """Completeness of a schedule from the Assessment Store and the Enrollment Lookup."""

    def __init__(self, stores: Stores, cache: Optional[AssessmentSummaryCache] = None) -> None:
        self.stores = stores
        self.cache = cache

    async def compute(self, schedule_id: int) -> Completeness:
        schedule = await self.stores.schedules.get(schedule_id)
        if schedule is None:
            raise NotFoundError("Schedule not found", "schedule", schedule_id)
        return await self.compute_for(schedule)

    async def compute_for(self, schedule: Schedule) -> Completeness:
        enrolled = await self.stores.enrollment.list_students(schedule.school_id)
        rows = await self.stores.assessments.list_by_schedule_id(schedule.id)
        return summarize(rows, enrolled)

    async def cached(self, schedule: Schedule) -> Completeness:
        """Read-through variant for reporting paths; status decisions use compute_for."""
        if self.cache is None:
            return await self.compute_for(schedule)
        return await self.cache.get_or_load(schedule.id, lambda: self.compute_for(schedule))
