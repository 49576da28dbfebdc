# src/SOAT/services/reports.py
from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional, Tuple

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from SOAT.app_logger import get_logger
from SOAT.db.models import STATUS_VALUES, Schedule, School
from SOAT.engine.aggregation import Completeness, round_half_up
from SOAT.engine.status import ScheduleStatus
from SOAT.exceptions import NotFoundError
from SOAT.services.aggregator import AssessmentAggregator
from SOAT.services.stores import Stores
from SOAT.services.summary_cache import AssessmentSummaryCache

log = get_logger("reports")


class ReportService:
    """Read-only views over schedules and their assessments."""

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        cache: Optional[AssessmentSummaryCache] = None,
    ) -> None:
        self.sessionmaker = sessionmaker
        self.cache = cache

    async def assessment_state(self, schedule_id: int) -> Tuple[Schedule, List[dict]]:
        """The schedule plus every enrolled student merged with its assessment row (if any)."""
        async with self.sessionmaker() as session:
            stores = Stores.for_session(session)
            schedule = await stores.schedules.get(schedule_id)
            if schedule is None:
                raise NotFoundError("Schedule not found", "schedule", schedule_id)

            students = await stores.enrollment.list_student_records(schedule.school_id)
            rows = {r.student_id: r for r in await stores.assessments.list_by_schedule_id(schedule.id)}

        merged = []
        for student in students:
            row = rows.get(student.id)
            merged.append(
                {
                    "id": student.id,
                    "name": student.name,
                    "grade": student.grade,
                    "age": student.age,
                    "attendance_status": row.attendance_status if row else None,
                    "knowledge_score": row.knowledge_score if row else None,
                    "participation_score": row.participation_score if row else None,
                    "personal_development_level": row.personal_development_level if row else None,
                    "critical_thinking_level": row.critical_thinking_level if row else None,
                    "team_work_level": row.team_work_level if row else None,
                    "academic_knowledge_level": row.academic_knowledge_level if row else None,
                    "notes": row.notes if row else None,
                }
            )
        return schedule, merged

    async def summary(self, schedule_id: int) -> Completeness:
        async with self.sessionmaker() as session:
            stores = Stores.for_session(session)
            schedule = await stores.schedules.get(schedule_id)
            if schedule is None:
                raise NotFoundError("Schedule not found", "schedule", schedule_id)
            return await AssessmentAggregator(stores, self.cache).cached(schedule)

    async def schedule_profile(self, schedule_id: int) -> dict:
        async with self.sessionmaker() as session:
            stores = Stores.for_session(session)
            schedule = await stores.schedules.get(schedule_id)
            if schedule is None:
                raise NotFoundError("Schedule not found", "schedule", schedule_id)

            school = await session.get(School, schedule.school_id)
            completeness = await AssessmentAggregator(stores, self.cache).cached(schedule)
            rows = await stores.assessments.list_by_schedule_id(schedule.id)

        total_attendance = len(rows)
        present = sum(1 for r in rows if r.attendance_status == "present")
        total_assessments = sum(
            1 for r in rows if r.knowledge_score is not None or r.participation_score is not None
        )
        attendance_rate = (
            round_half_up(Decimal(present) * 100 / Decimal(total_attendance)) if total_attendance else 0.0
        )

        return {
            "schedule": schedule,
            "school_name": school.name if school else None,
            "completeness": completeness,
            "stats": {
                "total_teachers": len(schedule.teacher_ids),
                "total_lessons": len(schedule.lesson_ids),
                "total_students": completeness.total_students,
                "total_attendance": total_attendance,
                "total_assessments": total_assessments,
                "attendance_rate": attendance_rate,
            },
        }

    async def status_summary(self) -> Dict[str, int]:
        counts = {token: 0 for token in STATUS_VALUES}
        async with self.sessionmaker() as session:
            stmt = sa.select(Schedule.status, sa.func.count(Schedule.id)).group_by(Schedule.status)
            for status, count in (await session.execute(stmt)).all():
                counts[status] = count
        return counts

    async def schedule_outcomes(
        self,
        school_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> List[dict]:
        wanted = ScheduleStatus.parse(status) if status is not None else None

        async with self.sessionmaker() as session:
            stores = Stores.for_session(session)
            stmt = (
                sa.select(Schedule, School.name)
                .join(School, School.id == Schedule.school_id)
                .order_by(Schedule.scheduled_date.desc(), Schedule.scheduled_time.desc(), Schedule.id)
            )
            if school_id is not None:
                stmt = stmt.where(Schedule.school_id == school_id)
            if wanted is not None:
                stmt = stmt.where(Schedule.status == wanted.value)
            pairs = (await session.execute(stmt)).all()

            aggregator = AssessmentAggregator(stores, self.cache)
            outcomes = []
            for schedule, school_name in pairs:
                completeness = await aggregator.cached(schedule)
                is_completed = schedule.status == ScheduleStatus.COMPLETED.value
                outcomes.append(
                    {
                        "schedule_id": schedule.id,
                        "school_id": schedule.school_id,
                        "school_name": school_name,
                        "scheduled_date": schedule.scheduled_date,
                        "status": schedule.status,
                        "assessed_students": completeness.assessed_count,
                        "total_school_students": completeness.total_students,
                        "averages": completeness.averages.as_dict() if is_completed and completeness.averages else None,
                    }
                )

        log.debug("outcome report: %d schedule(s)", len(outcomes))
        return outcomes
