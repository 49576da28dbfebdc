# src/SOAT/services/stores.py
"""
Collaborator interfaces consumed by the engine, with their SQLAlchemy-backed
implementations. All three stores share the caller's AsyncSession, so a unit
of work spanning several stores commits or rolls back as one.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Set

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from SOAT.app_logger import get_logger
from SOAT.db.models import Schedule, Student, StudentAssessment
from SOAT.engine.status import ScheduleStatus
from SOAT.exceptions import ConflictError

log = get_logger("stores")

# columns rewritten on every upsert; anything missing from the payload becomes NULL
ASSESSMENT_FIELDS = (
    "attendance_status",
    "knowledge_score",
    "participation_score",
    "personal_development_level",
    "critical_thinking_level",
    "team_work_level",
    "academic_knowledge_level",
    "notes",
)


class ScheduleStore(Protocol):
    async def get(self, schedule_id: int, *, for_update: bool = False) -> Optional[Schedule]: ...

    async def list_by_status(self, statuses: Iterable[ScheduleStatus]) -> List[Schedule]: ...

    async def list_by_school(self, school_id: int) -> List[Schedule]: ...

    async def update_status(
        self,
        schedule_id: int,
        expected: ScheduleStatus,
        new: ScheduleStatus,
        *,
        expected_version: Optional[int] = None,
        cancellation_reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> None: ...

    async def touch(self, schedule_id: int, expected_version: int) -> None: ...


class EnrollmentLookup(Protocol):
    async def list_students(self, school_id: int) -> Set[int]: ...


class AssessmentStore(Protocol):
    async def upsert(self, schedule_id: int, student_id: int, fields: Mapping[str, Any]) -> StudentAssessment: ...

    async def list_by_schedule_id(self, schedule_id: int) -> List[StudentAssessment]: ...


class SqlScheduleStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, schedule_id: int, *, for_update: bool = False) -> Optional[Schedule]:
        """Load a schedule; ``for_update`` row-locks it until the transaction ends (no-op on SQLite)."""
        return await self.session.get(Schedule, schedule_id, with_for_update=for_update or None)

    async def list_by_status(self, statuses: Iterable[ScheduleStatus]) -> List[Schedule]:
        tokens = [ScheduleStatus.parse(s).value for s in statuses]
        stmt = (
            sa.select(Schedule)
            .where(Schedule.status.in_(tokens))
            .order_by(Schedule.scheduled_date, Schedule.scheduled_time, Schedule.id)
        )
        return list((await self.session.scalars(stmt)).all())

    async def list_ids_by_status(self, statuses: Iterable[ScheduleStatus]) -> List[int]:
        tokens = [ScheduleStatus.parse(s).value for s in statuses]
        stmt = (
            sa.select(Schedule.id)
            .where(Schedule.status.in_(tokens))
            .order_by(Schedule.scheduled_date, Schedule.scheduled_time, Schedule.id)
        )
        return list((await self.session.scalars(stmt)).all())

    async def list_by_school(self, school_id: int) -> List[Schedule]:
        stmt = (
            sa.select(Schedule)
            .where(Schedule.school_id == school_id)
            .order_by(Schedule.scheduled_date, Schedule.scheduled_time, Schedule.id)
        )
        return list((await self.session.scalars(stmt)).all())

    async def update_status(
        self,
        schedule_id: int,
        expected: ScheduleStatus,
        new: ScheduleStatus,
        *,
        expected_version: Optional[int] = None,
        cancellation_reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """
        Compare-and-set the status: the row is written only if it still holds
        ``expected`` (and ``expected_version`` when given). Raises ConflictError
        when another writer got there first.
        """
        values: Dict[str, Any] = {
            "status": new.value,
            "version": Schedule.version + 1,
        }
        if new is ScheduleStatus.CANCELLED:
            values["cancelled_at"] = now
            values["cancellation_reason"] = cancellation_reason
        elif expected is ScheduleStatus.CANCELLED:
            values["cancelled_at"] = None
            values["cancellation_reason"] = None

        stmt = (
            sa.update(Schedule)
            .where(Schedule.id == schedule_id, Schedule.status == expected.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if expected_version is not None:
            stmt = stmt.where(Schedule.version == expected_version)

        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            log.warning(
                "status CAS lost for schedule %s (expected %s, version %s)",
                schedule_id, expected.value, expected_version,
            )
            raise ConflictError(schedule_id, expected.value, expected_version)

        log.info("schedule %s status %s -> %s", schedule_id, expected.value, new.value)

    async def touch(self, schedule_id: int, expected_version: int) -> None:
        """
        Bump ``version`` without changing the status. Writers that derived a
        decision from an older version then lose their compare-and-set.
        """
        stmt = (
            sa.update(Schedule)
            .where(Schedule.id == schedule_id, Schedule.version == expected_version)
            .values(version=Schedule.version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            log.warning("version check lost for schedule %s (version %s)", schedule_id, expected_version)
            raise ConflictError(schedule_id, expected_version=expected_version)


class SqlEnrollmentLookup:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_students(self, school_id: int) -> Set[int]:
        stmt = sa.select(Student.id).where(Student.school_id == school_id)
        return set((await self.session.scalars(stmt)).all())

    async def list_student_records(self, school_id: int) -> Sequence[Student]:
        stmt = sa.select(Student).where(Student.school_id == school_id).order_by(Student.name, Student.id)
        return (await self.session.scalars(stmt)).all()

    async def count_by_school(self) -> Dict[int, int]:
        stmt = sa.select(Student.school_id, sa.func.count(Student.id)).group_by(Student.school_id)
        return {school_id: count for school_id, count in (await self.session.execute(stmt)).all()}


class SqlAssessmentStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, schedule_id: int, student_id: int) -> Optional[StudentAssessment]:
        stmt = sa.select(StudentAssessment).where(
            StudentAssessment.schedule_id == schedule_id,
            StudentAssessment.student_id == student_id,
        )
        return await self.session.scalar(stmt)

    async def upsert(self, schedule_id: int, student_id: int, fields: Mapping[str, Any]) -> StudentAssessment:
        row = await self.get(schedule_id, student_id)
        if row is None:
            row = StudentAssessment(schedule_id=schedule_id, student_id=student_id)
            self.session.add(row)
        for name in ASSESSMENT_FIELDS:
            setattr(row, name, fields.get(name))
        await self.session.flush()
        return row

    async def list_by_schedule_id(self, schedule_id: int) -> List[StudentAssessment]:
        stmt = (
            sa.select(StudentAssessment)
            .where(StudentAssessment.schedule_id == schedule_id)
            .order_by(StudentAssessment.student_id)
        )
        return list((await self.session.scalars(stmt)).all())


@dataclass
class Stores:
    schedules: SqlScheduleStore
    enrollment: SqlEnrollmentLookup
    assessments: SqlAssessmentStore

    @classmethod
    def for_session(cls, session: AsyncSession) -> "Stores":
        return cls(
            schedules=SqlScheduleStore(session),
            enrollment=SqlEnrollmentLookup(session),
            assessments=SqlAssessmentStore(session),
        )
