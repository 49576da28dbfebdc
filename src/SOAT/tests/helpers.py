# src/SOAT/tests/helpers.py
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select

from SOAT.db.models import Schedule, ScheduleLesson, ScheduleTeacher, School, Student, StudentAssessment

UTC = timezone.utc

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


class FrozenClock:
    """Callable clock the services and the app read ``now`` from."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kw) -> datetime:
        self.now = self.now + timedelta(**kw)
        return self.now


def levels(pd, ct, tw, ak, attendance="present", **extra) -> dict:
    return {
        "attendance_status": attendance,
        "personal_development_level": pd,
        "critical_thinking_level": ct,
        "team_work_level": tw,
        "academic_knowledge_level": ak,
        **extra,
    }


class Seeder:
    """Writes schools, students, schedules and assessment rows straight through the ORM."""

    def __init__(self, maker) -> None:
        self.maker = maker

    async def school(
        self,
        name: str = "Sunrise Primary",
        students: Sequence[str] = ("Ana", "Budi", "Citra"),
    ) -> Tuple[int, List[int]]:
        async with self.maker() as session:
            async with session.begin():
                school = School(name=name, address="Jl. Merdeka 1")
                session.add(school)
                await session.flush()
                rows = [Student(school_id=school.id, name=n, grade="2", age=8) for n in students]
                session.add_all(rows)
                await session.flush()
                return school.id, [r.id for r in rows]

    async def schedule(
        self,
        school_id: int,
        at: datetime,
        *,
        status: str = "scheduled",
        teacher_ids: Iterable[int] = (),
        lesson_ids: Iterable[int] = (),
        cancellation_reason: Optional[str] = None,
    ) -> int:
        at = at.astimezone(UTC)
        async with self.maker() as session:
            async with session.begin():
                schedule = Schedule(
                    school_id=school_id,
                    scheduled_date=date(at.year, at.month, at.day),
                    scheduled_time=time(at.hour, at.minute),
                    duration_minutes=60,
                    status=status,
                    version=1,
                    cancellation_reason=cancellation_reason,
                    teachers=[ScheduleTeacher(teacher_id=t) for t in teacher_ids],
                    lessons=[ScheduleLesson(lesson_id=l) for l in lesson_ids],
                )
                session.add(schedule)
                await session.flush()
                return schedule.id

    async def assessment(self, schedule_id: int, student_id: int, **fields) -> None:
        async with self.maker() as session:
            async with session.begin():
                session.add(StudentAssessment(schedule_id=schedule_id, student_id=student_id, **fields))

    async def get_schedule(self, schedule_id: int) -> Schedule:
        async with self.maker() as session:
            return await session.get(Schedule, schedule_id)

    async def get_assessment(self, schedule_id: int, student_id: int) -> Optional[StudentAssessment]:
        async with self.maker() as session:
            return await session.scalar(
                select(StudentAssessment).where(
                    StudentAssessment.schedule_id == schedule_id,
                    StudentAssessment.student_id == student_id,
                )
            )
