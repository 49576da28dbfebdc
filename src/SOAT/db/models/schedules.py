from __future__ import annotations

from datetime import date, datetime, time, tzinfo
from typing import List, Optional, Set

import sqlalchemy as sa
from sqlalchemy import CheckConstraint, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from SOAT.db.base import Base, IntPKMixin, TimestampMixin

STATUS_VALUES = ("scheduled", "in-progress", "completed", "cancelled")


class Schedule(IntPKMixin, TimestampMixin, Base):
    __tablename__ = "schedules"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="duration_positive"),
        CheckConstraint(
            "status IN ('scheduled', 'in-progress', 'completed', 'cancelled')",
            name="status_token",
        ),
    )

    school_id: Mapped[int] = mapped_column(
        ForeignKey("schools.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    scheduled_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    scheduled_time: Mapped[time] = mapped_column(sa.Time, nullable=False)
    duration_minutes: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=60)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="scheduled", server_default="scheduled", index=True
    )
    notes: Mapped[Optional[str]] = mapped_column(sa.Text)

    # bumped on every status write; compare-and-set reads it back
    version: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=1, server_default="1")

    # cancellation tag
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(sa.DateTime(timezone=True))
    cancellation_reason: Mapped[Optional[str]] = mapped_column(sa.Text)

    teachers: Mapped[List["ScheduleTeacher"]] = relationship(
        back_populates="schedule", cascade="all, delete-orphan", lazy="selectin"
    )
    lessons: Mapped[List["ScheduleLesson"]] = relationship(
        back_populates="schedule", cascade="all, delete-orphan", lazy="selectin"
    )

    @property
    def teacher_ids(self) -> Set[int]:
        return {t.teacher_id for t in self.teachers}

    @property
    def lesson_ids(self) -> Set[int]:
        return {l.lesson_id for l in self.lessons}

    def scheduled_datetime(self, tz: tzinfo) -> datetime:
        return datetime.combine(self.scheduled_date, self.scheduled_time).replace(tzinfo=tz)

    def __repr__(self) -> str:
        return (
            f"Schedule(id={self.id!r}, school_id={self.school_id!r}, "
            f"at={self.scheduled_date}T{self.scheduled_time}, status={self.status!r})"
        )


class ScheduleTeacher(Base):
    # teachers live in the external staff CRUD; referenced by id only
    __tablename__ = "schedule_teachers"

    schedule_id: Mapped[int] = mapped_column(
        ForeignKey("schedules.id", ondelete="CASCADE"), primary_key=True
    )
    teacher_id: Mapped[int] = mapped_column(sa.Integer, primary_key=True)

    schedule: Mapped[Schedule] = relationship(back_populates="teachers")


class ScheduleLesson(Base):
    __tablename__ = "schedule_lessons"

    schedule_id: Mapped[int] = mapped_column(
        ForeignKey("schedules.id", ondelete="CASCADE"), primary_key=True
    )
    lesson_id: Mapped[int] = mapped_column(sa.Integer, primary_key=True)

    schedule: Mapped[Schedule] = relationship(back_populates="lessons")
