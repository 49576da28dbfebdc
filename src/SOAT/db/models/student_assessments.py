from __future__ import annotations

from typing import Optional

import sqlalchemy as sa
from sqlalchemy import CheckConstraint, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from SOAT.db.base import Base, IntPKMixin, TimestampMixin


def _level_check(column: str) -> CheckConstraint:
    return CheckConstraint(
        f"{column} IS NULL OR ({column} BETWEEN 1 AND 4)", name=f"{column}_range"
    )


def _score_check(column: str) -> CheckConstraint:
    return CheckConstraint(
        f"{column} IS NULL OR ({column} BETWEEN 0 AND 100)", name=f"{column}_range"
    )


class StudentAssessment(IntPKMixin, TimestampMixin, Base):
    """One row per (schedule, student); rewritten in full on every submission."""
    __tablename__ = "student_assessments"
    __table_args__ = (
        UniqueConstraint("schedule_id", "student_id", name="uq_student_assessments_schedule_student"),
        CheckConstraint(
            "attendance_status IS NULL OR attendance_status IN ('present', 'absent', 'late')",
            name="attendance_token",
        ),
        _score_check("knowledge_score"),
        _score_check("participation_score"),
        _level_check("personal_development_level"),
        _level_check("critical_thinking_level"),
        _level_check("team_work_level"),
        _level_check("academic_knowledge_level"),
    )

    schedule_id: Mapped[int] = mapped_column(
        ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id: Mapped[int] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )

    attendance_status: Mapped[Optional[str]] = mapped_column(String(16))
    knowledge_score: Mapped[Optional[int]] = mapped_column(sa.Integer)
    participation_score: Mapped[Optional[int]] = mapped_column(sa.Integer)

    personal_development_level: Mapped[Optional[int]] = mapped_column(sa.SmallInteger)
    critical_thinking_level: Mapped[Optional[int]] = mapped_column(sa.SmallInteger)
    team_work_level: Mapped[Optional[int]] = mapped_column(sa.SmallInteger)
    academic_knowledge_level: Mapped[Optional[int]] = mapped_column(sa.SmallInteger)

    notes: Mapped[Optional[str]] = mapped_column(sa.Text)

    def __repr__(self) -> str:
        return (
            f"StudentAssessment(schedule_id={self.schedule_id!r}, "
            f"student_id={self.student_id!r}, attendance={self.attendance_status!r})"
        )
