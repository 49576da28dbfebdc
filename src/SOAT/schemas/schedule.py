# schemas/schedule.py
from __future__ import annotations

from datetime import date, datetime, time
from typing import Dict, List, Optional

from pydantic import Field, field_validator

from .assessment import AssessmentStudentOut, CompletenessOut, DimensionAveragesOut
from .base import APIModel


class ScheduleOut(APIModel):
    id: int
    school_id: int
    scheduled_date: date
    scheduled_time: time
    duration_minutes: int
    status: str
    notes: Optional[str] = None
    teacher_ids: List[int] = Field(default_factory=list)
    lesson_ids: List[int] = Field(default_factory=list)
    version: int = 1
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None

    @field_validator("teacher_ids", "lesson_ids", mode="before")
    @classmethod
    def _sorted_ids(cls, v):
        return sorted(v or [])


class AssessmentStateOut(APIModel):
    schedule: ScheduleOut
    students: List[AssessmentStudentOut]


class StatusChangeIn(APIModel):
    status: str
    reason: Optional[str] = Field(default=None, max_length=2000)


class StatusChangeOut(APIModel):
    success: bool = True
    schedule: ScheduleOut
    previous_status: str


class SweepResult(APIModel):
    success: bool = True
    message: str
    updated_count: int = Field(alias="updatedCount")


class ScheduleStats(APIModel):
    total_teachers: int
    total_lessons: int
    total_students: int
    total_attendance: int
    total_assessments: int
    attendance_rate: float


class ScheduleProfileOut(APIModel):
    schedule: ScheduleOut
    school_name: Optional[str] = None
    completeness: CompletenessOut
    stats: ScheduleStats


class ScheduleOutcome(APIModel):
    schedule_id: int
    school_id: int
    school_name: Optional[str] = None
    scheduled_date: date
    status: str
    assessed_students: int
    total_school_students: int
    averages: Optional[DimensionAveragesOut] = None


class StatusSummaryOut(APIModel):
    counts: Dict[str, int]
    total: int
