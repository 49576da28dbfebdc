from .assessment import (
    AssessmentCategoryOut,
    AssessmentStudentOut,
    CompletenessOut,
    DimensionAveragesOut,
    StudentAssessmentPayload,
    SubmissionResult,
    parse_payloads,
)
from .base import APIModel, Envelope, ErrorOut
from .schedule import (
    AssessmentStateOut,
    ScheduleOut,
    ScheduleOutcome,
    ScheduleProfileOut,
    ScheduleStats,
    StatusChangeIn,
    StatusChangeOut,
    StatusSummaryOut,
    SweepResult,
)

__all__ = [
    "APIModel",
    "Envelope",
    "ErrorOut",
    "AssessmentCategoryOut",
    "AssessmentStudentOut",
    "CompletenessOut",
    "DimensionAveragesOut",
    "StudentAssessmentPayload",
    "SubmissionResult",
    "parse_payloads",
    "AssessmentStateOut",
    "ScheduleOut",
    "ScheduleOutcome",
    "ScheduleProfileOut",
    "ScheduleStats",
    "StatusChangeIn",
    "StatusChangeOut",
    "StatusSummaryOut",
    "SweepResult",
]
