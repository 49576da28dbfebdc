# schemas/assessment.py
from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from SOAT.exceptions import ValidationError

from .base import APIModel

AttendanceStatus = Literal["present", "absent", "late"]

Score = Optional[int]
Level = Optional[int]


class StudentAssessmentPayload(BaseModel):
    """One entry of a submission batch. Omitted fields are stored as null."""
    model_config = ConfigDict(extra="ignore")

    student_id: int
    attendance_status: Optional[AttendanceStatus] = None
    knowledge_score: Score = Field(default=None, ge=0, le=100)
    participation_score: Score = Field(default=None, ge=0, le=100)
    personal_development_level: Level = Field(default=None, ge=1, le=4)
    critical_thinking_level: Level = Field(default=None, ge=1, le=4)
    team_work_level: Level = Field(default=None, ge=1, le=4)
    academic_knowledge_level: Level = Field(default=None, ge=1, le=4)
    notes: Optional[str] = None


_batch_adapter = TypeAdapter(List[StudentAssessmentPayload])


def parse_payloads(raw: Any) -> List[StudentAssessmentPayload]:
    """Validate a raw JSON batch, mapping pydantic errors onto ValidationError."""
    if not isinstance(raw, list):
        raise ValidationError("Assessments must be an array")
    if raw and all(isinstance(item, StudentAssessmentPayload) for item in raw):
        return list(raw)
    try:
        return _batch_adapter.validate_python(
            [item.model_dump() if isinstance(item, BaseModel) else item for item in raw]
        )
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        loc = ".".join(str(p) for p in first.get("loc", ()))
        raise ValidationError(
            f"invalid assessment payload at {loc}: {first.get('msg')}",
            field=loc,
            context={"errors": exc.errors(include_url=False, include_context=False)},
            cause=exc,
        ) from exc


class AssessmentStudentOut(APIModel):
    id: int
    name: str
    grade: Optional[str] = None
    age: Optional[int] = None
    attendance_status: Optional[str] = None
    knowledge_score: Optional[int] = None
    participation_score: Optional[int] = None
    personal_development_level: Optional[int] = None
    critical_thinking_level: Optional[int] = None
    team_work_level: Optional[int] = None
    academic_knowledge_level: Optional[int] = None
    notes: Optional[str] = None


class DimensionAveragesOut(APIModel):
    personal_development: float
    critical_thinking: float
    team_work: float
    academic_knowledge: float
    overall: float


class CompletenessOut(APIModel):
    assessed_count: int = Field(alias="assessedCount")
    total_students: int = Field(alias="totalStudents")
    averages: Optional[DimensionAveragesOut] = None


class SubmissionResult(APIModel):
    success: bool = True
    message: str
    status: str
    previous_status: str
    completeness: CompletenessOut


class LevelOption(APIModel):
    value: int
    label: str
    description: str
    short_description: str


class AssessmentCategoryOut(APIModel):
    key: str
    title: str
    goal: str
    levels: List[LevelOption]
