# src/SOAT/api/routers/assessments.py
from __future__ import annotations

from typing import Any, List

from fastapi import APIRouter, Body, Depends

from SOAT.api.deps import get_report_service, get_submission_handler
from SOAT.auth import require_schedule_manager
from SOAT.engine.categories import list_categories
from SOAT.schemas import (
    AssessmentCategoryOut,
    AssessmentStateOut,
    CompletenessOut,
    Envelope,
    ScheduleOut,
    SubmissionResult,
)
from SOAT.services import AssessmentSubmissionHandler, ReportService

router = APIRouter(prefix="/api", tags=["assessments"])


@router.get(
    "/schedules/{schedule_id}/assessment",
    response_model=Envelope[AssessmentStateOut],
    response_model_by_alias=True,
)
async def get_assessment(
    schedule_id: int,
    reports: ReportService = Depends(get_report_service),
):
    schedule, students = await reports.assessment_state(schedule_id)
    return {"success": True, "data": {"schedule": ScheduleOut.model_validate(schedule), "students": students}}


@router.post(
    "/schedules/{schedule_id}/assessment",
    response_model=SubmissionResult,
    response_model_by_alias=True,
    dependencies=[Depends(require_schedule_manager)],
)
async def submit_assessment(
    schedule_id: int,
    assessments: Any = Body(..., description="Array of per-student assessments"),
    handler: AssessmentSubmissionHandler = Depends(get_submission_handler),
):
    outcome = await handler.submit(schedule_id, assessments)
    return SubmissionResult(
        success=True,
        message=outcome.message,
        status=outcome.status.value,
        previous_status=outcome.previous_status.value,
        completeness=CompletenessOut.model_validate(outcome.completeness.as_dict()),
    )


@router.get("/assessment-categories", response_model=Envelope[List[AssessmentCategoryOut]])
async def assessment_categories():
    return {"success": True, "data": list_categories()}
