# src/SOAT/api/routers/schedules.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from SOAT.api.deps import get_report_service, get_status_service, get_sweeper
from SOAT.auth import require_schedule_manager
from SOAT.schemas import (
    CompletenessOut,
    Envelope,
    ScheduleOut,
    ScheduleProfileOut,
    StatusChangeIn,
    StatusChangeOut,
    SweepResult,
)
from SOAT.services import AutoUpdateSweeper, ReportService, StatusChangeService

router = APIRouter(prefix="/api/schedules", tags=["schedules"])


@router.post(
    "/auto-update-status",
    response_model=SweepResult,
    response_model_by_alias=True,
    dependencies=[Depends(require_schedule_manager)],
)
async def auto_update_status(sweeper: AutoUpdateSweeper = Depends(get_sweeper)):
    updated = await sweeper.run()
    return SweepResult(
        success=True,
        message=f"Updated {updated} schedule(s)",
        updated_count=updated,
    )


@router.patch(
    "/{schedule_id}/status",
    response_model=StatusChangeOut,
    dependencies=[Depends(require_schedule_manager)],
)
async def change_status(
    schedule_id: int,
    payload: StatusChangeIn,
    service: StatusChangeService = Depends(get_status_service),
):
    schedule, previous = await service.change_status(
        schedule_id, payload.status, reason=payload.reason
    )
    return StatusChangeOut(
        success=True,
        schedule=ScheduleOut.model_validate(schedule),
        previous_status=previous.value,
    )


@router.get(
    "/{schedule_id}/summary",
    response_model=Envelope[CompletenessOut],
    response_model_by_alias=True,
)
async def schedule_summary(
    schedule_id: int,
    reports: ReportService = Depends(get_report_service),
):
    completeness = await reports.summary(schedule_id)
    return {"success": True, "data": completeness.as_dict()}


@router.get(
    "/{schedule_id}/profile",
    response_model=Envelope[ScheduleProfileOut],
    response_model_by_alias=True,
)
async def schedule_profile(
    schedule_id: int,
    reports: ReportService = Depends(get_report_service),
):
    profile = await reports.schedule_profile(schedule_id)
    profile["schedule"] = ScheduleOut.model_validate(profile["schedule"])
    profile["completeness"] = profile["completeness"].as_dict()
    return {"success": True, "data": profile}
