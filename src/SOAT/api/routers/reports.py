# src/SOAT/api/routers/reports.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from SOAT.api.deps import get_report_service
from SOAT.schemas import Envelope, ScheduleOutcome, StatusSummaryOut
from SOAT.services import ReportService

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/schedule-status", response_model=Envelope[StatusSummaryOut])
async def schedule_status_summary(reports: ReportService = Depends(get_report_service)):
    counts = await reports.status_summary()
    return {"success": True, "data": {"counts": counts, "total": sum(counts.values())}}


@router.get("/schedule-outcomes", response_model=Envelope[List[ScheduleOutcome]])
async def schedule_outcomes(
    school_id: Optional[int] = Query(default=None),
    status: Optional[str] = Query(default=None, description="scheduled | in-progress | completed | cancelled"),
    reports: ReportService = Depends(get_report_service),
):
    outcomes = await reports.schedule_outcomes(school_id=school_id, status=status)
    return {"success": True, "data": outcomes}
