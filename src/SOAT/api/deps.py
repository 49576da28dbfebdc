# src/SOAT/api/deps.py
"""
Request-scoped factories for the services. Everything they need lives on
``app.state`` (set up by the lifespan in ``SOAT.main``); falling back to the
process-wide defaults keeps the dependencies usable outside the app.
"""
from __future__ import annotations

from datetime import datetime
from typing import Callable

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from SOAT.core.config import settings
from SOAT.db.session import app_sessionmaker
from SOAT.engine.status import utcnow
from SOAT.services import (
    AssessmentSubmissionHandler,
    AssessmentSummaryCache,
    AutoUpdateSweeper,
    CacheConfig,
    ReportService,
    StatusChangeService,
    sweep_concurrency_for,
)


def get_sessionmaker(request: Request) -> async_sessionmaker[AsyncSession]:
    return app_sessionmaker(request)


def get_summary_cache(request: Request) -> AssessmentSummaryCache:
    cache = getattr(request.app.state, "summary_cache", None)
    if cache is None:
        cache = AssessmentSummaryCache(
            CacheConfig(
                max_size=settings.SUMMARY_CACHE_MAX_SIZE,
                ttl_seconds=settings.SUMMARY_CACHE_TTL_SECONDS,
            )
        )
        request.app.state.summary_cache = cache
    return cache


def get_clock(request: Request) -> Callable[[], datetime]:
    return getattr(request.app.state, "clock", None) or utcnow


def get_submission_handler(request: Request) -> AssessmentSubmissionHandler:
    return AssessmentSubmissionHandler(
        get_sessionmaker(request),
        cache=get_summary_cache(request),
        clock=get_clock(request),
    )


def get_status_service(request: Request) -> StatusChangeService:
    return StatusChangeService(get_sessionmaker(request), clock=get_clock(request))


def get_sweeper(request: Request) -> AutoUpdateSweeper:
    url = getattr(request.app.state, "database_url", None) or settings.DATABASE_URL
    return AutoUpdateSweeper(
        get_sessionmaker(request),
        concurrency=sweep_concurrency_for(url),
        clock=get_clock(request),
    )


def get_report_service(request: Request) -> ReportService:
    return ReportService(get_sessionmaker(request), cache=get_summary_cache(request))
