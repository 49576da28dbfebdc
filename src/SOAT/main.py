# src/SOAT/main.py
from __future__ import annotations

import logging
import logging.config
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Optional

from asyncpg.exceptions import (
    CheckViolationError,
    ForeignKeyViolationError,
    NotNullViolationError,
    UniqueViolationError,
)
from fastapi import FastAPI, Request
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from starlette.responses import JSONResponse

from SOAT.api.routers import assessments_router, health_router, reports_router, schedules_router
from SOAT.core.config import settings
from SOAT.db.session import build_engine, build_sessionmaker, create_all
from SOAT.engine.status import utcnow
from SOAT.exceptions import GuardViolation, SOATError
from SOAT.services import AssessmentSummaryCache, CacheConfig


def logging_config(level: Optional[str] = None, json_logs: Optional[bool] = None) -> dict:
    level = (level or settings.LOG_LEVEL).upper()
    json_logs = settings.LOG_JSON if json_logs is None else json_logs
    formatter = "json" if json_logs else "plain"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                # include fields you want searchable
                "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s %(process)d %(module)s",
            },
            "plain": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "":               {"handlers": ["console"], "level": level},
            "SOAT":           {"handlers": ["console"], "level": level, "propagate": False},
            "uvicorn":        {"handlers": ["console"], "level": level, "propagate": False},
            "uvicorn.error":  {"handlers": ["console"], "level": level, "propagate": False},
            "uvicorn.access": {"handlers": ["console"], "level": level, "propagate": False},
        },
    }


logging.config.dictConfig(logging_config())
log = logging.getLogger("SOAT.main")


def _error_body(exc: SOATError) -> dict:
    body = {"success": False, "error": exc.message, "error_code": exc.error_code}
    if isinstance(exc, GuardViolation):
        body["reason"] = exc.reason
    return body


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SOATError)
    async def soat_error_handler(request: Request, exc: SOATError):
        if exc.http_status >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc.to_dict())
        else:
            log.info(
                "%s %s -> %s %s",
                request.method, request.url.path, exc.http_status, exc.error_code,
                extra={"error": exc.to_dict()},
            )
        return JSONResponse(status_code=exc.http_status, content=_error_body(exc))

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        """
        Map DB integrity errors to clear 4xx responses instead of 500.
        - Unique constraint -> 409 Conflict
        - Not-null / FK / Check -> 422 Unprocessable Entity (validation-like)
        - Otherwise -> 400 Bad Request
        """
        orig = getattr(exc, "orig", None)
        message = str(orig or exc)

        status_code = 400
        detail = "Integrity error"

        # the asyncpg dialect wraps the driver error; the original is its __cause__
        pg = getattr(orig, "__cause__", None) or orig
        if isinstance(pg, UniqueViolationError):
            status_code, detail = 409, "Unique constraint violation"
        elif isinstance(pg, ForeignKeyViolationError):
            status_code, detail = 422, "Foreign key constraint failed"
        elif isinstance(pg, NotNullViolationError):
            status_code, detail = 422, "Missing required field (NOT NULL violation)"
        elif isinstance(pg, CheckViolationError):
            status_code, detail = 422, "Check constraint failed"
        else:
            # Generic string heuristics (works across DBs/drivers)
            low = message.lower()
            if "unique constraint" in low or "duplicate key" in low:
                status_code, detail = 409, "Unique constraint violation"
            elif "foreign key" in low:
                status_code, detail = 422, "Foreign key constraint failed"
            elif "not null" in low or "null value in column" in low:
                status_code, detail = 422, "Missing required field (NOT NULL violation)"
            elif "check constraint" in low:
                status_code, detail = 422, "Check constraint failed"

        log.warning(
            "IntegrityError on %s %s -> %s: %s",
            request.method, request.url.path, status_code, message,
        )
        return JSONResponse(
            status_code=status_code,
            content={"success": False, "error": detail, "error_code": "integrity_error"},
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        """
        Any other store failure still answers with the JSON error body.
        - OperationalError (locked database, lost connection) -> 503
        - Otherwise -> 500
        """
        status_code = 503 if isinstance(exc, OperationalError) else 500
        log.error("database error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content={"success": False, "error": "Database error", "error_code": "database_error"},
        )


def create_app(
    *,
    database_url: Optional[str] = None,
    create_tables: Optional[bool] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    url = database_url or settings.DATABASE_URL
    if create_tables is None:
        # local sqlite databases bootstrap themselves; real deployments run Alembic
        create_tables = url.startswith("sqlite")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Handles startup/shutdown tasks for the app (runs once on start, once on stop).
        """
        # ---------------- STARTUP ----------------
        # DB engine/sessionmaker bound to THIS loop
        app.state.database_url = url
        app.state.db_engine = build_engine(url)
        app.state.async_sessionmaker = build_sessionmaker(app.state.db_engine)
        app.state.summary_cache = AssessmentSummaryCache(
            CacheConfig(
                max_size=settings.SUMMARY_CACHE_MAX_SIZE,
                ttl_seconds=settings.SUMMARY_CACHE_TTL_SECONDS,
            )
        )
        if create_tables:
            await create_all(app.state.db_engine)
        log.info("startup complete (db=%s, create_tables=%s)", app.state.db_engine.url.render_as_string(), create_tables)

        yield

        # ---------------- SHUTDOWN ----------------
        # Close DB engine BEFORE loop closes (prevents asyncpg 'loop is closed')
        await app.state.db_engine.dispose()
        app.state.summary_cache.clear()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )
    app.state.clock = clock or utcnow

    _register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(schedules_router)
    app.include_router(assessments_router)
    app.include_router(reports_router)
    return app


app = create_app()
