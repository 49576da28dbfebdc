# src/SOAT/core/config.py
from __future__ import annotations

import os
from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ---- App ----
    APP_NAME: str = "SOAT API"
    APP_VERSION: str = "0.1.0"

    # ---- DB ----
    # read DATABASE_URL, else ASYNC_DATABASE_URL, else a local sqlite file
    DATABASE_URL: str = (
            os.getenv("DATABASE_URL")
            or os.getenv("ASYNC_DATABASE_URL")
            or "sqlite+aiosqlite:///./soat.db"
    )
    DB_ECHO: bool = False
    TESTING: bool = False

    # ---- Schedules ----
    # scheduled_date + scheduled_time are wall-clock values in the school's zone
    SCHOOL_TIMEZONE: str = Field(
        default="UTC",
        validation_alias=AliasChoices("SCHOOL_TIMEZONE", "TZ_NAME"),
    )
    SWEEP_CONCURRENCY: int = Field(default=4, ge=1)
    DEFAULT_ATTENDANCE_STATUS: str = "present"

    # ---- Assessment summary cache ----
    SUMMARY_CACHE_MAX_SIZE: int = Field(default=256, ge=1)
    SUMMARY_CACHE_TTL_SECONDS: int = Field(default=300, ge=0)

    # ---- Logging ----
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # ---- Capability check (opaque, decided upstream) ----
    SOAT_DISABLE_AUTH: bool = Field(
        default=False,
        validation_alias=AliasChoices("SOAT_DISABLE_AUTH", "DISABLE_AUTH"),
    )
    SOAT_CAPABILITY_HEADER: str = "X-Can-Manage-Schedules"

    # ---- Pydantic settings config ----
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
    )

    # ---- Validators ----
    @field_validator("DEFAULT_ATTENDANCE_STATUS")
    @classmethod
    def _check_attendance(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in {"present", "absent", "late"}:
            raise ValueError(f"unsupported attendance status: {v!r}")
        return v

    @model_validator(mode="after")
    def _check_timezone(self) -> "Settings":
        try:
            ZoneInfo(self.SCHOOL_TIMEZONE)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown SCHOOL_TIMEZONE {self.SCHOOL_TIMEZONE!r}") from exc
        return self

    # ---- helpers -----------------------------------------------------
    @property
    def school_tz(self) -> tzinfo:
        return ZoneInfo(self.SCHOOL_TIMEZONE)


settings = Settings()
