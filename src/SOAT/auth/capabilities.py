# src/SOAT/auth/capabilities.py
from __future__ import annotations

from fastapi import Request

from SOAT.app_logger import get_logger
from SOAT.core.config import settings
from SOAT.exceptions import PermissionDenied

log = get_logger("auth.capabilities")

CAN_MANAGE_SCHEDULES = "can_manage_schedules"

_TRUTHY = ("1", "true", "yes", "on")


# ------------------------------------------------------------------------------
# Dev / local auth bypass
# ------------------------------------------------------------------------------
def _auth_disabled() -> bool:
    return bool(settings.SOAT_DISABLE_AUTH)


async def require_schedule_manager(request: Request) -> None:
    """
    Gate for write endpoints. The capability is decided upstream (gateway,
    session layer) and handed in as a boolean header; deployments with real
    role checks replace this dependency through ``app.dependency_overrides``.
    """
    if _auth_disabled():
        return

    raw = request.headers.get(settings.SOAT_CAPABILITY_HEADER, "")
    if raw.strip().lower() in _TRUTHY:
        return

    log.warning(
        "denied %s %s: missing %s",
        request.method, request.url.path, CAN_MANAGE_SCHEDULES,
    )
    raise PermissionDenied(CAN_MANAGE_SCHEDULES)
