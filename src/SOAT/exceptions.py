"""
SOAT Exception Hierarchy

Every error raised by the schedule engine derives from :class:`SOATError`.
Errors are scoped to the single schedule or request being processed; none of
them is fatal to the process. The HTTP layer maps ``http_status`` and
``to_dict()`` onto the response body.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class RetryPolicy(Enum):
    """Retry classification for exceptions."""

    NEVER = "never"  # Permanent failures (bad payload, unknown id)
    SAFE = "safe"  # Idempotent operation, caller may re-run it
    CALLER = "caller"  # Caller decides (store hiccups, lost races)


class SOATError(Exception):
    """
    Base exception class for all SOAT errors.

    Attributes
    ----------
    message : str
        Human-readable error message
    error_code : str
        Machine-readable error code for categorization
    retry_policy : RetryPolicy
        Retry classification for this error type
    context : Dict[str, Any]
        Additional error context (schedule id, student ids, ...)
    timestamp : datetime
        When the error occurred
    cause : Optional[Exception]
        Original exception that caused this error
    """

    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: str = "soat_error",
        retry_policy: RetryPolicy = RetryPolicy.NEVER,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.retry_policy = retry_policy
        self.context = dict(context or {})  # Create a copy to avoid mutation
        self.timestamp = datetime.now(timezone.utc)
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Structured error data for logging and serialization."""
        return {
            "message": self.message,
            "error_code": self.error_code,
            "retry_policy": self.retry_policy.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
            "exception_type": self.__class__.__name__,
        }

    def is_retryable(self) -> bool:
        return self.retry_policy is not RetryPolicy.NEVER

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class ValidationError(SOATError):
    """Malformed payload, out-of-range score/level, or unknown token."""

    http_status = 400

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        context = dict(context or {})
        if field is not None:
            context["field"] = field
        super().__init__(message, error_code="validation_error", context=context, cause=cause)
        self.field = field


class NotFoundError(SOATError):
    """A referenced schedule or student does not exist (or is not enrolled)."""

    http_status = 404

    def __init__(
        self,
        message: str,
        entity: str,
        entity_id: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = dict(context or {})
        context.update({"entity": entity, "entity_id": entity_id})
        super().__init__(message, error_code=f"{entity}_not_found", context=context)
        self.entity = entity
        self.entity_id = entity_id


class GuardViolation(SOATError):
    """A requested status change is not permitted by the transition rules."""

    http_status = 409

    def __init__(
        self,
        reason: str,
        current_status: str,
        requested_status: str,
        schedule_id: Any = None,
    ) -> None:
        super().__init__(
            f"cannot change status from {current_status} to {requested_status}: {reason}",
            error_code="guard_violation",
            context={
                "reason": reason,
                "current_status": current_status,
                "requested_status": requested_status,
                "schedule_id": schedule_id,
            },
        )
        self.reason = reason
        self.current_status = current_status
        self.requested_status = requested_status


class ConflictError(SOATError):
    """Compare-and-set on a schedule's status lost a race with another writer."""

    http_status = 409

    def __init__(
        self,
        schedule_id: Any,
        expected_status: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> None:
        expected = []
        if expected_status is not None:
            expected.append(f"status {expected_status}")
        if expected_version is not None:
            expected.append(f"version {expected_version}")
        detail = f" (expected {', '.join(expected)})" if expected else ""
        super().__init__(
            f"schedule {schedule_id} changed concurrently{detail}",
            error_code="status_conflict",
            retry_policy=RetryPolicy.CALLER,
            context={
                "schedule_id": schedule_id,
                "expected_status": expected_status,
                "expected_version": expected_version,
            },
        )
        self.schedule_id = schedule_id
        self.expected_status = expected_status
        self.expected_version = expected_version


class PermissionDenied(SOATError):
    """The caller lacks the capability required for a write operation."""

    http_status = 403

    def __init__(self, capability: str) -> None:
        super().__init__(
            f"missing capability: {capability}",
            error_code="permission_denied",
            context={"capability": capability},
        )
        self.capability = capability


class SweepFailure(SOATError):
    """Reconciling one schedule failed; the sweep is idempotent, so re-running it is safe."""

    http_status = 503

    def __init__(self, schedule_id: Any, cause: Optional[Exception] = None) -> None:
        super().__init__(
            f"sweep could not reconcile schedule {schedule_id}",
            error_code="sweep_failed",
            retry_policy=RetryPolicy.SAFE,
            context={"schedule_id": schedule_id},
            cause=cause,
        )
        self.schedule_id = schedule_id


__all__ = [
    "RetryPolicy",
    "SOATError",
    "ValidationError",
    "NotFoundError",
    "GuardViolation",
    "ConflictError",
    "PermissionDenied",
    "SweepFailure",
]
