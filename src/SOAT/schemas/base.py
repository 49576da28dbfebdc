from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class APIModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        extra="ignore",
        populate_by_name=True,
    )


class Envelope(APIModel, Generic[T]):
    """``{success, data}`` wrapper used by every read endpoint."""
    success: bool = True
    data: T


class ErrorOut(APIModel):
    success: bool = False
    error: str
    error_code: Optional[str] = None
