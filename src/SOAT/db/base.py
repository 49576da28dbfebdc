# src/SOAT/db/base.py
from __future__ import annotations

from datetime import datetime, date, time
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# -----------------------------------------------------------------------------
# Declarative Base with naming conventions (great for Alembic autogenerate)
# -----------------------------------------------------------------------------
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Shared declarative base for all models."""
    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    # Make names available during annotation evaluation everywhere.
    __sa_eval_namespace__ = {
        "Any": Any,
        "Optional": Optional,
        "datetime": datetime,
        "date": date,
        "time": time,
    }


# -----------------------------------------------------------------------------
# Common mixin with timestamps
# -----------------------------------------------------------------------------
class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        onupdate=sa.func.now(),
        nullable=False,
    )


class IntPKMixin:
    """Integer surrogate key, matching the ids exposed on the wire."""
    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)


__all__ = ["Base", "TimestampMixin", "IntPKMixin", "NAMING_CONVENTION"]
