from __future__ import annotations

from typing import Optional

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from SOAT.db.base import Base, IntPKMixin, TimestampMixin


class School(IntPKMixin, TimestampMixin, Base):
    """Owned by the school CRUD forms; read here only to scope enrollment."""
    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    address: Mapped[Optional[str]] = mapped_column(sa.Text)

    def __repr__(self) -> str:
        return f"School(id={self.id!r}, name={self.name!r})"


class Student(IntPKMixin, TimestampMixin, Base):
    """A student is enrolled at exactly one school through ``school_id``."""
    __tablename__ = "students"

    school_id: Mapped[int] = mapped_column(
        ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    grade: Mapped[Optional[str]] = mapped_column(String(32))
    age: Mapped[Optional[int]] = mapped_column(sa.Integer)

    def __repr__(self) -> str:
        return f"Student(id={self.id!r}, school_id={self.school_id!r}, name={self.name!r})"
