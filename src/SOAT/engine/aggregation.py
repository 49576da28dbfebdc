"""
Per-schedule assessment completeness and dimension averages.

Everything here is pure: it works on any row object exposing ``student_id``,
``attendance_status`` and the four ``<dimension>_level`` attributes, so ORM rows
and plain dataclasses are interchangeable.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Collection, Dict, Iterable, Optional

DIMENSIONS = (
    "personal_development",
    "critical_thinking",
    "team_work",
    "academic_knowledge",
)
LEVEL_FIELDS = tuple(f"{d}_level" for d in DIMENSIONS)

_ONE_DECIMAL = Decimal("0.1")


def round_half_up(value: Any) -> float:
    """Round to one decimal place, halves away from zero (2.75 -> 2.8)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return float(value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def is_assessed(row: Any) -> bool:
    """Attendance recorded and at least one dimension level given."""
    if getattr(row, "attendance_status", None) is None:
        return False
    return any(getattr(row, field, None) is not None for field in LEVEL_FIELDS)


@dataclass(frozen=True)
class DimensionAverages:
    personal_development: float
    critical_thinking: float
    team_work: float
    academic_knowledge: float
    overall: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class Completeness:
    assessed_count: int
    total_students: int
    averages: Optional[DimensionAverages] = None

    @property
    def is_complete(self) -> bool:
        return self.total_students > 0 and self.assessed_count == self.total_students

    def as_dict(self) -> Dict[str, Any]:
        return {
            "assessed_count": self.assessed_count,
            "total_students": self.total_students,
            "averages": self.averages.as_dict() if self.averages else None,
        }


def average_dimensions(rows: Iterable[Any]) -> Optional[DimensionAverages]:
    rows = list(rows)
    if not rows:
        return None

    count = Decimal(len(rows))
    per_dimension: Dict[str, float] = {}
    for dim in DIMENSIONS:
        # a missing level counts as 0 here, it is not excluded from the mean
        total = sum((Decimal(getattr(r, f"{dim}_level") or 0) for r in rows), Decimal(0))
        per_dimension[dim] = round_half_up(total / count)

    rounded_sum = sum((Decimal(str(v)) for v in per_dimension.values()), Decimal(0))
    overall = round_half_up(rounded_sum / Decimal(len(DIMENSIONS)))
    return DimensionAverages(overall=overall, **per_dimension)


def summarize(rows: Iterable[Any], enrolled_student_ids: Collection[int]) -> Completeness:
    """Build the Completeness of one schedule from its rows and its school's enrollment."""
    enrolled = set(enrolled_student_ids)
    assessed = [r for r in rows if r.student_id in enrolled and is_assessed(r)]
    return Completeness(
        assessed_count=len(assessed),
        total_students=len(enrolled),
        averages=average_dimensions(assessed),
    )


__all__ = [
    "DIMENSIONS",
    "LEVEL_FIELDS",
    "DimensionAverages",
    "Completeness",
    "round_half_up",
    "is_assessed",
    "average_dimensions",
    "summarize",
]
