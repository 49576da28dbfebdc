# src/SOAT/tests/test_aggregation.py
from __future__ import annotations

from types import SimpleNamespace

import pytest

from SOAT.engine import average_dimensions, is_assessed, round_half_up, summarize
from SOAT.engine.categories import (
    ASSESSMENT_CATEGORIES,
    category_options,
    is_valid_level,
    level_description,
    list_categories,
    truncate_description,
)


def row(student_id, pd=None, ct=None, tw=None, ak=None, attendance="present"):
    return SimpleNamespace(
        student_id=student_id,
        attendance_status=attendance,
        personal_development_level=pd,
        critical_thinking_level=ct,
        team_work_level=tw,
        academic_knowledge_level=ak,
    )


def test_reference_fixture_averages():
    rows = [row(1, 2, 3, 4, 1), row(2, 4, 4, 2, 2)]
    result = summarize(rows, {1, 2, 3})

    assert result.assessed_count == 2
    assert result.total_students == 3
    assert not result.is_complete

    avg = result.averages
    assert (avg.personal_development, avg.critical_thinking, avg.team_work, avg.academic_knowledge) == (
        3.0,
        3.5,
        3.0,
        1.5,
    )
    assert avg.overall == 2.8


def test_missing_level_counts_as_zero_in_mean():
    rows = [row(1, pd=4), row(2, 2, 2, 2, 2)]
    avg = average_dimensions(rows)
    assert avg.personal_development == 3.0
    assert avg.critical_thinking == 1.0
    assert avg.team_work == 1.0
    assert avg.academic_knowledge == 1.0
    assert avg.overall == 1.5


@pytest.mark.parametrize(
    "value,expected",
    [(2.75, 2.8), (2.25, 2.3), (1.05, 1.1), (3.333, 3.3), (0, 0.0)],
)
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_assessed_requires_attendance_and_a_level():
    assert is_assessed(row(1, pd=1))
    assert not is_assessed(row(1, pd=1, attendance=None))
    assert not is_assessed(row(1))


def test_rows_for_students_not_enrolled_are_ignored():
    rows = [row(1, 1, 1, 1, 1), row(99, 4, 4, 4, 4)]
    result = summarize(rows, {1})
    assert result.assessed_count == 1
    assert result.is_complete
    assert result.averages.overall == 1.0


def test_no_rows_means_no_averages():
    result = summarize([], {1, 2})
    assert result.assessed_count == 0
    assert result.averages is None
    assert result.as_dict() == {"assessed_count": 0, "total_students": 2, "averages": None}


def test_zero_enrolled_is_never_complete():
    assert not summarize([], set()).is_complete


def test_categories_cover_the_four_dimensions():
    cats = list_categories()
    assert [c["key"] for c in cats] == [
        "personal_development",
        "critical_thinking",
        "team_work",
        "academic_knowledge",
    ]
    for cat in cats:
        assert [lvl["value"] for lvl in cat["levels"]] == [1, 2, 3, 4]
        assert all(len(lvl["short_description"]) <= 63 for lvl in cat["levels"])


def test_level_helpers():
    assert is_valid_level(1) and is_valid_level(4)
    assert not is_valid_level(0) and not is_valid_level(5) and not is_valid_level(None)
    assert level_description("team_work", 9) == ""
    assert level_description("team_work", 1) == ASSESSMENT_CATEGORIES["team_work"]["levels"][1]
    assert category_options("unknown") == []
    assert truncate_description("short") == "short"
    assert truncate_description("x" * 61) == "x" * 60 + "..."
