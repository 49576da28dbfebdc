# src/SOAT/tests/test_status_resolver.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest

from SOAT.engine import Completeness, ScheduleSnapshot, ScheduleStatus, ensure_aware, natural_status
from SOAT.exceptions import ValidationError

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def snap(at: datetime, status: ScheduleStatus = ScheduleStatus.SCHEDULED) -> ScheduleSnapshot:
    return ScheduleSnapshot(id=1, school_id=1, scheduled_datetime=at, status=status)


@pytest.mark.parametrize("assessed,total", [(0, 3), (3, 3), (0, 0)])
def test_future_schedule_is_scheduled_regardless_of_assessments(assessed, total):
    s = snap(NOW + timedelta(hours=1), ScheduleStatus.IN_PROGRESS)
    assert natural_status(s, Completeness(assessed, total), NOW) is ScheduleStatus.SCHEDULED


def test_past_and_fully_assessed_is_completed():
    s = snap(NOW - timedelta(minutes=1))
    assert natural_status(s, Completeness(3, 3), NOW) is ScheduleStatus.COMPLETED


def test_past_and_partially_assessed_is_in_progress():
    s = snap(NOW - timedelta(minutes=1))
    assert natural_status(s, Completeness(2, 3), NOW) is ScheduleStatus.IN_PROGRESS


def test_past_with_no_enrolled_students_is_never_completed():
    s = snap(NOW - timedelta(days=3))
    assert natural_status(s, Completeness(0, 0), NOW) is ScheduleStatus.IN_PROGRESS


def test_scheduled_at_exactly_now_counts_as_started():
    s = snap(NOW)
    assert natural_status(s, Completeness(0, 2), NOW) is ScheduleStatus.IN_PROGRESS


@pytest.mark.parametrize("when", [NOW + timedelta(days=1), NOW - timedelta(days=1)])
def test_cancelled_is_sticky(when):
    s = snap(when, ScheduleStatus.CANCELLED)
    assert natural_status(s, Completeness(3, 3), NOW) is ScheduleStatus.CANCELLED


def test_snapshot_reads_wall_clock_in_school_timezone():
    jakarta = ZoneInfo("Asia/Jakarta")
    row = SimpleNamespace(
        id=7,
        school_id=2,
        status="in-progress",
        version=4,
        cancelled_at=None,
        scheduled_datetime=lambda tz: datetime(2026, 3, 2, 10, 0, tzinfo=tz),
    )
    s = ScheduleSnapshot.from_model(row, jakarta)
    assert s.status is ScheduleStatus.IN_PROGRESS
    assert s.version == 4
    # 10:00 in Jakarta is 03:00 UTC, already past at 09:00 UTC
    assert not s.is_future(NOW)


def test_ensure_aware_interprets_naive_values_in_zone():
    naive = datetime(2026, 3, 2, 9, 0)
    assert ensure_aware(naive, timezone.utc) == NOW
    assert ensure_aware(NOW, ZoneInfo("Asia/Jakarta")) is NOW


@pytest.mark.parametrize(
    "token,expected",
    [
        ("scheduled", ScheduleStatus.SCHEDULED),
        ("in-progress", ScheduleStatus.IN_PROGRESS),
        (" Completed ", ScheduleStatus.COMPLETED),
        (ScheduleStatus.CANCELLED, ScheduleStatus.CANCELLED),
    ],
)
def test_status_tokens(token, expected):
    assert ScheduleStatus.parse(token) is expected


@pytest.mark.parametrize("token", ["in_progress", "done", "", None])
def test_unknown_status_token_is_a_validation_error(token):
    with pytest.raises(ValidationError) as ei:
        ScheduleStatus.parse(token)
    assert ei.value.field == "status"
    assert ei.value.http_status == 400
