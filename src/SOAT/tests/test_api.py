# src/SOAT/tests/test_api.py
from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from SOAT.api.deps import get_submission_handler
from SOAT.exceptions import ConflictError
from SOAT.tests.helpers import NOW, levels

pytestmark = pytest.mark.anyio


async def test_get_assessment_lists_every_enrolled_student(client, seed):
    school_id, (citra, ana, budi) = await seed.school(students=("Citra", "Ana", "Budi"))
    sid = await seed.schedule(school_id, NOW - timedelta(hours=1), teacher_ids=[3, 1], lesson_ids=[9])
    await seed.assessment(sid, ana, **levels(2, 3, 4, 1, knowledge_score=75))

    r = await client.get(f"/api/schedules/{sid}/assessment")

    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    data = body["data"]
    assert data["schedule"]["id"] == sid
    assert data["schedule"]["teacher_ids"] == [1, 3]
    assert [s["name"] for s in data["students"]] == ["Ana", "Budi", "Citra"]

    by_name = {s["name"]: s for s in data["students"]}
    assert by_name["Ana"]["knowledge_score"] == 75
    assert by_name["Ana"]["attendance_status"] == "present"
    assert by_name["Budi"]["attendance_status"] is None
    assert by_name["Budi"]["personal_development_level"] is None


async def test_get_assessment_unknown_schedule(client):
    r = await client.get("/api/schedules/4040/assessment")
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Schedule not found", "error_code": "schedule_not_found"}


async def test_post_assessment_saves_and_reports_status(client, seed):
    school_id, (ana, budi) = await seed.school(students=("Ana", "Budi"))
    sid = await seed.schedule(school_id, NOW - timedelta(hours=1))

    r = await client.post(
        f"/api/schedules/{sid}/assessment",
        json=[
            {"student_id": ana, **levels(2, 3, 4, 1)},
            {"student_id": budi, **levels(4, 4, 2, 2)},
        ],
    )

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["message"].startswith("Student assessments saved successfully")
    assert body["status"] == "completed"
    assert body["previous_status"] == "scheduled"
    assert body["completeness"]["assessedCount"] == 2
    assert body["completeness"]["totalStudents"] == 2
    assert body["completeness"]["averages"]["overall"] == 2.8


async def test_post_assessment_rejects_non_array(client, seed):
    school_id, _ = await seed.school()
    sid = await seed.schedule(school_id, NOW)

    r = await client.post(f"/api/schedules/{sid}/assessment", json={"student_id": 1})

    assert r.status_code == 400
    assert r.json()["error"] == "Assessments must be an array"
    assert r.json()["success"] is False


async def test_post_assessment_rejects_out_of_range_level(client, seed):
    school_id, (ana, *_) = await seed.school()
    sid = await seed.schedule(school_id, NOW)

    r = await client.post(
        f"/api/schedules/{sid}/assessment",
        json=[{"student_id": ana, "personal_development_level": 7}],
    )

    assert r.status_code == 400
    assert r.json()["error_code"] == "validation_error"
    assert await seed.get_assessment(sid, ana) is None


async def test_post_assessment_rejects_non_enrolled_student(client, seed):
    school_id, _ = await seed.school()
    _, (stranger,) = await seed.school(name="Harbor Elementary", students=("Dewi",))
    sid = await seed.schedule(school_id, NOW)

    r = await client.post(f"/api/schedules/{sid}/assessment", json=[{"student_id": stranger, **levels(1, 1, 1, 1)}])

    assert r.status_code == 404
    assert r.json()["error_code"] == "student_not_found"
    assert await seed.get_assessment(sid, stranger) is None


async def test_writes_need_the_capability(anon_client, seed):
    school_id, _ = await seed.school()
    sid = await seed.schedule(school_id, NOW)

    post = await anon_client.post(f"/api/schedules/{sid}/assessment", json=[])
    patch = await anon_client.patch(f"/api/schedules/{sid}/status", json={"status": "cancelled"})
    sweep = await anon_client.post("/api/schedules/auto-update-status")

    for r in (post, patch, sweep):
        assert r.status_code == 403
        assert r.json()["error_code"] == "permission_denied"
    assert (await seed.get_schedule(sid)).status == "scheduled"

    # reads stay open
    assert (await anon_client.get(f"/api/schedules/{sid}/assessment")).status_code == 200


async def test_capability_dependency_can_be_overridden(app, anon_client, seed):
    from SOAT.auth import require_schedule_manager

    school_id, _ = await seed.school()
    sid = await seed.schedule(school_id, NOW + timedelta(days=1))

    app.dependency_overrides[require_schedule_manager] = lambda: None
    try:
        r = await anon_client.patch(f"/api/schedules/{sid}/status", json={"status": "cancelled"})
    finally:
        app.dependency_overrides.clear()

    assert r.status_code == 200


async def test_patch_status_guard_rejection(client, seed):
    school_id, _ = await seed.school()
    sid = await seed.schedule(school_id, NOW + timedelta(hours=1))

    r = await client.patch(f"/api/schedules/{sid}/status", json={"status": "completed"})

    assert r.status_code == 409
    body = r.json()
    assert body["error_code"] == "guard_violation"
    assert body["reason"] == "future schedule"


async def test_patch_status_cancel(client, seed):
    school_id, _ = await seed.school()
    sid = await seed.schedule(school_id, NOW + timedelta(hours=1))

    r = await client.patch(f"/api/schedules/{sid}/status", json={"status": "cancelled", "reason": "field trip"})

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["previous_status"] == "scheduled"
    assert body["schedule"]["status"] == "cancelled"
    assert body["schedule"]["cancellation_reason"] == "field trip"
    assert body["schedule"]["version"] == 2


async def test_patch_status_bad_token(client, seed):
    school_id, _ = await seed.school()
    sid = await seed.schedule(school_id, NOW)

    r = await client.patch(f"/api/schedules/{sid}/status", json={"status": "in_progress"})

    assert r.status_code == 400
    assert r.json()["error_code"] == "validation_error"


async def test_auto_update_endpoint(client, seed, clock):
    school_id, _ = await seed.school()
    await seed.schedule(school_id, NOW - timedelta(hours=1))
    await seed.schedule(school_id, NOW + timedelta(hours=1))

    r = await client.post("/api/schedules/auto-update-status")
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "Updated 1 schedule(s)", "updatedCount": 1}

    clock.advance(hours=2)
    r = await client.post("/api/schedules/auto-update-status")
    assert r.json()["updatedCount"] == 1

    r = await client.post("/api/schedules/auto-update-status")
    assert r.json()["updatedCount"] == 0


async def test_summary_and_profile(client, seed):
    school_id, (ana, budi, citra) = await seed.school()
    sid = await seed.schedule(school_id, NOW - timedelta(hours=1), teacher_ids=[1, 2], lesson_ids=[5])
    await seed.assessment(sid, ana, **levels(2, 3, 4, 1, knowledge_score=90))
    await seed.assessment(sid, budi, **levels(4, 4, 2, 2, participation_score=60))
    await seed.assessment(sid, citra, attendance_status="late")

    r = await client.get(f"/api/schedules/{sid}/summary")
    assert r.status_code == 200
    summary = r.json()["data"]
    assert summary["assessedCount"] == 2
    assert summary["totalStudents"] == 3
    assert summary["averages"]["critical_thinking"] == 3.5

    r = await client.get(f"/api/schedules/{sid}/profile")
    assert r.status_code == 200
    profile = r.json()["data"]
    assert profile["school_name"] == "Sunrise Primary"
    assert profile["schedule"]["lesson_ids"] == [5]
    assert profile["stats"] == {
        "total_teachers": 2,
        "total_lessons": 1,
        "total_students": 3,
        "total_attendance": 3,
        "total_assessments": 2,
        "attendance_rate": 66.7,
    }


async def test_reports(client, seed):
    school_id, students = await seed.school(students=("Ana", "Budi"))
    other_id, _ = await seed.school(name="Harbor Elementary", students=("Dewi",))
    done = await seed.schedule(school_id, NOW - timedelta(days=1), status="completed")
    for student_id, lv in zip(students, ((2, 3, 4, 1), (4, 4, 2, 2))):
        await seed.assessment(done, student_id, **levels(*lv))
    open_ = await seed.schedule(school_id, NOW - timedelta(hours=1), status="in-progress")
    await seed.assessment(open_, students[0], **levels(1, 1, 1, 1))
    await seed.schedule(other_id, NOW + timedelta(days=1))

    r = await client.get("/api/reports/schedule-status")
    assert r.json()["data"] == {
        "counts": {"scheduled": 1, "in-progress": 1, "completed": 1, "cancelled": 0},
        "total": 3,
    }

    r = await client.get("/api/reports/schedule-outcomes", params={"school_id": school_id})
    outcomes = {o["schedule_id"]: o for o in r.json()["data"]}
    assert set(outcomes) == {done, open_}
    assert outcomes[done]["averages"]["overall"] == 2.8
    assert outcomes[done]["assessed_students"] == 2
    assert outcomes[open_]["averages"] is None
    assert outcomes[open_]["total_school_students"] == 2

    r = await client.get("/api/reports/schedule-outcomes", params={"status": "completed"})
    assert [o["schedule_id"] for o in r.json()["data"]] == [done]

    r = await client.get("/api/reports/schedule-outcomes", params={"status": "done"})
    assert r.status_code == 400


async def test_assessment_categories(client):
    r = await client.get("/api/assessment-categories")
    assert r.status_code == 200
    cats = r.json()["data"]
    assert len(cats) == 4
    assert cats[0]["title"] == "Personal Development"
    assert cats[0]["levels"][0]["label"] == "Level 1"


class _FailingHandler:
    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    async def submit(self, schedule_id, assessments, **kw):
        raise self.exc


@pytest.mark.parametrize(
    "exc, status, code",
    [
        (OperationalError("UPDATE schedules", {}, Exception("database is locked")), 503, "database_error"),
        (SQLAlchemyError("connection closed"), 500, "database_error"),
        (ConflictError(1, "in-progress", 1), 409, "status_conflict"),
    ],
)
async def test_store_failures_keep_the_json_error_body(app, client, seed, exc, status, code):
    school_id, _ = await seed.school()
    sid = await seed.schedule(school_id, NOW - timedelta(hours=1))

    app.dependency_overrides[get_submission_handler] = lambda: _FailingHandler(exc)
    try:
        r = await client.post(f"/api/schedules/{sid}/assessment", json=[])
    finally:
        app.dependency_overrides.clear()

    assert r.status_code == status
    body = r.json()
    assert body["success"] is False
    assert body["error_code"] == code
