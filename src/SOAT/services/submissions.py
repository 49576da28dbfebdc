# src/SOAT/services/submissions.py
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any, Callable, Dict, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from SOAT.app_logger import get_logger
from SOAT.core.config import settings
from SOAT.engine.aggregation import Completeness, summarize
from SOAT.engine.guard import can_transition
from SOAT.engine.status import ScheduleSnapshot, ScheduleStatus, ensure_aware, natural_status, utcnow
from SOAT.exceptions import NotFoundError, ValidationError
from SOAT.schemas.assessment import StudentAssessmentPayload, parse_payloads
from SOAT.services.stores import ASSESSMENT_FIELDS, Stores
from SOAT.services.summary_cache import AssessmentSummaryCache

log = get_logger("submissions")


@dataclass(frozen=True)
class SubmissionOutcome:
    schedule_id: int
    saved: int
    previous_status: ScheduleStatus
    status: ScheduleStatus
    completeness: Completeness

    @property
    def status_changed(self) -> bool:
        return self.status is not self.previous_status

    @property
    def message(self) -> str:
        base = "Student assessments saved successfully"
        if self.status_changed:
            return f"{base}; schedule status {self.previous_status.value} -> {self.status.value}"
        return base


class AssessmentSubmissionHandler:
    """
    Stores one batch of per-student assessments for a schedule and re-derives
    the schedule's status from the updated data.

    The rows, the completeness recomputation and the status write share one
    transaction: either the whole batch lands and the status reflects it, or
    nothing is written.
    """

    def __init__(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        *,
        cache: Optional[AssessmentSummaryCache] = None,
        tz: Optional[tzinfo] = None,
        default_attendance: Optional[str] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.sessionmaker = sessionmaker
        self.cache = cache
        self.tz = tz or settings.school_tz
        self.default_attendance = default_attendance or settings.DEFAULT_ATTENDANCE_STATUS
        self.clock = clock

    def _fields(self, payload: StudentAssessmentPayload) -> Dict[str, Any]:
        # full replace: every column is written, omitted ones as None
        fields = payload.model_dump(include=set(ASSESSMENT_FIELDS))
        if fields.get("attendance_status") is None:
            fields["attendance_status"] = self.default_attendance
        return fields

    @staticmethod
    def _check_duplicates(payloads: Sequence[StudentAssessmentPayload]) -> None:
        counts = Counter(p.student_id for p in payloads)
        dupes = sorted(sid for sid, n in counts.items() if n > 1)
        if dupes:
            raise ValidationError(
                f"student_id repeated in one submission: {dupes}",
                field="student_id",
                context={"student_ids": dupes},
            )

    async def submit(
        self,
        schedule_id: int,
        assessments: Any,
        *,
        now: Optional[datetime] = None,
    ) -> SubmissionOutcome:
        payloads = parse_payloads(assessments)
        self._check_duplicates(payloads)
        now = ensure_aware(now or self.clock(), self.tz)

        async with self.sessionmaker() as session:
            async with session.begin():
                outcome = await self._submit_in(session, schedule_id, payloads, now)

        if self.cache is not None:
            self.cache.invalidate(schedule_id)
        return outcome

    async def _submit_in(
        self,
        session: AsyncSession,
        schedule_id: int,
        payloads: Sequence[StudentAssessmentPayload],
        now: datetime,
    ) -> SubmissionOutcome:
        stores = Stores.for_session(session)

        # the status decided below must rest on this version of the row
        schedule = await stores.schedules.get(schedule_id, for_update=True)
        if schedule is None:
            raise NotFoundError("Schedule not found", "schedule", schedule_id)

        enrolled = await stores.enrollment.list_students(schedule.school_id)
        unknown = sorted({p.student_id for p in payloads} - enrolled)
        if unknown:
            raise NotFoundError(
                f"student(s) {unknown} not enrolled at school {schedule.school_id}",
                "student",
                unknown[0],
                context={"student_ids": unknown, "school_id": schedule.school_id},
            )

        for payload in payloads:
            await stores.assessments.upsert(schedule.id, payload.student_id, self._fields(payload))

        rows = await stores.assessments.list_by_schedule_id(schedule.id)
        completeness = summarize(rows, enrolled)

        snapshot = ScheduleSnapshot.from_model(schedule, self.tz)
        previous = snapshot.status
        status = previous

        if previous is not ScheduleStatus.CANCELLED:
            target = natural_status(snapshot, completeness, now)
            if target is not previous:
                decision = can_transition(previous, target, snapshot, completeness, now)
                if decision:
                    await stores.schedules.update_status(
                        schedule.id, previous, target, expected_version=snapshot.version, now=now,
                    )
                    status = target
                else:
                    log.warning(
                        "schedule %s kept at %s after submission: %s",
                        schedule.id, previous.value, decision.reason,
                    )

        if status is previous:
            # bump the version anyway so whichever writer read an older row loses its CAS
            await stores.schedules.touch(schedule.id, snapshot.version)

        log.info(
            "saved %d assessment(s) for schedule %s (%d/%d assessed, status %s)",
            len(payloads), schedule.id, completeness.assessed_count,
            completeness.total_students, status.value,
        )
        return SubmissionOutcome(
            schedule_id=schedule.id,
            saved=len(payloads),
            previous_status=previous,
            status=status,
            completeness=completeness,
        )
