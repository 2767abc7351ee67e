"""Recurring training materializer.

Expands weekly recurring training templates into concrete training sessions
over a rolling horizon (default: the next 3 weeks).

For every active template and every week offset 1..N:

1. candidate date = Sunday of the target week + template day of week
2. already in the ledger -> skipped
3. mission conflict on the candidate date:
   - week offsets before the last horizon week check the same weekday one
     week later and defer there when it is free
   - the last horizon week never defers
   - unresolved -> skipped
4. create the session, record the ledger row, emit created

One template failing never stops the batch: its error becomes an error
result and processing moves to the next template. Each week runs inside its
own savepoint, so a failed statement rolls back that week only and the outer
transaction stays usable (PostgreSQL aborts it otherwise).
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import date, datetime

from loguru import logger

from unit_calendar.calendar.clock import add_days, format_date, now_local, start_of_week
from unit_calendar.calendar.status import EventStatus, SchedulePoint, derive_point_status
from unit_calendar.config.settings import settings
from unit_calendar.db.models import RecurringTraining
from unit_calendar.recurring.errors import LedgerConflictError
from unit_calendar.recurring.repository import SchedulingRepository
from unit_calendar.recurring.types import CreatedResult, ErrorResult, ProcessingResult, SkippedResult

DEFERRAL_DAYS = 7


def candidate_date_for(today: date, day_of_week: int, week_offset: int) -> date:
    """Date a template lands on week_offset weeks after the current week.

    Args:
        today: Current calendar date
        day_of_week: Template weekday, 0=Sunday .. 6=Saturday
        week_offset: Number of weeks ahead (1 = next week)
    """
    target_week_start = start_of_week(add_days(today, 7 * week_offset))
    return add_days(target_week_start, day_of_week)


class RecurringMaterializer:
    """Materializes concrete sessions from active recurring templates.

    Collaborators are injected: the repository supplies templates, the ledger,
    the mission conflict check and session creation; now() and monotonic()
    are injectable clocks for the schedule and the run deadline.
    """

    def __init__(
        self,
        repository: SchedulingRepository,
        *,
        now: Callable[[], datetime] = now_local,
        horizon_weeks: int | None = None,
        default_max_personnel: int | None = None,
        timeout_seconds: float | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.repository = repository
        self.now = now
        self.horizon_weeks = horizon_weeks if horizon_weeks is not None else settings.recurring_horizon_weeks
        self.default_max_personnel = (
            default_max_personnel if default_max_personnel is not None else settings.recurring_default_max_personnel
        )
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.recurring_processing_timeout_seconds
        )
        self.monotonic = monotonic

    def process(self) -> list[ProcessingResult]:
        """Run one processing pass over all active templates.

        Returns:
            Results in processing order: templates by id, then week offset
            ascending
        """
        current = self.now()
        deadline = self.monotonic() + self.timeout_seconds
        templates = self.repository.active_templates()
        results: list[ProcessingResult] = []

        logger.info(
            f"[RECURRING] Processing {len(templates)} active recurring training(s) "
            f"over {self.horizon_weeks} week(s) from {format_date(current)}"
        )

        for template in templates:
            if self.monotonic() > deadline:
                logger.error(
                    f"[RECURRING] Processing deadline exceeded, not processing recurring_id={template.id}"
                )
                results.append(
                    ErrorResult(
                        recurring_id=template.id,
                        name=template.name,
                        error=f"processing timed out after {self.timeout_seconds:g}s",
                    )
                )
                continue

            try:
                for week_offset in range(1, self.horizon_weeks + 1):
                    # A failed statement rolls back this week only; earlier weeks stay
                    with self.repository.savepoint():
                        results.append(self._process_week(template, current, week_offset))
            except Exception as e:
                logger.exception(f"[RECURRING] Failed to process recurring training {template.id}: {e}")
                results.append(ErrorResult(recurring_id=template.id, name=template.name, error=str(e)))

        logger.info(
            "[RECURRING] Processing finished: "
            f"created={sum(1 for r in results if r.status == 'created')}, "
            f"skipped={sum(1 for r in results if r.status == 'skipped')}, "
            f"errors={sum(1 for r in results if r.status == 'error')}"
        )
        return results

    def _process_week(self, template: RecurringTraining, current: datetime, week_offset: int) -> ProcessingResult:
        candidate = format_date(candidate_date_for(current.date(), template.day_of_week, week_offset))

        if self.repository.instance_exists(template.id, candidate):
            logger.debug(f"[RECURRING] recurring_id={template.id} already materialized on {candidate}")
            return self._skipped(template, week_offset, f"already exists for week {week_offset} ({candidate})")

        final_date = self._resolve_date(candidate, week_offset)
        if final_date is None:
            logger.info(f"[RECURRING] recurring_id={template.id} blocked by mission conflict on {candidate}")
            return self._skipped(template, week_offset, f"mission conflicts on week {week_offset} ({candidate})")

        try:
            with self.repository.ledger_savepoint(template.id, final_date):
                training = self.repository.create_training_record(
                    name=template.name,
                    description=template.description,
                    date=final_date,
                    time=template.time,
                    location=template.location,
                    instructor=template.instructor,
                    # Zero is treated as unset
                    max_personnel=template.max_personnel or self.default_max_personnel,
                    status=derive_point_status(
                        SchedulePoint(date=final_date, time=template.time, status=EventStatus.SCHEDULED),
                        current,
                    ),
                    created_by=template.created_by,
                )
                self.repository.record_instance(template.id, training.id, final_date)
        except LedgerConflictError:
            return self._skipped(template, week_offset, f"already exists for week {week_offset} ({final_date})")

        rescheduled = final_date != candidate
        logger.info(
            f"[RECURRING] Created training_id={training.id} for recurring_id={template.id} on {final_date}"
            + (f" (deferred from {candidate})" if rescheduled else "")
        )
        return CreatedResult(
            recurring_id=template.id,
            name=template.name,
            training_id=training.id,
            scheduled_date=final_date,
            rescheduled=rescheduled,
            week_offset=week_offset,
        )

    def _resolve_date(self, candidate: str, week_offset: int) -> str | None:
        """Pick a conflict-free date for the candidate, or None when unresolved."""
        if not self.repository.mission_conflicts_on_date(candidate):
            return candidate

        # The last horizon week is never deferred
        if week_offset >= self.horizon_weeks:
            return None

        deferred = format_date(add_days(date.fromisoformat(candidate), DEFERRAL_DAYS))
        if self.repository.mission_conflicts_on_date(deferred):
            return None
        return deferred

    @staticmethod
    def _skipped(template: RecurringTraining, week_offset: int, reason: str) -> SkippedResult:
        return SkippedResult(recurring_id=template.id, name=template.name, reason=reason, week_offset=week_offset)
