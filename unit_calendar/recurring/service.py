"""Recurring training operations.

Entry points used by the admin API and the background job. Authorization is
checked by the caller before any of these run. Mutating operations commit
the session they are given.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from loguru import logger
from sqlalchemy.orm import Session

from unit_calendar.calendar.clock import day_name, now_local
from unit_calendar.db.models import RecurringTraining
from unit_calendar.recurring.errors import RecurringTrainingNotFoundError
from unit_calendar.recurring.materializer import RecurringMaterializer
from unit_calendar.recurring.repository import SchedulingRepository
from unit_calendar.recurring.types import (
    CreateRecurringTrainingData,
    ProcessingResult,
    ProcessingSummary,
    RecurringTrainingInstanceView,
    RecurringTrainingWithStats,
    UpdateRecurringTrainingData,
)


def create_recurring_training(session: Session, data: CreateRecurringTrainingData, created_by: str) -> str:
    """Create an active recurring training template.

    Returns:
        ID of the new template
    """
    repository = SchedulingRepository(session)
    template = repository.add_template(
        RecurringTraining(
            name=data.name,
            description=data.description,
            day_of_week=data.day_of_week,
            time=data.time,
            location=data.location,
            instructor=data.instructor,
            max_personnel=data.max_personnel,
            is_active=True,
            created_by=created_by,
        )
    )
    session.commit()
    logger.info(
        f"[RECURRING] Created recurring training id={template.id} name={template.name!r} "
        f"on {day_name(template.day_of_week)} at {template.time}"
    )
    return template.id


def get_recurring_trainings(session: Session) -> list[RecurringTrainingWithStats]:
    rows = SchedulingRepository(session).templates_with_stats()
    return [
        RecurringTrainingWithStats(
            id=template.id,
            name=template.name,
            description=template.description,
            day_of_week=template.day_of_week,
            day_name=day_name(template.day_of_week),
            time=template.time,
            location=template.location,
            instructor=template.instructor,
            max_personnel=template.max_personnel,
            is_active=template.is_active,
            created_by=template.created_by,
            created_by_name=creator_name or "Unknown",
            instances_created=instances_created,
            created_at=template.created_at,
            updated_at=template.updated_at,
        )
        for template, instances_created, creator_name in rows
    ]


def get_recurring_training(session: Session, recurring_id: str) -> RecurringTraining:
    """Fetch one template.

    Raises:
        RecurringTrainingNotFoundError: If no template has this id
    """
    template = SchedulingRepository(session).get_template(recurring_id)
    if template is None:
        raise RecurringTrainingNotFoundError(recurring_id)
    return template


def update_recurring_training(session: Session, recurring_id: str, data: UpdateRecurringTrainingData) -> RecurringTraining:
    """Apply a partial update, including activation toggling.

    Already materialized sessions are not touched: they belong to the calendar.
    """
    template = get_recurring_training(session, recurring_id)
    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(template, field, value)
    session.commit()
    logger.info(f"[RECURRING] Updated recurring training id={recurring_id} fields={sorted(changes)}")
    return template


def delete_recurring_training(session: Session, recurring_id: str) -> None:
    """Delete a template and its ledger rows, keeping the sessions it produced."""
    repository = SchedulingRepository(session)
    template = get_recurring_training(session, recurring_id)
    removed = repository.delete_instances(recurring_id)
    repository.delete_template(template)
    session.commit()
    logger.info(f"[RECURRING] Deleted recurring training id={recurring_id} and {removed} ledger row(s)")


def process_recurring_trainings(
    session: Session,
    *,
    now: Callable[[], datetime] = now_local,
) -> list[ProcessingResult]:
    """Materialize upcoming sessions for every active template and commit them."""
    results = RecurringMaterializer(SchedulingRepository(session), now=now).process()
    session.commit()
    return results


def get_recurring_training_instances(session: Session, recurring_id: str) -> list[RecurringTrainingInstanceView]:
    get_recurring_training(session, recurring_id)
    return [
        RecurringTrainingInstanceView(
            id=instance.id,
            recurring_training_id=instance.recurring_training_id,
            training_id=instance.training_id,
            scheduled_date=instance.scheduled_date,
            created_at=instance.created_at,
            name=training.name if training else None,
            date=training.date if training else None,
            time=training.time if training else None,
            status=training.status if training else None,
        )
        for instance, training in SchedulingRepository(session).instances_for_template(recurring_id)
    ]


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def summarize_results(results: list[ProcessingResult]) -> ProcessingSummary:
    """Aggregate a processing run into counts and operator messages."""
    created = sum(1 for result in results if result.status == "created")
    skipped = sum(1 for result in results if result.status == "skipped")
    errors = sum(1 for result in results if result.status == "error")

    messages: list[str] = []
    if created:
        messages.append(f"Created {_plural(created, 'training session')}")
    if skipped:
        messages.append(f"Skipped {_plural(skipped, 'training')}")
    if errors:
        messages.append(f"Failed to process {_plural(errors, 'training')}")
    if not messages:
        messages.append("No new trainings to create")

    return ProcessingSummary(created=created, skipped=skipped, errors=errors, messages=messages)
