"""Persistence for recurring trainings and the instance ledger.

SchedulingRepository wraps an explicitly passed SQLAlchemy session. It never
commits: the caller owns the transaction boundary.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, SessionTransaction

from unit_calendar.calendar.status import ACTIVE_EVENT_STATUSES, EventStatus
from unit_calendar.db.models import (
    LEDGER_UNIQUE_CONSTRAINT,
    Mission,
    RecurringTraining,
    RecurringTrainingInstance,
    TrainingRecord,
    User,
)
from unit_calendar.recurring.errors import LedgerConflictError


def _is_ledger_duplicate(error: IntegrityError) -> bool:
    """Whether an integrity error is the ledger's (template, date) uniqueness.

    SQLite names the table in the message, PostgreSQL names the constraint.
    """
    message = str(error.orig).lower()
    if "unique" not in message and "duplicate" not in message:
        return False
    return LEDGER_UNIQUE_CONSTRAINT in message or RecurringTrainingInstance.__tablename__ in message


class SchedulingRepository:
    """Database access used by the recurring materializer and its CRUD service."""

    def __init__(self, session: Session):
        self.session = session

    # Templates

    def get_template(self, recurring_id: str) -> RecurringTraining | None:
        return self.session.get(RecurringTraining, recurring_id)

    def add_template(self, template: RecurringTraining) -> RecurringTraining:
        self.session.add(template)
        self.session.flush()
        return template

    def delete_template(self, template: RecurringTraining) -> None:
        self.session.delete(template)
        self.session.flush()

    def active_templates(self) -> list[RecurringTraining]:
        """Active templates in a stable order (by id)."""
        return list(
            self.session.execute(
                select(RecurringTraining)
                .where(RecurringTraining.is_active.is_(True))
                .order_by(RecurringTraining.id)
            )
            .scalars()
            .all()
        )

    def templates_with_stats(self) -> list[tuple[RecurringTraining, int, str | None]]:
        """All templates with their ledger row count and creator name.

        Returns:
            (template, instances_created, created_by_name) tuples ordered by
            day of week, then start time
        """
        instance_count = func.count(RecurringTrainingInstance.id)
        rows = self.session.execute(
            select(RecurringTraining, instance_count, User.name)
            .outerjoin(RecurringTrainingInstance, RecurringTrainingInstance.recurring_training_id == RecurringTraining.id)
            .outerjoin(User, User.id == RecurringTraining.created_by)
            .group_by(RecurringTraining.id, User.name)
            .order_by(RecurringTraining.day_of_week, RecurringTraining.time, RecurringTraining.id)
        ).all()
        return [(template, count or 0, creator_name) for template, count, creator_name in rows]

    # Instance ledger

    def instance_exists(self, recurring_id: str, scheduled_date: str) -> bool:
        row = self.session.execute(
            select(RecurringTrainingInstance.id).where(
                RecurringTrainingInstance.recurring_training_id == recurring_id,
                RecurringTrainingInstance.scheduled_date == scheduled_date,
            )
        ).first()
        return row is not None

    def record_instance(self, recurring_id: str, training_id: str, scheduled_date: str) -> RecurringTrainingInstance:
        """Insert a ledger row.

        Flushes immediately so a duplicate (template, date) pair fails here,
        inside the caller's ledger_savepoint.
        """
        instance = RecurringTrainingInstance(
            recurring_training_id=recurring_id,
            training_id=training_id,
            scheduled_date=scheduled_date,
        )
        self.session.add(instance)
        self.session.flush()
        return instance

    def delete_instances(self, recurring_id: str) -> int:
        """Delete every ledger row of a template. The concrete sessions stay."""
        result = self.session.execute(
            delete(RecurringTrainingInstance).where(RecurringTrainingInstance.recurring_training_id == recurring_id)
        )
        return result.rowcount or 0

    def instances_for_template(
        self, recurring_id: str
    ) -> list[tuple[RecurringTrainingInstance, TrainingRecord | None]]:
        """Ledger rows of a template with their concrete session, newest date first.

        The session is None when it was deleted from the calendar after being
        materialized.
        """
        rows = self.session.execute(
            select(RecurringTrainingInstance, TrainingRecord)
            .outerjoin(TrainingRecord, TrainingRecord.id == RecurringTrainingInstance.training_id)
            .where(RecurringTrainingInstance.recurring_training_id == recurring_id)
            .order_by(RecurringTrainingInstance.scheduled_date.desc())
        ).all()
        return [(instance, training) for instance, training in rows]

    def savepoint(self) -> SessionTransaction:
        """Open a savepoint; a failed statement inside rolls back to it, not the whole run."""
        return self.session.begin_nested()

    @contextmanager
    def ledger_savepoint(self, recurring_id: str, scheduled_date: str) -> Generator[None, None, None]:
        """Run the session-create + ledger-insert pair atomically.

        Everything written inside the block is rolled back when the ledger
        insert violates the (template, date) uniqueness. Any other integrity
        error is re-raised unchanged.

        Raises:
            LedgerConflictError: If the pair was materialized concurrently
        """
        try:
            with self.session.begin_nested():
                yield
        except IntegrityError as e:
            if not _is_ledger_duplicate(e):
                raise
            logger.warning(
                f"[RECURRING] Ledger insert rejected for recurring_id={recurring_id} date={scheduled_date}: {e.orig}"
            )
            raise LedgerConflictError(recurring_id, scheduled_date) from e

    # Calendar collaborators

    def mission_conflicts_on_date(self, scheduled_date: str) -> list[str]:
        """IDs of scheduled or in-progress missions on the given date."""
        return list(
            self.session.execute(
                select(Mission.id).where(
                    Mission.date == scheduled_date,
                    Mission.status.in_([status.value for status in ACTIVE_EVENT_STATUSES]),
                )
            )
            .scalars()
            .all()
        )

    def create_training_record(
        self,
        *,
        name: str,
        description: str | None,
        date: str,
        time: str,
        location: str | None,
        instructor: str | None,
        max_personnel: int | None,
        status: EventStatus,
        created_by: str,
    ) -> TrainingRecord:
        """Insert a concrete training session and return it with its id assigned."""
        training = TrainingRecord(
            name=name,
            description=description,
            date=date,
            time=time,
            location=location,
            instructor=instructor,
            max_personnel=max_personnel,
            status=status.value,
            created_by=created_by,
        )
        self.session.add(training)
        self.session.flush()
        return training
