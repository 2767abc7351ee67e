from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

LEDGER_UNIQUE_CONSTRAINT = "uq_recurring_instance_template_date"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""


class User(Base):
    """Portal user, as mirrored from the identity provider.

    Only read by this service: the display name of template authors and the
    role list used for the admin check.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True, index=True)
    name: Mapped[str | None] = mapped_column(String, nullable=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)
    roles: Mapped[list | None] = mapped_column(JSON, nullable=True)  # e.g. ["member", "admin"]
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)


class Campaign(Base):
    """Date-range calendar entity.

    Status is derived from start_date/end_date on every read unless it was
    manually cancelled.
    """

    __tablename__ = "campaigns"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: f"camp-{uuid.uuid4().hex}")
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD
    end_date: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD
    status: Mapped[str] = mapped_column(String, nullable=False, default="planning")  # planning, active, completed, cancelled
    created_by: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)


class Mission(Base):
    """Point-in-time operation belonging to a campaign.

    Missions in scheduled/in-progress status block recurring trainings on the
    same date.
    """

    __tablename__ = "missions"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: f"mission-{uuid.uuid4().hex}")
    campaign_id: Mapped[str] = mapped_column(String, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD
    time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM
    location: Mapped[str | None] = mapped_column(String, nullable=True)
    max_personnel: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="scheduled")  # scheduled, in-progress, completed, cancelled
    created_by: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("idx_missions_date_status", "date", "status"),  # Conflict lookup by date
    )


class TrainingRecord(Base):
    """Concrete training session.

    Created either by hand or by materializing a recurring training. Once
    created it belongs to the calendar: edits, RSVPs and deletion do not go
    through the template that produced it.
    """

    __tablename__ = "training_records"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: f"training-{uuid.uuid4().hex}")
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)  # YYYY-MM-DD
    time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM
    location: Mapped[str | None] = mapped_column(String, nullable=True)
    instructor: Mapped[str | None] = mapped_column(String, nullable=True)
    max_personnel: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="scheduled")  # scheduled, in-progress, completed, cancelled
    created_by: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)


class RecurringTraining(Base):
    """Weekly recurring training template.

    day_of_week follows the Sunday-first convention: 0=Sunday .. 6=Saturday.
    """

    __tablename__ = "recurring_trainings"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: f"recurring-training-{uuid.uuid4().hex}")
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM
    location: Mapped[str] = mapped_column(String, nullable=False)
    instructor: Mapped[str | None] = mapped_column(String, nullable=True)
    max_personnel: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)


class RecurringTrainingInstance(Base):
    """Ledger of materialized recurring trainings.

    One row per concrete session created from a template. The unique
    (recurring_training_id, scheduled_date) pair is the idempotency key: a
    second run for the same date fails the insert instead of duplicating the
    session. training_id references the session without owning it.
    """

    __tablename__ = "recurring_training_instances"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: f"instance-{uuid.uuid4().hex}")
    recurring_training_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("recurring_trainings.id"),
        nullable=False,
        index=True,
    )
    training_id: Mapped[str | None] = mapped_column(
        String,
        ForeignKey("training_records.id", ondelete="SET NULL"),
        nullable=True,
    )
    scheduled_date: Mapped[str] = mapped_column(String(10), nullable=False)  # YYYY-MM-DD
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)

    __table_args__ = (
        UniqueConstraint("recurring_training_id", "scheduled_date", name=LEDGER_UNIQUE_CONSTRAINT),
    )
