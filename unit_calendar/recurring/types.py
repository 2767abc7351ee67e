"""Request, listing and result types for recurring trainings."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from unit_calendar.calendar.clock import is_valid_time


def _validate_time(value: str | None) -> str | None:
    if value is not None and not is_valid_time(value):
        raise ValueError(f"time must be HH:MM (24 hour), got {value!r}")
    return value


class CreateRecurringTrainingData(BaseModel):
    """Fields an administrator provides when creating a template."""

    name: str = Field(min_length=1)
    description: str = ""
    day_of_week: int = Field(ge=0, le=6, description="0=Sunday .. 6=Saturday")
    time: str = Field(description="Start time, HH:MM")
    location: str = Field(min_length=1)
    instructor: str | None = None
    max_personnel: int | None = Field(default=None, ge=0)

    @field_validator("time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _validate_time(value)


class UpdateRecurringTrainingData(BaseModel):
    """Partial update; unset fields are left unchanged.

    Fields a template cannot lack may be omitted but not set to null.
    """

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    day_of_week: int | None = Field(default=None, ge=0, le=6)
    time: str | None = None
    location: str | None = Field(default=None, min_length=1)
    instructor: str | None = None
    max_personnel: int | None = Field(default=None, ge=0)
    is_active: bool | None = None

    @field_validator("name", "day_of_week", "time", "location", "is_active", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("may be omitted but not null")
        return value

    @field_validator("time")
    @classmethod
    def validate_time(cls, value: str | None) -> str | None:
        return _validate_time(value)


class RecurringTrainingWithStats(BaseModel):
    """Template listing row with materialization count and display names."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None
    day_of_week: int
    day_name: str
    time: str
    location: str
    instructor: str | None
    max_personnel: int | None
    is_active: bool
    created_by: str
    created_by_name: str
    instances_created: int
    created_at: datetime
    updated_at: datetime


class RecurringTrainingInstanceView(BaseModel):
    """Ledger row joined with the concrete session it produced."""

    id: str
    recurring_training_id: str
    training_id: str | None
    scheduled_date: str
    created_at: datetime
    name: str | None = None
    date: str | None = None
    time: str | None = None
    status: str | None = None


class CreatedResult(BaseModel):
    status: Literal["created"] = "created"
    recurring_id: str
    name: str
    training_id: str
    scheduled_date: str
    rescheduled: bool
    week_offset: int


class SkippedResult(BaseModel):
    status: Literal["skipped"] = "skipped"
    recurring_id: str
    name: str
    reason: str
    week_offset: int | None = None


class ErrorResult(BaseModel):
    status: Literal["error"] = "error"
    recurring_id: str
    name: str
    error: str


ProcessingResult = Annotated[CreatedResult | SkippedResult | ErrorResult, Field(discriminator="status")]


class ProcessingSummary(BaseModel):
    """Aggregate counts of a processing run for operator feedback."""

    created: int
    skipped: int
    errors: int
    messages: list[str]


class ProcessingResponse(BaseModel):
    results: list[ProcessingResult]
    summary: ProcessingSummary
