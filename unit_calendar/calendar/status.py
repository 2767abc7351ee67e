"""Schedule-based status derivation.

Pure functions that infer the lifecycle status of a calendar entity from the
current time and its stored schedule. A manually cancelled entity keeps its
cancelled status: date-based inference never overwrites it.

No database access and no side effects. Callers persist the result when it
differs from the stored value (see status_service).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum

from unit_calendar.calendar.clock import combine, format_date
from unit_calendar.config.settings import settings


class CampaignStatus(StrEnum):
    """Status of a date-range entity."""

    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EventStatus(StrEnum):
    """Status of a point-in-time entity (mission, training)."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Missions in these states occupy their date for recurring trainings
ACTIVE_EVENT_STATUSES = (EventStatus.SCHEDULED, EventStatus.IN_PROGRESS)


@dataclass(frozen=True)
class ScheduleWindow:
    """Campaign-like schedule: inclusive YYYY-MM-DD range plus stored status."""

    start_date: str
    end_date: str
    status: CampaignStatus

    @classmethod
    def from_row(cls, row) -> ScheduleWindow:
        return cls(start_date=row.start_date, end_date=row.end_date, status=CampaignStatus(row.status))


@dataclass(frozen=True)
class SchedulePoint:
    """Mission/training-like schedule: YYYY-MM-DD date, HH:MM start, stored status."""

    date: str
    time: str
    status: EventStatus

    @classmethod
    def from_row(cls, row) -> SchedulePoint:
        return cls(date=row.date, time=row.time, status=EventStatus(row.status))


def derive_range_status(window: ScheduleWindow, now: datetime) -> CampaignStatus:
    """Derive a campaign status from its date range.

    Compares calendar date strings only, so the time of day and the
    timezone offset of now do not matter beyond which day it is.

    Args:
        window: Schedule window with the previously stored status
        now: Current wall-clock time in the calendar timezone

    Returns:
        cancelled if stored as cancelled, else planning / active / completed
    """
    if window.status == CampaignStatus.CANCELLED:
        return CampaignStatus.CANCELLED

    today = format_date(now)
    if today < window.start_date:
        return CampaignStatus.PLANNING
    if today > window.end_date:
        return CampaignStatus.COMPLETED
    return CampaignStatus.ACTIVE


def event_window(point: SchedulePoint, duration_hours: int | None = None) -> tuple[datetime, datetime]:
    """Start and end of a point-in-time event as naive wall-clock datetimes.

    The end rolls over into the next day when the event starts late in the
    evening (23:30 + 3h ends at 02:30 the following day).
    """
    hours = duration_hours if duration_hours is not None else settings.event_duration_hours
    start = combine(point.date, point.time)
    return start, start + timedelta(hours=hours)


def derive_point_status(
    point: SchedulePoint,
    now: datetime,
    duration_hours: int | None = None,
) -> EventStatus:
    """Derive a mission/training status from its date and start time.

    The event is assumed to last duration_hours (default from settings, 3).
    Both the start and the end minute count as in-progress: at exactly
    10:00 and at exactly 13:00 a 10:00 event is running, at 13:01 it is
    completed.

    Args:
        point: Schedule point with the previously stored status
        now: Current wall-clock time in the calendar timezone
        duration_hours: Assumed event duration override

    Returns:
        cancelled if stored as cancelled, else scheduled / in-progress / completed
    """
    if point.status == EventStatus.CANCELLED:
        return EventStatus.CANCELLED

    # Schedules have minute resolution
    current = now.replace(tzinfo=None, second=0, microsecond=0)
    start, end = event_window(point, duration_hours)

    if current < start:
        return EventStatus.SCHEDULED
    if current > end:
        return EventStatus.COMPLETED
    return EventStatus.IN_PROGRESS
