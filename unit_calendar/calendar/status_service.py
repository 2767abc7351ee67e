"""Calendar reads with lazy status correction.

Stored statuses go stale as time passes. Every read through this module
re-derives the status of the returned campaigns, missions and trainings and
writes back the ones that changed before returning them. Creation derives the
initial status from the schedule.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from unit_calendar.calendar.clock import is_valid_date, is_valid_time, now_local
from unit_calendar.calendar.status import (
    CampaignStatus,
    EventStatus,
    ScheduleWindow,
    SchedulePoint,
    derive_point_status,
    derive_range_status,
)
from unit_calendar.db.models import Campaign, Mission, TrainingRecord
from unit_calendar.recurring.repository import SchedulingRepository


@dataclass
class CampaignWithMissions:
    campaign: Campaign
    missions: list[Mission] = field(default_factory=list)


def _validate_window(start_date: str, end_date: str) -> None:
    if not is_valid_date(start_date) or not is_valid_date(end_date):
        raise ValueError(f"Dates must be YYYY-MM-DD, got {start_date!r} and {end_date!r}")
    if start_date > end_date:
        raise ValueError(f"start_date {start_date} is after end_date {end_date}")


def _validate_point(date: str, time: str) -> None:
    if not is_valid_date(date):
        raise ValueError(f"date must be YYYY-MM-DD, got {date!r}")
    if not is_valid_time(time):
        raise ValueError(f"time must be HH:MM, got {time!r}")


def refresh_campaign_status(campaign: Campaign, now: datetime) -> bool:
    """Re-derive a campaign's status in place.

    Returns:
        True if the stored status changed
    """
    new_status = derive_range_status(ScheduleWindow.from_row(campaign), now)
    if new_status == campaign.status:
        return False
    logger.info(f"[STATUS] Campaign {campaign.id}: {campaign.status} -> {new_status}")
    campaign.status = new_status.value
    return True


def refresh_event_status(event: Mission | TrainingRecord, now: datetime) -> bool:
    """Re-derive a mission or training status in place.

    Returns:
        True if the stored status changed
    """
    new_status = derive_point_status(SchedulePoint.from_row(event), now)
    if new_status == event.status:
        return False
    logger.info(f"[STATUS] {type(event).__name__} {event.id}: {event.status} -> {new_status}")
    event.status = new_status.value
    return True


def _refresh_events(session: Session, events: list, now: datetime) -> list:
    changed = [event for event in events if refresh_event_status(event, now)]
    if changed:
        session.commit()
    return events


def list_campaigns(session: Session, now: datetime | None = None) -> list[CampaignWithMissions]:
    """All campaigns, newest start first, each with its missions by date and time."""
    now = now or now_local()
    campaigns = list(session.execute(select(Campaign).order_by(Campaign.start_date.desc())).scalars().all())

    result: list[CampaignWithMissions] = []
    changed = False
    for campaign in campaigns:
        changed |= refresh_campaign_status(campaign, now)
        missions = list(
            session.execute(
                select(Mission).where(Mission.campaign_id == campaign.id).order_by(Mission.date, Mission.time)
            )
            .scalars()
            .all()
        )
        for mission in missions:
            changed |= refresh_event_status(mission, now)
        result.append(CampaignWithMissions(campaign=campaign, missions=missions))

    if changed:
        session.commit()
    return result


def list_training_records(session: Session, now: datetime | None = None) -> list[TrainingRecord]:
    """All training sessions, newest first."""
    trainings = list(
        session.execute(select(TrainingRecord).order_by(TrainingRecord.date.desc(), TrainingRecord.time.desc()))
        .scalars()
        .all()
    )
    return _refresh_events(session, trainings, now or now_local())


def list_missions_in_range(session: Session, start: str, end: str, now: datetime | None = None) -> list[Mission]:
    """Missions dated within [start, end], inclusive."""
    _validate_window(start, end)
    missions = list(
        session.execute(
            select(Mission)
            .where(Mission.date >= start, Mission.date <= end)
            .order_by(Mission.date, Mission.time)
        )
        .scalars()
        .all()
    )
    return _refresh_events(session, missions, now or now_local())


def list_trainings_in_range(session: Session, start: str, end: str, now: datetime | None = None) -> list[TrainingRecord]:
    """Training sessions dated within [start, end], inclusive."""
    _validate_window(start, end)
    trainings = list(
        session.execute(
            select(TrainingRecord)
            .where(TrainingRecord.date >= start, TrainingRecord.date <= end)
            .order_by(TrainingRecord.date, TrainingRecord.time)
        )
        .scalars()
        .all()
    )
    return _refresh_events(session, trainings, now or now_local())


def get_training_record(session: Session, training_id: str, now: datetime | None = None) -> TrainingRecord | None:
    training = session.get(TrainingRecord, training_id)
    if training is None:
        return None
    _refresh_events(session, [training], now or now_local())
    return training


def create_campaign(
    session: Session,
    *,
    name: str,
    description: str,
    start_date: str,
    end_date: str,
    created_by: str,
    now: datetime | None = None,
) -> Campaign:
    _validate_window(start_date, end_date)
    status = derive_range_status(
        ScheduleWindow(start_date=start_date, end_date=end_date, status=CampaignStatus.PLANNING),
        now or now_local(),
    )
    campaign = Campaign(
        name=name,
        description=description,
        start_date=start_date,
        end_date=end_date,
        status=status.value,
        created_by=created_by,
    )
    session.add(campaign)
    session.commit()
    logger.info(f"[STATUS] Created campaign {campaign.id} ({start_date}..{end_date}) as {status}")
    return campaign


def update_campaign_end_date(session: Session, campaign_id: str, end_date: str, now: datetime | None = None) -> Campaign:
    """Move a campaign's end date and re-derive its status.

    Raises:
        LookupError: If the campaign does not exist
        ValueError: If the new end date precedes the start date
    """
    campaign = session.get(Campaign, campaign_id)
    if campaign is None:
        raise LookupError(f"Campaign not found: {campaign_id}")
    _validate_window(campaign.start_date, end_date)
    campaign.end_date = end_date
    refresh_campaign_status(campaign, now or now_local())
    session.commit()
    return campaign


def create_mission(
    session: Session,
    *,
    campaign_id: str,
    name: str,
    description: str,
    date: str,
    time: str,
    location: str | None,
    created_by: str,
    max_personnel: int | None = None,
    now: datetime | None = None,
) -> Mission:
    _validate_point(date, time)
    status = derive_point_status(SchedulePoint(date=date, time=time, status=EventStatus.SCHEDULED), now or now_local())
    mission = Mission(
        campaign_id=campaign_id,
        name=name,
        description=description,
        date=date,
        time=time,
        location=location,
        max_personnel=max_personnel,
        status=status.value,
        created_by=created_by,
    )
    session.add(mission)
    session.commit()
    logger.info(f"[STATUS] Created mission {mission.id} on {date} {time} as {status}")
    return mission


def create_training_record(
    session: Session,
    *,
    name: str,
    description: str,
    date: str,
    time: str,
    location: str | None,
    created_by: str,
    instructor: str | None = None,
    max_personnel: int | None = None,
    now: datetime | None = None,
) -> TrainingRecord:
    _validate_point(date, time)
    status = derive_point_status(SchedulePoint(date=date, time=time, status=EventStatus.SCHEDULED), now or now_local())
    training = SchedulingRepository(session).create_training_record(
        name=name,
        description=description,
        date=date,
        time=time,
        location=location,
        instructor=instructor,
        max_personnel=max_personnel,
        status=status,
        created_by=created_by,
    )
    session.commit()
    logger.info(f"[STATUS] Created training {training.id} on {date} {time} as {status}")
    return training


def cancel_campaign(session: Session, campaign_id: str) -> Campaign:
    campaign = session.get(Campaign, campaign_id)
    if campaign is None:
        raise LookupError(f"Campaign not found: {campaign_id}")
    campaign.status = CampaignStatus.CANCELLED.value
    session.commit()
    logger.info(f"[STATUS] Campaign {campaign_id} cancelled")
    return campaign


def cancel_event(session: Session, model: type[Mission] | type[TrainingRecord], event_id: str) -> Mission | TrainingRecord:
    """Cancel a mission or training. Cancelled events keep that status on every later read."""
    event = session.get(model, event_id)
    if event is None:
        raise LookupError(f"{model.__name__} not found: {event_id}")
    event.status = EventStatus.CANCELLED.value
    session.commit()
    logger.info(f"[STATUS] {model.__name__} {event_id} cancelled")
    return event
