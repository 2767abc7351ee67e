"""Tests for the background recurring training job."""

from datetime import timedelta
from unittest.mock import patch

from loguru import logger
from sqlalchemy import func, select

from unit_calendar.config.settings import settings
from unit_calendar.db.models import TrainingRecord
from unit_calendar.jobs.recurring_scheduler import JOB_ID, build_scheduler, recurring_training_tick


def test_tick_materializes_sessions_in_own_session(db_session, make_template):
    make_template("rt-a")

    recurring_training_tick()

    db_session.expire_all()
    assert db_session.execute(select(func.count(TrainingRecord.id))).scalar_one() == settings.recurring_horizon_weeks


def test_tick_is_idempotent(db_session, make_template):
    make_template("rt-a")

    recurring_training_tick()
    recurring_training_tick()

    db_session.expire_all()
    assert db_session.execute(select(func.count(TrainingRecord.id))).scalar_one() == settings.recurring_horizon_weeks


@patch("unit_calendar.jobs.recurring_scheduler.process_recurring_trainings", return_value=[])
def test_tick_with_nothing_to_do(mock_process, db_session):
    recurring_training_tick()

    mock_process.assert_called_once()


def test_build_scheduler_registers_single_instance_job():
    scheduler = build_scheduler()

    job = scheduler.get_job(JOB_ID)

    assert job is not None
    assert job.max_instances == 1
    assert job.coalesce is True
    assert job.trigger.interval == timedelta(hours=settings.recurring_scheduler_interval_hours)


def test_tick_logs_under_job_id(db_session):
    messages = []
    sink_id = logger.add(lambda message: messages.append(message.record["extra"].get("job")), level="INFO")
    try:
        recurring_training_tick()
    finally:
        logger.remove(sink_id)

    assert messages
    assert set(messages) == {JOB_ID}
