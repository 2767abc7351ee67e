"""Background processing of recurring trainings.

The same run an operator triggers with "Process Now", on an interval. Safe
to overlap with manual runs: the instance ledger rejects duplicates.
"""

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from unit_calendar.config.settings import settings
from unit_calendar.db.session import get_session
from unit_calendar.recurring.service import process_recurring_trainings, summarize_results

JOB_ID = "recurring_training_processing"


def recurring_training_tick() -> None:
    """Run one processing pass in its own session and log the summary."""
    with logger.contextualize(job=JOB_ID):
        logger.info("[SCHEDULER] Processing recurring trainings")
        with get_session() as session:
            results = process_recurring_trainings(session)
        summary = summarize_results(results)
        logger.info(
            f"[SCHEDULER] Recurring trainings processed: created={summary.created}, "
            f"skipped={summary.skipped}, errors={summary.errors}"
        )


def build_scheduler() -> BackgroundScheduler:
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        recurring_training_tick,
        trigger=IntervalTrigger(hours=settings.recurring_scheduler_interval_hours),
        id=JOB_ID,
        name="Recurring Training Processing",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    return scheduler
