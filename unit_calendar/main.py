import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from loguru import logger

from unit_calendar.api.admin.recurring_trainings import router as recurring_trainings_router
from unit_calendar.api.calendar import router as calendar_router
from unit_calendar.config.settings import settings
from unit_calendar.core.logger import setup_logger
from unit_calendar.db.session import init_db
from unit_calendar.jobs.recurring_scheduler import build_scheduler

setup_logger(level=settings.log_level, log_file=settings.log_file)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Create tables on startup and run the recurring training scheduler if enabled.

    Note: FastAPI requires async for lifespan context manager,
    even if no await operations are used.
    """
    init_db()

    scheduler = None
    if settings.recurring_scheduler_enabled:
        scheduler = build_scheduler()
        scheduler.start()
        logger.info(
            "[SCHEDULER] Started recurring training scheduler "
            f"(runs every {settings.recurring_scheduler_interval_hours} hours)"
        )
    else:
        logger.info("[SCHEDULER] Recurring training scheduler disabled")

    await asyncio.sleep(0)
    yield

    if scheduler is not None:
        scheduler.shutdown()
        logger.info("[SCHEDULER] Stopped recurring training scheduler")


app = FastAPI(title="Unit Calendar", lifespan=lifespan)

app.include_router(recurring_trainings_router)
app.include_router(calendar_router)

logger.info("FastAPI application initialized")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests."""
    logger.debug(f"Request: {request.method} {request.url.path}")
    response = await call_next(request)
    logger.debug(f"Response: {response.status_code} for {request.method} {request.url.path}")
    return response
