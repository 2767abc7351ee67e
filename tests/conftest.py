"""Root conftest for all tests.

Provides an isolated in-memory SQLite database per test and small factories
for the rows the scheduling engine reads.
"""

from datetime import datetime

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from unit_calendar.db.models import Base, Campaign, Mission, RecurringTraining

# Wednesday; next week starts Sunday 2025-03-09
FROZEN_NOW = datetime(2025, 3, 5, 12, 0)


# Enable foreign key constraints for SQLite
@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints in SQLite connections."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
def frozen_now() -> datetime:
    return FROZEN_NOW


@pytest.fixture(scope="function")
def db_session(monkeypatch):
    """Provides a session on a fresh in-memory SQLite database.

    The engine uses a single shared connection so the API tests (which run
    sync handlers in a worker thread) see the same data. get_session() and the
    session factory are patched to use it as well.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    import unit_calendar.db.session as session_module

    monkeypatch.setattr(session_module, "_engine", engine)
    monkeypatch.setattr(session_module, "_SessionLocal", session_local)

    session = session_local()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def make_template(db_session):
    """Factory for active recurring training templates."""

    def _make(template_id: str, day_of_week: int = 2, time: str = "19:00", **overrides) -> RecurringTraining:
        fields = {
            "id": template_id,
            "name": f"Training {template_id}",
            "description": "Weekly drill",
            "day_of_week": day_of_week,
            "time": time,
            "location": "Range A",
            "instructor": None,
            "max_personnel": 20,
            "is_active": True,
            "created_by": "admin-1",
        }
        fields.update(overrides)
        template = RecurringTraining(**fields)
        db_session.add(template)
        db_session.commit()
        return template

    return _make


@pytest.fixture
def make_mission(db_session):
    """Factory for missions; creates the owning campaign on first use."""

    def _make(date: str, status: str = "scheduled", time: str = "20:00") -> Mission:
        campaign = db_session.get(Campaign, "camp-test")
        if campaign is None:
            campaign = Campaign(
                id="camp-test",
                name="Operation Test",
                description="",
                start_date="2025-01-01",
                end_date="2025-12-31",
                status="active",
                created_by="admin-1",
            )
            db_session.add(campaign)
        mission = Mission(
            campaign_id="camp-test",
            name=f"Mission on {date}",
            description="",
            date=date,
            time=time,
            location="AO North",
            status=status,
            created_by="admin-1",
        )
        db_session.add(mission)
        db_session.commit()
        return mission

    return _make
