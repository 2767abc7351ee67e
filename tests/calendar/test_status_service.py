"""Tests for lazy status correction on read."""

from datetime import datetime

import pytest

from unit_calendar.calendar import status_service
from unit_calendar.db.models import Campaign, Mission, TrainingRecord


class TestCreation:
    def test_campaign_created_in_window_is_active(self, db_session):
        campaign = status_service.create_campaign(
            db_session,
            name="Op Winter",
            description="",
            start_date="2025-03-01",
            end_date="2025-03-31",
            created_by="admin-1",
            now=datetime(2025, 3, 5, 12, 0),
        )
        assert campaign.status == "active"

    def test_campaign_with_inverted_window_is_rejected(self, db_session):
        with pytest.raises(ValueError):
            status_service.create_campaign(
                db_session,
                name="Op Backwards",
                description="",
                start_date="2025-03-31",
                end_date="2025-03-01",
                created_by="admin-1",
            )

    def test_training_created_in_the_past_is_completed(self, db_session):
        training = status_service.create_training_record(
            db_session,
            name="Backfilled drill",
            description="",
            date="2025-02-01",
            time="19:00",
            location="Range A",
            created_by="admin-1",
            now=datetime(2025, 3, 5, 12, 0),
        )
        assert training.status == "completed"

    def test_training_with_malformed_time_is_rejected(self, db_session):
        with pytest.raises(ValueError):
            status_service.create_training_record(
                db_session,
                name="Bad",
                description="",
                date="2025-02-01",
                time="7pm",
                location=None,
                created_by="admin-1",
            )


class TestRefreshOnRead:
    def test_list_campaigns_persists_corrected_statuses(self, db_session, make_mission):
        mission = make_mission("2025-03-01", time="10:00")
        campaign_id = mission.campaign_id

        entries = status_service.list_campaigns(db_session, datetime(2026, 1, 5))

        assert len(entries) == 1
        assert entries[0].campaign.status == "completed"
        assert [m.status for m in entries[0].missions] == ["completed"]

        db_session.expire_all()
        assert db_session.get(Campaign, campaign_id).status == "completed"
        assert db_session.get(Mission, mission.id).status == "completed"

    def test_cancelled_mission_not_overwritten(self, db_session, make_mission):
        mission = make_mission("2025-03-10", status="cancelled")

        missions = status_service.list_missions_in_range(db_session, "2025-03-01", "2025-03-31", datetime(2025, 3, 10, 21, 0))

        assert [m.id for m in missions] == [mission.id]
        assert missions[0].status == "cancelled"

    def test_missions_in_range_is_inclusive(self, db_session, make_mission):
        make_mission("2025-03-01")
        make_mission("2025-03-15")
        make_mission("2025-04-01")

        missions = status_service.list_missions_in_range(db_session, "2025-03-01", "2025-03-15", datetime(2025, 2, 1))

        assert [m.date for m in missions] == ["2025-03-01", "2025-03-15"]

    def test_range_with_bad_dates_is_rejected(self, db_session):
        with pytest.raises(ValueError):
            status_service.list_trainings_in_range(db_session, "2025-03-15", "2025-03-01")

    def test_training_in_progress_then_completed(self, db_session):
        training = status_service.create_training_record(
            db_session,
            name="Night nav",
            description="",
            date="2025-03-05",
            time="20:00",
            location="Range B",
            created_by="admin-1",
            now=datetime(2025, 3, 1),
        )
        assert training.status == "scheduled"

        fetched = status_service.get_training_record(db_session, training.id, datetime(2025, 3, 5, 21, 0))
        assert fetched.status == "in-progress"

        trainings = status_service.list_training_records(db_session, datetime(2025, 3, 6, 9, 0))
        assert trainings[0].status == "completed"

    def test_get_missing_training_returns_none(self, db_session):
        assert status_service.get_training_record(db_session, "training-missing") is None


class TestUpdates:
    def test_extending_end_date_reactivates_campaign(self, db_session):
        campaign = status_service.create_campaign(
            db_session,
            name="Op Spring",
            description="",
            start_date="2025-01-01",
            end_date="2025-02-01",
            created_by="admin-1",
            now=datetime(2025, 3, 5),
        )
        assert campaign.status == "completed"

        updated = status_service.update_campaign_end_date(db_session, campaign.id, "2025-04-01", datetime(2025, 3, 5))
        assert updated.status == "active"

    def test_end_date_before_start_is_rejected(self, db_session):
        campaign = status_service.create_campaign(
            db_session,
            name="Op Spring",
            description="",
            start_date="2025-01-01",
            end_date="2025-02-01",
            created_by="admin-1",
        )
        with pytest.raises(ValueError):
            status_service.update_campaign_end_date(db_session, campaign.id, "2024-12-01")

    def test_cancelled_campaign_stays_cancelled_on_read(self, db_session):
        campaign = status_service.create_campaign(
            db_session,
            name="Op Scrubbed",
            description="",
            start_date="2025-03-01",
            end_date="2025-03-31",
            created_by="admin-1",
            now=datetime(2025, 2, 1),
        )
        status_service.cancel_campaign(db_session, campaign.id)

        entries = status_service.list_campaigns(db_session, datetime(2025, 3, 15))
        assert entries[0].campaign.status == "cancelled"

    def test_cancel_training(self, db_session):
        training = status_service.create_training_record(
            db_session,
            name="Drill",
            description="",
            date="2025-03-05",
            time="20:00",
            location=None,
            created_by="admin-1",
            now=datetime(2025, 3, 1),
        )
        status_service.cancel_event(db_session, TrainingRecord, training.id)

        fetched = status_service.get_training_record(db_session, training.id, datetime(2025, 3, 5, 20, 30))
        assert fetched.status == "cancelled"

    def test_cancel_unknown_mission_raises(self, db_session):
        with pytest.raises(LookupError):
            status_service.cancel_event(db_session, Mission, "mission-missing")
