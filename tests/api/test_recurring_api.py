"""HTTP tests for the recurring training admin endpoints."""

import pytest
from fastapi.testclient import TestClient

from unit_calendar.api.dependencies.clock import get_clock
from unit_calendar.config.settings import settings
from unit_calendar.db.models import RecurringTraining, User
from unit_calendar.db.session import get_db
from unit_calendar.main import app

ADMIN = {"X-User-Id": "admin-1"}
MEMBER = {"X-User-Id": "member-1"}
BASE = "/admin/recurring-trainings"


@pytest.fixture
def client(db_session, frozen_now, monkeypatch):
    monkeypatch.setattr(settings, "admin_user_ids", "")
    monkeypatch.setattr(settings, "dev_user_id", "")
    db_session.add_all(
        [
            User(id="admin-1", name="Captain Hale", email="hale@example.com", roles=["member", "admin"]),
            User(id="member-1", name="PFC Ortiz", email="ortiz@example.com", roles=["member"]),
        ]
    )
    db_session.commit()

    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_clock] = lambda: (lambda: frozen_now)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _payload(**overrides) -> dict:
    payload = {
        "name": "Tuesday PT",
        "description": "Unit physical training",
        "day_of_week": 2,
        "time": "06:30",
        "location": "Track",
        "instructor": "SSG Reyes",
        "max_personnel": 30,
    }
    payload.update(overrides)
    return payload


class TestAccessControl:
    def test_missing_user_is_unauthorized(self, client):
        assert client.get(BASE).status_code == 401

    def test_non_admin_is_forbidden(self, client):
        assert client.get(BASE, headers=MEMBER).status_code == 403
        assert client.post(f"{BASE}/process", headers=MEMBER).status_code == 403

    def test_forbidden_process_creates_nothing(self, client, db_session, make_template):
        make_template("rt-a")

        client.post(f"{BASE}/process", headers=MEMBER)

        assert client.get(f"{BASE}/rt-a/instances", headers=ADMIN).json() == []

    def test_admin_by_configured_id(self, client, monkeypatch):
        monkeypatch.setattr(settings, "admin_user_ids", "ops-lead, member-1")

        assert client.get(BASE, headers=MEMBER).status_code == 200

    def test_dev_user(self, client, monkeypatch):
        monkeypatch.setattr(settings, "dev_user_id", "dev")

        assert client.get(BASE, headers={"X-User-Id": "dev"}).status_code == 200


class TestCrudEndpoints:
    def test_create_and_list(self, client):
        response = client.post(BASE, json=_payload(), headers=ADMIN)

        assert response.status_code == 201
        recurring_id = response.json()["id"]

        listing = client.get(BASE, headers=ADMIN).json()
        assert len(listing) == 1
        assert listing[0]["id"] == recurring_id
        assert listing[0]["day_name"] == "Tuesday"
        assert listing[0]["created_by"] == "admin-1"
        assert listing[0]["created_by_name"] == "Captain Hale"
        assert listing[0]["instances_created"] == 0
        assert listing[0]["is_active"] is True

    @pytest.mark.parametrize(
        "overrides",
        [{"day_of_week": 7}, {"time": "6:30"}, {"name": ""}, {"max_personnel": -1}],
    )
    def test_create_rejects_invalid_fields(self, client, overrides):
        assert client.post(BASE, json=_payload(**overrides), headers=ADMIN).status_code == 422

    def test_toggle_active(self, client, db_session, make_template):
        make_template("rt-a")

        response = client.patch(f"{BASE}/rt-a", json={"is_active": False}, headers=ADMIN)

        assert response.status_code == 200
        assert response.json() == {"id": "rt-a", "is_active": False}
        db_session.expire_all()
        assert db_session.get(RecurringTraining, "rt-a").is_active is False

    @pytest.mark.parametrize("body", [{"day_of_week": None}, {"time": None, "is_active": None}, {"name": None}])
    def test_null_for_required_field_is_rejected(self, client, db_session, make_template, body):
        make_template("rt-a")

        response = client.patch(f"{BASE}/rt-a", json=body, headers=ADMIN)

        assert response.status_code == 422
        db_session.expire_all()
        template = db_session.get(RecurringTraining, "rt-a")
        assert (template.name, template.day_of_week, template.time, template.is_active) == (
            "Training rt-a",
            2,
            "19:00",
            True,
        )

    def test_null_clears_instructor(self, client, db_session, make_template):
        make_template("rt-a", instructor="SSG Reyes")

        response = client.patch(f"{BASE}/rt-a", json={"instructor": None}, headers=ADMIN)

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.get(RecurringTraining, "rt-a").instructor is None

    def test_update_missing_is_not_found(self, client):
        assert client.patch(f"{BASE}/nope", json={"is_active": True}, headers=ADMIN).status_code == 404

    def test_delete(self, client, db_session, make_template):
        make_template("rt-a")

        assert client.delete(f"{BASE}/rt-a", headers=ADMIN).status_code == 204
        db_session.expire_all()
        assert db_session.get(RecurringTraining, "rt-a") is None

    def test_delete_missing_is_not_found(self, client):
        assert client.delete(f"{BASE}/nope", headers=ADMIN).status_code == 404

    def test_instances_of_missing_template_is_not_found(self, client):
        assert client.get(f"{BASE}/nope/instances", headers=ADMIN).status_code == 404


class TestProcessEndpoint:
    def test_process_returns_results_and_summary(self, client, make_template, make_mission):
        make_template("rt-a")
        make_mission("2025-03-11")

        body = client.post(f"{BASE}/process", headers=ADMIN).json()

        assert [r["status"] for r in body["results"]] == ["created", "skipped", "created"]
        assert body["results"][0]["scheduled_date"] == "2025-03-18"
        assert body["results"][0]["rescheduled"] is True
        assert body["summary"] == {
            "created": 2,
            "skipped": 1,
            "errors": 0,
            "messages": ["Created 2 training sessions", "Skipped 1 training"],
        }

    def test_second_run_creates_nothing(self, client, make_template):
        make_template("rt-a")
        client.post(f"{BASE}/process", headers=ADMIN)

        body = client.post(f"{BASE}/process", headers=ADMIN).json()

        assert body["summary"]["created"] == 0
        assert body["summary"]["skipped"] == 3

        instances = client.get(f"{BASE}/rt-a/instances", headers=ADMIN).json()
        assert [i["scheduled_date"] for i in instances] == ["2025-03-25", "2025-03-18", "2025-03-11"]

    def test_no_templates(self, client):
        body = client.post(f"{BASE}/process", headers=ADMIN).json()

        assert body["results"] == []
        assert body["summary"]["messages"] == ["No new trainings to create"]
