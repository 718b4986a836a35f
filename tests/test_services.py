"""
Tests for patch directives, error mapping and the keep-alive job
"""
from unittest.mock import Mock, patch

import httpx
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from auth import create_access_token
from config import Settings
from database import Schedule, get_db
from keepalive import ping, start_keepalive
from main import app
from schemas import BudgetUpdate, ScheduleUpdate
from services import CLEAR, KEEP, BudgetService, ScheduleService, apply_patch, build_patch, set_to


def test_absent_fields_are_kept():
    patch_ = build_patch(ScheduleUpdate(), ScheduleService.NULLABLE)
    assert set(patch_.values()) == {KEEP}


def test_null_clears_only_nullable_fields():
    body = ScheduleUpdate.model_validate({"notes": None, "status": None})
    patch_ = build_patch(body, ScheduleService.NULLABLE)
    assert patch_["notes"] == CLEAR
    assert patch_["status"] == KEEP


def test_enum_values_are_unwrapped():
    body = ScheduleUpdate.model_validate({"status": "completed", "dueDate": "2027-01-01"})
    patch_ = build_patch(body, ScheduleService.NULLABLE)
    assert patch_["status"] == set_to("completed")
    assert str(patch_["due_date"].value) == "2027-01-01"


def test_apply_patch():
    row = Schedule(title="Old", notes="x", status="pending")
    body = ScheduleUpdate.model_validate({"title": "New", "notes": None})
    apply_patch(row, build_patch(body, ScheduleService.NULLABLE))
    assert row.title == "New"
    assert row.notes is None
    assert row.status == "pending"


def test_budget_zero_amount_is_set_not_kept():
    body = BudgetUpdate.model_validate({"actualAmount": 0, "isPaid": False})
    patch_ = build_patch(body, BudgetService.NULLABLE)
    assert patch_["actual_amount"] == set_to(0)
    assert patch_["is_paid"] == set_to(False)


def test_store_failure_is_generic_500():
    session = Mock()
    session.query.side_effect = OperationalError("SELECT", {}, Exception("db down"))

    def broken_db():
        yield session

    app.dependency_overrides[get_db] = broken_db
    try:
        client = TestClient(app)
        response = client.get(
            "/schedules", headers={"Authorization": f"Bearer {create_access_token(1)}"}
        )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
    assert "db down" not in response.text


def test_ping_success(db_engine):
    with patch("keepalive.httpx.get") as mock_get:
        assert ping("https://example.test/", engine=db_engine) is True
    mock_get.assert_called_once_with("https://example.test/health", timeout=10)


def test_ping_failure_is_logged_not_raised(db_engine):
    with patch("keepalive.httpx.get", side_effect=httpx.ConnectError("refused")):
        assert ping("https://example.test", engine=db_engine) is False


def test_keepalive_disabled_without_url():
    assert start_keepalive(Settings(KEEPALIVE_URL="")) is None


def test_keepalive_schedules_ping():
    with patch("keepalive.BackgroundScheduler") as scheduler_cls:
        scheduler = start_keepalive(
            Settings(KEEPALIVE_URL="https://example.test", KEEPALIVE_INTERVAL_MINUTES=5)
        )
    assert scheduler is scheduler_cls.return_value
    scheduler.add_job.assert_called_once_with(
        ping, "interval", minutes=5, args=["https://example.test"]
    )
    scheduler.start.assert_called_once()
