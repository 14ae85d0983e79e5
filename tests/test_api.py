"""
Integration tests for the FastAPI app: health check and HR error responses.
"""
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from conftest import TestSessionLocal
from scorg_hr.core.errors import (
    ConflictError,
    HRValidationError,
    InvalidStatusTransitionError,
    NotFoundError,
    register_exception_handlers,
)
from scorg_hr.core.status_rules import ApplicationStatus
from scorg_hr.core.field_validation import FieldError
from scorg_hr.core.logging_config import sanitize_log_data
from scorg_hr.db.session import get_db
from scorg_hr.main import app


def override_get_db():
    """Override get_db dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def error_client():
    """Small app whose routes raise each HR error."""
    error_app = FastAPI()
    register_exception_handlers(error_app)

    @error_app.get("/validation")
    def validation():
        raise HRValidationError([
            FieldError("cover_letter", "Cover letter must be less than 5000 characters"),
            "Reviewer ID is required for status changes",
        ])

    @error_app.get("/transition")
    def transition():
        raise InvalidStatusTransitionError("Cannot transition from pending to approved")

    @error_app.get("/conflict")
    def conflict():
        raise ConflictError("User already has an application for this organization")

    @error_app.get("/missing")
    def missing():
        raise NotFoundError("Application not found")

    return TestClient(error_app)


def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert "timestamp" in data


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200


def test_validation_error_response(error_client):
    response = error_client.get("/validation")

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "Validation failed: Cover letter must be less than 5000 characters, "
                   "Reviewer ID is required for status changes",
        "errors": [
            "Cover letter must be less than 5000 characters",
            "Reviewer ID is required for status changes",
        ],
    }


def test_transition_error_response(error_client):
    response = error_client.get("/transition")

    assert response.status_code == 400
    data = response.json()
    assert data["message"] == "Invalid status transition: Cannot transition from pending to approved"
    assert data["errors"] == ["Cannot transition from pending to approved"]


def test_conflict_error_response(error_client):
    response = error_client.get("/conflict")
    assert response.status_code == 409
    assert response.json()["success"] is False


def test_not_found_error_response(error_client):
    response = error_client.get("/missing")
    assert response.status_code == 404
    assert response.json()["message"] == "Application not found"


def test_sanitize_log_data_hides_hr_private_fields():
    sanitized = sanitize_log_data({
        "invite_code": "HR-1A2B3C4D",
        "rejection_reason": "Failed the flight test",
        "status": ApplicationStatus.REJECTED,
        "reviewer_id": 7,
    })
    assert sanitized == {
        "invite_code": "***REDACTED***",
        "rejection_reason": "<22 chars>",
        "status": "rejected",
        "reviewer_id": 7,
    }
