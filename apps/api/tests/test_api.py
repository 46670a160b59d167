"""
API tests for error mapping and request guards.

Services are patched; no database or Redis is needed.
"""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from admissions.core.auth import get_current_user
from admissions.core.config import settings
from admissions.core.database import get_db
from admissions.main import app
from admissions.modules.applications.exceptions import (
    IncompleteApplicationError,
    InvalidTransitionError,
)
from admissions.modules.applications.models import ApplicationStatus as S


@pytest.fixture
def client(mock_db, student):
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_user] = lambda: student
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_missing_token_rejected():
    response = TestClient(app).post(f"/api/v1/applications/{uuid4()}/submit")
    assert response.status_code in (401, 403)


def test_incomplete_freeze_lists_missing_documents(client):
    error = IncompleteApplicationError(["Income Certificate"])
    with patch(
        "admissions.modules.applications.service.freeze_application",
        AsyncMock(side_effect=error),
    ):
        response = client.post(
            f"/api/v1/applications/{uuid4()}/freeze", json={"declaration_accepted": True}
        )

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["error"] == "INCOMPLETE_APPLICATION"
    assert detail["missing_documents"] == ["Income Certificate"]


def test_invalid_transition_names_statuses(client):
    error = InvalidTransitionError(S.FROZEN, S.SUBMITTED)
    with patch(
        "admissions.modules.applications.service.submit_application",
        AsyncMock(side_effect=error),
    ):
        response = client.post(f"/api/v1/applications/{uuid4()}/submit")

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["current_status"] == "frozen"
    assert detail["requested_status"] == "submitted"


def test_unexpected_error_is_internal(client):
    with patch(
        "admissions.modules.applications.service.submit_application",
        AsyncMock(side_effect=RuntimeError("boom")),
    ):
        response = client.post(f"/api/v1/applications/{uuid4()}/submit")

    assert response.status_code == 500
    assert response.json()["detail"]["error"] == "INTERNAL_ERROR"


def test_oversized_upload_rejected_before_parsing(client):
    upload = AsyncMock()
    with (
        patch.object(settings, "max_request_size_bytes", 64),
        patch("admissions.modules.documents.service.upload_document", upload),
    ):
        response = client.post(
            f"/api/v1/applications/{uuid4()}/documents",
            data={"certificate_type_id": str(uuid4())},
            files={"file": ("big.pdf", b"x" * 1024, "application/pdf")},
        )

    assert response.status_code == 413
    assert response.json()["detail"]["error"] == "FILE_TOO_LARGE"
    upload.assert_not_called()


def test_upload_rate_limited(client):
    with (
        patch(
            "admissions.modules.documents.router.check_rate_limit",
            AsyncMock(return_value=False),
        ),
        patch("admissions.modules.documents.service.upload_document") as upload,
    ):
        response = client.post(
            f"/api/v1/applications/{uuid4()}/documents",
            data={"certificate_type_id": str(uuid4())},
            files={"file": ("a.pdf", b"%PDF", "application/pdf")},
        )

    assert response.status_code == 429
    upload.assert_not_called()
