"""
HTTP tests for /assessments routes.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from adapters.memory import InMemoryBackend
from core.errors import AssessmentError, AuthenticationExpired, ConfigurationError, NotFound
from routers import assessments
from settings import get_settings
from test_submission import request_body


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def client(backend, settings):
    app = FastAPI()
    app.include_router(assessments.router)
    app.add_exception_handler(AssessmentError, assessments.assessment_error_handler)
    app.dependency_overrides[assessments.get_backend] = lambda: backend
    app.dependency_overrides[get_settings] = lambda: settings
    return TestClient(app)


class TestBearerToken:
    def test_parses_bearer(self):
        assert assessments.bearer_token("Bearer abc123") == "abc123"
        assert assessments.bearer_token("bearer  xyz ") == "xyz"

    def test_ignores_other_schemes(self):
        assert assessments.bearer_token(None) is None
        assert assessments.bearer_token("Basic abc") is None
        assert assessments.bearer_token("Bearer ") is None


class TestSubmitRoute:
    def test_success(self, client, backend):
        resp = client.post("/assessments/submit", json=request_body())
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["sheetName"] == "1042"
        assert body["documentUrl"] == "memory://sheets/1042#gid=1"
        assert len(body["photoUrls"]) == 2
        assert body["grandTotal"] == pytest.approx(105.0)
        assert "1042" in backend.documents

    def test_partial_upload_failure_is_still_success(self, client, backend):
        backend.fail_uploads = {"_02_"}
        resp = client.post("/assessments/submit", json=request_body(photos=3))
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert [f["name"] for f in body["failedUploads"]] == ["room2.png"]

    def test_invalid_submission(self, client):
        resp = client.post("/assessments/submit", json=request_body(items=[]))
        assert resp.status_code == 400
        assert resp.json() == {
            "success": False,
            "error": "structuredData.workItems: at least one work item is required",
            "code": "INVALID_SUBMISSION",
        }

    @pytest.mark.parametrize("quantity", ["nan", "inf"])
    def test_non_finite_quantity_is_skipped(self, client, backend, quantity):
        items = [
            {"category": "Painting", "item": "Gold", "description": "Paint", "quantity": quantity},
            {"category": "Painting", "item": "Clean Walls", "description": "Clean", "quantity": 100},
        ]
        resp = client.post("/assessments/submit", json=request_body(items=items))
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["grandTotal"] == pytest.approx(15.0)
        assert body["unpricedItems"] == []
        assert body["skippedItems"] == [{"index": 0, "reason": f"non-finite quantity {float(quantity)}"}]

    def test_missing_structured_data(self, client):
        """Schema-level failures are FastAPI validation errors."""
        resp = client.post("/assessments/submit", json={"englishScope": "x"})
        assert resp.status_code == 422

    @pytest.mark.parametrize(
        "error, status",
        [
            (NotFound("Spreadsheet missing"), 404),
            (AuthenticationExpired("Authentication expired"), 401),
        ],
    )
    def test_destination_errors(self, client, backend, error, status):
        backend.destination_error = error
        resp = client.post("/assessments/submit", json=request_body())
        assert resp.status_code == status
        assert resp.json()["success"] is False
        assert resp.json()["code"] == error.code
        assert backend.files == []

    def test_unexpected_error(self, client, backend, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("kaput")

        monkeypatch.setattr(backend, "commit", boom)
        resp = client.post("/assessments/submit", json=request_body())
        assert resp.status_code == 500
        assert resp.json()["code"] == "INTERNAL_ERROR"

    def test_backend_configuration_error(self, settings):
        """Errors while building the backend use the same error body."""
        app = FastAPI()
        app.include_router(assessments.router)
        app.add_exception_handler(AssessmentError, assessments.assessment_error_handler)

        def broken_backend():
            raise ConfigurationError("Missing SHEETS_SPREADSHEET_ID")

        app.dependency_overrides[assessments.get_backend] = broken_backend
        resp = TestClient(app).post("/assessments/submit", json=request_body())
        assert resp.status_code == 500
        assert resp.json() == {
            "success": False,
            "error": "Missing SHEETS_SPREADSHEET_ID",
            "code": "CONFIGURATION_ERROR",
        }


class TestConnectionRoute:
    def test_ok(self, client, backend):
        client.post("/assessments/submit", json=request_body())
        resp = client.get("/assessments/connection")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["sheets"] == ["1042"]
        assert body["drive"]["ok"] is True

    def test_failure(self, client, backend):
        backend.destination_error = NotFound("gone")
        resp = client.get("/assessments/connection")
        assert resp.status_code == 404
        assert resp.json()["error"] == "gone"
