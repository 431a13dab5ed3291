"""HTTP tests for the timetable and health endpoints."""

import pytest
import requests
from fastapi.testclient import TestClient

from timetable_ai.api.timetable import get_timetable_service
from timetable_ai.main import app
from timetable_ai.services import store as store_module
from timetable_ai.services.orchestrator import ExtractionOrchestrator
from timetable_ai.services.providers import StubInferenceProvider
from timetable_ai.services.store import BackendTimetableStore, InMemoryTimetableStore
from timetable_ai.services.timetable_service import TimetableService


@pytest.fixture
def client_for():
    """Factory for a TestClient whose service replies with `reply`."""

    def _make(reply: str) -> TestClient:
        service = TimetableService(
            orchestrator=ExtractionOrchestrator(provider=StubInferenceProvider(reply=reply)),
            store=InMemoryTimetableStore(),
        )
        app.dependency_overrides[get_timetable_service] = lambda: service
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


def test_health(client_for) -> None:
    response = client_for("{}").get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_upload_image(client_for, png_bytes, two_event_reply) -> None:
    client = client_for(two_event_reply)

    response = client.post(
        "/api/v1/timetable/upload",
        files={"file": ("week.png", png_bytes(), "image/png")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["id"]
    assert body["source"]["filename"] == "week.png"
    assert "processedAt" in body["source"]
    assert body["events"][0]["name"] == "Mathematics"
    assert body["events"][0]["startTime"] == "13:30"
    assert body["events"][0]["durationMinutes"] == 60
    assert body["metadata"]["schoolName"] == "Riverside Primary"
    assert body["warnings"] == ["Processed image via vision with stub."]


def test_upload_then_fetch(client_for, pdf_bytes, two_event_reply) -> None:
    client = client_for(two_event_reply)

    created = client.post(
        "/api/v1/timetable/upload",
        files={"file": ("week.pdf", pdf_bytes, "application/pdf")},
    ).json()
    fetched = client.get(f"/api/v1/timetable/{created['id']}")

    assert fetched.status_code == 200
    assert fetched.json() == created


def test_failed_extraction_still_succeeds(client_for, png_bytes) -> None:
    client = client_for("I could not find a timetable.")

    response = client.post(
        "/api/v1/timetable/upload",
        files={"file": ("week.png", png_bytes(), "image/png")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["events"] == []
    assert body["warnings"] == ["stub did not return a valid JSON extraction."]


def test_empty_upload(client_for) -> None:
    response = client_for("{}").post(
        "/api/v1/timetable/upload",
        files={"file": ("week.png", b"", "image/png")},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Uploaded file is empty"


def test_missing_file_field(client_for) -> None:
    response = client_for("{}").post("/api/v1/timetable/upload")

    assert response.status_code == 422


def test_unknown_timetable(client_for) -> None:
    response = client_for("{}").get("/api/v1/timetable/does-not-exist")

    assert response.status_code == 404
    assert response.json()["detail"] == "Timetable not found"


def test_backend_garbage_reply_gives_json_error(png_bytes, two_event_reply, monkeypatch) -> None:
    class HtmlResponse:
        status_code = 200
        text = "<html>Bad Gateway</html>"

        def json(self):
            raise requests.JSONDecodeError("Expecting value", self.text, 0)

    monkeypatch.setattr(store_module.requests, "request", lambda **kwargs: HtmlResponse())
    service = TimetableService(
        orchestrator=ExtractionOrchestrator(provider=StubInferenceProvider(reply=two_event_reply)),
        store=BackendTimetableStore(base_url="http://backend.test/api", retry_delay=0),
    )
    app.dependency_overrides[get_timetable_service] = lambda: service

    try:
        response = TestClient(app, raise_server_exceptions=False).post(
            "/api/v1/timetable/upload",
            files={"file": ("week.png", png_bytes(), "image/png")},
        )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json()["detail"].startswith("Failed to store timetable")
