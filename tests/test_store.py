"""Tests for the in-memory and backend timetable stores."""

import copy

import pytest
import requests

from timetable_ai.exceptions import PersistenceError, TimetableNotFoundError
from timetable_ai.schemas.timetable import ExtractionResult, SourceInfo, TimetableEvent
from timetable_ai.services import store as store_module
from timetable_ai.services.store import BackendTimetableStore, InMemoryTimetableStore


@pytest.fixture
def result() -> ExtractionResult:
    return ExtractionResult(
        source=SourceInfo(
            filename="week.png",
            mimetype="image/png",
            size=1024,
            processed_at="2025-11-03T08:00:00+00:00",
        ),
        events=[
            TimetableEvent(
                name="Mathematics",
                day="Monday",
                start_time="09:00",
                end_time="09:45",
                duration_minutes=45,
                confidence=0.85,
            )
        ],
        warnings=["Processed image via vision with stub."],
    )


class FakeResponse:
    def __init__(self, status_code: int, body=None, text=None):
        self.status_code = status_code
        self._body = {} if body is None else body
        self._raw = text
        self.text = text if text is not None else str(self._body)

    def json(self):
        if self._raw is not None:
            raise requests.JSONDecodeError("Expecting value", self._raw, 0)
        return copy.deepcopy(self._body)


class FakeRequests:
    """Replays a scripted list of responses (or exceptions) for requests.request."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def __call__(self, method, url, headers=None, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "headers": headers, "json": json})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_backend(**kwargs) -> BackendTimetableStore:
    kwargs.setdefault("retry_delay", 0)
    return BackendTimetableStore(base_url="http://backend.test/api/", access_token="token-1", **kwargs)


class TestInMemoryTimetableStore:

    def test_save_assigns_id(self, result) -> None:
        record = InMemoryTimetableStore().save(result)

        assert record.id
        assert record.events == result.events
        assert record.warnings == result.warnings

    def test_get_returns_saved_record(self, result) -> None:
        store = InMemoryTimetableStore()
        record = store.save(result)

        assert store.get(record.id) == record

    def test_ids_are_unique(self, result) -> None:
        store = InMemoryTimetableStore()

        assert store.save(result).id != store.save(result).id

    def test_unknown_id(self) -> None:
        with pytest.raises(TimetableNotFoundError) as excinfo:
            InMemoryTimetableStore().get("missing")

        assert excinfo.value.timetable_id == "missing"


class TestBackendTimetableStore:

    def test_save_posts_camel_case_payload(self, result, monkeypatch) -> None:
        fake = FakeRequests(FakeResponse(201, {"_id": "abc123"}))
        monkeypatch.setattr(store_module.requests, "request", fake)

        record = make_backend().save(result)

        assert record.id == "abc123"
        call = fake.calls[0]
        assert call["method"] == "POST"
        assert call["url"] == "http://backend.test/api/timetables/"
        assert call["headers"]["Authorization"] == "Bearer token-1"
        assert call["json"]["source"]["processedAt"] == "2025-11-03T08:00:00+00:00"
        assert call["json"]["events"][0]["durationMinutes"] == 45

    def test_save_without_id_in_response(self, result, monkeypatch) -> None:
        monkeypatch.setattr(store_module.requests, "request", FakeRequests(FakeResponse(201, {})))

        with pytest.raises(PersistenceError):
            make_backend().save(result)

    def test_client_error_is_not_retried(self, result, monkeypatch) -> None:
        fake = FakeRequests(FakeResponse(400, {"detail": "bad"}))
        monkeypatch.setattr(store_module.requests, "request", fake)

        with pytest.raises(PersistenceError):
            make_backend().save(result)

        assert len(fake.calls) == 1

    def test_server_error_is_retried(self, result, monkeypatch) -> None:
        fake = FakeRequests(
            FakeResponse(503),
            requests.ConnectionError("connection refused"),
            FakeResponse(201, {"id": "xyz"}),
        )
        monkeypatch.setattr(store_module.requests, "request", fake)

        record = make_backend(max_retries=3).save(result)

        assert record.id == "xyz"
        assert len(fake.calls) == 3

    def test_gives_up_after_max_retries(self, result, monkeypatch) -> None:
        fake = FakeRequests(FakeResponse(500), FakeResponse(502))
        monkeypatch.setattr(store_module.requests, "request", fake)

        with pytest.raises(PersistenceError, match="after 2 attempts"):
            make_backend(max_retries=2).save(result)

    def test_get_maps_backend_document(self, result, monkeypatch) -> None:
        body = result.model_dump(mode="json", by_alias=True)
        body["_id"] = "abc123"
        fake = FakeRequests(FakeResponse(200, body))
        monkeypatch.setattr(store_module.requests, "request", fake)

        record = make_backend().get("abc123")

        assert fake.calls[0]["url"] == "http://backend.test/api/timetables/abc123/"
        assert record.id == "abc123"
        assert record.events[0].name == "Mathematics"
        assert record.source.processed_at == "2025-11-03T08:00:00+00:00"

    def test_get_not_found(self, monkeypatch) -> None:
        monkeypatch.setattr(store_module.requests, "request", FakeRequests(FakeResponse(404)))

        with pytest.raises(TimetableNotFoundError):
            make_backend().get("nope")

    def test_save_with_non_json_body(self, result, monkeypatch) -> None:
        html = FakeResponse(200, text="<html>Bad Gateway</html>")
        monkeypatch.setattr(store_module.requests, "request", FakeRequests(html))

        with pytest.raises(PersistenceError, match="not JSON"):
            make_backend().save(result)

    def test_save_with_json_array_body(self, result, monkeypatch) -> None:
        fake = FakeRequests(FakeResponse(201, [{"id": "abc123"}]))
        monkeypatch.setattr(store_module.requests, "request", fake)

        with pytest.raises(PersistenceError, match="list instead of a JSON object"):
            make_backend().save(result)

    def test_get_with_non_json_body(self, monkeypatch) -> None:
        html = FakeResponse(200, text="<html>maintenance</html>")
        monkeypatch.setattr(store_module.requests, "request", FakeRequests(html))

        with pytest.raises(PersistenceError):
            make_backend().get("abc123")

    def test_get_with_invalid_document(self, monkeypatch) -> None:
        document = {"_id": "abc123", "events": "not a list", "warnings": []}
        monkeypatch.setattr(store_module.requests, "request", FakeRequests(FakeResponse(200, document)))

        with pytest.raises(PersistenceError, match="invalid timetable document"):
            make_backend().get("abc123")


class TestBuildStore:

    def test_defaults_to_memory(self, monkeypatch) -> None:
        monkeypatch.setattr(store_module, "TIMETABLE_BACKEND_URL", "")

        assert isinstance(store_module.build_store(), InMemoryTimetableStore)

    def test_backend_when_configured(self, monkeypatch) -> None:
        monkeypatch.setattr(store_module, "TIMETABLE_BACKEND_URL", "http://backend.test/api")

        store = store_module.build_store()

        assert isinstance(store, BackendTimetableStore)
        assert store.base_url == "http://backend.test/api"
