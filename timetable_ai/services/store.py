"""
store.py

Persistence for extraction results.

The AI service NEVER talks to a database directly. Results are either:
- kept in memory (default, for local runs and tests), or
- sent to the Backend API through BackendTimetableStore

Both stores accept an ExtractionResult, return it with a generated id,
and support lookup by that id.
"""

import logging
import threading
import time
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from timetable_ai.config import TIMETABLE_BACKEND_TOKEN, TIMETABLE_BACKEND_URL
from timetable_ai.exceptions import PersistenceError, TimetableNotFoundError
from timetable_ai.schemas.timetable import ExtractionResult, TimetableRecord

logger = logging.getLogger(__name__)


class TimetableStore(ABC):
    """Abstract base class for timetable stores."""

    @abstractmethod
    def save(self, result: ExtractionResult) -> TimetableRecord:
        """Persist a result and return it with its new identifier."""

    @abstractmethod
    def get(self, timetable_id: str) -> TimetableRecord:
        """
        Look up a stored result.

        Raises:
            TimetableNotFoundError if nothing is stored under timetable_id
        """


class InMemoryTimetableStore(TimetableStore):
    """Process-local store. Thread safe, lost on restart."""

    def __init__(self):
        self._records: Dict[str, TimetableRecord] = {}
        self._lock = threading.Lock()

    def save(self, result: ExtractionResult) -> TimetableRecord:
        record = TimetableRecord(id=uuid.uuid4().hex, **result.model_dump())

        with self._lock:
            self._records[record.id] = record

        logger.info(f"Timetable stored in memory with ID: {record.id}")
        return record

    def get(self, timetable_id: str) -> TimetableRecord:
        with self._lock:
            record = self._records.get(timetable_id)

        if record is None:
            raise TimetableNotFoundError(timetable_id)
        return record


class BackendTimetableStore(TimetableStore):
    """
    BackendTimetableStore is a thin and safe wrapper over the backend REST API.

    This class:
    - Attaches Authorization headers
    - Sends results as JSON
    - Retries requests on network/server failure
    """

    def __init__(
        self,
        base_url: str,
        access_token: str = "",
        timeout: int = 10,
        max_retries: int = 3,
        retry_delay: float = 1.5
    ):
        """
        Initialize backend store.

        Parameters:
        - base_url: Backend API base URL (e.g. https://backend.example.com/api)
        - access_token: JWT access token for Authorization (optional)
        - timeout: Request timeout in seconds
        - max_retries: Number of attempts on network or 5xx failures
        - retry_delay: Delay (seconds) between retries
        """

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay

        self.headers = {"Content-Type": "application/json"}
        if access_token:
            self.headers["Authorization"] = f"Bearer {access_token}"

    # ------------------------------------------------------------------
    # Internal request handler with retry logic
    # ------------------------------------------------------------------
    def _request(
        self,
        method: str,
        endpoint: str,
        *,
        payload: Optional[Dict[str, Any]] = None
    ) -> requests.Response:
        """
        Send a request, retrying on connection errors and 5xx responses.

        4xx responses are returned to the caller without retrying.

        Raises:
        - PersistenceError when every attempt failed
        """

        url = f"{self.base_url}{endpoint}"
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                response = requests.request(
                    method=method,
                    url=url,
                    headers=self.headers,
                    json=payload,
                    timeout=self.timeout
                )

                if response.status_code < 500:
                    return response

                last_error = PersistenceError(
                    f"Backend server error ({response.status_code})"
                )

            except requests.RequestException as error:
                last_error = error

            logger.warning(f"Backend {method} {endpoint} failed (attempt {attempt}): {last_error}")

            # Retry if attempts remain
            if attempt < self.max_retries:
                time.sleep(self.retry_delay)

        # All retries exhausted
        raise PersistenceError(
            f"Backend request failed after {self.max_retries} attempts: {last_error}"
        )

    # ------------------------------------------------------------------
    # Public API methods
    # ------------------------------------------------------------------

    def save(self, result: ExtractionResult) -> TimetableRecord:
        """
        Create a timetable in the backend.

        The backend is expected to echo the stored document including
        its generated `id` (or `_id`).
        """

        response = self._request(
            "POST",
            "/timetables/",
            payload=result.model_dump(mode="json", by_alias=True)
        )

        if not 200 <= response.status_code < 300:
            raise PersistenceError(
                f"Backend rejected timetable ({response.status_code}): {response.text}"
            )

        body = self._json_object(response)
        timetable_id = body.get("id") or body.get("_id")
        if not timetable_id:
            logger.error(
                f"Backend accepted a timetable but returned no id; "
                f"{len(result.events)} events were not stored"
            )
            raise PersistenceError("Backend response has no timetable id")

        logger.info(f"Timetable saved to backend with ID: {timetable_id}")
        return TimetableRecord(id=str(timetable_id), **result.model_dump())

    def get(self, timetable_id: str) -> TimetableRecord:
        """Fetch a stored timetable by id."""

        response = self._request("GET", f"/timetables/{timetable_id}/")

        if response.status_code == 404:
            raise TimetableNotFoundError(timetable_id)

        if not 200 <= response.status_code < 300:
            raise PersistenceError(
                f"Backend rejected lookup ({response.status_code}): {response.text}"
            )

        body = self._json_object(response)
        body.setdefault("id", body.pop("_id", timetable_id))

        try:
            return TimetableRecord.model_validate(body)
        except ValidationError as error:
            logger.error(f"Backend document {timetable_id} is not a valid timetable: {error}")
            raise PersistenceError(
                f"Backend returned an invalid timetable document: {error.error_count()} errors"
            ) from error

    @staticmethod
    def _json_object(response: requests.Response) -> Dict[str, Any]:
        """
        Decode a 2xx response body that must be a JSON object.

        Raises:
        - PersistenceError when the body is not JSON or not an object
        """

        try:
            body = response.json()
        except ValueError as error:
            # requests.JSONDecodeError is a ValueError
            logger.error(f"Backend returned a non-JSON body ({response.status_code}): {error}")
            raise PersistenceError("Backend returned a response that is not JSON") from error

        if not isinstance(body, dict):
            logger.error(f"Backend returned {type(body).__name__} instead of a JSON object")
            raise PersistenceError(
                f"Backend returned {type(body).__name__} instead of a JSON object"
            )

        return body


def build_store() -> TimetableStore:
    """Backend store when TIMETABLE_BACKEND_URL is set, in-memory otherwise."""

    if TIMETABLE_BACKEND_URL:
        logger.info(f"Using backend timetable store at {TIMETABLE_BACKEND_URL}")
        return BackendTimetableStore(
            base_url=TIMETABLE_BACKEND_URL,
            access_token=TIMETABLE_BACKEND_TOKEN
        )

    logger.info("Using in-memory timetable store")
    return InMemoryTimetableStore()
