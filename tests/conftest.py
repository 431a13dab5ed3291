"""Pytest configuration and shared fixtures."""

import io
import json
import os
import tempfile
from datetime import datetime, timezone

# Must be set before timetable_ai.config is imported
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="timetable-ai-logs-"))
os.environ.setdefault("INFERENCE_PROVIDER", "stub")

import fitz
import pytest
from PIL import Image

from timetable_ai.schemas.upload import UploadedFile
from timetable_ai.services.orchestrator import ExtractionOrchestrator
from timetable_ai.services.providers import StubInferenceProvider

FIXED_NOW = datetime(2025, 11, 3, 8, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def two_event_reply() -> str:
    """A provider reply with two well-formed events and header metadata."""
    return json.dumps({
        "metadata": {
            "schoolName": "Riverside Primary",
            "className": "Year 4B",
            "term": "Autumn",
            "teacherName": "Ms. Patel",
            "academicYear": "2025/2026"
        },
        "events": [
            {
                "title": "Mathematics",
                "day": "Monday",
                "startTime": "13:30",
                "endTime": "14:30",
                "location": "Room 12",
                "description": "Fractions",
                "metadata": "Set 1",
                "subject": "Maths",
                "additionalInfo": "Bring calculator"
            },
            {
                "title": "Science",
                "day": "Tuesday",
                "startTime": "09:00:00",
                "endTime": "09:45:00"
            }
        ]
    })


@pytest.fixture
def png_bytes():
    """Factory for in-memory PNG images of a given size."""

    def _make(width: int = 100, height: int = 50, mode: str = "RGB") -> bytes:
        buffer = io.BytesIO()
        Image.new(mode, (width, height), color="white").save(buffer, format="PNG")
        return buffer.getvalue()

    return _make


@pytest.fixture
def pdf_bytes() -> bytes:
    """A one-page PDF with a text layer."""
    document = fitz.open()
    page = document.new_page()
    page.insert_text((72, 72), "Monday 09:00-09:45 Mathematics Room 101")
    data = document.tobytes()
    document.close()
    return data


@pytest.fixture
def image_upload(png_bytes) -> UploadedFile:
    content = png_bytes()
    return UploadedFile(
        original_name="timetable.png",
        mime_type="image/png",
        size_bytes=len(content),
        content=content,
    )


@pytest.fixture
def pdf_upload(pdf_bytes) -> UploadedFile:
    return UploadedFile(
        original_name="timetable.pdf",
        mime_type="application/pdf",
        size_bytes=len(pdf_bytes),
        content=pdf_bytes,
    )


@pytest.fixture
def make_orchestrator():
    """Factory for an orchestrator wired to a stub provider and a fixed clock."""

    def _make(reply: str = "", error: Exception = None, **kwargs) -> ExtractionOrchestrator:
        provider = StubInferenceProvider(reply=reply, error=error, record=True)
        return ExtractionOrchestrator(provider=provider, clock=lambda: FIXED_NOW, **kwargs)

    return _make
