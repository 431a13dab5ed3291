"""
timetable.py (schemas)

Pydantic models for timetable extraction.

Two groups live here:
- Validation models (ValidatedEvent, ValidatedResult): the shape a model
  reply must have before anything downstream may touch it.
- Result models (TimetableEvent, SourceInfo, ExtractionResult,
  TimetableRecord): what gets persisted and returned to API callers.

JSON uses camelCase (startTime, durationMinutes, ...). Python code uses
snake_case attributes; aliases are generated automatically.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# HH:MM or HH:MM:SS
TIME_PATTERN = r"^\d{2}:\d{2}(:\d{2})?$"


class CamelModel(BaseModel):
    """Base model: camelCase JSON aliases, snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class TimetableMetadata(CamelModel):
    """
    Header-level context of a timetable.

    Independent of individual events. Every field is optional because
    most timetables only show some of them.
    """

    school_name: Optional[str] = Field(default=None, examples=["Riverside Primary"])
    class_name: Optional[str] = Field(default=None, examples=["Year 4B"])
    term: Optional[str] = Field(default=None, examples=["Autumn"])
    teacher_name: Optional[str] = Field(default=None, examples=["Ms. Patel"])
    academic_year: Optional[str] = Field(default=None, examples=["2025/2026"])


class ValidatedEvent(CamelModel):
    """
    One event after the Schema Validator accepted it.

    start_time and end_time are guaranteed to match HH:MM or HH:MM:SS,
    title is guaranteed non-empty.
    """

    title: str = Field(..., min_length=1, description="Event title or subject")
    day: Optional[str] = Field(default=None, description="Day of week")
    start_time: str = Field(..., pattern=TIME_PATTERN)
    end_time: str = Field(..., pattern=TIME_PATTERN)
    location: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[str] = Field(default=None, description="Bracketed information")
    subject: Optional[str] = None
    additional_info: Optional[str] = None


class SourceInfo(CamelModel):
    """Where an extraction result came from."""

    filename: str
    mimetype: str
    size: int
    processed_at: str = Field(..., description="ISO-8601 timestamp")


class ValidatedResult(CamelModel):
    """
    A whole model reply after validation.

    Validation is all-or-nothing: one bad event rejects the entire result.
    Unknown keys in the reply are ignored.
    """

    events: List[ValidatedEvent]
    metadata: Optional[TimetableMetadata] = None
    source: Optional[SourceInfo] = None
    warnings: Optional[List[str]] = None


class TimetableEvent(CamelModel):
    """Persisted event shape."""

    name: str
    day: str
    start_time: str
    end_time: str
    duration_minutes: int = Field(..., description="May be negative for reversed ranges")
    location: str = ""
    notes: str = ""
    metadata: str = ""
    subject: str = ""
    additional_info: str = ""
    confidence: float = Field(..., ge=0.0, le=1.0)


class ExtractionResult(CamelModel):
    """
    Output of one extraction run.

    events may be empty (total failure still yields a result).
    warnings lists every recoverable problem, in the order encountered.
    """

    model_config = ConfigDict(frozen=True)

    source: SourceInfo
    metadata: Optional[TimetableMetadata] = None
    events: List[TimetableEvent] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class TimetableRecord(ExtractionResult):
    """An ExtractionResult after the store assigned it an identifier."""

    id: str = Field(..., description="Identifier generated by the persistence store")
