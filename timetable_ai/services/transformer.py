"""
transformer.py

Field Transformer that maps validated events into the persisted format.

This service bridges the gap between:
- Validated model output (title, description, optional fields)
- Stored timetable events (name, notes, durationMinutes, confidence)

Only ValidatedResult objects are accepted here, never raw dicts.
"""

import logging
from typing import List, Optional, Tuple

from timetable_ai.schemas.timetable import TimetableEvent, ValidatedEvent, ValidatedResult

logger = logging.getLogger(__name__)

# The system does not score extractions yet; every event gets this value
DEFAULT_CONFIDENCE = 0.85

DEFAULT_DAY = "Monday"


def parse_clock(value: str) -> Tuple[int, int]:
    """
    Split "HH:MM" or "HH:MM:SS" into (hours, minutes).

    Seconds are ignored.

    Examples:
    "13:30" becomes (13, 30)
    "08:05:59" becomes (8, 5)
    """

    hours, minutes = value.split(":")[:2]
    return int(hours), int(minutes)


def duration_minutes(start_time: str, end_time: str) -> int:
    """
    Whole minutes between two clock times.

    Not clamped: an end before the start gives a negative number.

    Examples:
    ("13:30", "14:30") becomes 60
    ("23:00", "01:00") becomes -1320
    """

    start_hour, start_min = parse_clock(start_time)
    end_hour, end_min = parse_clock(end_time)
    return (end_hour * 60 + end_min) - (start_hour * 60 + start_min)


class FieldTransformer:
    """
    FieldTransformer converts validated events into TimetableEvent objects.

    Main responsibilities:
    - Compute durationMinutes from start/end times
    - Default day to Monday when the model gave none
    - Fill optional text fields with empty strings
    - Attach a confidence score
    """

    def __init__(
        self,
        confidence: float = DEFAULT_CONFIDENCE,
        logger: Optional[logging.Logger] = None
    ):
        """
        Parameters:
        - confidence: score assigned to every event, must be within [0, 1]
        - logger: optional injected logger
        """

        if not 0.0 <= confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {confidence}")

        self.confidence = confidence
        self.logger = logger or logging.getLogger(__name__)

    def transform_event(self, event: ValidatedEvent) -> TimetableEvent:
        """Convert one validated event."""

        return TimetableEvent(
            name=event.title,
            day=event.day or DEFAULT_DAY,
            start_time=event.start_time,
            end_time=event.end_time,
            duration_minutes=duration_minutes(event.start_time, event.end_time),
            location=event.location or "",
            notes=event.description or "",
            metadata=event.metadata or "",
            subject=event.subject or "",
            additional_info=event.additional_info or "",
            confidence=self.confidence,
        )

    def transform(self, validated: ValidatedResult) -> List[TimetableEvent]:
        """
        Convert every event of a validated result, keeping their order.

        Called by:
        - ExtractionOrchestrator.run()
        """

        events = [self.transform_event(event) for event in validated.events]

        self.logger.info(
            f"Transformed {len(events)} events",
            extra={"stage": "transform", "event_count": len(events)},
        )
        return events
