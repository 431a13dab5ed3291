"""
normalizer.py

Response Normalizer: turns a raw provider reply into a candidate dict.

What happens here:
1. Strip markdown code fences
2. Parse the whole reply as JSON; if that fails, parse the span from the
   first "{" to the last "}"
3. Split combined ISO date-times (2025-11-03T13:30:00) into day + time

The output is NOT validated. It must go through validator.validate()
before anything else uses it.
"""

import json
import logging
import re
from datetime import date
from typing import Any, Dict, Optional

from timetable_ai.exceptions import MalformedJsonError, NoJsonFoundError

logger = logging.getLogger(__name__)

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]

# ``` or ```json / ```JSON, with the line break that follows
FENCE_PATTERN = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\n?")

# Leading HH:MM[:SS] of a time string, drops fractions and UTC offsets
CLOCK_PATTERN = re.compile(r"^(\d{2}:\d{2}(?::\d{2})?)")


def strip_fences(text: str) -> str:
    """Remove every markdown fence marker and trim the result."""
    return FENCE_PATTERN.sub("", text).strip()


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Parse the JSON object contained in `text`.

    The whole text is tried first. Only if that fails (or does not give
    an object) the first "{" .. last "}" span is used.

    Raises:
    - NoJsonFoundError: no "{ ... }" span in the text
    - MalformedJsonError: the span does not parse
    """

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        parsed = None

    if isinstance(parsed, dict):
        return parsed

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise NoJsonFoundError("Provider reply does not contain a JSON object")

    try:
        parsed = json.loads(text[start:end + 1])
    except json.JSONDecodeError as error:
        raise MalformedJsonError(str(error)) from error

    if not isinstance(parsed, dict):
        raise MalformedJsonError(f"expected a JSON object, got {type(parsed).__name__}")

    return parsed


def day_of_week(date_text: str) -> Optional[str]:
    """'2025-11-03' -> 'Monday'. None when the text is not an ISO date."""
    try:
        return DAY_NAMES[date.fromisoformat(date_text.strip()).weekday()]
    except ValueError:
        return None


def _clock_part(value: str) -> str:
    # "2025-11-03T13:30:00Z" -> "13:30:00"
    time_text = value.split("T", 1)[1]
    match = CLOCK_PATTERN.match(time_text)
    return match.group(1) if match else time_text


def split_datetime_fields(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Derive day/startTime/endTime from combined ISO date-times.

    Only applies when startTime contains a "T". Otherwise the event is
    returned unchanged and `day` stays whatever the model supplied.
    """

    start_time = event.get("startTime")
    if not isinstance(start_time, str) or "T" not in start_time:
        return event

    updated = dict(event)

    day = day_of_week(start_time.split("T", 1)[0])
    if day is not None:
        updated["day"] = day

    updated["startTime"] = _clock_part(start_time)

    end_time = event.get("endTime")
    if isinstance(end_time, str) and "T" in end_time:
        updated["endTime"] = _clock_part(end_time)

    return updated


def normalize(reply: str, log: Optional[logging.Logger] = None) -> Dict[str, Any]:
    """
    Normalize a raw provider reply into a candidate result.

    Parameters:
    - reply: raw text returned by the inference provider
    - log: optional injected logger

    Returns:
    - dict ready for validator.validate()

    Raises:
    - NoJsonFoundError, MalformedJsonError
    """

    log = log or logger

    cleaned = strip_fences(reply or "")
    candidate = extract_json_object(cleaned)

    events = candidate.get("events")
    if isinstance(events, list):
        candidate["events"] = [
            split_datetime_fields(event) if isinstance(event, dict) else event
            for event in events
        ]

    log.debug(
        "Provider reply normalized",
        extra={
            "stage": "normalize",
            "result": "success",
            "event_count": len(events) if isinstance(events, list) else 0,
        },
    )
    return candidate
