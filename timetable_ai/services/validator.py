"""
validator.py

Schema Validator for candidate extraction results.

Takes the dict produced by the Response Normalizer and either returns a
ValidatedResult or raises SchemaValidationError. Nothing downstream of
this module works with unchecked dicts.

This file:
- Is pure (no I/O, no provider calls)
- Does NOT fix data, it only accepts or rejects
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError

from timetable_ai.exceptions import SchemaValidationError
from timetable_ai.schemas.timetable import ValidatedResult

logger = logging.getLogger(__name__)


def validate(raw: Any, log: Optional[logging.Logger] = None) -> ValidatedResult:
    """
    Validate a candidate result.

    Rules:
    1. raw must be a JSON object with an `events` list
    2. Every event needs a non-empty title
    3. Every startTime / endTime must be HH:MM or HH:MM:SS
    4. One invalid event rejects the whole result

    Parameters:
    - raw: candidate result (dict from the normalizer)
    - log: optional injected logger

    Returns:
    - ValidatedResult

    Raises:
    - SchemaValidationError with a readable summary of every problem
    """

    log = log or logger

    if not isinstance(raw, dict):
        raise SchemaValidationError(
            f"Expected a JSON object, got {type(raw).__name__}"
        )

    if not isinstance(raw.get("events"), list):
        raise SchemaValidationError("Field 'events' is missing or is not a list")

    try:
        result = ValidatedResult.model_validate(raw)
    except ValidationError as error:
        summary = _summarize(error)
        log.warning(
            f"Schema validation failed: {summary}",
            extra={"stage": "validate", "result": "failed", "error_count": error.error_count()},
        )
        raise SchemaValidationError(summary) from error

    log.debug(
        "Schema validation passed",
        extra={"stage": "validate", "result": "success", "event_count": len(result.events)},
    )
    return result


def _summarize(error: ValidationError) -> str:
    # events.0.startTime: String should match pattern ...
    parts = []
    for item in error.errors():
        location = ".".join(str(piece) for piece in item["loc"])
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)
