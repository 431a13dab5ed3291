"""
exceptions.py

Custom exceptions for the Timetable AI service.

Pipeline errors (subclasses of TimetableExtractionError) are raised by the
individual extraction stages and are always caught by the orchestrator,
which turns them into warnings. The remaining errors belong to the
service and HTTP layers.
"""


class TimetableAIError(Exception):
    """Base exception for all Timetable AI errors."""


class ConfigurationError(TimetableAIError):
    """Raised when a required setting (API key, provider name) is missing or invalid."""


class TimetableExtractionError(TimetableAIError):
    """Base for every recoverable failure inside one extraction run."""


class ContentExtractionError(TimetableExtractionError):
    """The uploaded file could not be read, decoded or converted."""


class ProviderInvocationError(TimetableExtractionError):
    """The inference provider call failed, timed out or returned nothing."""


class NoJsonFoundError(TimetableExtractionError):
    """The provider reply does not contain anything that looks like a JSON object."""


class MalformedJsonError(TimetableExtractionError):
    """The isolated JSON payload could not be parsed."""

    def __init__(self, parser_message: str):
        super().__init__(f"Malformed JSON in provider reply: {parser_message}")
        self.parser_message = parser_message


class SchemaValidationError(TimetableExtractionError):
    """The parsed JSON does not match the extraction schema."""


class PersistenceError(TimetableAIError):
    """The persistence store rejected or failed to save a result."""


class TimetableNotFoundError(TimetableAIError):
    """No stored timetable exists for the requested identifier."""

    def __init__(self, timetable_id: str):
        super().__init__(f"Timetable not found: {timetable_id}")
        self.timetable_id = timetable_id
