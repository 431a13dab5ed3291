"""
prompt_builder.py

Builds the instruction sent to the inference provider.

The JSON layout described in the prompt is the contract the Response
Normalizer and Schema Validator expect. Change them together.
"""

import base64
import logging
from typing import Optional

from timetable_ai.schemas.provider import ProviderImage, ProviderRequest
from timetable_ai.schemas.upload import ExtractedContent, ExtractionMode

logger = logging.getLogger(__name__)


RESPONSE_LAYOUT = """{
    "metadata": {
        "schoolName": "school name or null",
        "className": "class or group name or null",
        "term": "term or semester or null",
        "teacherName": "class teacher name or null",
        "academicYear": "academic year like 2025/2026 or null"
    },
    "events": [
        {
            "title": "subject or activity name (REQUIRED, never empty)",
            "subject": "subject name if different from the title, else omit",
            "day": "Monday|Tuesday|Wednesday|Thursday|Friday|Saturday|Sunday",
            "startTime": "HH:MM in 24-hour format",
            "endTime": "HH:MM in 24-hour format",
            "location": "room or place, omit if not shown",
            "description": "short description, omit if not shown",
            "metadata": "text shown in brackets next to the event, omit if none",
            "additionalInfo": "any other detail shown for this event, omit if none"
        }
    ]
}"""

RULES = """RULES:
1. Header metadata: look for school, class, term, teacher and academic year. Use null when not present.
2. List EVERY scheduled event. A lesson repeated on several days is one event per day.
3. Times MUST be 24-hour HH:MM (convert 1:30 PM to 13:30).
4. day MUST be the full English day name.
5. Put bracketed text, e.g. "(Lab)" or "[Group A]", into metadata.
6. Return ONLY the JSON object. No explanation, no markdown, no code fences."""


class PromptBuilder:
    """Builds ProviderRequest objects for both extraction modes."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def build(self, mode: ExtractionMode, content: ExtractedContent) -> ProviderRequest:
        """
        Build the provider request.

        Image mode bundles the PNG with the instruction.
        Text mode embeds the extracted document text in the instruction.
        """

        if mode == ExtractionMode.VISION_IMAGE:
            prompt = (
                "You are an expert at reading school and class timetables. "
                "Extract all timetable information from this image.\n\n"
                f"Return ONLY valid JSON with this layout:\n{RESPONSE_LAYOUT}\n\n{RULES}"
            )
            image = ProviderImage(
                media_type=content.media_type,
                base64_data=base64.b64encode(content.value).decode("utf-8"),
            )
            request = ProviderRequest(prompt_text=prompt, image=image)
        else:
            prompt = (
                "You are an expert at reading school and class timetables. "
                "Extract all timetable information from the document text below.\n\n"
                f"Document Text:\n{content.value}\n\n"
                f"Return ONLY valid JSON with this layout:\n{RESPONSE_LAYOUT}\n\n{RULES}"
            )
            request = ProviderRequest(prompt_text=prompt)

        self.logger.debug(
            f"Built {mode.value} prompt ({len(prompt)} characters)",
            extra={"stage": "prompt", "mode": mode.value, "has_image": request.image is not None},
        )
        return request
