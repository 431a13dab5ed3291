"""
upload.py (schemas)

Internal value objects passed between pipeline stages.

These are plain dataclasses, not API schemas: they never leave the
process and are never validated against user input.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union


class ExtractionMode(str, Enum):
    """How a file is handed to the inference provider."""

    TEXT_DOCUMENT = "text_document"
    VISION_IMAGE = "vision_image"


@dataclass(frozen=True)
class UploadedFile:
    """
    A file received by the upload endpoint.

    content is either the raw bytes (kept in memory) or a path to a
    readable file on disk.
    """

    original_name: str
    mime_type: str
    size_bytes: int
    content: Union[bytes, Path]


@dataclass(frozen=True)
class ExtractedContent:
    """
    Content ready for the prompt builder.

    kind == "text": value is the extracted document text.
    kind == "image": value is normalized PNG bytes.
    """

    kind: str
    value: Union[str, bytes]
    media_type: str = "text/plain"
