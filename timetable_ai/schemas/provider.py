"""
provider.py (schemas)

Request and result shapes of the inference provider boundary.

A provider receives a ProviderRequest (prompt text, optionally with one
base64 image) and returns a ProviderResult holding free-form text that is
expected, but not guaranteed, to contain one JSON object.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ProviderImage:
    media_type: str
    base64_data: str


@dataclass(frozen=True)
class ProviderRequest:
    prompt_text: str
    image: Optional[ProviderImage] = None


@dataclass(frozen=True)
class ProviderResult:
    text: str
    provider: str
    model: str = ""
