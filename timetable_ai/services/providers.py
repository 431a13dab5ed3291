"""
providers.py

Inference provider implementations.

A provider takes a ProviderRequest and returns free-form text in a
ProviderResult. Nothing here interprets the reply; that is the Response
Normalizer's job.

Available providers:
- OpenAIInferenceProvider: OpenAI chat completions (text and vision)
- StubInferenceProvider: offline provider with a fixed reply
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from openai import OpenAI, OpenAIError

from timetable_ai.config import (
    INFERENCE_PROVIDER,
    OPENAI_API_KEY,
    OPENAI_MODEL,
    PROVIDER_MAX_TOKENS,
    PROVIDER_TIMEOUT_SECONDS,
)
from timetable_ai.exceptions import ConfigurationError, ProviderInvocationError
from timetable_ai.schemas.provider import ProviderRequest, ProviderResult

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a timetable data extraction expert. "
    "Always respond in English. Return only valid JSON."
)


class InferenceProvider(ABC):
    """Abstract base class for inference providers."""

    name: str = "provider"

    @abstractmethod
    def complete(self, request: ProviderRequest) -> ProviderResult:
        """
        Send one request and return the raw reply text.

        Raises:
            ProviderInvocationError on network, timeout or provider errors
        """


class OpenAIInferenceProvider(InferenceProvider):
    """
    OpenAI chat completions provider.

    The client is created with an explicit timeout and no automatic
    retries, so a slow call fails after `timeout` seconds instead of
    holding the request open.
    """

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = OPENAI_MODEL,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
        max_tokens: int = PROVIDER_MAX_TOKENS,
        client: Optional[Any] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Parameters:
        - api_key: OpenAI API key
        - model: chat model with vision support
        - timeout: per-request deadline in seconds
        - max_tokens: reply size limit
        - client: pre-built OpenAI client (tests pass a fake here)
        - logger: optional injected logger
        """

        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.logger = logger or logging.getLogger(__name__)
        self.client = client or OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def _build_messages(self, request: ProviderRequest) -> List[Dict[str, Any]]:
        content: List[Dict[str, Any]] = [{"type": "text", "text": request.prompt_text}]

        if request.image is not None:
            content.append({
                "type": "image_url",
                "image_url": {
                    "url": f"data:{request.image.media_type};base64,{request.image.base64_data}"
                }
            })

        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": content},
        ]

    def complete(self, request: ProviderRequest) -> ProviderResult:
        self.logger.info(
            f"Calling OpenAI ({self.model})",
            extra={
                "stage": "invoke",
                "provider": self.name,
                "model": self.model,
                "image_included": request.image is not None,
            },
        )

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=self._build_messages(request),
                temperature=0.0,
                max_tokens=self.max_tokens,
                timeout=self.timeout,
            )
        except OpenAIError as error:
            self.logger.error(
                f"OpenAI request failed: {error}",
                extra={"stage": "invoke", "provider": self.name, "result": "failed"},
            )
            raise ProviderInvocationError(f"OpenAI request failed: {error}") from error

        text = ""
        if response.choices:
            text = (response.choices[0].message.content or "").strip()

        if not text:
            raise ProviderInvocationError("OpenAI returned an empty response")

        self.logger.info(
            f"OpenAI replied with {len(text)} characters",
            extra={"stage": "invoke", "provider": self.name, "result": "success"},
        )
        return ProviderResult(text=text, provider=self.name, model=self.model)


STUB_REPLY = json.dumps({
    "metadata": {
        "schoolName": "Sample School",
        "className": "Class 1A",
        "term": None,
        "teacherName": None,
        "academicYear": None
    },
    "events": [
        {
            "title": "Mathematics",
            "day": "Monday",
            "startTime": "09:00",
            "endTime": "09:45",
            "location": "Room 101"
        },
        {
            "title": "English",
            "day": "Monday",
            "startTime": "10:00",
            "endTime": "10:45",
            "description": "Reading and comprehension"
        }
    ]
})


class StubInferenceProvider(InferenceProvider):
    """
    Offline provider for local runs and tests.

    Returns `reply` for every request, or raises `error` if one is given.
    With `record=True` every request received is kept in `requests` so
    tests can inspect it. Recording is off by default, so a long-lived
    stub (INFERENCE_PROVIDER=stub) holds no state between runs.
    """

    name = "stub"

    def __init__(
        self,
        reply: str = STUB_REPLY,
        error: Optional[Exception] = None,
        record: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        self.reply = reply
        self.error = error
        self.record = record
        self.requests: List[ProviderRequest] = []
        self.logger = logger or logging.getLogger(__name__)

    def complete(self, request: ProviderRequest) -> ProviderResult:
        if self.record:
            self.requests.append(request)

        self.logger.info(
            "Using stub inference provider (offline mode)",
            extra={"stage": "invoke", "provider": self.name},
        )

        if self.error is not None:
            raise self.error

        return ProviderResult(text=self.reply, provider=self.name, model="stub")


def build_provider(name: Optional[str] = None) -> InferenceProvider:
    """
    Create the provider selected in config (INFERENCE_PROVIDER).

    Raises:
    - ConfigurationError for an unknown name or a missing OpenAI key
    """

    name = (name or INFERENCE_PROVIDER).lower()

    if name == "stub":
        logger.info("Using stub inference provider")
        return StubInferenceProvider()

    if name == "openai":
        if not OPENAI_API_KEY:
            raise ConfigurationError("OPENAI_API_KEY is not configured")
        logger.info(f"Using OpenAI inference provider ({OPENAI_MODEL})")
        return OpenAIInferenceProvider(api_key=OPENAI_API_KEY)

    raise ConfigurationError(f"Unknown inference provider: {name}")
