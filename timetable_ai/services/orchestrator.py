"""
orchestrator.py

Extraction Orchestrator: the entry point of the timetable pipeline.

Flow of one run:
classify -> extract content -> build prompt -> invoke provider
-> normalize reply -> validate -> transform -> assemble result

Failure policy:
- Every stage failure is caught here and becomes a warning
- The result then has no events, but it is still a valid ExtractionResult
- run() never raises to its caller
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from timetable_ai.exceptions import (
    ContentExtractionError,
    MalformedJsonError,
    NoJsonFoundError,
    ProviderInvocationError,
    SchemaValidationError,
)
from timetable_ai.schemas.provider import ProviderRequest, ProviderResult
from timetable_ai.schemas.timetable import ExtractionResult, SourceInfo, TimetableMetadata
from timetable_ai.schemas.upload import ExtractionMode, UploadedFile
from timetable_ai.services import normalizer, validator
from timetable_ai.services.content_extractor import ContentExtractor, classify
from timetable_ai.services.prompt_builder import PromptBuilder
from timetable_ai.services.providers import InferenceProvider
from timetable_ai.services.transformer import FieldTransformer

logger = logging.getLogger(__name__)

PATH_DESCRIPTIONS = {
    ExtractionMode.TEXT_DOCUMENT: "PDF via text extraction",
    ExtractionMode.VISION_IMAGE: "image via vision",
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExtractionOrchestrator:
    """
    ExtractionOrchestrator drives one file through the whole pipeline.

    Every collaborator is injected, so tests can swap the provider for a
    stub and the clock for a fixed time. No state is shared between runs:
    everything a run produces lives in local variables.
    """

    def __init__(
        self,
        provider: InferenceProvider,
        content_extractor: Optional[ContentExtractor] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        transformer: Optional[FieldTransformer] = None,
        clock: Callable[[], datetime] = utc_now,
        logger: Optional[logging.Logger] = None
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.provider = provider
        self.content_extractor = content_extractor or ContentExtractor(logger=self.logger)
        self.prompt_builder = prompt_builder or PromptBuilder(logger=self.logger)
        self.transformer = transformer or FieldTransformer(logger=self.logger)
        self.clock = clock

    def _invoke(self, request: ProviderRequest) -> ProviderResult:
        """
        The single provider call of a run.

        Retry or fallback between providers belongs here; nothing before
        or after this step needs to change for it.
        """
        return self.provider.complete(request)

    def run(self, file: UploadedFile) -> ExtractionResult:
        """
        Process one uploaded file.

        What happens here:
        1. Classify the file (PDF text vs image vision)
        2. Extract content and build the prompt
        3. Call the inference provider
        4. Normalize, validate and transform the reply
        5. Assemble the result (with events on success, without on failure)

        Parameters:
        - file: uploaded timetable

        Returns:
        - ExtractionResult, always
        """

        warnings: List[str] = []
        source = self._describe(file)

        self.logger.info(
            f"Starting extraction for {source.filename}",
            extra={"stage": "start", "upload_name": source.filename, "size": source.size},
        )

        try:
            mode = classify(file)
            content = self.content_extractor.extract(file, mode)
            request = self.prompt_builder.build(mode, content)
            reply = self._invoke(request)
            candidate = normalizer.normalize(reply.text, log=self.logger)
            validated = validator.validate(candidate, log=self.logger)
            events = self.transformer.transform(validated)

        except ContentExtractionError as error:
            return self._failure(source, warnings, f"Content extraction failed: {error}")
        except ProviderInvocationError as error:
            return self._failure(
                source, warnings, f"Inference provider call failed ({self.provider.name}): {error}"
            )
        except NoJsonFoundError:
            return self._failure(
                source, warnings, f"{self.provider.name} did not return a valid JSON extraction."
            )
        except MalformedJsonError as error:
            return self._failure(
                source, warnings,
                f"{self.provider.name} returned invalid JSON: {error.parser_message}"
            )
        except SchemaValidationError as error:
            return self._failure(
                source, warnings, f"{self.provider.name} returned an invalid schema: {error}"
            )
        except Exception as error:
            self.logger.exception(f"Unexpected failure while processing {file.original_name}")
            return self._failure(source, warnings, f"Unexpected extraction failure: {error}")

        for event in events:
            if event.duration_minutes < 0:
                warnings.append(
                    f"Event '{event.name}' on {event.day} ends before it starts "
                    f"({event.start_time}-{event.end_time}); duration kept as "
                    f"{event.duration_minutes} minutes."
                )

        warnings.append(f"Processed {PATH_DESCRIPTIONS[mode]} with {reply.provider}.")

        self.logger.info(
            f"Extraction complete for {file.original_name}: {len(events)} events, {len(warnings)} warnings",
            extra={
                "stage": "assemble",
                "result": "success",
                "event_count": len(events),
                "warning_count": len(warnings),
            },
        )

        return ExtractionResult(
            source=source,
            metadata=self._metadata_or_none(validated.metadata),
            events=events,
            warnings=warnings,
        )

    def _describe(self, file: UploadedFile) -> SourceInfo:
        """
        Build the source block of the result.

        Missing upload fields become empty values and a failing clock
        falls back to the system UTC time, so a result can always be
        assembled.
        """

        try:
            processed_at = self.clock().isoformat()
        except Exception:
            self.logger.exception("Clock failed, using system UTC time for processedAt")
            processed_at = utc_now().isoformat()

        return SourceInfo(
            filename=file.original_name or "",
            mimetype=file.mime_type or "",
            size=file.size_bytes or 0,
            processed_at=processed_at,
        )

    def _failure(self, source: SourceInfo, warnings: List[str], message: str) -> ExtractionResult:
        warnings.append(message)
        self.logger.warning(
            message,
            extra={"stage": "assemble", "result": "failed", "upload_name": source.filename},
        )
        return ExtractionResult(source=source, events=[], warnings=warnings)

    @staticmethod
    def _metadata_or_none(metadata: Optional[TimetableMetadata]) -> Optional[TimetableMetadata]:
        # {"schoolName": null, ...} carries no information
        if metadata is None or not any(metadata.model_dump().values()):
            return None
        return metadata
