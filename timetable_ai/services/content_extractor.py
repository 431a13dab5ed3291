"""
content_extractor.py

This file prepares uploaded timetables for the inference provider.

Supported inputs:
- PDF (text layer only, read with PyMuPDF)
- Anything else is treated as an image (PNG, JPG, WEBP, ...)

What comes out:
- For PDFs: all extracted text as one string
- For images: PNG bytes, resized so neither side exceeds 2048px

This file:
- Does NOT call the inference provider
- Does NOT save files anywhere
- Does NOT contain FastAPI routes
"""

import io
import logging
from pathlib import Path
from typing import List, Optional

import fitz  # Used to read PDF files (PyMuPDF)
from PIL import Image, UnidentifiedImageError

from timetable_ai.config import MAX_IMAGE_DIMENSION
from timetable_ai.exceptions import ContentExtractionError
from timetable_ai.schemas.upload import ExtractedContent, ExtractionMode, UploadedFile

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"


def classify(file: UploadedFile) -> ExtractionMode:
    """
    Decide how a file will be processed.

    Total and pure: PDFs (by MIME type or .pdf suffix) go through text
    extraction, everything else goes to the vision path. Unknown types
    are not rejected here; a non-image simply fails to decode later.
    """

    if file.mime_type == PDF_MIME_TYPE or (file.original_name or "").lower().endswith(".pdf"):
        return ExtractionMode.TEXT_DOCUMENT
    return ExtractionMode.VISION_IMAGE


class ContentExtractor:
    """
    ContentExtractor turns an uploaded file into provider-ready content.

    It has one job per mode:
    1. TEXT_DOCUMENT - read the PDF text layer
    2. VISION_IMAGE - decode, shrink and re-encode the image as PNG
    """

    def __init__(
        self,
        max_dimension: int = MAX_IMAGE_DIMENSION,
        logger: Optional[logging.Logger] = None
    ):
        """
        Parameters:
        - max_dimension: longest allowed image side in pixels
        - logger: optional injected logger (defaults to the module logger)
        """

        self.max_dimension = max_dimension
        self.logger = logger or logging.getLogger(__name__)

    def extract(self, file: UploadedFile, mode: ExtractionMode) -> ExtractedContent:
        """
        Main entry point used by the orchestrator.

        What happens here:
        1. Read file bytes (from memory or from disk)
        2. Call the extraction method for the mode
        3. Wrap any failure in ContentExtractionError

        Parameters:
        - file: uploaded file
        - mode: result of classify()

        Returns:
        - ExtractedContent (kind "text" or "image")

        Raises:
        - ContentExtractionError when the file cannot be read or decoded
        """

        file_bytes = self._read_bytes(file)

        try:
            if mode == ExtractionMode.TEXT_DOCUMENT:
                text = self._extract_from_pdf(file_bytes)
                self.logger.info(
                    f"Extracted {len(text)} characters from PDF {file.original_name}",
                    extra={"stage": "extract", "mode": mode.value, "chars": len(text)},
                )
                return ExtractedContent(kind="text", value=text)

            png_bytes = self._normalize_image(file_bytes)
            self.logger.info(
                f"Normalized image {file.original_name} to {len(png_bytes)} PNG bytes",
                extra={"stage": "extract", "mode": mode.value, "bytes": len(png_bytes)},
            )
            return ExtractedContent(kind="image", value=png_bytes, media_type="image/png")

        except ContentExtractionError:
            raise
        except (Image.DecompressionBombError, UnidentifiedImageError, OSError, ValueError, RuntimeError) as error:
            # fitz.FileDataError is a RuntimeError
            raise ContentExtractionError(
                f"Could not process {file.original_name}: {error}"
            ) from error

    def _read_bytes(self, file: UploadedFile) -> bytes:
        """Load the whole upload into memory."""

        if isinstance(file.content, (bytes, bytearray)):
            return bytes(file.content)

        try:
            return Path(file.content).read_bytes()
        except OSError as error:
            raise ContentExtractionError(
                f"Could not read uploaded file {file.original_name}: {error}"
            ) from error

    def _extract_from_pdf(self, file_bytes: bytes) -> str:
        """
        Extract text from a PDF file.

        All pages are concatenated. Page boundaries are not tracked, and
        pages without a text layer (scanned images) contribute nothing.
        """

        # Open PDF from memory
        with fitz.open(stream=file_bytes, filetype="pdf") as pdf_document:
            pages: List[str] = [page.get_text() for page in pdf_document]

        text = "".join(pages).strip()
        if not text:
            raise ContentExtractionError("PDF has no extractable text layer")

        return text

    def _normalize_image(self, file_bytes: bytes) -> bytes:
        """
        Shrink an image to fit max_dimension and re-encode it as PNG.

        thumbnail() keeps the aspect ratio and never enlarges, so small
        images keep their original size.
        """

        with Image.open(io.BytesIO(file_bytes)) as image:
            image.load()

            # PNG cannot store CMYK; palette images keep transparency as RGBA
            if image.mode not in ("RGB", "RGBA", "L", "LA"):
                image = image.convert("RGBA" if "transparency" in image.info else "RGB")

            image.thumbnail((self.max_dimension, self.max_dimension))

            buffer = io.BytesIO()
            image.save(buffer, format="PNG")

        return buffer.getvalue()
