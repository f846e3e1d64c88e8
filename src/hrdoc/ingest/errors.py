"""Error types shared by the extraction and chunking stages."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class IngestError(RuntimeError):
    """Base class for errors raised by the ingest pipeline."""


class ChunkingError(IngestError):
    """Raised when a text cannot be chunked."""


class EmptyDocumentError(ChunkingError):
    """Raised when chunking is requested for empty or whitespace-only text."""


class UnsupportedFormatError(IngestError):
    """Raised when neither the media type nor the file name maps to a known format."""


class OCRUnavailableError(IngestError):
    """Raised when the OCR engine cannot be initialised or used."""


class OCRFailedError(IngestError):
    """Raised when the OCR engine is available but recognition failed."""


class ErrorKind(str, Enum):
    """Classification of non-fatal extraction issues."""

    UNSUPPORTED_FORMAT = "unsupported_format"
    CORRUPT_SOURCE = "corrupt_source"
    OCR_UNAVAILABLE = "ocr_unavailable"
    OCR_FAILED = "ocr_failed"
    PAGE_FAILED = "page_failed"
    CONVERSION_WARNING = "conversion_warning"
    NO_TEXT = "no_text"


@dataclass(frozen=True, slots=True)
class ExtractionIssue:
    """A problem recorded during extraction that did not abort the call."""

    kind: ErrorKind
    message: str
    page: Optional[int] = None

    def __str__(self) -> str:
        if self.page is not None:
            return f"{self.kind.value} (page {self.page}): {self.message}"
        return f"{self.kind.value}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"kind": self.kind.value, "message": self.message}
        if self.page is not None:
            payload["page"] = self.page
        return payload
