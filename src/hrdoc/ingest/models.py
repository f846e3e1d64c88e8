"""Data models used by the ingestion pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from ..settings import DEFAULT_EMBEDDING_MODEL
from .errors import ExtractionIssue


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string with a ``Z`` suffix."""

    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class Language(str, Enum):
    """Dominant script of a text."""

    AR = "ar"
    EN = "en"
    MIXED = "mixed"


class ExtractionMethod(str, Enum):
    DIRECT = "direct"
    OCR = "ocr"
    HYBRID = "hybrid"


class ChunkType(str, Enum):
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    LIST = "list"
    TABLE = "table"
    CAPTION = "caption"


class ExtractionStatus(str, Enum):
    COMPLETED = "completed"
    COMPLETED_WITH_WARNINGS = "completed_with_warnings"
    FAILED = "failed"


@dataclass(slots=True)
class FileInfo:
    """Size, media type and page count of the source file."""

    size: int
    type: str
    pages: Optional[int] = None


@dataclass(slots=True)
class ExtractionMetadata:
    """Metadata describing how a document's text was obtained."""

    extraction_method: ExtractionMethod
    file_info: FileInfo
    processing_time_ms: float = 0.0
    confidence: Optional[float] = None
    page_count: Optional[int] = None
    ocr_applied: bool = False
    errors: List[ExtractionIssue] = field(default_factory=list)
    word_count: int = 0
    extracted_at: str = field(default_factory=utc_now_iso)
    document_type: Optional[str] = None
    extracted_dates: List[str] = field(default_factory=list)
    emails: List[str] = field(default_factory=list)
    phone_numbers: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "extraction_method": self.extraction_method.value,
            "processing_time_ms": self.processing_time_ms,
            "file_info": {
                "size": self.file_info.size,
                "type": self.file_info.type,
            },
            "ocr_applied": self.ocr_applied,
            "word_count": self.word_count,
            "extracted_at": self.extracted_at,
        }
        if self.file_info.pages is not None:
            payload["file_info"]["pages"] = self.file_info.pages
        if self.page_count is not None:
            payload["page_count"] = self.page_count
        if self.confidence is not None:
            payload["confidence"] = self.confidence
        if self.errors:
            payload["errors"] = [str(issue) for issue in self.errors]
        if self.document_type is not None:
            payload["document_type"] = self.document_type
        if self.extracted_dates:
            payload["extracted_dates"] = list(self.extracted_dates)
        if self.emails:
            payload["emails"] = list(self.emails)
        if self.phone_numbers:
            payload["phone_numbers"] = list(self.phone_numbers)
        return payload


@dataclass(slots=True)
class ExtractedContent:
    """Normalised text of one document plus extraction metadata."""

    text: str
    language: Language
    metadata: ExtractionMetadata

    def __post_init__(self) -> None:
        if not self.text.strip() and not self.metadata.errors:
            raise ValueError("Extracted text may only be empty when errors were recorded")

    @property
    def status(self) -> ExtractionStatus:
        if not self.text.strip():
            return ExtractionStatus.FAILED
        if self.metadata.errors:
            return ExtractionStatus.COMPLETED_WITH_WARNINGS
        return ExtractionStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "language": self.language.value,
            "metadata": self.metadata.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class Section:
    """A logical block of a document produced by the section segmenter."""

    content: str
    type: ChunkType
    title: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ChunkMetadata:
    """Metadata attached to an individual chunk."""

    chunk_type: ChunkType
    contains_arabic: bool
    contains_english: bool
    word_count: int
    character_count: int
    document_name: str = ""
    section_title: Optional[str] = None
    created_at: str = field(default_factory=utc_now_iso)
    sub_chunk_of: Optional[int] = None
    sub_chunk_index: Optional[int] = None
    merged_with_next: bool = False
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(self.extra)
        payload.update(
            {
                "chunk_type": self.chunk_type.value,
                "document_name": self.document_name,
                "contains_arabic": self.contains_arabic,
                "contains_english": self.contains_english,
                "word_count": self.word_count,
                "character_count": self.character_count,
                "created_at": self.created_at,
            }
        )
        if self.section_title is not None:
            payload["section_title"] = self.section_title
        if self.sub_chunk_of is not None:
            payload["sub_chunk_of"] = self.sub_chunk_of
            payload["sub_chunk_index"] = self.sub_chunk_index
        if self.merged_with_next:
            payload["merged_with_next"] = True
        return payload


@dataclass(frozen=True, slots=True)
class DocumentChunk:
    """Container that pairs chunk text with associated metadata."""

    document_id: str
    organization_id: str
    content: str
    chunk_index: int
    language: Language
    metadata: ChunkMetadata
    embedding_model: str = DEFAULT_EMBEDDING_MODEL

    def __post_init__(self) -> None:
        if self.chunk_index < 0:
            raise ValueError("chunk_index must be non-negative")

    @property
    def content_length(self) -> int:
        return len(self.content)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "document_id": self.document_id,
            "organization_id": self.organization_id,
            "content": self.content,
            "chunk_index": self.chunk_index,
            "content_length": self.content_length,
            "embedding_model": self.embedding_model,
            "language": self.language.value,
            "metadata": self.metadata.to_dict(),
        }
