"""Document ingestion: extraction, normalisation, segmentation and chunking."""
from __future__ import annotations

from .chunking import (
    CHUNKING_PRESETS,
    ChunkContext,
    ChunkingConfig,
    SemanticTextChunker,
    config_for_document_type,
    get_chunking_config,
)
from .errors import (
    ChunkingError,
    EmptyDocumentError,
    ErrorKind,
    ExtractionIssue,
    IngestError,
    OCRFailedError,
    OCRUnavailableError,
    UnsupportedFormatError,
)
from .extraction import TextExtractionService
from .language import LanguageDetector, detect_language
from .metadata import DocumentMetadata, extract_metadata
from .models import (
    ChunkMetadata,
    ChunkType,
    DocumentChunk,
    ExtractedContent,
    ExtractionMetadata,
    ExtractionMethod,
    ExtractionStatus,
    Language,
    Section,
)
from .normalization import normalize_text
from .ocr import OCREngine, OCRHealth, OCRResult, get_ocr_engine, reset_ocr_engine
from .optimizer import optimize_chunks
from .pipeline import IngestPipeline, IngestResult
from .sections import LineKind, classify_line, segment_sections

__all__ = [
    "CHUNKING_PRESETS",
    "ChunkContext",
    "ChunkMetadata",
    "ChunkType",
    "ChunkingConfig",
    "ChunkingError",
    "DocumentChunk",
    "DocumentMetadata",
    "EmptyDocumentError",
    "ErrorKind",
    "ExtractedContent",
    "ExtractionIssue",
    "ExtractionMetadata",
    "ExtractionMethod",
    "ExtractionStatus",
    "IngestError",
    "IngestPipeline",
    "IngestResult",
    "Language",
    "LanguageDetector",
    "LineKind",
    "OCREngine",
    "OCRFailedError",
    "OCRHealth",
    "OCRResult",
    "OCRUnavailableError",
    "Section",
    "SemanticTextChunker",
    "TextExtractionService",
    "UnsupportedFormatError",
    "classify_line",
    "config_for_document_type",
    "detect_language",
    "extract_metadata",
    "get_chunking_config",
    "get_ocr_engine",
    "normalize_text",
    "optimize_chunks",
    "reset_ocr_engine",
    "segment_sections",
]
