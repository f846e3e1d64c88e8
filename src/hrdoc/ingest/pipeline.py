"""High level ingestion pipeline entry point."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Dict, List, Mapping, Optional, Union

from ..logging_config import AUDIT_LOGGER_NAME
from ..settings import ExtractionSettings
from .chunking import ChunkContext, ChunkingConfig, SemanticTextChunker, config_for_document_type, get_chunking_config
from .errors import EmptyDocumentError
from .extraction import TextExtractionService
from .models import DocumentChunk, ExtractedContent, ExtractionStatus, Language
from .optimizer import optimize_chunks
from .sections import segment_sections

LOGGER = logging.getLogger(__name__)
AUDIT_LOGGER = logging.getLogger(AUDIT_LOGGER_NAME)


@dataclass(slots=True)
class IngestResult:
    """Extraction outcome of one document and the chunks built from it."""

    extracted: ExtractedContent
    chunks: List[DocumentChunk] = field(default_factory=list)

    @property
    def status(self) -> ExtractionStatus:
        return self.extracted.status

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "extracted": self.extracted.to_dict(),
            "chunks": [chunk.to_dict() for chunk in self.chunks],
        }


class IngestPipeline:
    """Pipeline orchestrating extraction, normalisation, segmentation and chunking."""

    def __init__(
        self,
        extraction_service: Optional[TextExtractionService] = None,
        chunker: Optional[SemanticTextChunker] = None,
        *,
        settings: Optional[ExtractionSettings] = None,
        tune_for_document_type: bool = False,
    ) -> None:
        self.settings = settings or ExtractionSettings.from_env()
        self.extraction_service = extraction_service or TextExtractionService(self.settings)
        self.chunker = chunker or SemanticTextChunker()
        self.tune_for_document_type = tune_for_document_type

    def _resolve_config(
        self, language: Language, config: Optional[ChunkingConfig], document_type: Optional[str]
    ) -> ChunkingConfig:
        if config is not None:
            return config
        if self.tune_for_document_type and document_type:
            return config_for_document_type(language, document_type)
        return get_chunking_config(language)

    def chunk_document(
        self,
        text: str,
        language: Union[Language, str],
        document_id: str,
        organization_id: str,
        document_name: str,
        metadata: Optional[Mapping[str, Any]] = None,
        config: Optional[ChunkingConfig] = None,
        document_type: Optional[str] = None,
    ) -> List[DocumentChunk]:
        """Segment ``text`` and build optimised chunks with contiguous indices.

        Raises :class:`EmptyDocumentError` for empty or whitespace-only text.
        """

        if not text or not text.strip():
            raise EmptyDocumentError(f"Document {document_id} has no text to chunk")

        language = Language(language)
        config = self._resolve_config(language, config, document_type)
        extra = dict(metadata or {})

        chunks: List[DocumentChunk] = []
        for section in segment_sections(text):
            context = ChunkContext(
                document_id=document_id,
                organization_id=organization_id,
                document_name=document_name,
                section_title=section.title,
                section_type=section.type,
                start_index=len(chunks),
                extra=extra,
                embedding_model=self.settings.embedding_model,
            )
            chunks.extend(self.chunker.build_chunks(section.content, language, config, context))

        optimized = optimize_chunks(chunks, config)
        LOGGER.info(
            "Generated %s chunks (%s before optimisation) for document %s",
            len(optimized),
            len(chunks),
            document_id,
        )
        return optimized

    def process(
        self,
        data: Union[bytes, BinaryIO],
        media_type: Optional[str],
        document_id: str,
        organization_id: str,
        document_name: str,
        config: Optional[ChunkingConfig] = None,
    ) -> IngestResult:
        """Extract and chunk one document; extraction failures yield a result without chunks."""

        start_time = time.perf_counter()
        extracted = self.extraction_service.extract(data, media_type, document_name)

        chunks: List[DocumentChunk] = []
        if extracted.status is ExtractionStatus.FAILED:
            LOGGER.warning(
                "Skipping chunking for document %s: %s",
                document_id,
                "; ".join(str(issue) for issue in extracted.metadata.errors),
            )
        else:
            chunks = self.chunk_document(
                extracted.text,
                extracted.language,
                document_id,
                organization_id,
                document_name,
                config=config,
                document_type=extracted.metadata.document_type,
            )

        result = IngestResult(extracted=extracted, chunks=chunks)
        self._log_ingest_audit(document_id, media_type, result, time.perf_counter() - start_time)
        return result

    def _log_ingest_audit(
        self, document_id: str, media_type: Optional[str], result: IngestResult, duration: float
    ) -> None:
        metadata = result.extracted.metadata
        AUDIT_LOGGER.info(
            {
                "event": "ingest_document",
                "document_id": document_id,
                "media_type": media_type,
                "status": result.status.value,
                "method": metadata.extraction_method.value,
                "ocr_applied": metadata.ocr_applied,
                "language": result.extracted.language.value,
                "error_count": len(metadata.errors),
                "chunk_count": len(result.chunks),
                "duration_ms": round(duration * 1000.0, 2),
            }
        )
