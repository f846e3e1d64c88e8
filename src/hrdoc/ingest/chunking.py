"""Chunking utilities for breaking section text into embedding-friendly units."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..settings import DEFAULT_EMBEDDING_MODEL
from .language import (
    BIDI_MARKS,
    contains_arabic,
    contains_english,
    count_words,
    detect_language,
    strip_bidi_marks,
)
from .models import ChunkMetadata, ChunkType, DocumentChunk, Language

LOGGER = logging.getLogger(__name__)

OVERLAP_TERMINATORS = ".!?؟؛"
OVERLAP_FALLBACK_WORDS = 10
_WORD_RE = re.compile(r"\S+")
_TRAILING_NOISE_RE = re.compile(rf"[\s{BIDI_MARKS}]+$")
_NEWLINE_SEPARATORS = frozenset({"\n\n", "\n"})


class ChunkingConfig(BaseModel):
    """Immutable sizing rules for the chunk builder and optimizer."""

    model_config = ConfigDict(frozen=True)

    max_chunk_size: int = Field(..., gt=0, description="Upper bound on chunk length in characters.")
    chunk_overlap: int = Field(..., ge=0, description="Characters carried over from the previous chunk.")
    min_chunk_size: int = Field(..., ge=0, description="Chunks shorter than this are merged.")
    separators: Tuple[str, ...] = Field(..., min_length=1)
    respect_sentence_boundaries: bool = True
    preserve_formatting: bool = True

    @field_validator("separators")
    @classmethod
    def _separators_not_empty(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        if any(not separator for separator in value):
            raise ValueError("separators must be non-empty strings")
        return value

    @model_validator(mode="after")
    def _check_sizes(self) -> "ChunkingConfig":
        if self.min_chunk_size >= self.max_chunk_size:
            raise ValueError("min_chunk_size must be smaller than max_chunk_size")
        if self.chunk_overlap >= self.max_chunk_size:
            raise ValueError("chunk_overlap must be smaller than max_chunk_size")
        return self


_ARABIC_SEPARATORS: Tuple[str, ...] = ("\n\n", "\n", "。", "！", "؟", ".", "!", "?", "؛", ";", "،", ",")
_ENGLISH_SEPARATORS: Tuple[str, ...] = ("\n\n", "\n", ".", "!", "?", ";", ",")

CHUNKING_PRESETS: Dict[Language, ChunkingConfig] = {
    Language.AR: ChunkingConfig(
        max_chunk_size=800, chunk_overlap=80, min_chunk_size=100, separators=_ARABIC_SEPARATORS
    ),
    Language.EN: ChunkingConfig(
        max_chunk_size=1000, chunk_overlap=100, min_chunk_size=150, separators=_ENGLISH_SEPARATORS
    ),
    Language.MIXED: ChunkingConfig(
        max_chunk_size=900, chunk_overlap=90, min_chunk_size=120, separators=_ARABIC_SEPARATORS
    ),
}


def get_chunking_config(
    language: Union[Language, str], overrides: Optional[Mapping[str, Any]] = None
) -> ChunkingConfig:
    """Return the preset for ``language`` with optional field overrides applied.

    Overrides are validated like a fresh config, so an invalid combination
    raises :class:`pydantic.ValidationError`.
    """

    preset = CHUNKING_PRESETS[Language(language)]
    if not overrides:
        return preset
    return ChunkingConfig.model_validate({**preset.model_dump(), **dict(overrides)})


def config_for_document_type(language: Union[Language, str], document_type: Optional[str]) -> ChunkingConfig:
    """Adjust the language preset for the document types that chunk better differently."""

    preset = get_chunking_config(language)
    if document_type == "employment_contract":
        return get_chunking_config(language, {"max_chunk_size": int(preset.max_chunk_size * 1.2)})
    if document_type in ("policy", "handbook"):
        return get_chunking_config(
            language,
            {
                "max_chunk_size": int(preset.max_chunk_size * 0.9),
                "chunk_overlap": int(preset.chunk_overlap * 1.2),
            },
        )
    if document_type == "form":
        return get_chunking_config(language, {"max_chunk_size": 500, "min_chunk_size": 50})
    return preset


@dataclass(frozen=True, slots=True)
class ChunkContext:
    """Identifiers and section facts stamped onto every chunk of one section."""

    document_id: str
    organization_id: str
    document_name: str = ""
    section_title: Optional[str] = None
    section_type: ChunkType = ChunkType.PARAGRAPH
    start_index: int = 0
    extra: Mapping[str, Any] = field(default_factory=dict)
    embedding_model: str = DEFAULT_EMBEDDING_MODEL


def _separator_pattern(separator: str) -> re.Pattern[str]:
    if separator in _NEWLINE_SEPARATORS:
        return re.compile(re.escape(separator))
    # Punctuation stays with the preceding segment and only splits before whitespace.
    return re.compile(rf"(?<={re.escape(separator)})\s+")


def split_by_separators(text: str, separators: Tuple[str, ...]) -> List[str]:
    """Split ``text`` by each separator in turn and drop empty segments."""

    segments = [text]
    for separator in separators:
        pattern = _separator_pattern(separator)
        segments = [part for segment in segments for part in pattern.split(segment)]
    return [segment.strip() for segment in segments if segment.strip()]


def extract_overlap(text: str, size: int) -> str:
    """Return the tail of ``text`` used to seed the next chunk.

    Within the last ``size`` characters, text after the last interior sentence
    terminator is used when that terminator lies past the middle of the window;
    otherwise the window's last ten words are used.
    """

    if size <= 0 or not text:
        return ""
    window = text[-size:]
    body = _TRAILING_NOISE_RE.sub("", window)
    if body and body[-1] in OVERLAP_TERMINATORS:
        body = body[:-1]
    position = max(body.rfind(terminator) for terminator in OVERLAP_TERMINATORS)
    if position > len(window) // 2:
        tail = window[position + 1 :].strip()
        if strip_bidi_marks(tail).strip():
            return tail

    words = list(_WORD_RE.finditer(window))
    if len(words) > OVERLAP_FALLBACK_WORDS:
        return window[words[-OVERLAP_FALLBACK_WORDS].start() :].strip()
    return window.strip()


class SemanticTextChunker:
    """Greedy separator-aware chunk builder with sentence-aware overlap."""

    def build_chunks(
        self,
        section_text: str,
        language: Union[Language, str],
        config: Optional[ChunkingConfig],
        context: ChunkContext,
    ) -> List[DocumentChunk]:
        config = config or get_chunking_config(language)
        if not section_text or not section_text.strip():
            return []

        texts = self._accumulate(split_by_separators(section_text, config.separators), config)
        chunks = [self._make_chunk(text, context.start_index + offset, context) for offset, text in enumerate(texts)]
        LOGGER.debug(
            "Built %s chunks from section %r (%s chars)",
            len(chunks),
            context.section_title,
            len(section_text),
        )
        return chunks

    def _accumulate(self, segments: List[str], config: ChunkingConfig) -> List[str]:
        texts: List[str] = []
        current = ""
        prefix = ""
        for segment in segments:
            candidate = f"{current} {segment}" if current else segment
            has_new_content = len(current) > len(prefix)
            if (
                has_new_content
                and len(candidate) > config.max_chunk_size
                and len(current) > config.min_chunk_size
            ):
                texts.append(current)
                prefix = extract_overlap(current, config.chunk_overlap)
                current = f"{prefix} {segment}" if prefix else segment
            else:
                current = candidate

        if len(current) > len(prefix):
            if len(current) < config.min_chunk_size and texts:
                residual = current[len(prefix) :].strip()
                texts[-1] = f"{texts[-1]} {residual}"
            else:
                texts.append(current)
        return texts

    @staticmethod
    def _make_chunk(content: str, index: int, context: ChunkContext) -> DocumentChunk:
        metadata = ChunkMetadata(
            chunk_type=context.section_type,
            contains_arabic=contains_arabic(content),
            contains_english=contains_english(content),
            word_count=count_words(content),
            character_count=len(content),
            document_name=context.document_name,
            section_title=context.section_title,
            extra=dict(context.extra),
        )
        return DocumentChunk(
            document_id=context.document_id,
            organization_id=context.organization_id,
            content=content,
            chunk_index=index,
            language=detect_language(content),
            metadata=metadata,
            embedding_model=context.embedding_model,
        )
