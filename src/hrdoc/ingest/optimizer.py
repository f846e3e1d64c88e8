"""Post-processing of built chunks: merge undersized, split oversized, re-index."""
from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any, List, Sequence

from .chunking import ChunkingConfig
from .language import contains_arabic, contains_english, count_words, detect_language
from .models import DocumentChunk

LOGGER = logging.getLogger(__name__)

_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?؟؛])\s+")
MERGE_JOINER = "\n\n"


def rebuild_chunk(chunk: DocumentChunk, content: str, **metadata_changes: Any) -> DocumentChunk:
    """Return a copy of ``chunk`` with new content and recomputed text statistics."""

    metadata = replace(
        chunk.metadata,
        contains_arabic=contains_arabic(content),
        contains_english=contains_english(content),
        word_count=count_words(content),
        character_count=len(content),
        **metadata_changes,
    )
    return replace(chunk, content=content, language=detect_language(content), metadata=metadata)


def merge_small_chunks(chunks: Sequence[DocumentChunk], config: ChunkingConfig) -> List[DocumentChunk]:
    """Fold each chunk shorter than ``min_chunk_size`` into its follower when both fit in ``max_chunk_size``."""

    merged: List[DocumentChunk] = []
    pending = None
    for chunk in chunks:
        if pending is None:
            pending = chunk
            continue
        combined_length = pending.content_length + len(MERGE_JOINER) + chunk.content_length
        if pending.content_length < config.min_chunk_size and combined_length <= config.max_chunk_size:
            pending = rebuild_chunk(
                pending,
                f"{pending.content}{MERGE_JOINER}{chunk.content}",
                merged_with_next=True,
            )
            continue
        merged.append(pending)
        pending = chunk
    if pending is not None:
        merged.append(pending)
    return merged


def _pack_sentences(sentences: Sequence[str], max_size: int) -> List[str]:
    pieces: List[str] = []
    current = ""
    for sentence in sentences:
        candidate = f"{current} {sentence}" if current else sentence
        if current and len(candidate) > max_size:
            pieces.append(current)
            current = sentence
        else:
            current = candidate
    if current:
        pieces.append(current)
    return pieces


def split_large_chunks(chunks: Sequence[DocumentChunk], config: ChunkingConfig) -> List[DocumentChunk]:
    """Split chunks longer than ``max_chunk_size`` at sentence terminators.

    A single sentence longer than the limit cannot be split and is kept whole.
    """

    result: List[DocumentChunk] = []
    for chunk in chunks:
        if chunk.content_length <= config.max_chunk_size:
            result.append(chunk)
            continue

        sentences = [part for part in _SENTENCE_SPLIT_RE.split(chunk.content) if part.strip()]
        pieces = _pack_sentences(sentences, config.max_chunk_size)
        if len(pieces) < 2:
            LOGGER.warning(
                "Chunk %s of document %s has an unsplittable sentence of %s chars",
                chunk.chunk_index,
                chunk.document_id,
                chunk.content_length,
            )
            result.append(chunk)
            continue

        for sub_index, piece in enumerate(pieces):
            result.append(
                rebuild_chunk(chunk, piece, sub_chunk_of=chunk.chunk_index, sub_chunk_index=sub_index)
            )
    return result


def optimize_chunks(chunks: Sequence[DocumentChunk], config: ChunkingConfig) -> List[DocumentChunk]:
    """Merge undersized chunks, split oversized ones and renumber from zero."""

    optimized = split_large_chunks(merge_small_chunks(chunks, config), config)
    reindexed = [replace(chunk, chunk_index=index) for index, chunk in enumerate(optimized)]
    LOGGER.debug("Optimised %s chunks into %s", len(chunks), len(reindexed))
    return reindexed
