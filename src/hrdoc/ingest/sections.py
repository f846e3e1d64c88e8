"""Line-based segmentation of normalised text into logical sections.

Every line is classified by the first matching rule in :data:`LINE_RULES`
(checked on the line with bidi marks removed), then a small state machine
groups classified lines into :class:`~hrdoc.ingest.models.Section` values.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .language import strip_bidi_marks
from .models import ChunkType, Section

LOGGER = logging.getLogger(__name__)

SENTENCE_TERMINATORS = ".!?؟؛"
HEADING_MAX_LENGTH = 100
SHORT_TITLE_MAX_LENGTH = 50

_ARABIC_LETTER = r"\u0621-\u064a"
_NO_TABLE_SEPARATOR = r"(?!.*[|\t])"
_NOT_LIST_MARKER = r"(?!\S{1,2}[.)]\s)"
_MARKDOWN_HEADING_RE = re.compile(r"^#{1,6}\s+")


class LineKind(str, Enum):
    BLANK = "blank"
    CAPTION = "caption"
    HEADING = "heading"
    LIST_ITEM = "list_item"
    TABLE_ROW = "table_row"
    PARAGRAPH = "paragraph"


@dataclass(frozen=True, slots=True)
class LineRule:
    """A single classification rule; ``max_length`` is exclusive."""

    kind: LineKind
    pattern: re.Pattern[str]
    max_length: Optional[int] = None
    reject_sentence_end: bool = False
    min_separators: int = 0

    def matches(self, line: str) -> bool:
        if self.max_length is not None and len(line) >= self.max_length:
            return False
        if self.reject_sentence_end and line[-1] in SENTENCE_TERMINATORS:
            return False
        if self.min_separators:
            return line.count("|") + line.count("\t") >= self.min_separators
        return bool(self.pattern.search(line))


LINE_RULES: Tuple[LineRule, ...] = (
    LineRule(
        LineKind.CAPTION,
        re.compile(r"^(?:(?:Figure|Fig\.|Table|Chart)|(?:شكل|جدول|صوره|صورة))\s*(?:\d+|:)", re.IGNORECASE),
    ),
    LineRule(LineKind.HEADING, _MARKDOWN_HEADING_RE, max_length=HEADING_MAX_LENGTH),
    LineRule(
        LineKind.HEADING,
        re.compile(r"^\d+(?:\.\d+)*\.\s+\S|^\d+(?:\.\d+)+\s+\S"),
        max_length=HEADING_MAX_LENGTH,
        reject_sentence_end=True,
    ),
    LineRule(
        LineKind.HEADING,
        re.compile(rf"^[{_ARABIC_LETTER}]{{1,2}}\.\s+\S"),
        max_length=HEADING_MAX_LENGTH,
        reject_sentence_end=True,
    ),
    LineRule(LineKind.HEADING, re.compile(r"^[A-Z][A-Z0-9\s&/-]{2,}$"), max_length=HEADING_MAX_LENGTH),
    LineRule(LineKind.HEADING, re.compile(rf"^[{_ARABIC_LETTER}\s]{{3,}}$"), max_length=HEADING_MAX_LENGTH),
    LineRule(
        LineKind.HEADING,
        re.compile(rf"^{_NO_TABLE_SEPARATOR}{_NOT_LIST_MARKER}[A-Z{_ARABIC_LETTER}].{{4,}}[:：]$"),
        max_length=HEADING_MAX_LENGTH,
    ),
    # Short lines ending in a sentence terminator are one-sentence paragraphs, not titles.
    LineRule(
        LineKind.HEADING,
        re.compile(rf"^{_NO_TABLE_SEPARATOR}{_NOT_LIST_MARKER}[A-Z{_ARABIC_LETTER}].{{5,}}$"),
        max_length=SHORT_TITLE_MAX_LENGTH,
        reject_sentence_end=True,
    ),
    LineRule(
        LineKind.LIST_ITEM,
        re.compile(rf"^(?:[-•·*]|\d+[.)]|[{_ARABIC_LETTER}]{{1,2}}[.)]|[a-zA-Z][.)])\s+"),
    ),
    LineRule(LineKind.TABLE_ROW, re.compile(r"[|\t]"), min_separators=2),
)


def classify_line(line: str) -> LineKind:
    """Return the :class:`LineKind` of a single line of text."""

    cleaned = strip_bidi_marks(line).strip()
    if not cleaned:
        return LineKind.BLANK
    for rule in LINE_RULES:
        if rule.matches(cleaned):
            return rule.kind
    return LineKind.PARAGRAPH


class _SectionBuilder:
    def __init__(self) -> None:
        self.sections: List[Section] = []
        self.title: Optional[str] = None
        self.type = ChunkType.PARAGRAPH
        self.lines: List[str] = []

    def flush(self) -> None:
        content = "\n".join(self.lines).strip()
        if content:
            self.sections.append(Section(content=content, type=self.type, title=self.title))
        self.lines = []

    def start(self, section_type: ChunkType, title: Optional[str]) -> None:
        self.flush()
        self.type = section_type
        self.title = title

    def add_blank(self) -> None:
        if self.type is ChunkType.PARAGRAPH and self.lines and self.lines[-1]:
            self.lines.append("")

    def add_caption(self, line: str) -> None:
        self.flush()
        self.sections.append(Section(content=line, type=ChunkType.CAPTION, title=self.title))
        self.type = ChunkType.PARAGRAPH

    def add_heading(self, line: str) -> None:
        self.start(ChunkType.HEADING, _heading_title(line))
        self.lines.append(line)

    def add_grouped(self, section_type: ChunkType, line: str) -> None:
        if self.type is ChunkType.HEADING:
            self.type = section_type
        elif self.type is not section_type:
            self.start(section_type, self.title)
        self.lines.append(line)

    def add_paragraph(self, line: str) -> None:
        if self.type is ChunkType.HEADING:
            self.type = ChunkType.PARAGRAPH
        elif self.type in (ChunkType.LIST, ChunkType.TABLE):
            self.start(ChunkType.PARAGRAPH, self.title)
        self.lines.append(line)


def _heading_title(line: str) -> str:
    return _MARKDOWN_HEADING_RE.sub("", strip_bidi_marks(line).strip())


def segment_sections(text: str) -> List[Section]:
    """Split ``text`` into titled heading, paragraph, list, table and caption sections.

    A heading line opens its section and stays first in the section's content.
    A heading followed directly by another heading or a caption forms a
    heading section of its own.
    """

    builder = _SectionBuilder()
    for raw_line in text.split("\n"):
        line = raw_line.strip()
        kind = classify_line(line)
        if kind is LineKind.BLANK:
            builder.add_blank()
        elif kind is LineKind.CAPTION:
            builder.add_caption(line)
        elif kind is LineKind.HEADING:
            builder.add_heading(line)
        elif kind is LineKind.LIST_ITEM:
            builder.add_grouped(ChunkType.LIST, line)
        elif kind is LineKind.TABLE_ROW:
            builder.add_grouped(ChunkType.TABLE, line)
        else:
            builder.add_paragraph(line)
    builder.flush()

    LOGGER.debug("Segmented text of length %s into %s sections", len(text), len(builder.sections))
    return builder.sections
