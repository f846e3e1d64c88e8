"""Lightweight HR metadata extraction from normalised document text."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

GENERAL_DOCUMENT_TYPE = "general"

# Checked in order; the first type with any matching keyword wins.
DOCUMENT_TYPE_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("employment_contract", ("عقد عمل", "employment contract", "الموظف", "الراتب")),
    ("policy", ("سياسه", "سياسة", "policy", "الاجراءات", "الإجراءات", "procedures")),
    ("handbook", ("دليل", "handbook", "guide", "الدليل")),
    ("form", ("نموذج", "form", "استماره", "استمارة", "application")),
    ("letter", ("خطاب", "letter", "رساله", "رسالة", "correspondence")),
    ("report", ("تقرير", "report", "ملخص", "summary")),
)

_ARABIC_MONTHS = (
    "يناير|فبراير|مارس|"
    "[أا]بريل|مايو|يونيو|"
    "يوليو|[أا]غسطس|"
    "سبتمبر|[أا]كتوبر|"
    "نوفمبر|ديسمبر"
)

DATE_PATTERNS: Tuple[re.Pattern[str], ...] = (
    re.compile(r"\b\d{1,2}[/-]\d{1,2}[/-]\d{2,4}\b"),
    re.compile(r"\b\d{4}[/-]\d{1,2}[/-]\d{1,2}\b"),
    re.compile(rf"\b\d{{1,2}}\s+(?:{_ARABIC_MONTHS})\s+\d{{4}}\b"),
)
EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_PATTERN = re.compile(r"(?<!\d)(?:\+966|0)?5\d{8}(?!\d)")


@dataclass(slots=True)
class DocumentMetadata:
    """Structured facts pulled out of a document's text."""

    document_type: str = GENERAL_DOCUMENT_TYPE
    dates: List[str] = field(default_factory=list)
    emails: List[str] = field(default_factory=list)
    phone_numbers: List[str] = field(default_factory=list)


def _unique(values: Iterable[str]) -> List[str]:
    seen: dict[str, None] = {}
    for value in values:
        seen.setdefault(value, None)
    return list(seen)


def detect_document_type(
    text: str,
    keywords: Sequence[Tuple[str, Sequence[str]]] = DOCUMENT_TYPE_KEYWORDS,
) -> str:
    lowered = text.lower()
    for document_type, needles in keywords:
        if any(needle in lowered for needle in needles):
            return document_type
    return GENERAL_DOCUMENT_TYPE


def find_dates(text: str) -> List[str]:
    matches: List[Tuple[int, str]] = []
    for pattern in DATE_PATTERNS:
        matches.extend((match.start(), match.group(0)) for match in pattern.finditer(text))
    matches.sort(key=lambda item: item[0])
    return _unique(value for _, value in matches)


def find_emails(text: str) -> List[str]:
    return _unique(match.group(0) for match in EMAIL_PATTERN.finditer(text))


def find_phone_numbers(text: str) -> List[str]:
    return _unique(match.group(0) for match in PHONE_PATTERN.finditer(text))


def extract_metadata(text: str, document_type: Optional[str] = None) -> DocumentMetadata:
    """Detect the document type and collect dates, e-mails and Saudi mobile numbers.

    Values keep their first-seen order and duplicates are dropped. When
    ``document_type`` is given it is used as-is instead of keyword detection.
    """

    return DocumentMetadata(
        document_type=document_type or detect_document_type(text),
        dates=find_dates(text),
        emails=find_emails(text),
        phone_numbers=find_phone_numbers(text),
    )
