"""Script-based language detection helpers."""
from __future__ import annotations

import logging
import re

from .models import Language

LOGGER = logging.getLogger(__name__)

ARABIC_RANGES = r"\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF"
_ARABIC_CHAR_RE = re.compile(f"[{ARABIC_RANGES}]")
_ARABIC_PRESENCE_RE = re.compile(r"[\u0600-\u06FF\u0750-\u077F]")
_LATIN_RE = re.compile(r"[A-Za-z]")
_ARABIC_WORD_RE = re.compile(r"[\u0600-\u06FF]+")
_LATIN_WORD_RE = re.compile(r"[A-Za-z]+")
_WHITESPACE_RE = re.compile(r"\s")

# Directional formatting characters (LRE, RLE, PDF, LRO, RLO, isolates, marks).
BIDI_MARKS = r"\u200E\u200F\u202A-\u202E\u2066-\u2069"
_BIDI_RE = re.compile(f"[{BIDI_MARKS}]")

ARABIC_THRESHOLD = 0.7
MIXED_THRESHOLD = 0.3


def strip_bidi_marks(text: str) -> str:
    return _BIDI_RE.sub("", text)


def contains_arabic(text: str) -> bool:
    return bool(_ARABIC_PRESENCE_RE.search(text))


def contains_english(text: str) -> bool:
    return bool(_LATIN_RE.search(text))


def count_words(text: str) -> int:
    """Count Arabic and Latin words, ignoring digits and punctuation."""

    return len(_ARABIC_WORD_RE.findall(text)) + len(_LATIN_WORD_RE.findall(text))


def arabic_ratio(text: str) -> float:
    """Share of Arabic-range characters among visible characters."""

    visible = _WHITESPACE_RE.sub("", strip_bidi_marks(text))
    if not visible:
        return 0.0
    return len(_ARABIC_CHAR_RE.findall(visible)) / len(visible)


def detect_language(text: str) -> Language:
    """Classify *text* as Arabic, English or mixed by its Arabic character ratio.

    Text with no visible characters is reported as English.
    """

    ratio = arabic_ratio(text)
    if ratio > ARABIC_THRESHOLD:
        return Language.AR
    if ratio > MIXED_THRESHOLD:
        return Language.MIXED
    return Language.EN


class LanguageDetector:
    """Object wrapper around :func:`detect_language` for injection into the pipeline."""

    def detect(self, text: str) -> Language:
        language = detect_language(text)
        LOGGER.debug("Detected language %s for text of length %s", language.value, len(text))
        return language
