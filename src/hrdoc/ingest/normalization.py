"""Text normalisation utilities.

``normalize_text`` is a pure function and idempotent: feeding its output back
in returns the same string. Canonical composition runs again once control
characters, tashkeel and joiners are gone. The layout steps run first and again at the end
so that Arabic clean-up and OCR corrections never leave stray blank lines, and
right-to-left embedding runs last so that a line's script is final before it
is wrapped.
"""
from __future__ import annotations

import re
import unicodedata
from typing import Sequence, Tuple

from .language import contains_arabic, contains_english

RLE = "\u202b"
PDF = "\u202c"
RLO = "\u202e"

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\u2028|\u2029")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f-\x9f]")
_HORIZONTAL_WS_RE = re.compile(r"[^\S\n\t]+")
_TAB_RUN_RE = re.compile(r" ?\t[\t ]*")
_LINE_EDGE_RE = re.compile(r"[ \t]*\n[ \t]*")
_MULTIPLE_NEWLINES_RE = re.compile(r"\n{3,}")
_ENCODING_ARTIFACTS_RE = re.compile(r"[\ufeff\ufffd]")

_TASHKEEL_RE = re.compile(r"[\u064b-\u065f\u0670]")
_ALEF_VARIANTS_RE = re.compile(r"[\u0622\u0623\u0625]")
_ARABIC_DIGITS = str.maketrans(
    "\u0660\u0661\u0662\u0663\u0664\u0665\u0666\u0667\u0668\u0669"
    "\u06f0\u06f1\u06f2\u06f3\u06f4\u06f5\u06f6\u06f7\u06f8\u06f9",
    "01234567890123456789",
)

_JOINER_FIXES: Tuple[Tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(?<=[\u0621-\u064a])[\u200c\u200d]+"), ""),
    (re.compile(r"[\u200c\u200d]+(?=[\u0621-\u064a])"), ""),
)

_OCR_MISREADS: Tuple[Tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"l(?=\d)"), "1"),
    (re.compile(r"O(?=\d)"), "0"),
    (re.compile(r"rn"), "m"),
    (re.compile(r"vv"), "w"),
)


def _collapse_layout(text: str) -> str:
    text = _HORIZONTAL_WS_RE.sub(" ", text)
    text = _TAB_RUN_RE.sub("\t", text)
    text = _LINE_EDGE_RE.sub("\n", text)
    text = _MULTIPLE_NEWLINES_RE.sub("\n\n", text)
    return text.strip()


def _apply_until_stable(text: str, fixes: Sequence[Tuple[re.Pattern[str], str]]) -> str:
    # Each substitution shortens the text or turns a letter into a digit, so this terminates.
    while True:
        updated = text
        for pattern, replacement in fixes:
            updated = pattern.sub(replacement, updated)
        if updated == text:
            return text
        text = updated


def normalize_arabic(text: str) -> str:
    """Strip tashkeel and fold alef, yaa, taa marbouta and digit variants."""

    text = _TASHKEEL_RE.sub("", text)
    text = _ALEF_VARIANTS_RE.sub("\u0627", text)
    text = text.replace("\u0649", "\u064a")
    text = text.replace("\u0629", "\u0647")
    return text.translate(_ARABIC_DIGITS)


def fix_ocr_misreads(text: str, *, latin: bool = True) -> str:
    """Apply the table of known OCR confusions until nothing changes."""

    fixes = _JOINER_FIXES + _OCR_MISREADS if latin else _JOINER_FIXES
    return _apply_until_stable(text, fixes)


def fix_bidirectional_text(text: str) -> str:
    """Wrap every purely Arabic line in a right-to-left embedding."""

    lines = []
    for line in text.split("\n"):
        if (
            line
            and RLE not in line
            and RLO not in line
            and contains_arabic(line)
            and not contains_english(line)
        ):
            line = f"{RLE}{line}{PDF}"
        lines.append(line)
    return "\n".join(lines)


def normalize_text(text: str, *, ocr_corrections: bool = True) -> str:
    """Normalise whitespace, control characters, Arabic script and OCR noise.

    ``ocr_corrections`` enables the Latin OCR misread table (``rn`` -> ``m``
    and friends). Joiner clean-up around Arabic letters always applies.
    """

    normalized = unicodedata.normalize("NFC", text)
    normalized = _ENCODING_ARTIFACTS_RE.sub("", normalized)
    normalized = _LINE_BREAK_RE.sub("\n", normalized)
    normalized = _CONTROL_RE.sub("", normalized)
    normalized = _collapse_layout(normalized)

    has_arabic = contains_arabic(normalized)
    if has_arabic:
        normalized = normalize_arabic(normalized)

    normalized = fix_ocr_misreads(normalized, latin=ocr_corrections)
    # Removals above can leave a base letter directly before a combining mark.
    normalized = unicodedata.normalize("NFC", normalized)
    normalized = _collapse_layout(normalized)

    if has_arabic:
        normalized = fix_bidirectional_text(normalized)
    return normalized
