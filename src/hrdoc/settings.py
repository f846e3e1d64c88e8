"""Environment-driven settings for document extraction."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

LOGGER = logging.getLogger(__name__)

# Heuristic thresholds carried over from the first production release. They
# have not been calibrated against a labelled corpus yet.
DEFAULT_MIN_TEXT_CHARS = 100
DEFAULT_MIN_READABLE_RATIO = 0.6
DEFAULT_OCR_DPI = 300
DEFAULT_OCR_PAGE_SIZE: Tuple[int, int] = (2480, 3508)  # A4 at 300 DPI
DEFAULT_OCR_LANGUAGES: Tuple[str, ...] = ("ara", "eng")
DEFAULT_EMBEDDING_MODEL = "text-embedding-ada-002"


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        LOGGER.warning("Ignoring non-integer value for %s: %r", name, value)
        return None


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        LOGGER.warning("Ignoring non-numeric value for %s: %r", name, value)
        return None


def _env_languages(name: str) -> Optional[Tuple[str, ...]]:
    value = os.getenv(name)
    if not value:
        return None
    languages = tuple(part.strip() for part in value.split("+") if part.strip())
    return languages or None


@dataclass(frozen=True, slots=True)
class ExtractionSettings:
    """Tunable constants used by the extractors and the OCR engine."""

    min_direct_text_chars: int = DEFAULT_MIN_TEXT_CHARS
    min_readable_ratio: float = DEFAULT_MIN_READABLE_RATIO
    ocr_dpi: int = DEFAULT_OCR_DPI
    ocr_page_size: Tuple[int, int] = DEFAULT_OCR_PAGE_SIZE
    ocr_languages: Tuple[str, ...] = DEFAULT_OCR_LANGUAGES
    tesseract_cmd: Optional[str] = None
    embedding_model: str = DEFAULT_EMBEDDING_MODEL

    @property
    def ocr_language_spec(self) -> str:
        """Language argument in the ``ara+eng`` form expected by Tesseract."""

        return "+".join(self.ocr_languages)

    @classmethod
    def from_env(cls) -> "ExtractionSettings":
        """Build settings from ``HRDOC_*`` environment variables.

        Missing or malformed values fall back to the defaults.
        """

        min_chars = _env_int("HRDOC_MIN_TEXT_CHARS")
        ratio = _env_float("HRDOC_MIN_READABLE_RATIO")
        dpi = _env_int("HRDOC_OCR_DPI")
        width = _env_int("HRDOC_OCR_PAGE_WIDTH")
        height = _env_int("HRDOC_OCR_PAGE_HEIGHT")
        if ratio is not None and not 0.0 <= ratio <= 1.0:
            LOGGER.warning("HRDOC_MIN_READABLE_RATIO must be within [0, 1]; got %s", ratio)
            ratio = None

        return cls(
            min_direct_text_chars=min_chars if min_chars is not None and min_chars >= 0 else DEFAULT_MIN_TEXT_CHARS,
            min_readable_ratio=ratio if ratio is not None else DEFAULT_MIN_READABLE_RATIO,
            ocr_dpi=dpi if dpi and dpi > 0 else DEFAULT_OCR_DPI,
            ocr_page_size=(
                width if width and width > 0 else DEFAULT_OCR_PAGE_SIZE[0],
                height if height and height > 0 else DEFAULT_OCR_PAGE_SIZE[1],
            ),
            ocr_languages=_env_languages("HRDOC_OCR_LANGUAGES") or DEFAULT_OCR_LANGUAGES,
            tesseract_cmd=os.getenv("TESSERACT_CMD") or None,
            embedding_model=os.getenv("HRDOC_EMBEDDING_MODEL") or DEFAULT_EMBEDDING_MODEL,
        )
