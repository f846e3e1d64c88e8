"""Process-wide access to the Tesseract OCR engine."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple

import pytesseract
from PIL import Image

from ..settings import ExtractionSettings
from .errors import OCRFailedError, OCRUnavailableError

LOGGER = logging.getLogger(__name__)

# LSTM engine, automatic page segmentation with orientation detection.
TESSERACT_CONFIG = "--oem 3 --psm 1 -c preserve_interword_spaces=1"
HEALTH_CHECK_IMAGE_SIZE = (400, 100)


@dataclass(frozen=True, slots=True)
class OCRResult:
    text: str
    confidence: Optional[float] = None


@dataclass(frozen=True, slots=True)
class OCRHealth:
    """Outcome of :meth:`OCREngine.health_check`."""

    available: bool
    languages: Tuple[str, ...] = ()
    error: Optional[str] = None


def mean_confidence(values: Iterable[Any]) -> Optional[float]:
    """Average Tesseract word confidences (0-100) into a 0-1 score.

    Entries of ``-1`` mark non-word boxes and are ignored.
    """

    scores = []
    for value in values:
        try:
            score = float(value)
        except (TypeError, ValueError):
            continue
        if score >= 0:
            scores.append(score)
    if not scores:
        return None
    return round(sum(scores) / len(scores) / 100.0, 4)


class OCREngine:
    """Lazily initialised Tesseract wrapper.

    Initialisation happens once, on first use, and every recognition call
    holds the engine lock so a single engine is never driven concurrently.
    """

    def __init__(self, settings: Optional[ExtractionSettings] = None) -> None:
        self._settings = settings or ExtractionSettings.from_env()
        self._lock = threading.RLock()
        self._ready = False
        self._version: Optional[str] = None
        self._init_error: Optional[Exception] = None

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def languages(self) -> Tuple[str, ...]:
        return self._settings.ocr_languages

    @property
    def version(self) -> Optional[str]:
        return self._version

    @property
    def last_error(self) -> Optional[str]:
        if self._init_error is None:
            return None
        return str(self._init_error)

    def _ensure_ready(self) -> None:
        if self._ready:
            return
        with self._lock:
            if self._ready:
                return

            if self._settings.tesseract_cmd:
                pytesseract.pytesseract.tesseract_cmd = self._settings.tesseract_cmd

            try:
                version = pytesseract.get_tesseract_version()
                installed = set(pytesseract.get_languages(config=""))
            except (pytesseract.TesseractNotFoundError, pytesseract.TesseractError, OSError) as error:
                self._init_error = error
                LOGGER.warning("Tesseract is not available: %s", error)
                raise OCRUnavailableError("Tesseract OCR engine is not available") from error

            missing = [language for language in self.languages if language not in installed]
            if missing:
                error = RuntimeError(f"Missing Tesseract language data: {', '.join(missing)}")
                self._init_error = error
                LOGGER.warning("%s", error)
                raise OCRUnavailableError(str(error)) from error

            self._version = str(version)
            self._init_error = None
            self._ready = True
            LOGGER.info(
                "Tesseract %s initialised with languages %s",
                self._version,
                self._settings.ocr_language_spec,
            )

    def initialize(self) -> None:
        """Initialise the engine eagerly; raises :class:`OCRUnavailableError`."""

        self._ensure_ready()

    def recognize(self, image: Image.Image, *, with_confidence: bool = False) -> OCRResult:
        """Run OCR on ``image``; optionally collect the mean word confidence."""

        self._ensure_ready()
        language_spec = self._settings.ocr_language_spec
        with self._lock:
            try:
                text = pytesseract.image_to_string(image, lang=language_spec, config=TESSERACT_CONFIG)
                confidence = None
                if with_confidence:
                    data = pytesseract.image_to_data(
                        image,
                        lang=language_spec,
                        config=TESSERACT_CONFIG,
                        output_type=pytesseract.Output.DICT,
                    )
                    confidence = mean_confidence(data.get("conf", []))
            except pytesseract.TesseractNotFoundError as error:
                raise OCRUnavailableError("Tesseract OCR engine disappeared") from error
            except (RuntimeError, OSError, ValueError) as error:
                LOGGER.warning("OCR recognition failed: %s", error)
                raise OCRFailedError(f"OCR recognition failed: {error}") from error

        return OCRResult(text=text or "", confidence=confidence)

    def health_check(self) -> OCRHealth:
        """Recognise a blank image to prove the engine and language data work."""

        image = Image.new("RGB", HEALTH_CHECK_IMAGE_SIZE, color="white")
        try:
            self.recognize(image)
        except (OCRUnavailableError, OCRFailedError) as error:
            return OCRHealth(available=False, languages=(), error=str(error))
        return OCRHealth(available=True, languages=self.languages)


_ENGINE_LOCK = threading.Lock()
_GLOBAL_ENGINE: Optional[OCREngine] = None


def get_ocr_engine() -> OCREngine:
    """Return the shared OCR engine, creating it on first use."""

    global _GLOBAL_ENGINE

    if _GLOBAL_ENGINE is not None:
        return _GLOBAL_ENGINE
    with _ENGINE_LOCK:
        if _GLOBAL_ENGINE is None:
            _GLOBAL_ENGINE = OCREngine(ExtractionSettings.from_env())
        return _GLOBAL_ENGINE


def reset_ocr_engine() -> None:
    """Drop the shared engine so the next call builds a fresh one (used in tests)."""

    global _GLOBAL_ENGINE

    with _ENGINE_LOCK:
        _GLOBAL_ENGINE = None
