"""Extractors for supported document types.

Each extractor turns raw bytes into a :class:`RawExtraction`: un-normalised
text plus the facts needed to build :class:`~hrdoc.ingest.models.ExtractionMetadata`.
Problems are recorded as :class:`~hrdoc.ingest.errors.ExtractionIssue` values
instead of being raised.
"""
from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from docx import Document as DocxDocument
from pdf2image import convert_from_bytes, pdfinfo_from_bytes
from pdf2image.exceptions import PDFInfoNotInstalledError
from PIL import Image, ImageFilter, ImageOps, ImageSequence, UnidentifiedImageError
from PyPDF2 import PdfReader

from ..settings import ExtractionSettings
from .errors import ErrorKind, ExtractionIssue, OCRFailedError, OCRUnavailableError
from .models import ExtractionMethod
from .ocr import OCREngine, get_ocr_engine

LOGGER = logging.getLogger(__name__)

_READABLE_CHAR_RE = re.compile(
    r"[a-zA-Z\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF\s\d.,!?;:()\[\]{}\"'-]"
)

CP1256_PROBE_BYTES = 1000
CP1256_HIGH_BYTE_THRESHOLD = 10


@dataclass(slots=True)
class RawExtraction:
    """Text produced by one extractor before normalisation."""

    text: str
    method: ExtractionMethod = ExtractionMethod.DIRECT
    ocr_applied: bool = False
    text_from_ocr: bool = False
    confidence: Optional[float] = None
    page_count: Optional[int] = None
    issues: List[ExtractionIssue] = field(default_factory=list)


def readable_ratio(text: str) -> float:
    if not text:
        return 0.0
    return len(_READABLE_CHAR_RE.findall(text)) / len(text)


class _OCRBackedExtractor:
    def __init__(
        self,
        settings: Optional[ExtractionSettings] = None,
        ocr_engine: Optional[OCREngine] = None,
    ) -> None:
        self.settings = settings or ExtractionSettings.from_env()
        self._ocr_engine = ocr_engine

    @property
    def ocr_engine(self) -> OCREngine:
        if self._ocr_engine is None:
            return get_ocr_engine()
        return self._ocr_engine


class PDFExtractor(_OCRBackedExtractor):
    """Extract text from PDF documents with a page-by-page OCR fallback."""

    def is_text_garbled(self, text: str) -> bool:
        """Return ``True`` when direct PDF text is too short or too noisy to trust."""

        stripped = text.strip()
        if len(stripped) < self.settings.min_direct_text_chars:
            return True
        return readable_ratio(stripped) < self.settings.min_readable_ratio

    def extract(self, data: bytes) -> RawExtraction:
        issues: List[ExtractionIssue] = []
        try:
            direct_text, page_count = self._extract_text(data, issues)
        except Exception as error:  # PyPDF2 raises many unrelated types for broken files
            LOGGER.warning("Direct PDF parsing failed; trying OCR only: %s", error)
            issues.append(ExtractionIssue(ErrorKind.CORRUPT_SOURCE, f"PDF parsing failed: {error}"))
            return self._extract_with_ocr_only(data, issues)

        if not self.is_text_garbled(direct_text):
            return RawExtraction(text=direct_text, page_count=page_count, issues=issues)

        LOGGER.info(
            "Direct PDF text unusable (%s chars over %s pages); running OCR",
            len(direct_text.strip()),
            page_count,
        )
        ocr_text = self._ocr_pages(data, page_count, issues)
        if ocr_text is None:
            return RawExtraction(text=direct_text, page_count=page_count, issues=issues)

        method = ExtractionMethod.HYBRID if direct_text.strip() else ExtractionMethod.OCR
        use_ocr_text = len(ocr_text.strip()) > len(direct_text.strip())
        return RawExtraction(
            text=ocr_text if use_ocr_text else direct_text,
            method=method,
            ocr_applied=True,
            text_from_ocr=use_ocr_text,
            page_count=page_count,
            issues=issues,
        )

    def _extract_with_ocr_only(self, data: bytes, issues: List[ExtractionIssue]) -> RawExtraction:
        try:
            page_count = int(pdfinfo_from_bytes(data)["Pages"])
        except Exception as error:  # pdfinfo reports broken files through several types
            LOGGER.warning("Unable to count PDF pages for OCR: %s", error)
            issues.append(ExtractionIssue(ErrorKind.OCR_FAILED, f"PDF could not be rasterised: {error}"))
            return RawExtraction(text="", method=ExtractionMethod.OCR, issues=issues)

        ocr_text = self._ocr_pages(data, page_count, issues)
        return RawExtraction(
            text=ocr_text or "",
            method=ExtractionMethod.OCR,
            ocr_applied=ocr_text is not None,
            text_from_ocr=ocr_text is not None,
            page_count=page_count,
            issues=issues,
        )

    def _extract_text(self, data: bytes, issues: List[ExtractionIssue]) -> Tuple[str, int]:
        reader = PdfReader(io.BytesIO(data))
        page_texts: List[str] = []
        for index, page in enumerate(reader.pages, start=1):
            try:
                text = page.extract_text() or ""
            except Exception as error:  # depends on the page's content stream
                LOGGER.warning("Failed to extract text from PDF page %s: %s", index, error)
                issues.append(ExtractionIssue(ErrorKind.PAGE_FAILED, str(error), page=index))
                text = ""
            if text.strip():
                page_texts.append(text.strip())
        return "\n\n".join(page_texts), len(reader.pages)

    def _rasterize_page(self, data: bytes, page_number: int) -> Image.Image:
        images = convert_from_bytes(
            data,
            dpi=self.settings.ocr_dpi,
            first_page=page_number,
            last_page=page_number,
            size=self.settings.ocr_page_size,
        )
        if not images:
            raise ValueError("rasteriser returned no image")
        return images[0]

    def _ocr_pages(
        self, data: bytes, page_count: int, issues: List[ExtractionIssue]
    ) -> Optional[str]:
        """OCR every page; return ``None`` when OCR could not run at all."""

        engine = self.ocr_engine
        try:
            engine.initialize()
        except OCRUnavailableError as error:
            LOGGER.warning("OCR unavailable; keeping direct PDF text: %s", error)
            issues.append(ExtractionIssue(ErrorKind.OCR_UNAVAILABLE, str(error)))
            return None

        page_texts: List[str] = []
        recognized = 0
        for page_number in range(1, page_count + 1):
            try:
                image = self._rasterize_page(data, page_number)
                result = engine.recognize(preprocess_image(image))
            except (OCRUnavailableError, PDFInfoNotInstalledError) as error:
                LOGGER.warning("OCR became unavailable at page %s: %s", page_number, error)
                issues.append(ExtractionIssue(ErrorKind.OCR_UNAVAILABLE, str(error), page=page_number))
                break
            except Exception as error:  # a failed page is recorded and skipped
                LOGGER.warning("OCR failed for PDF page %s: %s", page_number, error)
                issues.append(ExtractionIssue(ErrorKind.PAGE_FAILED, str(error), page=page_number))
                continue
            recognized += 1
            if result.text.strip():
                page_texts.append(result.text.strip())

        if not recognized:
            issues.append(ExtractionIssue(ErrorKind.OCR_FAILED, "No PDF page could be recognised"))
            return None
        LOGGER.info("OCR recognised %s of %s PDF pages", recognized, page_count)
        return "\n\n".join(page_texts)


class DocxExtractor:
    """Extract paragraphs and table rows from Microsoft Word documents."""

    def extract(self, data: bytes) -> RawExtraction:
        try:
            document = DocxDocument(io.BytesIO(data))
        except Exception as error:  # python-docx surfaces zip, xml and package errors
            LOGGER.warning("python-docx failed to parse DOCX content: %s", error)
            return RawExtraction(
                text="",
                issues=[ExtractionIssue(ErrorKind.CORRUPT_SOURCE, f"DOCX parsing failed: {error}")],
            )

        issues: List[ExtractionIssue] = []
        paragraphs = [paragraph.text.strip() for paragraph in document.paragraphs if paragraph.text.strip()]
        rows: List[str] = []
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells]
                if any(cells):
                    rows.append(" | ".join(cells))

        image_count = len(document.inline_shapes)
        if image_count:
            issues.append(
                ExtractionIssue(
                    ErrorKind.CONVERSION_WARNING,
                    f"{image_count} embedded image(s) were not extracted",
                )
            )

        parts = []
        if paragraphs:
            parts.append("\n\n".join(paragraphs))
        if rows:
            parts.append("\n".join(rows))
        if not parts:
            issues.append(ExtractionIssue(ErrorKind.CONVERSION_WARNING, "Document body is empty"))
        return RawExtraction(text="\n\n".join(parts), page_count=1, issues=issues)


def decode_text(data: bytes) -> Tuple[str, Optional[ExtractionIssue]]:
    """Decode plain-text bytes as UTF-8, falling back to Windows-1256 for legacy Arabic files."""

    try:
        return data.decode("utf-8-sig"), None
    except UnicodeDecodeError:
        pass

    high_bytes = sum(1 for byte in data[:CP1256_PROBE_BYTES] if 0xC0 <= byte <= 0xFF)
    if high_bytes > CP1256_HIGH_BYTE_THRESHOLD:
        LOGGER.info("Text is not UTF-8; decoding as windows-1256 (%s high bytes)", high_bytes)
        return data.decode("cp1256", errors="replace"), None

    LOGGER.warning("Text is not valid UTF-8; replacing undecodable bytes")
    return (
        data.decode("utf-8", errors="replace"),
        ExtractionIssue(ErrorKind.CONVERSION_WARNING, "Undecodable bytes were replaced"),
    )


class TextExtractor:
    """Extract text from plaintext documents."""

    def extract(self, data: bytes) -> RawExtraction:
        text, issue = decode_text(data)
        return RawExtraction(text=text, page_count=1, issues=[issue] if issue else [])


def preprocess_image(image: Image.Image) -> Image.Image:
    """Grayscale, stretch contrast and sharpen; return the input unchanged on failure."""

    try:
        prepared = ImageOps.grayscale(image)
        prepared = ImageOps.autocontrast(prepared)
        return prepared.filter(ImageFilter.SHARPEN)
    except (OSError, ValueError) as error:
        LOGGER.warning("Image preprocessing failed; using the original image: %s", error)
        return image


class ImageExtractor(_OCRBackedExtractor):
    """Extract text from scanned images; multi-frame TIFFs are read frame by frame."""

    def extract(self, data: bytes) -> RawExtraction:
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, OSError) as error:
            LOGGER.warning("Unable to open image: %s", error)
            return RawExtraction(
                text="",
                method=ExtractionMethod.OCR,
                issues=[ExtractionIssue(ErrorKind.CORRUPT_SOURCE, f"Image could not be opened: {error}")],
            )

        issues: List[ExtractionIssue] = []
        texts: List[str] = []
        confidences: List[float] = []
        frames = [frame.copy() for frame in ImageSequence.Iterator(image)]
        for page_number, frame in enumerate(frames, start=1):
            try:
                result = self.ocr_engine.recognize(preprocess_image(frame), with_confidence=True)
            except OCRUnavailableError as error:
                issues.append(ExtractionIssue(ErrorKind.OCR_UNAVAILABLE, str(error)))
                return RawExtraction(
                    text="", method=ExtractionMethod.OCR, page_count=len(frames), issues=issues
                )
            except OCRFailedError as error:
                page = page_number if len(frames) > 1 else None
                issues.append(ExtractionIssue(ErrorKind.OCR_FAILED, str(error), page=page))
                continue
            if result.text.strip():
                texts.append(result.text.strip())
            if result.confidence is not None:
                confidences.append(result.confidence)

        confidence = round(sum(confidences) / len(confidences), 4) if confidences else None
        return RawExtraction(
            text="\n\n".join(texts),
            method=ExtractionMethod.OCR,
            ocr_applied=len(issues) < len(frames),
            text_from_ocr=True,
            confidence=confidence,
            page_count=len(frames),
            issues=issues,
        )
