"""Format dispatch, normalisation and metadata for a single document."""
from __future__ import annotations

import logging
import mimetypes
import time
from typing import BinaryIO, Optional, Union

from ..settings import ExtractionSettings
from .errors import ErrorKind, ExtractionIssue, UnsupportedFormatError
from .extractors import DocxExtractor, ImageExtractor, PDFExtractor, RawExtraction, TextExtractor
from .format_detection import DocumentFormat, DocumentFormatDetector
from .language import LanguageDetector, count_words
from .metadata import DocumentMetadata, extract_metadata
from .models import ExtractedContent, ExtractionMetadata, ExtractionMethod, FileInfo
from .normalization import normalize_text
from .ocr import OCREngine

LOGGER = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"


class TextExtractionService:
    """Turn document bytes into normalised, language-tagged text.

    :meth:`extract` never raises: every failure is reported through
    ``metadata.errors`` of the returned :class:`ExtractedContent`.
    """

    def __init__(
        self,
        settings: Optional[ExtractionSettings] = None,
        *,
        ocr_engine: Optional[OCREngine] = None,
        language_detector: Optional[LanguageDetector] = None,
    ) -> None:
        self.settings = settings or ExtractionSettings.from_env()
        self.pdf_extractor = PDFExtractor(self.settings, ocr_engine)
        self.docx_extractor = DocxExtractor()
        self.text_extractor = TextExtractor()
        self.image_extractor = ImageExtractor(self.settings, ocr_engine)
        self.language_detector = language_detector or LanguageDetector()

    def extract(
        self,
        data: Union[bytes, BinaryIO],
        media_type: Optional[str],
        file_name: Optional[str] = None,
    ) -> ExtractedContent:
        started = time.perf_counter()
        if not isinstance(data, (bytes, bytearray)):
            data = data.read()
        data = bytes(data)

        declared_type = media_type or (mimetypes.guess_type(file_name)[0] if file_name else None)
        file_info = FileInfo(size=len(data), type=declared_type or DEFAULT_MEDIA_TYPE)

        try:
            document_format = DocumentFormatDetector.detect(media_type, file_name)
        except UnsupportedFormatError as error:
            LOGGER.warning("Rejecting %s: %s", file_name or "document", error)
            raw = RawExtraction(text="", issues=[ExtractionIssue(ErrorKind.UNSUPPORTED_FORMAT, str(error))])
        else:
            LOGGER.info("Extracting %s as %s (%s bytes)", file_name or "document", document_format.value, len(data))
            raw = self._run_extractor(document_format, data, file_name)

        return self._build_content(raw, file_info, started)

    def _run_extractor(
        self, document_format: DocumentFormat, data: bytes, file_name: Optional[str]
    ) -> RawExtraction:
        if document_format is DocumentFormat.DOC:
            return RawExtraction(
                text="",
                issues=[
                    ExtractionIssue(
                        ErrorKind.UNSUPPORTED_FORMAT,
                        "Legacy .doc files are not supported; convert the document to .docx",
                    )
                ],
            )
        if not data:
            return RawExtraction(
                text="", issues=[ExtractionIssue(ErrorKind.CORRUPT_SOURCE, "Document is empty (0 bytes)")]
            )

        try:
            if document_format is DocumentFormat.PDF:
                return self.pdf_extractor.extract(data)
            if document_format is DocumentFormat.DOCX:
                return self.docx_extractor.extract(data)
            if document_format is DocumentFormat.IMAGE:
                return self.image_extractor.extract(data)
            return self.text_extractor.extract(data)
        except Exception as error:  # extraction must never raise to the caller
            LOGGER.exception("Unexpected error while extracting text from %s", file_name or "document")
            method = ExtractionMethod.OCR if document_format is DocumentFormat.IMAGE else ExtractionMethod.DIRECT
            return RawExtraction(
                text="",
                method=method,
                issues=[ExtractionIssue(ErrorKind.CORRUPT_SOURCE, f"Extraction failed: {error}")],
            )

    def _build_content(self, raw: RawExtraction, file_info: FileInfo, started: float) -> ExtractedContent:
        text = normalize_text(raw.text, ocr_corrections=raw.text_from_ocr)
        issues = list(raw.issues)
        if not text and not issues:
            issues.append(ExtractionIssue(ErrorKind.NO_TEXT, "Document contains no extractable text"))

        language = self.language_detector.detect(text)
        document_metadata = extract_metadata(text) if text else DocumentMetadata()
        file_info.pages = raw.page_count

        metadata = ExtractionMetadata(
            extraction_method=raw.method,
            file_info=file_info,
            processing_time_ms=round((time.perf_counter() - started) * 1000.0, 2),
            confidence=raw.confidence,
            page_count=raw.page_count,
            ocr_applied=raw.ocr_applied,
            errors=issues,
            word_count=count_words(text),
            document_type=document_metadata.document_type if text else None,
            extracted_dates=document_metadata.dates,
            emails=document_metadata.emails,
            phone_numbers=document_metadata.phone_numbers,
        )
        content = ExtractedContent(text=text, language=language, metadata=metadata)
        LOGGER.info(
            "Extraction %s: method=%s ocr=%s language=%s words=%s issues=%s",
            content.status.value,
            raw.method.value,
            raw.ocr_applied,
            language.value,
            metadata.word_count,
            len(issues),
        )
        return content
