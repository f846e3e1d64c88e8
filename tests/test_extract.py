"""Tests for the text extraction service and the per-format extractors."""
from __future__ import annotations

import io

import pytest
from PIL import Image

from hrdoc.ingest import extractors as extractors_module
from hrdoc.ingest.errors import ErrorKind
from hrdoc.ingest.extraction import TextExtractionService
from hrdoc.ingest.extractors import PDFExtractor, decode_text, readable_ratio
from hrdoc.ingest.models import ExtractionMethod, ExtractionStatus, Language
from hrdoc.ingest.normalization import normalize_text

ARABIC_POLICY = "سياسة الإجازات السنوية للموظفين في الشركة"


@pytest.fixture
def service(settings, fake_ocr) -> TextExtractionService:
    return TextExtractionService(settings, ocr_engine=fake_ocr())


def _png_bytes(size=(120, 40)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color="white").save(buffer, format="PNG")
    return buffer.getvalue()


def _blank_page(self, data: bytes, page_number: int) -> Image.Image:
    return Image.new("RGB", (60, 80), color="white")


def _error_kinds(content) -> list:
    return [issue.kind for issue in content.metadata.errors]


def test_plain_text_extraction(service: TextExtractionService) -> None:
    data = b"Annual leave policy\n\nEmployees receive 21 days of leave. Contact hr@example.com."

    content = service.extract(data, "text/plain", "policy.txt")

    assert content.status is ExtractionStatus.COMPLETED
    assert content.text == "Annual leave policy\n\nEmployees receive 21 days of leave. Contact hr@example.com."
    assert content.language is Language.EN
    metadata = content.metadata
    assert metadata.extraction_method is ExtractionMethod.DIRECT
    assert metadata.ocr_applied is False
    assert metadata.file_info.size == len(data)
    assert metadata.file_info.type == "text/plain"
    assert metadata.page_count == 1
    assert metadata.word_count == 12
    assert metadata.processing_time_ms >= 0
    assert metadata.extracted_at.endswith("Z")
    assert metadata.document_type == "policy"
    assert metadata.emails == ["hr@example.com"]


def test_file_objects_are_read(service: TextExtractionService) -> None:
    content = service.extract(io.BytesIO(b"Welcome aboard."), None, "welcome.txt")

    assert content.text == "Welcome aboard."
    assert content.metadata.file_info.type == "text/plain"


def test_utf8_arabic_text_is_not_misdecoded(service: TextExtractionService) -> None:
    content = service.extract(ARABIC_POLICY.encode("utf-8"), "text/plain")

    assert content.text == normalize_text(ARABIC_POLICY, ocr_corrections=False)
    assert content.language is Language.AR


def test_windows_1256_arabic_text_is_decoded(service: TextExtractionService) -> None:
    content = service.extract(ARABIC_POLICY.encode("cp1256"), "text/plain")

    assert content.status is ExtractionStatus.COMPLETED
    assert content.text == normalize_text(ARABIC_POLICY, ocr_corrections=False)
    assert content.language is Language.AR


def test_undecodable_bytes_are_replaced_with_a_warning() -> None:
    text, issue = decode_text(b"Hello \xff world")

    assert text == "Hello \ufffd world"
    assert issue is not None and issue.kind is ErrorKind.CONVERSION_WARNING


def test_replaced_bytes_are_reported(service: TextExtractionService) -> None:
    content = service.extract(b"Hello \xff world", "text/plain")

    assert content.text == "Hello world"
    assert content.status is ExtractionStatus.COMPLETED_WITH_WARNINGS
    assert _error_kinds(content) == [ErrorKind.CONVERSION_WARNING]


def test_unsupported_format_is_reported_not_raised(service: TextExtractionService) -> None:
    content = service.extract(b"PK\x03\x04", "application/zip", "bundle.zip")

    assert content.text == ""
    assert content.status is ExtractionStatus.FAILED
    assert _error_kinds(content) == [ErrorKind.UNSUPPORTED_FORMAT]
    assert content.metadata.document_type is None


def test_legacy_doc_files_are_rejected(service: TextExtractionService) -> None:
    content = service.extract(b"\xd0\xcf\x11\xe0", "application/msword", "old.doc")

    assert content.status is ExtractionStatus.FAILED
    assert _error_kinds(content) == [ErrorKind.UNSUPPORTED_FORMAT]


def test_empty_input_is_corrupt(service: TextExtractionService) -> None:
    content = service.extract(b"", "text/plain")

    assert content.status is ExtractionStatus.FAILED
    assert _error_kinds(content) == [ErrorKind.CORRUPT_SOURCE]


def test_whitespace_only_text_reports_no_text(service: TextExtractionService) -> None:
    content = service.extract(b"   \n\t  ", "text/plain")

    assert content.text == ""
    assert content.status is ExtractionStatus.FAILED
    assert _error_kinds(content) == [ErrorKind.NO_TEXT]


def test_unexpected_extractor_errors_are_contained(service, monkeypatch) -> None:
    def explode(data: bytes):
        raise RuntimeError("boom")

    monkeypatch.setattr(service.text_extractor, "extract", explode)

    content = service.extract(b"text", "text/plain")

    assert content.status is ExtractionStatus.FAILED
    assert _error_kinds(content) == [ErrorKind.CORRUPT_SOURCE]
    assert "boom" in content.metadata.errors[0].message


def test_docx_paragraphs_and_tables(service: TextExtractionService) -> None:
    docx = pytest.importorskip("docx", reason="python-docx not installed")

    document = docx.Document()
    document.add_paragraph("Leave Policy")
    document.add_paragraph("Employees receive 21 days of annual leave.")
    table = document.add_table(rows=2, cols=3)
    for cell, value in zip(table.rows[0].cells, ("Name", "Department", "Days")):
        cell.text = value
    for cell, value in zip(table.rows[1].cells, ("Sara", "HR", "21")):
        cell.text = value
    buffer = io.BytesIO()
    document.save(buffer)

    content = service.extract(buffer.getvalue(), None, "policy.docx")

    assert content.status is ExtractionStatus.COMPLETED
    assert content.text == (
        "Leave Policy\n\nEmployees receive 21 days of annual leave.\n\n"
        "Name | Department | Days\nSara | HR | 21"
    )
    assert content.metadata.extraction_method is ExtractionMethod.DIRECT


def test_corrupt_docx_is_reported(service: TextExtractionService) -> None:
    content = service.extract(b"not a zip archive", None, "broken.docx")

    assert content.status is ExtractionStatus.FAILED
    assert _error_kinds(content) == [ErrorKind.CORRUPT_SOURCE]


def test_image_is_recognised_with_confidence(settings, fake_ocr) -> None:
    engine = fake_ocr(["Employee handbook\n"], confidence=0.87)
    service = TextExtractionService(settings, ocr_engine=engine)

    content = service.extract(_png_bytes(), "image/png", "scan.png")

    assert content.text == "Employee handbook"
    assert content.metadata.extraction_method is ExtractionMethod.OCR
    assert content.metadata.ocr_applied is True
    assert content.metadata.confidence == 0.87
    assert engine.calls == 1
    assert engine.images[0].mode == "L"


def test_image_without_ocr_engine_fails_cleanly(settings, fake_ocr) -> None:
    service = TextExtractionService(settings, ocr_engine=fake_ocr(available=False))

    content = service.extract(_png_bytes(), "image/png")

    assert content.status is ExtractionStatus.FAILED
    assert _error_kinds(content) == [ErrorKind.OCR_UNAVAILABLE]
    assert content.metadata.ocr_applied is False


def test_unreadable_image_is_corrupt(service: TextExtractionService) -> None:
    content = service.extract(b"definitely not a png", "image/png")

    assert _error_kinds(content) == [ErrorKind.CORRUPT_SOURCE]


def test_pdf_with_usable_text_layer_skips_ocr(settings, fake_ocr, make_pdf) -> None:
    sentence = (
        "Annual leave policy: every full time employee is entitled to twenty one days "
        "of paid annual leave per year"
    )
    engine = fake_ocr()
    service = TextExtractionService(settings, ocr_engine=engine)

    content = service.extract(make_pdf([sentence]), "application/pdf", "policy.pdf")

    assert content.metadata.extraction_method is ExtractionMethod.DIRECT
    assert content.metadata.ocr_applied is False
    assert content.metadata.page_count == 1
    assert "annual leave" in content.text.lower()
    assert engine.calls == 0


def test_short_arabic_pdf_text_falls_back_to_ocr(settings, fake_ocr, monkeypatch) -> None:
    monkeypatch.setattr(PDFExtractor, "_extract_text", lambda self, data, issues: ("مرحبا", 1))
    monkeypatch.setattr(PDFExtractor, "_rasterize_page", _blank_page)
    engine = fake_ocr(["سياسة الإجازات السنوية للموظفين في الشركة وتطبق على جميع الموظفين"])
    service = TextExtractionService(settings, ocr_engine=engine)

    content = service.extract(b"%PDF-1.4 stub", "application/pdf")

    assert content.metadata.extraction_method in (ExtractionMethod.OCR, ExtractionMethod.HYBRID)
    assert content.metadata.ocr_applied is True
    assert content.language is Language.AR
    assert "سياسه" in content.text
    assert engine.calls == 1


def test_failed_pdf_page_is_skipped(settings, fake_ocr, monkeypatch) -> None:
    monkeypatch.setattr(PDFExtractor, "_extract_text", lambda self, data, issues: ("", 3))
    monkeypatch.setattr(PDFExtractor, "_rasterize_page", _blank_page)
    engine = fake_ocr(
        ["Page one text about leave.", "unused", "Page three text about pay."],
        failures={2},
    )
    service = TextExtractionService(settings, ocr_engine=engine)

    content = service.extract(b"%PDF-1.4 stub", "application/pdf")

    assert content.text == "Page one text about leave.\n\nPage three text about pay."
    assert content.metadata.extraction_method is ExtractionMethod.OCR
    assert content.status is ExtractionStatus.COMPLETED_WITH_WARNINGS
    [issue] = content.metadata.errors
    assert issue.kind is ErrorKind.PAGE_FAILED
    assert issue.page == 2
    assert [image.mode for image in engine.images] == ["L", "L", "L"]


def test_garbled_pdf_keeps_direct_text_when_ocr_is_unavailable(settings, fake_ocr, monkeypatch) -> None:
    monkeypatch.setattr(PDFExtractor, "_extract_text", lambda self, data, issues: ("short", 1))
    service = TextExtractionService(settings, ocr_engine=fake_ocr(available=False))

    content = service.extract(b"%PDF-1.4 stub", "application/pdf")

    assert content.text == "short"
    assert content.metadata.extraction_method is ExtractionMethod.DIRECT
    assert content.status is ExtractionStatus.COMPLETED_WITH_WARNINGS
    assert _error_kinds(content) == [ErrorKind.OCR_UNAVAILABLE]


def test_unparseable_pdf_records_every_problem(settings, fake_ocr, monkeypatch) -> None:
    monkeypatch.setattr(extractors_module, "pdfinfo_from_bytes", lambda data: {"Pages": 1})
    service = TextExtractionService(settings, ocr_engine=fake_ocr(available=False))

    content = service.extract(b"not a pdf at all", "application/pdf")

    assert content.status is ExtractionStatus.FAILED
    assert _error_kinds(content) == [ErrorKind.CORRUPT_SOURCE, ErrorKind.OCR_UNAVAILABLE]


def test_unparseable_pdf_recovered_by_ocr(settings, fake_ocr, monkeypatch) -> None:
    monkeypatch.setattr(extractors_module, "pdfinfo_from_bytes", lambda data: {"Pages": 2})
    monkeypatch.setattr(PDFExtractor, "_rasterize_page", _blank_page)
    service = TextExtractionService(settings, ocr_engine=fake_ocr(["First page.", "Second page."]))

    content = service.extract(b"not a pdf at all", "application/pdf")

    assert content.text == "First page.\n\nSecond page."
    assert content.metadata.extraction_method is ExtractionMethod.OCR
    assert content.metadata.page_count == 2
    assert _error_kinds(content) == [ErrorKind.CORRUPT_SOURCE]


@pytest.mark.parametrize(
    ("text", "garbled"),
    [
        ("short", True),
        ("a" * 150, False),
        ("#$%^&*~" * 30, True),
        ("سياسة الإجازات " * 10, False),
    ],
)
def test_is_text_garbled(settings, text: str, garbled: bool) -> None:
    assert PDFExtractor(settings).is_text_garbled(text) is garbled


def test_readable_ratio() -> None:
    assert readable_ratio("") == 0.0
    assert readable_ratio("ab##") == 0.5


def test_to_dict_stringifies_errors(service: TextExtractionService) -> None:
    payload = service.extract(b"", "text/plain").to_dict()

    assert payload["text"] == ""
    assert payload["metadata"]["errors"] == ["corrupt_source: Document is empty (0 bytes)"]
