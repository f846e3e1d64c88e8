"""Shared fixtures and fakes for the hrdoc test-suite."""
from __future__ import annotations

from typing import Any, Iterable, List, Optional, Sequence

import pytest

from hrdoc.ingest.errors import OCRFailedError, OCRUnavailableError
from hrdoc.ingest.ocr import OCRResult, reset_ocr_engine
from hrdoc.settings import ExtractionSettings


class FakeOCREngine:
    """Deterministic stand-in for :class:`hrdoc.ingest.ocr.OCREngine`.

    The n-th ``recognize`` call returns ``texts[n - 1]`` (or an empty string)
    and raises :class:`OCRFailedError` when ``n`` is listed in ``failures``.
    """

    def __init__(
        self,
        texts: Optional[Sequence[str]] = None,
        *,
        available: bool = True,
        confidence: Optional[float] = None,
        failures: Iterable[int] = (),
    ) -> None:
        self.texts = list(texts or [])
        self.available = available
        self.confidence = confidence
        self.failures = set(failures)
        self.calls = 0
        self.images: List[Any] = []

    def initialize(self) -> None:
        if not self.available:
            raise OCRUnavailableError("Tesseract OCR engine is not available")

    def recognize(self, image: Any, *, with_confidence: bool = False) -> OCRResult:
        self.initialize()
        self.calls += 1
        self.images.append(image)
        if self.calls in self.failures:
            raise OCRFailedError(f"OCR recognition failed on call {self.calls}")
        text = self.texts[self.calls - 1] if self.calls <= len(self.texts) else ""
        return OCRResult(text=text, confidence=self.confidence if with_confidence else None)


@pytest.fixture(autouse=True)
def _reset_shared_ocr_engine():
    reset_ocr_engine()
    yield
    reset_ocr_engine()


@pytest.fixture
def settings() -> ExtractionSettings:
    return ExtractionSettings()


@pytest.fixture
def fake_ocr():
    return FakeOCREngine


def build_pdf(page_texts: Sequence[str]) -> bytes:
    """Assemble a minimal PDF with one Helvetica text line per page and a valid xref table."""

    count = len(page_texts)
    kids = " ".join(f"{4 + 2 * index} 0 R" for index in range(count))
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {count} >>".encode("ascii"),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for index, text in enumerate(page_texts):
        content_number = 5 + 2 * index
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Contents {content_number} 0 R /Resources << /Font << /F1 3 0 R >> >> >>"
            ).encode("ascii")
        )
        stream = f"BT /F1 10 Tf 36 720 Td ({text}) Tj ET".encode("latin-1")
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    output = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(output))
        output += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_offset = len(output)
    output += b"xref\n0 %d\n" % (len(objects) + 1)
    output += b"0000000000 65535 f \n"
    for offset in offsets:
        output += b"%010d 00000 n \n" % offset
    output += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (
        len(objects) + 1,
        xref_offset,
    )
    return bytes(output)


@pytest.fixture
def make_pdf():
    return build_pdf


def leave_policy_sentences(count: int) -> List[str]:
    return [
        f"Sentence number {index:02d} describes the leave policy for full time employees."
        for index in range(1, count + 1)
    ]


@pytest.fixture
def english_policy_text() -> str:
    """35 sentences of 70 characters each (2,484 characters in total)."""

    return " ".join(leave_policy_sentences(35))
