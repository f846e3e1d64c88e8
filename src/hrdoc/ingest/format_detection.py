"""Utilities for detecting the format of uploaded documents."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from .errors import UnsupportedFormatError


class DocumentFormat(str, Enum):
    """Supported document formats."""

    PDF = "pdf"
    DOCX = "docx"
    DOC = "doc"
    TXT = "txt"
    IMAGE = "image"


class DocumentFormatDetector:
    """Detects the document format from the declared media type or the file name."""

    _MIME_MAP = {
        "application/pdf": DocumentFormat.PDF,
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document": DocumentFormat.DOCX,
        "application/msword": DocumentFormat.DOC,
        "text/plain": DocumentFormat.TXT,
        "text/markdown": DocumentFormat.TXT,
        "image/jpeg": DocumentFormat.IMAGE,
        "image/png": DocumentFormat.IMAGE,
        "image/tiff": DocumentFormat.IMAGE,
        "image/bmp": DocumentFormat.IMAGE,
        "image/webp": DocumentFormat.IMAGE,
    }

    _SUFFIX_MAP = {
        ".pdf": DocumentFormat.PDF,
        ".docx": DocumentFormat.DOCX,
        ".doc": DocumentFormat.DOC,
        ".txt": DocumentFormat.TXT,
        ".md": DocumentFormat.TXT,
        ".jpg": DocumentFormat.IMAGE,
        ".jpeg": DocumentFormat.IMAGE,
        ".png": DocumentFormat.IMAGE,
        ".tif": DocumentFormat.IMAGE,
        ".tiff": DocumentFormat.IMAGE,
        ".bmp": DocumentFormat.IMAGE,
        ".webp": DocumentFormat.IMAGE,
    }

    @classmethod
    def detect(cls, media_type: Optional[str], file_name: Optional[str] = None) -> DocumentFormat:
        """Return the detected document format.

        The declared media type wins when it is known (parameters such as
        ``; charset=utf-8`` are ignored); otherwise the file suffix decides.
        """

        if media_type:
            base_type = media_type.split(";", 1)[0].strip().lower()
            if base_type in cls._MIME_MAP:
                return cls._MIME_MAP[base_type]

        if file_name:
            suffix = Path(file_name).suffix.lower()
            if suffix in cls._SUFFIX_MAP:
                return cls._SUFFIX_MAP[suffix]

        raise UnsupportedFormatError(
            f"Unsupported file format: media type {media_type!r}, file name {file_name!r}"
        )
