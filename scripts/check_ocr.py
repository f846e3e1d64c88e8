#!/usr/bin/env python3
"""CLI helper that verifies whether Tesseract and its language data are usable."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _load_dotenv() -> None:
    env_file = PROJECT_ROOT / ".env"
    if env_file.exists():
        load_dotenv(dotenv_path=env_file)
    else:
        load_dotenv()


def _configure_logging() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


def main() -> int:
    _load_dotenv()
    _configure_logging()

    src_str = str(PROJECT_ROOT / "src")
    if src_str not in sys.path:
        sys.path.insert(0, src_str)

    from hrdoc.ingest.ocr import get_ocr_engine  # noqa: WPS433
    from hrdoc.settings import ExtractionSettings  # noqa: WPS433

    settings = ExtractionSettings.from_env()
    logging.info("Requested OCR languages: %s", settings.ocr_language_spec)
    if settings.tesseract_cmd:
        logging.info("Using Tesseract binary: %s", settings.tesseract_cmd)

    engine = get_ocr_engine()
    health = engine.health_check()
    if not health.available:
        logging.error("OCR engine unavailable: %s", health.error)
        return 1

    logging.info("Tesseract %s ready with languages %s", engine.version, "+".join(health.languages))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
