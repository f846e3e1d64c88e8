"""Probe endpoints for deployments that run the ingest workers."""
from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse

from .ingest.ocr import get_ocr_engine
from .logging_config import configure_logging

configure_logging()

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="HR Document Ingest")


@app.get("/", response_class=PlainTextResponse)
def read_root() -> str:
    """Liveness endpoint for the service."""
    return "ok"


@app.get("/healthz/ocr")
def ocr_healthcheck() -> dict[str, object]:
    health = get_ocr_engine().health_check()
    if not health.available:
        LOGGER.warning("OCR health check failed: %s", health.error)
        raise HTTPException(status_code=503, detail=health.error or "OCR engine unavailable")
    return {"status": "ok", "languages": list(health.languages)}
