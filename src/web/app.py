"""FastAPI service exposing the JSON repair pipeline.

Provides:
- Strict parse, sanitize and resolve endpoints for arbitrary text
- Fetching the upstream document through the repair pipeline
- Submitting corrected JSON back upstream
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from src.tools.api_client import UpstreamError, fetch_raw, submit_text
from src.utils.json_repair import InvalidJsonError, parse, resolve, sanitize

logger = logging.getLogger(__name__)

app = FastAPI(title="JSON Validator", version="0.1.0")


def _text_field(data: dict) -> str | None:
    text = data.get("text")
    return text if isinstance(text, str) else None


def _missing_text() -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "A string 'text' field is required"})


@app.get("/api/health")
async def health():
    """Health check endpoint for deployment verification."""
    return {"status": "ok"}


# ── Pipeline endpoints ───────────────────────────────────────────

@app.post("/api/parse")
async def parse_text(data: dict):
    """Strictly parse text without any repair."""
    text = _text_field(data)
    if text is None:
        return _missing_text()
    return parse(text).model_dump()


@app.post("/api/sanitize")
async def sanitize_text(data: dict):
    """Apply the repair passes and return the resulting text."""
    text = _text_field(data)
    if text is None:
        return _missing_text()
    return {"text": sanitize(text)}


@app.post("/api/resolve")
async def resolve_text(data: dict):
    """Parse, falling back to one sanitize-and-reparse attempt."""
    text = _text_field(data)
    if text is None:
        return _missing_text()
    resolution = resolve(text)
    return {**resolution.model_dump(), "submittable": resolution.submittable}


# ── Upstream endpoints ───────────────────────────────────────────

@app.get("/api/fetch")
def fetch_document():
    """Fetch the upstream document and run it through the pipeline."""
    try:
        raw = fetch_raw()
    except UpstreamError as e:
        return JSONResponse(status_code=502, content={"error": str(e)})
    resolution = resolve(raw)
    return {
        "original": raw,
        **resolution.model_dump(),
        "submittable": resolution.submittable,
    }


@app.post("/api/submit")
def submit_document(data: dict):
    """Validate edited text and forward it upstream."""
    text = _text_field(data)
    if text is None:
        return _missing_text()
    try:
        response = submit_text(text)
    except InvalidJsonError as e:
        return JSONResponse(
            status_code=422,
            content={"error": f"Edited JSON is invalid: {e}", "failure": e.failure.model_dump()},
        )
    except UpstreamError as e:
        return JSONResponse(status_code=502, content={"error": str(e)})
    logger.info("Submission accepted upstream with HTTP %d", response.status_code)
    return response.model_dump()
