"""Upstream API client: fetch raw JSON text and submit corrected values.

The upstream may return malformed JSON, so fetch_raw hands back the body
text untouched. Submissions are only sent for text that parses strictly.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

import httpx

from src.models.validation import SubmitPayload, SubmitResponse
from src.utils.json_repair import parse, unwrap_value

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://interview-screener-api.thriveglobal.workers.dev"


def _api_base() -> str:
    return os.environ.get("JSON_API_BASE", "").strip() or DEFAULT_API_BASE


def _api_email() -> str:
    return os.environ.get("JSON_API_EMAIL", "").strip()


DEFAULT_TIMEOUT = 10.0


def _api_timeout() -> float:
    raw = os.environ.get("JSON_API_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid JSON_API_TIMEOUT %r, using %ss", raw, DEFAULT_TIMEOUT)
        return DEFAULT_TIMEOUT


class UpstreamError(RuntimeError):
    """Transport failure or non-2xx answer from the upstream API."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _query_params(email: str) -> dict[str, str]:
    return {"email": email} if email else {}


def _request(method: str, url: str, client: httpx.Client | None, **kwargs) -> httpx.Response:
    """Send a request, translating httpx failures into UpstreamError."""
    owns_client = client is None
    if owns_client:
        client = httpx.Client(timeout=_api_timeout())
    try:
        resp = client.request(method, url, **kwargs)
    except httpx.HTTPError as e:
        logger.warning("%s %s failed: %s", method, url, e)
        raise UpstreamError(f"{method} {url} failed: {e}") from e
    finally:
        if owns_client:
            client.close()

    if resp.is_error:
        logger.warning("%s %s returned %d", method, url, resp.status_code)
        raise UpstreamError(
            f"{method} {url} returned HTTP {resp.status_code}",
            status_code=resp.status_code,
        )
    return resp


def fetch_raw(
    base_url: str | None = None,
    email: str | None = None,
    client: httpx.Client | None = None,
) -> str:
    """GET the upstream document and return its body text as-is."""
    url = base_url or _api_base()
    email = _api_email() if email is None else email
    logger.info("Fetching JSON from %s", url)
    resp = _request("GET", url, client, params=_query_params(email))
    return resp.text


def build_submit_payload(value: Any, email: str = "") -> SubmitPayload:
    """Wrap a value for submission; data is the compact JSON encoding."""
    data = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return SubmitPayload(email=email, data=data)


def submit_text(
    text: str,
    base_url: str | None = None,
    email: str | None = None,
    client: httpx.Client | None = None,
) -> SubmitResponse:
    """Validate edited text and POST it upstream.

    Raises InvalidJsonError before any request when text does not parse.
    """
    value = unwrap_value(parse(text))
    url = base_url or _api_base()
    email = _api_email() if email is None else email
    payload = build_submit_payload(value, email)

    logger.info("Submitting %d bytes of JSON to %s", len(payload.data), url)
    resp = _request(
        "POST",
        url,
        client,
        params=_query_params(email),
        content=payload.model_dump_json(),
        headers={"Content-Type": "application/json"},
    )
    return SubmitResponse(status_code=resp.status_code, body=resp.text)
