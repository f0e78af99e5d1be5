"""Editing session for a fetched JSON document.

Holds what a user sees while repairing an upstream payload: the original
response, the editable text, and the outcome of the last validation.
Sessions are single-owner objects and are not safe to share across threads.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.models.validation import ParseResult, Resolution, SubmitResponse
from src.tools.api_client import UpstreamError, fetch_raw, submit_text
from src.utils.json_repair import InvalidJsonError, parse, pretty_print, resolve

logger = logging.getLogger(__name__)


class EditorSession:
    """Fetch → review/edit → validate → submit workflow state."""

    def __init__(self, base_url: str | None = None, email: str | None = None,
                 client: httpx.Client | None = None):
        self.base_url = base_url
        self.email = email
        self.client = client
        self.original_raw = ""
        self.editable_text = ""
        self.parse_error: str | None = None
        self.parsed_value: Any = None
        self.parsed_ok = False

    def _apply(self, result: ParseResult) -> None:
        if result.ok:
            self.parsed_value = result.value
            self.parsed_ok = True
            self.parse_error = None
        else:
            self.parsed_value = None
            self.parsed_ok = False
            self.parse_error = result.error

    def load(self, raw: str) -> Resolution:
        """Resolve raw text and make its display text editable."""
        self.original_raw = raw
        resolution = resolve(raw)
        self.editable_text = resolution.display_text
        self._apply(resolution.result)
        if resolution.sanitized and resolution.result.ok:
            logger.info("Upstream JSON was malformed; repaired automatically")
        elif not resolution.result.ok:
            logger.info("Upstream JSON could not be repaired: %s", self.parse_error)
        return resolution

    def fetch(self) -> Resolution:
        """Fetch from the upstream API and load the response."""
        try:
            raw = fetch_raw(self.base_url, self.email, client=self.client)
        except UpstreamError as e:
            self.parse_error = str(e)
            raise
        return self.load(raw)

    def edit(self, text: str) -> None:
        self.editable_text = text

    def validate(self) -> ParseResult:
        """Parse the edited text; pretty-print it in place when valid."""
        result = parse(self.editable_text)
        self._apply(result)
        if result.ok:
            self.editable_text = pretty_print(result.value)
        else:
            logger.warning("Validation failed: %s", result.error)
        return result

    def submit(self) -> SubmitResponse:
        """Submit the edited text. Invalid text is refused before sending."""
        result = parse(self.editable_text)
        if not result.ok:
            self._apply(result)
            raise InvalidJsonError(result)
        return submit_text(self.editable_text, self.base_url, self.email, client=self.client)

    @property
    def status_line(self) -> str:
        if self.parse_error:
            return f"Parse error: {self.parse_error}"
        return "Format is Valid"
