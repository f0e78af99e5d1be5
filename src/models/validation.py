"""Result models for the parse → sanitize → reparse pipeline.

A parse attempt never raises; it produces either a ParseSuccess carrying
the decoded JSON value or a ParseFailure carrying the syntax error. The
resolver wraps the final attempt in a Resolution together with the text
that should be shown to the user for editing.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Discriminator, Field, Tag


class ParseSuccess(BaseModel, frozen=True):
    """Strict JSON parse succeeded."""
    ok: Literal[True] = True
    value: Any                   # any JSON value, objects keep insertion order


class ParseFailure(BaseModel, frozen=True):
    """Strict JSON parse failed with a syntax error."""
    ok: Literal[False] = False
    error: str = Field(min_length=1)
    line: int = 0                # 1-based, 0 when unknown
    column: int = 0              # 1-based, 0 when unknown
    position: int = 0            # 0-based character offset


def _result_tag(data: Any) -> str:
    ok = data.get("ok") if isinstance(data, dict) else getattr(data, "ok", None)
    return "success" if ok is True else "failure"


# Discriminated on ok
ParseResult = Annotated[
    Union[Annotated[ParseSuccess, Tag("success")], Annotated[ParseFailure, Tag("failure")]],
    Discriminator(_result_tag),
]


class Resolution(BaseModel, frozen=True):
    """Outcome of resolving raw upstream text.

    display_text is canonical pretty-printed JSON when the result is a
    success, otherwise the sanitized (still broken) text for manual fixing.
    """
    display_text: str
    result: ParseResult
    sanitized: bool = False      # True when the first strict parse failed

    @property
    def submittable(self) -> bool:
        return self.result.ok


class SubmitPayload(BaseModel, frozen=True):
    """Body POSTed to the upstream API.

    data holds the accepted value serialized as a compact JSON string.
    """
    email: str = ""
    data: str


class SubmitResponse(BaseModel, frozen=True):
    """Raw upstream answer to a submission."""
    status_code: int
    body: str = ""
