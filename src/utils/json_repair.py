"""Lenient JSON handling for text fetched from a misbehaving upstream.

Strict parse first; on failure apply a fixed set of textual repairs once
and parse again:
1. Remove trailing commas before } or ]
2. Quote bare object keys
3. Close an unterminated string by balancing double quotes

The repairs are regex heuristics, not a tokenizer. The key-quoting pass
can rewrite ``key:``-shaped text inside string literals (for example
``{"note": "a,b:c"}``); this is a known limitation.
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Callable
from typing import Any

from src.models.validation import ParseFailure, ParseResult, ParseSuccess, Resolution

logger = logging.getLogger(__name__)

TRAILING_COMMA = re.compile(r",\s*(?=[}\]])")
UNQUOTED_KEY = re.compile(r"([{,]\s*)([A-Za-z0-9_@$-]+)\s*:")


class InvalidJsonError(ValueError):
    """Raised at the edges when text that must be valid JSON is not."""

    def __init__(self, failure: ParseFailure):
        super().__init__(failure.error)
        self.failure = failure


class _RejectedConstant(ValueError):
    def __init__(self, name: str):
        super().__init__(f"Invalid JSON constant {name}")
        self.name = name


def _reject_constant(name: str) -> Any:
    # json.loads accepts NaN/Infinity by default; JSON does not
    raise _RejectedConstant(name)


def _finite_float(literal: str) -> float | None:
    # overflowing literals such as 1e400 decode as null so the value still serializes as JSON
    value = float(literal)
    if math.isfinite(value):
        return value
    return None


def _constant_offset(text: str, name: str) -> int:
    """Offset of the first occurrence of name outside a string literal."""
    in_str = False
    escape = False
    for i, ch in enumerate(text):
        if escape:
            escape = False
        elif in_str:
            if ch == "\\":
                escape = True
            elif ch == '"':
                in_str = False
        elif ch == '"':
            in_str = True
        elif text.startswith(name, i):
            return i
    return 0


def _failure(e: json.JSONDecodeError) -> ParseFailure:
    return ParseFailure(error=str(e), line=e.lineno, column=e.colno, position=e.pos)


def parse(text: str) -> ParseResult:
    """Strictly parse JSON text. Never raises; failures are returned."""
    try:
        value = json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)
    except json.JSONDecodeError as e:
        return _failure(e)
    except _RejectedConstant as e:
        return _failure(json.JSONDecodeError(str(e), text, _constant_offset(text, e.name)))
    except (ValueError, RecursionError) as e:
        return ParseFailure(error=str(e) or type(e).__name__)
    return ParseSuccess(value=value)


def remove_trailing_commas(text: str) -> str:
    return TRAILING_COMMA.sub("", text)


def quote_unquoted_keys(text: str) -> str:
    return UNQUOTED_KEY.sub(r'\1"\2":', text)


def close_unbalanced_quote(text: str) -> str:
    if text.count('"') % 2 == 1:
        return text + '"'
    return text


# Applied in order, exactly once.
REPAIR_PASSES: tuple[Callable[[str], str], ...] = (
    remove_trailing_commas,
    quote_unquoted_keys,
    close_unbalanced_quote,
)


def sanitize(text: str) -> str:
    """Apply the repair passes to text. The result may still be invalid."""
    for repair in REPAIR_PASSES:
        repaired = repair(text)
        if repaired != text:
            logger.debug("Repair pass %s changed the text", repair.__name__)
        text = repaired
    return text


def pretty_print(value: Any) -> str:
    """Serialize a JSON value with 2-space indentation, keys in insertion order."""
    return json.dumps(value, indent=2, ensure_ascii=False)


def resolve(raw_text: str) -> Resolution:
    """Parse raw text, falling back to one sanitize-and-reparse attempt.

    Only the second attempt's error is kept on failure, and the sanitized
    text becomes the display text so the user can finish the fix by hand.
    """
    first = parse(raw_text)
    if first.ok:
        return Resolution(display_text=pretty_print(first.value), result=first)

    logger.debug("Strict parse failed (%s), sanitizing", first.error)
    sanitized = sanitize(raw_text)
    second = parse(sanitized)
    if second.ok:
        logger.debug("Sanitized text parsed")
        return Resolution(display_text=pretty_print(second.value), result=second, sanitized=True)

    logger.debug("Sanitized text still invalid: %s", second.error)
    return Resolution(display_text=sanitized, result=second, sanitized=True)


def unwrap_value(result: ParseResult) -> Any:
    """Return the parsed value, or raise InvalidJsonError for a failure."""
    if not result.ok:
        raise InvalidJsonError(result)
    return result.value
