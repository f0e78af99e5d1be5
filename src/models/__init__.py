from .validation import (
    ParseFailure,
    ParseResult,
    ParseSuccess,
    Resolution,
    SubmitPayload,
    SubmitResponse,
)

__all__ = [
    "ParseSuccess",
    "ParseFailure",
    "ParseResult",
    "Resolution",
    "SubmitPayload",
    "SubmitResponse",
]
