from __future__ import annotations


class CommentaryError(Exception):
    """Commentary generation failed; ``reason`` is a stable machine code."""

    MISSING_CREDENTIAL = "MISSING_CREDENTIAL"
    NETWORK_FAILURE = "NETWORK_FAILURE"
    RATE_LIMITED = "RATE_LIMITED"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    NO_MARKET_DATA = "NO_MARKET_DATA"

    def __init__(self, reason: str, message: str | None = None) -> None:
        super().__init__(message or reason)
        self.reason = reason
