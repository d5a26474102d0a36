"""Webhook reduction error types."""

from __future__ import annotations


class PayloadShapeError(LookupError):
    """Raised when a payload lacks a field its reducer requires.

    Reducers raise this internally; it never leaves the reduction layer as an
    exception. ``reduce_payload`` turns it into ``None`` and the dispatcher
    logs it as a shape mismatch.
    """

    def __init__(self, message: str, *, path: str) -> None:
        """Record the dotted path of the offending field."""
        self.path = path
        super().__init__(message)

    @classmethod
    def missing(cls, path: str) -> PayloadShapeError:
        """Return an error for an absent required field."""
        return cls(f"payload missing required field: {path}", path=path)

    @classmethod
    def wrong_type(cls, path: str, expected: str) -> PayloadShapeError:
        """Return an error for a required field of the wrong type."""
        message = f"payload field {path} has the wrong type (expected {expected})"
        return cls(message, path=path)
