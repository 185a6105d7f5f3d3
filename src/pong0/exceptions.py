"""
Exception classes for pong0.

All exceptions inherit from Pong0Error and carry a stable error code, a
human-readable message, and optional details for the CLI and server layers.
"""

from typing import Optional


class Pong0Error(Exception):
    """Base exception for all pong0 errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    @property
    def display_message(self) -> str:
        """Message prefixed with the failing query step, when one is recorded."""
        step = self.details.get("step")
        if step:
            return f"Step {step} failed: {self.message}"
        return self.message

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class InvalidInputError(Pong0Error):
    """Raised when a nonce or difficulty has the wrong shape."""

    pass


class NotFoundError(Pong0Error):
    """Raised when no proof-of-work counter exists below the iteration ceiling."""

    pass


class SolveCancelledError(Pong0Error):
    """Raised when a proof-of-work search is cancelled by the caller."""

    pass


class ErrorPageError(Pong0Error):
    """Raised when the service returned its error page instead of IP data."""

    pass


class MissingAddressError(Pong0Error):
    """Raised when a document parsed but carries no IP address."""

    pass


class ParseFailureError(Pong0Error):
    """Raised when a document is empty, undecodable, or not markup at all."""

    pass


class NetworkError(Pong0Error):
    """Raised when talking to the service fails (connect, timeout, HTTP status)."""

    pass
