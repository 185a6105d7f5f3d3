"""
Enumeration types for pong0.
"""

from enum import Enum


class LogLevel(Enum):
    """Logging severity levels."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _LEVEL_RANKS[self]


_LEVEL_RANKS = {
    LogLevel.DEBUG: 10,
    LogLevel.INFO: 20,
    LogLevel.WARN: 30,
    LogLevel.ERROR: 40,
}


class ErrorCode(Enum):
    """Stable error codes carried by every Pong0Error."""

    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    CANCELLED = "cancelled"
    ERROR_PAGE = "error_page"
    MISSING_ADDRESS = "missing_address"
    PARSE_FAILURE = "parse_failure"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"


class ExtractionSource(Enum):
    """Which strategy produced a field value."""

    SCRIPT = "script"
    SELECTOR = "selector"
    TITLE = "title"
