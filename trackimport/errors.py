"""Error codes and error handling utilities for TrackImport."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes for TrackImport operations."""

    # File system errors
    FILE_NOT_FOUND = auto()
    FILE_ACCESS_DENIED = auto()
    FILE_LOCKED = auto()

    # Tag errors
    TAG_READ_FAILED = auto()
    TAG_WRITE_FAILED = auto()

    # Network errors
    NETWORK_TIMEOUT = auto()
    NETWORK_UNAVAILABLE = auto()
    NETWORK_AUTH_FAILED = auto()
    NETWORK_NOT_FOUND = auto()
    NETWORK_RATE_LIMITED = auto()
    NETWORK_SERVER_ERROR = auto()

    # Response errors
    RESPONSE_UNPARSEABLE = auto()

    # Operation errors
    OPERATION_CANCELLED = auto()
    OPERATION_FAILED = auto()

    # Configuration errors
    CONFIG_INVALID = auto()
    CONFIG_MISSING = auto()
    CONFIG_PERMISSION_DENIED = auto()


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.FILE_NOT_FOUND: "The file was not found. It may have been moved or deleted.",
    ErrorCode.FILE_ACCESS_DENIED: "Access denied. Check file permissions or if the file is read-only.",
    ErrorCode.FILE_LOCKED: "The file is locked. It may be open in another program.",

    ErrorCode.TAG_READ_FAILED: "Failed to read tags. The file format may not be supported.",
    ErrorCode.TAG_WRITE_FAILED: "Failed to write tags. The file may be locked or read-only.",

    ErrorCode.NETWORK_TIMEOUT: "Network request timed out. Check your internet connection.",
    ErrorCode.NETWORK_UNAVAILABLE: "Network unavailable. Check your internet connection.",
    ErrorCode.NETWORK_AUTH_FAILED: "Authentication failed. Check the server token in the settings.",
    ErrorCode.NETWORK_NOT_FOUND: "The server did not find the requested resource.",
    ErrorCode.NETWORK_RATE_LIMITED: "Rate limited. Please wait a moment and try again.",
    ErrorCode.NETWORK_SERVER_ERROR: "The server reported an error. Try again later or use another server.",

    ErrorCode.RESPONSE_UNPARSEABLE: "The server response could not be understood.",

    ErrorCode.OPERATION_CANCELLED: "Operation was cancelled by user.",
    ErrorCode.OPERATION_FAILED: "Operation failed. See details for more information.",

    ErrorCode.CONFIG_INVALID: "Configuration is invalid. Defaults are used instead.",
    ErrorCode.CONFIG_MISSING: "Configuration file not found. Using defaults.",
    ErrorCode.CONFIG_PERMISSION_DENIED: "Cannot save configuration. Check folder permissions.",
}


@dataclass
class TrackImportError(Exception):
    """Base exception for TrackImport with error code and context."""

    code: ErrorCode
    message: str = ""
    path: Path | None = None
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = ERROR_MESSAGES.get(self.code, "An unexpected error occurred.")
        if not self.suggestion and self.code in ERROR_MESSAGES:
            self.suggestion = ERROR_MESSAGES[self.code]

    def __str__(self) -> str:
        parts = [self.message]
        if self.path:
            parts.append(f"\nFile: {self.path}")
        if self.details:
            details_str = " | ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"\nDetails: {details_str}")
        return "".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "code": self.code.name,
            "message": self.message,
            "path": str(self.path) if self.path else None,
            "details": self.details,
            "suggestion": self.suggestion,
        }


def classify_exception(exc: Exception, path: Path | None = None) -> TrackImportError:
    """Classify a generic exception into a TrackImportError with appropriate code."""
    if isinstance(exc, TrackImportError):
        return exc
    exc_name = type(exc).__name__
    exc_str = str(exc).lower()

    # File system errors
    if "FileNotFoundError" in exc_name or "no such file" in exc_str:
        return TrackImportError(ErrorCode.FILE_NOT_FOUND, path=path, details={"original": exc_str})
    if "PermissionError" in exc_name or "access is denied" in exc_str or "permission denied" in exc_str:
        return TrackImportError(ErrorCode.FILE_ACCESS_DENIED, path=path, details={"original": exc_str})
    if "locked" in exc_str or "in use" in exc_str:
        return TrackImportError(ErrorCode.FILE_LOCKED, path=path, details={"original": exc_str})

    # Network errors
    if "timeout" in exc_str or "timed out" in exc_str:
        return TrackImportError(ErrorCode.NETWORK_TIMEOUT, details={"original": exc_str})
    if "401" in exc_str or "403" in exc_str or "unauthorized" in exc_str or "authentication" in exc_str:
        return TrackImportError(ErrorCode.NETWORK_AUTH_FAILED, details={"original": exc_str})
    if "404" in exc_str or "not found" in exc_str:
        return TrackImportError(ErrorCode.NETWORK_NOT_FOUND, details={"original": exc_str})
    if "429" in exc_str or "rate limit" in exc_str:
        return TrackImportError(ErrorCode.NETWORK_RATE_LIMITED, details={"original": exc_str})
    if "http error 5" in exc_str:
        return TrackImportError(ErrorCode.NETWORK_SERVER_ERROR, details={"original": exc_str})
    if (
        "URLError" in exc_name
        or "network" in exc_str
        or "connection" in exc_str
        or "unreachable" in exc_str
        or "name or service not known" in exc_str
    ):
        return TrackImportError(ErrorCode.NETWORK_UNAVAILABLE, details={"original": exc_str})

    # Response errors
    if "JSONDecodeError" in exc_name or "ParseError" in exc_name or "YAMLError" in exc_name:
        return TrackImportError(ErrorCode.RESPONSE_UNPARSEABLE, path=path, details={"original": exc_str})

    # Default
    return TrackImportError(
        ErrorCode.OPERATION_FAILED,
        message=f"{exc_name}: {exc}",
        path=path,
        details={"original": exc_str},
    )


def format_error_for_user(error: TrackImportError | Exception) -> str:
    """Format an error as a one-line message with a suggestion."""
    if isinstance(error, TrackImportError):
        parts = [error.message]
        if error.suggestion and error.suggestion != error.message:
            parts.append(f" {error.suggestion}")
        if error.path:
            parts.append(f" (File: {error.path.name})")
        return "".join(parts)

    classified = classify_exception(error)
    return format_error_for_user(classified)
