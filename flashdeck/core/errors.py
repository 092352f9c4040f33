"""Exception hierarchy for flashdeck.

Every error raised by the flashing core carries an ``ErrorCategory`` so that
callers can act on the kind of failure without looking at message text.
"""

from enum import Enum
from typing import Any, ClassVar


class ErrorCategory(str, Enum):
    """Actionable failure categories surfaced to operators."""

    TRANSPORT_UNAVAILABLE = "TransportUnavailable"
    HANDSHAKE_FAILED = "HandshakeFailed"
    SEGMENT_UNAVAILABLE = "SegmentUnavailable"
    PROTOCOL_WRITE_FAILED = "ProtocolWriteFailed"
    INVALID_SELECTION = "InvalidSelection"
    USER_CANCELLED = "UserCancelled"
    UNKNOWN = "Unknown"


class FlashdeckError(Exception):
    """Base exception for all flashdeck errors."""

    category: ClassVar[ErrorCategory] = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.context = context or {}


class ConfigError(FlashdeckError):
    """Raised when user configuration cannot be loaded or is invalid."""


class InvalidSelectionError(FlashdeckError):
    """Raised when an operation is requested with invalid input or state."""

    category = ErrorCategory.INVALID_SELECTION


class DeviceBusyError(InvalidSelectionError):
    """Raised when another operation already owns the device session."""


class ManifestError(InvalidSelectionError):
    """Raised when a firmware manifest is missing or malformed."""


class TransportUnavailableError(FlashdeckError):
    """Raised when the serial link cannot be opened or is lost."""

    category = ErrorCategory.TRANSPORT_UNAVAILABLE


class HandshakeError(FlashdeckError):
    """Raised when the bootloader does not answer the handshake."""

    category = ErrorCategory.HANDSHAKE_FAILED


class SegmentUnavailableError(FlashdeckError):
    """Raised when a firmware segment source does not exist or is unreadable."""

    category = ErrorCategory.SEGMENT_UNAVAILABLE


class SegmentFetchError(FlashdeckError):
    """Raised when a segment source could not be reached over the network."""

    category = ErrorCategory.TRANSPORT_UNAVAILABLE


class ProtocolWriteError(FlashdeckError):
    """Raised when the bootloader fails while writing or erasing flash."""

    category = ErrorCategory.PROTOCOL_WRITE_FAILED


class UserCancelledError(FlashdeckError):
    """Raised when an operation gated on confirmation was not confirmed."""

    category = ErrorCategory.USER_CANCELLED


_CATEGORY_ERRORS: dict[ErrorCategory, type[FlashdeckError]] = {
    ErrorCategory.TRANSPORT_UNAVAILABLE: TransportUnavailableError,
    ErrorCategory.HANDSHAKE_FAILED: HandshakeError,
    ErrorCategory.SEGMENT_UNAVAILABLE: SegmentUnavailableError,
    ErrorCategory.PROTOCOL_WRITE_FAILED: ProtocolWriteError,
    ErrorCategory.INVALID_SELECTION: InvalidSelectionError,
    ErrorCategory.USER_CANCELLED: UserCancelledError,
    ErrorCategory.UNKNOWN: FlashdeckError,
}


def error_class_for(category: ErrorCategory) -> type[FlashdeckError]:
    """Return the exception class raised for a given category."""
    return _CATEGORY_ERRORS[category]


__all__ = [
    "ConfigError",
    "DeviceBusyError",
    "ErrorCategory",
    "FlashdeckError",
    "HandshakeError",
    "InvalidSelectionError",
    "ManifestError",
    "ProtocolWriteError",
    "SegmentFetchError",
    "SegmentUnavailableError",
    "TransportUnavailableError",
    "UserCancelledError",
    "error_class_for",
]
