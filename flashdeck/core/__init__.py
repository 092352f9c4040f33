from .errors import (
    ConfigError,
    DeviceBusyError,
    ErrorCategory,
    FlashdeckError,
    HandshakeError,
    InvalidSelectionError,
    ManifestError,
    ProtocolWriteError,
    SegmentFetchError,
    SegmentUnavailableError,
    TransportUnavailableError,
    UserCancelledError,
)
from .logging import setup_logging


__all__ = [
    "setup_logging",
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
]
