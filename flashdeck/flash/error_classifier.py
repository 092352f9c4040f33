"""Classification of raw failures into actionable error categories.

This is the only place remediation hints are derived. Classification looks
at the exception type and at the phase of the operation that failed; it never
inspects message text.
"""

from dataclasses import dataclass
from enum import Enum

from flashdeck.core.errors import ErrorCategory, FlashdeckError, error_class_for


class FlashPhase(str, Enum):
    """Step of a session during which a failure happened."""

    OPEN_LINK = "open_link"
    HANDSHAKE = "handshake"
    LOAD = "load"
    WRITE = "write"
    ERASE = "erase"
    RESET = "reset"


_LINK_PHASES = frozenset({FlashPhase.OPEN_LINK, FlashPhase.HANDSHAKE})
_DEVICE_PHASES = frozenset({FlashPhase.WRITE, FlashPhase.ERASE, FlashPhase.RESET})

_HINTS: dict[ErrorCategory, str] = {
    ErrorCategory.TRANSPORT_UNAVAILABLE: (
        "Close Arduino IDE or any serial monitor using the port, then try again."
    ),
    ErrorCategory.HANDSHAKE_FAILED: (
        "Close any program using the serial port and make sure the board is "
        "in bootloader mode (hold BOOT while plugging it in)."
    ),
    ErrorCategory.SEGMENT_UNAVAILABLE: (
        "Check that the firmware .bin files listed in the manifest exist."
    ),
    ErrorCategory.PROTOCOL_WRITE_FAILED: (
        "Unplug the board, plug it back in, reconnect and try again."
    ),
    ErrorCategory.INVALID_SELECTION: (
        "Connect to the board first and choose a firmware with at least one part."
    ),
}

_LOAD_TRANSPORT_HINT = "Check your network connection to the firmware source."
_LINK_LOST_HINT = (
    "The serial link to the board was lost. Unplug the board, plug it back in, "
    "reconnect and try again."
)
_RESET_HINT = (
    "The firmware was written but the board did not restart; press its reset button."
)


@dataclass(frozen=True)
class Classification:
    """A failure mapped to a category, with the hint to show for it."""

    category: ErrorCategory
    message: str
    hint: str | None
    phase: FlashPhase

    @property
    def link_lost(self) -> bool:
        """True when the link failed under a running device operation."""
        return (
            self.category == ErrorCategory.TRANSPORT_UNAVAILABLE
            and self.phase in _DEVICE_PHASES
        )

    def to_error(self) -> FlashdeckError:
        """Build the category's exception carrying message and hint."""
        error_class = error_class_for(self.category)
        return error_class(
            self.message, hint=self.hint, context={"phase": self.phase.value}
        )


class ErrorClassifier:
    """Maps raw failures to the error taxonomy."""

    def classify(self, error: BaseException, phase: FlashPhase) -> Classification:
        category = self.categorize(error, phase)
        message = str(error) or type(error).__name__
        hint = self.hint_for(category, phase)
        if isinstance(error, FlashdeckError) and error.hint:
            hint = error.hint
        return Classification(category=category, message=message, hint=hint, phase=phase)

    def categorize(self, error: BaseException, phase: FlashPhase) -> ErrorCategory:
        if isinstance(error, FlashdeckError):
            return error.category

        if phase == FlashPhase.OPEN_LINK:
            return ErrorCategory.TRANSPORT_UNAVAILABLE

        if phase == FlashPhase.HANDSHAKE:
            if isinstance(error, OSError | TimeoutError):
                return ErrorCategory.TRANSPORT_UNAVAILABLE
            return ErrorCategory.HANDSHAKE_FAILED

        if phase == FlashPhase.LOAD:
            if isinstance(error, FileNotFoundError | PermissionError | IsADirectoryError):
                return ErrorCategory.SEGMENT_UNAVAILABLE
            if isinstance(error, ConnectionError | TimeoutError):
                return ErrorCategory.TRANSPORT_UNAVAILABLE

        if phase in _DEVICE_PHASES:
            # TimeoutError is an OSError subclass, so it is checked first
            if isinstance(error, TimeoutError):
                return ErrorCategory.PROTOCOL_WRITE_FAILED
            if isinstance(error, OSError):
                return ErrorCategory.TRANSPORT_UNAVAILABLE
            if phase == FlashPhase.RESET:
                return ErrorCategory.PROTOCOL_WRITE_FAILED

        if isinstance(error, ValueError):
            return ErrorCategory.INVALID_SELECTION

        return ErrorCategory.UNKNOWN

    def hint_for(self, category: ErrorCategory, phase: FlashPhase) -> str | None:
        if category == ErrorCategory.TRANSPORT_UNAVAILABLE and phase == FlashPhase.LOAD:
            return _LOAD_TRANSPORT_HINT
        if category == ErrorCategory.TRANSPORT_UNAVAILABLE and phase in _DEVICE_PHASES:
            return _LINK_LOST_HINT
        if category == ErrorCategory.PROTOCOL_WRITE_FAILED and phase == FlashPhase.RESET:
            return _RESET_HINT
        return _HINTS.get(category)


def classify_error(error: BaseException, phase: FlashPhase) -> Classification:
    """Classify with a default classifier."""
    return ErrorClassifier().classify(error, phase)


__all__ = ["Classification", "ErrorClassifier", "FlashPhase", "classify_error"]
