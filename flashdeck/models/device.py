"""Device connection models."""

from enum import Enum

from pydantic import Field

from flashdeck.models.base import FlashdeckBaseModel


class ConnectionState(str, Enum):
    """Lifecycle states of a device session."""

    DISCONNECTED = "Disconnected"
    CONNECTING = "Connecting"
    CONNECTED = "Connected"
    FLASHING = "Flashing"
    ERASING = "Erasing"
    DISCONNECTING = "Disconnecting"

    @property
    def is_busy(self) -> bool:
        """True while an operation owns the session."""
        return self in _BUSY_STATES


_BUSY_STATES = frozenset(
    {
        ConnectionState.CONNECTING,
        ConnectionState.FLASHING,
        ConnectionState.ERASING,
        ConnectionState.DISCONNECTING,
    }
)


class ChipIdentity(FlashdeckBaseModel):
    """Identity of the chip reported by the bootloader handshake."""

    chip_name: str
    description: str | None = None
    features: list[str] = Field(default_factory=list)
    mac: str | None = None

    def summary(self) -> str:
        return self.description or self.chip_name


class SerialPortInfo(FlashdeckBaseModel):
    """A serial port visible on the host."""

    device: str
    description: str = ""
    vid: int | None = None
    pid: int | None = None
    serial_number: str | None = None
    likely_esp: bool = False

    @property
    def usb_id(self) -> str:
        if self.vid is None or self.pid is None:
            return ""
        return f"{self.vid:04X}:{self.pid:04X}"


__all__ = ["ChipIdentity", "ConnectionState", "SerialPortInfo"]
