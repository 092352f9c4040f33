"""Protocol definition for the serial transport capability."""

from typing import Any, Protocol, runtime_checkable

from flashdeck.models.device import SerialPortInfo


@runtime_checkable
class TransportProtocol(Protocol):
    """Protocol for opening and releasing a byte-stream link to a device."""

    def list_ports(self) -> list[SerialPortInfo]:
        """List serial ports visible on the host.

        Returns:
            Ports ordered with likely ESP boards first
        """
        ...

    def open(self, port: str | None = None) -> Any:
        """Open a link to the device.

        Args:
            port: Serial port name, or None to auto-detect a board

        Returns:
            The opened link object handed to the bootloader factory

        Raises:
            TransportUnavailableError: If no port is found or it cannot be opened
        """
        ...

    def close(self) -> None:
        """Release the link. Safe to call when nothing is open."""
        ...
