"""Serial adapter for port discovery and link ownership."""

import logging
from typing import Any

import serial
from serial.tools import list_ports

from flashdeck.core.errors import TransportUnavailableError
from flashdeck.models.device import SerialPortInfo


logger = logging.getLogger(__name__)

ROM_BAUD_RATE = 115200

# USB-to-UART bridges found on ESP32 boards, plus Espressif's native USB
KNOWN_ESP_VIDS: dict[int, str] = {
    0x10C4: "Silicon Labs CP210x",
    0x1A86: "WCH CH340/CH9102",
    0x0403: "FTDI",
    0x303A: "Espressif USB JTAG/serial",
}


class SerialTransportImpl:
    """Implementation of TransportProtocol on top of pyserial."""

    def __init__(self, timeout: float = 1.0, exclusive: bool = True) -> None:
        self.timeout = timeout
        self.exclusive = exclusive
        self._serial: serial.Serial | None = None
        logger.debug("SerialTransport initialized")

    @property
    def is_open(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def list_ports(self) -> list[SerialPortInfo]:
        """List serial ports, likely ESP boards first."""
        ports = [
            SerialPortInfo(
                device=port.device,
                description=port.description or "",
                vid=port.vid,
                pid=port.pid,
                serial_number=port.serial_number,
                likely_esp=port.vid in KNOWN_ESP_VIDS,
            )
            for port in list_ports.comports()
        ]
        ports.sort(key=lambda p: (not p.likely_esp, p.device))
        logger.debug("Found %d serial ports", len(ports))
        return ports

    def open(self, port: str | None = None) -> Any:
        """Open the serial link.

        Args:
            port: Port name, or None to pick the first likely ESP board

        Returns:
            The opened serial.Serial instance

        Raises:
            TransportUnavailableError: If no port is found or it cannot be opened
        """
        if self._serial is not None:
            self.close()

        if port is None:
            port = self._auto_detect_port()

        logger.info("Opening serial port %s", port)
        try:
            self._serial = serial.Serial(
                port,
                baudrate=ROM_BAUD_RATE,
                timeout=self.timeout,
                exclusive=self.exclusive,
            )
        except (serial.SerialException, OSError) as e:
            raise TransportUnavailableError(
                f"Failed to open serial port {port}: {e}",
                context={"port": port},
            ) from e
        return self._serial

    def close(self) -> None:
        link, self._serial = self._serial, None
        if link is None:
            return
        logger.debug("Closing serial port %s", link.port)
        link.close()

    def _auto_detect_port(self) -> str:
        ports = self.list_ports()
        if not ports:
            raise TransportUnavailableError(
                "No serial port found",
                hint="Plug the board in with a data-capable USB cable.",
            )
        chosen = ports[0]
        if not chosen.likely_esp:
            logger.warning(
                "No known ESP32 USB bridge found, using %s (%s)",
                chosen.device,
                chosen.description,
            )
        return chosen.device


def create_serial_transport(
    timeout: float = 1.0, exclusive: bool = True
) -> SerialTransportImpl:
    """Create a serial transport instance."""
    return SerialTransportImpl(timeout=timeout, exclusive=exclusive)


__all__ = ["KNOWN_ESP_VIDS", "SerialTransportImpl", "create_serial_transport"]
