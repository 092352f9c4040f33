"""Device connection lifecycle: open, handshake, exclusive use and teardown."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from flashdeck.core.errors import DeviceBusyError, InvalidSelectionError
from flashdeck.flash.error_classifier import ErrorClassifier, FlashPhase
from flashdeck.flash.sinks import LoggingEventSink
from flashdeck.models.device import ChipIdentity, ConnectionState
from flashdeck.models.progress import LogSeverity
from flashdeck.protocols import (
    BootloaderFactory,
    BootloaderProtocol,
    FlashEventSink,
    TransportProtocol,
)


logger = logging.getLogger(__name__)

EXCLUSIVE_STATES = frozenset({ConnectionState.FLASHING, ConnectionState.ERASING})


class DeviceConnection:
    """Owns the single device link of a session and its ConnectionState."""

    def __init__(
        self,
        transport: TransportProtocol,
        bootloader_factory: BootloaderFactory,
        sink: FlashEventSink | None = None,
        classifier: ErrorClassifier | None = None,
    ) -> None:
        self.transport = transport
        self.bootloader_factory = bootloader_factory
        self.sink = sink or LoggingEventSink()
        self.classifier = classifier or ErrorClassifier()
        self._state = ConnectionState.DISCONNECTED
        self._bootloader: BootloaderProtocol | None = None
        self._link: Any = None
        self.chip: ChipIdentity | None = None
        self.baud_rate: int | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def bootloader(self) -> BootloaderProtocol:
        """The live bootloader client.

        Raises:
            InvalidSelectionError: If no handshake has completed
        """
        if self._bootloader is None or self.chip is None:
            raise InvalidSelectionError("Not connected to a device")
        return self._bootloader

    def _set_state(self, state: ConnectionState) -> None:
        if state != self._state:
            logger.debug("Connection state %s -> %s", self._state.value, state.value)
            self._state = state

    def connect(self, baud_rate: int = 115200, port: str | None = None) -> ChipIdentity:
        """Open the link and identify the chip.

        Args:
            baud_rate: Baud rate requested for the bootloader session
            port: Serial port, or None to auto-detect

        Returns:
            Identity of the connected chip

        Raises:
            DeviceBusyError: If another operation owns the session
            TransportUnavailableError: If the link could not be opened
            HandshakeError: If the bootloader did not answer
        """
        if self._state == ConnectionState.CONNECTED and self.chip is not None:
            logger.info("Already connected to %s", self.chip.chip_name)
            return self.chip
        if self._state != ConnectionState.DISCONNECTED:
            raise DeviceBusyError(
                f"Cannot connect while {self._state.value.lower()}",
                context={"state": self._state.value},
            )

        self._set_state(ConnectionState.CONNECTING)
        phase = FlashPhase.OPEN_LINK
        try:
            self.sink.log("Selecting serial port...")
            self._link = self.transport.open(port)

            self.sink.log(f"Connecting at {baud_rate} baud...")
            phase = FlashPhase.HANDSHAKE
            self._bootloader = self.bootloader_factory(self._link, baud_rate)

            self.sink.log("Detecting chip...")
            chip = self._bootloader.handshake()
        except Exception as e:
            classification = self.classifier.classify(e, phase)
            logger.debug("Connect failed during %s: %s", phase.value, e)
            self._release_link()
            self._set_state(ConnectionState.DISCONNECTED)
            self.sink.log(f"Connection error: {classification.message}", LogSeverity.ERROR)
            if classification.hint:
                self.sink.log(classification.hint, LogSeverity.WARNING)
            raise classification.to_error() from e
        except BaseException:
            # Interrupted, e.g. Ctrl-C during esptool connect retries
            self._release_link()
            self._set_state(ConnectionState.DISCONNECTED)
            raise

        self.chip = chip
        self.baud_rate = baud_rate
        self._set_state(ConnectionState.CONNECTED)
        self.sink.log("Connected successfully!", LogSeverity.SUCCESS)
        self.sink.log(f"Chip detected: {chip.summary()}", LogSeverity.SUCCESS)
        if chip.mac:
            self.sink.log(f"MAC Address: {chip.mac}", LogSeverity.SUCCESS)
        return chip

    def disconnect(self) -> None:
        """Reset the device into its firmware and release the link.

        Every step is attempted even if an earlier one fails; the session
        always ends Disconnected.
        """
        if self._state == ConnectionState.DISCONNECTING:
            return

        was_connected = self._bootloader is not None
        self._set_state(ConnectionState.DISCONNECTING)
        try:
            if was_connected:
                self.sink.log("Disconnecting...")
            if self._bootloader is not None:
                try:
                    self._bootloader.reset_device()
                except Exception as e:
                    logger.warning("Device reset during disconnect failed: %s", e)
                    self.sink.log(f"Reset failed: {e}", LogSeverity.WARNING)
            self._release_link()
        finally:
            self.chip = None
            self.baud_rate = None
            self._set_state(ConnectionState.DISCONNECTED)

        if was_connected:
            self.sink.log("Disconnected", LogSeverity.SUCCESS)

    def reset_device(self) -> None:
        """Hard-reset the device so it runs the firmware currently in flash."""
        self.bootloader.reset_device()

    @contextmanager
    def exclusive(self, state: ConnectionState) -> Iterator[BootloaderProtocol]:
        """Hold the session in ``state`` for the duration of an operation.

        Raises:
            DeviceBusyError: If another operation owns the session
            InvalidSelectionError: If not connected
        """
        if state not in EXCLUSIVE_STATES:
            raise ValueError(f"{state.value} is not an exclusive operation state")
        self.require_connected()

        bootloader = self.bootloader
        self._set_state(state)
        try:
            yield bootloader
        finally:
            # A teardown inside the operation wins over returning to Connected
            if self._state == state:
                self._set_state(ConnectionState.CONNECTED)

    def require_connected(self) -> None:
        """Fail fast unless the session is idle and connected."""
        if self._state.is_busy:
            raise DeviceBusyError(
                f"Device is busy ({self._state.value.lower()})",
                context={"state": self._state.value},
            )
        if self._state != ConnectionState.CONNECTED:
            raise InvalidSelectionError(
                "Not connected to a device", context={"state": self._state.value}
            )

    def _release_link(self) -> None:
        bootloader, self._bootloader = self._bootloader, None
        if bootloader is not None:
            try:
                bootloader.close()
            except Exception as e:
                logger.warning("Closing bootloader client failed: %s", e)
        self._link = None
        try:
            self.transport.close()
        except Exception as e:
            logger.warning("Releasing serial link failed: %s", e)


__all__ = ["DeviceConnection"]
