"""Bootloader adapter backed by esptool."""

import logging
from collections.abc import Callable, Sequence
from typing import Any, ClassVar

from esptool.cmds import (
    attach_flash,
    detect_chip,
    erase_flash,
    reset_chip,
    run_stub,
    write_flash,
)
from esptool.logger import TemplateLogger, log
from esptool.util import FatalError

from flashdeck.core.errors import (
    HandshakeError,
    InvalidSelectionError,
    ProtocolWriteError,
)
from flashdeck.models.device import ChipIdentity
from flashdeck.models.firmware import FlashOptions, LoadedSegment
from flashdeck.protocols.bootloader_protocol import WriteProgressCallback


logger = logging.getLogger(__name__)

ROM_BAUD_RATE = 115200
DEFAULT_CONNECT_ATTEMPTS = 7


class EsptoolLogBridge(TemplateLogger):
    """Routes esptool's console output into python logging.

    esptool swaps the class of its global logger instead of replacing the
    instance, so all state lives on the class.
    """

    progress_callback: ClassVar[Callable[[int, int], None] | None] = None

    def print(self, *args: Any, **kwargs: Any) -> None:
        message = kwargs.get("sep", " ").join(str(arg) for arg in args)
        if message:
            logger.debug("esptool: %s", message)

    def note(self, message: str) -> None:
        logger.debug("esptool note: %s", message)

    def warning(self, message: str) -> None:
        logger.debug("esptool warning: %s", message)

    def error(self, message: str) -> None:
        logger.debug("esptool error: %s", message)

    def stage(self, finish: bool = False) -> None:
        pass

    def progress_bar(
        self,
        cur_iter: int,
        total_iters: int,
        prefix: str = "",
        suffix: str = "",
        bar_length: int = 30,
    ) -> None:
        callback = EsptoolLogBridge.progress_callback
        if callback is not None:
            callback(cur_iter, total_iters)

    def set_verbosity(self, verbosity: str) -> None:
        pass


_bridge_installed = False


def install_log_bridge() -> None:
    """Install EsptoolLogBridge as esptool's logger (once per process)."""
    global _bridge_installed
    if not _bridge_installed:
        log.set_logger(EsptoolLogBridge())
        _bridge_installed = True


def format_mac(mac: Sequence[int] | bytes | None) -> str | None:
    if not mac:
        return None
    return ":".join(f"{octet:02x}" for octet in mac)


class EsptoolBootloader:
    """Implementation of BootloaderProtocol using esptool's command API."""

    def __init__(
        self,
        link: Any,
        baud_rate: int = ROM_BAUD_RATE,
        connect_attempts: int = DEFAULT_CONNECT_ATTEMPTS,
        connect_mode: str = "default-reset",
    ) -> None:
        self.link = link
        self.baud_rate = baud_rate
        self.connect_attempts = connect_attempts
        self.connect_mode = connect_mode
        self._esp: Any = None
        install_log_bridge()

    @property
    def esp(self) -> Any:
        if self._esp is None:
            raise InvalidSelectionError("Bootloader handshake has not completed")
        return self._esp

    def handshake(self) -> ChipIdentity:
        """Detect the chip, load the flasher stub and attach the SPI flash.

        Raises:
            HandshakeError: If esptool could not synchronise with the chip
        """
        try:
            esp = detect_chip(
                port=self.link,
                baud=ROM_BAUD_RATE,
                connect_mode=self.connect_mode,
                connect_attempts=self.connect_attempts,
            )
            esp = run_stub(esp)
            if self.baud_rate != ROM_BAUD_RATE:
                esp.change_baud(self.baud_rate)
            attach_flash(esp)

            identity = ChipIdentity(
                chip_name=esp.CHIP_NAME,
                description=esp.get_chip_description(),
                features=list(esp.get_chip_features()),
                mac=format_mac(esp.read_mac()),
            )
        except FatalError as e:
            raise HandshakeError(f"Failed to connect to the chip: {e}") from e

        self._esp = esp
        logger.info("Handshake complete with %s", identity.chip_name)
        return identity

    def write_segments(
        self,
        segments: Sequence[LoadedSegment],
        options: FlashOptions,
        progress: WriteProgressCallback,
    ) -> None:
        """Write segments one by one, reporting progress in segment bytes.

        Raises:
            ProtocolWriteError: If esptool reports a failure
        """
        esp = self.esp
        for index, segment in enumerate(segments):
            size = segment.size

            def report(cur: int, total: int, index: int = index, size: int = size) -> None:
                written = size if total <= 0 else min(size, size * cur // total)
                progress(index, written, size)

            progress(index, 0, size)
            EsptoolLogBridge.progress_callback = report
            try:
                write_flash(
                    esp,
                    [(segment.flash_offset, segment.data)],
                    flash_freq=options.flash_freq,
                    flash_mode=options.flash_mode,
                    flash_size=options.flash_size,
                    erase_all=options.erase_all and index == 0,
                    compress=options.compress,
                )
            except FatalError as e:
                raise ProtocolWriteError(
                    f"Writing {segment.file_name} at {segment.flash_offset:#x} failed: {e}",
                    context={"segment_index": index},
                ) from e
            finally:
                EsptoolLogBridge.progress_callback = None
            progress(index, size, size)

    def erase_all(self) -> None:
        try:
            erase_flash(self.esp)
        except FatalError as e:
            raise ProtocolWriteError(f"Erasing flash failed: {e}") from e

    def reset_device(self) -> None:
        try:
            reset_chip(self.esp, "hard-reset")
        except FatalError as e:
            raise ProtocolWriteError(f"Resetting the board failed: {e}") from e

    def close(self) -> None:
        self._esp = None


def create_esptool_bootloader(
    link: Any,
    baud_rate: int = ROM_BAUD_RATE,
    connect_attempts: int = DEFAULT_CONNECT_ATTEMPTS,
) -> EsptoolBootloader:
    """Create an esptool-backed bootloader client for an opened link."""
    return EsptoolBootloader(link, baud_rate, connect_attempts=connect_attempts)


__all__ = [
    "EsptoolBootloader",
    "EsptoolLogBridge",
    "create_esptool_bootloader",
    "format_mac",
    "install_log_bridge",
]
