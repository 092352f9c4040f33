"""Flash service for firmware flashing sessions."""

import functools
import logging
from collections.abc import Iterator
from contextlib import contextmanager

from flashdeck.config.models import DEFAULT_BAUD_RATE, UserConfigData
from flashdeck.core.errors import FlashdeckError, UserCancelledError
from flashdeck.core.structlog_logger import StructlogMixin
from flashdeck.flash.connection import DeviceConnection
from flashdeck.flash.orchestrator import FlashOrchestrator
from flashdeck.flash.segment_loader import BinarySegmentLoader
from flashdeck.models.device import SerialPortInfo
from flashdeck.models.firmware import FirmwareManifestEntry
from flashdeck.models.flash import FlashResult
from flashdeck.protocols import (
    BootloaderFactory,
    FlashEventSink,
    ManifestProtocol,
    TransportProtocol,
)


logger = logging.getLogger(__name__)


class FlashService(StructlogMixin):
    """Service for flashing, erasing and inspecting ESP32 boards.

    Each operation runs in its own device session: the board is connected at
    the start and always disconnected at the end, whatever happened.

    Attributes:
        transport: Serial transport owning the link
        bootloader_factory: Builds a bootloader client for an opened link
        manifest_adapter: Resolves firmware selection names
        segment_loader: Loads segment bytes
    """

    service_name = "FlashService"
    service_version = "1.0.0"

    def __init__(
        self,
        transport: TransportProtocol,
        bootloader_factory: BootloaderFactory,
        manifest_adapter: ManifestProtocol,
        segment_loader: BinarySegmentLoader | None = None,
        sink: FlashEventSink | None = None,
        progress_step: int = 1,
    ) -> None:
        super().__init__()
        self.transport = transport
        self.bootloader_factory = bootloader_factory
        self.manifest_adapter = manifest_adapter
        self.segment_loader = segment_loader or BinarySegmentLoader()
        self.sink = sink
        self.progress_step = progress_step
        logger.debug(
            "FlashService initialized with transport: %s, manifests: %s",
            type(self.transport).__name__,
            type(self.manifest_adapter).__name__,
        )

    def create_orchestrator(self) -> FlashOrchestrator:
        connection = DeviceConnection(
            self.transport, self.bootloader_factory, sink=self.sink
        )
        return FlashOrchestrator(
            connection,
            segment_loader=self.segment_loader,
            progress_step=self.progress_step,
        )

    @contextmanager
    def session(
        self,
        port: str | None = None,
        baud_rate: int = DEFAULT_BAUD_RATE,
        connect: bool = True,
    ) -> Iterator[FlashOrchestrator]:
        """Yield an orchestrator, connected unless ``connect`` is False.

        The session is always disconnected on exit.
        """
        orchestrator = self.create_orchestrator()
        try:
            if connect:
                orchestrator.connect(baud_rate=baud_rate, port=port)
            yield orchestrator
        finally:
            orchestrator.disconnect()

    def flash(
        self,
        selection: str,
        port: str | None = None,
        baud_rate: int = DEFAULT_BAUD_RATE,
    ) -> FlashResult:
        """Flash the firmware named ``selection`` to the board.

        Args:
            selection: Firmware selection name from the manifests
            port: Serial port, or None to auto-detect
            baud_rate: Baud rate for the bootloader session

        Returns:
            FlashResult with details of the flash operation
        """
        log = self.log_operation("flash", selection=selection, port=port)
        log.info("flash_started", baud_rate=baud_rate)
        result = FlashResult(success=True, firmware=selection)

        try:
            # Fail on unknown names before touching the board
            self.manifest_adapter.resolve(selection)

            with self.session(port, baud_rate) as orchestrator:
                chip = orchestrator.connection.chip
                result.chip = chip
                entry = self.manifest_adapter.resolve(
                    selection, chip_family=chip.chip_name if chip else None
                )
                result.firmware = entry.display_name()
                summary = orchestrator.program(entry)
        except FlashdeckError as e:
            result.add_failure(e)
            log.error("flash_failed", error=e.message, category=e.category.value)
            return result

        result.segments_written = summary.segments_written
        result.bytes_written = summary.bytes_written
        result.add_message(
            f"Flashed {entry.display_name()} ({summary.segments_written} parts, "
            f"{summary.bytes_written} bytes) in {summary.elapsed_seconds:.1f}s"
        )
        log.info(
            "flash_completed",
            segments=summary.segments_written,
            bytes=summary.bytes_written,
        )
        return result

    def erase(
        self,
        confirmed: bool,
        port: str | None = None,
        baud_rate: int = DEFAULT_BAUD_RATE,
    ) -> FlashResult:
        """Erase the whole flash of the board.

        An unconfirmed erase never touches the board and is reported as
        cancelled, not as a failure.
        """
        log = self.log_operation("erase", port=port)
        result = FlashResult(success=True)

        try:
            with self.session(port, baud_rate, connect=confirmed) as orchestrator:
                result.chip = orchestrator.connection.chip
                orchestrator.erase(confirmed=confirmed)
        except UserCancelledError:
            result.cancelled = True
            result.add_message("Erase cancelled")
            log.info("erase_cancelled")
            return result
        except FlashdeckError as e:
            result.add_failure(e)
            log.error("erase_failed", error=e.message, category=e.category.value)
            return result

        result.add_message("Flash erased")
        log.info("erase_completed")
        return result

    def chip_info(
        self, port: str | None = None, baud_rate: int = DEFAULT_BAUD_RATE
    ) -> FlashResult:
        """Connect to the board and report its chip identity."""
        result = FlashResult(success=True)
        try:
            with self.session(port, baud_rate) as orchestrator:
                result.chip = orchestrator.connection.chip
        except FlashdeckError as e:
            result.add_failure(e)
        return result

    def list_firmware(self) -> list[FirmwareManifestEntry]:
        return self.manifest_adapter.list_entries()

    def show_firmware(self, selection: str) -> FirmwareManifestEntry:
        return self.manifest_adapter.resolve(selection)

    def list_ports(self) -> list[SerialPortInfo]:
        return self.transport.list_ports()


def create_flash_service(
    user_config: UserConfigData | None = None,
    sink: FlashEventSink | None = None,
) -> FlashService:
    """Create a FlashService wired to pyserial, esptool and manifest files.

    Args:
        user_config: Settings to build adapters from; defaults when omitted
        sink: Receiver of operator log lines and progress events

    Returns:
        Configured FlashService instance
    """
    from flashdeck.adapters.esptool_adapter import create_esptool_bootloader
    from flashdeck.adapters.manifest_adapter import create_manifest_adapter
    from flashdeck.adapters.serial_adapter import create_serial_transport
    from flashdeck.flash.segment_loader import create_segment_loader

    config = user_config or UserConfigData()
    return FlashService(
        transport=create_serial_transport(),
        bootloader_factory=functools.partial(
            create_esptool_bootloader, connect_attempts=config.connect_attempts
        ),
        manifest_adapter=create_manifest_adapter(list(config.manifest_paths)),
        segment_loader=create_segment_loader(timeout=config.http_timeout),
        sink=sink,
        progress_step=config.progress_step,
    )


__all__ = ["FlashService", "create_flash_service"]
