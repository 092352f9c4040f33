"""Flash orchestration: validate, load, write with progress, reset."""

import logging
import time
from collections.abc import Callable

from flashdeck.core.errors import (
    FlashdeckError,
    InvalidSelectionError,
    UserCancelledError,
)
from flashdeck.flash.connection import DeviceConnection
from flashdeck.flash.error_classifier import ErrorClassifier, FlashPhase
from flashdeck.flash.progress import ProgressAccumulator
from flashdeck.flash.segment_loader import BinarySegmentLoader
from flashdeck.models.device import ChipIdentity, ConnectionState
from flashdeck.models.firmware import (
    MAX_FLASH_OFFSET,
    FirmwareManifestEntry,
    FlashOptions,
    LoadedSegment,
)
from flashdeck.models.progress import FlashSummary, LogSeverity, ProgressEvent
from flashdeck.protocols import FlashEventSink


logger = logging.getLogger(__name__)

BANNER = "═" * 39


def format_kb(size: int) -> str:
    return f"{size / 1024:.1f}"


class FlashOrchestrator:
    """Drives one device session through connect, program, erase and disconnect.

    All mutating operations are mutually exclusive through the connection's
    state; an operation started while another one owns the session fails
    fast instead of waiting.
    """

    def __init__(
        self,
        connection: DeviceConnection,
        segment_loader: BinarySegmentLoader | None = None,
        classifier: ErrorClassifier | None = None,
        progress_step: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.connection = connection
        self.segment_loader = segment_loader or BinarySegmentLoader()
        self.classifier = classifier or connection.classifier
        self.progress_step = progress_step
        self._clock = clock

    @property
    def sink(self) -> FlashEventSink:
        return self.connection.sink

    @property
    def state(self) -> ConnectionState:
        return self.connection.state

    def connect(self, baud_rate: int = 115200, port: str | None = None) -> ChipIdentity:
        return self.connection.connect(baud_rate=baud_rate, port=port)

    def disconnect(self) -> None:
        self.connection.disconnect()

    def validate_selection(self, entry: FirmwareManifestEntry) -> None:
        """Check an entry before any I/O.

        Raises:
            DeviceBusyError: If another operation owns the session
            InvalidSelectionError: If not connected or the entry is unusable
        """
        self.connection.require_connected()
        if not entry.segments:
            raise InvalidSelectionError(
                f"Firmware '{entry.name}' has no parts to flash",
                context={"firmware": entry.name},
            )
        for index, segment in enumerate(entry.segments):
            if not 0 <= segment.flash_offset <= MAX_FLASH_OFFSET:
                raise InvalidSelectionError(
                    f"Part {index + 1} of '{entry.name}' has an invalid offset "
                    f"{segment.flash_offset:#x}",
                    context={"firmware": entry.name, "segment_index": index},
                )

    def program(self, entry: FirmwareManifestEntry) -> FlashSummary:
        """Write every segment of a firmware and restart the device.

        Either all segments are loaded and handed to the bootloader in one
        write, or nothing is written. The device is reset only on success.

        Raises:
            DeviceBusyError: If another operation owns the session
            InvalidSelectionError: If the selection or state is invalid
            SegmentUnavailableError: If a part could not be loaded
            ProtocolWriteError: If the bootloader failed while writing
            TransportUnavailableError: If the serial link was lost; the session
                is disconnected
        """
        self.validate_selection(entry)
        started = self._clock()
        segment_count = len(entry.segments)

        with self.connection.exclusive(ConnectionState.FLASHING) as bootloader:
            phase = FlashPhase.LOAD
            try:
                self.sink.log(BANNER)
                self.sink.log("STARTING PROGRAMMING")
                self.sink.log(BANNER)
                self.sink.log(f"Firmware: {entry.display_name()}")
                self.sink.log(f"Number of files: {segment_count}")

                self.sink.log("Loading files...")
                loaded = self._load_segments(entry)
                self.sink.log("All files loaded successfully", LogSeverity.SUCCESS)

                self.sink.log(BANNER)
                self.sink.log("Writing flash...")
                self.sink.log("DO NOT UNPLUG THE BOARD!", LogSeverity.WARNING)
                self.sink.log(BANNER)

                phase = FlashPhase.WRITE
                accumulator = ProgressAccumulator(
                    step=self.progress_step,
                    sizes=[segment.size for segment in loaded],
                )
                bootloader.write_segments(
                    loaded,
                    FlashOptions(),
                    self._progress_callback(accumulator, loaded),
                )
                for event in accumulator.finish(segment_count):
                    self._emit_progress(event, loaded)

                self.sink.log(BANNER)
                self.sink.log("PROGRAMMING COMPLETE!", LogSeverity.SUCCESS)
                self.sink.log(BANNER)

                phase = FlashPhase.RESET
                self.sink.log("Resetting the board...")
                self.connection.reset_device()
            except Exception as e:
                raise self._fail("PROGRAMMING ERROR", e, phase) from e

            bytes_written = sum(segment.size for segment in loaded)
            del loaded

        self.sink.log("The board restarts with the new firmware", LogSeverity.SUCCESS)
        self.sink.log("You can now unplug the board")
        summary = FlashSummary(
            name=entry.name,
            version=entry.version,
            segments_written=segment_count,
            bytes_written=bytes_written,
            elapsed_seconds=self._clock() - started,
        )
        logger.info(
            "Programmed %s (%d segments, %d bytes) in %.1fs",
            entry.display_name(),
            summary.segments_written,
            summary.bytes_written,
            summary.elapsed_seconds,
        )
        return summary

    def erase(self, *, confirmed: bool) -> None:
        """Erase the whole flash chip.

        Args:
            confirmed: Must be True; guards against accidental invocation

        Raises:
            UserCancelledError: If not confirmed (no state change)
            DeviceBusyError: If another operation owns the session
            InvalidSelectionError: If not connected
            ProtocolWriteError: If the bootloader failed while erasing
        """
        if not confirmed:
            self.sink.log("Erase cancelled")
            raise UserCancelledError("Erase was not confirmed")

        with self.connection.exclusive(ConnectionState.ERASING) as bootloader:
            try:
                self.sink.log(BANNER)
                self.sink.log("ERASING FLASH")
                self.sink.log(BANNER)
                self.sink.log("DO NOT UNPLUG THE BOARD!", LogSeverity.WARNING)
                self.sink.log("This can take up to 30 seconds...")

                bootloader.erase_all()
            except Exception as e:
                raise self._fail("ERASE ERROR", e, FlashPhase.ERASE) from e

            self.sink.log(BANNER)
            self.sink.log("FLASH ERASED SUCCESSFULLY!", LogSeverity.SUCCESS)
            self.sink.log(BANNER)
            self.sink.log("The board is now blank; you can flash a new firmware")

    def _load_segments(self, entry: FirmwareManifestEntry) -> list[LoadedSegment]:
        loaded: list[LoadedSegment] = []
        count = len(entry.segments)
        for index, segment in enumerate(entry.segments):
            self.sink.log(
                f"[{index + 1}/{count}] {segment.source_path} "
                f"@ 0x{segment.flash_offset:X}"
            )
            loaded_segment = self.segment_loader.load(segment)
            self.sink.log(
                f"✓ {loaded_segment.file_name} loaded "
                f"({format_kb(loaded_segment.size)} KB)",
                LogSeverity.SUCCESS,
            )
            loaded.append(loaded_segment)
        return loaded

    def _progress_callback(
        self, accumulator: ProgressAccumulator, loaded: list[LoadedSegment]
    ) -> Callable[[int, int, int], None]:
        def report(segment_index: int, bytes_written: int, bytes_total: int) -> None:
            for event in accumulator.update(segment_index, bytes_written, bytes_total):
                self._emit_progress(event, loaded)

        return report

    def _emit_progress(self, event: ProgressEvent, loaded: list[LoadedSegment]) -> None:
        self.sink.progress(event)
        count = len(loaded)
        name = (
            loaded[event.segment_index].file_name
            if 0 <= event.segment_index < count
            else f"part {event.segment_index + 1}"
        )
        self.sink.log(
            f"[{event.segment_index + 1}/{count}] {name}: {event.percent}% "
            f"({format_kb(event.bytes_written)}/{format_kb(event.bytes_total)} KB)",
            LogSeverity.PROGRESS,
        )

    def _fail(self, title: str, error: Exception, phase: FlashPhase) -> FlashdeckError:
        classification = self.classifier.classify(error, phase)
        logger.debug("%s during %s: %r", title, phase.value, error)
        self.sink.log(BANNER)
        self.sink.log(title, LogSeverity.ERROR)
        self.sink.log(BANNER)
        self.sink.log(f"Error: {classification.message}", LogSeverity.ERROR)
        if classification.hint:
            self.sink.log(classification.hint, LogSeverity.WARNING)
        if classification.link_lost:
            # The session cannot continue on a dead link
            logger.info("Serial link lost during %s, closing the session", phase.value)
            self.connection.disconnect()
        return classification.to_error()


__all__ = ["FlashOrchestrator", "format_kb"]
