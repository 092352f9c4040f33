"""Tests for FlashOrchestrator."""

from unittest.mock import Mock, call

import pytest
import serial

from flashdeck.core.errors import (
    DeviceBusyError,
    ErrorCategory,
    InvalidSelectionError,
    ProtocolWriteError,
    SegmentUnavailableError,
    TransportUnavailableError,
    UserCancelledError,
)
from flashdeck.flash.orchestrator import FlashOrchestrator, format_kb
from flashdeck.models.device import ConnectionState
from flashdeck.models.firmware import FirmwareManifestEntry, FlashOptions, Segment
from flashdeck.models.progress import LogSeverity
from flashdeck.protocols import FlashEventSink


def simulate_write(segments, options, progress):
    for index, segment in enumerate(segments):
        for written in (0, segment.size // 2, segment.size):
            progress(index, written, segment.size)


class TestProgram:
    """Test programming a firmware."""

    def test_program_writes_all_segments_then_resets_once(
        self, orchestrator, two_part_entry, mock_bootloader, mock_segment_loader
    ):
        """Both segments go to the bootloader in order, followed by one reset."""
        mock_bootloader.write_segments.side_effect = simulate_write

        summary = orchestrator.program(two_part_entry)

        mock_bootloader.write_segments.assert_called_once()
        segments, options, _ = mock_bootloader.write_segments.call_args.args
        assert [s.flash_offset for s in segments] == [0x0, 0x10000]
        assert options == FlashOptions()
        mock_bootloader.reset_device.assert_called_once()
        assert mock_segment_loader.load.call_count == 2
        assert summary.segments_written == 2
        assert summary.bytes_written == 8192
        assert summary.name == "Demo"
        assert orchestrator.state == ConnectionState.CONNECTED

    def test_reset_follows_write(self, orchestrator, two_part_entry, mock_bootloader):
        """The device is reset only after the write returned."""
        orchestrator.program(two_part_entry)

        names = [c[0] for c in mock_bootloader.method_calls]
        assert names.index("write_segments") < names.index("reset_device")

    def test_progress_events_per_segment(self, orchestrator, two_part_entry, mock_bootloader, sink):
        """Each segment reports 0% and 100% and a progress line per event."""
        mock_bootloader.write_segments.side_effect = simulate_write

        orchestrator.program(two_part_entry)

        assert [(e.segment_index, e.percent) for e in sink.events] == [
            (0, 0),
            (0, 50),
            (0, 100),
            (1, 0),
            (1, 50),
            (1, 100),
        ]
        progress_lines = sink.messages(LogSeverity.PROGRESS)
        assert len(progress_lines) == len(sink.events)
        assert progress_lines[2] == "[1/2] bootloader.bin: 100% (4.0/4.0 KB)"

    def test_silent_bootloader_still_reports_completion(
        self, orchestrator, two_part_entry, sink
    ):
        """A bootloader that never reports progress still yields 0% and 100%."""
        orchestrator.program(two_part_entry)

        assert [e.percent for e in sink.events] == [0, 100, 0, 100]
        assert [e.bytes_total for e in sink.events] == [4096, 4096, 4096, 4096]
        assert sink.messages(LogSeverity.PROGRESS)[0] == "[1/2] bootloader.bin: 0% (0.0/4.0 KB)"

    def test_load_failure_writes_nothing(
        self, orchestrator, two_part_entry, mock_bootloader, mock_segment_loader
    ):
        """A missing second part aborts before any write or reset."""
        loaded = mock_segment_loader.load.side_effect

        def fail_second(segment):
            if segment.source_path == "app.bin":
                raise SegmentUnavailableError("Firmware part not found: app.bin")
            return loaded(segment)

        mock_segment_loader.load.side_effect = fail_second

        with pytest.raises(SegmentUnavailableError) as exc:
            orchestrator.program(two_part_entry)

        assert exc.value.category == ErrorCategory.SEGMENT_UNAVAILABLE
        assert "exist" in exc.value.hint
        mock_bootloader.write_segments.assert_not_called()
        mock_bootloader.reset_device.assert_not_called()
        assert orchestrator.state == ConnectionState.CONNECTED

    def test_write_failure(self, orchestrator, two_part_entry, mock_bootloader, sink):
        """A bootloader failure is ProtocolWriteFailed, no reset, back to Connected."""
        mock_bootloader.write_segments.side_effect = ProtocolWriteError("Write timeout")

        with pytest.raises(ProtocolWriteError) as exc:
            orchestrator.program(two_part_entry)

        assert exc.value.hint
        mock_bootloader.reset_device.assert_not_called()
        assert orchestrator.state == ConnectionState.CONNECTED
        assert "PROGRAMMING ERROR" in sink.messages(LogSeverity.ERROR)

    def test_link_lost_during_write_ends_session(
        self, orchestrator, two_part_entry, mock_bootloader, mock_transport, sink
    ):
        """A serial error mid-write disconnects and asks to reseat the board."""
        mock_bootloader.write_segments.side_effect = serial.SerialException(
            "device disconnected"
        )

        with pytest.raises(TransportUnavailableError) as exc:
            orchestrator.program(two_part_entry)

        assert "Unplug the board" in exc.value.hint
        assert "Arduino IDE" not in exc.value.hint
        assert orchestrator.state == ConnectionState.DISCONNECTED
        mock_transport.close.assert_called_once()
        assert "Disconnected" in sink.messages(LogSeverity.SUCCESS)

        with pytest.raises(InvalidSelectionError):
            orchestrator.program(two_part_entry)
        mock_bootloader.write_segments.assert_called_once()

    def test_reset_failure_is_reported(self, orchestrator, two_part_entry, mock_bootloader):
        """A reset failure after a good write names the reset in its hint."""
        mock_bootloader.reset_device.side_effect = RuntimeError("RTS stuck")

        with pytest.raises(ProtocolWriteError) as exc:
            orchestrator.program(two_part_entry)

        assert "reset button" in exc.value.hint

    def test_program_when_disconnected(self, connection, mock_segment_loader, two_part_entry):
        """Programming without a connection is an invalid selection."""
        orchestrator = FlashOrchestrator(connection, segment_loader=mock_segment_loader)

        with pytest.raises(InvalidSelectionError):
            orchestrator.program(two_part_entry)
        mock_segment_loader.load.assert_not_called()

    def test_program_while_flashing_is_busy(
        self, orchestrator, two_part_entry, mock_bootloader
    ):
        """A second program call during a write is rejected without I/O."""
        seen = []

        def reenter(segments, options, progress):
            with pytest.raises(DeviceBusyError):
                orchestrator.program(two_part_entry)
            seen.append(orchestrator.state)

        mock_bootloader.write_segments.side_effect = reenter

        orchestrator.program(two_part_entry)

        assert seen == [ConnectionState.FLASHING]
        mock_bootloader.write_segments.assert_called_once()

    def test_entry_without_segments(self, orchestrator):
        """An entry with no parts is rejected before any I/O."""
        entry = FirmwareManifestEntry(key="empty", name="Empty")

        with pytest.raises(InvalidSelectionError, match="no parts"):
            orchestrator.program(entry)
        assert orchestrator.state == ConnectionState.CONNECTED

    def test_log_lines(self, orchestrator, two_part_entry, sink):
        """Operator log lines describe the firmware and each part."""
        orchestrator.program(two_part_entry)

        messages = sink.messages()
        assert "Firmware: Demo v1.2.0" in messages
        assert "[2/2] app.bin @ 0x10000" in messages
        assert "✓ app.bin loaded (4.0 KB)" in messages
        assert "DO NOT UNPLUG THE BOARD!" in sink.messages(LogSeverity.WARNING)


class TestErase:
    """Test erasing the flash."""

    def test_erase_confirmed(self, orchestrator, mock_bootloader, sink):
        """A confirmed erase calls the bootloader once and returns to Connected."""
        orchestrator.erase(confirmed=True)

        mock_bootloader.erase_all.assert_called_once()
        assert orchestrator.state == ConnectionState.CONNECTED
        assert "This can take up to 30 seconds..." in sink.messages()

    def test_erase_not_confirmed(self, orchestrator, mock_bootloader, sink):
        """An unconfirmed erase is cancelled without any state change."""
        with pytest.raises(UserCancelledError):
            orchestrator.erase(confirmed=False)

        mock_bootloader.erase_all.assert_not_called()
        assert orchestrator.state == ConnectionState.CONNECTED
        assert sink.messages()[-1] == "Erase cancelled"
        assert not sink.messages(LogSeverity.ERROR)

    def test_erase_failure(self, orchestrator, mock_bootloader):
        """An erase timeout is ProtocolWriteFailed."""
        mock_bootloader.erase_all.side_effect = TimeoutError("erase timed out")

        with pytest.raises(ProtocolWriteError):
            orchestrator.erase(confirmed=True)
        assert orchestrator.state == ConnectionState.CONNECTED

    def test_link_lost_during_erase_ends_session(self, orchestrator, mock_bootloader):
        mock_bootloader.erase_all.side_effect = OSError("port vanished")

        with pytest.raises(TransportUnavailableError):
            orchestrator.erase(confirmed=True)
        assert orchestrator.state == ConnectionState.DISCONNECTED

    def test_erase_when_disconnected(self, connection):
        """Erasing requires a connection."""
        with pytest.raises(InvalidSelectionError):
            FlashOrchestrator(connection).erase(confirmed=True)


class TestSessionDelegation:
    """Test connect and disconnect pass through to the connection."""

    def test_connect_and_disconnect(self, connection, mock_transport):
        orchestrator = FlashOrchestrator(connection, segment_loader=Mock())

        orchestrator.connect(baud_rate=921600, port="COM3")
        assert orchestrator.state == ConnectionState.CONNECTED
        orchestrator.disconnect()

        assert orchestrator.state == ConnectionState.DISCONNECTED
        assert mock_transport.method_calls[0] == call.open("COM3")

    def test_sink_is_the_connection_sink(self, connection, sink):
        orchestrator = FlashOrchestrator(connection, segment_loader=Mock())

        assert orchestrator.sink is sink
        assert isinstance(orchestrator.sink, FlashEventSink)


def test_offsets_are_validated_by_model():
    """Offsets outside the 32-bit address space never reach the orchestrator."""
    with pytest.raises(ValueError):
        Segment(path="app.bin", offset=0x1_0000_0000)


def test_format_kb():
    assert format_kb(1536) == "1.5"
