"""Tests for firmware, device and result models."""

import pytest
from pydantic import ValidationError

from flashdeck.core.errors import TransportUnavailableError
from flashdeck.models.device import ConnectionState, SerialPortInfo
from flashdeck.models.firmware import (
    FirmwareManifestEntry,
    FlashOptions,
    Segment,
    parse_flash_offset,
)
from flashdeck.models.flash import FlashResult


class TestParseFlashOffset:
    """Test flash offset parsing."""

    @pytest.mark.parametrize(
        "value, expected",
        [(0, 0), ("0x10000", 0x10000), ("0X8000", 0x8000), ("4096", 4096), (" 0xE000 ", 0xE000)],
    )
    def test_valid(self, value, expected):
        assert parse_flash_offset(value) == expected

    @pytest.mark.parametrize("value", [-1, 0x1_0000_0000, True, "", "0xnope", 1.5])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_flash_offset(value)


class TestSegment:
    """Test Segment model."""

    def test_aliases(self):
        segment = Segment(path="parts/app.bin", offset="0x10000")

        assert segment.source_path == "parts/app.bin"
        assert segment.flash_offset == 0x10000
        assert segment.file_name == "app.bin"

    def test_url_file_name(self):
        assert Segment(path="https://x.org/fw/app.bin?v=2", offset=0).file_name == "app.bin"

    def test_empty_path_rejected(self):
        with pytest.raises(ValidationError):
            Segment(path="", offset=0)

    def test_frozen(self):
        segment = Segment(path="a.bin", offset=0)
        with pytest.raises(ValidationError):
            segment.flash_offset = 5


def test_display_name():
    assert FirmwareManifestEntry(name="Demo", version="2.0").display_name() == "Demo v2.0"
    assert FirmwareManifestEntry(name="Demo").display_name() == "Demo"


def test_flash_options_defaults():
    options = FlashOptions()

    assert (options.flash_size, options.flash_mode, options.flash_freq) == ("keep", "keep", "keep")
    assert options.erase_all is False
    assert options.compress is True


@pytest.mark.parametrize(
    "state, busy",
    [
        (ConnectionState.DISCONNECTED, False),
        (ConnectionState.CONNECTED, False),
        (ConnectionState.CONNECTING, True),
        (ConnectionState.FLASHING, True),
        (ConnectionState.ERASING, True),
        (ConnectionState.DISCONNECTING, True),
    ],
)
def test_connection_state_busy(state, busy):
    assert state.is_busy is busy


def test_usb_id():
    assert SerialPortInfo(device="COM3").usb_id == ""
    assert SerialPortInfo(device="COM3", vid=0x1A86, pid=0x7523).usb_id == "1A86:7523"


def test_flash_result_error_marks_failure():
    result = FlashResult(success=True)
    result.add_error("boom")

    assert result.success is False
    assert result.get_summary()["errors"] == ["boom"]


def test_flash_result_records_failure_category_and_hint():
    result = FlashResult(success=True, firmware="demo")
    result.add_failure(
        TransportUnavailableError("Port busy", hint="Close the serial monitor.")
    )

    assert result.success is False
    assert result.errors == ["Port busy"]
    assert result.error_category == "TransportUnavailable"
    assert result.get_summary()["hint"] == "Close the serial monitor."
