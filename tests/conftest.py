"""Core test fixtures for the flashdeck project."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import Mock

import pytest
from typer.testing import CliRunner

from flashdeck.flash.connection import DeviceConnection
from flashdeck.flash.orchestrator import FlashOrchestrator
from flashdeck.flash.segment_loader import BinarySegmentLoader
from flashdeck.models.device import ChipIdentity
from flashdeck.models.firmware import FirmwareManifestEntry, LoadedSegment, Segment
from flashdeck.models.progress import LogSeverity, ProgressEvent
from flashdeck.protocols import BootloaderProtocol, TransportProtocol


class RecordingSink:
    """FlashEventSink that keeps everything it receives."""

    def __init__(self) -> None:
        self.lines: list[tuple[str, LogSeverity]] = []
        self.events: list[ProgressEvent] = []

    def log(self, message: str, severity: LogSeverity = LogSeverity.INFO) -> None:
        self.lines.append((message, LogSeverity(severity)))

    def progress(self, event: ProgressEvent) -> None:
        self.events.append(event)

    def messages(self, severity: LogSeverity | None = None) -> list[str]:
        return [m for m, s in self.lines if severity is None or s == severity]


# ---- Base Fixtures ----


@pytest.fixture
def cli_runner() -> CliRunner:
    """Return a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def chip() -> ChipIdentity:
    return ChipIdentity(
        chip_name="ESP32-S3",
        description="ESP32-S3 (QFN56) (revision v0.2)",
        features=["Wi-Fi", "BT 5 (LE)", "Dual Core"],
        mac="f4:12:fa:00:11:22",
    )


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def mock_transport() -> Mock:
    """Create a mock serial transport for testing."""
    transport = Mock(spec=TransportProtocol)
    transport.open.return_value = Mock(name="link")
    transport.list_ports.return_value = []
    return transport


@pytest.fixture
def mock_bootloader(chip: ChipIdentity) -> Mock:
    """Create a mock bootloader client whose handshake succeeds."""
    bootloader = Mock(spec=BootloaderProtocol)
    bootloader.handshake.return_value = chip
    return bootloader


@pytest.fixture
def bootloader_factory(mock_bootloader: Mock) -> Mock:
    return Mock(return_value=mock_bootloader)


@pytest.fixture
def connection(
    mock_transport: Mock, bootloader_factory: Mock, sink: RecordingSink
) -> DeviceConnection:
    return DeviceConnection(mock_transport, bootloader_factory, sink=sink)


@pytest.fixture
def connected(connection: DeviceConnection) -> DeviceConnection:
    connection.connect()
    return connection


@pytest.fixture
def mock_segment_loader() -> Mock:
    """Segment loader returning 4 KiB of data for any segment."""
    loader = Mock(spec=BinarySegmentLoader)
    loader.load.side_effect = lambda segment: LoadedSegment(
        data=b"\xa5" * 4096,
        flash_offset=segment.flash_offset,
        source_path=segment.source_path,
    )
    return loader


@pytest.fixture
def orchestrator(
    connected: DeviceConnection, mock_segment_loader: Mock
) -> FlashOrchestrator:
    return FlashOrchestrator(connected, segment_loader=mock_segment_loader)


@pytest.fixture
def two_part_entry() -> FirmwareManifestEntry:
    return FirmwareManifestEntry(
        key="demo",
        name="Demo",
        version="1.2.0",
        chip_family="ESP32-S3",
        segments=(
            Segment(path="bootloader.bin", offset="0x0"),
            Segment(path="app.bin", offset="0x10000"),
        ),
    )


@pytest.fixture
def manifest_dir(tmp_path: Path) -> Path:
    """Directory holding one JSON manifest with two real binary parts."""
    directory = tmp_path / "firmwares"
    directory.mkdir()
    (directory / "bootloader.bin").write_bytes(b"\x01" * 1024)
    (directory / "app.bin").write_bytes(b"\x02" * 2048)
    (directory / "demo.json").write_text(
        """{
  "name": "Demo",
  "version": "1.2.0",
  "description": "Demo firmware",
  "builds": [
    {"chipFamily": "ESP32", "parts": [{"path": "app.bin", "offset": 65536}]},
    {
      "chipFamily": "ESP32-S3",
      "parts": [
        {"path": "bootloader.bin", "offset": "0x0"},
        {"path": "app.bin", "offset": "0x10000"}
      ]
    }
  ]
}
""",
        encoding="utf-8",
    )
    return directory


@pytest.fixture
def isolated_env(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Run in an empty working directory with no user config or env overrides."""
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in ("BAUD_RATE", "PORT", "MANIFEST_PATHS", "LOG_LEVEL", "PROGRESS_STEP"):
        monkeypatch.delenv(f"FLASHDECK_{name}", raising=False)
    yield workdir
