"""Tests for flashdeck CLI commands."""

import json
from unittest.mock import Mock, patch

import pytest

from flashdeck.cli import app
from flashdeck.core.errors import InvalidSelectionError
from flashdeck.models.device import SerialPortInfo
from flashdeck.models.flash import FlashResult


DEVICE_SERVICE = "flashdeck.cli.commands.device.create_flash_service"
FIRMWARE_SERVICE = "flashdeck.cli.commands.firmware.create_flash_service"


@pytest.fixture
def flash_service():
    service = Mock()
    service.flash.return_value = FlashResult(success=True, firmware="Demo v1.2.0")
    service.erase.return_value = FlashResult(success=True)
    return service


class TestDeviceCommands:
    """Test ports, flash, erase and chip-info."""

    def test_ports(self, cli_runner, isolated_env, flash_service):
        flash_service.list_ports.return_value = [
            SerialPortInfo(device="/dev/ttyUSB0", description="CP2102", vid=0x10C4, pid=0xEA60, likely_esp=True)
        ]
        with patch(DEVICE_SERVICE, return_value=flash_service):
            result = cli_runner.invoke(app, ["ports"])

        assert result.exit_code == 0
        assert "/dev/ttyUSB0" in result.output

    def test_flash_uses_config_defaults(self, cli_runner, isolated_env, flash_service):
        (isolated_env / "flashdeck.yaml").write_text(
            "port: /dev/ttyUSB9\nbaud_rate: 460800\n", encoding="utf-8"
        )
        with patch(DEVICE_SERVICE, return_value=flash_service):
            result = cli_runner.invoke(app, ["flash", "demo"])

        assert result.exit_code == 0, result.output
        flash_service.flash.assert_called_once_with(
            "demo", port="/dev/ttyUSB9", baud_rate=460800
        )

    def test_flash_options_override_config(self, cli_runner, isolated_env, flash_service):
        with patch(DEVICE_SERVICE, return_value=flash_service):
            result = cli_runner.invoke(
                app, ["flash", "demo", "--port", "COM3", "--baud", "921600"]
            )

        assert result.exit_code == 0
        flash_service.flash.assert_called_once_with("demo", port="COM3", baud_rate=921600)

    def test_flash_rejects_unsupported_baud(self, cli_runner, isolated_env, flash_service):
        with patch(DEVICE_SERVICE, return_value=flash_service):
            result = cli_runner.invoke(app, ["flash", "demo", "--baud", "1234"])

        assert result.exit_code != 0
        flash_service.flash.assert_not_called()

    def test_flash_failure_exit_code(self, cli_runner, isolated_env, flash_service):
        failed = FlashResult(success=False, hint="Check the .bin files.")
        failed.add_error("Firmware part not found: app.bin")
        flash_service.flash.return_value = failed
        with patch(DEVICE_SERVICE, return_value=flash_service):
            result = cli_runner.invoke(app, ["flash", "demo"])

        assert result.exit_code == 1
        assert "Firmware part not found" in result.output

    def test_erase_declined(self, cli_runner, isolated_env, flash_service):
        """Declining the prompt cancels with exit code 0."""
        flash_service.erase.return_value = FlashResult(success=True, cancelled=True)
        with patch(DEVICE_SERVICE, return_value=flash_service):
            result = cli_runner.invoke(app, ["erase"], input="n\n")

        assert result.exit_code == 0
        assert "Erase cancelled" in result.output
        flash_service.erase.assert_called_once_with(False, port=None, baud_rate=115200)

    def test_erase_with_yes(self, cli_runner, isolated_env, flash_service):
        with patch(DEVICE_SERVICE, return_value=flash_service):
            result = cli_runner.invoke(app, ["erase", "--yes"])

        assert result.exit_code == 0
        flash_service.erase.assert_called_once_with(True, port=None, baud_rate=115200)

    def test_chip_info(self, cli_runner, isolated_env, flash_service, chip):
        flash_service.chip_info.return_value = FlashResult(success=True, chip=chip)
        with patch(DEVICE_SERVICE, return_value=flash_service):
            result = cli_runner.invoke(app, ["chip-info"])

        assert result.exit_code == 0
        assert "ESP32-S3" in result.output
        assert chip.mac in result.output


class TestFirmwareCommands:
    """Test firmware list and show."""

    def test_list(self, cli_runner, isolated_env, flash_service, two_part_entry):
        flash_service.list_firmware.return_value = [two_part_entry]
        with patch(FIRMWARE_SERVICE, return_value=flash_service):
            result = cli_runner.invoke(app, ["firmware", "list"])

        assert result.exit_code == 0
        assert "demo" in result.output

    def test_show(self, cli_runner, isolated_env, flash_service, two_part_entry):
        flash_service.show_firmware.return_value = two_part_entry
        with patch(FIRMWARE_SERVICE, return_value=flash_service):
            result = cli_runner.invoke(app, ["firmware", "show", "demo"])

        assert result.exit_code == 0
        assert "Demo v1.2.0" in result.output
        assert "0x10000" in result.output

    def test_show_json(self, cli_runner, isolated_env, flash_service, two_part_entry):
        flash_service.show_firmware.return_value = two_part_entry
        with patch(FIRMWARE_SERVICE, return_value=flash_service):
            result = cli_runner.invoke(app, ["firmware", "show", "demo", "--json"])

        assert result.exit_code == 0
        document = json.loads(result.output)
        assert document["segments"][1] == {"path": "app.bin", "offset": 0x10000}

    def test_show_unknown(self, cli_runner, isolated_env, flash_service):
        flash_service.show_firmware.side_effect = InvalidSelectionError("Unknown firmware 'x'")
        with patch(FIRMWARE_SERVICE, return_value=flash_service):
            result = cli_runner.invoke(app, ["firmware", "show", "x"])

        assert result.exit_code == 1
        assert "Unknown firmware" in result.output

    def test_list_with_real_manifests(self, cli_runner, isolated_env, manifest_dir, monkeypatch):
        """firmware list reads the configured manifest directory."""
        monkeypatch.setenv("FLASHDECK_MANIFEST_PATHS", str(manifest_dir))

        result = cli_runner.invoke(app, ["firmware", "list"])

        assert result.exit_code == 0, result.output
        assert "Demo" in result.output


def test_version(cli_runner):
    result = cli_runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "flashdeck v" in result.output
