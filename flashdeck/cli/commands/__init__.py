"""CLI command modules."""

import typer

from flashdeck.cli.commands.device import register_commands as register_device_commands
from flashdeck.cli.commands.firmware import (
    register_commands as register_firmware_commands,
)


def register_all_commands(app: typer.Typer) -> None:
    """Register all CLI commands with the main app.

    Args:
        app: The main Typer app
    """
    register_device_commands(app)
    register_firmware_commands(app)
