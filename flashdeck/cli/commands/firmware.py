"""Firmware manifest commands."""

import json
from typing import Annotated

import typer
from rich.table import Table

from flashdeck.cli.decorators import handle_errors
from flashdeck.cli.helpers.output import (
    get_console,
    print_info_message,
    print_list_item,
    print_warning_message,
)
from flashdeck.services.flash_service import create_flash_service


firmware_app = typer.Typer(
    name="firmware",
    help="Inspect the firmwares available for flashing.",
    no_args_is_help=True,
)


@firmware_app.command(name="list")
@handle_errors
def list_firmware(ctx: typer.Context) -> None:
    """List firmwares found in the manifest directories."""
    config = ctx.obj.user_config.data
    entries = create_flash_service(config).list_firmware()
    if not entries:
        print_warning_message("No firmware manifest found")
        for path in config.manifest_paths:
            print_list_item(str(path))
        return

    table = Table(title="Firmwares")
    table.add_column("Name", style="cyan")
    table.add_column("Firmware")
    table.add_column("Version")
    table.add_column("Parts", justify="right")
    for entry in entries:
        table.add_row(entry.key, entry.name, entry.version, str(len(entry.segments)))
    get_console().print(table)


@firmware_app.command(name="show")
@handle_errors
def show_firmware(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Firmware name")],
    as_json: Annotated[
        bool, typer.Option("--json", help="Print the manifest entry as JSON")
    ] = False,
) -> None:
    """Show a firmware's description and the parts it writes."""
    entry = create_flash_service(ctx.obj.user_config.data).show_firmware(name)
    if as_json:
        print(json.dumps(entry.to_dict(), indent=2))
        return

    print_info_message(entry.display_name())
    if entry.description:
        get_console().print(entry.description)
    if entry.chip_family:
        print_list_item(f"Chip family: {entry.chip_family}")
    for index, segment in enumerate(entry.segments, start=1):
        print_list_item(f"[{index}] 0x{segment.flash_offset:X}  {segment.source_path}")


def register_commands(app: typer.Typer) -> None:
    """Register firmware commands with the main app.

    Args:
        app: The main Typer app
    """
    app.add_typer(firmware_app, name="firmware")
