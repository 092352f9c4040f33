"""Device commands: port listing, flashing, erasing and chip information."""

import logging
from typing import Annotated

import typer
from rich.table import Table

from flashdeck.cli.decorators import handle_errors
from flashdeck.cli.helpers.output import (
    RichConsoleSink,
    get_console,
    print_info_message,
    print_list_item,
    print_result,
    print_success_message,
    print_warning_message,
)
from flashdeck.config.models import SUPPORTED_BAUD_RATES
from flashdeck.services.flash_service import FlashService, create_flash_service


logger = logging.getLogger(__name__)

PortOption = Annotated[
    str | None,
    typer.Option("--port", "-p", help="Serial port (auto-detected when omitted)"),
]
BaudOption = Annotated[
    int | None,
    typer.Option(
        "--baud",
        "-b",
        help=f"Baud rate, one of {', '.join(str(b) for b in SUPPORTED_BAUD_RATES)}",
    ),
]


def _session_settings(
    ctx: typer.Context, port: str | None, baud: int | None
) -> tuple[str | None, int]:
    config = ctx.obj.user_config.data
    baud_rate = baud if baud is not None else config.baud_rate
    if baud_rate not in SUPPORTED_BAUD_RATES:
        raise typer.BadParameter(
            f"Baud rate must be one of {list(SUPPORTED_BAUD_RATES)}", param_hint="--baud"
        )
    return port or config.port, baud_rate


def _flash_service(ctx: typer.Context) -> FlashService:
    return create_flash_service(ctx.obj.user_config.data, sink=RichConsoleSink())


@handle_errors
def list_ports(ctx: typer.Context) -> None:
    """List serial ports; likely ESP32 boards are listed first."""
    ports = _flash_service(ctx).list_ports()
    if not ports:
        print_warning_message("No serial port found")
        return

    table = Table(title="Serial ports")
    table.add_column("Port", style="cyan")
    table.add_column("Description")
    table.add_column("USB ID")
    table.add_column("ESP32", justify="center")
    for port in ports:
        table.add_row(
            port.device, port.description, port.usb_id, "✓" if port.likely_esp else ""
        )
    get_console().print(table)


@handle_errors
def flash(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Firmware name from the manifests")],
    port: PortOption = None,
    baud: BaudOption = None,
) -> None:
    """Flash a firmware to the board.

    Examples:
        flashdeck flash my-firmware
        flashdeck flash my-firmware --port /dev/ttyUSB0 --baud 460800
    """
    port, baud_rate = _session_settings(ctx, port, baud)
    result = _flash_service(ctx).flash(name, port=port, baud_rate=baud_rate)
    print_result(result)
    if not result.success:
        raise typer.Exit(1)


@handle_errors
def erase(
    ctx: typer.Context,
    port: PortOption = None,
    baud: BaudOption = None,
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")
    ] = False,
) -> None:
    """Erase the whole flash of the board.

    All data on the board is lost, including stored settings.
    """
    port, baud_rate = _session_settings(ctx, port, baud)
    confirmed = yes
    if not confirmed:
        print_warning_message("This erases the ENTIRE flash memory of the board.")
        print_warning_message("All data will be lost and this cannot be undone.")
        print_info_message("Erasing can take up to 30 seconds.")
        confirmed = typer.confirm("Continue?", default=False)

    result = _flash_service(ctx).erase(confirmed, port=port, baud_rate=baud_rate)
    if result.cancelled:
        print_info_message("Erase cancelled")
        return
    print_result(result)
    if not result.success:
        raise typer.Exit(1)


@handle_errors
def chip_info(
    ctx: typer.Context,
    port: PortOption = None,
    baud: BaudOption = None,
) -> None:
    """Connect to the board and show its chip identity."""
    port, baud_rate = _session_settings(ctx, port, baud)
    result = _flash_service(ctx).chip_info(port=port, baud_rate=baud_rate)
    if not result.success or result.chip is None:
        print_result(result)
        raise typer.Exit(1)

    chip = result.chip
    print_success_message(f"Chip: {chip.summary()}")
    if chip.features:
        print_list_item(f"Features: {', '.join(chip.features)}")
    if chip.mac:
        print_list_item(f"MAC: {chip.mac}")


def register_commands(app: typer.Typer) -> None:
    """Register device commands with the main app.

    Args:
        app: The main Typer app
    """
    app.command(name="ports")(list_ports)
    app.command(name="flash")(flash)
    app.command(name="erase")(erase)
    app.command(name="chip-info")(chip_info)
