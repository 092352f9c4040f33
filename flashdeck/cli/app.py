"""Main CLI application for flashdeck."""

import logging
import sys
from typing import Annotated

import typer

from flashdeck import __version__
from flashdeck.cli.commands import register_all_commands
from flashdeck.cli.decorators.error_handling import print_stack_trace_if_verbose
from flashdeck.core.errors import ConfigError
from flashdeck.core.logging import setup_logging


__all__ = ["app", "main", "__version__", "setup_logging"]

logger = logging.getLogger(__name__)


class AppContext:
    """Application context for storing shared state."""

    def __init__(
        self,
        verbose: int = 0,
        log_file: str | None = None,
        config_file: str | None = None,
    ):
        """Initialize AppContext.

        Args:
            verbose: Verbosity level
            log_file: Path to log file
            config_file: Path to configuration file
        """
        self.verbose = verbose
        self.log_file = log_file
        self.config_file = config_file

        from flashdeck.config.user_config import create_user_config

        self.user_config = create_user_config(cli_config_path=config_file)


app = typer.Typer(
    name="flashdeck",
    help=f"""flashdeck ESP32 firmware flasher v{__version__}

Flash multi-part firmwares described by manifests onto ESP32 boards over a
serial link.

Common workflows:
  • List boards:      flashdeck ports
  • List firmwares:   flashdeck firmware list
  • Flash a board:    flashdeck flash my-firmware --port /dev/ttyUSB0
  • Erase a board:    flashdeck erase""",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity (-v=INFO, -vv=DEBUG)",
        ),
    ] = 0,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug logging (equivalent to -vv)"),
    ] = False,
    log_file: Annotated[
        str | None, typer.Option("--log-file", help="Log to file")
    ] = None,
    config_file: Annotated[
        str | None,
        typer.Option("-c", "--config", help="Path to configuration file"),
    ] = None,
    version: Annotated[
        bool, typer.Option("--version", help="Show version and exit")
    ] = False,
) -> None:
    """flashdeck ESP32 firmware flasher."""
    if version:
        print(f"flashdeck v{__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        print(ctx.get_help())
        raise typer.Exit()

    try:
        app_context = AppContext(
            verbose=verbose, log_file=log_file, config_file=config_file
        )
    except ConfigError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        raise typer.Exit(1) from e
    ctx.obj = app_context

    # CLI flags win over the configured log level
    if debug or verbose >= 2:
        log_level_name = "DEBUG"
    elif verbose == 1:
        log_level_name = "INFO"
    else:
        log_level_name = app_context.user_config.data.log_level

    setup_logging(log_level_name=log_level_name, log_file=log_file)
    logger.debug(
        "Configuration loaded from %s", app_context.user_config.config_path or "defaults"
    )


register_all_commands(app)


def main() -> int:
    """Main CLI entry point."""
    try:
        app()
        return 0
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 0
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        print_stack_trace_if_verbose()
        return 1


if __name__ == "__main__":
    sys.exit(main())
