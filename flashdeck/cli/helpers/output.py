"""Helper functions for CLI output formatting with Rich integration."""

from rich.console import Console
from rich.markup import escape

from flashdeck.models.progress import LogSeverity, ProgressEvent
from flashdeck.models.results import BaseResult


_console: Console | None = None

SEVERITY_STYLES: dict[LogSeverity, tuple[str, str]] = {
    LogSeverity.INFO: ("", ""),
    LogSeverity.SUCCESS: ("✓", "green"),
    LogSeverity.WARNING: ("⚠", "yellow"),
    LogSeverity.ERROR: ("✗", "bold red"),
    LogSeverity.PROGRESS: ("", "cyan"),
}


def get_console() -> Console:
    """Return the shared console used for user-facing output."""
    global _console
    if _console is None:
        _console = Console(highlight=False)
    return _console


def _print(message: str, icon: str = "", style: str = "") -> None:
    text = f"{icon} {escape(message)}" if icon else escape(message)
    get_console().print(f"[{style}]{text}[/{style}]" if style else text)


def print_success_message(message: str) -> None:
    _print(message, "✓", "green")


def print_error_message(message: str) -> None:
    _print(message, "✗", "bold red")


def print_warning_message(message: str) -> None:
    _print(message, "⚠", "yellow")


def print_info_message(message: str) -> None:
    _print(message, "ℹ", "blue")


def print_list_item(item: str, indent: int = 1) -> None:
    _print(f"{' ' * (indent * 2)}• {item}")


def print_result(result: BaseResult) -> None:
    """Print operation result with appropriate formatting.

    Args:
        result: The operation result object
    """
    if result.success:
        print_success_message("Operation completed successfully")
        for message in result.messages:
            print_list_item(message)
    else:
        print_error_message("Operation failed")
        for error in result.errors:
            print_list_item(error)
        if result.hint:
            print_warning_message(result.hint)


class RichConsoleSink:
    """FlashEventSink writing severity-tagged lines to a rich console.

    Progress events are rendered through the PROGRESS log lines the
    orchestrator emits alongside them, so ``progress`` prints nothing.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or get_console()

    def log(self, message: str, severity: LogSeverity = LogSeverity.INFO) -> None:
        icon, style = SEVERITY_STYLES[LogSeverity(severity)]
        text = f"{icon} {escape(message)}" if icon else escape(message)
        self.console.print(f"[{style}]{text}[/{style}]" if style else text)

    def progress(self, event: ProgressEvent) -> None:
        pass
