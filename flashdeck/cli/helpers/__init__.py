"""CLI helper functions."""

from flashdeck.cli.helpers.output import (
    RichConsoleSink,
    get_console,
    print_error_message,
    print_info_message,
    print_list_item,
    print_result,
    print_success_message,
    print_warning_message,
)


__all__ = [
    "RichConsoleSink",
    "get_console",
    "print_error_message",
    "print_info_message",
    "print_list_item",
    "print_result",
    "print_success_message",
    "print_warning_message",
]
