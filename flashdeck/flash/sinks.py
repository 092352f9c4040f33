"""Event sink that routes operator log lines into structured logging."""

import logging

from flashdeck.core.structlog_logger import get_struct_logger
from flashdeck.models.progress import LogSeverity, ProgressEvent


_SEVERITY_LEVELS = {
    LogSeverity.INFO: logging.INFO,
    LogSeverity.SUCCESS: logging.INFO,
    LogSeverity.PROGRESS: logging.INFO,
    LogSeverity.WARNING: logging.WARNING,
    LogSeverity.ERROR: logging.ERROR,
}


class LoggingEventSink:
    """Writes sink events to a structlog logger.

    Implements FlashEventSink. Used when no interactive console is attached.
    """

    def __init__(self, name: str = "flashdeck.flash") -> None:
        self._logger = get_struct_logger(name)

    def log(self, message: str, severity: LogSeverity = LogSeverity.INFO) -> None:
        severity = LogSeverity(severity)
        self._logger.log(
            _SEVERITY_LEVELS[severity], message, severity=severity.value
        )

    def progress(self, event: ProgressEvent) -> None:
        self._logger.debug(
            "write_progress",
            segment_index=event.segment_index,
            bytes_written=event.bytes_written,
            bytes_total=event.bytes_total,
            percent=event.percent,
        )


__all__ = ["LoggingEventSink"]
