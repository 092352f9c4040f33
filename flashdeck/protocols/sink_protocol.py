"""Protocol definition for the progress/log output boundary."""

from typing import Protocol, runtime_checkable

from flashdeck.models.progress import LogSeverity, ProgressEvent


@runtime_checkable
class FlashEventSink(Protocol):
    """Receives operator-facing log lines and progress events."""

    def log(self, message: str, severity: LogSeverity = LogSeverity.INFO) -> None:
        """Emit a log line with a severity tag."""
        ...

    def progress(self, event: ProgressEvent) -> None:
        """Emit a throttled progress event."""
        ...
