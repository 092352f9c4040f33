"""Progress and log event models emitted while flashing."""

from dataclasses import dataclass
from enum import Enum


class LogSeverity(str, Enum):
    """Severity tag attached to operator-facing log lines."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"
    PROGRESS = "progress"


@dataclass(frozen=True)
class ProgressEvent:
    """Throttled write progress for one segment."""

    segment_index: int
    bytes_written: int
    bytes_total: int
    percent: int


@dataclass(frozen=True)
class FlashSummary:
    """Outcome of a successful program operation."""

    name: str
    version: str
    segments_written: int
    bytes_written: int
    elapsed_seconds: float


__all__ = ["FlashSummary", "LogSeverity", "ProgressEvent"]
