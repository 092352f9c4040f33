"""Flashing core: connection lifecycle, orchestration and progress."""

from .connection import DeviceConnection
from .error_classifier import Classification, ErrorClassifier, FlashPhase, classify_error
from .orchestrator import FlashOrchestrator
from .progress import ProgressAccumulator
from .segment_loader import BinarySegmentLoader, create_segment_loader
from .sinks import LoggingEventSink


__all__ = [
    "BinarySegmentLoader",
    "Classification",
    "DeviceConnection",
    "ErrorClassifier",
    "FlashOrchestrator",
    "FlashPhase",
    "LoggingEventSink",
    "ProgressAccumulator",
    "classify_error",
    "create_segment_loader",
]
