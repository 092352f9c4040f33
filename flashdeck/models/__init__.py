"""Core models for flashdeck.

Pydantic models for configuration-shaped data and dataclasses for transient
values produced while flashing.
"""

from .base import FlashdeckBaseModel
from .device import ChipIdentity, ConnectionState, SerialPortInfo
from .firmware import (
    MAX_FLASH_OFFSET,
    FirmwareManifestEntry,
    FlashOptions,
    LoadedSegment,
    Segment,
    parse_flash_offset,
)
from .flash import FlashResult
from .progress import FlashSummary, LogSeverity, ProgressEvent
from .results import BaseResult


__all__ = [
    "BaseResult",
    "ChipIdentity",
    "ConnectionState",
    "FirmwareManifestEntry",
    "FlashOptions",
    "FlashResult",
    "FlashSummary",
    "FlashdeckBaseModel",
    "LoadedSegment",
    "LogSeverity",
    "MAX_FLASH_OFFSET",
    "ProgressEvent",
    "Segment",
    "SerialPortInfo",
    "parse_flash_offset",
]
