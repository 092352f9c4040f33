"""Firmware manifest and segment models."""

from dataclasses import dataclass
from pathlib import PurePath
from typing import Any, Literal

from pydantic import ConfigDict, Field, field_validator

from flashdeck.models.base import FlashdeckBaseModel


MAX_FLASH_OFFSET = 0xFFFFFFFF


def parse_flash_offset(value: Any) -> int:
    """Parse a flash offset given as an int or a decimal/hex string.

    Raises:
        ValueError: If the value is not a valid unsigned 32-bit address
    """
    if isinstance(value, bool):
        raise ValueError("Flash offset must be an integer, not a boolean")
    if isinstance(value, str):
        text = value.strip().lower().replace("_", "")
        if not text:
            raise ValueError("Flash offset must not be empty")
        offset = int(text, 16) if text.startswith("0x") else int(text, 10)
    elif isinstance(value, int):
        offset = value
    else:
        raise ValueError(f"Unsupported flash offset type: {type(value).__name__}")

    if offset < 0 or offset > MAX_FLASH_OFFSET:
        raise ValueError(f"Flash offset {offset:#x} is outside 0x0..{MAX_FLASH_OFFSET:#x}")
    return offset


class Segment(FlashdeckBaseModel):
    """A binary blob and the absolute flash address it is written to."""

    model_config = ConfigDict(frozen=True)

    source_path: str = Field(alias="path", min_length=1)
    flash_offset: int = Field(alias="offset")

    @field_validator("flash_offset", mode="before")
    @classmethod
    def validate_flash_offset(cls, v: Any) -> int:
        return parse_flash_offset(v)

    @property
    def file_name(self) -> str:
        """Last path component of the source, used in progress lines."""
        return PurePath(self.source_path.split("?", 1)[0]).name or self.source_path


class FirmwareManifestEntry(FlashdeckBaseModel):
    """A named firmware resolved to an ordered list of segments."""

    model_config = ConfigDict(frozen=True)

    key: str = ""
    name: str
    version: str = ""
    description: str | None = None
    chip_family: str | None = None
    segments: tuple[Segment, ...] = ()

    def display_name(self) -> str:
        return f"{self.name} v{self.version}" if self.version else self.name


@dataclass
class LoadedSegment:
    """Bytes of a segment held in memory until the write consumes them."""

    data: bytes
    flash_offset: int
    source_path: str

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def file_name(self) -> str:
        return PurePath(self.source_path.split("?", 1)[0]).name or self.source_path


class FlashOptions(FlashdeckBaseModel):
    """Flash geometry and write options handed to the bootloader."""

    model_config = ConfigDict(frozen=True)

    flash_size: Literal["keep"] = "keep"
    flash_mode: Literal["keep"] = "keep"
    flash_freq: Literal["keep"] = "keep"
    erase_all: bool = False
    compress: bool = True


__all__ = [
    "MAX_FLASH_OFFSET",
    "FirmwareManifestEntry",
    "FlashOptions",
    "LoadedSegment",
    "Segment",
    "parse_flash_offset",
]
