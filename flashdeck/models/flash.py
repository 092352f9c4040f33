"""Result model for service-level flash operations."""

from typing import Any

from pydantic import Field

from flashdeck.models.device import ChipIdentity
from flashdeck.models.results import BaseResult


class FlashResult(BaseResult):
    """Result of a connect/program/erase session."""

    chip: ChipIdentity | None = None
    firmware: str | None = None
    segments_written: int = Field(default=0, ge=0)
    bytes_written: int = Field(default=0, ge=0)
    cancelled: bool = False

    def get_summary(self) -> dict[str, Any]:
        summary = super().get_summary()
        summary.update(
            {
                "chip": self.chip.chip_name if self.chip else None,
                "firmware": self.firmware,
                "segments_written": self.segments_written,
                "bytes_written": self.bytes_written,
                "cancelled": self.cancelled,
            }
        )
        return summary


__all__ = ["FlashResult"]
