"""Protocol definitions for the bootloader client."""

from collections.abc import Callable, Sequence
from typing import Any, Protocol, runtime_checkable

from flashdeck.models.device import ChipIdentity
from flashdeck.models.firmware import FlashOptions, LoadedSegment


# (segment_index, bytes_written, bytes_total)
WriteProgressCallback = Callable[[int, int, int], None]


@runtime_checkable
class BootloaderProtocol(Protocol):
    """Opaque client for a device's ROM bootloader."""

    def handshake(self) -> ChipIdentity:
        """Synchronise with the bootloader and identify the chip.

        Raises:
            HandshakeError: If the bootloader does not answer
        """
        ...

    def write_segments(
        self,
        segments: Sequence[LoadedSegment],
        options: FlashOptions,
        progress: WriteProgressCallback,
    ) -> None:
        """Write all segments to flash in order.

        Raises:
            ProtocolWriteError: If the bootloader reports a failure
        """
        ...

    def erase_all(self) -> None:
        """Erase the whole flash chip."""
        ...

    def reset_device(self) -> None:
        """Hard-reset the device into its application firmware."""
        ...

    def close(self) -> None:
        """Drop any state held for the link."""
        ...


@runtime_checkable
class BootloaderFactory(Protocol):
    """Builds a bootloader client on top of an opened link."""

    def __call__(self, link: Any, baud_rate: int) -> BootloaderProtocol: ...
