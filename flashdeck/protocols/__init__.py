"""Protocol definitions for flashdeck adapters and collaborators.

These protocols use Python's typing.Protocol system with the
@runtime_checkable decorator to enable both static type checking and runtime
isinstance() checks.
"""

from .bootloader_protocol import (
    BootloaderFactory,
    BootloaderProtocol,
    WriteProgressCallback,
)
from .manifest_protocol import ManifestProtocol
from .sink_protocol import FlashEventSink
from .transport_protocol import TransportProtocol


__all__ = [
    "BootloaderFactory",
    "BootloaderProtocol",
    "FlashEventSink",
    "ManifestProtocol",
    "TransportProtocol",
    "WriteProgressCallback",
]
