"""Adapters binding flashdeck protocols to pyserial, esptool and manifest files."""

from .esptool_adapter import EsptoolBootloader, create_esptool_bootloader
from .manifest_adapter import ManifestAdapterImpl, create_manifest_adapter
from .serial_adapter import SerialTransportImpl, create_serial_transport


__all__ = [
    "EsptoolBootloader",
    "ManifestAdapterImpl",
    "SerialTransportImpl",
    "create_esptool_bootloader",
    "create_manifest_adapter",
    "create_serial_transport",
]
