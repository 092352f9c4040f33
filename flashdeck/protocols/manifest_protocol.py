"""Protocol definition for firmware manifest lookup."""

from typing import Protocol, runtime_checkable

from flashdeck.models.firmware import FirmwareManifestEntry


@runtime_checkable
class ManifestProtocol(Protocol):
    """Resolves selection names to firmware manifest entries."""

    def list_entries(self) -> list[FirmwareManifestEntry]:
        """List every firmware available for selection."""
        ...

    def resolve(
        self, name: str, chip_family: str | None = None
    ) -> FirmwareManifestEntry:
        """Resolve a selection name.

        Args:
            name: Selection name
            chip_family: Connected chip family used to pick a matching build

        Raises:
            InvalidSelectionError: If the name is unknown or the manifest invalid
        """
        ...
