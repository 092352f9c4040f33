"""Manifest adapter reading ESP Web Tools style firmware manifests."""

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from flashdeck.core.errors import InvalidSelectionError, ManifestError
from flashdeck.models.firmware import FirmwareManifestEntry, Segment


logger = logging.getLogger(__name__)

MANIFEST_SUFFIXES = (".json", ".yaml", ".yml")
URL_PREFIXES = ("http://", "https://", "file://")


class ManifestAdapterImpl:
    """Implementation of ManifestProtocol over directories of manifest files.

    Each file describes one firmware as ``{name, version, builds: [{chipFamily,
    parts: [{path, offset}]}]}``. The selection name is the file stem unless
    the document sets ``id``.
    """

    def __init__(self, search_paths: list[Path] | None = None) -> None:
        self.search_paths = [Path(p) for p in (search_paths or [])]
        logger.debug("ManifestAdapter initialized with paths: %s", self.search_paths)

    def discover(self) -> dict[str, Path]:
        """Map selection keys to manifest files; earlier search paths win."""
        found: dict[str, Path] = {}
        for directory in self.search_paths:
            if not directory.is_dir():
                logger.debug("Manifest directory does not exist: %s", directory)
                continue
            for path in sorted(directory.iterdir()):
                if path.suffix.lower() not in MANIFEST_SUFFIXES or not path.is_file():
                    continue
                found.setdefault(path.stem, path)
        return found

    def list_entries(self) -> list[FirmwareManifestEntry]:
        entries = []
        for key, path in self.discover().items():
            try:
                entries.append(self.load_file(path, key=key))
            except ManifestError as e:
                logger.warning("Skipping invalid manifest %s: %s", path, e.message)
        return sorted(entries, key=lambda entry: entry.key)

    def resolve(
        self, name: str, chip_family: str | None = None
    ) -> FirmwareManifestEntry:
        """Resolve a selection name to a manifest entry.

        Raises:
            InvalidSelectionError: If the name is unknown
            ManifestError: If the manifest is malformed
        """
        manifests = self.discover()
        path = manifests.get(name)
        if path is None:
            for key, candidate in manifests.items():
                document = self._read_document(candidate)
                if document.get("id") == name:
                    path, name = candidate, key
                    break

        if path is None:
            known = ", ".join(sorted(manifests)) or "none"
            raise InvalidSelectionError(
                f"Unknown firmware '{name}' (available: {known})",
                context={"selection": name},
            )
        return self.load_file(path, key=name, chip_family=chip_family)

    def load_file(
        self, path: Path, key: str | None = None, chip_family: str | None = None
    ) -> FirmwareManifestEntry:
        document = self._read_document(path)
        return parse_manifest(
            document,
            key=str(document.get("id") or key or path.stem),
            base_path=path.parent,
            chip_family=chip_family,
        )

    def _read_document(self, path: Path) -> dict[str, Any]:
        try:
            text = path.read_text(encoding="utf-8")
            if path.suffix.lower() == ".json":
                document = json.loads(text)
            else:
                document = yaml.safe_load(text)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise ManifestError(
                f"Cannot read manifest {path}: {e}", context={"path": str(path)}
            ) from e

        if not isinstance(document, dict):
            raise ManifestError(
                f"Invalid firmware configuration in {path}", context={"path": str(path)}
            )
        return document


def parse_manifest(
    document: dict[str, Any],
    key: str,
    base_path: Path | None = None,
    chip_family: str | None = None,
) -> FirmwareManifestEntry:
    """Build a FirmwareManifestEntry from a manifest document.

    The build matching ``chip_family`` is used when there is one, otherwise
    the first build. Relative part paths resolve against ``base_path``.

    Raises:
        ManifestError: If the document has no usable build or parts
    """
    builds = document.get("builds")
    if not isinstance(builds, list) or not builds:
        raise ManifestError(
            "Invalid firmware configuration: no builds", context={"firmware": key}
        )

    build = _select_build(builds, chip_family)
    parts = build.get("parts") if isinstance(build, dict) else None
    if not isinstance(parts, list) or not parts:
        raise ManifestError(
            "Invalid firmware configuration: no parts", context={"firmware": key}
        )

    try:
        segments = tuple(
            Segment(path=_resolve_part_path(part["path"], base_path), offset=part["offset"])
            for part in parts
        )
        return FirmwareManifestEntry(
            key=key,
            name=str(document.get("name") or key),
            version=str(document.get("version") or ""),
            description=document.get("description"),
            chip_family=build.get("chipFamily"),
            segments=segments,
        )
    except (KeyError, TypeError, ValidationError) as e:
        raise ManifestError(
            f"Invalid firmware configuration for '{key}': {e}",
            context={"firmware": key},
        ) from e


def _select_build(builds: list[Any], chip_family: str | None) -> Any:
    if chip_family:
        wanted = chip_family.upper()
        for build in builds:
            if isinstance(build, dict) and str(build.get("chipFamily", "")).upper() == wanted:
                return build
        logger.debug("No build for chip family %s, using the first build", chip_family)
    return builds[0]


def _resolve_part_path(path: Any, base_path: Path | None) -> str:
    text = str(path)
    if base_path is None or text.lower().startswith(URL_PREFIXES):
        return text
    part_path = Path(text).expanduser()
    if part_path.is_absolute():
        return str(part_path)
    return str(base_path / part_path)


def create_manifest_adapter(search_paths: list[Path] | None = None) -> ManifestAdapterImpl:
    """Create a manifest adapter over the given directories."""
    return ManifestAdapterImpl(search_paths=search_paths)


__all__ = ["ManifestAdapterImpl", "create_manifest_adapter", "parse_manifest"]
