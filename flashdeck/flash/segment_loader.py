"""Loading of firmware segment bytes from local files or URLs."""

import logging
from pathlib import Path
from urllib.parse import unquote, urlparse

import requests

from flashdeck.core.errors import SegmentFetchError, SegmentUnavailableError
from flashdeck.models.firmware import LoadedSegment, Segment


logger = logging.getLogger(__name__)

HTTP_SCHEMES = ("http", "https")


class BinarySegmentLoader:
    """Materializes a segment's bytes in memory.

    Sources may be plain paths (relative ones resolve against ``base_path``),
    ``file://`` URLs or ``http(s)://`` URLs. Nothing is retried here.
    """

    def __init__(
        self,
        base_path: Path | None = None,
        session: requests.Session | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_path = base_path
        self.session = session or requests.Session()
        self.timeout = timeout
        logger.debug(
            "BinarySegmentLoader initialized with base path: %s, timeout: %s",
            base_path,
            timeout,
        )

    def load(self, segment: Segment) -> LoadedSegment:
        """Fetch the bytes of a segment.

        Args:
            segment: Segment to load

        Returns:
            LoadedSegment holding the bytes and target offset

        Raises:
            SegmentUnavailableError: If the source does not exist or is empty
            SegmentFetchError: If the source host could not be reached
        """
        source = segment.source_path
        scheme = urlparse(source).scheme.lower()

        if scheme in HTTP_SCHEMES:
            data = self._fetch_url(source)
        elif scheme == "file":
            data = self._read_file(Path(unquote(urlparse(source).path)), source)
        else:
            data = self._read_file(self.resolve_path(source), source)

        if not data:
            raise SegmentUnavailableError(
                f"Firmware part is empty: {source}", context={"source": source}
            )

        logger.debug("Loaded %d bytes from %s", len(data), source)
        return LoadedSegment(
            data=data, flash_offset=segment.flash_offset, source_path=source
        )

    def resolve_path(self, source: str) -> Path:
        path = Path(source).expanduser()
        if not path.is_absolute() and self.base_path is not None:
            path = self.base_path / path
        return path

    def _read_file(self, path: Path, source: str) -> bytes:
        try:
            return path.read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise SegmentUnavailableError(
                f"Firmware part not found: {source}",
                context={"source": source, "path": str(path)},
            ) from e
        except PermissionError as e:
            raise SegmentUnavailableError(
                f"Firmware part is not readable: {source}",
                context={"source": source, "path": str(path)},
            ) from e

    def _fetch_url(self, url: str) -> bytes:
        try:
            response = self.session.get(url, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as e:
            raise SegmentFetchError(
                f"Could not download {url}: {e}", context={"source": url}
            ) from e

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise SegmentUnavailableError(
                f"HTTP {response.status_code}: {url}",
                context={"source": url, "status_code": response.status_code},
            ) from e
        return response.content


def create_segment_loader(
    base_path: Path | None = None,
    session: requests.Session | None = None,
    timeout: float = 30.0,
) -> BinarySegmentLoader:
    """Create a BinarySegmentLoader instance."""
    return BinarySegmentLoader(base_path=base_path, session=session, timeout=timeout)


__all__ = ["BinarySegmentLoader", "create_segment_loader"]
