"""Throttling of raw bootloader write progress into progress events."""

from collections.abc import Sequence

from flashdeck.models.progress import ProgressEvent


class ProgressAccumulator:
    """Turns raw per-segment write callbacks into throttled progress events.

    For every segment it emits exactly one 0% event and exactly one 100%
    event, and in between only events whose percent rose by at least
    ``step`` points over the last emitted one. Percent never decreases
    within a segment. Segments are expected in ascending index order;
    callbacks for a segment that has already been closed are ignored.

    ``sizes`` gives the byte size of each segment when known; it is used as
    the total of segments that never produce a callback.
    """

    def __init__(self, step: int = 1, sizes: Sequence[int] | None = None) -> None:
        if not 1 <= step <= 100:
            raise ValueError(f"Progress step must be between 1 and 100, got {step}")
        self.step = step
        self.sizes = list(sizes or [])
        self.reset()

    def reset(self) -> None:
        """Forget all segments."""
        self._segment_index: int | None = None
        self._last_percent = 0
        self._bytes_total = 0
        self._closed: set[int] = set()

    def update(
        self, segment_index: int, bytes_written: int, bytes_total: int
    ) -> list[ProgressEvent]:
        """Feed one raw callback and return the events it produces."""
        if segment_index in self._closed or (
            self._segment_index is not None and segment_index < self._segment_index
        ):
            return []

        events: list[ProgressEvent] = []
        if segment_index != self._segment_index:
            events.extend(self._close_current())
            events.extend(self._fill_gap(segment_index))
            self._segment_index = segment_index
            self._bytes_total = bytes_total
            self._last_percent = 0
            events.append(ProgressEvent(segment_index, 0, bytes_total, 0))

        self._bytes_total = bytes_total
        percent = _percent(bytes_written, bytes_total)
        if percent > self._last_percent and (
            percent == 100 or percent - self._last_percent >= self.step
        ):
            written = min(max(bytes_written, 0), bytes_total)
            events.append(ProgressEvent(segment_index, written, bytes_total, percent))
            self._last_percent = percent
        return events

    def finish(self, segment_count: int | None = None) -> list[ProgressEvent]:
        """Close the current segment, and any trailing silent segments.

        Args:
            segment_count: Total number of segments written, defaulting to
                the number of known sizes; segments that never produced a
                callback are reported as 0% then 100%.
        """
        events = self._close_current()
        if segment_count is None and self.sizes:
            segment_count = len(self.sizes)
        if segment_count is not None:
            events.extend(self._fill_gap(segment_count))
        return events

    def _close_current(self) -> list[ProgressEvent]:
        index = self._segment_index
        if index is None or index in self._closed:
            return []
        self._closed.add(index)
        if self._last_percent >= 100:
            return []
        self._last_percent = 100
        return [ProgressEvent(index, self._bytes_total, self._bytes_total, 100)]

    def _fill_gap(self, next_index: int) -> list[ProgressEvent]:
        start = 0 if self._segment_index is None else self._segment_index + 1
        events: list[ProgressEvent] = []
        for index in range(start, next_index):
            if index in self._closed:
                continue
            self._closed.add(index)
            total = self.sizes[index] if index < len(self.sizes) else 0
            events.append(ProgressEvent(index, 0, total, 0))
            events.append(ProgressEvent(index, total, total, 100))
        return events


def _percent(bytes_written: int, bytes_total: int) -> int:
    if bytes_total <= 0:
        return 100
    return min(max(bytes_written * 100 // bytes_total, 0), 100)


__all__ = ["ProgressAccumulator"]
