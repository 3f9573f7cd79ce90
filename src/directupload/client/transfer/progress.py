"""Progress accounting for a single transfer."""

from __future__ import annotations

from directupload.client.transfer.cancellation import CancellationToken
from directupload.client.transfer.types import ProgressCallback


class ProgressReporter:
    """Turns byte counts into percentage samples for one transfer.

    Samples are never decreasing and stop once the token is triggered or the
    reporter is closed. Nothing is reported when the total is unknown.
    """

    def __init__(
        self,
        callback: ProgressCallback | None,
        token: CancellationToken,
        total: int | None = None,
    ) -> None:
        self._callback = callback
        self._token = token
        self._total = total
        self._bytes = 0
        self._last: float | None = None
        self._closed = False

    @property
    def bytes_transferred(self) -> int:
        return self._bytes

    @property
    def last_percent(self) -> float | None:
        """Last emitted sample, None if nothing was emitted."""
        return self._last

    def set_total(self, total: int | None) -> None:
        self._total = total

    def advance(self, nbytes: int) -> None:
        """Record `nbytes` more bytes and emit a sample."""
        self._bytes += nbytes
        if self._total:
            self._emit(min(100.0, self._bytes * 100 / self._total))

    def complete(self) -> None:
        """Emit 100 if a total is known and it was not reached yet."""
        if self._total is not None and self._last != 100.0:
            self._emit(100.0)

    def close(self) -> None:
        self._closed = True

    def _emit(self, percent: float) -> None:
        if self._callback is None or self._closed or self._token.cancelled:
            return
        if self._last is not None and percent < self._last:
            return
        self._last = percent
        self._callback(percent)
