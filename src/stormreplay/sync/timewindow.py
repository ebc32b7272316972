"""Time-window filtering of overlay records against the playback position."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any, Generic, Protocol, TypeVar

from stormreplay.models.surface import SurfaceObservation
from stormreplay.state.events import OverlaySource, OverlaySourceState

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class TimeWindowed(Protocol):
    @property
    def issue(self) -> int: ...

    @property
    def expire(self) -> int | None: ...


def is_active(record: TimeWindowed, t: int) -> bool:
    """``issue <= t < expire``; a ``None`` expiry never ends."""
    if record.issue > t:
        return False
    return record.expire is None or t < record.expire


def active_records(records: Iterable[Any], t: int) -> list[Any]:
    return [record for record in records if is_active(record, t)]


def latest_per_station(observations: Sequence[SurfaceObservation], t: int) -> list[SurfaceObservation]:
    """Each station's most recent observation at or before ``t``.

    An observation is active from its ``utc_valid`` until the station's next
    report.
    """
    latest: dict[str, SurfaceObservation] = {}
    for obs in observations:
        if obs.utc_valid > t:
            continue
        current = latest.get(obs.station)
        if current is None or obs.utc_valid > current.utc_valid:
            latest[obs.station] = obs
    return sorted(latest.values(), key=lambda o: o.station)


def visible_records(source: OverlaySource, state: OverlaySourceState, t: int) -> list[Any]:
    """Records of ``source`` a renderer should draw at playback time ``t``.

    Visibility (the on/off toggle) is the renderer's business; this only
    applies the time window.
    """
    if source is OverlaySource.DAMAGE_TRACKS or not state.time_synced:
        return list(state.records)
    if source is OverlaySource.SURFACE_OBS:
        return latest_per_station(state.records, t)
    return active_records(state.records, t)


class FrameCoalescer(Generic[T]):
    """Trailing-edge throttle: at most one recomputation per loop iteration.

    ``set_position`` may be called many times between two iterations of the
    event loop (a scrubber drag); only the latest position is computed.
    """

    def __init__(
        self,
        compute: Callable[[int], T],
        deliver: Callable[[int, T], None],
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._compute = compute
        self._deliver = deliver
        self._loop = loop
        self._pending: int | None = None
        self._handle: asyncio.Handle | None = None
        self.flushes = 0

    @property
    def pending(self) -> int | None:
        return self._pending

    def set_position(self, t: int) -> None:
        self._pending = t
        if self._handle is None:
            loop = self._loop or asyncio.get_running_loop()
            self._handle = loop.call_soon(self._flush)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending = None

    def _flush(self) -> None:
        self._handle = None
        t = self._pending
        self._pending = None
        if t is None:
            return
        self.flushes += 1
        result = self._compute(t)
        try:
            self._deliver(t, result)
        except Exception:
            _logger.warning("Frame consumer failed at t=%d", t, exc_info=True)
