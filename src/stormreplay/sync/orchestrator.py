"""Event change detection and overlay fetch orchestration.

Watches the active event range.  When it changes, every overlay source is
cleared, flagged as loading and fetched concurrently.  Each source settles
on its own: a failure becomes that source's ``error`` and never touches the
others.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from stormreplay._api.discussions import fetch_discussions
from stormreplay._api.outlooks import fetch_outlooks
from stormreplay._api.reports import fetch_reports
from stormreplay._api.surface import fetch_surface_obs
from stormreplay._api.tracks import fetch_tracks
from stormreplay._api.warnings import fetch_warnings
from stormreplay._api.watches import fetch_watches
from stormreplay._cache import StationNetworkCache
from stormreplay._transport import Transport
from stormreplay.config import InFlightPolicy, ReplayConfig
from stormreplay.models.range import EventRange, RadarSite
from stormreplay.state.events import OverlaySource
from stormreplay.state.store import OverlayStore
from stormreplay.sync.convective import convective_day

_logger = logging.getLogger(__name__)

_FALLBACK_ERRORS: dict[OverlaySource, str] = {
    OverlaySource.WARNINGS: "Failed to fetch warnings",
    OverlaySource.WATCHES: "Failed to fetch watches",
    OverlaySource.DISCUSSIONS: "Failed to fetch mesoscale discussions",
    OverlaySource.OUTLOOKS: "Failed to fetch outlooks",
    OverlaySource.REPORTS: "Failed to fetch storm reports",
    OverlaySource.SURFACE_OBS: "Failed to fetch surface observations",
    OverlaySource.DAMAGE_TRACKS: "Failed to fetch damage tracks",
}

Fetch = Callable[[], Awaitable[Sequence[Any]]]


class OverlayOrchestrator:
    """Owns the decision to (re)fetch overlay data.

    Parameters
    ----------
    config : ReplayConfig
        Endpoints, fan-out limits and the in-flight policy.
    transport : Transport
        HTTP transport shared by every pipeline.
    store : OverlayStore
        Destination of every result, error and loading flag.
    station_cache : StationNetworkCache
        Session-wide ASOS network cache, passed through to discovery.
    sites : callable
        Returns the radar sites active for the event (one per segment in
        multi-site mode, else the selected site).  Read when a run starts.

    Every run carries a generation number.  Writes from a run whose
    generation is no longer current are discarded, so a superseded or
    unloaded event can never overwrite the store.
    """

    def __init__(
        self,
        config: ReplayConfig,
        transport: Transport,
        store: OverlayStore,
        station_cache: StationNetworkCache,
        sites: Callable[[], Sequence[RadarSite]],
    ) -> None:
        self._config = config
        self._transport = transport
        self._store = store
        self._station_cache = station_cache
        self._sites = sites
        self._last_key: tuple[int, int] | None = None
        self._generation = 0
        self._task: asyncio.Task[None] | None = None
        self._task_generation = 0
        self.runs_started = 0

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def current_range(self) -> tuple[int, int] | None:
        return self._last_key

    # ------------------------------------------------------------------
    # Change detection
    # ------------------------------------------------------------------

    def load_event(self, event: EventRange) -> bool:
        """React to the active range; returns ``True`` when a run was started.

        Must be called from within the running event loop.
        """
        if event.key == self._last_key:
            return False
        self._last_key = event.key

        if self.in_flight:
            # a run orphaned by unload_event never blocks the next load
            if self._config.in_flight_policy is InFlightPolicy.DROP and self._is_current(self._task_generation):
                _logger.info("Overlay fetch in flight; ignoring range change to %s", event)
                return False
            _logger.info("Superseding in-flight overlay fetch with %s", event)
            assert self._task is not None  # noqa: S101
            self._task.cancel()

        self._generation += 1
        generation = self._generation

        self._store.clear_all()
        for source in OverlaySource:
            self._store.set_loading(source, True)

        self.runs_started += 1
        self._task_generation = generation
        self._task = asyncio.get_running_loop().create_task(
            self._run(event, generation),
            name=f"stormreplay-overlays-{generation}",
        )
        return True

    def unload_event(self) -> None:
        """Clear everything and forget the range so a reload fetches again."""
        self._generation += 1
        if self.in_flight and self._config.in_flight_policy is InFlightPolicy.SUPERSEDE:
            assert self._task is not None  # noqa: S101
            self._task.cancel()
        if self._last_key is not None:
            _logger.debug("Event unloaded; clearing overlays")
        self._last_key = None
        self._store.reset()

    async def wait_idle(self) -> None:
        """Wait until no run is in flight (cancelled runs count as settled)."""
        while self.in_flight:
            assert self._task is not None  # noqa: S101
            await asyncio.wait({self._task})

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _fetchers(self, event: EventRange, generation: int) -> dict[OverlaySource, Fetch]:
        config, transport = self._config, self._transport
        day = convective_day(event.start_ms)
        sites = list(self._sites())

        async def _surface() -> Sequence[Any]:
            result = await fetch_surface_obs(config, transport, self._station_cache, sites, event)
            if self._is_current(generation):
                self._store.set_surface_stations(result.stations)
            return result.observations

        return {
            OverlaySource.WARNINGS: lambda: fetch_warnings(config, transport, event),
            OverlaySource.WATCHES: lambda: fetch_watches(config, transport, event),
            OverlaySource.DISCUSSIONS: lambda: fetch_discussions(config, transport, event),
            OverlaySource.OUTLOOKS: lambda: fetch_outlooks(config, transport, day),
            OverlaySource.REPORTS: lambda: fetch_reports(config, transport, event),
            OverlaySource.SURFACE_OBS: _surface,
            OverlaySource.DAMAGE_TRACKS: lambda: fetch_tracks(config, transport, event),
        }

    async def _run(self, event: EventRange, generation: int) -> None:
        _logger.info("Fetching overlays for %s", event)
        fetchers = self._fetchers(event, generation)
        await asyncio.gather(*(self._run_source(source, fetch, generation) for source, fetch in fetchers.items()))
        _logger.debug("Overlay run %d settled", generation)

    async def _run_source(self, source: OverlaySource, fetch: Fetch, generation: int) -> None:
        try:
            records = await fetch()
        except Exception as exc:
            _logger.warning("%s fetch failed: %s", source, exc, exc_info=_logger.isEnabledFor(logging.DEBUG))
            if self._is_current(generation):
                self._store.set_error(source, str(exc) or _FALLBACK_ERRORS[source])
        else:
            if self._is_current(generation):
                self._store.set_records(source, records)
                _logger.info("%d %s", len(records), source)
            else:
                _logger.debug("Discarding %d stale %s from run %d", len(records), source, generation)
        finally:
            if self._is_current(generation):
                self._store.set_loading(source, False)
