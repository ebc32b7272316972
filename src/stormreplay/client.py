"""High-level async client for the overlay synchronization engine."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any

import aiohttp

from stormreplay._cache import StationNetworkCache
from stormreplay._transport import HttpTransport, Transport
from stormreplay.config import ReplayConfig
from stormreplay.exceptions import ReplayError
from stormreplay.models.range import EventRange, RadarSite, Segment
from stormreplay.state.events import OverlayChange, OverlaySource, OverlaySourceState
from stormreplay.state.store import OverlayStore
from stormreplay.sync import frames
from stormreplay.sync.orchestrator import OverlayOrchestrator
from stormreplay.sync.timewindow import FrameCoalescer, visible_records

_logger = logging.getLogger(__name__)

FrameListener = Callable[[int, dict[OverlaySource, list[Any]]], None]


class StormReplayClient:
    """Loads overlay data for replay events and serves frame-synced views.

    Usage::

        async with StormReplayClient(config) as client:
            client.set_radar_context(site=ktlx)
            await client.load_frames(frame_times)
            warnings = client.get_visible_records(OverlaySource.WARNINGS, frame_times[0])

    Parameters
    ----------
    config : ReplayConfig or None
        Defaults to ``ReplayConfig()``.
    session : aiohttp.ClientSession or None
        Reused when given (and left open on exit).
    transport : Transport or None
        Replaces the HTTP transport entirely (tests, proxies).
    station_cache : StationNetworkCache or None
        Share one cache between clients to keep station lists for the
        whole process.
    on_frame : callable or None
        Receives ``(t, {source: visible_records})`` after position changes,
        at most once per event loop iteration.
    """

    def __init__(
        self,
        config: ReplayConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        station_cache: StationNetworkCache | None = None,
        on_frame: FrameListener | None = None,
    ) -> None:
        self._config = config or ReplayConfig()
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None
        self._station_cache = station_cache or StationNetworkCache()
        self._store = OverlayStore()
        self._orchestrator: OverlayOrchestrator | None = None
        self._selected_site: RadarSite | None = None
        self._segments: tuple[Segment, ...] = ()
        self._frame_times: tuple[int, ...] = ()
        self._on_frame = on_frame
        self._coalescer: FrameCoalescer[dict[OverlaySource, list[Any]]] = FrameCoalescer(
            self.visible_snapshot, self._deliver_frame
        )

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> StormReplayClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)
        self._orchestrator = OverlayOrchestrator(
            self._config,
            self._transport,
            self._store,
            self._station_cache,
            self.active_sites,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        self._coalescer.cancel()
        if self._orchestrator is not None:
            self._orchestrator.unload_event()
            await self._orchestrator.wait_idle()
            self._orchestrator = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    def _require_orchestrator(self) -> OverlayOrchestrator:
        if self._orchestrator is None:
            raise ReplayError("Client not initialized. Use 'async with StormReplayClient(...) as client:'")
        return self._orchestrator

    # ------------------------------------------------------------------
    # Radar context (produced by the radar engine)
    # ------------------------------------------------------------------

    def set_radar_context(self, *, site: RadarSite | None = None, segments: Sequence[Segment] = ()) -> None:
        """Selected site and, for multi-site replays, the ordered segments.

        Read when an event load starts; changing it does not refetch.
        """
        self._selected_site = site
        self._segments = tuple(sorted(segments, key=lambda s: s.start_ms))

    def active_sites(self) -> list[RadarSite]:
        """One site per segment in multi-site mode, else the selected site."""
        if self._segments:
            return [segment.site for segment in self._segments]
        return [self._selected_site] if self._selected_site is not None else []

    @property
    def station_cache(self) -> StationNetworkCache:
        return self._station_cache

    # ------------------------------------------------------------------
    # Event lifecycle
    # ------------------------------------------------------------------

    async def load_event(self, event: EventRange, *, wait: bool = True) -> bool:
        """Fetch overlays for ``event`` unless it is already the loaded range.

        Returns ``True`` when a new fetch was started.  With ``wait`` the
        call returns once every source has settled.
        """
        orchestrator = self._require_orchestrator()
        started = orchestrator.load_event(event)
        if wait:
            await orchestrator.wait_idle()
        return started

    async def load_frames(self, frame_times: Sequence[int], *, wait: bool = True) -> bool:
        """Adopt the radar engine's frame list; an empty list unloads the event."""
        self._frame_times = tuple(int(t) for t in frame_times)
        event = EventRange.from_frame_times(self._frame_times)
        if event is None:
            _logger.debug("Frame list is empty; unloading overlays")
            self.unload_event()
            return False
        return await self.load_event(event, wait=wait)

    def unload_event(self) -> None:
        self._require_orchestrator().unload_event()
        self._coalescer.cancel()

    async def wait_idle(self) -> None:
        await self._require_orchestrator().wait_idle()

    # ------------------------------------------------------------------
    # Overlay state
    # ------------------------------------------------------------------

    def get_overlay_state(self, source: OverlaySource) -> OverlaySourceState:
        return self._store.get(source)

    def subscribe(self, listener: Callable[[OverlayChange], None]) -> Callable[[], None]:
        return self._store.subscribe(listener)

    @property
    def surface_stations(self) -> tuple[Any, ...]:
        return self._store.surface_stations

    def set_visible(self, source: OverlaySource, visible: bool) -> None:
        self._store.set_visible(source, visible)

    def set_time_synced(self, source: OverlaySource, time_synced: bool) -> None:
        self._store.set_time_synced(source, time_synced)

    def set_opacity(self, source: OverlaySource, opacity: float) -> None:
        self._store.set_opacity(source, opacity)

    def get_visible_records(self, source: OverlaySource, t: int) -> list[Any]:
        return visible_records(source, self._store.get(source), t)

    def visible_snapshot(self, t: int) -> dict[OverlaySource, list[Any]]:
        """Time-filtered records for every source toggled visible."""
        return {
            source: visible_records(source, state, t)
            for source, state in self._store.snapshot().items()
            if state.visible
        }

    # ------------------------------------------------------------------
    # Playback position
    # ------------------------------------------------------------------

    def set_position(self, t: int) -> None:
        """Report the playback timestamp; ``on_frame`` fires on the next loop turn."""
        self._coalescer.set_position(t)

    def set_frame_index(self, frame_index: int) -> None:
        if 0 <= frame_index < len(self._frame_times):
            self.set_position(self._frame_times[frame_index])

    def _deliver_frame(self, t: int, visible: dict[OverlaySource, list[Any]]) -> None:
        if self._on_frame is not None:
            self._on_frame(t, visible)

    # ------------------------------------------------------------------
    # Multi-site frames
    # ------------------------------------------------------------------

    def resolve_site_for_frame(self, frame_index: int) -> RadarSite | None:
        return frames.resolve_site_for_frame(frame_index, self._frame_times, self._segments, self._selected_site)

    def timezone_for_frame(self, frame_index: int) -> str:
        return frames.timezone_for_frame(frame_index, self._frame_times, self._segments, self._selected_site)

    def handoff_indices(self) -> list[int]:
        return frames.handoff_indices(self._frame_times, self._segments)
