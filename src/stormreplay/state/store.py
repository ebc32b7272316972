"""In-memory overlay state store.

Mutators replace the per-source snapshot wholesale, so readers always see a
consistent :class:`OverlaySourceState` and never a half-applied update.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from stormreplay.models.surface import AsosStation
from stormreplay.state.events import SOURCE_DEFAULTS, OverlayChange, OverlaySource, OverlaySourceState

_logger = logging.getLogger(__name__)

Listener = Callable[[OverlayChange], None]


class OverlayStore:
    """Per-source records plus loading/error/display flags."""

    def __init__(self) -> None:
        self._states: dict[OverlaySource, OverlaySourceState] = {
            source: OverlaySourceState(**SOURCE_DEFAULTS.get(source, {})) for source in OverlaySource
        }
        self._surface_stations: tuple[AsosStation, ...] = ()
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, source: OverlaySource) -> OverlaySourceState:
        return self._states[source]

    def snapshot(self) -> dict[OverlaySource, OverlaySourceState]:
        return dict(self._states)

    @property
    def surface_stations(self) -> tuple[AsosStation, ...]:
        """Stations discovered for the current event's surface observations."""
        return self._surface_stations

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for every change; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def _update(self, source: OverlaySource, **changes: Any) -> None:
        current = self._states[source]
        changed = {key for key, value in changes.items() if getattr(current, key) != value}
        if not changed:
            return
        # constructor re-validates the opacity range
        fields = {name: getattr(current, name) for name in OverlaySourceState.model_fields}
        fields.update(changes)
        new_state = OverlaySourceState(**fields)
        self._states[source] = new_state
        self._notify(OverlayChange(source=source, state=new_state, fields=frozenset(changed)))

    def _notify(self, change: OverlayChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                _logger.warning("Overlay listener failed for %s", change.source, exc_info=True)

    def set_records(self, source: OverlaySource, records: Iterable[Any]) -> None:
        self._update(source, records=tuple(records))

    def set_loading(self, source: OverlaySource, loading: bool) -> None:
        self._update(source, loading=loading)

    def set_error(self, source: OverlaySource, error: str | None) -> None:
        self._update(source, error=error)

    def set_visible(self, source: OverlaySource, visible: bool) -> None:
        self._update(source, visible=visible)

    def set_time_synced(self, source: OverlaySource, time_synced: bool) -> None:
        self._update(source, time_synced=time_synced)

    def set_opacity(self, source: OverlaySource, opacity: float) -> None:
        self._update(source, opacity=opacity)

    def set_surface_stations(self, stations: Iterable[AsosStation]) -> None:
        self._surface_stations = tuple(stations)

    def clear(self, source: OverlaySource) -> None:
        """Drop records and error for one source; display flags are kept."""
        if source is OverlaySource.SURFACE_OBS:
            self._surface_stations = ()
        self._update(source, records=(), error=None)

    def clear_all(self) -> None:
        for source in OverlaySource:
            self.clear(source)

    def reset(self) -> None:
        """Clear data and loading flags on every source (event unloaded)."""
        for source in OverlaySource:
            self.clear(source)
            self.set_loading(source, False)
