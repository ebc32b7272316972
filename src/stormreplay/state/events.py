"""Overlay sources and store change notifications."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class OverlaySource(StrEnum):
    WARNINGS = "warnings"
    WATCHES = "watches"
    DISCUSSIONS = "discussions"
    OUTLOOKS = "outlooks"
    REPORTS = "reports"
    SURFACE_OBS = "surface_obs"
    DAMAGE_TRACKS = "damage_tracks"


class OverlaySourceState(BaseModel):
    """Everything a renderer needs to know about one overlay source."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    records: tuple[Any, ...] = ()
    loading: bool = False
    error: str | None = None
    visible: bool = True
    time_synced: bool = True
    opacity: float = Field(default=1.0, ge=0.0, le=1.0)


# Display defaults per source; everything else uses the model defaults.
SOURCE_DEFAULTS: dict[OverlaySource, dict[str, Any]] = {
    OverlaySource.OUTLOOKS: {"time_synced": False},
    OverlaySource.SURFACE_OBS: {"visible": False},
    OverlaySource.DAMAGE_TRACKS: {"time_synced": False},
}


class OverlayChange(BaseModel):
    """Emitted to subscribers after every store mutation."""

    model_config = ConfigDict(frozen=True)

    source: OverlaySource
    state: OverlaySourceState
    fields: frozenset[str] = Field(default_factory=frozenset, description="Names of the fields that changed")
