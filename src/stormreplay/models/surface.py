"""ASOS station metadata and surface observations."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from stormreplay.models._base import FeatureModel, ReplayBaseModel, finite_or_none


class AsosStation(FeatureModel):
    """An ASOS station from an IEM ``{ST}_ASOS`` network.

    Immutable once fetched; shared through the station cache.
    """

    id: str = Field(validation_alias=AliasChoices("sid", "id"))
    name: str = Field(default="", validation_alias=AliasChoices("sname", "station_name", "name"))
    lat: float
    lon: float
    network: str = ""
    elevation: float = 0.0

    @classmethod
    def _prepare(cls, merged: dict[str, Any], feature: dict[str, Any]) -> None:
        if not merged.get("archive_begin"):
            raise ValueError("station has no archive")
        geometry = feature.get("geometry")
        coords = geometry.get("coordinates") if isinstance(geometry, dict) else None
        if not isinstance(coords, (list, tuple)) or len(coords) < 2:
            raise ValueError("station has no coordinates")
        merged["lon"], merged["lat"] = coords[0], coords[1]
        merged["geometry"] = None

    @field_validator("elevation", mode="before")
    @classmethod
    def _coerce_elevation(cls, value: Any) -> float:
        return finite_or_none(value) or 0.0


class SurfaceObservation(ReplayBaseModel):
    """One observation row; ``None`` means the sensor reported nothing."""

    station: str
    lat: float
    lon: float
    utc_valid: int
    tmpf: float | None = None
    dwpf: float | None = None
    drct: float | None = None
    sknt: float | None = None
    gust: float | None = None
    mslp: float | None = None
    skyc1: str | None = None

    @field_validator("tmpf", "dwpf", "drct", "sknt", "gust", "mslp", mode="before")
    @classmethod
    def _coerce_reading(cls, value: Any) -> float | None:
        return finite_or_none(value)

    @field_validator("skyc1", mode="before")
    @classmethod
    def _coerce_sky(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None

    @property
    def id(self) -> str:
        return f"{self.station}-{self.utc_valid}"
