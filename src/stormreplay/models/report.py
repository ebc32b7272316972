"""Local storm report (tornado, hail, wind, flood...)."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from stormreplay.models._base import FeatureModel, UtcMs, finite_or_none, parse_utc_ms


class LocalStormReport(FeatureModel):
    """A point report.

    Reports have no expiry: once ``valid`` has passed they stay active for the
    rest of the replay, so :attr:`issue` is ``valid`` and :attr:`expire` is
    ``None``.
    """

    id: str
    type: str = ""
    typetext: str = ""
    magnitude: float | None = Field(default=None, validation_alias=AliasChoices("magf", "magnitude"))
    valid: UtcMs
    lat: float
    lon: float
    city: str = ""
    county: str = ""
    state: str = Field(default="", validation_alias=AliasChoices("state", "st"))
    source: str = ""
    remark: str = ""

    @classmethod
    def _prepare(cls, merged: dict[str, Any], feature: dict[str, Any]) -> None:
        geometry = feature.get("geometry")
        coords = geometry.get("coordinates") if isinstance(geometry, dict) else None
        if not isinstance(coords, (list, tuple)) or len(coords) < 2:
            raise ValueError("report has no point coordinates")
        lon, lat = float(coords[0]), float(coords[1])
        merged["lat"] = lat
        merged["lon"] = lon
        valid = parse_utc_ms(merged.get("valid"))
        merged["id"] = f"LSR-{valid}-{lat:.4f}-{lon:.4f}"

    @field_validator("magnitude", mode="before")
    @classmethod
    def _coerce_magnitude(cls, value: Any) -> float | None:
        return finite_or_none(value)

    @property
    def issue(self) -> int:
        return self.valid

    @property
    def expire(self) -> int | None:
        return None
