"""Base model and timestamp helpers for overlay records.

Every overlay record inherits from :class:`ReplayBaseModel`.  Records that
arrive as GeoJSON features inherit from :class:`FeatureModel`, which:

* flattens ``feature.properties`` to the top level so upstream keys map
  directly onto fields (``validation_alias`` covers renamed keys),
* drops ``None`` properties so the field default is used instead,
* keeps the raw ``geometry`` untouched for the rendering layer,
* lets subclasses derive composite ids through :meth:`FeatureModel._prepare`.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator


def parse_utc_ms(value: Any) -> int | None:
    """Convert an ISO-8601 string, datetime or epoch-ms number to UTC ms.

    Naive datetimes are taken as UTC.  Returns ``None`` for ``None``, empty
    strings and non-finite numbers.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        return int(value)
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).strip())
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp() * 1000)


def format_utc_ms(ms: int) -> str:
    """``2013-05-20T20:00:00Z`` style rendering of a UTC ms timestamp."""
    return datetime.fromtimestamp(ms / 1000, tz=UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def _require_utc_ms(value: Any) -> int:
    parsed = parse_utc_ms(value)
    if parsed is None:
        raise ValueError(f"expected a timestamp, got {value!r}")
    return parsed


UtcMs = Annotated[int, BeforeValidator(_require_utc_ms)]
"""Annotated type that coerces ISO strings / datetimes / numbers to UTC ms."""


def finite_or_none(value: Any) -> float | None:
    """Numeric readings: finite numbers pass, everything else is missing."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


class ReplayBaseModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class FeatureModel(ReplayBaseModel):
    """Record validated straight from a GeoJSON feature."""

    geometry: dict[str, Any] | None = Field(default=None, repr=False)

    @classmethod
    def _prepare(cls, merged: dict[str, Any], feature: dict[str, Any]) -> None:
        """Hook for derived fields; mutates ``merged`` in place."""

    @model_validator(mode="before")
    @classmethod
    def _flatten_feature(cls, values: Any) -> Any:
        if not isinstance(values, dict) or values.get("type") != "Feature":
            return values
        properties = values.get("properties")
        if not isinstance(properties, dict):
            raise ValueError("feature has no properties")
        merged = {key: value for key, value in properties.items() if value is not None}
        merged["geometry"] = values.get("geometry")
        cls._prepare(merged, values)
        return merged
