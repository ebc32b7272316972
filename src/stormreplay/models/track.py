"""Surveyed tornado damage track from the NWS Damage Assessment Toolkit."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator

from stormreplay.models._base import FeatureModel, parse_utc_ms


class DamageTrack(FeatureModel):
    """A tornado track polyline.

    Tracks carry no validity window; they are fetched once per event and are
    never time-filtered.  ``properties`` keeps every attribute the toolkit
    returned (``outFields=*``).
    """

    id: str
    ef_rating: str | None = Field(default=None, validation_alias=AliasChoices("efscale", "EF_Scale", "ef_rating"))
    survey_start_ms: int | None = Field(
        default=None,
        validation_alias=AliasChoices("Survey_Start_Date", "survey_start_ms"),
    )
    properties: dict[str, Any] = Field(default_factory=dict, repr=False)

    @classmethod
    def _prepare(cls, merged: dict[str, Any], feature: dict[str, Any]) -> None:
        props = feature.get("properties") or {}
        object_id = feature.get("id")
        if object_id is None:
            object_id = props.get("OBJECTID", props.get("objectid"))
        if object_id is None:
            raise ValueError("track has no OBJECTID")
        merged["id"] = f"DAT-{object_id}"
        merged["properties"] = dict(props)

    @field_validator("ef_rating", mode="before")
    @classmethod
    def _coerce_rating(cls, value: Any) -> str | None:
        return None if value in (None, "") else str(value)

    @field_validator("survey_start_ms", mode="before")
    @classmethod
    def _coerce_survey_date(cls, value: Any) -> int | None:
        # ArcGIS GeoJSON emits esriFieldTypeDate as epoch ms.
        try:
            return parse_utc_ms(value)
        except ValueError:
            return None
