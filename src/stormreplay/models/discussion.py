"""SPC mesoscale discussion."""

from __future__ import annotations

from typing import Any

from pydantic import field_validator

from stormreplay.models._base import FeatureModel, UtcMs


class MesoscaleDiscussion(FeatureModel):
    """An MCD polygon; ``(year, num)`` identifies it across reissuances."""

    id: str
    num: int
    year: int
    issue: UtcMs
    expire: UtcMs
    watch_confidence: int | None = None
    concerning: str = ""

    @classmethod
    def _prepare(cls, merged: dict[str, Any], feature: dict[str, Any]) -> None:
        merged["id"] = f"MCD-{merged.get('year')}-{merged.get('num')}"

    @field_validator("watch_confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, value: Any) -> int | None:
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @property
    def key(self) -> tuple[int, int]:
        return (self.year, self.num)
