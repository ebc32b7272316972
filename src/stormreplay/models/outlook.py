"""SPC Day 1 categorical convective outlook area."""

from __future__ import annotations

from typing import Any, Literal

from stormreplay.models._base import FeatureModel, UtcMs

OutlookThreshold = Literal["TSTM", "MRGL", "SLGT", "ENH", "MDT", "HIGH"]


class ConvectiveOutlook(FeatureModel):
    id: str
    threshold: OutlookThreshold
    category: str
    issue: UtcMs
    expire: UtcMs

    @classmethod
    def _prepare(cls, merged: dict[str, Any], feature: dict[str, Any]) -> None:
        merged["id"] = f"OTL-{merged.get('threshold')}"
