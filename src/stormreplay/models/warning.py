"""NWS storm-based warning polygon."""

from __future__ import annotations

from typing import Any

from pydantic import field_validator

from stormreplay.models._base import FeatureModel, UtcMs


class NwsWarning(FeatureModel):
    """Tornado, severe thunderstorm or flash flood warning from IEM ``sbw``.

    Parameters
    ----------
    id : str
        ``{wfo}-{phenomena}-{significance}-{eventid}``.
    issue, expire : int
        Validity window in UTC ms.
    status : str
        VTEC action (``NEW``, ``CON``, ``EXP``...).
    hailtag, windtag : str or None
        Threat tags as published (``"2.00"``, ``"70"``).
    """

    id: str
    phenomena: str
    significance: str
    wfo: str
    eventid: int
    issue: UtcMs
    expire: UtcMs
    status: str = "NEW"
    is_emergency: bool = False
    is_pds: bool = False
    hailtag: str | None = None
    windtag: str | None = None

    @classmethod
    def _prepare(cls, merged: dict[str, Any], feature: dict[str, Any]) -> None:
        merged["id"] = (
            f"{merged.get('wfo')}-{merged.get('phenomena')}-{merged.get('significance')}-{merged.get('eventid')}"
        )

    @field_validator("hailtag", "windtag", mode="before")
    @classmethod
    def _coerce_tag(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        return str(value)
