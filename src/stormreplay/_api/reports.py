"""Local storm reports: single range query against IEM ``lsr.geojson``."""

from __future__ import annotations

from stormreplay._api._common import dedupe_by_id, features_of, fetch_json, iso_utc, validate_features
from stormreplay._transport import Transport
from stormreplay.config import ReplayConfig
from stormreplay.models.range import EventRange
from stormreplay.models.report import LocalStormReport


async def fetch_reports(config: ReplayConfig, transport: Transport, event: EventRange) -> list[LocalStormReport]:
    """Every LSR type (tornado, hail, wind, flood, funnel...) valid in ``event``."""
    url = f"{config.iem_base_url}/geojson/lsr.geojson"
    payload = await fetch_json(transport, url, {"sts": iso_utc(event.start_ms), "ets": iso_utc(event.end_ms)})
    return dedupe_by_id(validate_features(LocalStormReport, features_of(payload), label="report"))
