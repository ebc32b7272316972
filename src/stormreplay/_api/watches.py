"""SPC watches: single range query against IEM ``spc_watch.py``."""

from __future__ import annotations

import json
import logging

from stormreplay._api._common import dedupe_by_id, features_of, iso_utc, validate_features
from stormreplay._constants import WATCH_TYPES
from stormreplay._transport import Transport
from stormreplay.config import ReplayConfig
from stormreplay.models.range import EventRange
from stormreplay.models.watch import SpcWatch

_logger = logging.getLogger(__name__)


async def fetch_watches(config: ReplayConfig, transport: Transport, event: EventRange) -> list[SpcWatch]:
    """Tornado (TOR) and severe thunderstorm (SVR) watches overlapping ``event``.

    The endpoint answers some queries with a plain-text message instead of
    GeoJSON; that is treated as "no watches", not as an error.
    """
    url = f"{config.iem_base_url}/cgi-bin/request/gis/spc_watch.py"
    params = {"sts": iso_utc(event.start_ms), "ets": iso_utc(event.end_ms), "format": "geojson"}
    text = await transport.get_text(url, params)
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        _logger.warning("watches: non-JSON response: %s", text[:200])
        return []

    wanted = [
        feature
        for feature in features_of(payload)
        if isinstance(feature.get("properties"), dict) and feature["properties"].get("TYPE") in WATCH_TYPES
    ]
    return dedupe_by_id(validate_features(SpcWatch, wanted, label="watch"))
