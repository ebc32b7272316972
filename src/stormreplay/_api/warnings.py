"""NWS storm-based warnings: single range query against IEM ``sbw.geojson``."""

from __future__ import annotations

import logging

from stormreplay._api._common import features_of, fetch_json, iso_utc, keep_latest_issue, validate_features
from stormreplay._constants import WARNING_PHENOMENA, WARNING_SIGNIFICANCE
from stormreplay._transport import Transport
from stormreplay.config import ReplayConfig
from stormreplay.models.range import EventRange
from stormreplay.models.warning import NwsWarning

_logger = logging.getLogger(__name__)


async def fetch_warnings(config: ReplayConfig, transport: Transport, event: EventRange) -> list[NwsWarning]:
    """Tornado, severe thunderstorm and flash flood warnings issued in ``event``.

    Follow-up statements reuse the VTEC event id; the latest-issued polygon
    is kept.

    Raises
    ------
    ReplayTransportError
        On any HTTP failure.
    ReplayResponseError
        If the body is not JSON.
    """
    url = f"{config.iem_base_url}/geojson/sbw.geojson"
    payload = await fetch_json(transport, url, {"sts": iso_utc(event.start_ms), "ets": iso_utc(event.end_ms)})

    wanted = [
        feature
        for feature in features_of(payload)
        if isinstance(feature.get("properties"), dict)
        and feature["properties"].get("phenomena") in WARNING_PHENOMENA
        and feature["properties"].get("significance") == WARNING_SIGNIFICANCE
    ]
    warnings = keep_latest_issue(validate_features(NwsWarning, wanted, label="warning"))
    _logger.debug("warnings: %d of %d features kept", len(warnings), len(features_of(payload)))
    return warnings
