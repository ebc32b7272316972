"""SPC Day 1 categorical outlook: retry ladder over issuance cycles.

IEM serves one outlook per (convective day, cycle).  Not every cycle exists
for every day, so cycles are tried latest first and the first one carrying
categorical areas wins.
"""

from __future__ import annotations

import logging

from stormreplay._api._common import dedupe_by_id, features_of, fetch_json, validate_features
from stormreplay._constants import OUTLOOK_CATEGORY, OUTLOOK_CYCLES, OUTLOOK_THRESHOLDS
from stormreplay._transport import Transport
from stormreplay.config import ReplayConfig
from stormreplay.exceptions import ReplayError
from stormreplay.models.outlook import ConvectiveOutlook

_logger = logging.getLogger(__name__)


def _categorical(features: list[dict]) -> list[ConvectiveOutlook]:
    wanted = [
        feature
        for feature in features
        if isinstance(feature.get("properties"), dict)
        and feature["properties"].get("category") == OUTLOOK_CATEGORY
        and feature["properties"].get("threshold") in OUTLOOK_THRESHOLDS
    ]
    return dedupe_by_id(validate_features(ConvectiveOutlook, wanted, label="outlook"))


async def fetch_outlooks(
    config: ReplayConfig,
    transport: Transport,
    convective_day: str,
    *,
    cycles: tuple[int, ...] = OUTLOOK_CYCLES,
) -> list[ConvectiveOutlook]:
    """Categorical areas of the latest available Day 1 outlook for ``convective_day``.

    Never raises for upstream trouble: when no cycle yields data the result
    is empty, which is also what a quiet day looks like.
    """
    url = f"{config.iem_base_url}/api/1/nws/spc_outlook.geojson"
    for cycle in cycles:
        params = {"day": 1, "valid": convective_day, "cycle": cycle, "outlook_type": "C"}
        try:
            payload = await fetch_json(transport, url, params)
        except ReplayError:
            _logger.debug("outlook %s cycle %02dZ unavailable", convective_day, cycle, exc_info=True)
            continue

        outlooks = _categorical(features_of(payload))
        if outlooks:
            _logger.debug("outlook %s: using %02dZ cycle", convective_day, cycle)
            return outlooks

    _logger.debug("outlook %s: no cycle had categorical areas", convective_day)
    return []
