"""Tornado damage tracks: paged cursor query against the NWS DAT FeatureServer."""

from __future__ import annotations

import logging

from stormreplay._api._common import dedupe_by_id, features_of, fetch_json, utc_date, validate_features
from stormreplay._constants import DAT_TORNADO_TRACKS_LAYER, MS_PER_DAY
from stormreplay._transport import Transport
from stormreplay.config import ReplayConfig
from stormreplay.exceptions import ReplayResponseError
from stormreplay.models.range import EventRange
from stormreplay.models.track import DamageTrack

_logger = logging.getLogger(__name__)


def survey_date_filter(event: EventRange) -> str:
    """ArcGIS ``where`` clause covering ``event`` widened by a day each side.

    Surveys for storms near midnight UTC are often dated the day before or
    after the radar frames.
    """
    start = utc_date(event.start_ms - MS_PER_DAY)
    end = utc_date(event.end_ms + MS_PER_DAY)
    return f"Survey_Start_Date >= '{start}' AND Survey_Start_Date <= '{end}'"


async def fetch_tracks(config: ReplayConfig, transport: Transport, event: EventRange) -> list[DamageTrack]:
    """All surveyed tornado tracks for ``event``.

    Pages while the server reports ``exceededTransferLimit``.  HTTP failures
    raise; a page that cannot be decoded ends paging with the tracks
    collected so far.
    """
    url = f"{config.dat_base_url}/{DAT_TORNADO_TRACKS_LAYER}/query"
    where = survey_date_filter(event)
    tracks: list[DamageTrack] = []
    offset = 0

    while True:
        params = {
            "where": where,
            "outFields": "*",
            "f": "geojson",
            "resultOffset": offset,
            "resultRecordCount": config.dat_page_size,
        }
        try:
            page = await fetch_json(transport, url, params)
        except ReplayResponseError:
            _logger.warning("tracks: undecodable page at offset %d; stopping", offset, exc_info=True)
            break
        if isinstance(page, dict) and "error" in page:
            _logger.warning("tracks: server error at offset %d: %s", offset, page["error"])
            break

        features = features_of(page)
        tracks.extend(validate_features(DamageTrack, features, label="track"))

        if not (isinstance(page, dict) and page.get("exceededTransferLimit")) or not features:
            break
        offset += len(features)

    tracks = dedupe_by_id(tracks)
    _logger.info("tracks: fetched %d from NWS DAT", len(tracks))
    return tracks
