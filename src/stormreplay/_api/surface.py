"""ASOS surface observations: spatial discovery, then per station-day fetch.

Phase 1 finds the stations near each active radar site.  IEM groups ASOS
stations into per-state networks, so the geospatial index picks the
networks overlapping the search radius, uncached networks are fetched once
per process, and the merged list is filtered by true distance.

Phase 2 fetches ``obhistory`` for every (station, UTC day) pair through
the bounded pool.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import ValidationError

from stormreplay._api._common import features_of, fetch_json, validate_features
from stormreplay._cache import StationNetworkCache
from stormreplay._geo import haversine_km, overlapping_networks
from stormreplay._pool import run_bounded
from stormreplay._transport import Transport
from stormreplay.config import ReplayConfig
from stormreplay.exceptions import ReplayError
from stormreplay.models._base import parse_utc_ms
from stormreplay.models.range import EventRange, RadarSite
from stormreplay.models.surface import AsosStation, SurfaceObservation

_logger = logging.getLogger(__name__)

_OBS_COLUMNS = ("tmpf", "dwpf", "drct", "sknt", "gust", "mslp", "skyc1")


@dataclass(slots=True)
class SurfaceObsResult:
    stations: list[AsosStation] = field(default_factory=list)
    observations: list[SurfaceObservation] = field(default_factory=list)


# ------------------------------------------------------------------
# Phase 1: station discovery
# ------------------------------------------------------------------


async def fetch_network_stations(config: ReplayConfig, transport: Transport, network: str) -> list[AsosStation]:
    """Stations with an observation archive in one IEM network."""
    url = f"{config.iem_base_url}/geojson/network/{network}.geojson"
    payload = await fetch_json(transport, url)
    stations = validate_features(AsosStation, features_of(payload), label="station")
    # the network geojson does not always repeat the network id per feature
    return [s if s.network else s.model_copy(update={"network": network}) for s in stations]


async def _fill_cache(
    config: ReplayConfig,
    transport: Transport,
    cache: StationNetworkCache,
    networks: Sequence[str],
) -> None:
    missing = cache.missing(networks)
    if not missing:
        return

    async def _one(network: str) -> None:
        try:
            stations = await fetch_network_stations(config, transport, network)
        except ReplayError:
            _logger.debug("Station list for %s unavailable", network, exc_info=True)
            return
        cache.put_if_absent(network, stations)

    await asyncio.gather(*(_one(network) for network in missing))


async def fetch_nearby_stations(
    config: ReplayConfig,
    transport: Transport,
    cache: StationNetworkCache,
    lat: float,
    lon: float,
) -> list[AsosStation]:
    """The nearest ``config.max_stations`` stations within the search radius, closest first."""
    radius_km = config.station_radius_km
    networks = overlapping_networks(lat, lon, radius_km)
    _logger.debug("Querying %d state networks near %.2f,%.2f: %s", len(networks), lat, lon, ", ".join(networks))
    await _fill_cache(config, transport, cache, networks)

    # stations near a state line can be listed by more than one network
    closest: dict[str, tuple[float, AsosStation]] = {}
    for network in networks:
        for station in cache.get(network) or ():
            distance = haversine_km(lat, lon, station.lat, station.lon)
            if distance > radius_km:
                continue
            seen = closest.get(station.id)
            if seen is None or distance < seen[0]:
                closest[station.id] = (distance, station)
    candidates = sorted(closest.values(), key=lambda item: item[0])
    nearby = [station for _, station in candidates[: config.max_stations]]

    _logger.debug(
        "%d stations within %.0fkm of %.2f,%.2f (%d total, capped at %d)",
        len(nearby),
        radius_km,
        lat,
        lon,
        len(candidates),
        config.max_stations,
    )
    return nearby


async def discover_stations(
    config: ReplayConfig,
    transport: Transport,
    cache: StationNetworkCache,
    sites: Sequence[RadarSite],
) -> list[AsosStation]:
    """Nearby stations of every site, deduplicated by station id (first site wins)."""
    per_site = await asyncio.gather(
        *(fetch_nearby_stations(config, transport, cache, site.lat, site.lon) for site in sites)
    )
    unique: dict[str, AsosStation] = {}
    for stations in per_site:
        for station in stations:
            unique.setdefault(station.id, station)
    return list(unique.values())


# ------------------------------------------------------------------
# Phase 2: observation history
# ------------------------------------------------------------------


def utc_days(start_ms: int, end_ms: int) -> list[str]:
    """Every UTC calendar date touched by ``[start_ms, end_ms]``."""
    day = datetime.fromtimestamp(start_ms / 1000, tz=UTC).replace(hour=0, minute=0, second=0, microsecond=0)
    end = datetime.fromtimestamp(end_ms / 1000, tz=UTC)
    days: list[str] = []
    while day <= end:
        days.append(day.strftime("%Y-%m-%d"))
        day += timedelta(days=1)
    return days


def _rows(payload: Any) -> list[dict[str, Any]]:
    """Normalize ``obhistory`` rows to dicts.

    IEM answers either with records (list of objects) or with a pandas
    ``orient=split``-like shape: ``schema.fields`` names plus row arrays.
    """
    if not isinstance(payload, dict):
        return []
    data = payload.get("data")
    if not isinstance(data, list):
        return []

    columns: list[str] = []
    schema = payload.get("schema")
    fields = schema.get("fields") if isinstance(schema, dict) else None
    if isinstance(fields, list):
        columns = [f.get("name", "") if isinstance(f, dict) else "" for f in fields]

    rows: list[dict[str, Any]] = []
    for row in data:
        if isinstance(row, dict):
            rows.append(row)
        elif isinstance(row, list):
            rows.append({name: row[i] for i, name in enumerate(columns) if name and i < len(row)})
    return rows


def parse_obhistory(payload: Any, station: AsosStation) -> list[SurfaceObservation]:
    """Observations for ``station``; rows with neither temperature nor wind are dropped."""
    observations: list[SurfaceObservation] = []
    for row in _rows(payload):
        try:
            utc_valid = parse_utc_ms(row.get("utc_valid"))
        except ValueError:
            continue
        if utc_valid is None:
            continue
        if row.get("tmpf") is None and row.get("sknt") is None:
            continue
        try:
            observations.append(
                SurfaceObservation(
                    station=station.id,
                    lat=station.lat,
                    lon=station.lon,
                    utc_valid=utc_valid,
                    **{name: row.get(name) for name in _OBS_COLUMNS},
                )
            )
        except ValidationError:
            _logger.debug("Skipping malformed %s row", station.id, exc_info=True)
    return observations


async def fetch_station_day(
    config: ReplayConfig,
    transport: Transport,
    station: AsosStation,
    day: str,
) -> list[SurfaceObservation]:
    url = f"{config.iem_base_url}/api/1/obhistory.json"
    payload = await fetch_json(transport, url, {"station": station.id, "network": station.network, "date": day})
    return parse_obhistory(payload, station)


async def fetch_observations(
    config: ReplayConfig,
    transport: Transport,
    stations: Sequence[AsosStation],
    event: EventRange,
) -> list[SurfaceObservation]:
    """Observations of ``stations`` on every UTC day of ``event``.

    Failed station-days are dropped.  The result is unique per
    ``(station, utc_valid)`` and sorted by station, then time.
    """
    days = utc_days(event.start_ms, event.end_ms)
    jobs = [(station, day) for station in stations for day in days]
    _logger.debug(
        "Fetching %d station-day observation sets (%d stations x %d days)", len(jobs), len(stations), len(days)
    )

    async def _job(job: tuple[AsosStation, str]) -> list[SurfaceObservation]:
        station, day = job
        return await fetch_station_day(config, transport, station, day)

    batches = await run_bounded(jobs, _job, limit=config.obs_concurrency)

    unique: dict[tuple[str, int], SurfaceObservation] = {}
    total = 0
    for batch in batches:
        for obs in batch:
            total += 1
            unique.setdefault((obs.station, obs.utc_valid), obs)
    observations = sorted(unique.values(), key=lambda o: (o.station, o.utc_valid))
    _logger.debug("%d observations (%d before dedup)", len(observations), total)
    return observations


async def fetch_surface_obs(
    config: ReplayConfig,
    transport: Transport,
    cache: StationNetworkCache,
    sites: Sequence[RadarSite],
    event: EventRange,
) -> SurfaceObsResult:
    """Both phases for the given radar sites."""
    if not sites:
        return SurfaceObsResult()
    stations = await discover_stations(config, transport, cache, sites)
    observations = await fetch_observations(config, transport, stations, event)
    return SurfaceObsResult(stations=stations, observations=observations)
