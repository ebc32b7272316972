"""Per-source fetch pipelines against a fake IEM / DAT upstream."""

from __future__ import annotations

import math
from typing import Any

import pytest
from conftest import EMPTY_COLLECTION, FakeUpstream, collection, feature, ms, point

from stormreplay._api.discussions import fetch_discussions, sample_instants
from stormreplay._api.outlooks import fetch_outlooks
from stormreplay._api.reports import fetch_reports
from stormreplay._api.surface import (
    discover_stations,
    fetch_nearby_stations,
    fetch_surface_obs,
    parse_obhistory,
    utc_days,
)
from stormreplay._api.tracks import fetch_tracks, survey_date_filter
from stormreplay._api.warnings import fetch_warnings
from stormreplay._api.watches import fetch_watches
from stormreplay._cache import StationNetworkCache
from stormreplay.config import ReplayConfig
from stormreplay.exceptions import ReplayResponseError, ReplayTransportError
from stormreplay.models import AsosStation, EventRange, RadarSite

EVENT = EventRange(start_ms=ms("2013-05-20T19:00:00+00:00"), end_ms=ms("2013-05-20T20:00:00+00:00"))
OVERNIGHT = EventRange(start_ms=ms("2013-05-20T19:00:00+00:00"), end_ms=ms("2013-05-21T01:00:00+00:00"))

KTLX = RadarSite(id="KTLX", name="Oklahoma City", lat=35.333, lon=-97.278)
KVNX = RadarSite(id="KVNX", name="Vance AFB", lat=36.741, lon=-98.128)


def _warning(phenomena: str, significance: str, eventid: int, issue: str = "2013-05-20T19:00:00Z") -> dict[str, Any]:
    return feature(
        {
            "wfo": "OUN",
            "phenomena": phenomena,
            "significance": significance,
            "eventid": eventid,
            "issue": issue,
            "expire": "2013-05-20T20:00:00Z",
        }
    )


def _mcd(num: int, issue: str) -> dict[str, Any]:
    return feature({"num": num, "year": 2013, "issue": issue, "expire": "2013-05-20T21:00:00Z"})


def _outlook(threshold: str, category: str = "CATEGORICAL") -> dict[str, Any]:
    return feature(
        {
            "threshold": threshold,
            "category": category,
            "issue": "2013-05-20T16:30:00Z",
            "expire": "2013-05-21T12:00:00Z",
        }
    )


def _station(sid: str, lat: float, lon: float, *, archive: bool = True) -> dict[str, Any]:
    props: dict[str, Any] = {"sid": sid, "sname": sid, "elevation": 390.0}
    if archive:
        props["archive_begin"] = "1948-01-01"
    return feature(props, point(lon, lat))


# ------------------------------------------------------------------
# Single-shot sources
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_warnings_filtered_to_convective_warnings(config: ReplayConfig, upstream: FakeUpstream) -> None:
    upstream.responders["warnings"] = lambda _url, _params: collection(
        _warning("TO", "W", 1),
        _warning("SV", "W", 2),
        _warning("FF", "W", 3),
        _warning("TO", "A", 4),
        _warning("MA", "W", 5),
    )

    warnings = await fetch_warnings(config, upstream, EVENT)

    assert sorted(w.id for w in warnings) == ["OUN-FF-W-3", "OUN-SV-W-2", "OUN-TO-W-1"]
    params = upstream.calls_to("warnings")[0]
    assert params == {"sts": "2013-05-20T19:00:00.000Z", "ets": "2013-05-20T20:00:00.000Z"}


@pytest.mark.asyncio
async def test_warning_followups_collapse_to_latest(config: ReplayConfig, upstream: FakeUpstream) -> None:
    upstream.responders["warnings"] = lambda _url, _params: collection(
        _warning("TO", "W", 1, "2013-05-20T19:30:00Z"),
        _warning("TO", "W", 1, "2013-05-20T19:00:00Z"),
    )

    warnings = await fetch_warnings(config, upstream, EVENT)

    assert len(warnings) == 1
    assert warnings[0].issue == ms("2013-05-20T19:30:00+00:00")


@pytest.mark.asyncio
async def test_warnings_bad_json_raises(config: ReplayConfig, upstream: FakeUpstream) -> None:
    upstream.responders["warnings"] = lambda _url, _params: "<html>502 Bad Gateway</html>"
    with pytest.raises(ReplayResponseError):
        await fetch_warnings(config, upstream, EVENT)


@pytest.mark.asyncio
async def test_watches_tor_and_svr_only(config: ReplayConfig, upstream: FakeUpstream) -> None:
    def _watch(kind: str, num: int) -> dict[str, Any]:
        return feature({"TYPE": kind, "NUM": num, "ISSUE": "201305201810", "EXPIRE": "201305210200"})

    upstream.responders["watches"] = lambda _url, _params: collection(
        _watch("TOR", 197), _watch("SVR", 198), _watch("TOR", 197), _watch("XYZ", 1)
    )

    watches = await fetch_watches(config, upstream, EVENT)

    assert [w.id for w in watches] == ["TOR-197", "SVR-198"]
    assert upstream.calls_to("watches")[0]["format"] == "geojson"


@pytest.mark.asyncio
async def test_watches_plain_text_is_empty(config: ReplayConfig, upstream: FakeUpstream) -> None:
    upstream.responders["watches"] = lambda _url, _params: "ERROR: No watches found for period"
    assert await fetch_watches(config, upstream, EVENT) == []


@pytest.mark.asyncio
async def test_reports_have_unique_ids(config: ReplayConfig, upstream: FakeUpstream) -> None:
    report = feature({"valid": "2013-05-20T19:56:00Z", "typetext": "TORNADO"}, point(-97.4867, 35.3395))
    upstream.responders["reports"] = lambda _url, _params: collection(
        report, report, feature({"valid": "2013-05-20T19:57:00Z"}, None)
    )

    reports = await fetch_reports(config, upstream, EVENT)

    assert len(reports) == 1
    assert reports[0].typetext == "TORNADO"


# ------------------------------------------------------------------
# Retry ladder
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_outlook_ladder_uses_first_categorical_cycle(config: ReplayConfig, upstream: FakeUpstream) -> None:
    def _respond(url: str, params: dict[str, str]) -> Any:
        if params["cycle"] == "20":
            raise ReplayTransportError("HTTP 404", status_code=404, url=url)
        if params["cycle"] == "16":
            return collection(_outlook("0.05", category="TORNADO"))
        return collection(_outlook("SLGT"), _outlook("MDT"), _outlook("HIGH"))

    upstream.responders["outlooks"] = _respond

    outlooks = await fetch_outlooks(config, upstream, "2013-05-20")

    assert [o.id for o in outlooks] == ["OTL-SLGT", "OTL-MDT", "OTL-HIGH"]
    assert [p["cycle"] for p in upstream.calls_to("outlooks")] == ["20", "16", "13"]
    assert upstream.calls_to("outlooks")[0] == {"day": "1", "valid": "2013-05-20", "cycle": "20", "outlook_type": "C"}


@pytest.mark.asyncio
async def test_outlook_ladder_exhausted_is_empty(config: ReplayConfig, upstream: FakeUpstream) -> None:
    def _respond(url: str, _params: dict[str, str]) -> Any:
        raise ReplayTransportError("HTTP 500", status_code=500, url=url)

    upstream.responders["outlooks"] = _respond

    assert await fetch_outlooks(config, upstream, "2013-05-20") == []
    assert len(upstream.calls_to("outlooks")) == 5


# ------------------------------------------------------------------
# Sampled fan-out
# ------------------------------------------------------------------


@pytest.mark.parametrize(
    ("start", "end", "expected"),
    [
        (0, 3_600_000, [0, 1_800_000, 3_600_000]),
        (0, 4_000_000, [0, 1_800_000, 3_600_000, 4_000_000]),
        (500, 500, [500]),
    ],
)
def test_sample_instants_include_end_once(start: int, end: int, expected: list[int]) -> None:
    assert sample_instants(start, end, 1_800_000) == expected


def test_sample_interval_must_be_positive() -> None:
    with pytest.raises(ValueError):
        sample_instants(0, 10, 0)


@pytest.mark.asyncio
async def test_discussions_keep_latest_issue(config: ReplayConfig, upstream: FakeUpstream) -> None:
    def _respond(url: str, params: dict[str, str]) -> Any:
        valid = params["valid"]
        if valid == "2013-05-20T19:00:00.000Z":
            return collection(_mcd(700, "2013-05-20T18:30:00Z"), _mcd(699, "2013-05-20T18:00:00Z"))
        if valid == "2013-05-20T19:30:00.000Z":
            raise ReplayTransportError("HTTP 503", status_code=503, url=url)
        return collection(_mcd(700, "2013-05-20T19:20:00Z"))

    upstream.responders["discussions"] = _respond

    mcds = await fetch_discussions(config, upstream, EVENT)

    assert [m.id for m in mcds] == ["MCD-2013-699", "MCD-2013-700"]
    assert mcds[1].issue == ms("2013-05-20T19:20:00+00:00")
    assert sorted(p["valid"] for p in upstream.calls_to("discussions")) == [
        "2013-05-20T19:00:00.000Z",
        "2013-05-20T19:30:00.000Z",
        "2013-05-20T20:00:00.000Z",
    ]


@pytest.mark.asyncio
async def test_discussion_fanout_respects_limit(upstream: FakeUpstream) -> None:
    config = ReplayConfig(mcd_sample_interval_s=60, mcd_concurrency=3)

    await fetch_discussions(config, upstream, EVENT)

    assert len(upstream.calls_to("discussions")) == 61
    assert upstream.max_in_flight == 3


# ------------------------------------------------------------------
# Paged cursor
# ------------------------------------------------------------------


def test_survey_filter_widened_one_day() -> None:
    assert survey_date_filter(OVERNIGHT) == "Survey_Start_Date >= '2013-05-19' AND Survey_Start_Date <= '2013-05-22'"


@pytest.mark.asyncio
async def test_tracks_follow_transfer_limit(upstream: FakeUpstream) -> None:
    config = ReplayConfig(dat_page_size=2)
    pages = {
        "0": collection(feature({"efscale": "EF5"}, id=1), feature({}, id=2), exceededTransferLimit=True),
        "2": collection(feature({}, id=2), feature({"efscale": "EF1"}, id=3)),
    }
    upstream.responders["tracks"] = lambda _url, params: pages[params["resultOffset"]]

    tracks = await fetch_tracks(config, upstream, EVENT)

    assert [t.id for t in tracks] == ["DAT-1", "DAT-2", "DAT-3"]
    calls = upstream.calls_to("tracks")
    assert [c["resultOffset"] for c in calls] == ["0", "2"]
    assert calls[0]["resultRecordCount"] == "2"
    assert calls[0]["outFields"] == "*"
    assert calls[0]["f"] == "geojson"


@pytest.mark.asyncio
async def test_tracks_offset_follows_rows_returned(upstream: FakeUpstream) -> None:
    config = ReplayConfig(dat_page_size=5)
    pages = {
        "0": collection(feature({}, id=1), feature({}, id=2), exceededTransferLimit=True),
        "2": collection(feature({}, id=3)),
    }
    upstream.responders["tracks"] = lambda _url, params: pages[params["resultOffset"]]

    tracks = await fetch_tracks(config, upstream, EVENT)

    assert [t.id for t in tracks] == ["DAT-1", "DAT-2", "DAT-3"]
    assert [c["resultOffset"] for c in upstream.calls_to("tracks")] == ["0", "2"]


@pytest.mark.asyncio
async def test_tracks_undecodable_page_keeps_collected(upstream: FakeUpstream) -> None:
    config = ReplayConfig(dat_page_size=1)

    def _respond(_url: str, params: dict[str, str]) -> Any:
        if params["resultOffset"] == "0":
            return collection(feature({}, id=1), exceededTransferLimit=True)
        return "<html>proxy error</html>"

    upstream.responders["tracks"] = _respond

    tracks = await fetch_tracks(config, upstream, EVENT)

    assert [t.id for t in tracks] == ["DAT-1"]


@pytest.mark.asyncio
async def test_tracks_http_failure_raises(config: ReplayConfig, upstream: FakeUpstream) -> None:
    def _respond(url: str, _params: dict[str, str]) -> Any:
        raise ReplayTransportError("HTTP 500", status_code=500, url=url)

    upstream.responders["tracks"] = _respond

    with pytest.raises(ReplayTransportError):
        await fetch_tracks(config, upstream, EVENT)


@pytest.mark.asyncio
async def test_tracks_arcgis_error_body_stops(config: ReplayConfig, upstream: FakeUpstream) -> None:
    upstream.responders["tracks"] = lambda _url, _params: {"error": {"code": 400, "message": "Invalid query"}}
    assert await fetch_tracks(config, upstream, EVENT) == []


# ------------------------------------------------------------------
# Two-phase discovery
# ------------------------------------------------------------------


def _networks(url: str, _params: dict[str, str]) -> Any:
    if url.endswith("/OK_ASOS.geojson"):
        return collection(
            _station("OKC", 35.39, -97.60),
            _station("OUN", 35.25, -97.47),
            _station("GUY", 36.68, -101.51),
            _station("NOA", 35.30, -97.30, archive=False),
        )
    if url.endswith("/KS_ASOS.geojson"):
        return collection(_station("ICT", 37.65, -97.43))
    return EMPTY_COLLECTION


@pytest.mark.asyncio
async def test_nearby_stations_filtered_sorted_capped(config: ReplayConfig, upstream: FakeUpstream) -> None:
    upstream.responders["network"] = _networks
    cache = StationNetworkCache()

    stations = await fetch_nearby_stations(config, upstream, cache, KTLX.lat, KTLX.lon)

    assert [s.id for s in stations] == ["OUN", "OKC"]
    assert all(s.network == "OK_ASOS" for s in stations)

    capped = await fetch_nearby_stations(ReplayConfig(max_stations=1), upstream, cache, KTLX.lat, KTLX.lon)
    assert [s.id for s in capped] == ["OUN"]


@pytest.mark.asyncio
async def test_networks_fetched_once_per_cache(config: ReplayConfig, upstream: FakeUpstream) -> None:
    upstream.responders["network"] = _networks
    cache = StationNetworkCache()

    await fetch_nearby_stations(config, upstream, cache, KTLX.lat, KTLX.lon)
    first = len(upstream.calls_to("network"))
    await fetch_nearby_stations(config, upstream, cache, KTLX.lat, KTLX.lon)

    assert first > 0
    assert len(upstream.calls_to("network")) == first


@pytest.mark.asyncio
async def test_failed_network_not_cached(config: ReplayConfig, upstream: FakeUpstream) -> None:
    def _respond(url: str, params: dict[str, str]) -> Any:
        if url.endswith("/TX_ASOS.geojson"):
            raise ReplayTransportError("HTTP 502", status_code=502, url=url)
        return _networks(url, params)

    upstream.responders["network"] = _respond
    cache = StationNetworkCache()

    stations = await fetch_nearby_stations(config, upstream, cache, KTLX.lat, KTLX.lon)

    assert [s.id for s in stations] == ["OUN", "OKC"]
    assert "OK_ASOS" in cache
    assert "TX_ASOS" not in cache


@pytest.mark.asyncio
async def test_station_in_two_networks_listed_once(upstream: FakeUpstream) -> None:
    def _respond(url: str, params: dict[str, str]) -> Any:
        if url.endswith("/KS_ASOS.geojson"):
            return collection(_station("OKC", 35.39, -97.60))
        return _networks(url, params)

    upstream.responders["network"] = _respond

    stations = await fetch_nearby_stations(
        ReplayConfig(max_stations=2), upstream, StationNetworkCache(), KTLX.lat, KTLX.lon
    )

    assert [s.id for s in stations] == ["OUN", "OKC"]


@pytest.mark.asyncio
async def test_stations_deduplicated_across_sites(config: ReplayConfig, upstream: FakeUpstream) -> None:
    upstream.responders["network"] = _networks

    stations = await discover_stations(config, upstream, StationNetworkCache(), [KTLX, KVNX])

    ids = [s.id for s in stations]
    assert sorted(ids) == ["ICT", "OKC", "OUN"]
    assert len(ids) == len(set(ids))


def test_utc_days_cover_range() -> None:
    assert utc_days(OVERNIGHT.start_ms, OVERNIGHT.end_ms) == ["2013-05-20", "2013-05-21"]
    assert utc_days(EVENT.start_ms, EVENT.end_ms) == ["2013-05-20"]


class TestParseObhistory:
    station = AsosStation(id="OKC", lat=35.39, lon=-97.6, network="OK_ASOS")

    def test_column_shape(self) -> None:
        payload = {
            "schema": {"fields": [{"name": "utc_valid"}, {"name": "tmpf"}, {"name": "sknt"}, {"name": "skyc1"}]},
            "data": [
                ["2013-05-20T19:52:00Z", 84.0, 15.0, "SCT"],
                ["2013-05-20T19:57:00Z", None, None, "BKN"],
            ],
        }

        observations = parse_obhistory(payload, self.station)

        assert len(observations) == 1
        assert observations[0].utc_valid == ms("2013-05-20T19:52:00+00:00")
        assert observations[0].skyc1 == "SCT"
        assert observations[0].dwpf is None

    def test_record_shape_with_non_finite(self) -> None:
        payload = {"data": [{"utc_valid": "2013-05-20T19:52:00Z", "tmpf": math.nan, "sknt": 12, "gust": math.inf}]}

        observations = parse_obhistory(payload, self.station)

        assert len(observations) == 1
        assert observations[0].tmpf is None
        assert observations[0].sknt == 12.0
        assert observations[0].gust is None
        assert (observations[0].lat, observations[0].lon) == (35.39, -97.6)

    def test_rows_without_timestamp_dropped(self) -> None:
        payload = {"data": [{"utc_valid": None, "tmpf": 80}, {"utc_valid": "garbage", "tmpf": 80}]}
        assert parse_obhistory(payload, self.station) == []

    def test_unexpected_payload(self) -> None:
        assert parse_obhistory(["not", "a", "dict"], self.station) == []


@pytest.mark.asyncio
async def test_surface_obs_both_phases(config: ReplayConfig, upstream: FakeUpstream) -> None:
    upstream.responders["network"] = _networks

    def _obhistory(url: str, params: dict[str, str]) -> Any:
        if params["station"] == "OUN" and params["date"] == "2013-05-21":
            raise ReplayTransportError("HTTP 500", status_code=500, url=url)
        return {
            "data": [
                {"utc_valid": f"{params['date']}T00:52:00Z", "tmpf": 70},
                {"utc_valid": f"{params['date']}T00:52:00Z", "tmpf": 70},
                {"utc_valid": f"{params['date']}T00:47:00Z", "sknt": 10},
            ]
        }

    upstream.responders["obhistory"] = _obhistory

    result = await fetch_surface_obs(config, upstream, StationNetworkCache(), [KTLX], OVERNIGHT)

    assert [s.id for s in result.stations] == ["OUN", "OKC"]
    calls = upstream.calls_to("obhistory")
    assert len(calls) == 4
    assert {(c["station"], c["network"]) for c in calls} == {("OUN", "OK_ASOS"), ("OKC", "OK_ASOS")}
    keys = [(o.station, o.utc_valid) for o in result.observations]
    assert keys == sorted(keys)
    assert len(keys) == len(set(keys))
    assert len(result.observations) == 6


@pytest.mark.asyncio
async def test_surface_obs_without_sites(config: ReplayConfig, upstream: FakeUpstream) -> None:
    result = await fetch_surface_obs(config, upstream, StationNetworkCache(), [], EVENT)
    assert result.stations == [] and result.observations == []
    assert upstream.calls == []
