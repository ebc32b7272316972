from __future__ import annotations

import pytest

from stormreplay.config import InFlightPolicy, ReplayConfig
from stormreplay.exceptions import ReplayConfigError


def test_defaults() -> None:
    config = ReplayConfig()
    assert config.mcd_sample_interval_s == 1800
    assert config.mcd_concurrency == 3
    assert config.obs_concurrency == 5
    assert config.station_radius_km == 230.0
    assert config.max_stations == 50
    assert config.dat_page_size == 2000
    assert config.in_flight_policy is InFlightPolicy.SUPERSEDE


def test_from_env_reads_prefixed_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORMREPLAY_IEM_BASE_URL", "http://iem.test")
    monkeypatch.setenv("STORMREPLAY_OBS_CONCURRENCY", " 8 ")
    monkeypatch.setenv("STORMREPLAY_IN_FLIGHT_POLICY", "drop")

    config = ReplayConfig.from_env()

    assert config.iem_base_url == "http://iem.test"
    assert config.obs_concurrency == 8
    assert config.in_flight_policy is InFlightPolicy.DROP


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORMREPLAY_MAX_STATIONS", "not-a-number")
    assert ReplayConfig.from_env(max_stations=10).max_stations == 10


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("STORMREPLAY_MCD_CONCURRENCY", "three"),
        ("STORMREPLAY_IN_FLIGHT_POLICY", "sometimes"),
        ("STORMREPLAY_REQUEST_TIMEOUT", "0"),
    ],
)
def test_invalid_env_raises_config_error(monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
    monkeypatch.setenv(key, value)
    with pytest.raises(ReplayConfigError):
        ReplayConfig.from_env()


def test_non_positive_limits_rejected() -> None:
    with pytest.raises(ReplayConfigError, match="obs_concurrency"):
        ReplayConfig(obs_concurrency=0)
