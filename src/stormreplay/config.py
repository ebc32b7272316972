"""Client configuration for stormreplay."""

from __future__ import annotations

import dataclasses
import os
from enum import StrEnum
from typing import Any

from stormreplay._constants import (
    DAT_BASE_URL,
    DAT_PAGE_SIZE,
    IEM_BASE_URL,
    MAX_STATIONS,
    MCD_CONCURRENCY,
    MCD_SAMPLE_INTERVAL_S,
    OBS_CONCURRENCY,
    STATION_RADIUS_KM,
    USER_AGENT,
)
from stormreplay.exceptions import ReplayConfigError


class InFlightPolicy(StrEnum):
    """What the orchestrator does when a new range arrives mid-run."""

    #: Ignore the new range until the running fetch settles.
    DROP = "drop"
    #: Cancel the running fetch and discard anything it still writes.
    SUPERSEDE = "supersede"


@dataclasses.dataclass(frozen=True)
class ReplayConfig:
    """Engine configuration.

    Parameters
    ----------
    iem_base_url : str
        Iowa Environmental Mesonet root (warnings, watches, MCDs, outlooks,
        LSRs, ASOS networks and observation history).
    dat_base_url : str
        NWS Damage Assessment Toolkit FeatureServer root.
    user_agent : str
        ``User-Agent`` header sent with every request.
    request_timeout : float
        Total seconds allowed per HTTP request.
    mcd_sample_interval_s : int
        Spacing of the instants sampled for mesoscale discussions.
    mcd_concurrency : int
        Worker pool size for discussion sampling.
    obs_concurrency : int
        Worker pool size for station-day observation fetches.
    station_radius_km : float
        Search radius around each radar site for surface stations.
    max_stations : int
        Nearest-station cap per radar site.
    dat_page_size : int
        ``resultRecordCount`` for damage track paging.
    in_flight_policy : InFlightPolicy
        Behaviour when a new event range is loaded while a previous
        orchestration run is still fetching.
    """

    iem_base_url: str = IEM_BASE_URL
    dat_base_url: str = DAT_BASE_URL
    user_agent: str = USER_AGENT
    request_timeout: float = 30.0
    mcd_sample_interval_s: int = MCD_SAMPLE_INTERVAL_S
    mcd_concurrency: int = MCD_CONCURRENCY
    obs_concurrency: int = OBS_CONCURRENCY
    station_radius_km: float = STATION_RADIUS_KM
    max_stations: int = MAX_STATIONS
    dat_page_size: int = DAT_PAGE_SIZE
    in_flight_policy: InFlightPolicy = InFlightPolicy.SUPERSEDE

    def __post_init__(self) -> None:
        for name in ("mcd_sample_interval_s", "mcd_concurrency", "obs_concurrency", "max_stations", "dat_page_size"):
            if getattr(self, name) <= 0:
                raise ReplayConfigError(f"{name} must be positive, got {getattr(self, name)}")
        if self.station_radius_km <= 0:
            raise ReplayConfigError(f"station_radius_km must be positive, got {self.station_radius_km}")
        if self.request_timeout <= 0:
            raise ReplayConfigError(f"request_timeout must be positive, got {self.request_timeout}")

    @classmethod
    def from_env(cls, **overrides: Any) -> ReplayConfig:
        """Create configuration from ``STORMREPLAY_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP: dict[str, tuple[str, type]] = {
            "STORMREPLAY_IEM_BASE_URL": ("iem_base_url", str),
            "STORMREPLAY_DAT_BASE_URL": ("dat_base_url", str),
            "STORMREPLAY_USER_AGENT": ("user_agent", str),
            "STORMREPLAY_REQUEST_TIMEOUT": ("request_timeout", float),
            "STORMREPLAY_MCD_SAMPLE_INTERVAL_S": ("mcd_sample_interval_s", int),
            "STORMREPLAY_MCD_CONCURRENCY": ("mcd_concurrency", int),
            "STORMREPLAY_OBS_CONCURRENCY": ("obs_concurrency", int),
            "STORMREPLAY_STATION_RADIUS_KM": ("station_radius_km", float),
            "STORMREPLAY_MAX_STATIONS": ("max_stations", int),
            "STORMREPLAY_DAT_PAGE_SIZE": ("dat_page_size", int),
            "STORMREPLAY_IN_FLIGHT_POLICY": ("in_flight_policy", InFlightPolicy),
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, (field_name, caster) in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = caster(val.strip())
            except ValueError as exc:
                raise ReplayConfigError(f"{env_key}={val!r} is not a valid {field_name}") from exc

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
