"""stormreplay - overlay synchronization engine for severe-weather event replays."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("stormreplay")
except PackageNotFoundError:
    __version__ = "0+local"
from stormreplay._cache import StationNetworkCache
from stormreplay.client import StormReplayClient
from stormreplay.config import InFlightPolicy, ReplayConfig
from stormreplay.exceptions import (
    ReplayConfigError,
    ReplayError,
    ReplayResponseError,
    ReplayTransportError,
)
from stormreplay.models import (
    AsosStation,
    ConvectiveOutlook,
    DamageTrack,
    EventRange,
    LocalStormReport,
    MesoscaleDiscussion,
    NwsWarning,
    OverlayRecord,
    RadarSite,
    Segment,
    SpcWatch,
    SurfaceObservation,
)
from stormreplay.state.events import OverlayChange, OverlaySource, OverlaySourceState
from stormreplay.state.store import OverlayStore

__all__ = [
    "__version__",
    "AsosStation",
    "ConvectiveOutlook",
    "DamageTrack",
    "EventRange",
    "InFlightPolicy",
    "LocalStormReport",
    "MesoscaleDiscussion",
    "NwsWarning",
    "OverlayChange",
    "OverlayRecord",
    "OverlaySource",
    "OverlaySourceState",
    "OverlayStore",
    "RadarSite",
    "ReplayConfig",
    "ReplayConfigError",
    "ReplayError",
    "ReplayResponseError",
    "ReplayTransportError",
    "Segment",
    "SpcWatch",
    "StationNetworkCache",
    "StormReplayClient",
    "SurfaceObservation",
]
