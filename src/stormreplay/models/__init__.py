"""Data models for events, sites and overlay records."""

from typing import TypeAlias

from stormreplay.models._base import FeatureModel, ReplayBaseModel, UtcMs, format_utc_ms, parse_utc_ms
from stormreplay.models.discussion import MesoscaleDiscussion
from stormreplay.models.outlook import ConvectiveOutlook
from stormreplay.models.range import EventRange, RadarSite, Segment
from stormreplay.models.report import LocalStormReport
from stormreplay.models.surface import AsosStation, SurfaceObservation
from stormreplay.models.track import DamageTrack
from stormreplay.models.warning import NwsWarning
from stormreplay.models.watch import SpcWatch, parse_spc_timestamp

OverlayRecord: TypeAlias = (
    NwsWarning
    | SpcWatch
    | MesoscaleDiscussion
    | ConvectiveOutlook
    | LocalStormReport
    | SurfaceObservation
    | DamageTrack
)

__all__ = [
    "AsosStation",
    "ConvectiveOutlook",
    "DamageTrack",
    "EventRange",
    "FeatureModel",
    "LocalStormReport",
    "MesoscaleDiscussion",
    "NwsWarning",
    "OverlayRecord",
    "RadarSite",
    "ReplayBaseModel",
    "Segment",
    "SpcWatch",
    "SurfaceObservation",
    "UtcMs",
    "format_utc_ms",
    "parse_spc_timestamp",
    "parse_utc_ms",
]
