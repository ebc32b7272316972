"""Synchronization layer: event change detection, time windows and frames."""

from stormreplay.sync.convective import convective_day
from stormreplay.sync.frames import handoff_indices, resolve_site_for_frame, timezone_for_frame
from stormreplay.sync.orchestrator import OverlayOrchestrator
from stormreplay.sync.timewindow import FrameCoalescer, active_records, is_active, visible_records

__all__ = [
    "FrameCoalescer",
    "OverlayOrchestrator",
    "active_records",
    "convective_day",
    "handoff_indices",
    "is_active",
    "resolve_site_for_frame",
    "timezone_for_frame",
    "visible_records",
]
