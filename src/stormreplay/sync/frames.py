"""Frame index to radar site resolution for multi-site replays."""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from collections.abc import Sequence

from stormreplay.models.range import RadarSite, Segment


def segment_for_time(timestamp_ms: int, segments: Sequence[Segment]) -> Segment | None:
    """The segment whose ``[start_ms, end_ms)`` holds ``timestamp_ms``.

    ``segments`` must be ordered by start and non-overlapping.
    """
    starts = [segment.start_ms for segment in segments]
    pos = bisect_right(starts, timestamp_ms) - 1
    if pos < 0:
        return None
    candidate = segments[pos]
    return candidate if candidate.contains(timestamp_ms) else None


def resolve_site_for_frame(
    frame_index: int,
    frame_times: Sequence[int],
    segments: Sequence[Segment],
    fallback: RadarSite | None,
) -> RadarSite | None:
    """Site authoritative for a frame; ``fallback`` in single-site mode or gaps."""
    if not 0 <= frame_index < len(frame_times):
        return fallback
    segment = segment_for_time(frame_times[frame_index], segments)
    return segment.site if segment is not None else fallback


def timezone_for_frame(
    frame_index: int,
    frame_times: Sequence[int],
    segments: Sequence[Segment],
    fallback: RadarSite | None,
) -> str:
    site = resolve_site_for_frame(frame_index, frame_times, segments, fallback)
    return site.tz if site is not None else "UTC"


def handoff_indices(frame_times: Sequence[int], segments: Sequence[Segment]) -> list[int]:
    """Frame index of each site handoff.

    For every segment but the last, the first frame at or after the
    segment's end.  Boundaries past the final frame are omitted.
    """
    if len(frame_times) <= 1 or len(segments) <= 1:
        return []
    markers: list[int] = []
    for segment in segments[:-1]:
        index = bisect_left(frame_times, segment.end_ms)
        if index < len(frame_times):
            markers.append(index)
    return markers
