"""Event ranges, radar sites and multi-site segments."""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import Field, model_validator

from stormreplay.models._base import ReplayBaseModel, format_utc_ms


class EventRange(ReplayBaseModel):
    """Inclusive UTC millisecond bounds of a loaded event's frames.

    Two ranges are the same event exactly when both bounds match.
    """

    start_ms: int
    end_ms: int

    @model_validator(mode="after")
    def _check_order(self) -> EventRange:
        if self.start_ms > self.end_ms:
            raise ValueError(f"start_ms ({self.start_ms}) is after end_ms ({self.end_ms})")
        return self

    @classmethod
    def from_frame_times(cls, frame_times: Sequence[int]) -> EventRange | None:
        """First and last frame timestamps, or ``None`` when there are no frames."""
        if not frame_times:
            return None
        return cls(start_ms=int(frame_times[0]), end_ms=int(frame_times[-1]))

    @property
    def key(self) -> tuple[int, int]:
        return (self.start_ms, self.end_ms)

    def __str__(self) -> str:
        return f"{format_utc_ms(self.start_ms)}..{format_utc_ms(self.end_ms)}"


class RadarSite(ReplayBaseModel):
    """A NEXRAD site, as chosen by the radar engine."""

    id: str
    name: str = ""
    lat: float
    lon: float
    elevation: float = 0.0
    tz: str = Field(default="UTC", description="IANA timezone used for frame labels")


class Segment(ReplayBaseModel):
    """Sub-range ``[start_ms, end_ms)`` of an event attributed to one site."""

    id: str
    site: RadarSite
    start_ms: int
    end_ms: int

    def contains(self, timestamp_ms: int) -> bool:
        return self.start_ms <= timestamp_ms < self.end_ms
