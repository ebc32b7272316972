#!/usr/bin/env python3
"""Load every overlay source for a replay window against the live upstreams.

Prints per-source record counts and errors, then the records visible at a
chosen playback instant.

Usage
-----
::

    python scripts/replay_overlays.py 2013-05-20T19:00Z 2013-05-20T21:00Z --site KTLX:35.333:-97.278

Options::

    --site ID:LAT:LON    Radar site for surface observations (repeat for multi-site)
    --at TIME            Playback instant for the visible-records summary (default: end)
    --policy POLICY      In-flight policy: supersede (default) or drop
    --json               Output machine-readable JSON
    --verbose, -v        Enable debug logging

Endpoints and fan-out limits can be overridden with ``STORMREPLAY_*``
environment variables (see ``ReplayConfig.from_env``).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

_src = Path(__file__).resolve().parent.parent / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from stormreplay import (  # noqa: E402
    EventRange,
    InFlightPolicy,
    OverlaySource,
    RadarSite,
    ReplayConfig,
    ReplayError,
    Segment,
    StormReplayClient,
)
from stormreplay.models import format_utc_ms, parse_utc_ms  # noqa: E402


def _parse_time(text: str) -> int:
    try:
        value = parse_utc_ms(text)
    except ValueError:
        value = None
    if value is None:
        raise argparse.ArgumentTypeError(f"not a timestamp: {text!r}")
    return value


def _parse_site(text: str) -> RadarSite:
    try:
        site_id, lat, lon = text.split(":")
        return RadarSite(id=site_id.upper(), lat=float(lat), lon=float(lon))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected ID:LAT:LON, got {text!r}") from exc


def _segments(sites: list[RadarSite], event: EventRange) -> list[Segment]:
    """Split the window evenly between sites, in the order given."""
    if len(sites) <= 1:
        return []
    span = (event.end_ms - event.start_ms + 1) // len(sites)
    segments: list[Segment] = []
    for i, site in enumerate(sites):
        start = event.start_ms + i * span
        end = event.end_ms + 1 if i == len(sites) - 1 else start + span
        segments.append(Segment(id=f"seg-{i}", site=site, start_ms=start, end_ms=end))
    return segments


def _summary(client: StormReplayClient, at_ms: int) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for source in OverlaySource:
        state = client.get_overlay_state(source)
        visible = client.get_visible_records(source, at_ms)
        result[source.value] = {
            "records": len(state.records),
            "visible": len(visible),
            "error": state.error,
            "ids": [getattr(r, "id", None) for r in visible[:10]],
        }
    result["stations"] = [s.id for s in client.surface_stations]
    return result


async def main() -> None:
    parser = argparse.ArgumentParser(description="Fetch replay overlays for a time window")
    parser.add_argument("start", type=_parse_time, help="Window start (ISO-8601, UTC)")
    parser.add_argument("end", type=_parse_time, help="Window end (ISO-8601, UTC)")
    parser.add_argument("--site", action="append", type=_parse_site, default=[], help="Radar site ID:LAT:LON")
    parser.add_argument("--at", type=_parse_time, help="Playback instant for the visible summary")
    parser.add_argument("--policy", choices=[p.value for p in InFlightPolicy], default=InFlightPolicy.SUPERSEDE.value)
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        config = ReplayConfig.from_env(in_flight_policy=InFlightPolicy(args.policy))
        event = EventRange(start_ms=args.start, end_ms=args.end)
    except (ReplayError, ValueError) as exc:
        parser.error(str(exc))

    at_ms = args.at if args.at is not None else event.end_ms
    sites: list[RadarSite] = args.site

    async with StormReplayClient(config) as client:
        client.set_radar_context(site=sites[0] if sites else None, segments=_segments(sites, event))
        await client.load_event(event)
        result = _summary(client, at_ms)

    if args.json_mode:
        print(json.dumps(result, indent=2, default=str))
        return

    print(f"Event {event}  (visible at {format_utc_ms(at_ms)})")
    for name, info in result.items():
        if name == "stations":
            continue
        if info["error"]:
            status = f"ERROR: {info['error']}"
        else:
            status = f"{info['records']:>5} records, {info['visible']:>4} visible"
        print(f"  {name:<14} {status}")
    if result["stations"]:
        print(f"  stations       {', '.join(result['stations'])}")


if __name__ == "__main__":
    asyncio.run(main())
