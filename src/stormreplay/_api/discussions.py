"""SPC mesoscale discussions: time-sampled fan-out.

The IEM MCD endpoint only answers "which discussions are active at instant
T".  To cover a range we sample it at a fixed interval, fetch the samples
through the bounded pool and merge by ``(year, num)``.
"""

from __future__ import annotations

import logging

from stormreplay._api._common import features_of, fetch_json, iso_utc, keep_latest_issue, validate_features
from stormreplay._pool import run_bounded
from stormreplay._transport import Transport
from stormreplay.config import ReplayConfig
from stormreplay.models.discussion import MesoscaleDiscussion
from stormreplay.models.range import EventRange

_logger = logging.getLogger(__name__)


def sample_instants(start_ms: int, end_ms: int, interval_ms: int) -> list[int]:
    """``start, start+interval, ...`` up to ``end``, with ``end`` present exactly once."""
    if interval_ms <= 0:
        raise ValueError(f"interval_ms must be positive, got {interval_ms}")
    samples = list(range(start_ms, end_ms + 1, interval_ms))
    if not samples or samples[-1] != end_ms:
        samples.append(end_ms)
    return samples


async def fetch_discussions_at(
    config: ReplayConfig,
    transport: Transport,
    instant_ms: int,
) -> list[MesoscaleDiscussion]:
    """Discussions active at ``instant_ms``."""
    url = f"{config.iem_base_url}/api/1/nws/spc_mcd.geojson"
    payload = await fetch_json(transport, url, {"valid": iso_utc(instant_ms)})
    return validate_features(MesoscaleDiscussion, features_of(payload), label="discussion")


async def fetch_discussions(
    config: ReplayConfig,
    transport: Transport,
    event: EventRange,
) -> list[MesoscaleDiscussion]:
    """Every discussion active at some sampled instant of ``event``.

    A reissued discussion keeps its number; the variant with the latest
    ``issue`` wins.  Failed samples are skipped.
    """
    samples = sample_instants(event.start_ms, event.end_ms, config.mcd_sample_interval_s * 1000)

    async def _sample(instant_ms: int) -> list[MesoscaleDiscussion]:
        return await fetch_discussions_at(config, transport, instant_ms)

    batches = await run_bounded(samples, _sample, limit=config.mcd_concurrency)
    merged = keep_latest_issue(
        (mcd for batch in batches for mcd in batch),
        key=lambda mcd: mcd.key,
    )
    merged.sort(key=lambda mcd: (mcd.year, mcd.num))
    _logger.debug("discussions: %d unique from %d samples (%d answered)", len(merged), len(samples), len(batches))
    return merged
