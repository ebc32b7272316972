"""Shared helpers for the pipeline modules.

This module centralizes the most repeated patterns:
- rendering UTC ms the way the upstream query strings expect
- GET + JSON decode with consistent error mapping
- pulling the feature list out of a GeoJSON FeatureCollection
- validating features into records, skipping the malformed ones

It is internal to stormreplay and may change at any time.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from stormreplay._transport import Transport
from stormreplay.exceptions import ReplayResponseError

_logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def iso_utc(ms: int) -> str:
    """``2013-05-20T19:56:00.000Z``; millisecond precision, ``Z`` suffix."""
    dt = datetime.fromtimestamp(ms / 1000, tz=UTC)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def utc_date(ms: int) -> str:
    """UTC calendar date ``YYYY-MM-DD`` of a timestamp."""
    return datetime.fromtimestamp(ms / 1000, tz=UTC).strftime("%Y-%m-%d")


def decode_json(text: str, url: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ReplayResponseError(f"Invalid JSON from {url}: {text[:200]}", url=url) from exc


async def fetch_json(transport: Transport, url: str, params: Mapping[str, Any] | None = None) -> Any:
    """GET ``url`` and decode the body as JSON."""
    text = await transport.get_text(url, params)
    return decode_json(text, url)


def features_of(payload: Any) -> list[dict[str, Any]]:
    """The ``features`` array of a FeatureCollection; ``[]`` when absent."""
    if not isinstance(payload, dict):
        return []
    features = payload.get("features")
    if not isinstance(features, list):
        return []
    return [f for f in features if isinstance(f, dict)]


def validate_features(model: type[M], features: Iterable[dict[str, Any]], *, label: str) -> list[M]:
    """Validate each feature into ``model``; invalid features are skipped."""
    records: list[M] = []
    skipped = 0
    for feature in features:
        try:
            records.append(model.model_validate(feature))
        except ValidationError:
            skipped += 1
            _logger.debug("Skipping malformed %s feature", label, exc_info=True)
    if skipped:
        _logger.debug("Skipped %d malformed %s feature(s)", skipped, label)
    return records


def dedupe_by_id(records: Iterable[M]) -> list[M]:
    """Keep the first record per ``id``, order preserved."""
    seen: dict[Any, M] = {}
    for record in records:
        seen.setdefault(getattr(record, "id"), record)
    return list(seen.values())


def keep_latest_issue(records: Iterable[M], key: Any = None) -> list[M]:
    """One record per key (default ``id``), the one with the greatest ``issue``.

    Used where a later product supersedes an earlier one sharing its number.
    """
    key_fn = key or (lambda record: getattr(record, "id"))
    latest: dict[Any, M] = {}
    for record in records:
        k = key_fn(record)
        existing = latest.get(k)
        if existing is None or getattr(record, "issue") > getattr(existing, "issue"):
            latest[k] = record
    return list(latest.values())
