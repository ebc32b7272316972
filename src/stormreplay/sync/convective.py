"""SPC convective-day arithmetic."""

from __future__ import annotations

from datetime import UTC, datetime

from stormreplay._constants import CONVECTIVE_DAY_OFFSET_MS


def convective_day(ms: int) -> str:
    """The ``YYYY-MM-DD`` convective day (12Z to 12Z) containing ``ms``.

    A storm at 02Z on May 21 belongs to the May 20 convective day: shift
    back 12 hours, then take the UTC calendar date.
    """
    return datetime.fromtimestamp((ms - CONVECTIVE_DAY_OFFSET_MS) / 1000, tz=UTC).strftime("%Y-%m-%d")
