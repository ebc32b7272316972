"""Custom exception hierarchy for stormreplay."""

from __future__ import annotations


class ReplayError(Exception):
    """Base exception for all stormreplay errors."""


class ReplayConfigError(ReplayError):
    """Invalid or missing configuration."""


class ReplayTransportError(ReplayError):
    """HTTP-level failure (network, timeout, non-200)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class ReplayResponseError(ReplayError):
    """Upstream answered, but the body could not be understood.

    Raised for unparseable JSON and for payloads missing the fields a
    pipeline requires.  Single-shot sources surface it as the source error;
    fan-out sources skip the affected sample, page or station-day.
    """

    def __init__(self, message: str, *, url: str = "") -> None:
        self.url = url
        super().__init__(message)
