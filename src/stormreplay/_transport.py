"""HTTP transport for the upstream overlay feeds."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from stormreplay.config import ReplayConfig
from stormreplay.exceptions import ReplayTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the pipeline modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_text(self, url: str, params: Mapping[str, Any] | None = None) -> str:
        ...


class HttpTransport:
    """GET-only transport over a shared :class:`aiohttp.ClientSession`."""

    def __init__(self, config: ReplayConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def get_text(self, url: str, params: Mapping[str, Any] | None = None) -> str:
        """Issue a GET and return the body text.

        Raises :class:`ReplayTransportError` on non-200 status, client errors
        and timeouts.
        """
        headers = {"user-agent": self._config.user_agent, "accept": "application/json, */*"}
        query = {k: str(v) for k, v in params.items()} if params else None

        _logger.debug("GET %s params=%s", url, query)

        try:
            async with self._http.get(url, params=query, headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise ReplayTransportError(
                        f"HTTP {resp.status} from {url}: {text[:200]}",
                        status_code=resp.status,
                        url=url,
                    )
        except ReplayTransportError:
            raise
        except TimeoutError as exc:
            raise ReplayTransportError(f"Request to {url} timed out", url=url) from exc
        except aiohttp.ClientError as exc:
            raise ReplayTransportError(f"Request to {url} failed: {exc}", url=url) from exc

        return text
