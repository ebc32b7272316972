from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import pytest

from stormreplay.config import ReplayConfig

Responder = Callable[[str, dict[str, str]], Any]

_ROUTES: tuple[tuple[str, str], ...] = (
    ("/geojson/sbw.geojson", "warnings"),
    ("/spc_watch.py", "watches"),
    ("/geojson/lsr.geojson", "reports"),
    ("/spc_outlook.geojson", "outlooks"),
    ("/spc_mcd.geojson", "discussions"),
    ("/obhistory.json", "obhistory"),
    ("/geojson/network/", "network"),
    ("/query", "tracks"),
)

EMPTY_COLLECTION: dict[str, Any] = {"type": "FeatureCollection", "features": []}


def ms(iso: str) -> int:
    return int(datetime.fromisoformat(iso).timestamp() * 1000)


def feature(properties: dict[str, Any], geometry: dict[str, Any] | None = None, **extra: Any) -> dict[str, Any]:
    return {"type": "Feature", "properties": properties, "geometry": geometry, **extra}


def point(lon: float, lat: float) -> dict[str, Any]:
    return {"type": "Point", "coordinates": [lon, lat]}


def collection(*features: dict[str, Any], **extra: Any) -> dict[str, Any]:
    return {"type": "FeatureCollection", "features": list(features), **extra}


@dataclass
class FakeUpstream:
    """Stands in for IEM and the DAT FeatureServer.

    ``responders`` maps a route name to ``(url, params) -> payload``.  A
    payload that is not a ``str`` is JSON encoded; a responder may raise.
    Unrouted sources answer with an empty collection.
    """

    responders: dict[str, Responder] = field(default_factory=dict)
    calls: list[tuple[str, dict[str, str]]] = field(default_factory=list)
    gate: asyncio.Event | None = None
    in_flight: int = 0
    max_in_flight: int = 0

    @staticmethod
    def route(url: str) -> str:
        for marker, name in _ROUTES:
            if marker in url:
                return name
        raise AssertionError(f"unexpected url {url}")

    def calls_to(self, name: str) -> list[dict[str, str]]:
        return [params for url, params in self.calls if self.route(url) == name]

    async def get_text(self, url: str, params: dict[str, Any] | None = None) -> str:
        query = {k: str(v) for k, v in (params or {}).items()}
        self.calls.append((url, query))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if self.gate is not None:
                await self.gate.wait()
            name = self.route(url)
            responder = self.responders.get(name)
            if responder is None:
                payload: Any = {"data": []} if name == "obhistory" else EMPTY_COLLECTION
            else:
                payload = responder(url, query)
        finally:
            self.in_flight -= 1
        return payload if isinstance(payload, str) else json.dumps(payload)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def config() -> ReplayConfig:
    return ReplayConfig()
