"""Process-wide cache of ASOS station lists keyed by network id."""

from __future__ import annotations

from collections.abc import Iterable

from stormreplay.models.surface import AsosStation


class StationNetworkCache:
    """Insert-if-absent store shared by every event load in a session.

    Entries are never evicted or overwritten, so concurrent loads can share
    one instance without locking.
    """

    def __init__(self) -> None:
        self._networks: dict[str, tuple[AsosStation, ...]] = {}

    def __contains__(self, network: object) -> bool:
        return network in self._networks

    def __len__(self) -> int:
        return len(self._networks)

    def get(self, network: str) -> tuple[AsosStation, ...] | None:
        return self._networks.get(network)

    def put_if_absent(self, network: str, stations: Iterable[AsosStation]) -> bool:
        """Store ``stations`` for ``network`` unless already cached.

        Returns ``True`` when the entry was inserted.
        """
        if network in self._networks:
            return False
        self._networks[network] = tuple(stations)
        return True

    def missing(self, networks: Iterable[str]) -> list[str]:
        """Networks from ``networks`` that still need fetching, order kept."""
        return [n for n in dict.fromkeys(networks) if n not in self._networks]
