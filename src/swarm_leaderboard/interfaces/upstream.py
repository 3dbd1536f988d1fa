"""RankingAPI protocol - the external live leaderboard service."""

from __future__ import annotations

from typing import Any, Protocol


class RankingAPI(Protocol):
    """Snapshot endpoints of the upstream ranking API.

    Every method raises UpstreamUnavailable when the endpoint cannot be
    reached, answers with a non-2xx status, or returns non-JSON.
    """

    async def get_leaderboard(self) -> dict[str, Any]:
        """GET /leaderboard -> {entries: [...], updatedAt}."""
        ...

    async def get_network_stats(self) -> dict[str, Any]:
        ...

    async def get_nodes_connected(self) -> dict[str, Any]:
        ...

    async def get_unique_voters(self) -> dict[str, Any]:
        ...
