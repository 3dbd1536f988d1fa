"""HTTP client for the upstream ranking API (top-N snapshot and counters)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from swarm_leaderboard.errors import UpstreamUnavailable

log = logging.getLogger(__name__)


class RankingAPIClient:
    """Reads the dashboard API's public JSON endpoints.

    No retries here: a failed snapshot is reported to the aggregator,
    which falls back to the last built leaderboard.
    """

    def __init__(
        self,
        base_url: str,
        timeout: int = 15,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _url(self, endpoint: str) -> str:
        return f"{self._base_url}/{endpoint.lstrip('/')}"

    async def _get_json(self, endpoint: str) -> dict[str, Any]:
        url = self._url(endpoint)
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=10),
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                resp = await client.get(url, headers={"Accept": "application/json"})
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            log.error("Ranking API %s returned HTTP %d", endpoint, status)
            raise UpstreamUnavailable(
                f"{endpoint}: HTTP {status}", endpoint=endpoint, status_code=status,
            ) from exc
        except httpx.HTTPError as exc:
            log.error("Ranking API %s unreachable: %s", endpoint, exc)
            raise UpstreamUnavailable(f"{endpoint}: {exc}", endpoint=endpoint) from exc
        except ValueError as exc:
            log.error("Ranking API %s returned invalid JSON: %s", endpoint, exc)
            raise UpstreamUnavailable(f"{endpoint}: invalid JSON", endpoint=endpoint) from exc

        if not isinstance(data, dict):
            raise UpstreamUnavailable(
                f"{endpoint}: expected a JSON object, got {type(data).__name__}",
                endpoint=endpoint,
            )
        return data

    async def get_leaderboard(self) -> dict[str, Any]:
        return await self._get_json("/leaderboard")

    async def get_network_stats(self) -> dict[str, Any]:
        return await self._get_json("/network-stats")

    async def get_nodes_connected(self) -> dict[str, Any]:
        return await self._get_json("/nodes-connected")

    async def get_unique_voters(self) -> dict[str, Any]:
        return await self._get_json("/unique-voters")
