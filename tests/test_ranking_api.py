"""Ranking API client against an in-process httpx transport."""

from __future__ import annotations

import httpx
import pytest

from swarm_leaderboard.errors import UpstreamUnavailable
from swarm_leaderboard.upstream.ranking_api import RankingAPIClient

BASE = "https://dashboard.example/api/v1/"


def _client(handler) -> RankingAPIClient:
    return RankingAPIClient(BASE, timeout=2, transport=httpx.MockTransport(handler))


async def test_endpoints_map_to_paths():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(200, json={"path": request.url.path})

    client = _client(handler)
    assert (await client.get_leaderboard())["path"] == "/api/v1/leaderboard"
    await client.get_network_stats()
    await client.get_nodes_connected()
    await client.get_unique_voters()

    assert seen == [
        "/api/v1/leaderboard",
        "/api/v1/network-stats",
        "/api/v1/nodes-connected",
        "/api/v1/unique-voters",
    ]


async def test_sends_json_accept_header():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["accept"] == "application/json"
        return httpx.Response(200, json={"entries": []})

    assert await _client(handler).get_leaderboard() == {"entries": []}


async def test_http_error_status_is_upstream_unavailable():
    client = _client(lambda request: httpx.Response(503, text="busy"))

    with pytest.raises(UpstreamUnavailable) as exc_info:
        await client.get_leaderboard()

    assert exc_info.value.status_code == 503
    assert exc_info.value.endpoint == "/leaderboard"


async def test_transport_error_is_upstream_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UpstreamUnavailable) as exc_info:
        await _client(handler).get_network_stats()

    assert exc_info.value.status_code is None


async def test_invalid_json_is_upstream_unavailable():
    client = _client(lambda request: httpx.Response(200, text="<html>oops</html>"))
    with pytest.raises(UpstreamUnavailable, match="invalid JSON"):
        await client.get_leaderboard()


async def test_non_object_json_is_rejected():
    client = _client(lambda request: httpx.Response(200, json=[1, 2, 3]))
    with pytest.raises(UpstreamUnavailable, match="expected a JSON object"):
        await client.get_unique_voters()
