"""aiohttp HTTP API - public leaderboard reads and sync triggers."""

from __future__ import annotations

import logging

from aiohttp import web

from swarm_leaderboard.errors import UpstreamUnavailable
from swarm_leaderboard.interfaces.store import EventStore
from swarm_leaderboard.leaderboard.aggregator import SourceAggregator
from swarm_leaderboard.sync.driver import SyncDriver

log = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

DEFAULT_LIMIT = 100

AGGREGATOR_KEY = web.AppKey("aggregator", SourceAggregator)
DRIVER_KEY = web.AppKey("sync_driver", SyncDriver)
STORE_KEY = web.AppKey("store", EventStore)


@web.middleware
async def cors_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Answer preflights and attach CORS headers to every response, errors included."""
    if request.method == "OPTIONS":
        response: web.StreamResponse = web.Response(status=204)
    else:
        try:
            response = await handler(request)
        except web.HTTPException as exc:
            response = web.json_response({"error": exc.reason}, status=exc.status)
        except Exception as exc:
            log.error("Unhandled error on %s %s: %s", request.method, request.path, exc,
                      exc_info=True)
            response = web.json_response({"error": str(exc)}, status=500)
    response.headers.update(CORS_HEADERS)
    return response


def _int_param(request: web.Request, name: str, default: int) -> int:
    raw = request.query.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise web.HTTPBadRequest(reason=f"'{name}' must be an integer")
    if value < 0:
        raise web.HTTPBadRequest(reason=f"'{name}' must not be negative")
    return value


async def get_leaderboard(request: web.Request) -> web.Response:
    limit = _int_param(request, "limit", DEFAULT_LIMIT)
    offset = _int_param(request, "offset", 0)
    search = request.query.get("search") or None
    log.info("Leaderboard request - limit: %d, offset: %d", limit, offset)

    try:
        page = await request.app[AGGREGATOR_KEY].get_page(limit, offset, search)
    except UpstreamUnavailable as exc:
        return web.json_response({"error": f"Ranking API unavailable: {exc}"}, status=503)
    return web.json_response(page.to_dict())


async def post_sync(request: web.Request) -> web.Response:
    result = await request.app[DRIVER_KEY].run_once()
    status = 200 if result.success else 502
    return web.json_response(result.to_dict(), status=status)


async def get_sync_status(request: web.Request) -> web.Response:
    return web.json_response(request.app[DRIVER_KEY].to_dict())


async def get_peer(request: web.Request) -> web.Response:
    peer_id = request.match_info["peer_id"]
    aggregator = request.app[AGGREGATOR_KEY]
    activity = await aggregator.get_peer_activity(peer_id)
    body = activity.to_dict()
    entry = aggregator.find_entry(peer_id)
    body["entry"] = entry.to_dict() if entry else None
    if activity.event_count == 0 and entry is None:
        return web.json_response({"error": f"Unknown peer {peer_id}", **body}, status=404)
    return web.json_response(body)


async def get_health(request: web.Request) -> web.Response:
    events = await request.app[STORE_KEY].count_winner_events()
    return web.json_response({
        "status": "ok",
        "events": events,
        "sync": request.app[DRIVER_KEY].state.value,
    })


def create_app(
    aggregator: SourceAggregator, driver: SyncDriver, store: EventStore
) -> web.Application:
    app = web.Application(middlewares=[cors_middleware])
    app[AGGREGATOR_KEY] = aggregator
    app[DRIVER_KEY] = driver
    app[STORE_KEY] = store
    app.router.add_get("/leaderboard", get_leaderboard)
    app.router.add_post("/sync", post_sync)
    app.router.add_get("/sync/status", get_sync_status)
    app.router.add_get("/peers/{peer_id}", get_peer)
    app.router.add_get("/health", get_health)
    return app
