"""Service wiring - store, chain, upstream, aggregator and HTTP API."""

from __future__ import annotations

import asyncio
import logging
import signal

from aiohttp import web

from swarm_leaderboard.api.server import create_app
from swarm_leaderboard.chain.reader import Web3ChainReader
from swarm_leaderboard.leaderboard.aggregator import SourceAggregator
from swarm_leaderboard.leaderboard.cache import ResultCache
from swarm_leaderboard.models.config import ServiceConfig
from swarm_leaderboard.models.records import SyncResult
from swarm_leaderboard.storage.sqlite import SQLiteEventStore
from swarm_leaderboard.sync.driver import SyncDriver, SyncState
from swarm_leaderboard.sync.synchronizer import ChainSynchronizer
from swarm_leaderboard.upstream.ranking_api import RankingAPIClient

log = logging.getLogger(__name__)


class LeaderboardService:
    """Global leaderboard service.

    Serves the HTTP API and, when auto-sync is enabled, keeps the event
    store caught up: runs back-to-back while the synchronizer reports
    more work, then waits refresh_interval between passive cycles.
    """

    def __init__(self, cfg: ServiceConfig) -> None:
        self._cfg = cfg
        self._running = False
        self._stopped = asyncio.Event()

        self.store = SQLiteEventStore(cfg.db_path)
        self.reader = Web3ChainReader(
            cfg.chain.rpc_url, cfg.chain.contract_address, cfg.chain.rpc_timeout,
        )
        self.api = RankingAPIClient(cfg.api.base_url, cfg.api.timeout)
        self.cache = ResultCache(cfg.api.cache_ttl)
        self.synchronizer = ChainSynchronizer(self.store, self.reader, cfg.chain)
        self.driver = SyncDriver(
            self.synchronizer, cfg.chain.contract_address, on_synced=self._on_synced,
        )
        self.aggregator = SourceAggregator(
            self.store, self.api, self.cache,
            online_window=cfg.api.online_window,
        )

    def _on_synced(self, result: SyncResult) -> None:
        log.info("Sync stored %d new events; refreshing leaderboard", result.processed_events)
        self.cache.invalidate()

    async def start(self) -> None:
        """Initialize components, serve HTTP, and run until stopped."""
        log.info("Starting swarm leaderboard service")
        log.info("  Contract: %s", self._cfg.chain.contract_address)
        log.info("  RPC: %s", self._cfg.chain.rpc_url)
        log.info("  Ranking API: %s", self._cfg.api.base_url)
        log.info("  DB: %s", self._cfg.db_path)

        await self.store.initialize()

        cursor = await self.store.get_sync_cursor(self._cfg.chain.contract_address)
        if cursor:
            log.info("Restored cursor: block %d", cursor.last_synced_block)

        app = create_app(self.aggregator, self.driver, self.store)
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, self._cfg.host, self._cfg.port)
        await site.start()
        log.info("HTTP API listening on http://%s:%d", self._cfg.host, self._cfg.port)

        self._running = True
        try:
            if self._cfg.auto_sync:
                await self._sync_loop()
            else:
                await self._stopped.wait()
        finally:
            await runner.cleanup()
            await self.reader.close()
            await self.store.close()
            log.info("Service shut down cleanly")

    async def stop(self) -> None:
        """Signal the service to stop gracefully."""
        log.info("Stop requested")
        self._running = False
        self.driver.stop()
        self._stopped.set()

    async def _sync_loop(self) -> None:
        while self._running:
            try:
                await self.driver.run_until_done(delay=self._cfg.auto_sync_delay)
            except asyncio.CancelledError:
                log.info("Sync loop cancelled")
                break
            except Exception as exc:
                log.error("Sync loop error: %s", exc, exc_info=True)

            if self.driver.state == SyncState.ERROR:
                log.warning("Last sync failed, retrying in %ds", self._cfg.refresh_interval)

            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=self._cfg.refresh_interval)
            except asyncio.TimeoutError:
                pass


async def run_service(cfg: ServiceConfig) -> None:
    """Entry point for running the service."""
    service = LeaderboardService(cfg)

    loop = asyncio.get_running_loop()

    def _signal_handler():
        asyncio.ensure_future(service.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await service.start()
