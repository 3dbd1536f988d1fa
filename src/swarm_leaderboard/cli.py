"""CLI entry point for the swarm leaderboard service."""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from swarm_leaderboard.chain.queries import ContractQueries
from swarm_leaderboard.chain.reader import Web3ChainReader
from swarm_leaderboard.config import load_config
from swarm_leaderboard.errors import ChainUnavailable, UpstreamUnavailable
from swarm_leaderboard.leaderboard.aggregator import SourceAggregator
from swarm_leaderboard.leaderboard.cache import ResultCache
from swarm_leaderboard.models.config import ServiceConfig
from swarm_leaderboard.service import run_service
from swarm_leaderboard.storage.sqlite import SQLiteEventStore
from swarm_leaderboard.sync.driver import SyncDriver
from swarm_leaderboard.sync.synchronizer import ChainSynchronizer
from swarm_leaderboard.upstream.ranking_api import RankingAPIClient


def _short(peer_id: str, width: int = 52) -> str:
    return peer_id if len(peer_id) <= width else peer_id[: width - 3] + "..."


def _aggregator(cfg: ServiceConfig, store: SQLiteEventStore) -> SourceAggregator:
    return SourceAggregator(
        store,
        RankingAPIClient(cfg.api.base_url, cfg.api.timeout),
        ResultCache(cfg.api.cache_ttl),
        online_window=cfg.api.online_window,
    )


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """swarm-leaderboard - global RL swarm peer leaderboard."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    cfg = load_config(config_path)
    ctx.obj["config"] = cfg

    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Service ────────────────────────────────────────────


@cli.command()
@click.option("--host", default=None, help="Bind address (overrides config)")
@click.option("--port", type=int, default=None, help="Bind port (overrides config)")
@click.option("--auto-sync/--no-auto-sync", default=None, help="Keep the event store synced")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, auto_sync: bool | None) -> None:
    """Start the HTTP API (and optionally the auto-sync loop)."""
    cfg: ServiceConfig = ctx.obj["config"]
    if host:
        cfg.host = host
    if port:
        cfg.port = port
    if auto_sync is not None:
        cfg.auto_sync = auto_sync

    click.echo(f"Starting swarm leaderboard on {cfg.host}:{cfg.port} (auto-sync: {cfg.auto_sync})")
    asyncio.run(run_service(cfg))


# ── Sync ───────────────────────────────────────────────


@cli.command()
@click.option("--all", "until_done", is_flag=True, help="Repeat runs until caught up")
@click.option("--delay", type=float, default=None, help="Seconds between runs with --all")
@click.option("--max-runs", type=int, default=None, help="Stop after this many runs")
@click.pass_context
def sync(ctx: click.Context, until_done: bool, delay: float | None, max_runs: int | None) -> None:
    """Ingest WinnersDeclared events into the local event store."""
    cfg: ServiceConfig = ctx.obj["config"]

    async def _sync():
        store = SQLiteEventStore(cfg.db_path)
        reader = Web3ChainReader(cfg.chain.rpc_url, cfg.chain.contract_address, cfg.chain.rpc_timeout)
        await store.initialize()
        try:
            driver = SyncDriver(
                ChainSynchronizer(store, reader, cfg.chain), cfg.chain.contract_address,
            )
            if until_done:
                result = await driver.run_until_done(
                    delay=delay if delay is not None else cfg.auto_sync_delay,
                    max_runs=max_runs,
                )
            else:
                result = await driver.run_once()
        finally:
            await reader.close()
            await store.close()
        return result

    result = asyncio.run(_sync())
    if result is None:
        click.echo("Sync stopped before the first run")
        return

    click.echo(result.message)
    click.echo(f"  Blocks:     {result.from_block} -> {result.to_block} (head {result.current_block})")
    click.echo(f"  New events: {result.processed_events}")
    click.echo(f"  Remaining:  {result.remaining_blocks} blocks ({result.progress:.2f}% synced)")
    click.echo(f"  Errors:     {result.batch_errors} ({result.stop_reason.value})")
    if not result.success:
        sys.exit(1)


# ── Reads ──────────────────────────────────────────────


@cli.command()
@click.option("--limit", type=int, default=25, help="Number of entries to show")
@click.option("--offset", type=int, default=0, help="Entries to skip")
@click.option("--search", default=None, help="Filter by peer id substring")
@click.pass_context
def leaderboard(ctx: click.Context, limit: int, offset: int, search: str | None) -> None:
    """Print the merged leaderboard."""
    cfg: ServiceConfig = ctx.obj["config"]

    async def _leaderboard():
        store = SQLiteEventStore(cfg.db_path)
        await store.initialize()
        try:
            return await _aggregator(cfg, store).get_page(limit, offset, search)
        finally:
            await store.close()

    try:
        page = asyncio.run(_leaderboard())
    except UpstreamUnavailable as exc:
        click.echo(f"Error: ranking API unavailable: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Updated: {page.updated_at}   Peers: {page.total}   "
               f"(API {page.peer_sources.from_api}, chain {page.peer_sources.from_blockchain})")
    click.echo(f"{'Rank':>6}  {'Peer':<52}  {'Part.':>8}  {'Wins':>8}")
    for e in page.entries:
        click.echo(f"{e.rank:>6}  {_short(e.peer_id):<52}  {e.participations:>8}  {e.wins:>8}")


@cli.command()
@click.argument("peer_id")
@click.pass_context
def peer(ctx: click.Context, peer_id: str) -> None:
    """Show on-chain activity for one peer."""
    cfg: ServiceConfig = ctx.obj["config"]

    async def _peer():
        store = SQLiteEventStore(cfg.db_path)
        await store.initialize()
        try:
            return await _aggregator(cfg, store).get_peer_activity(peer_id)
        finally:
            await store.close()

    activity = asyncio.run(_peer())
    click.echo(f"Peer:       {activity.peer_id}")
    click.echo(f"Events:     {activity.event_count}")
    click.echo(f"Last seen:  {activity.last_seen or '(no on-chain wins recorded)'}")
    click.echo(f"Last round: {activity.last_round if activity.last_round is not None else '-'}")
    click.echo(f"Status:     {'online' if activity.online else 'offline'}")


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show service configuration."""
    cfg: ServiceConfig = ctx.obj["config"]
    click.echo(f"Contract:     {cfg.chain.contract_address}")
    click.echo(f"RPC URL:      {cfg.chain.rpc_url}")
    click.echo(f"Start block:  {cfg.chain.start_block}")
    click.echo(f"Batch size:   {cfg.chain.batch_size}")
    click.echo(f"Max per run:  {cfg.chain.max_blocks_per_run}")
    click.echo(f"Ranking API:  {cfg.api.base_url}")
    click.echo(f"Cache TTL:    {cfg.api.cache_ttl}s")
    click.echo(f"DB path:      {cfg.db_path}")
    click.echo(f"Listen:       {cfg.host}:{cfg.port} (auto-sync: {cfg.auto_sync})")


@cli.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """Query chain head, sync cursor and coordinator counters."""
    cfg: ServiceConfig = ctx.obj["config"]

    async def _info():
        store = SQLiteEventStore(cfg.db_path)
        reader = Web3ChainReader(cfg.chain.rpc_url, cfg.chain.contract_address, cfg.chain.rpc_timeout)
        await store.initialize()
        try:
            cursor = await store.get_sync_cursor(cfg.chain.contract_address)
            events = await store.count_winner_events()
            click.echo(f"Contract:     {cfg.chain.contract_address}")
            if cursor:
                click.echo(f"Cursor:       block {cursor.last_synced_block} ({cursor.last_sync_timestamp})")
            else:
                click.echo(f"Cursor:       (never synced, starts at {cfg.chain.start_block})")
            click.echo(f"Stored wins:  {events}")

            head = await reader.get_block_number()
            click.echo(f"Chain head:   {head}")
            if cursor:
                click.echo(f"Behind by:    {max(head - cursor.last_synced_block, 0)} blocks")

            state = await ContractQueries(reader).get_state()
            click.echo(f"Round:        {state.current_round if state.current_round is not None else '?'}")
            click.echo(f"Stage:        {state.current_stage if state.current_stage is not None else '?'}")
            click.echo(f"Voters:       {state.unique_voters if state.unique_voters is not None else '?'}")
            click.echo(f"Voted peers:  {state.unique_voted_peers if state.unique_voted_peers is not None else '?'}")
        finally:
            await reader.close()
            await store.close()

    try:
        asyncio.run(_info())
    except ChainUnavailable as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
