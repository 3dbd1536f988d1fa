"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

from swarm_leaderboard.models.config import ApiConfig, ChainConfig, ServiceConfig


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "SWARM_LB_",
) -> ServiceConfig:
    """Load service configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (SWARM_LB_RPC_URL, etc.)
        2. TOML config file
        3. Defaults from ServiceConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = ServiceConfig()

    # ── Service section ────────────────────────────────────
    service = raw.get("service", {})
    if v := service.get("log_level"):
        cfg.log_level = str(v)
    if v := service.get("host"):
        cfg.host = str(v)
    if v := service.get("port"):
        cfg.port = int(v)
    if "auto_sync" in service:
        cfg.auto_sync = bool(service["auto_sync"])
    if v := service.get("auto_sync_delay"):
        cfg.auto_sync_delay = float(v)
    if v := service.get("refresh_interval"):
        cfg.refresh_interval = int(v)

    # ── Chain section ──────────────────────────────────────
    chain = raw.get("chain", {})
    defaults = ChainConfig()
    cfg.chain = ChainConfig(
        rpc_url=str(chain.get("rpc_url", defaults.rpc_url)),
        contract_address=str(chain.get("contract_address", defaults.contract_address)),
        start_block=int(chain.get("start_block", defaults.start_block)),
        batch_size=int(chain.get("batch_size", defaults.batch_size)),
        max_blocks_per_run=int(chain.get("max_blocks_per_run", defaults.max_blocks_per_run)),
        max_batch_errors=int(chain.get("max_batch_errors", defaults.max_batch_errors)),
        rpc_timeout=int(chain.get("rpc_timeout", defaults.rpc_timeout)),
    )

    # ── API section ────────────────────────────────────────
    api = raw.get("api", {})
    api_defaults = ApiConfig()
    cfg.api = ApiConfig(
        base_url=str(api.get("base_url", api_defaults.base_url)),
        timeout=int(api.get("timeout", api_defaults.timeout)),
        cache_ttl=int(api.get("cache_ttl", api_defaults.cache_ttl)),
        online_window=int(api.get("online_window", api_defaults.online_window)),
    )

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        cfg.db_path = str(v)

    # ── Environment variable overrides (highest priority) ──
    if rpc := os.environ.get(f"{env_prefix}RPC_URL"):
        cfg.chain.rpc_url = rpc
    if contract := os.environ.get(f"{env_prefix}CONTRACT"):
        cfg.chain.contract_address = contract
    if start := os.environ.get(f"{env_prefix}START_BLOCK"):
        cfg.chain.start_block = int(start)
    if api_url := os.environ.get(f"{env_prefix}API_URL"):
        cfg.api.base_url = api_url
    if db := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.db_path = db
    if level := os.environ.get(f"{env_prefix}LOG_LEVEL"):
        cfg.log_level = level

    if cfg.chain.batch_size <= 0 or cfg.chain.max_blocks_per_run <= 0:
        raise ValueError("batch_size and max_blocks_per_run must be positive")

    # Expand ~ in paths
    if cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())

    return cfg
