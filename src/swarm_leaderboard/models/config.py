"""Configuration models for the leaderboard service."""

from __future__ import annotations

from dataclasses import dataclass, field

# SwarmCoordinator proxy on the Gensyn testnet
DEFAULT_CONTRACT_ADDRESS = "0x7745a8FE4b8D2D2c3BB103F8dCae822746F35Da0"
DEFAULT_RPC_URL = "https://gensyn-testnet.g.alchemy.com/public"
DEFAULT_API_BASE_URL = "https://dashboard.gensyn.ai/api/v1"


@dataclass
class ChainConfig:
    """Chain RPC and synchronizer limits."""

    rpc_url: str = DEFAULT_RPC_URL
    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    start_block: int = 10_000_000  # practical deployment height, not genesis
    batch_size: int = 10_000  # provider's per-call log range limit
    max_blocks_per_run: int = 100_000
    max_batch_errors: int = 5
    rpc_timeout: int = 30  # seconds


@dataclass
class ApiConfig:
    """Upstream ranking API and leaderboard serving options."""

    base_url: str = DEFAULT_API_BASE_URL
    timeout: int = 15  # seconds
    cache_ttl: int = 60  # seconds
    online_window: int = 1800  # seconds since last event to count as online


@dataclass
class ServiceConfig:
    """Complete service configuration."""

    # Service
    log_level: str = "info"
    host: str = "127.0.0.1"
    port: int = 8080
    auto_sync: bool = False
    auto_sync_delay: float = 2.0  # seconds between runs while catching up
    refresh_interval: int = 300  # seconds between passive sync cycles

    # Storage
    db_path: str = "~/.swarm_leaderboard/events.db"

    chain: ChainConfig = field(default_factory=ChainConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
