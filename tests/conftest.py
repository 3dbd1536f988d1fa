"""Shared fixtures for swarm_leaderboard tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from swarm_leaderboard.leaderboard.aggregator import SourceAggregator
from swarm_leaderboard.leaderboard.cache import ResultCache
from swarm_leaderboard.models.config import ApiConfig, ChainConfig, ServiceConfig
from swarm_leaderboard.storage.sqlite import SQLiteEventStore
from swarm_leaderboard.sync.synchronizer import ChainSynchronizer

from tests.mocks import FakeClock, MockChainReader, MockRankingAPI

CONTRACT = "0x7745a8FE4b8D2D2c3BB103F8dCae822746F35Da0"
START_BLOCK = 10_000_000
RPC_URL = "http://127.0.0.1:8545"
EXPLORER = "https://gensyn-testnet.explorer.alchemy.com"


# ── Report metadata & explorer links ─────────────────────────────


def pytest_configure(config):
    """Add network info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Network"] = "Gensyn Testnet (mocked)"
    meta["Coordinator Contract"] = CONTRACT
    meta["Start Block"] = str(START_BLOCK)


def pytest_html_results_summary(prefix, summary, postfix):
    """Put the coordinator contract and RPC endpoint at the top of the report."""
    contract_link = f'<a href="{EXPLORER}/address/{CONTRACT}" target="_blank">{CONTRACT}</a>'
    prefix.append(
        '<div style="margin:8px 0;padding:10px;background:#f8f9fa;border:1px solid #dee2e6;'
        'border-radius:4px;font-family:monospace;font-size:13px;">'
        "<strong>Gensyn Testnet</strong><br/>"
        f"Coordinator: {contract_link}<br/>"
        f"RPC (mocked): {RPC_URL}<br/>"
        f"Sync start block: {START_BLOCK}"
        "</div>"
    )


def make_chain_config(**overrides) -> ChainConfig:
    """Small batches so multi-batch paths run on tiny block ranges."""
    defaults = dict(
        rpc_url=RPC_URL,
        contract_address=CONTRACT,
        start_block=START_BLOCK,
        batch_size=100,
        max_blocks_per_run=1_000,
        max_batch_errors=5,
        rpc_timeout=5,
    )
    defaults.update(overrides)
    return ChainConfig(**defaults)


def make_test_config(**overrides) -> ServiceConfig:
    """Build a ServiceConfig suitable for testing."""
    defaults = dict(
        db_path=":memory:",
        chain=make_chain_config(),
        api=ApiConfig(base_url="http://127.0.0.1:9300/api/v1", timeout=2, cache_ttl=60),
    )
    defaults.update(overrides)
    return ServiceConfig(**defaults)


@pytest.fixture
def test_config():
    return make_test_config()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteEventStore."""
    s = SQLiteEventStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def mock_reader():
    return MockChainReader(head=START_BLOCK + 500)


@pytest.fixture
def mock_api():
    return MockRankingAPI()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def synchronizer(store, mock_reader):
    return ChainSynchronizer(store, mock_reader, make_chain_config())


@pytest.fixture
def aggregator(store, mock_api, clock):
    return SourceAggregator(store, mock_api, ResultCache(60, clock=clock), online_window=1800)
