"""web3 chain reader: WinnersDeclared decoding and RPC failure mapping."""

from __future__ import annotations

import pytest
from eth_abi import encode
from hexbytes import HexBytes
from web3 import Web3

from swarm_leaderboard.chain.abi import WINNERS_DECLARED_SIGNATURE
from swarm_leaderboard.chain.reader import WINNERS_DECLARED_TOPIC, Web3ChainReader
from swarm_leaderboard.errors import ChainUnavailable, DecodeError

from tests.conftest import CONTRACT

TX_HASH = "0x" + "ab" * 32


def _raw_log(data: bytes, topic: bytes | None = None, block_number: int = 10_000_123) -> dict:
    return {
        "address": CONTRACT,
        "topics": [HexBytes(topic or Web3.keccak(text=WINNERS_DECLARED_SIGNATURE))],
        "data": HexBytes(data),
        "blockNumber": block_number,
        "transactionHash": HexBytes(TX_HASH),
        "transactionIndex": 0,
        "blockHash": HexBytes("0x" + "cd" * 32),
        "logIndex": 3,
        "removed": False,
    }


def _payload(round_number: int, winners: list[str], rewards: list[int]) -> bytes:
    return encode(["uint256", "string[]", "uint256[]"], [round_number, winners, rewards])


@pytest.fixture
def reader():
    return Web3ChainReader("http://127.0.0.1:8545", CONTRACT, timeout=2)


def _rpc_down(reader: Web3ChainReader) -> None:
    async def make_request(method, params):
        raise ConnectionError("connection refused")

    reader._w3.provider.make_request = make_request


def test_topic_is_event_signature_hash():
    assert WINNERS_DECLARED_TOPIC == Web3.to_hex(Web3.keccak(text=WINNERS_DECLARED_SIGNATURE))


def test_decode_winners_declared(reader):
    raw = _raw_log(_payload(7, ["QmA", "QmB"], [10, 2**200]))

    decl = reader.decode_log(raw)

    assert decl.round_number == 7
    assert decl.winners == ("QmA", "QmB")
    assert decl.rewards == (10, 2**200)
    assert decl.block_number == 10_000_123
    assert decl.transaction_hash == TX_HASH
    assert decl.log_index == 3


def test_decode_empty_winner_list(reader):
    decl = reader.decode_log(_raw_log(_payload(1, [], [])))
    assert decl.winners == ()


def test_truncated_data_is_decode_error(reader):
    with pytest.raises(DecodeError) as exc_info:
        reader.decode_log(_raw_log(b"\x00" * 5))
    assert exc_info.value.transaction_hash == TX_HASH


def test_foreign_event_topic_is_decode_error(reader):
    raw = _raw_log(_payload(1, ["QmA"], [1]), topic=Web3.keccak(text="Other(uint256)"))
    with pytest.raises(DecodeError):
        reader.decode_log(raw)


def test_non_log_payload_is_decode_error(reader):
    with pytest.raises(DecodeError):
        reader.decode_log({"unexpected": True})


async def test_head_failure_is_chain_unavailable(reader):
    _rpc_down(reader)
    with pytest.raises(ChainUnavailable):
        await reader.get_block_number()


async def test_log_query_failure_carries_range(reader):
    _rpc_down(reader)
    with pytest.raises(ChainUnavailable) as exc_info:
        await reader.get_raw_logs(CONTRACT, 100, 199)
    assert (exc_info.value.from_block, exc_info.value.to_block) == (100, 199)


async def test_block_timestamp_failure_returns_none(reader):
    _rpc_down(reader)
    assert await reader.get_block_timestamp(10_000_123) is None
