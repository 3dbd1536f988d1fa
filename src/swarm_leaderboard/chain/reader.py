"""web3 chain reader - head queries and WinnersDeclared log decoding."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Sequence

import aiohttp
from web3 import AsyncHTTPProvider, AsyncWeb3

from swarm_leaderboard.chain.abi import SWARM_COORDINATOR_ABI, WINNERS_DECLARED_SIGNATURE
from swarm_leaderboard.errors import ChainUnavailable, DecodeError
from swarm_leaderboard.models.events import WinnerDeclaration

log = logging.getLogger(__name__)

_BLOCK_TS_CACHE_LIMIT = 10_000

WINNERS_DECLARED_TOPIC = AsyncWeb3.to_hex(AsyncWeb3.keccak(text=WINNERS_DECLARED_SIGNATURE))


def _hex(value: Any) -> str:
    if isinstance(value, str):
        return value.lower()
    return AsyncWeb3.to_hex(value).lower()


class Web3ChainReader:
    """Reads the SwarmCoordinator contract through an EVM JSON-RPC endpoint.

    Log queries use a raw topic filter so that decoding happens per log:
    one malformed payload must not poison the whole range.
    """

    def __init__(self, rpc_url: str, contract_address: str, timeout: int = 30) -> None:
        self._w3 = AsyncWeb3(
            AsyncHTTPProvider(
                rpc_url,
                request_kwargs={"timeout": aiohttp.ClientTimeout(total=timeout)},
            )
        )
        self._rpc_url = rpc_url
        self._address = AsyncWeb3.to_checksum_address(contract_address)
        self._contract = self._w3.eth.contract(address=self._address, abi=SWARM_COORDINATOR_ABI)
        self._event = self._contract.events.WinnersDeclared()
        self._block_ts: dict[int, str] = {}

    @property
    def contract(self):
        return self._contract

    async def close(self) -> None:
        """Close the provider's cached HTTP session."""
        await self._w3.provider.disconnect()

    async def get_block_number(self) -> int:
        try:
            return int(await self._w3.eth.block_number)
        except Exception as exc:
            log.error("Chain head query failed (%s): %s", self._rpc_url, exc)
            raise ChainUnavailable(f"could not read chain head: {exc}") from exc

    async def get_raw_logs(
        self, contract_address: str, from_block: int, to_block: int
    ) -> Sequence[Any]:
        try:
            return await self._w3.eth.get_logs({
                "address": AsyncWeb3.to_checksum_address(contract_address),
                "topics": [WINNERS_DECLARED_TOPIC],
                "fromBlock": from_block,
                "toBlock": to_block,
            })
        except Exception as exc:
            log.error("get_logs failed for blocks %d-%d: %s", from_block, to_block, exc)
            raise ChainUnavailable(
                f"log query failed for blocks {from_block}-{to_block}: {exc}",
                from_block=from_block,
                to_block=to_block,
            ) from exc

    def decode_log(self, raw_log: Any) -> WinnerDeclaration:
        tx_hash = None
        try:
            tx_hash = _hex(raw_log["transactionHash"])
            data = self._event.process_log(raw_log)
            args = data["args"]
            winners = tuple(str(w) for w in args["winners"])
            rewards = tuple(int(r) for r in args["rewards"])
            return WinnerDeclaration(
                round_number=int(args["round"]),
                winners=winners,
                rewards=rewards,
                block_number=int(data["blockNumber"]),
                transaction_hash=tx_hash,
                log_index=int(data.get("logIndex") or 0),
            )
        except Exception as exc:
            raise DecodeError(f"undecodable WinnersDeclared log: {exc}", tx_hash) from exc

    async def get_block_timestamp(self, block_number: int) -> str | None:
        if block_number in self._block_ts:
            return self._block_ts[block_number]
        try:
            block = await self._w3.eth.get_block(block_number)
        except Exception as exc:
            log.warning("Could not fetch block %d timestamp: %s", block_number, exc)
            return None

        ts = datetime.fromtimestamp(int(block["timestamp"]), timezone.utc).isoformat()
        if len(self._block_ts) >= _BLOCK_TS_CACHE_LIMIT:
            self._block_ts.clear()
        self._block_ts[block_number] = ts
        return ts
