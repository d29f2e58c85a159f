"""Decode raw Transfer logs into TransferRecords."""

import asyncio
import logging

import pydantic

from treasurywatch.domain.models import TransferRecord
from treasurywatch.domain.selectors import label_for_input
from treasurywatch.domain.tokens import TokenRegistry
from treasurywatch.exceptions import ExternalServiceError, MalformedLogError
from treasurywatch.infra.blockchain.retry import RetryPolicy
from treasurywatch.infra.blockchain.rpc_client import NodeRPCClient

logger = logging.getLogger(__name__)


def decode_transfer_fields(log: dict, registry: TokenRegistry, treasury_address: str) -> dict:
    """Pure part of the decode: everything that comes from the log itself.

    Raises UnknownTokenError for an unregistered contract and
    MalformedLogError when topics/data/blockNumber cannot be read.
    """
    try:
        topics = log["topics"]
        from_topic = topics[1]
        event_signature = topics[0]
        token_address = log["address"]
        tx_hash = log["transactionHash"]
        block_number = int(log["blockNumber"], 16)
        amount = int(log["data"], 16)
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise MalformedLogError(f"Cannot decode log {log.get('transactionHash')!r}: {e!r}") from e

    if not isinstance(tx_hash, str):
        raise MalformedLogError(f"Bad transaction hash: {tx_hash!r}")
    if not isinstance(from_topic, str) or len(from_topic) < 42:
        raise MalformedLogError(f"Bad sender topic in {tx_hash}: {from_topic!r}")
    if not isinstance(token_address, str):
        raise MalformedLogError(f"Bad emitting contract in {tx_hash}: {token_address!r}")
    # int(x, 16) accepts a leading sign
    if block_number < 0 or amount < 0:
        raise MalformedLogError(f"Negative quantity in {tx_hash}: block={block_number} amount={amount}")

    token = registry.lookup(token_address)
    return {
        "block_number": block_number,
        "transaction_hash": tx_hash,
        "transaction_event_signature": event_signature,
        "from_address": "0x" + from_topic[-40:].lower(),
        "to_address": treasury_address.lower(),
        "token_symbol": token.symbol,
        "token_decimals": token.decimals,
        "amount": str(amount),
    }


class TransferLogParser:
    """Turns one raw log into a TransferRecord, enriching it from the node.

    Block timestamps are memoised for the parser's lifetime, so create one
    parser per fetch.
    """

    def __init__(
        self,
        rpc: NodeRPCClient,
        treasury_address: str,
        registry: TokenRegistry | None = None,
        retry: RetryPolicy | None = None,
    ) -> None:
        self._rpc = rpc
        self._treasury = treasury_address
        self._registry = registry or TokenRegistry()
        self._retry = retry
        self._timestamps: dict[int, asyncio.Task[int]] = {}

    async def parse(self, log: dict) -> TransferRecord:
        fields = decode_transfer_fields(log, self._registry, self._treasury)
        timestamp, function = await asyncio.gather(
            self.block_timestamp(fields["block_number"]),
            self.transaction_function(fields["transaction_hash"]),
        )
        try:
            return TransferRecord(**fields, timestamp=timestamp, transaction_function=function)
        except pydantic.ValidationError as e:
            raise MalformedLogError(f"Invalid transfer record for {fields['transaction_hash']!r}: {e}") from e

    async def block_timestamp(self, block_number: int) -> int:
        task = self._timestamps.get(block_number)
        if task is None or (task.done() and (task.cancelled() or task.exception() is not None)):
            task = asyncio.ensure_future(self._fetch_timestamp(block_number))
            self._timestamps[block_number] = task
        return await task

    async def _fetch_timestamp(self, block_number: int) -> int:
        ts = await self._with_retry(
            lambda: self._rpc.get_block_timestamp(block_number), f"eth_getBlockByNumber({block_number})"
        )
        if ts is None:
            raise ExternalServiceError(f"Node has no block {block_number}")
        return ts

    async def transaction_function(self, tx_hash: str) -> str:
        tx = await self._with_retry(
            lambda: self._rpc.get_transaction(tx_hash), f"eth_getTransactionByHash({tx_hash})"
        )
        if not tx:
            return label_for_input(None)
        return label_for_input(tx.get("input") or tx.get("data"))

    async def _with_retry(self, fn, description: str):
        if self._retry is None:
            return await fn()
        return await self._retry.call(fn, description)
