"""Chunked, retried eth_getLogs queries over a block range."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from treasurywatch.exceptions import ChunkFetchError, ExternalServiceError
from treasurywatch.infra.blockchain.retry import RetryPolicy
from treasurywatch.infra.blockchain.rpc_client import NodeRPCClient

logger = logging.getLogger(__name__)

# keccak256("Transfer(address,address,uint256)")
TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"

MAX_BLOCKS_PER_REQUEST = 2000


def pad_address(address: str) -> str:
    """Left-pad a 20-byte address to a 32-byte topic, lowercase, 0x-prefixed."""
    body = address.lower().removeprefix("0x")
    if len(body) != 40:
        raise ValueError(f"Not a 20-byte address: {address}")
    return "0x" + body.rjust(64, "0")


def transfer_topics(recipient: str) -> list[str | None]:
    """Topic filter for ERC-20 Transfer events to ``recipient`` from anyone."""
    return [TRANSFER_TOPIC, None, pad_address(recipient)]


@dataclass(frozen=True)
class BlockChunk:
    index: int
    from_block: int
    to_block: int

    @property
    def size(self) -> int:
        return self.to_block - self.from_block + 1


def chunk_ranges(start_block: int, end_block: int, size: int = MAX_BLOCKS_PER_REQUEST) -> list[BlockChunk]:
    """Split the inclusive range [start_block, end_block] into consecutive windows of ``size`` blocks.

    Windows neither overlap nor leave gaps; the last one may be shorter.
    An empty list is returned when start_block > end_block.
    """
    if size < 1:
        raise ValueError("chunk size must be >= 1")
    chunks = []
    lo = start_block
    while lo <= end_block:
        hi = min(lo + size - 1, end_block)
        chunks.append(BlockChunk(index=len(chunks), from_block=lo, to_block=hi))
        lo = hi + 1
    return chunks


def dedupe_logs(logs: Iterable[dict]) -> list[dict]:
    """Drop logs repeated by the node (same tx hash, log index and block), keeping first-seen order."""
    seen: set[tuple] = set()
    unique = []
    for log in logs:
        key = (log.get("transactionHash"), log.get("logIndex"), log.get("blockNumber"))
        if key in seen:
            continue
        seen.add(key)
        unique.append(log)
    return unique


class LogFetcher:
    def __init__(
        self,
        rpc: NodeRPCClient,
        retry: RetryPolicy,
        max_blocks_per_request: int = MAX_BLOCKS_PER_REQUEST,
    ) -> None:
        self._rpc = rpc
        self._retry = retry
        self._max_blocks = max_blocks_per_request

    def chunks(self, start_block: int, end_block: int) -> list[BlockChunk]:
        return chunk_ranges(start_block, end_block, self._max_blocks)

    async def fetch_chunk(self, chunk: BlockChunk, topics: list[str | None]) -> list[dict]:
        """Logs for one chunk, retried with backoff. Raises ChunkFetchError once retries run out."""
        try:
            logs = await self._retry.call(
                lambda: self._rpc.get_logs(chunk.from_block, chunk.to_block, topics),
                f"eth_getLogs[{chunk.from_block}, {chunk.to_block}]",
            )
        except ExternalServiceError as e:
            logger.error(
                "Giving up on blocks [%d, %d] after %d attempts",
                chunk.from_block, chunk.to_block, self._retry.max_attempts,
            )
            raise ChunkFetchError(chunk.from_block, chunk.to_block, self._retry.max_attempts, e) from e

        logger.debug("Chunk %d [%d, %d]: %d logs", chunk.index, chunk.from_block, chunk.to_block, len(logs))
        return dedupe_logs(logs)
