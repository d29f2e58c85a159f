"""Timestamp → block number resolution by binary search over the chain."""

import logging

from treasurywatch.exceptions import ExternalServiceError
from treasurywatch.infra.blockchain.retry import RetryPolicy
from treasurywatch.infra.blockchain.rpc_client import NodeRPCClient

logger = logging.getLogger(__name__)


class BlockTimestampResolver:
    """Find the block whose timestamp is closest to a UNIX time.

    Assumes timestamps are non-decreasing with block number. If the node
    violates that, the result is some block near the target, not
    necessarily the closest one.
    """

    def __init__(
        self,
        rpc: NodeRPCClient,
        retry: RetryPolicy | None = None,
        probe_window: int = 4,
    ) -> None:
        self._rpc = rpc
        self._retry = retry
        self._probe_window = probe_window

    async def find_closest_block(self, target_timestamp: int, height: int | None = None) -> int:
        if height is None:
            height = await self._rpc.block_number()

        seen: dict[int, int] = {}
        left, right = 0, height

        while left <= right:
            mid = (left + right) // 2
            probe = await self._probe(mid, left, right, seen)
            if probe is None:
                logger.warning(
                    "No readable block around %d in [%d, %d]; stopping search for ts=%d",
                    mid, left, right, target_timestamp,
                )
                break

            block, ts = probe
            if ts == target_timestamp:
                return block
            if ts < target_timestamp:
                left = block + 1
            else:
                right = block - 1

        return await self._pick_closest(left, right, height, target_timestamp, seen)

    async def _pick_closest(
        self, left: int, right: int, height: int, target: int, seen: dict[int, int]
    ) -> int:
        # Bounds crossed: the answer is one of the two blocks either side of the crossing point
        candidates = {}
        for block in (right, left):
            if 0 <= block <= height:
                ts = await self._timestamp(block, seen)
                if ts is not None:
                    candidates[block] = ts

        pool = candidates or seen
        if not pool:
            raise ExternalServiceError(f"Could not read any block timestamp while searching for ts={target}")

        return min(pool, key=lambda b: (abs(pool[b] - target), b))

    async def _probe(self, mid: int, left: int, right: int, seen: dict[int, int]) -> tuple[int, int] | None:
        """Timestamp at ``mid``, or at the nearest readable neighbour inside [left, right]."""
        for offset in range(self._probe_window + 1):
            for block in ((mid,) if offset == 0 else (mid + offset, mid - offset)):
                if left <= block <= right:
                    ts = await self._timestamp(block, seen)
                    if ts is not None:
                        return block, ts
        return None

    async def _timestamp(self, block: int, seen: dict[int, int]) -> int | None:
        if block in seen:
            return seen[block]
        try:
            if self._retry is not None:
                ts = await self._retry.call(
                    lambda: self._rpc.get_block_timestamp(block), f"eth_getBlockByNumber({block})"
                )
            else:
                ts = await self._rpc.get_block_timestamp(block)
        except ExternalServiceError as e:
            logger.warning("Skipping unreachable block %d: %s", block, e)
            return None

        if ts is None:
            logger.warning("Skipping missing block %d", block)
            return None
        seen[block] = ts
        return ts
