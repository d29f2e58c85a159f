"""In-memory stand-ins for the node and retry policy used across tests."""

from collections import Counter

from treasurywatch.exceptions import ExternalServiceError
from treasurywatch.infra.blockchain.log_fetcher import TRANSFER_TOPIC, pad_address
from treasurywatch.infra.blockchain.retry import RetryPolicy

TREASURY = "0x245db945c485b68fdc429e4f7085a1761aa4d45d"
WETH = "0xc99a6a985ed2cac1ef41640596c5a5f9f4e19ef5"
AXS = "0x97a9107c1793bc407d6f527b77e7fff4d812bece"
SLP = "0xa8754b9fa15fc18bb59458815510e40a12cd2014"


def make_log(
    block: int,
    tx_hash: str,
    sender: str,
    amount: int,
    token: str = WETH,
    log_index: int = 0,
) -> dict:
    return {
        "address": token,
        "topics": [TRANSFER_TOPIC, pad_address(sender), pad_address(TREASURY)],
        "data": "0x" + format(amount, "064x"),
        "blockNumber": hex(block),
        "transactionHash": tx_hash,
        "logIndex": hex(log_index),
    }


def instant_retry(max_retries: int = 5) -> tuple[RetryPolicy, list[float]]:
    """Retry policy that records its backoff delays instead of sleeping."""
    delays: list[float] = []

    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    return RetryPolicy(max_retries=max_retries, sleep=_sleep), delays


class FakeNode:
    """Synthetic chain answering the NodeRPCClient methods. Block n has timestamps[n]."""

    def __init__(
        self,
        timestamps: list[int],
        logs: list[dict] | None = None,
        tx_inputs: dict[str, str] | None = None,
        missing_blocks: set[int] | None = None,
        log_failures: dict[int, int] | None = None,
    ) -> None:
        self.timestamps = timestamps
        self.logs = logs or []
        self.tx_inputs = tx_inputs or {}
        self.missing_blocks = missing_blocks or set()
        # chunk start block → number of times eth_getLogs should fail before succeeding
        self.log_failures = dict(log_failures or {})
        self.calls: Counter = Counter()
        self.log_queries: list[tuple[int, int]] = []

    async def block_number(self) -> int:
        self.calls["eth_blockNumber"] += 1
        return len(self.timestamps) - 1

    async def get_block_timestamp(self, number: int) -> int | None:
        self.calls["eth_getBlockByNumber"] += 1
        if number in self.missing_blocks or not 0 <= number < len(self.timestamps):
            return None
        return self.timestamps[number]

    async def get_block(self, number: int) -> dict | None:
        ts = await self.get_block_timestamp(number)
        return None if ts is None else {"number": hex(number), "timestamp": hex(ts)}

    async def get_logs(self, from_block: int, to_block: int, topics: list) -> list[dict]:
        self.calls["eth_getLogs"] += 1
        self.log_queries.append((from_block, to_block))
        remaining = self.log_failures.get(from_block, 0)
        if remaining:
            self.log_failures[from_block] = remaining - 1
            raise ExternalServiceError(f"rate limited at {from_block}")
        return [log for log in self.logs if from_block <= int(log["blockNumber"], 16) <= to_block]

    async def get_transaction(self, tx_hash: str) -> dict | None:
        self.calls["eth_getTransactionByHash"] += 1
        if tx_hash not in self.tx_inputs:
            return None
        return {"hash": tx_hash, "input": self.tx_inputs[tx_hash]}
