"""TreasuryService — timestamps → blocks → chunked logs → transfer records."""

import logging
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field

from treasurywatch.domain.enums import DropReason
from treasurywatch.domain.models import ExchangeRateMap, TransferRecord
from treasurywatch.domain.tokens import TokenRegistry
from treasurywatch.exceptions import RecordDecodeError, UnknownTokenError, ValidationError
from treasurywatch.infra.blockchain.block_resolver import BlockTimestampResolver
from treasurywatch.infra.blockchain.log_fetcher import (
    MAX_BLOCKS_PER_REQUEST,
    BlockChunk,
    LogFetcher,
    transfer_topics,
)
from treasurywatch.infra.blockchain.retry import RetryPolicy
from treasurywatch.infra.blockchain.rpc_client import NodeRPCClient
from treasurywatch.infra.concurrency import run_all
from treasurywatch.infra.price.exchange_rates import ExchangeRateClient
from treasurywatch.ingest.progress import ProgressAggregator, ProgressCallback
from treasurywatch.parser.transfer_log import TransferLogParser

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    records: list[TransferRecord]
    start_block: int
    end_block: int
    dropped: Counter = field(default_factory=Counter)

    @property
    def dropped_total(self) -> int:
        return sum(self.dropped.values())


def validate_request(start_timestamp: int | None, end_timestamp: int | None, api_key: str | None) -> None:
    if not api_key:
        raise ValidationError("API key is required")
    if start_timestamp is None or end_timestamp is None:
        raise ValidationError("Both start and end timestamps are required")
    if start_timestamp < 0 or end_timestamp < 0:
        raise ValidationError("Timestamps must be non-negative")
    if end_timestamp < start_timestamp:
        raise ValidationError("End timestamp is before start timestamp")


class TreasuryService:
    """Fetches every Transfer into the treasury within a time window.

    Chunks, and the logs within each chunk, are worked by at most
    ``max_concurrency`` tasks at a time.

    A fetch is all-or-nothing: a chunk that exhausts its retries fails the
    call. Logs that cannot be decoded (unknown token, malformed payload)
    are dropped and counted without failing anything else.
    """

    def __init__(
        self,
        rpc_factory: Callable[..., NodeRPCClient],
        rate_client: ExchangeRateClient,
        treasury_address: str,
        registry: TokenRegistry | None = None,
        retry: RetryPolicy | None = None,
        max_blocks_per_request: int = MAX_BLOCKS_PER_REQUEST,
        block_probe_window: int = 4,
        max_concurrency: int = 8,
    ) -> None:
        self._rpc_factory = rpc_factory
        self._rate_client = rate_client
        self._treasury = treasury_address.lower()
        self._registry = registry or TokenRegistry()
        self._retry = retry or RetryPolicy()
        self._max_blocks = max_blocks_per_request
        self._probe_window = block_probe_window
        self._max_concurrency = max_concurrency

    async def fetch_transfers(
        self,
        start_timestamp: int,
        end_timestamp: int,
        api_key: str,
        on_progress: ProgressCallback | None = None,
    ) -> list[TransferRecord]:
        result = await self.fetch(start_timestamp, end_timestamp, api_key, on_progress)
        return result.records

    async def fetch_exchange_rates(self, api_key: str) -> ExchangeRateMap:
        if not api_key:
            raise ValidationError("API key is required")
        return await self._rate_client.fetch_rates(api_key)

    async def fetch(
        self,
        start_timestamp: int,
        end_timestamp: int,
        api_key: str,
        on_progress: ProgressCallback | None = None,
    ) -> FetchResult:
        validate_request(start_timestamp, end_timestamp, api_key)

        rpc = self._rpc_factory(api_key=api_key)
        try:
            start_block, end_block = await self._resolve_range(rpc, start_timestamp, end_timestamp)

            fetcher = LogFetcher(rpc, self._retry, self._max_blocks)
            parser = TransferLogParser(rpc, self._treasury, self._registry, self._retry)
            progress = ProgressAggregator(on_progress)
            progress.start(end_block - start_block + 1)

            chunks = fetcher.chunks(start_block, end_block)
            topics = transfer_topics(self._treasury)
            dropped: Counter = Counter()
            logger.info(
                "Fetching treasury transfers for blocks [%d, %d] (%d chunks)",
                start_block, end_block, len(chunks),
            )

            per_chunk = await run_all(
                (self._ingest_chunk(chunk, topics, fetcher, parser, progress, dropped) for chunk in chunks),
                limit=self._max_concurrency,
            )
        except Exception:
            logger.exception("Treasury fetch failed for window [%d, %d]", start_timestamp, end_timestamp)
            raise

        records = [record for chunk_records in per_chunk for record in chunk_records]
        logger.info(
            "Fetched %d treasury transfers (%d dropped) from blocks [%d, %d]",
            len(records), sum(dropped.values()), start_block, end_block,
        )
        return FetchResult(records=records, start_block=start_block, end_block=end_block, dropped=dropped)

    async def _resolve_range(self, rpc: NodeRPCClient, start_timestamp: int, end_timestamp: int) -> tuple[int, int]:
        height = await self._retry.call(rpc.block_number, "eth_blockNumber")
        resolver = BlockTimestampResolver(rpc, self._retry, self._probe_window)
        start_block, end_block = await run_all([
            resolver.find_closest_block(start_timestamp, height),
            resolver.find_closest_block(end_timestamp, height),
        ])
        if start_block > end_block:
            logger.warning(
                "Resolved start block %d is after end block %d (non-monotonic timestamps?); swapping",
                start_block, end_block,
            )
            start_block, end_block = end_block, start_block
        return start_block, end_block

    async def _ingest_chunk(
        self,
        chunk: BlockChunk,
        topics: list[str | None],
        fetcher: LogFetcher,
        parser: TransferLogParser,
        progress: ProgressAggregator,
        dropped: Counter,
    ) -> list[TransferRecord]:
        logs = await fetcher.fetch_chunk(chunk, topics)
        total = len(logs)
        completed = 0
        progress.update(chunk, completed, total)

        async def _parse(log: dict) -> TransferRecord | None:
            nonlocal completed
            try:
                record = await parser.parse(log)
            except RecordDecodeError as e:
                reason = DropReason.UNKNOWN_TOKEN if isinstance(e, UnknownTokenError) else DropReason.MALFORMED_LOG
                dropped[reason] += 1
                logger.warning("Dropping log %s in block %s: %s", log.get("transactionHash"), log.get("blockNumber"), e)
                record = None
            completed += 1
            progress.update(chunk, completed, total)
            return record

        parsed = await run_all((_parse(log) for log in logs), limit=self._max_concurrency)
        return [record for record in parsed if record is not None]
