"""Exception hierarchy for the treasury ingestion pipeline."""


class TreasuryWatchError(Exception):
    """Base class for all treasurywatch errors."""


class ValidationError(TreasuryWatchError):
    """Caller input is missing or inconsistent. Raised before any remote call."""


class ExternalServiceError(TreasuryWatchError):
    """Transient failure talking to the node or the quote service (retriable)."""


class AuthenticationError(TreasuryWatchError):
    """The remote service rejected the credential. Never retried."""


class ChunkFetchError(TreasuryWatchError):
    """A block chunk exhausted its retries; fatal to the whole fetch."""

    def __init__(self, from_block: int, to_block: int, attempts: int, cause: BaseException | None = None) -> None:
        self.from_block = from_block
        self.to_block = to_block
        self.attempts = attempts
        self.cause = cause
        super().__init__(
            f"Log query for blocks [{from_block}, {to_block}] failed after {attempts} attempts: {cause}"
        )


class RecordDecodeError(TreasuryWatchError):
    """A single log could not be turned into a transfer record."""


class UnknownTokenError(RecordDecodeError):
    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"Unknown token contract: {address}")


class MalformedLogError(RecordDecodeError):
    pass


class ExchangeRateError(TreasuryWatchError):
    """A price query failed; no partial rate map is returned."""
