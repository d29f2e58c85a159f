"""Treasury analytics over fetched transfer records.

Raw amounts are summed as integers; USD values use Decimal so large token
amounts never pass through a float.
"""

from collections import Counter, defaultdict
from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import Decimal

from treasurywatch.domain.models import ExchangeRateMap, TransferRecord

CENTS = Decimal("0.01")


def records_for_token(records: Iterable[TransferRecord], symbol: str) -> list[TransferRecord]:
    return [r for r in records if r.token_symbol == symbol]


def total_amount_by_token(records: Iterable[TransferRecord]) -> dict[str, str]:
    """Raw amount per symbol, summed exactly and returned as decimal strings."""
    totals: dict[str, int] = defaultdict(int)
    for r in records:
        totals[r.token_symbol] += r.raw_amount
    return {symbol: str(total) for symbol, total in totals.items()}


def token_amount(record: TransferRecord) -> Decimal:
    """Amount in whole tokens (raw / 10**decimals)."""
    return Decimal(record.raw_amount).scaleb(-record.token_decimals)


def usd_value(record: TransferRecord, rates: ExchangeRateMap) -> Decimal:
    rate = rates.get(record.token_symbol.lower())
    if rate is None:
        return Decimal("0")
    return token_amount(record) * Decimal(str(rate))


def total_usd_by_token(records: Iterable[TransferRecord], rates: ExchangeRateMap) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = defaultdict(Decimal)
    for r in records:
        totals[r.token_symbol] += usd_value(r, rates)
    return {symbol: total.quantize(CENTS) for symbol, total in totals.items()}


def top_transactions(
    records: Iterable[TransferRecord], rates: ExchangeRateMap, limit: int = 10
) -> list[tuple[TransferRecord, Decimal]]:
    """Largest transfers by USD value, biggest first."""
    valued = [(r, usd_value(r, rates)) for r in records]
    valued.sort(key=lambda pair: pair[1], reverse=True)
    return valued[:limit]


def cumulative_usd_balance(
    records: Iterable[TransferRecord], rates: ExchangeRateMap
) -> list[tuple[int, Decimal]]:
    """Running USD total of inflows in timestamp order."""
    balance = Decimal("0")
    points = []
    for r in sorted(records, key=lambda r: (r.timestamp, r.block_number)):
        balance += usd_value(r, rates)
        points.append((r.timestamp, balance))
    return points


def transactions_per_day(records: Iterable[TransferRecord]) -> dict[str, int]:
    """UTC date (YYYY-MM-DD) → number of transfers, in date order."""
    counts = Counter(datetime.fromtimestamp(r.timestamp, tz=UTC).date().isoformat() for r in records)
    return dict(sorted(counts.items()))


def totals_by_function(records: Iterable[TransferRecord]) -> dict[str, int]:
    counts = Counter(r.transaction_function for r in records)
    return dict(counts.most_common())
