from typing import Any

from pydantic import BaseModel


class TransfersResponse(BaseModel):
    transfers: list[dict[str, Any]]
    total: int
    dropped: int
    start_block: int
    end_block: int


class ExchangeRatesResponse(BaseModel):
    rates: dict[str, float]


class TopTransaction(BaseModel):
    transaction_hash: str
    token_symbol: str
    amount: str
    timestamp: int
    usd_value: str


class SummaryResponse(BaseModel):
    total_transfers: int
    amount_by_token: dict[str, str]
    usd_by_token: dict[str, str]
    top_transactions: list[TopTransaction]
    per_day: dict[str, int]
    by_function: dict[str, int]
    rates: dict[str, float]
