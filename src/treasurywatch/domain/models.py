"""Core data types for treasury ingestion."""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

_UINT_RE = re.compile(r"[0-9]+", re.ASCII)

# Lowercase token symbol → USD price
ExchangeRateMap = dict[str, float]


class TokenInfo(BaseModel):
    """Registry entry for a known ERC-20 contract."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    decimals: int


class TransferRecord(BaseModel):
    """One decoded Transfer event landing in the treasury.

    Serialises with camelCase keys (``blockNumber``, ``tokenSymbol``...) which is
    what dashboard consumers read. ``amount`` stays a decimal string end to end.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    block_number: int = Field(ge=0)
    transaction_hash: str
    transaction_event_signature: str
    from_address: str = Field(alias="from")
    to_address: str = Field(alias="to")
    token_symbol: str
    token_decimals: int = Field(ge=0)
    amount: str
    timestamp: int
    transaction_function: str

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_is_uint(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str) or not _UINT_RE.fullmatch(value):
            raise ValueError(f"amount must be a non-negative integer string, got {value!r}")
        return value

    @property
    def raw_amount(self) -> int:
        return int(self.amount)
