"""Tests for the TransferRecord model."""

import pytest
from pydantic import ValidationError

from treasurywatch.domain.models import TransferRecord


def _record(**overrides) -> TransferRecord:
    fields = {
        "block_number": 100,
        "transaction_hash": "0x" + "ab" * 32,
        "transaction_event_signature": "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef",
        "from_address": "0x" + "11" * 20,
        "to_address": "0x245db945c485b68fdc429e4f7085a1761aa4d45d",
        "token_symbol": "WETH",
        "token_decimals": 18,
        "amount": "1000000000000000000000",
        "timestamp": 1_700_000_000,
        "transaction_function": "Transfer",
    }
    fields.update(overrides)
    return TransferRecord(**fields)


class TestTransferRecord:
    def test_camel_case_dump(self):
        data = _record().model_dump(by_alias=True)
        assert set(data) == {
            "blockNumber", "transactionHash", "transactionEventSignature", "from", "to",
            "tokenSymbol", "tokenDecimals", "amount", "timestamp", "transactionFunction",
        }
        assert data["from"] == "0x" + "11" * 20

    def test_accepts_camel_case_input(self):
        data = _record().model_dump(by_alias=True)
        assert TransferRecord(**data) == _record()

    def test_amount_beyond_float_precision_is_exact(self):
        big = 2**200 + 1
        record = _record(amount=str(big))
        assert record.raw_amount == big
        assert record.model_dump(mode="json")["amount"] == str(big)

    def test_int_amount_coerced_to_string(self):
        assert _record(amount=10**21).amount == "1000000000000000000000"

    @pytest.mark.parametrize("bad", ["-1", "1.5", "0x10", "", "1e21", 1.5])
    def test_rejects_non_uint_amount(self, bad):
        with pytest.raises(ValidationError):
            _record(amount=bad)

    def test_frozen(self):
        record = _record()
        with pytest.raises(ValidationError):
            record.amount = "1"
