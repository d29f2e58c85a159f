"""Tests for ExcelWriter — openpyxl workbook generation."""

from io import BytesIO

from openpyxl import load_workbook

from treasurywatch.domain.models import TransferRecord
from treasurywatch.report.excel_writer import SHEET_DEFS, ExcelWriter

RATES = {"weth": 3000.0, "axs": 5.5, "slp": 0.004}


def _rec(tx: str, symbol: str, decimals: int, amount: int, ts: int) -> TransferRecord:
    return TransferRecord(
        block_number=1,
        transaction_hash=tx,
        transaction_event_signature="0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef",
        from_address="0x" + "11" * 20,
        to_address="0x245db945c485b68fdc429e4f7085a1761aa4d45d",
        token_symbol=symbol,
        token_decimals=decimals,
        amount=str(amount),
        timestamp=ts,
        transaction_function="Transfer",
    )


RECORDS = [
    _rec("0x1", "WETH", 18, 10**21, 1_717_200_010),
    _rec("0x2", "SLP", 0, 1234, 1_717_200_020),
]


class TestExcelWriterEmpty:
    def test_produces_valid_xlsx(self):
        buf = ExcelWriter().write_to_buffer([])
        assert isinstance(buf, BytesIO)
        assert buf.tell() == 0
        assert len(buf.getvalue()) > 0

    def test_sheet_names(self):
        wb = load_workbook(ExcelWriter().write_to_buffer([]))
        assert wb.sheetnames == [sd[0] for sd in SHEET_DEFS]

    def test_each_sheet_has_bold_headers(self):
        wb = load_workbook(ExcelWriter().write_to_buffer([]))
        for sheet_name, headers, _ in SHEET_DEFS:
            ws = wb[sheet_name]
            assert [ws.cell(row=1, column=i + 1).value for i in range(len(headers))] == headers
            assert ws.cell(row=1, column=1).font.bold


class TestExcelWriterData:
    def test_transfer_rows(self):
        wb = load_workbook(ExcelWriter().write_to_buffer(RECORDS, RATES))
        ws = wb["transfers"]
        assert ws.max_row == 3
        assert ws.cell(row=2, column=3).value == "0x1"
        assert ws.cell(row=2, column=6).value == 1000.0
        assert ws.cell(row=2, column=7).value == "1000000000000000000000"
        assert ws.cell(row=2, column=9).value == 3_000_000.0
        assert ws.cell(row=2, column=9).number_format == "$#,##0.00"

    def test_totals_sheet(self):
        wb = load_workbook(ExcelWriter().write_to_buffer(RECORDS, RATES))
        rows = list(wb["totals_by_token"].iter_rows(min_row=2, values_only=True))
        assert rows == [("SLP", "1234", 1234.0, 4.94), ("WETH", "1000000000000000000000", 1000.0, 3_000_000.0)]

    def test_no_rates_values_zero(self):
        wb = load_workbook(ExcelWriter().write_to_buffer(RECORDS))
        assert wb["transfers"].cell(row=2, column=9).value == 0.0

    def test_cumulative_usd_sheet(self):
        wb = load_workbook(ExcelWriter().write_to_buffer(RECORDS, RATES))
        ws = wb["cumulative_usd"]
        assert ws.max_row == 3
        assert ws.cell(row=2, column=2).value == 3_000_000.0
        assert ws.cell(row=3, column=2).value == 3_000_004.936
