"""ExcelWriter — treasury transfer report with openpyxl."""

from datetime import UTC, datetime
from decimal import Decimal
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from treasurywatch.domain.models import ExchangeRateMap, TransferRecord
from treasurywatch.report import summary

# (sheet_name, headers, number_formats); number_formats maps 0-based column → format
SHEET_DEFS: list[tuple[str, list[str], dict[int, str]]] = [
    (
        "transfers",
        ["Date (UTC)", "Block", "Tx Hash", "From", "Token", "Amount", "Raw Amount", "Function", "Value (USD)"],
        {5: "#,##0.000000", 8: "$#,##0.00"},
    ),
    (
        "totals_by_token",
        ["Token", "Raw Amount", "Amount", "Value (USD)"],
        {2: "#,##0.000000", 3: "$#,##0.00"},
    ),
    (
        "top_transactions",
        ["Date (UTC)", "Tx Hash", "Token", "Amount", "Value (USD)"],
        {3: "#,##0.000000", 4: "$#,##0.00"},
    ),
    (
        "daily_counts",
        ["Date (UTC)", "Transfers"],
        {},
    ),
    (
        "by_function",
        ["Function", "Transfers"],
        {},
    ),
    (
        "cumulative_usd",
        ["Date (UTC)", "Balance (USD)"],
        {1: "$#,##0.00"},
    ),
]

HEADER_FONT = Font(bold=True)


def _date(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=UTC).strftime("%Y-%m-%d %H:%M:%S")


def build_rows(records: list[TransferRecord], rates: ExchangeRateMap) -> dict[str, list[tuple]]:
    """Row tuples for every sheet, keyed by sheet name."""
    transfers = [
        (
            _date(r.timestamp),
            r.block_number,
            r.transaction_hash,
            r.from_address,
            r.token_symbol,
            float(summary.token_amount(r)),
            r.amount,  # kept as text, can exceed Excel's 15-digit precision
            r.transaction_function,
            float(summary.usd_value(r, rates)),
        )
        for r in sorted(records, key=lambda r: (r.timestamp, r.block_number))
    ]

    raw_totals = summary.total_amount_by_token(records)
    usd_totals = summary.total_usd_by_token(records, rates)
    decimals = {r.token_symbol: r.token_decimals for r in records}
    totals = [
        (symbol, raw, float(Decimal(raw).scaleb(-decimals[symbol])), float(usd_totals[symbol]))
        for symbol, raw in sorted(raw_totals.items())
    ]

    top = [
        (_date(r.timestamp), r.transaction_hash, r.token_symbol, float(summary.token_amount(r)), float(value))
        for r, value in summary.top_transactions(records, rates)
    ]

    return {
        "transfers": transfers,
        "totals_by_token": totals,
        "top_transactions": top,
        "daily_counts": list(summary.transactions_per_day(records).items()),
        "by_function": list(summary.totals_by_function(records).items()),
        "cumulative_usd": [
            (_date(ts), float(balance)) for ts, balance in summary.cumulative_usd_balance(records, rates)
        ],
    }


class ExcelWriter:
    """Writes treasury transfers to an in-memory Excel buffer."""

    def write_to_buffer(self, records: list[TransferRecord], rates: ExchangeRateMap | None = None) -> BytesIO:
        rows_by_sheet = build_rows(records, rates or {})
        wb = Workbook()

        for idx, (sheet_name, headers, num_fmts) in enumerate(SHEET_DEFS):
            if idx == 0:
                ws = wb.active
                ws.title = sheet_name
            else:
                ws = wb.create_sheet(title=sheet_name)

            for col_idx, header in enumerate(headers, start=1):
                cell = ws.cell(row=1, column=col_idx, value=header)
                cell.font = HEADER_FONT

            for row_idx, row in enumerate(rows_by_sheet[sheet_name], start=2):
                for col_idx, value in enumerate(row, start=1):
                    cell = ws.cell(row=row_idx, column=col_idx, value=value)
                    fmt = num_fmts.get(col_idx - 1)
                    if fmt:
                        cell.number_format = fmt

            _auto_fit_columns(ws)

        buf = BytesIO()
        wb.save(buf)
        buf.seek(0)
        return buf


def _auto_fit_columns(ws) -> None:
    """Set column widths based on content (approximate)."""
    for col_cells in ws.columns:
        max_len = 0
        col_letter = get_column_letter(col_cells[0].column)
        for cell in col_cells:
            if cell.value is not None:
                max_len = max(max_len, len(str(cell.value)))
        ws.column_dimensions[col_letter].width = min(max_len + 3, 70)
