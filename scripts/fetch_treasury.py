"""Fetch treasury transfers for a date window and write an xlsx report.

Usage:
    TREASURY_API_KEY=... PYTHONPATH=src python scripts/fetch_treasury.py 2024-06-01 2024-06-08 [out.xlsx]
"""

import asyncio
import logging
import sys
from datetime import UTC, datetime

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s - %(message)s")
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


def _to_ts(day: str) -> int:
    return int(datetime.strptime(day, "%Y-%m-%d").replace(tzinfo=UTC).timestamp())


async def main(start_day: str, end_day: str, out_path: str) -> None:
    from treasurywatch.container import Container
    from treasurywatch.report import summary
    from treasurywatch.report.excel_writer import ExcelWriter

    container = Container()
    settings = container.settings()
    service = container.treasury_service()

    def on_progress(value: float) -> None:
        print(f"\r  progress: {value:6.2f}%", end="", flush=True)

    try:
        print(f"--- Fetching transfers to {settings.treasury_address} ({start_day} -> {end_day}) ---")
        result = await service.fetch(_to_ts(start_day), _to_ts(end_day), settings.api_key, on_progress)
        print()
        rates = await service.fetch_exchange_rates(settings.api_key)
    finally:
        await container.http_client().close()

    print(f"  blocks [{result.start_block}, {result.end_block}]  transfers: {len(result.records)}"
          f"  dropped: {result.dropped_total}")
    for symbol, usd in summary.total_usd_by_token(result.records, rates).items():
        print(f"  {symbol:>5}: ${usd:,}")

    buf = ExcelWriter().write_to_buffer(result.records, rates)
    with open(out_path, "wb") as f:
        f.write(buf.getvalue())
    print(f"--- Report written to {out_path} ---")


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(1)
    out = sys.argv[3] if len(sys.argv) > 3 else "treasury_report.xlsx"
    asyncio.run(main(sys.argv[1], sys.argv[2], out))
