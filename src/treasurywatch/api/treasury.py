from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from treasurywatch.api.deps import api_key_header, get_service
from treasurywatch.api.schemas.treasury import (
    ExchangeRatesResponse,
    SummaryResponse,
    TopTransaction,
    TransfersResponse,
)
from treasurywatch.infra.concurrency import run_all
from treasurywatch.ingest.service import TreasuryService
from treasurywatch.report import summary
from treasurywatch.report.excel_writer import ExcelWriter

router = APIRouter(prefix="/api", tags=["treasury"])

ServiceDep = Annotated[TreasuryService, Depends(get_service)]
ApiKeyDep = Annotated[str, Depends(api_key_header)]


@router.get("/transfers", response_model=TransfersResponse)
async def list_transfers(
    service: ServiceDep,
    api_key: ApiKeyDep,
    start: int = Query(..., description="Window start, UNIX seconds"),
    end: int = Query(..., description="Window end, UNIX seconds"),
) -> TransfersResponse:
    result = await service.fetch(start, end, api_key)
    return TransfersResponse(
        transfers=[r.model_dump(mode="json", by_alias=True) for r in result.records],
        total=len(result.records),
        dropped=result.dropped_total,
        start_block=result.start_block,
        end_block=result.end_block,
    )


@router.get("/exchange-rates", response_model=ExchangeRatesResponse)
async def exchange_rates(service: ServiceDep, api_key: ApiKeyDep) -> ExchangeRatesResponse:
    rates = await service.fetch_exchange_rates(api_key)
    return ExchangeRatesResponse(rates=rates)


@router.get("/summary", response_model=SummaryResponse)
async def treasury_summary(
    service: ServiceDep,
    api_key: ApiKeyDep,
    start: int = Query(...),
    end: int = Query(...),
    top: int = Query(10, ge=1, le=100),
    token: str | None = Query(None, description="Restrict to one token symbol, e.g. AXS"),
) -> SummaryResponse:
    records, rates = await run_all([
        service.fetch_transfers(start, end, api_key),
        service.fetch_exchange_rates(api_key),
    ])
    if token:
        records = summary.records_for_token(records, token.upper())
    return SummaryResponse(
        total_transfers=len(records),
        amount_by_token=summary.total_amount_by_token(records),
        usd_by_token={k: str(v) for k, v in summary.total_usd_by_token(records, rates).items()},
        top_transactions=[
            TopTransaction(
                transaction_hash=r.transaction_hash,
                token_symbol=r.token_symbol,
                amount=r.amount,
                timestamp=r.timestamp,
                usd_value=str(value.quantize(summary.CENTS)),
            )
            for r, value in summary.top_transactions(records, rates, limit=top)
        ],
        per_day=summary.transactions_per_day(records),
        by_function=summary.totals_by_function(records),
        rates=rates,
    )


@router.get("/export.xlsx")
async def export_xlsx(
    service: ServiceDep,
    api_key: ApiKeyDep,
    start: int = Query(...),
    end: int = Query(...),
) -> StreamingResponse:
    records, rates = await run_all([
        service.fetch_transfers(start, end, api_key),
        service.fetch_exchange_rates(api_key),
    ])
    buf = ExcelWriter().write_to_buffer(records, rates)
    return StreamingResponse(
        buf,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="treasury_{start}_{end}.xlsx"'},
    )
