"""Report calculation endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.dependencies import get_coingecko_client, get_report_service
from app.providers.coingecko import CoinGeckoClient, CoinGeckoError
from app.schemas.reports import (
    CalculatedReportSchema,
    CompareRequest,
    ComparisonSchema,
    MetricsRequest,
    ReportSummarySchema,
    SummaryRequest,
)
from app.services.market_data import fetch_spot_rates
from app.services.reports import ReportService
from satsfolio.errors import QuoteGapError

router = APIRouter()


@router.post("/metrics", response_model=CalculatedReportSchema)
async def post_metrics(
    payload: MetricsRequest,
    service: ReportService = Depends(get_report_service),
) -> CalculatedReportSchema:
    try:
        result = await service.metrics(
            payload.report.to_report(),
            display_currency=payload.display_currency,
            gap_policy=payload.gap_policy,
        )
    except QuoteGapError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except CoinGeckoError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return CalculatedReportSchema.model_validate(result)


@router.post("/summary", response_model=ReportSummarySchema)
async def post_summary(
    payload: SummaryRequest,
    service: ReportService = Depends(get_report_service),
    client: CoinGeckoClient = Depends(get_coingecko_client),
) -> ReportSummarySchema:
    try:
        rates = await fetch_spot_rates(client)
    except CoinGeckoError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    result = service.summary(
        payload.report.to_report(),
        rates,
        display_currency=payload.display_currency,
        period_description=payload.period_description,
    )
    return ReportSummarySchema.model_validate(result)


@router.post("/compare", response_model=Optional[ComparisonSchema])
async def post_compare(
    payload: CompareRequest,
    service: ReportService = Depends(get_report_service),
    client: CoinGeckoClient = Depends(get_coingecko_client),
) -> ComparisonSchema | None:
    rates = None
    if payload.reports and payload.display_unit != "btc":
        try:
            rates = await fetch_spot_rates(client)
        except CoinGeckoError as exc:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    result = service.compare(
        [report.to_report() for report in payload.reports],
        mode=payload.mode,
        display_unit=payload.display_unit,
        rates=rates,
    )
    if result is None:
        return None
    return ComparisonSchema.model_validate(result)


__all__ = ["router"]
