"""Rotas da API de taxas de câmbio."""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query

import rate_collector
from rate_collector.api.deps import get_collector, require_admin_key, valid_provider
from rate_collector.api.security import limit_api, limit_refresh
from rate_collector.api.schemas import (
    BestRatesResponse,
    CalculateResponse,
    DatabaseStatsResponse,
    HealthResponse,
    HistoryPoint,
    HistoryResponse,
    ProvidersResponse,
    RatesResponse,
    RefreshResponse,
    StatsResponse,
    TrendPoint,
    TrendResponse,
)
from rate_collector.collector import RateCollector
from rate_collector.core.constants import NO_DATA_MESSAGE
from rate_collector.core.types import CalculatorAction

router = APIRouter(dependencies=[Depends(limit_api)])


# -- Taxas --


@router.get("/rates", response_model=RatesResponse)
async def get_rates(collector: RateCollector = Depends(get_collector)):
    """Últimas taxas: histórico combinado com a coleta em andamento."""
    snapshot = await collector.get_merged_rates()
    return RatesResponse.from_snapshot(snapshot)


@router.api_route(
    "/refresh",
    methods=["GET", "POST"],
    response_model=RefreshResponse,
    dependencies=[Depends(limit_refresh), Depends(require_admin_key)],
)
async def refresh_rates(collector: RateCollector = Depends(get_collector)):
    """Dispara um ciclo de coleta e espera o resultado provisório."""
    outcome = await collector.trigger_manual_refresh()
    outcome.raise_for_failure()

    return RefreshResponse(
        message="Taxas atualizadas",
        success=outcome.success,
        attempts=outcome.attempts,
        rates=outcome.rates_count,
    )


@router.get("/best-rates", response_model=BestRatesResponse)
async def get_best_rates(collector: RateCollector = Depends(get_collector)):
    """Melhores e piores casas e economia potencial."""
    summary = await collector.get_best_rates()
    if summary is None:
        raise HTTPException(status_code=404, detail=NO_DATA_MESSAGE)

    return BestRatesResponse.from_summary(
        summary,
        last_update=collector.get_current_snapshot().last_update,
    )


@router.get("/calculate", response_model=CalculateResponse)
async def calculate(
    amount: float = Query(..., gt=0, description="PEN (buy) ou USD (sell)"),
    action: CalculatorAction = Query(CalculatorAction.BUY),
    collector: RateCollector = Depends(get_collector),
):
    conversion = await collector.calculate(amount, action)
    if conversion is None:
        raise HTTPException(status_code=404, detail=NO_DATA_MESSAGE)
    return CalculateResponse.from_conversion(conversion)


# -- Histórico --


@router.get("/history/{provider}", response_model=HistoryResponse)
async def get_history(
    provider: str = Depends(valid_provider),
    hours: int = Query(24, ge=1, le=720),
    collector: RateCollector = Depends(get_collector),
):
    rows = await collector.get_provider_history(provider, hours)
    return HistoryResponse(
        provider=provider,
        hours=hours,
        data=[HistoryPoint(**row) for row in rows],
    )


@router.get("/stats/{provider}", response_model=StatsResponse)
async def get_stats(
    provider: str = Depends(valid_provider),
    days: int = Query(7, ge=1, le=90),
    collector: RateCollector = Depends(get_collector),
):
    stats = await collector.get_provider_stats(provider, days)
    return StatsResponse(provider=provider, days=days, stats=stats)


@router.get("/trend", response_model=TrendResponse)
async def get_trend(
    hours: int = Query(24, ge=1, le=720),
    interval: int = Query(1, ge=1, le=24),
    collector: RateCollector = Depends(get_collector),
):
    """Médias de mercado agrupadas por janela de `interval` horas."""
    rows = await collector.get_trend(hours, interval)
    return TrendResponse(
        hours=hours,
        interval=interval,
        data=[TrendPoint(**row) for row in rows],
    )


@router.get("/providers", response_model=ProvidersResponse)
async def list_providers(collector: RateCollector = Depends(get_collector)):
    return ProvidersResponse(
        providers=await collector.get_stored_providers(),
        configured=collector.get_available_providers(),
    )


@router.get("/db-stats", response_model=DatabaseStatsResponse)
async def database_stats(collector: RateCollector = Depends(get_collector)):
    stats = await collector.get_database_stats()
    return DatabaseStatsResponse(**stats)


# -- Health --


@router.get("/health", response_model=HealthResponse)
async def health_check(collector: RateCollector = Depends(get_collector)):
    snapshot = collector.get_current_snapshot()
    return HealthResponse(
        status="ok",
        version=rate_collector.__version__,
        timestamp=datetime.now(),
        last_update=snapshot.last_update,
        rates_count=snapshot.rates_count,
        has_error=snapshot.has_error,
    )
