"""Schemas de request/response da API (Pydantic v2)."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from rate_collector.core.models import ConversionResult, RateObservation, RatesSnapshot, RateSummary


# -- Erro --


class ErrorResponse(BaseModel):
    """Envelope padrão de erro."""

    error: str
    detail: Optional[str] = None
    valid_providers: Optional[list[str]] = None


# -- Taxas --


class RateResponse(BaseModel):
    """Uma casa de câmbio no formato da API."""

    provider: str
    name: str
    buy_rate: float
    sell_rate: float
    spread: float
    observed_at: datetime

    @classmethod
    def from_observation(cls, obs: RateObservation) -> "RateResponse":
        return cls(**obs.to_display_dict())


class RatesResponse(BaseModel):
    """Estado atual das taxas."""

    rates: list[RateResponse]
    last_update: Optional[datetime] = None
    error: Optional[str] = None
    status: str
    retry_attempt: int = 0

    @classmethod
    def from_snapshot(cls, snapshot: RatesSnapshot) -> "RatesResponse":
        return cls(
            rates=[RateResponse.from_observation(obs) for obs in snapshot.rates],
            last_update=snapshot.last_update,
            error=snapshot.error,
            status=snapshot.status.value,
            retry_attempt=snapshot.retry_attempt,
        )


class RefreshResponse(BaseModel):
    message: str
    success: bool
    attempts: int
    rates: int
    timestamp: datetime = Field(default_factory=datetime.now)


class BestRatesResponse(BaseModel):
    """KPIs de comparação."""

    best_buy: RateResponse
    best_sell: RateResponse
    worst_buy: RateResponse
    worst_sell: RateResponse
    average_spread: float
    reference_amount: float
    savings_buying_usd: float
    savings_selling_usd: float
    providers_count: int
    last_update: Optional[datetime] = None

    @classmethod
    def from_summary(
        cls,
        summary: RateSummary,
        last_update: Optional[datetime] = None,
    ) -> "BestRatesResponse":
        return cls(
            best_buy=RateResponse.from_observation(summary.best_buy),
            best_sell=RateResponse.from_observation(summary.best_sell),
            worst_buy=RateResponse.from_observation(summary.worst_buy),
            worst_sell=RateResponse.from_observation(summary.worst_sell),
            average_spread=float(summary.average_spread),
            reference_amount=float(summary.reference_amount),
            savings_buying_usd=float(summary.savings_buying_usd),
            savings_selling_usd=float(summary.savings_selling_usd),
            providers_count=summary.providers_count,
            last_update=last_update,
        )


class CalculateResponse(BaseModel):
    """Resultado da calculadora."""

    action: str
    amount: float
    result: float
    best_provider: str
    applied_rate: float
    worst_provider: str
    worst_rate: float
    savings: float

    @classmethod
    def from_conversion(cls, conversion: ConversionResult) -> "CalculateResponse":
        return cls(
            action=conversion.action.value,
            amount=float(conversion.amount),
            result=float(conversion.result),
            best_provider=conversion.best_provider,
            applied_rate=float(conversion.applied_rate),
            worst_provider=conversion.worst_provider,
            worst_rate=float(conversion.worst_rate),
            savings=float(conversion.savings),
        )


# -- Histórico --


class HistoryPoint(BaseModel):
    provider: str
    buy_rate: float
    sell_rate: float
    spread: float
    observed_at: str


class HistoryResponse(BaseModel):
    provider: str
    hours: int
    data: list[HistoryPoint]


class StatsResponse(BaseModel):
    provider: str
    days: int
    stats: Optional[dict] = None


class TrendPoint(BaseModel):
    time_bucket: str
    avg_buy: float
    avg_sell: float
    min_buy: float
    max_buy: float
    min_sell: float
    max_sell: float
    provider_count: int


class TrendResponse(BaseModel):
    hours: int
    interval: int
    data: list[TrendPoint]


class ProvidersResponse(BaseModel):
    """Provedores com histórico e provedores configurados."""

    providers: list[str]
    configured: list[dict]


class DatabaseStatsResponse(BaseModel):
    total_records: int
    total_providers: int
    oldest_record: Optional[str] = None
    newest_record: Optional[str] = None
    db_path: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime = Field(default_factory=datetime.now)
    last_update: Optional[datetime] = None
    rates_count: int
    has_error: bool
