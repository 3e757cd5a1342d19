"""
Modelos de dados do sistema.
Define observações de taxa, resultados de ciclo e o snapshot servido à API.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from config.providers import get_display_name
from rate_collector.core.exceptions import CycleExhaustedError
from rate_collector.core.types import (
    CalculatorAction,
    ExtractionStatus,
    ProviderID,
    Rate,
    SnapshotStatus,
)


class RateObservation(BaseModel):
    """
    Taxa extraída de um provedor em um instante.
    Imutável depois de criada.
    """

    model_config = ConfigDict(frozen=True)

    provider: ProviderID
    buy_rate: Rate = Field(..., description="Compra (PEN pagos por 1 USD)")
    sell_rate: Rate = Field(..., description="Venta (PEN cobrados por 1 USD)")
    observed_at: datetime = Field(default_factory=datetime.now)

    @computed_field
    @property
    def spread(self) -> Decimal:
        """Diferença venta - compra."""
        return self.sell_rate - self.buy_rate

    @property
    def display_name(self) -> str:
        return get_display_name(self.provider)

    def to_display_dict(self) -> dict:
        """Formato usado pelo dashboard."""
        return {
            "provider": self.provider,
            "name": self.display_name,
            "buy_rate": float(self.buy_rate),
            "sell_rate": float(self.sell_rate),
            "spread": float(self.spread),
            "observed_at": self.observed_at.isoformat(),
        }


class RatesSnapshot(BaseModel):
    """
    Estado atual das taxas visível para a API.
    Trocado por inteiro a cada merge; nunca alterado no lugar.
    """

    model_config = ConfigDict(frozen=True)

    rates: tuple[RateObservation, ...] = ()
    last_update: Optional[datetime] = None
    error: Optional[str] = None
    status: SnapshotStatus = SnapshotStatus.EMPTY
    retry_attempt: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_unique_providers(self):
        """Garante no máximo uma taxa por provedor."""
        providers = [r.provider for r in self.rates]
        if len(providers) != len(set(providers)):
            raise ValueError("Snapshot com provedor duplicado")
        return self

    @computed_field
    @property
    def rates_count(self) -> int:
        return len(self.rates)

    @property
    def has_error(self) -> bool:
        return self.status == SnapshotStatus.ERROR

    def to_payload(self) -> dict:
        """Serializa no formato {rates, lastUpdate, error} da API."""
        return {
            "rates": [r.to_display_dict() for r in self.rates],
            "last_update": self.last_update.isoformat() if self.last_update else None,
            "error": self.error,
            "status": self.status.value,
        }


@dataclass
class ExtractorOutcome:
    """Desfecho de um extrator em um ciclo."""

    provider_id: str
    status: ExtractionStatus
    observation: Optional[RateObservation] = None
    error_message: Optional[str] = None
    duration_seconds: Optional[float] = None


@dataclass
class CycleResult:
    """
    Resultado de um ciclo de coleta.

    Criado no início do ciclo e atualizado conforme os extratores terminam.
    O chamador recebe a versão provisória; a finalização acontece em
    background quando o último extrator termina.
    """

    total_sources: int
    cycle_id: UUID = field(default_factory=uuid4)
    started_at: datetime = field(default_factory=datetime.now)
    rates: list[RateObservation] = field(default_factory=list)
    provisional_rates: list[RateObservation] = field(default_factory=list)
    outcomes: dict[str, ExtractorOutcome] = field(default_factory=dict)
    settled_count: int = 0
    all_sources_settled: bool = False
    error: Optional[str] = None
    provisional_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    _settled: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    def record_outcome(self, outcome: ExtractorOutcome) -> None:
        """Registra o desfecho de um extrator e incrementa o contador."""
        self.outcomes[outcome.provider_id] = outcome
        self.settled_count += 1

    def mark_provisional(self, rates: list[RateObservation]) -> None:
        """Congela a lista entregue antes de todos terminarem."""
        self.provisional_rates = list(rates)
        self.provisional_at = datetime.now()

    def mark_settled(self) -> None:
        """Finaliza o ciclo: nenhum extrator emitirá mais nada."""
        self.all_sources_settled = True
        self.finished_at = datetime.now()
        self._settled.set()

    async def wait_settled(self, timeout: Optional[float] = None) -> bool:
        """
        Aguarda a finalização em background.

        Returns:
            True se finalizou dentro do timeout
        """
        try:
            await asyncio.wait_for(self._settled.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

    @property
    def failed_providers(self) -> list[str]:
        return [
            provider_id for provider_id, outcome in self.outcomes.items()
            if outcome.status.is_fault
        ]


@dataclass
class CycleOutcome:
    """Resultado de um ciclo completo com retries."""

    success: bool
    attempts: int
    cycle: Optional[CycleResult] = None
    error: Optional[str] = None
    exception: Optional[CycleExhaustedError] = field(default=None, repr=False)

    @property
    def rates_count(self) -> int:
        return len(self.cycle.rates) if self.cycle else 0

    def raise_for_failure(self) -> None:
        """Levanta CycleExhaustedError se o ciclo falhou."""
        if not self.success:
            raise self.exception or CycleExhaustedError(self.error or "Ciclo falhou", attempts=self.attempts)


class RateSummary(BaseModel):
    """KPIs de comparação sobre um conjunto de taxas."""

    best_buy: RateObservation = Field(..., description="Maior compra (mais PEN por USD)")
    best_sell: RateObservation = Field(..., description="Menor venta (menos PEN por USD)")
    worst_buy: RateObservation
    worst_sell: RateObservation
    average_spread: Decimal
    reference_amount: Decimal
    savings_buying_usd: Decimal = Field(..., description="PEN economizados comprando USD")
    savings_selling_usd: Decimal = Field(..., description="PEN a mais vendendo USD")
    providers_count: int

    @property
    def max_savings(self) -> Decimal:
        return max(self.savings_buying_usd, self.savings_selling_usd)


class ConversionResult(BaseModel):
    """Resultado da calculadora para um valor e uma operação."""

    action: CalculatorAction
    amount: Decimal
    result: Decimal
    best_provider: ProviderID
    applied_rate: Decimal
    worst_provider: ProviderID
    worst_rate: Decimal
    savings: Decimal = Field(..., description="Diferença em PEN contra a pior casa")
