"""
RateCollector: fachada principal do sistema.
Liga orquestrador, retries, estado, histórico e calculadora.
"""

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Optional

from config.logging_config import LoggerMixin, setup_logging
from config.providers import PROVIDERS_CONFIG
from config.settings import Settings, get_settings
from rate_collector.aggregation.state import RatesState
from rate_collector.core.constants import NO_DATA_MESSAGE
from rate_collector.core.exceptions import RateCollectorError, ValidationError
from rate_collector.core.models import (
    ConversionResult,
    CycleOutcome,
    RateObservation,
    RatesSnapshot,
    RateSummary,
)
from rate_collector.core.types import (
    VALID_PROVIDERS,
    CalculatorAction,
    SnapshotStatus,
    is_valid_provider,
)
from rate_collector.pipeline.calculator import RateCalculator
from rate_collector.scrapers.base import BaseExtractor
from rate_collector.scrapers.manager import ScrapeOrchestrator
from rate_collector.scrapers.retry import RetryController
from rate_collector.scrapers.session import BrowserSession
from rate_collector.storage import StorageManager, StorageType


class RateCollector(LoggerMixin):
    """
    Orquestrador principal do sistema de taxas.

    Responsabilidades:
    - Rodar ciclos de coleta (agendados ou manuais)
    - Servir o estado atual e a visão combinada com o histórico
    - Comparações, calculadora e consultas históricas
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        storage: Optional[StorageManager] = None,
        extractors: Optional[list[BaseExtractor]] = None,
        session_factory: Optional[Callable[[], BrowserSession]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            settings: Configurações (None = get_settings())
            storage: Gerenciador de storage (None = SQLite em data_path)
            extractors: Extratores do ciclo (None = provedores habilitados)
            session_factory: Cria a sessão de browser de cada ciclo
            sleep: Espera entre tentativas
        """
        self.settings = settings or get_settings()

        setup_logging(
            level=self.settings.log_level,
            log_path=self.settings.log_path,
            json_format=self.settings.log_json,
        )

        self.storage = storage or StorageManager(
            base_path=self.settings.data_path,
            db_name=self.settings.db_name,
        )
        self.state = RatesState()
        self.orchestrator = ScrapeOrchestrator(
            state=self.state,
            sink=self.storage,
            extractors=extractors,
            session_factory=session_factory,
            settings=self.settings,
        )
        self.retry = RetryController(self.orchestrator, self.state, self.settings, sleep=sleep)
        self.calculator = RateCalculator(reference_amount=self.settings.reference_amount)

        # Um ciclo por vez (agendado e manual compartilham)
        self._cycle_lock = asyncio.Lock()

        self.logger.info(
            "RateCollector inicializado",
            providers=self.orchestrator.provider_ids,
            db_path=str(self.storage.sqlite.db_path),
        )

    # CICLOS

    async def run_cycle(self) -> CycleOutcome:
        """Executa um ciclo com retries e retorna o desfecho."""
        async with self._cycle_lock:
            outcome = await self.retry.run_cycle()

        self.logger.info(
            "Ciclo concluído",
            success=outcome.success,
            attempts=outcome.attempts,
            rates=outcome.rates_count,
            error=outcome.error,
        )
        return outcome

    async def trigger_manual_refresh(self) -> CycleOutcome:
        """Atualização pedida pela API ou CLI."""
        self.logger.info("Atualização manual solicitada")
        return await self.run_cycle()

    async def wait_background(self) -> None:
        """Aguarda extratores que ainda rodam em background."""
        await self.orchestrator.drain()

    async def close(self) -> None:
        await self.wait_background()

    # ESTADO ATUAL

    def get_current_snapshot(self) -> RatesSnapshot:
        """Snapshot em memória (não toca no banco)."""
        return self.state.current

    async def get_merged_rates(self) -> RatesSnapshot:
        """
        Últimas taxas de cada provedor no banco, sobrescritas pelas frescas.

        Se o banco falhar, retorna o que há em memória.
        """
        current = self.state.current
        live = [obs for obs in current.rates if is_valid_provider(obs.provider)]

        try:
            stored = await self.storage.latest_per_provider()
        except RateCollectorError as e:
            self.logger.error("Falha ao ler histórico, usando memória", error=str(e))
            return current.model_copy(update={"rates": tuple(live)})

        merged: dict[str, RateObservation] = {
            obs.provider: obs for obs in stored if is_valid_provider(obs.provider)
        }
        for obs in live:
            stored_obs = merged.get(obs.provider)
            if stored_obs is None or obs.observed_at >= stored_obs.observed_at:
                merged[obs.provider] = obs

        self.logger.debug(
            "Taxas combinadas",
            live=len(live),
            stored=len(stored),
            total=len(merged),
        )

        if not merged:
            if current.status in (SnapshotStatus.PENDING, SnapshotStatus.ERROR):
                return current
            return RatesSnapshot(error=NO_DATA_MESSAGE, status=SnapshotStatus.EMPTY)

        rates = tuple(merged.values())
        has_error = current.status == SnapshotStatus.ERROR

        if has_error:
            status = SnapshotStatus.ERROR
        elif live:
            status = SnapshotStatus.LIVE
        else:
            status = SnapshotStatus.FALLBACK

        return RatesSnapshot(
            rates=rates,
            last_update=max(obs.observed_at for obs in rates),
            error=current.error if has_error else None,
            status=status,
            retry_attempt=current.retry_attempt,
        )

    # COMPARAÇÃO E CALCULADORA

    async def get_best_rates(self) -> Optional[RateSummary]:
        """KPIs sobre a visão combinada (None se não houver taxas)."""
        snapshot = await self.get_merged_rates()
        return self.calculator.summarize(list(snapshot.rates))

    async def calculate(
        self,
        amount: float,
        action: CalculatorAction = CalculatorAction.BUY,
    ) -> Optional[ConversionResult]:
        """Converte um valor usando a melhor casa disponível."""
        snapshot = await self.get_merged_rates()
        return self.calculator.convert(amount, action, list(snapshot.rates))

    # HISTÓRICO

    def _require_provider(self, provider: str) -> None:
        if not is_valid_provider(provider):
            raise ValidationError(
                f"Provedor inválido: {provider}",
                field="provider",
                value=provider,
                details={"valid_providers": list(VALID_PROVIDERS)},
            )

    async def get_provider_history(self, provider: str, hours: int = 24) -> list[dict]:
        self._require_provider(provider)
        return await self.storage.sqlite.get_provider_history(provider, hours)

    async def get_provider_stats(self, provider: str, days: int = 7) -> Optional[dict]:
        self._require_provider(provider)
        return await self.storage.sqlite.get_provider_stats(provider, days)

    async def get_best_rates_in_period(self, hours: int = 24) -> dict:
        return await self.storage.sqlite.get_best_rates_in_period(hours)

    async def get_trend(self, hours: int = 24, interval: int = 1) -> list[dict]:
        return await self.storage.sqlite.get_trend(hours, interval)

    async def get_stored_providers(self) -> list[str]:
        """Provedores com registros no banco."""
        return await self.storage.sqlite.get_all_providers()

    async def get_database_stats(self) -> dict:
        return await self.storage.sqlite.get_database_stats()

    async def clean_old_records(self, days_to_keep: Optional[int] = None) -> int:
        """Remove histórico mais antigo que a retenção configurada."""
        return await self.storage.sqlite.clean_old_records(
            days_to_keep or self.settings.history_retention_days
        )

    async def export_history(
        self,
        format: str = "csv",
        output_path: Optional[Path] = None,
        provider: Optional[str] = None,
        days: Optional[int] = None,
    ) -> str:
        """
        Exporta o histórico para CSV ou Parquet.

        Returns:
            Path do arquivo exportado ("" se não havia dados)
        """
        try:
            storage_type = StorageType(format.lower())
        except ValueError:
            storage_type = None

        if storage_type is None or not storage_type.is_export_format:
            raise ValidationError(f"Formato não suportado: {format}", field="format", value=format)

        if provider:
            self._require_provider(provider)

        return await self.storage.export(
            storage_type,
            provider=provider,
            days=days,
            output_path=output_path,
        )

    def get_available_providers(self) -> list[dict]:
        """Provedores configurados e seus status."""
        return [
            {
                "id": config.id,
                "name": config.display_name,
                "url": config.url,
                "status": config.status.value,
                "method": config.method.value,
                "enabled": config.is_enabled,
            }
            for config in PROVIDERS_CONFIG.values()
        ]
