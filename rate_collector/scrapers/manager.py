"""
Orquestrador de coleta progressiva.
Dispara todos os extratores em paralelo, devolve um resultado provisório
assim que houver taxas suficientes (ou o orçamento de espera acabar) e
deixa os demais terminarem em background.
"""

import asyncio
from typing import Callable, Iterable, Optional, Protocol

from config.logging_config import LoggerMixin, bind_cycle, clear_cycle
from config.providers import PROVIDERS_CONFIG, get_active_providers
from config.settings import Settings, get_settings
from rate_collector.aggregation.buffer import AggregationBuffer
from rate_collector.aggregation.state import RatesState
from rate_collector.core.constants import NO_RATES_MESSAGE, PENDING_MESSAGE
from rate_collector.core.exceptions import ExtractionError, RateCollectorError
from rate_collector.core.models import CycleResult, ExtractorOutcome, RateObservation
from rate_collector.core.types import ExtractionStatus
from rate_collector.pipeline.parser import RateParser
from rate_collector.scrapers.base import BaseExtractor
from rate_collector.scrapers.session import BrowserSession


class RateSink(Protocol):
    """Destino das observações (o histórico SQLite em produção)."""

    async def save_observations(self, observations: list[RateObservation]) -> str: ...


def build_extractors(provider_ids: Optional[Iterable[str]] = None) -> list[BaseExtractor]:
    """
    Instancia os extratores dos provedores habilitados.

    Args:
        provider_ids: Restringe a estes provedores (None = todos habilitados)
    """
    from rate_collector.scrapers import EXTRACTOR_REGISTRY

    if provider_ids is None:
        configs = get_active_providers()
    else:
        configs = [PROVIDERS_CONFIG[pid] for pid in provider_ids if pid in PROVIDERS_CONFIG]

    parser = RateParser()
    extractors = []
    for config in configs:
        extractor_class = EXTRACTOR_REGISTRY.get(config.id)
        if extractor_class is None:
            raise ValueError(f"Extrator não registrado: {config.id}")
        extractors.append(extractor_class(config, parser=parser))
    return extractors


class ScrapeOrchestrator(LoggerMixin):
    """
    Coordena um ciclo de coleta.

    run() só falha se a sessão do browser não puder ser criada;
    falhas de extratores individuais ficam registradas no CycleResult.
    """

    def __init__(
        self,
        state: RatesState,
        sink: RateSink,
        extractors: Optional[list[BaseExtractor]] = None,
        session_factory: Optional[Callable[[], BrowserSession]] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Args:
            state: Estado atual compartilhado com a API
            sink: Onde gravar as taxas obtidas
            extractors: Extratores do ciclo (default: provedores habilitados)
            session_factory: Cria a sessão de browser de cada ciclo
            settings: Configurações (default: get_settings())
        """
        self.settings = settings or get_settings()
        self.state = state
        self.sink = sink
        self.extractors = extractors if extractors is not None else build_extractors()
        self._session_factory = session_factory or (lambda: BrowserSession(self.settings))

        # Finalizações em background (referência forte até terminarem)
        self._background: set[asyncio.Task] = set()
        self.last_cycle: Optional[CycleResult] = None

    @property
    def provider_ids(self) -> list[str]:
        return [e.provider_id for e in self.extractors]

    async def run(self) -> CycleResult:
        """
        Executa um ciclo e retorna o resultado provisório.

        Raises:
            SessionError: Se o browser não puder ser iniciado
        """
        session = self._session_factory()
        await session.start()

        cycle = CycleResult(total_sources=len(self.extractors))
        buffer = AggregationBuffer()
        ready = asyncio.Event()
        persisted: set[str] = set()
        self.last_cycle = cycle
        bind_cycle(str(cycle.cycle_id))

        self.logger.info(
            "Iniciando ciclo",
            providers=self.provider_ids,
            budget=self.settings.scrape_budget_seconds,
            min_results=self.settings.min_viable_results,
        )

        tasks = [
            asyncio.create_task(
                self._run_extractor(extractor, session, cycle, buffer, ready),
                name=f"extract-{extractor.provider_id}",
            )
            for extractor in self.extractors
        ]
        if not tasks:
            ready.set()

        try:
            await asyncio.wait_for(ready.wait(), timeout=self.settings.scrape_budget_seconds)
        except asyncio.TimeoutError:
            self.logger.warning(
                "Orçamento de espera esgotado",
                arrived=len(buffer),
                settled=cycle.settled_count,
                total=cycle.total_sources,
            )

        provisional = buffer.snapshot()
        cycle.mark_provisional(provisional)
        cycle.rates = list(provisional)

        if provisional:
            self.state.publish(provisional)
            await self._persist(provisional, persisted)
        else:
            cycle.error = PENDING_MESSAGE
            self.state.mark_pending()

        self.logger.info(
            "Resultado provisório",
            rates=len(provisional),
            settled=cycle.settled_count,
            total=cycle.total_sources,
        )

        finalizer = asyncio.create_task(
            self._finalize(tasks, session, cycle, buffer, persisted),
            name=f"finalize-{cycle.cycle_id}",
        )
        self._background.add(finalizer)
        finalizer.add_done_callback(self._background.discard)
        clear_cycle()

        return cycle

    def _is_current(self, cycle: CycleResult) -> bool:
        """Só o ciclo mais recente escreve no estado; os anteriores só gravam histórico."""
        return cycle is self.last_cycle

    async def drain(self) -> None:
        """Aguarda as finalizações pendentes (shutdown e testes)."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _run_extractor(
        self,
        extractor: BaseExtractor,
        session: BrowserSession,
        cycle: CycleResult,
        buffer: AggregationBuffer,
        ready: asyncio.Event,
    ) -> None:
        """Executa um extrator isolando qualquer falha dele."""
        provider_id = extractor.provider_id
        loop = asyncio.get_running_loop()
        started = loop.time()
        outcome = ExtractorOutcome(provider_id=provider_id, status=ExtractionStatus.FAILED)

        try:
            observation = await asyncio.wait_for(
                extractor.extract(session),
                timeout=self.settings.extractor_hard_timeout_seconds,
            )

            if observation is None:
                outcome.status = ExtractionStatus.NO_RESULTS
            else:
                published = await buffer.append(observation)
                if self._is_current(cycle):
                    self.state.publish(published)
                outcome.status = ExtractionStatus.SUCCESS
                outcome.observation = observation

        except asyncio.TimeoutError:
            outcome.status = ExtractionStatus.TIMEOUT
            outcome.error_message = (
                f"Timeout de {self.settings.extractor_hard_timeout_seconds}s excedido"
            )
            self.logger.error("Extrator excedeu o timeout", provider=provider_id)

        except ExtractionError as e:
            outcome.error_message = e.message
            self.logger.error("Erro no extrator", provider=provider_id, error=str(e))

        except Exception as e:
            outcome.error_message = str(e)
            self.logger.error(
                "Erro inesperado no extrator",
                provider=provider_id,
                error=str(e),
                exc_info=True,
            )

        finally:
            outcome.duration_seconds = round(loop.time() - started, 3)
            cycle.record_outcome(outcome)

            self.logger.info(
                "Progresso",
                provider=provider_id,
                status=outcome.status.value,
                settled=f"{cycle.settled_count}/{cycle.total_sources}",
                rates=len(buffer),
            )

            if (
                len(buffer) >= self.settings.min_viable_results
                or cycle.settled_count >= cycle.total_sources
            ):
                ready.set()

    async def _finalize(
        self,
        tasks: list[asyncio.Task],
        session: BrowserSession,
        cycle: CycleResult,
        buffer: AggregationBuffer,
        persisted: set[str],
    ) -> None:
        """Roda quando o último extrator termina: grava o resto e fecha o browser."""
        try:
            await asyncio.gather(*tasks, return_exceptions=True)

            final = buffer.snapshot()
            cycle.rates = final

            current = self._is_current(cycle)

            if final:
                if current:
                    self.state.publish(final)
                await self._persist(
                    [obs for obs in final if obs.provider not in persisted],
                    persisted,
                )
                cycle.error = None
            else:
                cycle.error = NO_RATES_MESSAGE
                if current:
                    self.state.mark_error(NO_RATES_MESSAGE)

            self.logger.info(
                "Ciclo finalizado",
                rates=len(final),
                failed=cycle.failed_providers,
                superseded=not current,
            )

        finally:
            await session.close()
            cycle.mark_settled()

    async def _persist(self, observations: list[RateObservation], persisted: set[str]) -> None:
        """Grava observações ainda não gravadas neste ciclo."""
        if not observations:
            return

        try:
            await self.sink.save_observations(observations)
        except RateCollectorError as e:
            self.logger.error("Falha ao gravar taxas", error=str(e))
            return

        persisted.update(obs.provider for obs in observations)
