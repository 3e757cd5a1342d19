"""
Controle de tentativas de um ciclo.
Só falhas de sessão são repetidas; o resto já é tratado pelo orquestrador.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from config.logging_config import LoggerMixin
from config.settings import Settings, get_settings
from rate_collector.aggregation.state import RatesState
from rate_collector.core.exceptions import CycleExhaustedError, SessionError
from rate_collector.core.models import CycleOutcome
from rate_collector.scrapers.manager import ScrapeOrchestrator


class RetryController(LoggerMixin):
    """
    Envolve o orquestrador com backoff exponencial.

    Espera antes da tentativa n+1: min(base * 2**n, cap), com n a partir de 0.
    """

    def __init__(
        self,
        orchestrator: ScrapeOrchestrator,
        state: RatesState,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            orchestrator: Executa um ciclo
            state: Estado atual (recebe tentativa e erro final)
            settings: Configurações
            sleep: Função de espera (injetável nos testes)
        """
        self.orchestrator = orchestrator
        self.state = state
        self.settings = settings or get_settings()
        self._sleep = sleep

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.settings.max_attempts),
            wait=wait_exponential(
                multiplier=self.settings.backoff_base_seconds,
                max=self.settings.backoff_cap_seconds,
            ),
            retry=retry_if_exception_type(SessionError),
            sleep=self._sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )

    def _log_retry(self, retry_state: RetryCallState) -> None:
        self.logger.warning(
            "Falha de sessão, nova tentativa agendada",
            attempt=retry_state.attempt_number,
            max_attempts=self.settings.max_attempts,
            wait_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
            error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        )

    async def run_cycle(self) -> CycleOutcome:
        """
        Executa um ciclo com retries.

        Returns:
            CycleOutcome com success=False se as tentativas se esgotarem
        """
        attempts = 0

        try:
            async for attempt in self._retrying():
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    self.state.set_retry_attempt(attempts)
                    self.logger.info(
                        "Tentativa de coleta",
                        attempt=attempts,
                        max_attempts=self.settings.max_attempts,
                    )
                    cycle = await self.orchestrator.run()

        except SessionError as e:
            exhausted = CycleExhaustedError(
                f"Erro após {attempts} tentativas: {e.message}",
                attempts=attempts,
                cause=e,
            )
            self.logger.error("Tentativas esgotadas", **exhausted.to_dict())
            self.state.mark_error(exhausted.message)
            return CycleOutcome(
                success=False,
                attempts=attempts,
                error=exhausted.message,
                exception=exhausted,
            )

        self.state.set_retry_attempt(0)
        return CycleOutcome(success=True, attempts=attempts, cycle=cycle)
