"""
Agendador dos ciclos de coleta.
Loop asyncio: um ciclo a cada N minutos e limpeza diária do histórico.
"""

import asyncio
from datetime import date, datetime
from typing import Awaitable, Callable, Optional

from config.logging_config import LoggerMixin
from config.settings import Settings
from rate_collector.collector import RateCollector
from rate_collector.core.models import CycleOutcome


class RateScheduler(LoggerMixin):
    """
    Roda ciclos periodicamente até ser parado.
    Erros de ciclo são registrados e nunca derrubam o loop.
    """

    def __init__(
        self,
        collector: RateCollector,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.collector = collector
        self.settings = settings or collector.settings
        self._sleep = sleep
        self._clock = clock

        self.is_running = False
        self.cycle_count = 0
        self._last_cleanup: Optional[date] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def interval_seconds(self) -> float:
        return self.settings.scrape_interval_minutes * 60

    async def tick(self) -> Optional[CycleOutcome]:
        """Um passo do loop: ciclo de coleta e, se for a hora, limpeza."""
        self.cycle_count += 1
        outcome = None

        try:
            outcome = await self.collector.run_cycle()
        except Exception as e:
            self.logger.error(
                "Ciclo agendado falhou",
                cycle=self.cycle_count,
                error=str(e),
                exc_info=True,
            )

        await self._maybe_cleanup()
        return outcome

    async def _maybe_cleanup(self) -> None:
        now = self._clock()
        if now.hour != self.settings.cleanup_hour or self._last_cleanup == now.date():
            return

        self._last_cleanup = now.date()
        try:
            removed = await self.collector.clean_old_records()
            self.logger.info("Limpeza diária concluída", removed=removed)
        except Exception as e:
            self.logger.error("Limpeza diária falhou", error=str(e))

    async def run(self) -> None:
        """Loop principal. Roda até stop() ou cancelamento."""
        self.is_running = True
        self.logger.info(
            "Agendador iniciado",
            interval_minutes=self.settings.scrape_interval_minutes,
            cleanup_hour=self.settings.cleanup_hour,
        )

        while self.is_running:
            try:
                await self.tick()
                await self._sleep(self.interval_seconds)
            except asyncio.CancelledError:
                self.logger.info("Agendador cancelado")
                break

        self.is_running = False
        self.logger.info("Agendador parado", cycles=self.cycle_count)

    def start(self) -> asyncio.Task:
        """Inicia o loop em uma task de background."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="rate-scheduler")
        return self._task

    async def stop(self) -> None:
        """Para o loop e aguarda a task terminar."""
        self.is_running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
