"""
Estado atual das taxas, compartilhado entre coletor e API.
"""

from datetime import datetime
from typing import Iterable, Optional

from config.logging_config import LoggerMixin
from rate_collector.core.constants import PENDING_MESSAGE
from rate_collector.core.models import RateObservation, RatesSnapshot
from rate_collector.core.types import SnapshotStatus


class RatesState(LoggerMixin):
    """
    Guarda o RatesSnapshot corrente.

    Cada mudança cria um snapshot novo e troca a referência;
    quem leu um snapshot continua com uma versão consistente.
    """

    def __init__(self, initial: Optional[RatesSnapshot] = None):
        self._snapshot = initial or RatesSnapshot()

    @property
    def current(self) -> RatesSnapshot:
        return self._snapshot

    def publish(self, rates: Iterable[RateObservation]) -> RatesSnapshot:
        """Substitui as taxas por uma lista fresca (status live)."""
        rates = tuple(rates)
        return self._swap(
            rates=rates,
            last_update=datetime.now(),
            error=None,
            status=SnapshotStatus.LIVE if rates else SnapshotStatus.EMPTY,
        )

    def mark_pending(self, message: str = PENDING_MESSAGE) -> RatesSnapshot:
        """Ciclo rodando sem nenhuma taxa ainda."""
        return self._swap(
            rates=(),
            last_update=datetime.now(),
            error=message,
            status=SnapshotStatus.PENDING,
        )

    def mark_error(self, message: str) -> RatesSnapshot:
        """Registra erro mantendo as últimas taxas conhecidas."""
        self.logger.warning("Estado marcado com erro", error=message)
        return self._swap(error=message, status=SnapshotStatus.ERROR)

    def set_retry_attempt(self, attempt: int) -> RatesSnapshot:
        """Tentativa visível para a API (0 = nenhuma em curso)."""
        return self._swap(retry_attempt=attempt)

    def _swap(self, **changes) -> RatesSnapshot:
        self._snapshot = RatesSnapshot(**{**dict(self._snapshot), **changes})
        return self._snapshot
