"""
Buffer de agregação das taxas de um ciclo.
Uma entrada por provedor; a última escrita vence.
"""

import asyncio

from config.logging_config import LoggerMixin
from rate_collector.core.models import RateObservation


class AggregationBuffer(LoggerMixin):
    """
    Acumula observações conforme os extratores terminam.

    Escritas passam por um lock; leitores recebem a tupla publicada
    na última escrita e nunca bloqueiam.
    """

    def __init__(self):
        # Ordem de inserção = ordem de primeira chegada
        self._slots: dict[str, RateObservation] = {}
        self._lock = asyncio.Lock()
        self._published: tuple[RateObservation, ...] = ()

    async def append(self, observation: RateObservation) -> tuple[RateObservation, ...]:
        """
        Insere ou sobrescreve o slot do provedor e publica um novo snapshot.

        Returns:
            Snapshot publicado após a escrita
        """
        async with self._lock:
            replaced = observation.provider in self._slots
            self._slots[observation.provider] = observation
            self._published = tuple(self._slots.values())

        self.logger.debug(
            "Taxa agregada",
            provider=observation.provider,
            replaced=replaced,
            total=len(self._published),
        )
        return self._published

    def snapshot(self) -> list[RateObservation]:
        """Cópia consistente do conteúdo atual."""
        return list(self._published)

    def providers(self) -> set[str]:
        return {obs.provider for obs in self._published}

    def __len__(self) -> int:
        return len(self._published)
