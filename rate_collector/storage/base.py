"""
Interface comum dos backends de histórico de taxas.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from config.logging_config import LoggerMixin
from rate_collector.core.models import RateObservation


class StorageType(str, Enum):
    SQLITE = "sqlite"
    CSV = "csv"
    PARQUET = "parquet"

    @property
    def is_export_format(self) -> bool:
        return self in (StorageType.CSV, StorageType.PARQUET)


class BaseStorage(ABC, LoggerMixin):
    """
    Backend de histórico.

    O SQLite é o histórico principal; CSV e Parquet servem para
    exportação e releitura de lotes exportados.
    """

    def __init__(self, base_path: Path, clock: Callable[[], datetime] = datetime.now):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._clock = clock

    @property
    @abstractmethod
    def storage_type(self) -> StorageType: ...

    @abstractmethod
    async def save_observations(self, observations: list[RateObservation]) -> str:
        """Grava um lote e retorna onde foi gravado (path ou nome do banco)."""

    @abstractmethod
    async def load_observations(
        self,
        provider: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[RateObservation]:
        """Observações filtradas, mais recentes primeiro."""

    async def latest_per_provider(self) -> list[RateObservation]:
        """
        Observação mais recente de cada provedor, em ordem alfabética.
        Backends com consulta própria sobrescrevem.
        """
        latest: dict[str, RateObservation] = {}
        for obs in await self.load_observations():
            current = latest.get(obs.provider)
            if current is None or obs.observed_at > current.observed_at:
                latest[obs.provider] = obs
        return [latest[provider] for provider in sorted(latest)]

    def window_start(self, *, hours: int = 0, days: int = 0) -> datetime:
        """Início de uma janela que termina agora."""
        return self._clock() - timedelta(hours=hours, days=days)

    def _export_filename(self, extension: str) -> str:
        """rates_YYYYmmdd_HHMMSS_ffffff.<ext>; microssegundos evitam colisão."""
        return f"rates_{self._clock():%Y%m%d_%H%M%S_%f}.{extension}"
