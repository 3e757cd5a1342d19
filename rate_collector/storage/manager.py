"""
Gerenciador de storage.
Unifica o histórico em SQLite e as exportações em arquivo.
"""

from pathlib import Path
from typing import Optional

from config.logging_config import LoggerMixin
from config.settings import get_settings
from rate_collector.core.models import RateObservation
from rate_collector.storage.base import BaseStorage, StorageType
from rate_collector.storage.file_storage import CSVStorage, ParquetStorage
from rate_collector.storage.sqlite_storage import SQLiteStorage


class StorageManager(LoggerMixin):
    """
    Gerenciador unificado de storage.
    SQLite é a fonte da verdade; CSV e Parquet são destinos de exportação.
    """

    def __init__(
        self,
        base_path: Optional[Path] = None,
        db_name: Optional[str] = None,
    ):
        """
        Args:
            base_path: Diretório base para dados
            db_name: Nome do arquivo SQLite
        """
        if base_path is None or db_name is None:
            settings = get_settings()
            base_path = base_path or settings.data_path
            db_name = db_name or settings.db_name

        self.base_path = Path(base_path)
        self.sqlite = SQLiteStorage(self.base_path, db_name)
        self._backends: dict[StorageType, BaseStorage] = {
            StorageType.SQLITE: self.sqlite,
            StorageType.CSV: CSVStorage(self.base_path),
            StorageType.PARQUET: ParquetStorage(self.base_path),
        }

        self.logger.debug(
            "Storage backends inicializados",
            backends=[st.value for st in self._backends],
        )

    def get_backend(self, storage_type: Optional[StorageType] = None) -> BaseStorage:
        """Retorna backend específico (None = SQLite)."""
        return self._backends[storage_type or StorageType.SQLITE]

    async def save_observations(self, observations: list[RateObservation]) -> str:
        """Grava no histórico SQLite."""
        return await self.sqlite.save_observations(observations)

    async def latest_per_provider(self) -> list[RateObservation]:
        return await self.sqlite.latest_per_provider()

    async def export(
        self,
        storage_type: StorageType,
        provider: Optional[str] = None,
        days: Optional[int] = None,
        output_path: Optional[Path] = None,
    ) -> str:
        """
        Exporta o histórico do SQLite para CSV ou Parquet.

        Args:
            storage_type: CSV ou PARQUET
            provider: Filtrar por provedor
            days: Apenas os últimos N dias
            output_path: Caminho de saída

        Returns:
            Path do arquivo exportado ("" se não havia dados)
        """
        backend = self.get_backend(storage_type)
        if not storage_type.is_export_format:
            raise ValueError(f"Formato de exportação inválido: {storage_type.value}")

        start_date = self.sqlite.window_start(days=days) if days else None
        observations = await self.sqlite.load_observations(
            provider=provider,
            start_date=start_date,
        )

        if not observations:
            self.logger.warning("Nenhuma taxa para exportar", provider=provider, days=days)
            return ""

        return await backend.save_observations(observations, output_path=output_path)
