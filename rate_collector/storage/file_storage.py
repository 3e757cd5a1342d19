"""
Storage em arquivos (CSV e Parquet).
Usado para exportar o histórico para análise com pandas.
"""

from abc import abstractmethod
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pandas as pd

from rate_collector.core.exceptions import FileStorageError
from rate_collector.core.models import RateObservation
from rate_collector.storage.base import BaseStorage, StorageType


COLUMNS = ["provider", "buy_rate", "sell_rate", "spread", "observed_at"]


class TabularFileStorage(BaseStorage):
    """
    Base dos backends em arquivo.
    Cada lote salvo vira um arquivo rates_YYYYmmdd_HHMMSS_ffffff.<ext>.
    """

    extension: str = ""

    def __init__(self, base_path: Path):
        super().__init__(base_path)
        self.rates_dir = self.base_path / self.extension / "rates"
        self.rates_dir.mkdir(parents=True, exist_ok=True)

    @abstractmethod
    def _write(self, df: pd.DataFrame, filepath: Path) -> None:
        """Grava o DataFrame no formato do backend."""

    @abstractmethod
    def _read(self, filepath: Path) -> pd.DataFrame:
        """Lê um arquivo do backend."""

    async def save_observations(
        self,
        observations: list[RateObservation],
        output_path: Optional[Path] = None,
    ) -> str:
        """
        Salva observações em um arquivo novo.

        Args:
            observations: Lote a salvar
            output_path: Caminho explícito (default: diretório do backend)

        Returns:
            Path do arquivo salvo ("" se não havia nada)
        """
        if not observations:
            self.logger.warning("Nenhuma taxa para salvar")
            return ""

        df = self._observations_to_dataframe(observations)
        filepath = Path(output_path) if output_path else (
            self.rates_dir / self._export_filename(self.extension)
        )

        try:
            self._write(df, filepath)
        except (OSError, ValueError) as e:
            raise FileStorageError(
                f"Falha ao gravar {self.extension}",
                storage_type=self.storage_type.value,
                path=str(filepath),
                cause=e,
            )

        self.logger.info(
            "Taxas exportadas",
            format=self.extension,
            count=len(observations),
            filepath=str(filepath),
        )
        return str(filepath)

    async def load_observations(
        self,
        provider: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[RateObservation]:
        """Lê todos os arquivos do backend e aplica os filtros."""
        files = sorted(self.rates_dir.glob(f"rates_*.{self.extension}"))
        if not files:
            return []

        frames = []
        for filepath in files:
            try:
                frames.append(self._read(filepath))
            except (OSError, ValueError) as e:
                self.logger.warning("Erro ao ler arquivo", filepath=str(filepath), error=str(e))

        if not frames:
            return []

        df = pd.concat(frames, ignore_index=True)
        df["observed_at"] = pd.to_datetime(df["observed_at"])

        if provider:
            df = df[df["provider"] == provider]
        if start_date:
            df = df[df["observed_at"] >= start_date]
        if end_date:
            df = df[df["observed_at"] <= end_date]

        df = df.sort_values("observed_at", ascending=False)
        if limit:
            df = df.head(limit)

        return self._dataframe_to_observations(df)

    def _observations_to_dataframe(self, observations: list[RateObservation]) -> pd.DataFrame:
        """Converte lista de observações para DataFrame."""
        records = [
            {
                "provider": obs.provider,
                "buy_rate": float(obs.buy_rate),
                "sell_rate": float(obs.sell_rate),
                "spread": float(obs.spread),
                "observed_at": obs.observed_at.isoformat(timespec="seconds"),
            }
            for obs in observations
        ]
        return pd.DataFrame(records, columns=COLUMNS)

    def _dataframe_to_observations(self, df: pd.DataFrame) -> list[RateObservation]:
        """Converte DataFrame para lista de observações."""
        observations = []
        for row in df.itertuples(index=False):
            observations.append(RateObservation(
                provider=row.provider,
                buy_rate=Decimal(str(round(row.buy_rate, 4))),
                sell_rate=Decimal(str(round(row.sell_rate, 4))),
                observed_at=pd.Timestamp(row.observed_at).to_pydatetime(),
            ))
        return observations


class CSVStorage(TabularFileStorage):
    """
    Storage usando arquivos CSV.
    Fácil de abrir em planilhas (utf-8-sig para o Excel).
    """

    extension = "csv"

    @property
    def storage_type(self) -> StorageType:
        return StorageType.CSV

    def _write(self, df: pd.DataFrame, filepath: Path) -> None:
        df.to_csv(filepath, index=False, encoding="utf-8-sig")

    def _read(self, filepath: Path) -> pd.DataFrame:
        return pd.read_csv(filepath, encoding="utf-8-sig")


class ParquetStorage(TabularFileStorage):
    """
    Storage usando arquivos Parquet.
    Compressão eficiente para históricos longos.
    """

    extension = "parquet"

    @property
    def storage_type(self) -> StorageType:
        return StorageType.PARQUET

    def _write(self, df: pd.DataFrame, filepath: Path) -> None:
        df.to_parquet(filepath, engine="pyarrow", compression="snappy", index=False)

    def _read(self, filepath: Path) -> pd.DataFrame:
        return pd.read_parquet(filepath, engine="pyarrow")
