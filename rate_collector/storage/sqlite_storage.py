"""
Storage SQLite para o histórico de taxas.
Base para as consultas de histórico, estatísticas e tendência.
"""

from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

import aiosqlite
import pandas as pd

from rate_collector.core.exceptions import DatabaseError
from rate_collector.core.models import RateObservation
from rate_collector.storage.base import BaseStorage, StorageType


def _ts(value: datetime) -> str:
    """Formato de timestamp gravado no banco (comparável como texto)."""
    return value.isoformat(timespec="seconds")


def _rate(value: float) -> Decimal:
    return Decimal(str(round(value, 4)))


class SQLiteStorage(BaseStorage):
    """
    Storage usando SQLite.
    Uma linha por observação; nada é sobrescrito.
    """

    def __init__(self, base_path: Path, db_name: str = "exchange_rates.db"):
        """
        Args:
            base_path: Diretório base
            db_name: Nome do arquivo do banco
        """
        super().__init__(base_path)
        self.db_path = self.base_path / db_name
        self._initialized = False

    @property
    def storage_type(self) -> StorageType:
        return StorageType.SQLITE

    async def _ensure_initialized(self) -> None:
        """Garante que a tabela e os índices existem."""
        if self._initialized:
            return

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS exchange_rates (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    provider TEXT NOT NULL,
                    buy_rate REAL NOT NULL,
                    sell_rate REAL NOT NULL,
                    spread REAL NOT NULL,
                    observed_at TIMESTAMP NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

            await db.execute("""
                CREATE INDEX IF NOT EXISTS idx_rates_provider
                ON exchange_rates(provider)
            """)
            await db.execute("""
                CREATE INDEX IF NOT EXISTS idx_rates_observed
                ON exchange_rates(observed_at)
            """)
            await db.execute("""
                CREATE INDEX IF NOT EXISTS idx_rates_provider_observed
                ON exchange_rates(provider, observed_at)
            """)

            await db.commit()

        self._initialized = True
        self.logger.debug("SQLite inicializado", db_path=str(self.db_path))

    # ESCRITA

    async def save_observations(self, observations: list[RateObservation]) -> str:
        """
        Grava um lote de observações em uma única transação.

        Raises:
            DatabaseError: Falha do SQLite
        """
        if not observations:
            return str(self.db_path)

        await self._ensure_initialized()

        rows = [
            (
                obs.provider,
                float(obs.buy_rate),
                float(obs.sell_rate),
                float(obs.spread),
                _ts(obs.observed_at),
            )
            for obs in observations
        ]

        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.executemany("""
                    INSERT INTO exchange_rates
                    (provider, buy_rate, sell_rate, spread, observed_at)
                    VALUES (?, ?, ?, ?, ?)
                """, rows)
                await db.commit()
        except aiosqlite.Error as e:
            raise DatabaseError(
                "Falha ao gravar taxas",
                storage_type=self.storage_type.value,
                path=str(self.db_path),
                cause=e,
            )

        self.logger.info(
            "Taxas salvas no SQLite",
            count=len(rows),
            providers=[obs.provider for obs in observations],
        )

        return str(self.db_path)

    async def clean_old_records(self, days_to_keep: int = 30) -> int:
        """
        Remove registros mais antigos que N dias.

        Returns:
            Quantidade de linhas removidas
        """
        await self._ensure_initialized()

        cutoff = _ts(self.window_start(days=days_to_keep))

        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "DELETE FROM exchange_rates WHERE observed_at < ?",
                (cutoff,),
            )
            await db.commit()
            removed = cursor.rowcount

        self.logger.info("Registros antigos removidos", removed=removed, days_to_keep=days_to_keep)
        return removed

    # LEITURA

    async def load_observations(
        self,
        provider: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[RateObservation]:
        """Carrega observações com filtros, mais recentes primeiro."""
        await self._ensure_initialized()

        query = "SELECT * FROM exchange_rates WHERE 1=1"
        params: list = []

        if provider:
            query += " AND provider = ?"
            params.append(provider)

        if start_date:
            query += " AND observed_at >= ?"
            params.append(_ts(start_date))

        if end_date:
            query += " AND observed_at <= ?"
            params.append(_ts(end_date))

        query += " ORDER BY observed_at DESC, id DESC"

        if limit:
            query += " LIMIT ?"
            params.append(limit)

        observations = []

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(query, params) as cursor:
                async for row in cursor:
                    observations.append(self._row_to_observation(dict(row)))

        self.logger.debug("Observações carregadas", count=len(observations), provider=provider)
        return observations

    async def latest_per_provider(self) -> list[RateObservation]:
        """
        Observação mais recente de cada provedor, em ordem alfabética.

        Raises:
            DatabaseError: Falha do SQLite
        """
        await self._ensure_initialized()

        query = """
            WITH ranked AS (
                SELECT
                    *,
                    ROW_NUMBER() OVER (
                        PARTITION BY provider ORDER BY observed_at DESC, id DESC
                    ) AS rn
                FROM exchange_rates
            )
            SELECT * FROM ranked WHERE rn = 1 ORDER BY provider
        """

        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                async with db.execute(query) as cursor:
                    rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise DatabaseError(
                "Falha ao ler últimas taxas",
                storage_type=self.storage_type.value,
                path=str(self.db_path),
                cause=e,
            )

        observations = []
        for row in rows:
            try:
                observations.append(self._row_to_observation(dict(row)))
            except ValueError as e:
                # Provedor antigo fora do conjunto atual
                self.logger.debug("Linha ignorada", provider=row["provider"], error=str(e))
        return observations

    async def get_provider_history(self, provider: str, hours: int = 24) -> list[dict]:
        """Observações de um provedor nas últimas N horas, em ordem cronológica."""
        await self._ensure_initialized()

        cutoff = _ts(self.window_start(hours=hours))

        query = """
            SELECT provider, buy_rate, sell_rate, spread, observed_at
            FROM exchange_rates
            WHERE provider = ? AND observed_at >= ?
            ORDER BY observed_at ASC, id ASC
        """

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(query, (provider, cutoff)) as cursor:
                return [dict(row) async for row in cursor]

    async def get_provider_stats(self, provider: str, days: int = 7) -> Optional[dict]:
        """
        Mínimo, máximo e média de compra, venta e spread em N dias.

        Returns:
            Dicionário de estatísticas ou None se não houver registros
        """
        await self._ensure_initialized()

        cutoff = _ts(self.window_start(days=days))

        query = """
            SELECT
                provider,
                MIN(buy_rate) AS min_buy,
                MAX(buy_rate) AS max_buy,
                AVG(buy_rate) AS avg_buy,
                MIN(sell_rate) AS min_sell,
                MAX(sell_rate) AS max_sell,
                AVG(sell_rate) AS avg_sell,
                MIN(spread) AS min_spread,
                MAX(spread) AS max_spread,
                AVG(spread) AS avg_spread,
                COUNT(*) AS total_records
            FROM exchange_rates
            WHERE provider = ? AND observed_at >= ?
            GROUP BY provider
        """

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(query, (provider, cutoff)) as cursor:
                row = await cursor.fetchone()

        if row is None:
            return None

        stats = dict(row)
        for key, value in stats.items():
            if isinstance(value, float):
                stats[key] = round(value, 4)
        return stats

    async def get_best_rates_in_period(self, hours: int = 24) -> dict:
        """
        Melhor compra (maior) e melhor venta (menor) nas últimas N horas.

        Returns:
            {"best_buy": {...} | None, "best_sell": {...} | None}
        """
        await self._ensure_initialized()

        cutoff = _ts(self.window_start(hours=hours))

        best_buy_query = """
            SELECT provider, buy_rate AS rate, observed_at
            FROM exchange_rates
            WHERE observed_at >= ?
            ORDER BY buy_rate DESC, observed_at DESC
            LIMIT 1
        """
        best_sell_query = """
            SELECT provider, sell_rate AS rate, observed_at
            FROM exchange_rates
            WHERE observed_at >= ?
            ORDER BY sell_rate ASC, observed_at DESC
            LIMIT 1
        """

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(best_buy_query, (cutoff,)) as cursor:
                best_buy = await cursor.fetchone()
            async with db.execute(best_sell_query, (cutoff,)) as cursor:
                best_sell = await cursor.fetchone()

        return {
            "best_buy": dict(best_buy) if best_buy else None,
            "best_sell": dict(best_sell) if best_sell else None,
        }

    async def get_trend(self, hours: int = 24, interval: int = 1) -> list[dict]:
        """
        Tendência geral agregada em janelas de N horas.

        Args:
            hours: Período analisado
            interval: Tamanho da janela em horas

        Returns:
            Uma entrada por janela, em ordem cronológica
        """
        await self._ensure_initialized()

        cutoff = _ts(self.window_start(hours=hours))

        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                """
                SELECT provider, buy_rate, sell_rate, observed_at
                FROM exchange_rates
                WHERE observed_at >= ?
                """,
                (cutoff,),
            ) as cursor:
                rows = await cursor.fetchall()

        if not rows:
            return []

        df = pd.DataFrame(rows, columns=["provider", "buy_rate", "sell_rate", "observed_at"])
        df["time_bucket"] = pd.to_datetime(df["observed_at"]).dt.floor(pd.Timedelta(hours=interval))

        trend = (
            df.groupby("time_bucket")
            .agg(
                avg_buy=("buy_rate", "mean"),
                avg_sell=("sell_rate", "mean"),
                min_buy=("buy_rate", "min"),
                max_buy=("buy_rate", "max"),
                min_sell=("sell_rate", "min"),
                max_sell=("sell_rate", "max"),
                provider_count=("provider", "nunique"),
            )
            .reset_index()
            .sort_values("time_bucket")
        )

        records = []
        for row in trend.itertuples(index=False):
            records.append({
                "time_bucket": row.time_bucket.isoformat(),
                "avg_buy": round(float(row.avg_buy), 4),
                "avg_sell": round(float(row.avg_sell), 4),
                "min_buy": float(row.min_buy),
                "max_buy": float(row.max_buy),
                "min_sell": float(row.min_sell),
                "max_sell": float(row.max_sell),
                "provider_count": int(row.provider_count),
            })
        return records

    async def get_all_providers(self) -> list[str]:
        """Provedores que já têm algum registro."""
        await self._ensure_initialized()

        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT DISTINCT provider FROM exchange_rates ORDER BY provider"
            ) as cursor:
                return [row[0] async for row in cursor]

    async def get_database_stats(self) -> dict:
        """Totais do banco e intervalo de datas coberto."""
        await self._ensure_initialized()

        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute("""
                SELECT
                    COUNT(*),
                    COUNT(DISTINCT provider),
                    MIN(observed_at),
                    MAX(observed_at)
                FROM exchange_rates
            """) as cursor:
                row = await cursor.fetchone()

        return {
            "total_records": row[0],
            "total_providers": row[1],
            "oldest_record": row[2],
            "newest_record": row[3],
            "db_path": str(self.db_path),
        }

    def _row_to_observation(self, row: dict) -> RateObservation:
        """Converte row do SQLite para RateObservation."""
        return RateObservation(
            provider=row["provider"],
            buy_rate=_rate(row["buy_rate"]),
            sell_rate=_rate(row["sell_rate"]),
            observed_at=datetime.fromisoformat(row["observed_at"]),
        )
