"""
Testes de integração para o Storage.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import aiosqlite
import pandas as pd
import pytest
import pytest_asyncio

from rate_collector.storage import CSVStorage, ParquetStorage, SQLiteStorage, StorageManager, StorageType


class TestSQLiteStorage:
    """Testes de integração para SQLiteStorage."""

    @pytest_asyncio.fixture
    async def storage(self, temp_data_dir, historical_observations) -> SQLiteStorage:
        storage = SQLiteStorage(temp_data_dir)
        await storage.save_observations(historical_observations)
        return storage

    @pytest.mark.asyncio
    async def test_save_and_load(self, storage):
        loaded = await storage.load_observations()

        assert len(loaded) == 6
        assert loaded[0].observed_at >= loaded[-1].observed_at

    @pytest.mark.asyncio
    async def test_load_with_filters(self, storage):
        rextie = await storage.load_observations(provider="rextie")
        recent = await storage.load_observations(start_date=datetime.now() - timedelta(hours=3))

        assert [obs.provider for obs in rextie] == ["rextie"]
        assert len(recent) == 3

    @pytest.mark.asyncio
    async def test_latest_per_provider(self, storage):
        latest = await storage.latest_per_provider()

        assert [obs.provider for obs in latest] == ["kambista", "rextie"]
        assert latest[0].buy_rate == Decimal("3.704")

    @pytest.mark.asyncio
    async def test_latest_skips_unknown_providers(self, storage):
        async with aiosqlite.connect(storage.db_path) as db:
            await db.execute(
                "INSERT INTO exchange_rates (provider, buy_rate, sell_rate, spread, observed_at) "
                "VALUES ('banco_x', 3.7, 3.8, 0.1, ?)",
                (datetime.now().isoformat(timespec="seconds"),),
            )
            await db.commit()

        latest = await storage.latest_per_provider()

        assert "banco_x" not in [obs.provider for obs in latest]
        assert "banco_x" in await storage.get_all_providers()

    @pytest.mark.asyncio
    async def test_provider_history(self, storage):
        history = await storage.get_provider_history("kambista", hours=24)

        assert len(history) == 3
        assert history[0]["buy_rate"] == pytest.approx(3.702)
        assert history[0]["observed_at"] < history[-1]["observed_at"]

    @pytest.mark.asyncio
    async def test_provider_stats(self, storage):
        stats = await storage.get_provider_stats("kambista", days=7)

        assert stats["total_records"] == 5
        assert stats["min_buy"] == pytest.approx(3.7)
        assert stats["max_buy"] == pytest.approx(3.704)
        assert await storage.get_provider_stats("tkambio") is None

    @pytest.mark.asyncio
    async def test_best_rates_in_period(self, storage):
        best = await storage.get_best_rates_in_period(hours=24)

        assert best["best_buy"]["provider"] == "rextie"
        assert best["best_sell"]["provider"] == "kambista"
        assert best["best_sell"]["rate"] == pytest.approx(3.722)

    @pytest.mark.asyncio
    async def test_trend_hourly(self, storage):
        trend = await storage.get_trend(hours=24, interval=1)

        assert len(trend) == 3
        assert trend[-1]["provider_count"] == 2
        assert trend[-1]["avg_buy"] == pytest.approx((3.704 + 3.71) / 2, abs=1e-4)
        assert trend[0]["time_bucket"] < trend[-1]["time_bucket"]

    @pytest.mark.asyncio
    async def test_trend_empty(self, temp_data_dir):
        assert await SQLiteStorage(temp_data_dir, "vazio.db").get_trend() == []

    @pytest.mark.asyncio
    async def test_clean_old_records(self, storage):
        removed = await storage.clean_old_records(days_to_keep=1)

        assert removed == 2
        assert len(await storage.load_observations()) == 4

    @pytest.mark.asyncio
    async def test_database_stats(self, storage):
        stats = await storage.get_database_stats()

        assert stats["total_records"] == 6
        assert stats["total_providers"] == 2
        assert stats["oldest_record"] < stats["newest_record"]


class TestFileStorage:
    """Testes de integração para CSV e Parquet."""

    @pytest.mark.asyncio
    async def test_csv_round_trip(self, temp_data_dir, sample_observations):
        storage = CSVStorage(temp_data_dir)

        path = await storage.save_observations(sample_observations)
        loaded = await storage.load_observations(provider="rextie")

        assert path.endswith(".csv")
        assert len(loaded) == 1
        assert loaded[0].sell_rate == Decimal("3.77")

    @pytest.mark.asyncio
    async def test_parquet_explicit_path(self, temp_data_dir, sample_observations):
        storage = ParquetStorage(temp_data_dir)
        output = temp_data_dir / "export.parquet"

        path = await storage.save_observations(sample_observations, output_path=output)

        df = pd.read_parquet(path)
        assert list(df["provider"]) == ["kambista", "rextie", "tkambio"]

    @pytest.mark.asyncio
    async def test_empty_save(self, temp_data_dir):
        assert await CSVStorage(temp_data_dir).save_observations([]) == ""

    @pytest.mark.asyncio
    async def test_latest_per_provider_from_files(self, temp_data_dir, historical_observations):
        """Backends sem consulta própria usam a varredura genérica."""
        storage = CSVStorage(temp_data_dir)
        await storage.save_observations(historical_observations)

        latest = await storage.latest_per_provider()

        assert [obs.provider for obs in latest] == ["kambista", "rextie"]
        assert latest[0].buy_rate == Decimal("3.704")

    def test_window_start_uses_clock(self, temp_data_dir):
        fixed = datetime(2024, 5, 10, 12, 0)
        storage = SQLiteStorage(temp_data_dir)
        storage._clock = lambda: fixed

        assert storage.window_start(hours=6) == datetime(2024, 5, 10, 6, 0)
        assert storage.window_start(days=1) == datetime(2024, 5, 9, 12, 0)


class TestStorageManager:

    @pytest_asyncio.fixture
    async def manager(self, temp_data_dir, historical_observations) -> StorageManager:
        manager = StorageManager(base_path=temp_data_dir, db_name="test.db")
        await manager.save_observations(historical_observations)
        return manager

    @pytest.mark.asyncio
    async def test_export_csv(self, manager, temp_data_dir):
        output = temp_data_dir / "historico.csv"

        path = await manager.export(StorageType.CSV, provider="kambista", output_path=output)

        df = pd.read_csv(path, encoding="utf-8-sig")
        assert len(df) == 5
        assert set(df["provider"]) == {"kambista"}

    @pytest.mark.asyncio
    async def test_export_recent_days(self, manager, temp_data_dir):
        path = await manager.export(
            StorageType.PARQUET,
            days=1,
            output_path=temp_data_dir / "recent.parquet",
        )

        assert len(pd.read_parquet(path)) == 4

    @pytest.mark.asyncio
    async def test_export_nothing(self, temp_data_dir):
        manager = StorageManager(base_path=temp_data_dir, db_name="vazio.db")

        assert await manager.export(StorageType.CSV) == ""

    @pytest.mark.asyncio
    async def test_export_rejects_sqlite(self, manager):
        with pytest.raises(ValueError):
            await manager.export(StorageType.SQLITE)
