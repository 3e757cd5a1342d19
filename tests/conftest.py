"""
Configurações e fixtures compartilhadas para pytest.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest
import structlog

from config.settings import Settings
from rate_collector.core.models import RateObservation

from fixtures.fakes import FakeExtractor, FakePage, MemorySink, RecordingSleep, SessionFactory, T


# LOGGING

@pytest.fixture(autouse=True)
def reset_logging():
    """Remove os handlers instalados por setup_logging entre testes."""
    yield
    root = logging.getLogger()
    for handler in [h for h in root.handlers if getattr(h, "_rate_collector_handler", False)]:
        root.removeHandler(handler)
        handler.close()
    structlog.reset_defaults()


# FIXTURES DE DIRETÓRIOS E CONFIGURAÇÃO

@pytest.fixture
def temp_data_dir(tmp_path) -> Path:
    """Cria diretório temporário para dados de teste."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def temp_log_dir(tmp_path) -> Path:
    """Cria diretório temporário para logs de teste."""
    log_dir = tmp_path / "logs"
    log_dir.mkdir()
    return log_dir


@pytest.fixture
def settings(temp_data_dir, temp_log_dir) -> Settings:
    """Configurações com tempos curtos e diretórios temporários."""
    return Settings(
        env="testing",
        data_path=temp_data_dir,
        log_path=temp_log_dir,
        scrape_budget_seconds=5 * T,
        min_viable_results=2,
        extractor_hard_timeout_seconds=40 * T,
        max_retries=3,
        backoff_base_seconds=1.0,
        backoff_cap_seconds=10.0,
        admin_api_key=None,
    )


# FIXTURES DE FAKES

@pytest.fixture
def make_page():
    return FakePage


@pytest.fixture
def make_extractor():
    return FakeExtractor


@pytest.fixture
def session_factory() -> SessionFactory:
    return SessionFactory()


@pytest.fixture
def failing_session_factory() -> SessionFactory:
    """Todas as tentativas falham ao iniciar o browser."""
    return SessionFactory(failures=100)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def memory_sink() -> MemorySink:
    return MemorySink()


# FIXTURES DE OBSERVAÇÕES

@pytest.fixture
def observation_kambista() -> RateObservation:
    return RateObservation(
        provider="kambista",
        buy_rate=Decimal("3.7450"),
        sell_rate=Decimal("3.7650"),
    )


@pytest.fixture
def observation_rextie() -> RateObservation:
    return RateObservation(
        provider="rextie",
        buy_rate=Decimal("3.7400"),
        sell_rate=Decimal("3.7700"),
    )


@pytest.fixture
def observation_tkambio() -> RateObservation:
    return RateObservation(
        provider="tkambio",
        buy_rate=Decimal("3.7300"),
        sell_rate=Decimal("3.7800"),
    )


@pytest.fixture
def sample_observations(
    observation_kambista,
    observation_rextie,
    observation_tkambio,
) -> list[RateObservation]:
    """Três casas com compra/venta distintas."""
    return [observation_kambista, observation_rextie, observation_tkambio]


@pytest.fixture
def historical_observations() -> list[RateObservation]:
    """Observações espalhadas nas últimas 50 horas."""
    now = datetime.now().replace(microsecond=0)
    return [
        RateObservation(
            provider="kambista",
            buy_rate=Decimal("3.7000") + Decimal("0.0010") * i,
            sell_rate=Decimal("3.7200") + Decimal("0.0010") * i,
            observed_at=now - timedelta(hours=hours_ago),
        )
        for i, hours_ago in enumerate([50, 30, 5, 2, 1])
    ] + [
        RateObservation(
            provider="rextie",
            buy_rate=Decimal("3.7100"),
            sell_rate=Decimal("3.7300"),
            observed_at=now - timedelta(hours=1),
        ),
    ]
