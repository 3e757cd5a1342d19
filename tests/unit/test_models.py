"""
Testes unitários para os modelos de dados.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from rate_collector.core.exceptions import CycleExhaustedError
from rate_collector.core.models import (
    CycleOutcome,
    CycleResult,
    ExtractorOutcome,
    RateObservation,
    RatesSnapshot,
)
from rate_collector.core.types import ExtractionStatus, SnapshotStatus


class TestRateObservation:

    def test_spread(self, observation_kambista):
        assert observation_kambista.spread == Decimal("0.0200")

    def test_display_name(self, observation_kambista):
        assert observation_kambista.display_name == "Kambista"

    def test_frozen(self, observation_kambista):
        with pytest.raises(ValidationError):
            observation_kambista.buy_rate = Decimal("3.80")

    def test_unknown_provider_rejected(self):
        with pytest.raises(ValidationError):
            RateObservation(provider="banco_x", buy_rate=Decimal("3.7"), sell_rate=Decimal("3.8"))

    @pytest.mark.parametrize("rate", [Decimal("0"), Decimal("-3.7"), Decimal("3.74567")])
    def test_invalid_rate(self, rate):
        with pytest.raises(ValidationError):
            RateObservation(provider="kambista", buy_rate=rate, sell_rate=Decimal("3.8"))

    def test_display_dict(self, observation_kambista):
        data = observation_kambista.to_display_dict()

        assert data["provider"] == "kambista"
        assert data["buy_rate"] == 3.745
        assert data["spread"] == pytest.approx(0.02)
        assert datetime.fromisoformat(data["observed_at"])


class TestRatesSnapshot:

    def test_defaults(self):
        snapshot = RatesSnapshot()

        assert snapshot.rates == ()
        assert snapshot.status == SnapshotStatus.EMPTY
        assert snapshot.rates_count == 0
        assert not snapshot.has_error

    def test_duplicate_provider_rejected(self, observation_kambista):
        with pytest.raises(ValidationError):
            RatesSnapshot(rates=(observation_kambista, observation_kambista))

    def test_payload(self, sample_observations):
        snapshot = RatesSnapshot(
            rates=tuple(sample_observations),
            last_update=datetime(2024, 1, 1, 12, 0, 0),
            status=SnapshotStatus.LIVE,
        )
        payload = snapshot.to_payload()

        assert len(payload["rates"]) == 3
        assert payload["last_update"] == "2024-01-01T12:00:00"
        assert payload["status"] == "live"
        assert payload["error"] is None


class TestCycleResult:

    def test_record_outcomes(self, observation_kambista):
        cycle = CycleResult(total_sources=2)
        cycle.record_outcome(ExtractorOutcome("kambista", ExtractionStatus.SUCCESS, observation_kambista))
        cycle.record_outcome(ExtractorOutcome("rextie", ExtractionStatus.TIMEOUT))

        assert cycle.settled_count == 2
        assert cycle.failed_providers == ["rextie"]

    @pytest.mark.asyncio
    async def test_wait_settled(self):
        cycle = CycleResult(total_sources=0)

        assert not await cycle.wait_settled(timeout=0.01)
        cycle.mark_settled()
        assert await cycle.wait_settled(timeout=0.01)
        assert cycle.duration_seconds is not None


class TestCycleOutcome:

    def test_success_does_not_raise(self):
        CycleOutcome(success=True, attempts=1, cycle=CycleResult(total_sources=0)).raise_for_failure()

    def test_failure_raises(self):
        outcome = CycleOutcome(success=False, attempts=4, error="Erro após 4 tentativas")

        with pytest.raises(CycleExhaustedError):
            outcome.raise_for_failure()
        assert outcome.rates_count == 0
