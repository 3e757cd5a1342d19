"""
Testes unitários para o orquestrador de coleta progressiva.
Latências em múltiplos de T para manter os testes rápidos.
"""

import asyncio
from decimal import Decimal

import pytest

from rate_collector.aggregation.state import RatesState
from rate_collector.core.constants import NO_RATES_MESSAGE, PENDING_MESSAGE
from rate_collector.core.exceptions import ExtractionError, SessionError
from rate_collector.core.types import ExtractionStatus, SnapshotStatus
from rate_collector.scrapers.manager import ScrapeOrchestrator

from fixtures.fakes import FakeExtractor, SessionFactory, T

PROVIDERS = ["kambista", "rextie", "tkambio", "tucambista", "bloomberg", "western_union"]


def staggered_extractors(multipliers=(1, 2, 3, 7, 8, 9)) -> list[FakeExtractor]:
    return [
        FakeExtractor(provider, delay=m * T, buy=f"3.7{i}00", sell=f"3.7{i}50")
        for i, (provider, m) in enumerate(zip(PROVIDERS, multipliers))
    ]


@pytest.fixture
def state() -> RatesState:
    return RatesState()


@pytest.fixture
def build(settings, state, memory_sink, session_factory):
    """Monta um orquestrador com fakes e configurações sobrescritas."""

    def _build(extractors, **overrides):
        return ScrapeOrchestrator(
            state=state,
            sink=memory_sink,
            extractors=extractors,
            session_factory=session_factory,
            settings=settings.model_copy(update=overrides),
        )

    return _build


class TestProgressiveCycle:
    """Resultado provisório, orçamento e finalização em background."""

    @pytest.mark.asyncio
    async def test_returns_after_min_viable_results(self, build, state, memory_sink):
        orchestrator = build(staggered_extractors())

        cycle = await orchestrator.run()

        assert [obs.provider for obs in cycle.provisional_rates] == ["kambista", "rextie"]
        assert not cycle.all_sources_settled
        assert state.current.rates_count == 2
        assert state.current.status == SnapshotStatus.LIVE

        assert await cycle.wait_settled(timeout=40 * T)
        assert len(cycle.rates) == 6
        assert cycle.error is None
        assert state.current.rates_count == 6

    @pytest.mark.asyncio
    async def test_budget_expiry_returns_partial_snapshot(self, build, state):
        orchestrator = build(staggered_extractors(), min_viable_results=5)

        cycle = await orchestrator.run()

        assert len(cycle.provisional_rates) == 3
        assert cycle.settled_count == 3

        await orchestrator.drain()
        assert len(cycle.rates) == 6
        assert cycle.all_sources_settled

    @pytest.mark.asyncio
    async def test_state_updates_on_each_arrival(self, build, state):
        orchestrator = build(staggered_extractors())

        task = asyncio.create_task(orchestrator.run())
        await asyncio.sleep(1.5 * T)
        assert state.current.rates_count == 1

        await task
        await orchestrator.drain()

    @pytest.mark.asyncio
    async def test_session_closed_after_finalization(self, build, session_factory):
        orchestrator = build(staggered_extractors())

        await orchestrator.run()
        session = session_factory.sessions[0]
        assert session.started
        assert not session.closed

        await orchestrator.drain()
        assert session.closed


class TestFaultIsolation:
    """Falha de um extrator não afeta os demais."""

    @pytest.mark.asyncio
    async def test_failures_are_recorded(self, build):
        extractors = [
            FakeExtractor("kambista", delay=T),
            FakeExtractor("rextie", delay=T, error=RuntimeError("boom")),
            FakeExtractor("tkambio", delay=T, error=ExtractionError("página quebrada")),
            FakeExtractor("tucambista", delay=T, returns_none=True),
        ]
        orchestrator = build(extractors)

        cycle = await orchestrator.run()
        await orchestrator.drain()

        assert [obs.provider for obs in cycle.rates] == ["kambista"]
        assert cycle.outcomes["kambista"].status == ExtractionStatus.SUCCESS
        assert cycle.outcomes["rextie"].status == ExtractionStatus.FAILED
        assert cycle.outcomes["rextie"].error_message == "boom"
        assert cycle.outcomes["tkambio"].status == ExtractionStatus.FAILED
        assert cycle.outcomes["tucambista"].status == ExtractionStatus.NO_RESULTS
        assert sorted(cycle.failed_providers) == ["rextie", "tkambio"]

    @pytest.mark.asyncio
    async def test_hard_timeout(self, build):
        extractors = [
            FakeExtractor("kambista", delay=T),
            FakeExtractor("rextie", delay=30 * T),
        ]
        orchestrator = build(extractors, extractor_hard_timeout_seconds=3 * T)

        cycle = await orchestrator.run()
        assert await cycle.wait_settled(timeout=10 * T)

        assert cycle.outcomes["rextie"].status == ExtractionStatus.TIMEOUT
        assert [obs.provider for obs in cycle.rates] == ["kambista"]

    @pytest.mark.asyncio
    async def test_session_failure_propagates(self, settings, state, memory_sink):
        orchestrator = ScrapeOrchestrator(
            state=state,
            sink=memory_sink,
            extractors=staggered_extractors(),
            session_factory=SessionFactory(failures=1),
            settings=settings,
        )

        with pytest.raises(SessionError):
            await orchestrator.run()
        assert memory_sink.batches == []


class TestPersistence:
    """Gravação do histórico durante e após o ciclo."""

    @pytest.mark.asyncio
    async def test_late_results_persisted_once(self, build, memory_sink):
        extractors = [
            FakeExtractor("kambista", delay=T),
            FakeExtractor("rextie", delay=2 * T),
            FakeExtractor("tkambio", delay=8 * T),
        ]
        orchestrator = build(extractors)

        await orchestrator.run()
        assert [obs.provider for obs in memory_sink.saved] == ["kambista", "rextie"]

        await orchestrator.drain()
        providers = [obs.provider for obs in memory_sink.saved]
        assert sorted(providers) == ["kambista", "rextie", "tkambio"]
        assert len(memory_sink.batches) == 2

    @pytest.mark.asyncio
    async def test_sink_failure_does_not_break_cycle(self, settings, state, session_factory):
        from rate_collector.core.exceptions import DatabaseError

        class BrokenSink:
            async def save_observations(self, observations):
                raise DatabaseError("disco cheio")

        orchestrator = ScrapeOrchestrator(
            state=state,
            sink=BrokenSink(),
            extractors=staggered_extractors((1, 2)),
            session_factory=session_factory,
            settings=settings,
        )

        cycle = await orchestrator.run()
        await orchestrator.drain()

        assert len(cycle.rates) == 2
        assert state.current.rates_count == 2


class TestEmptyResults:

    @pytest.mark.asyncio
    async def test_empty_provisional_is_pending(self, build, state, memory_sink):
        extractors = [
            FakeExtractor("kambista", delay=8 * T),
            FakeExtractor("rextie", delay=9 * T),
        ]
        orchestrator = build(extractors)

        cycle = await orchestrator.run()

        assert cycle.rates == []
        assert cycle.error == PENDING_MESSAGE
        assert state.current.status == SnapshotStatus.PENDING
        assert state.current.error == PENDING_MESSAGE

        await orchestrator.drain()
        assert cycle.error is None
        assert state.current.status == SnapshotStatus.LIVE
        assert len(memory_sink.saved) == 2

    @pytest.mark.asyncio
    async def test_no_rates_at_all_is_error(self, build, state):
        extractors = [
            FakeExtractor("kambista", delay=T, error=RuntimeError("falhou")),
            FakeExtractor("rextie", delay=T, returns_none=True),
        ]
        orchestrator = build(extractors)

        cycle = await orchestrator.run()
        await orchestrator.drain()

        assert cycle.error == NO_RATES_MESSAGE
        assert state.current.status == SnapshotStatus.ERROR
        assert state.current.error == NO_RATES_MESSAGE

    @pytest.mark.asyncio
    async def test_no_extractors(self, build, state):
        orchestrator = build([])

        cycle = await orchestrator.run()
        await orchestrator.drain()

        assert cycle.total_sources == 0
        assert cycle.all_sources_settled
        assert state.current.status == SnapshotStatus.ERROR


class TestOverlappingCycles:
    """Extratores atrasados de um ciclo antigo não sobrescrevem o estado atual."""

    @pytest.mark.asyncio
    async def test_late_extractor_of_old_cycle_keeps_newer_state(self, build, state, memory_sink):
        orchestrator = build([
            FakeExtractor("kambista", delay=T, buy="3.7000", sell="3.7500"),
            FakeExtractor("rextie", delay=2 * T),
            FakeExtractor("western_union", delay=20 * T),
        ])
        first = await orchestrator.run()

        orchestrator.extractors = [
            FakeExtractor("kambista", delay=T, buy="3.7100", sell="3.7600"),
            FakeExtractor("western_union", delay=3 * T),
        ]
        second = await orchestrator.run()
        await second.wait_settled()
        await orchestrator.drain()

        assert first.all_sources_settled
        rates = {obs.provider: obs for obs in state.current.rates}
        assert rates["kambista"].buy_rate == Decimal("3.7100")
        assert "rextie" not in rates

        # O ciclo antigo ainda grava o que chegou atrasado
        late = [obs for obs in memory_sink.saved if obs.provider == "western_union"]
        assert len(late) == 2

    @pytest.mark.asyncio
    async def test_old_cycle_without_rates_does_not_mark_error(self, build, state):
        orchestrator = build([
            FakeExtractor("kambista", delay=10 * T, returns_none=True),
        ])
        await orchestrator.run()

        orchestrator.extractors = [
            FakeExtractor("kambista", delay=T),
            FakeExtractor("rextie", delay=T),
        ]
        second = await orchestrator.run()
        await second.wait_settled()
        await orchestrator.drain()

        assert state.current.status == SnapshotStatus.LIVE
        assert state.current.rates_count == 2


class TestDuplicateProvider:
    """Duas observações do mesmo provedor no ciclo ocupam um único slot."""

    @pytest.mark.asyncio
    async def test_last_write_wins(self, build, state, memory_sink):
        orchestrator = build([
            FakeExtractor("kambista", delay=T, buy="3.7000", sell="3.7500"),
            FakeExtractor("kambista", delay=2 * T, buy="3.7200", sell="3.7700"),
        ])

        cycle = await orchestrator.run()
        await orchestrator.drain()

        assert len(cycle.rates) == 1
        assert cycle.rates[0].buy_rate == Decimal("3.7200")
        assert state.current.rates_count == 1
        assert state.current.rates[0].buy_rate == Decimal("3.7200")
