"""
Testes de integração para a API REST.
"""

import pytest
from fastapi.testclient import TestClient

from rate_collector.api import create_app
from rate_collector.collector import RateCollector

from fixtures.fakes import FakeExtractor, RecordingSleep, SessionFactory


def make_client(settings, failures: int = 0) -> TestClient:
    collector = RateCollector(
        settings=settings,
        extractors=[
            FakeExtractor("kambista", buy="3.7450", sell="3.7650"),
            FakeExtractor("rextie", buy="3.7400", sell="3.7700"),
        ],
        session_factory=SessionFactory(failures=failures),
        sleep=RecordingSleep(),
    )
    return TestClient(create_app(collector=collector, start_scheduler=False))


@pytest.fixture
def client(settings):
    with make_client(settings) as client:
        yield client


class TestRatesEndpoints:

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["rates_count"] == 0
        assert data["has_error"] is False

    def test_rates_without_data(self, client):
        data = client.get("/api/rates").json()

        assert data["rates"] == []
        assert data["status"] == "empty"
        assert data["error"] == "Nenhum dado disponível ainda"

    def test_refresh_then_rates(self, client):
        response = client.post("/api/refresh")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["rates"] == 2

        data = client.get("/api/rates").json()
        assert {r["provider"] for r in data["rates"]} == {"kambista", "rextie"}
        assert data["rates"][0]["name"] in ("Kambista", "Rextie")

    def test_refresh_via_get(self, client):
        assert client.get("/api/refresh").status_code == 200

    def test_best_rates(self, client):
        assert client.get("/api/best-rates").status_code == 404

        client.post("/api/refresh")
        data = client.get("/api/best-rates").json()

        assert data["best_sell"]["provider"] == "kambista"
        assert data["providers_count"] == 2

    def test_calculate(self, client):
        client.post("/api/refresh")

        response = client.get("/api/calculate", params={"amount": 100, "action": "sell"})

        assert response.status_code == 200
        assert response.json()["result"] == pytest.approx(374.5)

    @pytest.mark.parametrize(
        "params",
        [{"amount": 0}, {"amount": -5}, {"amount": 100, "action": "hold"}, {}],
    )
    def test_calculate_invalid(self, client, params):
        assert client.get("/api/calculate", params=params).status_code == 422


class TestRefreshFailures:

    def test_exhausted_retries(self, settings):
        with make_client(settings, failures=100) as client:
            response = client.post("/api/refresh")

            assert response.status_code == 503
            assert response.json()["error"] == "CycleExhaustedError"
            assert client.get("/api/health").json()["has_error"] is True

    def test_admin_key_required(self, settings):
        settings = settings.model_copy(update={"admin_api_key": "segredo"})

        with make_client(settings) as client:
            assert client.post("/api/refresh").status_code == 403
            assert client.post("/api/refresh", headers={"X-API-Key": "errada"}).status_code == 403
            assert client.post("/api/refresh", headers={"X-API-Key": "segredo"}).status_code == 200


class TestHistoryEndpoints:

    def test_unknown_provider(self, client):
        response = client.get("/api/history/banco_x")

        assert response.status_code == 404
        assert "kambista" in response.json()["detail"]["valid_providers"]

    def test_history(self, client):
        client.post("/api/refresh")

        data = client.get("/api/history/kambista", params={"hours": 1}).json()

        assert data["provider"] == "kambista"
        assert len(data["data"]) == 1

    @pytest.mark.parametrize("hours", [0, 721])
    def test_history_hours_range(self, client, hours):
        assert client.get("/api/history/kambista", params={"hours": hours}).status_code == 422

    def test_stats(self, client):
        data = client.get("/api/stats/rextie", params={"days": 30}).json()

        assert data == {"provider": "rextie", "days": 30, "stats": None}
        assert client.get("/api/stats/rextie", params={"days": 91}).status_code == 422

    def test_trend(self, client):
        client.post("/api/refresh")

        data = client.get("/api/trend", params={"hours": 2, "interval": 1}).json()

        assert len(data["data"]) == 1
        assert data["data"][0]["provider_count"] == 2
        assert client.get("/api/trend", params={"interval": 25}).status_code == 422

    def test_providers(self, client):
        client.post("/api/refresh")

        data = client.get("/api/providers").json()

        assert data["providers"] == ["kambista", "rextie"]
        assert len(data["configured"]) == 7

    def test_db_stats(self, client):
        client.post("/api/refresh")

        data = client.get("/api/db-stats").json()

        assert data["total_records"] == 2
        assert data["total_providers"] == 2


class TestHttpProtections:
    """Limite por IP e cabeçalhos de segurança."""

    def test_security_headers(self, client):
        response = client.get("/api/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
        assert "object-src 'none'" in response.headers["Content-Security-Policy"]

    def test_refresh_limit(self, settings):
        settings = settings.model_copy(update={"refresh_rate_limit": 2})

        with make_client(settings) as client:
            assert client.get("/api/refresh").status_code == 200
            assert client.post("/api/refresh").status_code == 200

            response = client.post("/api/refresh")

            assert response.status_code == 429
            assert int(response.headers["Retry-After"]) >= 1
            assert "Limite" in response.json()["detail"]
            # Outras rotas seguem liberadas
            assert client.get("/api/rates").status_code == 200

    def test_api_limit(self, settings):
        settings = settings.model_copy(update={"api_rate_limit": 3})

        with make_client(settings) as client:
            for _ in range(3):
                assert client.get("/api/health").status_code == 200

            response = client.get("/api/rates")

            assert response.status_code == 429
            assert response.headers["X-Content-Type-Options"] == "nosniff"

    def test_limits_disabled(self, settings):
        settings = settings.model_copy(
            update={"rate_limit_enabled": False, "api_rate_limit": 1}
        )

        with make_client(settings) as client:
            assert all(client.get("/api/health").status_code == 200 for _ in range(5))
