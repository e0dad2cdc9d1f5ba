"""
Integration tests for the dashboard API.

The app runs against an engine whose upstream sources are fakes, so no
request leaves the process.
"""

import random
from collections.abc import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from dexarb.config.settings import Settings
from dexarb.core.engine import MonitorEngine
from dexarb.core.types import PriceSource, TokenQuote
from dexarb.dashboard.server import create_app
from dexarb.market.resolver import PriceResolver
from dexarb.simulation.venues import SimulatedVenueQuoteSource, VenueQuoteSimulator
from dexarb.strategy.calculator import ArbitrageCalculator
from dexarb.strategy.opportunity import OpportunityAggregator
from dexarb.telemetry.metrics import MetricsCollector
from tests.mocks.sources import FakePriceSource, FakeTopTokensSource, RecordingSleep


class FakeEngine(MonitorEngine):
    """Engine wired to a prebuilt resolver instead of live sources."""

    def __init__(self, resolver: PriceResolver, metrics: MetricsCollector) -> None:
        super().__init__(Settings(_env_file=None), metrics=metrics, rng=random.Random(11))
        self._prebuilt_resolver = resolver

    def setup(self) -> None:
        resolver = self._prebuilt_resolver
        simulator = VenueQuoteSimulator(rng=random.Random(11))
        self._resolver = resolver
        self._simulator = simulator
        self._aggregator = OpportunityAggregator(
            resolver=resolver,
            quote_source=SimulatedVenueQuoteSource(resolver, simulator),
            calculator=ArbitrageCalculator(),
            fallback=resolver.fallback,
            simulator=simulator,
            sleep=RecordingSleep(),
            metrics=self.metrics,
        )


@pytest.fixture
def client(
    make_resolver: Callable[..., PriceResolver],
    live_tokens: list[TokenQuote],
    metrics: MetricsCollector,
) -> Iterator[TestClient]:
    """Test client over fake sources; the refresh loop is disabled."""
    resolver = make_resolver(
        primary=FakeTopTokensSource("coingecko", [live_tokens]),
        price_sources=[
            FakePriceSource("coingecko", PriceSource.COINGECKO, {"monero": 175.5}),
        ],
    )
    app = create_app(engine=FakeEngine(resolver, metrics), refresh_loop=False)
    with TestClient(app) as test_client:
        yield test_client


class TestTokenEndpoints:
    """Tests for token, price, quote and history endpoints."""

    def test_tokens(self, client: TestClient) -> None:
        """Test the ranked token list."""
        response = client.get("/api/tokens", params={"count": 5})

        assert response.status_code == 200
        tokens = response.json()
        assert [t["id"] for t in tokens] == [
            "bitcoin",
            "ethereum",
            "tether",
            "binancecoin",
            "solana",
        ]
        assert tokens[0]["current_price"] == 65100.0
        assert tokens[0]["source"] == "coingecko"
        assert tokens[0]["synthetic"] is False

    def test_tokens_padded_beyond_live_list(self, client: TestClient) -> None:
        """Test that a long request is filled with fallback entries."""
        tokens = client.get("/api/tokens", params={"count": 25}).json()

        assert len(tokens) == 25
        assert tokens[-1]["synthetic"] is True

    @pytest.mark.parametrize("count", [0, 251])
    def test_tokens_count_bounds(self, client: TestClient, count: int) -> None:
        """Test query validation."""
        assert client.get("/api/tokens", params={"count": count}).status_code == 422

    def test_live_price(self, client: TestClient) -> None:
        """Test a price served by a spot source."""
        body = client.get("/api/tokens/monero/price").json()

        assert body == {
            "token_id": "monero",
            "price": 175.5,
            "source": "coingecko",
            "synthetic": False,
        }

    def test_fallback_price(self, client: TestClient) -> None:
        """Test that an unknown token gets the default price."""
        body = client.get("/api/tokens/not-a-token/price").json()

        assert body["price"] == 10.0
        assert body["source"] == "fallback"
        assert body["synthetic"] is True

    def test_quotes(self, client: TestClient) -> None:
        """Test simulated venue quotes around the base price."""
        body = client.get("/api/tokens/monero/quotes").json()

        assert body["base"]["price"] == 175.5
        assert [q["dex"] for q in body["quotes"]] == [
            "Uniswap",
            "SushiSwap",
            "PancakeSwap",
            "Curve",
            "Balancer",
        ]
        assert all(q["synthetic"] is False for q in body["quotes"])
        assert all(abs(q["price"] / 175.5 - 1) <= 0.007 + 1e-12 for q in body["quotes"])

    def test_history(self, client: TestClient) -> None:
        """Test the synthetic history fallback."""
        body = client.get("/api/tokens/bitcoin/history", params={"days": 3}).json()

        assert body["token_id"] == "bitcoin"
        assert len(body["prices"]) == 4
        assert all(len(point) == 2 for point in body["prices"])

    def test_history_days_bounds(self, client: TestClient) -> None:
        """Test that zero days is rejected."""
        response = client.get("/api/tokens/bitcoin/history", params={"days": 0})

        assert response.status_code == 422

    def test_exchanges(self, client: TestClient) -> None:
        """Test the exchange comparison view."""
        body = client.get("/api/tokens/monero/exchanges").json()

        assert len(body["exchanges"]) == 7
        assert "Binance" in body["exchanges"]


class TestOpportunityEndpoints:
    """Tests for opportunity scanning and profit calculation."""

    def test_opportunities(self, client: TestClient) -> None:
        """Test ranked opportunities for the top tokens."""
        response = client.get("/api/opportunities", params={"limit": 5, "investment": 500})

        assert response.status_code == 200
        opps = response.json()
        percentages = [o["profit_percentage"] for o in opps]
        assert percentages == sorted(percentages, reverse=True)
        assert all(o["investment_amount"] == 500.0 for o in opps)
        assert all(o["buy_price"] < o["sell_price"] for o in opps)

    @pytest.mark.parametrize("params", [{"investment": -1}, {"investment": 0}, {"limit": 0}])
    def test_opportunities_validation(self, client: TestClient, params: dict[str, float]) -> None:
        """Test that bad parameters are rejected."""
        assert client.get("/api/opportunities", params=params).status_code == 422

    def test_profit(self, client: TestClient) -> None:
        """Test the profit calculation for client-supplied quotes."""
        response = client.post(
            "/api/profit",
            json={
                "quotes": [
                    {"venue": "SushiSwap", "price": 105.0, "volume24h": 1e6},
                    {"venue": "Uniswap", "price": 100.0},
                ],
                "investmentAmount": 1000,
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["source_dex"] == "Uniswap"
        assert body["target_dex"] == "SushiSwap"
        assert body["profit_usd"] == pytest.approx(50.0)
        assert body["profit_percentage"] == pytest.approx(5.0)
        assert body["token"] is None

    def test_profit_without_spread(self, client: TestClient) -> None:
        """Test that a flat market returns null."""
        response = client.post(
            "/api/profit",
            json={"quotes": [{"venue": "Curve", "price": 1.0}, {"venue": "Balancer", "price": 1.0}]},
        )

        assert response.status_code == 200
        assert response.json() is None

    def test_profit_invalid_investment(self, client: TestClient) -> None:
        """Test that a zero investment is rejected."""
        response = client.post(
            "/api/profit",
            json={
                "quotes": [{"venue": "Curve", "price": 1.0}, {"venue": "Balancer", "price": 2.0}],
                "investmentAmount": 0,
            },
        )

        assert response.status_code == 422

    def test_profit_unknown_venue(self, client: TestClient) -> None:
        """Test that an unknown venue name is rejected."""
        response = client.post(
            "/api/profit",
            json={"quotes": [{"venue": "Mystery", "price": 1.0}]},
        )

        assert response.status_code == 422


class TestStatusEndpoint:
    """Tests for the status endpoint."""

    def test_status(self, client: TestClient) -> None:
        """Test cache and metrics reporting."""
        before = client.get("/api/status").json()
        client.get("/api/tokens", params={"count": 3})
        after = client.get("/api/status").json()

        assert before["cache_fresh"] is False
        assert before["cache_age_seconds"] is None
        assert before["running"] is False
        assert before["last_refresh_ms"] is None
        assert after["cache_fresh"] is True
        assert after["opportunities"] == 0
        assert "counters" in after["metrics"]
