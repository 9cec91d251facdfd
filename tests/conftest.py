"""Shared fixtures: in-memory store, scripted market data, wired TestClient."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from app.core.errors import UpstreamError
from app.core.security import rate_limit
from app.data.news_client import MockNews
from app.data.prediction_store import InMemoryPredictionStore
from app.data.search_client import MockSymbolSearch
from app.main import create_app, wire_services
from app.models.simulated_estimator import SimulatedEstimator
from app.schemas import IndicatorPayload, TimeSeriesPayload, parse_payload


class FixedRandom:
    """random.Random stand-in that always returns the same draw."""

    def __init__(self, value: float = 0.5) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


class ScriptedMarket:
    """MarketDataClient whose responses are set per symbol by the test."""

    def __init__(self) -> None:
        self.configured = True
        self.series: dict[str, Any] = {}
        self.rsi_payload: Any = {"meta": {"indicator": {"name": "RSI"}}, "values": [{"rsi": "55.1"}], "status": "ok"}
        self.calls: list[tuple] = []

    async def rsi(self, symbol: str, interval: str) -> IndicatorPayload:
        self.calls.append(("rsi", symbol, interval))
        if isinstance(self.rsi_payload, Exception):
            raise self.rsi_payload
        return parse_payload(IndicatorPayload, "rsi", self.rsi_payload)

    async def time_series(self, symbol: str, interval: str, outputsize: int) -> TimeSeriesPayload:
        self.calls.append(("time_series", symbol, interval, outputsize))
        data = self.series.get(symbol)
        if data is None:
            raise UpstreamError("time_series", f"no data for {symbol}")
        if isinstance(data, Exception):
            raise data
        return parse_payload(TimeSeriesPayload, "time_series", data)

    async def aclose(self) -> None:
        return None


def closes_payload(*closes: str) -> dict:
    return {
        "meta": {"symbol": "TEST", "interval": "1day"},
        "values": [{"datetime": f"2026-10-{17 - i:02d}", "close": c} for i, c in enumerate(closes)],
        "status": "ok",
    }


async def _no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def store() -> InMemoryPredictionStore:
    return InMemoryPredictionStore()


@pytest.fixture
def market() -> ScriptedMarket:
    return ScriptedMarket()


@pytest.fixture
def estimator() -> SimulatedEstimator:
    return SimulatedEstimator(rng=FixedRandom(0.5), sleep=_no_sleep, simulate_latency=False)


@pytest.fixture
def client(store, market, estimator):
    app = create_app(use_lifespan=False)
    wire_services(
        app,
        store=store,
        market=market,
        search=MockSymbolSearch(),
        news=MockNews(),
        estimator=estimator,
    )
    app.dependency_overrides[rate_limit] = lambda: None
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def make_series():
    return closes_payload
