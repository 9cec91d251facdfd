"""Tests for StockService orchestration and provider-payload caching."""

from __future__ import annotations

import pytest
from fakeredis import FakeServer
from fakeredis.aioredis import FakeRedis

from app.core.cache import Cache
from app.data.news_client import MockNews
from app.data.search_client import MockSymbolSearch
from app.schemas import SymbolSearchPayload
from app.services.stock_service import StockService


class CountingSearch(MockSymbolSearch):
    def __init__(self) -> None:
        self.calls = 0

    async def search(self, query: str) -> SymbolSearchPayload:
        self.calls += 1
        return await super().search(query)


class CountingNews(MockNews):
    def __init__(self) -> None:
        self.calls = 0

    async def stock_market_news(self):
        self.calls += 1
        return await super().stock_market_news()


@pytest.mark.asyncio
async def test_search_results_are_cached(market, estimator) -> None:
    search = CountingSearch()
    svc = StockService(market, search, MockNews(), estimator, cache=Cache(60))
    query = "zzzzzz"

    assert await svc.search_symbols(query) == []
    assert await svc.search_symbols(query) == []
    assert search.calls == 1


@pytest.mark.asyncio
async def test_no_cache_always_calls_provider(market, estimator) -> None:
    search = CountingSearch()
    svc = StockService(market, search, MockNews(), estimator)

    await svc.search_symbols("msft")
    await svc.search_symbols("msft")
    assert search.calls == 2


@pytest.mark.asyncio
async def test_news_payload_is_passed_through(market, estimator) -> None:
    news = CountingNews()
    svc = StockService(market, MockSymbolSearch(), news, estimator)

    payload = await svc.stock_news()

    assert payload["status"] == "ok"
    assert payload["totalResults"] == len(payload["articles"])
    assert {"title", "url", "publishedAt"} <= set(payload["articles"][0])


@pytest.mark.asyncio
async def test_stock_data_runs_estimator_on_closes(market, estimator, make_series) -> None:
    market.series["NVDA"] = make_series("120.00", "110.00", "100.00")
    svc = StockService(market, MockSymbolSearch(), MockNews(), estimator)

    payload = await svc.stock_data("NVDA", "1day")

    # changes: -1/12 and -1/11, summed over a fixed divisor of six
    expected = 120.0 * (1 + ((110 - 120) / 120 + (100 - 110) / 110) / 6)
    assert payload["prediction"] == {"nextDay": round(expected, 2), "lastPrice": 120.0}
    assert payload["timeSeries"]["meta"]["symbol"] == "TEST"
    assert payload["status"] == "ok"


@pytest.mark.asyncio
async def test_news_is_cached_in_redis(market, estimator) -> None:
    news = CountingNews()
    backend = FakeRedis(server=FakeServer(), decode_responses=True)
    cache = Cache(300, prefix="provider:", backend=backend)
    svc = StockService(market, MockSymbolSearch(), news, estimator, cache=cache)

    first = await svc.stock_news()
    second = await svc.stock_news()

    assert first == second
    assert news.calls == 1
    assert await backend.ttl("provider:news:stock-market") == 300
    await cache.aclose()


@pytest.mark.asyncio
async def test_cache_counts_hits() -> None:
    local = Cache(60)
    remote = Cache(60, prefix="rate:", backend=FakeRedis(server=FakeServer(), decode_responses=True))
    for cache in (local, remote):
        assert [await cache.incr("k") for _ in range(3)] == [1, 2, 3]
    assert await remote.backend.ttl("rate:k") == 60
