import asyncio
import logging
from typing import Any, Optional

from ..core.cache import Cache
from ..core.config import settings
from ..core.metrics import ESTIMATES_GENERATED
from ..core.utils import round2
from ..data.base import MarketDataClient, NewsClient, SymbolSearchClient
from ..data.search_client import POPULAR_STOCKS
from ..models.base import EstimateInput, PriceEstimator
from ..schemas import StockSuggestion

logger = logging.getLogger(__name__)

NEWS_CACHE_KEY = "news:stock-market"

class StockService:
    """
    Orchestrates the read-only market routes:
      symbol search, news, and RSI + time series → estimator → combined payload.
    Short-lived provider payloads (news, search) go through `cache` when one
    is given, to spare API quotas.
    """
    def __init__(self, market: MarketDataClient, search: SymbolSearchClient,
                 news: NewsClient, estimator: PriceEstimator, cache: Optional[Cache] = None):
        self.market = market
        self.search = search
        self.news = news
        self.estimator = estimator
        self.cache = cache

    async def search_symbols(self, query: str) -> list[dict[str, Any]]:
        """
        Provider `quotes` entries, each with a display `name` added
        (short name, else long name, else the symbol). [] when there are none.
        """
        cache_key = f"search:{query.strip().lower()}"
        if self.cache is not None:
            cached = await self.cache.get_json(cache_key)
            if cached is not None:
                return cached
        payload = await self.search.search(query)
        quotes = [
            {**q.model_dump(exclude_unset=True), "name": q.suggestion().name}
            for q in (payload.quotes or [])
        ]
        if self.cache is not None:
            await self.cache.set_json(cache_key, quotes)
        return quotes

    def popular(self) -> list[StockSuggestion]:
        """Default suggestions shown before the user types anything."""
        return list(POPULAR_STOCKS)

    async def stock_news(self) -> dict[str, Any]:
        if self.cache is not None:
            cached = await self.cache.get_json(NEWS_CACHE_KEY)
            if cached is not None:
                return cached
        payload = (await self.news.stock_market_news()).model_dump(exclude_unset=True)
        if self.cache is not None:
            await self.cache.set_json(NEWS_CACHE_KEY, payload)
        return payload

    async def stock_data(self, symbol: str, interval: str = "1day") -> dict[str, Any]:
        # Both calls go out together; either failing fails the request
        rsi, series = await asyncio.gather(
            self.market.rsi(symbol, interval),
            self.market.time_series(symbol, interval, settings.HISTORY_OUTPUT_SIZE),
        )
        out = await self.estimator.estimate(
            EstimateInput(historical_prices=series.closes(), symbol=symbol, interval=interval)
        )
        ESTIMATES_GENERATED.labels(interval=interval).inc()
        logger.info("Estimate for %s/%s: last=%.4f next=%.4f", symbol, interval,
                    out.last_price, out.predicted_price)

        payload = rsi.model_dump(exclude_unset=True)
        payload["timeSeries"] = series.model_dump(exclude_unset=True)
        payload["prediction"] = {
            "nextDay": round2(out.predicted_price),
            "lastPrice": round2(out.last_price),
        }
        return payload
