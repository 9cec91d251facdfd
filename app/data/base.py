from typing import Any, Protocol, List, Optional

from ..schemas import (
    IndicatorPayload,
    NewsPayload,
    PredictionRecord,
    SymbolSearchPayload,
    TimeSeriesPayload,
)

# ----- Protocols (interfaces) -----

class MarketDataClient(Protocol):
    """Technical indicators and OHLC time series for a symbol."""
    configured: bool
    async def rsi(self, symbol: str, interval: str) -> IndicatorPayload: ...
    async def time_series(self, symbol: str, interval: str, outputsize: int) -> TimeSeriesPayload: ...
    async def aclose(self) -> None: ...

class SymbolSearchClient(Protocol):
    async def search(self, query: str) -> SymbolSearchPayload: ...
    async def aclose(self) -> None: ...

class NewsClient(Protocol):
    async def stock_market_news(self) -> NewsPayload: ...
    async def aclose(self) -> None: ...

class PredictionStore(Protocol):
    """
    Per-user prediction records. Every read and write is scoped by user id;
    `set_actual_price` has no double-write guard, callers check first.
    """
    async def connect(self) -> None: ...
    async def close(self) -> None: ...
    async def create(self, fields: dict[str, Any]) -> PredictionRecord: ...
    async def list_by_user(self, user_id: str, limit: int = 100) -> List[PredictionRecord]: ...
    async def list_unresolved(self, user_id: str) -> List[PredictionRecord]: ...
    async def get(self, record_id: str) -> Optional[PredictionRecord]: ...
    async def set_actual_price(self, record_id: str, value: str) -> None: ...
