from datetime import datetime, timedelta, timezone
from .base import MarketDataClient
from .http import ProviderHttp
from ..core.config import settings
from ..core.errors import ConfigurationError
from ..core.utils import fnv1a_32, seeded_rand, interval_to_ms
from ..schemas import IndicatorPayload, TimeSeriesPayload, parse_payload

class MockMarketData(MarketDataClient):
    """
    Synthetic random-walk closes seeded by symbol, so the same symbol always
    produces the same series. Shapes follow Twelve Data's JSON.
    """
    configured = True

    async def time_series(self, symbol: str, interval: str, outputsize: int) -> TimeSeriesPayload:
        seed = fnv1a_32(symbol.upper())
        price = 20.0 + seeded_rand(seed, 1)[0] * 480.0
        step = timedelta(milliseconds=interval_to_ms(interval))
        now = datetime.now(timezone.utc).replace(second=0, microsecond=0)
        values = []
        for i in range(outputsize):
            # Walk backwards in time, +/- 2% per bar
            drift = (seeded_rand(seed + i + 1, 1)[0] - 0.5) * 4.0
            values.append({
                "datetime": (now - step * i).strftime("%Y-%m-%d %H:%M:%S"),
                "close": f"{price:.5f}",
            })
            price = max(0.01, price / (1.0 + drift / 100.0))
        return parse_payload(TimeSeriesPayload, "time_series", {
            "meta": {"symbol": symbol, "interval": interval, "type": "Common Stock"},
            "values": values,
            "status": "ok",
        })

    async def rsi(self, symbol: str, interval: str) -> IndicatorPayload:
        seed = fnv1a_32(symbol.upper() + interval)
        values = [{"rsi": f"{20 + seeded_rand(seed + i, 1)[0] * 60:.5f}"} for i in range(30)]
        return parse_payload(IndicatorPayload, "rsi", {
            "meta": {"symbol": symbol, "interval": interval,
                     "indicator": {"name": "RSI - Relative Strength Index", "time_period": 14}},
            "values": values,
            "status": "ok",
        })

    async def aclose(self) -> None:
        return None

class TwelveDataClient(MarketDataClient):
    """
    Twelve Data REST API (api.twelvedata.com). Keys travel as a query param,
    so URLs must not be logged.
    """
    def __init__(self, api_key: str | None, http: ProviderHttp):
        self.api_key = api_key
        self.http = http

    def _params(self, **params) -> dict:
        if not self.api_key:
            raise ConfigurationError("TWELVE_DATA_API_KEY is not set")
        return {**params, "apikey": self.api_key}

    async def rsi(self, symbol: str, interval: str) -> IndicatorPayload:
        data = await self.http.get_json("/rsi", self._params(symbol=symbol, interval=interval))
        return parse_payload(IndicatorPayload, "rsi", data)

    async def time_series(self, symbol: str, interval: str, outputsize: int) -> TimeSeriesPayload:
        data = await self.http.get_json(
            "/time_series", self._params(symbol=symbol, interval=interval, outputsize=outputsize)
        )
        return parse_payload(TimeSeriesPayload, "time_series", data)

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def aclose(self) -> None:
        await self.http.aclose()

def market_data_client() -> MarketDataClient:
    """
    Factory picks mock or http based on env flags.
    """
    if settings.MARKET_DATA_PROVIDER == "mock":
        return MockMarketData()
    http = ProviderHttp("twelvedata", settings.TWELVE_DATA_BASE_URL, timeout=settings.UPSTREAM_TIMEOUT_SECONDS)
    return TwelveDataClient(settings.TWELVE_DATA_API_KEY, http)
