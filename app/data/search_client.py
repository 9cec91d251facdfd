from .base import SymbolSearchClient
from .http import ProviderHttp
from ..core.config import settings
from ..schemas import StockSuggestion, SymbolSearchPayload, parse_payload

# Default suggestions for an empty search box
POPULAR_STOCKS = [
    StockSuggestion(symbol="AAPL", name="Apple Inc."),
    StockSuggestion(symbol="MSFT", name="Microsoft Corporation"),
    StockSuggestion(symbol="GOOGL", name="Alphabet Inc."),
    StockSuggestion(symbol="AMZN", name="Amazon.com Inc."),
    StockSuggestion(symbol="NVDA", name="NVIDIA Corporation"),
    StockSuggestion(symbol="META", name="Meta Platforms Inc."),
    StockSuggestion(symbol="TSLA", name="Tesla Inc."),
    StockSuggestion(symbol="JPM", name="JPMorgan Chase & Co."),
    StockSuggestion(symbol="V", name="Visa Inc."),
    StockSuggestion(symbol="WMT", name="Walmart Inc."),
]

# Yahoo rejects requests without a browser-like agent
BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)

class MockSymbolSearch(SymbolSearchClient):
    """
    Matches the query against POPULAR_STOCKS by symbol prefix or name substring.
    """
    async def search(self, query: str) -> SymbolSearchPayload:
        q = query.strip().lower()
        quotes = [
            {"symbol": s.symbol, "shortname": s.name, "quoteType": "EQUITY"}
            for s in POPULAR_STOCKS
            if s.symbol.lower().startswith(q) or q in s.name.lower()
        ]
        return parse_payload(SymbolSearchPayload, "symbol_search", {"quotes": quotes})

    async def aclose(self) -> None:
        return None

class YahooSymbolSearch(SymbolSearchClient):
    """Yahoo Finance quote search (v1/finance/search), quotes only."""
    def __init__(self, http: ProviderHttp, quotes_count: int = 10):
        self.http = http
        self.quotes_count = quotes_count

    async def search(self, query: str) -> SymbolSearchPayload:
        data = await self.http.get_json("/v1/finance/search", {
            "q": query,
            "quotesCount": self.quotes_count,
            "newsCount": 0,
            "enableFuzzyQuery": "false",
            "quotesQueryId": "tss_match_phrase_query",
        })
        return parse_payload(SymbolSearchPayload, "symbol_search", data)

    async def aclose(self) -> None:
        await self.http.aclose()

def symbol_search_client() -> SymbolSearchClient:
    if settings.SYMBOL_SEARCH_PROVIDER == "mock":
        return MockSymbolSearch()
    http = ProviderHttp(
        "yahoo", settings.SYMBOL_SEARCH_BASE_URL,
        timeout=settings.UPSTREAM_TIMEOUT_SECONDS, headers={"User-Agent": BROWSER_UA},
    )
    return YahooSymbolSearch(http)
