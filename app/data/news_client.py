from datetime import datetime, timedelta, timezone
from .base import NewsClient
from .http import ProviderHttp
from ..core.config import settings
from ..core.errors import ConfigurationError
from ..schemas import NewsPayload, parse_payload

NEWS_QUERY = "stock market"

class MockNews(NewsClient):
    """
    A fixed handful of articles in NewsAPI's `everything` shape.
    """
    async def stock_market_news(self) -> NewsPayload:
        now = datetime.now(timezone.utc)
        headlines = [
            "Stocks edge higher as investors weigh earnings",
            "Treasury yields slip ahead of inflation data",
            "Tech shares lead market rebound",
            "Oil prices steady after volatile week",
            "Small caps lag broader market",
            "Dollar firms against major currencies",
            "Retail sales beat expectations",
        ]
        articles = [
            {
                "source": {"id": None, "name": "Mock Wire"},
                "author": None,
                "title": title,
                "description": title + ".",
                "url": f"https://example.com/news/{i}",
                "urlToImage": None,
                "publishedAt": (now - timedelta(hours=i)).strftime("%Y-%m-%dT%H:%M:%SZ"),
                "content": None,
            }
            for i, title in enumerate(headlines)
        ]
        return parse_payload(NewsPayload, "news", {
            "status": "ok", "totalResults": len(articles), "articles": articles,
        })

    async def aclose(self) -> None:
        return None

class NewsApiClient(NewsClient):
    """NewsAPI.org `everything` search pinned to stock market coverage."""
    def __init__(self, api_key: str | None, http: ProviderHttp):
        self.api_key = api_key
        self.http = http

    async def stock_market_news(self) -> NewsPayload:
        if not self.api_key:
            raise ConfigurationError("NEWS_API_KEY is not set")
        data = await self.http.get_json("/everything", {
            "q": NEWS_QUERY,
            "apiKey": self.api_key,
            "sortBy": "publishedAt",
            "language": "en",
        })
        return parse_payload(NewsPayload, "news", data)

    async def aclose(self) -> None:
        await self.http.aclose()

def news_client() -> NewsClient:
    if settings.NEWS_PROVIDER == "mock":
        return MockNews()
    http = ProviderHttp("newsapi", settings.NEWS_API_BASE_URL, timeout=settings.UPSTREAM_TIMEOUT_SECONDS)
    return NewsApiClient(settings.NEWS_API_KEY, http)
