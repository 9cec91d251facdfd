from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Routers
from .routers.stocks import router as stocks_router
from .routers.predictions import router as predictions_router

# Core modules
from .core.cache import Cache, rate_limit_cache
from .core.config import settings
from .core.errors import register_error_handlers
from .core.logging import configure_logging, CorrelationIdMiddleware
from .core.metrics import PromMiddleware, metrics_endpoint

# Collaborators
from .data.base import MarketDataClient, NewsClient, PredictionStore, SymbolSearchClient
from .data.market_client import market_data_client
from .data.news_client import news_client
from .data.prediction_store import prediction_store
from .data.search_client import symbol_search_client
from .models.base import PriceEstimator
from .models.simulated_estimator import SimulatedEstimator
from .services.prediction_service import PredictionService
from .services.reconciliation_service import ReconciliationService, SweepScheduler
from .services.stock_service import StockService

def wire_services(
    app: FastAPI,
    *,
    store: PredictionStore,
    market: MarketDataClient,
    search: SymbolSearchClient,
    news: NewsClient,
    estimator: PriceEstimator,
    cache: Optional[Cache] = None,
) -> None:
    """
    Build the service graph on `app.state`. Routers reach it through
    the providers in `app.deps`; tests call this with fakes.
    """
    app.state.stock_service = StockService(market, search, news, estimator, cache=cache)
    app.state.prediction_service = PredictionService(store)
    app.state.reconciliation_service = ReconciliationService(store, market)
    app.state.sweep_scheduler = SweepScheduler(
        app.state.reconciliation_service, interval_seconds=settings.SWEEP_INTERVAL_SECONDS
    )

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the record store and provider clients; close them on shutdown."""
    store = prediction_store()
    await store.connect()
    market, search, news = market_data_client(), symbol_search_client(), news_client()
    estimator = SimulatedEstimator(simulate_latency=settings.SIMULATE_INFERENCE_LATENCY)
    # Provider payloads that go stale quickly (news, symbol search)
    provider_cache = Cache.from_settings(settings.NEWS_CACHE_TTL_SECONDS, prefix="provider:")
    wire_services(app, store=store, market=market, search=search, news=news,
                  estimator=estimator, cache=provider_cache)
    try:
        yield
    finally:
        await app.state.sweep_scheduler.shutdown()
        for client in (market, search, news):
            await client.aclose()
        await store.close()
        await provider_cache.aclose()
        await rate_limit_cache.aclose()

def create_app(use_lifespan: bool = True) -> FastAPI:
    """
    App factory so tests and ASGI servers can instantiate cleanly.
    With `use_lifespan=False` the caller must run `wire_services` itself.
    """
    configure_logging()  # JSON logs + request-id filter

    app = FastAPI(
        title="Stock Price Projection API",
        version="1.0.0",
        description="Symbol search, news, simulated price estimates and per-user prediction history.",
        lifespan=lifespan if use_lifespan else None,
    )

    # CORS: allow the web front end to call the API.
    allow_origins = [o.strip() for o in settings.ALLOW_ORIGINS.split(",")] if settings.ALLOW_ORIGINS else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id"],
    )

    # Observability middlewares
    app.add_middleware(CorrelationIdMiddleware)  # Adds/propagates X-Request-Id
    if settings.PROMETHEUS_ENABLED:
        app.add_middleware(PromMiddleware)       # Records req/latency metrics

    register_error_handlers(app)

    # Meta routes
    @app.get("/v1/health", tags=["meta"])
    def health():
        return {"status": "ok"}

    @app.get("/v1/ping", tags=["meta"])
    def ping():
        return {"pong": True}

    if settings.PROMETHEUS_ENABLED:
        # Standard Prometheus scrape endpoint
        app.add_route("/v1/metrics", metrics_endpoint, methods=["GET"])

    # Business routes
    app.include_router(stocks_router, prefix="/api", tags=["stocks"])
    app.include_router(predictions_router, prefix="/api", tags=["predictions"])

    return app

app = create_app()
