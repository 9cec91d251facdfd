import os
from pydantic import BaseModel

class Settings(BaseModel):
    # Basic
    NEWS_CACHE_TTL_SECONDS: int = int(os.getenv("NEWS_CACHE_TTL_SECONDS", "300"))

    # Estimator
    SIMULATE_INFERENCE_LATENCY: bool = os.getenv("SIMULATE_INFERENCE_LATENCY", "true").lower() == "true"
    HISTORY_OUTPUT_SIZE: int = int(os.getenv("HISTORY_OUTPUT_SIZE", "30"))

    # Data providers
    MARKET_DATA_PROVIDER: str = os.getenv("MARKET_DATA_PROVIDER", "http")      # http | mock
    TWELVE_DATA_API_KEY: str | None = os.getenv("TWELVE_DATA_API_KEY")
    TWELVE_DATA_BASE_URL: str = os.getenv("TWELVE_DATA_BASE_URL", "https://api.twelvedata.com")
    NEWS_PROVIDER: str = os.getenv("NEWS_PROVIDER", "http")                    # http | mock
    NEWS_API_KEY: str | None = os.getenv("NEWS_API_KEY")
    NEWS_API_BASE_URL: str = os.getenv("NEWS_API_BASE_URL", "https://newsapi.org/v2")
    SYMBOL_SEARCH_PROVIDER: str = os.getenv("SYMBOL_SEARCH_PROVIDER", "http")  # http | mock
    SYMBOL_SEARCH_BASE_URL: str = os.getenv("SYMBOL_SEARCH_BASE_URL", "https://query1.finance.yahoo.com")
    UPSTREAM_TIMEOUT_SECONDS: float = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "10"))

    # Prediction records
    PREDICTION_STORE: str = os.getenv("PREDICTION_STORE", "memory")  # memory | redis
    PREDICTIONS_LIMIT: int = int(os.getenv("PREDICTIONS_LIMIT", "100"))
    SWEEP_INTERVAL_SECONDS: float = float(os.getenv("SWEEP_INTERVAL_SECONDS", "300"))

    # Security
    API_KEY: str | None = os.getenv("API_KEY")
    RATE_LIMIT_RPM: int = int(os.getenv("RATE_LIMIT_RPM", "60"))

    # CORS
    ALLOW_ORIGINS: str = os.getenv("ALLOW_ORIGINS", "*")

    # Cache
    USE_REDIS: bool = os.getenv("USE_REDIS", "false").lower() == "true"
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Metrics
    PROMETHEUS_ENABLED: bool = os.getenv("PROMETHEUS_ENABLED", "true").lower() == "true"

settings = Settings()
