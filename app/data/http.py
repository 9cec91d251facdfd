import logging
from typing import Any

import httpx

from ..core.errors import UpstreamError
from ..core.metrics import UPSTREAM_ERRORS

logger = logging.getLogger(__name__)

class ProviderHttp:
    """
    One long-lived httpx.AsyncClient per provider. Created in the app lifespan
    and closed on shutdown; tests pass a client built on httpx.MockTransport.
    """
    def __init__(self, provider: str, base_url: str, timeout: float | None = 10,
                 headers: dict[str, str] | None = None, client: httpx.AsyncClient | None = None):
        self.provider = provider
        self.client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"), timeout=timeout, headers=headers
        )

    async def get_json(self, path: str, params: dict[str, Any]) -> Any:
        try:
            r = await self.client.get(path, params=params)
        except httpx.HTTPError as exc:
            UPSTREAM_ERRORS.labels(provider=self.provider).inc()
            raise UpstreamError(self.provider, f"request failed: {type(exc).__name__}") from exc
        if r.status_code >= 400:
            UPSTREAM_ERRORS.labels(provider=self.provider).inc()
            raise UpstreamError(self.provider, f"HTTP {r.status_code}")
        try:
            return r.json()
        except ValueError as exc:
            UPSTREAM_ERRORS.labels(provider=self.provider).inc()
            raise UpstreamError(self.provider, "response was not JSON") from exc

    async def aclose(self) -> None:
        await self.client.aclose()
