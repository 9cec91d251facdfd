from datetime import datetime, timezone

from fastapi import Header, HTTPException, Request
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_429_TOO_MANY_REQUESTS

from .cache import rate_limit_cache
from .config import settings

def require_api_key(x_api_key: str | None = Header(default=None, alias="x-api-key")):
    """
    Header check for the provider proxy routes. Open when API_KEY is unset.
    User identity itself comes from the caller's auth layer as `userId`.
    """
    if settings.API_KEY and x_api_key != settings.API_KEY:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid API key")

def _route_path(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path

async def rate_limit(request: Request):
    """
    Per-minute budget for each proxy route, keyed by caller (API key or IP).
    Every route fans out to a different provider quota, so a client polling
    news does not eat into its stock-data budget.
    """
    rpm = max(1, settings.RATE_LIMIT_RPM)
    caller = request.headers.get("x-api-key") or (request.client.host if request.client else "unknown")
    minute_bucket = datetime.now(timezone.utc).strftime("%Y%m%d%H%M")
    count = await rate_limit_cache.incr(f"{_route_path(request)}:{caller}:{minute_bucket}")
    if count > rpm:
        raise HTTPException(
            status_code=HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded",
            headers={"Retry-After": str(60 - datetime.now(timezone.utc).second)},
        )
