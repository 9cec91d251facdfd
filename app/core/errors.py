"""
Domain errors and the handlers that turn errors into JSON responses.

Every error body is `{"message": ...}`. Routers catch domain errors and raise
HTTPException with their own generic message; anything that escapes a router
lands in `handle_app_error` so clients never see internals.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class StockAppError(Exception):
    status_code = 500
    public_message = "Internal server error"


class UpstreamError(StockAppError):
    """A data provider answered with a non-OK status or could not be reached."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ProviderParseError(UpstreamError):
    """A provider payload did not match the expected shape."""


class PredictionFailedError(StockAppError):
    public_message = "Failed to generate price prediction"


class AuthenticationRequiredError(StockAppError):
    status_code = 401
    public_message = "Authentication required"


class ConfigurationError(StockAppError):
    public_message = "API key not configured"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StockAppError)
    async def handle_app_error(_request: Request, exc: StockAppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Unhandled %s: %s", type(exc).__name__, exc)
        return JSONResponse(status_code=exc.status_code, content={"message": exc.public_message})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        content = exc.detail if isinstance(exc.detail, dict) else {"message": exc.detail}
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        # The error list echoes raw input, so only its size is logged
        logger.info("Rejected %s %s: %d validation errors", request.method, request.url.path, len(exc.errors()))
        return JSONResponse(status_code=400, content={"message": "Invalid request"})
