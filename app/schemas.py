from datetime import datetime
from typing import Any, Optional

from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .core.errors import ProviderParseError, UpstreamError

# ----- API bodies -----

def _scalar_as_string(v):
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v

class StorePredictionRequest(BaseModel):
    """
    Body of POST /api/store-prediction. Unknown fields are kept on the record;
    server-owned fields are dropped in `record_fields`.
    """
    model_config = ConfigDict(extra="allow")

    userId: Optional[str] = None
    symbol: Optional[str] = None
    interval: Optional[str] = None
    lastPrice: Optional[str] = None
    predictedPrice: Optional[str] = None

    @field_validator("userId", "lastPrice", "predictedPrice", mode="before")
    @classmethod
    def _as_string(cls, v):
        # Front ends post prices and ids as numbers or strings; store strings
        return _scalar_as_string(v)

    def record_fields(self) -> dict[str, Any]:
        data = self.model_dump(exclude_none=True)
        for owned in ("id", "createdAt", "actualPrice"):
            data.pop(owned, None)
        return data

class UserRequest(BaseModel):
    userId: Optional[str] = None

    @field_validator("userId", mode="before")
    @classmethod
    def _as_string(cls, v):
        return _scalar_as_string(v)

def parse_body(model: type[BaseModel], body: Any):
    """
    Validate a raw JSON body. A body that is not an object is treated as
    absent, so routes answer it with their own missing-user error.
    """
    if not isinstance(body, dict):
        return None
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc

class MessageResponse(BaseModel):
    message: str

class UpdatedPrediction(BaseModel):
    id: str
    symbol: str
    actualPrice: str

class UpdateActualPricesResponse(BaseModel):
    message: str
    updatedCount: int
    updatedPredictions: list[UpdatedPrediction]

class WatchResponse(BaseModel):
    message: str
    watching: bool

class StockSuggestion(BaseModel):
    symbol: str
    name: str

# ----- Stored records -----

class PredictionRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    userId: str
    symbol: Optional[str] = None
    interval: Optional[str] = None
    lastPrice: Optional[str] = None
    predictedPrice: Optional[str] = None
    createdAt: datetime
    actualPrice: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.actualPrice is not None

# ----- Provider payloads -----

class TimeSeriesValue(BaseModel):
    model_config = ConfigDict(extra="allow")

    datetime: Optional[str] = None
    close: str

class TimeSeriesPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    meta: Optional[dict[str, Any]] = None
    values: list[TimeSeriesValue] = Field(min_length=1)
    status: Optional[str] = None

    def closes(self) -> list[float]:
        """Closing prices, most recent first."""
        try:
            return [float(v.close) for v in self.values]
        except ValueError as exc:
            raise ProviderParseError("time_series", f"non-numeric close: {exc}") from exc

class IndicatorPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    meta: Optional[dict[str, Any]] = None
    values: list[dict[str, Any]] = Field(default_factory=list)
    status: Optional[str] = None

class QuoteItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    symbol: str
    shortname: Optional[str] = None
    longname: Optional[str] = None

    def suggestion(self) -> StockSuggestion:
        return StockSuggestion(symbol=self.symbol, name=self.shortname or self.longname or self.symbol)

class SymbolSearchPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    quotes: Optional[list[QuoteItem]] = None

class NewsPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: Optional[str] = None
    totalResults: Optional[int] = None
    articles: list[dict[str, Any]] = Field(default_factory=list)

def parse_payload(model: type[BaseModel], provider: str, data: Any):
    """Validate a provider JSON body, raising ProviderParseError on mismatch."""
    if isinstance(data, dict) and data.get("status") == "error":
        raise UpstreamError(provider, str(data.get("message") or "provider reported an error"))
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ProviderParseError(provider, f"unexpected payload shape ({exc.error_count()} errors)") from exc
