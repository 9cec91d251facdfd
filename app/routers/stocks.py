import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from ..core.errors import StockAppError
from ..core.security import require_api_key, rate_limit
from ..core.utils import INTERVALS
from ..deps import get_stock_service
from ..schemas import StockSuggestion
from ..services.stock_service import StockService

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_api_key), Depends(rate_limit)])

@router.get("/news")
async def get_news(svc: StockService = Depends(get_stock_service)):
    try:
        return await svc.stock_news()
    except StockAppError as exc:
        logger.error("News API error: %s", exc)
        raise HTTPException(status_code=500, detail="Error fetching news")

@router.get("/stock-search")
async def stock_search(
    query: str | None = Query(default=None),
    svc: StockService = Depends(get_stock_service),
):
    if not query or not query.strip():
        raise HTTPException(status_code=400, detail="Search query is required")
    try:
        return await svc.search_symbols(query)
    except StockAppError as exc:
        logger.error("Error fetching stock symbols: %s", exc)
        raise HTTPException(status_code=500, detail="Error fetching stock symbols")

@router.get("/popular-stocks", response_model=list[StockSuggestion])
def popular_stocks(svc: StockService = Depends(get_stock_service)):
    return svc.popular()

@router.get("/stock-data")
async def stock_data(
    symbol: str | None = Query(default=None),
    interval: str = Query(default="1day"),
    svc: StockService = Depends(get_stock_service),
):
    if not symbol or not symbol.strip():
        raise HTTPException(status_code=400, detail="Stock symbol is required")
    if interval not in INTERVALS:
        raise HTTPException(status_code=400, detail="Unsupported interval")
    try:
        return await svc.stock_data(symbol.strip(), interval)
    except StockAppError as exc:
        logger.error("Stock data error for %s: %s", symbol, exc)
        raise HTTPException(status_code=500, detail="Error fetching stock data")
