import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response

from ..core.errors import AuthenticationRequiredError, ConfigurationError
from ..deps import get_prediction_service, get_reconciliation_service, get_sweep_scheduler
from ..schemas import (
    MessageResponse,
    parse_body,
    StorePredictionRequest,
    UpdateActualPricesResponse,
    UserRequest,
    WatchResponse,
)
from ..services.prediction_service import PredictionService
from ..services.reconciliation_service import ReconciliationService, SweepScheduler

logger = logging.getLogger(__name__)

router = APIRouter()

# The history page may be served from another origin and calls this with credentials
SWEEP_CORS_HEADERS = {
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,OPTIONS,PATCH,DELETE,POST,PUT",
    "Access-Control-Allow-Headers": (
        "X-CSRF-Token, X-Requested-With, Accept, Accept-Version, Content-Length, "
        "Content-MD5, Content-Type, Date, X-Api-Version"
    ),
}

@router.get("/get-predictions")
async def get_predictions(
    userId: str | None = Query(default=None),
    svc: PredictionService = Depends(get_prediction_service),
):
    if not userId:
        raise HTTPException(status_code=400, detail="User ID is required")
    try:
        return await svc.history(userId)
    except Exception as exc:
        logger.exception("Error fetching predictions")
        raise HTTPException(
            status_code=500,
            detail={"message": "Error fetching predictions", "details": str(exc) or type(exc).__name__},
        )

@router.post("/store-prediction", response_model=MessageResponse)
async def store_prediction(
    payload: Any = Body(default=None),
    svc: PredictionService = Depends(get_prediction_service),
):
    body = parse_body(StorePredictionRequest, payload)
    if body is None or not body.userId:
        raise HTTPException(status_code=400, detail="User ID is required")
    try:
        await svc.store_prediction(body)
    except Exception:
        logger.exception("Error storing prediction")
        raise HTTPException(status_code=500, detail="Error storing prediction")
    return {"message": "Prediction stored successfully"}

@router.options("/update-actual-prices")
def update_actual_prices_preflight():
    return Response(status_code=200, headers=SWEEP_CORS_HEADERS)

@router.post("/update-actual-prices", response_model=UpdateActualPricesResponse)
async def update_actual_prices(
    response: Response,
    payload: Any = Body(default=None),
    svc: ReconciliationService = Depends(get_reconciliation_service),
):
    response.headers.update(SWEEP_CORS_HEADERS)
    body = parse_body(UserRequest, payload)
    try:
        updated = await svc.sweep(body.userId if body else None)
    except AuthenticationRequiredError:
        raise HTTPException(status_code=401, detail="Authentication required", headers=SWEEP_CORS_HEADERS)
    except ConfigurationError:
        raise HTTPException(status_code=500, detail="API key not configured", headers=SWEEP_CORS_HEADERS)
    except Exception:
        logger.exception("Error updating predictions")
        raise HTTPException(status_code=500, detail="Error updating predictions", headers=SWEEP_CORS_HEADERS)
    return {
        "message": "Predictions updated successfully",
        "updatedCount": len(updated),
        "updatedPredictions": updated,
    }

@router.post("/watch-predictions", response_model=WatchResponse)
async def watch_predictions(
    payload: Any = Body(default=None),
    scheduler: SweepScheduler = Depends(get_sweep_scheduler),
):
    body = parse_body(UserRequest, payload)
    if body is None or not body.userId:
        raise HTTPException(status_code=401, detail="Authentication required")
    already = scheduler.is_watching(body.userId)
    scheduler.start(body.userId)
    return {"message": "Already watching" if already else "Watching predictions", "watching": True}

@router.delete("/watch-predictions", response_model=WatchResponse)
async def unwatch_predictions(
    userId: str | None = Query(default=None),
    scheduler: SweepScheduler = Depends(get_sweep_scheduler),
):
    if not userId:
        raise HTTPException(status_code=401, detail="Authentication required")
    stopped = await scheduler.stop(userId)
    return {"message": "Stopped watching" if stopped else "Not watching", "watching": False}
