"""Dependency providers; everything is built once in the app lifespan."""
from fastapi import Request

from .services.prediction_service import PredictionService
from .services.reconciliation_service import ReconciliationService, SweepScheduler
from .services.stock_service import StockService


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise RuntimeError(f"{name} not initialised")
    return value


def get_stock_service(request: Request) -> StockService:
    return _state(request, "stock_service")


def get_prediction_service(request: Request) -> PredictionService:
    return _state(request, "prediction_service")


def get_reconciliation_service(request: Request) -> ReconciliationService:
    return _state(request, "reconciliation_service")


def get_sweep_scheduler(request: Request) -> SweepScheduler:
    return _state(request, "sweep_scheduler")
