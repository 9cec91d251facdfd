import logging
from typing import Any

from ..core.config import settings
from ..core.metrics import PREDICTIONS_STORED
from ..core.utils import accuracy_pct
from ..data.base import PredictionStore
from ..schemas import PredictionRecord, StorePredictionRequest

logger = logging.getLogger(__name__)

def record_view(record: PredictionRecord) -> dict[str, Any]:
    """JSON shape of a record for the history table."""
    out = record.model_dump(mode="json", exclude_none=True)
    if record.actualPrice is not None:
        acc = accuracy_pct(record.predictedPrice, record.actualPrice)
        if acc is not None:
            out["accuracy"] = acc
    return out

class PredictionService:
    def __init__(self, store: PredictionStore, limit: int | None = None):
        self.store = store
        self.limit = limit if limit is not None else settings.PREDICTIONS_LIMIT

    async def store_prediction(self, body: StorePredictionRequest) -> PredictionRecord:
        record = await self.store.create(body.record_fields())
        PREDICTIONS_STORED.inc()
        logger.info("Stored prediction %s for %s (%s)", record.id, record.symbol, record.interval)
        return record

    async def history(self, user_id: str) -> list[dict[str, Any]]:
        records = await self.store.list_by_user(user_id, limit=self.limit)
        return [record_view(r) for r in records]
