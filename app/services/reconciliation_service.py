"""
Filling in the actual price of predictions whose horizon has passed.

`ReconciliationService.sweep` does one pass for one user. `SweepScheduler`
repeats it on a timer while the user still has unresolved records; the
application lifespan owns the scheduler and cancels everything on shutdown.
"""
import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from ..core.errors import AuthenticationRequiredError, ConfigurationError, UpstreamError
from ..core.metrics import PREDICTIONS_RECONCILED
from ..core.utils import interval_to_ms
from ..data.base import MarketDataClient, PredictionStore
from ..schemas import PredictionRecord, UpdatedPrediction

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_due(record: PredictionRecord, now: datetime) -> bool:
    """True once the record's interval has fully elapsed since it was made."""
    if record.is_resolved:
        return False
    created = record.createdAt
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    horizon = timedelta(milliseconds=interval_to_ms(record.interval or ""))
    return now - created >= horizon


class ReconciliationService:
    def __init__(self, store: PredictionStore, market: MarketDataClient,
                 clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.market = market
        self.clock = clock

    async def due_records(self, user_id: str) -> List[PredictionRecord]:
        now = self.clock()
        return [r for r in await self.store.list_unresolved(user_id) if is_due(r, now)]

    async def _latest_close(self, record: PredictionRecord) -> str:
        series = await self.market.time_series(record.symbol, record.interval, 1)
        close = series.values[0].close
        if not close:
            raise UpstreamError("time_series", "empty close")
        return close

    async def sweep(self, user_id: Optional[str]) -> List[UpdatedPrediction]:
        """
        One pass over the user's due records, one provider call at a time.
        A record whose fetch or parse fails is skipped; the rest still run.
        """
        if not user_id:
            raise AuthenticationRequiredError("missing user id")
        if not self.market.configured:
            raise ConfigurationError("time series API key missing")

        updated: List[UpdatedPrediction] = []
        for record in await self.due_records(user_id):
            if not record.symbol or not record.interval:
                logger.warning("Prediction %s has no symbol/interval, skipping", record.id)
                continue
            try:
                actual = await self._latest_close(record)
            except UpstreamError as exc:
                logger.warning("Could not fetch actual price for prediction %s: %s", record.id, exc)
                continue
            # Re-read so a concurrent sweep's write is not overwritten
            current = await self.store.get(record.id)
            if current is None or current.is_resolved:
                continue
            await self.store.set_actual_price(record.id, actual)
            PREDICTIONS_RECONCILED.inc()
            updated.append(UpdatedPrediction(id=record.id, symbol=record.symbol, actualPrice=actual))

        if updated:
            logger.info("Reconciled %d prediction(s) for user %s", len(updated), user_id)
        return updated

    async def has_unresolved(self, user_id: str) -> bool:
        return bool(await self.store.list_unresolved(user_id))


class SweepScheduler:
    """
    Per-user recurring sweeps. Each watched user gets one asyncio.Task which
    sweeps, sleeps `interval_seconds`, and exits by itself once nothing is
    left unresolved.
    """

    def __init__(self, service: ReconciliationService, interval_seconds: float = 300):
        self.service = service
        self.interval_seconds = interval_seconds
        self._tasks: Dict[str, asyncio.Task] = {}

    def is_watching(self, user_id: str) -> bool:
        task = self._tasks.get(user_id)
        return task is not None and not task.done()

    def start(self, user_id: str) -> asyncio.Task:
        if self.is_watching(user_id):
            return self._tasks[user_id]
        task = asyncio.create_task(self._run(user_id), name=f"sweep:{user_id}")
        self._tasks[user_id] = task
        task.add_done_callback(lambda t, uid=user_id: self._forget(uid, t))
        return task

    def _forget(self, user_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(user_id) is task:
            del self._tasks[user_id]

    async def stop(self, user_id: str) -> bool:
        task = self._tasks.pop(user_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        return True

    async def shutdown(self) -> None:
        for user_id in list(self._tasks):
            await self.stop(user_id)

    async def _run(self, user_id: str) -> None:
        while True:
            try:
                if not await self.service.has_unresolved(user_id):
                    logger.info("No unresolved predictions for %s, stopping sweeps", user_id)
                    return
                await self.service.sweep(user_id)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Scheduled sweep failed for %s", user_id)
            await asyncio.sleep(self.interval_seconds)
