"""
Prediction record storage.

Two backends share the same contract: the store owns `id` and `createdAt`,
reads are always scoped to one user, and listings come back newest first.
"""
import json
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import redis.asyncio as aioredis

from .base import PredictionStore
from ..core.config import settings
from ..schemas import PredictionRecord

logger = logging.getLogger(__name__)


class _Clock:
    """UTC timestamps that strictly increase across writes in this process."""

    def __init__(self):
        self._last: Optional[datetime] = None

    def next(self) -> datetime:
        now = datetime.now(timezone.utc)
        if self._last is not None and now <= self._last:
            now = self._last + timedelta(microseconds=1)
        self._last = now
        return now


def newest_first(records: List[PredictionRecord], limit: int) -> List[PredictionRecord]:
    return sorted(records, key=lambda r: r.createdAt, reverse=True)[:max(0, limit)]


def _new_record(fields: Dict[str, Any], created_at: datetime) -> PredictionRecord:
    data = {k: v for k, v in fields.items() if k not in ("id", "createdAt", "actualPrice")}
    return PredictionRecord(**data, id=uuid.uuid4().hex, createdAt=created_at)


class InMemoryPredictionStore(PredictionStore):
    """Process-local store for development and tests."""

    def __init__(self):
        self._records: Dict[str, PredictionRecord] = {}
        self._clock = _Clock()

    async def connect(self) -> None:
        return None

    async def close(self) -> None:
        return None

    async def create(self, fields: Dict[str, Any]) -> PredictionRecord:
        record = _new_record(fields, self._clock.next())
        self._records[record.id] = record
        return record.model_copy()

    async def list_by_user(self, user_id: str, limit: int = 100) -> List[PredictionRecord]:
        mine = [r.model_copy() for r in self._records.values() if r.userId == user_id]
        return newest_first(mine, limit)

    async def list_unresolved(self, user_id: str) -> List[PredictionRecord]:
        return [r.model_copy() for r in self._records.values()
                if r.userId == user_id and not r.is_resolved]

    async def get(self, record_id: str) -> Optional[PredictionRecord]:
        record = self._records.get(record_id)
        return record.model_copy() if record else None

    async def set_actual_price(self, record_id: str, value: str) -> None:
        record = self._records.get(record_id)
        if record is None:
            raise KeyError(record_id)
        record.actualPrice = value


class RedisPredictionStore(PredictionStore):
    """
    One hash per record (`prediction:{id}`): the immutable document as JSON in
    `doc`, plus `actualPrice` as its own field so reconciliation is a single
    HSET. A sorted set per user (`predictions:user:{userId}`) indexes records
    by creation time.
    """

    def __init__(self, url: str, client=None):
        self.url = url
        self.client = client
        self._clock = _Clock()

    async def connect(self) -> None:
        if self.client is None:
            self.client = aioredis.from_url(self.url, decode_responses=True)
        await self.client.ping()
        logger.info("Connected to Redis prediction store")

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None

    @staticmethod
    def _key(record_id: str) -> str:
        return f"prediction:{record_id}"

    @staticmethod
    def _user_key(user_id: str) -> str:
        return f"predictions:user:{user_id}"

    @staticmethod
    def _decode(h: Dict[str, str]) -> Optional[PredictionRecord]:
        if not h or "doc" not in h:
            return None
        doc = json.loads(h["doc"])
        if h.get("actualPrice") is not None:
            doc["actualPrice"] = h["actualPrice"]
        return PredictionRecord.model_validate(doc)

    async def create(self, fields: Dict[str, Any]) -> PredictionRecord:
        record = _new_record(fields, self._clock.next())
        doc = record.model_dump(mode="json", exclude_none=True)
        async with self.client.pipeline(transaction=True) as pipe:
            pipe.hset(self._key(record.id), mapping={"doc": json.dumps(doc)})
            pipe.zadd(self._user_key(record.userId), {record.id: record.createdAt.timestamp()})
            await pipe.execute()
        return record

    async def _load(self, ids: List[str]) -> List[PredictionRecord]:
        if not ids:
            return []
        async with self.client.pipeline(transaction=False) as pipe:
            for record_id in ids:
                pipe.hgetall(self._key(record_id))
            hashes = await pipe.execute()
        return [r for r in (self._decode(h) for h in hashes) if r is not None]

    async def list_by_user(self, user_id: str, limit: int = 100) -> List[PredictionRecord]:
        if limit <= 0:
            return []
        ids = await self.client.zrevrange(self._user_key(user_id), 0, limit - 1)
        records = [r for r in await self._load(ids) if r.userId == user_id]
        return newest_first(records, limit)

    async def list_unresolved(self, user_id: str) -> List[PredictionRecord]:
        ids = await self.client.zrange(self._user_key(user_id), 0, -1)
        return [r for r in await self._load(ids) if r.userId == user_id and not r.is_resolved]

    async def get(self, record_id: str) -> Optional[PredictionRecord]:
        return self._decode(await self.client.hgetall(self._key(record_id)))

    async def set_actual_price(self, record_id: str, value: str) -> None:
        if not await self.client.exists(self._key(record_id)):
            raise KeyError(record_id)
        await self.client.hset(self._key(record_id), "actualPrice", value)


def prediction_store() -> PredictionStore:
    if settings.PREDICTION_STORE == "redis":
        return RedisPredictionStore(settings.REDIS_URL)
    return InMemoryPredictionStore()
