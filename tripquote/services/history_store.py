"""History stores — persist the encoded price history between sessions.

Each store only moves an opaque text blob; encoding and decoding belong to the
ledger module. A blob that fails to decode is discarded and replaced with an
empty history, never surfaced as an error.
"""

import logging
from abc import ABC, abstractmethod

import redis.asyncio as redis
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tripquote.config import settings
from tripquote.models.history import HistorySnapshot
from tripquote.services.ledger import LedgerDecodeError, PriceHistoryLedger, decode, encode

logger = logging.getLogger(__name__)


class HistoryStore(ABC):
    """load() -> ledger, save(ledger); subclasses provide blob I/O."""

    def __init__(self, key: str | None = None, capacity: int | None = None):
        self.key = key or settings.history_key
        self.capacity = capacity or settings.history_capacity

    @abstractmethod
    async def _read_blob(self) -> str | None: ...

    @abstractmethod
    async def _write_blob(self, blob: str, entry_count: int) -> None: ...

    @abstractmethod
    async def _delete_blob(self) -> None: ...

    async def load(self) -> PriceHistoryLedger:
        blob = await self._read_blob()
        if blob is None:
            return PriceHistoryLedger(capacity=self.capacity)
        try:
            return decode(blob, capacity=self.capacity)
        except LedgerDecodeError as e:
            logger.warning(f"Discarding corrupt price history under {self.key!r}: {e}")
            await self._delete_blob()
            return PriceHistoryLedger(capacity=self.capacity)

    async def save(self, ledger: PriceHistoryLedger) -> None:
        await self._write_blob(encode(ledger), len(ledger))

    async def clear(self) -> None:
        await self._delete_blob()

    async def close(self) -> None:
        pass


class MemoryHistoryStore(HistoryStore):
    """Process-local store; history is lost on restart."""

    def __init__(self, key: str | None = None, capacity: int | None = None, blob: str | None = None):
        super().__init__(key, capacity)
        self.blob = blob

    async def _read_blob(self) -> str | None:
        return self.blob

    async def _write_blob(self, blob: str, entry_count: int) -> None:
        self.blob = blob

    async def _delete_blob(self) -> None:
        self.blob = None


class DatabaseHistoryStore(HistoryStore):
    """Keeps the blob in the history_snapshots table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        key: str | None = None,
        capacity: int | None = None,
    ):
        super().__init__(key, capacity)
        if session_factory is None:
            from tripquote.database import async_session_factory
            session_factory = async_session_factory
        self._session_factory = session_factory

    async def _read_blob(self) -> str | None:
        async with self._session_factory() as db:
            result = await db.execute(select(HistorySnapshot.blob).where(HistorySnapshot.key == self.key))
            return result.scalar_one_or_none()

    async def _write_blob(self, blob: str, entry_count: int) -> None:
        async with self._session_factory() as db:
            snapshot = await db.get(HistorySnapshot, self.key)
            if snapshot is None:
                db.add(HistorySnapshot(key=self.key, blob=blob, entry_count=entry_count))
            else:
                snapshot.blob = blob
                snapshot.entry_count = entry_count
            await db.commit()

    async def _delete_blob(self) -> None:
        async with self._session_factory() as db:
            await db.execute(delete(HistorySnapshot).where(HistorySnapshot.key == self.key))
            await db.commit()


class RedisHistoryStore(HistoryStore):
    """Keeps the blob under a single Redis key, without expiry."""

    def __init__(
        self,
        client: redis.Redis | None = None,
        redis_url: str | None = None,
        key: str | None = None,
        capacity: int | None = None,
    ):
        super().__init__(key, capacity)
        self._redis = client
        self._redis_url = redis_url or settings.redis_url

    def _get_redis(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._redis

    async def _read_blob(self) -> str | None:
        raw = await self._get_redis().get(self.key)
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        return raw

    async def _write_blob(self, blob: str, entry_count: int) -> None:
        await self._get_redis().set(self.key, blob)

    async def _delete_blob(self) -> None:
        await self._get_redis().delete(self.key)

    async def close(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None


def build_history_store(backend: str | None = None) -> HistoryStore:
    """Create the store selected by settings.history_backend."""
    backend = (backend or settings.history_backend).lower()
    if backend == "database":
        return DatabaseHistoryStore()
    if backend == "redis":
        return RedisHistoryStore()
    if backend == "memory":
        return MemoryHistoryStore()
    raise ValueError(f"Unknown history backend: {backend!r}")
