import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from . import database
from .config import DATABASE_URL

logger = logging.getLogger(__name__)

_DEFAULT_PROMOTION_TTL = 60 * 60  # 1 hour


class Cache(Protocol):
    """Key/value contract shared by the resolver and the Sleeper client.

    Values must be JSON-serializable. Writes are last-write-wins.
    """

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any, ttl: float) -> None:
        ...


class MemoryCache:
    """Short-lived in-process cache, lost when the process exits."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: Any, ttl: float) -> None:
        now = self._clock()
        self._sweep(now)
        self._entries[key] = (now + ttl, value)

    def _sweep(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()


class SqliteCache:
    """Durable cache stored in the ``cache_entries`` table."""

    def __init__(self, database_url: str = DATABASE_URL):
        self.database_url = database_url

    async def get(self, key: str) -> Optional[Any]:
        db = await database.get_db_connection(self.database_url)
        try:
            cursor = await db.execute("SELECT data, expires_at FROM cache_entries WHERE key = ?", (key,))
            row = await cursor.fetchone()
            if not row:
                return None

            if time.time() >= row["expires_at"]:
                await db.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
                await db.commit()
                return None

            try:
                return json.loads(row["data"])
            except json.JSONDecodeError:
                logger.warning("Discarding unreadable cache entry %s", key)
                await db.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
                await db.commit()
                return None
        finally:
            await db.close()

    async def set(self, key: str, value: Any, ttl: float) -> None:
        db = await database.get_db_connection(self.database_url)
        try:
            await db.execute(
                "INSERT OR REPLACE INTO cache_entries (key, data, expires_at) VALUES (?, ?, ?)",
                (key, json.dumps(value), time.time() + ttl),
            )
            await db.commit()
        finally:
            await db.close()


class TieredCache:
    """Checks the fast tier first, then the durable tier; writes go to both."""

    def __init__(self, fast: Cache, durable: Cache, fast_ttl: Optional[float] = None):
        self.fast = fast
        self.durable = durable
        self.fast_ttl = fast_ttl

    async def get(self, key: str) -> Optional[Any]:
        value = await self.fast.get(key)
        if value is not None:
            return value

        value = await self.durable.get(key)
        if value is not None:
            logger.debug("Promoting durable cache hit for %s", key)
            await self.fast.set(key, value, self.fast_ttl or _DEFAULT_PROMOTION_TTL)
        return value

    async def set(self, key: str, value: Any, ttl: float) -> None:
        await self.fast.set(key, value, min(ttl, self.fast_ttl) if self.fast_ttl else ttl)
        await self.durable.set(key, value, ttl)


def acquisitions_cache_key(participant_id: str, league_id: str) -> str:
    return f"acquisitions:{participant_id}:{league_id}"


def league_facts_cache_key(league_id: str) -> str:
    return f"league_facts:{league_id}"


def url_cache_key(url: str) -> str:
    return f"url:{url}"
