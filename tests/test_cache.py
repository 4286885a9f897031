import pytest
import pytest_asyncio

from acquisition_tracker import database
from acquisition_tracker.cache import MemoryCache, SqliteCache, TieredCache, acquisitions_cache_key


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest_asyncio.fixture
async def sqlite_cache(tmp_path):
    database_url = str(tmp_path / "cache.db")
    await database.create_tables(database_url)
    return SqliteCache(database_url)


def test_acquisitions_cache_key_is_deterministic():
    assert acquisitions_cache_key("u1", "L1") == acquisitions_cache_key("u1", "L1") == "acquisitions:u1:L1"


@pytest.mark.asyncio
async def test_memory_cache_expires_entries():
    clock = FakeClock()
    cache = MemoryCache(clock=clock)
    await cache.set("k", {"a": 1}, ttl=10)

    clock.now = 9
    assert await cache.get("k") == {"a": 1}
    clock.now = 10
    assert await cache.get("k") is None
    assert await cache.get("missing") is None


@pytest.mark.asyncio
async def test_sqlite_cache_round_trip(sqlite_cache):
    await sqlite_cache.set("k", {"p1": {"kind": "Trade"}}, ttl=60)
    assert await sqlite_cache.get("k") == {"p1": {"kind": "Trade"}}

    await sqlite_cache.set("k", {"p1": {"kind": "Waiver Wire"}}, ttl=60)
    assert await sqlite_cache.get("k") == {"p1": {"kind": "Waiver Wire"}}


@pytest.mark.asyncio
async def test_sqlite_cache_ignores_expired_entries(sqlite_cache):
    await sqlite_cache.set("k", [1, 2], ttl=-1)
    assert await sqlite_cache.get("k") is None


@pytest.mark.asyncio
async def test_tiered_cache_promotes_durable_hits(sqlite_cache):
    fast = MemoryCache()
    cache = TieredCache(fast, sqlite_cache, fast_ttl=30)

    await sqlite_cache.set("k", "durable", ttl=60)
    assert await fast.get("k") is None
    assert await cache.get("k") == "durable"
    assert await fast.get("k") == "durable"


@pytest.mark.asyncio
async def test_tiered_cache_writes_both_tiers(sqlite_cache):
    fast = MemoryCache()
    cache = TieredCache(fast, sqlite_cache)

    await cache.set("k", {"v": 1}, ttl=60)

    assert await fast.get("k") == {"v": 1}
    assert await sqlite_cache.get("k") == {"v": 1}


@pytest.mark.asyncio
async def test_memory_cache_sweeps_expired_entries_on_write():
    clock = FakeClock()
    cache = MemoryCache(clock=clock)
    await cache.set("old", 1, ttl=5)
    await cache.set("fresh", 2, ttl=50)

    clock.now = 10
    await cache.set("new", 3, ttl=5)

    assert set(cache._entries) == {"fresh", "new"}
    assert await cache.get("fresh") == 2
