"""
Tests for the ephemeral stores.

Tests cover:
- Basic put/get/delete semantics of the non-expiring store
- Typed reads of the Blob/Timestamp variant
- TTL expiry enforced on read and by the background sweeper
"""
import asyncio
import pytest

from navigator_clipboard.exceptions import NotFound, StoreError
from navigator_clipboard.storage import (
    Blob,
    MemoryStore,
    Timestamp,
    TTLStore,
    create_store,
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ttl_store(clock):
    return TTLStore(ttl=60, check_interval=10, clock=clock)


class TestMemoryStore:
    """Tests for the non-expiring store."""

    async def test_put_then_get(self, store):
        await store.put("data", Blob(b"value"))
        assert await store.get("data") == Blob(b"value")

    async def test_missing_key(self, store):
        with pytest.raises(NotFound) as exc:
            await store.get("data")
        assert exc.value.key == "data"

    async def test_last_write_wins(self, store):
        await store.put("data", Blob(b"first"))
        await store.put("data", Blob(b"second"))
        assert await store.get_blob("data") == b"second"

    async def test_delete(self, store):
        await store.put("data", Blob(b"value"))
        await store.delete("data")
        assert await store.contains("data") is False
        # deleting a missing key is a no-op
        await store.delete("data")

    async def test_keys(self, store):
        await store.put("data", Blob(b"value"))
        await store.put("lastUpdated", Timestamp(1))
        assert sorted(await store.keys()) == ["data", "lastUpdated"]
        assert len(store) == 2

    async def test_typed_reads(self, store):
        await store.put("salt", Blob(b"\x00" * 128))
        await store.put("lastUpdated", Timestamp(1_600_000_000_000_000_000))
        assert await store.get_blob("salt") == b"\x00" * 128
        assert await store.get_timestamp("lastUpdated") == 1_600_000_000_000_000_000

    async def test_type_mismatch_is_store_error(self, store):
        await store.put("data", Timestamp(1))
        with pytest.raises(StoreError):
            await store.get_blob("data")
        await store.put("lastUpdated", Blob(b"1"))
        with pytest.raises(StoreError):
            await store.get_timestamp("lastUpdated")

    async def test_rejects_untagged_values(self, store):
        with pytest.raises(StoreError):
            await store.put("data", b"raw bytes")

    async def test_concurrent_writers(self, store):
        await asyncio.gather(*(
            store.put(f"key-{i}", Blob(bytes([i]))) for i in range(50)
        ))
        assert len(await store.keys()) == 50


class TestTTLStore:
    """Tests for the expiring store."""

    async def test_get_before_expiry(self, ttl_store, clock):
        await ttl_store.put("data", Blob(b"value"))
        clock.advance(59.9)
        assert await ttl_store.get_blob("data") == b"value"

    async def test_expired_on_read_without_sweep(self, ttl_store, clock):
        await ttl_store.put("data", Blob(b"value"))
        clock.advance(60)
        with pytest.raises(NotFound):
            await ttl_store.get("data")
        assert len(ttl_store) == 0

    async def test_overwrite_resets_expiry(self, ttl_store, clock):
        await ttl_store.put("data", Blob(b"first"))
        clock.advance(50)
        await ttl_store.put("data", Blob(b"second"))
        clock.advance(50)
        assert await ttl_store.get_blob("data") == b"second"
        clock.advance(10)
        assert await ttl_store.contains("data") is False

    async def test_keys_skip_expired(self, ttl_store, clock):
        await ttl_store.put("data", Blob(b"value"))
        clock.advance(30)
        await ttl_store.put("salt", Blob(b"salt"))
        clock.advance(30)
        assert await ttl_store.keys() == ["salt"]

    async def test_len_skips_expired_before_sweep(self, ttl_store, clock):
        await ttl_store.put("data", Blob(b"value"))
        await ttl_store.put("lastUpdated", Timestamp(1))
        clock.advance(30)
        await ttl_store.put("salt", Blob(b"salt"))
        assert len(ttl_store) == 3
        clock.advance(30)
        assert len(ttl_store) == 1

    async def test_evict_expired(self, ttl_store, clock):
        await ttl_store.put("data", Blob(b"value"))
        await ttl_store.put("lastUpdated", Timestamp(1))
        clock.advance(61)
        await ttl_store.put("salt", Blob(b"salt"))
        assert await ttl_store.evict_expired() == 2
        assert len(ttl_store) == 1

    async def test_background_sweeper(self):
        clock = FakeClock()
        store = TTLStore(ttl=1, check_interval=0.01, clock=clock)
        await store.put("data", Blob(b"value"))
        await store.start()
        try:
            clock.advance(2)
            for _ in range(100):
                if len(store) == 0:
                    break
                await asyncio.sleep(0.01)
            assert len(store) == 0
        finally:
            await store.stop()
        assert store._sweeper is None

    async def test_stop_without_start(self, ttl_store):
        await ttl_store.stop()

    def test_invalid_ttl(self):
        with pytest.raises(ValueError):
            TTLStore(ttl=0)

    def test_check_interval_defaults_to_ttl(self):
        assert TTLStore(ttl=30).check_interval == 30


class TestCreateStore:
    """Tests for the store factory."""

    def test_zero_ttl_disables_expiry(self):
        store = create_store(0)
        assert type(store) is MemoryStore

    def test_ttl_store(self):
        store = create_store(3600, 60)
        assert isinstance(store, TTLStore)
        assert store.ttl == 3600
        assert store.check_interval == 60
