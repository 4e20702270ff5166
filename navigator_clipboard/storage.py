"""
Ephemeral Store: in-memory key/value container owned by the relay.

Provides the storage API used by the relay handlers:
- ``put(key, value)``: store (or replace) a value
- ``get(key)``: return a value or raise ``NotFound``
- ``delete(key)``: drop a value
- ``get_blob(key)`` / ``get_timestamp(key)``: typed reads

Values are a tagged variant (``Blob`` or ``Timestamp``). Nothing survives a
process restart. All access goes through a single ``asyncio.Lock``.
"""
import time
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from .exceptions import NotFound, StoreError

logger = logging.getLogger("navigator.clipboard.storage")

Clock = Callable[[], float]


@dataclass(frozen=True)
class Blob:
    """Opaque bytes (clipboard data, salt)."""
    data: bytes


@dataclass(frozen=True)
class Timestamp:
    """Nanoseconds since the epoch."""
    value: int


StoreValue = Union[Blob, Timestamp]


@dataclass
class StoreEntry:
    value: StoreValue
    expires_at: Optional[float] = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class MemoryStore:
    """Non-expiring store: entries live until the process exits."""

    def __init__(self):
        self._entries: dict[str, StoreEntry] = {}
        self._lock = asyncio.Lock()

    def _new_entry(self, value: StoreValue) -> StoreEntry:
        return StoreEntry(value)

    def _alive(self, key: str) -> Optional[StoreEntry]:
        """Return the live entry for key. Must not be interleaved with an await."""
        return self._entries.get(key)

    async def put(self, key: str, value: StoreValue) -> None:
        if not isinstance(value, (Blob, Timestamp)):
            raise StoreError(f"unsupported value type for {key}: {type(value).__name__}")
        async with self._lock:
            self._entries[key] = self._new_entry(value)

    async def get(self, key: str) -> StoreValue:
        """Return the value stored under ``key``.

        Raises:
            NotFound: If the key was never set, was deleted or has expired.
        """
        async with self._lock:
            entry = self._alive(key)
        if entry is None:
            raise NotFound(key)
        return entry.value

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    async def contains(self, key: str) -> bool:
        async with self._lock:
            return self._alive(key) is not None

    async def keys(self) -> list[str]:
        async with self._lock:
            return [k for k in list(self._entries) if self._alive(k) is not None]

    async def get_blob(self, key: str) -> bytes:
        """Return a ``Blob`` payload.

        Raises:
            NotFound: If the key is absent.
            StoreError: If the key holds another kind of value.
        """
        value = await self.get(key)
        if not isinstance(value, Blob):
            raise StoreError(f"The cached {key} is unknown type: {type(value).__name__}")
        return value.data

    async def get_timestamp(self, key: str) -> int:
        """Return a ``Timestamp`` payload (see :meth:`get_blob`)."""
        value = await self.get(key)
        if not isinstance(value, Timestamp):
            raise StoreError(f"The cached {key} is unknown type: {type(value).__name__}")
        return value.value

    async def start(self) -> None:
        """Nothing to run for a non-expiring store."""

    async def stop(self) -> None:
        """Nothing to stop for a non-expiring store."""

    def __len__(self) -> int:
        return sum(1 for key in list(self._entries) if self._alive(key) is not None)


class TTLStore(MemoryStore):
    """Store whose entries expire ``ttl`` seconds after their last write.

    Expiry is enforced lazily on every read, and a background sweeper
    started with :meth:`start` evicts expired entries every
    ``check_interval`` seconds. Both use ``StoreEntry.is_expired`` with the
    same clock, so they never disagree on whether a key is alive.
    """

    def __init__(
        self,
        ttl: float,
        check_interval: Optional[float] = None,
        clock: Clock = time.monotonic,
    ):
        super().__init__()
        if ttl <= 0:
            raise ValueError("ttl must be positive, use MemoryStore to disable expiry")
        self.ttl = ttl
        self.check_interval = check_interval or ttl
        self._clock = clock
        self._sweeper: Optional[asyncio.Task] = None

    def _new_entry(self, value: StoreValue) -> StoreEntry:
        return StoreEntry(value, expires_at=self._clock() + self.ttl)

    def _alive(self, key: str) -> Optional[StoreEntry]:
        entry = self._entries.get(key)
        if entry is not None and entry.is_expired(self._clock()):
            del self._entries[key]
            logger.debug("Evicted expired key %s", key)
            return None
        return entry

    async def evict_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        async with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if e.is_expired(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Sweep evicted %d key(s): %s", len(expired), expired)
        return len(expired)

    async def _sweep(self) -> None:
        while True:
            await asyncio.sleep(self.check_interval)
            await self.evict_expired()

    async def start(self) -> None:
        if self._sweeper is None:
            self._sweeper = asyncio.create_task(self._sweep())
            logger.debug(
                "Started expiry sweeper (ttl=%ss, interval=%ss)",
                self.ttl, self.check_interval,
            )

    async def stop(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None


def create_store(ttl: float, check_interval: Optional[float] = None) -> MemoryStore:
    """Return a ``TTLStore`` or, when ``ttl`` is 0, a non-expiring store."""
    if ttl == 0:
        return MemoryStore()
    return TTLStore(ttl, check_interval)
