"""
Bounded, TTL-based artifact cache keyed by content fingerprint and settings.

The cache holds policy only. Every entry is one record in the injected
durable store, and a separate index record tracks ``created_at``,
``accessed_at`` and insertion order so that eviction never has to scan the
store. Eviction removes the entry written longest ago; reads never postpone
eviction.
"""

from __future__ import annotations

import asyncio
import json
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Dict, Iterable, List, Mapping, Optional

import structlog

from ..config.config import CacheConfig
from ..exceptions import CacheCorruption
from ..observability.metrics import increment
from ..protocols import DurableStore

logger = structlog.get_logger(__name__)

INDEX_VERSION = 1


@dataclass(slots=True, frozen=True)
class CacheEntry:
    key: str
    payload: Any
    created_at: float
    accessed_at: float


@dataclass(slots=True)
class _LockSlot:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


def settings_key(settings: Mapping[str, Any], fields: Optional[Iterable[str]] = None) -> str:
    """
    Deterministic serialization of the settings that change an artifact.

    Only ``fields`` are kept when given; key order and whitespace never affect
    the result.
    """
    if fields is not None:
        wanted = set(fields)
        settings = {k: v for k, v in settings.items() if k in wanted}
    return json.dumps(settings, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


class ArtifactCache:
    """
    Artifact cache over a :class:`DurableStore`.

    Writes are serialized per key with ``asyncio.Lock``; the index record is
    a key of its own and is serialized the same way. Store failures degrade to
    a miss (reads) or a skipped write and are never raised to callers.
    """

    def __init__(
        self,
        store: DurableStore,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.config = config or CacheConfig()
        self.clock = clock
        self._locks: Dict[str, _LockSlot] = {}
        self.index_key = f"{self.config.key_prefix}:__index__"
        self.logger = logger.bind(component="ArtifactCache")

    # ------------------------------------------------------------------
    # Keys and locks
    # ------------------------------------------------------------------

    def settings_key(self, settings: Mapping[str, Any]) -> str:
        return settings_key(settings, self.config.settings_fields)

    def entry_key(self, fingerprint: str, settings_key: str) -> str:
        return f"{self.config.key_prefix}:{fingerprint}:{settings_key}"

    @asynccontextmanager
    async def locked(self, key: str) -> AsyncIterator[None]:
        """
        Hold the lock for ``key``.

        A lock lives only while some task holds or waits for it, so the lock
        table stays as small as the number of keys in flight.
        """
        slot = self._locks.get(key)
        if slot is None:
            slot = self._locks[key] = _LockSlot()
        slot.users += 1
        try:
            async with slot.lock:
                yield
        finally:
            slot.users -= 1
            if slot.users == 0:
                del self._locks[key]

    @property
    def active_locks(self) -> int:
        return len(self._locks)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def _decode_entry(self, key: str, raw: bytes) -> Dict[str, Any]:
        try:
            record = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise CacheCorruption(key, str(e)) from e
        if not isinstance(record, dict) or "payload" not in record:
            raise CacheCorruption(key, "entry record has no payload")
        if not isinstance(record.get("created_at"), (int, float)):
            raise CacheCorruption(key, "entry record has no created_at")
        return record

    async def _load_index(self) -> Dict[str, Any]:
        raw = await self.store.get(self.index_key)
        if raw is None:
            return {"version": INDEX_VERSION, "seq": 0, "entries": {}}
        try:
            index = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise CacheCorruption(self.index_key, str(e)) from e
        if not isinstance(index, dict) or not isinstance(index.get("entries"), dict):
            raise CacheCorruption(self.index_key, "index record has no entries")
        return index

    async def _load_index_or_reset(self) -> Dict[str, Any]:
        try:
            return await self._load_index()
        except CacheCorruption as e:
            self.logger.warning("Discarding corrupt cache index", error=str(e))
            increment("cache_evictions", labels={"reason": "corrupt"})
            return {"version": INDEX_VERSION, "seq": 0, "entries": {}}

    async def _save_index(self, index: Dict[str, Any]) -> None:
        await self.store.set(self.index_key, json.dumps(index, sort_keys=True).encode("utf-8"))

    async def _drop(self, key: str, reason: str) -> None:
        """Remove an entry and its index record."""
        async with self.locked(self.index_key):
            await self.store.remove(key)
            index = await self._load_index_or_reset()
            if index["entries"].pop(key, None) is not None:
                await self._save_index(index)
        increment("cache_evictions", labels={"reason": reason})

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get(self, fingerprint: str, settings_key: str) -> Optional[Any]:
        """Return the cached payload, or ``None`` on a miss, an expired entry or any store error."""
        entry = await self.get_entry(fingerprint, settings_key)
        return entry.payload if entry is not None else None

    async def get_entry(self, fingerprint: str, settings_key: str) -> Optional[CacheEntry]:
        key = self.entry_key(fingerprint, settings_key)
        try:
            async with self.locked(key):
                raw = await self.store.get(key)
                if raw is None:
                    increment("cache_requests", labels={"result": "miss"})
                    return None

                try:
                    record = self._decode_entry(key, raw)
                except CacheCorruption as e:
                    self.logger.warning("Dropping corrupt cache entry", key=key, error=str(e))
                    increment("cache_requests", labels={"result": "corrupt"})
                    await self._drop(key, "corrupt")
                    return None

                now = self.clock()
                created_at = float(record["created_at"])
                if now - created_at > self.config.ttl_seconds:
                    self.logger.debug("Cache entry expired", key=key, age_seconds=now - created_at)
                    increment("cache_requests", labels={"result": "expired"})
                    await self._drop(key, "ttl")
                    return None

                async with self.locked(self.index_key):
                    index = await self._load_index_or_reset()
                    meta = index["entries"].get(key)
                    if meta is not None:
                        meta["accessed_at"] = now
                        await self._save_index(index)

                # Entries missing from the index are misses, e.g. after an index reset
                if meta is None:
                    self.logger.warning("Dropping untracked cache entry", key=key)
                    increment("cache_requests", labels={"result": "untracked"})
                    await self._drop(key, "untracked")
                    return None

                increment("cache_requests", labels={"result": "hit"})
                return CacheEntry(key=key, payload=record["payload"], created_at=created_at, accessed_at=now)
        except Exception as e:
            self.logger.error("Cache read failed", key=key, error=str(e), error_type=type(e).__name__)
            increment("cache_requests", labels={"result": "error"})
            return None

    async def set(self, fingerprint: str, settings_key: str, payload: Any) -> None:
        """Insert or overwrite an entry with a fresh ``created_at``, then evict down to capacity."""
        key = self.entry_key(fingerprint, settings_key)
        try:
            encoded_payload = json.dumps(payload, sort_keys=True)
        except (TypeError, ValueError) as e:
            self.logger.error("Artifact payload is not serializable", key=key, error=str(e))
            return

        try:
            async with self.locked(key):
                async with self.locked(self.index_key):
                    now = self.clock()
                    raw = f'{{"created_at":{json.dumps(now)},"payload":{encoded_payload}}}'.encode("utf-8")
                    await self.store.set(key, raw)

                    index = await self._load_index_or_reset()
                    index["seq"] = int(index.get("seq", 0)) + 1
                    index["entries"][key] = {"created_at": now, "accessed_at": now, "seq": index["seq"]}
                    evicted = self._evict(index)
                    for old_key in evicted:
                        await self.store.remove(old_key)
                    await self._save_index(index)

            for old_key in evicted:
                increment("cache_evictions", labels={"reason": "capacity"})
                self.logger.debug("Evicted cache entry", key=old_key)
        except Exception as e:
            self.logger.error("Cache write failed", key=key, error=str(e), error_type=type(e).__name__)

    def _evict(self, index: Dict[str, Any]) -> List[str]:
        entries: Dict[str, Dict[str, Any]] = index["entries"]
        evicted = []
        while len(entries) > self.config.capacity:
            oldest = min(entries, key=lambda k: (entries[k]["created_at"], entries[k].get("seq", 0)))
            del entries[oldest]
            evicted.append(oldest)
        return evicted

    async def clear(self) -> None:
        """Drop every entry."""
        try:
            async with self.locked(self.index_key):
                index = await self._load_index_or_reset()
                for key in list(index["entries"]):
                    await self.store.remove(key)
                await self.store.remove(self.index_key)
            self.logger.info("Cache cleared", removed=len(index["entries"]))
        except Exception as e:
            self.logger.error("Cache clear failed", error=str(e), error_type=type(e).__name__)

    async def keys(self) -> List[str]:
        """Entry keys currently tracked by the index, oldest first."""
        async with self.locked(self.index_key):
            index = await self._load_index_or_reset()
        entries = index["entries"]
        return sorted(entries, key=lambda k: (entries[k]["created_at"], entries[k].get("seq", 0)))

    async def size(self) -> int:
        return len(await self.keys())
