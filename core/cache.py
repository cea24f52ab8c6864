"""
Process-local TTL cache with tag-based invalidation.

Used to memoize client projections between requests. Expired entries are dropped
lazily on read; `cleanup()` sweeps proactively and is meant to be called by whatever
scheduler the host application runs (the cache owns no background thread).

One instance may be shared by concurrent sessions; every read and write holds an
internal lock. Two concurrent misses on the same key both run the producer (the
producer runs outside the lock); there is no single-flight de-duplication.
"""

from __future__ import annotations

import base64
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60.0


@dataclass
class _Entry:
    value: Any
    expires_at: float


class TTLCache:
    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = float(default_ttl)
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._tags: Dict[str, Set[str]] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Basic operations
    # ------------------------------------------------------------------
    def get(self, key: str) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() > entry.expires_at:
                self._drop(key)
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        lifetime = self.default_ttl if ttl is None else float(ttl)
        with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=self._clock() + lifetime)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._drop(key)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._tags.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_or_set(
        self,
        key: str,
        producer: Callable[[], Any],
        ttl: Optional[float] = None,
        *,
        tags: Iterable[str] = (),
    ) -> Any:
        """Return the cached value for key, or run producer, cache and return its result."""
        cached = self.get(key)
        if cached is not None:
            logger.debug("cache hit %s", key)
            return cached
        logger.debug("cache miss %s", key)
        value = producer()
        self.set_with_tags(key, value, tags, ttl)
        return value

    def _drop(self, key: str) -> bool:
        # caller holds the lock
        for tag in [t for t, keys in self._tags.items() if key in keys]:
            keys = self._tags[tag]
            keys.discard(key)
            if not keys:
                del self._tags[tag]
        return self._entries.pop(key, None) is not None

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------
    def set_with_tags(
        self, key: str, value: Any, tags: Iterable[str], ttl: Optional[float] = None
    ) -> None:
        with self._lock:
            self.set(key, value, ttl)
            for tag in tags:
                self._tags.setdefault(tag, set()).add(key)

    def invalidate_tag(self, tag: str) -> int:
        """Delete every key registered under tag. Returns the number of entries removed."""
        with self._lock:
            keys = self._tags.pop(tag, None)
            if not keys:
                return 0
            removed = 0
            for key in keys:
                if self._drop(key):
                    removed += 1
            return removed

    def tag_keys(self, tag: str) -> Set[str]:
        with self._lock:
            return set(self._tags.get(tag, ()))

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------
    def cleanup(self) -> int:
        """Drop expired entries and forget them in every tag. Returns the number removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if now > e.expires_at]
            for key in expired:
                self._drop(key)
        if expired:
            logger.debug("cache cleanup removed %d expired entries", len(expired))
        return len(expired)

    def stats(self) -> dict:
        with self._lock:
            keys: List[str] = list(self._entries.keys())
            payload = [[k, e.value, e.expires_at] for k, e in self._entries.items()]
        return {
            "size": len(keys),
            "keys": keys,
            "memory_usage": len(json.dumps(payload, default=str)),
        }

    # ------------------------------------------------------------------
    # Key builders
    # ------------------------------------------------------------------
    @staticmethod
    def client_key(client_id: str, suffix: str) -> str:
        return f"client:{client_id}:{suffix}"

    @staticmethod
    def projection_key(client_id: str, params: dict) -> str:
        encoded = base64.b64encode(json.dumps(params, sort_keys=True, default=str).encode("utf-8"))
        return f"projection:{client_id}:{encoded.decode('ascii')}"

    @staticmethod
    def suggestion_key(client_id: str) -> str:
        return f"suggestions:{client_id}"

    @staticmethod
    def insurance_key(client_id: str) -> str:
        return f"insurance:{client_id}:summary"

    @staticmethod
    def client_tag(client_id: str) -> str:
        return f"client:{client_id}"
