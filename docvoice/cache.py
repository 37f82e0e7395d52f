"""Injected cache abstraction for parsed documents and synthesized speech.

Responsibilities:
- Define the cache capability used by services (get/set/delete/evict).
- Provide a bounded in-memory implementation with TTL expiry and oldest-first eviction.
- Build stable cache keys from a namespace and normalized identity payload.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from hashlib import sha256
import json
from time import time
from typing import Any, Protocol


def _normalize_identity_value(value: Any) -> Any:
    """Normalize identity payload values for stable cache key hashing."""

    if isinstance(value, list | tuple):
        return [_normalize_identity_value(item) for item in value]
    if isinstance(value, dict):
        return {
            str(key): _normalize_identity_value(value[key])
            for key in sorted(value.keys(), key=str)
        }
    return value


def make_cache_key(namespace: str, *qualifiers: str, **identity: Any) -> str:
    """Build a deterministic cache key with a hashed identity suffix.

    Args:
        namespace: Short key family such as `doc` or `speech`.
        qualifiers: Readable key segments such as document type or voice.
        identity: Values that fully determine the cached payload.

    Returns:
        Key of the form `<namespace>[:<qualifier>...]:<sha256 hex>`.
    """

    canonical_identity = json.dumps(
        _normalize_identity_value(identity),
        sort_keys=True,
        ensure_ascii=True,
        separators=(",", ":"),
    )
    identity_hash = sha256(canonical_identity.encode("utf-8")).hexdigest()
    segments = [namespace.strip().lower(), *(str(item).strip() for item in qualifiers)]
    return ":".join([*segments, identity_hash])


class Cache(Protocol):
    """Capability required by services from any cache backend."""

    def get(self, key: str) -> Any | None:
        """Return a live cached value or `None`."""

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """Store a value under a key."""

    def delete(self, key: str) -> bool:
        """Remove a key and report whether it existed."""

    def evict_expired(self) -> int:
        """Drop expired entries and return how many were removed."""

    def clear(self) -> None:
        """Remove all entries."""

    def stats(self) -> dict[str, float]:
        """Return size and hit-rate telemetry."""


@dataclass(frozen=True, slots=True)
class _CacheEntry:
    value: Any
    stored_at: float
    ttl_seconds: float

    def expired(self, now: float) -> bool:
        return now > self.stored_at + self.ttl_seconds


@dataclass(slots=True)
class BoundedTTLCache:
    """In-memory cache bounded by item count with per-entry expiry.

    When full, the oldest stored entry is evicted before inserting a new key.
    """

    max_items: int = 100
    default_ttl_seconds: float = 604800.0
    clock: Callable[[], float] = time
    entries: OrderedDict[str, _CacheEntry] = field(default_factory=OrderedDict)
    hits: int = 0
    misses: int = 0

    def __post_init__(self) -> None:
        if self.max_items <= 0:
            raise ValueError("max_items must be a positive integer.")
        if self.default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be positive.")

    def get(self, key: str) -> Any | None:
        """Return cached value for key and update hit/miss telemetry counters."""

        entry = self.entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        if entry.expired(self.clock()):
            del self.entries[key]
            self.misses += 1
            return None
        self.hits += 1
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """Store a value, evicting the oldest entry when the cache is full."""

        if key in self.entries:
            del self.entries[key]
        elif len(self.entries) >= self.max_items:
            self.entries.popitem(last=False)
        self.entries[key] = _CacheEntry(
            value=value,
            stored_at=self.clock(),
            ttl_seconds=ttl_seconds if ttl_seconds is not None else self.default_ttl_seconds,
        )

    def delete(self, key: str) -> bool:
        """Remove a key and report whether it existed."""

        return self.entries.pop(key, None) is not None

    def evict_expired(self) -> int:
        """Drop expired entries and return the number removed."""

        now = self.clock()
        expired_keys = [key for key, entry in self.entries.items() if entry.expired(now)]
        for key in expired_keys:
            del self.entries[key]
        return len(expired_keys)

    def clear(self) -> None:
        """Remove all entries."""

        self.entries.clear()

    def stats(self) -> dict[str, float]:
        """Return size, bounds, and hit-rate telemetry."""

        return {
            "size": len(self.entries),
            "max_items": self.max_items,
            "default_ttl_seconds": self.default_ttl_seconds,
            "hit_rate": self.hit_rate(),
        }

    def hit_rate(self) -> float:
        """Return cache hit rate for current cache lifecycle."""

        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / float(total)
