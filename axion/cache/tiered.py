"""
Three-level in-memory cache with TTL-based promotion.

Each tier (L1, L2, L3) is a plain mapping with its own TTL, shortest
first.  Reads fall through L1 -> L2 -> L3 and copy a fresh hit one level
up, keeping the entry's original ``created_at``.  Expiry is lazy: stale
entries are skipped on read and stay in their tier until overwritten,
invalidated, or removed by an explicit :meth:`TieredCache.purge_expired`.
"""

import logging
import threading
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Union

from pydantic import BaseModel, Field

from axion.config import CacheSettings
from axion.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CacheTier(str, Enum):
    """Cache level, fastest and shortest-lived first."""

    L1 = "L1"
    L2 = "L2"
    L3 = "L3"

    @classmethod
    def parse(cls, tier: Union["CacheTier", str]) -> "CacheTier":
        """Resolve a tier identifier such as ``"L2"`` or ``"l2"``.

        Raises:
            ConfigurationError: If *tier* does not name a known tier.
        """
        if isinstance(tier, cls):
            return tier
        if isinstance(tier, str):
            try:
                return cls(tier.strip().upper())
            except ValueError:
                pass
        raise ConfigurationError(f"Unknown cache tier: {tier!r}")


# Lookup order; promotion target is the previous element.
_TIER_ORDER = (CacheTier.L1, CacheTier.L2, CacheTier.L3)


class CacheEntry(BaseModel):
    """A value stored in one tier.

    Attributes:
        value: Opaque payload.
        created_at: Clock reading when the entry entered its first tier.
            Promotion copies it unchanged.
    """

    value: Any = None
    created_at: float

    def age(self, now: float) -> float:
        return now - self.created_at


class CacheStats(BaseModel):
    """Snapshot of cache counters.

    Attributes:
        hits: Hit count per tier, keyed ``"L1"``, ``"L2"``, ``"L3"``.
        misses: Lookups that found no fresh entry in any tier.
        sizes: Entry count per tier, expired entries included.
        total_requests: ``sum(hits) + misses``.
        hit_rate: Percentage of lookups served by any tier, e.g. ``"75.00%"``.
    """

    hits: Dict[str, int] = Field(default_factory=dict)
    misses: int = 0
    sizes: Dict[str, int] = Field(default_factory=dict)
    total_requests: int = 0
    hit_rate: str = "0.00%"


class TieredCache:
    """In-memory L1/L2/L3 cache with lazy expiry and promotion.

    Thread safety:
        Every public method acquires an internal ``threading.Lock``, so the
        promotion performed by :meth:`get` is atomic with respect to
        concurrent :meth:`set` calls.

    Args:
        l1_ttl: L1 time-to-live in seconds.
        l2_ttl: L2 time-to-live in seconds.  Must exceed ``l1_ttl``.
        l3_ttl: L3 time-to-live in seconds.  Must exceed ``l2_ttl``.
        clock: Callable returning the current time in seconds.

    Raises:
        ConfigurationError: If the TTLs are not positive and strictly
            increasing.
    """

    def __init__(
        self,
        l1_ttl: float = 60.0,
        l2_ttl: float = 300.0,
        l3_ttl: float = 3600.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not 0 < l1_ttl < l2_ttl < l3_ttl:
            raise ConfigurationError(
                "Cache TTLs must satisfy 0 < L1 < L2 < L3, "
                f"got {l1_ttl} / {l2_ttl} / {l3_ttl}"
            )
        self._ttls: Dict[CacheTier, float] = {
            CacheTier.L1: float(l1_ttl),
            CacheTier.L2: float(l2_ttl),
            CacheTier.L3: float(l3_ttl),
        }
        self._tiers: Dict[CacheTier, Dict[str, CacheEntry]] = {
            tier: {} for tier in _TIER_ORDER
        }
        self._hits: Dict[CacheTier, int] = {tier: 0 for tier in _TIER_ORDER}
        self._misses: int = 0
        self._clock = clock
        self._lock = threading.Lock()
        logger.info(
            "TieredCache initialised",
            extra={"l1_ttl": l1_ttl, "l2_ttl": l2_ttl, "l3_ttl": l3_ttl},
        )

    @classmethod
    def from_settings(
        cls,
        settings: CacheSettings,
        clock: Callable[[], float] = time.time,
    ) -> "TieredCache":
        """Build a cache from the ``cache`` settings section."""
        return cls(
            l1_ttl=settings.l1_ttl_seconds,
            l2_ttl=settings.l2_ttl_seconds,
            l3_ttl=settings.l3_ttl_seconds,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Return the freshest cached value for *key*, or *default*.

        Records exactly one hit (on the serving tier) or one miss.
        """
        value, tier = self.lookup(key)
        return default if tier is None else value

    def lookup(self, key: str) -> Tuple[Any, Optional[CacheTier]]:
        """Look up *key* and report which tier served it.

        An L2 hit is copied into L1 and an L3 hit into L2.  The copy keeps
        the entry's ``created_at``, and the slower copy is left in place.

        Returns:
            ``(value, tier)`` on a hit, ``(None, None)`` on a miss.
        """
        with self._lock:
            now = self._clock()
            for index, tier in enumerate(_TIER_ORDER):
                entry = self._tiers[tier].get(key)
                if entry is None or entry.age(now) >= self._ttls[tier]:
                    continue

                self._hits[tier] += 1
                if index > 0:
                    faster = _TIER_ORDER[index - 1]
                    self._tiers[faster][key] = entry.model_copy()
                    logger.debug(
                        "Cache entry promoted",
                        extra={"cache_key": key, "from_tier": tier.value, "to_tier": faster.value},
                    )
                return entry.value, tier

            self._misses += 1
            return None, None

    def get_or_load(
        self,
        key: str,
        loader: Callable[[], Any],
        tier: Union[CacheTier, str] = CacheTier.L1,
    ) -> Tuple[Any, Optional[CacheTier]]:
        """Read through to *loader* on a miss.

        A non-``None`` loader result is stored in *tier*.  The lock is not
        held while *loader* runs, so two concurrent misses may both load.

        Returns:
            ``(value, tier)`` where tier is ``None`` if the value came from
            *loader* (or the loader returned ``None``).
        """
        target = CacheTier.parse(tier)
        value, hit_tier = self.lookup(key)
        if hit_tier is not None:
            return value, hit_tier

        value = loader()
        if value is not None:
            self.set(key, value, target)
        return value, None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set(
        self,
        key: str,
        value: Any,
        tier: Union[CacheTier, str] = CacheTier.L1,
    ) -> None:
        """Insert or overwrite *key* in one tier with a fresh timestamp.

        Other tiers are not touched.

        Raises:
            ConfigurationError: If *tier* is not a known tier.
        """
        target = CacheTier.parse(tier)
        with self._lock:
            self._tiers[target][key] = CacheEntry(value=value, created_at=self._clock())
        logger.debug("Cache set", extra={"cache_key": key, "tier": target.value})

    def invalidate(self, key: str) -> int:
        """Remove *key* from every tier.

        Returns:
            Number of tier copies removed.
        """
        removed = 0
        with self._lock:
            for entries in self._tiers.values():
                if entries.pop(key, None) is not None:
                    removed += 1
        if removed:
            logger.info("Cache entry invalidated", extra={"cache_key": key, "copies": removed})
        return removed

    def clear(self) -> int:
        """Drop every entry in every tier.  Counters are kept.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            count = sum(len(entries) for entries in self._tiers.values())
            for entries in self._tiers.values():
                entries.clear()
        logger.info("Cache cleared", extra={"entries_removed": count})
        return count

    def purge_expired(self) -> int:
        """Remove entries that are stale for the tier holding them.

        The cache never calls this itself; callers with an unbounded key
        space schedule it explicitly.

        Returns:
            Number of entries removed.
        """
        removed = 0
        with self._lock:
            now = self._clock()
            for tier, entries in self._tiers.items():
                ttl = self._ttls[tier]
                stale = [key for key, entry in entries.items() if entry.age(now) >= ttl]
                for key in stale:
                    del entries[key]
                removed += len(stale)

        if removed:
            logger.info("Expired entries purged", extra={"count": removed})
        return removed

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def stats(self) -> CacheStats:
        """Return a snapshot of hit/miss counters and tier sizes."""
        with self._lock:
            hits = {tier.value: count for tier, count in self._hits.items()}
            sizes = {tier.value: len(entries) for tier, entries in self._tiers.items()}
            misses = self._misses

        total_hits = sum(hits.values())
        total = total_hits + misses
        rate = (total_hits / total * 100) if total > 0 else 0.0
        return CacheStats(
            hits=hits,
            misses=misses,
            sizes=sizes,
            total_requests=total,
            hit_rate=f"{rate:.2f}%",
        )

    def reset_stats(self) -> None:
        """Zero all hit and miss counters."""
        with self._lock:
            for tier in self._hits:
                self._hits[tier] = 0
            self._misses = 0

    def ttl(self, tier: Union[CacheTier, str]) -> float:
        """TTL in seconds for *tier*."""
        return self._ttls[CacheTier.parse(tier)]

    def contains(self, key: str, tier: Union[CacheTier, str]) -> bool:
        """Whether *tier* holds a fresh entry for *key*.

        Does not touch counters or promote.
        """
        target = CacheTier.parse(tier)
        with self._lock:
            entry = self._tiers[target].get(key)
            return entry is not None and entry.age(self._clock()) < self._ttls[target]

    def entry(self, key: str, tier: Union[CacheTier, str]) -> Optional[CacheEntry]:
        """Raw entry stored in *tier* for *key*, fresh or not."""
        target = CacheTier.parse(tier)
        with self._lock:
            return self._tiers[target].get(key)

    @property
    def size(self) -> int:
        """Total entries across all tiers, expired ones included."""
        with self._lock:
            return sum(len(entries) for entries in self._tiers.values())
