"""Multi-tier in-memory caching (L1 / L2 / L3)."""

from axion.cache.tiered import CacheEntry, CacheStats, CacheTier, TieredCache

__all__ = ["CacheEntry", "CacheStats", "CacheTier", "TieredCache"]
