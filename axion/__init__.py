"""Axion: tiered in-memory cache and path-pattern router."""

from axion.cache import CacheEntry, CacheStats, CacheTier, TieredCache
from axion.exceptions import AxionException, ConfigurationError
from axion.routing import Dispatcher, PatternRouter, Route, RouteMatch

__version__ = "1.0.0"

__all__ = [
    "AxionException",
    "CacheEntry",
    "CacheStats",
    "CacheTier",
    "ConfigurationError",
    "Dispatcher",
    "PatternRouter",
    "Route",
    "RouteMatch",
    "TieredCache",
]
