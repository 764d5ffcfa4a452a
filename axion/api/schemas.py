"""
Pydantic request/response models for the Axion REST API.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

from axion.cache.tiered import CacheStats
from axion.store import User

CacheLevel = Literal["L1", "L2", "L3", "store"]


class CreateUserRequest(BaseModel):
    """Body of ``POST /api/users``.  Missing fields get defaults."""

    name: Optional[str] = Field(default=None, max_length=200)
    email: Optional[str] = Field(default=None, max_length=320)


class UserResponse(BaseModel):
    """A single user, with the cache level that served it.

    Attributes:
        user: The user record.
        cache_level: ``L1``/``L2``/``L3`` for cache hits, ``store`` when
            loaded from the user store.
    """

    user: User
    cache_level: CacheLevel


class CreateUserResponse(BaseModel):
    success: bool = True
    user: User
    total_users: int


class HealthResponse(BaseModel):
    """Service health.

    Attributes:
        status: ``"healthy"`` when every component reports healthy.
        version: API version string.
        uptime_seconds: Seconds since the app was created.
        components: Per-component status.
    """

    status: str = "healthy"
    version: str
    uptime_seconds: float
    components: Dict[str, str] = Field(default_factory=dict)


class StateResponse(BaseModel):
    user_count: int
    visits: Dict[str, Any]
    cache: CacheStats


class ErrorResponse(BaseModel):
    error: str
    message: str
    request_id: Optional[str] = None
