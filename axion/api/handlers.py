"""
Route handlers for the Axion API and the route table that binds them.

Handlers take ``(request, params)`` and read shared components from
``request.app.state``.  They return plain data (JSON-encoded by the
host) or a ready ``Response`` when they need a non-200 status.
"""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from axion.api.schemas import (
    CreateUserRequest,
    CreateUserResponse,
    ErrorResponse,
    HealthResponse,
    StateResponse,
    UserResponse,
)
from axion.cache.tiered import TieredCache
from axion.exceptions import UserNotFoundError
from axion.routing.router import PatternRouter
from axion.store import User, UserStore

logger = logging.getLogger(__name__)


def user_cache_key(user_id: str) -> str:
    return f"user:{user_id}"


async def index(request: Request, params: Dict[str, str]) -> Dict[str, Any]:
    router: PatternRouter = request.app.state.router
    return {
        "message": "NEXUS AXION",
        "routes": len(router),
        "server_time": datetime.now(timezone.utc).isoformat(),
    }


async def health(request: Request, params: Dict[str, str]) -> Dict[str, Any]:
    state = request.app.state
    return HealthResponse(
        version=state.settings.api.version,
        uptime_seconds=round(time.time() - state.started_at, 3),
        components={"cache": "healthy", "router": "healthy", "store": "healthy"},
    ).model_dump()


async def app_state(request: Request, params: Dict[str, str]) -> Dict[str, Any]:
    """User count, visit counters and cache statistics.

    There is no history of earlier states; the payload is a point-in-time
    snapshot only.
    """
    state = request.app.state
    return StateResponse(
        user_count=state.store.count(),
        visits=state.request_logger.snapshot(),
        cache=state.cache.stats(),
    ).model_dump()


async def list_users(request: Request, params: Dict[str, str]) -> Dict[str, Any]:
    store: UserStore = request.app.state.store
    users = store.all()
    return {"users": [user.model_dump() for user in users], "count": len(users)}


async def create_user(request: Request, params: Dict[str, str]) -> JSONResponse:
    """Create a user from a JSON body; an empty body uses defaults."""
    raw = await request.body()
    try:
        payload = json.loads(raw) if raw else {}
        body = CreateUserRequest.model_validate(payload)
    except (ValueError, ValidationError) as exc:
        # json.JSONDecodeError is a ValueError
        logger.info("Rejected user payload", extra={"error": str(exc)})
        error = ErrorResponse(
            error="invalid_json",
            message="Request body must be a JSON object with optional name and email",
            request_id=getattr(request.state, "request_id", None),
        )
        return JSONResponse(status_code=400, content=error.model_dump())

    store: UserStore = request.app.state.store
    user = store.create(name=body.name, email=body.email)
    response = CreateUserResponse(user=user, total_users=store.count())
    return JSONResponse(status_code=201, content=response.model_dump())


async def get_user(request: Request, params: Dict[str, str]) -> Dict[str, Any]:
    """Read-through lookup of one user via the tiered cache.

    Raises:
        UserNotFoundError: If the store has no such user.
    """
    user_id = params["id"]
    state = request.app.state
    cache: TieredCache = state.cache
    store: UserStore = state.store

    def load() -> Optional[Dict[str, Any]]:
        user = store.get(user_id)
        return user.model_dump() if user is not None else None

    data, tier = cache.get_or_load(
        user_cache_key(user_id), load, state.user_tier
    )
    if data is None:
        raise UserNotFoundError(f"User {user_id} not found")

    return UserResponse(
        user=User.model_validate(data),
        cache_level=tier.value if tier is not None else "store",
    ).model_dump()


async def cache_stats(request: Request, params: Dict[str, str]) -> Dict[str, Any]:
    cache: TieredCache = request.app.state.cache
    return cache.stats().model_dump()


def build_router(router: Optional[PatternRouter] = None) -> PatternRouter:
    """Register the API routes on *router* (a new one by default)."""
    if router is None:
        router = PatternRouter()
    router.get("/", index)
    router.get("/health", health)
    router.get("/api/state", app_state)
    router.get("/api/users", list_users)
    router.post("/api/users", create_user)
    router.get("/api/users/:id", get_user)
    router.get("/api/cache/stats", cache_stats)
    return router
