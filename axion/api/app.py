"""
FastAPI application factory for the Axion server.

Every request is handed to the :class:`~axion.routing.Dispatcher` through
a single catch-all route, so the pattern router, not FastAPI, decides
which handler runs.  FastAPI contributes CORS, request IDs, rate
limiting and JSON error mapping.
"""

import json
import logging
import time
import uuid
from typing import Any, Optional

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from axion.api.handlers import build_router
from axion.api.middleware import RateLimiter, RequestLogger
from axion.cache.tiered import CacheTier, TieredCache
from axion.config import Settings, get_settings
from axion.exceptions import (
    AxionException,
    ConfigurationError,
    RequestRejectedError,
    RouteNotFoundError,
    UserNotFoundError,
)
from axion.routing.dispatcher import Dispatcher
from axion.routing.router import PatternRouter
from axion.store import UserStore

logger = logging.getLogger(__name__)

DISPATCH_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(
    settings: Optional[Settings] = None,
    cache: Optional[TieredCache] = None,
    store: Optional[UserStore] = None,
    router: Optional[PatternRouter] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use.  Defaults to :func:`get_settings`.
        cache: Cache instance.  Built from ``settings.cache`` if omitted.
        store: User store.  A seeded demo store if omitted.
        router: Route table.  :func:`build_router` routes if omitted.

    Returns:
        Configured FastAPI instance.

    Raises:
        ConfigurationError: If ``settings.cache.user_tier`` names no tier.
    """
    settings = settings or get_settings()
    user_tier = CacheTier.parse(settings.cache.user_tier)

    app = FastAPI(
        title="Axion",
        description="Tiered cache and pattern router demo server",
        version=settings.api.version,
    )

    if router is None:
        router = build_router()
    dispatcher = Dispatcher(router)
    request_logger = RequestLogger()
    dispatcher.use(request_logger)

    app.state.settings = settings
    app.state.cache = cache or TieredCache.from_settings(settings.cache)
    app.state.store = store or UserStore()
    app.state.user_tier = user_tier
    app.state.router = router
    app.state.dispatcher = dispatcher
    app.state.request_logger = request_logger
    app.state.rate_limiter = RateLimiter(
        max_requests=settings.api.rate_limit_per_minute, window_seconds=60
    )
    app.state.started_at = time.time()

    # -- CORS --
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -- Request-ID middleware --
    @app.middleware("http")
    async def add_request_id(request: Request, call_next: Any) -> Response:
        """Attach a unique request ID to every request."""
        request_id = request.headers.get("X-Request-Id", uuid.uuid4().hex[:12])
        request.state.request_id = request_id
        response: Response = await call_next(request)
        response.headers["X-Request-Id"] = request_id
        return response

    # -- Rate limiting middleware --
    @app.middleware("http")
    async def rate_limit(request: Request, call_next: Any) -> Response:
        """Enforce per-IP rate limiting."""
        client_ip = request.client.host if request.client else "unknown"
        limiter: RateLimiter = request.app.state.rate_limiter

        if not limiter.is_allowed(client_ip):
            logger.warning("Rate limit exceeded", extra={"client": client_ip})
            return Response(
                content='{"error":"rate_limit_exceeded","message":"Too many requests"}',
                status_code=429,
                media_type="application/json",
                headers={"Retry-After": str(limiter.retry_after(client_ip))},
            )
        return await call_next(request)

    # -- Global exception handlers --
    @app.exception_handler(AxionException)
    async def axion_exception_handler(
        request: Request, exc: AxionException
    ) -> Response:
        """Handle all AxionException subclasses with consistent JSON."""
        request_id = getattr(request.state, "request_id", "unknown")

        status_map = {
            RouteNotFoundError: 404,
            UserNotFoundError: 404,
            RequestRejectedError: 403,
            ConfigurationError: 400,
        }
        status_code = status_map.get(type(exc), 500)

        # "RouteNotFoundError" -> "routenotfound"
        error_type = exc.__class__.__name__.replace("Error", "").lower()

        return Response(
            content=json.dumps(
                {
                    "error": error_type,
                    "message": str(exc),
                    "request_id": request_id,
                }
            ),
            status_code=status_code,
            media_type="application/json",
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> Response:
        """Catch-all handler for unhandled exceptions."""
        request_id = getattr(request.state, "request_id", "unknown")
        logger.error(
            "Unhandled exception",
            extra={"request_id": request_id, "error": str(exc)},
            exc_info=True,
        )
        return Response(
            content=json.dumps(
                {
                    "error": "internal_server_error",
                    "message": "An unexpected error occurred",
                    "request_id": request_id,
                }
            ),
            status_code=500,
            media_type="application/json",
        )

    # -- Catch-all route into the dispatcher --
    @app.api_route(
        "/{full_path:path}",
        methods=DISPATCH_METHODS,
        include_in_schema=False,
    )
    async def dispatch(request: Request) -> Response:
        """Hand the request to the pattern router."""
        dispatcher: Dispatcher = request.app.state.dispatcher
        result = await dispatcher.dispatch(request.method, request.url.path, request)
        if isinstance(result, Response):
            return result
        return JSONResponse(content=jsonable_encoder(result))

    logger.info(
        "Axion app created",
        extra={"routes": len(router), "version": settings.api.version},
    )
    return app
