"""
Rate limiting and request logging for the Axion API.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from axion.routing.router import RouteMatch

logger = logging.getLogger(__name__)


class RateLimiter:
    """In-memory sliding-window rate limiter keyed by client id.

    Clients with no request inside the window are dropped once per
    window, so the table only holds recently active clients.

    Args:
        max_requests: Maximum requests per window.
        window_seconds: Window size in seconds.
        clock: Callable returning the current time in seconds.
    """

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._clock = clock
        self._requests: Dict[str, List[float]] = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    @property
    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._requests)

    def _sweep(self, window_start: float) -> None:
        idle = [
            client_id
            for client_id, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for client_id in idle:
            del self._requests[client_id]
        if idle:
            logger.debug("Rate limiter dropped idle clients", extra={"count": len(idle)})

    def is_allowed(self, client_id: str) -> bool:
        """Record a request from *client_id* if it fits in the window.

        Returns:
            True if the request is within the rate limit.
        """
        now = self._clock()
        window_start = now - self._window_seconds

        with self._lock:
            if now - self._last_sweep >= self._window_seconds:
                self._sweep(window_start)
                self._last_sweep = now

            recent = [t for t in self._requests.get(client_id, ()) if t > window_start]
            if len(recent) >= self._max_requests:
                self._requests[client_id] = recent
                return False
            recent.append(now)
            self._requests[client_id] = recent
            return True

    def retry_after(self, client_id: str) -> int:
        """Seconds until the oldest request in the window expires."""
        with self._lock:
            timestamps = self._requests.get(client_id)
            if not timestamps:
                return 0
            oldest = min(timestamps)
        return max(1, int(oldest + self._window_seconds - self._clock()) + 1)


class RequestLogger:
    """Dispatcher middleware that logs each routed request and counts visits."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._total_visits = 0
        self._last_activity: Optional[float] = None

    def __call__(self, request: Any, match: RouteMatch) -> bool:
        now = self._clock()
        with self._lock:
            self._total_visits += 1
            self._last_activity = now

        logger.info(
            "Dispatching request",
            extra={
                "method": match.route.method,
                "path_pattern": match.route.path_pattern,
                "params": match.params,
                "request_id": getattr(getattr(request, "state", None), "request_id", None),
            },
        )
        return True

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "total_visits": self._total_visits,
                "last_activity": self._last_activity,
            }
