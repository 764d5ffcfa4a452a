"""
Method + path router with ``:param`` segments.

Routes are keyed by ``(method, path_pattern)`` and kept in registration
order.  Matching tries the literal path first, then scans pattern routes
in registration order comparing ``/``-separated segments one to one.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from axion.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


class Route(BaseModel):
    """A registered route.

    Attributes:
        method: Uppercase HTTP verb.
        path_pattern: Slash-delimited template; ``:name`` segments are
            parameters.
        handler: Callable invoked by the dispatcher.
        segments: ``path_pattern`` split on ``/``.
        param_names: Parameter names in segment order.
    """

    method: str
    path_pattern: str
    handler: Handler
    segments: List[str] = Field(default_factory=list)
    param_names: List[str] = Field(default_factory=list)

    model_config = {"arbitrary_types_allowed": True}

    @property
    def is_static(self) -> bool:
        """True when the pattern has no parameter segments."""
        return not self.param_names

    @property
    def key(self) -> Tuple[str, str]:
        return (self.method, self.path_pattern)


class RouteMatch(BaseModel):
    """Result of a successful :meth:`PatternRouter.match`.

    Attributes:
        route: The matched route.
        params: Parameter name to raw path segment.
    """

    route: Route
    params: Dict[str, str] = Field(default_factory=dict)

    @property
    def handler(self) -> Handler:
        return self.route.handler


def _parse_pattern(path_pattern: str) -> Tuple[List[str], List[str]]:
    """Split a pattern into segments and validate its parameter names."""
    if not path_pattern.startswith("/"):
        raise ConfigurationError(f"Route pattern must start with '/': {path_pattern!r}")

    segments = path_pattern.split("/")
    param_names: List[str] = []
    for segment in segments:
        if not segment.startswith(":"):
            continue
        name = segment[1:]
        if not name:
            raise ConfigurationError(
                f"Empty parameter name in route pattern {path_pattern!r}"
            )
        if name in param_names:
            raise ConfigurationError(
                f"Duplicate parameter ':{name}' in route pattern {path_pattern!r}"
            )
        param_names.append(name)
    return segments, param_names


class PatternRouter:
    """Resolve ``(method, path)`` to a handler plus path parameters.

    Thread safety:
        Registration and table snapshots acquire an internal
        ``threading.Lock``; matching iterates over a snapshot.
    """

    def __init__(self) -> None:
        self._routes: Dict[Tuple[str, str], Route] = {}
        self._lock = threading.Lock()

    def register(self, method: str, path_pattern: str, handler: Handler) -> Route:
        """Register *handler* for *method* and *path_pattern*.

        Re-registering the same ``(method, path_pattern)`` replaces the
        handler; the route keeps its original position in the table.

        Returns:
            The stored route.

        Raises:
            ConfigurationError: If the method or pattern is empty or not a
                string, the pattern is malformed, or *handler* is not
                callable.
        """
        if not isinstance(method, str) or not method.strip():
            raise ConfigurationError(f"Route method must be a non-empty string, got {method!r}")
        if not isinstance(path_pattern, str) or not path_pattern:
            raise ConfigurationError(
                f"Route pattern must be a non-empty string, got {path_pattern!r}"
            )
        if not callable(handler):
            raise ConfigurationError(f"Handler for {method} {path_pattern} is not callable")

        segments, param_names = _parse_pattern(path_pattern)
        route = Route(
            method=method.strip().upper(),
            path_pattern=path_pattern,
            handler=handler,
            segments=segments,
            param_names=param_names,
        )

        with self._lock:
            replaced = route.key in self._routes
            self._routes[route.key] = route

        logger.debug(
            "Route registered",
            extra={
                "method": route.method,
                "path_pattern": path_pattern,
                "replaced": replaced,
            },
        )
        return route

    def route(self, method: str, path_pattern: str) -> Callable[[Handler], Handler]:
        """Decorator form of :meth:`register`."""

        def decorator(handler: Handler) -> Handler:
            self.register(method, path_pattern, handler)
            return handler

        return decorator

    def get(self, path_pattern: str, handler: Handler) -> Route:
        return self.register("GET", path_pattern, handler)

    def post(self, path_pattern: str, handler: Handler) -> Route:
        return self.register("POST", path_pattern, handler)

    def put(self, path_pattern: str, handler: Handler) -> Route:
        return self.register("PUT", path_pattern, handler)

    def patch(self, path_pattern: str, handler: Handler) -> Route:
        return self.register("PATCH", path_pattern, handler)

    def delete(self, path_pattern: str, handler: Handler) -> Route:
        return self.register("DELETE", path_pattern, handler)

    def options(self, path_pattern: str, handler: Handler) -> Route:
        return self.register("OPTIONS", path_pattern, handler)

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """Find the route for *method* and *path*.

        1. A static route registered under exactly *path* wins outright.
        2. Otherwise routes of the same method are tried in registration
           order.  Segment counts must be equal; ``:name`` binds the path
           segment (which must be non-empty); other segments must be
           equal, case-sensitively.

        The caller strips any query string beforehand.  Never raises.

        Returns:
            A :class:`RouteMatch`, or ``None`` if nothing matches.
        """
        if not isinstance(method, str) or not isinstance(path, str):
            return None

        with self._lock:
            exact = self._routes.get((method, path))
            candidates = list(self._routes.values())

        if exact is not None and exact.is_static:
            return RouteMatch(route=exact)

        path_segments = path.split("/")
        for route in candidates:
            if route.method != method or route.is_static:
                continue
            params = self._bind(route.segments, path_segments)
            if params is not None:
                return RouteMatch(route=route, params=params)

        logger.debug("No route matched", extra={"method": method, "path": path})
        return None

    @staticmethod
    def _bind(pattern: List[str], path: List[str]) -> Optional[Dict[str, str]]:
        """Reconcile pattern and path segments, or return ``None``."""
        if len(pattern) != len(path):
            return None
        params: Dict[str, str] = {}
        for expected, actual in zip(pattern, path):
            if expected.startswith(":"):
                if not actual:
                    return None
                params[expected[1:]] = actual
            elif expected != actual:
                return None
        return params

    @property
    def routes(self) -> List[Route]:
        """Registered routes in registration order."""
        with self._lock:
            return list(self._routes.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._routes)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._routes
