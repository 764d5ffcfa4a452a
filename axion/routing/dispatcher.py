"""
Request dispatcher: route lookup, middleware chain, handler call.

Framework-neutral.  The HTTP host passes its own request object through
untouched; middlewares receive ``(request, match)`` and handlers receive
``(request, params)``.  Either may be a plain function or a coroutine
function.
"""

import inspect
import logging
from typing import Any, Callable, List

from axion.exceptions import RequestRejectedError, RouteNotFoundError
from axion.routing.router import PatternRouter, RouteMatch

logger = logging.getLogger(__name__)

Middleware = Callable[[Any, RouteMatch], Any]


async def _resolve(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


def split_path(target: str) -> str:
    """Return the path part of a request target, dropping query and fragment."""
    path = target.split("?", 1)[0].split("#", 1)[0]
    return path or "/"


class Dispatcher:
    """Turn ``(method, target)`` into a handler call.

    Args:
        router: Route table to resolve requests against.
    """

    def __init__(self, router: PatternRouter) -> None:
        self._router = router
        self._middlewares: List[Middleware] = []

    @property
    def router(self) -> PatternRouter:
        return self._router

    def use(self, middleware: Middleware) -> None:
        """Append *middleware* to the chain.

        Middlewares run in registration order after a route has matched.
        Returning ``False`` halts the request.
        """
        self._middlewares.append(middleware)

    async def dispatch(self, method: str, target: str, request: Any = None) -> Any:
        """Resolve and run the handler for a request.

        Args:
            method: HTTP verb; uppercased before matching.
            target: Request path, optionally with a query string.
            request: Host request object handed to middlewares and handler.

        Returns:
            Whatever the handler returns.

        Raises:
            RouteNotFoundError: If no route matches.
            RequestRejectedError: If a middleware returned ``False``.
        """
        method = method.upper()
        path = split_path(target)

        match = self._router.match(method, path)
        if match is None:
            raise RouteNotFoundError(method, path)

        for middleware in self._middlewares:
            outcome = await _resolve(middleware(request, match))
            if outcome is False:
                name = getattr(middleware, "__name__", type(middleware).__name__)
                logger.info(
                    "Request halted by middleware",
                    extra={"method": method, "path": path, "middleware": name},
                )
                raise RequestRejectedError(f"{method} {path} rejected by {name}")

        return await _resolve(match.handler(request, match.params))
