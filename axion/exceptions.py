"""
Axion exception hierarchy.

All custom exceptions inherit from AxionException so callers can
catch a single base type when they want a broad safety net.
"""


class AxionException(Exception):
    """Base exception for all Axion errors."""


class ConfigurationError(AxionException, ValueError):
    """Raised when configuration or a registration is invalid."""


class RouteNotFoundError(AxionException, LookupError):
    """Raised by the dispatcher when no route matches a request."""

    def __init__(self, method: str, path: str) -> None:
        super().__init__(f"No route for {method} {path}")
        self.method = method
        self.path = path


class RequestRejectedError(AxionException):
    """Raised when a dispatcher middleware halts a request."""


class UserNotFoundError(AxionException, KeyError):
    """Raised when a user id is not present in the store."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""

