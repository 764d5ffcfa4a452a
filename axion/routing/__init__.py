"""Path-pattern routing and request dispatch."""

from axion.routing.dispatcher import Dispatcher, split_path
from axion.routing.router import PatternRouter, Route, RouteMatch

__all__ = [
    "Dispatcher",
    "PatternRouter",
    "Route",
    "RouteMatch",
    "split_path",
]
