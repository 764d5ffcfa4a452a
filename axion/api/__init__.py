"""HTTP host for the Axion router and cache."""

from axion.api.app import create_app

__all__ = ["create_app"]
