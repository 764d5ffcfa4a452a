"""
CLI entry point for the Axion server.

Usage:
    python main.py serve [--host 0.0.0.0] [--port 8000]
    python main.py routes
    python main.py cache
"""

import argparse
import json
import sys

from axion.config import get_settings
from axion.logging_config import configure_logging


def cmd_serve(args):
    """Start the HTTP server under uvicorn."""
    import uvicorn

    from axion.api import create_app

    settings = get_settings()
    configure_logging(settings.logging)

    host = args.host or settings.api.host
    port = args.port or settings.api.port
    app = create_app(settings=settings)
    print(f"Starting Axion on {host}:{port}")
    uvicorn.run(app, host=host, port=port, log_config=None)


def cmd_routes(args):
    """Print the registered route table in match order."""
    from axion.api.handlers import build_router

    router = build_router()
    for route in router.routes:
        params = ", ".join(route.param_names) or "-"
        print(f"  {route.method:<7} {route.path_pattern:<24} params={params}  {route.handler.__name__}")
    print(f"\n{len(router)} routes")


def cmd_cache(args):
    """Show the configured cache tiers."""
    from axion.cache import CacheTier, TieredCache

    cache = TieredCache.from_settings(get_settings().cache)
    tiers = {tier.value: cache.ttl(tier) for tier in CacheTier}
    print(json.dumps({"ttl_seconds": tiers, "stats": cache.stats().model_dump()}, indent=2))


def main():
    parser = argparse.ArgumentParser(
        description="Axion - tiered cache and pattern router server"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve
    p_serve = subparsers.add_parser("serve", help="Start the HTTP server")
    p_serve.add_argument("--host", default=None)
    p_serve.add_argument("--port", type=int, default=None)

    # routes
    subparsers.add_parser("routes", help="List registered routes")

    # cache
    subparsers.add_parser("cache", help="Show cache tier configuration")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "serve": cmd_serve,
        "routes": cmd_routes,
        "cache": cmd_cache,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
