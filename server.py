"""
Main entry point for the Pokedex aggregation proxy.

This module configures logging, validates settings, wires the upstream
client, the cache service and the aggregation engine into an aiohttp
application, and handles startup/shutdown of the upstream session.
"""

import logging
import sys
from typing import Optional

from aiohttp import web

from config.settings import HOST, LOG_FILE, LOG_LEVEL, PORT, validate_settings
from routes.pokedex import AGGREGATOR_KEY, routes
from utils.aggregator import PokedexAggregator
from utils.api_clients import PokeAPIClient
from utils.cache import PokedexCache

logger = logging.getLogger("pokedex_proxy")


def setup_logging() -> None:
    """Configure root logging to stdout, plus a log file when LOG_FILE is set."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if LOG_FILE:
        handlers.append(logging.FileHandler(LOG_FILE, encoding="utf-8"))

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )

    level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    logging.getLogger().setLevel(level)
    logger.setLevel(level)


def create_app(
    client: Optional[PokeAPIClient] = None, cache: Optional[PokedexCache] = None
) -> web.Application:
    """
    Build the web application.

    The cache and aggregator are created once here and live as long as the
    application, so every request shares the same memo tables.

    Args:
        client: Upstream client; a pooled PokeAPIClient by default.
        cache: Cache service; a fresh PokedexCache by default.

    Returns:
        Configured aiohttp Application.
    """
    client = client or PokeAPIClient()
    cache = cache or PokedexCache()

    app = web.Application()
    app[AGGREGATOR_KEY] = PokedexAggregator(client, cache)
    app.add_routes(routes)
    app.on_cleanup.append(_close_client)
    return app


async def _close_client(app: web.Application) -> None:
    """Release the upstream session and log final statistics on shutdown."""
    aggregator = app[AGGREGATOR_KEY]
    logger.info("Shutdown initiated - cleaning up resources")
    logger.info("Cache stats", extra=dict(aggregator.cache.get_stats()))
    await aggregator.client.close()


def main() -> None:
    """Configure logging, validate settings and serve until interrupted."""
    setup_logging()

    try:
        validate_settings()
    except ValueError as e:
        logger.critical(f"❌ Configuration validation failed: {e}")
        sys.exit(1)

    logger.info(f"Pokedex proxy starting on {HOST}:{PORT}")
    web.run_app(create_app(), host=HOST, port=PORT, print=None)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logger.info("Server stopped by user (Ctrl+C)")
    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=e)
        sys.exit(1)
