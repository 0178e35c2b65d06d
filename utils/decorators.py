"""
Reusable decorators for the HTTP routes.

This module contains decorators for common functionality such as:
- Route usage logging with timing.
- Unified error translation from the failure vocabulary to JSON responses.
"""

import logging
import time
from functools import wraps
from typing import Awaitable, Callable

from aiohttp import web

from utils.constants import ERROR_INTERNAL
from utils.exceptions import PokedexError

logger = logging.getLogger("pokedex_proxy.decorators")

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def log_route_usage(func: Handler) -> Handler:
    """
    Decorator to log route usage details.

    Logs the handler name, path, resulting status and duration.

    Args:
        func: The route handler to decorate.

    Returns:
        Decorated handler.
    """

    @wraps(func)
    async def wrapper(request: web.Request) -> web.StreamResponse:
        started = time.monotonic()
        response = await func(request)
        logger.info(
            f"Route '{func.__name__}' served {request.path}",
            extra={
                "status": response.status,
                "duration_ms": round((time.monotonic() - started) * 1000, 1),
            },
        )
        return response

    return wrapper


def json_errors(func: Handler) -> Handler:
    """
    Decorator translating failures into JSON error responses.

    - `PokedexError` subclasses map to their own status and body.
    - aiohttp HTTP exceptions pass through untouched.
    - Anything else is logged and answered with a generic 500.

    Args:
        func: The route handler to decorate.

    Returns:
        Decorated handler.
    """

    @wraps(func)
    async def wrapper(request: web.Request) -> web.StreamResponse:
        try:
            return await func(request)
        except PokedexError as e:
            logger.debug(
                f"{func.__name__} failed: {e}",
                extra={"status": e.status, "path": request.path},
            )
            return web.json_response(e.to_dict(), status=e.status)
        except web.HTTPException:
            raise
        except Exception as e:
            logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=e)
            return web.json_response({"message": ERROR_INTERNAL}, status=500)

    return wrapper
