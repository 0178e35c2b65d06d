"""
Pokedex HTTP routes.

This module exposes the aggregation engine over JSON:
- Creature lookup by id or name, and alternate form lookup by name.
- Generation listings and substring search.
- Evolution trees.
- Cache statistics.

Handlers stay thin: validate the path parameter, call the aggregator,
serialize. Failures are translated by `json_errors`.
"""

from aiohttp import web

from utils.aggregator import PokedexAggregator
from utils.constants import (
    ERROR_FORM_NOT_FOUND,
    ERROR_POKEMON_NOT_FOUND,
)
from utils.decorators import json_errors, log_route_usage
from utils.exceptions import InvalidRequestError, NotFoundError
from utils.validators import (
    validate_generation,
    validate_identifier,
    validate_search_query,
)

AGGREGATOR_KEY = web.AppKey("aggregator", PokedexAggregator)

routes = web.RouteTableDef()


def _aggregator(request: web.Request) -> PokedexAggregator:
    return request.app[AGGREGATOR_KEY]


def _identifier(request: web.Request, name: str) -> str:
    identifier = request.match_info[name].strip()
    is_valid, error = validate_identifier(identifier)
    if not is_valid:
        raise InvalidRequestError(error)
    return identifier


@routes.get("/api/pokemon/generation/{gen}")
@log_route_usage
@json_errors
async def pokemon_by_generation(request: web.Request) -> web.Response:
    """List every creature of a generation, ascending by id."""
    is_valid, error, generation = validate_generation(request.match_info["gen"])
    if not is_valid:
        raise InvalidRequestError(error)

    listing = await _aggregator(request).get_generation(generation)
    return web.json_response(listing)


@routes.get("/api/pokemon/search/{query}")
@log_route_usage
@json_errors
async def search_pokemon(request: web.Request) -> web.Response:
    """
    Substring search over names and ids.

    Answers 503 while the search index cannot be built, which clients can
    tell apart from an empty result list.
    """
    is_valid, error, query = validate_search_query(request.match_info["query"])
    if not is_valid:
        raise InvalidRequestError(error)

    results = await _aggregator(request).search(query)
    return web.json_response(results)


@routes.get("/api/pokemon/evolution/{id}")
@log_route_usage
@json_errors
async def evolution_tree(request: web.Request) -> web.Response:
    """Decorated evolution tree for a creature."""
    identifier = _identifier(request, "id")
    tree = await _aggregator(request).get_evolution_tree(identifier)
    return web.json_response(tree)


@routes.get("/api/pokemon/form/{name}")
@log_route_usage
@json_errors
async def pokemon_form(request: web.Request) -> web.Response:
    """Alternate form (mega, regional) by upstream name."""
    name = _identifier(request, "name")
    aggregator = _aggregator(request)

    view = await aggregator.get_form(name)
    if view is None:
        raise NotFoundError(ERROR_FORM_NOT_FOUND, await aggregator.suggest(name))
    return web.json_response(view)


@routes.get("/api/pokemon/{id}")
@log_route_usage
@json_errors
async def pokemon_detail(request: web.Request) -> web.Response:
    """Full creature view by id or name."""
    identifier = _identifier(request, "id")
    aggregator = _aggregator(request)

    view = await aggregator.get_entity(identifier)
    if view is None:
        raise NotFoundError(ERROR_POKEMON_NOT_FOUND, await aggregator.suggest(identifier))
    return web.json_response(view)


@routes.get("/api/stats")
@log_route_usage
@json_errors
async def cache_stats(request: web.Request) -> web.Response:
    """Cache and request de-duplication statistics."""
    aggregator = _aggregator(request)
    return web.json_response(
        {
            "cache": aggregator.cache.get_stats(),
            "deduplication": aggregator.get_deduplication_stats(),
            "upstream": {
                "requests": aggregator.client.request_count,
                "failures": aggregator.client.failure_count,
            },
        }
    )
