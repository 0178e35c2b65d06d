"""
Evolution tree builder.

Turns a PokeAPI evolution chain into a display tree in two passes:
1. `parse_chain` mirrors the upstream branching structure into plain
   EvolutionNode dicts (ids, names, trigger text).
2. `decorate_tree` returns a new tree where every node carries a display
   name and image, fetched concurrently per node. A node whose lookup
   fails keeps its parsed name and gets no image; the rest of the tree is
   unaffected.

Neither pass assumes a fixed depth or branching factor.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

from utils.api_clients import PokeAPIClient, ResourceKind, UpstreamError
from utils.api_models import EvolutionNode
from utils.cache import PokedexCache
from utils.constants import ERROR_EVOLUTION_FAILED, NAME_SEPARATOR
from utils.exceptions import UpstreamUnavailableError
from utils.helpers import extract_image_url, format_display_name, id_from_url

logger = logging.getLogger("pokedex_proxy.evolution")


def _label(name: str) -> str:
    return name.replace(NAME_SEPARATOR, " ")


def describe_trigger(details: Optional[List[Dict[str, Any]]]) -> str:
    """
    Build the human-readable condition for an evolution step.

    Only the first evolution detail is used; alternative conditions listed
    after it are not shown.

    Args:
        details: The `evolution_details` list of a chain node.

    Returns:
        Text such as '(level up Lvl 16)' or '(use item w/ fire stone)', or
        an empty string when there are no details.
    """
    if not details:
        return ""

    detail = details[0]
    parts = []

    trigger = (detail.get("trigger") or {}).get("name")
    if trigger:
        parts.append(_label(trigger))

    if detail.get("min_level"):
        parts.append(f"Lvl {detail['min_level']}")

    item = (detail.get("item") or {}).get("name")
    if item:
        parts.append(f"w/ {_label(item)}")

    held_item = (detail.get("held_item") or {}).get("name")
    if held_item:
        parts.append(f"holding {_label(held_item)}")

    known_move = (detail.get("known_move") or {}).get("name")
    if known_move:
        parts.append(f"knowing {_label(known_move)}")

    if detail.get("min_happiness"):
        parts.append("High Happiness")

    if detail.get("time_of_day"):
        parts.append(f"at {detail['time_of_day']}")

    if not parts:
        return ""
    return f"({' '.join(parts)})"


def parse_chain(node: Dict[str, Any], is_root: bool = True) -> EvolutionNode:
    """
    Recursively convert an upstream chain link into an EvolutionNode.

    Args:
        node: Chain link with `species`, `evolution_details`, `evolves_to`.
        is_root: The root never has a trigger.

    Returns:
        Undecorated tree mirroring the upstream structure.

    Raises:
        KeyError, ValueError: If the chain link is malformed.
    """
    species = node["species"]
    return {
        "id": id_from_url(species["url"]),
        "name": species["name"],
        "trigger": "" if is_root else describe_trigger(node.get("evolution_details")),
        "evolves_to": [
            parse_chain(child, is_root=False) for child in node.get("evolves_to", [])
        ],
    }


async def _lookup_display(
    client: PokeAPIClient, pokemon_id: int, cache: Optional[PokedexCache]
) -> Optional[Tuple[str, Optional[str]]]:
    """Fetch (display name, image) for a node, or None on failure."""
    if cache is not None:
        view = cache.peek_entity(str(pokemon_id))
        if view is not None:
            return view["name"], view["imageUrl"]

    try:
        record = await client.fetch(ResourceKind.ENTITY, pokemon_id)
        return format_display_name(record["name"]), extract_image_url(record)
    except (UpstreamError, KeyError, TypeError) as e:
        logger.debug(
            "Evolution node lookup failed, keeping parsed name",
            extra={"pokemon_id": pokemon_id, "error": str(e)},
        )
        return None


async def decorate_tree(
    client: PokeAPIClient, node: EvolutionNode, cache: Optional[PokedexCache] = None
) -> EvolutionNode:
    """
    Return a copy of `node` with display names and images filled in.

    The node's own lookup and its children's decoration run concurrently.
    """
    display, *children = await asyncio.gather(
        _lookup_display(client, node["id"], cache),
        *(decorate_tree(client, child, cache) for child in node["evolves_to"]),
    )

    name, image_url = display if display else (node["name"], None)
    return {
        "id": node["id"],
        "name": name,
        "trigger": node["trigger"],
        "imageUrl": image_url,
        "evolves_to": children,
    }


async def build_evolution_tree(
    client: PokeAPIClient, identifier: str, cache: Optional[PokedexCache] = None
) -> EvolutionNode:
    """
    Build the decorated evolution tree for a creature.

    Args:
        client: Upstream client.
        identifier: Species id or name.
        cache: Optional entity cache consulted before re-fetching nodes.

    Returns:
        Decorated root node. A creature that does not evolve yields a root
        with an empty `evolves_to`.

    Raises:
        UpstreamUnavailableError: If the species, its chain link or the
            chain itself cannot be fetched or parsed.
    """
    try:
        species = await client.fetch(ResourceKind.SPECIES, identifier)
        link = (species.get("evolution_chain") or {}).get("url")
        if not link:
            raise ValueError("species has no evolution chain link")
        chain = await client.fetch(ResourceKind.EVOLUTION_CHAIN, link)
        skeleton = parse_chain(chain["chain"])
    except (UpstreamError, KeyError, TypeError, ValueError) as e:
        logger.error(
            "Failed to fetch evolution data",
            extra={"identifier": identifier, "error": str(e)},
        )
        raise UpstreamUnavailableError(ERROR_EVOLUTION_FAILED) from e

    tree = await decorate_tree(client, skeleton, cache)
    logger.debug("Built evolution tree", extra={"identifier": identifier, "root": tree["name"]})
    return tree
