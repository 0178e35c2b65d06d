"""
Aggregation engine for creature data.

Builds denormalized views by fanning out to several PokeAPI resources
(pokemon, species, types, varieties, generations) and memoizes the results
in an injected `PokedexCache`. Independent upstream calls are issued
together and joined; only calls whose argument comes from a previous
response run sequentially.

Failure policy:
- The primary pokemon record is mandatory (missing -> None).
- Species, per-type relations, per-form records, generation members and
  search matches degrade silently, whether unreachable or malformed.
- Generation member lists and the search index raise, since there is
  nothing to aggregate without them.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from config.settings import SEARCH_RESULT_LIMIT, SPECIES_INDEX_LIMIT, SPECIES_LANGUAGE
from utils.api_clients import Identifier, PokeAPIClient, ResourceKind, UpstreamError
from utils.api_models import (
    DeduplicationStats,
    EntityView,
    EvolutionNode,
    FormView,
    Matchups,
    MasterListEntry,
    TypeRelations,
)
from utils.cache import PokedexCache
from utils.constants import (
    DAMAGE_RELATION_CATEGORIES,
    ERROR_GENERATION_FAILED,
    ERROR_INDEX_UNAVAILABLE,
    UNKNOWN_SPECIES,
)
from utils.evolution import build_evolution_tree
from utils.exceptions import IndexUnavailableError, UpstreamUnavailableError
from utils.helpers import (
    extract_image_url,
    extract_species_label,
    extract_types,
    format_ability,
    format_display_name,
    format_move_list,
    id_from_url,
    is_base_form,
    is_mega_variety,
    is_regional_variety,
    normalize_identifier,
)
from utils.matching import get_close_matches_async

logger = logging.getLogger("pokedex_proxy.aggregator")


class PokedexAggregator:
    """
    Merges upstream resources into entity views, backed by a cache service.

    Attributes:
        client: Upstream client used for every fetch.
        cache: Process-lifetime cache shared by all requests.
    """

    def __init__(
        self,
        client: PokeAPIClient,
        cache: PokedexCache,
        search_limit: int = SEARCH_RESULT_LIMIT,
        index_limit: int = SPECIES_INDEX_LIMIT,
        language: str = SPECIES_LANGUAGE,
    ):
        self.client = client
        self.cache = cache
        self.search_limit = search_limit
        self.index_limit = index_limit
        self.language = language

        # Tracks in-flight aggregations to prevent duplicate upstream fan-out
        self._pending_requests: Dict[str, asyncio.Task] = {}
        self._joined_requests = 0

    async def _deduplicate_request(
        self, key: str, fetch_func: Callable[..., Awaitable[Any]], *args
    ) -> Any:
        """
        Deduplicate concurrent aggregations of the same resource.

        Checking and registering the pending task happens without any await
        in between, so on a single event loop no lock is needed. Only the
        creator removes the entry once the task settles.

        Args:
            key: Unique key identifying the aggregation.
            fetch_func: Coroutine function to run if nothing is pending.
            *args: Arguments for fetch_func.

        Returns:
            Result from fetch_func or the shared result of a pending task.
        """
        task = self._pending_requests.get(key)
        created = task is None

        if created:
            task = asyncio.create_task(fetch_func(*args))
            self._pending_requests[key] = task
            logger.debug(
                "Request deduplication: Starting new request",
                extra={"key": key[:50]},
            )
        else:
            self._joined_requests += 1
            logger.debug(
                "Request deduplication: Joining existing request",
                extra={"key": key[:50]},
            )

        try:
            return await asyncio.shield(task)
        finally:
            if created and self._pending_requests.get(key) is task:
                del self._pending_requests[key]

    # Entities

    async def get_entity(self, identifier: Identifier) -> Optional[EntityView]:
        """
        Get the full view for a creature by id or name.

        Args:
            identifier: Numeric id or name (any case).

        Returns:
            The cached or freshly aggregated view, or None if the creature
            does not exist upstream (nothing is cached in that case).
        """
        key = normalize_identifier(identifier)

        cached = self.cache.get_entity(key)
        if cached is not None:
            return cached

        return await self._deduplicate_request(f"entity:{key}", self._build_entity, key)

    async def get_form(self, name: str) -> Optional[EntityView]:
        """
        Get the view for an alternate form by its upstream name.

        Forms go through the same identifier cache as base creatures; the
        separator in their names skips the species lookup.
        """
        return await self.get_entity(name)

    async def _build_entity(self, key: str) -> Optional[EntityView]:
        """Internal method fetching and merging every resource for one creature."""
        try:
            primary = await self.client.fetch(ResourceKind.ENTITY, key)
        except UpstreamError as e:
            logger.info(
                "Primary resource unavailable",
                extra={"identifier": key, "status_code": e.status},
            )
            return None

        base_form = is_base_form(key)
        types = extract_types(primary)

        species_call = (
            self._fetch_species(primary, key) if base_form else _resolved(None)
        )
        species, *relations = await asyncio.gather(
            species_call,
            *(self.get_type_relations(type_name) for type_name in types),
        )

        details = self._read_species(species, key)
        mega_forms: List[FormView] = []
        regional_forms: List[FormView] = []
        if details is not None:
            mega_forms, regional_forms = await self._fetch_forms(species)

        try:
            view = self._merge(primary, details, relations, mega_forms, regional_forms)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(
                "Malformed primary resource",
                extra={"identifier": key, "error": str(e)},
                exc_info=True,
            )
            return None

        keys = [key, str(view["id"])]
        if base_form:
            keys.append(primary.get("name", ""))
        self.cache.set_entity(view, keys)

        logger.info(
            f"Aggregated {view['rawName']} (#{view['id']})",
            extra={
                "identifier": key,
                "types": len(types),
                "species": details is not None,
                "forms": len(mega_forms) + len(regional_forms),
            },
        )
        return view

    async def _fetch_species(
        self, primary: Dict[str, Any], key: str
    ) -> Optional[Dict[str, Any]]:
        """Fetch the species record; failures degrade to None."""
        link = (primary.get("species") or {}).get("url") or key
        try:
            return await self.client.fetch(ResourceKind.SPECIES, link)
        except UpstreamError as e:
            logger.warning(
                "Species unavailable, continuing without it",
                extra={"identifier": key, "error": str(e)},
            )
            return None

    def _read_species(
        self, species: Optional[Dict[str, Any]], key: str
    ) -> Optional[Dict[str, Any]]:
        """
        Pull the species-derived view fields out of a species record.

        Args:
            species: Species record, or None when it was not fetched.
            key: Identifier being aggregated, for logging.

        Returns:
            Dict with `species`, `genderRate`, `eggGroups` and `hatchCounter`,
            or None if there is no record or it is malformed.
        """
        if species is None:
            return None

        try:
            return {
                "species": extract_species_label(species, self.language),
                "genderRate": species.get("gender_rate"),
                "eggGroups": [g["name"] for g in species.get("egg_groups") or []],
                "hatchCounter": species.get("hatch_counter"),
            }
        except (AttributeError, KeyError, TypeError) as e:
            logger.warning(
                "Malformed species resource, continuing without it",
                extra={"identifier": key, "error": str(e)},
            )
            return None

    async def _fetch_forms(
        self, species: Dict[str, Any]
    ) -> Tuple[List[FormView], List[FormView]]:
        """
        Fetch mega evolutions and regional forms listed by a species.

        Args:
            species: Species record with a `varieties` list.

        Returns:
            Tuple of (mega_forms, regional_forms), each in variety order,
            without the forms that failed to load.
        """
        mega_links: List[str] = []
        regional_links: List[str] = []

        for variety in species.get("varieties") or []:
            try:
                if variety.get("is_default"):
                    continue
                pokemon = variety.get("pokemon") or {}
                name = pokemon.get("name", "")
                link = pokemon.get("url") or name
            except AttributeError:
                logger.debug("Skipping malformed variety", extra={"variety": str(variety)})
                continue
            if is_mega_variety(name):
                mega_links.append(link)
            elif is_regional_variety(name):
                regional_links.append(link)

        results = await asyncio.gather(
            *(self._fetch_form(link) for link in mega_links + regional_links)
        )
        mega_forms = [form for form in results[: len(mega_links)] if form]
        regional_forms = [form for form in results[len(mega_links) :] if form]
        return mega_forms, regional_forms

    async def _fetch_form(self, link: str) -> Optional[FormView]:
        """Fetch one variety as a FormView; failures degrade to None."""
        try:
            record = await self.client.fetch(ResourceKind.ENTITY, link)
            return {
                "name": format_display_name(record["name"]),
                "rawName": record["name"],
                "imageUrl": extract_image_url(record),
                "types": extract_types(record),
            }
        except (UpstreamError, KeyError, TypeError) as e:
            logger.warning("Form unavailable, skipping", extra={"link": link, "error": str(e)})
            return None

    def _merge(
        self,
        primary: Dict[str, Any],
        details: Optional[Dict[str, Any]],
        relations: List[Optional[TypeRelations]],
        mega_forms: List[FormView],
        regional_forms: List[FormView],
    ) -> EntityView:
        """Build the entity view from already-fetched pieces."""
        view: EntityView = {
            "id": int(primary["id"]),
            "name": format_display_name(primary["name"]),
            "rawName": primary["name"],
            "imageUrl": extract_image_url(primary),
            "types": extract_types(primary),
            "height": primary.get("height"),
            "weight": primary.get("weight"),
            "stats": [
                {"name": s["stat"]["name"], "value": s["base_stat"]}
                for s in primary.get("stats", [])
            ],
            "abilities": [
                format_ability(a["ability"]["name"]) for a in primary.get("abilities", [])
            ],
            "moves": format_move_list(primary.get("moves", [])),
            "species": UNKNOWN_SPECIES,
            "matchups": merge_matchups(relations),
            "megaEvolutions": mega_forms,
            "regionalForms": regional_forms,
            "genderRate": None,
            "eggGroups": None,
            "hatchCounter": None,
        }

        if details is not None:
            view.update(details)

        return view

    # Types

    async def get_type_relations(self, type_name: str) -> Optional[TypeRelations]:
        """
        Get the damage relations of a single type.

        Args:
            type_name: Upstream type name (e.g., 'grass').

        Returns:
            Mapping of matchup category to a frozenset of type names, or
            None if the type could not be fetched or is malformed (not
            cached).
        """
        cached = self.cache.get_type_relations(type_name)
        if cached is not None:
            return cached

        return await self._deduplicate_request(
            f"type:{type_name}", self._build_type_relations, type_name
        )

    async def _build_type_relations(self, type_name: str) -> Optional[TypeRelations]:
        try:
            record = await self.client.fetch(ResourceKind.TYPE, type_name)
        except UpstreamError as e:
            logger.warning(
                "Type relations unavailable, skipping",
                extra={"type": type_name, "error": str(e)},
            )
            return None

        try:
            damage = record.get("damage_relations") or {}
            relations: TypeRelations = {
                category: frozenset(t["name"] for t in damage.get(upstream_key) or [])
                for category, upstream_key in DAMAGE_RELATION_CATEGORIES.items()
            }
        except (AttributeError, KeyError, TypeError) as e:
            logger.warning(
                "Malformed type resource, skipping",
                extra={"type": type_name, "error": str(e)},
            )
            return None

        self.cache.set_type_relations(type_name, relations)
        return relations

    # Generations

    async def get_generation(self, generation: int) -> List[EntityView]:
        """
        Get every creature introduced in a generation, sorted by id.

        Args:
            generation: Generation number (1-based).

        Returns:
            Views with `generation` set, ascending by id. Members that fail
            to aggregate are omitted.

        Raises:
            UpstreamUnavailableError: If the member list cannot be fetched.
        """
        cached = self.cache.get_generation(generation)
        if cached is not None:
            return cached

        return await self._deduplicate_request(
            f"generation:{generation}", self._build_generation, generation
        )

    async def _build_generation(self, generation: int) -> List[EntityView]:
        try:
            record = await self.client.fetch(ResourceKind.GENERATION, generation)
        except UpstreamError as e:
            logger.error(
                "Generation member list unavailable",
                extra={"generation": generation, "error": str(e)},
            )
            raise UpstreamUnavailableError(
                ERROR_GENERATION_FAILED.format(generation=generation)
            ) from e

        members: List[Identifier] = []
        for member in record.get("pokemon_species", []):
            try:
                members.append(id_from_url(member["url"]))
            except (KeyError, ValueError):
                members.append(member.get("name", ""))

        results = await asyncio.gather(
            *(self.get_entity(member) for member in members if member != ""),
            return_exceptions=True,
        )

        listing: List[EntityView] = []
        for result in results:
            if isinstance(result, Exception):
                logger.error(
                    f"Unexpected error aggregating generation member: {result}",
                    extra={"generation": generation},
                    exc_info=result,
                )
            elif result is not None:
                # The shared cached view stays untouched
                listing.append({**result, "generation": generation})

        listing.sort(key=lambda view: view["id"])
        self.cache.set_generation(generation, listing)

        logger.info(
            f"Aggregated generation {generation}: {len(listing)}/{len(members)} members",
            extra={"generation": generation},
        )
        return listing

    # Search

    async def get_master_list(self) -> List[MasterListEntry]:
        """
        Get the species master list, building it on first use.

        Raises:
            IndexUnavailableError: If the index cannot be built. Nothing is
                remembered, so the next call retries.
        """
        if self.cache.master_list is not None:
            return self.cache.master_list

        return await self._deduplicate_request("master_list", self._build_master_list)

    async def _build_master_list(self) -> List[MasterListEntry]:
        try:
            record = await self.client.fetch_species_index(self.index_limit)
        except UpstreamError as e:
            logger.error("Failed to build search index", extra={"error": str(e)})
            raise IndexUnavailableError(ERROR_INDEX_UNAVAILABLE) from e

        entries: List[MasterListEntry] = []
        for result in record.get("results", []):
            try:
                entries.append({"name": result["name"], "id": id_from_url(result["url"])})
            except (KeyError, ValueError):
                logger.debug("Skipping malformed index entry", extra={"entry": str(result)})

        if not entries:
            logger.error("Search index came back empty")
            raise IndexUnavailableError(ERROR_INDEX_UNAVAILABLE)

        self.cache.set_master_list(entries)
        return entries

    async def search(self, query: str) -> List[EntityView]:
        """
        Find creatures whose name or id contains the query.

        Args:
            query: Substring, matched case-insensitively against the
                upstream name (the view's `rawName`, not the display
                `name`) and the decimal id.

        Returns:
            Up to `search_limit` views in index (ascending id) order.
            Matches that fail to aggregate are dropped.

        Raises:
            IndexUnavailableError: If the master list cannot be built.
        """
        entries = await self.get_master_list()
        needle = query.strip().lower()

        matches = [
            entry
            for entry in entries
            if needle in entry["name"].lower() or needle in str(entry["id"])
        ][: self.search_limit]

        results = await asyncio.gather(
            *(self.get_entity(entry["id"]) for entry in matches),
            return_exceptions=True,
        )

        views: List[EntityView] = []
        for entry, result in zip(matches, results):
            if isinstance(result, Exception):
                logger.error(
                    f"Unexpected error resolving search match: {result}",
                    extra={"match": entry["name"]},
                    exc_info=result,
                )
            elif result is not None:
                views.append(result)

        logger.debug(
            f"Search '{needle}' matched {len(matches)}, resolved {len(views)}"
        )
        return views

    async def suggest(self, query: str) -> List[str]:
        """
        Suggest known names close to a query that found nothing.

        Only uses an already-built master list; never triggers a build.
        """
        entries = self.cache.master_list
        if not entries:
            return []
        return await get_close_matches_async(query, [entry["name"] for entry in entries])

    # Evolution

    async def get_evolution_tree(self, identifier: Identifier) -> EvolutionNode:
        """
        Get the decorated evolution tree for a creature.

        Raises:
            UpstreamUnavailableError: If the species or chain is unavailable.
        """
        return await build_evolution_tree(
            self.client, normalize_identifier(identifier), self.cache
        )

    def get_deduplication_stats(self) -> DeduplicationStats:
        """
        Get request deduplication statistics.

        Returns:
            DeduplicationStats object.
        """
        return {
            "pending_requests": len(self._pending_requests),
            "joined_requests": self._joined_requests,
        }


def merge_matchups(relations: List[Optional[TypeRelations]]) -> Matchups:
    """
    Union the matchup categories of several types.

    Missing relations (failed fetches) contribute nothing. Each category is
    returned as a sorted list of unique type names.
    """
    merged: Dict[str, set] = {category: set() for category in DAMAGE_RELATION_CATEGORIES}
    for relation in relations:
        if not relation:
            continue
        for category in merged:
            merged[category].update(relation.get(category, ()))

    return {category: sorted(names) for category, names in merged.items()}  # type: ignore


async def _resolved(value):
    return value
