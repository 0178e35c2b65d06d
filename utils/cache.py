"""
In-memory cache service for aggregated Pokedex data.

Holds four independent tables for the lifetime of the process:
- entity views keyed by normalized identifier (name, numeric id),
- generation listings keyed by generation number,
- type damage relations keyed by type name,
- the species master list used for substring search.

Entries are only ever added or replaced as whole values. Nothing is evicted
or expired: upstream data is static reference data, so staleness within one
process lifetime is accepted as policy. Construct one instance per process
(or per test) and inject it into the aggregator.
"""

import logging
from typing import Dict, Iterable, List, Optional

from utils.api_models import CacheStats, EntityView, MasterListEntry, TypeRelations

logger = logging.getLogger("pokedex_proxy.cache")


class PokedexCache:
    """Process-lifetime memo tables with hit/miss accounting."""

    def __init__(self):
        self._entities: Dict[str, EntityView] = {}
        self._generations: Dict[int, List[EntityView]] = {}
        self._types: Dict[str, TypeRelations] = {}
        self._master_list: Optional[List[MasterListEntry]] = None

        # Cache statistics
        self.cache_hits = 0
        self.cache_misses = 0

    def _record(self, table: str, key, value) -> None:
        if value is None:
            self.cache_misses += 1
        else:
            self.cache_hits += 1
            logger.debug("Cache hit", extra={"table": table, "cache_key": str(key)[:50]})

    # Entity views

    def get_entity(self, key: str) -> Optional[EntityView]:
        """
        Look up an entity view by normalized identifier.

        Args:
            key: Lowercased name or decimal id string.

        Returns:
            The cached view object itself, or None on a miss.
        """
        view = self._entities.get(key)
        self._record("entity", key, view)
        return view

    def peek_entity(self, key: str) -> Optional[EntityView]:
        """Look up an entity view without touching the statistics."""
        return self._entities.get(key)

    def set_entity(self, view: EntityView, keys: Iterable[str]) -> None:
        """
        Store one view under every key it should be reachable by.

        Args:
            view: Aggregated entity view.
            keys: Normalized identifiers (requested key, numeric id, name).
        """
        keys = {key for key in keys if key}
        for key in keys:
            self._entities[key] = view
        logger.debug("Entity cached", extra={"cache_keys": sorted(keys)})

    # Generation listings

    def get_generation(self, generation: int) -> Optional[List[EntityView]]:
        listing = self._generations.get(generation)
        self._record("generation", generation, listing)
        return listing

    def set_generation(self, generation: int, listing: List[EntityView]) -> None:
        self._generations[generation] = listing
        logger.debug(
            "Generation cached",
            extra={"generation": generation, "size": len(listing)},
        )

    # Type relations

    def get_type_relations(self, type_name: str) -> Optional[TypeRelations]:
        relations = self._types.get(type_name)
        self._record("type", type_name, relations)
        return relations

    def set_type_relations(self, type_name: str, relations: TypeRelations) -> None:
        self._types[type_name] = relations

    # Search master list

    @property
    def master_list(self) -> Optional[List[MasterListEntry]]:
        """The species master list, or None until it has been built."""
        return self._master_list

    def set_master_list(self, entries: List[MasterListEntry]) -> None:
        self._master_list = entries
        logger.info(f"Search index built with {len(entries)} entries")

    def get_stats(self) -> CacheStats:
        """
        Get cache statistics.

        Returns:
            CacheStats object containing table sizes, hit rates and counts.
        """
        total_requests = self.cache_hits + self.cache_misses
        hit_rate = (self.cache_hits / total_requests * 100) if total_requests > 0 else 0

        return {
            "entities": len(self._entities),
            "generations": len(self._generations),
            "types": len(self._types),
            "master_list": len(self._master_list or []),
            "hits": self.cache_hits,
            "misses": self.cache_misses,
            "hit_rate": f"{hit_rate:.1f}%",
        }
