"""
Type definitions for aggregated views and cache bookkeeping.

These mirror the JSON bodies returned by the proxy so the aggregation code
and the routes agree on field names.
"""

from typing import Dict, List, Optional, TypedDict


class StatEntry(TypedDict):
    """A single base stat, in upstream order."""

    name: str
    value: int


class Matchups(TypedDict):
    """
    Type matchups unioned across every type of a creature.

    Each list holds unique type names in alphabetical order; the order
    carries no meaning.
    """

    weaknesses: List[str]
    strengths: List[str]
    resistances: List[str]
    immunities: List[str]


class FormView(TypedDict):
    """
    Alternate variety of a creature (mega evolution or regional form).

    Attributes:
        name: Display name (e.g., 'Mega Charizard X').
        rawName: Upstream identifier (e.g., 'charizard-mega-x').
        imageUrl: Artwork URL, or None when upstream has none.
        types: Type names in upstream order.
    """

    name: str
    rawName: str
    imageUrl: Optional[str]
    types: List[str]


class EntityView(TypedDict, total=False):
    """
    Denormalized view of one creature, merged from several upstream resources.

    Height and weight stay in upstream tenths (decimetres, hectograms).
    Species-derived fields are None when the species resource is unavailable
    or was not fetched (alternate forms). `generation` is only set on
    entries returned from a generation listing.

    `name` is derived for display; search matches against `rawName` and
    `id`, so a query like 'mr-mime' returns 'Mr Mime'.
    """

    id: int
    name: str
    rawName: str
    imageUrl: Optional[str]
    types: List[str]
    height: int
    weight: int
    stats: List[StatEntry]
    abilities: List[str]
    moves: List[str]
    species: str
    matchups: Matchups
    megaEvolutions: List[FormView]
    regionalForms: List[FormView]
    genderRate: Optional[int]
    eggGroups: Optional[List[str]]
    hatchCounter: Optional[int]
    generation: int


class EvolutionNode(TypedDict, total=False):
    """
    One stage of an evolution chain.

    `trigger` is empty for the root. `imageUrl` is only present once the
    tree has been decorated.
    """

    id: int
    name: str
    trigger: str
    imageUrl: Optional[str]
    evolves_to: List["EvolutionNode"]


class MasterListEntry(TypedDict):
    """Name/id pair from the species index used for substring search."""

    name: str
    id: int


class CacheStats(TypedDict):
    """
    Represents cache statistics.

    Attributes:
        entities: Number of keys in the identifier cache (one view may be
            reachable under several keys).
        generations: Number of cached generation listings.
        types: Number of cached type relation sets.
        master_list: Number of entries in the search index (0 until built).
        hits: Number of successful cache lookups.
        misses: Number of lookups that resulted in upstream calls.
        hit_rate: Percentage string (e.g., '85.5%').
    """

    entities: int
    generations: int
    types: int
    master_list: int
    hits: int
    misses: int
    hit_rate: str


class DeduplicationStats(TypedDict):
    """
    Represents request deduplication statistics.

    Attributes:
        pending_requests: Number of aggregations currently in flight.
        joined_requests: Number of callers that joined an in-flight
            aggregation instead of starting their own.
    """

    pending_requests: int
    joined_requests: int


TypeRelations = Dict[str, frozenset]
