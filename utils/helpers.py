"""
Helper functions for turning raw PokeAPI records into display data.

This module contains utility functions to:
- Format names, abilities and moves for display.
- Derive labels (species genus) and images from raw records.
- Extract ids from upstream resource links.
"""

from typing import Any, Dict, List, Optional

from utils.constants import (
    GENUS_SUFFIX,
    MEGA_MARKER,
    NAME_SEPARATOR,
    REGIONAL_MARKERS,
    UNKNOWN_SPECIES,
)


def normalize_identifier(identifier: Any) -> str:
    """Lowercase string form of an id or name, used as the cache key."""
    return str(identifier).strip().lower()


def id_from_url(url: str) -> int:
    """
    Extract the numeric id from an upstream resource link.

    Args:
        url: Link such as 'https://pokeapi.co/api/v2/pokemon-species/25/'.

    Returns:
        The trailing path segment as an integer.

    Raises:
        ValueError: If the link does not end in a numeric segment.
    """
    segments = [part for part in url.split("/") if part]
    if not segments:
        raise ValueError(f"No path segment in {url!r}")
    return int(segments[-1])


def is_base_form(identifier: str) -> bool:
    """
    Heuristic: identifiers without a separator refer to base forms.

    Numeric ids always pass, which is how the original client requests
    creatures. Hyphenated species names (e.g. 'mr-mime') are treated as
    variants and therefore skip the species lookup.
    """
    return NAME_SEPARATOR not in identifier


def is_mega_variety(name: str) -> bool:
    """True for upstream variety names carrying the mega marker."""
    return MEGA_MARKER in name.split(NAME_SEPARATOR)


def is_regional_variety(name: str) -> bool:
    """True for upstream variety names carrying a regional marker."""
    return any(marker in name.split(NAME_SEPARATOR) for marker in REGIONAL_MARKERS)


def format_display_name(name: str) -> str:
    """
    Convert an upstream name into a display name.

    Hyphens become spaces and every word is capitalized. Mega variants move
    the marker to the front: 'charizard-mega-x' -> 'Mega Charizard X'.

    Args:
        name: Upstream name (e.g., 'bulbasaur', 'venusaur-mega').

    Returns:
        Display name.
    """
    parts = [part for part in name.split(NAME_SEPARATOR) if part]

    if MEGA_MARKER in parts[1:]:
        index = parts.index(MEGA_MARKER, 1)
        parts = [MEGA_MARKER] + parts[:index] + parts[index + 1 :]

    return " ".join(part.capitalize() for part in parts)


def format_ability(name: str) -> str:
    """Display form of an ability: hyphens replaced by spaces."""
    return name.replace(NAME_SEPARATOR, " ")


def format_move(name: str) -> str:
    """Display form of a move: hyphens replaced by spaces."""
    return name.replace(NAME_SEPARATOR, " ")


def format_move_list(moves: List[Dict[str, Any]]) -> List[str]:
    """
    Format the upstream move list for display.

    Duplicates are kept; the result is sorted lexicographically after
    formatting.
    """
    return sorted(format_move(entry["move"]["name"]) for entry in moves)


def extract_image_url(record: Dict[str, Any]) -> Optional[str]:
    """
    Pick the best available image for a pokemon record.

    Prefers the official artwork and falls back to the default sprite.

    Returns:
        Image URL, or None when the record has no image at all.
    """
    sprites = record.get("sprites") or {}
    artwork = (sprites.get("other") or {}).get("official-artwork") or {}
    return artwork.get("front_default") or sprites.get("front_default")


def extract_types(record: Dict[str, Any]) -> List[str]:
    """Type names in upstream declaration order."""
    return [
        t["type"]["name"] for t in record.get("types", []) if (t.get("type") or {}).get("name")
    ]


def extract_species_label(species: Optional[Dict[str, Any]], language: str) -> str:
    """
    Derive the species label from the genus text in the given language.

    'Seed Pokémon' becomes 'Seed'. Falls back to 'Unknown' when there is no
    species record or no genus in that language.
    """
    if not species:
        return UNKNOWN_SPECIES

    for entry in species.get("genera", []):
        if entry.get("language", {}).get("name") == language:
            genus = entry.get("genus", "")
            if genus.endswith(GENUS_SUFFIX):
                genus = genus[: -len(GENUS_SUFFIX)]
            return genus or UNKNOWN_SPECIES

    return UNKNOWN_SPECIES
