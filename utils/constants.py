"""
This module contains static constant definitions used throughout the application,
including:
- Upstream connection pool sizing
- Naming conventions used by PokeAPI (form markers, label suffixes)
- Regular expressions for input validation
- User-facing messages (errors, status updates)
"""

import re

# Connection pool settings
CONNECTION_POOL_LIMIT = 100  # Total connections across all hosts
CONNECTION_POOL_LIMIT_PER_HOST = 30  # Max connections per host
CONNECTION_KEEPALIVE_TIMEOUT = 30  # Seconds to keep idle connections
USER_AGENT = "Pokedex-Aggregation-Proxy/1.0"

# PokeAPI naming conventions
# Upstream names separate the base species from the variant with a hyphen,
# e.g. "charizard-mega-x" or "vulpix-alola".
NAME_SEPARATOR = "-"
MEGA_MARKER = "mega"
REGIONAL_MARKERS = ("alola", "galar", "hisui", "paldea")
GENUS_SUFFIX = " Pokémon"
UNKNOWN_SPECIES = "Unknown"

# Damage relation keys mapped to matchup categories
DAMAGE_RELATION_CATEGORIES = {
    "weaknesses": "double_damage_from",
    "strengths": "double_damage_to",
    "resistances": "half_damage_from",
    "immunities": "no_damage_from",
}

# Fuzzy suggestions
SUGGESTION_COUNT = 3
SUGGESTION_CUTOFF = 0.6

# Input Validation
MAX_IDENTIFIER_LENGTH = 50
MIN_IDENTIFIER_LENGTH = 1
MAX_SEARCH_QUERY_LENGTH = 50
IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z0-9\-]+$")
GENERATION_PATTERN = re.compile(r"^(?:gen(?:eration)?[\s\-]?)?(\d+)$", re.IGNORECASE)

# Error Messages
ERROR_POKEMON_NOT_FOUND = "Pokémon not found."
ERROR_FORM_NOT_FOUND = "Form not found."
ERROR_GENERATION_FAILED = "Failed to fetch data for Gen {generation}."
ERROR_EVOLUTION_FAILED = "Failed to fetch evolution data."
ERROR_INDEX_UNAVAILABLE = "Failed to build search index."
ERROR_INTERNAL = "An unexpected error occurred. Please try again later."
