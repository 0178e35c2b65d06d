"""
Input validation and sanitization functions.

This module ensures that path parameters are safe and conform to expected
formats before they are used to build upstream URLs or cache keys. It
handles sanitization of strings and validation of identifiers,
generations and search queries.
"""

from typing import Optional, Tuple

from config.settings import MAX_GENERATION
from utils.constants import (
    GENERATION_PATTERN,
    IDENTIFIER_PATTERN,
    MAX_IDENTIFIER_LENGTH,
    MAX_SEARCH_QUERY_LENGTH,
    MIN_IDENTIFIER_LENGTH,
)


def sanitize_input(text: str) -> str:
    """
    Sanitize user input by removing potentially harmful characters.

    Allowed characters are: alphanumeric, hyphens and spaces. This keeps
    path separators and query syntax out of upstream URLs.

    Args:
        text: Raw user input string.

    Returns:
        Sanitized string with special characters removed.
    """
    if not text:
        return ""

    text = text.strip()
    return "".join(c for c in text if c.isalnum() or c in "- ")


def validate_identifier(identifier: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a creature id or name against length and regex constraints.

    Args:
        identifier: Numeric id or upstream name (e.g., '25', 'pikachu',
            'charizard-mega-x').

    Returns:
        Tuple containing (is_valid, error_message).
        If valid, error_message is None.
    """
    if not identifier:
        return False, "Identifier cannot be empty."

    if len(identifier) < MIN_IDENTIFIER_LENGTH:
        return (
            False,
            f"Identifier must be at least {MIN_IDENTIFIER_LENGTH} character.",
        )

    if len(identifier) > MAX_IDENTIFIER_LENGTH:
        return (
            False,
            f"Identifier is too long (max {MAX_IDENTIFIER_LENGTH} characters).",
        )

    if not IDENTIFIER_PATTERN.match(identifier):
        return (
            False,
            "Identifier contains invalid characters. Use only letters, numbers and hyphens.",
        )

    if identifier.isdigit() and int(identifier) < 1:
        return False, "Numeric identifiers must be positive."

    return True, None


def validate_generation(generation: str) -> Tuple[bool, Optional[str], Optional[int]]:
    """
    Validate and normalize a generation input string.

    Args:
        generation: Generation string (e.g., '3', 'gen3', 'generation-3').

    Returns:
        Tuple containing (is_valid, error_message, generation_number).
        Example success: (True, None, 3).
    """
    match = GENERATION_PATTERN.match((generation or "").strip())
    if not match:
        return False, "Invalid generation. Use a number such as 1 or gen1.", None

    number = int(match.group(1))
    if number < 1 or number > MAX_GENERATION:
        return (
            False,
            f"Generation must be between 1 and {MAX_GENERATION}. You provided: {number}",
            None,
        )

    return True, None, number


def validate_search_query(query: str) -> Tuple[bool, Optional[str], Optional[str]]:
    """
    Validate and normalize a search query.

    Args:
        query: Raw substring entered by the user.

    Returns:
        Tuple containing (is_valid, error_message, normalized_query).
        The normalized query is sanitized, lowercased and uses hyphens in
        place of spaces, matching upstream naming.
    """
    cleaned = sanitize_input(query or "").lower().replace(" ", "-")

    if not cleaned:
        return False, "Search query cannot be empty.", None

    if len(cleaned) > MAX_SEARCH_QUERY_LENGTH:
        return (
            False,
            f"Search query is too long (max {MAX_SEARCH_QUERY_LENGTH} characters).",
            None,
        )

    return True, None, cleaned
