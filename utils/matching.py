"""
Fuzzy name suggestions for lookups that found nothing.

Matching runs `difflib` against the search master list. Because that list
holds well over a thousand names, the comparison is offloaded to a worker
thread so the event loop keeps serving other requests.
"""

import asyncio
import difflib
from typing import List

from utils.constants import SUGGESTION_COUNT, SUGGESTION_CUTOFF


def _get_close_matches_sync(
    word: str, possibilities: List[str], n: int, cutoff: float
) -> List[str]:
    return difflib.get_close_matches(word, possibilities, n=n, cutoff=cutoff)


async def get_close_matches_async(
    word: str,
    possibilities: List[str],
    n: int = SUGGESTION_COUNT,
    cutoff: float = SUGGESTION_CUTOFF,
) -> List[str]:
    """
    Find the closest names to `word`.

    Args:
        word: The misspelled name.
        possibilities: Known upstream names.
        n: Maximum number of matches to return.
        cutoff: Similarity threshold (0.0 to 1.0).

    Returns:
        Matches sorted by similarity, best first.
    """
    if not word or not possibilities:
        return []

    return await asyncio.to_thread(
        _get_close_matches_sync, word.lower(), possibilities, n, cutoff
    )
