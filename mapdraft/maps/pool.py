"""
Pool Generator - Draws the candidate maps for a new session.

The catalog is copied, shuffled with Random.shuffle (Fisher-Yates, so every
ordering is equally likely), and truncated. Candidates are fresh objects on
every call; sessions never share them.
"""

from __future__ import annotations
import random

from ..engine_core.state import Candidate
from .catalog import MAP_CATALOG

DEFAULT_DRAW_SIZE = 7


def generate_pool(
    pool_size: int | None = None,
    draw_size: int = DEFAULT_DRAW_SIZE,
    rng: random.Random | None = None,
) -> list[Candidate]:
    """
    Draw `draw_size` distinct maps without replacement.

    Args:
        pool_size: How many catalog entries are eligible, taken from the
            front of the catalog (defaults to the whole catalog)
        draw_size: Number of candidates to return
        rng: Random source (a fresh unseeded Random if not provided)

    Returns:
        Ordered candidates, all with banned=False
    """
    if pool_size is None:
        pool_size = len(MAP_CATALOG)
    if pool_size < 0 or pool_size > len(MAP_CATALOG):
        raise ValueError(f"pool_size must be between 0 and {len(MAP_CATALOG)}")
    if draw_size < 0 or draw_size > pool_size:
        raise ValueError(f"draw_size must be between 0 and {pool_size}")

    rng = rng or random.Random()

    maps = list(MAP_CATALOG[:pool_size])
    rng.shuffle(maps)

    return [definition.to_candidate() for definition in maps[:draw_size]]
