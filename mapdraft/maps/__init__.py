"""
Maps module - The venue catalog and the per-session draw.

This module contains:
- The hard-coded catalog of named maps
- The pool generator used when a session is created
"""

from .catalog import MAP_CATALOG, MapDefinition, get_map_by_id
from .pool import DEFAULT_DRAW_SIZE, generate_pool

__all__ = [
    "MAP_CATALOG",
    "MapDefinition",
    "get_map_by_id",
    "DEFAULT_DRAW_SIZE",
    "generate_pool",
]
