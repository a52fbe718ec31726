"""
Map Catalog - The fixed list of venues a draft can draw from.

Each entry has:
- A stable id (unique within the catalog, reused as the candidate id)
- A display name
- An image reference the client resolves against its static assets
"""

from dataclasses import dataclass

from ..engine_core.state import Candidate


@dataclass(frozen=True)
class MapDefinition:
    """A venue in the catalog."""
    id: int
    name: str
    image: str

    def to_candidate(self) -> Candidate:
        """Create a fresh, unbanned pool entry for this map."""
        return Candidate(id=self.id, name=self.name, image_ref=self.image)


MAP_CATALOG: tuple[MapDefinition, ...] = (
    MapDefinition(1, "Bind", "bind.webp"),
    MapDefinition(2, "Haven", "haven.webp"),
    MapDefinition(3, "Split", "split.webp"),
    MapDefinition(4, "Ascent", "ascent.webp"),
    MapDefinition(5, "Icebox", "icebox.webp"),
    MapDefinition(6, "Breeze", "breeze.webp"),
    MapDefinition(7, "Fracture", "fracture.webp"),
    MapDefinition(8, "Pearl", "pearl.webp"),
    MapDefinition(9, "Lotus", "lotus.webp"),
    MapDefinition(10, "Sunset", "sunset.webp"),
    MapDefinition(11, "Abyss", "abyss.webp"),
)


def get_map_by_id(map_id: int) -> MapDefinition | None:
    """Get a catalog entry by ID."""
    for definition in MAP_CATALOG:
        if definition.id == map_id:
            return definition
    return None
