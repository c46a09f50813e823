"""Room models derived from the wall graph.

Rooms are never edited geometrically: every wall add/delete/move rebuilds
them from the wall network. Only cosmetic attributes (name, color, tag
visibility, user space type, heights) carry over between rebuilds.

Areas are m², perimeter is m; vertices stay in plan millimeters.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from wall_topology.models.geometry import Bounds, Point2D, Polygon2D, centroid
from wall_topology.models.ids import generate_id


class RoomType(str, Enum):
    """Position of a room in the containment hierarchy.

    ENCLOSED_SPACE: no child rooms (leaf)
    REMAINING_AREA: nested room that itself holds child rooms
    SURROUNDING_AREA: top-level room that holds child rooms
    """

    ENCLOSED_SPACE = "enclosed-space"
    REMAINING_AREA = "remaining-area"
    SURROUNDING_AREA = "surrounding-area"


# Space types the engine assigns on its own; anything else was set by a user
AUTO_SPACE_TYPES = frozenset({
    "detected",
    "enclosed-space",
    "remaining-area",
    "surrounding-area",
    "sub room",
    "storage",
    "closet",
    "utility",
    "bathroom",
    "shaft",
    "net area",
    "general",
})


class Room(BaseModel):
    """A closed region bounded by walls."""

    id: str = Field(default_factory=generate_id)
    name: str = ""
    vertices: list[Point2D] = Field(description="Boundary polygon, CCW in y-up plan coordinates")
    wall_ids: list[str] = Field(default_factory=list)
    parent_room_id: str | None = None
    manual_parent_room_id: str | None = Field(
        default=None, description="User-chosen parent; honored while the containment is valid"
    )
    child_room_ids: list[str] = Field(default_factory=list)
    area: float = Field(default=0.0, ge=0, description="Polygon area in m²")
    perimeter: float = Field(default=0.0, ge=0, description="Boundary length in m")
    net_area: float = Field(default=0.0, ge=0, description="Gross area minus child gross areas, m²")
    gross_area: float = Field(default=0.0, ge=0, description="Outer boundary area in m²")
    room_type: RoomType = RoomType.ENCLOSED_SPACE
    space_type: str = "detected"
    floor_height: float = Field(default=0.0, description="Finished floor level in mm")
    ceiling_height: float = Field(default=3000.0, description="Ceiling level in mm")
    color: str | None = None
    show_tag: bool = True

    @property
    def polygon(self) -> Polygon2D:
        return Polygon2D(vertices=self.vertices)

    @property
    def bounds(self) -> Bounds:
        return Bounds.of_points(self.vertices)

    @property
    def centroid(self) -> Point2D:
        return centroid(self.vertices)

    @property
    def is_nested(self) -> bool:
        return self.parent_room_id is not None

    def has_custom_space_type(self) -> bool:
        """True if the space type was chosen by a user rather than suggested."""
        normalized = self.space_type.strip().lower()
        return bool(normalized) and normalized not in AUTO_SPACE_TYPES
