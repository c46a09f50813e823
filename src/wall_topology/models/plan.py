"""Floor plan: the caller-owned collection of walls, rooms and wall types.

Walls are the primary geometry. Rooms are derived and rebuilt from the
walls after every structural edit (add, remove, move). Layer edits leave
centerlines alone, so rooms survive them untouched.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from pydantic import BaseModel, Field, PrivateAttr

from wall_topology.config import DEFAULT_SETTINGS, EngineSettings
from wall_topology.models.geometry import Point2D
from wall_topology.models.ids import generate_id
from wall_topology.models.materials import MaterialType
from wall_topology.models.rooms import Room
from wall_topology.models.walls import Wall, WallLayer, WallTypeDefinition, WallTypeRegistry

logger = logging.getLogger(__name__)

# Attributes a user may edit directly on a room
EDITABLE_ROOM_FIELDS = frozenset({
    "name",
    "color",
    "show_tag",
    "space_type",
    "floor_height",
    "ceiling_height",
    "manual_parent_room_id",
})


class FloorPlan(BaseModel):
    """One drawing's walls and derived rooms.

    Coordinates are millimeters, y-up.
    """

    id: str = Field(default_factory=generate_id)
    name: str = Field(default="Untitled Plan")
    walls: list[Wall] = Field(default_factory=list)
    rooms: list[Room] = Field(default_factory=list)
    custom_wall_types: list[WallTypeDefinition] = Field(default_factory=list)

    _settings: EngineSettings = PrivateAttr(default=DEFAULT_SETTINGS)
    _hierarchy_issues: list = PrivateAttr(default_factory=list)

    # ── File I/O ──────────────────────────────────────────────────────

    @classmethod
    def load(cls, path: str | Path, settings: EngineSettings | None = None) -> FloorPlan:
        """Load a plan from a JSON file."""
        path = Path(path)
        plan = cls.model_validate_json(path.read_text())
        if settings is not None:
            plan.configure(settings)
        return plan

    def save(self, path: str | Path) -> Path:
        """Save the plan to a JSON file. Creates parent dirs if needed."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2))
        return path

    def configure(self, settings: EngineSettings) -> FloorPlan:
        """Use `settings` for every later operation on this plan."""
        self._settings = settings
        return self

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def registry(self) -> WallTypeRegistry:
        """Built-in wall types plus this plan's custom types."""
        return WallTypeRegistry(self.custom_wall_types)

    # ── Lookups ───────────────────────────────────────────────────────

    def get_wall(self, wall_id: str) -> Wall | None:
        return next((w for w in self.walls if w.id == wall_id), None)

    def get_wall_by_name(self, name: str) -> Wall | None:
        """Find a wall by name (case-insensitive)."""
        return next((w for w in self.walls if w.name.lower() == name.lower()), None)

    def get_room(self, room_id: str) -> Room | None:
        return next((r for r in self.rooms if r.id == room_id), None)

    def get_room_by_name(self, name: str) -> Room | None:
        """Find a room by name (case-insensitive)."""
        return next((r for r in self.rooms if r.name.lower() == name.lower()), None)

    def _require_wall(self, wall_id: str) -> Wall:
        """Get a wall by id or raise ValueError."""
        wall = self.get_wall(wall_id)
        if wall is None:
            raise ValueError(f"Wall '{wall_id}' not found")
        return wall

    def _require_room(self, room_id: str) -> Room:
        room = self.get_room(room_id)
        if room is None:
            raise ValueError(f"Room '{room_id}' not found")
        return room

    # ── Wall types ────────────────────────────────────────────────────

    def register_wall_type(self, wall_type: WallTypeDefinition) -> WallTypeDefinition:
        """Add or replace a custom wall type on this plan."""
        self.registry.register(wall_type)  # raises for built-in ids
        self.custom_wall_types = [t for t in self.custom_wall_types if t.id != wall_type.id]
        self.custom_wall_types.append(wall_type)
        return wall_type

    # ── Geometry edits (rebuild rooms) ────────────────────────────────

    def add_wall(
        self,
        start: tuple[float, float],
        end: tuple[float, float],
        wall_type_id: str | None = None,
        height: float | None = None,
        name: str = "",
    ) -> Wall:
        """Add a wall and rebuild rooms. Returns the created wall."""
        wall_type = self.registry.get(wall_type_id)
        wall = Wall(
            name=name,
            start=Point2D(x=start[0], y=start[1]),
            end=Point2D(x=end[0], y=end[1]),
            height=height if height is not None else wall_type.default_height,
            wall_type_id=wall_type.id,
            material=wall_type.core_layer.name,
            color=wall_type.core_color,
        )
        self.walls.append(wall)
        self.detect_rooms()
        return wall

    def remove_wall(self, wall_id: str) -> None:
        """Remove a wall and rebuild rooms."""
        wall = self._require_wall(wall_id)
        self.walls.remove(wall)
        self.detect_rooms()

    def move_wall(
        self,
        wall_id: str,
        new_start: tuple[float, float] | None = None,
        new_end: tuple[float, float] | None = None,
    ) -> Wall:
        """Move a wall's start and/or end point, then rebuild rooms."""
        wall = self._require_wall(wall_id)
        idx = self.walls.index(wall)
        moved = wall.model_copy(
            update={
                k: Point2D(x=v[0], y=v[1])
                for k, v in [("start", new_start), ("end", new_end)]
                if v is not None
            }
        )
        if moved.start == moved.end:
            raise ValueError("Wall start and end points must be different")
        self.walls[idx] = moved
        self.detect_rooms()
        return moved

    def detect_rooms(self) -> list[Room]:
        """Rebuild rooms from the current walls, keeping user attributes."""
        from wall_topology.topology.rooms import detect_rooms_with_issues

        self.rooms, self._hierarchy_issues = detect_rooms_with_issues(
            self.walls, self.rooms, self._settings
        )
        logger.debug("plan %s: %d rooms", self.id, len(self.rooms))
        return self.rooms

    # ── Room edits ────────────────────────────────────────────────────

    def update_room(self, room_id: str, **changes) -> Room:
        """Edit user-facing room attributes and re-apply the hierarchy.

        Only name, color, show_tag, space_type, floor_height,
        ceiling_height and manual_parent_room_id can be changed.
        """
        from wall_topology.topology.rooms import apply_room_hierarchy

        unknown = set(changes) - EDITABLE_ROOM_FIELDS
        if unknown:
            raise ValueError(f"Room fields not editable: {sorted(unknown)}")
        room = self._require_room(room_id)
        idx = self.rooms.index(room)
        self.rooms[idx] = room.model_copy(update=changes)
        self.rooms, self._hierarchy_issues = apply_room_hierarchy(self.rooms)
        return self._require_room(room_id)

    # ── Layer edits (by wall id, never raise) ─────────────────────────

    def _apply_layer_operation(self, wall_id: str, operation: Callable) -> list[str]:
        wall = self.get_wall(wall_id)
        if wall is None:
            logger.debug("layer edit on unknown wall %s", wall_id)
            return [f"Wall '{wall_id}' not found."]
        result = operation(wall)
        self.walls[self.walls.index(wall)] = result.wall
        return result.warnings

    def set_wall_total_thickness(self, wall_id: str, total: float) -> list[str]:
        from wall_topology.assembly.operations import set_total_thickness

        return self._apply_layer_operation(
            wall_id, lambda w: set_total_thickness(w, total, self.registry, self._settings)
        )

    def add_wall_layer(self, wall_id: str, layer: WallLayer, at_index: int) -> list[str]:
        from wall_topology.assembly.operations import add_layer

        return self._apply_layer_operation(
            wall_id, lambda w: add_layer(w, layer, at_index, self.registry, self._settings)
        )

    def remove_wall_layer(self, wall_id: str, layer_id: str) -> list[str]:
        from wall_topology.assembly.operations import remove_layer

        return self._apply_layer_operation(
            wall_id, lambda w: remove_layer(w, layer_id, self.registry, self._settings)
        )

    def reorder_wall_layer(self, wall_id: str, from_index: int, to_index: int) -> list[str]:
        from wall_topology.assembly.operations import reorder_layer

        return self._apply_layer_operation(
            wall_id, lambda w: reorder_layer(w, from_index, to_index, self.registry)
        )

    def update_wall_layer_thickness(self, wall_id: str, layer_id: str, thickness: float) -> list[str]:
        from wall_topology.assembly.operations import update_layer_thickness

        return self._apply_layer_operation(
            wall_id,
            lambda w: update_layer_thickness(w, layer_id, thickness, self.registry, self._settings),
        )

    def convert_wall_core_material(self, wall_id: str, material: MaterialType | str) -> list[str]:
        from wall_topology.assembly.operations import convert_core_material

        return self._apply_layer_operation(
            wall_id, lambda w: convert_core_material(w, material, self.registry, self._settings)
        )

    def reset_wall_layer_overrides(self, wall_id: str) -> list[str]:
        from wall_topology.assembly.operations import LayerOperationResult, reset_layer_overrides

        return self._apply_layer_operation(
            wall_id, lambda w: LayerOperationResult(wall=reset_layer_overrides(w, self.registry))
        )

    # ── Queries ───────────────────────────────────────────────────────

    def spatial_index(self):
        """Fresh SpatialIndex over the current walls and rooms."""
        from wall_topology.queries.spatial_index import SpatialIndex

        return SpatialIndex.build(self.walls, self.rooms, self.registry, settings=self._settings)

    def place_tags(self, tag_width: float, tag_height: float) -> list:
        """Tag placements for every room that shows a tag."""
        from wall_topology.queries.tags import place_room_tags

        return place_room_tags(self.rooms, tag_width, tag_height, settings=self._settings)

    def validate(self) -> list:
        """Run wall and room validators. Returns list of errors."""
        from wall_topology.validators.rooms import validate_room_hierarchy
        from wall_topology.validators.walls import validate_walls

        errors = []
        errors.extend(validate_walls(self.walls, self.registry, self._settings))
        errors.extend(self._hierarchy_issues)
        errors.extend(validate_room_hierarchy(self.rooms))
        return errors

    def total_area(self) -> float:
        """Floor area covered by rooms (m²), counting nested rooms once."""
        return sum(room.gross_area for room in self.rooms if not room.is_nested)

    def summary(self) -> str:
        """Human-readable summary of the plan."""
        lines = [f"📐 {self.name}"]
        lines.append(f"   Walls: {len(self.walls)}, Rooms: {len(self.rooms)}")
        lines.append(f"   Total floor area: {self.total_area():.2f} m²")
        by_id = {room.id: room for room in self.rooms}
        for room in self.rooms:
            depth = 0
            cursor = by_id.get(room.parent_room_id) if room.parent_room_id else None
            while cursor is not None and depth < len(self.rooms):
                depth += 1
                cursor = by_id.get(cursor.parent_room_id) if cursor.parent_room_id else None
            indent = "   " + "  " * (depth + 1)
            lines.append(
                f"{indent}{room.name} ({room.space_type}): "
                f"{room.net_area:.2f} m² net / {room.gross_area:.2f} m² gross"
            )
        return "\n".join(lines)
