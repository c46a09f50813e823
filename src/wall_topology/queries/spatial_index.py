"""Uniform-grid spatial index over wall and room bounding boxes.

Each wall or room is registered in every grid cell its box touches.
Viewport queries enumerate the occupied cells under the query box,
deduplicate by id and then refine with an exact (closed-interval) box
test, so a query never misses an intersecting item and never returns one twice.

The index is a disposable cache: rebuild it whenever walls or rooms change.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field

from wall_topology.assembly.layers import get_total_thickness
from wall_topology.config import DEFAULT_SETTINGS, EngineSettings
from wall_topology.models.geometry import Bounds
from wall_topology.models.rooms import Room
from wall_topology.models.walls import DEFAULT_REGISTRY, Wall, WallTypeRegistry

logger = logging.getLogger(__name__)

CellKey = tuple[int, int]


def get_wall_bounds(
    wall: Wall,
    registry: WallTypeRegistry = DEFAULT_REGISTRY,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Bounds:
    """Endpoint box grown by half the wall's total thickness."""
    thickness = get_total_thickness(wall, registry)
    if not math.isfinite(thickness) or thickness <= 0:
        thickness = settings.default_wall_thickness
    return Bounds.of_points([wall.start, wall.end]).expanded(thickness / 2)


def get_room_bounds(room: Room) -> Bounds:
    return Bounds.of_points(room.vertices)


@dataclass
class SpatialIndex:
    """Grid hash of wall and room boxes, keyed by (column, row)."""

    cell_size: float
    wall_cells: dict[CellKey, list[str]] = field(default_factory=lambda: defaultdict(list))
    room_cells: dict[CellKey, list[str]] = field(default_factory=lambda: defaultdict(list))
    walls: dict[str, Wall] = field(default_factory=dict)
    rooms: dict[str, Room] = field(default_factory=dict)
    wall_bounds: dict[str, Bounds] = field(default_factory=dict)
    room_bounds: dict[str, Bounds] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        walls: list[Wall],
        rooms: list[Room],
        registry: WallTypeRegistry = DEFAULT_REGISTRY,
        cell_size: float | None = None,
        settings: EngineSettings = DEFAULT_SETTINGS,
    ) -> SpatialIndex:
        """Index the given walls and rooms.

        Args:
            walls: Walls to index; their thickness comes from `registry`.
            rooms: Rooms to index.
            registry: Wall types used to resolve wall thickness.
            cell_size: Grid cell edge. Defaults to the settings value.
            settings: Engine settings.
        """
        index = cls(cell_size=max(cell_size or settings.grid_cell_size, 1.0))
        for wall in walls:
            box = get_wall_bounds(wall, registry, settings)
            index.walls[wall.id] = wall
            index.wall_bounds[wall.id] = box
            for key in index._cells_for(box):
                index.wall_cells[key].append(wall.id)
        for room in rooms:
            box = get_room_bounds(room)
            index.rooms[room.id] = room
            index.room_bounds[room.id] = box
            for key in index._cells_for(box):
                index.room_cells[key].append(room.id)
        logger.debug(
            "spatial index: %d walls, %d rooms over %d cells",
            len(index.walls),
            len(index.rooms),
            len(set(index.wall_cells) | set(index.room_cells)),
        )
        return index

    def _cells_for(
        self,
        box: Bounds,
        extent: tuple[int, int, int, int] | None = None,
    ) -> list[CellKey]:
        min_cx = math.floor(box.left / self.cell_size)
        max_cx = math.floor(box.right / self.cell_size)
        min_cy = math.floor(box.top / self.cell_size)
        max_cy = math.floor(box.bottom / self.cell_size)
        if extent is not None:
            # Cells outside the occupied extent are empty
            min_cx, min_cy = max(min_cx, extent[0]), max(min_cy, extent[1])
            max_cx, max_cy = min(max_cx, extent[2]), min(max_cy, extent[3])
        return [
            (cx, cy) for cx in range(min_cx, max_cx + 1) for cy in range(min_cy, max_cy + 1)
        ]

    @staticmethod
    def _extent(cells: dict[CellKey, list[str]]) -> tuple[int, int, int, int] | None:
        """(min column, min row, max column, max row) over occupied cells."""
        if not cells:
            return None
        columns = [cx for cx, _ in cells]
        rows = [cy for _, cy in cells]
        return min(columns), min(rows), max(columns), max(rows)

    def _query(
        self,
        cells: dict[CellKey, list[str]],
        boxes: dict[str, Bounds],
        bounds: Bounds,
    ) -> list[str]:
        extent = self._extent(cells)
        if extent is None:
            return []
        seen: set[str] = set()
        hits: list[str] = []
        for key in self._cells_for(bounds, extent):
            for item_id in cells.get(key, ()):
                if item_id in seen:
                    continue
                seen.add(item_id)
                if boxes[item_id].intersects(bounds):
                    hits.append(item_id)
        return hits

    def query_walls_in_bounds(self, bounds: Bounds) -> list[Wall]:
        """Walls whose box intersects `bounds` (touching counts)."""
        return [self.walls[wid] for wid in self._query(self.wall_cells, self.wall_bounds, bounds)]

    def query_rooms_in_bounds(self, bounds: Bounds) -> list[Room]:
        """Rooms whose box intersects `bounds` (touching counts)."""
        return [self.rooms[rid] for rid in self._query(self.room_cells, self.room_bounds, bounds)]

    def query_viewport(
        self,
        viewport: Bounds,
        settings: EngineSettings = DEFAULT_SETTINGS,
    ) -> tuple[list[Wall], list[Room]]:
        """Walls and rooms near a viewport, padded by the viewport margin."""
        padded = viewport.expanded(settings.viewport_margin)
        return self.query_walls_in_bounds(padded), self.query_rooms_in_bounds(padded)
