"""Room tag (label) placement.

A tag is a fixed-size box centered on its anchor. For each room the
preferred anchor is the centroid, or the most open interior point when
the centroid falls inside a child room. Candidates are then tried in an
expanding pattern of rings around the preferred anchor, followed by a
coarse scan of the room's box. The first one inside the room and outside
all child rooms whose box is clear of the tags already placed wins;
when none is, the tag falls back to the centroid.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from wall_topology.config import DEFAULT_SETTINGS, EngineSettings
from wall_topology.models.geometry import (
    Bounds,
    Point2D,
    centroid,
    point_in_polygon,
    point_to_segment_distance,
)
from wall_topology.models.rooms import Room

logger = logging.getLogger(__name__)

OPEN_POINT_SAMPLES = 26
SCAN_SAMPLES = 10


@dataclass
class TagPlacement:
    """Where a room's tag ended up."""

    room_id: str
    anchor: Point2D
    bounds: Bounds
    is_fallback: bool = False


def _child_polygons(room: Room, room_by_id: dict[str, Room]) -> list[list[Point2D]]:
    return [
        room_by_id[child_id].vertices
        for child_id in room.child_room_ids
        if child_id in room_by_id and len(room_by_id[child_id].vertices) >= 3
    ]


def _distance_to_outline(point: Point2D, polygon: list[Point2D]) -> float:
    n = len(polygon)
    return min(point_to_segment_distance(point, polygon[i], polygon[(i + 1) % n]) for i in range(n))


def find_open_point(
    outline: list[Point2D],
    holes: list[list[Point2D]],
    samples: int = OPEN_POINT_SAMPLES,
) -> Point2D | None:
    """Grid-sample the outline for the point farthest from the holes.

    Distance to the outer boundary counts a quarter as much as distance
    to the nearest hole. None if no sample lands in open space.
    """
    box = Bounds.of_points(outline)
    step_x = max(box.width, 1.0) / max(samples - 1, 1)
    step_y = max(box.height, 1.0) / max(samples - 1, 1)
    best: Point2D | None = None
    best_score = -math.inf

    for row in range(samples):
        for col in range(samples):
            point = Point2D(x=box.left + col * step_x, y=box.top + row * step_y)
            if not point_in_polygon(point, outline):
                continue
            if any(point_in_polygon(point, hole) for hole in holes):
                continue
            hole_distance = min((_distance_to_outline(point, h) for h in holes), default=math.inf)
            score = hole_distance + 0.25 * _distance_to_outline(point, outline)
            if score > best_score:
                best_score = score
                best = point
    return best


def preferred_tag_anchor(room: Room, room_by_id: dict[str, Room]) -> Point2D:
    """Centroid, unless a child room covers it."""
    center = centroid(room.vertices)
    holes = _child_polygons(room, room_by_id)
    if not any(point_in_polygon(center, hole) for hole in holes):
        return center
    return find_open_point(room.vertices, holes) or center


def tag_candidates(
    anchor: Point2D,
    ring_step: float,
    rings: int = 6,
    sectors: int = 12,
) -> list[Point2D]:
    """The anchor, then `rings` rings of `sectors` points at growing radius."""
    candidates = [anchor]
    for ring in range(1, rings + 1):
        radius = ring_step * ring
        for sector in range(sectors):
            angle = 2 * math.pi * sector / sectors
            candidates.append(
                Point2D(x=anchor.x + math.cos(angle) * radius, y=anchor.y + math.sin(angle) * radius)
            )
    return candidates


def _interior_scan(room: Room, samples: int = SCAN_SAMPLES) -> list[Point2D]:
    """Cell centers of a samples x samples grid over the room's box."""
    box = Bounds.of_points(room.vertices)
    return [
        Point2D(
            x=box.left + (col + 0.5) * box.width / samples,
            y=box.top + (row + 0.5) * box.height / samples,
        )
        for row in range(samples)
        for col in range(samples)
    ]


def _is_open(point: Point2D, room: Room, holes: list[list[Point2D]]) -> bool:
    if not point_in_polygon(point, room.vertices):
        return False
    return not any(point_in_polygon(point, hole) for hole in holes)


def place_room_tag(
    room: Room,
    room_by_id: dict[str, Room],
    occupied: list[Bounds],
    tag_width: float,
    tag_height: float,
    ring_step: float | None = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> TagPlacement:
    """Pick an anchor for one room's tag.

    Args:
        room: Room to label.
        room_by_id: All rooms, for resolving child polygons.
        occupied: Boxes of tags already placed. Not modified.
        tag_width: Tag box width, in plan units.
        tag_height: Tag box height, in plan units.
        ring_step: Radius increment between candidate rings.
            Defaults to the settings value.
        settings: Engine settings (rings, sectors).

    Returns:
        The placement; `is_fallback` is set when no candidate was clear and
        the tag sits on the centroid regardless of overlap or holes.
    """
    holes = _child_polygons(room, room_by_id)
    base = preferred_tag_anchor(room, room_by_id)
    step = ring_step if ring_step is not None else settings.tag_ring_step

    candidates = tag_candidates(base, step, settings.tag_rings, settings.tag_sectors)
    for candidate in candidates + _interior_scan(room):
        if not _is_open(candidate, room, holes):
            continue
        box = Bounds.around(candidate, tag_width, tag_height)
        if not any(box.overlaps(other) for other in occupied):
            return TagPlacement(room_id=room.id, anchor=candidate, bounds=box)

    center = centroid(room.vertices)
    logger.debug("room %s: no clear tag position, using centroid %s", room.id, center)
    return TagPlacement(
        room_id=room.id,
        anchor=center,
        bounds=Bounds.around(center, tag_width, tag_height),
        is_fallback=True,
    )


def place_room_tags(
    rooms: list[Room],
    tag_width: float,
    tag_height: float,
    ring_step: float | None = None,
    occupied: list[Bounds] | None = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> list[TagPlacement]:
    """Place tags for every room with `show_tag`, in list order.

    Each placed tag claims its box before the next room is processed.
    """
    room_by_id = {room.id: room for room in rooms}
    claimed = list(occupied or [])
    placements: list[TagPlacement] = []
    for room in rooms:
        if not room.show_tag:
            continue
        placement = place_room_tag(
            room, room_by_id, claimed, tag_width, tag_height, ring_step, settings
        )
        claimed.append(placement.bounds)
        placements.append(placement)
    return placements
