"""Room detection and the nested-room hierarchy.

detect_rooms() turns traced faces into Room records, carrying user-set
attributes over from the previous detection pass; apply_room_hierarchy()
links each room to the smallest room that contains it and updates areas,
room types, child names and suggested space types.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict

from wall_topology.config import DEFAULT_SETTINGS, EngineSettings
from wall_topology.models.geometry import (
    Bounds,
    centroid,
    perimeter,
    point_in_polygon_inclusive,
    polygons_overlap,
    signed_area,
)
from wall_topology.models.rooms import Room, RoomType
from wall_topology.models.walls import Wall
from wall_topology.topology.graph import MM2_PER_M2, MM_PER_M, Face, build_wall_graph, trace_faces
from wall_topology.validators.rooms import ValidationError

logger = logging.getLogger(__name__)

_ROOM_NUMBER = re.compile(r"^Room\s+(\d+)$", re.IGNORECASE)
_AUTO_CHILD_NAMES = (
    re.compile(r"^Room\s+\d+(\s*-\s*\d+)?$", re.IGNORECASE),
    re.compile(r"^Sub\s*Room\s+\d+$", re.IGNORECASE),
)
_NUMBERED_SUFFIX = re.compile(r"^.+\s-\s\d+$")


def next_room_number(rooms: list[Room]) -> int:
    """One past the highest N among rooms named "Room N"."""
    highest = 0
    for room in rooms:
        match = _ROOM_NUMBER.match(room.name.strip())
        if match:
            highest = max(highest, int(match.group(1)))
    return highest + 1


def detect_rooms(
    walls: list[Wall],
    previous_rooms: list[Room] | None = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> list[Room]:
    """Derive rooms from the wall network.

    Args:
        walls: All walls of the plan.
        previous_rooms: Rooms from the last pass; a room bounded by the same
            set of walls keeps its id, name and user-set attributes.
        settings: Engine settings (snap tolerance, minimum room area).

    Returns:
        Rooms ordered by centroid (ascending y, then x) with the hierarchy
        applied.
    """
    return detect_rooms_with_issues(walls, previous_rooms, settings)[0]


def detect_rooms_with_issues(
    walls: list[Wall],
    previous_rooms: list[Room] | None = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> tuple[list[Room], list[ValidationError]]:
    """detect_rooms() that also returns links dropped from the hierarchy."""
    if len(walls) < 3:
        return [], []
    faces = trace_faces(build_wall_graph(walls, settings=settings), settings)
    if not faces:
        return [], []
    rooms = _rooms_from_faces(faces, previous_rooms or [])
    rooms, issues = apply_room_hierarchy(rooms)
    logger.debug("detected %d rooms from %d walls", len(rooms), len(walls))
    return rooms, issues


def _rooms_from_faces(faces: list[Face], previous_rooms: list[Room]) -> list[Room]:
    previous_by_walls: dict[frozenset[str], list[Room]] = defaultdict(list)
    for room in previous_rooms:
        previous_by_walls[frozenset(room.wall_ids)].append(room)

    number = next_room_number(previous_rooms)
    rooms: list[Room] = []
    for face in faces:
        bucket = previous_by_walls.get(frozenset(face.wall_ids))
        previous = bucket.pop(0) if bucket else None

        fields = dict(
            vertices=list(face.vertices),
            wall_ids=list(face.wall_ids),
            area=face.area_m2,
            gross_area=face.area_m2,
            net_area=face.area_m2,
            perimeter=face.perimeter_m,
        )
        if previous is not None:
            fields.update(
                id=previous.id,
                name=previous.name,
                color=previous.color,
                show_tag=previous.show_tag,
                space_type=previous.space_type,
                floor_height=previous.floor_height,
                ceiling_height=previous.ceiling_height,
                manual_parent_room_id=previous.manual_parent_room_id,
            )
        else:
            fields["name"] = f"Room {number}"
            number += 1
        rooms.append(Room(**fields))
    return rooms


# ── Hierarchy ────────────────────────────────────────────────────────


def _contains(candidate: Room, child: Room, bounds: dict[str, Bounds]) -> bool:
    """True if `candidate` can be the parent of `child`."""
    if candidate.id == child.id:
        return False
    if not bounds[candidate.id].contains(bounds[child.id]):
        return False
    if child.gross_area >= candidate.gross_area - 1e-8:
        return False
    if not point_in_polygon_inclusive(centroid(child.vertices), candidate.vertices):
        return False
    return all(point_in_polygon_inclusive(v, candidate.vertices) for v in child.vertices)


def classify_room_type(room: Room) -> RoomType:
    if not room.child_room_ids:
        return RoomType.ENCLOSED_SPACE
    if room.parent_room_id:
        return RoomType.REMAINING_AREA
    return RoomType.SURROUNDING_AREA


def suggest_space_type(room: Room) -> str:
    """Space type suggested by position in the hierarchy and net area (m²)."""
    area = max(room.net_area, 0.0)
    if room.parent_room_id:
        if area < 1.5:
            return "Shaft"
        if area < 4:
            return "Storage"
        if area < 8:
            return "Closet"
        return "Sub Room"
    if room.child_room_ids:
        return "Net Area"
    if area < 3:
        return "Storage"
    if area < 8:
        return "Bathroom"
    if area < 15:
        return "Utility"
    return "General"


def _should_auto_rename(child: Room, parent: Room) -> bool:
    name = child.name.strip()
    if not name:
        return True
    if any(pattern.match(name) for pattern in _AUTO_CHILD_NAMES):
        return True
    if re.match(rf"^{re.escape(parent.name)}\s-\s\d+$", name, re.IGNORECASE):
        return True
    return bool(_NUMBERED_SUFFIX.match(name))


def _depth(room: Room, room_by_id: dict[str, Room]) -> int:
    depth = 0
    cursor = room_by_id.get(room.parent_room_id) if room.parent_room_id else None
    while cursor is not None and depth < len(room_by_id):
        depth += 1
        cursor = room_by_id.get(cursor.parent_room_id) if cursor.parent_room_id else None
    return depth


def _centroid_key(room: Room) -> tuple[float, float]:
    c = centroid(room.vertices)
    return (round(c.y, 6), c.x)


def apply_room_hierarchy(rooms: list[Room]) -> tuple[list[Room], list[ValidationError]]:
    """Link rooms to their containing rooms and recompute derived fields.

    Args:
        rooms: Rooms with valid vertices. Not mutated.

    Returns:
        Tuple of (updated room copies in input order, validation issues for
        links that were dropped from the hierarchy).
    """
    issues: list[ValidationError] = []
    rooms = [
        room.model_copy(
            update={
                "gross_area": abs(signed_area(room.vertices)) / MM2_PER_M2,
                "perimeter": perimeter(room.vertices) / MM_PER_M,
                "parent_room_id": None,
                "child_room_ids": [],
            }
        )
        for room in rooms
    ]
    room_by_id = {room.id: room for room in rooms}
    bounds = {room.id: Bounds.of_points(room.vertices) for room in rooms}

    for child in rooms:
        best: Room | None = None
        for candidate in rooms:
            if _contains(candidate, child, bounds) and (
                best is None or candidate.gross_area < best.gross_area
            ):
                best = candidate

        manual_id = child.manual_parent_room_id
        if manual_id:
            manual = room_by_id.get(manual_id)
            if manual is not None and _contains(manual, child, bounds):
                best = manual
            else:
                issues.append(
                    ValidationError(
                        severity="warning",
                        element_type="Room",
                        element_id=child.id,
                        message=f'"{child.name}" is not inside its chosen parent {manual_id}; ignored',
                    )
                )
        child.parent_room_id = best.id if best else None

    # Overlapping siblings cannot share a parent
    siblings: dict[str, list[Room]] = defaultdict(list)
    for room in rooms:
        if room.parent_room_id:
            siblings[room.parent_room_id].append(room)
    for parent_id, children in siblings.items():
        for i, room_a in enumerate(children):
            if room_a.parent_room_id is None:
                continue
            for room_b in children[i + 1:]:
                if room_b.parent_room_id is None:
                    continue
                if polygons_overlap(room_a.vertices, room_b.vertices):
                    room_b.parent_room_id = None
                    issues.append(
                        ValidationError(
                            severity="error",
                            element_type="Room",
                            element_id=room_b.id,
                            message=(
                                f'"{room_b.name}" overlaps sibling "{room_a.name}" inside '
                                f'"{room_by_id[parent_id].name}"; removed from hierarchy'
                            ),
                        )
                    )

    for room in rooms:
        if room.parent_room_id:
            room_by_id[room.parent_room_id].child_room_ids.append(room.id)

    parents = sorted((r for r in rooms if r.child_room_ids), key=lambda r: _depth(r, room_by_id))
    for parent in parents:
        children = sorted((room_by_id[c] for c in parent.child_room_ids), key=_centroid_key)
        index = 1
        for child in children:
            if _should_auto_rename(child, parent):
                child.name = f"{parent.name} - {index}"
                index += 1

    for room in rooms:
        children_gross = sum(room_by_id[c].gross_area for c in room.child_room_ids)
        room.net_area = max(0.0, room.gross_area - children_gross)
        room.area = room.gross_area
        room.room_type = classify_room_type(room)
        if not room.has_custom_space_type():
            room.space_type = suggest_space_type(room)

    for issue in issues:
        logger.debug("room hierarchy: %s", issue.message)
    return rooms, issues
