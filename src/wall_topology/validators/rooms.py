"""Room hierarchy validation.

Checks relationships between rooms that the Room model can't catch on its
own: parent links pointing at missing rooms, cycles, children larger than
their parents, overlapping rooms and parents left with no net area.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass

from wall_topology.models.geometry import polygons_overlap
from wall_topology.models.rooms import Room

AREA_EPSILON = 1e-8


@dataclass
class ValidationError:
    """A single validation issue."""

    severity: str  # "error" | "warning"
    element_type: str
    element_id: str
    message: str


def _parent_chain_has_cycle(room: Room, room_by_id: dict[str, Room]) -> bool:
    seen = {room.id}
    cursor = room_by_id.get(room.parent_room_id) if room.parent_room_id else None
    while cursor is not None:
        if cursor.id in seen:
            return True
        seen.add(cursor.id)
        cursor = room_by_id.get(cursor.parent_room_id) if cursor.parent_room_id else None
    return False


def validate_room_hierarchy(rooms: list[Room]) -> list[ValidationError]:
    """Validate parent/child links and areas across a room list."""
    errors: list[ValidationError] = []
    room_by_id = {room.id: room for room in rooms}
    children_by_parent: dict[str, list[Room]] = defaultdict(list)

    for room in rooms:
        if room.parent_room_id is None:
            continue
        if room.parent_room_id == room.id:
            errors.append(
                ValidationError(
                    severity="error",
                    element_type="Room",
                    element_id=room.id,
                    message=f'"{room.name}" is its own parent',
                )
            )
            continue
        parent = room_by_id.get(room.parent_room_id)
        if parent is None:
            errors.append(
                ValidationError(
                    severity="error",
                    element_type="Room",
                    element_id=room.id,
                    message=f'"{room.name}" references non-existent parent {room.parent_room_id}',
                )
            )
            continue
        children_by_parent[parent.id].append(room)

        if room.gross_area > parent.gross_area + AREA_EPSILON:
            errors.append(
                ValidationError(
                    severity="error",
                    element_type="Room",
                    element_id=room.id,
                    message=f'"{room.name}" cannot be larger than parent "{parent.name}"',
                )
            )
        elif room.gross_area >= parent.gross_area - AREA_EPSILON:
            errors.append(
                ValidationError(
                    severity="warning",
                    element_type="Room",
                    element_id=room.id,
                    message=(
                        f'"{room.name}" nearly fills "{parent.name}" '
                        f"(remaining area approaches zero)"
                    ),
                )
            )

        if _parent_chain_has_cycle(room, room_by_id):
            errors.append(
                ValidationError(
                    severity="error",
                    element_type="Room",
                    element_id=room.id,
                    message=f'"{room.name}" is part of a parent cycle',
                )
            )

    # Child lists must mirror parent links
    for room in rooms:
        for child_id in room.child_room_ids:
            child = room_by_id.get(child_id)
            if child is None:
                errors.append(
                    ValidationError(
                        severity="error",
                        element_type="Room",
                        element_id=room.id,
                        message=f'"{room.name}" lists non-existent child {child_id}',
                    )
                )
            elif child.parent_room_id != room.id:
                errors.append(
                    ValidationError(
                        severity="error",
                        element_type="Room",
                        element_id=room.id,
                        message=f'"{room.name}" lists "{child.name}" as a child, but its parent differs',
                    )
                )

    for parent_id, children in children_by_parent.items():
        parent = room_by_id[parent_id]
        for i, room_a in enumerate(children):
            for room_b in children[i + 1:]:
                if polygons_overlap(room_a.vertices, room_b.vertices):
                    errors.append(
                        ValidationError(
                            severity="error",
                            element_type="Room",
                            element_id=room_b.id,
                            message=(
                                f'Child rooms "{room_a.name}" and "{room_b.name}" '
                                f'overlap inside "{parent.name}"'
                            ),
                        )
                    )

    top_level = [room for room in rooms if room.parent_room_id is None]
    for i, room_a in enumerate(top_level):
        for room_b in top_level[i + 1:]:
            if polygons_overlap(room_a.vertices, room_b.vertices):
                errors.append(
                    ValidationError(
                        severity="error",
                        element_type="Room",
                        element_id=room_b.id,
                        message=f'Rooms "{room_a.name}" and "{room_b.name}" overlap without nesting',
                    )
                )

    for room in rooms:
        if room.child_room_ids and room.net_area <= 1e-6:
            errors.append(
                ValidationError(
                    severity="warning",
                    element_type="Room",
                    element_id=room.id,
                    message=f'"{room.name}" has zero remaining net area',
                )
            )

    return errors
