"""Wall validation.

Per-wall checks that model validators can't make alone because they need
the wall-type registry or the rest of the network:
- wall type id resolves to a registered type
- total thickness and U-value fall inside the plausible ranges
- layer order (plaster placement)
- open wall ends that keep the network from closing rooms
"""

from __future__ import annotations

from collections import Counter

from wall_topology.assembly.layers import r_value, resolve_effective_layers, total_thickness, u_value
from wall_topology.assembly.operations import validate_layer_stack
from wall_topology.config import DEFAULT_SETTINGS, EngineSettings
from wall_topology.models.walls import DEFAULT_REGISTRY, Wall, WallTypeRegistry
from wall_topology.topology.graph import build_wall_graph
from wall_topology.validators.rooms import ValidationError


def _label(wall: Wall) -> str:
    return wall.name or wall.id


def validate_walls(
    walls: list[Wall],
    registry: WallTypeRegistry = DEFAULT_REGISTRY,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> list[ValidationError]:
    """Validate wall sections and network connectivity."""
    errors: list[ValidationError] = []

    counts = Counter(wall.id for wall in walls)
    for wall_id, count in counts.items():
        if count > 1:
            errors.append(
                ValidationError(
                    severity="error",
                    element_type="Wall",
                    element_id=wall_id,
                    message=f"Wall id {wall_id} is used by {count} walls",
                )
            )

    for wall in walls:
        if wall.wall_type_id not in registry:
            errors.append(
                ValidationError(
                    severity="warning",
                    element_type="Wall",
                    element_id=wall.id,
                    message=(
                        f"Wall {_label(wall)} uses unknown wall type '{wall.wall_type_id}'; "
                        f"showing '{registry.get(None).name}' instead"
                    ),
                )
            )

        layers = resolve_effective_layers(wall, registry)
        thickness = total_thickness(layers)
        if not settings.min_total_thickness <= thickness <= settings.max_total_thickness:
            errors.append(
                ValidationError(
                    severity="warning",
                    element_type="Wall",
                    element_id=wall.id,
                    message=(
                        f"Wall {_label(wall)} is {thickness:.1f} mm thick, outside "
                        f"{settings.min_total_thickness:.0f}–{settings.max_total_thickness:.0f} mm"
                    ),
                )
            )

        if r_value(layers, settings) > 0:
            u = u_value(layers, settings)
            if not settings.min_u_value <= u <= settings.max_u_value:
                errors.append(
                    ValidationError(
                        severity="warning",
                        element_type="Wall",
                        element_id=wall.id,
                        message=f"Wall {_label(wall)} has U-value {u:.3f} W/m²K, outside the expected range",
                    )
                )

        for message in validate_layer_stack(layers):
            errors.append(
                ValidationError(
                    severity="warning",
                    element_type="Wall",
                    element_id=wall.id,
                    message=f"Wall {_label(wall)}: {message}",
                )
            )

    errors.extend(find_open_wall_ends(walls, settings))
    return errors


def find_open_wall_ends(
    walls: list[Wall],
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> list[ValidationError]:
    """Report wall endpoints that connect to nothing.

    Such walls can't bound a room; they are ignored by room detection.
    """
    graph = build_wall_graph(walls, settings=settings)
    dangling = set(graph.dangling_nodes())
    errors: list[ValidationError] = []
    for edge in graph.edges:
        for node_id in (edge.from_node, edge.to_node):
            if node_id not in dangling:
                continue
            point = graph.nodes[node_id].point
            errors.append(
                ValidationError(
                    severity="warning",
                    element_type="Wall",
                    element_id=edge.wall_id,
                    message=f"Wall end at ({point.x:.0f}, {point.y:.0f}) is not connected to another wall",
                )
            )
    return errors
