"""Effective layer resolution and physical-property queries.

All functions are pure: they read a wall and a registry and never mutate
either. Thicknesses are millimeters; R in m²K/W; U in W/m²K.
"""

from __future__ import annotations

from wall_topology.config import DEFAULT_SETTINGS, EngineSettings
from wall_topology.models.walls import DEFAULT_REGISTRY, Wall, WallLayer, WallTypeRegistry


def resolve_effective_layers(
    wall: Wall,
    registry: WallTypeRegistry = DEFAULT_REGISTRY,
) -> list[WallLayer]:
    """Layers that make up the wall's section, as deep copies.

    Override layers when the wall is flagged as overriding its type and
    actually carries a stack; otherwise the wall type's template.
    """
    if wall.is_wall_type_override and wall.wall_layers:
        return [layer.model_copy(deep=True) for layer in wall.wall_layers]
    return registry.template_layers(wall.wall_type_id)


def core_index(layers: list[WallLayer]) -> int | None:
    """Position of the core layer, or None for a stack without one."""
    return next((i for i, layer in enumerate(layers) if layer.is_core), None)


def total_thickness(layers: list[WallLayer]) -> float:
    return sum(layer.thickness for layer in layers)


def r_value(layers: list[WallLayer], settings: EngineSettings = DEFAULT_SETTINGS) -> float:
    """Layer resistances plus the configured surface resistances."""
    return (
        settings.interior_surface_resistance
        + sum(layer.r_value for layer in layers)
        + settings.exterior_surface_resistance
    )


def u_value(layers: list[WallLayer], settings: EngineSettings = DEFAULT_SETTINGS) -> float:
    """1 / R, or 0 when R is 0 (an empty section)."""
    r = r_value(layers, settings)
    return 1.0 / r if r > 0 else 0.0


def get_total_thickness(wall: Wall, registry: WallTypeRegistry = DEFAULT_REGISTRY) -> float:
    """Sum of effective layer thicknesses (mm)."""
    return total_thickness(resolve_effective_layers(wall, registry))


def get_core_thickness(wall: Wall, registry: WallTypeRegistry = DEFAULT_REGISTRY) -> float:
    """Thickness of the core layer (mm)."""
    return sum(
        layer.thickness for layer in resolve_effective_layers(wall, registry) if layer.is_core
    )


def get_finish_thickness(wall: Wall, registry: WallTypeRegistry = DEFAULT_REGISTRY) -> float:
    """Total minus core (mm)."""
    return get_total_thickness(wall, registry) - get_core_thickness(wall, registry)


def get_r_value(
    wall: Wall,
    registry: WallTypeRegistry = DEFAULT_REGISTRY,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> float:
    """Thermal resistance of the wall section (m²K/W)."""
    return r_value(resolve_effective_layers(wall, registry), settings)


def get_u_value(
    wall: Wall,
    registry: WallTypeRegistry = DEFAULT_REGISTRY,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> float:
    """Thermal transmittance of the wall section (W/m²K)."""
    return u_value(resolve_effective_layers(wall, registry), settings)


def get_layer_at_depth(
    wall: Wall,
    depth: float,
    registry: WallTypeRegistry = DEFAULT_REGISTRY,
) -> WallLayer | None:
    """Layer found `depth` mm into the section from its first face.

    A depth on a boundary between two layers belongs to the outer one.
    """
    if depth < 0:
        return None
    cursor = 0.0
    for layer in resolve_effective_layers(wall, registry):
        next_cursor = cursor + layer.thickness
        if cursor <= depth <= next_cursor + 1e-6:
            return layer
        cursor = next_cursor
    return None


def layers_fingerprint(layers: list[WallLayer]) -> tuple:
    """Comparable summary of a stack, ignoring layer ids and colors."""
    return tuple(
        (layer.name, layer.material.value, round(layer.thickness, 4), layer.is_core, layer.hatch_pattern)
        for layer in layers
    )


def is_wall_using_type_default(wall: Wall, registry: WallTypeRegistry = DEFAULT_REGISTRY) -> bool:
    """True if the effective section matches the wall type's template."""
    template = registry.get(wall.wall_type_id).layers
    return layers_fingerprint(resolve_effective_layers(wall, registry)) == layers_fingerprint(template)
