"""Layer mutation operations on a single wall.

Every operation is best-effort: it returns the updated wall (or the
untouched wall when the request is invalid) together with advisory
warning strings. Nothing here raises for bad user input; the caller
decides whether a warning is shown.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from wall_topology.assembly.layers import (
    core_index,
    is_wall_using_type_default,
    resolve_effective_layers,
    total_thickness,
    u_value,
)
from wall_topology.config import DEFAULT_SETTINGS, EngineSettings
from wall_topology.models.ids import generate_id
from wall_topology.models.materials import (
    INSULATION_MATERIALS,
    MaterialType,
    get_material,
    is_known_material,
)
from wall_topology.models.walls import DEFAULT_REGISTRY, Wall, WallLayer, WallTypeRegistry

logger = logging.getLogger(__name__)


@dataclass
class LayerOperationResult:
    """Outcome of a layer edit: the resulting wall and any warnings."""

    wall: Wall
    warnings: list[str] = field(default_factory=list)


def _with_layers(wall: Wall, layers: list[WallLayer], registry: WallTypeRegistry) -> Wall:
    """Copy of the wall carrying `layers`, with the override flag recomputed.

    A stack identical to the type template drops back to tracking the type.
    """
    core = layers[core_index(layers) or 0]
    candidate = wall.model_copy(
        update={
            "wall_layers": layers,
            "is_wall_type_override": True,
            "material": core.name,
            "color": core.color,
        }
    )
    if is_wall_using_type_default(candidate, registry):
        return candidate.model_copy(update={"wall_layers": None, "is_wall_type_override": False})
    return candidate


def _band_warning(total: float, settings: EngineSettings) -> str | None:
    if total < settings.min_total_thickness:
        return (
            f"Total thickness {total:.1f} mm is below the plausible minimum "
            f"of {settings.min_total_thickness:.0f} mm."
        )
    if total > settings.max_total_thickness:
        return (
            f"Total thickness {total:.1f} mm exceeds the plausible maximum "
            f"of {settings.max_total_thickness:.0f} mm."
        )
    return None


def _rejected(wall: Wall, message: str) -> LayerOperationResult:
    logger.debug("wall %s: %s", wall.id, message)
    return LayerOperationResult(wall=wall, warnings=[message])


def validate_layer_stack(layers: list[WallLayer]) -> list[str]:
    """Advisory checks on layer order.

    Plaster and render belong on a face of the wall or directly against
    the core.
    """
    warnings: list[str] = []
    ci = core_index(layers)
    for index, layer in enumerate(layers):
        if layer.material != MaterialType.PLASTER:
            continue
        outermost = index in (0, len(layers) - 1)
        beside_core = ci is not None and abs(index - ci) == 1
        if not outermost and not beside_core:
            warnings.append(
                f'Layer "{layer.name}" is plaster/render but is not outermost or adjacent to core.'
            )
    return warnings


def _rescale_with_floor(thicknesses: list[float], target: float, floor: float) -> list[float]:
    """Scale values proportionally to sum to `target`, none below `floor`.

    Values that would drop under the floor are pinned to it and the rest
    are rescaled again. Callers guarantee target >= floor * len(values).
    """
    pinned: set[int] = set()
    while True:
        free = [i for i in range(len(thicknesses)) if i not in pinned]
        if not free:
            break
        free_target = target - floor * len(pinned)
        free_sum = sum(thicknesses[i] for i in free)
        scale = free_target / free_sum if free_sum > 0 else 0.0
        newly_pinned = {i for i in free if thicknesses[i] * scale < floor}
        if not newly_pinned:
            break
        pinned |= newly_pinned

    result = [floor if i in pinned else thicknesses[i] * scale for i in range(len(thicknesses))]
    if free:
        # Last free layer absorbs float rounding so the sum is exact
        last = free[-1]
        result[last] = target - sum(v for i, v in enumerate(result) if i != last)
    return result


def set_total_thickness(
    wall: Wall,
    new_total: float,
    registry: WallTypeRegistry = DEFAULT_REGISTRY,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> LayerOperationResult:
    """Resize the wall to `new_total` mm.

    Finish (non-core) layers absorb the change proportionally down to the
    per-layer floor; whatever they cannot absorb goes to the core. Totals
    outside the plausible band are applied anyway, with a warning.
    """
    if not math.isfinite(new_total) or new_total <= 0:
        return _rejected(wall, f"Total thickness must be positive (got {new_total}).")

    layers = resolve_effective_layers(wall, registry)
    ci = core_index(layers)
    if ci is None:
        return _rejected(wall, "Wall has no core layer.")

    warnings: list[str] = []
    band = _band_warning(new_total, settings)
    if band:
        warnings.append(band)

    floor = settings.min_layer_thickness
    core = layers[ci]
    finish_indices = [i for i in range(len(layers)) if i != ci]
    finish_target = new_total - core.thickness
    new_thickness = {i: layer.thickness for i, layer in enumerate(layers)}

    if not finish_indices:
        new_thickness[ci] = max(floor, new_total)
    elif finish_target >= floor * len(finish_indices):
        scaled = _rescale_with_floor(
            [layers[i].thickness for i in finish_indices], finish_target, floor
        )
        new_thickness.update(zip(finish_indices, scaled))
    else:
        for i in finish_indices:
            new_thickness[i] = floor
        new_thickness[ci] = max(floor, new_total - floor * len(finish_indices))

    next_layers = [
        layer.model_copy(update={"thickness": new_thickness[i]}) for i, layer in enumerate(layers)
    ]
    achieved = total_thickness(next_layers)
    if not math.isclose(achieved, new_total, abs_tol=1e-6):
        warnings.append(
            f"Requested {new_total:.1f} mm; best achievable with the layer floor is {achieved:.1f} mm."
        )

    logger.debug("wall %s: total thickness %.3f -> %.3f", wall.id, total_thickness(layers), achieved)
    return LayerOperationResult(wall=_with_layers(wall, next_layers, registry), warnings=warnings)


def add_layer(
    wall: Wall,
    layer: WallLayer,
    at_index: int,
    registry: WallTypeRegistry = DEFAULT_REGISTRY,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> LayerOperationResult:
    """Insert a copy of `layer` (with a fresh id) at `at_index`.

    The index is clamped into the stack. A layer explicitly marked as core
    takes over the core role from the current core.
    """
    if not layer.thickness > 0:
        return _rejected(wall, f"Layer thickness must be positive (got {layer.thickness}).")

    layers = resolve_effective_layers(wall, registry)
    index = max(0, min(at_index, len(layers)))
    if layer.is_core:
        layers = [existing.model_copy(update={"is_core": False}) for existing in layers]
    layers.insert(index, layer.model_copy(update={"id": generate_id()}, deep=True))

    warnings = validate_layer_stack(layers)
    new_total = total_thickness(layers)
    if new_total > settings.max_total_thickness:
        warnings.append(_band_warning(new_total, settings))
    return LayerOperationResult(wall=_with_layers(wall, layers, registry), warnings=warnings)


def remove_layer(
    wall: Wall,
    layer_id: str,
    registry: WallTypeRegistry = DEFAULT_REGISTRY,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> LayerOperationResult:
    """Remove a non-core layer. The core layer can never be removed."""
    layers = resolve_effective_layers(wall, registry)
    target = next((layer for layer in layers if layer.id == layer_id), None)
    if target is None:
        return _rejected(wall, f"Layer '{layer_id}' not found in wall.")
    if target.is_core:
        return _rejected(wall, "Core layer cannot be removed.")

    warnings: list[str] = []
    if target.material in INSULATION_MATERIALS:
        warnings.append("Removing insulation will affect thermal performance.")
    remaining = [layer for layer in layers if layer.id != layer_id]
    band = _band_warning(total_thickness(remaining), settings)
    if band:
        warnings.append(band)
    return LayerOperationResult(wall=_with_layers(wall, remaining, registry), warnings=warnings)


def reorder_layer(
    wall: Wall,
    from_index: int,
    to_index: int,
    registry: WallTypeRegistry = DEFAULT_REGISTRY,
) -> LayerOperationResult:
    """Move a layer within the stack. The core may end up on a face."""
    layers = resolve_effective_layers(wall, registry)
    if not (0 <= from_index < len(layers) and 0 <= to_index < len(layers)):
        return _rejected(
            wall, f"Layer index out of range (from {from_index} to {to_index}, {len(layers)} layers)."
        )
    if from_index == to_index:
        return LayerOperationResult(wall=wall)

    moved = layers.pop(from_index)
    layers.insert(to_index, moved)
    return LayerOperationResult(
        wall=_with_layers(wall, layers, registry), warnings=validate_layer_stack(layers)
    )


def update_layer_thickness(
    wall: Wall,
    layer_id: str,
    thickness: float,
    registry: WallTypeRegistry = DEFAULT_REGISTRY,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> LayerOperationResult:
    """Set one layer's thickness directly; other layers are untouched."""
    if not math.isfinite(thickness) or thickness <= 0:
        return _rejected(wall, f"Layer thickness must be positive (got {thickness}).")

    layers = resolve_effective_layers(wall, registry)
    if not any(layer.id == layer_id for layer in layers):
        return _rejected(wall, f"Layer '{layer_id}' not found in wall.")

    next_layers = [
        layer.model_copy(update={"thickness": thickness}) if layer.id == layer_id else layer
        for layer in layers
    ]
    warnings = validate_layer_stack(next_layers)
    band = _band_warning(total_thickness(next_layers), settings)
    if band:
        warnings.append(band)
    return LayerOperationResult(wall=_with_layers(wall, next_layers, registry), warnings=warnings)


def convert_core_material(
    wall: Wall,
    material: MaterialType | str,
    registry: WallTypeRegistry = DEFAULT_REGISTRY,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> LayerOperationResult:
    """Swap the core layer's material in place, keeping its thickness."""
    if not is_known_material(material):
        return _rejected(wall, f"Unknown material '{material}'.")

    layers = resolve_effective_layers(wall, registry)
    ci = core_index(layers)
    if ci is None:
        return _rejected(wall, "Wall has no core layer.")

    catalog = get_material(material)
    layers[ci] = layers[ci].model_copy(
        update={
            "material": catalog.material,
            "name": catalog.name,
            "color": catalog.color,
            "hatch_pattern": catalog.hatch_pattern,
        }
    )

    warnings: list[str] = []
    u = u_value(layers, settings)
    if u < settings.min_u_value or u > settings.max_u_value:
        warnings.append(
            f"U-value {u:.3f} W/m²K with {catalog.name} core is outside the expected range "
            f"{settings.min_u_value}–{settings.max_u_value} W/m²K."
        )
    return LayerOperationResult(wall=_with_layers(wall, layers, registry), warnings=warnings)


def reset_layer_overrides(wall: Wall, registry: WallTypeRegistry = DEFAULT_REGISTRY) -> Wall:
    """Drop per-wall layers so the wall tracks its wall type again."""
    wall_type = registry.get(wall.wall_type_id)
    return wall.model_copy(
        update={
            "wall_layers": None,
            "is_wall_type_override": False,
            "material": wall_type.core_layer.name,
            "color": wall_type.core_color,
        }
    )
