"""Wall cross-section resolution and layer editing.

- layers: effective layers, thickness and thermal queries (pure)
- operations: layer mutations returning the new wall plus warnings
"""

from wall_topology.assembly.layers import (
    get_core_thickness,
    get_finish_thickness,
    get_layer_at_depth,
    get_r_value,
    get_total_thickness,
    get_u_value,
    is_wall_using_type_default,
    resolve_effective_layers,
)
from wall_topology.assembly.operations import (
    LayerOperationResult,
    add_layer,
    convert_core_material,
    remove_layer,
    reorder_layer,
    reset_layer_overrides,
    set_total_thickness,
    update_layer_thickness,
    validate_layer_stack,
)

__all__ = [
    "get_core_thickness",
    "get_finish_thickness",
    "get_layer_at_depth",
    "get_r_value",
    "get_total_thickness",
    "get_u_value",
    "is_wall_using_type_default",
    "resolve_effective_layers",
    "LayerOperationResult",
    "add_layer",
    "convert_core_material",
    "remove_layer",
    "reorder_layer",
    "reset_layer_overrides",
    "set_total_thickness",
    "update_layer_thickness",
    "validate_layer_stack",
]
