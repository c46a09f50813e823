"""Plan data models."""

from wall_topology.models.ids import generate_id
from wall_topology.models.geometry import Bounds, Point2D, Polygon2D
from wall_topology.models.materials import (
    MATERIAL_LIBRARY,
    Material,
    MaterialType,
    get_material,
)
from wall_topology.models.walls import (
    BUILT_IN_WALL_TYPES,
    DEFAULT_REGISTRY,
    LayerPreset,
    Wall,
    WallCategory,
    WallLayer,
    WallTypeDefinition,
    WallTypeRegistry,
    layer_from_preset,
)
from wall_topology.models.rooms import Room, RoomType
from wall_topology.models.plan import FloorPlan

__all__ = [
    "generate_id",
    "Bounds",
    "Point2D",
    "Polygon2D",
    "MATERIAL_LIBRARY",
    "Material",
    "MaterialType",
    "get_material",
    "BUILT_IN_WALL_TYPES",
    "DEFAULT_REGISTRY",
    "LayerPreset",
    "Wall",
    "WallCategory",
    "WallLayer",
    "WallTypeDefinition",
    "WallTypeRegistry",
    "layer_from_preset",
    "Room",
    "RoomType",
    "FloorPlan",
]
