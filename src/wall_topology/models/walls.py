"""Walls, wall layers and wall-type presets.

A wall's cross-section is an ordered list of material layers, first face to
last face. Exactly one layer is the structural core. Walls either track a
named wall type (template layers) or carry their own override stack.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from wall_topology.models.geometry import Point2D
from wall_topology.models.ids import generate_id
from wall_topology.models.materials import MaterialType, get_material

DEFAULT_WALL_HEIGHT = 2700.0
DEFAULT_WALL_TYPE_ID = "blockwork-200"


class WallLayer(BaseModel):
    """One material layer of a wall section. Thickness in millimeters."""

    id: str = Field(default_factory=generate_id)
    name: str
    material: MaterialType
    thickness: float = Field(gt=0, description="Layer thickness in mm")
    is_core: bool = False
    color: str = ""
    hatch_pattern: str = ""

    @model_validator(mode="after")
    def fill_display_defaults(self) -> WallLayer:
        catalog = get_material(self.material)
        if not self.color:
            self.color = catalog.color
        if not self.hatch_pattern:
            self.hatch_pattern = catalog.hatch_pattern
        return self

    @property
    def thermal_conductivity(self) -> float:
        """k of the layer material, W/(m·K)."""
        return get_material(self.material).thermal_conductivity

    @property
    def r_value(self) -> float:
        """Thermal resistance of this layer, m²K/W."""
        return (self.thickness / 1000.0) / self.thermal_conductivity


def _exactly_one_core(layers: list[WallLayer]) -> list[WallLayer]:
    cores = sum(1 for layer in layers if layer.is_core)
    if cores != 1:
        raise ValueError(f"Layer stack must have exactly one core layer, found {cores}")
    return layers


class WallCategory(str, Enum):
    """Wall type grouping for pickers."""

    STRUCTURAL = "structural"
    PARTITION = "partition"
    CURTAIN = "curtain"


class WallTypeDefinition(BaseModel):
    """A named, reusable template of ordered material layers."""

    id: str
    name: str
    category: WallCategory = WallCategory.STRUCTURAL
    layers: list[WallLayer]
    default_height: float = Field(default=DEFAULT_WALL_HEIGHT, gt=0)
    core_color: str = "#9E9E9E"

    @field_validator("layers")
    @classmethod
    def one_core_layer(cls, v: list[WallLayer]) -> list[WallLayer]:
        if not v:
            raise ValueError("Wall type needs at least one layer")
        return _exactly_one_core(v)

    @property
    def total_thickness(self) -> float:
        return sum(layer.thickness for layer in self.layers)

    @property
    def r_value(self) -> float:
        return sum(layer.r_value for layer in self.layers)

    @property
    def u_value(self) -> float:
        r = self.r_value
        return 1.0 / r if r > 0 else 0.0

    @property
    def core_layer(self) -> WallLayer:
        return next(layer for layer in self.layers if layer.is_core)


class Wall(BaseModel):
    """A wall centerline segment with a layered cross-section.

    Coordinates and height are millimeters. When `is_wall_type_override`
    is false the section is the wall type's template; when true it is
    `wall_layers`.
    """

    id: str = Field(default_factory=generate_id)
    name: str = ""
    start: Point2D
    end: Point2D
    height: float = Field(default=DEFAULT_WALL_HEIGHT, gt=0, description="Wall height in mm")
    wall_type_id: str = Field(default=DEFAULT_WALL_TYPE_ID)
    wall_layers: list[WallLayer] | None = Field(
        default=None, description="Per-wall layer stack; used when is_wall_type_override"
    )
    is_wall_type_override: bool = False
    material: str | None = Field(default=None, description="Legacy display name of the core material")
    color: str | None = None

    @property
    def length(self) -> float:
        """Wall length (centerline, mm)."""
        return self.start.distance_to(self.end)

    @model_validator(mode="after")
    def start_and_end_differ(self) -> Wall:
        if self.start == self.end:
            raise ValueError("Wall start and end points must be different")
        return self

    @field_validator("wall_layers")
    @classmethod
    def override_has_one_core(cls, v: list[WallLayer] | None) -> list[WallLayer] | None:
        if v:
            return _exactly_one_core(v)
        return v


# ── Built-in wall types ──────────────────────────────────────────────


def _template(
    type_id: str,
    name: str,
    seeds: list[tuple[str, MaterialType, float, bool]],
    category: WallCategory = WallCategory.STRUCTURAL,
) -> WallTypeDefinition:
    """Build a wall type from (name, material, thickness, is_core) seeds.

    Template layer ids are `<type id>/<position>` so they stay stable across
    processes and can be addressed from saved plans.
    """
    layers = [
        WallLayer(
            id=f"{type_id}/{index}",
            name=layer_name,
            material=material,
            thickness=thickness,
            is_core=is_core,
        )
        for index, (layer_name, material, thickness, is_core) in enumerate(seeds)
    ]
    core = next(layer for layer in layers if layer.is_core)
    return WallTypeDefinition(
        id=type_id,
        name=name,
        category=category,
        layers=layers,
        core_color=core.color,
    )


M = MaterialType

BUILT_IN_WALL_TYPES: list[WallTypeDefinition] = [
    _template(DEFAULT_WALL_TYPE_ID, "Blockwork 200mm", [
        ("Plaster", M.PLASTER, 12, False),
        ("Concrete Block", M.CONCRETE_BLOCK, 200, True),
        ("Plaster", M.PLASTER, 12, False),
    ]),
    _template("cement-block-wall", "Cement Block Wall", [
        ("External Plaster", M.PLASTER, 15, False),
        ("Cement Block", M.CEMENT_BLOCK, 150, True),
        ("Internal Plaster", M.PLASTER, 12, False),
        ("Putty/Skim Coat", M.PUTTY_SKIM, 3, False),
    ]),
    _template("brick-wall", "Brick Wall", [
        ("External Plaster", M.PLASTER, 15, False),
        ("Clay Brick", M.CLAY_BRICK, 230, True),
        ("Internal Plaster", M.PLASTER, 12, False),
        ("Putty", M.PUTTY_SKIM, 3, False),
    ]),
    _template("concrete-wall-cast-insitu", "Concrete Wall (Cast in-situ)", [
        ("External Render", M.PLASTER, 15, False),
        ("Reinforced Concrete", M.CONCRETE, 200, True),
        ("Internal Plaster", M.PLASTER, 12, False),
        ("Putty", M.PUTTY_SKIM, 3, False),
    ]),
    _template("concrete-block-wall", "Concrete Block Wall", [
        ("External Plaster", M.PLASTER, 15, False),
        ("Concrete Block", M.CONCRETE_BLOCK, 190, True),
        ("Internal Plaster", M.PLASTER, 12, False),
        ("Putty", M.PUTTY_SKIM, 3, False),
    ]),
    _template("partition-wall-lightweight", "Partition Wall (Lightweight)", [
        ("Gypsum Board", M.GYPSUM_BOARD, 12.5, False),
        ("Stud Air Gap", M.STUD_AIR_GAP, 75, True),
        ("Gypsum Board", M.GYPSUM_BOARD, 12.5, False),
    ], category=WallCategory.PARTITION),
    _template("insulated-cavity-wall", "Insulated Cavity Wall", [
        ("External Plaster", M.PLASTER, 15, False),
        ("Outer Block", M.CEMENT_BLOCK, 100, False),
        ("Insulation", M.EPS_INSULATION, 50, False),
        ("Air Cavity", M.AIR_CAVITY, 25, False),
        ("Inner Block", M.CEMENT_BLOCK, 100, True),
        ("Internal Plaster", M.PLASTER, 12, False),
        ("Putty", M.PUTTY_SKIM, 3, False),
    ]),
]



class LayerPreset(str, Enum):
    """Quick-add layers offered by the layer editor."""

    INSULATION = "insulation"
    PLASTER = "plaster"
    VAPOR_BARRIER = "vapor-barrier"
    AIR_GAP = "air-gap"
    WATERPROOFING = "waterproofing"


_PRESET_SEEDS: dict[LayerPreset, tuple[str, MaterialType, float]] = {
    LayerPreset.INSULATION: ("Insulation", M.EPS_INSULATION, 50),
    LayerPreset.PLASTER: ("Plaster", M.PLASTER, 12),
    LayerPreset.VAPOR_BARRIER: ("Vapor Barrier", M.VAPOR_BARRIER, 0.2),
    LayerPreset.AIR_GAP: ("Air Gap", M.AIR_CAVITY, 25),
    LayerPreset.WATERPROOFING: ("Waterproofing", M.WATERPROOFING, 3),
}


def layer_from_preset(preset: LayerPreset | str) -> WallLayer:
    """Create a fresh non-core layer from a quick-add preset."""
    name, material, thickness = _PRESET_SEEDS[LayerPreset(preset)]
    return WallLayer(name=name, material=material, thickness=thickness)


class WallTypeRegistry:
    """Built-in wall types plus custom types registered at runtime.

    Lookups of unknown ids fall back to the default type so a wall whose
    type was deleted still resolves to a renderable section.
    """

    def __init__(self, custom_types: list[WallTypeDefinition] | None = None) -> None:
        self._types: dict[str, WallTypeDefinition] = {t.id: t for t in BUILT_IN_WALL_TYPES}
        self._custom_ids: list[str] = []
        for wall_type in custom_types or []:
            self.register(wall_type)

    def register(self, wall_type: WallTypeDefinition) -> WallTypeDefinition:
        """Add or replace a custom wall type. Built-in ids are reserved."""
        if wall_type.id in self._types and wall_type.id not in self._custom_ids:
            raise ValueError(f"Wall type '{wall_type.id}' is built in and cannot be replaced")
        self._types[wall_type.id] = wall_type
        if wall_type.id not in self._custom_ids:
            self._custom_ids.append(wall_type.id)
        return wall_type

    def get(self, wall_type_id: str | None) -> WallTypeDefinition:
        """Find a wall type by id, falling back to the default type."""
        if wall_type_id and wall_type_id in self._types:
            return self._types[wall_type_id]
        return self._types[DEFAULT_WALL_TYPE_ID]

    def template_layers(self, wall_type_id: str | None) -> list[WallLayer]:
        """Deep copy of a type's template layers (ids preserved)."""
        return [layer.model_copy(deep=True) for layer in self.get(wall_type_id).layers]

    def custom_types(self) -> list[WallTypeDefinition]:
        return [self._types[type_id] for type_id in self._custom_ids]

    def ids(self) -> list[str]:
        return list(self._types)

    def __contains__(self, wall_type_id: object) -> bool:
        return wall_type_id in self._types

    def __iter__(self):
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)


DEFAULT_REGISTRY = WallTypeRegistry()
