"""Material catalog: thermal and display properties of wall materials.

Pure data. Conductivity values are design values in W/(m·K); the block
values follow the project's regional product data rather than EN 1745
tables.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MaterialType(str, Enum):
    """Known wall materials."""

    CEMENT_BLOCK = "cement-block"
    CLAY_BRICK = "clay-brick"
    CONCRETE = "concrete"
    CONCRETE_BLOCK = "concrete-block"
    GYPSUM_BOARD = "gypsum-board"
    PLASTER = "plaster"
    PUTTY_SKIM = "putty-skim"
    EPS_INSULATION = "eps-insulation"
    XPS_INSULATION = "xps-insulation"
    MINERAL_WOOL = "mineral-wool"
    AIR_CAVITY = "air-cavity"
    STUD_AIR_GAP = "stud-air-gap"
    VAPOR_BARRIER = "vapor-barrier"
    WATERPROOFING = "waterproofing"
    GENERIC = "generic"


INSULATION_MATERIALS = frozenset(
    {MaterialType.EPS_INSULATION, MaterialType.XPS_INSULATION, MaterialType.MINERAL_WOOL}
)


class Material(BaseModel):
    """Immutable catalog entry."""

    model_config = ConfigDict(frozen=True)

    material: MaterialType
    name: str
    thermal_conductivity: float = Field(gt=0, description="k in W/(m·K)")
    density: float = Field(gt=0, description="kg/m³")
    specific_heat_capacity: float = Field(gt=0, description="J/(kg·K)")
    color: str = "#9E9E9E"
    hatch_pattern: str = "generic-core"


def _entry(
    material: MaterialType,
    name: str,
    k: float,
    density: float,
    heat: float,
    color: str,
    hatch: str,
) -> tuple[MaterialType, Material]:
    return material, Material(
        material=material,
        name=name,
        thermal_conductivity=k,
        density=density,
        specific_heat_capacity=heat,
        color=color,
        hatch_pattern=hatch,
    )


MATERIAL_LIBRARY: dict[MaterialType, Material] = dict(
    [
        _entry(MaterialType.CEMENT_BLOCK, "Cement Block", 0.4, 1900, 840, "#B8B8B8", "block-diagonal-crosshatch"),
        _entry(MaterialType.CLAY_BRICK, "Clay Brick", 0.84, 1700, 800, "#C4714A", "brick-staggered"),
        _entry(MaterialType.CONCRETE, "Concrete", 1.63, 2400, 880, "#A0A0A0", "concrete-stipple"),
        _entry(MaterialType.CONCRETE_BLOCK, "Concrete Block", 0.6, 2000, 880, "#9E9E9E", "block-diagonal-dots"),
        _entry(MaterialType.GYPSUM_BOARD, "Gypsum Board", 0.17, 800, 1090, "#E6DFD4", "gypsum-lines"),
        _entry(MaterialType.PLASTER, "Plaster", 0.72, 1680, 840, "#E0E0E0", "plaster-fine"),
        _entry(MaterialType.PUTTY_SKIM, "Putty / Skim Coat", 0.72, 1600, 840, "#EFEFEF", "putty-fine"),
        _entry(MaterialType.EPS_INSULATION, "EPS Insulation", 0.035, 20, 1450, "#FFE066", "insulation-zigzag"),
        _entry(MaterialType.XPS_INSULATION, "XPS Insulation", 0.034, 35, 1450, "#FFD23F", "insulation-zigzag"),
        _entry(MaterialType.MINERAL_WOOL, "Mineral Wool", 0.038, 100, 840, "#F4E19C", "insulation-wave"),
        _entry(MaterialType.AIR_CAVITY, "Air Cavity", 0.025, 1.2, 1005, "#F5F5F5", "air-gap-dots"),
        _entry(MaterialType.STUD_AIR_GAP, "Stud Air Gap", 0.025, 1.2, 1005, "#D9D2C5", "partition-parallel-lines"),
        _entry(MaterialType.VAPOR_BARRIER, "Vapor Barrier", 0.19, 940, 1900, "#93C5FD", "vapor-line"),
        _entry(MaterialType.WATERPROOFING, "Waterproofing", 0.2, 1200, 1400, "#60A5FA", "waterproof-wave"),
        _entry(MaterialType.GENERIC, "Generic", 0.5, 1200, 900, "#9E9E9E", "generic-core"),
    ]
)


def get_material(material: MaterialType | str) -> Material:
    """Look up a catalog entry. Unknown names resolve to the generic material."""
    try:
        return MATERIAL_LIBRARY[MaterialType(material)]
    except ValueError:
        return MATERIAL_LIBRARY[MaterialType.GENERIC]


def is_known_material(material: MaterialType | str) -> bool:
    """True if the name is in the catalog."""
    try:
        MaterialType(material)
    except ValueError:
        return False
    return True
