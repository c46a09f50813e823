"""Engine tuning constants.

Every operation takes an optional `settings` argument; callers that pass
nothing get DEFAULT_SETTINGS. Linear values are millimeters unless noted.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class EngineSettings(BaseModel):
    """Tunable limits and tolerances for the wall and room engine."""

    # Wall assemblies
    min_total_thickness: float = Field(
        default=10.0, gt=0, description="Lower edge of the plausible wall thickness band (mm)"
    )
    max_total_thickness: float = Field(
        default=1000.0, gt=0, description="Upper edge of the plausible wall thickness band (mm)"
    )
    min_layer_thickness: float = Field(
        default=0.2, gt=0, description="Floor for any single layer when rescaling (mm)"
    )
    min_u_value: float = Field(
        default=0.1, ge=0, description="Lowest U-value accepted without a warning (W/m²K)"
    )
    max_u_value: float = Field(
        default=6.0, gt=0, description="Highest U-value accepted without a warning (W/m²K)"
    )
    interior_surface_resistance: float = Field(
        default=0.0, ge=0, description="R_si added to the layer sum (m²K/W), 0.13 per ISO 6946"
    )
    exterior_surface_resistance: float = Field(
        default=0.0, ge=0, description="R_se added to the layer sum (m²K/W), 0.04 per ISO 6946"
    )

    # Room topology
    node_snap_tolerance: float = Field(
        default=1.0, gt=0, description="Wall endpoints closer than this share a graph node (mm)"
    )
    min_room_area: float = Field(
        default=100.0, ge=0, description="Faces smaller than this are discarded (mm²)"
    )

    # Spatial index
    grid_cell_size: float = Field(default=400.0, gt=0, description="Grid hash cell edge (scene units)")
    default_wall_thickness: float = Field(
        default=180.0, gt=0, description="Thickness assumed for walls without a usable section (mm)"
    )
    viewport_margin: float = Field(
        default=200.0, ge=0, description="Padding added around viewport queries (scene units)"
    )

    # Tag placement
    tag_rings: int = Field(default=6, ge=1)
    tag_sectors: int = Field(default=12, ge=1)
    tag_ring_step: float = Field(default=200.0, gt=0, description="Radius increment between rings")

    @model_validator(mode="after")
    def band_is_ordered(self) -> EngineSettings:
        if self.min_total_thickness >= self.max_total_thickness:
            raise ValueError("min_total_thickness must be below max_total_thickness")
        if self.min_u_value >= self.max_u_value:
            raise ValueError("min_u_value must be below max_u_value")
        return self


DEFAULT_SETTINGS = EngineSettings()
