"""Plan millimeters ↔ screen pixels at 96 dpi.

The engine works in millimeters throughout; these conversions belong at
the rendering boundary only.
"""

from __future__ import annotations

PX_PER_INCH = 96.0
MM_PER_INCH = 25.4
MM_TO_PX = PX_PER_INCH / MM_PER_INCH
PX_TO_MM = MM_PER_INCH / PX_PER_INCH

# Stroke limits for drawing wall thickness on screen
MIN_WALL_STROKE_PX = 2.0
MAX_WALL_STROKE_PX = 80.0


def mm_to_px(value_mm: float) -> float:
    return value_mm * MM_TO_PX


def px_to_mm(value_px: float) -> float:
    return value_px * PX_TO_MM


def wall_thickness_to_px(thickness_mm: float, default_mm: float = 180.0) -> float:
    """Screen stroke for a wall thickness, clamped to a drawable range.

    Non-positive thicknesses (legacy records) use `default_mm`.
    """
    resolved = thickness_mm if thickness_mm > 0 else default_mm
    return max(MIN_WALL_STROKE_PX, min(mm_to_px(resolved), MAX_WALL_STROKE_PX))
