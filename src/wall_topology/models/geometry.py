"""Geometric primitives for plan elements.

All coordinates are millimeters in a y-up plane. Polygons produced by the
engine wind counter-clockwise (positive signed area); a y-down screen
renders the same vertex order clockwise.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, field_validator


class Point2D(BaseModel):
    """2D point in the XY plane (millimeters)."""

    x: float
    y: float

    def distance_to(self, other: Point2D) -> float:
        """Euclidean distance to another point."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point2D):
            return NotImplemented
        return math.isclose(self.x, other.x, abs_tol=1e-6) and math.isclose(
            self.y, other.y, abs_tol=1e-6
        )

    def __hash__(self) -> int:
        return hash((round(self.x, 6), round(self.y, 6)))


class Bounds(BaseModel):
    """Axis-aligned box. `top` is the smaller y, `bottom` the larger."""

    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def intersects(self, other: Bounds) -> bool:
        """Closed-interval overlap test (touching boxes intersect)."""
        return (
            self.left <= other.right
            and self.right >= other.left
            and self.top <= other.bottom
            and self.bottom >= other.top
        )

    def overlaps(self, other: Bounds) -> bool:
        """Open-interval overlap test (touching boxes do not overlap)."""
        return (
            self.left < other.right
            and self.right > other.left
            and self.top < other.bottom
            and self.bottom > other.top
        )

    def contains(self, other: Bounds, tolerance: float = 1e-6) -> bool:
        """True if `other` lies inside this box."""
        return (
            self.left <= other.left + tolerance
            and self.top <= other.top + tolerance
            and self.right >= other.right - tolerance
            and self.bottom >= other.bottom - tolerance
        )

    def expanded(self, margin: float) -> Bounds:
        """Copy grown by `margin` on every side."""
        return Bounds(
            left=self.left - margin,
            top=self.top - margin,
            right=self.right + margin,
            bottom=self.bottom + margin,
        )

    @classmethod
    def around(cls, center: Point2D, width: float, height: float) -> Bounds:
        """Box of the given size centered on a point."""
        return cls(
            left=center.x - width / 2,
            top=center.y - height / 2,
            right=center.x + width / 2,
            bottom=center.y + height / 2,
        )

    @classmethod
    def of_points(cls, points: list[Point2D]) -> Bounds:
        """Smallest box containing all points. Empty input gives a zero box."""
        if not points:
            return cls(left=0.0, top=0.0, right=0.0, bottom=0.0)
        return cls(
            left=min(p.x for p in points),
            top=min(p.y for p in points),
            right=max(p.x for p in points),
            bottom=max(p.y for p in points),
        )


class Polygon2D(BaseModel):
    """Closed polygon in the XY plane. Minimum 3 vertices. Auto-closes (no need to repeat first vertex)."""

    vertices: list[Point2D]

    @field_validator("vertices")
    @classmethod
    def at_least_3_vertices(cls, v: list[Point2D]) -> list[Point2D]:
        if len(v) < 3:
            raise ValueError("Polygon must have at least 3 vertices")
        return v

    @property
    def signed_area(self) -> float:
        """Shoelace area, positive for counter-clockwise winding (y-up)."""
        return signed_area(self.vertices)

    @property
    def area(self) -> float:
        """Compute area using the shoelace formula. Returns absolute value."""
        return abs(self.signed_area)

    @property
    def perimeter(self) -> float:
        """Total perimeter length."""
        return perimeter(self.vertices)

    @property
    def centroid(self) -> Point2D:
        """Area centroid."""
        return centroid(self.vertices)

    @property
    def bounds(self) -> Bounds:
        return Bounds.of_points(self.vertices)

    def contains_point(self, point: Point2D, inclusive: bool = False) -> bool:
        """Point-in-polygon test; `inclusive` also accepts boundary points."""
        if inclusive:
            return point_in_polygon_inclusive(point, self.vertices)
        return point_in_polygon(point, self.vertices)

    def is_simple(self) -> bool:
        """True if no two non-adjacent edges cross."""
        return is_simple_polygon(self.vertices)


# ── Free functions over vertex lists ─────────────────────────────────


def signed_area(vertices: list[Point2D]) -> float:
    """Shoelace signed area. Fewer than 3 vertices → 0."""
    n = len(vertices)
    if n < 3:
        return 0.0
    area = 0.0
    for i in range(n):
        j = (i + 1) % n
        area += vertices[i].x * vertices[j].y
        area -= vertices[j].x * vertices[i].y
    return area / 2.0


def perimeter(vertices: list[Point2D]) -> float:
    """Closed-loop edge length sum."""
    n = len(vertices)
    if n < 2:
        return 0.0
    return sum(vertices[i].distance_to(vertices[(i + 1) % n]) for i in range(n))


def centroid(vertices: list[Point2D]) -> Point2D:
    """Area centroid, falling back to the vertex average for degenerate input."""
    if not vertices:
        return Point2D(x=0.0, y=0.0)
    n = len(vertices)
    cross_sum = 0.0
    cx = 0.0
    cy = 0.0
    if n >= 3:
        for i in range(n):
            a = vertices[i]
            b = vertices[(i + 1) % n]
            cross = a.x * b.y - b.x * a.y
            cross_sum += cross
            cx += (a.x + b.x) * cross
            cy += (a.y + b.y) * cross
    if abs(cross_sum) < 1e-8:
        return Point2D(
            x=sum(v.x for v in vertices) / n,
            y=sum(v.y for v in vertices) / n,
        )
    factor = 1.0 / (3.0 * cross_sum)
    return Point2D(x=cx * factor, y=cy * factor)


def point_to_segment_distance(point: Point2D, seg_start: Point2D, seg_end: Point2D) -> float:
    """Distance from a point to a line segment."""
    dx = seg_end.x - seg_start.x
    dy = seg_end.y - seg_start.y
    length_sq = dx * dx + dy * dy
    if length_sq < 1e-12:
        return point.distance_to(seg_start)
    t = ((point.x - seg_start.x) * dx + (point.y - seg_start.y) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return math.hypot(point.x - (seg_start.x + t * dx), point.y - (seg_start.y + t * dy))


def point_on_boundary(point: Point2D, vertices: list[Point2D], tolerance: float = 1e-6) -> bool:
    """True if the point lies on any polygon edge within tolerance."""
    n = len(vertices)
    return any(
        point_to_segment_distance(point, vertices[i], vertices[(i + 1) % n]) <= tolerance
        for i in range(n)
    )


def point_in_polygon(point: Point2D, vertices: list[Point2D], tolerance: float = 1e-6) -> bool:
    """Ray-casting test, strict: boundary points are outside."""
    if len(vertices) < 3:
        return False
    if point_on_boundary(point, vertices, tolerance):
        return False
    inside = False
    j = len(vertices) - 1
    for i in range(len(vertices)):
        pi = vertices[i]
        pj = vertices[j]
        if (pi.y > point.y) != (pj.y > point.y):
            x_cross = (pj.x - pi.x) * (point.y - pi.y) / (pj.y - pi.y) + pi.x
            if point.x < x_cross:
                inside = not inside
        j = i
    return inside


def point_in_polygon_inclusive(
    point: Point2D, vertices: list[Point2D], tolerance: float = 1e-6
) -> bool:
    """Ray-casting test that also accepts boundary points."""
    return point_on_boundary(point, vertices, tolerance) or point_in_polygon(
        point, vertices, tolerance
    )


def orientation(a: Point2D, b: Point2D, c: Point2D) -> float:
    """Cross product of (b - a) and (c - a)."""
    return (b.x - a.x) * (c.y - a.y) - (b.y - a.y) * (c.x - a.x)


def segments_cross(
    a1: Point2D, a2: Point2D, b1: Point2D, b2: Point2D, tolerance: float = 1e-8
) -> bool:
    """Proper intersection: the segments cross at a single interior point."""
    o1 = orientation(a1, a2, b1)
    o2 = orientation(a1, a2, b2)
    o3 = orientation(b1, b2, a1)
    o4 = orientation(b1, b2, a2)
    if min(abs(o1), abs(o2), abs(o3), abs(o4)) <= tolerance:
        return False
    return (o1 > 0) != (o2 > 0) and (o3 > 0) != (o4 > 0)


def segment_intersection(
    a1: Point2D, a2: Point2D, b1: Point2D, b2: Point2D
) -> Point2D | None:
    """Crossing point of two segments that properly cross, else None."""
    if not segments_cross(a1, a2, b1, b2):
        return None
    rx, ry = a2.x - a1.x, a2.y - a1.y
    sx, sy = b2.x - b1.x, b2.y - b1.y
    denom = rx * sy - ry * sx
    t = ((b1.x - a1.x) * sy - (b1.y - a1.y) * sx) / denom
    return Point2D(x=a1.x + t * rx, y=a1.y + t * ry)


def is_simple_polygon(vertices: list[Point2D]) -> bool:
    """True if no pair of non-adjacent edges crosses."""
    n = len(vertices)
    if n < 3:
        return False
    for i in range(n):
        a1, a2 = vertices[i], vertices[(i + 1) % n]
        for j in range(i + 2, n):
            if i == 0 and j == n - 1:
                continue  # adjacent through the closing edge
            b1, b2 = vertices[j], vertices[(j + 1) % n]
            if segments_cross(a1, a2, b1, b2):
                return False
    return True


def polygons_overlap(a: list[Point2D], b: list[Point2D]) -> bool:
    """True if the interiors of two polygons share a region.

    Touching along edges or at vertices does not count as overlap.
    """
    if len(a) < 3 or len(b) < 3:
        return False
    if not Bounds.of_points(a).overlaps(Bounds.of_points(b)):
        return False
    if any(point_in_polygon(p, b) for p in a):
        return True
    if any(point_in_polygon(p, a) for p in b):
        return True
    if any(point_in_polygon(p, b) for p in _edge_midpoints(a)):
        return True
    if any(point_in_polygon(p, a) for p in _edge_midpoints(b)):
        return True
    for i in range(len(a)):
        a1, a2 = a[i], a[(i + 1) % len(a)]
        for j in range(len(b)):
            if segments_cross(a1, a2, b[j], b[(j + 1) % len(b)]):
                return True
    # Identical outlines share every vertex and cross nowhere
    return all(point_on_boundary(p, b) for p in a) and all(
        point_on_boundary(p, a) for p in b
    )


def _edge_midpoints(vertices: list[Point2D]) -> list[Point2D]:
    n = len(vertices)
    return [
        Point2D(
            x=(vertices[i].x + vertices[(i + 1) % n].x) / 2,
            y=(vertices[i].y + vertices[(i + 1) % n].y) / 2,
        )
        for i in range(n)
    ]
