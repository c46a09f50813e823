"""Viewport and labeling queries.

- spatial_index: grid hash over wall/room boxes for visibility queries
- tags: non-overlapping room tag placement
"""

from wall_topology.queries.spatial_index import SpatialIndex, get_room_bounds, get_wall_bounds
from wall_topology.queries.tags import TagPlacement, place_room_tag, place_room_tags

__all__ = [
    "SpatialIndex",
    "get_room_bounds",
    "get_wall_bounds",
    "TagPlacement",
    "place_room_tag",
    "place_room_tags",
]
