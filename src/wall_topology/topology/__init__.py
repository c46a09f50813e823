"""Room topology from the wall network.

- graph: planar wall graph and face tracing
- rooms: faces → rooms, attribute carry-over, nested-room hierarchy
"""

from wall_topology.topology.graph import (
    Face,
    GraphEdge,
    GraphNode,
    WallGraph,
    build_wall_graph,
    trace_faces,
)
from wall_topology.topology.rooms import (
    apply_room_hierarchy,
    detect_rooms,
    detect_rooms_with_issues,
    suggest_space_type,
)
from wall_topology.validators.rooms import validate_room_hierarchy

__all__ = [
    "Face",
    "GraphEdge",
    "GraphNode",
    "WallGraph",
    "build_wall_graph",
    "trace_faces",
    "apply_room_hierarchy",
    "detect_rooms",
    "detect_rooms_with_issues",
    "suggest_space_type",
    "validate_room_hierarchy",
]
