"""Planar wall graph and face tracing.

Walls are centerline segments. Endpoints that fall within the snap
tolerance of each other become one node; an endpoint resting on the body
of another wall splits that wall (T-junction), and two walls crossing
mid-span are both split at a new node. Enclosed faces are traced over
half-edges: at every node the walk leaves along the outgoing edge
immediately clockwise from the edge it arrived on, so bounded faces come
out counter-clockwise (positive signed area, y-up) and the unbounded face
comes out negative.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field

from wall_topology.config import DEFAULT_SETTINGS, EngineSettings
from wall_topology.models.geometry import (
    Point2D,
    centroid,
    perimeter,
    point_to_segment_distance,
    segment_intersection,
    signed_area,
)
from wall_topology.models.walls import Wall

logger = logging.getLogger(__name__)

MM2_PER_M2 = 1_000_000.0
MM_PER_M = 1000.0


# ── Graph data structures ────────────────────────────────────────────


@dataclass
class GraphNode:
    """A junction of one or more wall endpoints."""

    id: str
    point: Point2D


@dataclass
class GraphEdge:
    """A wall, or the piece of a wall between two junctions."""

    wall_id: str
    from_node: str
    to_node: str


@dataclass
class HalfEdge:
    """One direction of a graph edge."""

    id: str
    twin_id: str
    wall_id: str
    origin: str
    target: str
    angle: float  # direction in radians, atan2 convention


@dataclass
class WallGraph:
    """Undirected planar graph rebuilt from the wall list on every pass."""

    nodes: dict[str, GraphNode] = field(default_factory=dict)
    edges: list[GraphEdge] = field(default_factory=list)

    def degree(self) -> dict[str, int]:
        counts: dict[str, int] = defaultdict(int)
        for edge in self.edges:
            counts[edge.from_node] += 1
            counts[edge.to_node] += 1
        return counts

    def dangling_nodes(self) -> list[str]:
        """Nodes touched by exactly one edge (open wall ends)."""
        return [node_id for node_id, count in self.degree().items() if count == 1]

    def pruned(self) -> WallGraph:
        """Copy without dangling chains; they can never bound a face."""
        edges = list(self.edges)
        while True:
            counts: dict[str, int] = defaultdict(int)
            for edge in edges:
                counts[edge.from_node] += 1
                counts[edge.to_node] += 1
            kept = [e for e in edges if counts[e.from_node] > 1 and counts[e.to_node] > 1]
            if len(kept) == len(edges):
                break
            edges = kept
        used = {e.from_node for e in edges} | {e.to_node for e in edges}
        return WallGraph(
            nodes={node_id: node for node_id, node in self.nodes.items() if node_id in used},
            edges=edges,
        )


@dataclass
class Face:
    """A closed cycle of half-edges found by the tracer."""

    vertices: list[Point2D]
    wall_ids: list[str]
    signed_area: float  # mm², positive for bounded faces

    @property
    def area_m2(self) -> float:
        return abs(self.signed_area) / MM2_PER_M2

    @property
    def perimeter_m(self) -> float:
        return perimeter(self.vertices) / MM_PER_M

    @property
    def centroid(self) -> Point2D:
        return centroid(self.vertices)


# ── Graph construction ───────────────────────────────────────────────


@dataclass
class _NodeAccumulator:
    id: str
    anchor: Point2D
    sx: float = 0.0
    sy: float = 0.0
    count: int = 0

    def add(self, point: Point2D) -> None:
        self.sx += point.x
        self.sy += point.y
        self.count += 1

    @property
    def mean(self) -> Point2D:
        return Point2D(x=self.sx / self.count, y=self.sy / self.count)


def build_wall_graph(
    walls: list[Wall],
    tolerance: float | None = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> WallGraph:
    """Build the planar graph of wall centerlines.

    Args:
        walls: Walls to connect.
        tolerance: Endpoint snap distance in mm. Defaults to the settings value.
        settings: Engine settings.

    Returns:
        Graph with one node per junction and one edge per wall piece.
    """
    tol = settings.node_snap_tolerance if tolerance is None else tolerance
    accumulators: list[_NodeAccumulator] = []

    def node_for(point: Point2D) -> str:
        # First-seen node within tolerance wins
        for acc in accumulators:
            if acc.anchor.distance_to(point) <= tol:
                acc.add(point)
                return acc.id
        acc = _NodeAccumulator(id=f"n{len(accumulators)}", anchor=point)
        acc.add(point)
        accumulators.append(acc)
        return acc.id

    raw_edges: list[GraphEdge] = []
    for wall in walls:
        from_id = node_for(wall.start)
        to_id = node_for(wall.end)
        if from_id == to_id:
            logger.debug("skipping wall %s: endpoints snap to one node", wall.id)
            continue
        raw_edges.append(GraphEdge(wall_id=wall.id, from_node=from_id, to_node=to_id))

    # Walls crossing mid-span meet at a new junction
    anchors = {acc.id: acc.anchor for acc in accumulators}
    for i, edge_a in enumerate(raw_edges):
        for edge_b in raw_edges[i + 1:]:
            crossing = segment_intersection(
                anchors[edge_a.from_node], anchors[edge_a.to_node],
                anchors[edge_b.from_node], anchors[edge_b.to_node],
            )
            if crossing is None:
                continue
            if any(acc.anchor.distance_to(crossing) <= tol for acc in accumulators):
                continue
            logger.debug("walls %s and %s cross at %s", edge_a.wall_id, edge_b.wall_id, crossing)
            acc = _NodeAccumulator(id=f"n{len(accumulators)}", anchor=crossing)
            acc.add(crossing)
            accumulators.append(acc)

    nodes = {acc.id: GraphNode(id=acc.id, point=acc.mean) for acc in accumulators}
    graph = WallGraph(nodes=nodes, edges=_split_at_junctions(raw_edges, nodes, tol))
    logger.debug("wall graph: %d nodes, %d edges", len(graph.nodes), len(graph.edges))
    return graph


def _split_at_junctions(
    edges: list[GraphEdge],
    nodes: dict[str, GraphNode],
    tolerance: float,
) -> list[GraphEdge]:
    """Split edges at nodes lying on their interior, dropping duplicates."""
    result: list[GraphEdge] = []
    seen_pairs: set[frozenset[str]] = set()

    for edge in edges:
        a = nodes[edge.from_node].point
        b = nodes[edge.to_node].point
        dx, dy = b.x - a.x, b.y - a.y
        length_sq = dx * dx + dy * dy

        on_body: list[tuple[float, str]] = []
        for node in nodes.values():
            if node.id in (edge.from_node, edge.to_node):
                continue
            if point_to_segment_distance(node.point, a, b) > tolerance:
                continue
            t = ((node.point.x - a.x) * dx + (node.point.y - a.y) * dy) / length_sq
            if 0.0 < t < 1.0:
                on_body.append((t, node.id))

        chain = [edge.from_node] + [node_id for _, node_id in sorted(on_body)] + [edge.to_node]
        for from_id, to_id in zip(chain, chain[1:]):
            pair = frozenset((from_id, to_id))
            if pair in seen_pairs:
                continue
            seen_pairs.add(pair)
            result.append(GraphEdge(wall_id=edge.wall_id, from_node=from_id, to_node=to_id))

    return result


# ── Face tracing ─────────────────────────────────────────────────────


def _half_edges(graph: WallGraph) -> tuple[list[HalfEdge], dict[str, list[HalfEdge]]]:
    half_edges: list[HalfEdge] = []
    outgoing: dict[str, list[HalfEdge]] = defaultdict(list)

    for index, edge in enumerate(graph.edges):
        a = graph.nodes[edge.from_node].point
        b = graph.nodes[edge.to_node].point
        forward = HalfEdge(
            id=f"{index}:f",
            twin_id=f"{index}:r",
            wall_id=edge.wall_id,
            origin=edge.from_node,
            target=edge.to_node,
            angle=math.atan2(b.y - a.y, b.x - a.x),
        )
        reverse = HalfEdge(
            id=f"{index}:r",
            twin_id=f"{index}:f",
            wall_id=edge.wall_id,
            origin=edge.to_node,
            target=edge.from_node,
            angle=math.atan2(a.y - b.y, a.x - b.x),
        )
        half_edges.extend((forward, reverse))
        outgoing[forward.origin].append(forward)
        outgoing[reverse.origin].append(reverse)

    for fan in outgoing.values():
        fan.sort(key=lambda he: he.angle)
    return half_edges, outgoing


def _walk(
    start: HalfEdge,
    outgoing: dict[str, list[HalfEdge]],
    limit: int,
) -> list[HalfEdge] | None:
    """Follow next-pointers from `start` until the walk closes."""
    cycle: list[HalfEdge] = []
    seen: set[str] = set()
    current = start
    for _ in range(limit):
        if current.id in seen:
            return None
        seen.add(current.id)
        cycle.append(current)

        fan = outgoing.get(current.target, [])
        twin_index = next((i for i, he in enumerate(fan) if he.id == current.twin_id), None)
        if twin_index is None:
            return None
        current = fan[(twin_index - 1) % len(fan)]
        if current.id == start.id:
            return cycle
    return None


def _clean_vertices(vertices: list[Point2D]) -> list[Point2D]:
    cleaned: list[Point2D] = []
    for vertex in vertices:
        if not cleaned or cleaned[-1] != vertex:
            cleaned.append(vertex)
    if len(cleaned) > 1 and cleaned[0] == cleaned[-1]:
        cleaned.pop()
    return cleaned


def _collapse_wall_sequence(wall_ids: list[str]) -> list[str]:
    """Drop consecutive repeats left by walls split into several pieces."""
    sequence: list[str] = []
    for wall_id in wall_ids:
        if not sequence or sequence[-1] != wall_id:
            sequence.append(wall_id)
    if len(sequence) > 1 and sequence[0] == sequence[-1]:
        sequence.pop()
    return sequence


def canonical_cycle_key(wall_ids: list[str]) -> tuple[str, ...]:
    """Rotation- and direction-independent key for a cycle of wall ids."""
    if not wall_ids:
        return ()
    candidates = []
    for sequence in (list(wall_ids), list(reversed(wall_ids))):
        for i in range(len(sequence)):
            candidates.append(tuple(sequence[i:] + sequence[:i]))
    return min(candidates)


def trace_faces(graph: WallGraph, settings: EngineSettings = DEFAULT_SETTINGS) -> list[Face]:
    """Enumerate the bounded faces of a wall graph.

    Dangling chains are pruned first. Faces with non-positive signed area
    (the unbounded face, outlines of free-standing islands) and faces
    smaller than `settings.min_room_area` are discarded. Faces running
    over the same wall cycle are deduplicated, keeping the smaller one.
    Results are ordered by centroid, ascending y then ascending x.
    """
    graph = graph.pruned()
    half_edges, outgoing = _half_edges(graph)
    visited: set[str] = set()
    by_cycle: dict[tuple[str, ...], Face] = {}

    for start in half_edges:
        if start.id in visited:
            continue
        cycle = _walk(start, outgoing, limit=len(half_edges) + 1)
        if cycle is None:
            visited.add(start.id)
            continue
        visited.update(he.id for he in cycle)
        if len(cycle) < 3:
            continue

        vertices = _clean_vertices([graph.nodes[he.origin].point for he in cycle])
        if len(vertices) < 3:
            continue
        area = signed_area(vertices)
        if area <= 0 or area < settings.min_room_area:
            continue
        wall_ids = _collapse_wall_sequence([he.wall_id for he in cycle])
        if not wall_ids:
            continue

        face = Face(vertices=vertices, wall_ids=wall_ids, signed_area=area)
        key = canonical_cycle_key(wall_ids)
        existing = by_cycle.get(key)
        if existing is None or face.signed_area < existing.signed_area:
            by_cycle[key] = face

    faces = list(by_cycle.values())
    faces.sort(key=lambda f: (round(f.centroid.y, 6), f.centroid.x))
    logger.debug("traced %d bounded faces", len(faces))
    return faces
