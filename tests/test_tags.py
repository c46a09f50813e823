"""Tests for room tag placement."""

from wall_topology.models.geometry import Bounds, Point2D, point_in_polygon
from wall_topology.models.rooms import Room
from wall_topology.queries.tags import (
    place_room_tag,
    place_room_tags,
    preferred_tag_anchor,
    tag_candidates,
)
from wall_topology.topology.rooms import apply_room_hierarchy


def _room(x0, y0, x1, y1, **kwargs):
    return Room(
        vertices=[Point2D(x=x0, y=y0), Point2D(x=x1, y=y0), Point2D(x=x1, y=y1), Point2D(x=x0, y=y1)],
        **kwargs,
    )


class TestCandidates:
    def test_anchor_first_then_rings(self):
        anchor = Point2D(x=0, y=0)
        candidates = tag_candidates(anchor, ring_step=100, rings=2, sectors=4)
        assert len(candidates) == 1 + 2 * 4
        assert candidates[0] == anchor
        assert candidates[1] == Point2D(x=100, y=0)
        assert candidates[5] == Point2D(x=200, y=0)


class TestPlaceRoomTag:
    def test_centroid_when_free(self):
        room = _room(0, 0, 4000, 3000)
        placement = place_room_tag(room, {room.id: room}, [], 1200, 600)
        assert placement.anchor == Point2D(x=2000, y=1500)
        assert not placement.is_fallback
        assert placement.bounds == Bounds(left=1400, top=1200, right=2600, bottom=1800)

    def test_moves_away_from_occupied_box(self):
        room = _room(0, 0, 4000, 3000)
        taken = Bounds.around(Point2D(x=2000, y=1500), 1200, 600)
        placement = place_room_tag(room, {room.id: room}, [taken], 1200, 600)
        assert not placement.is_fallback
        assert placement.anchor != Point2D(x=2000, y=1500)
        assert not placement.bounds.overlaps(taken)
        assert point_in_polygon(placement.anchor, room.vertices)

    def test_avoids_child_room(self):
        parent = _room(0, 0, 10000, 10000)
        child = _room(3000, 3000, 7000, 7000)
        rooms, _ = apply_room_hierarchy([parent, child])
        room_by_id = {room.id: room for room in rooms}
        parent = room_by_id[parent.id]

        anchor = preferred_tag_anchor(parent, room_by_id)
        assert not point_in_polygon(anchor, child.vertices)
        assert point_in_polygon(anchor, parent.vertices)

        placement = place_room_tag(parent, room_by_id, [], 800, 400)
        assert not point_in_polygon(placement.anchor, child.vertices)

    def test_concave_room_with_centroid_outside(self):
        u_shape = Room(
            vertices=[
                Point2D(x=0, y=0), Point2D(x=6000, y=0), Point2D(x=6000, y=4000),
                Point2D(x=4000, y=4000), Point2D(x=4000, y=1000), Point2D(x=2000, y=1000),
                Point2D(x=2000, y=4000), Point2D(x=0, y=4000),
            ],
        )
        assert not point_in_polygon(u_shape.centroid, u_shape.vertices)
        placement = place_room_tag(u_shape, {u_shape.id: u_shape}, [], 600, 300)
        assert not placement.is_fallback
        assert point_in_polygon(placement.anchor, u_shape.vertices)

    def test_fallback_when_nothing_fits(self):
        room = _room(0, 0, 4000, 3000)
        everything = Bounds(left=-50000, top=-50000, right=50000, bottom=50000)
        placement = place_room_tag(room, {room.id: room}, [everything], 1200, 600)
        assert placement.is_fallback
        assert placement.anchor == Point2D(x=2000, y=1500)


class TestPlaceRoomTags:
    def test_tags_do_not_overlap(self):
        rooms = [
            _room(0, 0, 2000, 3000),
            _room(2000, 0, 4000, 3000),
            _room(4000, 0, 6000, 3000),
        ]
        placements = place_room_tags(rooms, 2400, 600)
        assert len(placements) == 3
        for i, a in enumerate(placements):
            assert not a.is_fallback
            for b in placements[i + 1:]:
                assert not a.bounds.overlaps(b.bounds)

    def test_hidden_tags_skipped(self):
        shown = _room(0, 0, 2000, 2000)
        hidden = _room(3000, 0, 5000, 2000, show_tag=False)
        placements = place_room_tags([shown, hidden], 500, 200)
        assert [p.room_id for p in placements] == [shown.id]

    def test_existing_occupied_boxes_respected(self):
        room = _room(0, 0, 4000, 3000)
        taken = Bounds.around(Point2D(x=2000, y=1500), 400, 400)
        placement = place_room_tags([room], 400, 200, occupied=[taken])[0]
        assert not placement.bounds.overlaps(taken)
