"""Tests for FloorPlan editing, persistence and validation."""

import pytest

from wall_topology.assembly.layers import get_total_thickness, resolve_effective_layers
from wall_topology.config import EngineSettings
from wall_topology.models.materials import MaterialType
from wall_topology.models.plan import FloorPlan
from wall_topology.models.walls import LayerPreset, WallLayer, WallTypeDefinition, layer_from_preset


def _box_plan(width=4000, depth=3000):
    plan = FloorPlan(name="Test Plan")
    plan.add_wall((0, 0), (width, 0), name="South")
    plan.add_wall((width, 0), (width, depth), name="East")
    plan.add_wall((width, depth), (0, depth), name="North")
    plan.add_wall((0, depth), (0, 0), name="West")
    return plan


def _timber():
    return WallTypeDefinition(
        id="timber-stud-100",
        name="Timber Stud 100",
        layers=[
            WallLayer(name="Board", material=MaterialType.GYPSUM_BOARD, thickness=12.5),
            WallLayer(name="Stud", material=MaterialType.GENERIC, thickness=100, is_core=True),
            WallLayer(name="Board", material=MaterialType.GYPSUM_BOARD, thickness=12.5),
        ],
    )


class TestWallEdits:
    def test_rooms_appear_when_loop_closes(self):
        plan = FloorPlan()
        plan.add_wall((0, 0), (4000, 0))
        plan.add_wall((4000, 0), (4000, 3000))
        plan.add_wall((4000, 3000), (0, 3000))
        assert plan.rooms == []
        plan.add_wall((0, 3000), (0, 0))
        assert len(plan.rooms) == 1
        assert plan.rooms[0].area == pytest.approx(12.0)

    def test_new_wall_defaults(self):
        plan = FloorPlan()
        wall = plan.add_wall((0, 0), (1000, 0))
        assert wall.wall_type_id == "blockwork-200"
        assert wall.material == "Concrete Block"
        assert wall.height == 2700
        assert wall.wall_layers is None

    def test_remove_wall_opens_room(self):
        plan = _box_plan()
        plan.remove_wall(plan.get_wall_by_name("north").id)
        assert len(plan.walls) == 3
        assert plan.rooms == []

    def test_remove_unknown_wall_raises(self):
        with pytest.raises(ValueError, match="not found"):
            _box_plan().remove_wall("nope")

    def test_partition_splits_room(self):
        plan = _box_plan()
        plan.add_wall((2000, 0), (2000, 3000), name="Partition")
        assert sorted(r.area for r in plan.rooms) == pytest.approx([6.0, 6.0])

    def test_move_wall_updates_area(self):
        plan = _box_plan()
        partition = plan.add_wall((2000, 0), (2000, 3000), name="Partition")
        ids = {r.id for r in plan.rooms}
        plan.move_wall(partition.id, (1000, 0), (1000, 3000))
        assert [r.area for r in plan.rooms] == pytest.approx([3.0, 9.0])
        # Same bounding walls, so the rooms keep their ids
        assert {r.id for r in plan.rooms} == ids

    def test_move_to_zero_length_raises(self):
        plan = _box_plan()
        with pytest.raises(ValueError, match="must be different"):
            plan.move_wall(plan.walls[0].id, (0, 0), (0, 0))

    def test_room_name_survives_rebuild(self):
        plan = _box_plan()
        plan.update_room(plan.rooms[0].id, name="Plant Room")
        plan.add_wall((5000, 0), (6000, 0))
        assert plan.rooms[0].name == "Plant Room"
        assert plan.get_room_by_name("plant room") is plan.rooms[0]


class TestLayerEdits:
    def test_set_thickness(self):
        plan = _box_plan()
        wall_id = plan.walls[0].id
        assert plan.set_wall_total_thickness(wall_id, 300) == []
        assert get_total_thickness(plan.get_wall(wall_id)) == pytest.approx(300)

    def test_layer_edits_keep_rooms(self):
        plan = _box_plan()
        room = plan.rooms[0]
        plan.add_wall_layer(plan.walls[0].id, layer_from_preset(LayerPreset.INSULATION), 0)
        assert plan.rooms[0] == room

    def test_unknown_wall_warns(self):
        plan = _box_plan()
        assert plan.set_wall_total_thickness("ghost", 250) == ["Wall 'ghost' not found."]
        assert plan.convert_wall_core_material("ghost", "concrete") == ["Wall 'ghost' not found."]

    def test_remove_core_refused(self):
        plan = _box_plan()
        wall = plan.walls[0]
        warnings = plan.remove_wall_layer(wall.id, "blockwork-200/1")
        assert warnings == ["Core layer cannot be removed."]
        assert plan.get_wall(wall.id) == wall

    def test_reorder_and_reset(self):
        plan = _box_plan()
        wall_id = plan.walls[0].id
        plan.reorder_wall_layer(wall_id, 0, 2)
        assert plan.get_wall(wall_id).is_wall_type_override
        plan.reset_wall_layer_overrides(wall_id)
        assert not plan.get_wall(wall_id).is_wall_type_override

    def test_update_layer_and_convert_core(self):
        plan = _box_plan()
        wall_id = plan.walls[0].id
        plan.update_wall_layer_thickness(wall_id, "blockwork-200/0", 20)
        plan.convert_wall_core_material(wall_id, MaterialType.CEMENT_BLOCK)
        layers = resolve_effective_layers(plan.get_wall(wall_id))
        assert [layer.thickness for layer in layers] == [20, 200, 12]
        assert layers[1].material == MaterialType.CEMENT_BLOCK


class TestWallTypes:
    def test_register_and_use_custom_type(self):
        plan = FloorPlan()
        plan.register_wall_type(_timber())
        wall = plan.add_wall((0, 0), (2000, 0), wall_type_id="timber-stud-100")
        assert get_total_thickness(wall, plan.registry) == 125
        assert wall.material == "Stud"

    def test_cannot_replace_built_in(self):
        with pytest.raises(ValueError, match="built in"):
            FloorPlan().register_wall_type(_timber().model_copy(update={"id": "brick-wall"}))

    def test_unknown_type_falls_back(self):
        wall = FloorPlan().add_wall((0, 0), (2000, 0), wall_type_id="missing")
        assert wall.wall_type_id == "blockwork-200"


class TestPersistence:
    def test_save_load_round_trip(self, tmp_path):
        plan = _box_plan()
        plan.register_wall_type(_timber())
        plan.set_wall_total_thickness(plan.walls[0].id, 260)
        path = plan.save(tmp_path / "plans" / "box.json")
        assert path.exists()

        loaded = FloorPlan.load(path)
        assert loaded.name == "Test Plan"
        assert len(loaded.walls) == 4
        assert len(loaded.rooms) == 1
        assert loaded.rooms[0].id == plan.rooms[0].id
        assert get_total_thickness(loaded.walls[0]) == pytest.approx(260)
        assert "timber-stud-100" in loaded.registry

    def test_load_with_settings(self, tmp_path):
        path = _box_plan().save(tmp_path / "box.json")
        settings = EngineSettings(min_room_area=20_000_000)
        loaded = FloorPlan.load(path, settings=settings)
        assert loaded.settings is settings
        assert loaded.detect_rooms() == []


class TestQueriesAndValidation:
    def test_closed_box_is_clean(self):
        assert _box_plan().validate() == []

    def test_open_end_reported(self):
        plan = _box_plan()
        plan.add_wall((4000, 1500), (6000, 1500))
        errors = plan.validate()
        assert len(errors) == 1
        assert errors[0].severity == "warning"
        assert "not connected" in errors[0].message

    def test_spatial_index(self):
        plan = _box_plan()
        index = plan.spatial_index()
        walls, rooms = index.query_viewport(index.room_bounds[plan.rooms[0].id])
        assert len(walls) == 4
        assert len(rooms) == 1

    def test_place_tags(self):
        plan = _box_plan()
        placements = plan.place_tags(1200, 600)
        assert [p.room_id for p in placements] == [plan.rooms[0].id]

    def test_nested_room_totals(self):
        plan = _box_plan(6000, 5000)
        plan.add_wall((1000, 1000), (2000, 1000))
        plan.add_wall((2000, 1000), (2000, 2000))
        plan.add_wall((2000, 2000), (1000, 2000))
        plan.add_wall((1000, 2000), (1000, 1000))
        assert len(plan.rooms) == 2
        assert plan.total_area() == pytest.approx(30.0)
        text = plan.summary()
        assert text.startswith("📐 Test Plan")
        assert "Rooms: 2" in text

    def test_update_room_rejects_geometry(self):
        plan = _box_plan()
        with pytest.raises(ValueError, match="not editable"):
            plan.update_room(plan.rooms[0].id, area=99)

    def test_crossing_loops_count_shared_area_once(self):
        plan = _box_plan(4000, 4000)
        plan.add_wall((2000, 2000), (6000, 2000))
        plan.add_wall((6000, 2000), (6000, 6000))
        plan.add_wall((6000, 6000), (2000, 6000))
        plan.add_wall((2000, 6000), (2000, 2000))
        assert len(plan.rooms) == 3
        assert plan.total_area() == pytest.approx(28.0)
        assert plan.validate() == []
