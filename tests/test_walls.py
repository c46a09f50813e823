"""Tests for materials, wall layers, wall types and the wall-type registry."""

import math

import pytest
from pydantic import ValidationError

from wall_topology.models.geometry import Point2D
from wall_topology.models.ids import generate_id, is_generated_id
from wall_topology.models.materials import (
    MATERIAL_LIBRARY,
    MaterialType,
    get_material,
    is_known_material,
)
from wall_topology.models.walls import (
    BUILT_IN_WALL_TYPES,
    DEFAULT_WALL_TYPE_ID,
    LayerPreset,
    Wall,
    WallCategory,
    WallLayer,
    WallTypeDefinition,
    WallTypeRegistry,
    layer_from_preset,
)


class TestIds:
    def test_generated_ids_are_22_chars_and_unique(self):
        ids = {generate_id() for _ in range(50)}
        assert len(ids) == 50
        assert all(is_generated_id(i) for i in ids)


class TestMaterials:
    def test_block_conductivities(self):
        assert get_material(MaterialType.CONCRETE_BLOCK).thermal_conductivity == 0.6
        assert get_material(MaterialType.CEMENT_BLOCK).thermal_conductivity == 0.4

    def test_every_type_in_catalog(self):
        assert set(MATERIAL_LIBRARY) == set(MaterialType)

    def test_lookup_by_string(self):
        assert get_material("clay-brick").name == "Clay Brick"

    def test_unknown_falls_back_to_generic(self):
        assert get_material("unobtainium").material == MaterialType.GENERIC
        assert not is_known_material("unobtainium")
        assert is_known_material("plaster")

    def test_catalog_entries_are_frozen(self):
        with pytest.raises(ValidationError):
            MATERIAL_LIBRARY[MaterialType.PLASTER].thermal_conductivity = 1.0


class TestWallLayer:
    def test_display_defaults_from_catalog(self):
        layer = WallLayer(name="Insulation", material=MaterialType.EPS_INSULATION, thickness=50)
        assert layer.color == "#FFE066"
        assert layer.hatch_pattern == "insulation-zigzag"

    def test_r_value(self):
        layer = WallLayer(name="Block", material=MaterialType.CONCRETE_BLOCK, thickness=200)
        assert math.isclose(layer.r_value, 0.2 / 0.6)

    def test_non_positive_thickness_rejected(self):
        with pytest.raises(ValidationError):
            WallLayer(name="Bad", material=MaterialType.PLASTER, thickness=0)

    def test_preset(self):
        layer = layer_from_preset(LayerPreset.VAPOR_BARRIER)
        assert layer.thickness == 0.2
        assert not layer.is_core
        assert layer_from_preset("insulation").material == MaterialType.EPS_INSULATION


class TestWallTypes:
    def test_blockwork_200(self):
        registry = WallTypeRegistry()
        blockwork = registry.get("blockwork-200")
        assert blockwork.name == "Blockwork 200mm"
        assert blockwork.total_thickness == 224
        assert blockwork.core_layer.thickness == 200
        assert blockwork.core_layer.material == MaterialType.CONCRETE_BLOCK

    def test_every_built_in_has_one_core(self):
        for wall_type in BUILT_IN_WALL_TYPES:
            assert sum(1 for layer in wall_type.layers if layer.is_core) == 1, wall_type.id

    def test_cavity_wall_core_is_inner_block(self):
        cavity = WallTypeRegistry().get("insulated-cavity-wall")
        assert cavity.core_layer.name == "Inner Block"

    def test_partition_category(self):
        assert WallTypeRegistry().get("partition-wall-lightweight").category == WallCategory.PARTITION

    def test_template_layer_ids_are_stable(self):
        layers = WallTypeRegistry().template_layers("blockwork-200")
        assert [layer.id for layer in layers] == [
            "blockwork-200/0",
            "blockwork-200/1",
            "blockwork-200/2",
        ]

    def test_two_cores_rejected(self):
        with pytest.raises(ValidationError, match="exactly one core"):
            WallTypeDefinition(
                id="double",
                name="Double",
                layers=[
                    WallLayer(name="A", material=MaterialType.CONCRETE, thickness=100, is_core=True),
                    WallLayer(name="B", material=MaterialType.CONCRETE, thickness=100, is_core=True),
                ],
            )

    def test_no_layers_rejected(self):
        with pytest.raises(ValidationError):
            WallTypeDefinition(id="empty", name="Empty", layers=[])


class TestRegistry:
    def _custom(self, type_id="timber-100"):
        return WallTypeDefinition(
            id=type_id,
            name="Timber 100",
            layers=[WallLayer(name="Timber", material=MaterialType.GENERIC, thickness=100, is_core=True)],
        )

    def test_unknown_id_falls_back_to_default(self):
        registry = WallTypeRegistry()
        assert registry.get("no-such-type").id == DEFAULT_WALL_TYPE_ID
        assert registry.get(None).id == DEFAULT_WALL_TYPE_ID

    def test_register_custom(self):
        registry = WallTypeRegistry()
        registry.register(self._custom())
        assert "timber-100" in registry
        assert registry.get("timber-100").total_thickness == 100
        assert [t.id for t in registry.custom_types()] == ["timber-100"]
        assert len(registry) == len(BUILT_IN_WALL_TYPES) + 1

    def test_replace_custom(self):
        registry = WallTypeRegistry([self._custom()])
        replacement = self._custom().model_copy(update={"name": "Timber (revised)"})
        registry.register(replacement)
        assert registry.get("timber-100").name == "Timber (revised)"
        assert len(registry.custom_types()) == 1

    def test_built_in_ids_reserved(self):
        with pytest.raises(ValueError, match="built in"):
            WallTypeRegistry().register(self._custom("blockwork-200"))

    def test_template_layers_are_copies(self):
        registry = WallTypeRegistry()
        layers = registry.template_layers("blockwork-200")
        layers[0].thickness = 99
        assert registry.get("blockwork-200").layers[0].thickness == 12


class TestWall:
    def test_defaults(self):
        wall = Wall(start=Point2D(x=0, y=0), end=Point2D(x=3000, y=4000))
        assert wall.length == 5000
        assert wall.wall_type_id == DEFAULT_WALL_TYPE_ID
        assert wall.wall_layers is None
        assert not wall.is_wall_type_override

    def test_zero_length_rejected(self):
        with pytest.raises(ValidationError, match="must be different"):
            Wall(start=Point2D(x=5, y=5), end=Point2D(x=5, y=5))

    def test_override_needs_one_core(self):
        with pytest.raises(ValidationError, match="exactly one core"):
            Wall(
                start=Point2D(x=0, y=0),
                end=Point2D(x=1000, y=0),
                is_wall_type_override=True,
                wall_layers=[WallLayer(name="Plaster", material=MaterialType.PLASTER, thickness=12)],
            )

    def test_json_round_trip_keeps_layers(self):
        wall = Wall(
            start=Point2D(x=0, y=0),
            end=Point2D(x=1000, y=0),
            is_wall_type_override=True,
            wall_layers=[
                WallLayer(name="Core", material=MaterialType.CONCRETE, thickness=150, is_core=True),
            ],
        )
        restored = Wall.model_validate_json(wall.model_dump_json())
        assert restored.wall_layers[0].material == MaterialType.CONCRETE
        assert restored.id == wall.id
