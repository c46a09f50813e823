"""Tests for the CLI interface."""
import json
import subprocess
import sys
from pathlib import Path

import pytest

CLI = [sys.executable, "-m", "wall_topology"]
ROOT = Path(__file__).parent.parent


def run_cli(*args: str) -> dict:
    """Run CLI command and return parsed JSON output."""
    result = subprocess.run(
        [*CLI, *args],
        capture_output=True, text=True, cwd=str(ROOT),
    )
    assert result.returncode == 0, f"CLI failed: {result.stderr}\n{result.stdout}"
    return json.loads(result.stdout)


def run_cli_expect_fail(*args: str) -> dict:
    """Run CLI command expecting failure, return parsed JSON output."""
    result = subprocess.run(
        [*CLI, *args],
        capture_output=True, text=True, cwd=str(ROOT),
    )
    assert result.returncode != 0
    return json.loads(result.stdout)


BOX_ACTIONS = [
    {"action": "add-wall", "start": [0, 0], "end": [4000, 0], "name": "South"},
    {"action": "add-wall", "start": [4000, 0], "end": [4000, 3000], "name": "East"},
    {"action": "add-wall", "start": [4000, 3000], "end": [0, 3000], "name": "North"},
    {"action": "add-wall", "start": [0, 3000], "end": [0, 0], "name": "West"},
]


@pytest.fixture
def box_plan(tmp_path):
    """A saved 4 x 3 m single-room plan. Returns (path, wall ids by name)."""
    path = tmp_path / "box.json"
    run_cli("new", str(path), "--name", "Box")
    data = run_cli("apply", str(path), json.dumps(BOX_ACTIONS))
    ids = {r["name"]: r["id"] for r in data["results"]}
    return str(path), ids


class TestNew:
    def test_new_plan(self, tmp_path):
        path = tmp_path / "empty.json"
        data = run_cli("new", str(path), "--name", "Level 1")
        assert data["ok"] is True
        assert path.exists()
        summary = run_cli("summary", str(path))
        assert summary["plan"] == "Level 1"
        assert summary["walls"] == 0

    def test_new_refuses_overwrite(self, tmp_path):
        path = tmp_path / "empty.json"
        run_cli("new", str(path))
        data = run_cli_expect_fail("new", str(path))
        assert data["ok"] is False


class TestReadOnly:
    def test_summary(self, box_plan):
        path, _ = box_plan
        data = run_cli("summary", path)
        assert data["ok"] is True
        assert data["walls"] == 4
        assert data["rooms"] == 1
        assert data["total_area_m2"] == 12.0

    def test_walls(self, box_plan):
        path, ids = box_plan
        data = run_cli("walls", path)
        south = next(w for w in data["walls"] if w["id"] == ids["South"])
        assert south["wall_type"] == "blockwork-200"
        assert south["total_thickness_mm"] == 224
        assert south["core_thickness_mm"] == 200
        assert south["uses_type_default"] is True
        assert south["stroke_px"] == 80.0

    def test_rooms(self, box_plan):
        path, _ = box_plan
        data = run_cli("rooms", path)
        assert len(data["rooms"]) == 1
        room = data["rooms"][0]
        assert room["name"] == "Room 1"
        assert room["gross_area_m2"] == 12.0
        assert room["perimeter_m"] == 14.0
        assert data["validation"]["errors"] == 0

    def test_visible(self, box_plan):
        path, ids = box_plan
        data = run_cli("visible", path, "0", "0", "500", "200")
        assert set(data["walls"]) == {ids["South"], ids["West"]}
        assert len(data["rooms"]) == 1

    def test_visible_rejects_inverted_viewport(self, box_plan):
        path, _ = box_plan
        data = run_cli_expect_fail("visible", path, "500", "0", "0", "100")
        assert data["ok"] is False

    def test_tags(self, box_plan):
        path, _ = box_plan
        data = run_cli("tags", path, "--width", "1000", "--height", "400")
        assert len(data["tags"]) == 1
        tag = data["tags"][0]
        assert (tag["x"], tag["y"]) == (2000, 1500)
        assert tag["fallback"] is False

    def test_validate(self, box_plan):
        path, _ = box_plan
        data = run_cli("validate", path)
        assert data["ok"] is True
        assert data["validation"] == {"errors": 0, "warnings": 0, "details": []}

    def test_missing_plan(self, tmp_path):
        data = run_cli_expect_fail("validate", str(tmp_path / "nope.json"))
        assert data["ok"] is False
        assert "Plan not found" in data["error"]


class TestSetThickness:
    def test_set_thickness_saves(self, box_plan):
        path, ids = box_plan
        data = run_cli("set-thickness", path, ids["East"], "300")
        assert data["total_thickness_mm"] == 300
        assert data["warnings"] == []
        walls = run_cli("walls", path)
        east = next(w for w in walls["walls"] if w["id"] == ids["East"])
        assert east["total_thickness_mm"] == 300
        assert east["uses_type_default"] is False

    def test_out_of_band_warns(self, box_plan):
        path, ids = box_plan
        data = run_cli("set-thickness", path, ids["East"], "1200")
        assert len(data["warnings"]) == 1

    def test_unknown_wall(self, box_plan):
        path, _ = box_plan
        data = run_cli_expect_fail("set-thickness", path, "ghost", "300")
        assert data["ok"] is False


class TestApply:
    def test_partition_and_layers(self, box_plan):
        path, ids = box_plan
        data = run_cli(
            "apply", path,
            json.dumps([
                {"action": "add-wall", "start": [2000, 0], "end": [2000, 3000], "name": "Partition"},
                {"action": "add-layer", "wall": ids["North"], "preset": "insulation", "index": 0},
                {"action": "convert-core", "wall": ids["North"], "material": "cement-block"},
            ]),
        )
        assert data["ok"] is True
        assert data["actions_applied"] == 3
        assert data["results"][1]["warnings"] == []
        assert run_cli("summary", path)["rooms"] == 2

        walls = run_cli("walls", path)
        north = next(w for w in walls["walls"] if w["id"] == ids["North"])
        assert north["total_thickness_mm"] == 274

    def test_layer_edits_roundtrip(self, box_plan):
        """Edit a wall's layers and reset them, verify it tracks its type again."""
        path, ids = box_plan
        run_cli(
            "apply", path,
            json.dumps([
                {"action": "update-layer-thickness", "wall": ids["West"],
                 "layer": "blockwork-200/0", "thickness": 20},
                {"action": "reorder-layer", "wall": ids["West"], "from": 0, "to": 2},
            ]),
        )
        data = run_cli("apply", path, json.dumps({"action": "reset-layers", "wall": ids["West"]}))
        assert data["ok"] is True
        walls = run_cli("walls", path)
        west = next(w for w in walls["walls"] if w["id"] == ids["West"])
        assert west["uses_type_default"] is True

    def test_remove_core_layer_is_a_warning(self, box_plan):
        path, ids = box_plan
        data = run_cli(
            "apply", path,
            json.dumps([{"action": "remove-layer", "wall": ids["South"], "layer": "blockwork-200/1"}]),
        )
        assert data["results"][0]["warnings"] == ["Core layer cannot be removed."]

    def test_update_room(self, box_plan):
        path, _ = box_plan
        room_id = run_cli("rooms", path)["rooms"][0]["id"]
        data = run_cli(
            "apply", path,
            json.dumps([{"action": "update-room", "room": room_id, "name": "Plant Room",
                         "space_type": "Mechanical"}]),
        )
        assert data["results"][0]["name"] == "Plant Room"
        room = run_cli("rooms", path)["rooms"][0]
        assert room["name"] == "Plant Room"
        assert room["space_type"] == "Mechanical"

    def test_update_room_by_name(self, box_plan):
        path, _ = box_plan
        data = run_cli(
            "apply", path,
            json.dumps([{"action": "update-room", "room": "room 1", "name": "Office"}]),
        )
        assert data["results"][0]["name"] == "Office"
        assert run_cli("rooms", path)["rooms"][0]["name"] == "Office"

    def test_failure_does_not_save(self, box_plan):
        path, ids = box_plan
        data = run_cli_expect_fail(
            "apply", path,
            json.dumps([
                {"action": "remove-wall", "wall": ids["North"]},
                {"action": "remove-wall", "wall": "ghost"},
            ]),
        )
        assert data["ok"] is False
        assert data["applied"] == 1
        assert run_cli("summary", path)["walls"] == 4

    def test_unknown_action(self, box_plan):
        path, _ = box_plan
        data = run_cli_expect_fail("apply", path, json.dumps([{"action": "paint-wall"}]))
        assert "Unknown action" in data["error"]

    def test_malformed_action_values(self, box_plan):
        path, ids = box_plan
        for action in (
            {"action": "reorder-layer", "wall": ids["West"], "from": "0", "to": 2},
            {"action": "add-wall", "start": 5, "end": [1000, 0]},
            "remove-wall",
        ):
            data = run_cli_expect_fail("apply", path, json.dumps([action]))
            assert data["ok"] is False
            assert data["applied"] == 0
            assert data["error"].startswith("Action 0 (")
        assert run_cli("summary", path)["walls"] == 4

    def test_invalid_json(self, box_plan):
        path, _ = box_plan
        data = run_cli_expect_fail("apply", path, "{not json")
        assert "Invalid JSON" in data["error"]

    def test_actions_from_file(self, box_plan, tmp_path):
        path, ids = box_plan
        actions = tmp_path / "actions.json"
        actions.write_text(json.dumps([{"action": "set-thickness", "wall": ids["South"], "total": 250}]))
        data = run_cli("apply", path, "--file", str(actions), "--no-validate")
        assert data["ok"] is True
        assert "validation" not in data


class TestVersion:
    def test_version(self):
        result = subprocess.run([*CLI, "version"], capture_output=True, text=True, cwd=str(ROOT))
        assert result.returncode == 0
        assert result.stdout.strip() == "wall-topology v0.1.0"
