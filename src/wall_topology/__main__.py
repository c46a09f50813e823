"""Wall topology CLI.

Usage:
    python -m wall_topology <command> <plan.json> [options]

Plan modifications go through 'apply' (JSON actions) or 'set-thickness'.
Read-only commands (summary, walls, rooms, visible, tags, validate) print
JSON to stdout.
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import typer

from wall_topology.assembly.layers import (
    get_core_thickness,
    get_finish_thickness,
    get_r_value,
    get_total_thickness,
    get_u_value,
    is_wall_using_type_default,
)
from wall_topology.models.geometry import Bounds
from wall_topology.models.plan import FloorPlan
from wall_topology.models.walls import LayerPreset, WallLayer, layer_from_preset
from wall_topology.scale import wall_thickness_to_px

app = typer.Typer(
    name="wall_topology",
    help="Wall assembly and room topology engine — inspect and edit floor plans.",
    no_args_is_help=True,
)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine debug output to stderr")):
    """Wall assembly and room topology engine."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format="%(name)s: %(message)s")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_plan(plan: str) -> FloorPlan:
    """Load a floor plan JSON file."""
    path = Path(plan)
    if not path.exists():
        _output({"ok": False, "error": f"Plan not found: {path}"})
        raise typer.Exit(1)
    return FloorPlan.load(path)


def _validate_json(floor_plan: FloorPlan) -> dict:
    """Run all validators and return structured results."""
    errors = floor_plan.validate()
    return {
        "errors": sum(1 for e in errors if e.severity == "error"),
        "warnings": sum(1 for e in errors if e.severity == "warning"),
        "details": [
            {
                "severity": e.severity,
                "element_type": e.element_type,
                "element_id": e.element_id,
                "message": e.message,
            }
            for e in errors
        ],
    }


def _room_json(room) -> dict:
    return {
        "id": room.id,
        "name": room.name,
        "room_type": room.room_type.value,
        "space_type": room.space_type,
        "parent": room.parent_room_id,
        "children": list(room.child_room_ids),
        "gross_area_m2": round(room.gross_area, 3),
        "net_area_m2": round(room.net_area, 3),
        "perimeter_m": round(room.perimeter, 3),
        "wall_ids": list(room.wall_ids),
    }


def _output(data: dict) -> None:
    """Print JSON output to stdout."""
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Read-only commands
# ---------------------------------------------------------------------------

@app.command()
def summary(plan: str = typer.Argument(..., help="Path to plan JSON")):
    """Counts and total areas."""
    floor_plan = _load_plan(plan)
    _output({
        "ok": True,
        "plan": floor_plan.name,
        "walls": len(floor_plan.walls),
        "rooms": len(floor_plan.rooms),
        "nested_rooms": sum(1 for r in floor_plan.rooms if r.is_nested),
        "total_area_m2": round(floor_plan.total_area(), 3),
        "custom_wall_types": len(floor_plan.custom_wall_types),
    })


@app.command()
def walls(plan: str = typer.Argument(..., help="Path to plan JSON")):
    """Per-wall thickness and thermal properties."""
    floor_plan = _load_plan(plan)
    registry = floor_plan.registry
    settings = floor_plan.settings
    rows = []
    for w in floor_plan.walls:
        rows.append({
            "id": w.id,
            "name": w.name,
            "wall_type": registry.get(w.wall_type_id).id,
            "length_mm": round(w.length, 1),
            "total_thickness_mm": round(get_total_thickness(w, registry), 3),
            "core_thickness_mm": round(get_core_thickness(w, registry), 3),
            "finish_thickness_mm": round(get_finish_thickness(w, registry), 3),
            "r_value": round(get_r_value(w, registry, settings), 4),
            "u_value": round(get_u_value(w, registry, settings), 4),
            "uses_type_default": is_wall_using_type_default(w, registry),
            "stroke_px": round(wall_thickness_to_px(get_total_thickness(w, registry)), 2),
        })
    _output({"ok": True, "walls": rows})


@app.command()
def rooms(
    plan: str = typer.Argument(..., help="Path to plan JSON"),
    save: bool = typer.Option(False, "--save", help="Write re-detected rooms back to the plan"),
):
    """Re-detect rooms from walls and print the hierarchy."""
    floor_plan = _load_plan(plan)
    floor_plan.detect_rooms()
    if save:
        floor_plan.save(plan)
    _output({
        "ok": True,
        "rooms": [_room_json(r) for r in floor_plan.rooms],
        "validation": _validate_json(floor_plan),
    })


@app.command()
def visible(
    plan: str = typer.Argument(..., help="Path to plan JSON"),
    left: float = typer.Argument(...),
    top: float = typer.Argument(...),
    right: float = typer.Argument(...),
    bottom: float = typer.Argument(...),
):
    """Wall and room ids whose boxes intersect a viewport."""
    floor_plan = _load_plan(plan)
    if left > right or top > bottom:
        _output({"ok": False, "error": "Viewport must have left <= right and top <= bottom"})
        raise typer.Exit(1)
    index = floor_plan.spatial_index()
    viewport = Bounds(left=left, top=top, right=right, bottom=bottom)
    _output({
        "ok": True,
        "walls": [w.id for w in index.query_walls_in_bounds(viewport)],
        "rooms": [r.id for r in index.query_rooms_in_bounds(viewport)],
    })


@app.command()
def tags(
    plan: str = typer.Argument(..., help="Path to plan JSON"),
    width: float = typer.Option(1200.0, "--width", help="Tag width (mm)"),
    height: float = typer.Option(600.0, "--height", help="Tag height (mm)"),
):
    """Tag anchors for all rooms that show a tag."""
    floor_plan = _load_plan(plan)
    placements = floor_plan.place_tags(width, height)
    _output({
        "ok": True,
        "tags": [
            {
                "room_id": p.room_id,
                "x": round(p.anchor.x, 2),
                "y": round(p.anchor.y, 2),
                "fallback": p.is_fallback,
            }
            for p in placements
        ],
    })


@app.command()
def validate(plan: str = typer.Argument(..., help="Path to plan JSON")):
    """Run all validators on a plan."""
    floor_plan = _load_plan(plan)
    _output({"ok": True, "validation": _validate_json(floor_plan)})


# ---------------------------------------------------------------------------
# Modifications
# ---------------------------------------------------------------------------

@app.command("set-thickness")
def set_thickness(
    plan: str = typer.Argument(..., help="Path to plan JSON"),
    wall_id: str = typer.Argument(..., help="Wall id"),
    total: float = typer.Argument(..., help="New total thickness (mm)"),
):
    """Resize a wall's section and save the plan."""
    floor_plan = _load_plan(plan)
    if floor_plan.get_wall(wall_id) is None:
        _output({"ok": False, "error": f"Wall '{wall_id}' not found"})
        raise typer.Exit(1)
    warnings = floor_plan.set_wall_total_thickness(wall_id, total)
    floor_plan.save(plan)
    wall = floor_plan.get_wall(wall_id)
    _output({
        "ok": True,
        "wall": wall_id,
        "total_thickness_mm": round(get_total_thickness(wall, floor_plan.registry), 3),
        "warnings": warnings,
    })


def _layer_from_action(action: dict) -> WallLayer:
    if "preset" in action:
        return layer_from_preset(LayerPreset(action["preset"]))
    return WallLayer(
        name=action["name"],
        material=action["material"],
        thickness=action["thickness"],
        is_core=action.get("is_core", False),
    )


def _dispatch_action(floor_plan: FloorPlan, action: dict) -> dict:
    """Dispatch a single action to the FloorPlan API. Returns result dict."""
    if not isinstance(action, dict):
        return {"action": None, "error": f"Action must be a JSON object, got {action!r}"}
    cmd = action.get("action")

    try:
        if cmd == "add-wall":
            wall = floor_plan.add_wall(
                start=tuple(action["start"]),
                end=tuple(action["end"]),
                wall_type_id=action.get("wall_type"),
                height=action.get("height"),
                name=action.get("name", ""),
            )
            return {"action": cmd, "id": wall.id, "name": wall.name}

        elif cmd == "remove-wall":
            floor_plan.remove_wall(action["wall"])
            return {"action": cmd, "wall": action["wall"]}

        elif cmd == "move-wall":
            new_start = tuple(action["start"]) if "start" in action else None
            new_end = tuple(action["end"]) if "end" in action else None
            wall = floor_plan.move_wall(action["wall"], new_start, new_end)
            return {"action": cmd, "wall": wall.id}

        elif cmd == "set-thickness":
            warnings = floor_plan.set_wall_total_thickness(action["wall"], action["total"])
            return {"action": cmd, "wall": action["wall"], "warnings": warnings}

        elif cmd == "add-layer":
            warnings = floor_plan.add_wall_layer(
                action["wall"], _layer_from_action(action), action.get("index", 0)
            )
            return {"action": cmd, "wall": action["wall"], "warnings": warnings}

        elif cmd == "remove-layer":
            warnings = floor_plan.remove_wall_layer(action["wall"], action["layer"])
            return {"action": cmd, "wall": action["wall"], "warnings": warnings}

        elif cmd == "reorder-layer":
            warnings = floor_plan.reorder_wall_layer(action["wall"], action["from"], action["to"])
            return {"action": cmd, "wall": action["wall"], "warnings": warnings}

        elif cmd == "update-layer-thickness":
            warnings = floor_plan.update_wall_layer_thickness(
                action["wall"], action["layer"], action["thickness"]
            )
            return {"action": cmd, "wall": action["wall"], "warnings": warnings}

        elif cmd == "convert-core":
            warnings = floor_plan.convert_wall_core_material(action["wall"], action["material"])
            return {"action": cmd, "wall": action["wall"], "warnings": warnings}

        elif cmd == "reset-layers":
            warnings = floor_plan.reset_wall_layer_overrides(action["wall"])
            return {"action": cmd, "wall": action["wall"], "warnings": warnings}

        elif cmd == "update-room":
            changes = {k: v for k, v in action.items() if k not in ("action", "room")}
            # Rooms can be addressed by id or by name
            ref = action["room"]
            target = floor_plan.get_room(ref) or floor_plan.get_room_by_name(ref)
            room = floor_plan.update_room(target.id if target else ref, **changes)
            return {"action": cmd, "room": room.id, "name": room.name}

        else:
            return {"action": cmd, "error": f"Unknown action: {cmd}"}

    except Exception as e:
        return {"action": cmd, "error": str(e)}


@app.command()
def apply(
    plan: str = typer.Argument(..., help="Path to plan JSON"),
    actions_json: Optional[str] = typer.Argument(None, help="JSON array of actions"),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Read actions from JSON file"),
    stdin: bool = typer.Option(False, "--stdin", help="Read actions from stdin"),
    no_validate: bool = typer.Option(False, "--no-validate", help="Skip validation after apply"),
):
    """Apply modifications to a plan via JSON actions."""
    if stdin:
        raw = sys.stdin.read()
    elif file:
        raw = Path(file).read_text()
    elif actions_json:
        raw = actions_json
    else:
        _output({"ok": False, "error": "Provide actions as argument, --file, or --stdin"})
        raise typer.Exit(1)

    try:
        actions = json.loads(raw)
    except json.JSONDecodeError as e:
        _output({"ok": False, "error": f"Invalid JSON: {e}"})
        raise typer.Exit(1)

    if not isinstance(actions, list):
        actions = [actions]  # allow single action without wrapping in array

    floor_plan = _load_plan(plan)

    results = []
    for i, action in enumerate(actions):
        result = _dispatch_action(floor_plan, action)
        results.append(result)
        if "error" in result:
            # Stop on first error; nothing is saved
            _output({
                "ok": False,
                "error": f"Action {i} ({result['action'] or '?'}) failed: {result['error']}",
                "applied": i,
                "results": results,
            })
            raise typer.Exit(1)

    floor_plan.save(plan)

    output: dict = {
        "ok": True,
        "actions_applied": len(results),
        "results": results,
    }
    if not no_validate:
        output["validation"] = _validate_json(floor_plan)
    _output(output)


@app.command()
def new(
    plan: str = typer.Argument(..., help="Path to create"),
    name: str = typer.Option("Untitled Plan", "--name", "-n", help="Plan name"),
):
    """Create an empty plan file."""
    path = Path(plan)
    if path.exists():
        _output({"ok": False, "error": f"Plan already exists: {path}"})
        raise typer.Exit(1)
    floor_plan = FloorPlan(name=name)
    floor_plan.save(path)
    _output({"ok": True, "plan": str(path), "id": floor_plan.id})


@app.command()
def version() -> None:
    """Show version."""
    from wall_topology import __version__

    typer.echo(f"wall-topology v{__version__}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
