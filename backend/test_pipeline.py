"""
End-to-end tests for enforce_constraints: output guarantees, diagnostics,
determinism and input validation.
"""

import copy
import json
import os
import sys

sys.path.insert(0, os.path.dirname(__file__))

import pytest

from services.constraint_engine import (
    PASSES,
    BuildingParameters,
    LayoutInputError,
    Occupancy,
    PassContext,
    RoomType,
    enforce_constraints,
    merge_specifications,
    run_passes,
)
from services.constraint_engine.rules import bedroom_minimums, door_minimum, meets_daylight
from services.room_program import HouseProgram, generate_room_program, to_building_parameters

BUILDING = {"lot_width": 12.0, "lot_depth": 20.0, "bedrooms": 2}


def _layout():
    """A deliberately non-compliant starting layout."""
    return [
        {"id": "living", "name": "Living", "type": "living", "width": 3.0, "height": 2.5,
         "x": 0, "y": 0, "doors": [{"width": 0.7, "entrance": True}]},
        {"id": "kitchen", "name": "Kitchen", "type": "kitchen", "width": 1.5, "height": 2.0,
         "x": 9, "y": 9, "doors": [{"width": 0.8}]},
        {"id": "bed-2", "name": "Bedroom 2", "type": "bedroom", "width": 2.0, "height": 3.0,
         "x": 3, "y": 0, "doors": [{}]},
        {"id": "master", "name": "Master Suite", "type": "bedroom", "width": 2.5, "height": 2.5,
         "x": 5, "y": 3, "doors": [{"width": 0.8}], "windows": [{"width": 1.0, "height": 1.2}]},
        {"id": "bath", "name": "Bathroom", "type": "bathroom", "width": 0.8, "height": 0.8,
         "x": 7, "y": 0, "doors": [{"width": 0.5}]},
        {"id": "service", "name": "Service", "type": "service", "width": 1.5, "height": 1.5,
         "x": 8, "y": 4},
        {"id": "balcony", "name": "Balcony", "type": "balcony", "width": 3.0, "height": 1.2,
         "x": 0, "y": 12},
    ]


def _on_grid(value, grid=0.01):
    steps = value / grid
    return abs(steps - round(steps)) < 1e-6


def _print_result(result):
    print(f"\n  {'Room':<14} {'X':>6} {'Y':>6} {'W':>6} {'H':>6} {'Area':>7}")
    print(f"  {'-'*14} {'-'*6} {'-'*6} {'-'*6} {'-'*6} {'-'*7}")
    for r in result.rooms:
        print(f"  {r.name:<14} {r.x:>6.2f} {r.y:>6.2f} {r.width:>6.2f} {r.height:>6.2f} {r.area:>7.2f}")
    for w in result.warnings:
        print(f"    - {w}")


def test_output_guarantees():
    print("=" * 60)
    print("TEST: Adjusted layout satisfies the rulebook")
    print("=" * 60)

    result = enforce_constraints(_layout(), BUILDING)
    _print_result(result)
    specs = merge_specifications()

    assert len(result.rooms) == 7
    assert [r.id for r in result.rooms] == [r["id"] for r in _layout()]
    for r in result.rooms:
        assert r.x >= 0.1 and r.y >= 0.1
        assert r.width >= 0.5 and r.height >= 0.5
        for v in (r.x, r.y, r.width, r.height):
            assert _on_grid(v), f"{r.id}: {v} is off the 0.01 m grid"
        assert r.wall_thickness is not None
        for door in r.doors:
            assert door.width >= door_minimum(r, door, specs)

        if r.room_type == RoomType.BEDROOM:
            min_area, min_width = bedroom_minimums(r.occupancy, specs)
            assert r.width >= min_width - 1e-9
            assert r.area >= min_area - 1e-9
            assert max(r.width, r.height) >= specs.min_bedroom_free_wall
        if r.room_type == RoomType.BATHROOM:
            assert r.width >= 0.9 and r.height >= 0.9
            assert r.area >= specs.min_bathroom_area - 1e-9
        if r.room_type == RoomType.LIVING:
            assert r.area >= specs.min_living_area - 1e-9
        if r.room_type == RoomType.KITCHEN:
            assert r.width >= specs.min_kitchen_width
        assert meets_daylight(r, specs), f"{r.id}: {r.window_area:.3f} m² of glazing"

    rooms = {r.id: r for r in result.rooms}
    assert rooms["master"].occupancy == Occupancy.DOUBLE
    assert rooms["bed-2"].occupancy == Occupancy.SINGLE
    assert result.conflicts is None
    print("\n  >> PASSED\n")


def test_warning_order_follows_passes():
    result = enforce_constraints(_layout(), BUILDING)
    w = result.warnings
    zoning = w.index("Applied logical zoning (social / service / private).")
    wet = w.index("Grouped wet areas to simplify plumbing runs.")
    assert w[-1] == "Aligned walls to a simplified structural grid."
    assert w.index('Adjusted "Bedroom 2" to minimum dimensions (2.2x3 m).') < zoning
    assert w.index('Door 1 in "Bathroom" adjusted to 0.60 m.') < zoning
    assert w.index('Kitchen "Kitchen" relocated next to the social area.') < wet


def test_deterministic():
    a = enforce_constraints(_layout(), BUILDING)
    b = enforce_constraints(_layout(), BUILDING)
    assert json.dumps(a.to_dict(), sort_keys=True) == json.dumps(b.to_dict(), sort_keys=True)


def test_inputs_untouched():
    raw = _layout()
    snapshot = copy.deepcopy(raw)
    enforce_constraints(raw, BUILDING)
    assert raw == snapshot

    first = enforce_constraints(_layout(), BUILDING)
    before = [r.model_dump() for r in first.rooms]
    enforce_constraints(first.rooms, BuildingParameters(**BUILDING))
    assert [r.model_dump() for r in first.rooms] == before


def test_conflicts_mirrored_into_warnings():
    print("TEST: Unsatisfiable rules become conflicts")
    result = enforce_constraints(_layout(), BUILDING, overrides={"bathroom_circle_diameter": 7.0})

    print(f"  conflicts: {result.conflicts}")
    assert result.conflicts is not None
    assert len(result.conflicts) == 1
    assert '"Bathroom"' in result.conflicts[0]
    mirrored = [w for w in result.warnings if w.startswith("CONFLICT: ")]
    assert mirrored == [f"CONFLICT: {c}" for c in result.conflicts]
    assert result.warnings[-1] == mirrored[-1]


def test_free_wall_conflict():
    result = enforce_constraints(_layout(), BUILDING, overrides={"min_bedroom_free_wall": 9.0})
    assert result.conflicts is not None
    assert len(result.conflicts) == 2
    assert all("free wall" in c for c in result.conflicts)


def test_rejects_invalid_input():
    bad_width = _layout()
    bad_width[0]["width"] = 0
    with pytest.raises(LayoutInputError):
        enforce_constraints(bad_width, BUILDING)

    bad_height = _layout()
    bad_height[2]["height"] = -1.5
    with pytest.raises(LayoutInputError):
        enforce_constraints(bad_height, BUILDING)

    dup = _layout()
    dup[1]["id"] = "living"
    with pytest.raises(LayoutInputError):
        enforce_constraints(dup, BUILDING)

    with pytest.raises(LayoutInputError):
        enforce_constraints(_layout(), {"lot_width": -1, "lot_depth": 20, "bedrooms": 2})

    with pytest.raises(LayoutInputError):
        enforce_constraints(_layout(), BUILDING, overrides={"door_garage": 1.0})


def test_empty_layout():
    result = enforce_constraints([], BUILDING)
    assert result.rooms == []
    assert result.conflicts is None


def test_sizing_passes_are_idempotent():
    """The engine's own output is a fixed point of the sizing rules."""
    ctx = PassContext(merge_specifications(), BuildingParameters(**BUILDING))
    sizing = [p for p in PASSES if p[0] in (
        "min_dimensions", "doors", "windows", "bathroom_clearance", "bedroom_free_wall",
    )]
    result = enforce_constraints(_layout(), BUILDING)

    again, warnings, conflicts = run_passes(result.rooms, ctx, sizing)
    assert warnings == []
    assert conflicts == []
    assert [r.model_dump() for r in again] == [r.model_dump() for r in result.rooms]


def _sizing_warnings(warnings):
    return [
        w for w in warnings
        if w.startswith("Adjusted ") or w.startswith("Door ") or w.startswith("Added window")
        or "minimum area" in w or "width adjusted" in w
    ]


def test_second_run_adds_no_sizing_fixes():
    first = enforce_constraints(_layout(), BUILDING)
    second = enforce_constraints(first.rooms, BUILDING)
    assert _sizing_warnings(second.warnings) == []
    assert second.conflicts is None


def test_second_run_on_generated_program():
    print("TEST: Second run over a generated house adds no windows")
    program = HouseProgram()
    building = to_building_parameters(program)
    first = enforce_constraints(generate_room_program(program), building)
    assert first.conflicts is None

    specs = merge_specifications()
    for r in first.rooms:
        assert meets_daylight(r, specs), f"{r.name}: {r.window_area:.3f} m² of glazing"

    second = enforce_constraints(first.rooms, building)
    for w in _sizing_warnings(second.warnings):
        print(f"    - {w}")
    assert _sizing_warnings(second.warnings) == []


def test_unlit_room_is_a_conflict():
    result = enforce_constraints(
        [{"id": "hall", "name": "Hall", "type": "living", "width": 6, "height": 7}],
        BUILDING,
    )
    assert result.conflicts is not None
    assert any("daylight" in c and '"Hall"' in c for c in result.conflicts)
    assert result.rooms[0].window_area < result.rooms[0].area / 8


if __name__ == "__main__":
    test_output_guarantees()
    test_warning_order_follows_passes()
    test_deterministic()
    test_inputs_untouched()
    test_conflicts_mirrored_into_warnings()
    test_free_wall_conflict()
    test_rejects_invalid_input()
    test_empty_layout()
    test_sizing_passes_are_idempotent()
    test_second_run_adds_no_sizing_fixes()
    test_second_run_on_generated_program()
    test_unlit_room_is_a_conflict()
    print("=" * 60)
    print("ALL TESTS COMPLETE")
    print("=" * 60)
