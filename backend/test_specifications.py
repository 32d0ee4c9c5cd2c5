"""
Rulebook tests: defaults, override layering and rejection of bad values.
"""

import json
import os
import sys

sys.path.insert(0, os.path.dirname(__file__))

import pytest
from pydantic import ValidationError

from services.constraint_engine import (
    DEFAULT_SPECIFICATIONS,
    SpecificationOverrides,
    merge_specifications,
)
from services.layout_constants import get_rulebook_overrides


def test_defaults():
    print("=" * 60)
    print("TEST: Built-in rulebook defaults")
    print("=" * 60)

    s = DEFAULT_SPECIFICATIONS
    assert s.wall_external == 0.15
    assert s.wall_internal == 0.10
    assert s.min_bedroom_couple_area == 8.0
    assert s.min_bedroom_single_area == 6.0
    assert s.min_bedroom_couple_width == 2.8
    assert s.min_bedroom_single_width == 2.2
    assert s.min_living_area == 10.0
    assert s.min_kitchen_width == 1.8
    assert s.min_bathroom_area == 2.5
    assert s.bathroom_circle_diameter == 0.9
    assert s.door_entrance == 0.8
    assert s.door_room == 0.7
    assert s.door_bath == 0.6
    assert s.window_fraction_lighting == pytest.approx(0.125)
    assert s.window_fraction_vent == pytest.approx(0.0625)
    assert merge_specifications() is DEFAULT_SPECIFICATIONS
    print("  >> PASSED\n")


def test_partial_override():
    print("TEST: Partial override keeps every other default")

    s = merge_specifications({"min_living_area": 12.0, "door_room": None})
    assert s.min_living_area == 12.0
    assert s.door_room == 0.7
    assert s.min_bedroom_single_width == 2.2

    s = merge_specifications(SpecificationOverrides(door_bath=0.65))
    assert s.door_bath == 0.65
    assert s.door_room == 0.7

    # layering onto a non-default base
    base = merge_specifications({"wall_external": 0.2})
    s = merge_specifications({"wall_internal": 0.12}, base=base)
    assert s.wall_external == 0.2
    assert s.wall_internal == 0.12
    print("  >> PASSED\n")


def test_rejects_bad_overrides():
    print("TEST: Unknown fields and non-positive values are rejected")

    with pytest.raises(ValueError):
        merge_specifications({"door_garage": 2.0})
    with pytest.raises(ValueError):
        merge_specifications({"door_bath": 0})
    with pytest.raises(ValueError):
        merge_specifications({"min_living_area": -3})
    with pytest.raises(ValidationError):
        SpecificationOverrides(unknown_rule=1.0)
    print("  >> PASSED\n")


def test_rulebook_is_immutable():
    print("TEST: Rulebook cannot be modified in place")

    with pytest.raises(ValidationError):
        DEFAULT_SPECIFICATIONS.door_room = 0.5
    assert DEFAULT_SPECIFICATIONS.door_room == 0.7
    print("  >> PASSED\n")


def test_overrides_file(tmp_path):
    print("TEST: Deployment overrides file")

    good = tmp_path / "overrides.json"
    good.write_text(json.dumps({"min_kitchen_width": 2.0}))
    assert get_rulebook_overrides(path=str(good)) == {"min_kitchen_width": 2.0}

    bad = tmp_path / "broken.json"
    bad.write_text("{not json")
    assert get_rulebook_overrides(path=str(bad)) == {}

    listing = tmp_path / "list.json"
    listing.write_text("[1, 2]")
    assert get_rulebook_overrides(path=str(listing)) == {}

    assert get_rulebook_overrides(path=str(tmp_path / "missing.json")) == {}
    print("  >> PASSED\n")


if __name__ == "__main__":
    test_defaults()
    test_partial_override()
    test_rejects_bad_overrides()
    test_rulebook_is_immutable()
    print("=" * 60)
    print("ALL TESTS COMPLETE (run under pytest for the overrides file test)")
    print("=" * 60)
