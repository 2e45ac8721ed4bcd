#!/usr/bin/env python3
"""Generate JSON floor-plan fixtures for placement testing.

This script creates all floor-plan documents used by the adapter and
integration tests. Fixtures are minimal synthetic rooms, not real plans.

Usage:
    python scripts/gen_fixtures.py

Output:
    tests/fixtures/*.json (and .txt)

Dependencies:
    This script imports from shared/fixtures_expected.py (not tests/) to avoid
    circular dependencies between scripts and tests packages.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from shared.fixtures_expected import EXPECTED_FIXTURE_COUNT, EXPECTED_FIXTURES

# Output directory
FIXTURES_DIR = Path(__file__).parent.parent / "tests" / "fixtures"

# =============================================================================
# Standard Geometry
# =============================================================================
# Rooms are axis-aligned rectangles in plan units. Tests use radius 10 with
# these rooms so buffers (6 units) and corridor widths (12 units) line up.
SQUARE_40 = [[0, 0], [40, 0], [40, 40], [0, 40]]
CENTRE_10 = [[15, 15], [25, 15], [25, 25], [15, 25]]
CORRIDOR_100x8 = [[0, 0], [100, 0], [100, 8], [0, 8]]


def ensure_dir() -> None:
    """Ensure fixtures directory exists."""
    FIXTURES_DIR.mkdir(parents=True, exist_ok=True)
    print(f"Output directory: {FIXTURES_DIR}")


def write_document(name: str, document: dict[str, Any]) -> None:
    """Write a floor-plan document with stable formatting."""
    path = FIXTURES_DIR / name
    path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
    print(f"  Created: {path.name}")


def as_objects(ring: list[list[float]]) -> list[dict[str, float]]:
    return [{"x": x, "y": y} for x, y in ring]


# =============================================================================
# Valid documents
# =============================================================================
def gen_floor_square() -> None:
    write_document(
        "floor_square.json",
        {"name": "Square room", "meters_per_unit": 1.0, "areas": [SQUARE_40]},
    )


def gen_floor_square_exclusion() -> None:
    write_document(
        "floor_square_exclusion.json",
        {
            "name": "Square room with column",
            "meters_per_unit": 1.0,
            "areas": [SQUARE_40],
            "exclusions": [CENTRE_10],
        },
    )


def gen_floor_corridor() -> None:
    write_document(
        "floor_corridor.json",
        {"name": "Corridor", "areas": [CORRIDOR_100x8]},
    )


def gen_floor_two_rooms() -> None:
    """Two rooms drawn in pixels at 0.05 m/px, points as {x, y} objects."""
    room_b = [[60, 0], [90, 0], [90, 20], [60, 20]]
    write_document(
        "floor_two_rooms.json",
        {
            "name": "Two rooms",
            "meters_per_unit": 0.05,
            "areas": [as_objects(SQUARE_40), as_objects(room_b)],
            "exclusions": [as_objects(CENTRE_10)],
        },
    )


def gen_floor_degenerate_area() -> None:
    write_document(
        "floor_degenerate_area.json",
        {
            "name": "Degenerate",
            "areas": [[[0, 0], [10, 0]], [[0, 0], [30, 0], [0, 30]]],
        },
    )


# =============================================================================
# Invalid documents
# =============================================================================
def gen_floor_missing_areas() -> None:
    write_document("floor_missing_areas.json", {"name": "No areas", "exclusions": []})


def gen_floor_malformed() -> None:
    path = FIXTURES_DIR / "floor_malformed.json"
    path.write_text('{"name": "Broken", "areas": [[[0, 0], [10, 0]', encoding="utf-8")
    print(f"  Created: {path.name} (truncated JSON)")


def gen_empty_json() -> None:
    path = FIXTURES_DIR / "empty.json"
    path.write_bytes(b"")
    print(f"  Created: {path.name} (0 bytes)")


def gen_plan_txt() -> None:
    path = FIXTURES_DIR / "plan.txt"
    path.write_text("areas: 0,0 40,0 40,40 0,40\n", encoding="utf-8")
    print(f"  Created: {path.name} (wrong extension)")


def main() -> int:
    """Generate all fixtures.

    Returns:
        0 on success, 1 on failure
    """
    print("=" * 60)
    print("Generating Floor Plan Test Fixtures")
    print("=" * 60)

    try:
        ensure_dir()
    except OSError as e:
        print(f"ERROR: Cannot create fixtures directory: {e}")
        return 1
    print()

    print("Valid documents")
    gen_floor_square()
    gen_floor_square_exclusion()
    gen_floor_corridor()
    gen_floor_two_rooms()
    gen_floor_degenerate_area()

    print("\nInvalid documents")
    gen_floor_missing_areas()
    gen_floor_malformed()
    gen_empty_json()
    gen_plan_txt()

    # Verify generated fixtures match expected list exactly
    allowed_suffixes = {".json", ".txt"}
    found_set = {
        f.name
        for f in FIXTURES_DIR.iterdir()
        if f.is_file() and f.suffix.lower() in allowed_suffixes
    }
    expected_set = set(EXPECTED_FIXTURES)

    if found_set != expected_set:
        print("ERROR: Fixture filenames do not match expected list!")
        missing = expected_set - found_set
        extra = found_set - expected_set
        if missing:
            print(f"  Missing (expected but not generated): {sorted(missing)}")
        if extra:
            print(f"  Extra (generated but not expected): {sorted(extra)}")
        print("\nUpdate shared/fixtures_expected.py to match generated fixtures.")
        return 1

    print()
    print("=" * 60)
    print(f"Done! Generated {EXPECTED_FIXTURE_COUNT} fixtures in {FIXTURES_DIR}")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
