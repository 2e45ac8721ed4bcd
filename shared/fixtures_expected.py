"""Single source of truth for expected floor-plan test fixtures.

This module defines the list of expected fixture filenames used by both:
- scripts/gen_fixtures.py (generation verification)
- tests/floorplan/test_floorplan_fixtures.py (existence verification)

Location: shared/ (not tests/) to avoid scripts->tests dependency.

When adding/removing fixtures, update ONLY this list.
"""

from __future__ import annotations

# Sorted alphabetically for deterministic comparison.
EXPECTED_FIXTURES: list[str] = sorted(
    [
        "empty.json",  # Empty file rejection
        "floor_corridor.json",  # 100x8 corridor, centreline placement
        "floor_degenerate_area.json",  # Two-vertex area next to a valid triangle
        "floor_malformed.json",  # Truncated JSON
        "floor_missing_areas.json",  # Valid JSON, fails document validation
        "floor_square.json",  # 40x40 room, no exclusions
        "floor_square_exclusion.json",  # 40x40 room, centred 10x10 exclusion
        "floor_two_rooms.json",  # Two rooms, {x, y} points, scaled
        "plan.txt",  # Non-JSON extension rejection
    ]
)

# Count derived from list for verification
EXPECTED_FIXTURE_COUNT: int = len(EXPECTED_FIXTURES)
