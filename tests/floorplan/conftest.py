"""Pytest configuration for floor-plan adapter tests.

This conftest is for tests/floorplan/ directory only. The fixtures under
tests/fixtures/ are generated by scripts/gen_fixtures.py.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.conftest_utils import get_fixtures_dir

__all__ = ["get_fixtures_dir", "fixtures_dir"]


@pytest.fixture
def fixtures_dir() -> Path:
    """Directory holding the JSON floor-plan fixtures."""
    return get_fixtures_dir()
