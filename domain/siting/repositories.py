"""Domain Port(s) for Floor Plan I/O.

Defines interfaces (Protocols) that infrastructure adapters must implement.
No concrete I/O here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from .value_objects import FloorPlan


class FloorPlanRepository(Protocol):
    """Port for obtaining floor plans from external sources.

    Implementations live in infrastructure (e.g., JSON adapter).
    """

    def load_floor_plan(self, file_path: Path | str) -> FloorPlan:
        """Load a floor plan with its coverage areas and exclusions."""
        ...
