"""Coverage Bounded Context - Value Objects.

Immutable data structures describing how a region is discretised into
coverage samples.
"""

from __future__ import annotations

import math
from enum import Enum

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field, model_validator


class Lattice(str, Enum):
    """Layout of a point lattice.

    GRID is a plain square lattice. HEX staggers every other row by half a
    cell and packs rows at cell * sqrt(3) / 2.
    """

    GRID = "grid"
    HEX = "hex"


class SampleGrid(BaseModel):
    """Interior coverage samples of one region (Value Object).

    The points array is the ground truth for "percent covered": every sample
    lies inside the region and outside every exclusion. It is made read-only
    at construction time, like the elevation array of a raster grid.
    """

    points: NDArray[np.float64]  # (n, 2) array of sample coordinates
    cell_size: float = Field(gt=0)
    lattice: Lattice = Lattice.GRID

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def validate_points(self) -> "SampleGrid":
        if self.points.ndim != 2 or self.points.shape[1] != 2:
            raise ValueError(f"Sample points must be (n, 2), got {self.points.shape}")
        if not np.isfinite(self.points).all():
            raise ValueError("Sample points must be finite")

        # Own a contiguous float64 copy so callers' arrays are never frozen
        immutable = np.array(self.points, dtype=np.float64, copy=True, order="C")
        immutable.flags.writeable = False
        object.__setattr__(self, "points", immutable)
        return self

    @property
    def size(self) -> int:
        return int(self.points.shape[0])

    @property
    def cell_area(self) -> float:
        """Area one sample stands for (HEX rows are sqrt(3)/2 cells apart)."""
        if self.lattice == Lattice.HEX:
            return self.cell_size * self.cell_size * math.sqrt(3.0) / 2.0
        return self.cell_size * self.cell_size

    def sampled_area(self) -> float:
        """Region area net of exclusions, as seen by the samples."""
        return self.size * self.cell_area

    def is_empty(self) -> bool:
        return self.size == 0
