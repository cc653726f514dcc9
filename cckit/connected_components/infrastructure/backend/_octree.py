"""Octree over a point cloud's cubical bounding box."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Optional

import numpy as np

MAX_OCTREE_LEVEL: Final[int] = 21


@dataclass(frozen=True, eq=False)
class Octree:
    """Cell coordinates of every indexed point at the finest level.

    Coordinates at a coarser level L are the finest ones shifted right by
    (MAX_OCTREE_LEVEL - L), so one build serves every level. Points with
    non-finite coordinates are not indexed.
    """

    bbox_min: np.ndarray
    box_size: float
    point_indices: np.ndarray
    finest_coords: np.ndarray
    point_count: int

    def cell_size(self, level: int) -> float:
        return self.box_size / float(1 << level)

    def cell_coordinates(self, level: int) -> np.ndarray:
        """(M, 3) integer cell coordinates of the indexed points at `level`."""
        _check_level(level)
        return self.finest_coords >> (MAX_OCTREE_LEVEL - level)

    def cell_codes(self, level: int) -> np.ndarray:
        return pack_cell_coordinates(self.cell_coordinates(level), level)

    def occupied_cell_count(self, level: int) -> int:
        return int(np.unique(self.cell_codes(level)).size)


def _check_level(level: int) -> None:
    if not 0 <= level <= MAX_OCTREE_LEVEL:
        raise ValueError(f"octree level must be in [0, {MAX_OCTREE_LEVEL}], got {level}")


def pack_cell_coordinates(coords: np.ndarray, level: int) -> np.ndarray:
    """Pack (x, y, z) cell coordinates into one int64 key per cell.

    Each axis uses `level` bits, so keys sort in (x, y, z) order.
    """
    coords = np.asarray(coords, dtype=np.int64)
    return (coords[:, 0] << (2 * level)) | (coords[:, 1] << level) | coords[:, 2]


def build_octree(points: np.ndarray) -> Optional[Octree]:
    """Build an octree on `points`; None when there is no finite point."""
    points = np.asarray(points, dtype=np.float64)
    if points.ndim != 2 or points.shape[0] == 0:
        return None

    finite = np.all(np.isfinite(points), axis=1)
    indices = np.flatnonzero(finite)
    if indices.size == 0:
        return None
    pts = points[indices]

    mn = pts.min(axis=0)
    mx = pts.max(axis=0)
    box_size = float(np.max(mx - mn))
    if box_size <= 0.0:
        box_size = 1.0
    # cubical box centred on the bounding box
    bbox_min = (mn + mx) / 2.0 - box_size / 2.0

    n_cells = 1 << MAX_OCTREE_LEVEL
    coords = np.floor((pts - bbox_min) / box_size * n_cells).astype(np.int64)
    np.clip(coords, 0, n_cells - 1, out=coords)

    return Octree(
        bbox_min=bbox_min,
        box_size=box_size,
        point_indices=indices.astype(np.int64),
        finest_coords=coords,
        point_count=int(points.shape[0]),
    )
