"""Point-cloud entities handled by connected-component extraction.

`Entity` is a closed sum type over the kinds of objects a caller may hand to
the extraction: committed point clouds, opaque (points-only) clouds, meshes
and anything else. Dispatch on it with an exhaustive `match`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np


# ---------------------------------------------------------------------------
# Scalar Field
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class ScalarField:
    """Named per-point float array attached to a cloud."""

    name: str
    values: np.ndarray
    min_value: float = float("nan")
    max_value: float = float("nan")

    def __len__(self) -> int:
        return int(self.values.shape[0])

    def compute_min_and_max(self) -> Tuple[float, float]:
        """Refresh (min, max) over finite values; NaN when there is none."""
        finite = self.values[np.isfinite(self.values)]
        if finite.size == 0:
            self.min_value = self.max_value = float("nan")
        else:
            self.min_value = float(finite.min())
            self.max_value = float(finite.max())
        return self.min_value, self.max_value

    def fill(self, value: float) -> None:
        self.values.fill(value)


# ---------------------------------------------------------------------------
# Committed Point Cloud
# ---------------------------------------------------------------------------


def _as_points(array: Any) -> np.ndarray:
    pts = np.asarray(array)
    if pts.size == 0:
        return np.empty((0, 3), dtype=np.float64)
    if pts.ndim != 2 or pts.shape[1] != 3:
        raise ValueError("points must have shape (N, 3)")
    return np.ascontiguousarray(pts, dtype=np.float64)


@dataclass(eq=False)
class PointCloud:
    """A committed point cloud.

    Holds N positions plus optional RGBA colors, normals and named scalar
    fields, and the global shift/scale applied when the cloud was loaded.
    The spatial index built on it is cached in `octree`.
    """

    name: str = "Cloud"
    points: np.ndarray = field(default_factory=lambda: np.empty((0, 3), dtype=np.float64))
    colors: Optional[np.ndarray] = None
    normals: Optional[np.ndarray] = None
    global_shift: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    global_scale: float = 1.0
    octree: Optional[Any] = field(default=None, repr=False)
    _scalar_fields: List[ScalarField] = field(default_factory=list, init=False, repr=False)
    _current_sf_index: int = field(default=-1, init=False, repr=False)

    def __post_init__(self) -> None:
        self.points = _as_points(self.points)
        n = self.points.shape[0]
        if self.colors is not None:
            self.colors = np.ascontiguousarray(self.colors, dtype=np.uint8)
            if self.colors.shape != (n, 4):
                raise ValueError("colors must have shape (N, 4)")
        if self.normals is not None:
            self.normals = np.ascontiguousarray(self.normals, dtype=np.float64)
            if self.normals.shape != (n, 3):
                raise ValueError("normals must have shape (N, 3)")
        self.global_shift = tuple(float(v) for v in self.global_shift)
        self.global_scale = float(self.global_scale)

    def __len__(self) -> int:
        return self.size()

    def size(self) -> int:
        return int(self.points.shape[0])

    def has_colors(self) -> bool:
        return self.colors is not None

    def has_normals(self) -> bool:
        return self.normals is not None

    # -------------------------------------------------------------------------
    # Coordinates / colors (copy in, copy out)
    # -------------------------------------------------------------------------

    def to_array(self) -> np.ndarray:
        """Return a copy of the coordinates as an (N, 3) array."""
        return self.points.copy()

    def coords_from_array(self, array: np.ndarray) -> None:
        """Replace the coordinates with a copy of `array`.

        The cached octree is dropped. When the point count changes, colors,
        normals and scalar fields no longer match and are dropped too.
        """
        array = np.asarray(array)
        if not np.issubdtype(array.dtype, np.floating):
            raise TypeError("Incorrect array data type")
        if array.ndim != 2:
            raise TypeError("Incorrect array dimension")
        if array.shape[1] != 3:
            raise TypeError("Incorrect array, 3 coordinates required")

        if array.shape[0] != self.size():
            if self.colors is not None or self.normals is not None or self._scalar_fields:
                logging.warning(
                    "Cloud %s resized from %d to %d points; dropping per-point attributes",
                    self.name, self.size(), array.shape[0],
                )
            self.colors = None
            self.normals = None
            self.delete_all_scalar_fields()
        self.points = np.array(array, dtype=np.float64, copy=True)
        self.octree = None

    def colors_to_array(self) -> np.ndarray:
        """Return a copy of the RGBA colors as an (N, 4) uint8 array."""
        if self.colors is None:
            raise RuntimeError("this point cloud has no color table!")
        return self.colors.copy()

    def colors_from_array(self, array: np.ndarray) -> None:
        array = np.asarray(array)
        if array.dtype != np.uint8:
            raise TypeError("Incorrect array data type")
        if array.ndim != 2:
            raise TypeError("Incorrect array dimension")
        if array.shape[1] != 4:
            raise TypeError("Incorrect array, 4 components required")
        if array.shape[0] != self.size():
            raise ValueError("the color array has not the same size as this cloud")
        self.colors = array.copy()

    def set_color(self, color: Sequence[int]) -> None:
        """Paint every point with one RGB or RGBA color (alpha defaults to 255)."""
        rgba = [int(c) for c in color]
        if len(rgba) == 3:
            rgba.append(255)
        if len(rgba) != 4 or any(c < 0 or c > 255 for c in rgba):
            raise ValueError("color must be 3 or 4 components in [0, 255]")
        self.colors = np.tile(np.asarray(rgba, dtype=np.uint8), (self.size(), 1))

    def unallocate_colors(self) -> None:
        self.colors = None

    # -------------------------------------------------------------------------
    # Scalar fields
    # -------------------------------------------------------------------------

    def has_scalar_fields(self) -> bool:
        return bool(self._scalar_fields)

    def get_number_of_scalar_fields(self) -> int:
        return len(self._scalar_fields)

    def scalar_field_names(self) -> List[str]:
        return [sf.name for sf in self._scalar_fields]

    def get_scalar_field_dict(self) -> Dict[str, int]:
        return {sf.name: i for i, sf in enumerate(self._scalar_fields)}

    def get_scalar_field_index_by_name(self, name: str) -> int:
        for i, sf in enumerate(self._scalar_fields):
            if sf.name == name:
                return i
        return -1

    def get_scalar_field(self, key: Union[int, str]) -> ScalarField:
        if isinstance(key, str):
            index = self.get_scalar_field_index_by_name(key)
            if index < 0:
                raise KeyError(key)
            return self._scalar_fields[index]
        return self._scalar_fields[key]

    def add_scalar_field(self, name: str) -> int:
        """Attach a new NaN-filled field and return its index.

        Names are unique: delete an existing field before re-adding it.
        """
        if self.get_scalar_field_index_by_name(name) >= 0:
            raise ValueError(f"Scalar field '{name}' already exists on cloud '{self.name}'")
        values = np.full(self.size(), np.nan, dtype=np.float32)
        self._scalar_fields.append(ScalarField(name=name, values=values))
        return len(self._scalar_fields) - 1

    def add_scalar_field_from_array(self, name: str, values: np.ndarray) -> int:
        values = np.asarray(values, dtype=np.float32)
        if values.shape != (self.size(),):
            raise ValueError("scalar field values must have shape (N,)")
        index = self.add_scalar_field(name)
        self._scalar_fields[index].values[:] = values
        return index

    def delete_scalar_field(self, index: int) -> None:
        if not 0 <= index < len(self._scalar_fields):
            raise IndexError(index)
        del self._scalar_fields[index]
        if self._current_sf_index == index:
            self._current_sf_index = -1
        elif self._current_sf_index > index:
            self._current_sf_index -= 1

    def delete_all_scalar_fields(self) -> None:
        self._scalar_fields.clear()
        self._current_sf_index = -1

    def rename_scalar_field(self, index: int, new_name: str) -> bool:
        existing = self.get_scalar_field_index_by_name(new_name)
        if existing >= 0 and existing != index:
            return False
        self._scalar_fields[index].name = new_name
        return True

    def set_current_scalar_field(self, index: int) -> None:
        """Make field `index` current; -1 clears the current field."""
        if not -1 <= index < len(self._scalar_fields):
            raise IndexError(index)
        self._current_sf_index = index

    @property
    def current_scalar_field(self) -> Optional[ScalarField]:
        if self._current_sf_index < 0:
            return None
        return self._scalar_fields[self._current_sf_index]

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    def copy_global_shift_and_scale(self, other: "PointCloud") -> None:
        self.global_shift = tuple(other.global_shift)
        self.global_scale = other.global_scale

    def delete_octree(self) -> None:
        self.octree = None


# ---------------------------------------------------------------------------
# Other entity kinds
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class GenericPointCloud:
    """Opaque point set: positions only, no attributes or metadata."""

    name: str
    points: np.ndarray

    def __post_init__(self) -> None:
        self.points = _as_points(self.points)

    def size(self) -> int:
        return int(self.points.shape[0])


@dataclass(eq=False)
class Mesh:
    name: str
    vertices: PointCloud
    triangles: np.ndarray = field(default_factory=lambda: np.empty((0, 3), dtype=np.int64))


@dataclass(eq=False)
class OtherEntity:
    name: str = "Entity"


Entity = Union[PointCloud, GenericPointCloud, Mesh, OtherEntity]
