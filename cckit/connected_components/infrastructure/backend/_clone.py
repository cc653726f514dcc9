"""Cloud construction from index subsets."""
from __future__ import annotations

import numpy as np

from cckit.connected_components.domain.entities import PointCloud


def partial_clone(cloud: PointCloud, indices: np.ndarray) -> PointCloud:
    """Copy the points at `indices` with their colors, normals and scalar fields."""
    indices = np.asarray(indices, dtype=np.int64)
    clone = PointCloud(
        name=f"{cloud.name}.extract",
        points=cloud.points[indices],
        colors=cloud.colors[indices] if cloud.colors is not None else None,
        normals=cloud.normals[indices] if cloud.normals is not None else None,
    )
    for name in cloud.scalar_field_names():
        clone.add_scalar_field_from_array(name, cloud.get_scalar_field(name).values[indices])

    current = cloud.current_scalar_field
    if current is not None:
        clone.set_current_scalar_field(clone.get_scalar_field_index_by_name(current.name))
    return clone


def cloud_from_points(points: np.ndarray, indices: np.ndarray, name: str = "Cloud") -> PointCloud:
    """Build a bare cloud (positions only) from `points[indices]`."""
    indices = np.asarray(indices, dtype=np.int64)
    return PointCloud(name=name, points=np.asarray(points)[indices])
