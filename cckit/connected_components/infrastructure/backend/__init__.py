"""Low-level geometry engine: octree, labeling and cloud construction.

Open3D file IO lives in `_io` and is imported on demand by the filesystem
adapters, so the engine itself only needs numpy and scipy.
"""
from cckit.connected_components.infrastructure.backend._octree import (
    MAX_OCTREE_LEVEL,
    Octree,
    build_octree,
    pack_cell_coordinates,
)
from cckit.connected_components.infrastructure.backend._labeling import (
    label_octree_cells,
    groups_from_labels,
)
from cckit.connected_components.infrastructure.backend._clone import partial_clone, cloud_from_points
from cckit.connected_components.infrastructure.backend._colors import random_rgb

__all__ = [
    "MAX_OCTREE_LEVEL",
    "Octree",
    "build_octree",
    "pack_cell_coordinates",
    "label_octree_cells",
    "groups_from_labels",
    "partial_clone",
    "cloud_from_points",
    "random_rgb",
]
