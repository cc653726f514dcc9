"""Infrastructure adapters implementing the geometry engine ports."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

import numpy as np

from cckit.connected_components.domain.entities import GenericPointCloud, PointCloud, ScalarField
from cckit.connected_components.domain.model import ComponentGroup
from cckit.connected_components.ports import (
    CloudFactory,
    ColorGenerator,
    ComponentLabelingEngine,
    SpatialIndexProvider,
)


# ---------------------------------------------------------------------------
# Spatial Index
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OctreeIndexProvider(SpatialIndexProvider):
    """Build octrees lazily and cache them on the cloud."""

    def get_or_build(self, *, cloud: PointCloud) -> Optional[Any]:
        from cckit.connected_components.infrastructure.backend import build_octree

        octree = cloud.octree
        if octree is not None and getattr(octree, "point_count", None) == cloud.size():
            return octree

        try:
            octree = build_octree(cloud.points)
        except MemoryError:
            logging.warning("Not enough memory to build an octree for %s", cloud.name)
            octree = None

        # rebuilding replaces the previous index
        cloud.octree = octree
        return octree


# ---------------------------------------------------------------------------
# Labeling
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OctreeLabelingEngine(ComponentLabelingEngine):
    """Label occupied octree cells with 26-connexity (6 when requested)."""

    six_connexity: bool = False

    def label_connected_components(
        self,
        *,
        cloud: PointCloud,
        octree: Any,
        level: int,
        label_field: ScalarField,
    ) -> int:
        from cckit.connected_components.infrastructure.backend import (
            MAX_OCTREE_LEVEL,
            label_octree_cells,
        )

        if not 0 <= level <= MAX_OCTREE_LEVEL:
            logging.warning("Invalid octree level %d (max: %d)", level, MAX_OCTREE_LEVEL)
            return -1
        if octree is None or octree.point_count != cloud.size():
            logging.warning("Octree doesn't match cloud %s", cloud.name)
            return -1
        if len(label_field) != cloud.size():
            return -1

        labels, count = label_octree_cells(octree, level, six_connexity=self.six_connexity)
        label_field.fill(np.nan)
        label_field.values[octree.point_indices] = (labels + 1).astype(np.float32)
        logging.debug("%d component(s) labeled on %s at level %d", count, cloud.name, level)
        return count

    def extract_components(
        self,
        *,
        cloud: PointCloud,
        label_field: ScalarField,
    ) -> List[ComponentGroup]:
        from cckit.connected_components.infrastructure.backend import groups_from_labels

        return [ComponentGroup(indices=idx) for idx in groups_from_labels(label_field.values)]


# ---------------------------------------------------------------------------
# Cloud Construction
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NumpyCloudFactory(CloudFactory):
    """Copy index subsets into new clouds."""

    def partial_clone(self, *, source: PointCloud, group: ComponentGroup) -> Optional[PointCloud]:
        from cckit.connected_components.infrastructure.backend import partial_clone

        return partial_clone(source, group.indices)

    def from_points(self, *, source: GenericPointCloud, group: ComponentGroup) -> Optional[PointCloud]:
        from cckit.connected_components.infrastructure.backend import cloud_from_points

        return cloud_from_points(source.points, group.indices, name=source.name)


@dataclass(frozen=True)
class RandomColorGenerator(ColorGenerator):
    """Light random colors from a numpy Generator (seed it for reproducible runs)."""

    rng: np.random.Generator = field(default_factory=np.random.default_rng)
    light_only: bool = True

    @classmethod
    def seeded(cls, seed: Optional[int]) -> "RandomColorGenerator":
        return cls(rng=np.random.default_rng(None if seed is None else int(seed)))

    def random_color(self) -> Tuple[int, int, int]:
        from cckit.connected_components.infrastructure.backend import random_rgb

        return random_rgb(self.rng, light_only=self.light_only)
