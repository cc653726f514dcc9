"""Shared fixtures: synthetic blob clouds and fake engine collaborators."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
import pytest

from cckit.connected_components.domain.entities import GenericPointCloud, PointCloud, ScalarField
from cckit.connected_components.domain.model import ComponentGroup, LabelingOutcome


# ---------------------------------------------------------------------
# Synthetic clouds
# ---------------------------------------------------------------------

# Blobs sit BLOB_SPACING apart along x and are BLOB_EXTENT wide. At
# TEST_LEVEL the cells are ~1.3 units wide (for up to 3 blobs), so each
# blob is one component and the gaps are never bridged.
BLOB_SPACING = 10.0
BLOB_EXTENT = 0.5
TEST_LEVEL = 4


def _rng(seed: Optional[int] = None) -> np.random.Generator:
    return np.random.default_rng(None if seed is None else int(seed))


def generate_blob_points(
    sizes: Sequence[int],
    spacing: float = BLOB_SPACING,
    extent: float = BLOB_EXTENT,
    seed: Optional[int] = 0,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Create one cube-shaped blob of uniform points per entry in `sizes`.

    Returns
    -------
    points : (N, 3) float64
    labels : (N,) int, index of the blob each point belongs to
    """
    rng = _rng(seed)
    chunks: List[np.ndarray] = []
    labels: List[np.ndarray] = []
    for i, n in enumerate(sizes):
        origin = np.array([i * spacing, 0.0, 0.0])
        chunks.append(origin + rng.uniform(0.0, extent, size=(int(n), 3)))
        labels.append(np.full(int(n), i, dtype=np.int64))
    if not chunks:
        return np.empty((0, 3), dtype=np.float64), np.empty((0,), dtype=np.int64)
    return np.vstack(chunks), np.concatenate(labels)


def make_blob_cloud(
    sizes: Sequence[int],
    name: str = "Cloud",
    seed: Optional[int] = 0,
    **kwargs: Any,
) -> PointCloud:
    points, _ = generate_blob_points(sizes, seed=seed)
    return PointCloud(name=name, points=points, **kwargs)


@pytest.fixture
def blob_cloud_factory():
    """Factory fixture: `blob_cloud_factory([150, 300], name="A")`."""
    return make_blob_cloud


@pytest.fixture
def three_blob_cloud() -> PointCloud:
    # sizes deliberately out of order: ranking must reorder them
    return make_blob_cloud([150, 300, 200], name="scan")


# ---------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------


@dataclass
class FakeIndexProvider:
    """Hands out a dummy octree, or None for the clouds named in `fail_for`."""

    fail_for: Tuple[str, ...] = ()
    calls: List[str] = field(default_factory=list)

    def get_or_build(self, *, cloud: PointCloud) -> Optional[Any]:
        self.calls.append(cloud.name)
        if cloud.name in self.fail_for:
            return None
        return object()


@dataclass
class ScriptedLabeler:
    """Return preset group sizes per cloud name; a negative entry means failure.

    Groups are contiguous index ranges, so they are disjoint by construction.
    Every call records whether the scratch field was attached at that time.
    """

    sizes_by_cloud: dict
    seen_fields: List[str] = field(default_factory=list)

    def label(
        self,
        *,
        cloud: PointCloud,
        octree: Any,
        level: int,
        label_field: ScalarField,
    ) -> LabelingOutcome:
        self.seen_fields.append(label_field.name)
        sizes = self.sizes_by_cloud.get(cloud.name, [])
        if isinstance(sizes, int):
            return LabelingOutcome(status=sizes)
        groups = []
        start = 0
        for n in sizes:
            groups.append(ComponentGroup(indices=np.arange(start, start + n)))
            start += n
        return LabelingOutcome(status=len(groups), groups=groups)


@dataclass
class FlakyCloudFactory:
    """Real index copy, except that the calls listed in `fail_on` run out of memory."""

    fail_on: Tuple[int, ...] = ()
    calls: int = 0

    def partial_clone(self, *, source: PointCloud, group: ComponentGroup) -> Optional[PointCloud]:
        return self._build(source.points, group)

    def from_points(self, *, source: GenericPointCloud, group: ComponentGroup) -> Optional[PointCloud]:
        return self._build(source.points, group)

    def _build(self, points: np.ndarray, group: ComponentGroup) -> PointCloud:
        call = self.calls
        self.calls += 1
        if call in self.fail_on:
            raise MemoryError("simulated")
        return PointCloud(name="tmp", points=points[group.indices])


@dataclass
class FixedColorGenerator:
    color: Tuple[int, int, int] = (10, 20, 240)

    def random_color(self) -> Tuple[int, int, int]:
        return self.color


@pytest.fixture
def fake_index_provider() -> FakeIndexProvider:
    return FakeIndexProvider()


@pytest.fixture
def flaky_factory() -> FlakyCloudFactory:
    return FlakyCloudFactory()
