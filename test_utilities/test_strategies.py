import logging
from dataclasses import dataclass

import numpy as np

from cckit.connected_components.domain.entities import GenericPointCloud, PointCloud
from cckit.connected_components.domain.model import ComponentGroup
from cckit.connected_components.domain.strategies import (
    BackendComponentLabeler,
    BackendComponentMaterializer,
    StableComponentSizeRanker,
)
from cckit.connected_components.infrastructure.engine_adapter import (
    NumpyCloudFactory,
    RandomColorGenerator,
)

from conftest import FixedColorGenerator, FlakyCloudFactory


def _groups(*sizes):
    groups, start = [], 0
    for n in sizes:
        groups.append(ComponentGroup(indices=np.arange(start, start + n)))
        start += n
    return groups


def _source(n: int, **kwargs) -> PointCloud:
    return PointCloud(name="src", points=np.random.default_rng(0).normal(size=(n, 3)), **kwargs)


# ---------------------------------------------------------------------
# Labeler
# ---------------------------------------------------------------------

@dataclass
class _Engine:
    count: int = 2
    raise_memory: bool = False

    def label_connected_components(self, *, cloud, octree, level, label_field):
        if self.raise_memory:
            raise MemoryError
        label_field.values[:] = np.arange(label_field.values.shape[0]) % max(self.count, 1) + 1
        return self.count

    def extract_components(self, *, cloud, label_field):
        return [ComponentGroup(indices=np.flatnonzero(label_field.values == k)) for k in (1, 2)]


def test_labeler_refreshes_field_range_and_returns_groups():
    cloud = _source(6)
    field = cloud.get_scalar_field(cloud.add_scalar_field("labels"))
    outcome = BackendComponentLabeler(engine=_Engine()).label(
        cloud=cloud, octree=None, level=3, label_field=field)
    assert outcome.ok
    assert [g.size for g in outcome.groups] == [3, 3]
    assert (field.min_value, field.max_value) == (1.0, 2.0)


def test_labeler_failures_are_negative_status():
    cloud = _source(6)
    field = cloud.get_scalar_field(cloud.add_scalar_field("labels"))
    for engine in (_Engine(count=-1), _Engine(raise_memory=True)):
        outcome = BackendComponentLabeler(engine=engine).label(
            cloud=cloud, octree=None, level=3, label_field=field)
        assert not outcome.ok
        assert outcome.groups == []


# ---------------------------------------------------------------------
# Ranker
# ---------------------------------------------------------------------

def test_ranker_orders_by_size_and_keeps_ties_stable():
    order = StableComponentSizeRanker().rank(_groups(5, 9, 5, 1, 9))
    assert order == [1, 4, 0, 2, 3]


@dataclass(frozen=True)
class _OutOfMemoryRanker(StableComponentSizeRanker):
    def _allocate_scratch(self, count):
        raise MemoryError


def test_ranker_falls_back_to_discovery_order(caplog):
    assert _OutOfMemoryRanker().rank(_groups(1, 5, 3)) == [0, 1, 2]
    assert "Not enough memory to sort components by size" in caplog.text


# ---------------------------------------------------------------------
# Materializer
# ---------------------------------------------------------------------

def test_materializer_names_contiguously_above_threshold():
    groups = _groups(120, 40, 300, 100)
    order = StableComponentSizeRanker().rank(groups)
    materializer = BackendComponentMaterializer(factory=NumpyCloudFactory(), colors=FixedColorGenerator())

    created = materializer.materialize(
        source=_source(560), groups=groups, order=order, min_points=100, random_colors=False)

    assert [c.name for c in created] == ["CC#0", "CC#1", "CC#2"]
    assert [c.size() for c in created] == [300, 120, 100]


def test_materializer_copies_attributes_and_shift_scale():
    n = 10
    source = _source(
        n,
        colors=np.tile(np.array([1, 2, 3, 4], dtype=np.uint8), (n, 1)),
        global_shift=(-1234567.25, 7654321.5, 0.125),
        global_scale=0.01,
    )
    source.add_scalar_field_from_array("intensity", np.arange(n))
    groups = [ComponentGroup(indices=[1, 3, 5])]
    materializer = BackendComponentMaterializer(factory=NumpyCloudFactory(), colors=FixedColorGenerator())

    (comp,) = materializer.materialize(source=source, groups=groups, order=[0], min_points=1, random_colors=False)

    assert np.array_equal(comp.points, source.points[[1, 3, 5]])
    assert comp.colors.tolist() == [[1, 2, 3, 4]] * 3
    assert comp.get_scalar_field("intensity").values.tolist() == [1.0, 3.0, 5.0]
    assert comp.global_shift == source.global_shift
    assert comp.global_scale == source.global_scale


def test_materializer_random_colors_are_light_and_uniform():
    groups = _groups(3, 4)
    colors = RandomColorGenerator.seeded(7)
    materializer = BackendComponentMaterializer(factory=NumpyCloudFactory(), colors=colors)

    created = materializer.materialize(
        source=_source(7), groups=groups, order=[1, 0], min_points=1, random_colors=True)

    for comp in created:
        rgba = comp.colors_to_array()
        assert np.all(rgba == rgba[0])
        r, g, b, a = (int(v) for v in rgba[0])
        assert b == 255 - (r + g) // 2
        assert a == 255


def test_materializer_skips_failed_clones_without_gaps(caplog):
    groups = _groups(10, 10, 10)
    materializer = BackendComponentMaterializer(
        factory=FlakyCloudFactory(fail_on=(1,)), colors=FixedColorGenerator())

    created = materializer.materialize(
        source=_source(30), groups=groups, order=[0, 1, 2], min_points=1, random_colors=False)

    assert [c.name for c in created] == ["CC#0", "CC#1"]
    assert "Failed to create component 1" in caplog.text


def test_materializer_builds_from_opaque_clouds():
    source = GenericPointCloud(name="raw", points=np.zeros((4, 3)))
    materializer = BackendComponentMaterializer(factory=NumpyCloudFactory(), colors=FixedColorGenerator())
    created = materializer.materialize(
        source=source, groups=_groups(4), order=[0], min_points=1, random_colors=False)
    assert [c.size() for c in created] == [4]
    assert created[0].name == "CC#0"


def test_materializer_nothing_above_threshold(caplog):
    caplog.set_level(logging.INFO)
    materializer = BackendComponentMaterializer(factory=NumpyCloudFactory(), colors=FixedColorGenerator())
    created = materializer.materialize(
        source=_source(5), groups=_groups(2, 3), order=[1, 0], min_points=10, random_colors=False)
    assert created == []
    assert "No component was created" in caplog.text
