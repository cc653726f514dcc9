"""Domain-level strategy implementations that depend only on ports.

These implementations hold the extraction policy (size ordering, minimum
size, naming, metadata propagation) and delegate octree, labeling and cloud
construction details to the engine ports.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Optional, Sequence, Union

from cckit.connected_components.domain.entities import GenericPointCloud, PointCloud, ScalarField
from cckit.connected_components.domain.model import (
    ComponentGroup,
    ComponentIndexAndSize,
    LabelingOutcome,
    component_name,
)
from cckit.connected_components.domain.services import (
    ComponentLabeler,
    ComponentMaterializer,
    ComponentSizeRanker,
)

if TYPE_CHECKING:
    from cckit.connected_components.ports import CloudFactory, ColorGenerator, ComponentLabelingEngine


# ---------------------------------------------------------------------------
# Labeling
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BackendComponentLabeler(ComponentLabeler):
    """Label components through the engine, then read the groups back from the label field."""

    engine: "ComponentLabelingEngine"

    def label(
        self,
        *,
        cloud: PointCloud,
        octree: Any,
        level: int,
        label_field: ScalarField,
    ) -> LabelingOutcome:
        try:
            count = self.engine.label_connected_components(
                cloud=cloud,
                octree=octree,
                level=level,
                label_field=label_field,
            )
        except MemoryError:
            logging.warning("Not enough memory to label connected components of %s", cloud.name)
            return LabelingOutcome(status=-1)

        if count < 0:
            return LabelingOutcome(status=count)

        label_field.compute_min_and_max()
        groups = self.engine.extract_components(cloud=cloud, label_field=label_field)
        return LabelingOutcome(status=count, groups=groups)


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StableComponentSizeRanker(ComponentSizeRanker):
    """Order groups by decreasing size; equal sizes keep discovery order.

    Falls back to discovery order when the sort scratch can't be allocated.
    """

    def rank(self, groups: Sequence[ComponentGroup]) -> List[int]:
        try:
            scratch = self._allocate_scratch(len(groups))
        except MemoryError:
            logging.warning("Not enough memory to sort components by size!")
            return list(range(len(groups)))

        for i, group in enumerate(groups):
            scratch[i] = ComponentIndexAndSize(index=i, size=group.size)
        # sorted() is stable, so ties stay in discovery order
        ranked = sorted(scratch, key=lambda item: item.size, reverse=True)
        return [item.index for item in ranked]

    def _allocate_scratch(self, count: int) -> List[Optional[ComponentIndexAndSize]]:
        return [None] * count


# ---------------------------------------------------------------------------
# Materialization
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BackendComponentMaterializer(ComponentMaterializer):
    """Create one named cloud per group holding at least `min_points` points."""

    factory: "CloudFactory"
    colors: "ColorGenerator"

    def materialize(
        self,
        *,
        source: Union[PointCloud, GenericPointCloud],
        groups: Sequence[ComponentGroup],
        order: Sequence[int],
        min_points: int,
        random_colors: bool,
    ) -> List[PointCloud]:
        created: List[PointCloud] = []
        if not groups:
            return created

        for group_index in order:
            group = groups[group_index]
            if group.size < min_points:
                continue

            comp = self._build(source, group)
            if comp is None:
                logging.warning(
                    "Failed to create component %d (not enough memory)", len(created))
                continue

            if random_colors:
                comp.set_color(self.colors.random_color())

            # 'shift on load' information
            if isinstance(source, PointCloud):
                comp.copy_global_shift_and_scale(source)

            comp.name = component_name(len(created))
            created.append(comp)

        if not created:
            logging.info("No component was created! Check the minimum size...")
        else:
            logging.info(
                "%d component(s) were created from cloud %s", len(created), source.name)
        return created

    def _build(
        self,
        source: Union[PointCloud, GenericPointCloud],
        group: ComponentGroup,
    ) -> Optional[PointCloud]:
        try:
            match source:
                case PointCloud():
                    return self.factory.partial_clone(source=source, group=group)
                case GenericPointCloud():
                    return self.factory.from_points(source=source, group=group)
        except MemoryError:
            return None
        raise TypeError(f"Cannot materialize components of {type(source).__name__}")
