"""Domain services (and strategy protocols) for connected-component extraction."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterable, Iterator, List, Protocol, Sequence, Tuple, Union

from cckit.exceptions.exceptions import ScalarFieldAllocationError

from .entities import Entity, GenericPointCloud, Mesh, OtherEntity, PointCloud, ScalarField
from .model import (
    LABEL_FIELD_NAME,
    CloudReport,
    CloudStatus,
    ComponentGroup,
    ExtractionParameters,
    ExtractionResult,
    LabelingOutcome,
)

if TYPE_CHECKING:
    from cckit.connected_components.ports import SpatialIndexProvider


# ---------------------------------------------------------------------------
# Strategy Protocols
# ---------------------------------------------------------------------------


class ComponentLabeler(Protocol):
    """Strategy port: label a cloud and return its raw component groups."""

    def label(
        self,
        *,
        cloud: PointCloud,
        octree: Any,
        level: int,
        label_field: ScalarField,
    ) -> LabelingOutcome: ...


class ComponentSizeRanker(Protocol):
    """Strategy port: order groups by decreasing size."""

    def rank(self, groups: Sequence[ComponentGroup]) -> List[int]: ...


class ComponentMaterializer(Protocol):
    """Strategy port: turn qualifying groups into standalone clouds."""

    def materialize(
        self,
        *,
        source: Union[PointCloud, GenericPointCloud],
        groups: Sequence[ComponentGroup],
        order: Sequence[int],
        min_points: int,
        random_colors: bool,
    ) -> List[PointCloud]: ...


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def select_point_clouds(
    entities: Iterable[Entity],
) -> List[Union[PointCloud, GenericPointCloud]]:
    """Keep the entities that are point clouds, in input order."""
    clouds: List[Union[PointCloud, GenericPointCloud]] = []
    for entity in entities:
        match entity:
            case PointCloud() | GenericPointCloud():
                clouds.append(entity)
            case Mesh() | OtherEntity():
                continue
            case _:
                raise TypeError(f"Not an entity: {type(entity).__name__}")
    return clouds


@contextmanager
def scratch_scalar_field(cloud: PointCloud, name: str = LABEL_FIELD_NAME) -> Iterator[ScalarField]:
    """Attach a fresh scalar field named `name` and remove it on exit.

    A field left over with the same name is replaced, never duplicated. The
    previously current field (if any other) is current again afterwards.
    """
    existing = cloud.get_scalar_field_index_by_name(name)
    if existing >= 0:
        cloud.delete_scalar_field(existing)
    previous = cloud.current_scalar_field
    try:
        index = cloud.add_scalar_field(name)
    except MemoryError as exc:
        raise ScalarFieldAllocationError(name, cloud.name) from exc
    cloud.set_current_scalar_field(index)

    try:
        yield cloud.get_scalar_field(index)
    finally:
        index = cloud.get_scalar_field_index_by_name(name)
        if index >= 0:
            cloud.delete_scalar_field(index)
        if previous is not None:
            restored = cloud.get_scalar_field_index_by_name(previous.name)
            if restored >= 0:
                cloud.set_current_scalar_field(restored)


def count_qualifying(groups: Sequence[ComponentGroup], min_size: int) -> int:
    return sum(1 for g in groups if g.size >= min_size)


# ---------------------------------------------------------------------------
# Orchestration Service
# ---------------------------------------------------------------------------


class ExtractionOrchestrator:
    """Domain service: extract connected components from a batch of entities.

    Per committed cloud: ensure an octree, label into a scratch field,
    enforce the component-count bound, rank groups by size and materialize
    the qualifying ones. Orchestrates three strategy protocols:
    - ComponentLabeler
    - ComponentSizeRanker
    - ComponentMaterializer
    """

    def __init__(
        self,
        *,
        index_provider: "SpatialIndexProvider",
        labeler: ComponentLabeler,
        ranker: ComponentSizeRanker,
        materializer: ComponentMaterializer,
        label_field_name: str = LABEL_FIELD_NAME,
    ) -> None:
        self._index_provider = index_provider
        self._labeler = labeler
        self._ranker = ranker
        self._materializer = materializer
        self._label_field_name = label_field_name

    def extract(
        self,
        entities: Iterable[Entity],
        parameters: ExtractionParameters = ExtractionParameters(),
    ) -> ExtractionResult:
        """Run the extraction over all point clouds in `entities`."""
        clouds = select_point_clouds(entities)
        if not clouds:
            logging.info("No point cloud to process")
            return ExtractionResult(processed_cloud_count=0)

        done = 0
        components: List[PointCloud] = []
        reports: List[CloudReport] = []

        for cloud in clouds:
            report, created = self._process_cloud(cloud, parameters)
            reports.append(report)

            if report.status is CloudStatus.TOO_MANY_COMPONENTS:
                logging.warning(
                    "Too many components: %d for a maximum of: %d",
                    report.qualifying_count, parameters.max_number_components,
                )
                logging.warning("Extraction incomplete, modify some parameters and retry")
                break

            # labeling ran (even unsuccessfully): the cloud counts as processed
            if report.status in (CloudStatus.DONE, CloudStatus.LABELING_FAILED):
                done += 1
            components.extend(created)

        return ExtractionResult(processed_cloud_count=done, components=components, reports=reports)

    def _process_cloud(
        self,
        cloud: Union[PointCloud, GenericPointCloud],
        parameters: ExtractionParameters,
    ) -> Tuple[CloudReport, List[PointCloud]]:
        match cloud:
            case PointCloud():
                pass
            case GenericPointCloud():
                logging.debug("Skipping %s: not a committed point cloud", cloud.name)
                return CloudReport(cloud_name=cloud.name, status=CloudStatus.NOT_A_COMMITTED_CLOUD), []

        # Step 1: Spatial index
        octree = self._index_provider.get_or_build(cloud=cloud)
        if octree is None:
            logging.warning("Couldn't compute octree for cloud %s", cloud.name)
            return CloudReport(cloud_name=cloud.name, status=CloudStatus.NO_OCTREE), []

        # Step 2: Labeling (scratch field removed on every exit)
        try:
            with scratch_scalar_field(cloud, self._label_field_name) as label_field:
                outcome = self._labeler.label(
                    cloud=cloud,
                    octree=octree,
                    level=parameters.octree_level,
                    label_field=label_field,
                )
        except ScalarFieldAllocationError:
            logging.warning(
                "Couldn't allocate a new scalar field for computing CC labels on %s! Try to free some memory ...",
                cloud.name,
            )
            return CloudReport(cloud_name=cloud.name, status=CloudStatus.NO_LABEL_FIELD), []

        if not outcome.ok:
            logging.warning("Something went wrong while extracting CCs from cloud %s", cloud.name)
            return CloudReport(cloud_name=cloud.name, status=CloudStatus.LABELING_FAILED), []

        groups = list(outcome.groups)

        # Step 3: Size check (circuit breaker)
        qualifying = count_qualifying(groups, parameters.min_component_size)
        if qualifying > parameters.max_number_components:
            groups.clear()
            return CloudReport(
                cloud_name=cloud.name,
                status=CloudStatus.TOO_MANY_COMPONENTS,
                component_count=len(outcome.groups),
                qualifying_count=qualifying,
            ), []

        # Step 4: Ranking + materialization
        created: List[PointCloud] = []
        try:
            if groups:
                order = self._ranker.rank(groups)
                created = self._materializer.materialize(
                    source=cloud,
                    groups=groups,
                    order=order,
                    min_points=parameters.min_component_size,
                    random_colors=parameters.random_colors,
                )
        finally:
            groups.clear()

        return CloudReport(
            cloud_name=cloud.name,
            status=CloudStatus.DONE,
            component_count=len(outcome.groups),
            qualifying_count=qualifying,
            created_count=len(created),
        ), created
