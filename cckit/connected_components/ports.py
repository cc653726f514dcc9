"""Ports (Protocol interfaces) for connected-component extraction.

These define the capabilities the extraction core needs from a geometry
engine and from storage. The domain layer depends on these abstractions,
not on numpy/scipy/Open3D directly.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional, Protocol, Tuple

from cckit.connected_components.domain.entities import GenericPointCloud, PointCloud, ScalarField
from cckit.connected_components.domain.model import ComponentGroup, ExtractionResult


# ---------------------------------------------------------------------------
# Geometry Engine Ports
# ---------------------------------------------------------------------------


class SpatialIndexProvider(Protocol):
    """Port: octree construction and caching, one index per cloud."""

    def get_or_build(self, *, cloud: PointCloud) -> Optional[Any]:
        """Return the cloud's cached octree, building it if needed.

        Returns None when no octree can be built (e.g. empty cloud).
        """
        ...


class ComponentLabelingEngine(Protocol):
    """Port: connected-component labeling over an octree."""

    def label_connected_components(
        self,
        *,
        cloud: PointCloud,
        octree: Any,
        level: int,
        label_field: ScalarField,
    ) -> int:
        """Write component labels (1..K) into `label_field`.

        Returns K, or a negative value on failure.
        """
        ...

    def extract_components(
        self,
        *,
        cloud: PointCloud,
        label_field: ScalarField,
    ) -> List[ComponentGroup]:
        """Build one index group per label, in label order."""
        ...


class CloudFactory(Protocol):
    """Port: construct standalone clouds from index subsets."""

    def partial_clone(self, *, source: PointCloud, group: ComponentGroup) -> Optional[PointCloud]:
        """Copy the group's points and their attributes out of a committed cloud."""
        ...

    def from_points(self, *, source: GenericPointCloud, group: ComponentGroup) -> Optional[PointCloud]:
        """Copy the group's positions out of an opaque cloud."""
        ...


class ColorGenerator(Protocol):
    """Port: random color source for component colorization."""

    def random_color(self) -> Tuple[int, int, int]:
        ...


# ---------------------------------------------------------------------------
# Storage Ports
# ---------------------------------------------------------------------------


class CloudSource(Protocol):
    """Port: enumerate and load point-cloud files."""

    def list(self, *, path: Path) -> List[Path]:
        """List readable cloud files at `path` (a file or a folder)."""
        ...

    def load(self, *, path: Path) -> PointCloud:
        """Load one cloud file."""
        ...


class ComponentRepository(Protocol):
    """Port: persist extracted components."""

    def save(self, *, result: ExtractionResult, folder: Path) -> None:
        ...
