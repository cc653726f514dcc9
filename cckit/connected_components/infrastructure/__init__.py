"""Infrastructure layer: adapters for connected-component extraction."""

from .engine_adapter import (
    OctreeIndexProvider,
    OctreeLabelingEngine,
    NumpyCloudFactory,
    RandomColorGenerator,
)
from .filesystem import FilesystemCloudSource, FilesystemComponentRepository

__all__ = [
    "OctreeIndexProvider",
    "OctreeLabelingEngine",
    "NumpyCloudFactory",
    "RandomColorGenerator",
    "FilesystemCloudSource",
    "FilesystemComponentRepository",
]
