from __future__ import annotations

import numbers
from dataclasses import dataclass, field
from enum import Enum
from typing import Final, Iterator, List, NamedTuple, Tuple

import numpy as np

from .entities import PointCloud


LABEL_FIELD_NAME: Final[str] = "CC labels"
COMPONENT_NAME_PREFIX: Final[str] = "CC#"

DEFAULT_OCTREE_LEVEL: Final[int] = 8
DEFAULT_MIN_COMPONENT_SIZE: Final[int] = 100
DEFAULT_MAX_NUMBER_COMPONENTS: Final[int] = 100


def component_name(rank: int) -> str:
    return f"{COMPONENT_NAME_PREFIX}{rank}"


@dataclass(frozen=True, eq=False)
class ComponentGroup:
    """Indices of one connected component inside its source cloud.

    Indices are sorted ascending and unique.
    """

    indices: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "indices", np.asarray(self.indices, dtype=np.int64))

    @property
    def size(self) -> int:
        return int(self.indices.shape[0])

    def __len__(self) -> int:
        return self.size


class ComponentIndexAndSize(NamedTuple):
    index: int
    size: int


@dataclass(frozen=True)
class ExtractionParameters:
    """Extraction settings with the binding's documented defaults."""

    octree_level: int = DEFAULT_OCTREE_LEVEL
    min_component_size: int = DEFAULT_MIN_COMPONENT_SIZE
    max_number_components: int = DEFAULT_MAX_NUMBER_COMPONENTS
    random_colors: bool = False

    def __post_init__(self) -> None:
        for name in ("octree_level", "min_component_size", "max_number_components"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise TypeError(f"{name} must be an integer, got {value!r}")
            object.__setattr__(self, name, int(value))
        if not 0 <= self.octree_level <= 255:
            raise ValueError(f"octree_level must be in [0, 255], got {self.octree_level}")
        if self.min_component_size < 0:
            raise ValueError("min_component_size must be >= 0")
        if self.max_number_components < 0:
            raise ValueError("max_number_components must be >= 0")


class CloudStatus(str, Enum):
    DONE = "done"
    NOT_A_COMMITTED_CLOUD = "not_a_committed_cloud"
    NO_OCTREE = "no_octree"
    NO_LABEL_FIELD = "no_label_field"
    LABELING_FAILED = "labeling_failed"
    TOO_MANY_COMPONENTS = "too_many_components"


@dataclass(frozen=True)
class CloudReport:
    cloud_name: str
    status: CloudStatus
    component_count: int = 0
    qualifying_count: int = 0
    created_count: int = 0


@dataclass(frozen=True)
class LabelingOutcome:
    """Result of labeling one cloud.

    `status` is the engine's component count, negative on failure.
    """

    status: int
    groups: List[ComponentGroup] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status >= 0


@dataclass(frozen=True)
class ExtractionResult:
    """Clouds processed and components created by one extraction call.

    Unpacks as `(processed_cloud_count, components)`.
    """

    processed_cloud_count: int
    components: List[PointCloud] = field(default_factory=list)
    reports: List[CloudReport] = field(default_factory=list)

    def as_tuple(self) -> Tuple[int, List[PointCloud]]:
        return self.processed_cloud_count, list(self.components)

    def __iter__(self) -> Iterator:
        return iter(self.as_tuple())
