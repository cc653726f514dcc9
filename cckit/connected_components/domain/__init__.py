"""Domain layer: entities, value objects and domain services for component extraction."""

from .entities import (
    ScalarField,
    PointCloud,
    GenericPointCloud,
    Mesh,
    OtherEntity,
    Entity,
)
from .model import (
    LABEL_FIELD_NAME,
    COMPONENT_NAME_PREFIX,
    ComponentGroup,
    ComponentIndexAndSize,
    ExtractionParameters,
    CloudStatus,
    CloudReport,
    LabelingOutcome,
    ExtractionResult,
)
from .services import (
    ComponentLabeler,
    ComponentSizeRanker,
    ComponentMaterializer,
    ExtractionOrchestrator,
    scratch_scalar_field,
    select_point_clouds,
)
from .strategies import (
    BackendComponentLabeler,
    StableComponentSizeRanker,
    BackendComponentMaterializer,
)

__all__ = [
    # Entities
    "ScalarField",
    "PointCloud",
    "GenericPointCloud",
    "Mesh",
    "OtherEntity",
    "Entity",
    # Value Objects
    "LABEL_FIELD_NAME",
    "COMPONENT_NAME_PREFIX",
    "ComponentGroup",
    "ComponentIndexAndSize",
    "ExtractionParameters",
    "CloudStatus",
    "CloudReport",
    "LabelingOutcome",
    "ExtractionResult",
    # Domain Services
    "ComponentLabeler",
    "ComponentSizeRanker",
    "ComponentMaterializer",
    "ExtractionOrchestrator",
    "scratch_scalar_field",
    "select_point_clouds",
    # Default strategy implementations (domain, backed by ports)
    "BackendComponentLabeler",
    "StableComponentSizeRanker",
    "BackendComponentMaterializer",
]
