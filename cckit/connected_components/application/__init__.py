"""Application layer: use cases for connected-component extraction."""

from .use_case import ExtractComponentsFromFilesUseCase

__all__ = ["ExtractComponentsFromFilesUseCase"]
