from .exceptions import ExtractionPreconditionError, ScalarFieldAllocationError

__all__ = ["ExtractionPreconditionError", "ScalarFieldAllocationError"]
