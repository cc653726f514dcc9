class ExtractionPreconditionError(Exception):
    def __init__(self, code: str, message: str, context: str = ""):
        super().__init__(message)
        self.code = code
        self.context = context


class ScalarFieldAllocationError(MemoryError):
    """Raised when the scratch label field cannot be attached to a cloud."""

    def __init__(self, field_name: str, cloud_name: str = ""):
        super().__init__(f"Couldn't allocate scalar field '{field_name}' on cloud '{cloud_name}'")
        self.field_name = field_name
        self.cloud_name = cloud_name
