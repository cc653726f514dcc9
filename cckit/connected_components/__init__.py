"""Connected-component extraction bounded context (DDD layered package).

This package keeps `__init__` **side-effect free**: importing the package
does not import scipy or Open3D.

Use explicit imports for entrypoints:
`from cckit.connected_components.entrypoints.extract_connected_components import extract_connected_components`
"""

__all__: list[str] = []
