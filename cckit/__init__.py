"""cckit: connected-component extraction over point clouds.

Importing the package is side-effect free. Use explicit imports, e.g.
`from cckit.connected_components.entrypoints.extract_connected_components import extract_connected_components`
"""

__all__: list[str] = []
