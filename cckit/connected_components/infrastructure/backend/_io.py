from __future__ import annotations

from pathlib import Path

import numpy as np
import open3d as o3d

from cckit.connected_components.domain.entities import PointCloud


def read_point_cloud(path: str) -> PointCloud:
    """Read a point cloud from disk using Open3D.

    Supported formats include PCD/PLY/XYZ depending on Open3D compilation.
    Colors come back as RGBA uint8 with opaque alpha.

    Raises:
        RuntimeError: If the file can't be read.
    """
    if not Path(path).is_file():
        raise RuntimeError(f"Failed to read point cloud from {path}")
    pcd = o3d.io.read_point_cloud(str(path))
    points = np.asarray(pcd.points, dtype=np.float64)

    colors = None
    if pcd.has_colors():
        rgb = np.clip(np.rint(np.asarray(pcd.colors) * 255.0), 0, 255).astype(np.uint8)
        alpha = np.full((rgb.shape[0], 1), 255, dtype=np.uint8)
        colors = np.hstack([rgb, alpha])
    normals = np.asarray(pcd.normals, dtype=np.float64) if pcd.has_normals() else None

    return PointCloud(name=Path(path).stem, points=points, colors=colors, normals=normals)


def write_point_cloud(path: str, cloud: PointCloud) -> None:
    """Write a point cloud to disk using Open3D.

    Positions, RGB colors and normals are written; alpha and scalar fields
    are not representable and are dropped.

    Raises:
        RuntimeError: If the point cloud cannot be written.
    """
    pc = o3d.geometry.PointCloud()
    pc.points = o3d.utility.Vector3dVector(np.asarray(cloud.points, dtype=np.float64))
    if cloud.colors is not None and cloud.size() > 0:
        pc.colors = o3d.utility.Vector3dVector(cloud.colors[:, :3].astype(np.float64) / 255.0)
    if cloud.normals is not None and cloud.size() > 0:
        pc.normals = o3d.utility.Vector3dVector(np.asarray(cloud.normals, dtype=np.float64))

    ok = o3d.io.write_point_cloud(
        str(path),
        pc,
        print_progress=False,
    )
    if not ok:
        raise RuntimeError(f"Failed to write point cloud to {path}")
