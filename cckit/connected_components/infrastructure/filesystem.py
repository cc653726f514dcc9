"""Filesystem adapters for connected-component extraction."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Set

from cckit.connected_components.domain.entities import PointCloud
from cckit.connected_components.domain.model import CloudReport, ExtractionResult

CLOUD_EXTS: FrozenSet[str] = frozenset({".pcd", ".ply", ".xyz", ".xyzn", ".xyzrgb", ".pts"})


# ---------------------------------------------------------------------------
# CloudSource Adapter
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FilesystemCloudSource:
    """Filesystem adapter: enumerate and read cloud files through Open3D."""

    extensions: FrozenSet[str] = CLOUD_EXTS

    def list(self, *, path: Path) -> List[Path]:
        """List cloud files: `path` itself, or the files directly inside it."""
        path = Path(path)
        if path.is_file():
            return [path] if self._is_cloud_file(path) else []
        if not path.is_dir():
            return []
        return sorted(p for p in path.iterdir() if self._is_cloud_file(p))

    def load(self, *, path: Path) -> PointCloud:
        from cckit.connected_components.infrastructure.backend._io import read_point_cloud

        cloud = read_point_cloud(str(path))
        logging.debug("Loaded %s (%d points)", path, cloud.size())
        return cloud

    def _is_cloud_file(self, path: Path) -> bool:
        return path.is_file() and path.suffix.lower() in self.extensions


# ---------------------------------------------------------------------------
# ComponentRepository Adapter
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FilesystemComponentRepository:
    """Filesystem adapter: write each component as PLY plus a JSON summary.

    Layout: `<folder>/<source cloud>/CC_<n>.ply` and
    `<folder>/extraction_summary.json`. Sources sharing a name get
    `<name>_1`, `<name>_2`, ... folders in input order.
    """

    summary_filename: str = "extraction_summary.json"
    cloud_suffix: str = ".ply"

    def save(self, *, result: ExtractionResult, folder: Path) -> None:
        from cckit.connected_components.infrastructure.backend._io import write_point_cloud

        folder = Path(folder)
        folder.mkdir(parents=True, exist_ok=True)

        written: List[Dict[str, Any]] = []
        used_dirs: Set[str] = set()
        components = iter(result.components)
        for report in result.reports:
            if report.created_count == 0:
                continue
            out_dir = folder / _unique_name(_safe_name(report.cloud_name), used_dirs)
            out_dir.mkdir(parents=True, exist_ok=True)
            for _ in range(report.created_count):
                comp = next(components)
                out_path = out_dir / f"{_safe_name(comp.name)}{self.cloud_suffix}"
                write_point_cloud(str(out_path), comp)
                written.append(_component_to_dict(report, comp, out_path))
                logging.info("Wrote %s", out_path)

        summary_path = folder / self.summary_filename
        summary_path.write_text(
            json.dumps(_result_to_dict(result, written), indent=2),
            encoding="utf-8",
        )


# ---------------------------------------------------------------------------
# Serialization Helpers
# ---------------------------------------------------------------------------


def _safe_name(name: str) -> str:
    """Make a cloud name usable as a file name (CC#3 -> CC_3)."""
    return "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in name) or "cloud"


def _unique_name(name: str, used: Set[str]) -> str:
    """Suffix `name` with _1, _2, ... until it is not in `used` (then record it)."""
    candidate = name
    n = 0
    while candidate in used:
        n += 1
        candidate = f"{name}_{n}"
    used.add(candidate)
    return candidate


def _report_to_dict(report: CloudReport) -> Dict[str, Any]:
    return {
        "cloud": report.cloud_name,
        "status": report.status.value,
        "component_count": report.component_count,
        "qualifying_count": report.qualifying_count,
        "created_count": report.created_count,
    }


def _component_to_dict(report: CloudReport, comp: PointCloud, path: Path) -> Dict[str, Any]:
    return {
        "source": report.cloud_name,
        "name": comp.name,
        "points": comp.size(),
        "path": str(path),
        "global_shift": list(comp.global_shift),
        "global_scale": comp.global_scale,
    }


def _result_to_dict(result: ExtractionResult, written: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "processed_cloud_count": result.processed_cloud_count,
        "component_count": len(result.components),
        "clouds": [_report_to_dict(r) for r in result.reports],
        "components": written,
    }
