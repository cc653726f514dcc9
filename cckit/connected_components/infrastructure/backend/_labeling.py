"""Connected-component labeling of occupied octree cells."""
from __future__ import annotations

from itertools import product
from typing import List, Tuple

import numpy as np
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components

from ._octree import Octree, pack_cell_coordinates


def _forward_offsets(six_connexity: bool) -> np.ndarray:
    """Half of the neighbourhood; the other half is covered by symmetry."""
    if six_connexity:
        return np.array([(1, 0, 0), (0, 1, 0), (0, 0, 1)], dtype=np.int64)
    offsets = [o for o in product((-1, 0, 1), repeat=3) if o > (0, 0, 0)]
    return np.array(offsets, dtype=np.int64)


def label_octree_cells(
    octree: Octree,
    level: int,
    six_connexity: bool = False,
) -> Tuple[np.ndarray, int]:
    """Label the indexed points of `octree` by connected occupied cells.

    Returns (labels, count) where labels[i] is the 0-based component of
    `octree.point_indices[i]`. Components are numbered by their first cell
    in (x, y, z) order.
    """
    coords = octree.cell_coordinates(level)
    if coords.shape[0] == 0:
        return np.empty((0,), dtype=np.int64), 0

    keys = pack_cell_coordinates(coords, level)
    cell_keys, first_point, point_cell = np.unique(keys, return_index=True, return_inverse=True)
    point_cell = point_cell.reshape(-1)
    cells = coords[first_point]
    n_cells = cell_keys.shape[0]
    dim = 1 << level

    rows: List[np.ndarray] = []
    cols: List[np.ndarray] = []
    for offset in _forward_offsets(six_connexity):
        neighbours = cells + offset
        inside = np.all((neighbours >= 0) & (neighbours < dim), axis=1)
        if not inside.any():
            continue
        src = np.flatnonzero(inside)
        nb_keys = pack_cell_coordinates(neighbours[inside], level)
        pos = np.searchsorted(cell_keys, nb_keys)
        np.clip(pos, 0, n_cells - 1, out=pos)
        hit = cell_keys[pos] == nb_keys
        rows.append(src[hit])
        cols.append(pos[hit])

    r = np.concatenate(rows) if rows else np.empty((0,), dtype=np.int64)
    c = np.concatenate(cols) if cols else np.empty((0,), dtype=np.int64)
    graph = coo_matrix(
        (np.ones(r.shape[0], dtype=np.int8), (r, c)), shape=(n_cells, n_cells)
    ).tocsr()
    count, cell_labels = connected_components(graph, directed=False)

    # renumber by first occupied cell
    _, first_cell = np.unique(cell_labels, return_index=True)
    remap = np.empty(count, dtype=np.int64)
    remap[np.argsort(first_cell)] = np.arange(count, dtype=np.int64)
    return remap[cell_labels][point_cell], int(count)


def groups_from_labels(values: np.ndarray) -> List[np.ndarray]:
    """Split point indices by label value (labels >= 1), in label order.

    NaN and values below 1 mark unlabeled points.
    """
    values = np.asarray(values)
    with np.errstate(invalid="ignore"):
        valid = np.isfinite(values) & (values >= 1)
    indices = np.flatnonzero(valid)
    if indices.size == 0:
        return []

    labels = values[indices].astype(np.int64)
    order = np.argsort(labels, kind="stable")
    indices = indices[order]
    labels = labels[order]
    splits = np.flatnonzero(np.diff(labels)) + 1
    return np.split(indices, splits)
