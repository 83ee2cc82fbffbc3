"""Exhaustive nearest-neighbour reference used to check tree answers."""

from __future__ import annotations

from typing import Any, Tuple

import numpy as np

from quadtreex.errors import InvalidInput


def brute_force_knn(points: Any, query: Any, k: int) -> Tuple[np.ndarray, np.ndarray]:
    """Return `(indices, sq_distances)` of the `k` nearest rows of `points`.

    Rows are ordered by squared distance, then by index.
    """

    pts = np.asarray(points, dtype=np.float64)
    coords = np.asarray(query, dtype=np.float64)
    if pts.ndim != 2 or coords.shape != (pts.shape[1],):
        raise InvalidInput(
            f"Query of shape {coords.shape} does not match points of shape {pts.shape}."
        )
    if k < 0:
        raise InvalidInput(f"k must be non-negative; received {k}.")

    diff = pts - coords[None, :]
    sq_distances = np.einsum("ij,ij->i", diff, diff)
    order = np.lexsort((np.arange(pts.shape[0]), sq_distances))[:k]
    return order.astype(np.int64), sq_distances[order]


__all__ = ["brute_force_knn"]
