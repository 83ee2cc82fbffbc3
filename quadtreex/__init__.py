"""Quadtreex: compressed quadtree for approximate k-NN queries.

Quick Start
-----------
>>> import numpy as np
>>> from quadtreex import build_tree, knn
>>>
>>> points = np.array([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0], [10.0, 10.0]])
>>> tree = build_tree(points, bounds=[[-1.0, 11.0], [-1.0, 11.0]])
>>> result = knn(tree, [1.0, 1.0], k=1)
>>> result.neighbors
(Neighbor(index=0, sq_distance=2.0),)

Classes
-------
QuadTree : Immutable node arena built over a borrowed point array.
KNNResult : Neighbours of a single query in ascending distance order.
"""

from importlib.metadata import version as _pkg_version

try:
    __version__ = _pkg_version("quadtreex")
except Exception:  # pragma: no cover - best effort during local development
    __version__ = "0.0.1"

from .algo import (
    BuildCandidate,
    DepthHistogram,
    any_of,
    build_tree,
    max_depth,
    max_points,
    min_radius,
    never_stop,
)
from .baseline import brute_force_knn
from .core import (
    LOCATE_TOLERANCE,
    BuildStats,
    Internal,
    Leaf,
    NodeKind,
    NodeVisit,
    QuadTree,
    Region,
    Stub,
    contains,
    lower_bound_sq_distance,
)
from .errors import AmbiguousNodeState, ConstructionFailure, InvalidInput, QuadtreeError
from .queries import BatchKNNResult, KNNResult, Neighbor, knn, knn_batch

__all__ = [
    "__version__",
    # Construction
    "build_tree",
    "BuildCandidate",
    "DepthHistogram",
    "any_of",
    "max_depth",
    "max_points",
    "min_radius",
    "never_stop",
    # Tree model
    "QuadTree",
    "BuildStats",
    "NodeVisit",
    "NodeKind",
    "Leaf",
    "Internal",
    "Stub",
    "Region",
    "LOCATE_TOLERANCE",
    "contains",
    "lower_bound_sq_distance",
    # Queries
    "knn",
    "knn_batch",
    "KNNResult",
    "BatchKNNResult",
    "Neighbor",
    "brute_force_knn",
    # Errors
    "QuadtreeError",
    "InvalidInput",
    "ConstructionFailure",
    "AmbiguousNodeState",
]
