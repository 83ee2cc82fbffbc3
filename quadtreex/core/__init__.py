"""Core data structures for the compressed quadtree."""

from .geometry import (
    LOCATE_TOLERANCE,
    Region,
    child_region,
    contains,
    lower_bound_sq_distance,
    quadrant_indices,
    quadrant_of,
    root_region,
)
from .nodes import EMPTY_SLOT, Internal, Leaf, Node, NodeKind, Stub
from .tree import BuildStats, NodeVisit, QuadTree

__all__ = [
    "LOCATE_TOLERANCE",
    "Region",
    "child_region",
    "contains",
    "lower_bound_sq_distance",
    "quadrant_indices",
    "quadrant_of",
    "root_region",
    "EMPTY_SLOT",
    "Internal",
    "Leaf",
    "Node",
    "NodeKind",
    "Stub",
    "BuildStats",
    "NodeVisit",
    "QuadTree",
]
