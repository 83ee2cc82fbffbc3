"""Construction kernels: quadrant grouping, termination policies and the builder."""

from .build import MAX_DIMENSION, build_tree
from .policies import (
    BuildCandidate,
    DepthHistogram,
    TerminationPolicy,
    any_of,
    max_depth,
    max_points,
    min_radius,
    never_stop,
)
from .semisort import GroupByResult, group_by_int

__all__ = [
    "MAX_DIMENSION",
    "build_tree",
    "BuildCandidate",
    "DepthHistogram",
    "TerminationPolicy",
    "any_of",
    "max_depth",
    "max_points",
    "min_radius",
    "never_stop",
    "GroupByResult",
    "group_by_int",
]
