"""Exception taxonomy shared by the builder, the tree container and the searcher."""

from __future__ import annotations


class QuadtreeError(Exception):
    """Base class for every error raised by quadtreex."""


class InvalidInput(QuadtreeError, ValueError):
    """Caller-supplied points, bounds or query parameters are malformed."""


class ConstructionFailure(QuadtreeError, RuntimeError):
    """The builder could not produce a tree satisfying its structural invariants."""


class AmbiguousNodeState(QuadtreeError, RuntimeError):
    """A node variant was met where the consuming algorithm defines no behaviour."""


__all__ = [
    "QuadtreeError",
    "InvalidInput",
    "ConstructionFailure",
    "AmbiguousNodeState",
]
