"""Termination policies consulted by the builder before subdividing a region.

A policy is any callable ``(candidate, depth) -> bool``. Returning True on a
region that holds more than one point turns it into a `Stub`; on single-point
regions the builder still calls the policy but ignores the answer, so
policies may also be used for bookkeeping.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from quadtreex.core.geometry import Region


@dataclass(frozen=True)
class BuildCandidate:
    """A region the builder is about to turn into a node."""

    region: Region
    indices: np.ndarray

    @property
    def num_points(self) -> int:
        return int(self.indices.shape[0])


TerminationPolicy = Callable[[BuildCandidate, int], bool]


def never_stop(candidate: BuildCandidate, depth: int) -> bool:
    return False


def max_depth(limit: int) -> TerminationPolicy:
    """Stop subdividing once recursion reaches `limit` levels below the root."""

    if limit < 0:
        raise ValueError(f"max_depth limit must be non-negative; received {limit}.")

    def policy(candidate: BuildCandidate, depth: int) -> bool:
        return depth >= limit

    return policy


def min_radius(radius: float) -> TerminationPolicy:
    """Stop subdividing regions whose half side is at most `radius`."""

    if not radius > 0.0:
        raise ValueError(f"min_radius must be positive; received {radius}.")

    def policy(candidate: BuildCandidate, depth: int) -> bool:
        return candidate.region.radius <= radius

    return policy


def max_points(count: int) -> TerminationPolicy:
    """Stop subdividing regions holding at most `count` points."""

    if count < 1:
        raise ValueError(f"max_points count must be at least 1; received {count}.")

    def policy(candidate: BuildCandidate, depth: int) -> bool:
        return candidate.num_points <= count

    return policy


def any_of(*policies: TerminationPolicy) -> TerminationPolicy:
    """Stop when any of `policies` asks to; every policy is always consulted."""

    def policy(candidate: BuildCandidate, depth: int) -> bool:
        answers = [inner(candidate, depth) for inner in policies]
        return any(answers)

    return policy


class DepthHistogram:
    """Counts how many nodes were considered at each depth.

    Wraps an optional inner policy and forwards its decision.
    """

    def __init__(self, inner: Optional[TerminationPolicy] = None) -> None:
        self.inner = inner or never_stop
        self.counts: Counter[int] = Counter()
        self.points_by_depth: Counter[int] = Counter()

    def __call__(self, candidate: BuildCandidate, depth: int) -> bool:
        self.counts[depth] += 1
        self.points_by_depth[depth] += candidate.num_points
        return self.inner(candidate, depth)

    @property
    def max_depth(self) -> int:
        return max(self.counts) if self.counts else 0


__all__ = [
    "BuildCandidate",
    "TerminationPolicy",
    "never_stop",
    "max_depth",
    "min_radius",
    "max_points",
    "any_of",
    "DepthHistogram",
]
