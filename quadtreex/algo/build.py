from __future__ import annotations

from typing import Any, List, Optional, Sequence

import numpy as np

from quadtreex import config as qx_config
from quadtreex.algo.policies import BuildCandidate, TerminationPolicy, never_stop
from quadtreex.algo.semisort import group_by_int
from quadtreex.core.geometry import (
    LOCATE_TOLERANCE,
    Region,
    child_region,
    quadrant_indices,
    root_region,
)
from quadtreex.core.nodes import EMPTY_SLOT, Internal, Leaf, Node, Stub
from quadtreex.core.tree import BuildStats, QuadTree
from quadtreex.errors import ConstructionFailure, InvalidInput
from quadtreex.logging import get_logger

LOGGER = get_logger("algo.build")

# Internal nodes carry 2**D slots.
MAX_DIMENSION = 16


def _borrow_points(points: Any, dimension: Optional[int]) -> np.ndarray:
    """Return a read-only view of the caller's points without copying floats."""

    arr = points if isinstance(points, np.ndarray) else np.asarray(points)
    if arr.size == 0:
        raise InvalidInput("At least one point is required to build a quadtree.")
    if arr.dtype.kind not in "fiu":
        raise InvalidInput(f"Points must be real-valued; received dtype {arr.dtype}.")
    if arr.dtype.kind != "f":
        arr = arr.astype(np.float64)
    if arr.ndim != 2:
        raise InvalidInput(f"Points must form a 2-D (N, D) array; received shape {arr.shape}.")

    num_points, width = arr.shape
    if dimension is not None and width != dimension:
        raise InvalidInput(
            f"Declared dimension {dimension} does not match point width {width}."
        )
    if width > MAX_DIMENSION:
        raise InvalidInput(
            f"Dimension {width} exceeds the supported maximum of {MAX_DIMENSION}."
        )
    if not np.all(np.isfinite(arr)):
        raise InvalidInput("Point coordinates must be finite.")

    view = arr.view()
    view.flags.writeable = False
    return view


def _check_inside_root(coords: np.ndarray, region: Region) -> None:
    excess = np.abs(coords - region.mid[None, :]) - region.radius
    outside = np.nonzero(np.any(excess > LOCATE_TOLERANCE, axis=1))[0]
    if outside.size:
        preview = outside[:5].tolist()
        raise InvalidInput(
            f"{outside.size} point(s) lie outside the bounding range, e.g. rows {preview}."
        )


class _Builder:
    """Recursive partition-and-compress pass writing nodes into an arena."""

    def __init__(self, coords: np.ndarray, should_stop: TerminationPolicy) -> None:
        self.coords = coords
        self.should_stop = should_stop
        self.branching = 1 << coords.shape[1]
        self.nodes: List[Node] = []
        self.num_compressed = 0
        self.num_coincident_runs = 0
        self.max_depth = 0

    def _append(self, node: Node) -> int:
        self.nodes.append(node)
        return len(self.nodes) - 1

    def build(self, region: Region, indices: np.ndarray, depth: int) -> int:
        candidate = BuildCandidate(region=region, indices=indices)
        self.max_depth = max(self.max_depth, depth)

        if indices.shape[0] == 1:
            self.should_stop(candidate, depth)
            return self._append(Leaf(region=region, indices=(int(indices[0]),)))

        if self.should_stop(candidate, depth):
            return self._append(Stub(region=region, count=int(indices.shape[0])))

        members = self.coords[indices]
        if np.all(members == members[0]):
            self.num_coincident_runs += 1
            run = tuple(sorted(int(idx) for idx in indices))
            return self._append(Leaf(region=region, indices=run))

        grouped = group_by_int(quadrant_indices(region.mid, members), indices)
        slots = [EMPTY_SLOT] * self.branching
        for quadrant, child_indices in grouped.groups():
            slots[quadrant] = self.build(
                child_region(region, quadrant), child_indices, depth + 1
            )

        interesting = grouped.num_groups
        if interesting == 0:
            raise ConstructionFailure(
                f"Region at depth {depth} holding {indices.shape[0]} points produced no quadrants."
            )
        if interesting < 2:
            # Path compression: the lone child takes this node's place.
            self.num_compressed += 1
            return slots[int(grouped.keys[0])]
        return self._append(Internal(region=region, children=tuple(slots)))

    def stats(self) -> BuildStats:
        return BuildStats(
            num_leaves=sum(1 for node in self.nodes if isinstance(node, Leaf)),
            num_internal=sum(1 for node in self.nodes if isinstance(node, Internal)),
            num_stubs=sum(1 for node in self.nodes if isinstance(node, Stub)),
            num_compressed=self.num_compressed,
            num_coincident_runs=self.num_coincident_runs,
            max_depth=self.max_depth,
        )


def build_tree(
    points: Any,
    bounds: Any,
    *,
    should_stop: Optional[TerminationPolicy] = None,
    ids: Optional[Sequence[Any]] = None,
    dimension: Optional[int] = None,
) -> QuadTree:
    """Build a compressed quadtree over `points` inside the box `bounds`.

    Parameters
    ----------
    points:
        `(N, D)` array of coordinates, N >= 1. Floating-point arrays are
        borrowed, not copied; the caller must keep them alive and unchanged.
    bounds:
        `(D, 2)` array of `[min_d, max_d]` pairs. The root region is the
        smallest hypercube centred on this box that covers it.
    should_stop:
        Termination policy `(candidate, depth) -> bool`; see
        `quadtreex.algo.policies`. Defaults to never stopping.
    ids:
        Optional identity token per point, reported back by `QuadTree.point_id`.
    dimension:
        Optional declared dimension checked against the point width.

    Raises
    ------
    InvalidInput
        Malformed points, bounds or ids.
    ConstructionFailure
        The recursion or memory was exhausted, or a structural invariant broke.
    """

    runtime = qx_config.runtime_config()
    coords = _borrow_points(points, dimension)
    num_points, width = coords.shape
    region = root_region(bounds, dimension=width)
    _check_inside_root(coords, region)
    if ids is not None and len(ids) != num_points:
        raise InvalidInput(f"Expected {num_points} ids; received {len(ids)}.")

    builder = _Builder(coords, should_stop or never_stop)
    try:
        root_index = builder.build(region, np.arange(num_points, dtype=np.int64), 0)
    except RecursionError as exc:
        raise ConstructionFailure(
            "Recursion limit exhausted while subdividing; points are too close together."
        ) from exc
    except MemoryError as exc:
        raise ConstructionFailure("Out of memory while building the quadtree.") from exc

    tree = QuadTree(
        points=coords,
        nodes=builder.nodes,
        root_index=root_index,
        ids=ids,
        stats=builder.stats(),
    )
    if runtime.validate_on_build:
        tree.validate()

    LOGGER.debug(
        "Built quadtree over %d points in %d dimensions: %s",
        num_points,
        width,
        tree.stats.as_dict(),
    )
    return tree


__all__ = ["MAX_DIMENSION", "build_tree"]
