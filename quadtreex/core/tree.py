from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from quadtreex.core.geometry import Region, contains
from quadtreex.core.nodes import EMPTY_SLOT, Internal, Leaf, Node, Stub
from quadtreex.errors import ConstructionFailure, InvalidInput


@dataclass(frozen=True)
class BuildStats:
    """Bookkeeping gathered while the builder ran."""

    num_leaves: int = 0
    num_internal: int = 0
    num_stubs: int = 0
    num_compressed: int = 0
    num_coincident_runs: int = 0
    max_depth: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "num_leaves": self.num_leaves,
            "num_internal": self.num_internal,
            "num_stubs": self.num_stubs,
            "num_compressed": self.num_compressed,
            "num_coincident_runs": self.num_coincident_runs,
            "max_depth": self.max_depth,
        }


@dataclass(frozen=True)
class NodeVisit:
    index: int
    node: Node
    depth: int
    parent: int


class QuadTree:
    """Immutable compressed quadtree over a borrowed `(N, D)` point array.

    Nodes live in an arena addressed by stable integer index; internal nodes
    refer to their children by arena index. The tree never copies or writes
    the caller's points: it keeps a read-only view and refers to rows by index.
    """

    def __init__(
        self,
        *,
        points: np.ndarray,
        nodes: Sequence[Node],
        root_index: int,
        ids: Optional[Sequence[Any]] = None,
        stats: Optional[BuildStats] = None,
    ) -> None:
        self._points: Optional[np.ndarray] = points
        self._nodes: Tuple[Node, ...] = tuple(nodes)
        self._root_index = int(root_index)
        self._ids = None if ids is None else tuple(ids)
        self._dimension = int(points.shape[1])
        self._num_points = int(points.shape[0])
        self.stats = stats or BuildStats()

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def branching_factor(self) -> int:
        return 1 << self._dimension

    @property
    def num_points(self) -> int:
        return self._num_points

    @property
    def num_nodes(self) -> int:
        return len(self._nodes)

    @property
    def is_released(self) -> bool:
        return self._points is None

    @property
    def points(self) -> np.ndarray:
        self._ensure_live()
        assert self._points is not None
        return self._points

    @property
    def root_index(self) -> int:
        self._ensure_live()
        return self._root_index

    @property
    def root(self) -> Node:
        return self.node(self.root_index)

    def node(self, index: int) -> Node:
        self._ensure_live()
        if index < 0 or index >= len(self._nodes):
            raise IndexError(f"Node index {index} outside arena of size {len(self._nodes)}.")
        return self._nodes[index]

    def children(self, index: int) -> Tuple[int, ...]:
        """Arena indices of the non-empty child slots of node `index`."""

        node = self.node(index)
        if isinstance(node, Internal):
            return tuple(child for child in node.children if child != EMPTY_SLOT)
        return ()

    def point(self, index: int) -> np.ndarray:
        return self.points[index]

    def point_id(self, index: int) -> Any:
        self._ensure_live()
        if self._ids is None:
            return int(index)
        return self._ids[index]

    def walk(self) -> Iterator[NodeVisit]:
        """Pre-order traversal from the root, children visited in slot order."""

        stack: List[Tuple[int, int, int]] = [(self.root_index, 0, EMPTY_SLOT)]
        while stack:
            index, depth, parent = stack.pop()
            node = self._nodes[index]
            yield NodeVisit(index=index, node=node, depth=depth, parent=parent)
            if isinstance(node, Internal):
                for child in reversed(node.children):
                    if child != EMPTY_SLOT:
                        stack.append((child, depth + 1, index))

    def leaves(self) -> Iterator[Leaf]:
        for visit in self.walk():
            if isinstance(visit.node, Leaf):
                yield visit.node

    def depth(self) -> int:
        return max(visit.depth for visit in self.walk())

    # ------------------------------------------------------------------
    # Structural checks
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """Raise `ConstructionFailure` when a structural invariant does not hold."""

        self._ensure_live()
        points = self.points
        seen = np.zeros(self._num_points, dtype=np.int64)
        stub_total = 0

        stack: List[Tuple[int, Tuple[Region, ...]]] = [(self._root_index, ())]
        while stack:
            index, ancestors = stack.pop()
            node = self._nodes[index]
            regions = ancestors + (node.region,)
            if isinstance(node, Internal):
                if len(node.children) != self.branching_factor:
                    raise ConstructionFailure(
                        f"Internal node {index} has {len(node.children)} slots; "
                        f"expected {self.branching_factor}."
                    )
                if node.num_children < 2:
                    raise ConstructionFailure(
                        f"Internal node {index} has {node.num_children} children; "
                        "compression requires at least 2."
                    )
                for child in node.children:
                    if child != EMPTY_SLOT:
                        stack.append((child, regions))
            elif isinstance(node, Leaf):
                for point_index in node.indices:
                    seen[point_index] += 1
                    for region in regions:
                        if not contains(region, points[point_index]):
                            raise ConstructionFailure(
                                f"Point {point_index} in leaf {index} lies outside "
                                f"an ancestor region centred at {region.mid.tolist()}."
                            )
            elif isinstance(node, Stub):
                if node.count < 2:
                    raise ConstructionFailure(
                        f"Stub {index} covers {node.count} points; stubs cover at least 2."
                    )
                stub_total += node.count
            else:  # pragma: no cover - closed variant set
                raise ConstructionFailure(f"Unknown node variant {type(node).__name__}.")

        if np.any(seen > 1):
            duplicated = np.nonzero(seen > 1)[0].tolist()
            raise ConstructionFailure(f"Points {duplicated} referenced by more than one leaf.")
        if int(seen.sum()) + stub_total != self._num_points:
            raise ConstructionFailure(
                f"Leaves and stubs cover {int(seen.sum()) + stub_total} points; "
                f"tree holds {self._num_points}."
            )

    # ------------------------------------------------------------------
    # Queries and teardown
    # ------------------------------------------------------------------

    def knn(self, query: Any, k: int, *, eps: float = 0.0, stub_policy: Optional[str] = None):
        from quadtreex.queries.knn import knn

        return knn(self, query, k, eps=eps, stub_policy=stub_policy)

    def release(self) -> None:
        """Drop every tree-owned node; the caller's point storage is left untouched."""

        self._nodes = ()
        self._root_index = EMPTY_SLOT
        self._points = None

    def __enter__(self) -> "QuadTree":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.release()

    def __repr__(self) -> str:
        if self.is_released:
            return f"QuadTree(dimension={self._dimension}, released)"
        return (
            f"QuadTree(dimension={self._dimension}, num_points={self._num_points}, "
            f"num_nodes={self.num_nodes})"
        )

    def _ensure_live(self) -> None:
        if self._points is None:
            raise InvalidInput("QuadTree has been released.")


__all__ = ["BuildStats", "NodeVisit", "QuadTree"]
