from __future__ import annotations

import heapq
import itertools
import math
from bisect import insort
from dataclasses import dataclass
from typing import Any, Iterator, List, NamedTuple, Optional, Tuple

import numpy as np

from quadtreex import config as qx_config
from quadtreex.core.geometry import lower_bound_sq_distance
from quadtreex.core.nodes import EMPTY_SLOT, Internal, Leaf, Stub
from quadtreex.core.tree import QuadTree
from quadtreex.errors import AmbiguousNodeState, InvalidInput
from quadtreex.logging import get_logger

LOGGER = get_logger("queries.knn")


class Neighbor(NamedTuple):
    index: int
    sq_distance: float


@dataclass(frozen=True)
class KNNResult:
    """Neighbours of one query, ascending by squared distance then index."""

    indices: np.ndarray
    sq_distances: np.ndarray
    ids: Tuple[Any, ...]
    nodes_visited: int
    terminated_early: bool

    def __len__(self) -> int:
        return int(self.indices.shape[0])

    def __iter__(self) -> Iterator[Neighbor]:
        for index, distance in zip(self.indices.tolist(), self.sq_distances.tolist()):
            yield Neighbor(index=int(index), sq_distance=float(distance))

    @property
    def neighbors(self) -> Tuple[Neighbor, ...]:
        return tuple(self)


@dataclass(frozen=True)
class BatchKNNResult:
    """Row-per-query neighbour buffers; short rows are padded with -1 / inf."""

    indices: np.ndarray
    sq_distances: np.ndarray
    nodes_visited: np.ndarray

    @property
    def num_queries(self) -> int:
        return int(self.indices.shape[0])


def _validate_query(tree: QuadTree, query: Any) -> np.ndarray:
    coords = np.asarray(query, dtype=np.float64)
    if coords.shape != (tree.dimension,):
        raise InvalidInput(
            f"Query must have shape ({tree.dimension},); received {coords.shape}."
        )
    if not np.all(np.isfinite(coords)):
        raise InvalidInput("Query coordinates must be finite.")
    return coords


def _validate_parameters(k: int, eps: float, stub_policy: Optional[str]) -> str:
    if int(k) != k or k < 0:
        raise InvalidInput(f"k must be a non-negative integer; received {k}.")
    if not math.isfinite(eps) or eps < 0.0:
        raise InvalidInput(f"eps must be a finite non-negative number; received {eps}.")
    if stub_policy is None:
        return qx_config.runtime_config().stub_policy
    try:
        return qx_config.normalise_stub_policy(stub_policy)
    except ValueError as exc:
        raise InvalidInput(str(exc)) from exc


def _empty_result() -> KNNResult:
    return KNNResult(
        indices=np.asarray([], dtype=np.int64),
        sq_distances=np.asarray([], dtype=np.float64),
        ids=(),
        nodes_visited=0,
        terminated_early=False,
    )


def _search(
    tree: QuadTree,
    coords: np.ndarray,
    k: int,
    eps: float,
    stub_policy: str,
) -> KNNResult:
    points = tree.points
    scale = 1.0 + eps
    # (sq_distance, index); equal distances fall back to ascending index.
    found: List[Tuple[float, int]] = []
    # (bound, sequence, arena index); sequence keeps pops deterministic.
    counter = itertools.count()
    queue: List[Tuple[float, int, int]] = [(0.0, next(counter), tree.root_index)]
    visited = 0
    terminated_early = False

    while queue:
        bound, _, index = heapq.heappop(queue)
        node = tree.node(index)
        visited += 1

        if isinstance(node, Leaf):
            for point_index in node.indices:
                diff = points[point_index] - coords
                insort(found, (float(np.dot(diff, diff)), point_index))
                if len(found) > k:
                    found.pop()
        elif isinstance(node, Internal):
            kth = found[-1][0] if len(found) >= k else math.inf
            if kth <= scale * bound:
                terminated_early = True
                break
            for child in node.children:
                if child == EMPTY_SLOT:
                    continue
                child_bound = lower_bound_sq_distance(tree.node(child).region, coords)
                if child_bound < kth:
                    heapq.heappush(queue, (child_bound, next(counter), child))
        elif isinstance(node, Stub):
            if stub_policy == "raise":
                raise AmbiguousNodeState(
                    f"Stub node {index} covering {node.count} points has no searchable "
                    "content; build without a stopping policy or query with stub_policy='skip'."
                )
        else:  # pragma: no cover - closed variant set
            raise AmbiguousNodeState(f"Unknown node variant {type(node).__name__}.")

    if terminated_early:
        LOGGER.debug(
            "kNN search stopped early after %d nodes with %d nodes still queued.",
            visited,
            len(queue),
        )

    indices = np.asarray([index for _, index in found], dtype=np.int64)
    distances = np.asarray([distance for distance, _ in found], dtype=np.float64)
    return KNNResult(
        indices=indices,
        sq_distances=distances,
        ids=tuple(tree.point_id(int(index)) for index in indices),
        nodes_visited=visited,
        terminated_early=terminated_early,
    )


def knn(
    tree: QuadTree,
    query: Any,
    k: int,
    *,
    eps: float = 0.0,
    stub_policy: Optional[str] = None,
) -> KNNResult:
    """Best-first approximate k-nearest-neighbour search.

    With ``eps == 0`` the result holds the exact `k` nearest points. With
    ``eps > 0`` the k-th reported squared distance is within a factor
    ``1 + eps`` of the true one. Fewer than `k` neighbours are returned
    when the tree holds fewer points.

    `stub_policy` decides what a `Stub` node means during the search:
    ``"raise"`` fails with `AmbiguousNodeState`, ``"skip"`` ignores it.
    Defaults to the runtime configuration.
    """

    policy = _validate_parameters(k, eps, stub_policy)
    coords = _validate_query(tree, query)
    if k == 0:
        return _empty_result()
    return _search(tree, coords, int(k), float(eps), policy)


def knn_batch(
    tree: QuadTree,
    queries: Any,
    k: int,
    *,
    eps: float = 0.0,
    stub_policy: Optional[str] = None,
) -> BatchKNNResult:
    """Run `knn` for every row of `queries` and pack the answers into arrays."""

    policy = _validate_parameters(k, eps, stub_policy)
    batch = np.asarray(queries, dtype=np.float64)
    if batch.ndim != 2 or batch.shape[1] != tree.dimension:
        raise InvalidInput(
            f"Queries must have shape (M, {tree.dimension}); received {batch.shape}."
        )

    k = int(k)
    num_queries = int(batch.shape[0])
    indices = np.full((num_queries, k), -1, dtype=np.int64)
    distances = np.full((num_queries, k), np.inf, dtype=np.float64)
    visited = np.zeros(num_queries, dtype=np.int64)
    if k == 0:
        return BatchKNNResult(indices=indices, sq_distances=distances, nodes_visited=visited)

    for row in range(num_queries):
        coords = _validate_query(tree, batch[row])
        result = _search(tree, coords, k, float(eps), policy)
        count = len(result)
        indices[row, :count] = result.indices
        distances[row, :count] = result.sq_distances
        visited[row] = result.nodes_visited

    return BatchKNNResult(indices=indices, sq_distances=distances, nodes_visited=visited)


__all__ = ["Neighbor", "KNNResult", "BatchKNNResult", "knn", "knn_batch"]
