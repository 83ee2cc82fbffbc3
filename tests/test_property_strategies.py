from __future__ import annotations

import numpy as np
from hypothesis import given, settings, strategies as st
from hypothesis.extra import numpy as hnp

from quadtreex.algo import build_tree
from quadtreex.baseline import brute_force_knn
from quadtreex.core.geometry import Region, contains, lower_bound_sq_distance
from quadtreex.core.nodes import Internal
from quadtreex.queries import knn

# Millimetre resolution keeps subdivision depth bounded.
_coord_elements = st.floats(
    min_value=-1e3, max_value=1e3, allow_nan=False, allow_infinity=False
).map(lambda value: round(value, 3))
_shape_strategy = st.tuples(
    st.integers(min_value=1, max_value=40),
    st.integers(min_value=1, max_value=3),
)
_points_strategy = _shape_strategy.flatmap(
    lambda shape: hnp.arrays(dtype=np.float64, shape=shape, elements=_coord_elements)
)


def _bounds(points: np.ndarray) -> np.ndarray:
    return np.stack([points.min(axis=0) - 1.0, points.max(axis=0) + 1.0], axis=1)


@settings(max_examples=60, deadline=None)
@given(points=_points_strategy)
def test_built_trees_satisfy_structural_invariants(points: np.ndarray) -> None:
    tree = build_tree(points, _bounds(points))

    tree.validate()
    for visit in tree.walk():
        if isinstance(visit.node, Internal):
            assert visit.node.num_children >= 2
    covered = sorted(index for leaf in tree.leaves() for index in leaf.indices)
    assert covered == list(range(points.shape[0]))


@settings(max_examples=60, deadline=None)
@given(
    points=_points_strategy,
    data=st.data(),
)
def test_exact_search_matches_brute_force(points: np.ndarray, data) -> None:
    dimension = points.shape[1]
    tree = build_tree(points, _bounds(points))
    query = data.draw(
        hnp.arrays(dtype=np.float64, shape=(dimension,), elements=_coord_elements)
    )
    k = data.draw(st.integers(min_value=0, max_value=points.shape[0] + 2))

    result = knn(tree, query, k)
    _, expected = brute_force_knn(points, query, k)

    assert len(result) == min(k, points.shape[0])
    np.testing.assert_allclose(result.sq_distances, expected, rtol=1e-9, atol=1e-9)


@settings(max_examples=100, deadline=None)
@given(
    mid=hnp.arrays(dtype=np.float64, shape=(3,), elements=_coord_elements),
    radius=st.floats(min_value=0.001, max_value=100.0),
    offsets=hnp.arrays(
        dtype=np.float64,
        shape=(3,),
        elements=st.floats(min_value=-1.0, max_value=1.0),
    ),
    query=hnp.arrays(dtype=np.float64, shape=(3,), elements=_coord_elements),
)
def test_lower_bound_is_a_lower_bound(mid, radius, offsets, query) -> None:
    region = Region.create(mid, radius)
    inside = mid + offsets * radius
    assert contains(region, inside)
    true_sq = float(np.sum((inside - query) ** 2))
    assert lower_bound_sq_distance(region, query) <= true_sq * (1.0 + 1e-9) + 1e-9
