import numpy as np
import pytest

from quadtreex.algo import DepthHistogram, any_of, build_tree, max_depth, min_radius
from quadtreex.core.geometry import contains
from quadtreex.core.nodes import Internal, Leaf, Stub
from tests.utils.datasets import bounds_for, gaussian_points, uniform_points


def _parent_map(tree):
    parents = {}
    for visit in tree.walk():
        parents[visit.index] = visit.parent
    return parents


@pytest.mark.parametrize("seed", [0, 1, 7])
@pytest.mark.parametrize("dimension", [2, 3])
def test_randomized_structural_invariants(seed: int, dimension: int):
    rng = np.random.default_rng(seed)
    points = gaussian_points(rng, 256, dimension)
    tree = build_tree(points, bounds_for(points))

    parents = _parent_map(tree)
    for visit in tree.walk():
        node = visit.node
        if isinstance(node, Internal):
            assert node.num_children >= 2
            assert len(node.children) == 2 ** dimension
        if isinstance(node, Leaf):
            current = visit.index
            while current >= 0:
                region = tree.node(current).region
                for index in node.indices:
                    assert contains(region, points[index])
                current = parents[current]

    stats = tree.stats
    assert stats.num_leaves == 256
    assert stats.num_internal == tree.num_nodes - stats.num_leaves
    assert stats.num_stubs == 0


def test_child_regions_nest_inside_parents():
    rng = np.random.default_rng(3)
    points = uniform_points(rng, 128, 2)
    tree = build_tree(points, bounds_for(points))

    for visit in tree.walk():
        if visit.parent < 0:
            continue
        parent = tree.node(visit.parent).region
        child = visit.node.region
        assert child.radius < parent.radius
        assert np.all(child.lower >= parent.lower - 1e-9)
        assert np.all(child.upper <= parent.upper + 1e-9)


def test_combined_policies_bound_the_tree():
    rng = np.random.default_rng(8)
    points = uniform_points(rng, 500, 2)
    histogram = DepthHistogram(any_of(max_depth(4), min_radius(1e-6)))
    tree = build_tree(points, bounds_for(points), should_stop=histogram)

    assert histogram.max_depth <= 4
    assert tree.stats.max_depth <= 4
    stub_total = sum(node.count for node in (v.node for v in tree.walk()) if isinstance(node, Stub))
    leaf_total = sum(leaf.num_points for leaf in tree.leaves())
    assert stub_total + leaf_total == 500
    assert tree.stats.num_stubs > 0
    tree.validate()
