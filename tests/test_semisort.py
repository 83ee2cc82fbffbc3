import numpy as np
import pytest

from quadtreex.algo.semisort import group_by_int


def test_group_by_int_builds_csr_buffers():
    keys = np.asarray([3, 0, 3, 1, 0])
    values = np.asarray([10, 11, 12, 13, 14])

    result = group_by_int(keys, values)

    assert result.keys.tolist() == [0, 1, 3]
    assert result.indptr.tolist() == [0, 2, 3, 5]
    assert result.values.tolist() == [11, 14, 13, 10, 12]
    assert result.num_groups == 3
    groups = [(key, vals.tolist()) for key, vals in result.groups()]
    assert groups == [(0, [11, 14]), (1, [13]), (3, [10, 12])]


def test_group_by_int_empty():
    result = group_by_int(np.asarray([], dtype=np.int64), np.asarray([], dtype=np.int64))
    assert result.num_groups == 0
    assert result.indptr.tolist() == [0]
    assert list(result.groups()) == []


def test_group_by_int_rejects_misaligned_inputs():
    with pytest.raises(ValueError):
        group_by_int(np.asarray([[0, 1]]), np.asarray([0]))
    with pytest.raises(ValueError):
        group_by_int(np.asarray([0, 1]), np.asarray([0]))
