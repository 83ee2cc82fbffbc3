from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

import numpy as np


@dataclass(frozen=True)
class GroupByResult:
    keys: np.ndarray
    indptr: np.ndarray
    values: np.ndarray

    @property
    def num_groups(self) -> int:
        return int(self.keys.shape[0])

    def groups(self) -> Iterator[Tuple[int, np.ndarray]]:
        """Yield `(key, values)` for every group in ascending key order."""

        for idx in range(self.num_groups):
            start = self.indptr[idx]
            end = self.indptr[idx + 1]
            yield int(self.keys[idx]), self.values[start:end]


def group_by_int(
    keys: np.ndarray,
    values: np.ndarray,
    *,
    stable: bool = True,
) -> GroupByResult:
    """Group `values` by integer `keys` and return CSR-style buffers.

    Parameters
    ----------
    keys:
        1-D array of integer keys.
    values:
        Array whose first dimension matches `keys`.
    stable:
        Whether to preserve the relative order of equal keys (default True).
    """

    keys_np = np.asarray(keys, dtype=np.int64)
    values_np = np.asarray(values)

    if keys_np.ndim != 1:
        raise ValueError("group_by_int expects 1-D `keys`.")
    if values_np.shape[0] != keys_np.shape[0]:
        raise ValueError("`values` must align with `keys` in the first dimension.")

    if keys_np.size == 0:
        return GroupByResult(
            keys=np.asarray([], dtype=np.int64),
            indptr=np.asarray([0], dtype=np.int64),
            values=values_np,
        )

    order = np.argsort(keys_np, kind="stable" if stable else "quicksort")
    sorted_keys = keys_np[order]
    sorted_values = values_np[order]

    unique_keys, counts = np.unique(sorted_keys, return_counts=True)
    indptr = np.concatenate([[0], np.cumsum(counts, dtype=np.int64)])

    return GroupByResult(keys=unique_keys, indptr=indptr, values=sorted_values)
