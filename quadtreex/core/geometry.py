from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from quadtreex.errors import InvalidInput

# Absorbs floating-point error for points sitting on a region face.
LOCATE_TOLERANCE = 0.001


def _frozen(values: Any) -> np.ndarray:
    arr = np.array(values, dtype=np.float64)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, eq=False)
class Region:
    """Axis-aligned hypercube: centre `mid` and half side length `radius`."""

    mid: np.ndarray
    radius: float

    @classmethod
    def create(cls, mid: Any, radius: float) -> "Region":
        return cls(mid=_frozen(mid), radius=float(radius))

    @property
    def dimension(self) -> int:
        return int(self.mid.shape[0])

    @property
    def lower(self) -> np.ndarray:
        return self.mid - self.radius

    @property
    def upper(self) -> np.ndarray:
        return self.mid + self.radius


def contains(region: Region, point: Any) -> bool:
    """Return whether `point` lies in `region`, inflated by `LOCATE_TOLERANCE`."""

    coords = np.asarray(point, dtype=np.float64)
    excess = np.abs(coords - region.mid) - region.radius
    return bool(np.all(excess <= LOCATE_TOLERANCE))


def lower_bound_sq_distance(region: Region, point: Any) -> float:
    """Smallest squared Euclidean distance from `point` to anything inside `region`.

    Axes on which the point lies within the slab contribute nothing; the
    others contribute the squared gap to the nearest face, and the gaps are
    summed across axes.
    """

    coords = np.asarray(point, dtype=np.float64)
    gaps = np.maximum(np.abs(coords - region.mid) - region.radius, 0.0)
    return float(np.dot(gaps, gaps))


def quadrant_indices(mid: np.ndarray, coords: np.ndarray) -> np.ndarray:
    """Quadrant index per row of `coords`: bit `d` set when `coords[:, d] > mid[d]`."""

    above = coords > mid[None, :]
    weights = np.left_shift(1, np.arange(mid.shape[0], dtype=np.int64))
    return above.astype(np.int64) @ weights


def quadrant_of(mid: np.ndarray, point: Any) -> int:
    coords = np.asarray(point, dtype=np.float64).reshape(1, -1)
    return int(quadrant_indices(mid, coords)[0])


def child_region(region: Region, quadrant: int) -> Region:
    """Region of child slot `quadrant`: half the radius, centre shifted per bit."""

    half = region.radius / 2.0
    bits = (quadrant >> np.arange(region.dimension)) & 1
    offsets = np.where(bits == 1, half, -half)
    return Region.create(region.mid + offsets, half)


def root_region(bounds: Any, *, dimension: int) -> Region:
    """Smallest hypercube centred on a `(D, 2)` bounding box that covers it."""

    arr = np.asarray(bounds, dtype=np.float64)
    if arr.shape != (dimension, 2):
        raise InvalidInput(
            f"Bounding range must have shape ({dimension}, 2); received {arr.shape}."
        )
    if not np.all(np.isfinite(arr)):
        raise InvalidInput("Bounding range must be finite.")
    lo = arr[:, 0]
    hi = arr[:, 1]
    if np.any(lo > hi):
        axes = np.nonzero(lo > hi)[0].tolist()
        raise InvalidInput(f"Bounding range has min > max on axes {axes}.")
    mid = (lo + hi) / 2.0
    radius = float(np.max((hi - lo) / 2.0))
    return Region.create(mid, radius)


__all__ = [
    "LOCATE_TOLERANCE",
    "Region",
    "contains",
    "lower_bound_sq_distance",
    "quadrant_indices",
    "quadrant_of",
    "child_region",
    "root_region",
]
