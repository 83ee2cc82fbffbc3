from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

from quadtreex.core.geometry import Region

# Sentinel for an empty child slot.
EMPTY_SLOT = -1


class NodeKind(str, Enum):
    LEAF = "leaf"
    INTERNAL = "internal"
    STUB = "stub"


@dataclass(frozen=True)
class Leaf:
    """Terminal node referencing caller points by row index.

    `indices` holds a single index, or the ascending run of indices of points
    that share identical coordinates.
    """

    region: Region
    indices: Tuple[int, ...]

    kind = NodeKind.LEAF

    @property
    def point(self) -> int:
        return self.indices[0]

    @property
    def num_points(self) -> int:
        return len(self.indices)


@dataclass(frozen=True)
class Internal:
    """Branch node with one arena slot per quadrant (`EMPTY_SLOT` when empty)."""

    region: Region
    children: Tuple[int, ...]

    kind = NodeKind.INTERNAL

    def occupied(self) -> Tuple[Tuple[int, int], ...]:
        """Return `(quadrant, arena_index)` for every non-empty slot in slot order."""

        return tuple(
            (quadrant, child)
            for quadrant, child in enumerate(self.children)
            if child != EMPTY_SLOT
        )

    @property
    def num_children(self) -> int:
        return sum(1 for child in self.children if child != EMPTY_SLOT)


@dataclass(frozen=True)
class Stub:
    """Region where the termination policy halted recursion over `count` points."""

    region: Region
    count: int

    kind = NodeKind.STUB


Node = Union[Leaf, Internal, Stub]


__all__ = ["EMPTY_SLOT", "NodeKind", "Leaf", "Internal", "Stub", "Node"]
