"""
BSP tree range walker.

vbsp writes the brushes of every model in depth-first leaf order, so the
smallest and largest brush index referenced by the leaves below a model's
head node bound exactly the contiguous brush range that model owns.  This is
more reliable than any stored count and also recovers brushes that ended up
without faces.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass

from .structs import BspData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TreeRange:
    """Inclusive brush index range; empty when nothing was found."""
    min_brush: float = math.inf
    max_brush: float = -math.inf

    @property
    def is_empty(self) -> bool:
        return self.min_brush > self.max_brush

    @property
    def first(self) -> int:
        return 0 if self.is_empty else int(self.min_brush)

    @property
    def count(self) -> int:
        if self.is_empty:
            return 0
        return int(self.max_brush) - int(self.min_brush) + 1

    @property
    def end(self) -> int:
        """One past the largest brush index (0 when empty)."""
        return 0 if self.is_empty else int(self.max_brush) + 1


class TreeLimit:
    """Accumulates the min/max leaf brush index over one or more walks."""

    def __init__(self, bsp: BspData):
        self.bsp = bsp
        self.reset()

    def reset(self) -> None:
        self.min_brush_leaf = math.inf
        self.max_brush_leaf = -math.inf

    def walk(self, root: int) -> None:
        """Fold every brush referenced below node ``root`` into the range."""
        stack = [root]
        while stack:
            node_index = stack.pop()
            if node_index < 0:
                self._walk_leaf(-1 - node_index)
                continue
            node = self.bsp.nodes[node_index]
            stack.append(node.children[1])
            stack.append(node.children[0])

    def _walk_leaf(self, leaf_index: int) -> None:
        leaf = self.bsp.leaves[leaf_index]
        start = leaf.first_leaf_brush
        for brush_index in self.bsp.leaf_brushes[start:start + leaf.num_leaf_brushes]:
            if brush_index < self.min_brush_leaf:
                self.min_brush_leaf = brush_index
            if brush_index > self.max_brush_leaf:
                self.max_brush_leaf = brush_index

    @property
    def range(self) -> TreeRange:
        return TreeRange(self.min_brush_leaf, self.max_brush_leaf)

    def compute_range(self, root: int) -> TreeRange:
        """Reset, walk from ``root`` and return the brush range found."""
        self.reset()
        self.walk(root)
        return self.range
