"""
Run-wide ID counters.

One allocator is created per decompilation run and passed by reference to
every module that writes blocks, so solid, side and entity IDs never collide
across models.  Each sequence is independent and strictly increasing.
"""

from dataclasses import dataclass


@dataclass
class IdAllocator:
    first_id: int = 1

    def __post_init__(self):
        self.reset()

    def reset(self) -> None:
        """Restart all sequences; only call at the start of a new run."""
        self._brush_id = self.first_id
        self._side_id = self.first_id
        self._entity_id = self.first_id

    def next_brush_id(self) -> int:
        brush_id = self._brush_id
        self._brush_id += 1
        return brush_id

    def next_side_id(self) -> int:
        side_id = self._side_id
        self._side_id += 1
        return side_id

    def next_entity_id(self) -> int:
        entity_id = self._entity_id
        self._entity_id += 1
        return entity_id

    @property
    def brushes_allocated(self) -> int:
        return self._brush_id - self.first_id

    @property
    def sides_allocated(self) -> int:
        return self._side_id - self.first_id
