"""Prediction buffer arena.

Every attached dataset gets a contiguous range of offsets into one shared
score cache. The training set always comes first, so its rows own
``[0, num_train)``; evaluation sets follow in the order they are attached.
"""

from __future__ import annotations

from typing import NamedTuple


class BufferRange(NamedTuple):
    """Offsets ``[start, stop)`` owned by one dataset."""

    name: str
    start: int
    stop: int

    def __len__(self) -> int:
        return self.stop - self.start


class BufferArena:
    """Hands out disjoint offset ranges; ranges never move once allocated."""

    def __init__(self) -> None:
        self._ranges: list[BufferRange] = []
        self._size = 0

    def allocate(self, name: str, length: int) -> BufferRange:
        if length < 0:
            raise ValueError(f"cannot allocate a negative range for {name!r}")
        block = BufferRange(name, self._size, self._size + length)
        self._ranges.append(block)
        self._size = block.stop
        return block

    @property
    def ranges(self) -> tuple[BufferRange, ...]:
        return tuple(self._ranges)

    def __len__(self) -> int:
        return self._size
