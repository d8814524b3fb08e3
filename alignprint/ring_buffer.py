"""Fixed-capacity ring buffer used as the sliding window over chroma frames."""

from __future__ import annotations

from typing import Generic, Iterator, TypeVar

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """Circular container holding the last ``length`` items.

    Index 0 is always the oldest retained item. Once full, every ``add``
    silently evicts the oldest item.
    """

    def __init__(self, length: int):
        if length < 1:
            raise ValueError(f"Ring buffer length must be positive, got {length}")
        self.length = length
        self._items: list[T | None] = [None] * length
        self._head = 0  # slot of the oldest item
        self._count = 0

    @property
    def count(self) -> int:
        """Number of items currently held (never more than ``length``)."""
        return self._count

    @property
    def is_full(self) -> bool:
        return self._count == self.length

    def add(self, item: T) -> None:
        """Append an item, overwriting the oldest one when full."""
        if self._count < self.length:
            self._items[(self._head + self._count) % self.length] = item
            self._count += 1
        else:
            self._items[self._head] = item
            self._head = (self._head + 1) % self.length

    push = add

    def __getitem__(self, index: int) -> T:
        if not 0 <= index < self._count:
            raise IndexError(f"Ring buffer index {index} out of range (count={self._count})")
        return self._items[(self._head + index) % self.length]  # type: ignore[return-value]

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[T]:
        for i in range(self._count):
            yield self[i]
