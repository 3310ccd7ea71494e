from __future__ import annotations

from collections.abc import Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class RingBuffer(Generic[T]):
    """
    Fixed-size ring buffer used as the batch queue of an aggregator.
    Overwrites the oldest entries when full and hands the evicted entry
    back to the caller so drops can be counted.
    """

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._data: list[T | None] = [None] * capacity
        self._start = 0
        self._size = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_full(self) -> bool:
        return self._size == self._capacity

    def append(self, item: T) -> T | None:
        """Append ``item``; return the evicted oldest entry when at capacity."""
        idx = (self._start + self._size) % self._capacity
        evicted: T | None = None
        if self._size < self._capacity:
            self._size += 1
        else:
            evicted = self._data[idx]
            self._start = (self._start + 1) % self._capacity
        self._data[idx] = item
        return evicted

    def to_list(self) -> list[T]:
        """Return the logical contents, oldest first."""
        return list(self)

    def drain(self) -> list[T]:
        """Remove and return everything, oldest first."""
        items = self.to_list()
        self.clear()
        return items

    def keep_last(self, count: int) -> list[T]:
        """
        Drop all but the newest ``count`` entries.

        Returns the removed entries, oldest first.
        """
        count = max(0, int(count))
        if count >= self._size:
            return []
        removed = self._size - count
        items = [self[i] for i in range(removed)]
        for i in range(removed):
            self._data[(self._start + i) % self._capacity] = None
        self._start = (self._start + removed) % self._capacity
        self._size = count
        return items

    def clear(self) -> None:
        self._data = [None] * self._capacity
        self._start = 0
        self._size = 0

    def __len__(self) -> int:  # pragma: no cover - trivial
        return self._size

    def __getitem__(self, index: int) -> T:
        """Support buf[i] and buf[-1] indexing over the *logical* contents."""
        size = self._size
        if size == 0:
            raise IndexError("RingBuffer is empty")

        if index < 0:
            index += size

        if index < 0 or index >= size:
            raise IndexError("RingBuffer index out of range")

        item = self._data[(self._start + index) % self._capacity]
        return item  # type: ignore[return-value]

    def __iter__(self) -> Iterator[T]:
        for i in range(self._size):
            yield self._data[(self._start + i) % self._capacity]  # type: ignore[misc]
