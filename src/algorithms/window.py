"""
Fixed-capacity FIFO history of recent samples.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Generic, Iterator, Tuple, TypeVar

T = TypeVar("T")


class SampleWindow(Generic[T]):
    """
    Insertion-ordered window of the most recent items.

    The oldest item is evicted when capacity is exceeded. Items are accepted
    as-is, including samples whose timestamp does not advance; callers route
    those to the zero-velocity case.

    Example:
        window = SampleWindow(capacity=10)
        window.push(sample)
        if len(window) >= 3:
            a, b, c = window.last(3)
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"Window capacity must be positive, got {capacity}")
        self._items: Deque[T] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._items.maxlen

    def push(self, item: T) -> None:
        self._items.append(item)

    def snapshot(self) -> Tuple[T, ...]:
        """Current contents, oldest first."""
        return tuple(self._items)

    def last(self, n: int) -> Tuple[T, ...]:
        """The newest n items, oldest first (fewer if the window is shorter)."""
        if n <= 0:
            return ()
        return tuple(self._items)[-n:]

    def latest(self) -> T:
        return self._items[-1]

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(tuple(self._items))

    def __bool__(self) -> bool:
        return bool(self._items)
