"""
Buffer Management

This module provides the fixed-capacity circular buffers used by the
protocol entities: a FIFO ring for the sender's outstanding packets and a
slotted reorder ring for the receiver's out-of-order payloads.
"""

from typing import Generic, Iterator, List, Optional, TypeVar

T = TypeVar('T')


class RingBuffer(Generic[T]):
    """
    Fixed-capacity FIFO ring.

    Items are appended at the tail and consumed from the head. The head and
    tail are tracked as circular indices into a preallocated slot list.

    Attributes:
        capacity: Maximum number of items
        first: Index of the oldest item
        last: Index of the newest item (-1 before the first append)
        count: Number of items held
    """

    def __init__(self, capacity: int):
        """
        Initialize ring buffer.

        Args:
            capacity: Maximum number of items
        """
        if capacity < 1:
            raise ValueError("Ring buffer capacity must be positive")
        self.capacity = capacity
        self.slots: List[Optional[T]] = [None] * capacity
        self.first = 0
        self.last = -1
        self.count = 0

    @property
    def is_full(self) -> bool:
        """Check if buffer is full."""
        return self.count >= self.capacity

    @property
    def is_empty(self) -> bool:
        """Check if buffer is empty."""
        return self.count == 0

    def __len__(self) -> int:
        return self.count

    def append(self, item: T) -> bool:
        """
        Add an item at the tail.

        Returns:
            True if added, False if the buffer is full
        """
        if self.is_full:
            return False
        self.last = (self.last + 1) % self.capacity
        self.slots[self.last] = item
        self.count += 1
        return True

    def peek_first(self) -> Optional[T]:
        """Get the head item without removing it."""
        if self.is_empty:
            return None
        return self.slots[self.first]

    def peek_last(self) -> Optional[T]:
        """Get the tail item without removing it."""
        if self.is_empty:
            return None
        return self.slots[self.last]

    def pop_first(self) -> Optional[T]:
        """Remove and return the head item."""
        if self.is_empty:
            return None
        item = self.slots[self.first]
        self.slots[self.first] = None
        self.first = (self.first + 1) % self.capacity
        self.count -= 1
        return item

    def __iter__(self) -> Iterator[T]:
        """Iterate from head to tail."""
        for offset in range(self.count):
            yield self.slots[(self.first + offset) % self.capacity]

    def clear(self):
        """Clear the buffer."""
        self.slots = [None] * self.capacity
        self.first = 0
        self.last = -1
        self.count = 0


class ReorderBuffer(Generic[T]):
    """
    Slotted ring keyed by offset from a moving base.

    Slot 0 always corresponds to the base of the receive window; advancing
    the base rotates the ring by one and frees the old base slot.

    Attributes:
        capacity: Number of slots (the receive window size)
        head: Physical index of offset 0
    """

    def __init__(self, capacity: int):
        """
        Initialize reorder buffer.

        Args:
            capacity: Number of slots
        """
        if capacity < 1:
            raise ValueError("Reorder buffer capacity must be positive")
        self.capacity = capacity
        self.slots: List[Optional[T]] = [None] * capacity
        self.head = 0

    def _index(self, offset: int) -> int:
        if not 0 <= offset < self.capacity:
            raise IndexError(f"Offset {offset} outside reorder window")
        return (self.head + offset) % self.capacity

    def store(self, offset: int, item: T):
        """Store an item at the given offset from the base."""
        self.slots[self._index(offset)] = item

    def get(self, offset: int) -> Optional[T]:
        """Get the item at the given offset from the base."""
        return self.slots[self._index(offset)]

    def advance(self) -> Optional[T]:
        """
        Remove the base item and move the base forward by one.

        Returns:
            The item that was at the base (or None)
        """
        item = self.slots[self.head]
        self.slots[self.head] = None
        self.head = (self.head + 1) % self.capacity
        return item

    @property
    def occupied(self) -> int:
        """Number of filled slots."""
        return sum(1 for slot in self.slots if slot is not None)

    def clear(self):
        """Clear the buffer."""
        self.slots = [None] * self.capacity
        self.head = 0
