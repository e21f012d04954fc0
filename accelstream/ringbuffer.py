"""Fixed-capacity FIFO of equally sized byte items with usage statistics."""

from __future__ import annotations

from collections import deque
from typing import Deque

_U16_MASK = 0xFFFF
_MAX_CAPACITY = 0xFFFF
_MAX_ITEM_SIZE = 0xFF


class RingbufferFullError(OverflowError):
    """Raised when an item is put into a full buffer."""


class RingbufferEmptyError(LookupError):
    """Raised when an item is taken from an empty buffer."""


class Ringbuffer:
    """Circular buffer storing byte items of one constant size.

    Statistics (maximum utilisation, put and take counters) are kept since
    the last reset; the counters are 16 bit and wrap around.
    """

    def __init__(self, capacity: int, item_size: int) -> None:
        if not 1 <= capacity <= _MAX_CAPACITY:
            raise ValueError(f"capacity must be in 1..{_MAX_CAPACITY}, got {capacity}")
        if not 1 <= item_size <= _MAX_ITEM_SIZE:
            raise ValueError(f"item size must be in 1..{_MAX_ITEM_SIZE}, got {item_size}")
        self._capacity = capacity
        self._item_size = item_size
        self._items: Deque[bytes] = deque()
        self._max_capacity_used = 0
        self._put_count = 0
        self._take_count = 0

    def put(self, item: bytes) -> None:
        """Store one item; raise RingbufferFullError if no slot is free."""
        data = bytes(item)
        if len(data) != self._item_size:
            raise ValueError(f"item must be {self._item_size} bytes, got {len(data)}")
        if self.is_full():
            raise RingbufferFullError("ringbuffer is full")
        self._items.append(data)
        self._max_capacity_used = max(self._max_capacity_used, len(self._items))
        self._put_count = (self._put_count + 1) & _U16_MASK

    def take(self) -> bytes:
        """Remove and return the oldest item; raise RingbufferEmptyError if empty."""
        if self.is_empty():
            raise RingbufferEmptyError("ringbuffer is empty")
        item = self._items.popleft()
        self._take_count = (self._take_count + 1) & _U16_MASK
        return item

    def reset(self) -> None:
        """Drop all items and clear the statistics."""
        self._items.clear()
        self._max_capacity_used = 0
        self._put_count = 0
        self._take_count = 0

    def __len__(self) -> int:
        return len(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def is_full(self) -> bool:
        return len(self._items) >= self._capacity

    def capacity(self) -> int:
        """Maximum number of storable items."""
        return self._capacity

    def item_size(self) -> int:
        """Size of one item in bytes."""
        return self._item_size

    def max_capacity_used(self) -> int:
        """Largest number of items held at once since the last reset."""
        return self._max_capacity_used

    def put_count(self) -> int:
        """Successful puts since the last reset (16 bit, wrapping)."""
        return self._put_count

    def take_count(self) -> int:
        """Successful takes since the last reset (16 bit, wrapping)."""
        return self._take_count