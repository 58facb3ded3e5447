"""Thread synchronisation primitives: a bounded channel, a count-down latch and a semaphore."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class ChannelClosed(Exception):
    """Raised when pushing to or popping from a closed channel."""


class Channel(Generic[T]):
    """A bounded FIFO queue for passing values between threads.

    Closing the channel discards anything still buffered and wakes every
    blocked producer and consumer, which then see :class:`ChannelClosed`.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError("channel capacity must be non-negative")
        self._capacity = capacity
        self._queue: deque[T] = deque()
        self._closed = False
        self._lock = threading.Lock()
        self._not_full = threading.Condition(self._lock)
        self._not_empty = threading.Condition(self._lock)

    def push(self, item: T) -> None:
        """Add ``item``, blocking while the buffer is full."""
        with self._lock:
            if self._closed:
                raise ChannelClosed("push to a closed channel")
            while len(self._queue) >= self._capacity:
                self._not_full.wait()
                if self._closed:
                    raise ChannelClosed("channel closed while pushing")
            self._queue.append(item)
            self._not_empty.notify()

    def pop(self) -> T:
        """Remove and return the oldest item, blocking while the buffer is empty."""
        with self._lock:
            if self._closed:
                raise ChannelClosed("pop from a closed channel")
            while not self._queue:
                self._not_empty.wait()
                if self._closed:
                    raise ChannelClosed("channel closed while popping")
            item = self._queue.popleft()
            self._not_full.notify()
            return item

    def close(self) -> None:
        """Close the channel; closing twice is harmless."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.clear()
            self._not_full.notify_all()
            self._not_empty.notify_all()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def capacity(self) -> int:
        return self._capacity

    def size(self) -> int:
        """Number of buffered items."""
        with self._lock:
            return len(self._queue)

    def empty(self) -> bool:
        return self.size() == 0

    def __bool__(self) -> bool:
        return not self._closed

    def __iter__(self) -> Iterator[T]:
        """Yield items until the channel is closed."""
        while True:
            try:
                yield self.pop()
            except ChannelClosed:
                return


class CountDownLatch:
    """Lets threads wait until a counter has been brought down to zero."""

    def __init__(self, count: int) -> None:
        if count < 0:
            raise ValueError("count must be non-negative")
        self._count = count
        self._cond = threading.Condition()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the count reaches zero; False if ``timeout`` ran out first."""
        with self._cond:
            return self._cond.wait_for(lambda: self._count == 0, timeout)

    def count_down(self) -> bool:
        """Decrement the count, waking all waiters at zero; False if already zero."""
        with self._cond:
            if self._count == 0:
                return False
            self._count -= 1
            if self._count == 0:
                self._cond.notify_all()
            return True

    @property
    def count(self) -> int:
        with self._cond:
            return self._count


class Semaphore:
    """A counting semaphore with ``num`` permits."""

    def __init__(self, num: int) -> None:
        if num < 0:
            raise ValueError("number of permits must be non-negative")
        self._num = num
        self._used = 0
        self._cond = threading.Condition()

    def wait(self) -> None:
        """Take a permit, blocking while none is free."""
        with self._cond:
            while self._used >= self._num:
                self._cond.wait()
            self._used += 1

    def notify(self) -> None:
        """Return a permit and wake one waiter."""
        with self._cond:
            if self._used > 0:
                self._used -= 1
            self._cond.notify()

    def __enter__(self) -> Semaphore:
        self.wait()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.notify()