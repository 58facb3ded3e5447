"""Client-side load balancing: random, round-robin and source-address hash selection."""

from __future__ import annotations

import enum
import random
import socket
import struct
import threading
import zlib
from abc import ABC, abstractmethod
from collections.abc import Sequence
from functools import lru_cache
from typing import Generic, TypeVar

T = TypeVar("T")

_SIOCGIFADDR = 0x8915


class Strategy(enum.Enum):
    RANDOM = "random"
    POLLING = "polling"
    HASH_IP = "hash_ip"


def _require_items(items: Sequence[object]) -> None:
    if not items:
        raise ValueError("cannot select from an empty list")


class RouteStrategy(ABC, Generic[T]):
    """Picks one element from a list of candidates."""

    @abstractmethod
    def select(self, items: Sequence[T]) -> T:
        """Return the chosen element."""


class RandomRouteStrategy(RouteStrategy[T]):
    """Picks a uniformly random element."""

    def select(self, items: Sequence[T]) -> T:
        _require_items(items)
        return random.choice(items)


class PollingRouteStrategy(RouteStrategy[T]):
    """Picks elements in turn, wrapping around at the end of the list."""

    def __init__(self) -> None:
        self._index = 0
        self._lock = threading.Lock()

    def select(self, items: Sequence[T]) -> T:
        _require_items(items)
        with self._lock:
            if self._index >= len(items):
                self._index = 0
            chosen = items[self._index]
            self._index += 1
            return chosen


class HashIPRouteStrategy(RouteStrategy[T]):
    """Picks an element by hashing the local host address; random if unknown."""

    def __init__(self, host: str | None = None) -> None:
        self.host = get_local_host() if host is None else host
        self._fallback: RandomRouteStrategy[T] = RandomRouteStrategy()

    def select(self, items: Sequence[T]) -> T:
        _require_items(items)
        if not self.host:
            return self._fallback.select(items)
        hash_code = zlib.crc32(self.host.encode("utf-8"))
        return items[hash_code % len(items)]


def get_local_host() -> str:
    """Return the IPv4 address of interface eth0, or an empty string."""
    try:
        import fcntl
    except ImportError:
        return ""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            request = struct.pack("256s", b"eth0")
            response = fcntl.ioctl(sock.fileno(), _SIOCGIFADDR, request)
    except OSError:
        return ""
    return socket.inet_ntoa(response[20:24])


_RANDOM_STRATEGY: RandomRouteStrategy = RandomRouteStrategy()


@lru_cache(maxsize=None)
def _hash_ip_strategy() -> HashIPRouteStrategy:
    return HashIPRouteStrategy()


def query_strategy(strategy: Strategy) -> RouteStrategy:
    """Return the strategy for ``strategy``; polling strategies are fresh each call."""
    if strategy is Strategy.POLLING:
        return PollingRouteStrategy()
    if strategy is Strategy.HASH_IP:
        return _hash_ip_strategy()
    return _RANDOM_STRATEGY