"""Small helpers: deferred calls, byte order, bit masks, clocks, stack traces and timing."""

from __future__ import annotations

import sys
import time
import traceback
from collections.abc import Callable, Iterator
from contextlib import contextmanager

_VALID_SIZES = (1, 2, 4, 8)


@contextmanager
def deferred(func: Callable[[], object]) -> Iterator[None]:
    """Run ``func`` when the ``with`` block is left, even by an exception."""
    try:
        yield
    finally:
        func()


def _check_width(value: int, size: int) -> None:
    if size not in _VALID_SIZES:
        raise ValueError(f"unsupported integer size: {size} bytes")
    bits = size * 8
    if not -(1 << (bits - 1)) <= value < (1 << bits):
        raise ValueError(f"value {value} does not fit in {size} bytes")


def byte_swap(value: int, size: int) -> int:
    """Reverse the byte order of a ``size``-byte integer.

    Negative values are treated as two's complement and the result is signed.
    A single byte is returned unchanged.
    """
    _check_width(value, size)
    if size == 1:
        return value
    signed = value < 0
    mask = (1 << (size * 8)) - 1
    raw = (value & mask).to_bytes(size, "little")
    return int.from_bytes(raw, "big", signed=signed)


def endian_cast(value: int, size: int) -> int:
    """Convert between host and network byte order."""
    _check_width(value, size)
    if size == 1 or sys.byteorder == "big":
        return value
    return byte_swap(value, size)


def host_to_network(value: int, size: int) -> int:
    """Convert a host-order integer to network order."""
    return endian_cast(value, size)


def network_to_host(value: int, size: int) -> int:
    """Convert a network-order integer to host order."""
    return endian_cast(value, size)


def create_mask(bits: int, width: int = 32) -> int:
    """Return the host-part mask for a prefix of ``bits`` in a ``width``-bit address."""
    if not 0 <= bits <= width:
        raise ValueError(f"prefix length {bits} out of range for width {width}")
    return (1 << (width - bits)) - 1


def count_bytes(value: int) -> int:
    """Count the set bits of a non-negative integer."""
    if value < 0:
        raise ValueError("value must be non-negative")
    result = 0
    while value:
        value &= value - 1
        result += 1
    return result


def current_ms() -> int:
    """Wall-clock time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


def current_us() -> int:
    """Wall-clock time in microseconds since the epoch."""
    return time.time_ns() // 1_000


def backtrace(size: int = 64, skip: int = 1) -> list[str]:
    """Return up to ``size`` stack frames, innermost first, dropping the first ``skip``."""
    if size <= 0:
        return []
    frames = traceback.extract_stack(limit=size)
    frames.reverse()
    return [f"{frame.filename}:{frame.lineno} {frame.name}" for frame in frames[skip:]]


def backtrace_to_string(size: int = 64, skip: int = 2, prefix: str = "") -> str:
    """Return the stack trace as text, one prefixed frame per line."""
    return "".join(f"{prefix}{line}\n" for line in backtrace(size, skip))


def group_thousands(number: int) -> str:
    """Format an integer with commas between groups of three digits."""
    return f"{number:,}"


class TimeMeasure:
    """Measures elapsed time; as a context manager it prints a report on exit."""

    def __init__(self) -> None:
        self._begin = time.perf_counter_ns()

    def reset(self) -> None:
        self._begin = time.perf_counter_ns()

    def _elapsed_ns(self) -> int:
        return time.perf_counter_ns() - self._begin

    def elapsed(self) -> int:
        """Elapsed milliseconds."""
        return self._elapsed_ns() // 1_000_000

    def elapsed_micro(self) -> int:
        return self._elapsed_ns() // 1_000

    def elapsed_nano(self) -> int:
        return self._elapsed_ns()

    def elapsed_seconds(self) -> int:
        return self._elapsed_ns() // 1_000_000_000

    def elapsed_minutes(self) -> int:
        return self._elapsed_ns() // 60_000_000_000

    def elapsed_hours(self) -> int:
        return self._elapsed_ns() // 3_600_000_000_000

    def report(self) -> str:
        """Describe the elapsed time in milli-, micro- and nanoseconds."""
        return (
            f" cost: {group_thousands(self.elapsed())} ms"
            f" micro: {group_thousands(self.elapsed_micro())} us"
            f" nano: {group_thousands(self.elapsed_nano())} ns"
        )

    def __enter__(self) -> TimeMeasure:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        print(f"\n{self.report()}")