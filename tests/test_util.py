import socket
import time
from contextlib import ExitStack

import pytest

from acid.util import (
    TimeMeasure,
    backtrace,
    backtrace_to_string,
    byte_swap,
    count_bytes,
    create_mask,
    current_ms,
    current_us,
    deferred,
    endian_cast,
    group_thousands,
    host_to_network,
    network_to_host,
)


def test_deferred_runs_in_reverse_order():
    log = []
    with deferred(lambda: log.append("c d")):
        with deferred(lambda: log.append("a")):
            with deferred(lambda: log.append("b")):
                log.append("body")
    assert log == ["body", "b", "a", "c d"]


def test_deferred_with_exit_stack():
    log = []
    with ExitStack() as stack:
        stack.enter_context(deferred(lambda: log.append("a")))
        stack.enter_context(deferred(lambda: log.append("b")))
    assert log == ["b", "a"]


def test_deferred_runs_on_exception():
    log = []
    with pytest.raises(RuntimeError):
        with deferred(lambda: log.append("done")):
            raise RuntimeError("boom")
    assert log == ["done"]


def test_deferred_not_entered_does_not_run():
    log = []
    deferred(lambda: log.append("no log"))
    assert log == []


@pytest.mark.parametrize(
    "value,size,expected",
    [
        (0x1234, 2, 0x3412),
        (0x12345678, 4, 0x78563412),
        (0x0102030405060708, 8, 0x0807060504030201),
        (0xAB, 1, 0xAB),
        (-2, 2, -257),
    ],
)
def test_byte_swap(value, size, expected):
    assert byte_swap(value, size) == expected


def test_byte_swap_round_trip():
    assert byte_swap(byte_swap(0xDEADBEEF, 4), 4) == 0xDEADBEEF


def test_byte_swap_bad_size():
    with pytest.raises(ValueError):
        byte_swap(1, 3)


def test_byte_swap_overflow():
    with pytest.raises(ValueError):
        byte_swap(0x10000, 2)


def test_host_to_network_matches_socket():
    assert host_to_network(0x1234, 2) == socket.htons(0x1234)
    assert host_to_network(0x12345678, 4) == socket.htonl(0x12345678)


def test_network_to_host_matches_socket():
    assert network_to_host(0x3412, 2) == socket.ntohs(0x3412)
    assert endian_cast(0x7F, 1) == 0x7F


def test_create_mask():
    assert create_mask(24, 32) == 0xFF
    assert create_mask(8, 32) == 0xFFFFFF
    assert create_mask(32, 32) == 0
    assert create_mask(64, 128) == (1 << 64) - 1


def test_create_mask_out_of_range():
    with pytest.raises(ValueError):
        create_mask(33, 32)


def test_count_bytes():
    assert count_bytes(0) == 0
    assert count_bytes(0b1011) == 3
    assert count_bytes(0xFFFFFF00) == 24


def test_count_bytes_negative():
    with pytest.raises(ValueError):
        count_bytes(-1)


def test_current_clocks():
    now_ms = time.time() * 1000
    assert abs(current_ms() - now_ms) < 1000
    assert abs(current_us() // 1000 - current_ms()) < 1000


def _marker():
    return backtrace(16, 1)


def _marker_text():
    return backtrace_to_string(16, 2, ">> ")


def test_backtrace_innermost_first():
    frames = _marker()
    assert frames[0].endswith("_marker")
    assert any("test_backtrace_innermost_first" in f for f in frames)


def test_backtrace_limit():
    assert len(backtrace(3, 1)) <= 2
    assert backtrace(0, 0) == []


def test_backtrace_to_string():
    text = _marker_text()
    lines = text.splitlines()
    assert all(line.startswith(">> ") for line in lines)
    assert lines[0].endswith("_marker_text")


@pytest.mark.parametrize(
    "number,expected",
    [(123, "123"), (1000, "1,000"), (1234567, "1,234,567"), (0, "0")],
)
def test_group_thousands(number, expected):
    assert group_thousands(number) == expected


class _FakeClock:
    def __init__(self):
        self.now = 0

    def __call__(self):
        return self.now


def test_time_measure(monkeypatch):
    clock = _FakeClock()
    monkeypatch.setattr(time, "perf_counter_ns", clock)
    tm = TimeMeasure()
    clock.now = 2_500_000_000
    assert tm.elapsed() == 2500
    assert tm.elapsed_micro() == 2_500_000
    assert tm.elapsed_nano() == 2_500_000_000
    assert tm.elapsed_seconds() == 2
    assert tm.elapsed_minutes() == 0
    clock.now = 7_200_000_000_000
    assert tm.elapsed_hours() == 2
    assert tm.elapsed_minutes() == 120


def test_time_measure_reset(monkeypatch):
    clock = _FakeClock()
    monkeypatch.setattr(time, "perf_counter_ns", clock)
    tm = TimeMeasure()
    clock.now = 5_000_000
    tm.reset()
    clock.now = 6_000_000
    assert tm.elapsed() == 1


def test_time_measure_context_prints(monkeypatch, capsys):
    clock = _FakeClock()
    monkeypatch.setattr(time, "perf_counter_ns", clock)
    with TimeMeasure() as tm:
        clock.now = 1_234_000_000
    out = capsys.readouterr().out
    assert "cost: 1,234 ms" in out
    assert "micro: 1,234,000 us" in out
    assert tm.report() == " cost: 1,234 ms micro: 1,234,000 us nano: 1,234,000,000 ns"