"""
Tests for the process model, ready queue and id generator.
"""

import dataclasses
from concurrent.futures import ThreadPoolExecutor

import pytest

from ..backend.core import Process, ProcessIdGenerator, ProcessState, ReadyQueue, TraceEvent, pid_sort_key
from ..backend.exceptions import InvalidProcessError


@pytest.fixture
def sample_processes():
    return [
        Process("P1", 0, 5),
        Process("P2", 1, 3),
        Process("P3", 2, 8),
    ]


class TestProcess:
    """Construction, validation and cloning."""

    def test_initial_runtime_state(self):
        p = Process("P1", 3, 7)
        assert p.remaining_time == 7
        assert p.start_time is None
        assert p.finish_time is None
        assert p.response_time is None
        assert p.queue_level == 0
        assert p.state == ProcessState.NEW
        assert p.color.startswith("#") and len(p.color) == 7

    def test_color_is_stable_per_pid(self):
        assert Process("P4", 0, 1).color == Process("P4", 9, 9).color

    @pytest.mark.parametrize("arrival, burst", [(-1, 3), (0, 0), (0, -2), (1.5, 3), (0, "4"), (True, 3)])
    def test_rejects_invalid_times(self, arrival, burst):
        with pytest.raises(InvalidProcessError):
            Process("P1", arrival, burst)

    def test_rejects_empty_pid(self):
        with pytest.raises(InvalidProcessError):
            Process("  ", 0, 1)

    def test_invalid_process_is_a_value_error(self):
        with pytest.raises(ValueError):
            Process("P1", 0, 0)

    def test_clone_is_independent(self):
        original = Process("P1", 2, 6)
        original.remaining_time = 4
        original.start_time = 2
        original.response_time = 0
        original.queue_level = 1

        copy = original.clone()
        assert copy is not original
        assert (copy.pid, copy.arrival_time, copy.burst_time) == ("P1", 2, 6)
        assert (copy.remaining_time, copy.start_time, copy.response_time, copy.queue_level) == (4, 2, 0, 1)
        assert copy.color == original.color

        copy.remaining_time = 0
        copy.finish_time = 10
        assert original.remaining_time == 4
        assert original.finish_time is None

    def test_reset_clears_runtime_state(self):
        p = Process("P1", 0, 5)
        p.remaining_time = 0
        p.finish_time = 5
        p.response_time = 0
        p.queue_level = 2
        p.state = ProcessState.TERMINATED
        p.reset()
        assert p.remaining_time == 5
        assert p.finish_time is None
        assert p.response_time is None
        assert p.queue_level == 0
        assert p.state == ProcessState.NEW


class TestReadyQueue:
    """Test the FIFO ready queue."""

    def test_fifo_order(self, sample_processes):
        queue = ReadyQueue()
        for p in sample_processes:
            queue.push(p)
        assert len(queue) == 3
        assert queue.peek().pid == "P1"
        assert [queue.pop().pid for _ in range(3)] == ["P1", "P2", "P3"]
        assert queue.is_empty()
        assert queue.pop() is None
        assert queue.peek() is None

    def test_sort_by_is_stable(self):
        queue = ReadyQueue([Process("A", 0, 4), Process("B", 0, 2), Process("C", 0, 4), Process("D", 0, 2)])
        queue.sort_by(lambda p: p.burst_time)
        assert [p.pid for p in queue] == ["B", "D", "A", "C"]

    def test_remove_and_contains(self, sample_processes):
        queue = ReadyQueue(sample_processes)
        assert "P2" in queue
        removed = queue.remove("P2")
        assert removed.pid == "P2"
        assert "P2" not in queue
        assert queue.remove("P9") is None
        assert [p.pid for p in queue.get_all_processes()] == ["P1", "P3"]


class TestProcessIdGenerator:

    def test_sequential_ids(self):
        gen = ProcessIdGenerator()
        assert gen.peek() == "P1"
        assert [gen.next_id() for _ in range(3)] == ["P1", "P2", "P3"]
        assert gen.peek() == "P4"

    def test_reset_restarts_numbering(self):
        gen = ProcessIdGenerator()
        gen.next_id()
        gen.next_id()
        gen.reset()
        assert gen.next_id() == "P1"

    def test_concurrent_ids_are_unique(self):
        gen = ProcessIdGenerator()
        with ThreadPoolExecutor(max_workers=8) as pool:
            ids = list(pool.map(lambda _: gen.next_id(), range(500)))
        assert len(set(ids)) == 500
        assert gen.peek() == "P501"


def test_trace_event_is_immutable():
    event = TraceEvent("P1", 0, 3)
    assert event.duration == 3
    assert event.queue_level is None
    with pytest.raises(dataclasses.FrozenInstanceError):
        event.end = 5


def test_pid_sort_key_orders_numerically():
    assert sorted(["P10", "P2", "P1", "X"], key=pid_sort_key) == ["P1", "P2", "P10", "X"]


def test_pid_sort_key_strips_a_single_prefix():
    assert pid_sort_key("PP3") == (1, 0, "PP3")
    assert sorted(["PP3", "P4", "p2"], key=pid_sort_key) == ["p2", "P4", "PP3"]
