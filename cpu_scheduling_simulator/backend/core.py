"""
Core data structures for the CPU scheduling simulator.
Includes Process, the process id generator, ReadyQueue and TraceEvent.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, Iterator, List, Optional
import random
import threading

from .exceptions import InvalidProcessError


class ProcessState(Enum):
    """Process states in the system."""
    NEW = "NEW"
    READY = "READY"
    RUNNING = "RUNNING"
    TERMINATED = "TERMINATED"


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _stable_color(pid: str) -> str:
    # random.Random seeded with a str is deterministic across interpreter runs
    rng = random.Random(pid)
    r = rng.randint(50, 220)
    g = rng.randint(50, 220)
    b = rng.randint(50, 220)
    return f"#{r:02x}{g:02x}{b:02x}"


@dataclass
class Process:
    """One simulated job: static attributes plus the runtime state a run fills in."""
    pid: str
    arrival_time: int
    burst_time: int
    remaining_time: int = field(init=False)
    start_time: Optional[int] = field(default=None, init=False)
    finish_time: Optional[int] = field(default=None, init=False)
    response_time: Optional[int] = field(default=None, init=False)
    waiting_time: Optional[int] = field(default=None, init=False)
    turnaround_time: Optional[int] = field(default=None, init=False)
    queue_level: int = field(default=0, init=False)
    state: ProcessState = field(default=ProcessState.NEW, init=False)
    color: Optional[str] = None

    def __post_init__(self) -> None:
        validate_process_fields(self.pid, self.arrival_time, self.burst_time)
        self.remaining_time = self.burst_time
        if self.color is None:
            self.color = _stable_color(self.pid)

    @property
    def is_finished(self) -> bool:
        return self.finish_time is not None

    def clone(self) -> Process:
        """Return an independent copy carrying the same static and runtime state."""
        copy = Process(self.pid, self.arrival_time, self.burst_time, color=self.color)
        copy.remaining_time = self.remaining_time
        copy.start_time = self.start_time
        copy.finish_time = self.finish_time
        copy.response_time = self.response_time
        copy.waiting_time = self.waiting_time
        copy.turnaround_time = self.turnaround_time
        copy.queue_level = self.queue_level
        copy.state = self.state
        return copy

    def reset(self) -> None:
        """Drop all runtime state so the process can be simulated again."""
        self.remaining_time = self.burst_time
        self.start_time = None
        self.finish_time = None
        self.response_time = None
        self.waiting_time = None
        self.turnaround_time = None
        self.queue_level = 0
        self.state = ProcessState.NEW


def validate_process_fields(pid: str, arrival_time: int, burst_time: int) -> None:
    """Raise InvalidProcessError unless the values describe a runnable process."""
    if not isinstance(pid, str) or not pid.strip():
        raise InvalidProcessError(f"process id must be a non-empty string, got {pid!r}")
    if not _is_int(arrival_time) or arrival_time < 0:
        raise InvalidProcessError(f"{pid}: arrival time must be an integer >= 0, got {arrival_time!r}")
    if not _is_int(burst_time) or burst_time <= 0:
        raise InvalidProcessError(f"{pid}: burst time must be an integer > 0, got {burst_time!r}")


def pid_sort_key(pid: str):
    """Sort 'P10' after 'P9'; ids without a numeric suffix sort after numbered ones."""
    digits = pid[1:] if pid[:1] in ("P", "p") else pid
    if digits.isdigit():
        return (0, int(digits), pid)
    return (1, 0, pid)


class ProcessIdGenerator:
    """Hands out sequential labels P1, P2, ... and never reuses one until reset."""

    def __init__(self, prefix: str = "P", start: int = 1):
        self.prefix = prefix
        self._start = start
        self._next = start
        self._lock = threading.Lock()

    def next_id(self) -> str:
        with self._lock:
            value = self._next
            self._next += 1
        return f"{self.prefix}{value}"

    def peek(self) -> str:
        """Return the id the next call to next_id() will produce."""
        with self._lock:
            return f"{self.prefix}{self._next}"

    def reset(self) -> None:
        with self._lock:
            self._next = self._start


class ReadyQueue:
    """FIFO ready queue with stable in-place reordering for SJF/SRTF."""

    def __init__(self, processes: Optional[List[Process]] = None):
        self._items: Deque[Process] = deque(processes or [])

    def push(self, process: Process) -> None:
        """Append a process at the back of the queue."""
        self._items.append(process)

    def pop(self) -> Optional[Process]:
        """Remove and return the head of the queue."""
        if not self._items:
            return None
        return self._items.popleft()

    def peek(self) -> Optional[Process]:
        if not self._items:
            return None
        return self._items[0]

    def sort_by(self, key: Callable[[Process], int]) -> None:
        """Reorder the queue by key; equal keys keep their current relative order."""
        self._items = deque(sorted(self._items, key=key))

    def remove(self, pid: str) -> Optional[Process]:
        """Remove a specific process by id."""
        for process in self._items:
            if process.pid == pid:
                self._items.remove(process)
                return process
        return None

    def is_empty(self) -> bool:
        return len(self._items) == 0

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Process]:
        return iter(list(self._items))

    def __contains__(self, pid: object) -> bool:
        return any(p.pid == pid for p in self._items)

    def get_all_processes(self) -> List[Process]:
        return list(self._items)


@dataclass(frozen=True)
class TraceEvent:
    """One contiguous execution interval of a process on the CPU."""
    pid: str
    start: int
    end: int
    queue_level: Optional[int] = None

    @property
    def duration(self) -> int:
        return self.end - self.start
