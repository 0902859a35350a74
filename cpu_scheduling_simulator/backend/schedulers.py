"""
Scheduler implementations: FCFS, SJF, SRTF, Round Robin and MLFQ.

Every scheduler consumes processes sorted by arrival time and drives them on a
logical integer clock. Each contiguous execution slice is recorded as one
TraceEvent on the scheduler's EventLogger; idle gaps produce no event.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Sequence
import logging

from .core import Process, ProcessState, ReadyQueue, TraceEvent
from .exceptions import InvalidConfigurationError
from .utils import EventLogger

logger = logging.getLogger(__name__)

DEFAULT_TIME_QUANTUM = 2
DEFAULT_MLFQ_QUANTUMS = (2, 4, 8, 16)


class BaseScheduler(ABC):
    """Abstract base class for all schedulers.

    A scheduler instance holds the clock and the completed list of the run in
    progress; ``run`` resets both, so an instance can be reused sequentially
    but must not be shared between concurrent runs.
    """

    name = "base"

    def __init__(self, event_log: Optional[EventLogger] = None):
        self.event_log = event_log if event_log is not None else EventLogger()
        self.current_time = 0
        self.completed: List[Process] = []

    def run(self, processes: Sequence[Process]) -> List[Process]:
        """Simulate the processes to completion and return them in completion order.

        The Process objects are mutated in place; callers hand in clones.
        """
        self.current_time = 0
        self.completed = []
        pending: Deque[Process] = deque(processes)
        logger.debug("%s: starting run with %d processes", self.name, len(pending))
        self._run(pending)
        logger.debug("%s: finished at t=%d", self.name, self.current_time)
        return self.completed

    @abstractmethod
    def _run(self, pending: Deque[Process]) -> None:
        """Drive every pending process to completion."""
        pass

    @property
    def timeline(self) -> List[TraceEvent]:
        return self.event_log.timeline

    def admit_arrivals(self, pending: Deque[Process], queue: ReadyQueue, level: Optional[int] = None) -> int:
        """Move every process that has arrived by now into the queue, in arrival order."""
        admitted = 0
        while pending and pending[0].arrival_time <= self.current_time:
            process = pending.popleft()
            process.state = ProcessState.READY
            if level is not None:
                process.queue_level = level
            queue.push(process)
            self.event_log.log_process_event(self.current_time, process.pid, "arrive", level)
            logger.debug("t=%d: %s arrived", self.current_time, process.pid)
            admitted += 1
        return admitted

    def idle_until_next_arrival(self, pending: Deque[Process]) -> None:
        self.current_time = max(self.current_time, pending[0].arrival_time)
        logger.debug("t=%d: CPU idle, advanced to next arrival", self.current_time)

    def dispatch(self, process: Process, level: Optional[int] = None) -> None:
        """Give the CPU to a process; start and response times are set once."""
        if process.response_time is None:
            process.response_time = self.current_time - process.arrival_time
        if process.start_time is None:
            process.start_time = self.current_time
        process.state = ProcessState.RUNNING
        self.event_log.log_process_event(self.current_time, process.pid, "dispatch", level)

    def execute(self, process: Process, duration: int, level: Optional[int] = None) -> TraceEvent:
        """Run a process for duration units, emitting one trace event."""
        start = self.current_time
        event = self.event_log.log_timeline_slice(process.pid, start, start + duration, level)
        process.remaining_time -= duration
        self.current_time += duration
        logger.debug("t=%d-%d: %s ran, remaining %d", start, self.current_time, process.pid, process.remaining_time)
        return event

    def finish(self, process: Process) -> None:
        process.finish_time = self.current_time
        process.state = ProcessState.TERMINATED
        self.completed.append(process)
        self.event_log.log_process_event(self.current_time, process.pid, "complete")
        logger.debug("t=%d: %s completed", self.current_time, process.pid)

    def requeue(self, process: Process, queue: ReadyQueue, event: str = "preempt", level: Optional[int] = None) -> None:
        process.state = ProcessState.READY
        queue.push(process)
        self.event_log.log_process_event(self.current_time, process.pid, event, level)


class FCFSScheduler(BaseScheduler):
    """First Come First Serve scheduler implementation."""

    name = "fcfs"

    def select(self, ready: ReadyQueue) -> Process:
        """Take the head of the ready queue."""
        return ready.pop()

    def _run(self, pending: Deque[Process]) -> None:
        ready = ReadyQueue()
        while pending or not ready.is_empty():
            self.admit_arrivals(pending, ready)
            if ready.is_empty():
                self.idle_until_next_arrival(pending)
                continue

            process = self.select(ready)
            self.dispatch(process)
            # Non-preemptive: one slice covers the whole burst
            self.execute(process, process.remaining_time)
            self.finish(process)


class SJFScheduler(FCFSScheduler):
    """Shortest Job First (non-preemptive) scheduler."""

    name = "sjf"

    def select(self, ready: ReadyQueue) -> Process:
        """Take the shortest burst; equal bursts keep queue order."""
        ready.sort_by(lambda p: p.burst_time)
        return ready.pop()


class SRTFScheduler(BaseScheduler):
    """Shortest Remaining Time First (preemptive SJF) scheduler."""

    name = "srtf"

    def _run(self, pending: Deque[Process]) -> None:
        ready = ReadyQueue()
        current: Optional[Process] = None

        while pending or not ready.is_empty() or current is not None:
            self.admit_arrivals(pending, ready)

            # Preempt only on a strictly shorter remaining time
            if current is not None and not ready.is_empty():
                ready.sort_by(lambda p: p.remaining_time)
                if ready.peek().remaining_time < current.remaining_time:
                    logger.debug("t=%d: %s preempted by %s", self.current_time, current.pid, ready.peek().pid)
                    self.requeue(current, ready, "preempt")
                    current = None

            if current is None:
                if ready.is_empty():
                    if not pending:
                        break
                    self.idle_until_next_arrival(pending)
                    continue
                ready.sort_by(lambda p: p.remaining_time)
                current = ready.pop()
                self.dispatch(current)

            # Run until completion or the next arrival, whichever is first
            run_until = self.current_time + current.remaining_time
            if pending and pending[0].arrival_time < run_until:
                run_until = pending[0].arrival_time

            # Defensive: admission leaves only future arrivals pending, so a
            # zero-length horizon cannot occur for validated processes
            if run_until <= self.current_time:
                self.current_time += 1
                continue

            self.execute(current, run_until - self.current_time)
            if current.remaining_time <= 0:
                self.finish(current)
                current = None


class RoundRobinScheduler(BaseScheduler):
    """Round Robin scheduler implementation."""

    name = "rr"

    def __init__(self, time_quantum: int = DEFAULT_TIME_QUANTUM, event_log: Optional[EventLogger] = None):
        super().__init__(event_log)
        if time_quantum <= 0:
            raise InvalidConfigurationError(f"time quantum must be positive, got {time_quantum}")
        self.time_quantum = time_quantum

    def _run(self, pending: Deque[Process]) -> None:
        ready = ReadyQueue()
        while pending or not ready.is_empty():
            self.admit_arrivals(pending, ready)
            if ready.is_empty():
                self.idle_until_next_arrival(pending)
                continue

            process = ready.pop()
            self.dispatch(process)
            self.execute(process, min(self.time_quantum, process.remaining_time))

            # Arrivals during (or exactly at the end of) the slice queue ahead of it
            self.admit_arrivals(pending, ready)
            if process.remaining_time <= 0:
                self.finish(process)
            else:
                self.requeue(process, ready, "preempt")


@dataclass
class FeedbackLevel:
    """One enabled MLFQ priority level and its FIFO queue."""
    level: int
    quantum: int
    queue: ReadyQueue = field(default_factory=ReadyQueue)


class MLFQScheduler(BaseScheduler):
    """Multilevel Feedback Queue scheduler.

    Levels whose quantum is 0 are disabled: they never hold a process and are
    skipped as demotion targets. New arrivals enter the highest enabled level;
    a process that uses its whole quantum without finishing moves down one
    enabled level, staying put once it reaches the lowest one.
    """

    name = "mlfq"

    def __init__(self, quantums: Sequence[int] = DEFAULT_MLFQ_QUANTUMS, event_log: Optional[EventLogger] = None):
        super().__init__(event_log)
        self.quantums = tuple(quantums)
        self.levels: List[FeedbackLevel] = []
        # logical level number -> index into self.levels
        self.level_index: Dict[int, int] = {}
        self._build_levels()

    def _build_levels(self) -> None:
        self.levels = [FeedbackLevel(level, quantum) for level, quantum in enumerate(self.quantums) if quantum > 0]
        if not self.levels:
            raise InvalidConfigurationError("MLFQ needs at least one queue with a non-zero time quantum")
        self.level_index = {lvl.level: i for i, lvl in enumerate(self.levels)}

    def _highest_ready_level(self) -> Optional[FeedbackLevel]:
        for lvl in self.levels:
            if not lvl.queue.is_empty():
                return lvl
        return None

    def demotion_target(self, level: int) -> FeedbackLevel:
        """Next enabled level below the given one, clamped to the lowest."""
        idx = self.level_index[level]
        return self.levels[min(idx + 1, len(self.levels) - 1)]

    def _run(self, pending: Deque[Process]) -> None:
        self._build_levels()
        top = self.levels[0]

        while pending or self._highest_ready_level() is not None:
            self.admit_arrivals(pending, top.queue, top.level)

            current_level = self._highest_ready_level()
            if current_level is None:
                if not pending:
                    break
                self.idle_until_next_arrival(pending)
                continue

            process = current_level.queue.pop()
            self.dispatch(process, current_level.level)
            self.execute(process, min(current_level.quantum, process.remaining_time), current_level.level)

            self.admit_arrivals(pending, top.queue, top.level)
            if process.remaining_time <= 0:
                self.finish(process)
                continue

            target = self.demotion_target(current_level.level)
            process.queue_level = target.level
            event = "demote" if target is not current_level else "requeue"
            self.requeue(process, target.queue, event, target.level)
            logger.debug("t=%d: %s moved to Q%d", self.current_time, process.pid, target.level)
