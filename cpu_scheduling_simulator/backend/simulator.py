from __future__ import annotations

from typing import List, Optional, Dict, Any, Sequence, Tuple
from dataclasses import dataclass, field
import logging

from .core import Process, TraceEvent
from .exceptions import EmptyInputError, InvalidConfigurationError, InvalidProcessError
from .schedulers import (
    BaseScheduler, FCFSScheduler, SJFScheduler, SRTFScheduler,
    RoundRobinScheduler, MLFQScheduler,
    DEFAULT_TIME_QUANTUM, DEFAULT_MLFQ_QUANTUMS,
)
from .utils import EventLogger, MetricsReport, calculate_metrics

logger = logging.getLogger(__name__)

MLFQ_LEVELS = 4


class Scheduler:
    FCFS = "fcfs"
    SJF = "sjf"     # non-preemptive
    SRTF = "srtf"   # preemptive SJF
    RR = "rr"
    MLFQ = "mlfq"

    ALL = (FCFS, SJF, SRTF, RR, MLFQ)


@dataclass
class SimulationConfig:
    algorithm: str = Scheduler.FCFS
    time_quantum: int = DEFAULT_TIME_QUANTUM
    mlfq_quantums: Tuple[int, ...] = DEFAULT_MLFQ_QUANTUMS

    def __post_init__(self) -> None:
        if isinstance(self.algorithm, str):
            self.algorithm = self.algorithm.strip().lower()
        self.mlfq_quantums = tuple(self.mlfq_quantums)

    def validate(self) -> None:
        """Raise InvalidConfigurationError if the selected algorithm cannot run."""
        if self.algorithm not in Scheduler.ALL:
            raise InvalidConfigurationError(
                f"unknown algorithm {self.algorithm!r}; expected one of {', '.join(Scheduler.ALL)}"
            )
        if self.algorithm == Scheduler.RR:
            q = self.time_quantum
            if not isinstance(q, int) or isinstance(q, bool) or q <= 0:
                raise InvalidConfigurationError(f"Round Robin time quantum must be a positive integer, got {q!r}")
        if self.algorithm == Scheduler.MLFQ:
            ladder = self.mlfq_quantums
            if len(ladder) != MLFQ_LEVELS:
                raise InvalidConfigurationError(f"MLFQ needs exactly {MLFQ_LEVELS} quantums, got {len(ladder)}")
            for q in ladder:
                if not isinstance(q, int) or isinstance(q, bool) or q < 0:
                    raise InvalidConfigurationError(f"MLFQ quantums must be non-negative integers, got {q!r}")
            if not any(q > 0 for q in ladder):
                raise InvalidConfigurationError("MLFQ requires at least one queue with a non-zero time quantum")

    def active_levels(self) -> List[Tuple[int, int]]:
        """(level, quantum) for each enabled MLFQ level, highest priority first."""
        return [(level, q) for level, q in enumerate(self.mlfq_quantums) if q > 0]


@dataclass
class SimulationResult:
    algorithm: str
    config: SimulationConfig
    processes: List[Process]
    timeline: List[TraceEvent]
    metrics: MetricsReport
    logger: EventLogger
    diagnostics: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def avg_waiting_time(self) -> float:
        return self.metrics.avg_waiting_time

    @property
    def avg_turnaround_time(self) -> float:
        return self.metrics.avg_turnaround_time

    @property
    def avg_response_time(self) -> float:
        return self.metrics.avg_response_time

    @property
    def total_time(self) -> int:
        return self.metrics.total_time

    @property
    def consistent(self) -> bool:
        return not self.diagnostics


def build_scheduler(config: SimulationConfig, event_log: Optional[EventLogger] = None) -> BaseScheduler:
    """Instantiate the scheduler selected by a validated configuration."""
    if config.algorithm == Scheduler.FCFS:
        return FCFSScheduler(event_log)
    if config.algorithm == Scheduler.SJF:
        return SJFScheduler(event_log)
    if config.algorithm == Scheduler.SRTF:
        return SRTFScheduler(event_log)
    if config.algorithm == Scheduler.RR:
        return RoundRobinScheduler(config.time_quantum, event_log)
    if config.algorithm == Scheduler.MLFQ:
        return MLFQScheduler(config.mlfq_quantums, event_log)
    raise InvalidConfigurationError(f"unknown algorithm {config.algorithm!r}")


def verify_trace(event_log: EventLogger, completed: List[Process],
                 submitted: Optional[Sequence[Process]] = None) -> List[Dict[str, Any]]:
    """Check the timeline against the processes it claims to have run.

    Every mismatch is recorded on the event log and logged as a warning; none
    of them stops the caller from using the results.
    """
    issues: List[Dict[str, Any]] = []

    def report(kind: str, message: str, **details: Any) -> None:
        issues.append(event_log.log_diagnostic(kind, message, **details))
        logger.warning(message)

    previous_end: Optional[int] = None
    for event in event_log.timeline:
        if event.end <= event.start:
            report("empty_slice", f"{event.pid}: slice {event.start}-{event.end} has no positive length",
                   pid=event.pid)
        if previous_end is not None and event.start < previous_end:
            report("overlap", f"{event.pid}: slice starting at {event.start} overlaps previous slice ending at {previous_end}",
                   pid=event.pid, expected=previous_end, actual=event.start)
        previous_end = event.end

    for process in completed:
        executed = event_log.executed_time(process.pid)
        if executed != process.burst_time:
            report("process_time_mismatch",
                   f"Process {process.pid} executed for {executed} but has burst time of {process.burst_time}",
                   pid=process.pid, expected=process.burst_time, actual=executed)
        if process.remaining_time != 0:
            report("remaining_time", f"Process {process.pid} finished with remaining time {process.remaining_time}",
                   pid=process.pid, expected=0, actual=process.remaining_time)

    if submitted is not None and len(completed) != len(submitted):
        done = {p.pid for p in completed}
        missing = [p.pid for p in submitted if p.pid not in done]
        report("incomplete", f"{len(missing)} process(es) never completed: {', '.join(missing)}",
               expected=len(submitted), actual=len(completed))

    total_burst = sum(p.burst_time for p in (submitted if submitted is not None else completed))
    total_executed = event_log.executed_time()
    if total_burst != total_executed:
        report("total_time_mismatch",
               f"Total burst time ({total_burst}) does not match total executed time ({total_executed})",
               expected=total_burst, actual=total_executed)
    return issues


def simulate(
    processes: Sequence[Process],
    config: Optional[SimulationConfig] = None,
) -> SimulationResult:
    """Run one simulation over clones of the given processes.

    The caller's Process objects are never modified. Raises EmptyInputError for
    an empty list, InvalidProcessError for repeated ids and
    InvalidConfigurationError for unusable parameters, all before any
    scheduling happens.
    """
    if not processes:
        raise EmptyInputError("add at least one process before running a simulation")
    seen = set()
    for p in processes:
        if p.pid in seen:
            raise InvalidProcessError(f"duplicate process id {p.pid!r}")
        seen.add(p.pid)
    config = config or SimulationConfig()
    config.validate()

    event_log = EventLogger()
    snapshot = [p.clone() for p in processes]
    for p in snapshot:
        p.reset()
    # sorted() is stable: equal arrivals keep their input order
    ordered = sorted(snapshot, key=lambda p: p.arrival_time)

    scheduler = build_scheduler(config, event_log)
    completed = scheduler.run(ordered)

    diagnostics = verify_trace(event_log, completed, submitted=snapshot)
    metrics = calculate_metrics(completed)
    logger.info(
        "%s finished at t=%d: avg waiting %.2f, avg turnaround %.2f, avg response %.2f",
        config.algorithm, metrics.total_time, metrics.avg_waiting_time,
        metrics.avg_turnaround_time, metrics.avg_response_time,
    )

    return SimulationResult(
        algorithm=config.algorithm,
        config=config,
        processes=completed,
        timeline=list(event_log.timeline),
        metrics=metrics,
        logger=event_log,
        diagnostics=diagnostics,
    )
