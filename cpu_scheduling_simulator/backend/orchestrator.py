from __future__ import annotations

from typing import List, Optional, Sequence, Tuple
import logging

from .core import Process, ProcessIdGenerator, pid_sort_key, validate_process_fields
from .exceptions import InvalidConfigurationError, ProcessNotFoundError
from .simulator import SimulationConfig, SimulationResult, Scheduler, simulate

logger = logging.getLogger(__name__)

SAMPLE_PROCESSES: Tuple[Tuple[int, int], ...] = ((0, 5), (1, 3), (2, 8), (3, 2), (4, 9))

ALGORITHM_INFO = {
    Scheduler.FCFS: (
        "First-In First-Out (FIFO / FCFS)",
        "Processes are executed in the order they arrive in the ready queue. Simple but can "
        "lead to the convoy effect where short processes wait for long ones.",
    ),
    Scheduler.SJF: (
        "Shortest Job First (SJF) - Non-Preemptive",
        "Selects the process with the smallest burst time from the ready queue. Once a process "
        "starts executing, it runs to completion.",
    ),
    Scheduler.SRTF: (
        "Shortest Remaining Time First (SRTF) - Preemptive",
        "Preemptive version of SJF. If a new process arrives with a burst time less than the "
        "remaining time of the current process, the current process is preempted.",
    ),
    Scheduler.RR: (
        "Round Robin (RR)",
        "Each process is assigned a fixed time slice (time quantum). After this time has elapsed, "
        "the process is preempted and added to the end of the ready queue.",
    ),
    Scheduler.MLFQ: (
        "Multilevel Feedback Queue (MLFQ)",
        "Uses multiple levels of queues with different priorities. Processes start in the highest "
        "priority queue and move to lower priority queues if they use their full time quantum.",
    ),
}


def describe_algorithm(config: SimulationConfig) -> Tuple[str, str]:
    """Return (title, description) for the configured algorithm."""
    if config.algorithm not in ALGORITHM_INFO:
        raise InvalidConfigurationError(f"unknown algorithm {config.algorithm!r}")
    title, text = ALGORITHM_INFO[config.algorithm]
    if config.algorithm == Scheduler.RR:
        text += f" Time quantum = {config.time_quantum}."
    elif config.algorithm == Scheduler.MLFQ:
        active = config.active_levels()
        if not active:
            text += "\nWarning: no active queues defined. Set at least one queue with a non-zero time quantum."
        for i, (level, quantum) in enumerate(active):
            if i == 0:
                role = "Highest"
            elif i == len(active) - 1:
                role = "Lowest"
            else:
                role = "Medium"
            text += f"\n  Queue {level}: {role} priority, Time Quantum = {quantum}"
    return title, text


class SimulationOrchestrator:
    """Owns the process list, the id generator and the selected configuration.

    Every ``run`` simulates clones of the registered processes, so the list can
    be edited between runs and repeated runs are independent.
    """

    def __init__(self, config: Optional[SimulationConfig] = None):
        self.config = config or SimulationConfig()
        self.id_generator = ProcessIdGenerator()
        self._processes: List[Process] = []
        self.last_result: Optional[SimulationResult] = None

    def processes(self) -> List[Process]:
        """Registered processes sorted by numeric id."""
        return sorted(self._processes, key=lambda p: pid_sort_key(p.pid))

    def next_process_id(self) -> str:
        return self.id_generator.peek()

    def add_process(self, arrival_time: int, burst_time: int) -> Process:
        # a rejected process must not consume an id
        validate_process_fields(self.id_generator.peek(), arrival_time, burst_time)
        process = Process(self.id_generator.next_id(), arrival_time, burst_time)
        self._processes.append(process)
        logger.debug("added %s (arrival=%d, burst=%d)", process.pid, arrival_time, burst_time)
        return process

    def load_sample_processes(self) -> List[Process]:
        return [self.add_process(arrival, burst) for arrival, burst in SAMPLE_PROCESSES]

    def get_process(self, pid: str) -> Process:
        for process in self._processes:
            if process.pid == pid:
                return process
        raise ProcessNotFoundError(pid)

    def remove_process(self, pid: str) -> Process:
        process = self.get_process(pid)
        self._processes.remove(process)
        return process

    def update_process(self, pid: str, field_name: str, value: int) -> bool:
        """Edit a process's arrival or burst time. Ids are not editable.

        Returns False for fields that cannot be edited; invalid values raise
        InvalidProcessError and leave the process unchanged.
        """
        process = self.get_process(pid)
        if field_name == "arrival_time":
            validate_process_fields(pid, value, process.burst_time)
            process.arrival_time = value
        elif field_name == "burst_time":
            validate_process_fields(pid, process.arrival_time, value)
            process.burst_time = value
            process.remaining_time = value
        else:
            return False
        return True

    def clear_processes(self) -> None:
        """Remove every process and restart numbering at P1."""
        self._processes = []
        self.id_generator.reset()
        self.last_result = None

    def set_algorithm(self, algorithm: str) -> None:
        candidate = SimulationConfig(algorithm, self.config.time_quantum, self.config.mlfq_quantums)
        if candidate.algorithm not in Scheduler.ALL:
            raise InvalidConfigurationError(f"unknown algorithm {algorithm!r}")
        self.config = candidate

    def set_time_quantum(self, quantum: int) -> None:
        self.config = SimulationConfig(self.config.algorithm, quantum, self.config.mlfq_quantums)

    def set_mlfq_quantums(self, quantums: Sequence[int]) -> None:
        self.config = SimulationConfig(self.config.algorithm, self.config.time_quantum, tuple(quantums))

    def describe(self) -> Tuple[str, str]:
        return describe_algorithm(self.config)

    def run(self) -> SimulationResult:
        """Simulate the registered processes under the current configuration."""
        result = simulate(self._processes, self.config)
        self.last_result = result
        return result
