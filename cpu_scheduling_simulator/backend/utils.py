from __future__ import annotations

from dataclasses import dataclass, asdict, fields
from typing import List, Dict, Optional, Any
import json
import csv
import os

from .core import Process, TraceEvent, pid_sort_key
from .exceptions import EmptyInputError


class EventLogger:
    """Structured sink for one run: the Gantt timeline, process events and diagnostics."""

    def __init__(self) -> None:
        self.timeline: List[TraceEvent] = []
        self.process_events: List[Dict[str, Any]] = []
        self.diagnostics: List[Dict[str, Any]] = []

    def log_timeline_slice(self, pid: str, start: int, end: int, queue_level: Optional[int] = None) -> TraceEvent:
        event = TraceEvent(pid=pid, start=start, end=end, queue_level=queue_level)
        self.timeline.append(event)
        return event

    def log_process_event(self, time_s: int, pid: str, event: str, level: Optional[int] = None) -> None:
        entry: Dict[str, Any] = {"time": time_s, "pid": pid, "event": event}
        if level is not None:
            entry["level"] = level
        self.process_events.append(entry)

    def log_diagnostic(self, kind: str, message: str, pid: Optional[str] = None,
                       expected: Optional[int] = None, actual: Optional[int] = None) -> Dict[str, Any]:
        entry = {
            "kind": kind,
            "pid": pid,
            "expected": expected,
            "actual": actual,
            "message": message,
        }
        self.diagnostics.append(entry)
        return entry

    def executed_time(self, pid: Optional[str] = None) -> int:
        """Total CPU time in the timeline, optionally for one process."""
        return sum(e.duration for e in self.timeline if pid is None or e.pid == pid)

    def export_json(self, path: str, report: Optional[MetricsReport] = None) -> None:
        data: Dict[str, Any] = {
            "timeline": [asdict(e) for e in self.timeline],
            "process_events": self.process_events,
            "diagnostics": self.diagnostics,
        }
        if report is not None:
            data["metrics"] = report.to_dict()
        _ensure_parent(path)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def export_csv(self, base_path_no_ext: str, report: Optional[MetricsReport] = None) -> None:
        _ensure_parent(base_path_no_ext)
        with open(f"{base_path_no_ext}_timeline.csv", "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=["pid", "start", "end", "queue_level"])
            writer.writeheader()
            for event in self.timeline:
                writer.writerow(asdict(event))
        with open(f"{base_path_no_ext}_events.csv", "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=["time", "pid", "event", "level"])
            writer.writeheader()
            for row in self.process_events:
                writer.writerow(row)
        if report is not None:
            with open(f"{base_path_no_ext}_metrics.csv", "w", newline="", encoding="utf-8") as f:
                writer = csv.DictWriter(f, fieldnames=[fld.name for fld in fields(ProcessMetrics)])
                writer.writeheader()
                for row in report.processes:
                    writer.writerow(asdict(row))


def _ensure_parent(path: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


@dataclass
class ProcessMetrics:
    pid: str
    arrival_time: int
    burst_time: int
    finish_time: int
    waiting_time: int
    turnaround_time: int
    response_time: int


@dataclass
class MetricsReport:
    """Per-process rows plus the averages reported to the user."""
    processes: List[ProcessMetrics]
    avg_waiting_time: float
    avg_turnaround_time: float
    avg_response_time: float
    total_time: int
    cpu_utilization: float
    throughput: float

    def get(self, pid: str) -> ProcessMetrics:
        for row in self.processes:
            if row.pid == pid:
                return row
        raise KeyError(pid)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def compute_waiting_times(processes: List[Process]) -> Dict[str, int]:
    waiting: Dict[str, int] = {}
    for p in processes:
        if p.finish_time is None:
            continue
        waiting[p.pid] = p.finish_time - p.arrival_time - p.burst_time
    return waiting


def compute_turnaround_times(processes: List[Process]) -> Dict[str, int]:
    tat: Dict[str, int] = {}
    for p in processes:
        if p.finish_time is None:
            continue
        tat[p.pid] = p.finish_time - p.arrival_time
    return tat


def compute_avg(values: List[float]) -> float:
    if not values:
        raise EmptyInputError("cannot average an empty set of values")
    return round(sum(values) / len(values), 2)


def compute_throughput(processes: List[Process], total_time: float) -> float:
    if total_time <= 0:
        return 0.0
    completed = len([p for p in processes if p.finish_time is not None])
    return completed / total_time


def compute_cpu_utilization(processes: List[Process], total_time: int) -> float:
    """Percentage of [first arrival, total_time] during which some process executed."""
    if not processes:
        return 0.0
    span = total_time - min(p.arrival_time for p in processes)
    if span <= 0:
        return 0.0
    busy = sum(p.burst_time for p in processes if p.finish_time is not None)
    return busy / span * 100


def calculate_metrics(completed: List[Process]) -> MetricsReport:
    """Derive waiting/turnaround/response statistics from completed processes.

    Writes waiting_time and turnaround_time back onto each process. Rows are
    ordered by numeric process id; averages are rounded to 2 decimals.
    """
    if not completed:
        raise EmptyInputError("no completed processes to compute metrics for")
    unfinished = [p.pid for p in completed if p.finish_time is None]
    if unfinished:
        raise ValueError(f"processes have no finish time: {', '.join(unfinished)}")
    never_dispatched = [p.pid for p in completed if p.response_time is None]
    if never_dispatched:
        raise ValueError(f"processes have no response time: {', '.join(never_dispatched)}")

    waiting_times = compute_waiting_times(completed)
    turnaround_times = compute_turnaround_times(completed)
    rows: List[ProcessMetrics] = []
    for p in sorted(completed, key=lambda p: pid_sort_key(p.pid)):
        p.waiting_time = waiting_times[p.pid]
        p.turnaround_time = turnaround_times[p.pid]
        rows.append(ProcessMetrics(
            pid=p.pid,
            arrival_time=p.arrival_time,
            burst_time=p.burst_time,
            finish_time=p.finish_time,
            waiting_time=p.waiting_time,
            turnaround_time=p.turnaround_time,
            response_time=p.response_time,
        ))

    total_time = max(p.finish_time for p in completed)
    return MetricsReport(
        processes=rows,
        avg_waiting_time=compute_avg([r.waiting_time for r in rows]),
        avg_turnaround_time=compute_avg([r.turnaround_time for r in rows]),
        avg_response_time=compute_avg([r.response_time for r in rows]),
        total_time=total_time,
        cpu_utilization=round(compute_cpu_utilization(completed, total_time), 2),
        throughput=round(compute_throughput(completed, total_time), 4),
    )
