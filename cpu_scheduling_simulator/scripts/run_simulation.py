from __future__ import annotations

import argparse
import logging
import os
import random
import sys
from typing import List, Optional, Sequence

# Ensure repo root is on sys.path when running as a script
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, os.pardir, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from cpu_scheduling_simulator.backend.exceptions import SchedulerError
from cpu_scheduling_simulator.backend.orchestrator import SimulationOrchestrator, describe_algorithm
from cpu_scheduling_simulator.backend.simulator import Scheduler, SimulationConfig, SimulationResult
from cpu_scheduling_simulator.backend.visualizer import plot_gantt


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="CPU Scheduling Simulator")
    p.add_argument("--algorithm", choices=list(Scheduler.ALL), default=Scheduler.FCFS)
    p.add_argument("--quantum", type=int, default=2, help="Round Robin time quantum")
    p.add_argument("--mlfq", type=int, nargs=4, default=[2, 4, 8, 16], metavar="Q",
                   help="MLFQ time quantums for queues 0-3 (0 disables a queue)")
    p.add_argument("--random", type=int, default=0, metavar="N",
                   help="Use N random processes instead of the sample workload")
    p.add_argument("--seed", type=int, default=42)
    p.add_argument("--out", type=str, default=None, help="Save a Gantt chart image to this path")
    p.add_argument("--export", type=str, default=None, help="Base path for JSON/CSV logs")
    p.add_argument("--verbose", action="store_true")
    return p.parse_args(argv)


def generate_workload(orchestrator: SimulationOrchestrator, n: int, seed: int) -> None:
    rng = random.Random(seed)
    for _ in range(n):
        orchestrator.add_process(rng.randint(0, 9), rng.randint(1, 10))


def print_report(result: SimulationResult) -> None:
    print("--- Timeline ---")
    for e in result.timeline:
        level = f" [Q{e.queue_level}]" if e.queue_level is not None else ""
        print(f"{e.start:>4} - {e.end:<4} : {e.pid}{level}")

    print("\n--- Per-process metrics ---")
    for m in result.metrics.processes:
        print(f"{m.pid}: arrival={m.arrival_time}, burst={m.burst_time}, waiting={m.waiting_time}, "
              f"turnaround={m.turnaround_time}, response={m.response_time}, finish={m.finish_time}")

    print(f"\nAvg waiting: {result.avg_waiting_time:.2f}, Avg turnaround: {result.avg_turnaround_time:.2f}, "
          f"Avg response: {result.avg_response_time:.2f}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    config = SimulationConfig(args.algorithm, args.quantum, tuple(args.mlfq))
    orchestrator = SimulationOrchestrator(config)
    if args.random > 0:
        generate_workload(orchestrator, args.random, args.seed)
    else:
        orchestrator.load_sample_processes()

    try:
        result = orchestrator.run()
    except SchedulerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    title, _ = describe_algorithm(config)
    print(title)
    print_report(result)

    if args.out:
        plot_gantt(result.processes, result.logger, args.out, title=title)
        print(f"Saved plot to {args.out}")
    if args.export:
        result.logger.export_json(f"{args.export}.json", report=result.metrics)
        result.logger.export_csv(args.export, report=result.metrics)
        print(f"Logs written to {args.export}.json and {args.export}_*.csv")
    return 0 if result.consistent else 1


if __name__ == "__main__":
    sys.exit(main())
