from __future__ import annotations

import shlex
from typing import List, Optional
from colorama import Fore, Style, init as colorama_init

from .exceptions import SchedulerError
from .orchestrator import SimulationOrchestrator
from .simulator import Scheduler
from .visualizer import plot_gantt


class ManualTerminal:
    def __init__(self, orchestrator: Optional[SimulationOrchestrator] = None) -> None:
        self.orchestrator = orchestrator or SimulationOrchestrator()

    def prompt(self) -> None:
        colorama_init(autoreset=True)
        print(Fore.CYAN + "CPU Scheduling Terminal. Type 'help' for commands.")
        while True:
            try:
                raw = input(Fore.GREEN + "> ")
            except (EOFError, KeyboardInterrupt):
                print()
                break
            if not raw.strip():
                continue
            try:
                self.handle_command(raw)
            except SystemExit:
                break

    def handle_command(self, raw: str) -> None:
        try:
            parts = shlex.split(raw)
        except ValueError as e:
            print(Fore.RED + f"Parse error: {e}")
            return
        if not parts:
            return
        cmd, *args = parts
        cmd = cmd.lower()
        handlers = {
            "help": self._help,
            "add": self._add,
            "remove": self._remove,
            "edit": self._edit,
            "list": self._list,
            "clear": self._clear,
            "sample": self._sample,
            "algo": self._algo,
            "quantum": self._quantum,
            "mlfq": self._mlfq,
            "run": self._run,
            "stats": self._stats,
            "export": self._export,
        }
        if cmd in ("exit", "quit"):
            raise SystemExit(0)
        handler = handlers.get(cmd)
        if handler is None:
            print(Fore.YELLOW + "Unknown command. Type 'help'.")
            return
        try:
            handler(args)
        except SchedulerError as e:
            print(Fore.RED + f"Error: {e}")

    def _help(self, args: List[str]) -> None:
        print("Commands:")
        print("  add <arrival> <burst>")
        print("  remove <pid>")
        print("  edit <pid> arrival|burst <value>")
        print("  list")
        print("  clear")
        print("  sample")
        print(f"  algo {'|'.join(Scheduler.ALL)}")
        print("  quantum <q>")
        print("  mlfq <q0> <q1> <q2> <q3>")
        print("  run [--out path]")
        print("  stats")
        print("  export <base path>")
        print("  exit")

    def _add(self, args: List[str]) -> None:
        if len(args) != 2:
            print(Fore.RED + "Usage: add <arrival> <burst>")
            return
        try:
            arrival = int(args[0])
            burst = int(args[1])
        except ValueError:
            print(Fore.RED + "Invalid numeric values")
            return
        p = self.orchestrator.add_process(arrival, burst)
        print(Fore.CYAN + f"Process {p.pid} added: arrival={p.arrival_time}, burst={p.burst_time}")

    def _remove(self, args: List[str]) -> None:
        if len(args) != 1:
            print(Fore.RED + "Usage: remove <pid>")
            return
        p = self.orchestrator.remove_process(args[0])
        print(Fore.CYAN + f"Process {p.pid} removed")

    def _edit(self, args: List[str]) -> None:
        if len(args) != 3:
            print(Fore.RED + "Usage: edit <pid> arrival|burst <value>")
            return
        pid, field_name, raw_value = args
        field_name = {"arrival": "arrival_time", "burst": "burst_time"}.get(field_name, field_name)
        try:
            value = int(raw_value)
        except ValueError:
            print(Fore.RED + "Invalid numeric value")
            return
        if self.orchestrator.update_process(pid, field_name, value):
            print(Fore.CYAN + f"Process {pid} updated: {field_name}={value}")
        else:
            print(Fore.YELLOW + f"Field {field_name!r} cannot be edited")

    def _list(self, args: List[str]) -> None:
        procs = self.orchestrator.processes()
        if not procs:
            print("No processes yet")
            return
        for p in procs:
            print(f"{p.pid}: arrival={p.arrival_time}, burst={p.burst_time}")
        print(f"Next id: {self.orchestrator.next_process_id()}")

    def _clear(self, args: List[str]) -> None:
        self.orchestrator.clear_processes()
        print(Fore.CYAN + "All processes cleared")

    def _sample(self, args: List[str]) -> None:
        added = self.orchestrator.load_sample_processes()
        print(Fore.CYAN + f"Added {len(added)} sample processes")

    def _algo(self, args: List[str]) -> None:
        if args:
            self.orchestrator.set_algorithm(args[0])
        title, text = self.orchestrator.describe()
        print(Style.BRIGHT + title)
        print(text)

    def _quantum(self, args: List[str]) -> None:
        try:
            quantum = int(args[0])
        except (IndexError, ValueError):
            print(Fore.RED + "Usage: quantum <q>")
            return
        self.orchestrator.set_time_quantum(quantum)
        print(Fore.CYAN + f"Time quantum set to {quantum}")

    def _mlfq(self, args: List[str]) -> None:
        try:
            quantums = [int(a) for a in args]
        except ValueError:
            quantums = []
        if len(quantums) != 4:
            print(Fore.RED + "Usage: mlfq <q0> <q1> <q2> <q3>")
            return
        self.orchestrator.set_mlfq_quantums(quantums)
        print(Fore.CYAN + f"MLFQ quantums set to {quantums}")

    def _run(self, args: List[str]) -> None:
        out_path: Optional[str] = None
        it = iter(args)
        for token in it:
            if token == "--out":
                out_path = next(it, None)

        result = self.orchestrator.run()
        for e in result.timeline:
            level = f" (Q{e.queue_level})" if e.queue_level is not None else ""
            print(f"{e.start:>4} - {e.end:<4} : {e.pid}{level}")
        print(Style.BRIGHT + f"Simulation finished. Avg waiting: {result.avg_waiting_time:.2f}, "
              f"Avg turnaround: {result.avg_turnaround_time:.2f}, Avg response: {result.avg_response_time:.2f}")
        for issue in result.diagnostics:
            print(Fore.YELLOW + f"Warning: {issue['message']}")
        if out_path:
            plot_gantt(result.processes, result.logger, out_path, title=result.algorithm.upper())
            print(Fore.CYAN + f"Saved plot to {out_path}")

    def _stats(self, args: List[str]) -> None:
        r = self.orchestrator.last_result
        if not r:
            print("No simulation yet")
            return
        print(f"{'PID':<6}{'Arrival':>8}{'Burst':>7}{'Waiting':>9}{'Turnaround':>12}{'Response':>10}{'Finish':>8}")
        for m in r.metrics.processes:
            print(f"{m.pid:<6}{m.arrival_time:>8}{m.burst_time:>7}{m.waiting_time:>9}"
                  f"{m.turnaround_time:>12}{m.response_time:>10}{m.finish_time:>8}")
        print(f"Avg waiting time: {r.avg_waiting_time:.2f}")
        print(f"Avg turnaround time: {r.avg_turnaround_time:.2f}")
        print(f"Avg response time: {r.avg_response_time:.2f}")
        print(f"CPU utilization: {r.metrics.cpu_utilization:.2f}%")

    def _export(self, args: List[str]) -> None:
        r = self.orchestrator.last_result
        if not r:
            print("No simulation yet")
            return
        if len(args) != 1:
            print(Fore.RED + "Usage: export <base path>")
            return
        base = args[0]
        r.logger.export_json(f"{base}.json", report=r.metrics)
        r.logger.export_csv(base, report=r.metrics)
        print(Fore.CYAN + f"Logs written to {base}.json and {base}_*.csv")


def main() -> None:
    ManualTerminal().prompt()


if __name__ == "__main__":
    main()
