import json
import os

import pytest

from cpu_scheduling_simulator.backend.manual_terminal import ManualTerminal
from cpu_scheduling_simulator.backend.simulator import Scheduler


@pytest.fixture
def terminal():
    term = ManualTerminal()
    term.handle_command("sample")
    return term


def test_add_list_and_remove(capsys):
    term = ManualTerminal()
    term.handle_command("add 0 4")
    term.handle_command("add 2 3")
    term.handle_command("remove P1")
    term.handle_command("list")
    out = capsys.readouterr().out
    assert "Process P1 added: arrival=0, burst=4" in out
    assert "Process P1 removed" in out
    assert "P2: arrival=2, burst=3" in out
    assert "Next id: P3" in out


def test_invalid_input_reports_errors(capsys):
    term = ManualTerminal()
    term.handle_command("add 0 zero")
    term.handle_command("add 0 0")
    term.handle_command("remove P7")
    term.handle_command("frobnicate")
    out = capsys.readouterr().out
    assert "Invalid numeric values" in out
    assert "burst time must be an integer > 0" in out
    assert "Error:" in out
    assert "Unknown command" in out
    assert term.orchestrator.processes() == []


def test_edit_command(terminal, capsys):
    terminal.handle_command("edit P2 burst 6")
    terminal.handle_command("edit P2 pid 9")
    out = capsys.readouterr().out
    assert "Process P2 updated: burst_time=6" in out
    assert "cannot be edited" in out
    assert terminal.orchestrator.get_process("P2").burst_time == 6


def test_configure_and_run_mlfq(terminal, capsys):
    terminal.handle_command("algo mlfq")
    terminal.handle_command("mlfq 2 0 4 0")
    terminal.handle_command("run")
    terminal.handle_command("stats")
    out = capsys.readouterr().out
    assert "Multilevel Feedback Queue (MLFQ)" in out
    assert "(Q0)" in out and "(Q2)" in out
    assert "(Q1)" not in out
    assert "Simulation finished." in out
    assert "Avg waiting time:" in out
    assert terminal.orchestrator.config.algorithm == Scheduler.MLFQ


def test_invalid_mlfq_ladder_reports_error(terminal, capsys):
    terminal.handle_command("algo mlfq")
    terminal.handle_command("mlfq 0 0 0 0")
    terminal.handle_command("run")
    out = capsys.readouterr().out
    assert "at least one queue" in out
    assert terminal.orchestrator.last_result is None


def test_stats_before_run(capsys):
    ManualTerminal().handle_command("stats")
    assert "No simulation yet" in capsys.readouterr().out


def test_exit_raises_system_exit():
    with pytest.raises(SystemExit):
        ManualTerminal().handle_command("quit")


def test_run_and_export(terminal, tmp_path, capsys):
    terminal.handle_command("algo rr")
    terminal.handle_command("quantum 3")
    terminal.handle_command("run")
    base = str(tmp_path / "logs" / "rr")
    terminal.handle_command(f"export {base}")

    with open(f"{base}.json", encoding="utf-8") as f:
        data = json.load(f)
    assert data["timeline"][0] == {"pid": "P1", "start": 0, "end": 3, "queue_level": None}
    assert data["metrics"]["avg_waiting_time"] == terminal.orchestrator.last_result.avg_waiting_time
    assert data["diagnostics"] == []
    for suffix in ("_timeline.csv", "_events.csv", "_metrics.csv"):
        assert os.path.exists(base + suffix)
