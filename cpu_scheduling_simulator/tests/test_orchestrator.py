from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from cpu_scheduling_simulator.backend.exceptions import (
    EmptyInputError, InvalidConfigurationError, InvalidProcessError, ProcessNotFoundError,
)
from cpu_scheduling_simulator.backend.orchestrator import SimulationOrchestrator, describe_algorithm
from cpu_scheduling_simulator.backend.simulator import Scheduler, SimulationConfig, simulate


@pytest.fixture
def orchestrator():
    orch = SimulationOrchestrator()
    orch.load_sample_processes()
    return orch


def test_sample_processes_get_sequential_ids(orchestrator):
    procs = orchestrator.processes()
    assert [(p.pid, p.arrival_time, p.burst_time) for p in procs] == [
        ("P1", 0, 5), ("P2", 1, 3), ("P3", 2, 8), ("P4", 3, 2), ("P5", 4, 9),
    ]
    assert orchestrator.next_process_id() == "P6"


def test_ids_are_not_reused_after_removal(orchestrator):
    orchestrator.remove_process("P5")
    p = orchestrator.add_process(0, 1)
    assert p.pid == "P6"


def test_rejected_process_does_not_consume_an_id(orchestrator):
    with pytest.raises(InvalidProcessError):
        orchestrator.add_process(-1, 3)
    with pytest.raises(InvalidProcessError):
        orchestrator.add_process(0, 0)
    assert orchestrator.add_process(0, 1).pid == "P6"


def test_clear_restarts_numbering(orchestrator):
    orchestrator.run()
    orchestrator.clear_processes()
    assert orchestrator.processes() == []
    assert orchestrator.last_result is None
    assert orchestrator.add_process(1, 1).pid == "P1"


def test_remove_unknown_process(orchestrator):
    with pytest.raises(ProcessNotFoundError):
        orchestrator.remove_process("P42")


def test_update_process(orchestrator):
    assert orchestrator.update_process("P2", "burst_time", 6)
    assert orchestrator.update_process("P2", "arrival_time", 7)
    p2 = orchestrator.get_process("P2")
    assert (p2.arrival_time, p2.burst_time, p2.remaining_time) == (7, 6, 6)


def test_update_process_rejects_id_and_bad_values(orchestrator):
    assert orchestrator.update_process("P1", "pid", "P9") is False
    with pytest.raises(InvalidProcessError):
        orchestrator.update_process("P1", "burst_time", 0)
    with pytest.raises(InvalidProcessError):
        orchestrator.update_process("P1", "arrival_time", -2)
    p1 = orchestrator.get_process("P1")
    assert (p1.pid, p1.arrival_time, p1.burst_time) == ("P1", 0, 5)


def test_run_uses_current_configuration(orchestrator):
    orchestrator.set_algorithm("SJF")
    result = orchestrator.run()
    assert result.algorithm == Scheduler.SJF
    assert [e.pid for e in result.timeline] == ["P1", "P4", "P2", "P3", "P5"]
    assert orchestrator.last_result is result


def test_run_does_not_touch_registered_processes(orchestrator):
    orchestrator.set_algorithm(Scheduler.RR)
    orchestrator.set_time_quantum(1)
    orchestrator.run()
    assert all(p.remaining_time == p.burst_time and p.finish_time is None for p in orchestrator.processes())


def test_configuration_errors_surface_before_running(orchestrator):
    orchestrator.set_algorithm(Scheduler.MLFQ)
    orchestrator.set_mlfq_quantums([0, 0, 0, 0])
    with pytest.raises(InvalidConfigurationError):
        orchestrator.run()
    assert orchestrator.last_result is None

    orchestrator.set_algorithm(Scheduler.RR)
    orchestrator.set_time_quantum(0)
    with pytest.raises(InvalidConfigurationError):
        orchestrator.run()


def test_unknown_algorithm_rejected(orchestrator):
    with pytest.raises(InvalidConfigurationError):
        orchestrator.set_algorithm("lottery")
    assert orchestrator.config.algorithm == Scheduler.FCFS


def test_empty_orchestrator_cannot_run():
    with pytest.raises(EmptyInputError):
        SimulationOrchestrator().run()


def test_describe_mlfq_lists_active_queues():
    title, text = describe_algorithm(SimulationConfig(Scheduler.MLFQ, mlfq_quantums=(2, 0, 8, 16)))
    assert title == "Multilevel Feedback Queue (MLFQ)"
    assert "Queue 0: Highest priority, Time Quantum = 2" in text
    assert "Queue 2: Medium priority, Time Quantum = 8" in text
    assert "Queue 3: Lowest priority, Time Quantum = 16" in text
    assert "Queue 1" not in text


def test_describe_mlfq_warns_without_active_queue():
    _, text = describe_algorithm(SimulationConfig(Scheduler.MLFQ, mlfq_quantums=(0, 0, 0, 0)))
    assert "Warning" in text


def test_describe_round_robin_mentions_quantum():
    title, text = describe_algorithm(SimulationConfig(Scheduler.RR, time_quantum=3))
    assert title == "Round Robin (RR)"
    assert "Time quantum = 3" in text


def test_parallel_runs_are_independent(orchestrator):
    procs = orchestrator.processes()
    configs = [SimulationConfig(a) for a in Scheduler.ALL] * 4

    with ThreadPoolExecutor(max_workers=6) as pool:
        results = list(pool.map(lambda c: simulate(procs, c), configs))

    for config, result in zip(configs, results):
        expected = simulate(procs, config)
        assert result.timeline == expected.timeline
        assert result.metrics == expected.metrics
