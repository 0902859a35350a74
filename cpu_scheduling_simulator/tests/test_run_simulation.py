from cpu_scheduling_simulator.scripts.run_simulation import main as cli_main


def test_cli_sample_run(capsys):
    assert cli_main(["--algorithm", "srtf"]) == 0
    out = capsys.readouterr().out
    assert "Shortest Remaining Time First (SRTF) - Preemptive" in out
    assert "P4: arrival=3, burst=2, waiting=1" in out


def test_cli_random_workload_with_outputs(tmp_path, capsys):
    chart = tmp_path / "gantt.png"
    base = tmp_path / "run"
    code = cli_main(["--algorithm", "mlfq", "--mlfq", "1", "0", "3", "5", "--random", "8", "--seed", "7",
                     "--out", str(chart), "--export", str(base)])
    assert code == 0
    assert chart.exists()
    assert (tmp_path / "run.json").exists()
    assert "Avg waiting:" in capsys.readouterr().out


def test_cli_reports_configuration_error(capsys):
    assert cli_main(["--algorithm", "mlfq", "--mlfq", "0", "0", "0", "0"]) == 2
    assert "at least one queue" in capsys.readouterr().err
