import json
import os

from click.testing import CliRunner

from main import main, generate

TRACES = os.path.join(os.path.dirname(__file__), os.pardir, "traces")
SCENARIO = os.path.join(TRACES, "scenario.trace")


def test_summary_line():
    result = CliRunner().invoke(main, ["-s", "1", "-E", "1", "-b", "1", "-t", SCENARIO])
    assert result.exit_code == 0
    assert result.output.strip().splitlines()[-1] == "hits:1 misses:2 evictions:1"


def test_verbose():
    result = CliRunner().invoke(main, ["-v", "-s", "1", "-E", "1", "-b", "1", "-t", SCENARIO])
    assert result.exit_code == 0
    assert result.output.splitlines() == [
        "L 10,1 miss",
        "L 10,1 hit",
        "L 18,1 miss eviction",
        "hits:1 misses:2 evictions:1",
    ]


def test_help_and_missing_arguments():
    runner = CliRunner()
    result = runner.invoke(main, ["-h"])
    assert result.exit_code == 0
    assert "Number of set index bits" in result.output
    result = runner.invoke(main, ["-s", "1", "-E", "1"])
    assert result.exit_code == 0
    assert "Usage" in result.output


def test_missing_trace_file(tmp_path):
    result = CliRunner().invoke(
        main, ["-s", "1", "-E", "1", "-b", "1", "-t", str(tmp_path / "nope.trace")])
    assert result.exit_code == 1
    assert "cannot read trace file" in result.output


def test_bad_geometry():
    result = CliRunner().invoke(main, ["-s", "40", "-E", "1", "-b", "30", "-t", SCENARIO])
    assert result.exit_code == 1
    assert "exceeds" in result.output


def test_config_with_overrides(tmp_path):
    cfg = {
        "cache": {"s": 4, "E": 1, "b": 4, "replacement": "lru"},
        "trace": os.path.join(TRACES, "yi.trace"),
        "output": {"results_dir": str(tmp_path / "results")},
    }
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps(cfg))
    runner = CliRunner()
    result = runner.invoke(main, ["--config", str(config_path)])
    assert result.exit_code == 0
    assert "hits:4 misses:5 evictions:3" in result.output

    result = runner.invoke(main, ["--config", str(config_path), "-s", "1", "-b", "1",
                                  "--results-dir", str(tmp_path / "out")])
    assert result.exit_code == 0
    assert "hits:2 misses:7 evictions:5" in result.output
    with open(tmp_path / "out" / "summary.json") as f:
        summary = json.load(f)
    assert summary["cache"] == {"s": 1, "E": 1, "b": 1, "replacement": "lru"}


def test_config_workload_without_trace(tmp_path):
    cfg = {
        "cache": {"s": 4, "E": 2, "b": 4},
        "workload": {"num_requests": 50, "access_pattern": "random", "random_seed": 9},
    }
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps(cfg))
    result = CliRunner().invoke(main, ["--config", str(config_path)])
    assert result.exit_code == 0
    assert result.output.startswith("hits:")


def test_plot(tmp_path):
    out_dir = tmp_path / "plots"
    result = CliRunner().invoke(
        main, ["-s", "1", "-E", "1", "-b", "1", "-t", SCENARIO, "--plot",
               "--results-dir", str(out_dir)])
    assert result.exit_code == 0
    assert (out_dir / "summary.json").exists()
    assert (out_dir / "hit_miss_rate.png").exists()
    assert (out_dir / "outcomes.png").exists()


def test_generate_then_simulate(tmp_path):
    trace_path = tmp_path / "gen.trace"
    runner = CliRunner()
    result = runner.invoke(generate, ["-o", str(trace_path), "-n", "40", "--pattern",
                                      "sequential", "--read-ratio", "1.0", "--seed", "1"])
    assert result.exit_code == 0
    assert "wrote 40 records" in result.output
    result = runner.invoke(main, ["-s", "4", "-E", "1", "-b", "4", "-t", str(trace_path)])
    assert result.output.strip() == "hits:20 misses:20 evictions:4"


def _write_config(tmp_path, cfg):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps(cfg))
    return str(config_path)


def test_unknown_replacement_in_config(tmp_path):
    config_path = _write_config(tmp_path, {
        "cache": {"s": 1, "E": 1, "b": 1, "replacement": "fifo"},
        "trace": SCENARIO,
    })
    result = CliRunner().invoke(main, ["--config", config_path])
    assert result.exit_code == 1
    assert not isinstance(result.exception, ValueError)
    assert "unknown replacement policy 'fifo'" in result.output


def test_bad_workload_pattern_in_config(tmp_path):
    config_path = _write_config(tmp_path, {
        "cache": {"s": 1, "E": 1, "b": 1},
        "workload": {"num_requests": 10, "access_pattern": "zigzag"},
    })
    result = CliRunner().invoke(main, ["--config", config_path])
    assert result.exit_code == 1
    assert not isinstance(result.exception, ValueError)
    assert "unknown access pattern 'zigzag'" in result.output


def test_unknown_workload_key_in_config(tmp_path):
    config_path = _write_config(tmp_path, {
        "cache": {"s": 1, "E": 1, "b": 1},
        "workload": {"num_requests": 10, "burst_length": 4},
    })
    result = CliRunner().invoke(main, ["--config", config_path])
    assert result.exit_code == 1
    assert "bad workload config" in result.output
