"""
End-to-end runs of the command line entry point.
"""

import os

import pytest

from iotroute.config import load_config
from iotroute.metrics import Metrics
from iotroute.policies import Algorithm
from iotroute.simulation import RouteError, compute_route
from iotroute.topology import load_graph_yaml
from iotroute.visualize import plot_metrics
import main

HERE = os.path.dirname(os.path.abspath(__file__))


def _config(tmp_path, **overrides):
    overrides.setdefault("topology_path", os.path.join(HERE, "config", "topology_low_battery.yaml"))
    return load_config(os.path.join(HERE, "config", "example_config.yaml"), overrides)


def test_run_compare_writes_report_and_chart(tmp_path, capsys):
    config = _config(tmp_path, output_dir=str(tmp_path / "results"),
                     plot=str(tmp_path / "plots" / "cmp.png"))
    outcome = main.run(config)
    assert outcome.ok
    assert outcome.representative().path == ["n1", "n3", "n4"]
    assert os.path.exists(config["plot"])
    assert any(name.endswith(".json") for name in os.listdir(tmp_path / "results"))
    out = capsys.readouterr().out
    assert "Highlighted edges (adaptive): ['e1-3', 'e3-4']" in out


def test_run_reports_validation_error(tmp_path, capsys):
    outcome = main.run(_config(tmp_path, failed_nodes=["n4"]))
    assert outcome.error is RouteError.ENDPOINT_FAILED
    assert "Simulation Error" in capsys.readouterr().out


def test_parse_args_collects_failed_nodes():
    args = main.parse_args(["--algorithm", "dijkstra", "--fail", "n2", "--fail", "n3"])
    assert args.algorithm == "dijkstra"
    assert args.failed_nodes == ["n2", "n3"]


def test_plot_metrics_handles_missing_path(tmp_path):
    snap = load_graph_yaml(os.path.join(HERE, "config", "topology.yaml"))
    outcome = compute_route(snap, {"algorithm": "compare", "source": "n4", "target": "n1"})
    assert all(r.path == [] for r in outcome.results)
    metrics = Metrics()
    for r in outcome.results:
        metrics.log(r)
    path = plot_metrics(metrics.summary(), str(tmp_path / "empty.png"))
    assert os.path.getsize(path) > 0
    assert outcome.result_for(Algorithm.ADAPTIVE).cost is None


def test_unknown_failed_node_reported(tmp_path, capsys):
    outcome = main.run(_config(tmp_path, failed_nodes=["n99"]))
    assert outcome is None
    assert "Simulation Error: cannot fail unknown node 'n99'" in capsys.readouterr().out


def test_explicit_missing_config_is_not_ignored(tmp_path):
    missing = str(tmp_path / "nope.yaml")
    assert main.resolve_config_path(missing) == missing
    with pytest.raises(OSError):
        load_config(main.resolve_config_path(missing))


def test_default_config_used_only_when_present(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert main.resolve_config_path(None) is None
    monkeypatch.chdir(HERE)
    assert main.resolve_config_path(None) == main.DEFAULT_CONFIG_PATH
