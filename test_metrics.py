"""
Tests for metric synthesis, the repeated-run collector and report export.
"""

import csv
import json
import math

import pytest

from iotroute.adaptive_routing import Weights
from iotroute.metrics import (
    Metrics,
    NO_PATH_METRICS,
    NumpyRandomSource,
    RandomSource,
    synthesize_metrics,
)
from iotroute.performance import (
    calc_improvement,
    calculate_statistics,
    generate_performance_report,
    results_to_records,
)
from iotroute.policies import Algorithm
from iotroute.simulation import compute_route
from iotroute.topology import GraphSnapshot


class SequenceRandom:
    """Replays a fixed list of jitter values, cycling when exhausted."""

    def __init__(self, values):
        self.values = list(values)
        self.i = 0

    def next(self):
        v = self.values[self.i % len(self.values)]
        self.i += 1
        return v


def relay_graph(battery=100, queue=0, latency=10.0):
    return GraphSnapshot.from_dict({
        "nodes": [
            {"id": "S", "battery": 100},
            {"id": "I", "battery": battery, "queueSize": queue},
            {"id": "T", "battery": 100},
        ],
        "edges": [
            {"id": "a", "source": "S", "target": "I", "latency": latency},
            {"id": "b", "source": "I", "target": "T", "latency": latency},
        ],
    }).operational_graph()


def test_fixed_policy_metrics():
    G = relay_graph()
    m = synthesize_metrics(["S", "I"], Algorithm.DIJKSTRA, G, Weights(), SequenceRandom([0.5]))
    assert m.energy_consumption == pytest.approx((10 + 10) * 1.1)
    assert m.average_latency == pytest.approx((15 + 5) * 0.8)
    assert m.delivery_ratio == pytest.approx(0.925)
    assert m.network_lifetime == 350

    bf = synthesize_metrics(["S", "I"], Algorithm.BELLMAN_FORD, G, Weights(), SequenceRandom([0.5]))
    assert bf.average_latency > m.average_latency
    assert bf.energy_consumption < m.energy_consumption


def test_lifetime_shrinks_with_hops():
    G = relay_graph()
    one = synthesize_metrics(["S", "I"], Algorithm.DIJKSTRA, G, Weights(), SequenceRandom([0.0]))
    two = synthesize_metrics(["S", "I", "T"], Algorithm.DIJKSTRA, G, Weights(), SequenceRandom([0.0]))
    assert one.network_lifetime == 300
    assert two.network_lifetime == 150
    assert two.energy_consumption > one.energy_consumption


def test_no_path_and_trivial_path():
    G = relay_graph()
    assert synthesize_metrics([], Algorithm.ADAPTIVE, G, Weights(), SequenceRandom([0.3])) is NO_PATH_METRICS
    assert math.isinf(NO_PATH_METRICS.average_latency)

    trivial = synthesize_metrics(["S"], Algorithm.ADAPTIVE, G, Weights(), SequenceRandom([0.0]))
    assert trivial.energy_consumption == 0
    assert trivial.average_latency == 0
    assert trivial.delivery_ratio == 1
    assert trivial.network_lifetime == 300


def test_delivery_ratio_is_capped():
    G = relay_graph()
    m = synthesize_metrics(["S", "I", "T"], Algorithm.DIJKSTRA, G, Weights(), SequenceRandom([0.999]))
    assert m.delivery_ratio <= 1.0


def test_higher_beta_lowers_adaptive_energy_through_healthy_relay():
    G = relay_graph(battery=100)
    path = ["S", "I", "T"]
    low = synthesize_metrics(path, Algorithm.ADAPTIVE, G, Weights(0.5, 0.1, 0.4), SequenceRandom([0.5]))
    high = synthesize_metrics(path, Algorithm.ADAPTIVE, G, Weights(0.1, 0.8, 0.1), SequenceRandom([0.5]))
    assert high.energy_consumption < low.energy_consumption
    assert high.network_lifetime > low.network_lifetime


def test_adaptive_latency_tracks_real_path_latency():
    path = ["S", "I", "T"]
    w = Weights(0.4, 0.3, 0.3)
    fast = synthesize_metrics(path, Algorithm.ADAPTIVE, relay_graph(latency=5), w, SequenceRandom([0.5]))
    slow = synthesize_metrics(path, Algorithm.ADAPTIVE, relay_graph(latency=50), w, SequenceRandom([0.5]))
    assert fast.average_latency < slow.average_latency


def test_gamma_softens_congestion_penalty():
    G = relay_graph(queue=100)
    path = ["S", "I", "T"]
    low = synthesize_metrics(path, Algorithm.ADAPTIVE, G, Weights(0.8, 0.1, 0.1), SequenceRandom([0.0]))
    high = synthesize_metrics(path, Algorithm.ADAPTIVE, G, Weights(0.1, 0.1, 0.8), SequenceRandom([0.0]))
    assert high.delivery_ratio > low.delivery_ratio


def test_numpy_source_is_seeded_and_bounded():
    a = NumpyRandomSource(seed=7)
    b = NumpyRandomSource(seed=7)
    draws = [a.next() for _ in range(50)]
    assert draws == [b.next() for _ in range(50)]
    assert all(0.0 <= d < 1.0 for d in draws)


def _compare_outcome():
    g = {
        "nodes": [{"id": "S", "battery": 90}, {"id": "I", "battery": 80, "queueSize": 4},
                  {"id": "T", "battery": 100}],
        "edges": [{"id": "a", "source": "S", "target": "I", "latency": 5},
                  {"id": "b", "source": "I", "target": "T", "latency": 5}],
    }
    p = {"algorithm": "compare", "source": "S", "target": "T",
         "weights": {"alpha": 0.4, "beta": 0.3, "gamma": 0.3}}
    return compute_route(g, p, rng=NumpyRandomSource(seed=1))


def test_metrics_collector_summary():
    metrics = Metrics()
    for _ in range(3):
        for r in _compare_outcome().results:
            metrics.log(r)
    summary = metrics.summary()
    assert set(summary) == {"dijkstra", "bellman-ford", "adaptive"}
    assert 0.0 < summary["adaptive"]["delivery"] <= 1.0
    assert summary["dijkstra"]["lifetime"] > 0


def test_statistics_and_report(tmp_path):
    records = []
    for run in range(4):
        records.extend(results_to_records(_compare_outcome(), run=run))
    assert records[0]["path"] == "S->I->T"
    assert records[0]["hops"] == 2

    stats = calculate_statistics(records)
    assert stats["adaptive"]["energy"]["count"] == 4
    assert stats["dijkstra"]["latency"]["min"] <= stats["dijkstra"]["latency"]["max"]

    out = generate_performance_report(records, config={"runs": 4}, output_dir=str(tmp_path))
    with open(out["json"]) as f:
        report = json.load(f)
    assert report["metadata"]["runs"] == 4
    assert "adaptive_vs_dijkstra_energy" in report["improvements"]
    with open(out["csv"], newline="") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 12


def test_statistics_with_no_path():
    records = [{"run": 0, "algorithm": "adaptive", "energy": math.inf,
                "latency": math.inf, "delivery": 0.0, "lifetime": 0}]
    stats = calculate_statistics(records)
    assert math.isinf(stats["adaptive"]["energy"]["mean"])
    assert stats["adaptive"]["delivery"]["mean"] == 0.0


def test_calc_improvement():
    assert calc_improvement(80, 100) == pytest.approx(20.0)
    assert calc_improvement(0.9, 0.75, lower_is_better=False) == pytest.approx(20.0)
    assert calc_improvement(1, 0) == 0.0
    assert calc_improvement(1, math.inf) == 0.0


def test_random_sources_satisfy_protocol():
    assert isinstance(NumpyRandomSource(seed=3), RandomSource)
    assert isinstance(SequenceRandom([0.1]), RandomSource)
    assert not isinstance(object(), RandomSource)
