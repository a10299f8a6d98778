import math
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import numpy as np

from iotroute.policies import Algorithm

BASE_ENERGY_PER_HOP = 10.0
BASE_LATENCY_PER_HOP = 15.0
BASE_LIFETIME = 300.0

# (latency, energy) multipliers for the fixed policies
POLICY_FACTORS = {
    Algorithm.DIJKSTRA: (0.8, 1.1),
    Algorithm.BELLMAN_FORD: (1.2, 1.0),
}


@runtime_checkable
class RandomSource(Protocol):
    """Jitter source for metric synthesis."""

    def next(self) -> float:
        """Float in [0, 1)."""
        ...


class NumpyRandomSource:
    """Jitter source backed by numpy's Generator; seed it for repeatable runs."""

    def __init__(self, seed=None):
        self.rng = np.random.default_rng(seed)

    def next(self):
        return float(self.rng.random())


@dataclass(frozen=True)
class PerformanceMetrics:
    energy_consumption: float
    average_latency: float
    delivery_ratio: float
    network_lifetime: int

    def to_dict(self):
        return {
            "energyConsumption": self.energy_consumption,
            "averageLatency": self.average_latency,
            "deliveryRatio": self.delivery_ratio,
            "networkLifetime": self.network_lifetime,
        }


NO_PATH_METRICS = PerformanceMetrics(
    energy_consumption=math.inf,
    average_latency=math.inf,
    delivery_ratio=0.0,
    network_lifetime=0,
)


def _path_profile(G, path):
    """Summed hop latency, mean relay battery health and mean relay congestion."""
    latency = sum(G[u][v].get("latency", 0.0) for u, v in zip(path, path[1:])
                  if G.has_edge(u, v))
    relays = [G.nodes[n] for n in path[1:-1] if n in G]
    if relays:
        battery_health = np.mean([r.get("battery", 0) for r in relays]) / 100.0
        congestion = min(1.0, np.mean([r.get("queue_size", 0) for r in relays]) / 100.0)
    else:
        battery_health, congestion = 1.0, 0.0
    return latency, float(battery_health), float(congestion)


def synthesize_metrics(path, algorithm, G, weights, rng):
    """
    Illustrative performance numbers for a resolved path.

    Each metric is base(path length) * policy factor * bounded jitter. The
    fixed policies use constant factors; adaptive derives its factors from the
    weights and the real properties of the chosen path so that, for example,
    a larger beta through healthy relays lowers the reported energy.
    rng is a RandomSource: anything with next() -> float in [0, 1).
    """
    if not path:
        return NO_PATH_METRICS
    hops = len(path) - 1
    if hops == 0:
        return PerformanceMetrics(
            energy_consumption=0.0,
            average_latency=0.0,
            delivery_ratio=1.0,
            network_lifetime=int(math.floor(BASE_LIFETIME + rng.next() * 100)),
        )

    latency_factor, energy_factor = POLICY_FACTORS.get(algorithm, (1.0, 1.0))
    delivery_factor = 1.0
    lifetime_factor = 1.0

    if algorithm is Algorithm.ADAPTIVE:
        real_latency, battery_health, congestion = _path_profile(G, path)
        base_latency = BASE_LATENCY_PER_HOP * hops
        latency_factor = ((0.9 + rng.next() * 0.3) * (1 - weights.alpha * 0.5)
                          * (real_latency / base_latency))
        energy_factor = ((0.9 + rng.next() * 0.2)
                         * (1 - weights.beta * 0.3 * battery_health))
        delivery_factor = ((0.95 + rng.next() * 0.05)
                           * (1 - (1 - weights.gamma) * 0.2 * congestion))
        lifetime_factor = 1.0 + weights.beta * 0.2 * battery_health

    energy = (BASE_ENERGY_PER_HOP * hops + rng.next() * 20) * energy_factor
    latency = (BASE_LATENCY_PER_HOP * hops + rng.next() * 10) * latency_factor
    delivery = min(1.0, (0.85 + rng.next() * 0.15) * delivery_factor)
    lifetime = int(math.floor((BASE_LIFETIME + rng.next() * 100) * lifetime_factor / hops))

    return PerformanceMetrics(
        energy_consumption=energy,
        average_latency=latency,
        delivery_ratio=delivery,
        network_lifetime=lifetime,
    )


class Metrics:
    """Collects per-algorithm metrics across repeated runs."""

    def __init__(self):
        self.data = {}

    def log(self, result):
        bucket = self.data.setdefault(result.algorithm.value, {
            "energy": [],
            "latency": [],
            "delivery": [],
            "lifetime": [],
        })
        m = result.metrics
        bucket["energy"].append(m.energy_consumption)
        bucket["latency"].append(m.average_latency)
        bucket["delivery"].append(m.delivery_ratio)
        bucket["lifetime"].append(m.network_lifetime)

    def summary(self):
        return {
            algo: {k: float(np.mean(v)) if v else 0.0 for k, v in series.items()}
            for algo, series in self.data.items()
        }
