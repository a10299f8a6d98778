"""
Adaptive (battery- and queue-aware) routing cost model.

Scores a candidate path by a weighted blend of link latency, relay battery
depletion and relay queue congestion. Lower is better.
"""

import logging
import math
from dataclasses import dataclass

from iotroute.candidates import best_adaptive_path

logger = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 0.001
FULL_BATTERY = 100


@dataclass(frozen=True)
class Weights:
    alpha: float = 0.4  # latency
    beta: float = 0.3   # battery
    gamma: float = 0.3  # queue size

    @classmethod
    def from_dict(cls, d):
        if d is None:
            return cls()
        return cls(
            alpha=float(d.get("alpha", 0.0)),
            beta=float(d.get("beta", 0.0)),
            gamma=float(d.get("gamma", 0.0)),
        )

    def to_dict(self):
        return {"alpha": self.alpha, "beta": self.beta, "gamma": self.gamma}

    @property
    def total(self):
        return self.alpha + self.beta + self.gamma

    def in_range(self):
        return all(0.0 <= w <= 1.0 for w in (self.alpha, self.beta, self.gamma))

    def is_normalized(self, tolerance=WEIGHT_TOLERANCE):
        """Each weight within [0, 1] and the three summing to 1."""
        return self.in_range() and abs(self.total - 1.0) <= tolerance


class AdaptiveRouting:
    def __init__(self, weights):
        """
        weights = Weights(
            alpha=0.4,  # latency
            beta=0.3,   # inverse battery health of relays
            gamma=0.3,  # queue depth of relays
        )
        A plain {'alpha', 'beta', 'gamma'} dict is accepted too.
        """
        if not isinstance(weights, Weights):
            weights = Weights.from_dict(weights)
        self.weights = weights

    def relay_cost(self, node_attrs):
        battery = node_attrs.get("battery", 0)
        queue = node_attrs.get("queue_size", 0)
        return (
            self.weights.beta * (FULL_BATTERY - battery) +
            self.weights.gamma * queue
        )

    def path_cost(self, G, path):
        """
        Cost of an explicit path over the operational DiGraph.

        alpha * (sum of hop latencies) plus, for every intermediate node,
        beta * (100 - battery) + gamma * queue_size. A direct edge therefore
        costs alpha * latency only. Missing hops make the path infinitely
        expensive; a single-node path costs nothing.
        """
        if not path:
            return math.inf
        latency = 0.0
        for u, v in zip(path, path[1:]):
            if not G.has_edge(u, v):
                return math.inf
            latency += G[u][v].get("latency", 0.0)
        cost = self.weights.alpha * latency
        for relay in path[1:-1]:
            cost += self.relay_cost(G.nodes[relay])
        return cost

    def compute_path(self, G, src, dst):
        """
        Pick the cheapest direct or 2-hop path.

        Returns (path, total_cost); (None, inf) when no 1- or 2-hop candidate
        exists so the caller can fall back to BFS.
        """
        path, cost = best_adaptive_path(G, src, dst, self.path_cost)
        if path is None:
            logger.debug("No 1/2-hop candidate for %s -> %s", src, dst)
        return path, cost
