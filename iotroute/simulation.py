"""
Route computation entry point: validates a request against a graph snapshot,
runs each requested policy and attaches synthesized performance metrics.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from iotroute.adaptive_routing import AdaptiveRouting, Weights
from iotroute.candidates import first_match_path
from iotroute.metrics import (
    NumpyRandomSource,
    PerformanceMetrics,
    RandomSource,
    synthesize_metrics,
)
from iotroute.policies import Algorithm
from iotroute.reachability import find_path
from iotroute.topology import GraphSnapshot

logger = logging.getLogger(__name__)


class RouteError(Enum):
    MISSING_ENDPOINTS = "MissingEndpoints"
    ENDPOINT_FAILED = "EndpointFailed"
    DEGENERATE_ENDPOINTS = "DegenerateEndpoints"
    WEIGHTS_NOT_NORMALIZED = "WeightsNotNormalized"

    @property
    def message(self):
        return _ERROR_MESSAGES[self]


_ERROR_MESSAGES = {
    RouteError.MISSING_ENDPOINTS: "Please select source and target nodes.",
    RouteError.ENDPOINT_FAILED: "Source or target node has failed.",
    RouteError.DEGENERATE_ENDPOINTS: "Source and target nodes cannot be the same.",
    RouteError.WEIGHTS_NOT_NORMALIZED: "Adaptive weights (alpha, beta, gamma) must each lie in [0, 1] and sum to 1.",
}


@dataclass(frozen=True)
class SimulationParams:
    algorithm: Algorithm = Algorithm.ADAPTIVE
    source_node: Optional[str] = None
    target_node: Optional[str] = None
    weights: Weights = field(default_factory=Weights)

    @classmethod
    def from_dict(cls, d):
        source = d.get("sourceNode", d.get("source"))
        target = d.get("targetNode", d.get("target"))
        return cls(
            algorithm=Algorithm.parse(d.get("algorithm", Algorithm.ADAPTIVE)),
            source_node=None if source is None else str(source),
            target_node=None if target is None else str(target),
            weights=Weights.from_dict(d.get("weights")),
        )


@dataclass(frozen=True)
class SimulationResult:
    algorithm: Algorithm
    path: List[str]
    metrics: PerformanceMetrics
    cost: Optional[float] = None

    @property
    def found(self):
        return len(self.path) > 0

    def to_dict(self):
        return {
            "algorithm": self.algorithm.value,
            "path": list(self.path),
            "metrics": self.metrics.to_dict(),
            "cost": self.cost,
        }


@dataclass(frozen=True)
class RouteOutcome:
    results: List[SimulationResult] = field(default_factory=list)
    error: Optional[RouteError] = None
    requested: Optional[Algorithm] = None

    @property
    def ok(self):
        return self.error is None

    def result_for(self, algorithm):
        for r in self.results:
            if r.algorithm is algorithm:
                return r
        return None

    def representative(self):
        """Result whose path the caller should highlight."""
        if not self.results:
            return None
        if self.requested is None:
            return self.results[0]
        return self.result_for(self.requested.display_policy()) or self.results[0]

    def to_dict(self):
        out = {"results": [r.to_dict() for r in self.results]}
        if self.error is not None:
            out["error"] = self.error.value
        return out


def validate(snapshot, params):
    """
    Returns a RouteError, or None when the request may run.

    Checks run in order and the first failure wins.
    """
    src, dst = params.source_node, params.target_node
    if not src or not dst or not snapshot.has_node(src) or not snapshot.has_node(dst):
        return RouteError.MISSING_ENDPOINTS
    if snapshot.node(src).is_failed or snapshot.node(dst).is_failed:
        return RouteError.ENDPOINT_FAILED
    if src == dst:
        if len(snapshot.operational_nodes()) > 1:
            return RouteError.DEGENERATE_ENDPOINTS
        # lone operational node: trivial route, weights are irrelevant
        return None
    if params.algorithm.uses_weights and not params.weights.is_normalized():
        return RouteError.WEIGHTS_NOT_NORMALIZED
    return None


def _route_for(algo, G, src, dst, weights):
    """Path and (adaptive only) cost for one concrete policy."""
    if algo is Algorithm.ADAPTIVE:
        router = AdaptiveRouting(weights)
        path, cost = router.compute_path(G, src, dst)
        if path is None:
            path = find_path(G, src, dst)
            cost = router.path_cost(G, path) if path else None
            logger.info("adaptive: no 1/2-hop candidate, BFS fallback -> %s", path)
        return path, cost
    elif algo in (Algorithm.DIJKSTRA, Algorithm.BELLMAN_FORD):
        path = first_match_path(G, src, dst)
        if path is None:
            path = find_path(G, src, dst)
            logger.info("%s: no 1/2-hop candidate, BFS fallback -> %s", algo.value, path)
        return path, None
    raise ValueError(f"{algo} is not a concrete routing policy")


def compute_route(graph, params, rng=None):
    """
    Compute one route per requested policy.

    graph: GraphSnapshot or {'nodes': [...], 'edges': [...]}
    params: SimulationParams or the equivalent dict
    rng: RandomSource for the metric jitter (anything with next() -> float)

    Validation failures come back as RouteOutcome(error=...) with no results.
    An unreachable target is not an error: its result has an empty path.
    """
    snapshot = graph if isinstance(graph, GraphSnapshot) else GraphSnapshot.from_dict(graph)
    if not isinstance(params, SimulationParams):
        params = SimulationParams.from_dict(params)
    if rng is None:
        rng = NumpyRandomSource()
    elif not isinstance(rng, RandomSource):
        raise TypeError(f"rng must provide next() -> float, got {type(rng).__name__}")

    error = validate(snapshot, params)
    if error is not None:
        logger.warning("Route request rejected: %s", error.value)
        return RouteOutcome(error=error, requested=params.algorithm)

    G = snapshot.operational_graph()
    src, dst = params.source_node, params.target_node
    results = []
    for algo in params.algorithm.expand():
        path, cost = _route_for(algo, G, src, dst, params.weights)
        metrics = synthesize_metrics(path, algo, G, params.weights, rng)
        results.append(SimulationResult(algorithm=algo, path=list(path),
                                        metrics=metrics, cost=cost))
        logger.debug("%s: path=%s cost=%s", algo.value, path, cost)

    return RouteOutcome(results=results, requested=params.algorithm)


def path_edge_ids(path, graph):
    """Ids of the directed edges along a path, in hop order."""
    snapshot = graph if isinstance(graph, GraphSnapshot) else GraphSnapshot.from_dict(graph)
    ids = []
    for u, v in zip(path, path[1:]):
        edge = next((e for e in snapshot.edges
                     if e.source == u and e.target == v), None)
        if edge is not None:
            ids.append(edge.id)
    return ids
