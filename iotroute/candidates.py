"""
Candidate path enumeration: the direct link plus every single-relay (2-hop)
route between a source and a target on the operational DiGraph.
"""

import logging
import math

logger = logging.getLogger(__name__)


def has_direct_edge(G, src, dst):
    return src in G and dst in G and G.has_edge(src, dst)


def two_hop_candidates(G, src, dst):
    """
    Yield [src, relay, dst] for every relay with src->relay and relay->dst
    links, in node order.
    """
    if src not in G or dst not in G:
        return
    for relay in G.nodes:
        if relay == src or relay == dst:
            continue
        if G.has_edge(src, relay) and G.has_edge(relay, dst):
            yield [src, relay, dst]


def candidate_paths(G, src, dst):
    """Direct link first (when present), then the 2-hop candidates."""
    if has_direct_edge(G, src, dst):
        yield [src, dst]
    yield from two_hop_candidates(G, src, dst)


def first_match_path(G, src, dst):
    """
    Presence check used by the dijkstra / bellman-ford labels: the direct link
    if it exists, else the first 2-hop candidate in node order, else None.
    """
    if src == dst:
        return [src] if src in G else None
    if has_direct_edge(G, src, dst):
        return [src, dst]
    return next(two_hop_candidates(G, src, dst), None)


def best_adaptive_path(G, src, dst, score):
    """
    Minimum-score candidate; ties keep the earliest one found.

    score(G, path) -> float. Returns (path, cost) or (None, inf).
    """
    if src == dst:
        return ([src], 0.0) if src in G else (None, math.inf)

    best_path, best_cost = None, math.inf
    for path in candidate_paths(G, src, dst):
        cost = score(G, path)
        logger.debug("candidate %s cost=%.3f", path, cost)
        if cost < best_cost:
            best_path, best_cost = path, cost
    return best_path, best_cost
