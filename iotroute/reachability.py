import logging

import networkx as nx

logger = logging.getLogger(__name__)


def find_path(G, source, target):
    """
    Breadth-first search over the operational directed graph.

    G is the DiGraph returned by GraphSnapshot.operational_graph(), so failed
    nodes are already absent. Returns the first path to reach target (minimum
    hop count, not minimum latency), [source] when source == target, or []
    when target is unreachable or either endpoint is not operational.
    """
    if source not in G or target not in G:
        return []
    if source == target:
        return [source]

    parent = {}
    for node, pred in nx.bfs_predecessors(G, source):
        parent[node] = pred
        if node == target:
            break
    if target not in parent:
        return []

    path = [target]
    while path[-1] != source:
        path.append(parent[path[-1]])
    path.reverse()
    return path


def run_bfs(snapshot, source, target):
    """Convenience wrapper taking a GraphSnapshot instead of a DiGraph."""
    path = find_path(snapshot.operational_graph(), source, target)
    logger.debug("BFS %s -> %s: %s", source, target, path or "unreachable")
    return path
