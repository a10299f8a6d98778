"""
Topology store for IoTRoute-Sim
- Node / Edge value types (sensor, router, gateway nodes; directed weighted links)
- GraphSnapshot: an immutable copy of the network handed to the routing core
- Exposes functions to:
    * build a snapshot from plain dicts (flat or canvas-style with a nested 'data' key)
    * derive the operational (non-failed) directed subgraph as a networkx DiGraph
    * toggle node failure / remove nodes without mutating the original snapshot
    * save/load YAML topology
Usage:
    from iotroute.topology import load_graph_yaml, topology_summary
    snap = load_graph_yaml("config/topology.yaml")
    G = snap.operational_graph()
"""

import logging
from dataclasses import dataclass, field, replace

import networkx as nx
import yaml

logger = logging.getLogger(__name__)

ROLES = ("sensor", "router", "gateway")
DEFAULT_ROLE = "sensor"


def _pick(d, *keys, default=None):
    """Return the first key present in d (camelCase or snake_case spelling)."""
    for k in keys:
        if k in d and d[k] is not None:
            return d[k]
    return default


@dataclass(frozen=True)
class Node:
    id: str
    label: str = ""
    battery: int = 0
    queue_size: int = 0
    role: str = DEFAULT_ROLE
    is_failed: bool = False

    @classmethod
    def from_dict(cls, raw):
        """
        Accepts either a flat dict or the canvas shape {'id': ..., 'data': {...}}.
        Missing battery reads as 0.
        """
        data = dict(raw.get("data") or {})
        merged = {**data, **{k: v for k, v in raw.items() if k != "data"}}
        node_id = str(_pick(merged, "id"))
        role = _pick(merged, "role", default=DEFAULT_ROLE)
        if role not in ROLES:
            raise ValueError(f"Node {node_id}: unknown role {role!r}")
        battery = int(_pick(merged, "battery", default=0))
        if not 0 <= battery <= 100:
            raise ValueError(f"Node {node_id}: battery {battery} outside 0..100")
        queue_size = int(_pick(merged, "queueSize", "queue_size", default=0))
        if queue_size < 0:
            raise ValueError(f"Node {node_id}: negative queueSize {queue_size}")
        return cls(
            id=node_id,
            label=str(_pick(merged, "label", default=node_id)),
            battery=battery,
            queue_size=queue_size,
            role=role,
            is_failed=bool(_pick(merged, "isFailed", "is_failed", default=False)),
        )

    def to_dict(self):
        return {
            "id": self.id,
            "label": self.label,
            "battery": self.battery,
            "queueSize": self.queue_size,
            "role": self.role,
            "isFailed": self.is_failed,
        }


@dataclass(frozen=True)
class Edge:
    id: str
    source: str
    target: str
    latency: float = 0.0     # ms
    bandwidth: float = 0.0   # kbps, display only

    @classmethod
    def from_dict(cls, raw):
        data = raw.get("data") or {}
        source = str(raw["source"])
        target = str(raw["target"])
        edge_id = str(raw.get("id", f"e{source}-{target}"))
        latency = float(_pick(raw, "latency", default=_pick(data, "latency", default=0.0)))
        bandwidth = float(_pick(raw, "bandwidth", default=_pick(data, "bandwidth", default=0.0)))
        if latency < 0:
            raise ValueError(f"Edge {edge_id}: negative latency {latency}")
        if bandwidth < 0:
            raise ValueError(f"Edge {edge_id}: negative bandwidth {bandwidth}")
        return cls(
            id=edge_id,
            source=source,
            target=target,
            latency=latency,
            bandwidth=bandwidth,
        )

    def to_dict(self):
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "latency": self.latency,
            "bandwidth": self.bandwidth,
        }


@dataclass(frozen=True)
class GraphSnapshot:
    """Read-only view of the network at the moment a route is requested."""

    nodes: tuple = ()
    edges: tuple = ()
    _by_id: dict = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "edges", tuple(self.edges))
        index = {}
        for n in self.nodes:
            if n.id in index:
                raise ValueError(f"Duplicate node id: {n.id}")
            index[n.id] = n
        object.__setattr__(self, "_by_id", index)

    @classmethod
    def from_dict(cls, data):
        nodes = [Node.from_dict(n) for n in data.get("nodes", [])]
        edges = [Edge.from_dict(e) for e in data.get("edges", [])]
        return cls(nodes=nodes, edges=edges)

    def to_dict(self):
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }

    def node(self, node_id):
        """Node by id, or None when it is not part of the snapshot."""
        return self._by_id.get(node_id)

    def has_node(self, node_id):
        return node_id in self._by_id

    def operational_nodes(self):
        return [n for n in self.nodes if not n.is_failed]

    def operational_graph(self):
        """
        Directed graph of non-failed nodes and the links between them.

        Node order follows the snapshot's node list. Edges with a missing or
        failed endpoint are dropped. For parallel links between the same
        ordered pair the first one in edge order is kept.
        """
        G = nx.DiGraph()
        for n in self.nodes:
            if n.is_failed:
                continue
            G.add_node(n.id, label=n.label, battery=n.battery,
                       queue_size=n.queue_size, role=n.role)

        dangling = 0
        for e in self.edges:
            if e.source not in G or e.target not in G:
                if not (self.has_node(e.source) and self.has_node(e.target)):
                    dangling += 1
                continue
            if G.has_edge(e.source, e.target):
                continue
            G.add_edge(e.source, e.target, id=e.id, latency=e.latency,
                       bandwidth=e.bandwidth)
        if dangling:
            logger.debug("Ignored %d dangling edge(s)", dangling)
        return G

    def with_node_failed(self, node_id, failed=True):
        """Copy of this snapshot with one node's failure flag set."""
        if not self.has_node(node_id):
            raise KeyError(node_id)
        nodes = [replace(n, is_failed=failed) if n.id == node_id else n
                 for n in self.nodes]
        return GraphSnapshot(nodes=nodes, edges=self.edges)

    def remove_node(self, node_id):
        """Copy without the node and every edge touching it."""
        if not self.has_node(node_id):
            raise KeyError(node_id)
        nodes = [n for n in self.nodes if n.id != node_id]
        edges = [e for e in self.edges
                 if e.source != node_id and e.target != node_id]
        return GraphSnapshot(nodes=nodes, edges=edges)


# ----------------------
# Utilities: I/O and summary
# ----------------------

def save_graph_yaml(snapshot, path="config/topology.yaml"):
    """
    Save a compact YAML describing nodes and edges and their attributes.
    This is human-readable and useful for inspection / reproducibility.
    """
    with open(path, "w") as f:
        yaml.safe_dump(snapshot.to_dict(), f, sort_keys=False)
    return path


def load_graph_yaml(path="config/topology.yaml"):
    """
    Load a YAML topology (as written by save_graph_yaml) into a GraphSnapshot.
    """
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping with 'nodes' and 'edges'")
    snapshot = GraphSnapshot.from_dict(data)
    logger.info("Loaded topology %s (%d nodes, %d edges)",
                path, len(snapshot.nodes), len(snapshot.edges))
    return snapshot


def topology_summary(snapshot):
    nodes = snapshot.nodes
    edges = snapshot.edges
    n = len(nodes)
    m = len(edges)
    batteries = [nd.battery for nd in nodes]
    queues = [nd.queue_size for nd in nodes]
    latencies = [e.latency for e in edges]
    return {
        "nodes": n,
        "edges": m,
        "failed": sum(1 for nd in nodes if nd.is_failed),
        "avg_battery": sum(batteries) / n if n else 0.0,
        "avg_queue": sum(queues) / n if n else 0.0,
        "avg_latency_ms": sum(latencies) / m if m else 0.0,
        "avg_out_degree": m / n if n else 0.0,
    }
