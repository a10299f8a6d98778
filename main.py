import argparse
import logging
import os

from iotroute.config import default_endpoints, load_config
from iotroute.metrics import Metrics, NumpyRandomSource
from iotroute.performance import generate_performance_report, results_to_records
from iotroute.simulation import compute_route, path_edge_ids
from iotroute.topology import load_graph_yaml, topology_summary

DEFAULT_CONFIG_PATH = "config/example_config.yaml"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Compute IoT sensor-network routes")
    parser.add_argument("--config", help=f"YAML run config (default: {DEFAULT_CONFIG_PATH} if present)")
    parser.add_argument("--topology", dest="topology_path")
    parser.add_argument("--algorithm", choices=["dijkstra", "bellman-ford", "adaptive", "compare"])
    parser.add_argument("--source")
    parser.add_argument("--target")
    parser.add_argument("--fail", dest="failed_nodes", action="append",
                        help="mark a node as failed (repeatable)")
    parser.add_argument("--runs", type=int)
    parser.add_argument("--seed", type=int)
    parser.add_argument("--output-dir", dest="output_dir")
    parser.add_argument("--plot", help="save a comparison chart to this PNG path")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def resolve_config_path(path=None):
    """An explicit path is used as given; otherwise the default file if it exists."""
    if path:
        return path
    return DEFAULT_CONFIG_PATH if os.path.exists(DEFAULT_CONFIG_PATH) else None


def run(config):
    print("Loading topology...")
    snapshot = load_graph_yaml(config["topology_path"])
    for node_id in config["failed_nodes"]:
        if not snapshot.has_node(node_id):
            print(f"Simulation Error: cannot fail unknown node {node_id!r}.")
            return None
        snapshot = snapshot.with_node_failed(node_id)
    print(f"Topology summary: {topology_summary(snapshot)}")

    source, target = default_endpoints(snapshot)
    params = {
        "algorithm": config["algorithm"],
        "sourceNode": config.get("source") or source,
        "targetNode": config.get("target") or target,
        "weights": config["weights"],
    }
    print(f"Routing algorithm selected: {params['algorithm']} "
          f"({params['sourceNode']} -> {params['targetNode']})")

    rng = NumpyRandomSource(config.get("seed"))
    metrics = Metrics()
    records = []
    outcome = None
    for run_idx in range(config["runs"]):
        outcome = compute_route(snapshot, params, rng=rng)
        if not outcome.ok:
            print(f"Simulation Error: {outcome.error.message}")
            return outcome
        for result in outcome.results:
            metrics.log(result)
        records.extend(results_to_records(outcome, run=run_idx))

    for result in outcome.results:
        m = result.metrics
        path = " -> ".join(result.path) if result.path else "(no path)"
        print(f"\n=== {result.algorithm.value} ===")
        print(f"Path: {path}")
        if result.cost is not None:
            print(f"Cost: {result.cost:.2f}")
        print(f"Energy: {m.energy_consumption:.2f}  Latency: {m.average_latency:.2f} ms  "
              f"Delivery: {m.delivery_ratio:.2%}  Lifetime: {m.network_lifetime}")

    shown = outcome.representative()
    print(f"\nHighlighted edges ({shown.algorithm.value}): "
          f"{path_edge_ids(shown.path, snapshot) or 'none'}")

    summary = metrics.summary()
    if config["runs"] > 1:
        print(f"\n=== Mean over {config['runs']} runs ===")
        print(summary)

    if config.get("output_dir"):
        paths = generate_performance_report(records, config=config,
                                            output_dir=config["output_dir"])
        print(f"Report saved to: {paths['json']}")
    if config.get("plot"):
        from iotroute.visualize import plot_metrics
        os.makedirs(os.path.dirname(config["plot"]) or ".", exist_ok=True)
        print(f"Chart saved to: {plot_metrics(summary, config['plot'])}")
    return outcome


if __name__ == "__main__":
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    overrides = {k: v for k, v in vars(args).items() if k not in ("config", "verbose")}
    config = load_config(resolve_config_path(args.config), overrides)
    run(config)
