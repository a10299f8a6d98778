import logging

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "topology_path": "config/topology.yaml",
    "algorithm": "adaptive",
    "source": None,
    "target": None,
    "weights": {"alpha": 0.4, "beta": 0.3, "gamma": 0.3},
    "seed": None,
    "runs": 1,
    "failed_nodes": [],
    "output_dir": None,
    "plot": None,
}


def load_config(path=None, overrides=None):
    """
    Read a YAML run configuration and fill in defaults.

    overrides (e.g. from the command line) win over file values; None entries
    in overrides are ignored.
    """
    config = dict(DEFAULT_CONFIG)
    if path:
        with open(path) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"{path}: configuration must be a mapping")
        unknown = set(loaded) - set(DEFAULT_CONFIG)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))
        config.update({k: v for k, v in loaded.items() if k in DEFAULT_CONFIG})
    for k, v in (overrides or {}).items():
        if v is not None:
            config[k] = v

    config["runs"] = max(1, int(config.get("runs") or 1))
    config["failed_nodes"] = [str(n) for n in config.get("failed_nodes") or []]
    return config


def default_endpoints(snapshot):
    """
    First node as source and last node as target, as the editor preselects
    them; (None, None) for an empty network.
    """
    ids = [n.id for n in snapshot.nodes]
    if not ids:
        return None, None
    return ids[0], ids[-1]
