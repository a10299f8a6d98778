"""
Performance report generator for IoTRoute-Sim
Turns repeated compute_route runs into per-algorithm statistics and writes
JSON / CSV reports.
"""

import csv
import json
import os
from datetime import datetime

import numpy as np

METRIC_FIELDS = ["energy", "latency", "delivery", "lifetime"]
LOWER_IS_BETTER = {"energy", "latency"}


def results_to_records(outcome, run=0):
    """Flatten one RouteOutcome into CSV-friendly rows."""
    records = []
    for r in outcome.results:
        m = r.metrics
        records.append({
            "run": run,
            "algorithm": r.algorithm.value,
            "path": "->".join(r.path),
            "hops": max(0, len(r.path) - 1),
            "cost": r.cost,
            "energy": m.energy_consumption,
            "latency": m.average_latency,
            "delivery": m.delivery_ratio,
            "lifetime": m.network_lifetime,
        })
    return records


def calculate_statistics(records):
    """Per-algorithm mean/median/std/min/max for every metric field."""
    by_algo = {}
    for rec in records:
        by_algo.setdefault(rec["algorithm"], []).append(rec)

    stats = {}
    for algo, rows in by_algo.items():
        stats[algo] = {}
        for name in METRIC_FIELDS:
            values = np.array([row[name] for row in rows], dtype=float)
            finite = values[np.isfinite(values)]
            if finite.size == 0:
                stats[algo][name] = {"mean": float("inf") if name in LOWER_IS_BETTER else 0.0,
                                     "count": int(values.size)}
                continue
            stats[algo][name] = {
                "mean": float(np.mean(finite)),
                "median": float(np.median(finite)),
                "std": float(np.std(finite)),
                "min": float(np.min(finite)),
                "max": float(np.max(finite)),
                "count": int(values.size),
            }
    return stats


def calc_improvement(better_val, baseline_val, lower_is_better=True):
    if baseline_val == 0 or not np.isfinite(baseline_val) or not np.isfinite(better_val):
        return 0.0
    if lower_is_better:
        return ((baseline_val - better_val) / baseline_val) * 100.0
    return ((better_val - baseline_val) / baseline_val) * 100.0


def adaptive_improvements(stats):
    """Percentage gain of adaptive over each fixed policy, per metric."""
    improvements = {}
    adaptive = stats.get("adaptive")
    if not adaptive:
        return improvements
    for algo, algo_stats in stats.items():
        if algo == "adaptive":
            continue
        for name in METRIC_FIELDS:
            improvements[f"adaptive_vs_{algo}_{name}"] = calc_improvement(
                adaptive[name]["mean"], algo_stats[name]["mean"],
                lower_is_better=name in LOWER_IS_BETTER,
            )
    return improvements


def generate_performance_report(records, config=None, output_dir="results"):
    """Write a JSON report and a CSV of raw runs; returns the file paths."""
    os.makedirs(output_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    stats = calculate_statistics(records)
    report = {
        "metadata": {
            "timestamp": timestamp,
            "generation_time": datetime.now().isoformat(),
            "runs": len({rec["run"] for rec in records}),
            "config": config or {},
        },
        "statistics": stats,
        "improvements": adaptive_improvements(stats),
    }

    json_path = os.path.join(output_dir, f"route_report_{timestamp}.json")
    with open(json_path, "w") as f:
        json.dump(report, f, indent=2, default=str)

    csv_path = os.path.join(output_dir, f"route_runs_{timestamp}.csv")
    fieldnames = ["run", "algorithm", "path", "hops", "cost"] + METRIC_FIELDS
    with open(csv_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(records)

    return {"json": json_path, "csv": csv_path, "report": report}
