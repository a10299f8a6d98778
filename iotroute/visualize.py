import math

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend
import matplotlib.pyplot as plt

PANELS = [
    ("energy", "Energy Consumption"),
    ("latency", "Average Latency (ms)"),
    ("delivery", "Delivery Ratio"),
    ("lifetime", "Network Lifetime"),
]


def plot_metrics(summary, output_path="results/route_comparison.png"):
    """
    Bar chart per metric, one bar per algorithm.

    summary is Metrics.summary(): {algorithm: {metric: mean}}.
    Infinite values (no path) are drawn as empty bars.
    """
    algos = list(summary.keys())
    fig, axes = plt.subplots(1, len(PANELS), figsize=(4 * len(PANELS), 4))
    for ax, (key, title) in zip(axes, PANELS):
        values = [summary[a].get(key, 0.0) for a in algos]
        values = [v if math.isfinite(v) else 0.0 for v in values]
        ax.bar(algos, values, color=["#38BDF8", "#BEF264", "#E040FB"][:len(algos)])
        ax.set_title(title)
        ax.grid(True, axis="y")
    plt.tight_layout()
    fig.savefig(output_path)
    plt.close(fig)
    return output_path
