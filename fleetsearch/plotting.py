"""
Plotting utilities.
"""

from pathlib import Path
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import networkx as nx
import pandas as pd


def plot_routes(G: nx.Graph, solution: dict, out_png: str | Path) -> None:
    """
    Plot the city graph and each vehicle's sequence of action locations from
    a serialized solution (see `fleetsearch.io.solution_to_dict`).
    """
    node_pos = {n: (G.nodes[n]["x_km"], G.nodes[n]["y_km"]) for n in G.nodes}
    pos = {str(n): xy for n, xy in node_pos.items()}

    fig, ax = plt.subplots(figsize=(8, 8))
    nx.draw_networkx_edges(G, node_pos, ax=ax, alpha=0.2)
    nx.draw_networkx_nodes(G, node_pos, ax=ax, node_size=15, node_color="grey")

    for vid, route in solution["routes"].items():
        stops = [route["home"], *(a["location"] for a in route["actions"])]
        if len(stops) < 2:
            continue
        xs = [pos[c][0] for c in stops]
        ys = [pos[c][1] for c in stops]
        ax.plot(
            xs, ys,
            linewidth=2.0,
            alpha=0.8,
            marker="o",
            markersize=3,
            label=f"vehicle {vid}",
        )

    ax.set_aspect("equal", adjustable="box")
    ax.set_title(f"Routes (cost {float(solution['cost']):.1f})")
    ax.set_xlabel("x (km)")
    ax.set_ylabel("y (km)")
    if ax.get_legend_handles_labels()[0]:
        ax.legend(loc="best", fontsize="small")
    _save(fig, out_png)


def plot_best_cost_traces(
    traces: dict[str, list[float]],
    out_png: str | Path,
) -> None:
    """
    Plot the best-ever cost after each improvement, one line per algorithm.
    """
    fig, ax = plt.subplots(figsize=(8, 4))
    for name, history in traces.items():
        ax.step(range(len(history)), history, where="post", label=name)
    ax.set_xlabel("improvement")
    ax.set_ylabel("best cost")
    ax.legend(loc="best")
    _save(fig, out_png)


def plot_comparison_boxplots(
    metrics_csv_paths: list[str | Path],
    out_png: str | Path,
    value_columns: list[str] | None = None,
) -> None:
    """
    Plot boxplots of run metrics grouped by algorithm.
    """
    frames = [pd.read_csv(p) for p in metrics_csv_paths]
    if not frames:
        return
    df = pd.concat(frames, ignore_index=True)
    if value_columns is None:
        value_columns = ["cost", "improvement_pct", "iterations"]
    fig, axes = plt.subplots(
        1,
        len(value_columns),
        figsize=(4 * len(value_columns), 4),
    )
    if len(value_columns) == 1:
        axes = [axes]
    for ax, col in zip(axes, value_columns):
        df.boxplot(column=col, by="algorithm", ax=ax)
        ax.set_title(col)
        ax.set_xlabel("algorithm")
        ax.set_ylabel(col)
    fig.suptitle("")
    _save(fig, out_png)


def _save(fig, out_png: str | Path) -> None:
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(out_png, dpi=150)
    plt.close(fig)
