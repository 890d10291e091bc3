"""Visualisation helpers (Matplotlib)."""
from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd

__all__ = [
    "plot_sweep",
    "plot_bound_gap",
]

DEFAULT_CMAP = plt.get_cmap("tab10")

_LINESTYLES = {"simulation": "-", "heuristic": "--"}


def _save_or_show(fig, save_path: Path | None) -> None:
    if save_path is not None:
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path.with_suffix(".png"), dpi=300, bbox_inches="tight")
        fig.savefig(save_path.with_suffix(".svg"), bbox_inches="tight")
    else:
        plt.show()

    plt.close(fig)


def plot_sweep(
    table: pd.DataFrame,
    save_path: Path | None = None,
    title: str | None = None,
) -> None:
    """Probability vs k, one line per (n, estimator, type) group.

    Simulation rows get ±1.96·stderr error bars; failed rows are skipped.
    """
    ok = table[table["probability"].notna()]

    fig, ax = plt.subplots(figsize=(7, 4.5))
    for idx, ((n, estimator, kind), group) in enumerate(ok.groupby(["n", "estimator", "type"], sort=False)):
        group = group.sort_values("k")
        colour = DEFAULT_CMAP(idx % 10)
        label = f"{estimator} ({kind}), n={n}"
        ls = _LINESTYLES.get(kind, "-")
        if "stderr" in group and group["stderr"].notna().any():
            ax.errorbar(
                group["k"], group["probability"], yerr=1.96 * group["stderr"].fillna(0.0),
                color=colour, ls=ls, marker=".", ms=3, capsize=2, label=label,
            )
        else:
            ax.plot(group["k"], group["probability"], color=colour, ls=ls, label=label)

    ax.set_xlabel("Number of existing mutations k")
    ax.set_ylabel("Probability")
    ax.set_ylim(0, 1.02)
    ax.set_title(title or "Adjacency Probability vs Mutation Count")
    ax.grid(True, ls=":", lw=0.5)
    ax.legend(fontsize="small")

    _save_or_show(fig, save_path)


def plot_bound_gap(
    table: pd.DataFrame,
    save_path: Path | None = None,
) -> None:
    """Heuristic bound minus the next-adjacency estimate, per n.

    Needs both ``next`` simulation rows and ``heuristic`` rows in ``table``.
    """
    ok = table[table["probability"].notna()]
    sim = ok[(ok["estimator"] == "next") & (ok["type"] == "simulation")]
    bound = ok[ok["type"] == "heuristic"]
    merged = sim.merge(bound, on=["n", "k"], suffixes=("_sim", "_bound"))
    if merged.empty:
        raise ValueError("table has no overlapping next-adjacency and heuristic rows")

    fig, ax = plt.subplots(figsize=(7, 4))
    for idx, (n, group) in enumerate(merged.groupby("n", sort=False)):
        group = group.sort_values("k")
        gap = group["probability_bound"].to_numpy() - group["probability_sim"].to_numpy()
        ax.plot(group["k"], gap, color=DEFAULT_CMAP(idx % 10), label=f"n={n}")
    ax.axhline(0.0, color="black", lw=0.8)

    ax.set_xlabel("Number of existing mutations k")
    ax.set_ylabel("Bound - estimate")
    ax.set_title("Heuristic Bound Slack")
    ax.grid(True, ls=":", lw=0.5)
    ax.legend(fontsize="small")

    _save_or_show(fig, save_path)
