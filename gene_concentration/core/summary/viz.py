"""Concentration-by-category figure.

One jittered point per gene: category on x, concentration score on y,
coloured by log2 fold-change in the cluster of maximal induction.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple
import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def _set_style():
    """Set publication-quality plot style."""
    import matplotlib.pyplot as plt

    plt.rcParams.update({
        "figure.facecolor": "white",
        "axes.facecolor": "white",
        "axes.grid": False,
        "axes.spines.top": False,
        "axes.spines.right": False,
        "font.size": 10,
        "axes.labelsize": 11,
        "axes.titlesize": 12,
        "xtick.labelsize": 9,
        "ytick.labelsize": 9,
    })


def _save_figure(fig, output_path: Path, dpi: int = 200) -> Path:
    """Save figure and close."""
    import matplotlib.pyplot as plt

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fig.savefig(output_path, dpi=dpi, bbox_inches="tight", facecolor="white")
    plt.close(fig)

    return output_path


def plot_concentration_by_category(
    summary: pd.DataFrame,
    output_path: Path,
    category_order: Optional[List[str]] = None,
    n_clusters: Optional[int] = None,
    dpi: int = 200,
    figsize: Optional[Tuple[float, float]] = None,
    cmap: str = "viridis",
    seed: int = 0,
) -> Optional[Path]:
    """Plot concentration score per category, coloured by fold-change.

    Parameters
    ----------
    summary : pd.DataFrame
        Summary table from SummaryEngine
    output_path : Path
        Output file path
    category_order : List[str], optional
        Category order on the x axis (default: alphabetical)
    n_clusters : int, optional
        If given, draws the uniform-spread floor 1/k
    dpi : int
        Figure resolution
    figsize : Tuple[float, float], optional
        Figure size (auto-computed if None)
    cmap : str
        Colormap for log2 fold-change
    seed : int
        Seed for horizontal jitter

    Returns
    -------
    Optional[Path]
        Path to saved figure, None if the table is empty
    """
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    if summary.empty:
        logger.warning("No summary rows to plot")
        return None

    _set_style()

    categories = category_order or sorted(summary["category"].astype(str).unique())
    positions = {c: i for i, c in enumerate(categories)}
    df = summary[summary["category"].astype(str).isin(positions)]

    rng = np.random.default_rng(seed)
    x = df["category"].astype(str).map(positions).to_numpy(dtype=float)
    x = x + rng.uniform(-0.25, 0.25, size=len(x))

    if figsize is None:
        figsize = (max(4.0, 1.2 * len(categories) + 2), 5.0)
    fig, ax = plt.subplots(figsize=figsize)

    points = ax.scatter(
        x,
        df["concentration_score"],
        c=df["log2_fold_change"],
        cmap=cmap,
        s=28,
        edgecolors="black",
        linewidths=0.3,
    )
    if n_clusters:
        ax.axhline(1.0 / n_clusters, color="grey", linestyle="--", linewidth=0.8)

    ax.set_xticks(range(len(categories)))
    ax.set_xticklabels(categories, rotation=45, ha="right")
    ax.set_ylim(0, 1.05)
    ax.set_xlabel("Category")
    ax.set_ylabel("Concentration score (HHI)")
    ax.set_title("Cluster concentration of induced genes")

    cbar = fig.colorbar(points, ax=ax)
    cbar.set_label("log2 fold-change (max-induction cluster)")

    fig.tight_layout()
    return _save_figure(fig, output_path, dpi)
