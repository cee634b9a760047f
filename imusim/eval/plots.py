"""
Visualization Utilities for Covariance Validation.

This module provides plotting functions for Monte Carlo convergence studies
and for side-by-side inspection of covariance matrices.

All functions return matplotlib Figure objects for flexible display/saving.
"""

from pathlib import Path
from typing import List, Optional, Sequence, Union

import matplotlib.pyplot as plt
import numpy as np

POSE_LABELS = ("rx", "ry", "rz", "px", "py", "pz")


def plot_covariance_convergence(
    sample_counts: np.ndarray,
    errors: np.ndarray,
    title: str = "Monte Carlo Covariance Convergence",
    ylabel: str = "||Q_N - P||_F",
) -> plt.Figure:
    """
    Plot estimation error against the number of Monte Carlo trials.

    A 1/sqrt(N) reference line anchored at the first point shows the rate
    expected from the law of large numbers.

    Args:
        sample_counts: Trial counts N, shape (K,)
        errors: Error for each N, shape (K,)
        title: Plot title
        ylabel: Y-axis label

    Returns:
        fig: Matplotlib figure
    """
    sample_counts = np.asarray(sample_counts, dtype=np.float64)
    errors = np.asarray(errors, dtype=np.float64)

    if sample_counts.shape != errors.shape:
        raise ValueError(
            f"Shape mismatch: sample_counts {sample_counts.shape} vs errors {errors.shape}"
        )

    fig, ax = plt.subplots(figsize=(8, 6))

    ax.loglog(sample_counts, errors, "bo-", linewidth=2, markersize=8, label="Estimate")

    if len(sample_counts) > 0 and errors[0] > 0:
        reference = errors[0] * np.sqrt(sample_counts[0] / sample_counts)
        ax.loglog(sample_counts, reference, "k--", linewidth=1.5, label="1/sqrt(N)")

    ax.set_xlabel("Number of trials N", fontsize=12)
    ax.set_ylabel(ylabel, fontsize=12)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.legend(fontsize=10)
    ax.grid(True, which="both", alpha=0.3)

    plt.tight_layout()
    return fig


def plot_covariance_comparison(
    estimated: np.ndarray,
    analytic: np.ndarray,
    labels: Sequence[str] = POSE_LABELS,
    title: Optional[str] = None,
) -> plt.Figure:
    """
    Show analytic, estimated and difference covariances as heatmaps.

    Args:
        estimated: Monte Carlo covariance, shape (n, n)
        analytic: Analytic covariance, shape (n, n)
        labels: Axis labels, length n
        title: Figure title (default: "Pose Covariance Comparison")

    Returns:
        fig: Matplotlib figure
    """
    estimated = np.asarray(estimated, dtype=np.float64)
    analytic = np.asarray(analytic, dtype=np.float64)
    if estimated.shape != analytic.shape:
        raise ValueError(
            f"Shape mismatch: estimated {estimated.shape} vs analytic {analytic.shape}"
        )
    if len(labels) != analytic.shape[0]:
        raise ValueError(f"Expected {analytic.shape[0]} labels, got {len(labels)}")

    if title is None:
        title = "Pose Covariance Comparison"

    panels = [
        ("Analytic", analytic),
        ("Monte Carlo", estimated),
        ("Difference", estimated - analytic),
    ]

    fig, axes = plt.subplots(1, 3, figsize=(16, 5))
    for ax, (name, matrix) in zip(axes, panels):
        limit = np.max(np.abs(matrix))
        if limit == 0.0:
            limit = 1.0
        im = ax.imshow(matrix, cmap="RdBu_r", vmin=-limit, vmax=limit)
        plt.colorbar(im, ax=ax, fraction=0.046, pad=0.04)
        ax.set_xticks(range(len(labels)))
        ax.set_yticks(range(len(labels)))
        ax.set_xticklabels(labels)
        ax.set_yticklabels(labels)
        ax.set_title(name, fontsize=12)

    fig.suptitle(title, fontsize=14, fontweight="bold")
    plt.tight_layout()
    return fig


def save_figure(
    fig: plt.Figure,
    out_dir: Union[str, Path],
    name: str,
    formats: Sequence[str] = ("png",),
    dpi: int = 150,
    close: bool = False,
) -> List[Path]:
    """
    Write a figure to out_dir/name.<ext> for each requested format.

    Args:
        fig: Figure returned by one of the plot functions
        out_dir: Directory to write into (created if missing)
        name: File stem shared by all formats
        formats: Extensions understood by matplotlib, e.g. ("png", "svg")
        dpi: Raster resolution
        close: Close the figure after saving (useful in long study loops)

    Returns:
        paths: Written files, in the order of formats
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    paths = [out_dir / f"{name}.{ext}" for ext in formats]
    for path in paths:
        fig.savefig(path, dpi=dpi, bbox_inches="tight")

    if close:
        plt.close(fig)
    return paths
