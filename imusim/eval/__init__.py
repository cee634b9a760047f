"""
Evaluation and Visualization Module.

This module provides metrics and plots for validating propagated
covariances against Monte Carlo statistics.

Modules:
    metrics: Covariance errors, NEES, consistency bounds, convergence study
    plots: Convergence curves and covariance heatmaps
"""

from .metrics import (
    compute_nees,
    covariance_frobenius_error,
    monte_carlo_convergence,
    nees_consistency_bounds,
    relative_covariance_error,
)
from .plots import (
    plot_covariance_comparison,
    plot_covariance_convergence,
    save_figure,
)

__all__ = [
    # Metrics
    "covariance_frobenius_error",
    "relative_covariance_error",
    "compute_nees",
    "nees_consistency_bounds",
    "monte_carlo_convergence",
    # Plots
    "plot_covariance_convergence",
    "plot_covariance_comparison",
    "save_figure",
]
