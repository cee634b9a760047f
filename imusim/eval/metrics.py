"""
Evaluation Metrics for Covariance Validation.

This module provides functions to compare an analytically propagated
covariance against a Monte Carlo estimate and to check the statistical
consistency of sampled deviations.
"""

from typing import Dict, Iterable, Optional, Tuple

import numpy as np
from scipy import stats


def _check_square_pair(estimated: np.ndarray, reference: np.ndarray) -> None:
    if estimated.ndim != 2 or estimated.shape[0] != estimated.shape[1]:
        raise ValueError(f"estimated must be a square matrix, got {estimated.shape}")
    if estimated.shape != reference.shape:
        raise ValueError(
            f"Shape mismatch: estimated {estimated.shape} vs reference {reference.shape}"
        )


def covariance_frobenius_error(estimated: np.ndarray, reference: np.ndarray) -> float:
    """
    Frobenius norm of the difference between two covariance matrices.

    Args:
        estimated: Estimated covariance, shape (n, n)
        reference: Reference covariance, shape (n, n)

    Returns:
        error: ||estimated - reference||_F

    Raises:
        ValueError: If inputs have incompatible shapes
    """
    estimated = np.asarray(estimated, dtype=np.float64)
    reference = np.asarray(reference, dtype=np.float64)
    _check_square_pair(estimated, reference)

    return float(np.linalg.norm(estimated - reference, ord="fro"))


def relative_covariance_error(estimated: np.ndarray, reference: np.ndarray) -> float:
    """
    Frobenius error normalized by the size of the reference.

    Returns:
        error: ||estimated - reference||_F / ||reference||_F

    Raises:
        ValueError: If shapes differ or the reference is the zero matrix
    """
    estimated = np.asarray(estimated, dtype=np.float64)
    reference = np.asarray(reference, dtype=np.float64)
    _check_square_pair(estimated, reference)

    scale = np.linalg.norm(reference, ord="fro")
    if scale == 0.0:
        raise ValueError("reference covariance is zero; relative error is undefined")

    return float(np.linalg.norm(estimated - reference, ord="fro") / scale)


def compute_nees(deviations: np.ndarray, covariance: np.ndarray) -> np.ndarray:
    """
    Compute Normalized Estimation Error Squared (NEES) of sampled deviations.

    NEES is a consistency metric:
        NEES_i = xi_i^T P^{-1} xi_i

    If the deviations are zero-mean Gaussian with covariance P, each NEES
    value follows a chi-squared distribution with n degrees of freedom.

    Args:
        deviations: Deviation vectors, shape (N, n)
        covariance: Covariance they are checked against, shape (n, n)

    Returns:
        nees: NEES values, shape (N,); all NaN if the covariance is singular

    Raises:
        ValueError: If inputs have incompatible shapes
    """
    deviations = np.asarray(deviations, dtype=np.float64)
    covariance = np.asarray(covariance, dtype=np.float64)

    if deviations.ndim == 1:
        deviations = deviations.reshape(1, -1)

    N, n = deviations.shape

    if covariance.shape != (n, n):
        raise ValueError(
            f"covariance must have shape ({n}, {n}), got {covariance.shape}"
        )

    try:
        whitened = np.linalg.solve(covariance, deviations.T)
    except np.linalg.LinAlgError:
        return np.full(N, np.nan)

    return np.einsum("ij,ji->i", deviations, whitened)


def nees_consistency_bounds(
    dof: int, n_samples: int, confidence: float = 0.95
) -> Tuple[float, float]:
    """
    Two-sided bounds for the average NEES of n_samples independent draws.

    The sum of n_samples NEES values is chi-squared with n_samples * dof
    degrees of freedom, so the average lies in
        [chi2.ppf((1-c)/2, N*dof) / N, chi2.ppf((1+c)/2, N*dof) / N]
    with probability c when the covariance is correct.

    Args:
        dof: Dimension of each deviation vector
        n_samples: Number of deviations averaged
        confidence: Confidence level in (0, 1)

    Returns:
        (lower, upper) bounds on the average NEES
    """
    if dof < 1:
        raise ValueError(f"Degrees of freedom must be positive, got {dof}")
    if n_samples < 1:
        raise ValueError(f"n_samples must be positive, got {n_samples}")
    if not (0 < confidence < 1):
        raise ValueError(f"Confidence level must be in (0, 1), got {confidence}")

    total_dof = dof * n_samples
    lower = float(stats.chi2.ppf((1.0 - confidence) / 2.0, total_dof)) / n_samples
    upper = float(stats.chi2.ppf((1.0 + confidence) / 2.0, total_dof)) / n_samples

    return lower, upper


def monte_carlo_convergence(
    runner,
    T: float,
    sample_counts: Iterable[int],
    seed: Optional[int] = 42,
) -> Dict[str, np.ndarray]:
    """
    Compare Monte Carlo pose covariance estimates with the analytic one.

    For each N in sample_counts, estimates the pose covariance with N trials
    (seeded with seed + k for the k-th entry so runs are independent) and
    measures its distance to runner.pose_covariance(runner.integrate(T)).
    The error should shrink roughly like 1/sqrt(N).

    Args:
        runner: ScenarioRunner providing integrate, pose_covariance and
                estimate_pose_covariance
        T: Integration horizon [s]
        sample_counts: Trial counts to evaluate (any iterable, e.g. wrapped
                       in a progress bar)
        seed: Base seed. None draws fresh entropy for every run.

    Returns:
        results: Dictionary with keys:
                 - 'sample_counts': N values, shape (K,)
                 - 'frobenius_errors': ||Q_N - P||_F, shape (K,)
                 - 'relative_errors': ||Q_N - P||_F / ||P||_F, shape (K,)
                   (NaN when P is zero)
                 - 'analytic': P, shape (6, 6)
                 - 'estimates': Q_N stacked, shape (K, 6, 6)
    """
    analytic = runner.pose_covariance(runner.integrate(T))
    analytic_norm = np.linalg.norm(analytic, ord="fro")

    counts = []
    estimates = []
    frobenius_errors = []
    relative_errors = []
    for k, n in enumerate(sample_counts):
        run_seed = None if seed is None else seed + k
        estimate = runner.estimate_pose_covariance(T, int(n), seed=run_seed)
        error = covariance_frobenius_error(estimate, analytic)

        counts.append(int(n))
        estimates.append(estimate)
        frobenius_errors.append(error)
        relative_errors.append(error / analytic_norm if analytic_norm > 0 else np.nan)

    return {
        "sample_counts": np.array(counts, dtype=int),
        "frobenius_errors": np.array(frobenius_errors),
        "relative_errors": np.array(relative_errors),
        "analytic": analytic,
        "estimates": np.array(estimates).reshape(-1, *analytic.shape),
    }
