"""SO(3) helpers for on-manifold IMU integration.

This module provides the small set of rotation-group operations needed by
preintegration and by the pose algebra in pose3.py:
- skew: 3-vector to skew-symmetric matrix (the "hat" operator)
- rot3_expmap: Exponential map so(3) -> SO(3)
- rot3_logmap: Logarithm map SO(3) -> so(3)
- rot3_right_jacobian: Right Jacobian of the exponential map

Conventions:
- Rotation matrices are 3x3 numpy arrays R such that v_nav = R @ v_body.
- Tangent vectors are rotation vectors (axis * angle) in radians.
- Perturbations are applied on the right: R' = R @ Exp(phi).

Exponential and logarithm maps delegate to scipy.spatial.transform.Rotation.

Reference: Forster et al., "On-Manifold Preintegration for Real-Time
Visual-Inertial Odometry", IEEE T-RO 2017, Section III.
"""

import numpy as np
from numpy.typing import NDArray
from scipy.spatial.transform import Rotation

# Below this angle the closed-form Jacobian is replaced by its Taylor expansion
_SMALL_ANGLE = 1e-5


def skew(v: NDArray[np.float64]) -> NDArray[np.float64]:
    """Build the skew-symmetric matrix [v]x such that [v]x @ u = v x u.

    Args:
        v: 3-vector.

    Returns:
        3x3 skew-symmetric matrix.

    Raises:
        ValueError: If v does not have shape (3,).

    Example:
        >>> S = skew(np.array([1.0, 2.0, 3.0]))
        >>> np.allclose(S @ np.array([0.0, 0.0, 1.0]), [2.0, -1.0, 0.0])
        True
    """
    v = np.asarray(v, dtype=np.float64)
    if v.shape != (3,):
        raise ValueError(f"v must have shape (3,), got {v.shape}")

    return np.array(
        [
            [0.0, -v[2], v[1]],
            [v[2], 0.0, -v[0]],
            [-v[1], v[0], 0.0],
        ],
        dtype=np.float64,
    )


def rot3_expmap(phi: NDArray[np.float64]) -> NDArray[np.float64]:
    """Exponential map from a rotation vector to a rotation matrix.

    Args:
        phi: Rotation vector (axis * angle), shape (3,), radians.

    Returns:
        3x3 rotation matrix Exp(phi). A zero vector maps to the identity
        exactly.

    Raises:
        ValueError: If phi does not have shape (3,).
    """
    phi = np.asarray(phi, dtype=np.float64)
    if phi.shape != (3,):
        raise ValueError(f"phi must have shape (3,), got {phi.shape}")

    return Rotation.from_rotvec(phi).as_matrix()


def rot3_logmap(R: NDArray[np.float64]) -> NDArray[np.float64]:
    """Logarithm map from a rotation matrix to a rotation vector.

    Args:
        R: 3x3 rotation matrix.

    Returns:
        Rotation vector phi with |phi| in [0, pi] such that Exp(phi) = R.

    Raises:
        ValueError: If R is not a 3x3 matrix.
    """
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        raise ValueError(f"Expected 3x3 matrix, got shape {R.shape}")

    return Rotation.from_matrix(R).as_rotvec()


def rot3_right_jacobian(phi: NDArray[np.float64]) -> NDArray[np.float64]:
    """Right Jacobian of SO(3) evaluated at phi.

    Relates an additive perturbation of the rotation vector to a right
    perturbation of the rotation:
        Exp(phi + dphi) ~= Exp(phi) @ Exp(Jr(phi) @ dphi)

    Closed form:
        Jr(phi) = I - (1 - cos t)/t^2 [phi]x + (t - sin t)/t^3 [phi]x^2,
        t = |phi|

    Args:
        phi: Rotation vector, shape (3,).

    Returns:
        3x3 right Jacobian.
    """
    phi = np.asarray(phi, dtype=np.float64)
    if phi.shape != (3,):
        raise ValueError(f"phi must have shape (3,), got {phi.shape}")

    theta = np.linalg.norm(phi)
    Phi = skew(phi)

    if theta < _SMALL_ANGLE:
        return np.eye(3) - 0.5 * Phi + Phi @ Phi / 6.0

    theta2 = theta * theta
    return (
        np.eye(3)
        - (1.0 - np.cos(theta)) / theta2 * Phi
        + (theta - np.sin(theta)) / (theta2 * theta) * Phi @ Phi
    )


def is_rotation_matrix(R: NDArray[np.float64], atol: float = 1e-9) -> bool:
    """Check orthonormality and unit determinant of a 3x3 matrix."""
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        return False
    return bool(
        np.allclose(R.T @ R, np.eye(3), atol=atol)
        and np.isclose(np.linalg.det(R), 1.0, atol=atol)
    )
