"""SE(3) pose type for 3D navigation scenarios.

Pose3 is a rigid transformation in 3D (rotation + translation) that maps
body-frame coordinates into the navigation frame:
    p_nav = R @ p_body + t

Key operations:
    - compose / inverse / between: group operations
    - transform_from: apply the pose to a point
    - expmap: SE(3) exponential of a twist [omega, v]
    - retract / local_coordinates: the chart used for 6-D pose deviations

Tangent vectors are always ordered rotation first, translation second.
"""

from dataclasses import dataclass, field

import numpy as np

from .so3 import rot3_expmap, rot3_logmap, skew, is_rotation_matrix

_SMALL_ANGLE = 1e-5


@dataclass
class Pose3:
    """
    SE(3) pose: rotation matrix R (body to navigation) and translation t.

    Attributes:
        rotation: 3x3 rotation matrix R, v_nav = R @ v_body.
        translation: Position of the body origin in the navigation frame,
                     shape (3,), meters.

    Examples:
        >>> p = Pose3.identity()
        >>> q = Pose3(rotation=np.eye(3), translation=np.array([1.0, 0.0, 0.0]))
        >>> np.allclose(p.compose(q).translation, [1.0, 0.0, 0.0])
        True
    """

    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        """Validate shapes and orthonormality."""
        self.rotation = np.asarray(self.rotation, dtype=np.float64)
        self.translation = np.asarray(self.translation, dtype=np.float64)

        if self.rotation.shape != (3, 3):
            raise ValueError(
                f"rotation must have shape (3, 3), got {self.rotation.shape}"
            )
        if self.translation.shape != (3,):
            raise ValueError(
                f"translation must have shape (3,), got {self.translation.shape}"
            )
        if not is_rotation_matrix(self.rotation, atol=1e-6):
            raise ValueError("rotation must be orthonormal with det = +1")
        if not np.all(np.isfinite(self.translation)):
            raise ValueError(f"translation must be finite, got {self.translation}")

    @classmethod
    def identity(cls) -> "Pose3":
        """Identity pose (origin, no rotation)."""
        return cls(rotation=np.eye(3), translation=np.zeros(3))

    @classmethod
    def expmap(cls, xi: np.ndarray) -> "Pose3":
        """
        SE(3) exponential map of a twist xi = [omega, v].

        The translation is V(omega) @ v with
            V = I + (1 - cos t)/t^2 [omega]x + (t - sin t)/t^3 [omega]x^2,
        which is the displacement after following the constant body twist
        (omega, v) for unit time.

        Args:
            xi: Twist, shape (6,): angular part first, linear part second.

        Returns:
            Pose3 reached from the identity.
        """
        xi = np.asarray(xi, dtype=np.float64)
        if xi.shape != (6,):
            raise ValueError(f"xi must have shape (6,), got {xi.shape}")

        omega, v = xi[:3], xi[3:]
        theta = np.linalg.norm(omega)
        W = skew(omega)

        if theta < _SMALL_ANGLE:
            V = np.eye(3) + 0.5 * W + W @ W / 6.0
        else:
            theta2 = theta * theta
            V = (
                np.eye(3)
                + (1.0 - np.cos(theta)) / theta2 * W
                + (theta - np.sin(theta)) / (theta2 * theta) * W @ W
            )

        return cls(rotation=rot3_expmap(omega), translation=V @ v)

    def compose(self, other: "Pose3") -> "Pose3":
        """Group composition self * other."""
        return Pose3(
            rotation=self.rotation @ other.rotation,
            translation=self.translation + self.rotation @ other.translation,
        )

    def inverse(self) -> "Pose3":
        """Group inverse."""
        Rt = self.rotation.T
        return Pose3(rotation=Rt, translation=-Rt @ self.translation)

    def between(self, other: "Pose3") -> "Pose3":
        """Relative pose self^-1 * other (other expressed in self's frame)."""
        Rt = self.rotation.T
        return Pose3(
            rotation=Rt @ other.rotation,
            translation=Rt @ (other.translation - self.translation),
        )

    def transform_from(self, point: np.ndarray) -> np.ndarray:
        """Map a body-frame point into the navigation frame."""
        point = np.asarray(point, dtype=np.float64)
        if point.shape != (3,):
            raise ValueError(f"point must have shape (3,), got {point.shape}")
        return self.rotation @ point + self.translation

    def retract(self, xi: np.ndarray) -> "Pose3":
        """
        Move along a 6-D deviation xi = [dphi, dt].

        Rotation is perturbed on the right, translation additively in the
        navigation frame:
            R' = R @ Exp(dphi),  t' = t + dt

        This is the inverse of local_coordinates().
        """
        xi = np.asarray(xi, dtype=np.float64)
        if xi.shape != (6,):
            raise ValueError(f"xi must have shape (6,), got {xi.shape}")
        return Pose3(
            rotation=self.rotation @ rot3_expmap(xi[:3]),
            translation=self.translation + xi[3:],
        )

    def local_coordinates(self, other: "Pose3") -> np.ndarray:
        """
        6-D deviation of other from self: [Log(R^T R_other), t_other - t].

        This chart matches the error state of IMU preintegration (right
        rotation error, additive position error), so the sample covariance
        of these deviations is directly comparable to the preintegrated
        rotation/position covariance blocks.
        """
        dphi = rot3_logmap(self.rotation.T @ other.rotation)
        dt = other.translation - self.translation
        return np.concatenate([dphi, dt])

    def to_matrix(self) -> np.ndarray:
        """4x4 homogeneous transformation matrix."""
        T = np.eye(4)
        T[:3, :3] = self.rotation
        T[:3, 3] = self.translation
        return T

    def equals(self, other: "Pose3", tol: float = 1e-9) -> bool:
        """Element-wise comparison within an absolute tolerance."""
        return bool(
            np.allclose(self.rotation, other.rotation, atol=tol)
            and np.allclose(self.translation, other.translation, atol=tol)
        )

    def __repr__(self) -> str:
        """Readable string representation."""
        rv = rot3_logmap(self.rotation)
        return (
            f"Pose3(rotvec=[{rv[0]:.4f}, {rv[1]:.4f}, {rv[2]:.4f}], "
            f"t=[{self.translation[0]:.4f}, {self.translation[1]:.4f}, "
            f"{self.translation[2]:.4f}])"
        )
