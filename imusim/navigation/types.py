"""
Data structures for IMU navigation and preintegration.

This module defines the value types shared by scenarios, preintegration and
the scenario runner:
    - ConstantBias: accelerometer and gyroscope bias
    - NavState: pose and navigation-frame velocity at one instant
    - PoseVelocityBias: result of predicting motion from preintegrated data

Frame Conventions:
    - B: Body frame (IMU frame)
    - N: Navigation frame, Z up, gravity along -Z
    - Poses map body coordinates to navigation coordinates.
"""

from dataclasses import dataclass, field

import numpy as np

from imusim.geometry import Pose3


def _as_vector3(name: str, value: np.ndarray) -> np.ndarray:
    value = np.asarray(value, dtype=np.float64)
    if value.shape != (3,):
        raise ValueError(f"{name} must have shape (3,), got {value.shape}")
    return value


@dataclass(frozen=True)
class ConstantBias:
    """
    Constant IMU bias.

    Attributes:
        accelerometer: Accelerometer bias b_a in body frame [m/s^2], shape (3,).
        gyroscope: Gyroscope bias b_g in body frame [rad/s], shape (3,).

    Notes:
        - Measurements are corrected as a_corrected = a_measured - b_a and
          omega_corrected = omega_measured - b_g.
        - Frozen: bias values are never modified in place.
    """

    accelerometer: np.ndarray = field(default_factory=lambda: np.zeros(3))
    gyroscope: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        """Validate and normalize shapes."""
        object.__setattr__(
            self, "accelerometer", _as_vector3("accelerometer", self.accelerometer)
        )
        object.__setattr__(self, "gyroscope", _as_vector3("gyroscope", self.gyroscope))

    def correct_accelerometer(self, measured_acc: np.ndarray) -> np.ndarray:
        """Remove the accelerometer bias from a measurement."""
        return measured_acc - self.accelerometer

    def correct_gyroscope(self, measured_omega: np.ndarray) -> np.ndarray:
        """Remove the gyroscope bias from a measurement."""
        return measured_omega - self.gyroscope

    def __sub__(self, other: "ConstantBias") -> "ConstantBias":
        return ConstantBias(
            accelerometer=self.accelerometer - other.accelerometer,
            gyroscope=self.gyroscope - other.gyroscope,
        )

    def to_array(self) -> np.ndarray:
        """Stack as [b_a, b_g], shape (6,)."""
        return np.concatenate([self.accelerometer, self.gyroscope])


@dataclass
class NavState:
    """
    Navigation state at a single instant.

    Attributes:
        pose: Body pose in the navigation frame.
        velocity: Velocity of the body origin in the navigation frame [m/s].
    """

    pose: Pose3
    velocity: np.ndarray

    def __post_init__(self) -> None:
        """Validate velocity shape."""
        self.velocity = _as_vector3("velocity", self.velocity)

    @property
    def rotation(self) -> np.ndarray:
        """Body-to-navigation rotation matrix."""
        return self.pose.rotation

    @property
    def position(self) -> np.ndarray:
        """Position in the navigation frame."""
        return self.pose.translation

    @property
    def body_velocity(self) -> np.ndarray:
        """Velocity expressed in the body frame, R^T v."""
        return self.pose.rotation.T @ self.velocity


@dataclass
class PoseVelocityBias:
    """
    Predicted navigation state plus the bias used to obtain it.

    Attributes:
        pose: Predicted pose at the end of the preintegration interval.
        velocity: Predicted navigation-frame velocity [m/s].
        bias: Bias estimate used for the prediction.
    """

    pose: Pose3
    velocity: np.ndarray
    bias: ConstantBias = field(default_factory=ConstantBias)

    def __post_init__(self) -> None:
        """Validate velocity shape."""
        self.velocity = _as_vector3("velocity", self.velocity)

    def nav_state(self) -> NavState:
        """Drop the bias and return the pose/velocity pair."""
        return NavState(pose=self.pose, velocity=self.velocity)
