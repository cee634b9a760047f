"""
Ground-truth motion scenarios for IMU simulation.

A Scenario is a continuous-time trajectory: for any time t it provides the
body pose, angular velocity and linear acceleration. Derived quantities
(body-frame velocity and acceleration, the full navigation state) follow
from a small set of primitives that concrete scenarios implement:

    pose(t)            body-to-navigation pose
    omega_b(t)         angular velocity in body frame [rad/s]
    velocity_n(t)      velocity in navigation frame [m/s]
    acceleration_n(t)  acceleration in navigation frame [m/s^2]

Two concrete scenarios are provided:
    ConstantTwistScenario: constant body twist (spin, straight line, loop,
                           helix), pose(t) = T0 * Exp([w, v] t)
    AcceleratingScenario: constant navigation-frame acceleration with an
                          optional constant body rotation rate

Scenarios are immutable after construction and may be shared between
several simulations; consumers only query them.
"""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from imusim.geometry import Pose3, rot3_expmap
from .types import NavState


def _as_vector3(name: str, value) -> np.ndarray:
    value = np.array(value, dtype=np.float64)
    if value.shape != (3,):
        raise ValueError(f"{name} must have shape (3,), got {value.shape}")
    return value


class Scenario(ABC):
    """Abstract continuous-time trajectory."""

    @abstractmethod
    def pose(self, t: float) -> Pose3:
        """Body-to-navigation pose at time t."""

    @abstractmethod
    def omega_b(self, t: float) -> np.ndarray:
        """Angular velocity in body frame at time t [rad/s]."""

    @abstractmethod
    def velocity_n(self, t: float) -> np.ndarray:
        """Velocity in navigation frame at time t [m/s]."""

    @abstractmethod
    def acceleration_n(self, t: float) -> np.ndarray:
        """Acceleration in navigation frame at time t [m/s^2]."""

    def rotation(self, t: float) -> np.ndarray:
        """Body-to-navigation rotation matrix at time t."""
        return self.pose(t).rotation

    def nav_state(self, t: float) -> NavState:
        """Pose and navigation-frame velocity at time t."""
        return NavState(pose=self.pose(t), velocity=self.velocity_n(t))

    def velocity_b(self, t: float) -> np.ndarray:
        """Velocity expressed in body frame, R(t)^T v_n(t)."""
        return self.rotation(t).T @ self.velocity_n(t)

    def acceleration_b(self, t: float) -> np.ndarray:
        """Acceleration expressed in body frame, R(t)^T a_n(t)."""
        return self.rotation(t).T @ self.acceleration_n(t)


class ConstantTwistScenario(Scenario):
    """
    Motion with a constant body-frame twist.

    The body rotates at constant rate w and moves with constant body-frame
    velocity v, so the trajectory is the one-parameter subgroup
        pose(t) = T0 * Exp([w, v] * t)

    Special cases:
        - w = 0: straight line at constant velocity
        - v = 0: spinning in place
        - w = (0, 0, wz), v = (vx, 0, 0): horizontal circle ("loop")

    Args:
        w: Body angular velocity [rad/s], shape (3,).
        v: Body linear velocity [m/s], shape (3,).
        initial_pose: Pose at t = 0. Default identity.

    Example:
        >>> import numpy as np
        >>> # Drive a circle of radius 10 m at 2 m/s
        >>> scenario = ConstantTwistScenario(
        ...     w=np.array([0.0, 0.0, 0.2]), v=np.array([2.0, 0.0, 0.0])
        ... )
        >>> np.allclose(scenario.acceleration_b(0.0), [0.0, 0.4, 0.0])
        True
    """

    def __init__(
        self,
        w: np.ndarray,
        v: np.ndarray,
        initial_pose: Optional[Pose3] = None,
    ) -> None:
        self._w = _as_vector3("w", w)
        self._v = _as_vector3("v", v)
        self._initial_pose = initial_pose if initial_pose is not None else Pose3.identity()
        self._twist = np.concatenate([self._w, self._v])

    def pose(self, t: float) -> Pose3:
        return self._initial_pose.compose(Pose3.expmap(self._twist * t))

    def omega_b(self, t: float) -> np.ndarray:
        return self._w.copy()

    def velocity_n(self, t: float) -> np.ndarray:
        return self.rotation(t) @ self._v

    def acceleration_n(self, t: float) -> np.ndarray:
        # Body velocity is constant, so the only acceleration is centripetal
        return self.rotation(t) @ np.cross(self._w, self._v)


class AcceleratingScenario(Scenario):
    """
    Constant navigation-frame acceleration with constant body rotation rate.

    Kinematics:
        R(t) = nRb * Exp(omega_b * t)
        p(t) = p0 + v0 * t + 0.5 * a_n * t^2
        v(t) = v0 + a_n * t

    Args:
        nRb: Initial body-to-navigation rotation, shape (3, 3).
        p0: Initial position [m], shape (3,).
        v0: Initial velocity in navigation frame [m/s], shape (3,).
        a_n: Constant acceleration in navigation frame [m/s^2], shape (3,).
        omega_b: Constant body angular velocity [rad/s], shape (3,).
                 Default zero.
    """

    def __init__(
        self,
        nRb: np.ndarray,
        p0: np.ndarray,
        v0: np.ndarray,
        a_n: np.ndarray,
        omega_b: Optional[np.ndarray] = None,
    ) -> None:
        self._nRb = Pose3(rotation=nRb).rotation
        self._p0 = _as_vector3("p0", p0)
        self._v0 = _as_vector3("v0", v0)
        self._a_n = _as_vector3("a_n", a_n)
        self._omega_b = (
            np.zeros(3) if omega_b is None else _as_vector3("omega_b", omega_b)
        )

    def pose(self, t: float) -> Pose3:
        return Pose3(
            rotation=self._nRb @ rot3_expmap(self._omega_b * t),
            translation=self._p0 + self._v0 * t + 0.5 * self._a_n * t * t,
        )

    def omega_b(self, t: float) -> np.ndarray:
        return self._omega_b.copy()

    def velocity_n(self, t: float) -> np.ndarray:
        return self._v0 + self._a_n * t

    def acceleration_n(self, t: float) -> np.ndarray:
        return self._a_n.copy()


def stationary_scenario(initial_pose: Optional[Pose3] = None) -> ConstantTwistScenario:
    """Scenario that never moves (zero twist)."""
    return ConstantTwistScenario(w=np.zeros(3), v=np.zeros(3), initial_pose=initial_pose)
