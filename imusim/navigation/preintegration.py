"""
On-manifold IMU preintegration with covariance propagation.

PreintegratedImuMeasurements summarizes a sequence of IMU samples between
two times i and j as relative motion increments expressed in the body frame
at time i:
    delta_R_ij   rotation increment
    delta_v_ij   velocity increment (gravity-free)
    delta_p_ij   position increment (gravity-free, zero initial velocity)
    delta_t_ij   total integration time

together with the 9x9 covariance of their errors and the first-order
Jacobians of the increments with respect to the bias estimate.

Error state ordering (rows/columns of preint_meas_cov()):
    0-2: position error delta_p (additive, frame i)
    3-5: velocity error delta_v (additive, frame i)
    6-8: rotation error phi (right perturbation, delta_R_true * Exp(phi))

Per-step update with bias-corrected a, w over dt (Forster et al. 2017):
    delta_p += delta_v dt + 0.5 delta_R a dt^2
    delta_v += delta_R a dt
    delta_R  = delta_R Exp(w dt)

Error propagation:
    Sigma' = A Sigma A^T + B (Sigma_acc / dt) B^T + C (Sigma_gyro / dt) C^T
    A = [[I, I dt, -0.5 delta_R [a]x dt^2],
         [0, I,    -delta_R [a]x dt      ],
         [0, 0,     Exp(w dt)^T          ]]
    B = [0.5 delta_R dt^2; delta_R dt; 0]
    C = [0; 0; Jr(w dt) dt]

References:
    Forster, Carlone, Dellaert, Scaramuzza, "On-Manifold Preintegration for
    Real-Time Visual-Inertial Odometry", IEEE T-RO 33(1), 2017.
    Lupton and Sukkarieh, IEEE T-RO 28(1), 2012.
"""

from typing import Optional

import numpy as np

from imusim.geometry import Pose3, rot3_expmap, rot3_right_jacobian, skew
from .params import PreintegrationParams
from .types import ConstantBias, NavState, PoseVelocityBias

POSITION = slice(0, 3)
VELOCITY = slice(3, 6)
ROTATION = slice(6, 9)


class PreintegratedImuMeasurements:
    """
    Accumulator of IMU measurements between two keyframes.

    Args:
        params: Noise covariances, gravity and integration order.
        bias_hat: Bias estimate used to correct incoming measurements.
                  Default zero bias.

    Example:
        >>> import numpy as np
        >>> params = PreintegrationParams(
        ...     acc_covariance=1e-4 * np.eye(3), gyro_covariance=1e-4 * np.eye(3)
        ... )
        >>> pim = PreintegratedImuMeasurements(params)
        >>> for _ in range(100):
        ...     pim.integrate_measurement(np.array([0.0, 0.0, 10.0]), np.zeros(3), 0.01)
        >>> state = pim.predict(NavState(Pose3.identity(), np.zeros(3)))
        >>> np.allclose(state.velocity, 0.0)
        True
    """

    def __init__(
        self,
        params: PreintegrationParams,
        bias_hat: Optional[ConstantBias] = None,
    ) -> None:
        self._params = params
        self._bias_hat = bias_hat if bias_hat is not None else ConstantBias()
        self.reset_integration()

    def reset_integration(self) -> None:
        """Return to the zero/identity state with zero covariance."""
        self._delta_t = 0.0
        self._delta_p = np.zeros(3)
        self._delta_v = np.zeros(3)
        self._delta_R = np.eye(3)
        self._cov = np.zeros((9, 9))

        self._dP_dba = np.zeros((3, 3))
        self._dP_dbw = np.zeros((3, 3))
        self._dV_dba = np.zeros((3, 3))
        self._dV_dbw = np.zeros((3, 3))
        self._dR_dbw = np.zeros((3, 3))

    @property
    def params(self) -> PreintegrationParams:
        return self._params

    @property
    def bias_hat(self) -> ConstantBias:
        return self._bias_hat

    def delta_t_ij(self) -> float:
        return self._delta_t

    def delta_p_ij(self) -> np.ndarray:
        return self._delta_p.copy()

    def delta_v_ij(self) -> np.ndarray:
        return self._delta_v.copy()

    def delta_r_ij(self) -> np.ndarray:
        return self._delta_R.copy()

    def preint_meas_cov(self) -> np.ndarray:
        """9x9 covariance of the increments, ordered (position, velocity, rotation)."""
        return self._cov.copy()

    def bias_jacobians(self) -> dict:
        """First-order Jacobians of the increments w.r.t. the bias estimate."""
        return {
            "dP_dba": self._dP_dba.copy(),
            "dP_dbw": self._dP_dbw.copy(),
            "dV_dba": self._dV_dba.copy(),
            "dV_dbw": self._dV_dbw.copy(),
            "dR_dbw": self._dR_dbw.copy(),
        }

    def integrate_measurement(
        self,
        measured_acc: np.ndarray,
        measured_omega: np.ndarray,
        dt: float,
    ) -> None:
        """
        Add one IMU sample held constant over dt.

        Args:
            measured_acc: Specific force measured by the accelerometer,
                          body frame [m/s^2], shape (3,).
            measured_omega: Angular velocity measured by the gyroscope,
                            body frame [rad/s], shape (3,).
            dt: Duration of the sample [s], must be positive.

        Raises:
            ValueError: If dt is not positive or a measurement has the wrong
                        shape.
        """
        measured_acc = np.asarray(measured_acc, dtype=np.float64)
        measured_omega = np.asarray(measured_omega, dtype=np.float64)
        if measured_acc.shape != (3,):
            raise ValueError(
                f"measured_acc must have shape (3,), got {measured_acc.shape}"
            )
        if measured_omega.shape != (3,):
            raise ValueError(
                f"measured_omega must have shape (3,), got {measured_omega.shape}"
            )
        if not dt > 0:
            raise ValueError(f"dt must be positive, got {dt}")

        a = self._bias_hat.correct_accelerometer(measured_acc)
        w = self._bias_hat.correct_gyroscope(measured_omega)

        theta_incr = w * dt
        R_incr = rot3_expmap(theta_incr)
        Jr_incr = rot3_right_jacobian(theta_incr)

        # All Jacobians below are evaluated at the state before this step
        R = self._delta_R
        R_a_skew = R @ skew(a)
        second_order = self._params.use_second_order
        half_dt2 = 0.5 * dt * dt

        I3 = np.eye(3)
        A = np.eye(9)
        A[POSITION, VELOCITY] = I3 * dt
        A[VELOCITY, ROTATION] = -R_a_skew * dt
        A[ROTATION, ROTATION] = R_incr.T

        B = np.zeros((9, 3))
        B[VELOCITY] = R * dt

        C = np.zeros((9, 3))
        C[ROTATION] = Jr_incr * dt

        if second_order:
            A[POSITION, ROTATION] = -R_a_skew * half_dt2
            B[POSITION] = R * half_dt2

        self._cov = A @ self._cov @ A.T
        self._cov += B @ (self._params.acc_covariance / dt) @ B.T
        self._cov += C @ (self._params.gyro_covariance / dt) @ C.T
        self._cov[POSITION, POSITION] += self._params.integration_covariance * dt

        # Bias Jacobians (position first: it uses the old velocity Jacobians)
        if second_order:
            self._dP_dba += self._dV_dba * dt - R * half_dt2
            self._dP_dbw += self._dV_dbw * dt - R_a_skew @ self._dR_dbw * half_dt2
        else:
            self._dP_dba += self._dV_dba * dt
            self._dP_dbw += self._dV_dbw * dt
        self._dV_dba -= R * dt
        self._dV_dbw -= R_a_skew @ self._dR_dbw * dt
        self._dR_dbw = R_incr.T @ self._dR_dbw - Jr_incr * dt

        # Increments
        acc_rotated = R @ a
        if second_order:
            self._delta_p += self._delta_v * dt + acc_rotated * half_dt2
        else:
            self._delta_p += self._delta_v * dt
        self._delta_v += acc_rotated * dt
        self._delta_R = R @ R_incr
        self._delta_t += dt

    def bias_corrected_delta(self, bias: ConstantBias):
        """
        Increments re-linearized for a new bias estimate.

        Uses the first-order bias Jacobians, so no re-integration is needed
        for small bias changes:
            delta_R' = delta_R Exp(dR_dbw db_w)
            delta_v' = delta_v + dV_dba db_a + dV_dbw db_w
            delta_p' = delta_p + dP_dba db_a + dP_dbw db_w

        Returns:
            Tuple (delta_R, delta_v, delta_p).
        """
        db = bias - self._bias_hat
        delta_R = self._delta_R @ rot3_expmap(self._dR_dbw @ db.gyroscope)
        delta_v = (
            self._delta_v + self._dV_dba @ db.accelerometer + self._dV_dbw @ db.gyroscope
        )
        delta_p = (
            self._delta_p + self._dP_dba @ db.accelerometer + self._dP_dbw @ db.gyroscope
        )
        return delta_R, delta_v, delta_p

    def predict(
        self,
        state_i: NavState,
        bias: Optional[ConstantBias] = None,
    ) -> PoseVelocityBias:
        """
        Predict the navigation state at time j from the state at time i.

            R_j = R_i delta_R
            v_j = v_i + g dt_ij + R_i delta_v
            p_j = p_i + v_i dt_ij + 0.5 g dt_ij^2 + R_i delta_p

        Args:
            state_i: Navigation state at the start of the interval.
            bias: Bias to predict with. Default: the bias used for integration.

        Returns:
            PoseVelocityBias at the end of the interval.
        """
        if bias is None:
            bias = self._bias_hat

        delta_R, delta_v, delta_p = self.bias_corrected_delta(bias)

        R_i = state_i.rotation
        p_i = state_i.position
        v_i = state_i.velocity
        g = self._params.gravity_n
        dt = self._delta_t

        R_j = R_i @ delta_R
        v_j = v_i + g * dt + R_i @ delta_v
        p_j = p_i + v_i * dt + 0.5 * g * dt * dt + R_i @ delta_p

        return PoseVelocityBias(
            pose=Pose3(rotation=R_j, translation=p_j),
            velocity=v_j,
            bias=bias,
        )
