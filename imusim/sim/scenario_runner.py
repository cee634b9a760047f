"""
Simulate IMU measurements along a scenario and validate preintegration.

ScenarioRunner turns a ground-truth Scenario into IMU readings, integrates
them (optionally with sampled noise) into PreintegratedImuMeasurements, and
compares the analytic preintegration covariance with a Monte Carlo estimate.

Key insight: Accelerometers measure **specific force**, not acceleration.
For a stationary, level device with gravity g_N = [0, 0, -10]:
    - True acceleration: a_B = [0, 0, 0]
    - Specific force: f_B = a_B - R^T g_N = [0, 0, +10]

Forward model:
    omega_meas(t) = omega_B(t)
    f_meas(t)     = a_B(t) - R(t)^T g_N

Gravity is fixed at [0, 0, -10] (Z up, magnitude rounded for readability
of the numbers, not physical precision).

Covariance layouts:
    PIM covariance (9x9):   position 0-2, velocity 3-5, rotation 6-8
    Pose covariance (6x6):  rotation 0-2, position 3-5
"""

import warnings
from typing import Optional, Tuple

import numpy as np

from imusim.navigation import (
    ConstantBias,
    PoseVelocityBias,
    PreintegratedImuMeasurements,
    PreintegrationParams,
    Scenario,
)
from imusim.noise import IsotropicNoiseModel, Sampler

# Relative tolerance when checking that T is a whole number of samples
_STEP_TOLERANCE = 1e-9

# Dimension of the pose tangent space (rotation + translation)
POSE_DIM = 6


class ScenarioRunner:
    """
    Generate IMU measurements for a scenario and reconcile covariances.

    The runner borrows the scenario: it keeps a reference, never copies or
    modifies it, and the scenario must stay valid for as long as the runner
    is used.

    Args:
        scenario: Ground-truth trajectory.
        imu_sample_time: Seconds per IMU sample. Default 0.01 (100 Hz).
        gyro_sigma: Gyroscope noise density per axis. Default 0.17.
        acc_sigma: Accelerometer noise density per axis. Default 0.01.

    Raises:
        ValueError: If imu_sample_time is not positive, or a sigma is
                    negative or not finite.

    Example:
        >>> import numpy as np
        >>> from imusim.navigation import ConstantTwistScenario
        >>> scenario = ConstantTwistScenario(w=np.array([0.0, 0.0, 0.1]),
        ...                                  v=np.array([1.0, 0.0, 0.0]))
        >>> runner = ScenarioRunner(scenario, imu_sample_time=0.1)
        >>> pim = runner.integrate(1.0)
        >>> runner.pose_covariance(pim).shape
        (6, 6)
    """

    def __init__(
        self,
        scenario: Scenario,
        imu_sample_time: float = 1.0 / 100.0,
        gyro_sigma: float = 0.17,
        acc_sigma: float = 0.01,
    ) -> None:
        if not imu_sample_time > 0:
            raise ValueError(f"imu_sample_time must be positive, got {imu_sample_time}")

        self._scenario = scenario
        self._imu_sample_time = float(imu_sample_time)
        self._gyro_noise_model = IsotropicNoiseModel.sigma(3, gyro_sigma)
        self._acc_noise_model = IsotropicNoiseModel.sigma(3, acc_sigma)

    @staticmethod
    def gravity_n() -> np.ndarray:
        """Gravity in the navigation frame, Z up: [0, 0, -10]."""
        return np.array([0.0, 0.0, -10.0])

    @property
    def scenario(self) -> Scenario:
        return self._scenario

    @property
    def imu_sample_time(self) -> float:
        return self._imu_sample_time

    @property
    def gyro_noise_model(self) -> IsotropicNoiseModel:
        return self._gyro_noise_model

    @property
    def acc_noise_model(self) -> IsotropicNoiseModel:
        return self._acc_noise_model

    def gyro_covariance(self) -> np.ndarray:
        return self._gyro_noise_model.covariance()

    def acc_covariance(self) -> np.ndarray:
        return self._acc_noise_model.covariance()

    def preintegration_params(self) -> PreintegrationParams:
        """Preintegration settings matching this runner's noise and gravity."""
        return PreintegrationParams.from_noise_models(
            self._gyro_noise_model, self._acc_noise_model, self.gravity_n()
        )

    # ------------------------------------------------------------------
    # Sensor model
    # ------------------------------------------------------------------

    def measured_angular_velocity(self, t: float) -> np.ndarray:
        """A gyroscope measures angular velocity in body frame directly."""
        return self._scenario.omega_b(t)

    def measured_acceleration(self, t: float) -> np.ndarray:
        """
        Specific force in body frame: f_B = a_B - R^T g_N.

        The accelerometer senses everything except gravity, so gravity is
        rotated into the body frame and subtracted from the true body
        acceleration.
        """
        bRn = self._scenario.rotation(t).T
        return self._scenario.acceleration_b(t) - bRn @ self.gravity_n()

    # ------------------------------------------------------------------
    # Integration and prediction
    # ------------------------------------------------------------------

    def num_steps(self, T: float) -> int:
        """
        Number of IMU samples covering [0, T].

        Raises:
            ValueError: If T is negative or not a whole multiple of the
                        sample time. Partial samples are never integrated.
        """
        if T < 0:
            raise ValueError(f"T must be non-negative, got {T}")

        steps = int(round(T / self._imu_sample_time))
        if not np.isclose(
            steps * self._imu_sample_time, T, rtol=_STEP_TOLERANCE, atol=0.0
        ):
            raise ValueError(
                f"T={T} is not a multiple of imu_sample_time={self._imu_sample_time}"
            )
        return steps

    def integrate(
        self,
        T: float,
        gyro_sampler: Optional[Sampler] = None,
        acc_sampler: Optional[Sampler] = None,
    ) -> PreintegratedImuMeasurements:
        """
        Integrate measurements over [0, T] into a fresh PIM.

        Each sample k is taken at t = k * imu_sample_time. If a sampler is
        given for a channel, one draw from it is added to that channel's
        reading; samplers are expected to already be scaled for the sample
        time (see IsotropicNoiseModel.discretized).

        Args:
            T: Integration horizon [s], a whole multiple of imu_sample_time.
            gyro_sampler: Optional gyroscope noise sampler.
            acc_sampler: Optional accelerometer noise sampler.

        Returns:
            PreintegratedImuMeasurements holding all T / imu_sample_time steps.
        """
        steps = self.num_steps(T)
        dt = self._imu_sample_time
        pim = PreintegratedImuMeasurements(self.preintegration_params())

        for k in range(steps):
            t = k * dt

            measured_omega = self.measured_angular_velocity(t)
            if gyro_sampler is not None:
                measured_omega = measured_omega + gyro_sampler.sample()

            measured_acc = self.measured_acceleration(t)
            if acc_sampler is not None:
                measured_acc = measured_acc + acc_sampler.sample()

            pim.integrate_measurement(measured_acc, measured_omega, dt)

        return pim

    def predict(self, pim: PreintegratedImuMeasurements) -> PoseVelocityBias:
        """Predict the state at the end of the PIM from the scenario's start state."""
        return pim.predict(self._scenario.nav_state(0.0), ConstantBias())

    # ------------------------------------------------------------------
    # Covariance reconciliation
    # ------------------------------------------------------------------

    def pose_covariance(self, pim: PreintegratedImuMeasurements) -> np.ndarray:
        """
        Re-arrange the PIM covariance into pose order (rotation, position).

        Picks the rotation (6-8) and position (0-2) blocks out of the 9x9
        preintegration covariance:
            [[cov[6:9, 6:9], cov[6:9, 0:3]],
             [cov[0:3, 6:9], cov[0:3, 0:3]]]
        Values are copied unchanged.
        """
        cov = pim.preint_meas_cov()
        return np.block(
            [
                [cov[6:9, 6:9], cov[6:9, 0:3]],
                [cov[0:3, 6:9], cov[0:3, 0:3]],
            ]
        )

    def make_samplers(
        self, seed: Optional[int] = None
    ) -> Tuple[Optional[Sampler], Optional[Sampler]]:
        """
        Independent gyro and accelerometer samplers for this sample time.

        Both generators are spawned from one SeedSequence so a single seed
        reproduces the whole Monte Carlo run. A channel with zero sigma gets
        no sampler.

        Returns:
            Tuple (gyro_sampler, acc_sampler), either may be None.
        """
        gyro_seq, acc_seq = np.random.SeedSequence(seed).spawn(2)
        dt = self._imu_sample_time

        gyro_sampler = None
        if self._gyro_noise_model.sigma_value > 0:
            gyro_sampler = Sampler(self._gyro_noise_model.discretized(dt), seed=gyro_seq)

        acc_sampler = None
        if self._acc_noise_model.sigma_value > 0:
            acc_sampler = Sampler(self._acc_noise_model.discretized(dt), seed=acc_seq)

        return gyro_sampler, acc_sampler

    def sample_pose_deviations(
        self, T: float, N: int = 1000, seed: Optional[int] = 42
    ) -> np.ndarray:
        """
        Pose deviations of N noisy integrations from the noiseless one.

        Poses are taken relative to the scenario's initial pose, and the
        deviation of each trial is nominal.local_coordinates(sampled), i.e.
        [rotation error, position error] in the same parametrization as the
        PIM error state.

        Args:
            T: Integration horizon [s].
            N: Number of Monte Carlo trials, at least 1.
            seed: Seed for the noise samplers.

        Returns:
            Deviations, shape (N, 6).
        """
        if N < 1:
            raise ValueError(f"N must be at least 1, got {N}")
        if N < POSE_DIM:
            warnings.warn(
                f"N={N} trials is fewer than the pose dimension {POSE_DIM}; "
                "the estimated covariance will be rank deficient",
                RuntimeWarning,
                stacklevel=2,
            )

        initial_pose = self._scenario.pose(0.0)
        nominal = initial_pose.between(self.predict(self.integrate(T)).pose)
        gyro_sampler, acc_sampler = self.make_samplers(seed)

        deviations = np.zeros((N, POSE_DIM))
        for i in range(N):
            pim = self.integrate(T, gyro_sampler, acc_sampler)
            sampled = initial_pose.between(self.predict(pim).pose)
            deviations[i] = nominal.local_coordinates(sampled)

        return deviations

    def estimate_pose_covariance(
        self, T: float, N: int = 1000, seed: Optional[int] = 42
    ) -> np.ndarray:
        """
        Monte Carlo estimate of the pose covariance after T seconds.

        Runs N noisy integrations and averages the outer products of their
        pose deviations from the noiseless prediction:
            Q = (1/N) * sum_i xi_i xi_i^T
        The deviations are centered by construction (the noiseless
        prediction is the expected value), so no sample mean is removed.
        As N grows, Q should approach pose_covariance(integrate(T)).

        Args:
            T: Integration horizon [s].
            N: Number of Monte Carlo trials. Default 1000.
            seed: Seed for the noise samplers.

        Returns:
            Empirical 6x6 covariance, rotation first.
        """
        deviations = self.sample_pose_deviations(T, N, seed)
        return deviations.T @ deviations / N
