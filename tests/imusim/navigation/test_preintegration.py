"""
Unit tests for imusim/navigation/preintegration.py.

Covers closed-form increments for constant measurements, prediction with
gravity, covariance propagation and the first-order bias Jacobians.

Run with: pytest tests/imusim/navigation/test_preintegration.py -v
"""

import unittest

import numpy as np

from imusim.geometry import Pose3, rot3_expmap
from imusim.navigation import (
    ConstantBias,
    NavState,
    PreintegratedImuMeasurements,
    PreintegrationParams,
)

LEVEL_AT_REST = np.array([0.0, 0.0, 10.0])


def make_params(acc_sigma=0.0, gyro_sigma=0.0, **kwargs):
    return PreintegrationParams(
        acc_covariance=acc_sigma**2 * np.eye(3),
        gyro_covariance=gyro_sigma**2 * np.eye(3),
        **kwargs,
    )


def integrate_constant(pim, acc, omega, dt, steps):
    for _ in range(steps):
        pim.integrate_measurement(acc, omega, dt)
    return pim


class TestIncrements(unittest.TestCase):
    """Test suite for the preintegrated increments."""

    def test_fresh_state(self) -> None:
        pim = PreintegratedImuMeasurements(make_params())

        self.assertEqual(pim.delta_t_ij(), 0.0)
        np.testing.assert_array_equal(pim.delta_p_ij(), np.zeros(3))
        np.testing.assert_array_equal(pim.delta_v_ij(), np.zeros(3))
        np.testing.assert_array_equal(pim.delta_r_ij(), np.eye(3))
        np.testing.assert_array_equal(pim.preint_meas_cov(), np.zeros((9, 9)))

    def test_constant_specific_force(self) -> None:
        """Constant acceleration integrates exactly with the second-order term."""
        pim = integrate_constant(
            PreintegratedImuMeasurements(make_params()),
            LEVEL_AT_REST, np.zeros(3), 0.01, 100,
        )

        self.assertAlmostEqual(pim.delta_t_ij(), 1.0)
        np.testing.assert_allclose(pim.delta_v_ij(), [0.0, 0.0, 10.0], atol=1e-10)
        np.testing.assert_allclose(pim.delta_p_ij(), [0.0, 0.0, 5.0], atol=1e-10)
        np.testing.assert_allclose(pim.delta_r_ij(), np.eye(3), atol=1e-15)

    def test_first_order_position(self) -> None:
        """Without the dt^2 term position lags by a * dt * T / 2."""
        pim = integrate_constant(
            PreintegratedImuMeasurements(make_params(use_second_order=False)),
            LEVEL_AT_REST, np.zeros(3), 0.01, 100,
        )

        np.testing.assert_allclose(pim.delta_p_ij(), [0.0, 0.0, 4.95], atol=1e-10)
        np.testing.assert_allclose(pim.delta_v_ij(), [0.0, 0.0, 10.0], atol=1e-10)

    def test_constant_rotation_rate(self) -> None:
        pim = integrate_constant(
            PreintegratedImuMeasurements(make_params()),
            np.zeros(3), np.array([0.0, 0.0, 1.0]), 0.01, 100,
        )

        np.testing.assert_allclose(
            pim.delta_r_ij(), rot3_expmap(np.array([0.0, 0.0, 1.0])), atol=1e-12
        )

    def test_accessors_return_copies(self) -> None:
        pim = PreintegratedImuMeasurements(make_params())
        pim.delta_p_ij()[0] = 99.0
        pim.preint_meas_cov()[0, 0] = 99.0

        np.testing.assert_array_equal(pim.delta_p_ij(), np.zeros(3))
        np.testing.assert_array_equal(pim.preint_meas_cov(), np.zeros((9, 9)))

    def test_reset(self) -> None:
        pim = integrate_constant(
            PreintegratedImuMeasurements(make_params(0.1, 0.1)),
            LEVEL_AT_REST, np.array([0.1, 0.0, 0.0]), 0.01, 10,
        )
        pim.reset_integration()

        self.assertEqual(pim.delta_t_ij(), 0.0)
        np.testing.assert_array_equal(pim.delta_r_ij(), np.eye(3))
        np.testing.assert_array_equal(pim.preint_meas_cov(), np.zeros((9, 9)))
        np.testing.assert_array_equal(pim.bias_jacobians()["dV_dba"], np.zeros((3, 3)))

    def test_bias_hat_removed(self) -> None:
        bias = ConstantBias(accelerometer=np.array([0.0, 0.0, 0.5]))
        pim = integrate_constant(
            PreintegratedImuMeasurements(make_params(), bias_hat=bias),
            LEVEL_AT_REST + np.array([0.0, 0.0, 0.5]), np.zeros(3), 0.01, 100,
        )

        np.testing.assert_allclose(pim.delta_v_ij(), [0.0, 0.0, 10.0], atol=1e-10)

    def test_invalid_inputs(self) -> None:
        pim = PreintegratedImuMeasurements(make_params())

        with self.assertRaises(ValueError):
            pim.integrate_measurement(np.zeros(3), np.zeros(3), 0.0)
        with self.assertRaises(ValueError):
            pim.integrate_measurement(np.zeros(3), np.zeros(3), -0.01)
        with self.assertRaises(ValueError):
            pim.integrate_measurement(np.zeros(2), np.zeros(3), 0.01)
        with self.assertRaises(ValueError):
            pim.integrate_measurement(np.zeros(3), np.zeros((3, 1)), 0.01)


class TestPredict(unittest.TestCase):
    """Test suite for PreintegratedImuMeasurements.predict()."""

    def test_at_rest_stays_put(self) -> None:
        """Specific force exactly cancels gravity."""
        pim = integrate_constant(
            PreintegratedImuMeasurements(make_params()),
            LEVEL_AT_REST, np.zeros(3), 0.01, 100,
        )
        start = Pose3(translation=np.array([1.0, 2.0, 3.0]))

        result = pim.predict(NavState(pose=start, velocity=np.zeros(3)))

        np.testing.assert_allclose(result.pose.translation, [1.0, 2.0, 3.0], atol=1e-10)
        np.testing.assert_allclose(result.velocity, np.zeros(3), atol=1e-10)
        np.testing.assert_allclose(result.pose.rotation, np.eye(3), atol=1e-12)

    def test_free_fall(self) -> None:
        """Zero specific force means falling under gravity."""
        pim = integrate_constant(
            PreintegratedImuMeasurements(make_params()),
            np.zeros(3), np.zeros(3), 0.01, 100,
        )

        result = pim.predict(NavState(pose=Pose3.identity(), velocity=np.zeros(3)))

        np.testing.assert_allclose(result.pose.translation, [0.0, 0.0, -5.0], atol=1e-10)
        np.testing.assert_allclose(result.velocity, [0.0, 0.0, -10.0], atol=1e-10)

    def test_initial_velocity_carried(self) -> None:
        pim = integrate_constant(
            PreintegratedImuMeasurements(make_params()),
            LEVEL_AT_REST, np.zeros(3), 0.01, 200,
        )

        result = pim.predict(NavState(pose=Pose3.identity(), velocity=np.array([1.5, 0.0, 0.0])))

        np.testing.assert_allclose(result.pose.translation, [3.0, 0.0, 0.0], atol=1e-10)
        np.testing.assert_allclose(result.velocity, [1.5, 0.0, 0.0], atol=1e-10)

    def test_rotated_start(self) -> None:
        """Increments are expressed in the body frame at the start."""
        R_i = rot3_expmap(np.array([0.0, 0.0, np.pi / 2]))
        pim = integrate_constant(
            PreintegratedImuMeasurements(make_params()),
            LEVEL_AT_REST + np.array([1.0, 0.0, 0.0]), np.zeros(3), 0.01, 100,
        )

        result = pim.predict(NavState(pose=Pose3(rotation=R_i), velocity=np.zeros(3)))

        # Body X is navigation +Y
        np.testing.assert_allclose(result.velocity, [0.0, 1.0, 0.0], atol=1e-10)
        np.testing.assert_allclose(result.pose.translation, [0.0, 0.5, 0.0], atol=1e-10)

    def test_default_bias_is_bias_hat(self) -> None:
        bias = ConstantBias(gyroscope=np.array([0.0, 0.0, 0.01]))
        pim = PreintegratedImuMeasurements(make_params(), bias_hat=bias)
        pim.integrate_measurement(LEVEL_AT_REST, np.zeros(3), 0.01)

        result = pim.predict(NavState(pose=Pose3.identity(), velocity=np.zeros(3)))
        np.testing.assert_array_equal(result.bias.gyroscope, bias.gyroscope)


class TestCovariance(unittest.TestCase):
    """Test suite for covariance propagation."""

    def test_gyro_noise_random_walk(self) -> None:
        """With zero rotation rate the rotation error variance grows as sigma^2 T."""
        sigma = 0.17
        pim = integrate_constant(
            PreintegratedImuMeasurements(make_params(gyro_sigma=sigma)),
            LEVEL_AT_REST, np.zeros(3), 0.1, 10,
        )

        cov = pim.preint_meas_cov()
        np.testing.assert_allclose(cov[6:9, 6:9], sigma**2 * 1.0 * np.eye(3), rtol=1e-9)
        # Velocity error only from tilt coupling into gravity: horizontal axes
        self.assertGreater(cov[3, 3], 0.0)
        self.assertAlmostEqual(cov[5, 5], 0.0, places=15)

    def test_acc_noise_random_walk(self) -> None:
        """Zero specific force: velocity error variance grows as sigma^2 T."""
        sigma = 0.05
        pim = integrate_constant(
            PreintegratedImuMeasurements(make_params(acc_sigma=sigma)),
            np.zeros(3), np.zeros(3), 0.01, 100,
        )

        cov = pim.preint_meas_cov()
        np.testing.assert_allclose(cov[3:6, 3:6], sigma**2 * np.eye(3), rtol=1e-9)
        np.testing.assert_array_equal(cov[6:9, 6:9], np.zeros((3, 3)))
        # Continuous-time limit of integrated random walk is sigma^2 T^3 / 3
        np.testing.assert_allclose(np.diag(cov[0:3, 0:3]), np.full(3, sigma**2 / 3), rtol=0.02)

    def test_integration_covariance(self) -> None:
        params = make_params(integration_covariance=1e-3 * np.eye(3))
        pim = integrate_constant(
            PreintegratedImuMeasurements(params), LEVEL_AT_REST, np.zeros(3), 0.01, 100
        )

        np.testing.assert_allclose(pim.preint_meas_cov()[0:3, 0:3], 1e-3 * np.eye(3), rtol=1e-9)

    def test_symmetric_positive_semidefinite(self) -> None:
        pim = integrate_constant(
            PreintegratedImuMeasurements(make_params(0.01, 0.17)),
            np.array([0.5, 0.4, 10.0]), np.array([0.1, -0.2, 0.3]), 0.01, 100,
        )

        cov = pim.preint_meas_cov()
        np.testing.assert_allclose(cov, cov.T, atol=1e-12)
        self.assertGreater(np.min(np.linalg.eigvalsh(cov)), -1e-12)

    def test_zero_noise_zero_covariance(self) -> None:
        pim = integrate_constant(
            PreintegratedImuMeasurements(make_params()),
            np.array([0.5, 0.4, 10.0]), np.array([0.1, -0.2, 0.3]), 0.01, 50,
        )

        np.testing.assert_array_equal(pim.preint_meas_cov(), np.zeros((9, 9)))


class TestBiasJacobians(unittest.TestCase):
    """Test suite for first-order bias correction."""

    def test_closed_form_without_rotation(self) -> None:
        T = 1.0
        pim = integrate_constant(
            PreintegratedImuMeasurements(make_params()),
            LEVEL_AT_REST, np.zeros(3), 0.01, 100,
        )

        J = pim.bias_jacobians()
        np.testing.assert_allclose(J["dV_dba"], -T * np.eye(3), atol=1e-12)
        np.testing.assert_allclose(J["dP_dba"], -0.5 * T**2 * np.eye(3), atol=1e-12)
        np.testing.assert_allclose(J["dR_dbw"], -T * np.eye(3), atol=1e-12)

    def test_accelerometer_bias_correction_exact(self) -> None:
        """Increments are linear in the accelerometer bias when R is constant."""
        db = np.array([0.1, -0.2, 0.05])
        measured_acc = np.array([0.3, 0.0, 10.0])
        pim = integrate_constant(
            PreintegratedImuMeasurements(make_params()),
            measured_acc, np.zeros(3), 0.01, 100,
        )
        reference = integrate_constant(
            PreintegratedImuMeasurements(make_params(), bias_hat=ConstantBias(accelerometer=db)),
            measured_acc, np.zeros(3), 0.01, 100,
        )

        delta_R, delta_v, delta_p = pim.bias_corrected_delta(ConstantBias(accelerometer=db))
        np.testing.assert_allclose(delta_v, reference.delta_v_ij(), atol=1e-12)
        np.testing.assert_allclose(delta_p, reference.delta_p_ij(), atol=1e-12)
        np.testing.assert_allclose(delta_R, np.eye(3), atol=1e-15)

    def test_gyro_bias_correction_first_order(self) -> None:
        """Small gyro bias changes are absorbed to first order."""
        db = np.array([0.002, -0.001, 0.003])
        measured_acc = np.array([0.5, 0.2, 10.0])
        measured_omega = np.array([0.1, 0.2, -0.3])
        pim = integrate_constant(
            PreintegratedImuMeasurements(make_params()),
            measured_acc, measured_omega, 0.01, 100,
        )
        reference = integrate_constant(
            PreintegratedImuMeasurements(make_params(), bias_hat=ConstantBias(gyroscope=db)),
            measured_acc, measured_omega, 0.01, 100,
        )

        delta_R, delta_v, delta_p = pim.bias_corrected_delta(ConstantBias(gyroscope=db))

        # Residual is second order in |db| ~ 4e-3
        np.testing.assert_allclose(delta_R, reference.delta_r_ij(), atol=1e-4)
        np.testing.assert_allclose(delta_v, reference.delta_v_ij(), atol=1e-3)
        np.testing.assert_allclose(delta_p, reference.delta_p_ij(), atol=1e-3)
        # And it beats ignoring the bias change altogether
        self.assertLess(
            np.linalg.norm(delta_v - reference.delta_v_ij()),
            np.linalg.norm(pim.delta_v_ij() - reference.delta_v_ij()),
        )
