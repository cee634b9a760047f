"""
Unit tests for imusim/navigation/types.py.

Run with: pytest tests/imusim/navigation/test_navigation_types.py -v
"""

import dataclasses
import unittest

import numpy as np

from imusim.geometry import Pose3, rot3_expmap
from imusim.navigation import ConstantBias, NavState, PoseVelocityBias


class TestConstantBias(unittest.TestCase):
    """Test suite for ConstantBias."""

    def test_default_is_zero(self) -> None:
        bias = ConstantBias()

        np.testing.assert_array_equal(bias.accelerometer, np.zeros(3))
        np.testing.assert_array_equal(bias.gyroscope, np.zeros(3))

    def test_list_input_converted(self) -> None:
        bias = ConstantBias(accelerometer=[0.1, 0.2, 0.3], gyroscope=[0.0, 0.0, 0.01])

        self.assertIsInstance(bias.accelerometer, np.ndarray)
        self.assertEqual(bias.gyroscope.dtype, np.float64)

    def test_correct_measurements(self) -> None:
        bias = ConstantBias(
            accelerometer=np.array([0.1, 0.0, -0.1]),
            gyroscope=np.array([0.0, 0.01, 0.0]),
        )

        np.testing.assert_allclose(
            bias.correct_accelerometer(np.array([1.0, 1.0, 1.0])), [0.9, 1.0, 1.1]
        )
        np.testing.assert_allclose(
            bias.correct_gyroscope(np.array([0.0, 0.01, 0.0])), np.zeros(3)
        )

    def test_subtraction(self) -> None:
        b1 = ConstantBias(accelerometer=np.ones(3), gyroscope=np.full(3, 0.5))
        b2 = ConstantBias(accelerometer=np.full(3, 0.25), gyroscope=np.full(3, 0.5))

        diff = b1 - b2
        np.testing.assert_allclose(diff.accelerometer, np.full(3, 0.75))
        np.testing.assert_allclose(diff.gyroscope, np.zeros(3))

    def test_to_array(self) -> None:
        bias = ConstantBias(accelerometer=np.array([1.0, 2.0, 3.0]),
                            gyroscope=np.array([4.0, 5.0, 6.0]))

        np.testing.assert_array_equal(bias.to_array(), [1.0, 2.0, 3.0, 4.0, 5.0, 6.0])

    def test_invalid_shape(self) -> None:
        with self.assertRaises(ValueError):
            ConstantBias(accelerometer=np.zeros(2))
        with self.assertRaises(ValueError):
            ConstantBias(gyroscope=np.zeros(4))

    def test_frozen(self) -> None:
        bias = ConstantBias()
        with self.assertRaises(dataclasses.FrozenInstanceError):
            bias.accelerometer = np.ones(3)


class TestNavState(unittest.TestCase):
    """Test suite for NavState."""

    def test_accessors(self) -> None:
        R = rot3_expmap(np.array([0.0, 0.0, np.pi / 2]))
        state = NavState(
            pose=Pose3(rotation=R, translation=np.array([1.0, 2.0, 3.0])),
            velocity=np.array([1.0, 0.0, 0.0]),
        )

        np.testing.assert_allclose(state.rotation, R)
        np.testing.assert_allclose(state.position, [1.0, 2.0, 3.0])

    def test_body_velocity(self) -> None:
        """Heading +Y in navigation frame while yawed 90 deg is forward in body."""
        R = rot3_expmap(np.array([0.0, 0.0, np.pi / 2]))
        state = NavState(pose=Pose3(rotation=R), velocity=np.array([0.0, 2.0, 0.0]))

        np.testing.assert_allclose(state.body_velocity, [2.0, 0.0, 0.0], atol=1e-12)

    def test_invalid_velocity(self) -> None:
        with self.assertRaises(ValueError):
            NavState(pose=Pose3.identity(), velocity=np.zeros(2))


class TestPoseVelocityBias(unittest.TestCase):
    """Test suite for PoseVelocityBias."""

    def test_default_bias(self) -> None:
        pvb = PoseVelocityBias(pose=Pose3.identity(), velocity=np.zeros(3))

        np.testing.assert_array_equal(pvb.bias.to_array(), np.zeros(6))

    def test_nav_state(self) -> None:
        pose = Pose3(translation=np.array([0.0, 0.0, 1.0]))
        pvb = PoseVelocityBias(
            pose=pose,
            velocity=np.array([0.5, 0.0, 0.0]),
            bias=ConstantBias(gyroscope=np.full(3, 0.01)),
        )

        state = pvb.nav_state()
        self.assertIsInstance(state, NavState)
        self.assertTrue(state.pose.equals(pose))
        np.testing.assert_array_equal(state.velocity, [0.5, 0.0, 0.0])
