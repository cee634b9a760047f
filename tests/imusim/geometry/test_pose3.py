"""Unit tests for imusim.geometry.pose3 (SE(3) pose type).

Tests group operations, the exponential map used by constant-twist
scenarios, and the retract/local_coordinates chart used for Monte Carlo
pose deviations.
"""

import numpy as np
import pytest

from imusim.geometry import Pose3, rot3_expmap


def _pose(rotvec, t):
    return Pose3(rotation=rot3_expmap(np.array(rotvec, dtype=float)), translation=np.array(t, dtype=float))


class TestPose3Construction:
    """Test suite for Pose3 validation."""

    def test_default_is_identity(self):
        p = Pose3()
        np.testing.assert_array_equal(p.rotation, np.eye(3))
        np.testing.assert_array_equal(p.translation, np.zeros(3))

    def test_invalid_rotation_shape(self):
        with pytest.raises(ValueError):
            Pose3(rotation=np.eye(2), translation=np.zeros(3))

    def test_invalid_translation_shape(self):
        with pytest.raises(ValueError):
            Pose3(rotation=np.eye(3), translation=np.zeros(2))

    def test_non_orthonormal_rotation(self):
        with pytest.raises(ValueError):
            Pose3(rotation=2.0 * np.eye(3), translation=np.zeros(3))

    def test_non_finite_translation(self):
        with pytest.raises(ValueError):
            Pose3(rotation=np.eye(3), translation=np.array([0.0, np.nan, 0.0]))


class TestPose3Group:
    """Test suite for compose, inverse, between and transform_from."""

    def test_compose_identity(self):
        p = _pose([0.1, 0.2, 0.3], [1.0, 2.0, 3.0])
        result = Pose3.identity().compose(p)
        assert result.equals(p)

    def test_compose_inverse_is_identity(self):
        p = _pose([0.4, -0.1, 0.9], [1.0, -2.0, 0.5])
        assert p.compose(p.inverse()).equals(Pose3.identity(), tol=1e-12)

    def test_between_matches_inverse_compose(self):
        p1 = _pose([0.1, 0.0, 0.5], [1.0, 0.0, 0.0])
        p2 = _pose([0.0, 0.3, -0.2], [0.0, 2.0, 1.0])
        assert p1.between(p2).equals(p1.inverse().compose(p2), tol=1e-12)

    def test_transform_from(self):
        # 90 deg yaw then 1 m forward in x
        p = _pose([0.0, 0.0, np.pi / 2], [1.0, 0.0, 0.0])
        np.testing.assert_allclose(p.transform_from(np.array([1.0, 0.0, 0.0])), [1.0, 1.0, 0.0], atol=1e-12)

    def test_to_matrix(self):
        p = _pose([0.2, 0.1, -0.3], [4.0, 5.0, 6.0])
        T = p.to_matrix()
        np.testing.assert_allclose(T[:3, :3], p.rotation)
        np.testing.assert_allclose(T[:3, 3], p.translation)
        np.testing.assert_allclose(T[3], [0.0, 0.0, 0.0, 1.0])


class TestPose3Expmap:
    """Test suite for the SE(3) exponential map."""

    def test_pure_translation(self):
        p = Pose3.expmap(np.array([0.0, 0.0, 0.0, 1.0, 2.0, 3.0]))
        np.testing.assert_array_equal(p.rotation, np.eye(3))
        np.testing.assert_allclose(p.translation, [1.0, 2.0, 3.0])

    def test_pure_rotation(self):
        p = Pose3.expmap(np.array([0.0, 0.0, 0.7, 0.0, 0.0, 0.0]))
        np.testing.assert_allclose(p.rotation, rot3_expmap(np.array([0.0, 0.0, 0.7])))
        np.testing.assert_allclose(p.translation, np.zeros(3), atol=1e-15)

    def test_half_circle(self):
        """Turning left at rate w with speed v for pi/w seconds ends at (0, 2r)."""
        w, v = 0.5, 2.0
        radius = v / w
        p = Pose3.expmap(np.array([0.0, 0.0, w, v, 0.0, 0.0]) * (np.pi / w))

        np.testing.assert_allclose(p.translation, [0.0, 2.0 * radius, 0.0], atol=1e-12)
        np.testing.assert_allclose(p.rotation @ np.array([1.0, 0.0, 0.0]), [-1.0, 0.0, 0.0], atol=1e-12)

    def test_invalid_shape(self):
        with pytest.raises(ValueError):
            Pose3.expmap(np.zeros(3))


class TestPose3Chart:
    """Test suite for retract / local_coordinates."""

    def test_local_coordinates_of_self_is_zero(self):
        p = _pose([0.3, -0.2, 0.1], [1.0, 1.0, 1.0])
        np.testing.assert_allclose(p.local_coordinates(p), np.zeros(6), atol=1e-15)

    def test_retract_then_local(self):
        p = _pose([0.3, -0.2, 0.1], [1.0, 1.0, 1.0])
        xi = np.array([0.01, -0.02, 0.03, 0.5, -0.5, 0.25])
        np.testing.assert_allclose(p.local_coordinates(p.retract(xi)), xi, atol=1e-12)

    def test_rotation_first(self):
        p = Pose3.identity()
        q = _pose([0.0, 0.0, 0.1], [2.0, 0.0, 0.0])
        xi = p.local_coordinates(q)
        np.testing.assert_allclose(xi[:3], [0.0, 0.0, 0.1], atol=1e-12)
        np.testing.assert_allclose(xi[3:], [2.0, 0.0, 0.0], atol=1e-12)

    def test_repr(self):
        assert repr(Pose3.identity()).startswith("Pose3(")
