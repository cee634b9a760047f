"""
Configuration for IMU preintegration.

PreintegrationParams collects everything a PreintegratedImuMeasurements
needs besides the measurements themselves: continuous-time sensor noise
covariances, an optional integration-error covariance, the gravity vector
and the position integration order.

Noise covariances are continuous-time densities. During integration each
step of length dt injects measurement noise with covariance Sigma / dt,
which is how white noise of that density looks when averaged over dt.
"""

from dataclasses import dataclass, field

import numpy as np

from imusim.noise import IsotropicNoiseModel


def _validate_covariance3(name: str, value: np.ndarray) -> np.ndarray:
    value = np.asarray(value, dtype=np.float64)
    if value.shape != (3, 3):
        raise ValueError(f"{name} must have shape (3, 3), got {value.shape}")
    if not np.all(np.isfinite(value)):
        raise ValueError(f"{name} must be finite")
    if not np.allclose(value, value.T):
        raise ValueError(f"{name} must be symmetric")
    if np.min(np.linalg.eigvalsh(value)) < -1e-12:
        raise ValueError(f"{name} must be positive semi-definite")
    return value


@dataclass(frozen=True)
class PreintegrationParams:
    """
    Immutable preintegration settings.

    Attributes:
        acc_covariance: Continuous-time accelerometer noise covariance,
                        shape (3, 3), (m/s^2)^2 / Hz.
        gyro_covariance: Continuous-time gyroscope noise covariance,
                         shape (3, 3), (rad/s)^2 / Hz.
        integration_covariance: Extra position uncertainty per second of
                                integration, shape (3, 3). Default zero.
        gravity_n: Gravity vector in the navigation frame [m/s^2].
                   Default (0, 0, -10): Z up, rounded magnitude.
        use_second_order: If True, position increments include the
                          0.5 * a * dt^2 term (and the matching Jacobians).

    Example:
        >>> params = PreintegrationParams(
        ...     acc_covariance=1e-4 * np.eye(3),
        ...     gyro_covariance=0.0289 * np.eye(3),
        ... )
        >>> params.gravity_n
        array([  0.,   0., -10.])
    """

    acc_covariance: np.ndarray
    gyro_covariance: np.ndarray
    integration_covariance: np.ndarray = field(
        default_factory=lambda: np.zeros((3, 3))
    )
    gravity_n: np.ndarray = field(
        default_factory=lambda: np.array([0.0, 0.0, -10.0])
    )
    use_second_order: bool = True

    def __post_init__(self) -> None:
        """Validate shapes and covariance properties."""
        for name in ("acc_covariance", "gyro_covariance", "integration_covariance"):
            object.__setattr__(
                self, name, _validate_covariance3(name, getattr(self, name))
            )

        gravity_n = np.asarray(self.gravity_n, dtype=np.float64)
        if gravity_n.shape != (3,):
            raise ValueError(f"gravity_n must have shape (3,), got {gravity_n.shape}")
        object.__setattr__(self, "gravity_n", gravity_n)

    @classmethod
    def from_noise_models(
        cls,
        gyro_noise_model: IsotropicNoiseModel,
        acc_noise_model: IsotropicNoiseModel,
        gravity_n: np.ndarray,
        use_second_order: bool = True,
    ) -> "PreintegrationParams":
        """Build params from the continuous-time gyro and accelerometer models."""
        return cls(
            acc_covariance=acc_noise_model.covariance(),
            gyro_covariance=gyro_noise_model.covariance(),
            gravity_n=gravity_n,
            use_second_order=use_second_order,
        )
