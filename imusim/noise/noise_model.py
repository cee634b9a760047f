"""
Isotropic Gaussian noise model for IMU sensor channels.

An isotropic noise model describes zero-mean Gaussian noise with the same
standard deviation on every axis:
    n ~ N(0, sigma^2 * I)

For IMU simulation two instances are used, one for the gyroscope and one for
the accelerometer. The sigma passed at construction is a continuous-time
noise density (rad/s/sqrt(Hz) for gyros, m/s^2/sqrt(Hz) for accelerometers).
When noise is sampled once per discrete step of length dt, the per-sample
standard deviation is sigma / sqrt(dt); see discretized().

References:
    IEEE Std 952-1997: Angle/velocity random walk and white noise density
    Forster et al., IEEE T-RO 2017, Section VI (discrete-time noise)
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class IsotropicNoiseModel:
    """
    Diagonal Gaussian noise model with equal sigma per axis.

    Attributes:
        dim: Dimension of the noise vector (3 for IMU channels).
        sigma_value: Standard deviation shared by all axes. Must be finite
                     and non-negative; zero means a noiseless channel.

    Example:
        >>> model = IsotropicNoiseModel.sigma(3, 0.01)
        >>> np.allclose(model.covariance(), 1e-4 * np.eye(3))
        True
    """

    dim: int
    sigma_value: float

    def __post_init__(self) -> None:
        """Validate dimension and sigma."""
        if int(self.dim) != self.dim or self.dim < 1:
            raise ValueError(f"dim must be a positive integer, got {self.dim}")
        if not np.isfinite(self.sigma_value):
            raise ValueError(f"sigma must be finite, got {self.sigma_value}")
        if self.sigma_value < 0:
            raise ValueError(f"sigma must be non-negative, got {self.sigma_value}")

    @classmethod
    def sigma(cls, dim: int, sigma: float) -> "IsotropicNoiseModel":
        """Create a model from a dimension and a scalar standard deviation."""
        return cls(dim=int(dim), sigma_value=float(sigma))

    @property
    def sigmas(self) -> np.ndarray:
        """Per-axis standard deviations, shape (dim,)."""
        return np.full(self.dim, self.sigma_value)

    @property
    def variance(self) -> float:
        """Per-axis variance sigma^2."""
        return self.sigma_value**2

    def covariance(self) -> np.ndarray:
        """Covariance matrix sigma^2 * I, shape (dim, dim)."""
        return self.variance * np.eye(self.dim)

    def whiten(self, v: np.ndarray) -> np.ndarray:
        """
        Whiten a vector: v / sigma.

        Raises:
            ValueError: If v has the wrong shape, or sigma is zero
                        (a noiseless model has no whitening transform).
        """
        v = np.asarray(v, dtype=np.float64)
        if v.shape != (self.dim,):
            raise ValueError(f"v must have shape ({self.dim},), got {v.shape}")
        if self.sigma_value == 0.0:
            raise ValueError("cannot whiten with a zero-sigma noise model")
        return v / self.sigma_value

    def discretized(self, dt: float) -> "IsotropicNoiseModel":
        """
        Per-sample noise model for a sampling interval dt.

        White noise of density sigma averaged over dt has standard deviation
        sigma / sqrt(dt), so its covariance is the continuous covariance
        divided by dt.

        Args:
            dt: Sampling interval in seconds, must be positive.

        Returns:
            New IsotropicNoiseModel with sigma / sqrt(dt).
        """
        if not dt > 0:
            raise ValueError(f"dt must be positive, got {dt}")
        return IsotropicNoiseModel.sigma(self.dim, self.sigma_value / np.sqrt(dt))
