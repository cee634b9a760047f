"""
Gaussian noise models and samplers for IMU simulation.

Modules:
    noise_model: IsotropicNoiseModel (sigma^2 * I covariance, discretization)
    sampler: Sampler (seeded numpy Generator bound to a noise model)

Example:
    >>> from imusim.noise import IsotropicNoiseModel, Sampler
    >>> gyro_model = IsotropicNoiseModel.sigma(3, 0.17)
    >>> sampler = Sampler(gyro_model.discretized(0.01), seed=10)
    >>> noise = sampler.sample()
"""

from .noise_model import IsotropicNoiseModel
from .sampler import Sampler

__all__ = [
    "IsotropicNoiseModel",
    "Sampler",
]
