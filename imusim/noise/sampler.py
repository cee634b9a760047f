"""
Random sampler bound to a Gaussian noise model.

A Sampler owns a numpy Generator and draws one noise vector per call to
sample(). Seeding is entirely under caller control: pass an integer seed, a
numpy SeedSequence, or an existing Generator. Two samplers built from the
same seed produce identical draw sequences.

Samplers are stateful. When several simulations must be statistically
independent and run concurrently, give each its own sampler (for example
via numpy.random.SeedSequence.spawn) rather than sharing one.
"""

from typing import Optional, Union

import numpy as np

from .noise_model import IsotropicNoiseModel

SeedLike = Union[None, int, np.random.SeedSequence]


class Sampler:
    """
    Draw zero-mean Gaussian vectors from a noise model.

    Args:
        noise_model: Model providing the per-axis standard deviations.
        seed: Seed for a new numpy Generator. Ignored if rng is given.
        rng: Existing numpy Generator to draw from.

    Example:
        >>> from imusim.noise import IsotropicNoiseModel, Sampler
        >>> sampler = Sampler(IsotropicNoiseModel.sigma(3, 0.1), seed=42)
        >>> sampler.sample().shape
        (3,)
    """

    def __init__(
        self,
        noise_model: IsotropicNoiseModel,
        seed: SeedLike = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        if rng is None:
            rng = np.random.default_rng(seed)

        self._noise_model = noise_model
        self._sigmas = noise_model.sigmas
        self._rng = rng

    @property
    def noise_model(self) -> IsotropicNoiseModel:
        """Noise model this sampler draws from."""
        return self._noise_model

    def sample(self) -> np.ndarray:
        """Draw one noise vector, shape (dim,)."""
        return self._sigmas * self._rng.standard_normal(self._noise_model.dim)

    def sample_many(self, n: int) -> np.ndarray:
        """Draw n noise vectors at once, shape (n, dim)."""
        if n < 0:
            raise ValueError(f"n must be non-negative, got {n}")
        return self._sigmas * self._rng.standard_normal((n, self._noise_model.dim))
