"""
Seeded Gaussian sampler for terrain generation.

Every random displacement in the terrain comes from one sampler, so two
samplers created with the same seed produce the same terrain. Python's
random module and NumPy's global random state must not be used in
generation code.
"""

from typing import Tuple, Union

import numpy as np


def _entropy(n):
    """Encode an integer of any sign and width as SeedSequence entropy."""
    n = int(n)
    return [1 if n < 0 else 0, abs(n)]


class GaussianSampler:
    """
    Standard-normal deviate source backed by NumPy's PCG64 generator.

    Deviates are consumed strictly in call order: ``sample(shape)`` draws
    the same values, in C order, as the equivalent number of ``next()``
    calls.
    """

    def __init__(self, seed: int = 0):
        """Initialize with an integer seed."""
        self.call_count = 0
        self._rng = None
        self._seed = None
        self.seed(seed)

    @property
    def current_seed(self) -> int:
        """Seed the sampler was last reset with."""
        return self._seed

    def seed(self, value: int) -> None:
        """Reset the generator to the deterministic state for ``value``."""
        self._seed = int(value)
        self._rng = np.random.Generator(np.random.PCG64(np.random.SeedSequence(_entropy(value))))
        self.call_count = 0

    def next(self) -> float:
        """Return one deviate from N(0, 1)."""
        self.call_count += 1
        return float(self._rng.standard_normal())

    def sample(self, shape: Union[int, Tuple[int, ...]]) -> np.ndarray:
        """Return an array of N(0, 1) deviates with the given shape."""
        values = self._rng.standard_normal(size=shape)
        self.call_count += values.size
        return values
