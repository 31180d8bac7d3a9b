"""
Random Sources
==============

Uniform random number sources used for pH drift and particle spawning.

The engine never calls a global RNG. Every stochastic component receives a
``RandomSource`` so that tests can substitute a seeded or constant source.

License: MIT
"""

import secrets
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np


class RandomSource(ABC):
    """Uniform random source interface."""

    @abstractmethod
    def random(self) -> float:
        """Return a float in [0, 1)."""
        pass

    def uniform(self, low: float, high: float) -> float:
        """Return a float in [low, high)."""
        return low + (high - low) * self.random()


class NumpyRandomSource(RandomSource):
    """
    numpy ``Generator`` backed source.

    Unseeded instances are cryptographically seeded; pass ``seed`` for
    reproducible runs.
    """

    def __init__(self, seed: Optional[int] = None):
        if seed is None:
            seed = secrets.randbits(128)
        self.seed = seed
        self._rng = np.random.default_rng(seed=seed)

    def random(self) -> float:
        return float(self._rng.random())

    def uniform(self, low: float, high: float) -> float:
        return float(self._rng.uniform(low, high))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(seed={self.seed})"


class ConstantRandomSource(RandomSource):
    """
    Always returns the same value.

    With the default 0.5 the pH perturbation is exactly zero and spawning
    only happens when ``spawn_base_rate * speed > 0.5``.
    """

    def __init__(self, value: float = 0.5):
        if not 0.0 <= value < 1.0:
            raise ValueError(f"Constant must be in [0, 1), got {value}")
        self.value = value

    def random(self) -> float:
        return self.value

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(value={self.value})"
