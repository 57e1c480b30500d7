"""
True regression coefficients in three magnitude tiers.
"""

from dataclasses import dataclass, field
from typing import Tuple

import numpy as np

TIER_BOUNDS = {
    'large_negative': (-1.0, -0.5),
    'small': (-0.2, 0.2),
    'large_positive': (0.5, 1.0),
}
TIER_ORDER = ('large_negative', 'small', 'large_positive')


@dataclass(frozen=True, eq=False)
class CoefficientVector:
    """Coefficients ordered large-negative, small, large-positive, plus intercept."""
    values: np.ndarray = field(repr=False)
    intercept: float = 1.0
    tier_sizes: Tuple[int, int, int] = (0, 0, 0)

    def __post_init__(self):
        values = np.array(self.values, dtype=float)
        values.flags.writeable = False
        object.__setattr__(self, 'values', values)
        object.__setattr__(self, 'intercept', float(self.intercept))

    def __len__(self):
        return len(self.values)

    def __array__(self, dtype=None, copy=None):
        return np.asarray(self.values, dtype=dtype)

    def tier_labels(self):
        """Tier name of every coefficient, in order."""
        return [name for name, n in zip(TIER_ORDER, self.tier_sizes) for _ in range(n)]


def generate_coefficients(n_large_negative, n_small, n_large_positive,
                          intercept=1.0, random_state=None):
    """
    Draw a coefficient vector with three magnitude tiers.

    Parameters
    ----------
    n_large_negative, n_small, n_large_positive : int
        Coefficients drawn uniformly from [-1, -0.5], [-0.2, 0.2] and
        [0.5, 1] respectively.
    intercept : float, default=1.0
        Intercept of the data-generating process.
    random_state : int, numpy Generator or None
        Source of randomness.

    Returns
    -------
    CoefficientVector
    """
    counts = (n_large_negative, n_small, n_large_positive)
    for name, n in zip(TIER_ORDER, counts):
        if n < 0:
            raise ValueError(f"Tier '{name}' count must be non-negative, got {n}")

    rng = np.random.default_rng(random_state)
    values = np.concatenate([
        rng.uniform(*TIER_BOUNDS[name], size=int(n))
        for name, n in zip(TIER_ORDER, counts)
    ])
    return CoefficientVector(
        values=values,
        intercept=intercept,
        tier_sizes=tuple(int(n) for n in counts),
    )
