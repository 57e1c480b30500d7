"""
Synthetic replicates drawn from the linear data-generating process

    y = intercept + X @ beta + eps,   X ~ N(0, R),   eps ~ N(0, I)

and the pools of independent replicates built for every regime.
"""

from dataclasses import dataclass, field
from typing import Dict, Sequence, Tuple

import numpy as np
import pandas as pd

from .exceptions import DimensionMismatch
from .parameters import CoefficientVector


def _frozen(array):
    array = np.array(array, dtype=float)
    array.flags.writeable = False
    return array


@dataclass(frozen=True, eq=False)
class Replicate:
    """One simulated dataset: response ``y`` and predictors ``X``."""
    y: np.ndarray = field(repr=False)
    X: np.ndarray = field(repr=False)
    feature_names: Tuple[str, ...] = ()
    index: int = 0

    def __post_init__(self):
        y = _frozen(self.y)
        X = _frozen(self.X)
        if X.ndim != 2 or y.ndim != 1 or X.shape[0] != y.shape[0]:
            raise ValueError(
                f"Expected y of shape (n,) and X of shape (n, p), got "
                f"{y.shape} and {X.shape}"
            )
        names = tuple(self.feature_names) or tuple(f"X{j + 1}" for j in range(X.shape[1]))
        if len(names) != X.shape[1]:
            raise ValueError(f"{len(names)} feature names for {X.shape[1]} columns")
        object.__setattr__(self, 'y', y)
        object.__setattr__(self, 'X', X)
        object.__setattr__(self, 'feature_names', names)

    @property
    def n_samples(self):
        return self.X.shape[0]

    @property
    def n_features(self):
        return self.X.shape[1]

    def to_frame(self) -> pd.DataFrame:
        """Response column ``y`` followed by ``X1..Xp``."""
        df = pd.DataFrame(self.X, columns=list(self.feature_names))
        df.insert(0, 'y', self.y)
        return df


@dataclass(frozen=True, eq=False)
class ReplicatePool:
    """Replicates sharing one regime and one sample size."""
    label: str
    kind: str
    replicates: Tuple[Replicate, ...] = ()

    def __post_init__(self):
        if self.kind not in ('train', 'test'):
            raise ValueError(f"kind must be 'train' or 'test', got '{self.kind}'")
        replicates = tuple(self.replicates)
        # Fold seeds and train/test pairing are keyed by index
        for i, rep in enumerate(replicates):
            if rep.index != i:
                raise ValueError(
                    f"Replicate at position {i} has index {rep.index}; pool "
                    f"replicates must be indexed 0..{len(replicates) - 1} in order"
                )
        object.__setattr__(self, 'replicates', replicates)

    def __len__(self):
        return len(self.replicates)

    def __iter__(self):
        return iter(self.replicates)

    def __getitem__(self, i):
        return self.replicates[i]

    @property
    def n_samples(self):
        return self.replicates[0].n_samples if self.replicates else 0


def simulate_replicate(n, correlation, betas, intercept=None, random_state=None,
                       index=0):
    """
    Draw one replicate from the linear data-generating process.

    Parameters
    ----------
    n : int
        Number of rows.
    correlation : array-like of shape (p, p)
        Correlation (and covariance) matrix of the predictors.
    betas : CoefficientVector or array-like of shape (p,)
        True slope coefficients.
    intercept : float or None
        True intercept. Defaults to ``betas.intercept`` for a
        CoefficientVector and 1.0 otherwise.
    random_state : int, numpy Generator or None
        Source of randomness. The same seed gives a bit-identical replicate.
    index : int, default=0
        Position of the replicate in its pool.

    Returns
    -------
    Replicate

    Raises
    ------
    DimensionMismatch
        If the correlation matrix and ``betas`` disagree on the predictor count.
    """
    if n < 1:
        raise ValueError(f"n must be positive, got {n}")

    if intercept is None:
        intercept = betas.intercept if isinstance(betas, CoefficientVector) else 1.0
    beta = np.asarray(betas, dtype=float)
    correlation = np.asarray(correlation, dtype=float)

    if correlation.ndim != 2 or correlation.shape[0] != correlation.shape[1]:
        raise ValueError(f"correlation must be square, got shape {correlation.shape}")
    if correlation.shape[0] != beta.shape[0]:
        raise DimensionMismatch(expected=correlation.shape[0], actual=beta.shape[0])

    rng = np.random.default_rng(random_state)
    p = beta.shape[0]
    X = rng.multivariate_normal(np.zeros(p), correlation, size=n)
    eps = rng.multivariate_normal(np.zeros(n), np.eye(n))
    y = intercept + X @ beta + eps

    return Replicate(y=y, X=X, index=index)


def simulate_pool(label, kind, count, n, correlation, betas, context):
    """
    Draw ``count`` independent replicates of ``n`` rows.

    Replicate ``i`` uses the generator ``context.rng(stage, label, i)`` where
    stage is 'training' or 'testing', so each replicate is reproducible on
    its own.
    """
    stage = 'training' if kind == 'train' else 'testing'
    replicates = [
        simulate_replicate(n, correlation, betas,
                           random_state=context.rng(stage, label, i), index=i)
        for i in range(count)
    ]
    return ReplicatePool(label=label, kind=kind, replicates=replicates)


def build_pools(regime_specs: Sequence, betas, context) -> Dict[str, Tuple[ReplicatePool, ReplicatePool]]:
    """
    Build training and testing pools for every regime.

    Parameters
    ----------
    regime_specs : sequence
        Items ``(label, correlation, train_count, train_n, test_count,
        test_n)``.
    betas : CoefficientVector
        Coefficients shared by every regime.
    context : ExecutionContext
        Seed source.

    Returns
    -------
    pools : dict
        ``{label: (train_pool, test_pool)}`` in regime order.
    """
    pools = {}
    for label, correlation, train_count, train_n, test_count, test_n in regime_specs:
        if label in pools:
            raise ValueError(f"Duplicate regime label '{label}'")
        train = simulate_pool(label, 'train', train_count, train_n,
                              correlation, betas, context)
        test = simulate_pool(label, 'test', test_count, test_n,
                             correlation, betas, context)
        pools[label] = (train, test)
    return pools
