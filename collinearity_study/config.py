"""
Simulation configuration.

DEFAULT_CONFIG mirrors the study design: three correlation regimes, 30
predictors split into three magnitude tiers of 10, 100 training replicates of
100 rows and 50 test replicates of 20 rows per regime.
"""

from dataclasses import dataclass, field, fields, replace, asdict
from typing import Dict, Tuple

import numpy as np


@dataclass(frozen=True)
class RegimeSpec:
    """How to build one correlation regime and its replicate pools."""
    label: str
    shape: float
    train_count: int = 100
    train_n: int = 100
    test_count: int = 50
    test_n: int = 20


# Below a high shape of ~30 the 75% PCA cutoff loses more signal than it saves
# in variance at 30 predictors x 100 rows.
DEFAULT_REGIMES: Tuple[Tuple[str, float], ...] = (
    ('low', 0.0),
    ('moderate', 1.7),
    ('high', 30.0),
)


@dataclass(frozen=True)
class SimulationConfig:
    """
    Parameters of one simulation run.

    Parameters
    ----------
    seed : int
        Run-level seed. Every stochastic stage derives its own generator from it.
    regimes : tuple of (label, shape)
        Correlation regimes. ``shape`` controls the spread of pairwise
        correlations (0 gives near-zero correlations, values above 2 push them
        towards +/-1).
    tier_sizes : tuple of int
        Number of large-negative, small and large-positive coefficients.
    intercept : float
        True intercept of the data-generating process.
    train_count, train_n : int
        Training replicates per regime and rows per training replicate.
    test_count, test_n : int
        Testing replicates per regime and rows per testing replicate.
    max_attempts : int
        Retry budget of the correlation-matrix generator.
    matrix_decimals : int
        Rounding applied to generated correlation matrices.
    cv_folds : int
        Folds used to tune the LASSO penalty.
    penalty_grid : tuple of float
        Candidate LASSO penalties.
    variance_threshold : float
        Cumulative explained variance retained by the PCA-Cutoff strategy.
    full_pca_threshold : float
        Cumulative explained variance retained by the PCA and PCA+LASSO
        strategies. The default of 1.0 keeps every component.
    pls_components : int
        Components used by the PLS strategies.
    significance_levels : tuple of float
        p-value cutoffs used to count significant coefficients.
    confidence : float
        Confidence level of the aggregated Student-t intervals.
    lasso_max_iter : int
        Coordinate-descent iteration cap for LASSO fits.
    """
    seed: int = 2021
    regimes: Tuple[Tuple[str, float], ...] = DEFAULT_REGIMES
    tier_sizes: Tuple[int, int, int] = (10, 10, 10)
    intercept: float = 1.0
    train_count: int = 100
    train_n: int = 100
    test_count: int = 50
    test_n: int = 20
    max_attempts: int = 1000
    matrix_decimals: int = 10
    cv_folds: int = 10
    penalty_grid: Tuple[float, ...] = field(
        default_factory=lambda: tuple(np.logspace(-3, 0, 30))
    )
    variance_threshold: float = 0.75
    full_pca_threshold: float = 1.0
    pls_components: int = 10
    significance_levels: Tuple[float, ...] = (0.5, 0.05)
    confidence: float = 0.99
    lasso_max_iter: int = 10000

    def __post_init__(self):
        self.validate()

    @property
    def n_predictors(self) -> int:
        return int(sum(self.tier_sizes))

    def validate(self):
        """Raise ValueError on inconsistent settings."""
        if len(self.tier_sizes) != 3 or any(t < 0 for t in self.tier_sizes):
            raise ValueError(
                f"tier_sizes must be three non-negative counts, got {self.tier_sizes}"
            )
        if self.n_predictors < 1:
            raise ValueError("At least one predictor is required")
        if not self.regimes:
            raise ValueError("At least one regime is required")
        labels = [label for label, _ in self.regimes]
        if len(set(labels)) != len(labels):
            raise ValueError(f"Regime labels must be unique, got {labels}")
        for label, shape in self.regimes:
            if shape < 0:
                raise ValueError(f"Regime '{label}' has negative shape {shape}")
        for name in ('train_count', 'train_n', 'test_count', 'test_n',
                     'max_attempts', 'cv_folds', 'pls_components', 'lasso_max_iter'):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.cv_folds < 2:
            raise ValueError(f"cv_folds must be at least 2, got {self.cv_folds}")
        if self.cv_folds > self.train_n:
            raise ValueError(
                f"cv_folds ({self.cv_folds}) exceeds training rows ({self.train_n})"
            )
        if self.pls_components > min(self.n_predictors, self.train_n):
            raise ValueError(
                f"pls_components ({self.pls_components}) exceeds "
                f"min(n_predictors, train_n) = {min(self.n_predictors, self.train_n)}"
            )
        if not self.penalty_grid or any(p <= 0 for p in self.penalty_grid):
            raise ValueError("penalty_grid must contain positive penalties")
        for name in ('variance_threshold', 'full_pca_threshold'):
            value = getattr(self, name)
            if not 0 < value <= 1:
                raise ValueError(f"{name} must be in (0, 1], got {value}")
        for level in self.significance_levels:
            if not 0 < level <= 1:
                raise ValueError(f"Significance levels must be in (0, 1], got {level}")
        if not 0 < self.confidence < 1:
            raise ValueError(f"confidence must be in (0, 1), got {self.confidence}")

    def regime_specs(self):
        """Return one RegimeSpec per configured regime."""
        return [
            RegimeSpec(
                label=label,
                shape=float(shape),
                train_count=self.train_count,
                train_n=self.train_n,
                test_count=self.test_count,
                test_n=self.test_n,
            )
            for label, shape in self.regimes
        ]

    def with_overrides(self, **overrides) -> 'SimulationConfig':
        """Return a validated copy with some fields replaced."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        if 'penalty_grid' in overrides:
            overrides['penalty_grid'] = tuple(float(p) for p in overrides['penalty_grid'])
        if 'regimes' in overrides:
            overrides['regimes'] = tuple((str(l), float(s)) for l, s in overrides['regimes'])
        return replace(self, **overrides)

    def to_dict(self) -> Dict:
        """Plain-dict view for provenance records."""
        d = asdict(self)
        d['penalty_grid'] = list(self.penalty_grid)
        d['regimes'] = [list(r) for r in self.regimes]
        d['n_predictors'] = self.n_predictors
        return d


DEFAULT_CONFIG = SimulationConfig()
