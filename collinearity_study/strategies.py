"""
Registry of the seven modeling strategies.

A strategy is a (representation, estimator) pair:

============  ===============  ===============================================
Name          Representation   Estimator
============  ===============  ===============================================
OLS           identity         least squares
LASSO         identity         k-fold CV tuned L1 penalty
PCA           PCA (all)        least squares
PCA-Cutoff    PCA (threshold)  least squares
PCA+LASSO     PCA (all)        k-fold CV tuned L1 penalty
PLS           PLS (fixed k)    least squares
PLS+LASSO     PLS (fixed k)    k-fold CV tuned L1 penalty
============  ===============  ===============================================

PCA keeping every component is only a rotation of the predictors, so its
least-squares fit reproduces OLS exactly. It is kept as a configuration
(``full_pca_threshold=1.0``) because the study measures that behaviour.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class Representation(Enum):
    IDENTITY = 'identity'
    PCA = 'pca'
    PCA_THRESHOLD = 'pca_threshold'
    PLS = 'pls'


class Estimator(Enum):
    LEAST_SQUARES = 'least_squares'
    LASSO_CV = 'lasso_cv'


@dataclass(frozen=True)
class Strategy:
    name: str
    representation: Representation
    estimator: Estimator
    n_components: Optional[int] = None
    variance_threshold: Optional[float] = None

    @property
    def is_regularized(self) -> bool:
        return self.estimator is Estimator.LASSO_CV


STRATEGY_NAMES = (
    'OLS', 'LASSO', 'PCA', 'PCA-Cutoff', 'PCA+LASSO', 'PLS', 'PLS+LASSO',
)


def build_strategies(config) -> Tuple[Strategy, ...]:
    """Return the seven strategies configured from ``config``."""
    full = config.full_pca_threshold
    k_pls = config.pls_components
    return (
        Strategy('OLS', Representation.IDENTITY, Estimator.LEAST_SQUARES),
        Strategy('LASSO', Representation.IDENTITY, Estimator.LASSO_CV),
        Strategy('PCA', Representation.PCA, Estimator.LEAST_SQUARES,
                 variance_threshold=full),
        Strategy('PCA-Cutoff', Representation.PCA_THRESHOLD, Estimator.LEAST_SQUARES,
                 variance_threshold=config.variance_threshold),
        Strategy('PCA+LASSO', Representation.PCA, Estimator.LASSO_CV,
                 variance_threshold=full),
        Strategy('PLS', Representation.PLS, Estimator.LEAST_SQUARES,
                 n_components=k_pls),
        Strategy('PLS+LASSO', Representation.PLS, Estimator.LASSO_CV,
                 n_components=k_pls),
    )


def get_strategy(name, config) -> Strategy:
    """Look up one strategy by name. Raises KeyError for unknown names."""
    for strategy in build_strategies(config):
        if strategy.name == name:
            return strategy
    raise KeyError(f"Unknown strategy '{name}'. Available: {list(STRATEGY_NAMES)}")
