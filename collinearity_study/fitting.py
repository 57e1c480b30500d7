"""
BatchFitter: apply one strategy to every replicate of a pool.

Each replicate is fitted independently (in parallel when the context has
n_jobs != 1). A replicate that cannot be fitted is recorded as a FitFailure
and the rest of the batch carries on.
"""

import warnings
from dataclasses import dataclass, field
from functools import partial
from typing import List, Optional

import numpy as np
from sklearn.exceptions import ConvergenceWarning

from .estimators import make_pipeline, make_penalty_search
from .exceptions import FitFailure
from .simulation import Replicate


@dataclass
class FittedModel:
    """
    Result of fitting one strategy to one replicate.

    Attributes
    ----------
    strategy : str
        Strategy name.
    replicate_index : int
        Index of the training replicate.
    pipeline : sklearn.pipeline.Pipeline
        Fitted representation + estimator.
    coef : ndarray
        Coefficients in the representation's feature space.
    intercept : float
    regularized : bool
    pvalues : ndarray or None
        Slope p-values (unregularized strategies only).
    penalty : float or None
        Selected LASSO penalty (regularized strategies only).
    n_components : int or None
        Components used by PCA/PLS representations.
    cv_rmse : float or None
        Mean cross-validated RMSE at the selected penalty.
    """
    strategy: str
    replicate_index: int
    pipeline: object = field(repr=False)
    coef: np.ndarray = field(repr=False)
    intercept: float
    regularized: bool
    pvalues: Optional[np.ndarray] = field(default=None, repr=False)
    penalty: Optional[float] = None
    n_components: Optional[int] = None
    cv_rmse: Optional[float] = None

    def predict(self, X):
        """Predict from a predictor matrix or a Replicate."""
        if isinstance(X, Replicate):
            X = X.X
        return self.pipeline.predict(np.asarray(X))

    def parameter_count(self, significance_level=0.05):
        """
        Number of retained parameters.

        Regularized fits count non-zero coefficients. Unregularized fits count
        coefficients with p-value <= ``significance_level``.
        """
        if self.regularized:
            return int(np.count_nonzero(self.coef))
        with np.errstate(invalid='ignore'):
            return int(np.sum(self.pvalues <= significance_level))


@dataclass
class BatchFitResult:
    """Successful fits (in replicate order) and per-replicate failures."""
    strategy: str
    label: str
    models: List[FittedModel] = field(default_factory=list)
    failures: List[FitFailure] = field(default_factory=list)

    @property
    def succeeded_indices(self):
        return [m.replicate_index for m in self.models]

    @property
    def n_attempted(self):
        return len(self.models) + len(self.failures)

    def __len__(self):
        return len(self.models)


def _components_used(pipeline):
    step = pipeline.named_steps['represent']
    return getattr(step, 'n_components_', None)


def fit_replicate(replicate, strategy, config, random_state=None):
    """
    Fit ``strategy`` on one replicate.

    Parameters
    ----------
    replicate : Replicate
    strategy : Strategy
    config : SimulationConfig
        Supplies the penalty grid, fold count and LASSO iteration cap.
    random_state : int or None
        Seed of the fold assignment (regularized strategies only).

    Returns
    -------
    FittedModel
    """
    X, y = replicate.X, replicate.y

    if strategy.is_regularized:
        search = make_penalty_search(
            strategy,
            penalty_grid=config.penalty_grid,
            cv_folds=config.cv_folds,
            random_state=random_state,
            max_iter=config.lasso_max_iter,
        )
        with warnings.catch_warnings():
            warnings.simplefilter('ignore', category=ConvergenceWarning)
            search.fit(X, y)
        pipeline = search.best_estimator_
        reg = pipeline.named_steps['reg']
        return FittedModel(
            strategy=strategy.name,
            replicate_index=replicate.index,
            pipeline=pipeline,
            coef=np.asarray(reg.coef_).copy(),
            intercept=float(reg.intercept_),
            regularized=True,
            penalty=float(search.best_params_['reg__alpha']),
            n_components=_components_used(pipeline),
            cv_rmse=float(-search.best_score_),
        )

    pipeline = make_pipeline(strategy)
    pipeline.fit(X, y)
    reg = pipeline.named_steps['reg']
    return FittedModel(
        strategy=strategy.name,
        replicate_index=replicate.index,
        pipeline=pipeline,
        coef=reg.coef_.copy(),
        intercept=reg.intercept_,
        regularized=False,
        pvalues=reg.pvalues_.copy(),
        n_components=_components_used(pipeline),
    )


def _fit_or_fail(item, strategy, config, regime):
    replicate, seed = item
    try:
        return fit_replicate(replicate, strategy, config, random_state=seed)
    except Exception as e:
        return FitFailure(replicate.index, e, strategy=strategy.name, regime=regime)


def fit_all(pool, strategy, config, context):
    """
    Fit ``strategy`` on every replicate in ``pool``.

    Parameters
    ----------
    pool : ReplicatePool
    strategy : Strategy
    config : SimulationConfig
    context : ExecutionContext
        Supplies fold seeds and the worker pool.

    Returns
    -------
    BatchFitResult
        Models ordered by replicate index, plus any FitFailure records.
    """
    items = [
        (rep, context.seed_for('folds', pool.label, strategy.name, rep.index))
        for rep in pool
    ]
    worker = partial(_fit_or_fail, strategy=strategy, config=config, regime=pool.label)
    outcomes = context.map(worker, items)

    result = BatchFitResult(strategy=strategy.name, label=pool.label)
    for outcome in outcomes:
        if isinstance(outcome, FitFailure):
            result.failures.append(outcome)
        else:
            result.models.append(outcome)

    if result.failures and context.verbose >= 1:
        warnings.warn(
            f"{len(result.failures)}/{result.n_attempted} replicates failed for "
            f"{strategy.name} in regime '{pool.label}'",
            UserWarning,
        )
    return result
