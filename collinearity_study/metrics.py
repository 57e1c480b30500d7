"""
MetricEvaluator: RMSE and parameter counts for batches of fitted models.

A model fitted on training replicate i is scored on that replicate (train
RMSE) and on every replicate of its regime's test pool (test RMSE vector).
"""

from dataclasses import dataclass, field
from functools import partial
from typing import Dict, List, Optional

import numpy as np
import pandas as pd


def rmse(y_true, y_pred):
    """Root mean squared error, sqrt(sum((y - y_hat)^2) / n)."""
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if y_true.shape != y_pred.shape:
        raise ValueError(f"Shape mismatch: {y_true.shape} vs {y_pred.shape}")
    return float(np.sqrt(np.sum((y_true - y_pred) ** 2) / len(y_true)))


@dataclass
class MetricRecord:
    """Metrics of one (regime, strategy, replicate) triple."""
    regime: str
    strategy: str
    replicate_index: int
    train_rmse: float
    test_rmse: np.ndarray = field(repr=False)
    parameter_counts: Dict[float, int] = field(default_factory=dict)
    penalty: Optional[float] = None
    n_components: Optional[int] = None

    @property
    def mean_test_rmse(self):
        return float(np.mean(self.test_rmse))

    def parameter_count(self, significance_level):
        try:
            return self.parameter_counts[significance_level]
        except KeyError:
            raise KeyError(
                f"No parameter count at level {significance_level}; "
                f"available: {sorted(self.parameter_counts)}"
            ) from None


def evaluate_model(model, train_replicate, test_pool, significance_levels=(0.5, 0.05),
                   regime=''):
    """
    Score one fitted model.

    Parameters
    ----------
    model : FittedModel
    train_replicate : Replicate
        The replicate ``model`` was fitted on.
    test_pool : ReplicatePool
        All test replicates of the regime.
    significance_levels : sequence of float
        Levels at which parameter counts are recorded.
    regime : str
        Regime label stored on the record.

    Returns
    -------
    MetricRecord
    """
    if train_replicate.index != model.replicate_index:
        raise ValueError(
            f"Model was fitted on replicate {model.replicate_index}, "
            f"got replicate {train_replicate.index}"
        )
    train = rmse(train_replicate.y, model.predict(train_replicate.X))
    test = np.array([rmse(rep.y, model.predict(rep.X)) for rep in test_pool])
    counts = {level: model.parameter_count(level) for level in significance_levels}

    return MetricRecord(
        regime=regime,
        strategy=model.strategy,
        replicate_index=model.replicate_index,
        train_rmse=train,
        test_rmse=test,
        parameter_counts=counts,
        penalty=model.penalty,
        n_components=model.n_components,
    )


def evaluate_batch(batch, train_pool, test_pool, config, regime=None):
    """Score every model of a BatchFitResult, keeping replicate order."""
    regime = regime if regime is not None else train_pool.label
    return [
        evaluate_model(
            model,
            train_pool[model.replicate_index],
            test_pool,
            significance_levels=config.significance_levels,
            regime=regime,
        )
        for model in batch.models
    ]


def evaluate_strategies(batches, train_pool, test_pool, config, context) -> Dict[str, List[MetricRecord]]:
    """
    Score the batches of several strategies on one regime, one worker per
    strategy.

    Parameters
    ----------
    batches : dict
        ``{strategy name: BatchFitResult}`` fitted on ``train_pool``.

    Returns
    -------
    dict
        ``{strategy name: [MetricRecord, ...]}`` in the order of ``batches``.
    """
    names = list(batches)
    scored = context.map(
        partial(evaluate_batch, train_pool=train_pool, test_pool=test_pool, config=config),
        [batches[name] for name in names],
    )
    return dict(zip(names, scored))


def records_to_frame(records) -> pd.DataFrame:
    """
    Long table with one row per record.

    Columns: regime, strategy, replicate, train_rmse, test_rmse (mean over
    the test pool), penalty, n_components and one ``n_params@<level>``
    column per significance level.
    """
    rows = []
    for r in records:
        row = {
            'regime': r.regime,
            'strategy': r.strategy,
            'replicate': r.replicate_index,
            'train_rmse': r.train_rmse,
            'test_rmse': r.mean_test_rmse,
            'penalty': r.penalty,
            'n_components': r.n_components,
        }
        for level, count in r.parameter_counts.items():
            row[f'n_params@{level:g}'] = count
        rows.append(row)
    return pd.DataFrame(rows)
