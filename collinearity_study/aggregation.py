"""
ResultAggregator: collapse per-replicate metrics into comparison tables.

Each (regime, strategy, metric) vector is summarised by a Student-t
confidence interval of its mean. When the interval cannot be computed (for
example a zero-variance vector) the summary falls back to the plain mean and
carries an AggregationFallback note instead of failing.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import pandas as pd
from scipy import stats

from .exceptions import AggregationFallback, IntervalUnavailable
from .metrics import records_to_frame

METRICS = ('train_rmse', 'test_rmse', 'n_params')


def t_confidence_interval(values, confidence=0.99) -> Tuple[float, float]:
    """
    Student-t confidence interval for the mean of ``values``.

    Raises
    ------
    IntervalUnavailable
        Fewer than two values, non-finite values or zero variance.
    """
    values = np.asarray(values, dtype=float)
    if values.size < 2:
        raise IntervalUnavailable(f"Need at least 2 values, got {values.size}")
    if not np.all(np.isfinite(values)):
        raise IntervalUnavailable("Values contain NaN or infinity")
    if np.all(values == values[0]):
        raise IntervalUnavailable("Data are essentially constant")

    sem = stats.sem(values)
    if not np.isfinite(sem) or sem <= 0:
        raise IntervalUnavailable("Data are essentially constant")

    lower, upper = stats.t.interval(confidence, values.size - 1,
                                    loc=np.mean(values), scale=sem)
    if not (np.isfinite(lower) and np.isfinite(upper)):
        raise IntervalUnavailable("Interval bounds are not finite")
    return float(lower), float(upper)


@dataclass(frozen=True)
class MetricSummary:
    mean: float
    lower: Optional[float]
    upper: Optional[float]
    n: int
    fallback: Optional[AggregationFallback] = None

    @property
    def has_interval(self):
        return self.fallback is None

    def format(self, decimals=3):
        """``mean [lower, upper]``, or just the mean after a fallback."""
        if self.has_interval:
            return (f"{self.mean:.{decimals}f} "
                    f"[{self.lower:.{decimals}f}, {self.upper:.{decimals}f}]")
        return f"{self.mean:.{decimals}f}"


def _plain_mean(values):
    if values.size and np.all(values == values[0]):
        return float(values[0])
    return float(np.mean(values)) if values.size else float('nan')


def summarize_metric(values, confidence=0.99, metric='') -> MetricSummary:
    """Mean with a t-interval, or the plain mean when no interval exists."""
    values = np.asarray(values, dtype=float)
    try:
        lower, upper = t_confidence_interval(values, confidence)
    except IntervalUnavailable as e:
        return MetricSummary(
            mean=_plain_mean(values),
            lower=None,
            upper=None,
            n=int(values.size),
            fallback=AggregationFallback(metric=metric, reason=str(e)),
        )
    return MetricSummary(
        mean=float(np.mean(values)),
        lower=lower,
        upper=upper,
        n=int(values.size),
    )


def _metric_vectors(frame, significance_level):
    count_col = f'n_params@{significance_level:g}'
    if count_col not in frame.columns:
        available = [c for c in frame.columns if c.startswith('n_params@')]
        raise KeyError(f"No column '{count_col}'; available: {available}")
    return frame.rename(columns={count_col: 'n_params'})


def _empty_summary():
    columns = ['n_replicates'] + [
        f'{metric}{suffix}'
        for metric in METRICS
        for suffix in ('', '_mean', '_lower', '_upper', '_fallback')
    ]
    index = pd.MultiIndex.from_tuples([], names=['regime', 'strategy'])
    return pd.DataFrame(index=index, columns=columns)


def aggregate(records, confidence=0.99, significance_level=0.05, decimals=3) -> pd.DataFrame:
    """
    Regime x strategy table of summarised metrics.

    Parameters
    ----------
    records : iterable of MetricRecord or a DataFrame from records_to_frame
    confidence : float
        Confidence level of the t-intervals.
    significance_level : float
        Which parameter count to report for unregularized strategies.
    decimals : int
        Rounding of the display strings.

    Returns
    -------
    pd.DataFrame
        Indexed by (regime, strategy), in first-seen order. For every metric
        in METRICS: ``<metric>`` (display string), ``<metric>_mean``,
        ``<metric>_lower``, ``<metric>_upper`` and ``<metric>_fallback``.
    """
    frame = records if isinstance(records, pd.DataFrame) else records_to_frame(records)
    if frame.empty:
        return _empty_summary()
    frame = _metric_vectors(frame, significance_level)

    rows = []
    for (regime, strategy), group in frame.groupby(['regime', 'strategy'], sort=False):
        row = {'regime': regime, 'strategy': strategy, 'n_replicates': len(group)}
        for metric in METRICS:
            summary = summarize_metric(group[metric].to_numpy(), confidence, metric=metric)
            row[metric] = summary.format(decimals)
            row[f'{metric}_mean'] = summary.mean
            row[f'{metric}_lower'] = summary.lower
            row[f'{metric}_upper'] = summary.upper
            row[f'{metric}_fallback'] = summary.fallback is not None
        rows.append(row)

    return pd.DataFrame(rows).set_index(['regime', 'strategy'])


def mean_table(records, metric='test_rmse', significance_level=0.05) -> pd.DataFrame:
    """Strategy x regime table of metric means, for plotting."""
    if metric not in METRICS:
        raise ValueError(f"Unknown metric '{metric}'. Use one of {METRICS}.")
    frame = records if isinstance(records, pd.DataFrame) else records_to_frame(records)
    if frame.empty:
        return pd.DataFrame(index=pd.Index([], name='strategy'),
                            columns=pd.Index([], name='regime'), dtype=float)
    frame = _metric_vectors(frame, significance_level)

    regimes = list(dict.fromkeys(frame['regime']))
    strategies = list(dict.fromkeys(frame['strategy']))
    return (
        frame
        .pivot_table(index='strategy', columns='regime', values=metric, aggfunc='mean')
        .reindex(index=strategies, columns=regimes)
    )
