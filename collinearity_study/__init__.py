"""
Collinearity Study
==================

Monte Carlo comparison of regression strategies (OLS, LASSO, principal
component regression and partial least squares, with and without an L1
penalty) under controlled multicollinearity among the predictors.

Main Entry Points
-----------------
generate_correlation_matrix : Random positive-definite correlation matrices
simulate_replicate : One dataset from the linear data-generating process
fit_all : Fit one strategy on every replicate of a pool
aggregate : Regime x strategy tables with Student-t intervals
run_study : The whole pipeline

Quick Start
-----------
>>> from collinearity_study import SimulationConfig, ExecutionContext, run_study
>>>
>>> config = SimulationConfig(train_count=20, test_count=10)
>>> result = run_study(config, ExecutionContext(seed=config.seed, n_jobs=-1))
>>> print(result.summary[['train_rmse', 'test_rmse', 'n_params']])
"""

from .config import SimulationConfig, RegimeSpec, DEFAULT_CONFIG, DEFAULT_REGIMES
from .context import ExecutionContext
from .exceptions import (
    SimulationError,
    GenerationExhausted,
    DimensionMismatch,
    FitFailure,
    IntervalUnavailable,
    AggregationFallback,
)
from .correlation import Regime, generate_correlation_matrix, is_positive_definite
from .parameters import CoefficientVector, generate_coefficients
from .simulation import (
    Replicate,
    ReplicatePool,
    simulate_replicate,
    simulate_pool,
    build_pools,
)
from .strategies import (
    Strategy,
    Representation,
    Estimator,
    STRATEGY_NAMES,
    build_strategies,
    get_strategy,
)
from .transformers import PrincipalComponents, PLSProjector, components_for_threshold
from .estimators import LeastSquaresRegressor
from .fitting import FittedModel, BatchFitResult, fit_replicate, fit_all
from .metrics import (
    MetricRecord,
    rmse,
    evaluate_model,
    evaluate_batch,
    evaluate_strategies,
    records_to_frame,
)
from .aggregation import (
    MetricSummary,
    t_confidence_interval,
    summarize_metric,
    aggregate,
    mean_table,
)
from .diagnostics import (
    off_diagonal,
    correlation_histogram,
    compute_vif,
    compute_condition_number,
    describe_regime,
    regime_summary,
)
from .study import StudyResult, build_regimes, run_study

__version__ = "0.1.0"

__all__ = [
    # Configuration
    'SimulationConfig',
    'RegimeSpec',
    'DEFAULT_CONFIG',
    'DEFAULT_REGIMES',
    'ExecutionContext',

    # Errors
    'SimulationError',
    'GenerationExhausted',
    'DimensionMismatch',
    'FitFailure',
    'IntervalUnavailable',
    'AggregationFallback',

    # Data generation
    'Regime',
    'generate_correlation_matrix',
    'is_positive_definite',
    'CoefficientVector',
    'generate_coefficients',
    'Replicate',
    'ReplicatePool',
    'simulate_replicate',
    'simulate_pool',
    'build_pools',

    # Strategies and fitting
    'Strategy',
    'Representation',
    'Estimator',
    'STRATEGY_NAMES',
    'build_strategies',
    'get_strategy',
    'PrincipalComponents',
    'PLSProjector',
    'components_for_threshold',
    'LeastSquaresRegressor',
    'FittedModel',
    'BatchFitResult',
    'fit_replicate',
    'fit_all',

    # Metrics and aggregation
    'MetricRecord',
    'rmse',
    'evaluate_model',
    'evaluate_batch',
    'evaluate_strategies',
    'records_to_frame',
    'MetricSummary',
    't_confidence_interval',
    'summarize_metric',
    'aggregate',
    'mean_table',

    # Diagnostics
    'off_diagonal',
    'correlation_histogram',
    'compute_vif',
    'compute_condition_number',
    'describe_regime',
    'regime_summary',

    # Study
    'StudyResult',
    'build_regimes',
    'run_study',
]
