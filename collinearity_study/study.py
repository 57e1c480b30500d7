"""
End-to-end simulation run.

    regimes + coefficients -> replicate pools -> batch fits -> metrics -> tables

Stages draw from generators derived from the run seed and a stage name, so
the correlation matrices, coefficients and replicates of a seed do not depend
on which strategies are fitted afterwards.
"""

import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd

from .aggregation import aggregate, mean_table
from .config import SimulationConfig
from .context import ExecutionContext
from .correlation import Regime, generate_correlation_matrix
from .exceptions import FitFailure
from .fitting import fit_all
from .metrics import MetricRecord, evaluate_strategies, records_to_frame
from .parameters import CoefficientVector, generate_coefficients
from .simulation import build_pools
from .strategies import build_strategies


@dataclass
class StudyResult:
    """Everything a reporting layer needs from one run."""
    config: SimulationConfig
    regimes: List[Regime]
    coefficients: CoefficientVector
    records: List[MetricRecord] = field(default_factory=list, repr=False)
    failures: List[FitFailure] = field(default_factory=list)
    summary: Optional[pd.DataFrame] = field(default=None, repr=False)
    means: Dict[str, pd.DataFrame] = field(default_factory=dict, repr=False)

    def to_frame(self) -> pd.DataFrame:
        """Per-replicate metrics, one row per (regime, strategy, replicate)."""
        return records_to_frame(self.records)

    def failure_report(self) -> pd.DataFrame:
        return pd.DataFrame([
            {
                'regime': f.regime,
                'strategy': f.strategy,
                'replicate': f.replicate_index,
                'error': type(f.cause).__name__,
                'message': str(f.cause),
            }
            for f in self.failures
        ], columns=['regime', 'strategy', 'replicate', 'error', 'message'])


def build_regimes(config, context):
    """One Regime per configured (label, shape), each from its own generator."""
    return [
        Regime(
            label=label,
            shape=shape,
            correlation=generate_correlation_matrix(
                shape,
                config.n_predictors,
                max_attempts=config.max_attempts,
                random_state=context.rng('matrix', label),
                decimals=config.matrix_decimals,
            ),
        )
        for label, shape in config.regimes
    ]


def run_study(config=None, context=None, strategies=None):
    """
    Run the full simulation study.

    Parameters
    ----------
    config : SimulationConfig or None
        Defaults to SimulationConfig().
    context : ExecutionContext or None
        Defaults to a sequential context seeded with ``config.seed``.
    strategies : sequence of Strategy or None
        Defaults to all seven strategies from build_strategies(config).

    Returns
    -------
    StudyResult

    Raises
    ------
    GenerationExhausted, DimensionMismatch
        Configuration-level failures abort the run.
    """
    config = config or SimulationConfig()
    context = context or ExecutionContext(seed=config.seed)
    strategies = tuple(strategies) if strategies is not None else build_strategies(config)
    verbose = context.verbose

    if verbose:
        print(f"Generating {len(config.regimes)} correlation regimes "
              f"({config.n_predictors} predictors)...")
    regimes = build_regimes(config, context)

    betas = generate_coefficients(
        *config.tier_sizes,
        intercept=config.intercept,
        random_state=context.rng('parameters'),
    )

    if verbose:
        print(f"Simulating {config.train_count}x{config.train_n} training and "
              f"{config.test_count}x{config.test_n} testing replicates per regime...")
    specs = [
        (regime.label, regime.correlation, spec.train_count, spec.train_n,
         spec.test_count, spec.test_n)
        for regime, spec in zip(regimes, config.regime_specs())
    ]
    pools = build_pools(specs, betas, context)

    records, failures = [], []
    start_time = time.time()
    for regime in regimes:
        train_pool, test_pool = pools[regime.label]
        if verbose:
            print(f"Regime '{regime.label}' (shape={regime.shape}):")

        batches = {}
        for strategy in strategies:
            t0 = time.time()
            batch = fit_all(train_pool, strategy, config, context)
            batches[strategy.name] = batch
            failures.extend(batch.failures)
            if verbose >= 2:
                print(f"  {strategy.name:<12} {len(batch)}/{batch.n_attempted} fits "
                      f"in {time.time() - t0:.1f}s")

        scored = evaluate_strategies(batches, train_pool, test_pool, config, context)
        for strategy in strategies:
            records.extend(scored[strategy.name])

    if verbose:
        print(f"Fitted {len(records)} models, {len(failures)} failures "
              f"in {(time.time() - start_time) / 60:.1f} min")

    summary = aggregate(records, confidence=config.confidence,
                        significance_level=min(config.significance_levels))
    means = {
        metric: mean_table(records, metric=metric,
                           significance_level=min(config.significance_levels))
        for metric in ('train_rmse', 'test_rmse', 'n_params')
    }

    return StudyResult(
        config=config,
        regimes=regimes,
        coefficients=betas,
        records=records,
        failures=failures,
        summary=summary,
        means=means,
    )
