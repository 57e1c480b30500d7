"""
run_study.py
============
Run the multicollinearity simulation study from the command line.

Prints the simulated regimes, the aggregated regime x strategy table (mean
with 99% Student-t interval) and the strategy x regime tables of means.

Usage:
    python scripts/run_study.py
    python scripts/run_study.py --train-count 20 --test-count 10 --n-jobs -1 -v
"""
import json
import sys
from pathlib import Path

import pandas as pd

sys.path.insert(0, str(Path(__file__).parent.parent))
import collinearity_study as cs


def print_regimes(regimes):
    print("\n" + "-" * 80)
    print("CORRELATION REGIMES")
    print("-" * 80)
    print(cs.regime_summary(regimes).to_string(float_format=lambda v: f"{v:.3f}"))

    for regime in regimes:
        counts, edges = cs.correlation_histogram(regime.correlation, bins=10)
        print(f"\n{regime.label} (shape={regime.shape}): off-diagonal histogram")
        for count, lo, hi in zip(counts, edges[:-1], edges[1:]):
            print(f"  [{lo:+.1f}, {hi:+.1f})  {count:>4}")


def print_result(result):
    print("\n" + "=" * 80)
    print("SIMULATION RESULTS SUMMARY")
    print("=" * 80)
    print(f"\nModels fitted: {len(result.records)}")
    print(f"Failed fits:   {len(result.failures)}")

    print("\n" + "-" * 80)
    print(f"MEAN [{result.config.confidence:.0%} CI] BY REGIME AND STRATEGY")
    print("-" * 80)
    columns = ['n_replicates', 'train_rmse', 'test_rmse', 'n_params']
    print(result.summary[columns].to_string())

    fallbacks = result.summary[[c for c in result.summary.columns if c.endswith('_fallback')]]
    n_fallbacks = int(fallbacks.to_numpy().sum())
    if n_fallbacks:
        print(f"\n{n_fallbacks} cell(s) reported without an interval (degenerate data)")

    for metric, table in result.means.items():
        print("\n" + "-" * 80)
        print(f"MEAN {metric.upper()}")
        print("-" * 80)
        print(table.to_string(float_format=lambda v: f"{v:.3f}"))

    if result.failures:
        print("\n" + "-" * 80)
        print("FAILURES")
        print("-" * 80)
        print(result.failure_report().to_string(index=False))

    print("\n" + "=" * 80)


def save_result(result, output_dir):
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    result.to_frame().to_csv(output_dir / 'replicate_metrics.csv', index=False)
    result.summary.to_csv(output_dir / 'summary.csv')
    pd.concat(result.means, names=['metric']).to_csv(output_dir / 'means.csv')
    with open(output_dir / 'config.json', 'w') as f:
        json.dump(result.config.to_dict(), f, indent=2)
    print(f"Results saved to: {output_dir}")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description='Run the multicollinearity simulation study')
    parser.add_argument('--seed', type=int, default=cs.DEFAULT_CONFIG.seed,
                        help='Run-level random seed')
    parser.add_argument('--train-count', type=int, default=cs.DEFAULT_CONFIG.train_count,
                        help='Training replicates per regime')
    parser.add_argument('--train-n', type=int, default=cs.DEFAULT_CONFIG.train_n,
                        help='Rows per training replicate')
    parser.add_argument('--test-count', type=int, default=cs.DEFAULT_CONFIG.test_count,
                        help='Testing replicates per regime')
    parser.add_argument('--test-n', type=int, default=cs.DEFAULT_CONFIG.test_n,
                        help='Rows per testing replicate')
    parser.add_argument('--cv-folds', type=int, default=cs.DEFAULT_CONFIG.cv_folds,
                        help='Folds used to tune the LASSO penalty')
    parser.add_argument('--pls-components', type=int,
                        default=cs.DEFAULT_CONFIG.pls_components,
                        help='Components used by the PLS strategies')
    parser.add_argument('--strategies', nargs='+', choices=cs.STRATEGY_NAMES,
                        help='Subset of strategies to fit (default: all)')
    parser.add_argument('--n-jobs', type=int, default=1,
                        help='Parallel workers (-1 for all cores)')
    parser.add_argument('--output', type=Path, default=None,
                        help='Directory for CSV tables and the config record')
    parser.add_argument('-v', '--verbose', action='count', default=1,
                        help='Increase progress output')
    args = parser.parse_args()

    config = cs.DEFAULT_CONFIG.with_overrides(
        seed=args.seed,
        train_count=args.train_count,
        train_n=args.train_n,
        test_count=args.test_count,
        test_n=args.test_n,
        cv_folds=args.cv_folds,
        pls_components=args.pls_components,
    )
    context = cs.ExecutionContext(seed=config.seed, n_jobs=args.n_jobs,
                                  verbose=args.verbose)
    strategies = None
    if args.strategies:
        strategies = [cs.get_strategy(name, config) for name in args.strategies]

    print("=" * 80)
    print("MULTICOLLINEARITY SIMULATION STUDY")
    print("=" * 80)
    print()
    print("Configuration:")
    print(f"  Seed: {config.seed}")
    print(f"  Regimes: {', '.join(f'{l} ({s})' for l, s in config.regimes)}")
    print(f"  Predictors: {config.n_predictors} (tiers {config.tier_sizes})")
    print(f"  Training: {config.train_count} x {config.train_n} rows")
    print(f"  Testing: {config.test_count} x {config.test_n} rows")
    print(f"  Parallel workers: {context.n_jobs}")
    print()

    result = cs.run_study(config, context, strategies=strategies)

    print_regimes(result.regimes)
    print_result(result)

    if args.output is not None:
        save_result(result, args.output)
