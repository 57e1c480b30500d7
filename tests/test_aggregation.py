"""
Test suite for metric evaluation and result aggregation.
"""
import numpy as np
import pandas as pd
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from collinearity_study import (
    SimulationConfig,
    ExecutionContext,
    MetricRecord,
    MetricSummary,
    IntervalUnavailable,
    AggregationFallback,
    generate_correlation_matrix,
    generate_coefficients,
    simulate_pool,
    get_strategy,
    fit_all,
    rmse,
    evaluate_model,
    evaluate_batch,
    evaluate_strategies,
    records_to_frame,
    t_confidence_interval,
    summarize_metric,
    aggregate,
    mean_table,
)


def make_record(regime, strategy, i, train, test, counts):
    return MetricRecord(
        regime=regime,
        strategy=strategy,
        replicate_index=i,
        train_rmse=train,
        test_rmse=np.asarray(test, dtype=float),
        parameter_counts=counts,
    )


@pytest.fixture
def records():
    """Two regimes x two strategies x four replicates of hand-made metrics."""
    out = []
    for regime in ('low', 'high'):
        for i in range(4):
            out.append(make_record(regime, 'OLS', i, 0.9 + 0.01 * i, [1.1 + 0.02 * i, 1.2],
                                   {0.5: 5 + i, 0.05: 2 + i % 2}))
            out.append(make_record(regime, 'LASSO', i, 0.95 + 0.01 * i, [1.0, 1.05 + 0.01 * i],
                                   {0.5: 4, 0.05: 4}))
    return out


class TestRMSE:

    def test_known_value(self):
        assert rmse([1.0, 2.0, 3.0], [1.0, 2.0, 5.0]) == pytest.approx(np.sqrt(4 / 3))

    def test_perfect_fit(self):
        assert rmse([1.0, 2.0], [1.0, 2.0]) == 0.0

    def test_shape_mismatch(self):
        with pytest.raises(ValueError):
            rmse([1.0, 2.0], [1.0])


class TestEvaluation:
    """Tests for scoring fitted models against their pools."""

    @pytest.fixture
    def fitted(self):
        config = SimulationConfig(
            tier_sizes=(1, 2, 1),
            train_count=3,
            train_n=30,
            test_count=5,
            test_n=10,
            cv_folds=3,
            pls_components=2,
            penalty_grid=(0.001, 0.01, 0.1),
        )
        ctx = ExecutionContext(seed=21)
        corr = generate_correlation_matrix(1.7, config.n_predictors, random_state=ctx.rng('matrix'))
        betas = generate_coefficients(*config.tier_sizes, random_state=ctx.rng('parameters'))
        train = simulate_pool('moderate', 'train', config.train_count, config.train_n,
                              corr, betas, ctx)
        test = simulate_pool('moderate', 'test', config.test_count, config.test_n,
                             corr, betas, ctx)
        batches = {
            name: fit_all(train, get_strategy(name, config), config, ctx)
            for name in ('OLS', 'LASSO')
        }
        return config, ctx, train, test, batches

    def test_evaluate_model(self, fitted):
        config, ctx, train, test, batches = fitted
        model = batches['OLS'].models[1]
        record = evaluate_model(model, train[1], test, regime='moderate')

        assert record.replicate_index == 1
        assert record.strategy == 'OLS'
        assert record.test_rmse.shape == (config.test_count,)
        assert record.train_rmse == pytest.approx(rmse(train[1].y, model.predict(train[1])))
        assert set(record.parameter_counts) == {0.5, 0.05}
        assert record.mean_test_rmse == pytest.approx(np.mean(record.test_rmse))

    def test_wrong_training_replicate(self, fitted):
        _, _, train, test, batches = fitted
        with pytest.raises(ValueError):
            evaluate_model(batches['OLS'].models[0], train[2], test)

    def test_regularized_counts_equal_across_levels(self, fitted):
        config, _, train, test, batches = fitted
        for record in evaluate_batch(batches['LASSO'], train, test, config):
            assert record.parameter_count(0.5) == record.parameter_count(0.05)
            assert record.penalty in config.penalty_grid
            assert record.regime == 'moderate'

    def test_missing_level(self, fitted):
        config, _, train, test, batches = fitted
        record = evaluate_batch(batches['OLS'], train, test, config)[0]
        with pytest.raises(KeyError):
            record.parameter_count(0.1)

    def test_evaluate_strategies_keeps_order(self, fitted):
        config, ctx, train, test, batches = fitted
        scored = evaluate_strategies(batches, train, test, config, ctx)

        assert list(scored) == ['OLS', 'LASSO']
        assert [r.replicate_index for r in scored['OLS']] == [0, 1, 2]

    def test_records_to_frame(self, fitted):
        config, ctx, train, test, batches = fitted
        scored = evaluate_strategies(batches, train, test, config, ctx)
        frame = records_to_frame(scored['OLS'] + scored['LASSO'])

        assert len(frame) == 6
        for col in ('regime', 'strategy', 'replicate', 'train_rmse', 'test_rmse',
                    'penalty', 'n_components', 'n_params@0.5', 'n_params@0.05'):
            assert col in frame.columns


class TestConfidenceInterval:
    """Tests for the Student-t interval and its fallback."""

    def test_interval_contains_mean(self):
        values = np.array([1.0, 1.2, 0.9, 1.1, 1.05])
        lower, upper = t_confidence_interval(values, confidence=0.99)
        assert lower < np.mean(values) < upper

    def test_wider_at_higher_confidence(self):
        values = [1.0, 1.2, 0.9, 1.1, 1.05]
        lo95, hi95 = t_confidence_interval(values, confidence=0.95)
        lo99, hi99 = t_confidence_interval(values, confidence=0.99)
        assert hi99 - lo99 > hi95 - lo95

    @pytest.mark.parametrize("values", [
        [3.0, 3.0, 3.0],
        [1.0],
        [],
        [1.0, np.nan, 2.0],
    ])
    def test_degenerate_input(self, values):
        with pytest.raises(IntervalUnavailable):
            t_confidence_interval(values)

    def test_constant_vector_falls_back_to_constant(self):
        summary = summarize_metric([0.1] * 7, metric='n_params')

        assert summary.mean == 0.1
        assert summary.lower is None and summary.upper is None
        assert not summary.has_interval
        assert summary.fallback == AggregationFallback(
            metric='n_params', reason="Data are essentially constant"
        )
        assert summary.format(2) == "0.10"

    def test_summary_with_interval(self):
        summary = summarize_metric([1.0, 2.0, 3.0, 4.0])

        assert isinstance(summary, MetricSummary)
        assert summary.has_interval
        assert summary.mean == 2.5
        assert summary.n == 4
        assert summary.format(1).startswith("2.5 [")


class TestAggregate:
    """Tests for the regime x strategy tables."""

    def test_index_and_counts(self, records):
        table = aggregate(records, confidence=0.99, significance_level=0.05)

        assert list(table.index) == [
            ('low', 'OLS'), ('low', 'LASSO'), ('high', 'OLS'), ('high', 'LASSO')
        ]
        assert (table['n_replicates'] == 4).all()
        for metric in ('train_rmse', 'test_rmse', 'n_params'):
            for suffix in ('', '_mean', '_lower', '_upper', '_fallback'):
                assert f'{metric}{suffix}' in table.columns

    def test_constant_counts_fall_back(self, records):
        table = aggregate(records, significance_level=0.05)
        lasso = table.loc[('low', 'LASSO')]

        assert bool(lasso['n_params_fallback'])
        assert lasso['n_params_mean'] == 4.0
        assert lasso['n_params'] == "4.000"
        assert not bool(lasso['train_rmse_fallback'])

    def test_significance_level_selects_count(self, records):
        loose = aggregate(records, significance_level=0.5)
        strict = aggregate(records, significance_level=0.05)

        assert loose.loc[('low', 'OLS'), 'n_params_mean'] == pytest.approx(6.5)
        assert strict.loc[('low', 'OLS'), 'n_params_mean'] == pytest.approx(2.5)

    def test_unknown_level(self, records):
        with pytest.raises(KeyError):
            aggregate(records, significance_level=0.1)

    def test_accepts_frame(self, records):
        from_records = aggregate(records)
        from_frame = aggregate(records_to_frame(records))
        pd.testing.assert_frame_equal(from_records, from_frame)

    def test_mean_table(self, records):
        table = mean_table(records, metric='train_rmse')

        assert list(table.index) == ['OLS', 'LASSO']
        assert list(table.columns) == ['low', 'high']
        assert table.loc['OLS', 'low'] == pytest.approx(0.915)

    def test_mean_table_unknown_metric(self, records):
        with pytest.raises(ValueError):
            mean_table(records, metric='r2')

    def test_no_records(self):
        table = aggregate([])

        assert table.empty
        assert list(table.index.names) == ['regime', 'strategy']
        assert 'test_rmse_mean' in table.columns
        assert 'n_params_fallback' in table.columns
        assert mean_table([], metric='test_rmse').empty
