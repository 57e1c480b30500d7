"""
Test suite for correlation matrices, coefficients and replicate simulation.
"""
import pickle

import numpy as np
import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from collinearity_study import (
    ExecutionContext,
    Regime,
    CoefficientVector,
    Replicate,
    ReplicatePool,
    GenerationExhausted,
    DimensionMismatch,
    FitFailure,
    generate_correlation_matrix,
    is_positive_definite,
    generate_coefficients,
    simulate_replicate,
    simulate_pool,
    build_pools,
    off_diagonal,
)
from collinearity_study import correlation as correlation_module


class TestCorrelationMatrix:
    """Tests for generate_correlation_matrix."""

    @pytest.mark.parametrize("shape", [0.0, 1.7, 3.0, 30.0])
    def test_valid_correlation_matrix(self, shape):
        """Generated matrices are symmetric, unit-diagonal, bounded and PD."""
        corr = generate_correlation_matrix(shape, 10, random_state=0)

        assert corr.shape == (10, 10)
        np.testing.assert_array_equal(corr, corr.T)
        np.testing.assert_array_equal(np.diag(corr), np.ones(10))
        assert np.all(corr >= -1) and np.all(corr <= 1)
        assert is_positive_definite(corr)

    def test_small_scenario(self):
        """3x3 matrix with shape=0, seed=123, max_attempts=100."""
        corr = generate_correlation_matrix(0.0, 3, max_attempts=100, random_state=123)

        np.testing.assert_array_equal(corr, corr.T)
        np.testing.assert_array_equal(np.diag(corr), np.ones(3))
        assert np.all(np.linalg.eigvalsh(corr) > 0)

    def test_read_only(self):
        corr = generate_correlation_matrix(1.0, 4, random_state=1)
        with pytest.raises(ValueError):
            corr[0, 1] = 0.5

    def test_same_seed_same_matrix(self):
        a = generate_correlation_matrix(1.7, 8, random_state=42)
        b = generate_correlation_matrix(1.7, 8, random_state=42)
        np.testing.assert_array_equal(a, b)

    def test_zero_shape_centered_near_zero(self):
        """Shape 0 gives off-diagonal entries centered at 0."""
        r = np.concatenate([
            off_diagonal(generate_correlation_matrix(0.0, 10, random_state=seed))
            for seed in range(5)
        ])
        assert abs(np.mean(r)) < 0.1
        assert np.mean(np.abs(r)) < 0.35

    def test_large_shape_clusters_near_one(self):
        """A large shape pushes off-diagonal entries towards +/-1."""
        r = np.concatenate([
            off_diagonal(generate_correlation_matrix(10.0, 10, random_state=seed))
            for seed in range(5)
        ])
        assert np.mean(np.abs(r)) > 0.75

    def test_exhausted_budget(self, monkeypatch):
        """No positive-definite candidate raises GenerationExhausted."""
        monkeypatch.setattr(correlation_module, 'is_positive_definite', lambda m: False)

        with pytest.raises(GenerationExhausted) as excinfo:
            generate_correlation_matrix(0.0, 3, max_attempts=5, random_state=0)

        assert excinfo.value.attempts == 5
        assert excinfo.value.size == 3
        assert isinstance(excinfo.value, RuntimeError)

    @pytest.mark.parametrize("kwargs", [
        dict(shape=-1.0, size=3),
        dict(shape=0.0, size=0),
        dict(shape=0.0, size=3, max_attempts=0),
    ])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            generate_correlation_matrix(**kwargs)

    def test_is_positive_definite(self):
        assert is_positive_definite(np.eye(3))
        assert not is_positive_definite(np.array([[1.0, 2.0], [2.0, 1.0]]))

    def test_regime_copies_matrix_read_only(self):
        source = np.eye(3)
        regime = Regime(label='low', shape=0, correlation=source)
        source[0, 1] = 0.9

        assert regime.correlation[0, 1] == 0.0
        assert regime.size == 3
        assert regime.shape == 0.0
        assert not regime.correlation.flags.writeable


class TestCoefficients:
    """Tests for generate_coefficients and CoefficientVector."""

    def test_tier_bounds_and_order(self):
        betas = generate_coefficients(10, 10, 10, random_state=0)
        values = np.asarray(betas)

        assert len(betas) == 30
        assert np.all((values[:10] >= -1.0) & (values[:10] <= -0.5))
        assert np.all((values[10:20] >= -0.2) & (values[10:20] <= 0.2))
        assert np.all((values[20:] >= 0.5) & (values[20:] <= 1.0))
        assert betas.intercept == 1.0
        assert betas.tier_sizes == (10, 10, 10)

    def test_tier_labels(self):
        betas = generate_coefficients(1, 2, 1, random_state=0)
        assert betas.tier_labels() == ['large_negative', 'small', 'small', 'large_positive']

    def test_empty_tier(self):
        betas = generate_coefficients(0, 3, 0, intercept=2.5, random_state=0)
        assert len(betas) == 3
        assert betas.intercept == 2.5

    def test_negative_count(self):
        with pytest.raises(ValueError):
            generate_coefficients(-1, 2, 2)

    def test_values_read_only(self):
        betas = CoefficientVector(values=[0.8, -0.1, 0.6])
        with pytest.raises(ValueError):
            betas.values[0] = 0.0


class TestSimulation:
    """Tests for simulate_replicate, simulate_pool and build_pools."""

    @pytest.fixture
    def small_setup(self):
        corr = generate_correlation_matrix(0.0, 3, max_attempts=100, random_state=123)
        betas = CoefficientVector(values=[0.8, -0.1, 0.6], intercept=1.0)
        return corr, betas

    def test_end_to_end_scenario(self, small_setup):
        """50 rows from a 3x3 matrix give a 50 x 4 frame with a usable response."""
        corr, betas = small_setup
        rep = simulate_replicate(50, corr, betas, random_state=123)
        df = rep.to_frame()

        assert df.shape == (50, 4)
        assert list(df.columns) == ['y', 'X1', 'X2', 'X3']
        assert np.all(np.isfinite(rep.y))
        assert np.std(rep.y) > 0

    def test_deterministic(self, small_setup):
        corr, betas = small_setup
        a = simulate_replicate(20, corr, betas, random_state=7)
        b = simulate_replicate(20, corr, betas, random_state=7)

        np.testing.assert_array_equal(a.X, b.X)
        np.testing.assert_array_equal(a.y, b.y)

    def test_dimension_mismatch(self, small_setup):
        corr, _ = small_setup
        with pytest.raises(DimensionMismatch) as excinfo:
            simulate_replicate(10, corr, [0.5, 0.5], random_state=0)

        assert excinfo.value.expected == 3
        assert excinfo.value.actual == 2

    def test_noise_only_with_zero_coefficients(self):
        """With beta = 0 the response is intercept plus unit-variance noise."""
        rep = simulate_replicate(1000, np.eye(2), CoefficientVector([0.0, 0.0], intercept=3.0),
                                 random_state=0)
        assert abs(np.mean(rep.y) - 3.0) < 0.15
        assert abs(np.std(rep.y) - 1.0) < 0.1

    def test_plain_array_defaults_to_unit_intercept(self):
        rep = simulate_replicate(1000, np.eye(1), [0.0], random_state=0)
        assert abs(np.mean(rep.y) - 1.0) < 0.15

    def test_replicate_read_only(self, small_setup):
        corr, betas = small_setup
        rep = simulate_replicate(10, corr, betas, random_state=0)
        with pytest.raises(ValueError):
            rep.X[0, 0] = 0.0

    def test_replicate_shape_validation(self):
        with pytest.raises(ValueError):
            Replicate(y=np.zeros(5), X=np.zeros((4, 2)))

    def test_pool_is_index_stable(self, small_setup):
        corr, betas = small_setup
        ctx = ExecutionContext(seed=11)
        pool = simulate_pool('low', 'train', 4, 15, corr, betas, ctx)
        again = simulate_pool('low', 'train', 6, 15, corr, betas, ctx)

        assert len(pool) == 4
        assert pool.n_samples == 15
        assert [rep.index for rep in pool] == [0, 1, 2, 3]
        # Replicate i depends only on (seed, stage, label, i)
        for i in range(4):
            np.testing.assert_array_equal(pool[i].y, again[i].y)

    def test_train_and_test_pools_differ(self, small_setup):
        corr, betas = small_setup
        pools = build_pools([('low', corr, 2, 10, 2, 10)], betas, ExecutionContext(seed=3))
        train, test = pools['low']

        assert train.kind == 'train' and test.kind == 'test'
        assert not np.array_equal(train[0].X, test[0].X)

    def test_duplicate_labels_rejected(self, small_setup):
        corr, betas = small_setup
        specs = [('low', corr, 1, 5, 1, 5), ('low', corr, 1, 5, 1, 5)]
        with pytest.raises(ValueError):
            build_pools(specs, betas, ExecutionContext(seed=0))

    def test_pool_rejects_default_indices(self, small_setup):
        """Replicates left at index 0 cannot be pooled under positions 1 and 2."""
        corr, betas = small_setup
        reps = [simulate_replicate(20, corr, betas, random_state=s) for s in range(3)]

        with pytest.raises(ValueError, match="position 1 has index 0"):
            ReplicatePool(label='low', kind='train', replicates=reps)

    def test_pool_rejects_reordered_replicates(self, small_setup):
        corr, betas = small_setup
        pool = simulate_pool('low', 'train', 3, 10, corr, betas, ExecutionContext(seed=1))

        with pytest.raises(ValueError):
            ReplicatePool(label='low', kind='train', replicates=[pool[1], pool[0], pool[2]])

    def test_pool_accepts_indexed_replicates(self, small_setup):
        corr, betas = small_setup
        reps = [simulate_replicate(20, corr, betas, random_state=s, index=s) for s in range(3)]
        pool = ReplicatePool(label='low', kind='train', replicates=reps)

        assert [rep.index for rep in pool] == [0, 1, 2]

    def test_pool_kind_validation(self):
        with pytest.raises(ValueError):
            ReplicatePool(label='low', kind='validation')


class TestExceptions:
    """Errors survive pickling across worker processes."""

    def test_fit_failure_pickle(self):
        failure = FitFailure(3, ValueError("singular"), strategy='PCA', regime='high')
        restored = pickle.loads(pickle.dumps(failure))

        assert restored.replicate_index == 3
        assert restored.strategy == 'PCA'
        assert restored.regime == 'high'
        assert str(restored.cause) == "singular"
        assert "Replicate 3 (high, PCA) failed" in str(restored)

    def test_generation_exhausted_pickle(self):
        err = pickle.loads(pickle.dumps(GenerationExhausted(3.0, 30, 1000)))
        assert (err.shape, err.size, err.attempts) == (3.0, 30, 1000)

    def test_dimension_mismatch_is_value_error(self):
        assert isinstance(DimensionMismatch(3, 2), ValueError)
