"""
Execution context for simulation runs.

Holds the run-level seed and the worker-pool settings. Every stochastic stage
asks the context for its own generator, derived from the run seed plus a stage
identifier and optional keys (regime label, replicate index, ...), so that
changing one stage never shifts the random draws of another.
"""

import zlib
from dataclasses import dataclass

import numpy as np

STAGES = {
    'matrix': 0,
    'parameters': 1,
    'training': 2,
    'testing': 3,
    'folds': 4,
}


def _key_to_int(key):
    if isinstance(key, (bool, np.bool_)):
        return int(key)
    if isinstance(key, (int, np.integer)):
        if key < 0:
            raise ValueError(f"Seed keys must be non-negative, got {key}")
        return int(key)
    return zlib.crc32(str(key).encode('utf-8'))


@dataclass(frozen=True)
class ExecutionContext:
    """
    Seed and parallelism settings passed explicitly to batch operations.

    Parameters
    ----------
    seed : int
        Run-level seed.
    n_jobs : int, default=1
        joblib workers. 1 runs sequentially, -1 uses all cores.
    backend : str, default='loky'
        joblib backend ('loky', 'threading' or 'multiprocessing').
    verbose : int, default=0
        0 is silent, 1 prints stage progress, 2 adds per-strategy timing.

    Examples
    --------
    >>> ctx = ExecutionContext(seed=123)
    >>> rng = ctx.rng('training', 'low', 0)
    >>> rng.standard_normal(2).shape
    (2,)
    """
    seed: int
    n_jobs: int = 1
    backend: str = 'loky'
    verbose: int = 0

    def __post_init__(self):
        if self.seed is None or int(self.seed) < 0:
            raise ValueError(f"seed must be a non-negative integer, got {self.seed}")
        if self.n_jobs == 0:
            raise ValueError("n_jobs must be non-zero")

    def seed_sequence(self, stage, *keys):
        """SeedSequence for a stage, further split by keys."""
        if stage not in STAGES:
            raise ValueError(f"Unknown stage '{stage}'. Use one of {sorted(STAGES)}.")
        spawn_key = (STAGES[stage],) + tuple(_key_to_int(k) for k in keys)
        return np.random.SeedSequence(entropy=int(self.seed), spawn_key=spawn_key)

    def rng(self, stage, *keys):
        """Independent numpy Generator for a stage and keys."""
        return np.random.default_rng(self.seed_sequence(stage, *keys))

    def seed_for(self, stage, *keys):
        """Integer seed for APIs that take ``random_state`` ints (e.g. KFold)."""
        return int(self.seed_sequence(stage, *keys).generate_state(1)[0])

    def map(self, func, items):
        """
        Apply ``func`` to every item, in parallel when n_jobs != 1.

        Output order always matches input order.
        """
        items = list(items)
        if self.n_jobs == 1 or len(items) <= 1:
            return [func(item) for item in items]

        from joblib import Parallel, delayed
        return Parallel(
            n_jobs=self.n_jobs,
            backend=self.backend,
            verbose=0,
        )(delayed(func)(item) for item in items)
