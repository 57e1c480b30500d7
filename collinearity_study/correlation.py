"""
Random positive-definite correlation matrices with a tunable shape.

Each row of a size x size standard normal matrix is shifted by
``shape * a_i`` where ``a_i`` is one standard normal draw per row. The Gram
matrix of the shifted rows, rescaled to unit diagonal, is a correlation
matrix whose off-diagonal distribution moves from roughly normal around 0
(shape ~ 0) through bimodal (~1.7) and near-uniform (~2) to clustered near
+/-1 (shape > 2).
"""

from dataclasses import dataclass, field

import numpy as np

from .exceptions import GenerationExhausted


def is_positive_definite(matrix):
    """Return True when ``matrix`` admits a Cholesky factorization."""
    try:
        np.linalg.cholesky(matrix)
    except np.linalg.LinAlgError:
        return False
    return True


def _candidate(shape, size, rng, decimals):
    rows = rng.standard_normal((size, size))
    rows += shape * rng.standard_normal((size, 1))

    gram = rows @ rows.T
    inv_sd = 1.0 / np.sqrt(np.diag(gram))
    corr = gram * np.outer(inv_sd, inv_sd)

    corr = np.round(corr, decimals)
    corr = np.clip((corr + corr.T) / 2, -1.0, 1.0)
    np.fill_diagonal(corr, 1.0)
    return corr


def generate_correlation_matrix(shape, size, max_attempts=1000,
                                random_state=None, decimals=10):
    """
    Generate a positive-definite correlation matrix.

    Parameters
    ----------
    shape : float
        Non-negative shape parameter controlling the correlation spread.
    size : int
        Number of variables.
    max_attempts : int, default=1000
        Candidates drawn before giving up.
    random_state : int, numpy Generator or None
        Source of randomness.
    decimals : int, default=10
        Rounding applied to every candidate.

    Returns
    -------
    corr : ndarray of shape (size, size)
        Read-only symmetric, unit-diagonal, positive-definite matrix.

    Raises
    ------
    GenerationExhausted
        If no candidate is positive-definite within ``max_attempts``.

    Examples
    --------
    >>> corr = generate_correlation_matrix(0.0, 3, random_state=123)
    >>> np.allclose(np.diag(corr), 1.0)
    True
    """
    if shape < 0:
        raise ValueError(f"shape must be non-negative, got {shape}")
    if size < 1:
        raise ValueError(f"size must be positive, got {size}")
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be positive, got {max_attempts}")

    rng = np.random.default_rng(random_state)

    for _ in range(max_attempts):
        corr = _candidate(shape, size, rng, decimals)
        if is_positive_definite(corr):
            corr.flags.writeable = False
            return corr

    raise GenerationExhausted(shape=shape, size=size, attempts=max_attempts)


@dataclass(frozen=True, eq=False)
class Regime:
    """A labelled correlation matrix shared read-only by all its replicates."""
    label: str
    shape: float
    correlation: np.ndarray = field(repr=False)

    def __post_init__(self):
        corr = np.array(self.correlation, dtype=float)
        corr.flags.writeable = False
        object.__setattr__(self, 'correlation', corr)
        object.__setattr__(self, 'shape', float(self.shape))

    @property
    def size(self):
        return self.correlation.shape[0]
