"""
Multicollinearity diagnostics used to document the simulated regimes.

Provides:
- Off-diagonal correlation extraction and histograms
- Variance Inflation Factors and condition numbers
- Per-regime summaries
"""

import numpy as np
import pandas as pd
from sklearn.linear_model import LinearRegression


def off_diagonal(matrix):
    """Upper-triangle (k=1) entries of a square matrix."""
    matrix = np.asarray(matrix)
    rows, cols = np.triu_indices(matrix.shape[0], k=1)
    return matrix[rows, cols]


def correlation_histogram(matrix, bins=20):
    """
    Histogram of the pairwise correlations of a correlation matrix.

    Parameters
    ----------
    matrix : array-like of shape (p, p)
    bins : int, default=20
        Equal-width bins over [-1, 1].

    Returns
    -------
    counts : ndarray of shape (bins,)
    edges : ndarray of shape (bins + 1,)
    """
    return np.histogram(off_diagonal(matrix), bins=bins, range=(-1.0, 1.0))


def compute_vif(X):
    """
    Compute Variance Inflation Factors for each predictor.

    VIF_j = 1 / (1 - R²_j) where R²_j is from regressing X_j on all other X's.

    Parameters
    ----------
    X : array-like of shape (n_samples, n_features)

    Returns
    -------
    vif : ndarray of shape (n_features,)
        VIF > 10 suggests harmful multicollinearity.
    """
    X = np.asarray(X)
    n_features = X.shape[1]
    vif = np.zeros(n_features)

    for i in range(n_features):
        X_others = np.delete(X, i, axis=1)
        X_i = X[:, i]

        if X_others.shape[1] == 0:
            vif[i] = 1.0
            continue

        r2 = LinearRegression().fit(X_others, X_i).score(X_others, X_i)
        vif[i] = np.inf if r2 >= 1 else 1 / (1 - r2)

    return vif


def compute_condition_number(matrix):
    """
    Condition number sqrt(λ_max / λ_min) of a symmetric matrix.

    For a correlation matrix this is the condition number of the standardized
    design; values above 30 indicate harmful multicollinearity.
    """
    eigenvalues = np.linalg.eigvalsh(np.asarray(matrix))
    eigenvalues = eigenvalues[eigenvalues > 0]
    if len(eigenvalues) == 0:
        return np.inf
    return float(np.sqrt(np.max(eigenvalues) / np.min(eigenvalues)))


def describe_regime(regime, bins=20):
    """
    Summary statistics of one regime's correlation matrix.

    Returns
    -------
    dict
        label, shape, mean_abs_corr, max_abs_corr, min_eigenvalue,
        condition_number, histogram (counts, edges).
    """
    corr = regime.correlation
    r = off_diagonal(corr)
    abs_r = np.abs(r) if r.size else np.zeros(1)
    return {
        'label': regime.label,
        'shape': regime.shape,
        'mean_abs_corr': float(np.mean(abs_r)),
        'max_abs_corr': float(np.max(abs_r)),
        'min_eigenvalue': float(np.linalg.eigvalsh(corr)[0]),
        'condition_number': compute_condition_number(corr),
        'histogram': correlation_histogram(corr, bins=bins),
    }


def regime_summary(regimes) -> pd.DataFrame:
    """One row per regime with the scalar fields of describe_regime."""
    rows = []
    for regime in regimes:
        d = describe_regime(regime)
        d.pop('histogram')
        rows.append(d)
    return pd.DataFrame(rows).set_index('label')
