"""
Feature representations used by the strategies.

All transformers are scikit-learn compatible so they can sit in a Pipeline
and be refit inside every cross-validation fold.
"""

import numpy as np
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.cross_decomposition import PLSRegression
from sklearn.decomposition import PCA
from sklearn.utils.validation import check_array, check_is_fitted

from .strategies import Representation


def components_for_threshold(explained_variance_ratio, threshold):
    """
    Smallest number of leading components whose cumulative explained
    variance reaches ``threshold``.

    A threshold of 1.0 or more keeps every component.
    """
    ratios = np.asarray(explained_variance_ratio, dtype=float)
    if threshold >= 1.0:
        return len(ratios)
    cumulative = np.cumsum(ratios)
    k = int(np.searchsorted(cumulative, threshold, side='left')) + 1
    return min(k, len(ratios))


class PrincipalComponents(BaseEstimator, TransformerMixin):
    """
    Project centered predictors onto their leading principal components.

    Parameters
    ----------
    n_components : int or None, default=None
        Fixed number of components. Takes precedence over the threshold.
    variance_threshold : float or None, default=None
        Keep the fewest components explaining at least this share of the
        variance. None (with ``n_components=None``) keeps all components.

    Attributes
    ----------
    pca_ : sklearn.decomposition.PCA
        Full PCA fitted on the training predictors.
    n_components_ : int
        Components actually retained.
    """

    def __init__(self, n_components=None, variance_threshold=None):
        self.n_components = n_components
        self.variance_threshold = variance_threshold

    def fit(self, X, y=None):
        X = check_array(X)
        pca = PCA(svd_solver='full').fit(X)
        ratios = pca.explained_variance_ratio_
        if not np.all(np.isfinite(ratios)):
            raise ValueError("Explained variance is undefined for a constant predictor matrix")

        n_available = len(ratios)
        if self.n_components is not None:
            if not 1 <= self.n_components <= n_available:
                raise ValueError(
                    f"n_components={self.n_components} must be in [1, {n_available}]"
                )
            k = int(self.n_components)
        elif self.variance_threshold is not None:
            k = components_for_threshold(ratios, self.variance_threshold)
        else:
            k = n_available

        self.pca_ = pca
        self.n_components_ = k
        self.cumulative_variance_ = float(np.sum(ratios[:k]))
        self.n_features_in_ = X.shape[1]
        return self

    def transform(self, X):
        check_is_fitted(self, 'pca_')
        X = check_array(X)
        return self.pca_.transform(X)[:, :self.n_components_]


class PLSProjector(BaseEstimator, TransformerMixin):
    """
    Outcome-supervised projection onto PLS x-scores.

    PLSRegression.fit_transform returns (x_scores, y_scores) when given y,
    which a Pipeline cannot consume; this wrapper only exposes x-scores.
    """

    def __init__(self, n_components=2):
        self.n_components = n_components

    def fit(self, X, y=None):
        if y is None:
            raise ValueError("PLSProjector requires y to fit")
        X = check_array(X)
        if not 1 <= self.n_components <= min(X.shape):
            raise ValueError(
                f"n_components={self.n_components} must be in [1, {min(X.shape)}]"
            )
        pls = PLSRegression(n_components=self.n_components, scale=False)
        pls.fit(X, y)
        if not np.all(np.isfinite(pls.x_rotations_)):
            raise ValueError("PLS projection is undefined for this predictor matrix")

        self.pls_ = pls
        self.n_components_ = int(self.n_components)
        self.n_features_in_ = X.shape[1]
        return self

    def transform(self, X):
        check_is_fitted(self, 'pls_')
        X = check_array(X)
        return self.pls_.transform(X)


def make_representation(strategy):
    """Pipeline step implementing ``strategy.representation``."""
    rep = strategy.representation
    if rep is Representation.IDENTITY:
        return 'passthrough'
    if rep in (Representation.PCA, Representation.PCA_THRESHOLD):
        return PrincipalComponents(
            n_components=strategy.n_components,
            variance_threshold=strategy.variance_threshold,
        )
    if rep is Representation.PLS:
        return PLSProjector(n_components=strategy.n_components)
    raise ValueError(f"Unknown representation {rep}")
