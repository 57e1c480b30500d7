"""
Estimators used after the representation step.

LeastSquaresRegressor wraps statsmodels OLS so that unregularized fits expose
per-coefficient p-values. Regularized fits are a scikit-learn Lasso tuned by
GridSearchCV over a k-fold split.
"""

import numpy as np
import statsmodels.api as sm
from sklearn.base import BaseEstimator, RegressorMixin
from sklearn.linear_model import Lasso
from sklearn.model_selection import GridSearchCV, KFold
from sklearn.pipeline import Pipeline
from sklearn.utils.validation import check_X_y, check_array, check_is_fitted

from .transformers import make_representation


class LeastSquaresRegressor(BaseEstimator, RegressorMixin):
    """
    Ordinary least squares with an intercept.

    Attributes
    ----------
    coef_ : ndarray of shape (n_features,)
        Slope estimates.
    intercept_ : float
        Intercept estimate.
    pvalues_ : ndarray of shape (n_features,)
        Two-sided t-test p-values of the slopes (intercept excluded).
        NaN when the residual degrees of freedom are zero.
    bse_ : ndarray of shape (n_features,)
        Standard errors of the slopes.
    df_resid_ : float
        Residual degrees of freedom.
    """

    def fit(self, X, y):
        X, y = check_X_y(X, y, y_numeric=True)
        design = sm.add_constant(X, has_constant='add')
        results = sm.OLS(y, design).fit()

        params = np.asarray(results.params)
        if not np.all(np.isfinite(params)):
            raise ValueError("Least-squares solution is not finite")

        self.intercept_ = float(params[0])
        self.coef_ = params[1:]
        self.pvalues_ = np.asarray(results.pvalues)[1:]
        self.bse_ = np.asarray(results.bse)[1:]
        self.df_resid_ = float(results.df_resid)
        self.n_features_in_ = X.shape[1]
        return self

    def predict(self, X):
        check_is_fitted(self, 'coef_')
        X = check_array(X)
        return X @ self.coef_ + self.intercept_


def make_pipeline(strategy, penalty=1.0, max_iter=10000):
    """Representation step followed by the strategy's estimator, as ``reg``."""
    if strategy.is_regularized:
        reg = Lasso(alpha=penalty, max_iter=max_iter)
    else:
        reg = LeastSquaresRegressor()
    return Pipeline([
        ('represent', make_representation(strategy)),
        ('reg', reg),
    ])


def make_penalty_search(strategy, penalty_grid, cv_folds=10, random_state=None,
                        max_iter=10000):
    """
    Grid search of the LASSO penalty by k-fold cross-validated RMSE.

    The grid is sorted ascending; GridSearchCV keeps the first best candidate,
    so ties resolve to the smallest penalty. The representation is refit
    inside every fold and the winning penalty is refit on all rows.
    """
    grid = np.sort(np.asarray(penalty_grid, dtype=float))
    return GridSearchCV(
        estimator=make_pipeline(strategy, penalty=grid[0], max_iter=max_iter),
        param_grid={'reg__alpha': grid},
        cv=KFold(n_splits=cv_folds, shuffle=True, random_state=random_state),
        scoring='neg_root_mean_squared_error',
        n_jobs=1,
        refit=True,
        error_score='raise',
    )
