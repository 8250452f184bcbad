"""Bayesian linear regression with evidence-maximised hyperparameters.

Model:
    t = omega^T phi + noise,  noise ~ N(0, 1/beta)
    omega ~ N(0, I / alpha)

alpha (prior precision) and beta (noise precision) are estimated by the
fixed-point iteration of the evidence approximation. The Gram matrix
phi phi^T is eigendecomposed once; every iteration then only rescales the
eigenvalues, which makes one update O(P^2) instead of an O(P^3) solve.
"""

import logging
import time
from copy import deepcopy
from dataclasses import dataclass

import numpy as np
from scipy import linalg
from sklearn.metrics import mean_squared_error

from .config import RegressionConfig
from .exceptions import (
    DecompositionError,
    NonFiniteEstimateError,
    NotFittedError,
    SingularInputError,
)
from .preprocessing import as_design, as_responses, center_scale, transform_design

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IterationRecord:
    """Hyperparameters after one update of the fixed-point loop."""

    iteration: int
    alpha: float
    beta: float
    gamma: float
    criterion: float


def _readonly(arr):
    view = arr.view()
    view.flags.writeable = False
    return view


class BayesianLinearRegression:
    """Bayesian linear regression (evidence approximation).

    The design matrix is laid out features x observations: a column is one
    observation.

    Parameters
    ----------
    center_data : bool, optional
        Center features and responses before fitting, by default True
    scale_data : bool, optional
        Scale features by their standard deviation, by default False
    max_iterations : int, optional
        Maximum number of hyperparameter updates, by default 50
    tolerance : float, optional
        Convergence threshold on |d_alpha/alpha + d_beta/beta|, by default 1e-3
    solver : str, optional
        "eigen" (default) reuses a single eigendecomposition, "inverse"
        recomputes the posterior covariance by matrix inversion every
        iteration.
    singular_tolerance : float, optional
        Relative threshold below which the smallest eigenvalue of the Gram
        matrix counts as zero, by default max(n_features, n_samples) * machine
        epsilon
    alpha_init : float, optional
        Starting prior precision, by default 1e-6
    beta_init_fraction : float, optional
        beta starts at 1 / (beta_init_fraction * var(t)), by default 0.1

    Raises
    ------
    ConfigurationError
        if any setting is out of range
    """

    def __init__(self, center_data=True, scale_data=False, max_iterations=50,
                 tolerance=1e-3, solver="eigen", singular_tolerance=None,
                 alpha_init=1e-6, beta_init_fraction=0.1):
        config = RegressionConfig(
            center_data=bool(center_data),
            scale_data=bool(scale_data),
            max_iterations=max_iterations,
            tolerance=tolerance,
            solver=solver,
            alpha_init=alpha_init,
            beta_init_fraction=beta_init_fraction,
            singular_tolerance=singular_tolerance,
        ).validate()
        self._apply_config(config)
        self._reset_fit_state()

    @classmethod
    def from_config(cls, config):
        """Build an estimator from a RegressionConfig."""
        return cls(**config.validate().to_dict())

    @property
    def config(self):
        return RegressionConfig(
            center_data=self.center_data,
            scale_data=self.scale_data,
            max_iterations=self.max_iterations,
            tolerance=self.tolerance,
            solver=self.solver,
            alpha_init=self.alpha_init,
            beta_init_fraction=self.beta_init_fraction,
            singular_tolerance=self.singular_tolerance,
        )

    def _apply_config(self, config):
        self.center_data = config.center_data
        self.scale_data = config.scale_data
        self.max_iterations = int(config.max_iterations)
        self.tolerance = float(config.tolerance)
        self.solver = config.solver
        self.alpha_init = float(config.alpha_init)
        self.beta_init_fraction = float(config.beta_init_fraction)
        self.singular_tolerance = config.singular_tolerance

    def _reset_fit_state(self):
        self._data_offset = None
        self._data_scale = None
        self._responses_offset = 0.0
        self._alpha = 0.0
        self._beta = 0.0
        self._gamma = 0.0
        self._omega = None
        self._covariance = None
        self._eigvals = None
        self._projected_targets = None
        self._targets_sq = 0.0
        self._n_obs = 0
        self._n_iter = 0
        self._converged = False
        self._history = []

    # ------------------------------------------------------------------
    # Fitting
    # ------------------------------------------------------------------

    def fit(self, design, responses):
        """Fit the model.

        Parameters
        ----------
        design : array-like, shape (n_features, n_samples)
            Training design matrix, one observation per column.
        responses : array-like, shape (n_samples,)
            Training targets.

        Returns
        -------
        float
            Root mean squared error of the fitted model on the training data
            (raw, unprocessed responses).

        Raises
        ------
        DecompositionError
            if the Gram matrix is not finite or LAPACK fails to decompose it
        SingularInputError
            if the design rows are colinear (zero eigenvalue)
        NonFiniteEstimateError
            if alpha, beta, the weights or the covariance end up NaN or Inf,
            e.g. for constant responses; the previous fit is kept
        """
        start = time.perf_counter()
        X = as_design(design)
        y = as_responses(responses, X.shape[1])

        data = center_scale(X, y, center=self.center_data, scale=self.scale_data)
        phi, t = data.phi, data.t
        n_features, n_obs = phi.shape

        # Compute these quantities once and for all
        phiphiT = phi @ phi.T
        phiphiT = 0.5 * (phiphiT + phiphiT.T)
        phiT_t = phi @ t
        eigvals, eigvecs = self._decompose(phiphiT, n_obs)
        projected = eigvecs.T @ phiT_t

        # Near-uninformative prior, noise variance a tenth of the target variance
        alpha = np.float64(self.alpha_init)
        beta = 1.0 / (np.var(t) * self.beta_init_fraction)
        gamma = np.float64(0.0)
        identity = np.eye(n_features)
        covariance = None
        history = []
        converged = False

        for i in range(self.max_iterations):
            delta_alpha = -alpha
            delta_beta = -beta

            # Posterior mean for the current hyperparameters
            if self.solver == "eigen":
                omega = eigvecs @ (projected / (eigvals + alpha / beta))
            else:
                precision = alpha * identity + beta * phiphiT
                try:
                    covariance = np.linalg.inv(precision)
                except np.linalg.LinAlgError:
                    covariance = np.linalg.pinv(precision)
                omega = beta * covariance @ phiT_t

            # Update alpha
            eigvals_beta = beta * eigvals
            gamma = np.sum(eigvals_beta / (alpha + eigvals_beta))
            alpha = gamma / (omega @ omega)

            # Update beta
            residual = t - omega @ phi
            beta = (n_obs - gamma) / (residual @ residual)

            delta_alpha += alpha
            delta_beta += beta
            criterion = abs(delta_alpha / alpha + delta_beta / beta)
            history.append(IterationRecord(
                iteration=i + 1,
                alpha=float(alpha),
                beta=float(beta),
                gamma=float(gamma),
                criterion=float(criterion),
            ))
            if criterion <= self.tolerance:
                converged = True
                break

        if not converged:
            logger.warning(
                "Hyperparameters did not converge after %d iterations "
                "(criterion %.3g > tolerance %.3g); keeping the last estimate",
                len(history), history[-1].criterion, self.tolerance,
            )

        # Posterior covariance for the final hyperparameters
        if self.solver == "eigen":
            covariance = (eigvecs / (beta * eigvals + alpha)) @ eigvecs.T
        else:
            precision = alpha * identity + beta * phiphiT
            try:
                covariance = np.linalg.inv(precision)
            except np.linalg.LinAlgError:
                covariance = np.linalg.pinv(precision)
        covariance = 0.5 * (covariance + covariance.T)

        if not (np.isfinite(alpha) and np.isfinite(beta)
                and np.all(np.isfinite(omega)) and np.all(np.isfinite(covariance))):
            logger.warning(
                "Non-finite estimate after %d iterations (alpha=%s, beta=%s); "
                "constant responses or a degenerate design", len(history), alpha, beta,
            )
            raise NonFiniteEstimateError(
                f"Fit produced non-finite hyperparameters (alpha={alpha}, beta={beta})"
            )

        predictions = omega @ phi + data.responses_offset
        rmse = float(np.sqrt(mean_squared_error(y, predictions)))

        # Commit only once everything above succeeded
        self._data_offset = data.data_offset
        self._data_scale = data.data_scale
        self._responses_offset = float(data.responses_offset)
        self._alpha = float(alpha)
        self._beta = float(beta)
        self._gamma = float(gamma)
        self._omega = omega
        self._covariance = covariance
        self._eigvals = eigvals
        self._projected_targets = projected
        self._targets_sq = float(t @ t)
        self._n_obs = n_obs
        self._n_iter = len(history)
        self._converged = converged
        self._history = history

        logger.debug(
            "Fitted %d features on %d observations in %d iterations (%.4fs): "
            "alpha=%.4g beta=%.4g gamma=%.3f rmse=%.4g",
            n_features, n_obs, self._n_iter, time.perf_counter() - start,
            self._alpha, self._beta, self._gamma, rmse,
        )
        return rmse

    def _decompose(self, phiphiT, n_obs):
        """Eigendecomposition of the Gram matrix, ascending eigenvalues."""
        if not np.all(np.isfinite(phiphiT)):
            logger.warning("Gram matrix contains NaN or Inf; check for constant features")
            raise DecompositionError(
                "Gram matrix is not finite, eigendecomposition is impossible"
            )
        try:
            eigvals, eigvecs = linalg.eigh(phiphiT)
        except linalg.LinAlgError as exc:
            logger.warning("Eigendecomposition of the Gram matrix failed: %s", exc)
            raise DecompositionError("Eigendecomposition of the Gram matrix failed") from exc

        tol = self.singular_tolerance
        if tol is None:
            tol = max(phiphiT.shape[0], n_obs) * np.finfo(float).eps
        if eigvals[0] <= tol * abs(eigvals[-1]):
            logger.warning(
                "Singular Gram matrix (smallest eigenvalue %.3g). "
                "Two or more rows of the design matrix are colinear.", eigvals[0],
            )
            raise SingularInputError(
                "Singular design matrix: two or more features are colinear"
            )
        return eigvals, eigvecs

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------

    def _prepare_points(self, points):
        self._check_is_fitted()
        X = np.asarray(points, dtype=float)
        single = X.ndim == 1
        if single:
            X = X[:, None]
        return transform_design(X, self._data_offset, self._data_scale), single

    def predict(self, points):
        """Predict the responses of new points.

        Parameters
        ----------
        points : array-like, shape (n_features, n_points) or (n_features,)
            One point per column. A 1-D array is a single point.

        Returns
        -------
        ndarray of shape (n_points,), or float for a single point
        """
        X, single = self._prepare_points(points)
        predictions = self._omega @ X + self._responses_offset
        if single:
            return float(predictions[0])
        return predictions

    def predict_with_uncertainty(self, points):
        """Predict the responses and their standard deviations.

        The standard deviation combines the noise variance 1/beta with the
        posterior uncertainty of the weights, x^T S x.

        Returns
        -------
        (predictions, std)
            Two arrays of shape (n_points,), or two floats for a single point.
        """
        X, single = self._prepare_points(points)
        predictions = self._omega @ X + self._responses_offset
        std = np.sqrt(self.variance() + np.sum(X * (self._covariance @ X), axis=0))
        if single:
            return float(predictions[0]), float(std[0])
        return predictions, std

    def rmse(self, design, responses):
        """Root mean squared error of the predictions on design."""
        X = as_design(design)
        y = as_responses(responses, X.shape[1])
        return float(np.sqrt(mean_squared_error(y, self.predict(X))))

    def log_marginal_likelihood(self, alpha=None, beta=None):
        """Log evidence ln p(t | alpha, beta) of the training targets.

        Evaluated at the fitted hyperparameters unless alpha or beta are
        given. Only the stored eigenvalues and projected targets are used,
        the training data is not needed.
        """
        self._check_is_fitted()
        alpha = self._alpha if alpha is None else float(alpha)
        beta = self._beta if beta is None else float(beta)
        eigvals = self._eigvals
        proj_sq = self._projected_targets ** 2
        n_features = eigvals.shape[0]
        n_obs = self._n_obs

        # Posterior mean in the eigenbasis: proj / (lambda + alpha/beta)
        shrunk = eigvals + alpha / beta
        omega_sq = np.sum(proj_sq / shrunk ** 2)
        residual_sq = (self._targets_sq - 2.0 * np.sum(proj_sq / shrunk)
                       + np.sum(eigvals * proj_sq / shrunk ** 2))
        energy = 0.5 * beta * residual_sq + 0.5 * alpha * omega_sq
        log_det = np.sum(np.log(alpha + beta * eigvals))

        return float(
            0.5 * n_features * np.log(alpha)
            + 0.5 * n_obs * np.log(beta)
            - energy
            - 0.5 * log_det
            - 0.5 * n_obs * np.log(2.0 * np.pi)
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def is_fitted(self):
        return self._omega is not None

    def _check_is_fitted(self):
        if not self.is_fitted:
            raise NotFittedError(
                f"This {type(self).__name__} instance is not fitted yet. "
                "Call 'fit' with appropriate arguments first."
            )

    @property
    def omega(self):
        """Posterior mean of the weights (read-only)."""
        self._check_is_fitted()
        return _readonly(self._omega)

    @property
    def covariance(self):
        """Posterior covariance of the weights (read-only)."""
        self._check_is_fitted()
        return _readonly(self._covariance)

    @property
    def data_offset(self):
        self._check_is_fitted()
        return _readonly(self._data_offset)

    @property
    def data_scale(self):
        self._check_is_fitted()
        return _readonly(self._data_scale)

    @property
    def responses_offset(self):
        self._check_is_fitted()
        return self._responses_offset

    @property
    def alpha(self):
        """Precision of the prior on the weights."""
        self._check_is_fitted()
        return self._alpha

    @property
    def beta(self):
        """Precision of the noise."""
        self._check_is_fitted()
        return self._beta

    @property
    def gamma(self):
        """Effective number of well-determined parameters."""
        self._check_is_fitted()
        return self._gamma

    def variance(self):
        """Estimated noise variance, 1 / beta."""
        self._check_is_fitted()
        return 1.0 / self._beta

    @property
    def n_iter(self):
        return self._n_iter

    @property
    def converged(self):
        return self._converged

    @property
    def history(self):
        return list(self._history)

    # ------------------------------------------------------------------
    # Value semantics
    # ------------------------------------------------------------------

    def copy(self):
        """Return an independent duplicate, fitted state included."""
        return deepcopy(self)

    __copy__ = copy

    def transfer(self):
        """Move the fitted state into a new estimator.

        The returned estimator owns the buffers; this one is left empty,
        unfit and with centering and scaling disabled.
        """
        moved = self.__class__.__new__(self.__class__)
        moved.__dict__.update(self.__dict__)
        self.center_data = False
        self.scale_data = False
        self._reset_fit_state()
        return moved

    def __repr__(self):
        return (
            f"{type(self).__name__}(center_data={self.center_data}, "
            f"scale_data={self.scale_data}, max_iterations={self.max_iterations}, "
            f"tolerance={self.tolerance}, solver={self.solver!r})"
        )
