from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.stats import spearmanr
from sklearn.metrics import mean_squared_error, r2_score


@dataclass
class EvaluationResult:
    mse_beta: float
    r2: float
    rmse: float
    relative_error: float
    rank_correlation: float
    coverage: Optional[float] = None


def evaluate_fit(w_true, y, w_hat, predictions, std=None, z=1.96):
    """
    Evaluate a fitted Bayesian linear regression against known ground truth

    Parameters:
    w_true (array): True weights
    y (array): True target values
    w_hat (array): Estimated weights (posterior mean)
    predictions (array): Model predictions
    std (array, optional): Predictive standard deviations
    z (float): Half-width of the predictive interval in standard deviations

    Returns:
    EvaluationResult with
        mse_beta: mean squared error of the weight estimates
        r2: R-squared of the predictions
        rmse: root mean squared prediction error
        relative_error: mean relative error over the non-zero true weights
        rank_correlation: Spearman correlation between targets and predictions
        coverage: fraction of targets inside prediction +- z * std (None without std)
    """
    w_true = np.asarray(w_true, dtype=float).ravel()
    w_hat = np.asarray(w_hat, dtype=float).ravel()
    y = np.asarray(y, dtype=float).ravel()
    predictions = np.asarray(predictions, dtype=float).ravel()

    # 1. Weight recovery
    mse_beta = mean_squared_error(w_true, w_hat)
    true_nonzero = np.abs(w_true) > 1e-10
    if np.any(true_nonzero):
        rel_error = np.mean(np.abs(w_true[true_nonzero] - w_hat[true_nonzero]) /
                            np.abs(w_true[true_nonzero]))
    else:
        rel_error = 0.0

    # 2. Prediction quality
    R2 = r2_score(y, predictions)
    rmse = np.sqrt(mean_squared_error(y, predictions))
    rho, _ = spearmanr(y, predictions)

    # 3. Calibration of the predictive uncertainty
    coverage = None
    if std is not None:
        std = np.asarray(std, dtype=float).ravel()
        inside = np.abs(y - predictions) <= z * std
        coverage = float(np.mean(inside))

    return EvaluationResult(
        mse_beta=float(mse_beta),
        r2=float(R2),
        rmse=float(rmse),
        relative_error=float(rel_error),
        rank_correlation=float(rho),
        coverage=coverage,
    )
