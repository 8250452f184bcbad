"""Bayesian linear regression with evidence-maximised precisions.

The noise precision and the weight-prior precision are estimated from the
data by a fixed-point iteration over one eigendecomposition of the Gram
matrix. Predictions come with standard deviations from the posterior
covariance.
"""

from .config import RegressionConfig
from .exceptions import (
    BayesianRegressionError,
    ConfigurationError,
    DecompositionError,
    NotFittedError,
    SingularInputError,
    NonFiniteEstimateError,
)
from .preprocessing import PreprocessedData, center_scale
from .regression import BayesianLinearRegression, IterationRecord

__version__ = "0.1.0"

__all__ = [
    "BayesianLinearRegression",
    "IterationRecord",
    "RegressionConfig",
    "PreprocessedData",
    "center_scale",
    "BayesianRegressionError",
    "ConfigurationError",
    "DecompositionError",
    "NotFittedError",
    "SingularInputError",
    "NonFiniteEstimateError",
]
