"""
Exceptions raised by the Bayesian linear regression engine
"""

from sklearn.exceptions import NotFittedError


class BayesianRegressionError(Exception):
    """Base exception for the bayeslr package"""
    pass


class ConfigurationError(BayesianRegressionError):
    """Invalid estimator settings"""
    pass


class DecompositionError(BayesianRegressionError):
    """Symmetric eigendecomposition of the Gram matrix failed"""
    pass


class SingularInputError(BayesianRegressionError):
    """Design rows are colinear, the Gram matrix has a zero eigenvalue"""
    pass


class NonFiniteEstimateError(BayesianRegressionError):
    """Hyperparameters or weights became NaN or Inf, e.g. for constant responses"""
    pass


__all__ = [
    "BayesianRegressionError",
    "ConfigurationError",
    "DecompositionError",
    "SingularInputError",
    "NonFiniteEstimateError",
    "NotFittedError",
]
