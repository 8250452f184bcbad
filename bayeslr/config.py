"""Default settings for the Bayesian linear regression engine.

The hyperparameter starting point follows the evidence approximation:
alpha starts near zero (an almost flat prior on the weights) and beta
starts at ten times the inverse response variance.
"""

from dataclasses import asdict, dataclass
from typing import Optional

from .exceptions import ConfigurationError

SOLVERS = ("eigen", "inverse")


@dataclass
class RegressionConfig:
    """Estimator settings.

    Attributes:
        center_data: Subtract the per-feature and response means before fitting.
        scale_data: Divide every feature by its standard deviation.
        max_iterations: Cap on the number of hyperparameter updates.
        tolerance: Stop once |d_alpha/alpha + d_beta/beta| falls below this.
        solver: "eigen" reuses one eigendecomposition for every iteration,
            "inverse" recomputes the posterior covariance each iteration.
        alpha_init: Starting prior precision of the weights.
        beta_init_fraction: beta starts at 1 / (fraction * var(t)).
        singular_tolerance: Relative threshold on the smallest eigenvalue of
            the Gram matrix. None means max(P, N) * machine epsilon.
    """

    center_data: bool = True
    scale_data: bool = False
    max_iterations: int = 50
    tolerance: float = 1e-3
    solver: str = "eigen"
    alpha_init: float = 1e-6
    beta_init_fraction: float = 0.1
    singular_tolerance: Optional[float] = None

    def validate(self) -> "RegressionConfig":
        try:
            return self._validate()
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"invalid setting type: {exc}") from exc

    def _validate(self) -> "RegressionConfig":
        if int(self.max_iterations) != self.max_iterations or self.max_iterations < 1:
            raise ConfigurationError(
                f"max_iterations must be a positive integer, got {self.max_iterations!r}"
            )
        if not self.tolerance > 0:
            raise ConfigurationError(f"tolerance must be positive, got {self.tolerance!r}")
        if self.solver not in SOLVERS:
            raise ConfigurationError(
                f"unknown solver {self.solver!r}, expected one of {SOLVERS}"
            )
        if not self.alpha_init > 0:
            raise ConfigurationError(f"alpha_init must be positive, got {self.alpha_init!r}")
        if not self.beta_init_fraction > 0:
            raise ConfigurationError(
                f"beta_init_fraction must be positive, got {self.beta_init_fraction!r}"
            )
        if self.singular_tolerance is not None and self.singular_tolerance < 0:
            raise ConfigurationError(
                f"singular_tolerance must be non-negative, got {self.singular_tolerance!r}"
            )
        return self

    def to_dict(self) -> dict:
        return asdict(self)
