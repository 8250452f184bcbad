import matplotlib

# Figures are only built in tests, never displayed
matplotlib.use("Agg")

import pytest

from bayeslr.synthetic import SyntheticRegression


@pytest.fixture
def noise_free_problem():
    """10 features, 200 observations, y = w^T X exactly."""
    X, y, w = SyntheticRegression(10, 200, seed=4).generate()
    return X, y, w


@pytest.fixture
def noisy_problem():
    """10 features, 200 observations, noise std 0.5."""
    X, y, w = SyntheticRegression(10, 200, seed=4).generate(noise_std=0.5)
    return X, y, w
