"""Centering and scaling of the design matrix.

The design matrix is laid out features x observations, so the statistics
are taken along axis 1 and broadcast back over the columns.
"""

from dataclasses import dataclass

import numpy as np


@dataclass
class PreprocessedData:
    """Output of center_scale.

    phi and t are only needed while fitting; the offsets and scales are
    what the estimator keeps to transform new points.
    """

    phi: np.ndarray
    t: np.ndarray
    data_offset: np.ndarray
    data_scale: np.ndarray
    responses_offset: float


def as_design(design):
    """Return design as a 2-D float array (features x observations)."""
    X = np.asarray(design, dtype=float)
    if X.ndim != 2:
        raise ValueError(f"design must be 2-D (features x observations), got shape {X.shape}")
    return X


def as_responses(responses, n_obs):
    """Return responses as a flat float vector of length n_obs."""
    y = np.asarray(responses, dtype=float)
    if y.ndim == 2 and 1 in y.shape:
        y = y.ravel()
    if y.ndim != 1 or y.shape[0] != n_obs:
        raise ValueError(
            f"responses must be a vector of length {n_obs}, got shape {y.shape}"
        )
    return y


def center_scale(design, responses, center=True, scale=False):
    """Center and scale the training data.

    Parameters
    ----------
    design : array-like, shape (n_features, n_samples)
        Raw design matrix, left untouched.
    responses : array-like, shape (n_samples,)
        Raw targets, left untouched.
    center : bool
        Subtract the per-feature mean and the response mean.
    scale : bool
        Divide each feature by its population standard deviation.

    Returns
    -------
    PreprocessedData
    """
    X = as_design(design)
    y = as_responses(responses, X.shape[1])
    n_features = X.shape[0]

    # Neutral forms
    data_offset = np.zeros(n_features)
    data_scale = np.ones(n_features)
    responses_offset = 0.0

    if center:
        data_offset = X.mean(axis=1)
        responses_offset = float(y.mean())
    if scale:
        data_scale = X.std(axis=1)

    # Arithmetic below allocates new arrays, the caller's data is never modified
    phi = (X - data_offset[:, None]) / data_scale[:, None]
    t = y - responses_offset

    return PreprocessedData(
        phi=phi,
        t=t,
        data_offset=data_offset,
        data_scale=data_scale,
        responses_offset=responses_offset,
    )


def transform_design(points, data_offset, data_scale):
    """Apply stored offsets and scales to new points (features x samples)."""
    X = as_design(points)
    if X.shape[0] != data_offset.shape[0]:
        raise ValueError(
            f"points have {X.shape[0]} features, the model was fitted on "
            f"{data_offset.shape[0]}"
        )
    return (X - data_offset[:, None]) / data_scale[:, None]
