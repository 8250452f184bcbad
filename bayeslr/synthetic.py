import numpy as np


class SyntheticRegression:
    def __init__(self, n_features, n_samples, seed=None):
        """Constructor of the synthetic linear regression problem.

        Parameters
        ----------
        n_features : int
            Number of features in dataset
        n_samples : int
            Number of samples in dataset
        seed : int, or SeedSequence object, or array-like int
            Seed used for random data generation
        """
        self.p = n_features
        self.N = n_samples
        self.rng = np.random.default_rng(seed)
        self.w = None

    def generate(self, noise_std=0.0):
        """Draw a design matrix, true weights and responses.

        Parameters
        ----------
        noise_std : float, optional
            Standard deviation of the additive Gaussian noise on the
            responses, by default 0.0 (noise free)

        Returns
        -------
        X
            data matrix of size n_features x n_samples
        y
            responses w^T X + noise, of size n_samples
        w
            true weights, of size n_features
        """
        X = self.rng.standard_normal((self.p, self.N))
        self.w = self.rng.standard_normal(self.p)
        y = self.w @ X
        if noise_std > 0:
            y = y + self.rng.normal(scale=noise_std, size=self.N)
        return X, y, self.w

    def generate_snr(self, snr_db):
        """Draw a problem whose noise level matches a signal-to-noise ratio.

        Parameters
        ----------
        snr_db : float
            Target signal-to-noise ratio in dB

        Returns
        -------
        X, y, w, noise_var
            as generate, plus the noise variance that was used
        """
        X, signal, w = self.generate()
        # set noise variance to achieve target SNR (in dB)
        snr_lin = 10 ** (snr_db / 10.0)
        noise_var = np.var(signal) / snr_lin
        y = signal + self.rng.normal(scale=np.sqrt(noise_var), size=self.N)
        return X, y, w, noise_var

    def offset(self, X, y, feature_shift=5.0, response_shift=3.0):
        """Shift features and responses away from zero.

        Returns copies. The shifted data follow y = w^T X + b with an
        intercept b = response_shift - w^T shifts, so w is recovered only
        when the estimator centers the data.
        """
        shifts = self.rng.uniform(-feature_shift, feature_shift, size=self.p)
        return X + shifts[:, None], y + response_shift

    @staticmethod
    def colinear(X, source=0, target=1, factor=1.0):
        """Overwrite row target with factor * row source.

        Raises
        ------
        ValueError
            if source and target are the same row
        """
        if source == target:
            raise ValueError('source and target rows must differ')
        X_col = np.copy(X)
        X_col[target, :] = factor * X_col[source, :]
        return X_col
