"""Diagnostic figures for a fitted model. Nothing is shown or saved here."""

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.ticker import MaxNLocator


def plot_convergence(model):
    """Hyperparameter progression over the fixed-point iterations.

    Left: alpha and beta on a log scale. Right: the stopping criterion
    against the tolerance.
    """
    history = model.history
    if not history:
        raise ValueError('model has no iteration history, fit it first')

    iters = [rec.iteration for rec in history]
    fig, (ax_prec, ax_crit) = plt.subplots(1, 2, figsize=(14, 5))

    ax_prec.semilogy(iters, [rec.alpha for rec in history], 'b-o', linewidth=2, label='alpha (weights)')
    ax_prec.semilogy(iters, [rec.beta for rec in history], 'r--s', linewidth=2, label='beta (noise)')
    ax_prec.set_title(f'Precision Progression (gamma = {history[-1].gamma:.2f})')
    ax_prec.set_xlabel('Iteration')
    ax_prec.set_ylabel('Precision')
    ax_prec.xaxis.set_major_locator(MaxNLocator(integer=True))
    ax_prec.legend()
    ax_prec.grid(True)

    ax_crit.semilogy(iters, [rec.criterion for rec in history], 'm-', linewidth=2)
    ax_crit.axhline(model.tolerance, color='k', linestyle=':', label='tolerance')
    status = 'converged' if model.converged else 'not converged'
    ax_crit.set_title(f'Stopping Criterion ({status} in {model.n_iter} iters)')
    ax_crit.set_xlabel('Iteration')
    ax_crit.set_ylabel('|d_alpha/alpha + d_beta/beta|')
    ax_crit.xaxis.set_major_locator(MaxNLocator(integer=True))
    ax_crit.legend()
    ax_crit.grid(True)

    fig.tight_layout()
    return fig


def plot_predictions(x_axis, y, predictions, std, n_std=2.0):
    """Observations, predictive mean and a +- n_std band, sorted along x_axis."""
    x_axis = np.asarray(x_axis, dtype=float)
    order = np.argsort(x_axis)
    x_sorted = x_axis[order]
    mean = np.asarray(predictions, dtype=float)[order]
    band = n_std * np.asarray(std, dtype=float)[order]

    fig, ax = plt.subplots(1, 1, figsize=(10, 6))
    ax.plot(x_axis, y, 'b.', alpha=0.5, label='Observations')
    ax.plot(x_sorted, mean, 'r-', linewidth=2, label='Predictive mean')
    ax.fill_between(x_sorted, mean - band, mean + band, color='r', alpha=0.2,
                    label=f'+/- {n_std:g} std')
    ax.set_xlabel('x')
    ax.set_ylabel('Response')
    ax.legend()
    ax.grid(True)
    fig.tight_layout()
    return fig
