"""
Convergence checks and plots for group meta-d' fits.
"""
import logging

import arviz as az
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .request import MONITOR_PARAMS

logger = logging.getLogger(__name__)

RHAT_THRESHOLD = 1.01
ESS_THRESHOLD = 400


def check_convergence(samples, var_names=None):
    """Check MCMC convergence using R-hat, effective sample size and divergences.

    Args:
        samples: InferenceData returned with a fit (GroupFit.samples)
        var_names: Parameters to check; all posterior variables if omitted

    Returns:
        DataFrame indexed by parameter with mean/max R-hat and mean/min ESS
    """
    rhat = az.rhat(samples, var_names=var_names)
    ess = az.ess(samples, var_names=var_names)

    rows = {}
    for var in rhat.data_vars:
        rhat_values = np.asarray(rhat[var].values).flatten()
        ess_values = np.asarray(ess[var].values).flatten()
        rows[var] = {
            'rhat_mean': np.mean(rhat_values),
            'rhat_max': np.max(rhat_values),
            'ess_mean': np.mean(ess_values),
            'ess_min': np.min(ess_values),
        }
        if rows[var]['rhat_max'] > RHAT_THRESHOLD:
            logger.warning(f"{var}: poor convergence (max R-hat {rows[var]['rhat_max']:.3f})")
        if rows[var]['ess_min'] < ESS_THRESHOLD:
            logger.warning(f"{var}: low effective sample size (min ESS {rows[var]['ess_min']:.0f})")

    sample_stats = getattr(samples, 'sample_stats', None)
    if sample_stats is not None and 'diverging' in sample_stats:
        divergent = int(sample_stats['diverging'].sum().item())
        if divergent > 0:
            logger.warning(f"{divergent} divergent transitions")

    table = pd.DataFrame(rows).T
    table.index.name = 'parameter'
    return table


def plot_type2_fit(fit, subject):
    """Observed vs model-implied type 2 ROC points for one subject, per response class."""
    n = fit.subjects.index(subject)

    fig, axes = plt.subplots(1, 2, figsize=(10, 5))
    for ax, response in zip(axes, ('rS1', 'rS2')):
        obs_far = getattr(fit, f'obs_FAR2_{response}')[n]
        obs_hr = getattr(fit, f'obs_HR2_{response}')[n]
        est_far = getattr(fit, f'est_FAR2_{response}')[n]
        est_hr = getattr(fit, f'est_HR2_{response}')[n]

        ax.plot([0, 1], [0, 1], color='gray', linestyle='--', alpha=0.5)
        ax.plot(np.r_[1, obs_far, 0], np.r_[1, obs_hr, 0], 'o', color='black',
                markerfacecolor='white', markeredgewidth=2, label='Observed')
        ax.plot(np.r_[1, est_far, 0], np.r_[1, est_hr, 0], '-', color='red',
                linewidth=2, label='Model')
        ax.set_xlim(0, 1)
        ax.set_ylim(0, 1)
        ax.set_xlabel('Type 2 false alarm rate')
        ax.set_ylabel('Type 2 hit rate')
        ax.set_title(f'Subject {subject}, {response[1:]} responses')
        ax.legend(loc='lower right')

    plt.tight_layout()
    return fig


def plot_group_posteriors(fit):
    """Posterior distributions of the group-level efficiency parameters."""
    var_names = [name for name in MONITOR_PARAMS[fit.variant] if name.startswith('mu_')]
    axes = az.plot_posterior(fit.samples, var_names=var_names)
    for ax in np.atleast_1d(axes).flatten():
        ax.axvline(1, color='red', linestyle='--', alpha=0.7)
    fig = np.atleast_1d(axes).flatten()[0].get_figure()
    plt.tight_layout()
    return fig
