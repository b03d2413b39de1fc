"""
Hierarchical meta-d' sampling.

The fit only depends on the Sampler interface: an InferenceRequest goes
in, a PosteriorSummary (posterior means, Rhat, DIC and the raw draws)
comes out. PyMCSampler is the default implementation.
"""
import logging
from abc import ABC
from typing import Any

import arviz as az
import numpy as np
import pymc as pm
import pytensor.tensor as pt
from pydantic import BaseModel, ConfigDict

from .config import McmcParams
from .exceptions import SamplerFailure
from .request import InferenceRequest, ModelVariant, default_initial_values

logger = logging.getLogger(__name__)


class PosteriorSummary(BaseModel):
    """Posterior means and diagnostics returned by a Sampler."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    mean: dict[str, Any]
    Rhat: dict[str, Any]
    dic: float = float('nan')
    samples: Any = None


class Sampler(ABC):
    """Abstract posterior sampler for the hierarchical meta-d' model."""

    def sample(self, request: InferenceRequest, params: McmcParams) -> PosteriorSummary:
        """Run the sampler to completion and summarise the posterior."""
        pass

    def __repr__(self):
        return self.__class__.__name__


def check_summary(summary: PosteriorSummary, request: InferenceRequest) -> None:
    """Make sure every monitored parameter came back with the expected shape."""
    n_crit = request.nratings - 1
    for name in request.monitor_params:
        if name not in summary.mean:
            raise SamplerFailure(f"sampler returned no posterior mean for '{name}'")
        value = np.asarray(summary.mean[name])
        if name in ('cS1', 'cS2'):
            expected = (request.nsubj, n_crit)
        elif name.startswith('Mratio'):
            expected = (request.nsubj,)
        else:
            expected = ()
        if value.shape != expected:
            raise SamplerFailure(
                f"posterior mean for '{name}' has shape {value.shape}, expected {expected}"
            )


def Phi(x):
    """Standard normal CDF."""
    return pm.math.invprobit(x)


def _efficiency(suffix):
    """Per-subject Mratio drawn around a group mean (non-centred)."""
    mu = pm.Normal(f'mu_Mratio{suffix}', mu=1.0, sigma=np.sqrt(2.0))
    sigma = pm.HalfNormal(f'sigma_Mratio{suffix}', sigma=1.0)
    pm.Deterministic(f'lambda_Mratio{suffix}', sigma ** -2)
    delta = pm.Normal(f'delta_Mratio{suffix}', mu=0.0, sigma=1.0, dims='subject')
    return pm.Deterministic(f'Mratio{suffix}', mu + sigma * delta, dims='subject')


def _probs_below(edges, mu, tol):
    # Cells between successive edges, from -inf up to the last edge (c1)
    cdf = Phi(edges - mu[:, None])
    lower = pt.concatenate([pt.zeros_like(cdf[:, :1]), cdf[:, :-1]], axis=1)
    pr = (cdf - lower) / pt.specify_broadcastable(cdf[:, -1:], 1)
    return _floor(pr, tol)


def _probs_above(edges, mu, tol):
    # Cells between successive edges, from the first edge (c1) up to +inf
    sf = 1 - Phi(edges - mu[:, None])
    upper = pt.concatenate([sf[:, 1:], pt.zeros_like(sf[:, :1])], axis=1)
    pr = (sf - upper) / pt.specify_broadcastable(sf[:, :1], 1)
    return _floor(pr, tol)


def _floor(pr, tol):
    # Avoid underflow of cell probabilities
    pr = pt.maximum(pr, tol)
    return pr / pr.sum(axis=1, keepdims=True)


def build_model(request: InferenceRequest) -> pm.Model:
    """Hierarchical meta-d' model for the pooled or response-conditional variant.

    The type 1 parameters d1 and c1 are fixed at their point estimates.
    Each subject contributes four multinomials: S1 and S2 responses given
    S1 and given S2 stimuli, each conditioned on its observed total.
    """
    R = request.nratings
    counts = np.asarray(request.counts).astype(int)
    d1 = np.asarray(request.d1, dtype=float)
    c1 = np.asarray(request.c1, dtype=float)[:, None]

    coords = {
        'subject': [str(pnum) for pnum in request.subjects],
        'criterion': np.arange(1, R),
    }

    with pm.Model(coords=coords) as metad_model:
        if request.variant == ModelVariant.POOLED:
            Mratio_rS1 = Mratio_rS2 = _efficiency('')
        else:
            Mratio_rS1 = _efficiency('_rS1')
            Mratio_rS2 = _efficiency('_rS2')

        # Type 2 criteria, bounded by the type 1 criterion
        mu_c2 = pm.Normal('mu_c2', mu=0.0, sigma=10.0)
        sigma_c2 = pm.HalfNormal('sigma_c2', sigma=10.0)
        cS1_raw = pm.TruncatedNormal('cS1_raw', mu=-mu_c2, sigma=sigma_c2, upper=c1,
                                     dims=('subject', 'criterion'))
        cS2_raw = pm.TruncatedNormal('cS2_raw', mu=mu_c2, sigma=sigma_c2, lower=c1,
                                     dims=('subject', 'criterion'))
        cS1 = pm.Deterministic('cS1', pt.sort(cS1_raw, axis=1), dims=('subject', 'criterion'))
        cS2 = pm.Deterministic('cS2', pt.sort(cS2_raw, axis=1), dims=('subject', 'criterion'))

        # Means of the evidence distributions for each response class
        meta_d_rS1 = Mratio_rS1 * d1
        meta_d_rS2 = Mratio_rS2 * d1
        S1mu_rS1, S2mu_rS1 = -meta_d_rS1 / 2, meta_d_rS1 / 2
        S1mu_rS2, S2mu_rS2 = -meta_d_rS2 / 2, meta_d_rS2 / 2

        edges_rS1 = pt.concatenate([cS1, pt.as_tensor(c1)], axis=1)
        edges_rS2 = pt.concatenate([pt.as_tensor(c1), cS2], axis=1)

        blocks = [
            ('nC_rS1', counts[:, :R], _probs_below(edges_rS1, S1mu_rS1, request.Tol)),
            ('nI_rS2', counts[:, R:2 * R], _probs_above(edges_rS2, S1mu_rS2, request.Tol)),
            ('nI_rS1', counts[:, 2 * R:3 * R], _probs_below(edges_rS1, S2mu_rS1, request.Tol)),
            ('nC_rS2', counts[:, 3 * R:], _probs_above(edges_rS2, S2mu_rS2, request.Tol)),
        ]
        for name, observed, pr in blocks:
            pm.Multinomial(name, n=observed.sum(axis=1), p=pr, observed=observed)

    return metad_model


def deviance_information_criterion(idata):
    """DIC = mean(deviance) + var(deviance) / 2, from pointwise log-likelihoods."""
    log_lik = idata.log_likelihood
    total = 0
    for var in log_lik.data_vars:
        point_dims = [d for d in log_lik[var].dims if d not in ('chain', 'draw')]
        total = total + log_lik[var].sum(dim=point_dims)
    deviance = -2 * np.asarray(total).flatten()
    return float(np.mean(deviance) + np.var(deviance, ddof=1) / 2)


class PyMCSampler(Sampler):
    """Samples the hierarchical meta-d' model with PyMC's NUTS."""

    def __init__(self, progressbar=True):
        self.progressbar = progressbar

    def sample(self, request: InferenceRequest, params: McmcParams) -> PosteriorSummary:
        initvals = params.init0
        if initvals is None:
            initvals = default_initial_values(request, params.nchains)

        try:
            model = build_model(request)
            with model:
                idata = pm.sample(
                    draws=params.nsamples * params.nthin,
                    tune=params.nburnin,
                    chains=params.nchains,
                    cores=params.nchains if params.doparallel else 1,
                    target_accept=params.target_accept,
                    random_seed=params.random_seed,
                    initvals=initvals,
                    idata_kwargs={'log_likelihood': params.dic},
                    progressbar=self.progressbar,
                )
        except Exception as exc:
            raise SamplerFailure(f"sampling {request.model_spec} failed: {exc}") from exc

        if params.nthin > 1:
            idata = idata.sel(draw=slice(None, None, params.nthin))

        monitor = request.monitor_params
        posterior = idata.posterior
        mean = {var: posterior[var].mean(dim=('chain', 'draw')).values for var in monitor}
        rhat = az.rhat(idata, var_names=monitor)
        Rhat = {var: rhat[var].values for var in monitor}

        dic = deviance_information_criterion(idata) if params.dic else float('nan')
        logger.info(f"{request.model_spec}: DIC = {dic:.2f}")

        return PosteriorSummary(mean=mean, Rhat=Rhat, dic=dic, samples=idata)
