"""
Hierarchical meta-d' fit for a group of subjects.

Given data from an experiment where observers discriminate between two
stimulus alternatives on every trial and give confidence ratings, fits
Maniscalco & Lau's meta-d' model hierarchically across subjects. Each
subject's fit accounts for the uncertainty in the others' through the
group-level distribution over Mratio (meta-d' / d').

The response-conditional variant fits meta-d' separately for S1 and S2
responses (Maniscalco & Lau, 2014).
"""
import logging
import time
from typing import Any, Optional

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict

from .config import McmcParams
from .data import validate_group
from .posterior import efficiency_from_means, map_posterior
from .request import ModelVariant, build_inference_request
from .sampler import PyMCSampler, check_summary
from .sdt import as_distribution, check_s, type1_estimate
from .type2 import RATE_NAMES, type2_group_fit

logger = logging.getLogger(__name__)

SUBJECT_MEASURES = [
    'd1', 'c1', 'da', 'meta_ca',
    'meta_d', 'meta_da', 'M_ratio', 'M_diff',
    'meta_d_rS1', 'meta_da_rS1', 'M_ratio_rS1', 'M_diff_rS1',
    'meta_d_rS2', 'meta_da_rS2', 'M_ratio_rS2', 'M_diff_rS2',
]


class GroupFit(BaseModel):
    """Result of a group fit. All values are posterior means.

    da       = mean(S2) - mean(S1), in RMS(sd(S1), sd(S2)) units
    s        = sd(S1) / sd(S2)
    meta_da  = meta-d' in RMS units
    M_diff   = meta_da - da
    M_ratio  = meta_da / da
    meta_ca  = type 1 criterion for the meta-d' fit, RMS units
    t2ca_rS1 = type 2 criteria for S1 responses, RMS units
    t2ca_rS2 = type 2 criteria for S2 responses, RMS units

    In the response-conditional model meta_d, meta_da, M_ratio and M_diff
    are None and their _rS1 / _rS2 counterparts are filled instead.
    obs_* and est_* hold observed and model-implied type 2 rates,
    subjects x (R-1).
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    subjects: list
    variant: ModelVariant
    s: float
    nratings: int

    d1: np.ndarray
    c1: np.ndarray
    da: np.ndarray
    meta_ca: np.ndarray
    t2ca_rS1: np.ndarray
    t2ca_rS2: np.ndarray

    meta_d: Optional[np.ndarray] = None
    meta_da: Optional[np.ndarray] = None
    M_ratio: Optional[np.ndarray] = None
    M_diff: Optional[np.ndarray] = None
    meta_d_rS1: Optional[np.ndarray] = None
    meta_da_rS1: Optional[np.ndarray] = None
    M_ratio_rS1: Optional[np.ndarray] = None
    M_diff_rS1: Optional[np.ndarray] = None
    meta_d_rS2: Optional[np.ndarray] = None
    meta_da_rS2: Optional[np.ndarray] = None
    M_ratio_rS2: Optional[np.ndarray] = None
    M_diff_rS2: Optional[np.ndarray] = None

    obs_HR2_rS1: np.ndarray
    est_HR2_rS1: np.ndarray
    obs_FAR2_rS1: np.ndarray
    est_FAR2_rS1: np.ndarray
    obs_HR2_rS2: np.ndarray
    est_HR2_rS2: np.ndarray
    obs_FAR2_rS2: np.ndarray
    est_FAR2_rS2: np.ndarray

    group: dict[str, float]
    dic: float
    Rhat: dict[str, Any]
    samples: Any = None
    params: Optional[McmcParams] = None

    def to_dataframe(self):
        """One row per subject; criteria and type 2 rates get one column per level."""
        columns = {}
        for name in SUBJECT_MEASURES:
            value = getattr(self, name)
            if value is not None:
                columns[name] = value
        for name in ['t2ca_rS1', 't2ca_rS2'] + RATE_NAMES:
            matrix = getattr(self, name)
            for k in range(matrix.shape[1]):
                columns[f'{name}_{k + 1}'] = matrix[:, k]
        return pd.DataFrame(columns, index=pd.Index(self.subjects, name='subject'))


def fit_meta_d_mcmc_group(nR_S1, nR_S2, mcmc_params=None, s=1, fncdf=None, fninv=None,
                          sampler=None):
    """Fit the hierarchical meta-d' model to a group of subjects.

    Args:
        nR_S1, nR_S2: Mappings of subject -> response counts given S1 / S2.
            Each vector has 2R entries: S1 responses from highest to lowest
            confidence, then S2 responses from lowest to highest. Every
            subject must use the same R.
        mcmc_params: McmcParams (or a dict of its fields); defaults if omitted
        s: Ratio of type 1 standard deviations, sd(S1) / sd(S2)
        fncdf: CDF handle fncdf(x, mean, sd) for the type 2 fit (normal by default)
        fninv: Inverse CDF handle fninv(p) (normal by default)
        sampler: Sampler implementation; PyMCSampler by default

    Returns:
        GroupFit
    """
    s = check_s(s)
    if mcmc_params is None:
        mcmc_params = McmcParams()
    elif isinstance(mcmc_params, dict):
        mcmc_params = McmcParams(**mcmc_params)
    distribution = as_distribution(fncdf, fninv)

    subjects, n_ratings, nR_S1, nR_S2 = validate_group(nR_S1, nR_S2)

    type1 = {pnum: type1_estimate(nR_S1[pnum], nR_S2[pnum]) for pnum in subjects}
    variant = ModelVariant.from_flag(mcmc_params.response_conditional)
    request = build_inference_request(subjects, nR_S1, nR_S2, type1, variant)

    if sampler is None:
        sampler = PyMCSampler()
    logger.info(f"Fitting {request.model_spec}: {request.nsubj} subjects, "
                f"{n_ratings} ratings, {mcmc_params.nchains} chains with {sampler!r}")

    start = time.perf_counter()
    summary = sampler.sample(request, mcmc_params)
    logger.info(f"Sampling finished in {time.perf_counter() - start:.1f}s")
    check_summary(summary, request)

    efficiency = efficiency_from_means(summary.mean, variant)
    measures = map_posterior(efficiency, request.d1, request.c1,
                             summary.mean['cS1'], summary.mean['cS2'], s)

    rates = type2_group_fit(subjects, nR_S1, nR_S2, request.c1,
                            measures['t2ca_rS1'], measures['t2ca_rS2'],
                            efficiency.latent_means(request.d1), s, distribution)

    group = {name: float(np.asarray(summary.mean[name]))
             for name in request.monitor_params
             if name.startswith(('mu_', 'lambda_'))}

    return GroupFit(
        subjects=subjects,
        variant=variant,
        s=s,
        nratings=n_ratings,
        d1=request.d1,
        c1=request.c1,
        group=group,
        dic=summary.dic,
        Rhat=summary.Rhat,
        samples=summary.samples,
        params=mcmc_params,
        **measures,
        **rates,
    )
