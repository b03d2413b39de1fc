"""
Packaging of group data for the hierarchical sampler.
"""
from enum import Enum

import numpy as np
from pydantic import BaseModel, ConfigDict

from .exceptions import InconsistentRatingCountError

TOLERANCE = 1e-05


class ModelVariant(str, Enum):
    POOLED = 'pooled'
    RESPONSE_CONDITIONAL = 'response_conditional'

    @classmethod
    def from_flag(cls, response_conditional):
        return cls.RESPONSE_CONDITIONAL if response_conditional else cls.POOLED


# Model specification identifier and parameters to monitor, per variant
MODEL_SPECS = {
    ModelVariant.POOLED: 'metad_group',
    ModelVariant.RESPONSE_CONDITIONAL: 'metad_rc_group',
}

MONITOR_PARAMS = {
    ModelVariant.POOLED: ['mu_Mratio', 'lambda_Mratio', 'Mratio', 'cS1', 'cS2'],
    ModelVariant.RESPONSE_CONDITIONAL: [
        'mu_Mratio_rS1', 'mu_Mratio_rS2',
        'lambda_Mratio_rS1', 'lambda_Mratio_rS2',
        'Mratio_rS1', 'Mratio_rS2',
        'cS1', 'cS2',
    ],
}


class InferenceRequest(BaseModel):
    """Observed data handed to the sampler.

    counts has one row per subject: the 2R counts given S1 followed by
    the 2R counts given S2.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, protected_namespaces=())

    subjects: list
    counts: np.ndarray
    nTot: np.ndarray
    d1: np.ndarray
    c1: np.ndarray
    nratings: int
    variant: ModelVariant
    model_spec: str
    monitor_params: list[str]
    Tol: float = TOLERANCE

    @property
    def nsubj(self):
        return len(self.subjects)


def build_inference_request(subjects, nR_S1, nR_S2, type1, variant=ModelVariant.POOLED):
    """Stack per-subject counts and type 1 estimates into an InferenceRequest.

    Args:
        subjects: Subject identifiers, in the row order to use
        nR_S1, nR_S2: Dicts of subject -> count vectors
        type1: Dict of subject -> Type1Estimate
        variant: ModelVariant selecting the pooled or response-conditional model
    """
    variant = ModelVariant(variant)
    n_ratings = len(nR_S1[subjects[0]]) // 2

    rows = []
    for pnum in subjects:
        if len(nR_S1[pnum]) != 2 * n_ratings or len(nR_S2[pnum]) != 2 * n_ratings:
            raise InconsistentRatingCountError(
                'Subjects do not have equal numbers of response categories'
            )
        rows.append(np.concatenate([nR_S1[pnum], nR_S2[pnum]]))

    counts = np.vstack(rows)
    return InferenceRequest(
        subjects=list(subjects),
        counts=counts,
        nTot=counts.sum(axis=1),
        d1=np.array([type1[pnum].d1 for pnum in subjects]),
        c1=np.array([type1[pnum].c1 for pnum in subjects]),
        nratings=n_ratings,
        variant=variant,
        model_spec=MODEL_SPECS[variant],
        monitor_params=list(MONITOR_PARAMS[variant]),
    )


def default_initial_values(request, nchains):
    """Starting points for each chain, offset so the chains begin apart.

    Group-level efficiency means start near 1 and type 2 criteria are
    spread evenly on their side of each subject's type 1 criterion.
    """
    n_crit = request.nratings - 1
    c1 = request.c1[:, None]
    inits = []
    for chain in range(nchains):
        offset = 0.1 * chain
        init = {
            'cS1_raw': c1 - np.linspace(1.0 + offset, 0.2, n_crit)[None, :],
            'cS2_raw': c1 + np.linspace(0.2, 1.0 + offset, n_crit)[None, :],
        }
        if request.variant == ModelVariant.POOLED:
            init['mu_Mratio'] = 1.0 + offset
        else:
            init['mu_Mratio_rS1'] = 1.0 + offset
            init['mu_Mratio_rS2'] = 1.0 + offset
        inits.append(init)
    return inits
