"""
Conversion of posterior means into meta-d' measures.

All sensitivities and criteria are also reported in root-mean-square
units, i.e. scaled by sqrt(2 / (1 + s^2)) * s, so that d' and meta-d'
remain comparable when the type 1 distributions have unequal variance.
"""
from typing import NamedTuple

import numpy as np
from pydantic import BaseModel, ConfigDict

from .request import ModelVariant
from .sdt import rms_scale


class LatentMeans(NamedTuple):
    """Per-subject means of the S1 and S2 evidence distributions, per response class."""
    S1mu_rS1: np.ndarray
    S2mu_rS1: np.ndarray
    S1mu_rS2: np.ndarray
    S2mu_rS2: np.ndarray


class PooledEfficiency(BaseModel):
    """A single metacognitive efficiency per subject."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    Mratio: np.ndarray

    def mratios(self):
        return {'': self.Mratio}

    def latent_means(self, d1):
        meta_d = self.Mratio * d1
        return LatentMeans(-meta_d / 2, meta_d / 2, -meta_d / 2, meta_d / 2)


class ConditionalEfficiency(BaseModel):
    """Separate metacognitive efficiencies for S1 and S2 responses."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    Mratio_rS1: np.ndarray
    Mratio_rS2: np.ndarray

    def mratios(self):
        return {'_rS1': self.Mratio_rS1, '_rS2': self.Mratio_rS2}

    def latent_means(self, d1):
        meta_d_rS1 = self.Mratio_rS1 * d1
        meta_d_rS2 = self.Mratio_rS2 * d1
        # The S1 mean behind S2 responses is halved again in the
        # response-conditional model's type 2 predictions
        return LatentMeans(-meta_d_rS1 / 2, meta_d_rS1 / 2,
                           -meta_d_rS2 / 2 / 2, meta_d_rS2 / 2)


def efficiency_from_means(mean, variant):
    """Pick the efficiency parameters for a model variant out of posterior means."""
    if ModelVariant(variant) == ModelVariant.POOLED:
        return PooledEfficiency(Mratio=np.asarray(mean['Mratio'], dtype=float))
    return ConditionalEfficiency(
        Mratio_rS1=np.asarray(mean['Mratio_rS1'], dtype=float),
        Mratio_rS2=np.asarray(mean['Mratio_rS2'], dtype=float),
    )


def map_posterior(efficiency, d1, c1, cS1, cS2, s=1):
    """Per-subject meta-d' measures from posterior means.

    Args:
        efficiency: PooledEfficiency or ConditionalEfficiency
        d1, c1: Type 1 estimates, one per subject
        cS1, cS2: Posterior mean type 2 criteria, subjects x (R-1)
        s: sd(S1) / sd(S2)

    Returns:
        Dict of arrays. meta_d, meta_da, M_ratio and M_diff carry the
        suffix _rS1/_rS2 in the response-conditional model.
    """
    d1 = np.asarray(d1, dtype=float)
    scale = rms_scale(s) * s

    da = scale * d1
    measures = {
        'da': da,
        'meta_ca': scale * np.asarray(c1, dtype=float),
        't2ca_rS1': scale * np.asarray(cS1, dtype=float),
        't2ca_rS2': scale * np.asarray(cS2, dtype=float),
    }
    for suffix, mratio in efficiency.mratios().items():
        meta_d = mratio * d1
        meta_da = scale * meta_d
        measures['meta_d' + suffix] = meta_d
        measures['meta_da' + suffix] = meta_da
        # Both in RMS units, so equal to the posterior Mratio
        with np.errstate(divide='ignore', invalid='ignore'):
            measures['M_ratio' + suffix] = meta_da / da
        measures['M_diff' + suffix] = meta_da - da
    return measures
