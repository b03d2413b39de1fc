import matplotlib

matplotlib.use('Agg')

import numpy as np
import pytest
from scipy.stats import norm

from hmetad.sampler import PosteriorSummary, Sampler


@pytest.fixture
def toy_counts():
    """Two subjects with 4 confidence ratings."""
    nR_S1 = {
        'sub-01': [1552, 933, 954, 720, 448, 220, 78, 27],
        'sub-02': [1540, 933, 953, 724, 455, 219, 79, 25],
    }
    nR_S2 = {
        'sub-01': [33, 77, 213, 469, 729, 1013, 975, 1559],
        'sub-02': [35, 76, 220, 469, 713, 1020, 973, 1560],
    }
    return nR_S1, nR_S2


@pytest.fixture
def expected_counts():
    """Noise-free counts generated from two Gaussians at known criteria."""

    def generate(meta_d, c1, cS1, cS2, s=1, n_trials=1e6):
        edges = np.concatenate([[-np.inf], cS1, [c1], cS2, [np.inf]])
        p_S1 = np.diff(norm.cdf(edges, loc=-meta_d / 2, scale=1))
        p_S2 = np.diff(norm.cdf(edges, loc=meta_d / 2, scale=1 / s))
        return n_trials * p_S1, n_trials * p_S2

    return generate


class FakeSampler(Sampler):
    """Returns fixed posterior means built from the request."""

    def __init__(self, mratio=1.0, mratio_rS1=None, mratio_rS2=None, error=None):
        self.mratio = mratio
        self.mratio_rS1 = mratio if mratio_rS1 is None else mratio_rS1
        self.mratio_rS2 = mratio if mratio_rS2 is None else mratio_rS2
        self.error = error
        self.requests = []

    def sample(self, request, params):
        self.requests.append((request, params))
        if self.error is not None:
            raise self.error

        n = request.nsubj
        n_crit = request.nratings - 1
        c1 = request.c1[:, None]
        mean = {
            'cS1': c1 - np.linspace(1.5, 0.5, n_crit)[None, :],
            'cS2': c1 + np.linspace(0.5, 1.5, n_crit)[None, :],
        }
        if 'Mratio' in request.monitor_params:
            mean.update(mu_Mratio=self.mratio, lambda_Mratio=2.0,
                        Mratio=np.full(n, self.mratio))
        else:
            mean.update(mu_Mratio_rS1=self.mratio_rS1, lambda_Mratio_rS1=2.0,
                        mu_Mratio_rS2=self.mratio_rS2, lambda_Mratio_rS2=2.0,
                        Mratio_rS1=np.full(n, self.mratio_rS1),
                        Mratio_rS2=np.full(n, self.mratio_rS2))
        rhat = {name: np.ones_like(np.asarray(value, dtype=float)) for name, value in mean.items()}
        return PosteriorSummary(mean=mean, Rhat=rhat, dic=123.4, samples='raw-draws')


@pytest.fixture
def fake_sampler():
    return FakeSampler
