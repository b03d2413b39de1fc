"""
Tests for mapping posterior means to meta-d' measures.
"""

import numpy as np
import pytest

from hmetad.posterior import (ConditionalEfficiency, PooledEfficiency,
                              efficiency_from_means, map_posterior)
from hmetad.request import ModelVariant

D1 = np.array([1.5, 2.0, 0.8])
C1 = np.array([0.1, -0.2, 0.0])
CS1 = np.array([[-1.0, -0.5], [-1.2, -0.6], [-0.9, -0.3]])
CS2 = np.array([[0.5, 1.0], [0.4, 1.1], [0.3, 0.9]])


def test_equal_variance_leaves_units_unchanged():
    efficiency = PooledEfficiency(Mratio=np.array([0.8, 1.1, 0.5]))
    measures = map_posterior(efficiency, D1, C1, CS1, CS2, s=1)

    np.testing.assert_array_equal(measures['da'], D1)
    np.testing.assert_array_equal(measures['meta_da'], measures['meta_d'])
    np.testing.assert_array_equal(measures['meta_ca'], C1)
    np.testing.assert_array_equal(measures['t2ca_rS1'], CS1)
    np.testing.assert_array_equal(measures['t2ca_rS2'], CS2)
    np.testing.assert_allclose(measures['meta_d'], [1.2, 2.2, 0.4])


@pytest.mark.parametrize("s", [0.5, 1.0, 1.7])
def test_m_ratio_matches_posterior_mratio(s):
    """meta_da / da equals meta_d / d1 whatever s is."""
    mratio = np.array([0.8, 1.1, 0.5])
    measures = map_posterior(PooledEfficiency(Mratio=mratio), D1, C1, CS1, CS2, s=s)

    np.testing.assert_allclose(measures['M_ratio'], mratio)
    np.testing.assert_allclose(measures['M_ratio'], measures['meta_d'] / D1)
    np.testing.assert_allclose(measures['M_diff'], measures['meta_da'] - measures['da'])


def test_unequal_variance_scales_into_rms_units():
    s = 2.0
    scale = np.sqrt(2) * s / np.sqrt(1 + s ** 2)
    measures = map_posterior(PooledEfficiency(Mratio=np.ones(3)), D1, C1, CS1, CS2, s=s)

    np.testing.assert_allclose(measures['da'], scale * D1)
    np.testing.assert_allclose(measures['meta_ca'], scale * C1)
    np.testing.assert_allclose(measures['t2ca_rS2'], scale * CS2)
    np.testing.assert_allclose(measures['M_diff'], 0.0)


def test_conditional_efficiency_reports_each_response_class():
    efficiency = ConditionalEfficiency(Mratio_rS1=np.array([0.5, 1.0, 1.5]),
                                       Mratio_rS2=np.array([1.0, 1.0, 1.0]))
    measures = map_posterior(efficiency, D1, C1, CS1, CS2)

    assert 'meta_d' not in measures
    np.testing.assert_allclose(measures['meta_d_rS1'], [0.75, 2.0, 1.2])
    np.testing.assert_allclose(measures['meta_d_rS2'], D1)
    np.testing.assert_allclose(measures['M_ratio_rS1'], [0.5, 1.0, 1.5])


def test_zero_d1_yields_undefined_m_ratio():
    measures = map_posterior(PooledEfficiency(Mratio=np.ones(1)), [0.0], [0.0],
                             [[-1.0]], [[1.0]])
    assert np.isnan(measures['M_ratio'][0])


def test_latent_means_preserve_conditional_asymmetry():
    mratio = np.array([1.0])
    d1 = np.array([2.0])

    pooled = PooledEfficiency(Mratio=mratio).latent_means(d1)
    conditional = ConditionalEfficiency(Mratio_rS1=mratio, Mratio_rS2=mratio).latent_means(d1)

    assert pooled.S1mu_rS2[0] == -1.0
    assert conditional.S1mu_rS2[0] == -0.5
    assert conditional.S1mu_rS1[0] == pooled.S1mu_rS1[0]
    assert conditional.S2mu_rS2[0] == pooled.S2mu_rS2[0]


def test_efficiency_from_means_selects_variant():
    pooled = efficiency_from_means({'Mratio': [1.0, 0.9]}, ModelVariant.POOLED)
    conditional = efficiency_from_means({'Mratio_rS1': [1.0], 'Mratio_rS2': [0.7]},
                                        'response_conditional')

    assert isinstance(pooled, PooledEfficiency)
    assert isinstance(conditional, ConditionalEfficiency)
    np.testing.assert_array_equal(conditional.Mratio_rS2, [0.7])
