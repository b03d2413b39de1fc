"""
Goodness of fit on the type 2 level: observed type 2 hit and false
alarm rates against the rates implied by the fitted meta-d' model.

With R ratings there are R-1 type 2 hit / false alarm rates per
response class. Entry i is the proportion of (in)correct responses
given with confidence above the i-th lowest level.
"""
import numpy as np

from .posterior import LatentMeans
from .sdt import NormalDistribution

RATE_NAMES = [
    'obs_HR2_rS1', 'est_HR2_rS1', 'obs_FAR2_rS1', 'est_FAR2_rS1',
    'obs_HR2_rS2', 'est_HR2_rS2', 'obs_FAR2_rS2', 'est_FAR2_rS2',
]


def _ratio(part, total):
    """part / total, undefined (NaN) wherever the total is zero."""
    part = np.asarray(part, dtype=float)
    with np.errstate(divide='ignore', invalid='ignore'):
        return np.where(total == 0, np.nan, part / total)


def _upper_tail_rates(counts):
    counts = np.asarray(counts, dtype=float)
    tail = np.cumsum(counts[::-1])[::-1]
    return _ratio(tail[1:], tail[0])


def observed_type2_rates(nR_S1, nR_S2):
    """Type 2 hit and false alarm rates straight from one subject's counts."""
    nR_S1 = np.asarray(nR_S1, dtype=float)
    nR_S2 = np.asarray(nR_S2, dtype=float)
    n_ratings = len(nR_S1) // 2

    # Incorrect and correct responses, lowest confidence first
    I_nR_rS2 = nR_S1[n_ratings:]
    I_nR_rS1 = nR_S2[n_ratings - 1::-1]
    C_nR_rS2 = nR_S2[n_ratings:]
    C_nR_rS1 = nR_S1[n_ratings - 1::-1]

    return {
        'obs_FAR2_rS2': _upper_tail_rates(I_nR_rS2),
        'obs_HR2_rS2': _upper_tail_rates(C_nR_rS2),
        'obs_FAR2_rS1': _upper_tail_rates(I_nR_rS1),
        'obs_HR2_rS1': _upper_tail_rates(C_nR_rS1),
    }


def estimated_type2_rates(c1, t2ca_rS1, t2ca_rS2, means, s=1, distribution=None):
    """Type 2 rates implied by the fitted model for one subject.

    Args:
        c1: Type 1 criterion
        t2ca_rS1, t2ca_rS2: Type 2 criteria for S1 and S2 responses (length R-1)
        means: LatentMeans holding this subject's evidence distribution means
        s: sd(S1) / sd(S2)
        distribution: Type1Distribution supplying the CDF; normal by default
    """
    if distribution is None:
        distribution = NormalDistribution()
    cdf = distribution.cdf
    S1sd = 1
    S2sd = S1sd / s

    # Areas on either side of the type 1 criterion
    C_area_rS2 = 1 - cdf(c1, means.S2mu_rS2, S2sd)
    I_area_rS2 = 1 - cdf(c1, means.S1mu_rS2, S1sd)
    C_area_rS1 = cdf(c1, means.S1mu_rS1, S1sd)
    I_area_rS1 = cdf(c1, means.S2mu_rS1, S2sd)

    # Criterion pairs moving outwards from the type 1 criterion
    lower = np.asarray(t2ca_rS1, dtype=float)[::-1]
    upper = np.asarray(t2ca_rS2, dtype=float)

    I_FAR_area_rS2 = 1 - cdf(upper, means.S1mu_rS2, S1sd)
    C_HR_area_rS2 = 1 - cdf(upper, means.S2mu_rS2, S2sd)
    I_FAR_area_rS1 = cdf(lower, means.S2mu_rS1, S2sd)
    C_HR_area_rS1 = cdf(lower, means.S1mu_rS1, S1sd)

    return {
        'est_FAR2_rS2': _ratio(I_FAR_area_rS2, I_area_rS2),
        'est_HR2_rS2': _ratio(C_HR_area_rS2, C_area_rS2),
        'est_FAR2_rS1': _ratio(I_FAR_area_rS1, I_area_rS1),
        'est_HR2_rS1': _ratio(C_HR_area_rS1, C_area_rS1),
    }


def type2_group_fit(subjects, nR_S1, nR_S2, c1, t2ca_rS1, t2ca_rS2, means,
                    s=1, distribution=None):
    """Observed and estimated type 2 rates for every subject.

    Args:
        subjects: Subject identifiers in row order
        nR_S1, nR_S2: Dicts of subject -> count vectors
        c1: Type 1 criteria, one per subject
        t2ca_rS1, t2ca_rS2: Type 2 criteria, subjects x (R-1)
        means: LatentMeans of per-subject arrays

    Returns:
        Dict of the eight rate matrices (subjects x (R-1)) named in RATE_NAMES
    """
    rows = []
    for n, pnum in enumerate(subjects):
        subject_means = LatentMeans(*(np.asarray(m)[n] for m in means))
        rates = observed_type2_rates(nR_S1[pnum], nR_S2[pnum])
        rates.update(estimated_type2_rates(c1[n], t2ca_rS1[n], t2ca_rS2[n],
                                           subject_means, s, distribution))
        rows.append(rates)
    return {name: np.vstack([row[name] for row in rows]) for name in RATE_NAMES}
