"""
Type 1 signal detection theory quantities.

Response counts for one subject are ordered as in the meta-d' toolbox:
e.g. if nR_S1 = [100, 50, 20, 10, 5, 1], then when stimulus S1 was
presented the subject responded

    S1, rating=3 : 100 times
    S1, rating=2 :  50 times
    S1, rating=1 :  20 times
    S2, rating=1 :  10 times
    S2, rating=2 :   5 times
    S2, rating=3 :   1 time

so each vector has 2*R entries for R confidence ratings.
"""
from abc import ABC

import numpy as np
from pydantic import BaseModel, ConfigDict
from scipy.stats import norm

from .exceptions import InputShapeError, InvalidParameterError


class Type1Distribution(ABC):
    """Abstract CDF / inverse-CDF pair for the type 1 evidence distributions."""

    def cdf(self, x, mean, sd):
        """Probability mass below x for a distribution with the given mean and sd."""
        pass

    def inverse_cdf(self, p):
        """Standardised quantile for probability p."""
        pass

    def __repr__(self):
        return self.__class__.__name__


class NormalDistribution(Type1Distribution):
    """Gaussian evidence distributions (the default)."""

    def cdf(self, x, mean, sd):
        return norm.cdf(x, loc=mean, scale=sd)

    def inverse_cdf(self, p):
        return norm.ppf(p)


class CustomDistribution(Type1Distribution):
    """
    Wraps caller-supplied function handles, fncdf(x, mean, sd) and
    fninv(p), as a Type1Distribution.
    """

    def __init__(self, fncdf, fninv=None):
        self.fncdf = fncdf
        self.fninv = fninv if fninv is not None else norm.ppf

    def cdf(self, x, mean, sd):
        return self.fncdf(x, mean, sd)

    def inverse_cdf(self, p):
        return self.fninv(p)


def as_distribution(fncdf=None, fninv=None) -> Type1Distribution:
    """Build the distribution capability from optional function handles."""
    if fncdf is None and fninv is None:
        return NormalDistribution()
    if fncdf is None:
        fncdf = norm.cdf
    return CustomDistribution(fncdf, fninv)


class Type1Estimate(BaseModel):
    """Type 1 sensitivity and criterion for one subject."""

    model_config = ConfigDict(frozen=True)

    d1: float
    c1: float


def n_ratings_of(nR_S1, nR_S2) -> int:
    """Number of confidence ratings implied by a subject's count vectors."""
    if len(nR_S1) != len(nR_S2):
        raise InputShapeError(
            f"nR_S1 and nR_S2 differ in length ({len(nR_S1)} vs {len(nR_S2)})"
        )
    if len(nR_S1) == 0 or len(nR_S1) % 2 != 0:
        raise InputShapeError(
            f"response-count vectors must have an even, non-zero length; got {len(nR_S1)}"
        )
    return len(nR_S1) // 2


def cumulative_rates(nR_S1, nR_S2):
    """
    Padded cumulative hit and false alarm rates for every cut point
    between adjacent response categories.

    A pad of 1/(2R) is added to each cell so that no rate is exactly
    0 or 1. Entry j is the proportion of responses in categories j+1
    and above, so the 2R-1 values run from the most S1-like cut point
    to the most S2-like one.

    Returns:
        (ratingHR, ratingFAR), each an array of length 2R-1
    """
    n_ratings = n_ratings_of(nR_S1, nR_S2)
    pad_factor = 1 / (2 * n_ratings)
    pad_nR_S1 = np.asarray(nR_S1, dtype=float) + pad_factor
    pad_nR_S2 = np.asarray(nR_S2, dtype=float) + pad_factor

    # tail[k] = sum(pad[k:])
    tail_S1 = np.cumsum(pad_nR_S1[::-1])[::-1]
    tail_S2 = np.cumsum(pad_nR_S2[::-1])[::-1]

    ratingHR = tail_S2[1:] / tail_S2[0]
    ratingFAR = tail_S1[1:] / tail_S1[0]
    return ratingHR, ratingFAR


def type1_estimate(nR_S1, nR_S2) -> Type1Estimate:
    """
    Type 1 d' and c from the cut point separating S1 from S2 responses.

    Always uses the standard normal inverse CDF, whatever distribution
    is later used for the type 2 fit.
    """
    n_ratings = n_ratings_of(nR_S1, nR_S2)
    ratingHR, ratingFAR = cumulative_rates(nR_S1, nR_S2)

    z_hr = norm.ppf(ratingHR[n_ratings - 1])
    z_far = norm.ppf(ratingFAR[n_ratings - 1])
    return Type1Estimate(d1=float(z_hr - z_far), c1=float(-0.5 * (z_hr + z_far)))


def rms_scale(s):
    """
    Factor converting type 1 units into root-mean-square(sd(S1), sd(S2))
    units: sqrt(2 / (1 + s^2)) * s is applied to sensitivities and
    criteria alike.
    """
    return np.sqrt(2 / (1 + np.square(s)))


def check_s(s):
    """Reject non-positive or non-finite ratios of type 1 standard deviations."""
    if not np.isfinite(s) or s <= 0:
        raise InvalidParameterError(f"s must be a positive finite number; got {s}")
    return float(s)
