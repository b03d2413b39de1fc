"""
Input handling for group fits: validation of per-subject count vectors
and conversion of trial-level data into the count format.
"""
from collections.abc import Mapping

import numpy as np

from .exceptions import InconsistentRatingCountError, InputShapeError
from .sdt import n_ratings_of


def _as_mapping(counts):
    # Plain sequences (one entry per subject) are keyed by position
    if isinstance(counts, Mapping):
        return dict(counts)
    return {i: subject_counts for i, subject_counts in enumerate(counts)}


def validate_group(nR_S1, nR_S2):
    """Check the two count structures before any fitting begins.

    Args:
        nR_S1: Mapping (or sequence) of subject -> counts given S1
        nR_S2: Mapping (or sequence) of subject -> counts given S2

    Returns:
        (subjects, n_ratings, nR_S1, nR_S2) where the last two are dicts
        of float arrays keyed by subject, in a consistent subject order
    """
    nR_S1 = _as_mapping(nR_S1)
    nR_S2 = _as_mapping(nR_S2)

    if not nR_S1:
        raise InputShapeError("no subjects supplied")
    if set(nR_S1) != set(nR_S2):
        missing = set(nR_S1) ^ set(nR_S2)
        raise InputShapeError(f"subjects present in only one of nR_S1/nR_S2: {sorted(map(str, missing))}")

    subjects = list(nR_S1)
    n_ratings = None
    arrays_S1, arrays_S2 = {}, {}
    for subject in subjects:
        counts_S1 = np.asarray(nR_S1[subject], dtype=float)
        counts_S2 = np.asarray(nR_S2[subject], dtype=float)
        if counts_S1.ndim != 1 or counts_S2.ndim != 1:
            raise InputShapeError(f"subject {subject!r}: count vectors must be one-dimensional")

        subject_ratings = n_ratings_of(counts_S1, counts_S2)
        if subject_ratings < 2:
            raise InputShapeError(f"subject {subject!r}: at least 2 confidence ratings are required")
        if n_ratings is None:
            n_ratings = subject_ratings
        elif subject_ratings != n_ratings:
            raise InconsistentRatingCountError(
                f"subject {subject!r} has {subject_ratings} ratings, expected {n_ratings}"
            )

        if np.any(counts_S1 < 0) or np.any(counts_S2 < 0):
            raise InputShapeError(f"subject {subject!r}: counts must be non-negative")
        if np.any(counts_S1 != np.round(counts_S1)) or np.any(counts_S2 != np.round(counts_S2)):
            raise InputShapeError(f"subject {subject!r}: counts must be whole numbers")

        arrays_S1[subject] = counts_S1
        arrays_S2[subject] = counts_S2

    return subjects, n_ratings, arrays_S1, arrays_S2


def trials_to_counts(data, n_ratings, subject='subject', stimulus='stimulus',
                     response='response', rating='rating'):
    """Convert a trial-level DataFrame into nR_S1 / nR_S2 count vectors.

    Stimulus and response are coded 0 (S1) and 1 (S2); ratings run from
    1 (lowest confidence) to n_ratings.

    Args:
        data: DataFrame with one row per trial
        n_ratings: Number of confidence levels on the rating scale

    Returns:
        Two dicts keyed by subject, holding integer arrays of length 2*n_ratings
    """
    data = data[[subject, stimulus, response, rating]]

    bad_rating = ~data[rating].between(1, n_ratings)
    if bad_rating.any():
        raise InputShapeError(
            f"{int(bad_rating.sum())} trials have ratings outside 1..{n_ratings}"
        )
    for col in (stimulus, response):
        if not data[col].isin([0, 1]).all():
            raise InputShapeError(f"column {col!r} must be coded 0 (S1) or 1 (S2)")

    # S1 responses run from high to low confidence, S2 responses from low to high
    position = np.where(data[response] == 0,
                        n_ratings - data[rating],
                        n_ratings + data[rating] - 1).astype(int)

    grouped = (data.assign(position=position)
               .groupby([subject, stimulus, 'position'])
               .size())

    nR_S1, nR_S2 = {}, {}
    for pnum in data[subject].unique():
        counts = np.zeros((2, 2 * n_ratings), dtype=int)
        for (stim, pos), n in grouped.loc[pnum].items():
            counts[int(stim), int(pos)] = n
        nR_S1[pnum] = counts[0]
        nR_S2[pnum] = counts[1]

    return nR_S1, nR_S2
