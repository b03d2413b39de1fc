"""
Tests for group input validation and trial-level conversion.
"""

import numpy as np
import pandas as pd
import pytest

from hmetad.data import trials_to_counts, validate_group
from hmetad.exceptions import InconsistentRatingCountError, InputShapeError


def test_validate_group_returns_arrays_in_subject_order(toy_counts):
    nR_S1, nR_S2 = toy_counts

    subjects, n_ratings, arrays_S1, arrays_S2 = validate_group(nR_S1, nR_S2)

    assert subjects == ['sub-01', 'sub-02']
    assert n_ratings == 4
    np.testing.assert_array_equal(arrays_S1['sub-02'], nR_S1['sub-02'])
    assert arrays_S2['sub-01'].dtype == float


def test_validate_group_accepts_sequences():
    subjects, n_ratings, _, _ = validate_group([[5, 3, 2, 1]], [[1, 2, 3, 5]])
    assert subjects == [0]
    assert n_ratings == 2


def test_validate_group_rejects_inconsistent_ratings():
    nR_S1 = {'a': [5, 3, 2, 1], 'b': [5, 3, 2, 1, 1, 1]}
    nR_S2 = {'a': [1, 2, 3, 5], 'b': [1, 1, 1, 2, 3, 5]}
    with pytest.raises(InconsistentRatingCountError):
        validate_group(nR_S1, nR_S2)


@pytest.mark.parametrize("nR_S1, nR_S2", [
    ({'a': [5, 3, 2, 1]}, {'a': [1, 2, 3]}),
    ({'a': [5, 3, 2]}, {'a': [1, 2, 3]}),
    ({'a': [5, 1]}, {'a': [1, 5]}),
    ({'a': [5, 3, 2, 1]}, {'b': [1, 2, 3, 5]}),
    ({'a': [5, -3, 2, 1]}, {'a': [1, 2, 3, 5]}),
    ({'a': [5, 3.5, 2, 1]}, {'a': [1, 2, 3, 5]}),
    ({'a': [5, 3, 2, 1]}, {'a': [1, 2, float('nan'), 5]}),
    ({}, {}),
])
def test_validate_group_rejects_bad_shapes(nR_S1, nR_S2):
    with pytest.raises(InputShapeError):
        validate_group(nR_S1, nR_S2)


def test_trials_to_counts_orders_cells_by_confidence():
    trials = pd.DataFrame({
        'subject':  [1, 1, 1, 1, 1, 2],
        'stimulus': [0, 0, 1, 1, 1, 0],
        'response': [0, 1, 1, 0, 1, 0],
        'rating':   [2, 1, 2, 1, 2, 1],
    })

    nR_S1, nR_S2 = trials_to_counts(trials, n_ratings=2)

    # S1 rating 2, S1 rating 1, S2 rating 1, S2 rating 2
    np.testing.assert_array_equal(nR_S1[1], [1, 0, 1, 0])
    np.testing.assert_array_equal(nR_S2[1], [0, 1, 0, 2])
    np.testing.assert_array_equal(nR_S1[2], [0, 1, 0, 0])
    np.testing.assert_array_equal(nR_S2[2], [0, 0, 0, 0])


def test_trials_to_counts_rejects_out_of_range_ratings():
    trials = pd.DataFrame({'subject': [1], 'stimulus': [0], 'response': [0], 'rating': [3]})
    with pytest.raises(InputShapeError):
        trials_to_counts(trials, n_ratings=2)


def test_trials_to_counts_rejects_bad_stimulus_codes():
    trials = pd.DataFrame({'subject': [1], 'stimulus': [2], 'response': [0], 'rating': [1]})
    with pytest.raises(InputShapeError):
        trials_to_counts(trials, n_ratings=2)
