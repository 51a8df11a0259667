import math

import numpy as np
import pytest

from srgm import (
    DivisionByZeroError,
    EmptyInputError,
    LengthMismatchError,
    NonFiniteValueError,
    compute_metrics,
)


def test_perfect_prediction_is_exact():
    metrics = compute_metrics([9, 12, 11], [9, 12, 11])
    assert metrics.mae == 0
    assert metrics.rmse == 0
    assert metrics.ae == 0
    assert metrics.mspe == 0
    assert metrics.r2 == 1
    assert metrics.r2_defined


def test_known_values():
    metrics = compute_metrics([2, 4], [1, 5])
    assert metrics.mae == pytest.approx(1.0)
    assert metrics.rmse == pytest.approx(1.0)
    assert metrics.ae == pytest.approx(37.5)
    assert metrics.mspe == pytest.approx(math.sqrt(0.15625))
    assert metrics.r2 == pytest.approx(0.0)


def test_zero_actual_is_rejected():
    with pytest.raises(DivisionByZeroError) as excinfo:
        compute_metrics([0, 1, 2], [1, 1, 1])
    assert excinfo.value.index == 0


def test_zero_actual_takes_precedence_over_non_finite_prediction():
    with pytest.raises(DivisionByZeroError) as excinfo:
        compute_metrics([0, 1, 2], [float("nan"), 1, 2])
    assert excinfo.value.index == 0


def test_length_mismatch():
    with pytest.raises(LengthMismatchError):
        compute_metrics([1, 2, 3], [1, 2])


def test_empty_input():
    with pytest.raises(EmptyInputError):
        compute_metrics([], [])


def test_non_finite_prediction():
    with pytest.raises(NonFiniteValueError) as excinfo:
        compute_metrics([1, 2, 3], [1, float("inf"), 3])
    assert excinfo.value.index == 1
    assert excinfo.value.which == "predicted"


def test_constant_actual_flags_r2():
    metrics = compute_metrics([5, 5, 5], [4, 5, 6])
    assert not metrics.r2_defined
    assert math.isnan(metrics.r2)
    assert metrics.to_dict()["r2"] is None


def test_rmse_dominates_mae():
    rng = np.random.default_rng(7)
    for _ in range(20):
        actual = rng.uniform(1, 100, size=15)
        predicted = actual + rng.normal(0, 10, size=15)
        metrics = compute_metrics(actual, predicted)
        assert metrics.rmse >= metrics.mae >= 0


def test_identical_non_constant_series_r2_is_one(ntds_dataset):
    metrics = compute_metrics(ntds_dataset.intervals, ntds_dataset.intervals)
    assert metrics.r2 == 1
