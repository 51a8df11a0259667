import numpy as np
import pytest

from srgm import SingularSystemError, build_records, validate
from srgm.gm11_model_prediction import (
    calculate_gm11_model_accuracy,
    gm11_accumulated,
    gm11_fit,
    gm11_predict_future_failures,
    gm11_restore,
    gm11_solve_parameters,
)


def test_restore_round_trip(ntds_dataset):
    x0 = ntds_dataset.intervals
    a, b = gm11_solve_parameters(x0)
    x1_hat, x0_hat = gm11_restore(a, b, float(x0[0]), x0.size)
    assert x0_hat[0] == x0[0]
    np.testing.assert_allclose(np.cumsum(x0_hat), x1_hat, rtol=1e-9)


def test_geometric_series_is_fitted_exactly():
    r = 1.05
    x0 = 10.0 * r ** np.arange(10)
    a, b = gm11_solve_parameters(x0)
    # 等比序列的紧邻均值与原始序列严格线性相关
    assert a == pytest.approx(-2 * (r - 1) / (r + 1), rel=1e-9)
    assert b == pytest.approx(2 * 10.0 / (r + 1), rel=1e-9)

    fit = gm11_fit(validate(build_records(x0)))
    np.testing.assert_allclose(fit.predicted, x0, rtol=0.01)
    assert fit.parameters["accuracy_level"] == "一级（好）"


def test_constant_series_is_singular():
    with pytest.raises(SingularSystemError):
        gm11_fit(validate(build_records([5, 5, 5, 5, 5])))


def test_too_few_points_is_singular():
    with pytest.raises(SingularSystemError):
        gm11_solve_parameters(np.array([3.0, 4.0]))


def test_fit_parameters(ntds_dataset):
    fit = gm11_fit(ntds_dataset)
    assert set(fit.parameters) >= {"a", "b", "posterior_variance_ratio_C",
                                   "small_error_probability_p", "accuracy_level"}
    assert len(fit.predicted) == ntds_dataset.n
    assert fit.predicted[0] == ntds_dataset.intervals[0]


def test_accuracy_of_perfect_fit():
    x0 = np.array([3.0, 5.0, 4.0, 8.0])
    result = calculate_gm11_model_accuracy(x0, x0)
    assert result["posterior_variance_ratio_C"] == 0.0
    assert result["small_error_probability_p"] == 1.0


def test_predict_future_failures_continues_response(ntds_dataset):
    fit = gm11_fit(ntds_dataset)
    a, b = fit.parameters["a"], fit.parameters["b"]
    result = gm11_predict_future_failures(fit.parameters, ntds_dataset, 3)
    n = ntds_dataset.n
    x0_first = float(ntds_dataset.intervals[0])
    expected = np.diff(gm11_accumulated(a, b, x0_first, [n - 1, n, n + 1, n + 2]))
    np.testing.assert_allclose(result["predicted_intervals"], expected)
    assert len(result["cumulative_times"]) == 3


def test_parameters_follow_data_units(ntds_dataset):
    x0 = np.asarray(ntds_dataset.intervals)
    a, b = gm11_solve_parameters(x0)
    # 天换算为秒
    a_s, b_s = gm11_solve_parameters(x0 * 86400.0)
    assert a_s == pytest.approx(a, rel=1e-9)
    assert b_s == pytest.approx(b * 86400.0, rel=1e-9)


def test_accumulated_uses_linear_limit_for_zero_a():
    np.testing.assert_allclose(gm11_accumulated(0.0, 2.0, 5.0, [0, 1, 2]), [5.0, 7.0, 9.0])


def test_predict_future_failures_with_zero_a(short_dataset):
    result = gm11_predict_future_failures({"a": 0.0, "b": 2.0}, short_dataset, 2)
    np.testing.assert_allclose(result["predicted_intervals"], [2.0, 2.0])
    assert result["cumulative_times"] == [45.0, 47.0]
