import dataclasses

import numpy as np
import pytest

from srgm import (
    ModelFit,
    ModelId,
    ModelNotImplementedError,
    ModelResult,
    NoConvergenceError,
    NonPositiveIntervalError,
    UnknownModelError,
    build_records,
    forecast,
    register_estimator,
    registered_models,
    run,
    run_models,
    unregister_estimator,
)
from srgm.dataset import FailureRecord


@pytest.fixture
def mean_estimator():
    def estimator(dataset, config):
        mean = float(np.mean(dataset.intervals))
        return ModelFit(parameters={"mean": mean}, predicted=(mean,) * dataset.n)

    register_estimator(ModelId.MO, estimator)
    yield estimator
    unregister_estimator(ModelId.MO)


@pytest.mark.parametrize("model_id", ["JM", "GO", "GM"])
def test_run_builtin_models(model_id, ntds26_records):
    result = run(model_id, ntds26_records)
    assert isinstance(result, ModelResult)
    assert result.model_id == ModelId(model_id)
    assert [p.index for p in result.predictions] == list(range(1, 27))
    assert result.actual == [r.interval for r in ntds26_records]
    assert np.isfinite(result.metrics.rmse)
    assert result.metrics.rmse >= result.metrics.mae >= 0


def test_builtin_registry():
    assert registered_models() == [ModelId.JM, ModelId.GO, ModelId.GM]


def test_display_label_is_accepted(ntds_records):
    assert run("GM(1,1)", ntds_records).model_id is ModelId.GM


@pytest.mark.parametrize("model_id", ["MO", "S_SHAPED", "ARIMA", "BP", "SVR"])
def test_unimplemented_models_signal_not_implemented(model_id, ntds_records):
    with pytest.raises(ModelNotImplementedError) as excinfo:
        run(model_id, ntds_records)
    assert excinfo.value.model_id == model_id


def test_unknown_model(ntds_records):
    with pytest.raises(UnknownModelError):
        run("WEIBULL", ntds_records)


def test_validation_error_is_tagged():
    records = build_records([9, 12, 11])
    records[1] = FailureRecord(2, 0.0, 9.0)
    with pytest.raises(NonPositiveIntervalError) as excinfo:
        run("JM", records)
    assert excinfo.value.index == 1
    assert excinfo.value.model_id == "JM"


def test_estimator_failure_is_tagged():
    with pytest.raises(NoConvergenceError) as excinfo:
        run(ModelId.JM, build_records([5.0] * 8))
    assert excinfo.value.model_id == "JM"
    assert str(excinfo.value).startswith("[JM]")


def test_registered_estimator_is_dispatched(mean_estimator, ntds_records):
    result = run("MO", ntds_records)
    assert result.parameters["mean"] == pytest.approx(np.mean([r.interval for r in ntds_records]))
    assert ModelId.MO in registered_models()


def test_duplicate_registration_is_rejected(mean_estimator):
    with pytest.raises(ValueError):
        register_estimator("MO", mean_estimator)
    register_estimator("MO", mean_estimator, replace=True)


def test_result_is_immutable(ntds26_records):
    result = run("JM", ntds26_records)
    with pytest.raises(dataclasses.FrozenInstanceError):
        result.metrics = None
    with pytest.raises(TypeError):
        result.parameters["N0"] = 1.0
    assert isinstance(result.predictions, tuple)


def test_result_to_dict(ntds_records):
    payload = run("GO", ntds_records).to_dict()
    assert payload["model_id"] == "GO"
    assert len(payload["predictions"]) == 34
    assert isinstance(payload["parameters"]["a"], float)
    assert payload["parameters"]["prediction_unit"] == "expected failures in interval"


def test_run_does_not_mutate_input(ntds_records):
    snapshot = list(ntds_records)
    run("GM", ntds_records)
    assert ntds_records == snapshot


def test_run_models_isolates_failures(ntds26_records):
    outcomes = run_models(["JM", "GO", "ARIMA"], ntds26_records)
    assert isinstance(outcomes[ModelId.JM], ModelResult)
    assert isinstance(outcomes[ModelId.GO], ModelResult)
    assert isinstance(outcomes[ModelId.ARIMA], ModelNotImplementedError)


def test_run_models_in_parallel_matches_sequential(ntds_records):
    ids = ["JM", "GO", "GM"]
    sequential = run_models(ids, ntds_records)
    parallel = run_models(ids, ntds_records, max_workers=3)
    # 34 点全样本上 JM 不收敛，失败结果同样要一致
    assert isinstance(sequential[ModelId.JM], NoConvergenceError)
    for model_id, outcome in sequential.items():
        if isinstance(outcome, ModelResult):
            assert outcome.predicted == parallel[model_id].predicted
        else:
            assert type(parallel[model_id]) is type(outcome)
            assert parallel[model_id].model_id == outcome.model_id


@pytest.mark.parametrize("model_id", ["JM", "GO", "GM"])
def test_forecast(model_id, ntds26_records):
    result = forecast(model_id, ntds26_records, 2)
    assert len(result["predicted_intervals"]) <= 2
    assert len(result["cumulative_times"]) == len(result["predicted_intervals"])


def test_forecast_unimplemented(ntds_records):
    with pytest.raises(ModelNotImplementedError):
        forecast("SVR", ntds_records, 2)
