# -*- coding: utf-8 -*-
"""
模型运行入口

按模型标识在注册表中查找估计器，拟合后计算精度指标，返回统一的
ModelResult。估计器是任意满足
    estimator(dataset: ValidatedDataset, config: SolverConfig) -> ModelFit
的可调用对象，新模型通过 register_estimator 接入，不需要修改分发逻辑。

MO、S_SHAPED、ARIMA、BP、SVR 已有标识但尚无估计器，运行时抛出
ModelNotImplementedError，而不是返回随机数据。
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Union

from .config import SolverConfig, resolve_config
from .dataset import RecordLike, ValidatedDataset, validate
from .errors import CoreError, ModelNotImplementedError
from .gm11_model_prediction import gm11_fit, gm11_predict_future_failures
from .go_model_prediction import go_fit, go_model_parameter_estimation, go_predict_future_failures
from .jm_model_prediction import jm_model_parameter_estimation, jm_predict_future_failures, jm_fit
from .metrics import compute_metrics
from .results import ModelFit, ModelId, ModelResult, make_predictions

logger = logging.getLogger(__name__)

Estimator = Callable[[ValidatedDataset, SolverConfig], ModelFit]
DatasetLike = Union[ValidatedDataset, Sequence[RecordLike]]

_registry: Dict[ModelId, Estimator] = {}
_registry_lock = threading.Lock()


def register_estimator(model_id, estimator: Estimator, replace: bool = False) -> None:
    model_id = ModelId.parse(model_id)
    if not callable(estimator):
        raise TypeError("estimator 必须是可调用对象")
    with _registry_lock:
        if model_id in _registry and not replace:
            raise ValueError(f"模型 {model_id.value} 已注册估计器")
        _registry[model_id] = estimator


def unregister_estimator(model_id) -> None:
    model_id = ModelId.parse(model_id)
    with _registry_lock:
        _registry.pop(model_id, None)


def registered_models() -> List[ModelId]:
    with _registry_lock:
        return [m for m in ModelId if m in _registry]


def _lookup(model_id: ModelId) -> Estimator:
    with _registry_lock:
        estimator = _registry.get(model_id)
    if estimator is None:
        raise ModelNotImplementedError(model_id.value)
    return estimator


def _tag(error: CoreError, model_id) -> CoreError:
    error.model_id = model_id.value if isinstance(model_id, ModelId) else str(model_id)
    return error


def run(model_id, dataset: DatasetLike, config: Optional[SolverConfig] = None) -> ModelResult:
    """
    运行单个模型。

    数据集可以是记录序列（先校验）或已校验的 ValidatedDataset。
    任何 CoreError 原样抛出并带上 model_id，不返回部分结果。
    """
    config = resolve_config(config)
    try:
        model_id = ModelId.parse(model_id)
        validated = validate(dataset, config.cumulative_rel_tol)
        estimator = _lookup(model_id)
        fit = estimator(validated, config)
        metrics = compute_metrics(validated.intervals, fit.predicted)
    except CoreError as e:
        logger.info("模型 %s 运行失败: %s", model_id, e.message)
        raise _tag(e, model_id)

    logger.debug("模型 %s 运行完成: %s", model_id.value, metrics)
    return ModelResult(
        model_id=model_id,
        predictions=make_predictions(validated.orders, validated.intervals, fit.predicted),
        metrics=metrics,
        parameters=fit.parameters,
    )


def run_models(model_ids: Iterable, dataset: DatasetLike, config: Optional[SolverConfig] = None,
               max_workers: Optional[int] = None) -> Dict[ModelId, Union[ModelResult, CoreError]]:
    """
    依次（或在线程池中并行）运行多个模型。

    每个模型独立运行，某个模型失败时对应位置为异常对象，其余模型照常返回结果。
    数据集本身无效时直接抛出 ValidationError。
    """
    config = resolve_config(config)
    validated = validate(dataset, config.cumulative_rel_tol)
    ids = [ModelId.parse(m) for m in model_ids]

    def _run_one(model_id):
        try:
            return run(model_id, validated, config)
        except CoreError as e:
            return e

    if max_workers is not None and max_workers > 1 and len(ids) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outcomes = list(pool.map(_run_one, ids))
    else:
        outcomes = [_run_one(m) for m in ids]
    return dict(zip(ids, outcomes))


# ==========================================
# 未来失效预测
# ==========================================

def _forecast_jm(dataset, steps, config):
    N0, phi = jm_model_parameter_estimation(dataset, config)
    return jm_predict_future_failures(N0, phi, dataset, steps)


def _forecast_go(dataset, steps, config):
    a, b, _ = go_model_parameter_estimation(dataset, config)
    return go_predict_future_failures(a, b, dataset, steps)


def _forecast_gm(dataset, steps, config):
    params = gm11_fit(dataset, config).parameters
    return gm11_predict_future_failures(params, dataset, steps)


_forecasters = {
    ModelId.JM: _forecast_jm,
    ModelId.GO: _forecast_go,
    ModelId.GM: _forecast_gm,
}


def forecast(model_id, dataset: DatasetLike, steps: int,
             config: Optional[SolverConfig] = None) -> Dict[str, object]:
    """拟合后外推 steps 个未来失效间隔。"""
    config = resolve_config(config)
    try:
        model_id = ModelId.parse(model_id)
        validated = validate(dataset, config.cumulative_rel_tol)
        forecaster = _forecasters.get(model_id)
        if forecaster is None:
            raise ModelNotImplementedError(model_id.value)
        return forecaster(validated, steps, config)
    except CoreError as e:
        raise _tag(e, model_id)


register_estimator(ModelId.JM, jm_fit)
register_estimator(ModelId.GO, go_fit)
register_estimator(ModelId.GM, gm11_fit)
