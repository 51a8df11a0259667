# -*- coding: utf-8 -*-
"""
精度指标计算

    MAE  = (1/n) Σ|y - ŷ|
    AE   = 100 · (1/n) Σ(|y - ŷ| / y)
    RMSE = sqrt((1/n) Σ(y - ŷ)²)
    MSPE = sqrt((1/n) Σ((y - ŷ) / y)²)
    R²   = 1 - SS_res / SS_tot

任何实际值为0时 AE、MSPE 无定义，直接报错；实际值为常数序列时
SS_tot = 0，R² 记为 NaN 并通过 r2_defined 标记。
"""

import logging
from typing import List, Sequence, Union

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

from .errors import (
    DivisionByZeroError,
    EmptyInputError,
    LengthMismatchError,
    NonFiniteValueError,
)
from .results import ModelMetrics

logger = logging.getLogger(__name__)

ArrayLike = Union[Sequence[float], np.ndarray]


def _check_inputs(actual: ArrayLike, predicted: ArrayLike):
    actual = np.asarray(actual, dtype=np.float64).ravel()
    predicted = np.asarray(predicted, dtype=np.float64).ravel()

    if actual.size != predicted.size:
        raise LengthMismatchError(actual.size, predicted.size)
    if actual.size == 0:
        raise EmptyInputError()

    zeros = np.flatnonzero(actual == 0)
    if zeros.size:
        raise DivisionByZeroError(int(zeros[0]))

    for name, values in (("actual", actual), ("predicted", predicted)):
        bad = np.flatnonzero(~np.isfinite(values))
        if bad.size:
            raise NonFiniteValueError(int(bad[0]), name)

    return actual, predicted


def compute_metrics(actual: ArrayLike, predicted: ArrayLike) -> ModelMetrics:
    """计算实际值与预测值之间的拟合优度指标。"""
    actual, predicted = _check_inputs(actual, predicted)

    errors = actual - predicted
    relative = errors / actual

    mae = float(mean_absolute_error(actual, predicted))
    rmse = float(np.sqrt(mean_squared_error(actual, predicted)))
    ae = float(100.0 * np.mean(np.abs(errors) / actual))
    mspe = float(np.sqrt(np.mean(relative ** 2)))

    ss_tot = float(np.sum((actual - np.mean(actual)) ** 2))
    if ss_tot == 0.0:
        logger.debug("实际值为常数序列，R² 无定义")
        r2 = float("nan")
        r2_defined = False
    else:
        r2 = float(r2_score(actual, predicted))
        r2_defined = True

    return ModelMetrics(mae=mae, ae=ae, mspe=mspe, rmse=rmse, r2=r2, r2_defined=r2_defined)


def residuals(actual: ArrayLike, predicted: ArrayLike) -> List[float]:
    """残差序列 y - ŷ。"""
    actual = np.asarray(actual, dtype=np.float64).ravel()
    predicted = np.asarray(predicted, dtype=np.float64).ravel()
    if actual.size != predicted.size:
        raise LengthMismatchError(actual.size, predicted.size)
    return (actual - predicted).tolist()
