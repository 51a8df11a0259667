# -*- coding: utf-8 -*-
"""
一阶灰色 GM(1,1) 模型，输入为失效时间间隔序列。

模型形式：
    原始序列 X⁽⁰⁾ = {x⁽⁰⁾(0), x⁽⁰⁾(1), ..., x⁽⁰⁾(n-1)}
    累加序列 X⁽¹⁾(k) = Σ{j=0..k} x⁽⁰⁾(j)                 (1-AGO)
    紧邻均值 z⁽¹⁾(k) = 0.5·(x⁽¹⁾(k) + x⁽¹⁾(k-1))
    白化方程 dx⁽¹⁾/dt + a·x⁽¹⁾ = b
    解：x̂⁽¹⁾(k) = (x⁽⁰⁾(0) - b/a)·e^{-a·k} + b/a
    还原值：x̂⁽⁰⁾(0) = x⁽⁰⁾(0)，x̂⁽⁰⁾(k) = x̂⁽¹⁾(k) - x̂⁽¹⁾(k-1)
"""

import logging
from typing import Dict, List, Optional, Tuple, Union

import numpy as np

from .config import SolverConfig, resolve_config
from .dataset import ValidatedDataset
from .errors import SingularSystemError
from .metrics import residuals as compute_residuals
from .results import ModelFit

logger = logging.getLogger(__name__)

# |a| 小于该值时 b/a 无定义（常数序列）
_A_EPS = 1e-10


def gm11_solve_parameters(x0: np.ndarray, config: Optional[SolverConfig] = None) -> Tuple[float, float]:
    """
    最小二乘估计灰参数 [a, b]ᵀ

    B 的第 k 行为 [-z⁽¹⁾(k), 1]，Y 为 x⁽⁰⁾(k)，k = 1..n-1，
    解正规方程 (BᵀB)[a, b]ᵀ = BᵀY。
    """
    config = resolve_config(config)
    x0 = np.asarray(x0, dtype=np.float64)
    n = x0.size
    if n < config.gm_min_points:
        raise SingularSystemError(f"GM(1,1) 至少需要 {config.gm_min_points} 个数据点，当前为 {n}")

    # 按均值归一化后求解，a 与量纲无关，b 随数据同比缩放
    scale = float(np.mean(np.abs(x0)))
    if not np.isfinite(scale) or scale == 0.0:
        raise SingularSystemError("GM(1,1) 输入序列全为零或含非有限值，无法拟合")
    xs = x0 / scale

    x1 = np.cumsum(xs)
    z1 = 0.5 * (x1[1:] + x1[:-1])
    B = np.column_stack((-z1, np.ones(n - 1)))
    Y = xs[1:]

    BTB = B.T @ B
    cond = np.linalg.cond(BTB)
    if not np.isfinite(cond) or cond > config.gm_max_condition:
        raise SingularSystemError(f"GM(1,1) 参数矩阵奇异，无法拟合 (cond={cond:.3e})")
    try:
        a, b = np.linalg.solve(BTB, B.T @ Y)
        b *= scale
    except np.linalg.LinAlgError as e:
        raise SingularSystemError(f"GM(1,1) 参数矩阵奇异，无法拟合: {e}") from e

    if not np.isfinite(a) or abs(a) < _A_EPS:
        raise SingularSystemError(f"GM(1,1) 发展系数 a={a:.3e} 近似为0，序列退化（常数序列），无法建模")

    logger.debug("GM(1,1) 参数估计: a=%.6f, b=%.6f, cond=%.3e", a, b, cond)
    return float(a), float(b)


def gm11_accumulated(a: float, b: float, x0_first: float, k) -> np.ndarray:
    """时间响应式 x̂⁽¹⁾(k)，|a| 可忽略时取线性极限 x⁽⁰⁾(0) + b·k"""
    k = np.asarray(k, dtype=np.float64)
    if abs(a) < _A_EPS:
        return x0_first + b * k
    return (x0_first - b / a) * np.exp(-a * k) + b / a


def gm11_restore(a: float, b: float, x0_first: float, n: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    返回 (x̂⁽¹⁾, x̂⁽⁰⁾)，长度均为 n。
    x̂⁽⁰⁾ 由 x̂⁽¹⁾ 一阶差分得到，前缀和与 x̂⁽¹⁾ 一致。
    """
    x1_hat = gm11_accumulated(a, b, x0_first, np.arange(n))
    x0_hat = np.empty(n)
    x0_hat[0] = x0_first
    x0_hat[1:] = np.diff(x1_hat)
    return x1_hat, x0_hat


def calculate_gm11_model_accuracy(x0, x0_fit) -> Dict[str, Union[float, str]]:
    """
    后验差检验：后验方差比值C和小误差概率p。

    公式：
        残差 e(k) = X⁽⁰⁾(k) - X̂⁽⁰⁾(k)
        原始序列方差 S1² = (1/N)Σ(X⁽⁰⁾(k) - X̄⁽⁰⁾)²
        残差序列方差 S2² = (1/N)Σ(e(k) - ē)²
        后验方差比值 C = S2 / S1
        小误差概率 p = P(|e(k) - ē| < 0.6745·S1)
    """
    x0 = np.asarray(x0, dtype=np.float64)
    residuals = np.asarray(compute_residuals(x0, x0_fit))
    n = x0.size

    e_mean = float(np.mean(residuals))
    S1_squared = float(np.sum((x0 - np.mean(x0)) ** 2) / n)
    S2_squared = float(np.sum((residuals - e_mean) ** 2) / n)

    if S1_squared < 1e-12:
        # 原始序列为常数，后验差检验无意义
        return {
            "posterior_variance_ratio_C": float("nan"),
            "small_error_probability_p": float("nan"),
            "accuracy_level": "无法评定",
        }

    S1 = np.sqrt(S1_squared)
    C = float(np.sqrt(S2_squared) / S1)
    p = float(np.mean(np.abs(residuals - e_mean) < 0.6745 * S1))

    if p >= 0.95 and C <= 0.35:
        accuracy_level = "一级（好）"
    elif p >= 0.80 and C <= 0.50:
        accuracy_level = "二级（合格）"
    elif p >= 0.70 and C <= 0.65:
        accuracy_level = "三级（勉强）"
    else:
        accuracy_level = "四级（不合格）"

    return {
        "posterior_variance_ratio_C": C,
        "small_error_probability_p": p,
        "accuracy_level": accuracy_level,
    }


def gm11_fit(dataset: ValidatedDataset, config: Optional[SolverConfig] = None) -> ModelFit:
    x0 = np.asarray(dataset.intervals, dtype=np.float64)
    a, b = gm11_solve_parameters(x0, config)
    _, x0_hat = gm11_restore(a, b, float(x0[0]), x0.size)

    parameters: Dict[str, object] = {"a": a, "b": b}
    parameters.update(calculate_gm11_model_accuracy(x0, x0_hat))
    return ModelFit(parameters=parameters, predicted=tuple(float(v) for v in x0_hat))


def gm11_predict_future_failures(params: Dict[str, float], dataset: ValidatedDataset,
                                 prediction_step: int = 5) -> Dict[str, List[float]]:
    """
    延续时间响应式，预测第 n+1 .. n+prediction_step 个失效间隔。
    """
    if prediction_step < 1:
        raise ValueError("预测步数必须至少为1")
    a = float(params["a"])
    b = float(params["b"])
    x0_first = float(dataset.intervals[0])
    n = dataset.n

    # 需要 x̂⁽¹⁾(n-1) 作为差分起点
    x1_hat = gm11_accumulated(a, b, x0_first, np.arange(n - 1, n + prediction_step))
    future_intervals = np.diff(x1_hat)

    future_cumulative = []
    current = float(dataset.cumulative_times[-1])
    for interval in future_intervals:
        current += float(interval)
        future_cumulative.append(current)

    result = {
        "predicted_intervals": [float(v) for v in future_intervals],
        "cumulative_times": future_cumulative,
        "next_failure_time": future_cumulative[0] if future_cumulative else None,
    }
    if np.any(future_intervals <= 0):
        result["warning"] = "预测间隔出现非正值，GM(1,1) 外推已失效"
        logger.warning("GM(1,1) 外推出现非正间隔: a=%.6f, b=%.6f", a, b)
    return result
