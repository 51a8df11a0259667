# -*- coding: utf-8 -*-
"""
Goel-Okumoto (GO) 模型实现
用于软件可靠性分析和预测的非齐次泊松过程（NHPP）模型

模型特点：
- 累计失效函数：m(t) = a * (1 - e^(-b*t))
- 失效强度函数：λ(t) = a * b * e^(-b*t)
- 可靠度函数：R(x|t) = e^(-(m(t+x) - m(t)))

其中：
- a: 最终故障数（asymptotic fault count）
- b: 故障检测率（fault detection rate）

参数用非线性最小二乘拟合 m(t_i) ≈ i 得到。每个区间的预测值是
m(t_i) - m(t_{i-1})，即该区间内的期望失效数，不是时间量。
"""

import logging
from typing import Dict, Optional, Tuple

import numpy as np
from scipy.optimize import brentq, least_squares

from .config import SolverConfig, resolve_config
from .dataset import ValidatedDataset
from .errors import NoConvergenceError
from .results import ModelFit

logger = logging.getLogger(__name__)

PREDICTION_UNIT = "expected failures in interval"


def go_model_predict(a, b, times):
    """
    使用GO模型参数计算累计失效数 m(t)

    参数:
        a: 最终故障数
        b: 故障检测率
        times: 时间点（标量或数组）
    """
    if a <= 0 or b <= 0:
        raise ValueError("模型参数a和b必须为正数")
    times = np.asarray(times, dtype=np.float64)
    if np.any(times < 0):
        raise ValueError("时间点不能为负数")
    return a * -np.expm1(-b * times)


def go_failure_intensity(a, b, times):
    """失效强度 λ(t) = a·b·e^(-b·t)"""
    times = np.asarray(times, dtype=np.float64)
    return a * b * np.exp(-b * times)


def calculate_reliability(a, b, times, current_time: float = 0.0):
    """
    在 current_time 之后再运行 times 时间不发生失效的概率
        R(x | t) = exp(-(m(t + x) - m(t)))
    current_time = 0 时即 R(x) = e^(-a*(1-e^(-b*x)))
    """
    times = np.asarray(times, dtype=np.float64)
    increment = go_model_predict(a, b, current_time + times) - go_model_predict(a, b, current_time)
    return np.exp(-increment)


# ==========================================
# 参数估计
# ==========================================

def initial_guess(cumulative_times: np.ndarray) -> Tuple[float, float]:
    """
    矩估计初值：
        a0 = 1.2·n
        b0 为 -log(1 - i/a0) 对 t 过原点回归的斜率
    """
    t = np.asarray(cumulative_times, dtype=np.float64)
    n = t.size
    a0 = 1.2 * n
    y = -np.log1p(-np.arange(1, n + 1) / a0)
    b0 = float(np.dot(t, y) / np.dot(t, t))
    if not np.isfinite(b0) or b0 <= 0:
        b0 = 1.0 / float(np.mean(t))
    return a0, b0


def go_model_parameter_estimation(dataset: ValidatedDataset,
                                  config: Optional[SolverConfig] = None) -> Tuple[float, float, bool]:
    """
    GO模型参数估计（非线性最小二乘，拟合累计失效数曲线）

    返回:
        a, b, at_upper_bound —— a 是否落在搜索上界 factor·n 上

    异常:
        NoConvergenceError: 求解器发散、残差或雅可比出现非有限值、达到评估上限
    """
    config = resolve_config(config)
    t = np.asarray(dataset.cumulative_times, dtype=np.float64)
    n = t.size
    if n < 2:
        raise NoConvergenceError("GO 模型至少需要2个失效时间点")
    observed = np.arange(1, n + 1, dtype=np.float64)
    a_upper = config.go_upper_factor * n

    def residuals(params):
        a, b = params
        r = a * -np.expm1(-b * t) - observed
        if not np.all(np.isfinite(r)):
            raise NoConvergenceError(f"GO 残差出现非有限值 (a={a}, b={b})")
        return r

    def jacobian(params):
        a, b = params
        decay = np.exp(-b * t)
        J = np.column_stack((-np.expm1(-b * t), a * t * decay))
        if not np.all(np.isfinite(J)):
            raise NoConvergenceError(f"GO 雅可比矩阵出现非有限值 (a={a}, b={b})")
        return J

    a0, b0 = initial_guess(t)
    a0 = min(a0, a_upper)
    logger.debug("GO 初值: a0=%.4f, b0=%.6f", a0, b0)

    try:
        result = least_squares(
            residuals,
            [a0, b0],
            jac=jacobian,
            bounds=([1e-9, 1e-12], [a_upper, np.inf]),
            method="trf",
            x_scale="jac",
            ftol=config.go_tolerance,
            xtol=config.go_tolerance,
            gtol=config.go_tolerance,
            max_nfev=config.go_max_nfev,
        )
    except (ValueError, np.linalg.LinAlgError) as e:
        raise NoConvergenceError(f"GO 最小二乘求解失败: {e}") from e

    if result.status <= 0:
        raise NoConvergenceError(
            f"GO 最小二乘未收敛: {result.message}", iterations=result.nfev)

    a_est, b_est = (float(v) for v in result.x)
    if not (np.isfinite(a_est) and np.isfinite(b_est)) or a_est <= 0 or b_est <= 0:
        raise NoConvergenceError(f"GO 估计得到的参数无效: a={a_est}, b={b_est}")

    at_upper_bound = a_est >= a_upper * (1.0 - 1e-6)
    logger.debug("GO 参数估计: a=%.4f, b=%.6f (nfev=%d)", a_est, b_est, result.nfev)
    return a_est, b_est, at_upper_bound


def go_fit(dataset: ValidatedDataset, config: Optional[SolverConfig] = None) -> ModelFit:
    config = resolve_config(config)
    a, b, at_upper_bound = go_model_parameter_estimation(dataset, config)

    t = np.concatenate(([0.0], np.asarray(dataset.cumulative_times, dtype=np.float64)))
    m = go_model_predict(a, b, t)
    predicted = np.diff(m)

    parameters: Dict[str, object] = {
        "a": a,
        "b": b,
        "remaining_faults": float(a - m[-1]),
        "prediction_unit": PREDICTION_UNIT,
    }
    if at_upper_bound:
        parameters["warning"] = (
            f"a 达到搜索上界 {config.go_upper_factor:g}·n，数据未显示明显的可靠性增长趋势")
        logger.warning("GO 估计 a=%.2f 落在上界", a)

    return ModelFit(parameters=parameters, predicted=tuple(float(v) for v in predicted))


# ==========================================
# 预测
# ==========================================

def go_predict_future_failures(a, b, dataset: ValidatedDataset, num_predictions: int) -> Dict[str, object]:
    """
    GO模型预测未来失效：依次求解 m(t) = m(t_n) + k 的时间点

    a 不足以支撑下一个失效时提前停止。
    """
    if num_predictions < 1:
        raise ValueError("预测步数必须至少为1")
    n = dataset.n
    current_time = float(dataset.cumulative_times[-1])
    base = float(go_model_predict(a, b, current_time))
    remaining_faults = a - base

    predicted_intervals = []
    cumulative_times_pred = []
    warning_message = None
    previous = current_time
    for k in range(1, num_predictions + 1):
        # 以模型在当前时刻的期望累计失效数为基准，每步增加一个失效
        target = base + k
        if target >= a:
            warning_message = f"最终故障数 a={a:.4f} 不足以支撑第 {n + k} 个失效，已停止预测"
            break

        def gap(time):
            return float(go_model_predict(a, b, time)) - target

        # m(t) 单调递增，向右扩展上界直到变号
        upper = max(previous * 2.0, previous + 1.0 / b)
        for _ in range(200):
            if gap(upper) > 0:
                break
            upper *= 2.0
        else:
            warning_message = f"第 {n + k} 个失效时间超出可求解范围，已停止预测"
            break

        t_next = brentq(gap, previous, upper, xtol=1e-10, maxiter=200)
        predicted_intervals.append(t_next - previous)
        cumulative_times_pred.append(t_next)
        previous = t_next

    result = {
        "predicted_intervals": predicted_intervals,
        "cumulative_times": cumulative_times_pred,
        "next_failure_time": cumulative_times_pred[0] if cumulative_times_pred else None,
        "remaining_faults": max(0.0, remaining_faults),
    }
    if warning_message:
        logger.warning(warning_message)
        result["warning"] = warning_message
    return result
