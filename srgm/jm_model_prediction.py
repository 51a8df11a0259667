# -*- coding: utf-8 -*-
"""
Jelinski-Moranda (JM) 模型

第 i 个失效（i 从0开始）前的失效强度与剩余故障数成正比：
    λ_i = φ · (N0 - i)
期望失效间隔 E[x_i] = 1 / λ_i

其中：
- N0: 初始故障总数
- φ: 单个故障的失效率
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .config import SolverConfig, resolve_config
from .dataset import ValidatedDataset
from .errors import NoConvergenceError
from .results import ModelFit

logger = logging.getLogger(__name__)


# ==========================================
# 1. 参数估计
# ==========================================

def _likelihood_terms(intervals: np.ndarray) -> Tuple[int, float, float]:
    n = intervals.size
    T = float(np.sum(intervals))                     # 总测试时间
    S = float(np.sum(np.arange(n) * intervals))      # 加权和 Σ i·x_i
    return n, T, S


def likelihood_equation(N: float, intervals: np.ndarray) -> float:
    """
    对数似然关于 N0 的偏导（已代入 φ 的解）：
        g(N) = Σ 1/(N - i) - n·T / (N·T - S)
    """
    n, T, S = _likelihood_terms(intervals)
    return float(np.sum(1.0 / (N - np.arange(n))) - n * T / (N * T - S))


def log_likelihood(N0: float, phi: float, intervals: Sequence[float]) -> float:
    x = np.asarray(intervals, dtype=np.float64)
    rate = phi * (N0 - np.arange(x.size))
    if phi <= 0 or np.any(rate <= 0):
        return -math.inf
    return float(np.sum(np.log(rate) - rate * x))


def jm_model_parameter_estimation(dataset: ValidatedDataset,
                                  config: Optional[SolverConfig] = None) -> Tuple[float, float]:
    """
    JM模型极大似然估计

    在 (n, factor·n] 内用二分法求解 g(N) = 0，再代回
        φ = n / (N0·T - S)
    区间两端不异号或达到迭代上限时抛出 NoConvergenceError，
    不返回经验猜测值。
    """
    config = resolve_config(config)
    intervals = np.asarray(dataset.intervals, dtype=np.float64)
    n, T, S = _likelihood_terms(intervals)
    if n < 2:
        raise NoConvergenceError("JM 模型至少需要2个失效数据点")

    def func(N):
        return likelihood_equation(N, intervals)

    # 搜索区间 (n, factor·n]
    low = n * (1.0 + 1e-9)
    high = n * config.jm_upper_factor
    f_low = func(low)
    f_high = func(high)
    logger.debug("JM 搜索区间 [%.4f, %.4f], g=(%.3e, %.3e)", low, high, f_low, f_high)

    if f_low == 0.0:
        N0_est = low
    elif f_high == 0.0:
        N0_est = high
    elif f_low * f_high > 0:
        # 数据没有明显的可靠性增长趋势时 g(N) 在区间内不变号
        raise NoConvergenceError(
            f"JM 似然方程在区间 ({n}, {high:g}] 内无解，数据未显示可靠性增长趋势",
            iterations=0)
    else:
        N0_est = None
        for iteration in range(1, config.jm_max_iter + 1):
            mid = 0.5 * (low + high)
            f_mid = func(mid)
            if f_mid == 0.0:
                N0_est = mid
                break
            if abs(f_mid) < config.jm_tolerance and (high - low) < config.jm_tolerance * mid:
                N0_est = mid
                break
            if f_mid * f_low < 0:
                high = mid
            else:
                low = mid
                f_low = f_mid
        if N0_est is None:
            raise NoConvergenceError(
                f"JM 二分法在 {config.jm_max_iter} 次迭代内未收敛",
                iterations=config.jm_max_iter)
        logger.debug("JM 二分法在第 %d 次迭代收敛", iteration)

    phi_est = n / (N0_est * T - S)
    logger.debug("JM 参数估计: N0=%.4f, phi=%.6f", N0_est, phi_est)
    return float(N0_est), float(phi_est)


# ==========================================
# 2. 拟合与预测
# ==========================================

def jm_fitted_intervals(N0: float, phi: float, n: int,
                        floor: float = 1e-12) -> Tuple[List[float], List[int]]:
    """
    历史期望间隔 1/(φ·(N0 - i))，i = 0..n-1。
    分母不大于 floor 时截断为 floor，并返回被截断的索引。
    """
    predicted = []
    clamped = []
    for i in range(n):
        denom = phi * (N0 - i)
        if denom <= floor:
            denom = floor
            clamped.append(i)
        predicted.append(1.0 / denom)
    return predicted, clamped


def jm_fit(dataset: ValidatedDataset, config: Optional[SolverConfig] = None) -> ModelFit:
    config = resolve_config(config)
    n = dataset.n
    N0, phi = jm_model_parameter_estimation(dataset, config)
    predicted, clamped = jm_fitted_intervals(N0, phi, n, config.denominator_floor)

    parameters: Dict[str, object] = {
        "N0": N0,
        "phi": phi,
        "remaining_faults": N0 - n,
        "log_likelihood": log_likelihood(N0, phi, dataset.intervals),
    }
    warnings = []
    if clamped:
        warnings.append(f"索引 {clamped} 处剩余故障数不为正，预测分母已截断")
        logger.warning("JM 预测分母截断: %s", clamped)
    if N0 > n * config.jm_growth_warning_factor:
        warnings.append("数据未显示明显的可靠性增长趋势，预测结果仅供参考")
        logger.warning("JM 估计 N0=%.2f 远大于失效数 n=%d", N0, n)
    if warnings:
        parameters["warning"] = "；".join(warnings)

    return ModelFit(parameters=parameters, predicted=tuple(predicted))


def jm_predict_future_failures(N0: float, phi: float, dataset: ValidatedDataset,
                               prediction_step: int) -> Dict[str, object]:
    """
    预测第 n+1 .. n+prediction_step 个失效的间隔。

    只预测到 int(N0) 个故障为止，剩余整数故障数不足时提前停止并给出提示。
    """
    if prediction_step < 1:
        raise ValueError("预测步数必须至少为1")
    n = dataset.n
    current_time = float(dataset.cumulative_times[-1])

    remaining_integers = max(0, int(N0) - n)
    actual_steps = min(prediction_step, remaining_integers)
    warning_msg = None
    if actual_steps < prediction_step:
        warning_msg = f"模型估算剩余故障仅剩 {remaining_integers} 个，已自动停止后续预测"

    predicted_intervals = []
    cumulative_times = []
    temp_cumulative = current_time
    for k in range(actual_steps):
        # 第 n+k+1 个故障，此前已发现 n+k 个
        pred_interval = 1.0 / (phi * (N0 - (n + k)))
        predicted_intervals.append(pred_interval)
        temp_cumulative += pred_interval
        cumulative_times.append(temp_cumulative)

    return {
        "remaining_faults": max(0.0, N0 - n),
        "next_failure_time": cumulative_times[0] if cumulative_times else None,
        "predicted_intervals": predicted_intervals,
        "cumulative_times": cumulative_times,
        "warning": warning_msg,
    }


def calculate_reliability(N0: float, phi: float, n: int, times) -> np.ndarray:
    """发现 n 个故障后的可靠度 R(t) = exp(-φ·(N0 - n)·t)"""
    times = np.asarray(times, dtype=np.float64)
    return np.exp(-phi * max(0.0, N0 - n) * times)
