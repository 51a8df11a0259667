# -*- coding: utf-8 -*-
"""
核心异常体系

CoreError
├── ValidationError      输入数据集结构无效
├── EstimationError      求解器不收敛、矩阵奇异
├── MetricsError         长度不一致、除零、空输入
├── UnknownModelError    无法识别的模型标识
└── ModelNotImplementedError  已登记但尚无估计器的模型

runner 在异常向上传播前设置 model_id，调用方据此给出准确的提示。
"""

from typing import Optional


class CoreError(Exception):
    """所有核心错误的基类。"""

    def __init__(self, message: str, index: Optional[int] = None,
                 model_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.index = index
        self.model_id = model_id

    def __str__(self):
        if self.model_id:
            return f"[{self.model_id}] {self.message}"
        return self.message


# ==========================================
# 数据校验
# ==========================================

class ValidationError(CoreError, ValueError):
    pass


class EmptyDatasetError(ValidationError):
    def __init__(self):
        super().__init__("失效数据集为空")


class NonContiguousOrderError(ValidationError):
    def __init__(self, index: int, expected: int, found):
        super().__init__(
            f"索引 {index} 处记录的序号应为 {expected}，实际为 {found}", index=index)
        self.expected = expected
        self.found = found


class NonPositiveIntervalError(ValidationError):
    def __init__(self, index: int, interval):
        super().__init__(
            f"索引 {index} 处记录的失效间隔必须为正数，实际为 {interval}", index=index)
        self.interval = interval


class CumulativeMismatchError(ValidationError):
    def __init__(self, index: int, expected: float, found):
        super().__init__(
            f"索引 {index} 处记录的累计时间应为 {expected}，实际为 {found}", index=index)
        self.expected = expected
        self.found = found


# ==========================================
# 参数估计
# ==========================================

class EstimationError(CoreError):
    pass


class NoConvergenceError(EstimationError):
    def __init__(self, message: str, iterations: Optional[int] = None):
        super().__init__(message)
        self.iterations = iterations


class SingularSystemError(EstimationError):
    pass


# ==========================================
# 精度指标
# ==========================================

class MetricsError(CoreError):
    pass


class LengthMismatchError(MetricsError):
    def __init__(self, actual_length: int, predicted_length: int):
        super().__init__(
            f"实际值与预测值长度不一致: {actual_length} != {predicted_length}")
        self.actual_length = actual_length
        self.predicted_length = predicted_length


class EmptyInputError(MetricsError):
    def __init__(self):
        super().__init__("计算精度指标需要至少一个数据点")


class DivisionByZeroError(MetricsError):
    def __init__(self, index: int):
        super().__init__(f"索引 {index} 处的实际值为0，无法计算相对误差", index=index)


class NonFiniteValueError(MetricsError):
    def __init__(self, index: int, which: str):
        super().__init__(f"{which} 序列索引 {index} 处的值不是有限数", index=index)
        self.which = which


# ==========================================
# 模型分发
# ==========================================

class UnknownModelError(CoreError, ValueError):
    def __init__(self, model_id):
        super().__init__(f"未知的模型标识: {model_id!r}")


class ModelNotImplementedError(CoreError, NotImplementedError):
    def __init__(self, model_id: str):
        super().__init__(f"模型 {model_id} 尚未实现估计器", model_id=model_id)
