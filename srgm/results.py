# -*- coding: utf-8 -*-
"""
模型标识与结果结构
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Sequence, Tuple, Union

from .errors import UnknownModelError

ParameterValue = Union[float, str]


class ModelId(str, Enum):
    JM = "JM"
    GO = "GO"
    MO = "MO"
    S_SHAPED = "S_SHAPED"
    ARIMA = "ARIMA"
    GM = "GM"
    BP = "BP"
    SVR = "SVR"

    @classmethod
    def parse(cls, value) -> "ModelId":
        """接受枚举本身、枚举名或界面上的显示名称（不区分大小写）。"""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise UnknownModelError(value)
        key = value.strip().upper()
        if key in cls.__members__:
            return cls[key]
        alias = _DISPLAY_ALIASES.get(key)
        if alias is None:
            raise UnknownModelError(value)
        return alias


_DISPLAY_ALIASES = {
    "GM(1,1)": ModelId.GM,
    "GM11": ModelId.GM,
    "INFLECTION S-SHAPED": ModelId.S_SHAPED,
    "S-SHAPED": ModelId.S_SHAPED,
    "BP NEURAL NETWORK": ModelId.BP,
    "SUPPORT VECTOR REGRESSION": ModelId.SVR,
}


@dataclass(frozen=True)
class PredictionPoint:
    index: int
    actual: float
    predicted: float


@dataclass(frozen=True)
class ModelMetrics:
    mae: float
    ae: float       # 百分比
    mspe: float
    rmse: float
    r2: float
    r2_defined: bool = True  # 实际值为常数序列时 R² 无定义，r2 为 NaN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mae": float(self.mae),
            "ae": float(self.ae),
            "mspe": float(self.mspe),
            "rmse": float(self.rmse),
            "r2": None if not self.r2_defined else float(self.r2),
            "r2_defined": self.r2_defined,
        }


@dataclass(frozen=True)
class ModelFit:
    """估计器的输出：参数 + 每个观测点的预测值。"""
    parameters: Dict[str, ParameterValue]
    predicted: Tuple[float, ...]


def _plain(value):
    if isinstance(value, str):
        return value
    value = float(value)
    return value if math.isfinite(value) else None


@dataclass(frozen=True)
class ModelResult:
    model_id: ModelId
    predictions: Tuple[PredictionPoint, ...]
    metrics: ModelMetrics
    parameters: Mapping[str, ParameterValue] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "predictions", tuple(self.predictions))
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))

    @property
    def predicted(self) -> List[float]:
        return [p.predicted for p in self.predictions]

    @property
    def actual(self) -> List[float]:
        return [p.actual for p in self.predictions]

    def to_dict(self) -> Dict[str, Any]:
        """转换为纯 Python 类型，供展示层直接序列化。"""
        return {
            "model_id": self.model_id.value,
            "predictions": [
                {"index": int(p.index), "actual": float(p.actual), "predicted": float(p.predicted)}
                for p in self.predictions
            ],
            "metrics": self.metrics.to_dict(),
            "parameters": {k: _plain(v) for k, v in self.parameters.items()},
        }


def make_predictions(orders: Sequence[int], actual: Sequence[float],
                     predicted: Sequence[float]) -> Tuple[PredictionPoint, ...]:
    return tuple(
        PredictionPoint(index=int(i), actual=float(a), predicted=float(p))
        for i, a, p in zip(orders, actual, predicted)
    )
