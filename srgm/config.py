# -*- coding: utf-8 -*-
"""
求解器配置

所有迭代求解器（JM 二分法、GO 最小二乘、GM(1,1) 正规方程）的
迭代上限与收敛容差集中在这里，估计函数通过 config 参数接收。
"""

from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class SolverConfig:
    # JM：N0 的二分搜索
    jm_max_iter: int = 200
    jm_tolerance: float = 1e-6          # 似然方程 g(N) 的收敛容差
    jm_upper_factor: float = 10.0       # 搜索区间 (n, factor * n]
    jm_growth_warning_factor: float = 5.0

    # GO：非线性最小二乘
    go_max_nfev: int = 1000
    go_tolerance: float = 1e-10
    go_upper_factor: float = 10.0       # a 的上界 factor * n

    # GM(1,1)
    gm_min_points: int = 3
    gm_max_condition: float = 1e14

    # 数据校验与数值保护
    cumulative_rel_tol: float = 1e-9
    denominator_floor: float = 1e-12

    def __post_init__(self):
        if self.jm_max_iter < 1 or self.go_max_nfev < 1:
            raise ValueError("迭代上限必须为正整数")
        if self.jm_upper_factor <= 1.0 or self.go_upper_factor <= 1.0:
            raise ValueError("搜索上界系数必须大于1")
        if self.gm_min_points < 3:
            raise ValueError("GM(1,1) 至少需要3个数据点")

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, Any]] = None) -> "SolverConfig":
        """从普通字典构造配置，未知键直接报错。"""
        if not values:
            return cls()
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(values) - set(known))
        if unknown:
            raise ValueError(f"未知的配置项: {', '.join(unknown)}")
        kwargs: Dict[str, Any] = {}
        for key, value in values.items():
            default = getattr(cls, key)
            kwargs[key] = int(value) if isinstance(default, int) else float(value)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


DEFAULT_CONFIG = SolverConfig()


def resolve_config(config: Optional[SolverConfig]) -> SolverConfig:
    return DEFAULT_CONFIG if config is None else config
