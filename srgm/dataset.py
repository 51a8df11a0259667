# -*- coding: utf-8 -*-
"""
失效数据集：记录结构、构造与编辑、结构校验

每条记录包含序号 order、失效间隔 interval 和累计失效时间 cumulative_time。
任何增删操作都对整个序列重新编号并重新累加，保证
    order = 1..n
    cumulative_time[i] = interval[0] + ... + interval[i]
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Sequence, Tuple, Union

import numpy as np

from .config import DEFAULT_CONFIG
from .errors import (
    CumulativeMismatchError,
    EmptyDatasetError,
    NonContiguousOrderError,
    NonPositiveIntervalError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# NTDS 失效间隔数据（34 个失效点）
NTDS_INTERVALS = (9, 12, 11, 4, 7, 2, 5, 8, 5, 7, 1, 6, 1, 9, 4, 1, 3, 8, 6, 1, 1,
                  33, 7, 91, 2, 1, 87, 47, 12, 9, 135, 258, 16, 35)


@dataclass(frozen=True)
class FailureRecord:
    order: int
    interval: float
    cumulative_time: float

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "FailureRecord":
        """兼容表格数据的键名：id / order, cumulativeTime / cumulative_time。"""
        order = row["order"] if "order" in row else row["id"]
        if "cumulative_time" in row:
            cumulative = row["cumulative_time"]
        else:
            cumulative = row["cumulativeTime"]
        return cls(order=order, interval=row["interval"], cumulative_time=cumulative)

    def to_dict(self):
        return {
            "order": int(self.order),
            "interval": float(self.interval),
            "cumulative_time": float(self.cumulative_time),
        }


RecordLike = Union[FailureRecord, Mapping[str, Any]]


@dataclass(frozen=True, eq=False)
class ValidatedDataset:
    """校验通过的只读数据集视图。"""
    records: Tuple[FailureRecord, ...]
    orders: np.ndarray
    intervals: np.ndarray
    cumulative_times: np.ndarray

    @property
    def n(self) -> int:
        return len(self.records)

    def __len__(self):
        return len(self.records)


# ==========================================
# 构造与编辑
# ==========================================

def build_records(intervals: Sequence[float]) -> List[FailureRecord]:
    """由失效间隔序列生成完整记录：重新编号并累加。"""
    records = []
    total = 0.0
    for i, interval in enumerate(intervals):
        interval = float(interval)
        total += interval
        records.append(FailureRecord(order=i + 1, interval=interval, cumulative_time=total))
    return records


def records_from_cumulative_times(times: Sequence[float]) -> List[FailureRecord]:
    """
    累计失效时间 -> 记录

    累计时间必须严格递增，否则对应的间隔不为正，直接报错而不是修补数据。
    """
    times = np.asarray(times, dtype=np.float64)
    if times.size == 0:
        raise EmptyDatasetError()
    intervals = np.empty_like(times)
    intervals[0] = times[0]
    intervals[1:] = np.diff(times)
    for i, interval in enumerate(intervals):
        if not interval > 0:
            raise NonPositiveIntervalError(i, float(interval))
    return build_records(intervals.tolist())


def _as_record(row: RecordLike) -> FailureRecord:
    if isinstance(row, FailureRecord):
        return row
    return FailureRecord.from_mapping(row)


def delete_record(records: Sequence[RecordLike], order: int) -> List[FailureRecord]:
    """删除指定序号的记录，并对剩余记录整体重新编号、重新累加。"""
    rows = [_as_record(r) for r in records]
    remaining = [r.interval for r in rows if r.order != order]
    if len(remaining) == len(rows):
        raise KeyError(f"不存在序号为 {order} 的记录")
    return build_records(remaining)


def insert_record(records: Sequence[RecordLike], position: int, interval: float) -> List[FailureRecord]:
    """
    在第 position 条记录之前插入新的失效间隔（position 从1开始，
    position == n + 1 表示追加到末尾），然后整体重新编号、重新累加。
    """
    intervals = [_as_record(r).interval for r in records]
    if position < 1 or position > len(intervals) + 1:
        raise IndexError(f"插入位置 {position} 超出范围 1..{len(intervals) + 1}")
    intervals.insert(position - 1, float(interval))
    return build_records(intervals)


# ==========================================
# 结构校验
# ==========================================

def _to_float(value, index: int, field_name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        if field_name == "interval":
            raise NonPositiveIntervalError(index, value) from None
        raise CumulativeMismatchError(index, float("nan"), value) from None


def validate(records: Sequence[RecordLike], rel_tol: float = None) -> ValidatedDataset:
    """
    校验失效数据集的结构，按顺序检查：
        1. 非空
        2. 序号为 1..n 连续递增
        3. 每个失效间隔严格为正
        4. 累计时间非递减，且与间隔的累加和一致（相对容差 rel_tol）

    不修改输入，返回只读视图。
    """
    if isinstance(records, ValidatedDataset):
        return records
    if rel_tol is None:
        rel_tol = DEFAULT_CONFIG.cumulative_rel_tol

    try:
        rows = [_as_record(r) for r in records]
    except KeyError as e:
        raise ValidationError(f"记录缺少字段: {e}") from None
    if not rows:
        raise EmptyDatasetError()

    for i, row in enumerate(rows):
        if isinstance(row.order, bool) or row.order != i + 1:
            raise NonContiguousOrderError(i, i + 1, row.order)

    intervals = np.empty(len(rows), dtype=np.float64)
    for i, row in enumerate(rows):
        value = _to_float(row.interval, i, "interval")
        if not (value > 0 and math.isfinite(value)):
            raise NonPositiveIntervalError(i, row.interval)
        intervals[i] = value

    cumulative = np.empty(len(rows), dtype=np.float64)
    running = 0.0
    previous = 0.0
    for i, row in enumerate(rows):
        running += intervals[i]
        value = _to_float(row.cumulative_time, i, "cumulative_time")
        if not math.isfinite(value) or value < previous:
            raise CumulativeMismatchError(i, running, row.cumulative_time)
        if abs(value - running) > rel_tol * max(1.0, abs(running)):
            raise CumulativeMismatchError(i, running, row.cumulative_time)
        cumulative[i] = value
        previous = value

    orders = np.arange(1, len(rows) + 1)
    for arr in (orders, intervals, cumulative):
        arr.setflags(write=False)

    logger.debug("数据集校验通过: n=%d, 总测试时间=%.4f", len(rows), cumulative[-1])
    return ValidatedDataset(
        records=tuple(rows),
        orders=orders,
        intervals=intervals,
        cumulative_times=cumulative,
    )
