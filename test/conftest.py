import pytest

from srgm import NTDS_INTERVALS, build_records, validate


@pytest.fixture
def ntds_records():
    return build_records(NTDS_INTERVALS)


@pytest.fixture
def ntds_dataset(ntds_records):
    return validate(ntds_records)


@pytest.fixture
def short_dataset():
    # 累计时间 9, 21, 32, 36, 43
    return validate(build_records([9, 12, 11, 4, 7]))


def jm_synthetic_intervals(N0, phi, n):
    """按 λ_i = φ·(N0 - i) 精确生成的失效间隔。"""
    return [1.0 / (phi * (N0 - i)) for i in range(n)]


@pytest.fixture
def jm_synthetic():
    N0, phi, n = 30.0, 0.01, 20
    return N0, phi, validate(build_records(jm_synthetic_intervals(N0, phi, n)))


@pytest.fixture
def ntds26_records():
    # NTDS 前 26 个失效（生产阶段），JM 似然方程在 (n, 10n] 内有根
    return build_records(NTDS_INTERVALS[:26])


@pytest.fixture
def ntds26_dataset(ntds26_records):
    return validate(ntds26_records)
