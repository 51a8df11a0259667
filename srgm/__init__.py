# -*- coding: utf-8 -*-
"""
软件可靠性增长模型估计核心

    from srgm import build_records, run
    result = run("JM", build_records([9, 12, 11, 4, 7, 2, 5, 8]))
"""

from .config import DEFAULT_CONFIG, SolverConfig
from .dataset import (
    NTDS_INTERVALS,
    FailureRecord,
    ValidatedDataset,
    build_records,
    delete_record,
    insert_record,
    records_from_cumulative_times,
    validate,
)
from .errors import (
    CoreError,
    CumulativeMismatchError,
    DivisionByZeroError,
    EmptyDatasetError,
    EmptyInputError,
    EstimationError,
    LengthMismatchError,
    MetricsError,
    ModelNotImplementedError,
    NoConvergenceError,
    NonContiguousOrderError,
    NonFiniteValueError,
    NonPositiveIntervalError,
    SingularSystemError,
    UnknownModelError,
    ValidationError,
)
from .metrics import compute_metrics
from .results import ModelFit, ModelId, ModelMetrics, ModelResult, PredictionPoint
from .runner import (
    forecast,
    register_estimator,
    registered_models,
    run,
    run_models,
    unregister_estimator,
)

__version__ = "0.1.0"
