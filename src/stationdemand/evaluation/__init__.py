"""Evaluation framework for station demand model specifications."""

from .cross_validation import (
    PREDICTION_COLUMNS,
    EvaluationResult,
    HoldoutEvaluator,
    Stage,
    eligible_rows,
    exclusion_masks,
    fit_model,
    run_cross_validation,
    score_by,
)
from .error_analysis import (
    TIME_BUCKETS,
    add_error_columns,
    covariate_scatter,
    day_type,
    error_by_model_bucket,
    error_by_model_week,
    error_by_station_bucket,
    time_of_day_bucket,
)
from .metrics import (
    compute_mae,
    compute_mean_error,
    compute_rmse,
    score_predictions,
    summarize_fold_results,
)
from .splits import (
    HoldoutByWeek,
    KFoldSplitter,
    Split,
    SplitViolationError,
    format_weeks,
    validate_folds,
    validate_split,
)

__all__ = [
    "compute_mae",
    "compute_rmse",
    "compute_mean_error",
    "score_predictions",
    "summarize_fold_results",
    "Split",
    "SplitViolationError",
    "HoldoutByWeek",
    "KFoldSplitter",
    "validate_split",
    "validate_folds",
    "format_weeks",
    "PREDICTION_COLUMNS",
    "EvaluationResult",
    "HoldoutEvaluator",
    "Stage",
    "eligible_rows",
    "exclusion_masks",
    "fit_model",
    "run_cross_validation",
    "score_by",
    "TIME_BUCKETS",
    "time_of_day_bucket",
    "day_type",
    "add_error_columns",
    "error_by_model_week",
    "error_by_model_bucket",
    "error_by_station_bucket",
    "covariate_scatter",
]
