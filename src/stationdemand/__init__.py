"""Bike-share Station Demand Forecasting Package.

This package builds a complete station x hour panel from trip logs, adds
weather, demographic and lag features, and evaluates competing linear
model specifications with week-wise holdout and k-fold cross-validation.

Modules:
    panel: Time grid, station registry, panel builder, lag features
    models: Model specifications and the shared OLS estimator
    evaluation: Splits, evaluators, metrics and error analysis
    utils: Data loading and helper functions
"""

from stationdemand.evaluation import (
    HoldoutByWeek,
    HoldoutEvaluator,
    KFoldSplitter,
    SplitViolationError,
    compute_mae,
    compute_rmse,
    run_cross_validation,
)
from stationdemand.exclusions import ExclusionReport
from stationdemand.models import (
    DEFAULT_SPECS,
    FeatureGroup,
    ModelSpec,
    OLSModel,
    build_registry,
    get_model,
)
from stationdemand.panel import (
    add_lag_features,
    build_panel,
    build_station_registry,
    build_time_grid,
    prepare_weather,
)
from stationdemand.utils import (
    load_config,
    load_demographics,
    load_station_info,
    load_trip_data,
    load_weather,
)

__version__ = "0.1.0"

__all__ = [
    # Panel
    "build_time_grid",
    "build_station_registry",
    "build_panel",
    "prepare_weather",
    "add_lag_features",
    # Models
    "FeatureGroup",
    "ModelSpec",
    "OLSModel",
    "DEFAULT_SPECS",
    "build_registry",
    "get_model",
    # Evaluation
    "HoldoutByWeek",
    "HoldoutEvaluator",
    "KFoldSplitter",
    "SplitViolationError",
    "compute_mae",
    "compute_rmse",
    "run_cross_validation",
    "ExclusionReport",
    # Utils
    "load_config",
    "load_trip_data",
    "load_station_info",
    "load_demographics",
    "load_weather",
]
