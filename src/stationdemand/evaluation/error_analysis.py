"""Error analysis: aggregate prediction error by time, place and neighborhood."""

import numpy as np
import pandas as pd

OVERNIGHT = "Overnight"
AM_RUSH = "AM Rush"
MID_DAY = "Mid-Day"
PM_RUSH = "PM Rush"
TIME_BUCKETS = (OVERNIGHT, AM_RUSH, MID_DAY, PM_RUSH)

WEEKEND = "Weekend"
WEEKDAY = "Weekday"

DEFAULT_COVARIATES = ("median_income", "pct_public_transit", "pct_white")


def time_of_day_bucket(hour: int) -> str:
    """Map an hour of day to its time-of-day bucket."""
    if hour < 7 or hour > 18:
        return OVERNIGHT
    if hour < 10:
        return AM_RUSH
    if hour < 15:
        return MID_DAY
    return PM_RUSH


def day_type(day_of_week: int) -> str:
    """Saturday (5) and Sunday (6) are weekend days."""
    return WEEKEND if day_of_week >= 5 else WEEKDAY


def add_error_columns(predictions: pd.DataFrame) -> pd.DataFrame:
    """Add absolute/signed error, time bucket and day type columns.

    ``absolute_error = |observed - predicted|``; ``signed_error = observed -
    predicted``. Both are NaN where the prediction failed.
    """
    df = predictions.copy()
    df["signed_error"] = df["observed"] - df["predicted"]
    df["absolute_error"] = df["signed_error"].abs()

    df["time_bucket"] = df["hour"].map(time_of_day_bucket)
    df["day_type"] = df["day_of_week"].map(day_type)
    return df


def _ensure_errors(predictions: pd.DataFrame) -> pd.DataFrame:
    if "absolute_error" in predictions.columns:
        return predictions
    return add_error_columns(predictions)


def _aggregate(df: pd.DataFrame, keys: list[str]) -> pd.DataFrame:
    """MAE, RMSE, mean signed error and counts per group; failed rows only counted."""
    df = df.assign(
        _squared_error=df["signed_error"] ** 2,
        _failed=df["predicted"].isna(),
    )
    out = df.groupby(keys, sort=True).agg(
        mae=("absolute_error", "mean"),
        mse=("_squared_error", "mean"),
        mean_error=("signed_error", "mean"),
        n_predictions=("absolute_error", "count"),
        n_failed=("_failed", "sum"),
    )
    out.insert(1, "rmse", np.sqrt(out.pop("mse")))
    out["n_failed"] = out["n_failed"].astype(int)
    return out.reset_index()


def _filter_model(df: pd.DataFrame, model: str | None) -> pd.DataFrame:
    if model is None:
        return df
    if model not in set(df["model"]):
        raise ValueError(f"No predictions for model {model!r}. Available: {sorted(set(df['model']))}")
    return df[df["model"] == model]


def error_by_model_week(predictions: pd.DataFrame) -> pd.DataFrame:
    """MAE/RMSE per (model, week)."""
    return _aggregate(_ensure_errors(predictions), ["model", "week"])


def error_by_model_bucket(predictions: pd.DataFrame) -> pd.DataFrame:
    """MAE/RMSE per (model, time bucket, day type)."""
    return _aggregate(_ensure_errors(predictions), ["model", "time_bucket", "day_type"])


def error_by_station_bucket(
    predictions: pd.DataFrame,
    registry: pd.DataFrame,
    model: str | None = None,
) -> pd.DataFrame:
    """MAE per (station, time bucket, day type) with station coordinates for mapping.

    Args:
        predictions: Prediction records
        registry: Station registry indexed by station_id
        model: Restrict to one model spec (None = pool all)
    """
    df = _filter_model(_ensure_errors(predictions), model)
    out = _aggregate(df, ["station_id", "time_bucket", "day_type"])
    return out.merge(
        registry[["lat", "lng"]], left_on="station_id", right_index=True, how="left"
    )


def covariate_scatter(
    predictions: pd.DataFrame,
    registry: pd.DataFrame,
    covariates=DEFAULT_COVARIATES,
    time_bucket: str = AM_RUSH,
    model: str | None = None,
) -> pd.DataFrame:
    """Per-station MAE within one time bucket against station covariates.

    Args:
        predictions: Prediction records
        registry: Station registry with covariate columns
        covariates: Continuous covariates to pair with station MAE
        time_bucket: One of TIME_BUCKETS
        model: Restrict to one model spec (None = pool all)

    Returns:
        Long DataFrame with [station_id, covariate, value, mae, n_predictions]
    """
    if time_bucket not in TIME_BUCKETS:
        raise ValueError(f"Unknown time bucket: {time_bucket}. Available: {list(TIME_BUCKETS)}")

    df = _filter_model(_ensure_errors(predictions), model)
    df = df[df["time_bucket"] == time_bucket]
    station_mae = _aggregate(df, ["station_id"])[["station_id", "mae", "n_predictions"]]

    values = (
        registry[list(covariates)]
        .rename_axis("station_id")
        .reset_index()
        .melt(id_vars="station_id", var_name="covariate", value_name="value")
    )
    out = values.merge(station_mae, on="station_id", how="inner")
    return out.sort_values(["covariate", "station_id"]).reset_index(drop=True)[
        ["station_id", "covariate", "value", "mae", "n_predictions"]
    ]
