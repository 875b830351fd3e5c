"""Panel construction: every station x every interval, zero-filled."""

import logging

import numpy as np
import pandas as pd

from ..exclusions import (
    MALFORMED_TIMESTAMP,
    OUTSIDE_STUDY_PERIOD,
    UNKNOWN_STATION,
    ExclusionReport,
)
from .stations import DEMOGRAPHIC_FEATURES
from .time_grid import add_calendar_columns

logger = logging.getLogger(__name__)

WEATHER_FEATURES = ["temperature", "precipitation", "wind_speed"]

# Temperature used when an interval's recorded temperature is exactly zero.
DEFAULT_MISSING_TEMPERATURE = 42.0


def prepare_weather(
    weather: pd.DataFrame,
    freq: str = "1h",
    missing_temperature: float = DEFAULT_MISSING_TEMPERATURE,
) -> pd.DataFrame:
    """Aggregate weather observations to grid buckets.

    Per bucket: max temperature, summed precipitation, max wind speed. A
    temperature of exactly zero is a missing-value sentinel in the source
    data and is replaced by ``missing_temperature`` here, once. Other gaps
    stay null.

    Args:
        weather: Observations with [observed_at, temperature, precipitation, wind_speed]
        freq: Grid resolution
        missing_temperature: Replacement for zero temperatures

    Returns:
        DataFrame indexed by interval with WEATHER_FEATURES columns
    """
    obs = weather.dropna(subset=["observed_at"]).copy()
    obs["interval"] = pd.to_datetime(obs["observed_at"]).dt.floor(freq)

    grouped = obs.groupby("interval")
    hourly = pd.DataFrame(
        {
            "temperature": grouped["temperature"].max(),
            "precipitation": grouped["precipitation"].sum(min_count=1),
            "wind_speed": grouped["wind_speed"].max(),
        }
    )

    zero_temp = hourly["temperature"] == 0
    if zero_temp.any():
        logger.info(
            "Replacing %d zero temperatures with fallback %.1f",
            zero_temp.sum(),
            missing_temperature,
        )
        hourly.loc[zero_temp, "temperature"] = missing_temperature

    return hourly.sort_index()


def count_trips(
    trips: pd.DataFrame,
    registry: pd.DataFrame,
    grid: pd.DatetimeIndex,
    report: ExclusionReport,
) -> pd.Series:
    """Count trip events per (station_id, interval), dropping invalid events.

    Dropped events are logged and counted in ``report``:
    - malformed or missing start timestamp
    - station absent from the registry
    - start outside the study period
    """
    events = trips[["station_id", "started_at"]].copy()
    # Registry ids are strings; numeric trip ids must match them
    events["station_id"] = events["station_id"].astype(str)
    events["started_at"] = pd.to_datetime(events["started_at"], errors="coerce")

    malformed = events["started_at"].isna()
    if malformed.any():
        logger.warning("Dropping %d trips with malformed start timestamps", malformed.sum())
        report.add(MALFORMED_TIMESTAMP, malformed.sum())
    events = events[~malformed]

    known = events["station_id"].isin(registry.index)
    if not known.all():
        unknown_ids = events.loc[~known, "station_id"].unique()
        logger.warning(
            "Dropping %d trips referencing %d unknown stations (e.g. %s)",
            (~known).sum(),
            len(unknown_ids),
            list(unknown_ids[:5]),
        )
        report.add(UNKNOWN_STATION, (~known).sum())
    events = events[known]

    if grid.freq is None:
        raise ValueError("Time grid must have a fixed frequency")
    events["interval"] = events["started_at"].dt.floor(grid.freq).astype(grid.dtype)
    in_period = events["interval"].isin(grid)
    if not in_period.all():
        logger.info("Ignoring %d trips outside the study period", (~in_period).sum())
        report.add(OUTSIDE_STUDY_PERIOD, (~in_period).sum())
    events = events[in_period]

    return events.groupby(["station_id", "interval"]).size()


def build_panel(
    registry: pd.DataFrame,
    grid: pd.DatetimeIndex,
    trips: pd.DataFrame,
    weather: pd.DataFrame | None = None,
    report: ExclusionReport | None = None,
) -> pd.DataFrame:
    """Build the complete station x interval panel.

    The row set is the cross product of the registry and the grid; observed
    trip counts are looked up into it and every other cell is zero. Weather
    joins by interval, station attributes by station_id.

    Args:
        registry: Station registry indexed by station_id
        grid: Study-period time grid
        trips: Trip events with [station_id, started_at]
        weather: Output of prepare_weather (indexed by interval), optional
        report: Exclusion report to record dropped events in

    Returns:
        DataFrame with one row per (station_id, interval), ordered by
        station_id then interval, with a ``record_id`` column
    """
    if report is None:
        report = ExclusionReport()

    counts = count_trips(trips, registry, grid, report)

    index = pd.MultiIndex.from_product(
        [registry.index, grid], names=["station_id", "interval"]
    )
    if counts.empty:
        counts = pd.Series(0, index=index)
    panel = (
        counts.reindex(index, fill_value=0)
        .astype(np.int64)
        .rename("trip_count")
        .reset_index()
    )

    if weather is not None:
        weather = weather.reindex(columns=WEATHER_FEATURES)
        panel = panel.merge(weather, left_on="interval", right_index=True, how="left")
    else:
        for col in WEATHER_FEATURES:
            panel[col] = np.nan

    station_cols = ["lat", "lng", "tract_id"] + DEMOGRAPHIC_FEATURES
    panel = panel.merge(
        registry.reindex(columns=station_cols),
        left_on="station_id",
        right_index=True,
        how="left",
    )

    panel = add_calendar_columns(panel.reset_index(drop=True))
    panel.insert(0, "record_id", np.arange(len(panel), dtype=np.int64))

    validate_panel(panel, registry, grid)

    logger.info(
        "Built panel: %d stations x %d intervals = %d rows, %d trips",
        len(registry),
        len(grid),
        len(panel),
        panel["trip_count"].sum(),
    )
    return panel


def validate_panel(panel: pd.DataFrame, registry: pd.DataFrame, grid: pd.DatetimeIndex) -> None:
    """Raise ValueError unless the panel has exactly one row per (station, interval)."""
    expected = len(registry) * len(grid)
    if len(panel) != expected:
        raise ValueError(
            f"Panel has {len(panel)} rows, expected {len(registry)} stations x "
            f"{len(grid)} intervals = {expected}"
        )
    if panel.duplicated(subset=["station_id", "interval"]).any():
        raise ValueError("Panel contains duplicate (station_id, interval) rows")
