"""Data loading utilities for trips, stations, demographics and weather."""

import logging
from pathlib import Path

import pandas as pd

from .duckdb_utils import read_table

logger = logging.getLogger(__name__)

TRIP_COLUMNS = ["station_id", "started_at"]
STATION_COLUMNS = ["station_id", "lat", "lng", "tract_id"]
DEMOGRAPHIC_COLUMNS = [
    "tract_id",
    "total_population",
    "median_income",
    "median_age",
    "white_population",
    "mean_commute_time",
    "public_transit_commuters",
    "total_commuters",
]
WEATHER_COLUMNS = ["observed_at", "temperature", "precipitation", "wind_speed"]


def _require_columns(df: pd.DataFrame, required: list[str], source: str | Path) -> None:
    missing = set(required) - set(df.columns)
    if missing:
        raise ValueError(f"{source} is missing required columns: {sorted(missing)}")


def load_trip_data(path: str | Path) -> pd.DataFrame:
    """Load geocoded trip records.

    Timestamps that cannot be parsed become NaT; the panel builder drops and
    counts them, so they are kept here.

    Args:
        path: CSV file, Parquet file or partitioned Parquet directory

    Returns:
        DataFrame with at least [station_id, started_at]
    """
    trips = read_table(path)
    _require_columns(trips, TRIP_COLUMNS, path)

    trips["station_id"] = trips["station_id"].astype(str)
    trips["started_at"] = pd.to_datetime(trips["started_at"], errors="coerce")
    if "ended_at" in trips.columns:
        trips["ended_at"] = pd.to_datetime(trips["ended_at"], errors="coerce")

    logger.info("Loaded %s trips from %s", f"{len(trips):,}", path)
    return trips


def load_station_info(path: str | Path) -> pd.DataFrame:
    """Load the station roster with coordinates and census tract.

    Args:
        path: CSV or Parquet file with [station_id, lat, lng, tract_id]

    Returns:
        DataFrame with station records (not yet deduplicated)
    """
    stations = read_table(path)
    _require_columns(stations, STATION_COLUMNS, path)

    stations["station_id"] = stations["station_id"].astype(str)
    stations["tract_id"] = stations["tract_id"].astype("string")

    logger.info("Loaded %d station records from %s", len(stations), path)
    return stations


def load_demographics(path: str | Path) -> pd.DataFrame:
    """Load per-tract demographic attributes.

    Args:
        path: CSV or Parquet file keyed by tract_id

    Returns:
        DataFrame with DEMOGRAPHIC_COLUMNS
    """
    demographics = read_table(path)
    _require_columns(demographics, DEMOGRAPHIC_COLUMNS, path)

    demographics["tract_id"] = demographics["tract_id"].astype("string")

    logger.info("Loaded demographics for %d tracts from %s", len(demographics), path)
    return demographics[DEMOGRAPHIC_COLUMNS]


def load_weather(path: str | Path) -> pd.DataFrame:
    """Load weather observations.

    Args:
        path: CSV or Parquet file with [observed_at, temperature, precipitation, wind_speed]

    Returns:
        DataFrame with parsed observation timestamps
    """
    weather = read_table(path)
    _require_columns(weather, WEATHER_COLUMNS, path)

    weather["observed_at"] = pd.to_datetime(weather["observed_at"], errors="coerce")

    logger.info("Loaded %d weather observations from %s", len(weather), path)
    return weather[WEATHER_COLUMNS]
