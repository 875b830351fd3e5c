"""Station registry: the fixed roster the panel is indexed by."""

import logging

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

DEMOGRAPHIC_FEATURES = [
    "total_population",
    "median_income",
    "median_age",
    "pct_white",
    "mean_commute_time",
    "pct_public_transit",
]


def _percent(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    denominator = denominator.where(denominator > 0)
    return 100.0 * numerator / denominator


def stations_from_trips(trips: pd.DataFrame) -> pd.DataFrame:
    """Derive a station roster from the trip log's start stations.

    Uses the first recorded start coordinates for each station. Trip logs
    without start_lat/start_lng give a roster with null coordinates. The
    tract is unknown at this point and left null.

    Args:
        trips: Trip records with station_id, started_at and optionally
            start_lat, start_lng

    Returns:
        DataFrame with [station_id, lat, lng, tract_id]
    """
    trips = trips.dropna(subset=["station_id"])
    has_coords = {"start_lat", "start_lng"} <= set(trips.columns)
    if has_coords:
        located = trips.dropna(subset=["start_lat", "start_lng"])
    else:
        logger.warning("Trip log has no start coordinates, station lat/lng left null")
        located = trips.assign(start_lat=np.nan, start_lng=np.nan)

    first = located.sort_values("started_at").drop_duplicates(subset=["station_id"], keep="first")
    stations = first.rename(columns={"start_lat": "lat", "start_lng": "lng"})[
        ["station_id", "lat", "lng"]
    ].copy()
    stations["station_id"] = stations["station_id"].astype(str)
    stations["tract_id"] = pd.Series(pd.NA, index=stations.index, dtype="string")
    return stations.reset_index(drop=True)


def build_station_registry(
    stations: pd.DataFrame,
    demographics: pd.DataFrame | None = None,
) -> pd.DataFrame:
    """Build the deduplicated station registry with demographic snapshots.

    - Deduplicates by station_id (first occurrence wins)
    - Joins tract demographics by tract_id
    - Derives pct_white and pct_public_transit

    Stations whose tract is missing from ``demographics`` keep null
    demographic columns; downstream specs that need them exclude those rows.

    Args:
        stations: Station records with [station_id, lat, lng, tract_id]
        demographics: Per-tract attributes (see utils.data_loader.DEMOGRAPHIC_COLUMNS)

    Returns:
        DataFrame indexed by station_id, sorted by station_id
    """
    registry = stations[["station_id", "lat", "lng", "tract_id"]].copy()
    registry["station_id"] = registry["station_id"].astype(str)

    n_duplicates = registry["station_id"].duplicated().sum()
    if n_duplicates:
        logger.warning("Dropping %d duplicate station records", n_duplicates)
    registry = registry.drop_duplicates(subset=["station_id"], keep="first")

    if demographics is not None:
        tracts = (
            demographics.dropna(subset=["tract_id"])
            .drop_duplicates(subset=["tract_id"], keep="first")
            .copy()
        )
        tracts["pct_white"] = _percent(tracts["white_population"], tracts["total_population"])
        tracts["pct_public_transit"] = _percent(
            tracts["public_transit_commuters"], tracts["total_commuters"]
        )
        registry["tract_id"] = registry["tract_id"].astype("string")
        tracts["tract_id"] = tracts["tract_id"].astype("string")
        registry = registry.merge(
            tracts[["tract_id"] + DEMOGRAPHIC_FEATURES], on="tract_id", how="left"
        )

        n_unmatched = registry["total_population"].isna().sum()
        if n_unmatched:
            logger.warning("%d stations have no demographic match", n_unmatched)
    else:
        for col in DEMOGRAPHIC_FEATURES:
            registry[col] = np.nan

    registry = registry.set_index("station_id").sort_index()
    logger.info("Station registry: %d stations", len(registry))
    return registry
