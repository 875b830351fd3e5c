"""Pytest configuration and shared fixtures."""

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from stationdemand.panel import (
    add_lag_features,
    build_panel,
    build_station_registry,
    build_time_grid,
    prepare_weather,
)

STUDY_START = "2023-09-04"  # Monday, ISO week 36
STUDY_END = "2023-10-02"  # four full weeks: ISO weeks 36-39


@pytest.fixture
def sample_config():
    """Minimal configuration for testing."""
    return {
        "data": {
            "trips_path": "data/trips.parquet",
            "stations_path": "data/stations.csv",
            "output_dir": "outputs",
        },
        "time": {
            "start_date": STUDY_START,
            "end_date": STUDY_END,
            "freq": "1h",
        },
        "lags": {
            "offsets": [1, 2, 24],
        },
        "holidays": {
            "dates": ["2023-09-04"],
            "window_days": 3,
        },
        "holdout": {
            "train_weeks": [36, 38],
            "test_weeks": [39, 39],
        },
        "cross_validation": {
            "n_folds": 5,
            "random_seed": 42,
        },
    }


@pytest.fixture
def sample_stations():
    """Station roster; Station C sits in a tract without census data."""
    return pd.DataFrame(
        {
            "station_id": ["A", "B", "C"],
            "lat": [39.95, 39.96, 39.97],
            "lng": [-75.16, -75.17, -75.18],
            "tract_id": ["101", "102", "999"],
        }
    )


@pytest.fixture
def sample_demographics():
    """Tract demographics for tracts 101 and 102."""
    return pd.DataFrame(
        {
            "tract_id": ["101", "102"],
            "total_population": [4000, 2500],
            "median_income": [52000.0, 87000.0],
            "median_age": [31.0, 38.5],
            "white_population": [1000, 2000],
            "mean_commute_time": [27.0, 22.0],
            "public_transit_commuters": [600, 150],
            "total_commuters": [2000, 1500],
        }
    )


@pytest.fixture
def sample_registry(sample_stations, sample_demographics):
    return build_station_registry(sample_stations, sample_demographics)


@pytest.fixture
def sample_grid():
    return build_time_grid(STUDY_START, STUDY_END, "1h")


@pytest.fixture
def sample_trips():
    """Generate sample trip events over the study period."""
    rng = np.random.default_rng(42)
    n_trips = 3000

    base_date = pd.Timestamp(STUDY_START)
    minutes = rng.integers(0, 28 * 24 * 60, n_trips)

    return pd.DataFrame(
        {
            "station_id": rng.choice(["A", "B", "C"], n_trips, p=[0.5, 0.3, 0.2]),
            "started_at": [base_date + pd.Timedelta(minutes=int(m)) for m in minutes],
        }
    ).sort_values("started_at", ignore_index=True)


@pytest.fixture
def sample_weather():
    """Hourly weather observations covering the study period."""
    rng = np.random.default_rng(7)
    times = pd.date_range(STUDY_START, STUDY_END, freq="1h", inclusive="left")
    return pd.DataFrame(
        {
            "observed_at": times,
            "temperature": rng.uniform(55, 85, len(times)).round(1),
            "precipitation": rng.choice([0.0, 0.0, 0.0, 0.1], len(times)),
            "wind_speed": rng.uniform(0, 15, len(times)).round(1),
        }
    )


@pytest.fixture
def sample_panel(sample_registry, sample_grid, sample_trips, sample_weather):
    """Panel with lags 1, 2 and 24 and a Labor Day holiday."""
    panel = build_panel(
        sample_registry,
        sample_grid,
        sample_trips,
        prepare_weather(sample_weather),
    )
    return add_lag_features(panel, offsets=[1, 2, 24], holidays=["2023-09-04"])


@pytest.fixture
def project_root():
    """Path to the repository root."""
    return Path(__file__).parent.parent


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
