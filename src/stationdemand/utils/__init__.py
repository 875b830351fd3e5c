"""Utility functions for the station demand pipeline."""

from .data_loader import load_demographics, load_station_info, load_trip_data, load_weather
from .duckdb_utils import DuckDBConnection, read_table
from .helpers import load_config

__all__ = [
    "load_trip_data",
    "load_station_info",
    "load_demographics",
    "load_weather",
    "load_config",
    "DuckDBConnection",
    "read_table",
]
