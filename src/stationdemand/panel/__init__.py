"""Panel construction: time grid, station registry, panel builder and lag features."""

from .builder import (
    DEFAULT_MISSING_TEMPERATURE,
    WEATHER_FEATURES,
    build_panel,
    count_trips,
    prepare_weather,
    validate_panel,
)
from .lags import (
    DEFAULT_HOLIDAY_WINDOW,
    DEFAULT_LAG_OFFSETS,
    NO_HOLIDAY,
    add_lag_features,
    holiday_proximity,
    lag_column,
    resolve_holidays,
    shift_partition,
)
from .stations import DEMOGRAPHIC_FEATURES, build_station_registry, stations_from_trips
from .time_grid import add_calendar_columns, build_time_grid

__all__ = [
    "build_time_grid",
    "add_calendar_columns",
    "build_station_registry",
    "stations_from_trips",
    "DEMOGRAPHIC_FEATURES",
    "build_panel",
    "count_trips",
    "prepare_weather",
    "validate_panel",
    "WEATHER_FEATURES",
    "DEFAULT_MISSING_TEMPERATURE",
    "add_lag_features",
    "holiday_proximity",
    "lag_column",
    "resolve_holidays",
    "shift_partition",
    "DEFAULT_LAG_OFFSETS",
    "DEFAULT_HOLIDAY_WINDOW",
    "NO_HOLIDAY",
]
