"""Lag features computed strictly within each station's own time series."""

import logging

import holidays as holiday_calendars
import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

DEFAULT_LAG_OFFSETS = (1, 2, 3, 4, 12, 24)
DEFAULT_HOLIDAY_WINDOW = 3
NO_HOLIDAY = "none"


def lag_column(k: int) -> str:
    """Column name for the trip count ``k`` intervals earlier."""
    return f"lag_{k}"


def shift_partition(values: np.ndarray, k: int) -> np.ndarray:
    """Shift one station's chronologically ordered values forward by ``k``.

    Position ``i`` of the result holds ``values[i - k]``; the first ``k``
    positions have no history and are NaN.
    """
    out = np.full(len(values), np.nan, dtype=float)
    if k < len(values):
        out[k:] = values[: len(values) - k]
    return out


def _validate_offsets(offsets) -> list[int]:
    offsets = sorted(set(int(k) for k in offsets))
    if not offsets or offsets[0] < 1:
        raise ValueError(f"Lag offsets must be positive integers, got {offsets}")
    return offsets


def resolve_holidays(dates=None, country: str | None = None, years=None) -> list[pd.Timestamp]:
    """Combine an explicit holiday list with a country calendar.

    Args:
        dates: Iterable of date-like values
        country: Country code understood by the ``holidays`` package, e.g. "US"
        years: Years to pull from the country calendar

    Returns:
        Sorted, deduplicated list of normalized Timestamps
    """
    resolved = {pd.Timestamp(d).normalize() for d in (dates or [])}
    if country:
        calendar = holiday_calendars.country_holidays(country, years=list(years or []))
        resolved.update(pd.Timestamp(d) for d in calendar.keys())
    return sorted(resolved)


def _nearest_offset(day: pd.Timestamp, holiday_days: np.ndarray, window: int) -> str:
    if len(holiday_days) == 0:
        return NO_HOLIDAY
    offsets = (day.to_datetime64() - holiday_days) // np.timedelta64(1, "D")
    in_window = offsets[np.abs(offsets) <= window]
    if len(in_window) == 0:
        return NO_HOLIDAY
    # Closest holiday wins; on a tie, the one already past.
    best = min(in_window.tolist(), key=lambda o: (abs(o), o < 0))
    return "0" if best == 0 else f"{best:+d}"


def holiday_proximity(
    timestamps: pd.Series,
    holidays,
    window: int = DEFAULT_HOLIDAY_WINDOW,
) -> pd.Series:
    """Signed day offset to the nearest holiday within ``window`` days.

    The offset is ``date - holiday`` in days ("-1" is the day before a
    holiday, "+2" two days after); dates with no holiday in the window get
    ``"none"``.
    """
    holiday_days = np.array(
        sorted({pd.Timestamp(h).normalize() for h in holidays}), dtype="datetime64[ns]"
    )
    days = pd.to_datetime(timestamps).dt.normalize()
    lookup = {
        day: _nearest_offset(day, holiday_days, window)
        for day in pd.DatetimeIndex(days.unique())
    }
    return days.map(lookup).astype(str)


def add_lag_features(
    panel: pd.DataFrame,
    offsets=DEFAULT_LAG_OFFSETS,
    holidays=(),
    holiday_window: int = DEFAULT_HOLIDAY_WINDOW,
) -> pd.DataFrame:
    """Attach lag_k trip counts and holiday proximity to a complete panel.

    The panel is partitioned by station and each partition ordered by
    interval; every partition covers the full grid, so a positional shift
    of k equals a shift of k intervals. Lags never cross stations and the
    first k records of a partition keep a null lag_k.

    Args:
        panel: Complete panel from build_panel
        offsets: Lag offsets in intervals
        holidays: Holiday dates
        holiday_window: Max distance in days for holiday proximity

    Returns:
        New DataFrame ordered by (station_id, interval) with lag_<k> columns
        and ``holiday_proximity``
    """
    offsets = _validate_offsets(offsets)

    ordered = panel.sort_values(["station_id", "interval"], kind="stable").copy()
    sizes = ordered.groupby("station_id", sort=False).size()
    if sizes.nunique() > 1:
        raise ValueError("Panel is incomplete: stations have differing interval counts")

    n_stations = len(sizes)
    n_intervals = int(sizes.iloc[0]) if n_stations else 0
    counts = ordered["trip_count"].to_numpy(dtype=float).reshape(n_stations, n_intervals)

    for k in offsets:
        lagged = np.vstack([shift_partition(row, k) for row in counts]) if n_stations else counts
        ordered[lag_column(k)] = lagged.reshape(-1)

    ordered["holiday_proximity"] = holiday_proximity(
        ordered["interval"], holidays, window=holiday_window
    )

    logger.info(
        "Added lags %s and holiday proximity for %d stations", offsets, n_stations
    )
    return ordered
