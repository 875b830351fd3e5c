"""Study-period time grid."""

import pandas as pd


def build_time_grid(start, end, freq: str = "1h") -> pd.DatetimeIndex:
    """Enumerate every time bucket in the study period.

    Args:
        start: Start of the study period (floored to ``freq``)
        end: End of the study period (exclusive)
        freq: Bucket resolution, e.g. "1h"

    Returns:
        Ordered DatetimeIndex named "interval"
    """
    start = pd.Timestamp(start).floor(freq)
    end = pd.Timestamp(end)
    if end <= start:
        raise ValueError(f"Study period end ({end}) must be after start ({start})")

    grid = pd.date_range(start=start, end=end, freq=freq, inclusive="left")
    return grid.rename("interval")


def add_calendar_columns(df: pd.DataFrame, column: str = "interval") -> pd.DataFrame:
    """Add hour, day_of_week, date, ISO week and ISO year columns derived from ``column``."""
    df = df.copy()
    ts = df[column]
    df["hour"] = ts.dt.hour
    df["day_of_week"] = ts.dt.dayofweek
    df["date"] = ts.dt.normalize()
    iso = ts.dt.isocalendar()
    df["week"] = iso.week.astype(int)
    df["iso_year"] = iso.year.astype(int)
    return df
