"""Unit tests for lag features and holiday proximity."""

import numpy as np
import pandas as pd
import pytest

from stationdemand.panel import (
    NO_HOLIDAY,
    add_lag_features,
    build_panel,
    build_station_registry,
    build_time_grid,
    holiday_proximity,
    resolve_holidays,
    shift_partition,
)


def single_station_panel(counts, start="2023-09-04 00:00"):
    """Panel for one station with the given hourly trip counts."""
    stations = pd.DataFrame({"station_id": ["A"], "lat": [0.0], "lng": [0.0], "tract_id": ["1"]})
    registry = build_station_registry(stations)
    grid = build_time_grid(start, pd.Timestamp(start) + pd.Timedelta(hours=len(counts)), "1h")
    started_at = [t for t, n in zip(grid, counts) for _ in range(n)]
    trips = pd.DataFrame({"station_id": ["A"] * len(started_at), "started_at": started_at})
    return build_panel(registry, grid, trips)


class TestShiftPartition:
    """Tests for the per-station positional shift."""

    def test_shift_by_one(self):
        """Position i holds the value at i - 1."""
        shifted = shift_partition(np.array([2, 5, 1, 0, 3]), 1)

        assert np.isnan(shifted[0])
        assert shifted[1:].tolist() == [2, 5, 1, 0]

    def test_shift_longer_than_partition(self):
        """Offsets beyond the partition length leave everything undefined."""
        shifted = shift_partition(np.array([1, 2, 3]), 5)

        assert np.isnan(shifted).all()


class TestLagFeatures:
    """Tests for add_lag_features."""

    def test_single_station_sequence(self):
        """Trip counts [2,5,1,0,3] give lag_1 [nan,2,5,1,0]."""
        panel = add_lag_features(single_station_panel([2, 5, 1, 0, 3]), offsets=[1, 2])

        assert panel["trip_count"].tolist() == [2, 5, 1, 0, 3]
        assert np.isnan(panel["lag_1"].iloc[0])
        assert panel["lag_1"].iloc[1:].tolist() == [2, 5, 1, 0]
        assert panel["lag_2"].isna().sum() == 2
        assert panel["lag_2"].iloc[2:].tolist() == [2, 5, 1]

    def test_lag_matches_shifted_trip_count(self, sample_panel):
        """lag_k(record i) == trip_count(record i - k) within each station."""
        for _, station_rows in sample_panel.groupby("station_id"):
            counts = station_rows["trip_count"].to_numpy(dtype=float)
            for k in (1, 2, 24):
                lag = station_rows[f"lag_{k}"].to_numpy()
                assert np.isnan(lag[:k]).all()
                np.testing.assert_array_equal(lag[k:], counts[:-k])

    def test_no_cross_station_bleed(self, sample_panel):
        """The first record of every station has no lag, even when another station precedes it."""
        firsts = sample_panel.groupby("station_id").head(1)

        assert firsts["lag_1"].isna().all()
        assert len(firsts) == 3

    def test_undefined_lags_not_zero_filled(self, sample_panel):
        """Exactly k undefined lag_k values per station."""
        missing = sample_panel.groupby("station_id")["lag_24"].apply(lambda s: s.isna().sum())

        assert (missing == 24).all()

    def test_ordering_is_station_then_interval(self, sample_panel):
        """Output is sorted by station then interval."""
        expected = sample_panel.sort_values(["station_id", "interval"])

        assert sample_panel.index.equals(expected.index)

    def test_invalid_offsets_raise(self, sample_panel):
        """Offsets must be positive."""
        with pytest.raises(ValueError, match="positive"):
            add_lag_features(sample_panel, offsets=[0, 1])

    def test_incomplete_panel_raises(self, sample_panel):
        """Positional shifting requires equal-length station partitions."""
        with pytest.raises(ValueError, match="incomplete"):
            add_lag_features(sample_panel.iloc[1:], offsets=[1])


class TestHolidayProximity:
    """Tests for the holiday proximity categorical."""

    def test_offsets_within_window(self):
        """Signed day offsets inside the window, 'none' outside."""
        days = pd.Series(pd.date_range("2023-08-31", "2023-09-09", freq="D"))

        proximity = holiday_proximity(days, ["2023-09-04"], window=3)

        assert proximity.tolist() == [
            NO_HOLIDAY,  # Aug 31
            "-3",
            "-2",
            "-1",
            "0",  # Labor Day
            "+1",
            "+2",
            "+3",
            NO_HOLIDAY,
            NO_HOLIDAY,
        ]

    def test_hours_share_their_day(self):
        """Every hour of a day gets the same value."""
        hours = pd.Series(pd.date_range("2023-09-05 00:00", periods=24, freq="1h"))

        proximity = holiday_proximity(hours, ["2023-09-04"])

        assert set(proximity) == {"+1"}

    def test_nearest_holiday_wins(self):
        """The closest holiday determines the offset; ties go to the past holiday."""
        days = pd.Series(pd.to_datetime(["2023-12-27", "2023-12-28"]))

        proximity = holiday_proximity(days, ["2023-12-25", "2023-12-29"], window=3)

        assert proximity.tolist() == ["+2", "-1"]

    def test_tie_prefers_past_holiday(self):
        """Equidistant holidays resolve to the one already past."""
        days = pd.Series(pd.to_datetime(["2023-12-27"]))

        proximity = holiday_proximity(days, ["2023-12-25", "2023-12-29"], window=3)

        assert proximity.tolist() == ["+2"]

    def test_no_holidays(self):
        """Without holidays every record is 'none'."""
        days = pd.Series(pd.date_range("2023-09-01", periods=3, freq="D"))

        assert set(holiday_proximity(days, [])) == {NO_HOLIDAY}

    def test_panel_column(self, sample_panel):
        """Panel rows on Labor Day are '0'."""
        labor_day = sample_panel["interval"].dt.normalize() == pd.Timestamp("2023-09-04")

        assert set(sample_panel.loc[labor_day, "holiday_proximity"]) == {"0"}


class TestResolveHolidays:
    """Tests for combining explicit and calendar holidays."""

    def test_explicit_dates_normalized_and_deduplicated(self):
        """Explicit dates are normalized and deduplicated."""
        resolved = resolve_holidays(["2023-09-04 12:00", "2023-09-04", "2023-07-04"])

        assert resolved == [pd.Timestamp("2023-07-04"), pd.Timestamp("2023-09-04")]

    def test_country_calendar(self):
        """A country code adds its national holidays."""
        resolved = resolve_holidays(country="US", years=[2023])

        assert pd.Timestamp("2023-07-04") in resolved
        assert pd.Timestamp("2023-09-04") in resolved
