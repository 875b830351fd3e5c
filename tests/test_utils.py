"""Unit tests for utility functions."""

from pathlib import Path

import pandas as pd
import pytest

from stationdemand.utils import (
    DuckDBConnection,
    load_config,
    load_station_info,
    load_trip_data,
    load_weather,
    read_table,
)


class TestLoadConfig:
    """Tests for configuration loading."""

    def test_load_existing_config(self, project_root):
        """Should load the main config file."""
        config = load_config(project_root / "config.yaml")

        assert isinstance(config, dict)
        required_keys = ["data", "time", "lags", "holidays", "holdout", "cross_validation"]
        for key in required_keys:
            assert key in config, f"Missing required key: {key}"

    def test_holdout_weeks_are_ranges(self, project_root):
        """Holdout weeks are (first, last) pairs."""
        config = load_config(project_root / "config.yaml")

        assert len(config["holdout"]["train_weeks"]) == 2
        assert len(config["holdout"]["test_weeks"]) == 2

    def test_load_missing_config_raises(self):
        """Loading non-existent config should raise."""
        with pytest.raises(FileNotFoundError):
            load_config("nonexistent_config.yaml")

    def test_accepts_str_and_path(self, tmp_path):
        """Config paths may be str or Path."""
        path = tmp_path / "custom.yaml"
        path.write_text("time:\n  freq: 1h\n")

        assert load_config(str(path)) == load_config(Path(path)) == {"time": {"freq": "1h"}}


class TestReadTable:
    """Tests for DuckDB-backed table reading."""

    def test_read_csv(self, tmp_path):
        path = tmp_path / "table.csv"
        pd.DataFrame({"a": [1, 2, 3], "b": ["x", "y", "z"]}).to_csv(path, index=False)

        df = read_table(path, columns=["b"])

        assert list(df.columns) == ["b"]
        assert df["b"].tolist() == ["x", "y", "z"]

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_table(tmp_path / "missing.csv")

    def test_connection_context(self):
        """Connection is usable inside the context manager."""
        with DuckDBConnection() as con:
            assert con.execute("SELECT 1 + 1").fetchone()[0] == 2


class TestLoaders:
    """Tests for the input loaders."""

    def test_load_trip_data(self, tmp_path):
        """Unparseable timestamps become NaT and are kept."""
        path = tmp_path / "trips.csv"
        path.write_text(
            "station_id,started_at\n"
            "A,2023-09-04 08:15:00\n"
            "B,not a time\n"
        )

        trips = load_trip_data(path)

        assert len(trips) == 2
        assert trips["started_at"].iloc[0] == pd.Timestamp("2023-09-04 08:15")
        assert pd.isna(trips["started_at"].iloc[1])

    def test_missing_columns_raise(self, tmp_path):
        """Inputs without required columns are rejected."""
        path = tmp_path / "stations.csv"
        pd.DataFrame({"station_id": ["A"], "lat": [0.0]}).to_csv(path, index=False)

        with pytest.raises(ValueError, match="missing required columns"):
            load_station_info(path)

    def test_load_weather(self, tmp_path):
        path = tmp_path / "weather.csv"
        pd.DataFrame(
            {
                "observed_at": ["2023-09-04 08:00", "2023-09-04 09:00"],
                "temperature": [61.0, 0.0],
                "precipitation": [0.0, 0.1],
                "wind_speed": [4.0, 6.0],
                "station_name": ["KPHL", "KPHL"],
            }
        ).to_csv(path, index=False)

        weather = load_weather(path)

        assert list(weather.columns) == ["observed_at", "temperature", "precipitation", "wind_speed"]
        assert weather["observed_at"].iloc[1] == pd.Timestamp("2023-09-04 09:00")
