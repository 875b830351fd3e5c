"""DuckDB utilities for reading tabular inputs."""

from pathlib import Path
from typing import List, Optional

import duckdb
import pandas as pd


class DuckDBConnection:
    """Context manager for DuckDB connections."""

    def __init__(self, database: Optional[str] = None):
        """Initialize connection.

        Args:
            database: Path to database file. If None, uses in-memory database.
        """
        self.database = database
        self.con = None

    def __enter__(self):
        """Enter context and create connection."""
        self.con = duckdb.connect(self.database or ":memory:")
        return self.con

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context and close connection."""
        if self.con:
            self.con.close()


def _reader_for(path: Path) -> str:
    """Return the DuckDB table function that reads ``path``."""
    if path.is_dir():
        pattern = path / "**" / "*.parquet"
        return f"read_parquet('{pattern}', hive_partitioning=1)"
    if path.suffix == ".parquet":
        return f"read_parquet('{path}')"
    if path.suffix in (".csv", ".txt", ".gz"):
        return f"read_csv_auto('{path}', header=true)"
    raise ValueError(f"Unsupported input format: {path}")


def read_table(path: str | Path, columns: Optional[List[str]] = None) -> pd.DataFrame:
    """Read a CSV file, Parquet file or Parquet directory into a DataFrame.

    Args:
        path: File or directory to read
        columns: Columns to select (None = all)

    Returns:
        DataFrame with query results
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input not found: {path}")

    select_cols = ", ".join(columns) if columns else "*"
    query = f"SELECT {select_cols} FROM {_reader_for(path)}"

    with DuckDBConnection() as con:
        return con.execute(query).fetchdf()
