"""Ordinary least squares shared by every model specification."""

import logging
from typing import Any, Dict

import numpy as np
import pandas as pd

from ..panel.lags import DEFAULT_LAG_OFFSETS
from .base import BaseModel

logger = logging.getLogger(__name__)


class DegenerateFitError(ValueError):
    """Raised when no least squares solution can be computed."""


class OLSModel(BaseModel):
    """Linear regression over a model spec's columns, solved with least squares.

    Design matrix:
    - intercept
    - numeric columns, standardized with training mean/std
    - one indicator per categorical level seen in training, except the first
      (reference) level

    A rank-deficient design (zero-variance or collinear columns) is solved
    with the minimum-norm least squares solution. At prediction time a row
    whose categorical value never appeared in training gets NaN.
    """

    def __init__(self, spec, lag_offsets=DEFAULT_LAG_OFFSETS):
        super().__init__(spec, lag_offsets)
        self.levels: dict[str, list[str]] = {}
        self.means = None
        self.scales = None
        self.coef = None
        self.rank = None
        self.n_train = 0

    def _numeric_block(self, frame: pd.DataFrame) -> np.ndarray:
        values = frame[list(self.features.numeric)].to_numpy(dtype=float)
        return (values - self.means) / self.scales

    def _categorical_block(self, frame: pd.DataFrame) -> tuple[np.ndarray, np.ndarray]:
        """Indicator columns for all categoricals plus a mask of rows with unseen levels."""
        blocks = []
        unseen = np.zeros(len(frame), dtype=bool)
        for col in self.features.categorical:
            values = frame[col].astype(str).to_numpy()
            levels = self.levels[col]
            unseen |= ~np.isin(values, levels)
            for level in levels[1:]:
                blocks.append((values == level).astype(float))
        if blocks:
            return np.column_stack(blocks), unseen
        return np.empty((len(frame), 0)), unseen

    def _design(self, frame: pd.DataFrame) -> tuple[np.ndarray, np.ndarray]:
        intercept = np.ones((len(frame), 1))
        categorical, unseen = self._categorical_block(frame)
        X = np.hstack([intercept, categorical, self._numeric_block(frame)])
        return X, unseen

    def fit(self, frame: pd.DataFrame, target: str = "trip_count") -> "OLSModel":
        """Fit coefficients on ``frame``.

        Raises:
            DegenerateFitError: No training rows, or non-finite inputs
        """
        if len(frame) == 0:
            raise DegenerateFitError(f"{self.get_name()}: no training rows")

        self.levels = {
            col: sorted(frame[col].astype(str).unique()) for col in self.features.categorical
        }

        numeric = frame[list(self.features.numeric)].to_numpy(dtype=float)
        self.means = numeric.mean(axis=0) if numeric.size else np.zeros(0)
        scales = numeric.std(axis=0) if numeric.size else np.zeros(0)
        self.scales = np.where(scales > 0, scales, 1.0)

        X, _ = self._design(frame)
        y = frame[target].to_numpy(dtype=float)
        if not (np.isfinite(X).all() and np.isfinite(y).all()):
            raise DegenerateFitError(f"{self.get_name()}: non-finite values in training data")

        try:
            self.coef, _, self.rank, _ = np.linalg.lstsq(X, y, rcond=None)
        except np.linalg.LinAlgError as e:
            raise DegenerateFitError(f"{self.get_name()}: {e}") from e

        if self.rank < X.shape[1]:
            logger.warning(
                "%s: rank-deficient design (rank %d < %d columns), using minimum-norm solution",
                self.get_name(),
                self.rank,
                X.shape[1],
            )

        self.n_train = len(frame)
        self.is_fitted = True
        return self

    def predict(self, frame: pd.DataFrame) -> np.ndarray:
        if not self.is_fitted:
            raise ValueError("Model must be fitted before prediction")

        if len(frame) == 0:
            return np.empty(0)

        X, unseen = self._design(frame)
        predictions = X @ self.coef
        predictions[unseen] = np.nan
        return predictions

    def get_params(self) -> Dict[str, Any]:
        params = super().get_params()
        params.update(
            {
                "n_train": self.n_train,
                "n_coefficients": 0 if self.coef is None else len(self.coef),
                "rank": self.rank,
            }
        )
        return params
