"""Model specifications and the base estimator interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

import numpy as np
import pandas as pd

from ..panel.builder import WEATHER_FEATURES
from ..panel.lags import DEFAULT_LAG_OFFSETS, lag_column
from ..panel.stations import DEMOGRAPHIC_FEATURES


class FeatureGroup(str, Enum):
    """Groups of panel columns a model specification can include."""

    TEMPORAL = "temporal"
    SPATIAL = "spatial"
    WEATHER = "weather"
    LAG = "lag"
    DEMOGRAPHIC = "demographic"


@dataclass(frozen=True)
class FeatureColumns:
    """Panel columns a spec reads, split by how they enter the design matrix."""

    numeric: tuple[str, ...] = ()
    categorical: tuple[str, ...] = ()

    @property
    def all(self) -> tuple[str, ...]:
        return self.categorical + self.numeric


def group_columns(group: FeatureGroup, lag_offsets=DEFAULT_LAG_OFFSETS) -> FeatureColumns:
    """Map a feature group to its fixed column list."""
    if group is FeatureGroup.TEMPORAL:
        return FeatureColumns(categorical=("hour", "day_of_week"))
    if group is FeatureGroup.SPATIAL:
        return FeatureColumns(categorical=("station_id",))
    if group is FeatureGroup.WEATHER:
        return FeatureColumns(numeric=tuple(WEATHER_FEATURES))
    if group is FeatureGroup.LAG:
        return FeatureColumns(
            numeric=tuple(lag_column(k) for k in sorted(lag_offsets)),
            categorical=("holiday_proximity",),
        )
    if group is FeatureGroup.DEMOGRAPHIC:
        return FeatureColumns(numeric=tuple(DEMOGRAPHIC_FEATURES))
    raise ValueError(f"Unknown feature group: {group}")


@dataclass(frozen=True)
class ModelSpec:
    """A named, ordered set of feature groups defining one regression."""

    name: str
    groups: tuple[FeatureGroup, ...]

    def __post_init__(self):
        if not self.groups:
            raise ValueError(f"Model spec {self.name!r} has no feature groups")
        if len(set(self.groups)) != len(self.groups):
            raise ValueError(f"Model spec {self.name!r} repeats a feature group")

    def depends_on(self, group: FeatureGroup) -> bool:
        return group in self.groups

    def columns(self, lag_offsets=DEFAULT_LAG_OFFSETS) -> FeatureColumns:
        numeric: list[str] = []
        categorical: list[str] = []
        for group in self.groups:
            cols = group_columns(group, lag_offsets)
            numeric.extend(cols.numeric)
            categorical.extend(cols.categorical)
        return FeatureColumns(numeric=tuple(numeric), categorical=tuple(categorical))


class BaseModel(ABC):
    """Abstract base class for demand regression models.

    All models must implement:
    - fit(): Train on eligible panel rows
    - predict(): Predict trip counts, NaN where a row cannot be scored
    """

    def __init__(self, spec: ModelSpec, lag_offsets=DEFAULT_LAG_OFFSETS):
        self.spec = spec
        self.lag_offsets = tuple(sorted(lag_offsets))
        self.features = spec.columns(self.lag_offsets)
        self.is_fitted = False

    @abstractmethod
    def fit(self, frame: pd.DataFrame, target: str = "trip_count") -> "BaseModel":
        """Train the model on panel rows.

        Args:
            frame: Panel rows with every column the model spec requires
            target: Column to predict

        Returns:
            self (for method chaining)
        """

    @abstractmethod
    def predict(self, frame: pd.DataFrame) -> np.ndarray:
        """Predict the target for each row of ``frame``.

        Returns:
            Float array aligned with ``frame``; NaN marks rows the model
            could not score
        """

    def get_name(self) -> str:
        """Return the model spec name."""
        return self.spec.name

    def get_params(self) -> Dict[str, Any]:
        """Return model parameters for logging."""
        return {
            "name": self.get_name(),
            "model": self.__class__.__name__,
            "groups": [g.value for g in self.spec.groups],
        }
