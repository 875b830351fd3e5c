"""Model specifications and the shared least squares estimator."""

from .base import BaseModel, FeatureColumns, FeatureGroup, ModelSpec, group_columns
from .ols import DegenerateFitError, OLSModel
from .registry import DEFAULT_SPECS, build_registry, get_spec

__all__ = [
    "BaseModel",
    "FeatureColumns",
    "FeatureGroup",
    "ModelSpec",
    "group_columns",
    "OLSModel",
    "DegenerateFitError",
    "DEFAULT_SPECS",
    "build_registry",
    "get_spec",
    "get_model",
]


def get_model(spec: ModelSpec | str, config: dict | None = None) -> BaseModel:
    """Factory function to get an unfitted estimator for a spec.

    Args:
        spec: ModelSpec or spec name from the configured registry
        config: Configuration dictionary (lag offsets, custom specs)

    Returns:
        Model instance
    """
    config = config or {}
    if isinstance(spec, str):
        spec = get_spec(spec, build_registry(config))
    lag_offsets = config.get("lags", {}).get("offsets")
    if lag_offsets:
        return OLSModel(spec, lag_offsets)
    return OLSModel(spec)
