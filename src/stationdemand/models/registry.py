"""Ordered registry of model specifications."""

from .base import FeatureGroup, ModelSpec

T, S, W, L, D = (
    FeatureGroup.TEMPORAL,
    FeatureGroup.SPATIAL,
    FeatureGroup.WEATHER,
    FeatureGroup.LAG,
    FeatureGroup.DEMOGRAPHIC,
)

# Each spec adds one group to the previous, so error differences between
# neighbours attribute predictive value to that group.
DEFAULT_SPECS = (
    ModelSpec("temporal", (T,)),
    ModelSpec("temporal_spatial", (T, S)),
    ModelSpec("temporal_spatial_weather", (T, S, W)),
    ModelSpec("temporal_spatial_weather_demographic", (T, S, W, D)),
    ModelSpec("full", (T, S, W, D, L)),
)


def _parse_groups(name: str, groups) -> tuple[FeatureGroup, ...]:
    available = [g.value for g in FeatureGroup]
    parsed = []
    for group in groups:
        try:
            parsed.append(FeatureGroup(group))
        except ValueError:
            raise ValueError(
                f"Unknown feature group {group!r} in spec {name!r}. Available: {available}"
            ) from None
    return tuple(parsed)


def build_registry(config: dict | None = None) -> tuple[ModelSpec, ...]:
    """Build the ordered spec registry from configuration.

    ``config["models"]["specs"]`` may list ``{"name": ..., "groups": [...]}``
    entries; otherwise DEFAULT_SPECS is used. ``config["models"]["run"]``
    optionally restricts the registry to the named specs, keeping registry
    order.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of ModelSpec in registry order
    """
    model_config = (config or {}).get("models") or {}

    entries = model_config.get("specs")
    if entries:
        specs = tuple(ModelSpec(e["name"], _parse_groups(e["name"], e["groups"])) for e in entries)
    else:
        specs = DEFAULT_SPECS

    names = [s.name for s in specs]
    if len(set(names)) != len(names):
        raise ValueError(f"Duplicate model spec names: {names}")

    selected = model_config.get("run")
    if selected:
        for name in selected:
            get_spec(name, specs)
        specs = tuple(s for s in specs if s.name in set(selected))

    return specs


def get_spec(name: str, registry=DEFAULT_SPECS) -> ModelSpec:
    """Look up a spec by name.

    Args:
        name: Spec name
        registry: Specs to search

    Returns:
        The matching ModelSpec
    """
    for spec in registry:
        if spec.name == name:
            return spec
    raise ValueError(f"Unknown model spec: {name}. Available: {[s.name for s in registry]}")
