"""TOML configuration for ScoringParameters.

Example::

    render_size = 512
    contrast = 25.0

    [weights]
    downscale_1x = 1
    blur_light = 3
    contrast_ratio = 70

A ``[weights]`` table replaces the default test weights entirely.
"""

import dataclasses
import tomllib
from collections.abc import Mapping
from pathlib import Path

from qrscore.errors import ConfigError
from qrscore.logging import audit, get_logger
from qrscore.types import ScoringParameters, WeightTable

log = get_logger("config")

_INT_FIELDS = {"render_size", "luminance", "luminance_strict"}
_FLOAT_FIELDS = {
    "blur_light_sigma", "blur_heavy_sigma",
    "contrast", "contrast_strict",
    "hue", "hue_strict",
    "saturation", "saturation_strict",
}
CONTRAST_WEIGHT_KEY = "contrast_ratio"


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _weight(name: str, value) -> int:
    if not _is_int(value) or value < 0:
        raise ConfigError(f"weight {name!r} must be a non-negative integer, got {value!r}")
    return value


def weights_from_mapping(table: Mapping) -> WeightTable:
    if not isinstance(table, Mapping):
        raise ConfigError(f"[weights] must be a table, got {type(table).__name__}")
    tests = {name: _weight(name, value) for name, value in table.items() if name != CONTRAST_WEIGHT_KEY}
    contrast_weight = _weight(CONTRAST_WEIGHT_KEY, table.get(CONTRAST_WEIGHT_KEY, 70))
    weights = WeightTable(tests=tests, contrast_weight=contrast_weight)

    unknown = weights.unknown_keys()
    if unknown:
        # kept as configured, but they can never match a stress result
        audit("config.unknown_weights", logger=log, keys=", ".join(unknown))
    return weights


def parameters_from_mapping(mapping: Mapping) -> ScoringParameters:
    """Build ScoringParameters from a parsed document; absent keys keep their defaults.

    Unknown keys are ignored. ``native_size`` is derived from the input
    document and is never taken from configuration.

    Raises:
        ConfigError: a known key holds a value of the wrong type.
    """
    overrides = {}
    for name in _INT_FIELDS | _FLOAT_FIELDS:
        if name not in mapping:
            continue
        value = mapping[name]
        if name in _INT_FIELDS:
            if not _is_int(value):
                raise ConfigError(f"{name!r} must be an integer, got {value!r}")
            overrides[name] = value
        else:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"{name!r} must be a number, got {value!r}")
            overrides[name] = float(value)

    if "weights" in mapping:
        overrides["weights"] = weights_from_mapping(mapping["weights"])

    return dataclasses.replace(ScoringParameters(), **overrides)


def load_config(path: str | Path | None = None, render_size: int | None = None) -> ScoringParameters:
    """Load parameters from a TOML file, falling back to defaults on any problem.

    Args:
        path: TOML file. ``None`` means defaults.
        render_size: Overrides the configured render size when given.
    """
    params = ScoringParameters()
    if path is not None:
        try:
            with open(path, "rb") as f:
                params = parameters_from_mapping(tomllib.load(f))
            audit("config.loaded", logger=log, path=str(path))
        except OSError as e:
            log.warning("failed to read config %s: %s", path, e)
        except (tomllib.TOMLDecodeError, ConfigError) as e:
            log.warning("failed to parse config %s: %s", path, e)

    if render_size is not None:
        params.render_size = render_size
    return params
