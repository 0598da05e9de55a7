"""Tests for TOML configuration loading."""

import pytest

from qrscore.config import load_config, parameters_from_mapping
from qrscore.errors import ConfigError
from qrscore.scorer import calculate_score
from qrscore.types import ScoringParameters, StressOutcome


def test_config_from_toml(tmp_path):
    path = tmp_path / "qrscore.toml"
    path.write_text(
        "render_size = 512\n"
        "contrast = 25.0\n"
        "contrast_strict = 60\n"
    )
    params = load_config(path)
    assert params.render_size == 512
    assert params.contrast == 25.0
    assert params.contrast_strict == 60.0
    assert params.luminance == 20
    assert params.hue == 45.0


def test_weights_table_replaces_defaults(tmp_path):
    path = tmp_path / "qrscore.toml"
    path.write_text(
        "[weights]\n"
        "blur_light = 3\n"
        "hue_up = 1\n"
        "contrast_ratio = 6\n"
    )
    weights = load_config(path).weights
    assert weights.tests == {"blur_light": 3, "hue_up": 1}
    assert weights.contrast_weight == 6
    assert weights.total == 10


def test_contrast_weight_defaults_when_omitted():
    params = parameters_from_mapping({"weights": {"blur_light": 1}})
    assert params.weights.contrast_weight == 70


def test_unknown_weight_key_is_kept_but_never_scores():
    params = parameters_from_mapping({"weights": {"rotate_45": 5, "blur_light": 5, "contrast_ratio": 0}})
    assert params.weights.unknown_keys() == ["rotate_45"]
    outcome = StressOutcome(tests={"blur_light": True}, contrast_ratio=0.0)
    assert calculate_score(outcome, params.weights) == 50


def test_native_size_is_not_configurable():
    assert parameters_from_mapping({"native_size": 50}).native_size is None


def test_unknown_top_level_keys_are_ignored():
    assert parameters_from_mapping({"colour": "red"}) == ScoringParameters()


@pytest.mark.parametrize("mapping", [
    {"weights": {"blur_light": -1}},
    {"weights": {"blur_light": 1.5}},
    {"weights": {"contrast_ratio": True}},
    {"weights": [1, 2]},
    {"render_size": "big"},
    {"luminance": 2.5},
    {"hue": "left"},
])
def test_invalid_values_raise_config_error(mapping):
    with pytest.raises(ConfigError):
        parameters_from_mapping(mapping)


def test_missing_file_falls_back_to_defaults(tmp_path):
    assert load_config(tmp_path / "absent.toml") == ScoringParameters()


def test_malformed_toml_falls_back_to_defaults(tmp_path):
    path = tmp_path / "bad.toml"
    path.write_text("render_size = = 3\n")
    assert load_config(path) == ScoringParameters()


def test_invalid_weights_fall_back_to_defaults(tmp_path):
    path = tmp_path / "bad.toml"
    path.write_text("[weights]\nblur_light = -4\n")
    assert load_config(path) == ScoringParameters()


def test_render_size_override_wins(tmp_path):
    path = tmp_path / "qrscore.toml"
    path.write_text("render_size = 512\n")
    assert load_config(path, render_size=256).render_size == 256
    assert load_config(None, render_size=300).render_size == 300
