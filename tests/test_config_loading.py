"""Tests for JSON/YAML config loading helpers."""

from __future__ import annotations

import json

import pytest

from conf_model.core import load_config_mapping, require_mapping, validate_allowed_keys


def test_load_config_mapping_accepts_json(tmp_path) -> None:
    """JSON files should load into the fit configuration mapping."""

    path = tmp_path / "config.json"
    payload = {"models": ["SDT", "WEV"], "estimator": {"n_inits": 5, "n_restart": 4}}
    path.write_text(json.dumps(payload), encoding="utf-8")

    assert load_config_mapping(path) == payload


def test_load_config_mapping_accepts_yaml(tmp_path) -> None:
    """YAML files should load nested estimator and grid sections."""

    path = tmp_path / "config.yaml"
    path.write_text(
        "models: all\nestimator:\n  n_inits: 3\n  random_seed: 7\n  grid:\n    extra_values:\n      w: [0.0, 0.5]\n",
        encoding="utf-8",
    )

    loaded = load_config_mapping(path)
    assert loaded == {
        "models": "all",
        "estimator": {"n_inits": 3, "random_seed": 7, "grid": {"extra_values": {"w": [0.0, 0.5]}}},
    }


def test_load_config_mapping_rejects_unsupported_extension(tmp_path) -> None:
    """TOML and other suffixes should be refused before parsing."""

    path = tmp_path / "config.toml"
    path.write_text("models = [\"SDT\"]\n", encoding="utf-8")

    with pytest.raises(ValueError, match="unsupported config file extension"):
        load_config_mapping(path)


def test_load_config_mapping_requires_mapping_root(tmp_path) -> None:
    """A bare model list is not a configuration object."""

    path = tmp_path / "config.json"
    path.write_text(json.dumps(["SDT", "WEV"]), encoding="utf-8")

    with pytest.raises(ValueError, match="config root must be a JSON/YAML object"):
        load_config_mapping(path)


def test_validate_allowed_keys_reports_unknown_keys() -> None:
    """Unknown keys should be listed in the error."""

    with pytest.raises(ValueError, match=r"estimator has unknown keys: \['n_starts'\]"):
        validate_allowed_keys({"n_inits": 1, "n_starts": 2}, field_name="estimator", allowed_keys=("n_inits",))


def test_require_mapping_rejects_lists() -> None:
    """Sections must be objects."""

    with pytest.raises(ValueError, match="grid must be an object"):
        require_mapping([1, 2], field_name="grid")
