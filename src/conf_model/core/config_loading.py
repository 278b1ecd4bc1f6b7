"""Load and validate declarative fitting configuration files.

JSON and YAML files are supported. Every config root must be an object
mapping; nested sections are checked against explicit key whitelists so typos
fail loudly instead of silently falling back to defaults.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml

SUPPORTED_CONFIG_SUFFIXES: tuple[str, ...] = (".json", ".yaml", ".yml")


def load_config_mapping(path: str | Path) -> dict[str, Any]:
    """Load one JSON/YAML config file whose root is an object mapping.

    Parameters
    ----------
    path : str | pathlib.Path
        Config file path with suffix `.json`, `.yaml`, or `.yml`.

    Returns
    -------
    dict[str, Any]
        Parsed config mapping.

    Raises
    ------
    ValueError
        If the suffix is unsupported or the config root is not a mapping.
    """

    config_path = Path(path)
    suffix = config_path.suffix.lower()

    with config_path.open("r", encoding="utf-8") as handle:
        if suffix == ".json":
            raw = json.load(handle)
        elif suffix in {".yaml", ".yml"}:
            raw = yaml.safe_load(handle)
        else:
            supported = ", ".join(SUPPORTED_CONFIG_SUFFIXES)
            raise ValueError(
                f"unsupported config file extension {suffix!r}; expected one of {supported}"
            )

    if not isinstance(raw, dict):
        raise ValueError("config root must be a JSON/YAML object")
    return raw


def validate_allowed_keys(
    mapping: Mapping[str, Any],
    *,
    field_name: str,
    allowed_keys: Iterable[str],
) -> None:
    """Reject keys outside ``allowed_keys``.

    Raises
    ------
    ValueError
        If unknown keys are present.
    """

    allowed = {str(key) for key in allowed_keys}
    unknown = sorted(str(key) for key in mapping if str(key) not in allowed)
    if unknown:
        raise ValueError(f"{field_name} has unknown keys: {unknown}")


def require_mapping(raw: Any, *, field_name: str) -> Mapping[str, Any]:
    """Return ``raw`` if it is a mapping, else raise ``ValueError``."""

    if not isinstance(raw, Mapping):
        raise ValueError(f"{field_name} must be an object")
    return raw


__all__ = [
    "SUPPORTED_CONFIG_SUFFIXES",
    "load_config_mapping",
    "require_mapping",
    "validate_allowed_keys",
]
