"""Core data containers and configuration loading."""

from .config_loading import (
    SUPPORTED_CONFIG_SUFFIXES,
    load_config_mapping,
    require_mapping,
    validate_allowed_keys,
)
from .data import (
    DEFAULT_CONDITION_LEVEL,
    REQUIRED_COLUMNS,
    ConfidenceData,
    ConfidenceTrial,
    InputShapeError,
    coerce_confidence_data,
)

__all__ = [
    "ConfidenceData",
    "ConfidenceTrial",
    "DEFAULT_CONDITION_LEVEL",
    "InputShapeError",
    "REQUIRED_COLUMNS",
    "SUPPORTED_CONFIG_SUFFIXES",
    "coerce_confidence_data",
    "load_config_mapping",
    "require_mapping",
    "validate_allowed_keys",
]
