"""Static confidence models: variants, parameter layouts and cell probabilities."""

from .parameters import ModelParameters, ParameterLayout, inner_boundary, is_valid_parameters
from .probabilities import (
    PROBABILITY_FLOOR,
    cell_probabilities,
    cell_probability,
    conditional_rating_probabilities,
    response_probabilities,
)
from .variants import (
    ALL_MODELS,
    EXTRA_PARAMETER_GRID,
    ModelVariant,
    coerce_model_variant,
    resolve_model_names,
    variant_position,
)

__all__ = [
    "ALL_MODELS",
    "EXTRA_PARAMETER_GRID",
    "ModelParameters",
    "ModelVariant",
    "PROBABILITY_FLOOR",
    "ParameterLayout",
    "cell_probabilities",
    "cell_probability",
    "coerce_model_variant",
    "conditional_rating_probabilities",
    "inner_boundary",
    "is_valid_parameters",
    "resolve_model_names",
    "response_probabilities",
    "variant_position",
]
