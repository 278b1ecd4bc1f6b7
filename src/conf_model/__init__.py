"""Top-level package for ``conf_model``.

The package fits static models of confidence in binary discrimination tasks
by maximum likelihood:

1. trial records are validated and encoded into a count table
   (:func:`~conf_model.core.data.coerce_confidence_data`),
2. each model variant maps parameters to outcome-cell probabilities
   (:mod:`conf_model.models`),
3. a coarse grid ranks starting points and restarted Nelder-Mead runs refine
   them (:mod:`conf_model.inference`),
4. fits are scored with AIC, AICc and BIC for model comparison.

Notes
-----
Models are static: response times and dynamic accumulation are out of scope.
"""

from .core.data import ConfidenceData, ConfidenceTrial, InputShapeError, coerce_confidence_data
from .generators import simulate_confidence_data
from .inference import (
    ConfidenceFitResult,
    FitSpec,
    compare_fitted_models,
    fit_confidence_model,
    fit_model,
    fit_subjects,
)
from .models import ModelVariant
from .recovery import run_parameter_recovery

__all__ = [
    "ConfidenceData",
    "ConfidenceFitResult",
    "ConfidenceTrial",
    "FitSpec",
    "InputShapeError",
    "ModelVariant",
    "coerce_confidence_data",
    "compare_fitted_models",
    "fit_confidence_model",
    "fit_model",
    "fit_subjects",
    "run_parameter_recovery",
    "simulate_confidence_data",
]
