"""Inference interfaces: likelihood, grid search, MLE fitting and comparison."""

from .config import (
    dataset_from_config,
    fit_dataset_from_config,
    fit_spec_from_config,
    fit_study_from_config,
    grid_resolution_from_config,
    models_from_config,
)
from .fitting import ConfidenceFitResult, FitSpec, fit_confidence_model, fit_model, fit_result_rows
from .grid import GridCandidate, GridResolution, grid_search, sdt_starting_values
from .likelihood import (
    INVALID_PARAMETER_PENALTY,
    ConfidenceLikelihood,
    layout_for_data,
    negative_log_likelihood,
)
from .mle import ConvergenceWarning, MLEFitResult, NelderMeadMLEEstimator, RunDiagnostics, StartSummary
from .model_selection import CandidateComparison, ModelComparisonResult, compare_fitted_models
from .study_fitting import StudyFitResult, SubjectFitResult, fit_subjects

__all__ = [
    "CandidateComparison",
    "ConfidenceFitResult",
    "ConfidenceLikelihood",
    "ConvergenceWarning",
    "FitSpec",
    "GridCandidate",
    "GridResolution",
    "INVALID_PARAMETER_PENALTY",
    "MLEFitResult",
    "ModelComparisonResult",
    "NelderMeadMLEEstimator",
    "RunDiagnostics",
    "StartSummary",
    "StudyFitResult",
    "SubjectFitResult",
    "compare_fitted_models",
    "dataset_from_config",
    "fit_confidence_model",
    "fit_dataset_from_config",
    "fit_model",
    "fit_result_rows",
    "fit_spec_from_config",
    "fit_study_from_config",
    "fit_subjects",
    "grid_resolution_from_config",
    "grid_search",
    "layout_for_data",
    "models_from_config",
    "negative_log_likelihood",
    "sdt_starting_values",
]
