"""Config-driven model fitting helpers.

A fitting config is a JSON/YAML object::

    models: all            # or one name, or a list of names
    n_jobs: 1
    data:
      rating_levels: [1, 2, 3, 4]
    estimator:
      n_inits: 5
      n_restart: 4
      random_seed: 0
      grid:
        criterion_spreads: [0.75, 1.0, 1.5]
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from conf_model.core.config_loading import require_mapping, validate_allowed_keys
from conf_model.core.data import ConfidenceData, coerce_confidence_data
from conf_model.models.variants import ALL_MODELS, ModelVariant, resolve_model_names

from .fitting import ConfidenceFitResult, FitSpec, fit_confidence_model
from .grid import GridResolution
from .mle import DEFAULT_CONVERGENCE_TOL, DEFAULT_FATOL, DEFAULT_XATOL
from .study_fitting import StudyFitResult, fit_subjects

FIT_CONFIG_KEYS: tuple[str, ...] = ("models", "n_jobs", "data", "estimator")
ESTIMATOR_KEYS: tuple[str, ...] = (
    "n_inits",
    "n_restart",
    "random_seed",
    "convergence_tol",
    "max_iterations",
    "xatol",
    "fatol",
    "time_budget",
    "grid",
)
GRID_KEYS: tuple[str, ...] = (
    "sensitivity_scales",
    "theta_offsets",
    "criterion_spreads",
    "extra_values",
)
DATA_KEYS: tuple[str, ...] = ("rating_levels", "condition_levels", "stimulus_levels")


def fit_spec_from_config(estimator_cfg: Mapping[str, Any] | None) -> FitSpec:
    """Parse estimator config mapping into :class:`FitSpec`.

    Parameters
    ----------
    estimator_cfg : Mapping[str, Any] | None
        Estimator configuration mapping; ``None`` gives defaults.

    Returns
    -------
    FitSpec
        Parsed fit specification.

    Raises
    ------
    ValueError
        If unknown keys are present or values are invalid.
    """

    if estimator_cfg is None:
        return FitSpec()
    estimator = require_mapping(estimator_cfg, field_name="estimator")
    validate_allowed_keys(estimator, field_name="estimator", allowed_keys=ESTIMATOR_KEYS)

    return FitSpec(
        n_inits=_coerce_int(estimator.get("n_inits", 5), field_name="estimator.n_inits"),
        n_restart=_coerce_int(estimator.get("n_restart", 4), field_name="estimator.n_restart"),
        random_seed=(
            _coerce_int(estimator.get("random_seed", 0), field_name="estimator.random_seed")
            if estimator.get("random_seed", 0) is not None
            else None
        ),
        convergence_tol=float(estimator.get("convergence_tol", DEFAULT_CONVERGENCE_TOL)),
        max_iterations=(
            _coerce_int(estimator["max_iterations"], field_name="estimator.max_iterations")
            if estimator.get("max_iterations") is not None
            else None
        ),
        xatol=float(estimator.get("xatol", DEFAULT_XATOL)),
        fatol=float(estimator.get("fatol", DEFAULT_FATOL)),
        time_budget=(
            float(estimator["time_budget"]) if estimator.get("time_budget") is not None else None
        ),
        grid=grid_resolution_from_config(estimator.get("grid")),
    )


def grid_resolution_from_config(grid_cfg: Mapping[str, Any] | None) -> GridResolution:
    """Parse the ``estimator.grid`` section into :class:`GridResolution`."""

    if grid_cfg is None:
        return GridResolution()
    grid = require_mapping(grid_cfg, field_name="estimator.grid")
    validate_allowed_keys(grid, field_name="estimator.grid", allowed_keys=GRID_KEYS)

    kwargs: dict[str, Any] = {}
    for name in ("sensitivity_scales", "theta_offsets", "criterion_spreads"):
        if name in grid:
            kwargs[name] = _coerce_float_tuple(grid[name], field_name=f"estimator.grid.{name}")
    if "extra_values" in grid:
        extras = require_mapping(grid["extra_values"], field_name="estimator.grid.extra_values")
        kwargs["extra_values"] = {
            str(name): _coerce_float_tuple(values, field_name=f"estimator.grid.extra_values.{name}")
            for name, values in extras.items()
        }
    return GridResolution(**kwargs)


def models_from_config(config: Mapping[str, Any]) -> tuple[ModelVariant, ...]:
    """Resolve the ``models`` entry; ``"all"`` when absent."""

    raw = config.get("models", ALL_MODELS)
    if isinstance(raw, str):
        return resolve_model_names(raw)
    if not isinstance(raw, list) or not raw:
        raise ValueError("models must be a model name, 'all', or a non-empty list of names")
    return resolve_model_names([str(item) for item in raw])


def dataset_from_config(data: Any, *, config: Mapping[str, Any]) -> ConfidenceData:
    """Encode ``data`` honoring explicit level orders in the ``data`` section."""

    section = config.get("data")
    if section is None:
        return coerce_confidence_data(data)
    levels = require_mapping(section, field_name="data")
    validate_allowed_keys(levels, field_name="data", allowed_keys=DATA_KEYS)
    return coerce_confidence_data(
        data,
        rating_levels=_optional_list(levels.get("rating_levels"), field_name="data.rating_levels"),
        condition_levels=_optional_list(levels.get("condition_levels"), field_name="data.condition_levels"),
        stimulus_levels=_optional_list(levels.get("stimulus_levels"), field_name="data.stimulus_levels"),
    )


def fit_dataset_from_config(data: Any, *, config: Mapping[str, Any]) -> tuple[ConfidenceFitResult, ...]:
    """Fit every configured model to one dataset.

    Parameters
    ----------
    data : Any
        Dataset accepted by :func:`~conf_model.core.data.coerce_confidence_data`.
    config : Mapping[str, Any]
        Fitting config with optional ``models``, ``n_jobs``, ``data`` and
        ``estimator`` sections.

    Returns
    -------
    tuple[ConfidenceFitResult, ...]
        One result per configured model.
    """

    cfg = require_mapping(config, field_name="config")
    validate_allowed_keys(cfg, field_name="config", allowed_keys=FIT_CONFIG_KEYS)
    spec = fit_spec_from_config(cfg.get("estimator"))
    return fit_confidence_model(
        dataset_from_config(data, config=cfg),
        models_from_config(cfg),
        n_inits=spec.n_inits,
        n_restart=spec.n_restart,
        random_seed=spec.random_seed,
        n_jobs=_coerce_int(cfg.get("n_jobs", 1), field_name="n_jobs"),
        fit_spec=spec,
    )


def fit_study_from_config(
    datasets_by_subject: Mapping[str, Any],
    *,
    config: Mapping[str, Any],
) -> StudyFitResult:
    """Fit every configured model to every subject."""

    cfg = require_mapping(config, field_name="config")
    validate_allowed_keys(cfg, field_name="config", allowed_keys=FIT_CONFIG_KEYS)
    encoded = {
        subject_id: dataset_from_config(data, config=cfg)
        for subject_id, data in datasets_by_subject.items()
    }
    return fit_subjects(
        encoded,
        models_from_config(cfg),
        fit_spec=fit_spec_from_config(cfg.get("estimator")),
        n_jobs=_coerce_int(cfg.get("n_jobs", 1), field_name="n_jobs"),
    )


def _coerce_int(raw: Any, *, field_name: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"{field_name} must be an integer")
    return int(raw)


def _coerce_float_tuple(raw: Any, *, field_name: str) -> tuple[float, ...]:
    if not isinstance(raw, (list, tuple)) or not raw:
        raise ValueError(f"{field_name} must be a non-empty list of numbers")
    return tuple(float(value) for value in raw)


def _optional_list(raw: Any, *, field_name: str) -> list[Any] | None:
    if raw is None:
        return None
    if not isinstance(raw, list):
        raise ValueError(f"{field_name} must be a list")
    return list(raw)


__all__ = [
    "dataset_from_config",
    "fit_dataset_from_config",
    "fit_spec_from_config",
    "fit_study_from_config",
    "grid_resolution_from_config",
    "models_from_config",
]
