"""User-facing model fitting: one variant, or a batch of variants on one dataset."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from joblib import Parallel, delayed

from conf_model.analysis.information_criteria import score_fit
from conf_model.core.data import ConfidenceData, coerce_confidence_data
from conf_model.models.variants import ALL_MODELS, ModelVariant, coerce_model_variant, resolve_model_names

from .grid import GridResolution
from .mle import DEFAULT_CONVERGENCE_TOL, DEFAULT_FATOL, DEFAULT_XATOL, MLEFitResult, NelderMeadMLEEstimator

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FitSpec:
    """Estimator specification for model fitting.

    Parameters
    ----------
    n_inits : int, optional
        Number of best grid points used as optimizer starts.
    n_restart : int, optional
        Nelder-Mead calls per start, each continuing from the previous output.
    random_seed : int | None, optional
        Master seed for simplex perturbations. Set to ``None`` to disable
        deterministic seeding.
    convergence_tol : float, optional
        Objective improvement below which a restart counts as converged.
    max_iterations : int | None, optional
        Per-call Nelder-Mead iteration cap.
    xatol, fatol : float, optional
        Nelder-Mead absolute tolerances.
    time_budget : float | None, optional
        Seconds per model after which no further restart starts.
    grid : GridResolution, optional
        Starting-point lattice.
    """

    n_inits: int = 5
    n_restart: int = 4
    random_seed: int | None = 0
    convergence_tol: float = DEFAULT_CONVERGENCE_TOL
    max_iterations: int | None = None
    xatol: float = DEFAULT_XATOL
    fatol: float = DEFAULT_FATOL
    time_budget: float | None = None
    grid: GridResolution = field(default_factory=GridResolution)

    def __post_init__(self) -> None:
        if int(self.n_inits) < 1:
            raise ValueError("n_inits must be >= 1")
        if int(self.n_restart) < 1:
            raise ValueError("n_restart must be >= 1")
        if self.random_seed is not None and int(self.random_seed) < 0:
            raise ValueError("random_seed must be >= 0")

    def build_estimator(self) -> NelderMeadMLEEstimator:
        """Instantiate the optimizer this specification describes."""

        return NelderMeadMLEEstimator(
            convergence_tol=self.convergence_tol,
            max_iterations=self.max_iterations,
            xatol=self.xatol,
            fatol=self.fatol,
            time_budget=self.time_budget,
            grid=self.grid,
        )


@dataclass(frozen=True, slots=True)
class ConfidenceFitResult:
    """Fitted parameters and model-selection scores for one variant.

    Parameters
    ----------
    model : ModelVariant
        Fitted variant.
    parameter_names : tuple[str, ...]
        Names in vector order.
    parameter_vector : tuple[float, ...]
        Maximum-likelihood estimates.
    neg_log_likelihood : float
        Minimized negative log-likelihood.
    n_parameters : int
        Free parameter count ``k``.
    n_observations : int
        Number of trials ``N``.
    aic : float
        Akaike Information Criterion.
    aicc : float | None
        Corrected AIC; ``None`` when undefined.
    bic : float
        Bayesian Information Criterion.
    converged : bool
        Whether the chosen optimizer start converged.
    mle : MLEFitResult
        Optimizer diagnostics.
    """

    model: ModelVariant
    parameter_names: tuple[str, ...]
    parameter_vector: tuple[float, ...]
    neg_log_likelihood: float
    n_parameters: int
    n_observations: int
    aic: float
    aicc: float | None
    bic: float
    converged: bool
    mle: MLEFitResult

    @property
    def params(self) -> dict[str, float]:
        """Estimates by parameter name."""

        return dict(zip(self.parameter_names, self.parameter_vector, strict=True))

    def as_row(self) -> dict[str, Any]:
        """Flat record: model, parameters, ``negLogLik``, ``k``, ``N`` and criteria."""

        row: dict[str, Any] = {"model": self.model.value}
        row.update(self.params)
        row.update(
            {
                "negLogLik": self.neg_log_likelihood,
                "k": self.n_parameters,
                "N": self.n_observations,
                "AIC": self.aic,
                "AICc": self.aicc,
                "BIC": self.bic,
                "converged": self.converged,
            }
        )
        return row


def fit_model(
    data: Any,
    model: ModelVariant | str,
    *,
    fit_spec: FitSpec | None = None,
) -> ConfidenceFitResult:
    """Fit one model variant to a dataset.

    Parameters
    ----------
    data : Any
        Dataset accepted by :func:`~conf_model.core.data.coerce_confidence_data`.
    model : ModelVariant | str
        Model variant or its name.
    fit_spec : FitSpec | None, optional
        Estimator specification; defaults to :class:`FitSpec`.

    Returns
    -------
    ConfidenceFitResult
        Estimates with scores and diagnostics.
    """

    spec = fit_spec if fit_spec is not None else FitSpec()
    variant = coerce_model_variant(model)
    encoded = coerce_confidence_data(data)

    mle = spec.build_estimator().fit(
        variant,
        encoded,
        n_inits=spec.n_inits,
        n_restart=spec.n_restart,
        random_seed=spec.random_seed,
    )
    return _fit_result_from_mle(mle, encoded)


def fit_confidence_model(
    data: Any,
    model: ModelVariant | str | Sequence[ModelVariant | str] = ALL_MODELS,
    n_inits: int = 5,
    n_restart: int = 4,
    *,
    random_seed: int | None = 0,
    n_jobs: int = 1,
    fit_spec: FitSpec | None = None,
) -> tuple[ConfidenceFitResult, ...]:
    """Fit one or several model variants to the same dataset.

    Parameters
    ----------
    data : Any
        Dataset accepted by :func:`~conf_model.core.data.coerce_confidence_data`.
    model : ModelVariant | str | Sequence[ModelVariant | str], optional
        A variant name, ``"all"``, or a sequence of names.
    n_inits : int, optional
        Number of optimizer starts per model.
    n_restart : int, optional
        Optimizer calls per start.
    random_seed : int | None, optional
        Master seed. Each model derives its own stream from it, so results do
        not depend on which other models are requested or on ``n_jobs``.
    n_jobs : int, optional
        Number of models fitted concurrently via :mod:`joblib`.
    fit_spec : FitSpec | None, optional
        Remaining estimator settings. ``n_inits``, ``n_restart`` and
        ``random_seed`` arguments override its fields.

    Returns
    -------
    tuple[ConfidenceFitResult, ...]
        One result per requested model, in request order.
    """

    variants = resolve_model_names(model)
    encoded = coerce_confidence_data(data)
    base = fit_spec if fit_spec is not None else FitSpec()
    spec = FitSpec(
        n_inits=int(n_inits),
        n_restart=int(n_restart),
        random_seed=random_seed,
        convergence_tol=base.convergence_tol,
        max_iterations=base.max_iterations,
        xatol=base.xatol,
        fatol=base.fatol,
        time_budget=base.time_budget,
        grid=base.grid,
    )

    logger.info(
        "fitting %d model(s) to %d trials: %s",
        len(variants),
        encoded.n_trials,
        ", ".join(variant.value for variant in variants),
    )
    if int(n_jobs) == 1 or len(variants) == 1:
        return tuple(fit_model(encoded, variant, fit_spec=spec) for variant in variants)

    results = Parallel(n_jobs=int(n_jobs))(
        delayed(fit_model)(encoded, variant, fit_spec=spec) for variant in variants
    )
    return tuple(results)


def fit_result_rows(results: Sequence[ConfidenceFitResult]) -> list[dict[str, Any]]:
    """Return :meth:`ConfidenceFitResult.as_row` for every result."""

    return [result.as_row() for result in results]


def _fit_result_from_mle(mle: MLEFitResult, data: ConfidenceData) -> ConfidenceFitResult:
    """Attach information criteria to optimizer output."""

    n_parameters = mle.layout.n_parameters
    scores = score_fit(
        neg_log_likelihood=mle.neg_log_likelihood,
        n_parameters=n_parameters,
        n_observations=data.n_trials,
    )
    return ConfidenceFitResult(
        model=mle.variant,
        parameter_names=mle.layout.parameter_names,
        parameter_vector=mle.parameter_vector,
        neg_log_likelihood=mle.neg_log_likelihood,
        n_parameters=n_parameters,
        n_observations=data.n_trials,
        aic=scores.aic,
        aicc=scores.aicc,
        bic=scores.bic,
        converged=mle.converged,
        mle=mle,
    )


__all__ = [
    "ConfidenceFitResult",
    "FitSpec",
    "fit_confidence_model",
    "fit_model",
    "fit_result_rows",
]
