"""Multi-start, multi-restart Nelder-Mead maximum-likelihood estimation."""

from __future__ import annotations

import logging
import time
import warnings
from dataclasses import dataclass
from typing import Any

import numpy as np
from scipy.optimize import minimize

from conf_model.core.data import coerce_confidence_data
from conf_model.models.parameters import ParameterLayout, is_valid_parameters
from conf_model.models.variants import ModelVariant, coerce_model_variant, variant_position

from .grid import GridCandidate, GridResolution, grid_search
from .likelihood import ConfidenceLikelihood

logger = logging.getLogger(__name__)

DEFAULT_CONVERGENCE_TOL = 1e-4
DEFAULT_XATOL = 1e-4
DEFAULT_FATOL = 1e-4

_SIMPLEX_STEP = 0.1
_SIMPLEX_JITTER = (0.5, 1.5)


class ConvergenceWarning(UserWarning):
    """Emitted when the selected optimizer start did not converge."""


@dataclass(frozen=True, slots=True)
class RunDiagnostics:
    """Diagnostics of one ``scipy.optimize.minimize`` call.

    Parameters
    ----------
    start_index : int
        Zero-based index of the grid start.
    restart_index : int
        Zero-based restart index within the start.
    neg_log_likelihood : float
        Objective value at the run's output.
    success : bool
        Whether SciPy reported successful termination.
    message : str
        SciPy termination message.
    n_iterations : int
        Number of optimizer iterations.
    n_function_evaluations : int
        Number of objective evaluations.
    """

    start_index: int
    restart_index: int
    neg_log_likelihood: float
    success: bool
    message: str
    n_iterations: int
    n_function_evaluations: int


@dataclass(frozen=True, slots=True)
class StartSummary:
    """Outcome of all restarts from one grid start.

    Parameters
    ----------
    start_index : int
        Zero-based index of the grid start.
    initial_vector : tuple[float, ...]
        Grid candidate the start began from.
    parameter_vector : tuple[float, ...]
        Best vector reached from this start.
    neg_log_likelihood : float
        Objective value at ``parameter_vector``.
    converged : bool
        Whether the start met the convergence rule.
    n_runs : int
        Number of optimizer calls actually made.
    """

    start_index: int
    initial_vector: tuple[float, ...]
    parameter_vector: tuple[float, ...]
    neg_log_likelihood: float
    converged: bool
    n_runs: int


@dataclass(frozen=True, slots=True)
class MLEFitResult:
    """Optimizer output for one model variant on one dataset.

    Parameters
    ----------
    variant : ModelVariant
        Fitted variant.
    layout : ParameterLayout
        Parameter layout of ``parameter_vector``.
    parameter_vector : tuple[float, ...]
        Best vector over every run.
    neg_log_likelihood : float
        Minimum objective value reached.
    converged : bool
        Convergence status of the start that produced the best vector.
    best_start : int
        Index of that start.
    starts : tuple[StartSummary, ...]
        Per-start outcomes in start order.
    runs : tuple[RunDiagnostics, ...]
        Per-run diagnostics in execution order.
    n_grid_candidates : int
        Number of valid grid lattice points.
    n_evaluations : int
        Total objective evaluations, grid included.
    interrupted : bool
        Whether the time budget stopped the search early.
    elapsed_seconds : float
        Wall-clock duration of the fit.
    """

    variant: ModelVariant
    layout: ParameterLayout
    parameter_vector: tuple[float, ...]
    neg_log_likelihood: float
    converged: bool
    best_start: int
    starts: tuple[StartSummary, ...]
    runs: tuple[RunDiagnostics, ...]
    n_grid_candidates: int
    n_evaluations: int
    interrupted: bool = False
    elapsed_seconds: float = 0.0

    @property
    def params(self) -> dict[str, float]:
        """Best parameters by name."""

        return self.layout.to_mapping(self.parameter_vector)


class NelderMeadMLEEstimator:
    """Grid-seeded Nelder-Mead estimator with restarts.

    Parameters
    ----------
    convergence_tol : float, optional
        A restart improving the objective by less than this marks its start
        converged and ends its restarts.
    max_iterations : int | None, optional
        Per-call Nelder-Mead iteration cap; SciPy's default when ``None``.
    xatol, fatol : float, optional
        Nelder-Mead absolute tolerances.
    time_budget : float | None, optional
        Wall-clock seconds after which no further restart is started. The
        check runs between restarts only; the first run always executes.
    grid : GridResolution | None, optional
        Lattice used to rank starting points.

    Notes
    -----
    Start ``i`` draws its initial simplex perturbations from its own stream
    spawned from ``SeedSequence([random_seed, variant_position])``. A start's
    runs are therefore identical whatever ``n_inits`` is, and increasing
    ``n_restart`` only appends runs, so the best objective never gets worse.
    """

    def __init__(
        self,
        *,
        convergence_tol: float = DEFAULT_CONVERGENCE_TOL,
        max_iterations: int | None = None,
        xatol: float = DEFAULT_XATOL,
        fatol: float = DEFAULT_FATOL,
        time_budget: float | None = None,
        grid: GridResolution | None = None,
    ) -> None:
        if convergence_tol <= 0.0:
            raise ValueError("convergence_tol must be > 0")
        if max_iterations is not None and int(max_iterations) < 1:
            raise ValueError("max_iterations must be >= 1")
        if xatol <= 0.0 or fatol <= 0.0:
            raise ValueError("xatol and fatol must be > 0")
        if time_budget is not None and time_budget <= 0.0:
            raise ValueError("time_budget must be > 0")
        self._convergence_tol = float(convergence_tol)
        self._max_iterations = int(max_iterations) if max_iterations is not None else None
        self._xatol = float(xatol)
        self._fatol = float(fatol)
        self._time_budget = float(time_budget) if time_budget is not None else None
        self._grid = grid

    def fit(
        self,
        variant: ModelVariant | str,
        data: Any,
        *,
        n_inits: int = 5,
        n_restart: int = 4,
        random_seed: int | None = 0,
    ) -> MLEFitResult:
        """Fit one variant by maximum likelihood.

        Parameters
        ----------
        variant : ModelVariant | str
            Model variant.
        data : Any
            Dataset accepted by :func:`~conf_model.core.data.coerce_confidence_data`.
        n_inits : int, optional
            Number of best grid points used as starts.
        n_restart : int, optional
            Optimizer calls per start.
        random_seed : int | None, optional
            Seed for simplex perturbations; ``None`` is nondeterministic.

        Returns
        -------
        MLEFitResult
            Best vector over all runs with per-run diagnostics.

        Raises
        ------
        ValueError
            If ``n_inits`` or ``n_restart`` is below one, or ``random_seed``
            is negative.
        """

        if int(n_inits) < 1:
            raise ValueError("n_inits must be >= 1")
        if int(n_restart) < 1:
            raise ValueError("n_restart must be >= 1")
        if random_seed is not None and int(random_seed) < 0:
            raise ValueError("random_seed must be >= 0")

        model = coerce_model_variant(variant)
        encoded = coerce_confidence_data(data)
        started_at = time.monotonic()
        deadline = started_at + self._time_budget if self._time_budget is not None else None

        candidates = grid_search(model, encoded, resolution=self._grid)
        likelihood = ConfidenceLikelihood(model, encoded)
        n_grid_evaluations = len(candidates)
        selected = candidates[: int(n_inits)]

        if random_seed is None:
            seed_sequence = np.random.SeedSequence()
        else:
            seed_sequence = np.random.SeedSequence([int(random_seed), variant_position(model)])
        streams = seed_sequence.spawn(len(selected))

        runs: list[RunDiagnostics] = []
        starts: list[StartSummary] = []
        best_vector = np.asarray(selected[0].parameter_vector, dtype=float)
        best_value = float(selected[0].neg_log_likelihood)
        best_start = 0
        interrupted = False

        for start_index, (candidate, stream) in enumerate(zip(selected, streams, strict=True)):
            if runs and _expired(deadline):
                interrupted = True
                break
            summary, start_runs, stopped = self._run_start(
                likelihood,
                candidate,
                start_index=start_index,
                n_restart=int(n_restart),
                rng=np.random.default_rng(stream),
                deadline=deadline,
            )
            runs.extend(start_runs)
            starts.append(summary)
            if summary.neg_log_likelihood < best_value or start_index == 0:
                best_value = summary.neg_log_likelihood
                best_vector = np.asarray(summary.parameter_vector, dtype=float)
                best_start = start_index
            if stopped:
                interrupted = True
                break

        converged = starts[best_start].converged
        logger.debug(
            "%s: best negLogLik %.6f from start %d (%d runs, converged=%s)",
            model.value,
            best_value,
            best_start,
            len(runs),
            converged,
        )
        if not converged:
            warnings.warn(
                f"{model.value}: the best optimizer start did not converge; "
                "consider increasing n_restart or max_iterations",
                ConvergenceWarning,
                stacklevel=2,
            )
        if interrupted:
            logger.info("%s: time budget reached after %d runs", model.value, len(runs))

        return MLEFitResult(
            variant=model,
            layout=likelihood.layout,
            parameter_vector=tuple(float(value) for value in best_vector),
            neg_log_likelihood=float(best_value),
            converged=bool(converged),
            best_start=best_start,
            starts=tuple(starts),
            runs=tuple(runs),
            n_grid_candidates=len(candidates),
            n_evaluations=n_grid_evaluations + likelihood.n_evaluations,
            interrupted=interrupted,
            elapsed_seconds=time.monotonic() - started_at,
        )

    def _run_start(
        self,
        likelihood: ConfidenceLikelihood,
        candidate: GridCandidate,
        *,
        start_index: int,
        n_restart: int,
        rng: np.random.Generator,
        deadline: float | None,
    ) -> tuple[StartSummary, list[RunDiagnostics], bool]:
        """Run the restart chain for one start."""

        x = np.asarray(candidate.parameter_vector, dtype=float)
        value = float(candidate.neg_log_likelihood)
        best_x, best_value = x, value
        runs: list[RunDiagnostics] = []
        converged = False
        stopped = False

        for restart_index in range(n_restart):
            if restart_index > 0 and _expired(deadline):
                stopped = True
                break
            options: dict[str, Any] = {
                "adaptive": True,
                "xatol": self._xatol,
                "fatol": self._fatol,
                "initial_simplex": _initial_simplex(likelihood, x, rng),
            }
            if self._max_iterations is not None:
                options["maxiter"] = self._max_iterations

            result = minimize(likelihood, x, method="Nelder-Mead", options=options)
            new_x = np.asarray(result.x, dtype=float)
            new_value = float(result.fun)
            runs.append(
                RunDiagnostics(
                    start_index=start_index,
                    restart_index=restart_index,
                    neg_log_likelihood=new_value,
                    success=bool(result.success),
                    message=str(result.message),
                    n_iterations=int(getattr(result, "nit", -1)),
                    n_function_evaluations=int(getattr(result, "nfev", -1)),
                )
            )
            logger.debug(
                "start %d restart %d: negLogLik %.6f -> %.6f (nit=%s)",
                start_index,
                restart_index,
                value,
                new_value,
                getattr(result, "nit", "?"),
            )

            improvement = value - new_value
            if new_value < best_value:
                best_x, best_value = new_x, new_value
            x, value = new_x, new_value

            if n_restart == 1:
                converged = bool(result.success)
            elif improvement < self._convergence_tol:
                converged = True
                break

        summary = StartSummary(
            start_index=start_index,
            initial_vector=tuple(candidate.parameter_vector),
            parameter_vector=tuple(float(item) for item in best_x),
            neg_log_likelihood=float(best_value),
            converged=converged,
            n_runs=len(runs),
        )
        return summary, runs, stopped


def _initial_simplex(
    likelihood: ConfidenceLikelihood,
    x: np.ndarray,
    rng: np.random.Generator,
) -> np.ndarray:
    """Axis-aligned simplex around ``x`` with jittered step sizes.

    Each step is ``0.1 * max(|x_i|, 1)`` scaled by a uniform draw from
    ``[0.5, 1.5)``. A vertex that leaves the valid region is mirrored to the
    other side of ``x``.
    """

    n = x.size
    steps = _SIMPLEX_STEP * np.maximum(np.abs(x), 1.0) * rng.uniform(*_SIMPLEX_JITTER, size=n)
    simplex = np.tile(x, (n + 1, 1))
    layout = likelihood.layout
    for index in range(n):
        vertex = simplex[index + 1]
        vertex[index] += steps[index]
        if not is_valid_parameters(likelihood.variant, layout.unpack(vertex)):
            vertex[index] = x[index] - steps[index]
    return simplex


def _expired(deadline: float | None) -> bool:
    return deadline is not None and time.monotonic() >= deadline


__all__ = [
    "ConvergenceWarning",
    "DEFAULT_CONVERGENCE_TOL",
    "DEFAULT_FATOL",
    "DEFAULT_XATOL",
    "MLEFitResult",
    "NelderMeadMLEEstimator",
    "RunDiagnostics",
    "StartSummary",
]
