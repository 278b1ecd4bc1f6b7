"""Model comparison over fitted confidence models.

Candidates fitted on the same dataset are ranked under one criterion, and
their deltas from the best score are reported alongside.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from .fitting import ConfidenceFitResult

SelectionCriterion = Literal["negLogLik", "aic", "aicc", "bic"]
SELECTION_CRITERIA: tuple[str, ...] = ("negLogLik", "aic", "aicc", "bic")


@dataclass(frozen=True, slots=True)
class CandidateComparison:
    """Comparison summary for one candidate model.

    Parameters
    ----------
    model : str
        Variant name.
    neg_log_likelihood : float
        Minimized negative log-likelihood.
    n_parameters : int
        Free parameter count.
    score : float
        Criterion value (lower is better).
    delta : float
        ``score`` minus the best score.
    fit_result : ConfidenceFitResult
        Full fit output for downstream inspection.
    """

    model: str
    neg_log_likelihood: float
    n_parameters: int
    score: float
    delta: float
    fit_result: ConfidenceFitResult


@dataclass(frozen=True, slots=True)
class ModelComparisonResult:
    """Model-comparison output.

    Parameters
    ----------
    criterion : {"negLogLik", "aic", "aicc", "bic"}
        Selection criterion.
    n_observations : int
        Number of trials shared by every candidate.
    comparisons : tuple[CandidateComparison, ...]
        Candidate summaries in input order.
    selected_model : str
        Candidate with the lowest score; ties keep input order.
    """

    criterion: SelectionCriterion
    n_observations: int
    comparisons: tuple[CandidateComparison, ...]
    selected_model: str

    def ranking(self) -> tuple[str, ...]:
        """Model names from best to worst."""

        ordered = sorted(self.comparisons, key=lambda item: item.score)
        return tuple(item.model for item in ordered)


def compare_fitted_models(
    results: Sequence[ConfidenceFitResult],
    *,
    criterion: SelectionCriterion = "bic",
) -> ModelComparisonResult:
    """Rank fitted models on one dataset.

    Parameters
    ----------
    results : Sequence[ConfidenceFitResult]
        Fits on the same dataset.
    criterion : {"negLogLik", "aic", "aicc", "bic"}, optional
        Selection criterion; lower is better for all of them.

    Returns
    -------
    ModelComparisonResult
        Candidate summaries and selected model.

    Raises
    ------
    ValueError
        If ``results`` is empty, the criterion is unknown, the fits disagree
        on the number of trials, or AICc is requested but undefined for a
        candidate.
    """

    fits = tuple(results)
    if not fits:
        raise ValueError("results must not be empty")
    if criterion not in SELECTION_CRITERIA:
        raise ValueError(f"criterion must be one of {set(SELECTION_CRITERIA)}")

    n_observations = {fit.n_observations for fit in fits}
    if len(n_observations) != 1:
        raise ValueError("all results must be fitted on the same number of trials")

    scores = [_selection_score(fit, criterion=criterion) for fit in fits]
    best_score = min(scores)
    comparisons = tuple(
        CandidateComparison(
            model=fit.model.value,
            neg_log_likelihood=fit.neg_log_likelihood,
            n_parameters=fit.n_parameters,
            score=score,
            delta=score - best_score,
            fit_result=fit,
        )
        for fit, score in zip(fits, scores, strict=True)
    )
    selected = min(comparisons, key=lambda item: item.score)
    return ModelComparisonResult(
        criterion=criterion,
        n_observations=n_observations.pop(),
        comparisons=comparisons,
        selected_model=selected.model,
    )


def _selection_score(fit: ConfidenceFitResult, *, criterion: SelectionCriterion) -> float:
    """Compute criterion-specific score for one candidate."""

    if criterion == "negLogLik":
        return float(fit.neg_log_likelihood)
    if criterion == "aic":
        return float(fit.aic)
    if criterion == "bic":
        return float(fit.bic)
    if criterion == "aicc":
        if fit.aicc is None:
            raise ValueError(
                f"AICc is undefined for model {fit.model.value!r} "
                f"(k={fit.n_parameters}, N={fit.n_observations})"
            )
        return float(fit.aicc)
    raise ValueError(f"unsupported criterion: {criterion!r}")


__all__ = [
    "CandidateComparison",
    "ModelComparisonResult",
    "SELECTION_CRITERIA",
    "SelectionCriterion",
    "compare_fitted_models",
]
