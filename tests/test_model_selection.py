"""Tests for model-comparison helpers."""

from __future__ import annotations

import pytest

from conf_model.analysis.information_criteria import score_fit
from conf_model.inference import ConfidenceFitResult, compare_fitted_models
from conf_model.models import ModelVariant


def _fit(model: ModelVariant, *, neg_log_likelihood: float, n_parameters: int, n_observations: int = 400):
    """Build a fit result with scores derived from the inputs."""

    scores = score_fit(
        neg_log_likelihood=neg_log_likelihood,
        n_parameters=n_parameters,
        n_observations=n_observations,
    )
    return ConfidenceFitResult(
        model=model,
        parameter_names=tuple(f"p{index}" for index in range(n_parameters)),
        parameter_vector=tuple(0.0 for _ in range(n_parameters)),
        neg_log_likelihood=neg_log_likelihood,
        n_parameters=n_parameters,
        n_observations=n_observations,
        aic=scores.aic,
        aicc=scores.aicc,
        bic=scores.bic,
        converged=True,
        mle=None,
    )


def test_criteria_trade_fit_against_complexity() -> None:
    """Likelihood alone prefers the richer model; BIC prefers the smaller one."""

    fits = [
        _fit(ModelVariant.SDT, neg_log_likelihood=500.0, n_parameters=7),
        _fit(ModelVariant.WEV, neg_log_likelihood=497.0, n_parameters=9),
    ]

    by_likelihood = compare_fitted_models(fits, criterion="negLogLik")
    by_bic = compare_fitted_models(fits, criterion="bic")

    assert by_likelihood.selected_model == "WEV"
    assert by_bic.selected_model == "SDT"
    assert by_bic.ranking() == ("SDT", "WEV")
    assert by_bic.n_observations == 400


def test_deltas_are_relative_to_best_score() -> None:
    """The selected model should have delta zero and others positive deltas."""

    fits = [
        _fit(ModelVariant.NOISY, neg_log_likelihood=505.0, n_parameters=8),
        _fit(ModelVariant.SDT, neg_log_likelihood=500.0, n_parameters=7),
        _fit(ModelVariant.IG, neg_log_likelihood=510.0, n_parameters=8),
    ]

    result = compare_fitted_models(fits, criterion="aic")

    assert [item.model for item in result.comparisons] == ["Noisy", "SDT", "IG"]
    assert [item.delta for item in result.comparisons] == pytest.approx([12.0, 0.0, 22.0])
    assert result.comparisons[1].fit_result is fits[1]


def test_ties_keep_input_order() -> None:
    """Equal scores should select the first candidate."""

    fits = [
        _fit(ModelVariant.PDA, neg_log_likelihood=500.0, n_parameters=8),
        _fit(ModelVariant.IG, neg_log_likelihood=500.0, n_parameters=8),
    ]

    assert compare_fitted_models(fits).selected_model == "PDA"


def test_compare_rejects_mismatched_observation_counts() -> None:
    """Candidates must be fitted on the same trials."""

    fits = [
        _fit(ModelVariant.SDT, neg_log_likelihood=500.0, n_parameters=7),
        _fit(ModelVariant.IG, neg_log_likelihood=480.0, n_parameters=8, n_observations=380),
    ]

    with pytest.raises(ValueError, match="same number of trials"):
        compare_fitted_models(fits)


def test_compare_rejects_bad_inputs() -> None:
    """Empty inputs, unknown criteria and undefined AICc should raise."""

    with pytest.raises(ValueError, match="results must not be empty"):
        compare_fitted_models([])
    with pytest.raises(ValueError, match="criterion must be one of"):
        compare_fitted_models([_fit(ModelVariant.SDT, neg_log_likelihood=1.0, n_parameters=7)], criterion="waic")

    tiny = _fit(ModelVariant.SDT, neg_log_likelihood=4.0, n_parameters=7, n_observations=6)
    assert tiny.aicc is None
    with pytest.raises(ValueError, match="AICc is undefined"):
        compare_fitted_models([tiny], criterion="aicc")
