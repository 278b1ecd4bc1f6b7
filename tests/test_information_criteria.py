"""Tests for information-criterion utilities."""

from __future__ import annotations

import numpy as np
import pytest

from conf_model.analysis.information_criteria import aic, aicc, bic, score_fit


def test_aic_and_bic_match_closed_form() -> None:
    """AIC/BIC helpers should match direct formulas."""

    neg_log_likelihood = 12.5
    n_parameters = 3
    n_observations = 40

    assert aic(neg_log_likelihood=neg_log_likelihood, n_parameters=n_parameters) == pytest.approx(31.0)
    expected_bic = np.log(float(n_observations)) * n_parameters + 2.0 * neg_log_likelihood
    assert bic(
        neg_log_likelihood=neg_log_likelihood,
        n_parameters=n_parameters,
        n_observations=n_observations,
    ) == pytest.approx(expected_bic)


def test_aicc_adds_small_sample_correction() -> None:
    """AICc should add ``2k(k+1)/(N-k-1)`` to AIC."""

    value = aicc(neg_log_likelihood=12.5, n_parameters=3, n_observations=40)

    assert value == pytest.approx(31.0 + 24.0 / 36.0)


def test_aicc_is_undefined_without_enough_trials() -> None:
    """AICc should be ``None`` when ``N - k - 1`` is not positive."""

    assert aicc(neg_log_likelihood=1.0, n_parameters=4, n_observations=5) is None
    assert aicc(neg_log_likelihood=1.0, n_parameters=4, n_observations=3) is None


def test_bic_rejects_non_positive_observations() -> None:
    """BIC should reject invalid observation count."""

    with pytest.raises(ValueError, match="n_observations must be > 0"):
        bic(neg_log_likelihood=1.0, n_parameters=1, n_observations=0)


def test_score_fit_bundles_all_criteria() -> None:
    """``score_fit`` should agree with the individual helpers."""

    scores = score_fit(neg_log_likelihood=210.0, n_parameters=7, n_observations=400)

    assert scores.aic == pytest.approx(434.0)
    assert scores.aicc == pytest.approx(434.0 + 112.0 / 392.0)
    assert scores.bic == pytest.approx(7.0 * np.log(400.0) + 420.0)
