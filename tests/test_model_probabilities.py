"""Tests for outcome-cell probabilities of every model variant."""

from __future__ import annotations

import numpy as np
import pytest
from scipy.integrate import trapezoid
from scipy.stats import norm

from conf_model.models import (
    ModelParameters,
    ModelVariant,
    cell_probabilities,
    cell_probability,
    conditional_rating_probabilities,
    response_probabilities,
)

_EXTRAS = {
    ModelVariant.SDT: {},
    ModelVariant.NOISY: {"sigma": 0.8},
    ModelVariant.WEV: {"w": 0.3, "sigma": 0.8},
    ModelVariant.PDA: {"a": 1.2},
    ModelVariant.IG: {"a": 1.2},
    ModelVariant.ITGC: {"m": 1.5},
    ModelVariant.ITGCM: {"m": 1.5},
}


def _params(variant: ModelVariant, **overrides: float) -> ModelParameters:
    """Build one two-condition, three-rating parameter set for ``variant``."""

    extras = dict(_EXTRAS[variant])
    extras.update(overrides)
    return ModelParameters(
        sensitivity=np.array([1.0, 2.0]),
        theta=0.1,
        criteria_a=np.array([-1.0, -0.4]),
        criteria_b=np.array([0.6, 1.2]),
        extras=extras,
    )


@pytest.mark.parametrize("variant", list(ModelVariant))
def test_cell_probabilities_sum_to_one(variant: ModelVariant) -> None:
    """Every (condition, stimulus) row should be a probability distribution."""

    table = cell_probabilities(variant, _params(variant))

    assert table.shape == (2, 2, 2, 3)
    assert np.all(table >= -1e-9)
    np.testing.assert_allclose(table.sum(axis=(2, 3)), 1.0, atol=1e-9)


@pytest.mark.parametrize("variant", list(ModelVariant))
def test_ratings_telescope_to_response_probability(variant: ModelVariant) -> None:
    """Rating masses for one response should add up to ``P(R | S)``."""

    params = _params(variant)
    table = cell_probabilities(variant, params)

    np.testing.assert_allclose(table.sum(axis=-1), response_probabilities(params), atol=1e-12)


def test_response_probabilities_follow_equal_variance_sdt() -> None:
    """``P(R = B | S)`` should be ``Phi(S d / 2 - theta)``."""

    params = _params(ModelVariant.SDT)
    p_response = response_probabilities(params)

    assert p_response[1, 1, 1] == pytest.approx(norm.cdf(1.0 - 0.1))
    assert p_response[1, 0, 1] == pytest.approx(norm.cdf(-1.0 - 0.1))
    assert p_response[0, 1, 0] == pytest.approx(norm.cdf(0.1 - 0.5))


def test_sdt_cells_match_closed_form() -> None:
    """SDT cells should equal normal probabilities of the criteria intervals."""

    params = _params(ModelVariant.SDT)
    table = cell_probabilities(ModelVariant.SDT, params)
    mu = 0.5  # condition 1, stimulus B

    # response B: ratings cover (theta, 0.6], (0.6, 1.2], (1.2, inf)
    assert table[0, 1, 1, 0] == pytest.approx(norm.cdf(0.6 - mu) - norm.cdf(0.1 - mu))
    assert table[0, 1, 1, 1] == pytest.approx(norm.cdf(1.2 - mu) - norm.cdf(0.6 - mu))
    assert table[0, 1, 1, 2] == pytest.approx(norm.sf(1.2 - mu))
    # response A: lowest confidence sits next to theta
    assert table[0, 1, 0, 0] == pytest.approx(norm.cdf(0.1 - mu) - norm.cdf(-0.4 - mu))
    assert table[0, 1, 0, 2] == pytest.approx(norm.cdf(-1.0 - mu))


def test_ig_cells_match_closed_form() -> None:
    """IG ratings should be independent of the response given the stimulus."""

    params = _params(ModelVariant.IG)
    table = cell_probabilities(ModelVariant.IG, params)
    nu = 1.2 * 2.0  # a * d for condition 2, stimulus B
    p_b = norm.cdf(1.0 - 0.1)

    assert table[1, 1, 1, 0] == pytest.approx(p_b * norm.cdf(0.6 - nu))
    assert table[1, 1, 1, 2] == pytest.approx(p_b * norm.sf(1.2 - nu))


def test_itgc_cells_match_truncated_normal() -> None:
    """ITGc should use a normal truncated at theta with mean ``S d m / 2``."""

    params = _params(ModelVariant.ITGC)
    table = cell_probabilities(ModelVariant.ITGC, params)
    nu = 1.0 * 1.5 / 2.0  # condition 1, stimulus B
    p_b = norm.cdf(0.5 - 0.1)
    tail = norm.sf(0.1 - nu)

    expected = p_b * (norm.cdf(0.6 - nu) - norm.cdf(0.1 - nu)) / tail
    assert table[0, 1, 1, 0] == pytest.approx(expected)


def test_itgcm_truncates_at_scaled_theta() -> None:
    """ITGcm should truncate at ``m * theta``."""

    params = _params(ModelVariant.ITGCM)
    table = cell_probabilities(ModelVariant.ITGCM, params)
    nu = -1.0 * 1.5 / 2.0  # condition 1, stimulus A
    cut = 1.5 * 0.1
    p_a = norm.cdf(0.1 + 0.5)

    expected = p_a * norm.cdf(-1.0 - nu) / norm.cdf(cut - nu)
    assert table[0, 0, 0, 2] == pytest.approx(expected)


def test_wev_without_weight_equals_noisy() -> None:
    """WEV with ``w = 0`` reduces to the noisy model."""

    wev = cell_probabilities(ModelVariant.WEV, _params(ModelVariant.WEV, w=0.0))
    noisy = cell_probabilities(ModelVariant.NOISY, _params(ModelVariant.NOISY))

    np.testing.assert_allclose(wev, noisy, atol=1e-10)


def test_noisy_with_small_noise_approaches_sdt() -> None:
    """A nearly noiseless confidence variable should reproduce SDT."""

    noisy = cell_probabilities(ModelVariant.NOISY, _params(ModelVariant.NOISY, sigma=0.01))
    sdt = cell_probabilities(ModelVariant.SDT, _params(ModelVariant.SDT))

    np.testing.assert_allclose(noisy, sdt, atol=5e-3)


def test_pda_matches_direct_quadrature() -> None:
    """PDA cells should match a brute-force integral for one cell."""

    params = _params(ModelVariant.PDA)
    table = cell_probabilities(ModelVariant.PDA, params)
    a, d, theta, mu = 1.2, 2.0, 0.1, 1.0  # condition 2, stimulus B
    x = np.linspace(theta, mu + 10.0, 200001)
    integrand = norm.pdf(x - mu) * norm.cdf((0.6 - (x + d * a)) / np.sqrt(a))

    assert table[1, 1, 1, 0] == pytest.approx(trapezoid(integrand, x), abs=1e-6)


def test_conditional_rating_probabilities_sum_to_one() -> None:
    """Ratings given stimulus and response should form distributions."""

    conditional = conditional_rating_probabilities(ModelVariant.WEV, _params(ModelVariant.WEV))

    np.testing.assert_allclose(conditional.sum(axis=-1), 1.0, atol=1e-9)


def test_cell_probability_indexes_codes() -> None:
    """Single-cell lookup should map codes onto the table axes."""

    params = _params(ModelVariant.SDT)
    table = cell_probabilities(ModelVariant.SDT, params)

    value = cell_probability(
        ModelVariant.SDT,
        params,
        condition_index=1,
        stimulus=-1,
        response=1,
        rating_index=2,
    )
    assert value == pytest.approx(table[1, 0, 1, 2])

    with pytest.raises(ValueError, match="must be -1 or 1"):
        cell_probability(ModelVariant.SDT, params, condition_index=0, stimulus=0, response=1, rating_index=0)
