"""Tests for reusable fitting helpers."""

from __future__ import annotations

import pytest

from conf_model.core.data import InputShapeError
from conf_model.generators import simulate_confidence_data
from conf_model.inference import FitSpec, GridResolution, fit_confidence_model, fit_model, fit_result_rows

_SDT_PARAMS = {
    "d_1": 0.8,
    "d_2": 1.8,
    "theta": 0.1,
    "crit_A_1": -1.1,
    "crit_A_2": -0.5,
    "crit_B_1": 0.6,
    "crit_B_2": 1.3,
}

_FAST_GRID = GridResolution(
    sensitivity_scales=(1.0,),
    theta_offsets=(0.0,),
    criterion_spreads=(1.0,),
    extra_values={"sigma": (1.0,), "w": (0.3,), "a": (1.0,), "m": (1.0,)},
)


def _data(n_trials_per_cell: int = 1000):
    """Simulate a two-condition, three-rating SDT dataset."""

    return simulate_confidence_data("SDT", _SDT_PARAMS, n_trials_per_cell=n_trials_per_cell, seed=2024)


@pytest.mark.filterwarnings("ignore::UserWarning")
def test_fit_model_recovers_sdt_parameters() -> None:
    """SDT estimates should land near the generating values."""

    result = fit_model(_data(), "SDT", fit_spec=FitSpec(n_inits=3, n_restart=3))

    assert result.parameter_names == tuple(_SDT_PARAMS)
    for name, true_value in _SDT_PARAMS.items():
        assert result.params[name] == pytest.approx(true_value, abs=0.3)
    assert result.n_parameters == 7
    assert result.n_observations == 4000


@pytest.mark.filterwarnings("ignore::UserWarning")
def test_fit_result_row_has_flat_columns() -> None:
    """Rows should carry model, parameters, likelihood, counts and criteria."""

    result = fit_model(_data(200), "SDT", fit_spec=FitSpec(n_inits=1, n_restart=2, grid=_FAST_GRID))
    row = result.as_row()

    assert list(row) == ["model", *_SDT_PARAMS, "negLogLik", "k", "N", "AIC", "AICc", "BIC", "converged"]
    assert row["model"] == "SDT"
    assert row["k"] == 7
    assert row["N"] == 800
    assert row["AIC"] == pytest.approx(2.0 * 7 + 2.0 * row["negLogLik"])
    assert row["AICc"] > row["AIC"]
    assert fit_result_rows([result]) == [row]


@pytest.mark.filterwarnings("ignore::UserWarning")
def test_bic_prefers_sdt_over_wev_on_sdt_data() -> None:
    """Two extra WEV parameters should not pay for themselves on SDT data."""

    spec = FitSpec(n_inits=1, n_restart=1, max_iterations=100, grid=_FAST_GRID)

    sdt, wev = fit_confidence_model(_data(500), ["SDT", "WEV"], n_inits=1, n_restart=1, fit_spec=spec)

    assert sdt.model.value == "SDT"
    assert wev.model.value == "WEV"
    assert wev.n_parameters == sdt.n_parameters + 2
    assert wev.bic > sdt.bic
    assert 0.0 <= wev.params["w"] <= 1.0
    assert wev.params["sigma"] > 0.0


@pytest.mark.filterwarnings("ignore::UserWarning")
def test_fit_confidence_model_is_independent_of_model_set_and_jobs() -> None:
    """Each model's result should not depend on its companions or ``n_jobs``."""

    data = _data(200)
    spec = FitSpec(grid=_FAST_GRID)

    alone = fit_confidence_model(data, "IG", n_inits=1, n_restart=2, fit_spec=spec)
    together = fit_confidence_model(data, ["SDT", "IG"], n_inits=1, n_restart=2, fit_spec=spec, n_jobs=2)

    assert len(alone) == 1
    assert [result.model.value for result in together] == ["SDT", "IG"]
    assert together[1].parameter_vector == alone[0].parameter_vector
    assert together[1].neg_log_likelihood == alone[0].neg_log_likelihood


def test_fit_confidence_model_rejects_unknown_model() -> None:
    """Unknown model names should be reported before fitting."""

    with pytest.raises(InputShapeError, match="not implemented"):
        fit_confidence_model(_data(50), ["SDT", "DDM"])


def test_fit_spec_rejects_invalid_counts() -> None:
    """Specification fields should be validated on construction."""

    with pytest.raises(ValueError, match="n_inits must be >= 1"):
        FitSpec(n_inits=0)
    with pytest.raises(ValueError, match="random_seed must be >= 0"):
        FitSpec(random_seed=-3)


_SCENARIO_PARAMS = {
    "d_1": 1.0,
    "d_2": 2.0,
    "theta": 0.0,
    "crit_A_1": -1.5,
    "crit_A_2": -1.0,
    "crit_A_3": -0.5,
    "crit_B_1": 0.5,
    "crit_B_2": 1.0,
    "crit_B_3": 1.5,
}


@pytest.mark.slow
@pytest.mark.filterwarnings("ignore::UserWarning")
def test_small_sdt_dataset_recovers_sdt_and_shrinks_wev_to_sdt() -> None:
    """On 200 SDT trials, SDT is recovered and WEV collapses to ``w`` near 0 without a better BIC."""

    data = simulate_confidence_data("SDT", _SCENARIO_PARAMS, n_trials_per_cell=50, seed=1)
    assert data.n_trials == 200
    assert len(data.rating_levels) == 4

    sdt, wev = fit_confidence_model(data, ["SDT", "WEV"], n_inits=5, n_restart=4, random_seed=1)

    assert sdt.parameter_names == tuple(_SCENARIO_PARAMS)
    for name, true_value in _SCENARIO_PARAMS.items():
        assert sdt.params[name] == pytest.approx(true_value, abs=0.3)
    assert wev.params["w"] < 0.15
    assert wev.bic >= sdt.bic
