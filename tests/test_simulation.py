"""Tests for synthetic confidence data generation."""

from __future__ import annotations

import numpy as np
import pytest

from conf_model.generators import simulate_confidence_data
from conf_model.models import ModelVariant, ParameterLayout, cell_probabilities

_PARAMS = {
    "d_easy": 2.0,
    "d_hard": 0.7,
    "theta": 0.1,
    "crit_A_1": -1.0,
    "crit_A_2": -0.3,
    "crit_B_1": 0.5,
    "crit_B_2": 1.2,
    "a": 1.3,
}


def test_simulation_shapes_and_labels() -> None:
    """Simulated data should use the requested labels and cell sizes."""

    data = simulate_confidence_data(
        "IG",
        _PARAMS,
        n_trials_per_cell=50,
        seed=4,
        rating_levels=("low", "mid", "high"),
        stimulus_levels=("left", "right"),
    )

    assert data.n_trials == 200
    assert data.condition_levels == ("easy", "hard")
    assert data.stimulus_levels == ("left", "right")
    assert data.rating_levels == ("low", "mid", "high")
    np.testing.assert_array_equal(data.counts().sum(axis=(2, 3)), np.full((2, 2), 50))


def test_simulation_is_reproducible_for_seed() -> None:
    """Same seed should give identical trials; another seed should not."""

    first = simulate_confidence_data("IG", _PARAMS, n_trials_per_cell=80, seed=12)
    second = simulate_confidence_data("IG", _PARAMS, n_trials_per_cell=80, seed=12)
    other = simulate_confidence_data("IG", _PARAMS, n_trials_per_cell=80, seed=13)

    np.testing.assert_array_equal(first.rating_index, second.rating_index)
    np.testing.assert_array_equal(first.response, second.response)
    assert not np.array_equal(first.counts(), other.counts())


def test_simulated_frequencies_follow_cell_probabilities() -> None:
    """Large samples should match the model's outcome probabilities."""

    n = 20000
    data = simulate_confidence_data("IG", _PARAMS, n_trials_per_cell=n, seed=0)
    layout = ParameterLayout.infer_from_mapping(ModelVariant.IG, _PARAMS)
    table = cell_probabilities(ModelVariant.IG, layout.unpack(layout.from_mapping(_PARAMS)))

    np.testing.assert_allclose(data.counts() / n, table, atol=0.015)


def test_simulation_rejects_invalid_inputs() -> None:
    """Non-positive trial counts and invalid parameters should raise."""

    with pytest.raises(ValueError, match="n_trials_per_cell must be > 0"):
        simulate_confidence_data("IG", _PARAMS, n_trials_per_cell=0)

    bad = dict(_PARAMS, a=-1.0)
    with pytest.raises(ValueError, match="not valid for model 'IG'"):
        simulate_confidence_data("IG", bad, n_trials_per_cell=10)
