"""Synthetic confidence datasets drawn from a model's cell probabilities."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np

from conf_model.core.data import ConfidenceData
from conf_model.models.parameters import ParameterLayout, is_valid_parameters
from conf_model.models.probabilities import cell_probabilities
from conf_model.models.variants import ModelVariant, coerce_model_variant

DEFAULT_STIMULUS_LEVELS: tuple[str, str] = ("A", "B")


def simulate_confidence_data(
    model: ModelVariant | str,
    params: Mapping[str, float],
    *,
    n_trials_per_cell: int,
    seed: int | None = None,
    rng: np.random.Generator | None = None,
    rating_levels: Sequence[Any] | None = None,
    stimulus_levels: Sequence[Any] = DEFAULT_STIMULUS_LEVELS,
) -> ConfidenceData:
    """Simulate trials from one model variant.

    Parameters
    ----------
    model : ModelVariant | str
        Generating variant.
    params : Mapping[str, float]
        Complete named parameter set (``d_<level>``, ``theta``,
        ``crit_A_<i>``, ``crit_B_<i>`` and model-specific names). Condition
        levels are taken from the ``d_<level>`` keys in insertion order.
    n_trials_per_cell : int
        Trials per (condition, stimulus) pair.
    seed : int | None, optional
        Seed used when ``rng`` is not given.
    rng : numpy.random.Generator | None, optional
        Random generator; takes precedence over ``seed``.
    rating_levels : Sequence[Any] | None, optional
        Rating labels, lowest confidence first. Defaults to ``1..L``.
    stimulus_levels : Sequence[Any], optional
        Two stimulus labels; the first is category A.

    Returns
    -------
    ConfidenceData
        Encoded dataset with trials in random order.

    Raises
    ------
    ValueError
        If ``n_trials_per_cell`` is not positive or the parameters are invalid
        for ``model``.
    """

    if int(n_trials_per_cell) <= 0:
        raise ValueError("n_trials_per_cell must be > 0")
    variant = coerce_model_variant(model)
    layout = ParameterLayout.infer_from_mapping(variant, params)
    structured = layout.unpack(layout.from_mapping(params))
    if not is_valid_parameters(variant, structured):
        raise ValueError(f"parameters are not valid for model {variant.value!r}")

    levels = tuple(rating_levels) if rating_levels is not None else tuple(range(1, layout.n_ratings + 1))
    if len(levels) != layout.n_ratings:
        raise ValueError(f"rating_levels must have {layout.n_ratings} entries")

    generator = rng if rng is not None else np.random.default_rng(seed)
    table = np.clip(cell_probabilities(variant, structured), 0.0, None)
    n_ratings = layout.n_ratings

    conditions: list[np.ndarray] = []
    stimuli: list[np.ndarray] = []
    responses: list[np.ndarray] = []
    ratings: list[np.ndarray] = []
    for k in range(layout.n_conditions):
        for s_index, stimulus in enumerate((-1, 1)):
            probs = table[k, s_index].reshape(-1)
            counts = generator.multinomial(int(n_trials_per_cell), probs / probs.sum())
            cells = np.repeat(np.arange(probs.size), counts)
            conditions.append(np.full(cells.size, k, dtype=int))
            stimuli.append(np.full(cells.size, stimulus, dtype=int))
            responses.append(np.where(cells // n_ratings == 0, -1, 1))
            ratings.append(cells % n_ratings)

    order = generator.permutation(layout.n_conditions * 2 * int(n_trials_per_cell))
    return ConfidenceData(
        condition_levels=layout.condition_labels,
        stimulus_levels=tuple(stimulus_levels),
        rating_levels=levels,
        condition_index=np.concatenate(conditions)[order],
        stimulus=np.concatenate(stimuli)[order],
        response=np.concatenate(responses)[order],
        rating_index=np.concatenate(ratings)[order],
    )


__all__ = ["DEFAULT_STIMULUS_LEVELS", "simulate_confidence_data"]
