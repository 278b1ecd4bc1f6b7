"""Dataset negative log-likelihood for a model and parameter vector."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np

from conf_model.core.data import ConfidenceData, coerce_confidence_data
from conf_model.models.parameters import ModelParameters, ParameterLayout, is_valid_parameters
from conf_model.models.probabilities import PROBABILITY_FLOOR, cell_probabilities
from conf_model.models.variants import ModelVariant, coerce_model_variant

INVALID_PARAMETER_PENALTY = 1e10

# Probabilities below this are geometry violations, not quadrature noise.
_NEGATIVE_PROBABILITY_TOLERANCE = 1e-8


def layout_for_data(variant: ModelVariant | str, data: ConfidenceData) -> ParameterLayout:
    """Return the parameter layout implied by ``data`` for ``variant``."""

    return ParameterLayout(
        variant=coerce_model_variant(variant),
        condition_labels=data.condition_labels,
        n_ratings=data.n_ratings,
    )


def negative_log_likelihood_from_counts(
    variant: ModelVariant | str,
    params: ModelParameters,
    counts: np.ndarray,
) -> float:
    """Negative log-likelihood of a ``(K, 2, 2, L)`` count table.

    Returns :data:`INVALID_PARAMETER_PENALTY` for parameters that fail
    :func:`~conf_model.models.parameters.is_valid_parameters` or yield a
    malformed probability table. Never raises for numerical degeneracy.
    """

    variant = coerce_model_variant(variant)
    if not is_valid_parameters(variant, params):
        return INVALID_PARAMETER_PENALTY

    table = cell_probabilities(variant, params)
    if table.shape != counts.shape:
        raise ValueError(f"count table shape {counts.shape} does not match model shape {table.shape}")
    if not np.all(np.isfinite(table)) or np.any(table < -_NEGATIVE_PROBABILITY_TOLERANCE):
        return INVALID_PARAMETER_PENALTY

    floored = np.maximum(table, PROBABILITY_FLOOR)
    value = float(-np.sum(counts * np.log(floored)))
    if not np.isfinite(value):
        return INVALID_PARAMETER_PENALTY
    return max(value, 0.0)


def negative_log_likelihood(
    variant: ModelVariant | str,
    vector: Sequence[float] | np.ndarray,
    data: Any,
    layout: ParameterLayout | None = None,
) -> float:
    """Sum of ``-log P(R, rating | S, k)`` over all trials.

    Parameters
    ----------
    variant : ModelVariant | str
        Model variant.
    vector : Sequence[float] | numpy.ndarray
        Parameter vector in layout order.
    data : Any
        Dataset accepted by :func:`~conf_model.core.data.coerce_confidence_data`.
    layout : ParameterLayout | None, optional
        Layout; inferred from ``data`` when omitted.

    Returns
    -------
    float
        Non-negative negative log-likelihood, or the invalid-parameter penalty.
    """

    encoded = coerce_confidence_data(data)
    resolved = layout if layout is not None else layout_for_data(variant, encoded)
    return ConfidenceLikelihood(variant, encoded, layout=resolved)(vector)


class ConfidenceLikelihood:
    """Objective binding a model variant to one dataset's count table.

    Parameters
    ----------
    variant : ModelVariant | str
        Model variant.
    data : ConfidenceData
        Encoded dataset.
    layout : ParameterLayout | None, optional
        Parameter layout; inferred from ``data`` when omitted.

    Notes
    -----
    Instances are callables over flat parameter vectors, suitable as
    optimizer objectives. They count evaluations in :attr:`n_evaluations`.
    """

    def __init__(
        self,
        variant: ModelVariant | str,
        data: ConfidenceData,
        *,
        layout: ParameterLayout | None = None,
    ) -> None:
        self._variant = coerce_model_variant(variant)
        self._layout = layout if layout is not None else layout_for_data(self._variant, data)
        if self._layout.variant != self._variant:
            raise ValueError("layout variant does not match likelihood variant")
        if self._layout.n_conditions != data.n_conditions or self._layout.n_ratings != data.n_ratings:
            raise ValueError("layout dimensions do not match the dataset")
        self._counts = data.counts()
        self._n_observations = data.n_trials
        self.n_evaluations = 0

    @property
    def variant(self) -> ModelVariant:
        return self._variant

    @property
    def layout(self) -> ParameterLayout:
        return self._layout

    @property
    def n_observations(self) -> int:
        return self._n_observations

    def __call__(self, vector: Sequence[float] | np.ndarray) -> float:
        params = self._layout.unpack(vector)
        return self.evaluate(params)

    def evaluate(self, params: ModelParameters) -> float:
        """Evaluate the objective for structured parameters."""

        self.n_evaluations += 1
        return negative_log_likelihood_from_counts(self._variant, params, self._counts)


__all__ = [
    "ConfidenceLikelihood",
    "INVALID_PARAMETER_PENALTY",
    "layout_for_data",
    "negative_log_likelihood",
    "negative_log_likelihood_from_counts",
]
