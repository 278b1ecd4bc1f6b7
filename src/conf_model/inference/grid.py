"""Coarse grid search producing ranked starting points for optimization."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from itertools import product
from typing import Any

import numpy as np
from scipy.special import ndtr, ndtri

from conf_model.core.data import ConfidenceData, coerce_confidence_data
from conf_model.models.parameters import ModelParameters, inner_boundary, is_valid_parameters
from conf_model.models.variants import EXTRA_PARAMETER_GRID, ModelVariant, coerce_model_variant

from .likelihood import ConfidenceLikelihood

logger = logging.getLogger(__name__)

MIN_SENSITIVITY = 0.1
_PROXY_GRID_SIZE = 2001
_PROXY_SPAN = 8.0
_EMPIRICAL_WEIGHT = 0.9


@dataclass(frozen=True, slots=True)
class GridResolution:
    """Candidate sets spanning the coarse lattice.

    Parameters
    ----------
    sensitivity_scales : tuple[float, ...], optional
        Multipliers applied to the closed-form sensitivity estimates.
    theta_offsets : tuple[float, ...], optional
        Offsets added to the closed-form decision criterion estimate.
    criterion_spreads : tuple[float, ...], optional
        Multipliers on the distance of confidence criteria from the inner
        boundary.
    extra_values : Mapping[str, tuple[float, ...]], optional
        Candidate values per model-specific parameter name.
    """

    sensitivity_scales: tuple[float, ...] = (0.75, 1.0, 1.25)
    theta_offsets: tuple[float, ...] = (-0.25, 0.0, 0.25)
    criterion_spreads: tuple[float, ...] = (0.75, 1.0, 1.5)
    extra_values: Mapping[str, tuple[float, ...]] = field(
        default_factory=lambda: dict(EXTRA_PARAMETER_GRID)
    )

    def __post_init__(self) -> None:
        for name in ("sensitivity_scales", "theta_offsets", "criterion_spreads"):
            values = tuple(float(value) for value in getattr(self, name))
            if not values:
                raise ValueError(f"{name} must not be empty")
            object.__setattr__(self, name, values)
        if any(value <= 0.0 for value in self.sensitivity_scales):
            raise ValueError("sensitivity_scales must be > 0")
        if any(value <= 0.0 for value in self.criterion_spreads):
            raise ValueError("criterion_spreads must be > 0")

        merged = dict(EXTRA_PARAMETER_GRID)
        for name, values in self.extra_values.items():
            if name not in EXTRA_PARAMETER_GRID:
                raise ValueError(f"unknown model-specific parameter {name!r}")
            candidates = tuple(float(value) for value in values)
            if not candidates:
                raise ValueError(f"extra_values[{name!r}] must not be empty")
            merged[name] = candidates
        object.__setattr__(self, "extra_values", merged)


@dataclass(frozen=True, slots=True)
class GridCandidate:
    """One evaluated lattice point.

    Parameters
    ----------
    parameter_vector : tuple[float, ...]
        Parameter vector in layout order.
    neg_log_likelihood : float
        Negative log-likelihood at ``parameter_vector``.
    """

    parameter_vector: tuple[float, ...]
    neg_log_likelihood: float


def sdt_starting_values(data: ConfidenceData) -> tuple[np.ndarray, float]:
    """Closed-form equal-variance SDT estimates of ``d_k`` and ``theta``.

    Hit and false-alarm rates use the log-linear correction (add 0.5 to each
    response count), so empty or perfect cells stay finite. With
    ``x ~ N(S d / 2, 1)``, ``d = z(H) - z(F)`` and
    ``theta = -(z(H) + z(F)) / 2``, averaged over conditions.

    Returns
    -------
    tuple[numpy.ndarray, float]
        Sensitivities (floored at :data:`MIN_SENSITIVITY`) and the pooled
        decision criterion.
    """

    responses = data.counts().sum(axis=-1).astype(float)
    hit = (responses[:, 1, 1] + 0.5) / (responses[:, 1, :].sum(axis=-1) + 1.0)
    false_alarm = (responses[:, 0, 1] + 0.5) / (responses[:, 0, :].sum(axis=-1) + 1.0)
    z_hit = ndtri(hit)
    z_false_alarm = ndtri(false_alarm)
    sensitivity = np.maximum(z_hit - z_false_alarm, MIN_SENSITIVITY)
    theta = float(-np.mean(z_hit + z_false_alarm) / 2.0)
    return sensitivity, theta


def proxy_criterion_offsets(
    data: ConfidenceData,
    sensitivity: np.ndarray,
    theta: float,
) -> tuple[tuple[np.ndarray, np.ndarray], ...]:
    """Confidence criteria offsets from ``theta`` for the two criteria sets.

    The confidence-variable proxy for one response side is the distribution of
    ``x`` given that response under the starting values, pooled over trials.
    Criteria are the proxy quantiles at (a) the empirical cumulative rating
    proportions, lightly blended with even percentiles so empty rating levels
    still give strictly increasing criteria, and (b) evenly spaced
    percentiles ``i / L``.

    Returns
    -------
    tuple[tuple[numpy.ndarray, numpy.ndarray], ...]
        ``(offsets_a, offsets_b)`` pairs; response A offsets are negative and
        response B offsets positive, both increasing.
    """

    counts = data.counts().astype(float)
    n_ratings = data.n_ratings
    weights = counts.sum(axis=(2, 3))
    mu = np.array([-1.0, 1.0])[None, :] * sensitivity[:, None] / 2.0
    span = max(float(np.max(np.abs(mu - theta))), 0.0) + _PROXY_SPAN
    even = np.arange(1, n_ratings, dtype=float) / float(n_ratings)

    grid_a = np.linspace(theta - span, theta, _PROXY_GRID_SIZE)
    mass_a = np.sum(weights[..., None] * ndtr(grid_a[None, None, :] - mu[..., None]), axis=(0, 1))
    cdf_a = mass_a / mass_a[-1]

    grid_b = np.linspace(theta, theta + span, _PROXY_GRID_SIZE)
    mass_b = np.sum(
        weights[..., None] * (ndtr(mu[..., None] - theta) - ndtr(mu[..., None] - grid_b[None, None, :])),
        axis=(0, 1),
    )
    cdf_b = mass_b / mass_b[-1]

    ratings_a = counts[:, :, 0, :].sum(axis=(0, 1))
    ratings_b = counts[:, :, 1, :].sum(axis=(0, 1))
    # response A: the lowest criterion sits below the highest-confidence rating
    empirical_a = _blend(np.cumsum(ratings_a[::-1])[:-1], ratings_a.sum(), even)
    empirical_b = _blend(np.cumsum(ratings_b)[:-1], ratings_b.sum(), even)

    out: list[tuple[np.ndarray, np.ndarray]] = []
    for probs_a, probs_b in ((empirical_a, empirical_b), (even, even)):
        offsets_a = np.interp(probs_a, cdf_a, grid_a) - theta
        offsets_b = np.interp(probs_b, cdf_b, grid_b) - theta
        out.append((offsets_a, offsets_b))
    return tuple(out)


def _blend(cumulative: np.ndarray, total: float, even: np.ndarray) -> np.ndarray:
    """Blend empirical cumulative proportions with even percentiles."""

    if total <= 0.0:
        return even
    return _EMPIRICAL_WEIGHT * (cumulative / total) + (1.0 - _EMPIRICAL_WEIGHT) * even


def grid_search(
    variant: ModelVariant | str,
    data: Any,
    *,
    resolution: GridResolution | None = None,
) -> tuple[GridCandidate, ...]:
    """Evaluate the likelihood on a coarse lattice and rank the points.

    Parameters
    ----------
    variant : ModelVariant | str
        Model variant.
    data : Any
        Dataset accepted by :func:`~conf_model.core.data.coerce_confidence_data`.
    resolution : GridResolution | None, optional
        Lattice candidate sets. Defaults to :class:`GridResolution`.

    Returns
    -------
    tuple[GridCandidate, ...]
        Valid lattice points sorted ascending by negative log-likelihood;
        ties keep lattice order.

    Raises
    ------
    ValueError
        If no lattice point is valid.
    """

    model = coerce_model_variant(variant)
    encoded = coerce_confidence_data(data)
    grid = resolution if resolution is not None else GridResolution()
    likelihood = ConfidenceLikelihood(model, encoded)
    layout = likelihood.layout

    sensitivity_hat, theta_hat = sdt_starting_values(encoded)
    criteria_sets = proxy_criterion_offsets(encoded, sensitivity_hat, theta_hat)
    extra_names = model.extra_parameter_names
    extra_lattice = tuple(product(*(grid.extra_values[name] for name in extra_names)))

    candidates: list[GridCandidate] = []
    n_points = 0
    for scale, offset, (offsets_a, offsets_b), spread, extra_combo in product(
        grid.sensitivity_scales,
        grid.theta_offsets,
        criteria_sets,
        grid.criterion_spreads,
        extra_lattice,
    ):
        n_points += 1
        sensitivity = np.maximum(sensitivity_hat * scale, MIN_SENSITIVITY)
        theta = theta_hat + offset
        extras = dict(zip(extra_names, extra_combo, strict=True))
        anchor = _criteria_anchor(model, sensitivity, theta, extras)
        params = ModelParameters(
            sensitivity=sensitivity,
            theta=theta,
            criteria_a=anchor + spread * offsets_a,
            criteria_b=anchor + spread * offsets_b,
            extras=extras,
        )
        if not is_valid_parameters(model, params):
            continue
        candidates.append(
            GridCandidate(
                parameter_vector=tuple(float(value) for value in layout.pack(params)),
                neg_log_likelihood=likelihood.evaluate(params),
            )
        )

    logger.debug(
        "grid search %s: %d lattice points, %d valid",
        model.value,
        n_points,
        len(candidates),
    )
    if not candidates:
        raise ValueError(f"grid search for {model.value!r} produced no valid starting points")
    return tuple(sorted(candidates, key=lambda item: item.neg_log_likelihood))


def _criteria_anchor(
    variant: ModelVariant,
    sensitivity: np.ndarray,
    theta: float,
    extras: Mapping[str, float],
) -> float:
    """Point the confidence criteria are spread around."""

    probe = ModelParameters(
        sensitivity=sensitivity,
        theta=theta,
        criteria_a=np.empty(0),
        criteria_b=np.empty(0),
        extras=extras,
    )
    boundary = inner_boundary(variant, probe)
    return theta if boundary is None else boundary


__all__ = [
    "GridCandidate",
    "GridResolution",
    "MIN_SENSITIVITY",
    "grid_search",
    "proxy_criterion_offsets",
    "sdt_starting_values",
]
