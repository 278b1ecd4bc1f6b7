"""Outcome-cell probabilities for every static confidence model.

Conventions
-----------
Decision evidence is ``x ~ N(S * d_k / 2, 1)`` with stimulus ``S`` in
``{-1, +1}``; the response is ``R = +1`` iff ``x > theta``. Probability tables
have shape ``(K, 2, 2, L)`` indexed by condition, stimulus ``(-1, +1)``,
response ``(-1, +1)`` and rating (lowest confidence first).

Each rating mass is a difference of the cumulative ``F_R(c) = P(R, y <= c)``
evaluated at consecutive padded criteria. Infinite boundaries use the exact
values ``0`` and ``P(R | S)``, so ratings for one response always telescope to
the response probability regardless of quadrature error.

Quadrature
----------
Noisy, WEV and PDA integrate over ``x`` with :func:`scipy.integrate.quad_vec`,
one adaptive call per response side covering all conditions, stimuli and
criteria. Integration runs over ``[min(mu) - 8, theta]`` or
``[theta, max(mu) + 8]``; the excluded tail mass is below ``Phi(-8) ~ 6e-16``,
far under :data:`PROBABILITY_FLOOR`.
"""

from __future__ import annotations

import numpy as np
from scipy.integrate import quad_vec
from scipy.special import log_ndtr, ndtr

from .parameters import ModelParameters, inner_boundary
from .variants import ModelVariant, coerce_model_variant

PROBABILITY_FLOOR = 1e-10
INTEGRATION_HALF_WIDTH = 8.0
INTEGRATION_EPSREL = 1e-6
INTEGRATION_EPSABS = 1e-12

STIMULUS_CODES = np.array([-1.0, 1.0])
RESPONSE_CODES = (-1, 1)

_INV_SQRT_2PI = 1.0 / np.sqrt(2.0 * np.pi)


def evidence_means(params: ModelParameters) -> np.ndarray:
    """Return ``E[x | S, k] = S * d_k / 2`` with shape ``(K, 2)``."""

    return STIMULUS_CODES[None, :] * params.sensitivity[:, None] / 2.0


def response_probabilities(params: ModelParameters) -> np.ndarray:
    """Return ``P(R | S, k)`` with shape ``(K, 2, 2)``."""

    mu = evidence_means(params)
    z = params.theta - mu
    return np.stack((ndtr(z), ndtr(-z)), axis=-1)


def cell_probabilities(variant: ModelVariant | str, params: ModelParameters) -> np.ndarray:
    """Compute the joint probability of every (response, rating) cell.

    Parameters
    ----------
    variant : ModelVariant | str
        Model variant.
    params : ModelParameters
        Parameter set. Validity is not checked here.

    Returns
    -------
    numpy.ndarray
        ``P(R, rating | S, k)`` with shape ``(K, 2, 2, L)``. Entries for a
        fixed ``(k, S)`` sum to one.
    """

    variant = coerce_model_variant(variant)
    p_response = response_probabilities(params)
    table = np.empty((params.n_conditions, 2, 2, params.n_ratings), dtype=float)

    for r_index, response in enumerate(RESPONSE_CODES):
        bounds = _padded_criteria(variant, params, response)
        cumulative = np.empty((params.n_conditions, 2, bounds.size), dtype=float)
        finite = np.isfinite(bounds)
        cumulative[..., bounds == -np.inf] = 0.0
        cumulative[..., bounds == np.inf] = p_response[..., r_index, None]
        if np.any(finite):
            cumulative[..., finite] = _finite_cumulative(
                variant,
                params,
                response,
                bounds[finite],
                p_response[..., r_index],
            )

        masses = np.diff(cumulative, axis=-1)
        if response == -1:
            # response A: confidence grows as y decreases
            masses = masses[..., ::-1]
        table[:, :, r_index, :] = masses
    return table


def cell_probability(
    variant: ModelVariant | str,
    params: ModelParameters,
    *,
    condition_index: int,
    stimulus: int,
    response: int,
    rating_index: int,
) -> float:
    """Return one cell ``P(R, rating | S, k)``.

    ``stimulus`` and ``response`` are codes in ``{-1, +1}``; indices are
    zero-based.
    """

    if stimulus not in (-1, 1) or response not in (-1, 1):
        raise ValueError("stimulus and response must be -1 or 1")
    table = cell_probabilities(variant, params)
    return float(table[condition_index, (stimulus + 1) // 2, (response + 1) // 2, rating_index])


def conditional_rating_probabilities(variant: ModelVariant | str, params: ModelParameters) -> np.ndarray:
    """Return ``P(rating | S, R, k)``; each rating vector sums to one.

    Cells whose response probability underflows to zero are returned as
    zeros.
    """

    table = cell_probabilities(variant, params)
    p_response = response_probabilities(params)[..., None]
    return np.divide(table, p_response, out=np.zeros_like(table), where=p_response > 0.0)


def _padded_criteria(variant: ModelVariant, params: ModelParameters, response: int) -> np.ndarray:
    """Criteria for one response side padded with its outer bounds."""

    boundary = inner_boundary(variant, params)
    if response == -1:
        upper = np.inf if boundary is None else boundary
        return np.concatenate(([-np.inf], params.criteria_a, [upper]))
    lower = -np.inf if boundary is None else boundary
    return np.concatenate(([lower], params.criteria_b, [np.inf]))


def _finite_cumulative(
    variant: ModelVariant,
    params: ModelParameters,
    response: int,
    criteria: np.ndarray,
    p_response: np.ndarray,
) -> np.ndarray:
    """``F_R(c)`` for finite criteria, shape ``(K, 2, n)``."""

    mu = evidence_means(params)[..., None]
    c = criteria[None, None, :]

    if variant == ModelVariant.SDT:
        if response == -1:
            return ndtr(np.minimum(c, params.theta) - mu)
        return ndtr(mu - params.theta) - ndtr(mu - np.maximum(c, params.theta))

    if variant == ModelVariant.IG:
        a = params.extras["a"]
        nu = STIMULUS_CODES[None, :, None] * a * params.sensitivity[:, None, None]
        return p_response[..., None] * ndtr(c - nu)

    if variant == ModelVariant.ITGC or variant == ModelVariant.ITGCM:
        m = params.extras["m"]
        cut = inner_boundary(variant, params)
        nu = STIMULUS_CODES[None, :, None] * params.sensitivity[:, None, None] * m / 2.0
        if response == -1:
            # y | R=-1 is truncated to (-inf, cut]
            ratio = np.exp(log_ndtr(np.minimum(c, cut) - nu) - log_ndtr(cut - nu))
            return p_response[..., None] * ratio
        # y | R=+1 is truncated to [cut, inf)
        ratio = -np.expm1(log_ndtr(nu - np.maximum(c, cut)) - log_ndtr(nu - cut))
        return p_response[..., None] * ratio

    if variant.requires_integration:
        return _integrated_cumulative(variant, params, response, criteria)

    raise ValueError(f"unsupported model variant: {variant!r}")


def _integrated_cumulative(
    variant: ModelVariant,
    params: ModelParameters,
    response: int,
    criteria: np.ndarray,
) -> np.ndarray:
    """``F_R(c) = integral over R's region of phi(x - mu) P(y <= c | x)``."""

    mu = evidence_means(params)
    d = params.sensitivity[:, None]
    c = criteria[None, None, :]

    if variant == ModelVariant.NOISY:
        scale = params.extras["sigma"]

        def conditional_mean(x: float) -> np.ndarray:
            return np.full_like(mu, x)

    elif variant == ModelVariant.WEV:
        w = params.extras["w"]
        scale = params.extras["sigma"]

        def conditional_mean(x: float) -> np.ndarray:
            return np.broadcast_to((1.0 - w) * x + w * d * response, mu.shape)

    elif variant == ModelVariant.PDA:
        a = params.extras["a"]
        scale = float(np.sqrt(a))

        def conditional_mean(x: float) -> np.ndarray:
            return x + STIMULUS_CODES[None, :] * d * a

    else:
        raise ValueError(f"model variant {variant.value!r} does not use integration")

    def integrand(x: float) -> np.ndarray:
        density = _INV_SQRT_2PI * np.exp(-0.5 * (x - mu) ** 2)
        return density[..., None] * ndtr((c - conditional_mean(x)[..., None]) / scale)

    if response == -1:
        lower = float(np.min(mu)) - INTEGRATION_HALF_WIDTH
        upper = min(float(params.theta), float(np.max(mu)) + INTEGRATION_HALF_WIDTH)
    else:
        lower = max(float(params.theta), float(np.min(mu)) - INTEGRATION_HALF_WIDTH)
        upper = float(np.max(mu)) + INTEGRATION_HALF_WIDTH

    if upper <= lower:
        return np.zeros((params.n_conditions, 2, criteria.size), dtype=float)

    result, _ = quad_vec(
        integrand,
        lower,
        upper,
        epsabs=INTEGRATION_EPSABS,
        epsrel=INTEGRATION_EPSREL,
    )
    return np.asarray(result, dtype=float)


__all__ = [
    "INTEGRATION_EPSABS",
    "INTEGRATION_EPSREL",
    "INTEGRATION_HALF_WIDTH",
    "PROBABILITY_FLOOR",
    "RESPONSE_CODES",
    "STIMULUS_CODES",
    "cell_probabilities",
    "cell_probability",
    "conditional_rating_probabilities",
    "evidence_means",
    "response_probabilities",
]
