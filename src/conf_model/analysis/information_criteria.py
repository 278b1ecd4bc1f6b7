"""Information-criterion utilities for model comparison."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True)
class InformationCriteria:
    """Criteria computed from one maximized likelihood.

    Parameters
    ----------
    aic : float
        Akaike Information Criterion.
    aicc : float | None
        Small-sample corrected AIC; ``None`` when ``N - k - 1 <= 0``.
    bic : float
        Bayesian Information Criterion.
    """

    aic: float
    aicc: float | None
    bic: float


def aic(*, neg_log_likelihood: float, n_parameters: int) -> float:
    """Compute Akaike Information Criterion (AIC).

    Parameters
    ----------
    neg_log_likelihood : float
        Minimized negative log-likelihood.
    n_parameters : int
        Number of free parameters.

    Returns
    -------
    float
        ``2 k + 2 nll``.
    """

    return float(2.0 * float(n_parameters) + 2.0 * float(neg_log_likelihood))


def bic(*, neg_log_likelihood: float, n_parameters: int, n_observations: int) -> float:
    """Compute Bayesian Information Criterion (BIC).

    Parameters
    ----------
    neg_log_likelihood : float
        Minimized negative log-likelihood.
    n_parameters : int
        Number of free parameters.
    n_observations : int
        Number of trials used in fitting.

    Returns
    -------
    float
        ``k ln N + 2 nll``.

    Raises
    ------
    ValueError
        If ``n_observations`` is non-positive.
    """

    if n_observations <= 0:
        raise ValueError("n_observations must be > 0")

    return float(np.log(float(n_observations)) * float(n_parameters) + 2.0 * float(neg_log_likelihood))


def aicc(*, neg_log_likelihood: float, n_parameters: int, n_observations: int) -> float | None:
    """Compute small-sample corrected AIC.

    Parameters
    ----------
    neg_log_likelihood : float
        Minimized negative log-likelihood.
    n_parameters : int
        Number of free parameters.
    n_observations : int
        Number of trials used in fitting.

    Returns
    -------
    float | None
        ``AIC + 2k(k+1) / (N - k - 1)``, or ``None`` when the denominator is
        not positive.

    Raises
    ------
    ValueError
        If ``n_observations`` is non-positive.
    """

    if n_observations <= 0:
        raise ValueError("n_observations must be > 0")

    k = float(n_parameters)
    denominator = float(n_observations) - k - 1.0
    if denominator <= 0.0:
        return None
    return aic(neg_log_likelihood=neg_log_likelihood, n_parameters=n_parameters) + 2.0 * k * (k + 1.0) / denominator


def score_fit(*, neg_log_likelihood: float, n_parameters: int, n_observations: int) -> InformationCriteria:
    """Compute AIC, AICc and BIC together."""

    return InformationCriteria(
        aic=aic(neg_log_likelihood=neg_log_likelihood, n_parameters=n_parameters),
        aicc=aicc(
            neg_log_likelihood=neg_log_likelihood,
            n_parameters=n_parameters,
            n_observations=n_observations,
        ),
        bic=bic(
            neg_log_likelihood=neg_log_likelihood,
            n_parameters=n_parameters,
            n_observations=n_observations,
        ),
    )


__all__ = ["InformationCriteria", "aic", "aicc", "bic", "score_fit"]
