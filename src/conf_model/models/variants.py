"""The closed set of static confidence model variants.

All variants share sensitivities ``d_k``, a decision criterion ``theta`` and
two ordered sets of confidence criteria. They differ in how the confidence
variable ``y`` relates to the decision evidence ``x`` and in the extra
parameters that relationship needs.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from enum import Enum

from conf_model.core.data import InputShapeError

ALL_MODELS = "all"


class ModelVariant(str, Enum):
    """Static confidence model variants.

    Attributes
    ----------
    SDT
        Signal detection rating model, ``y = x``.
    NOISY
        Gaussian noise model, ``y | x ~ N(x, sigma^2)``.
    WEV
        Weighted evidence and visibility model.
    PDA
        Post-decisional accumulation model.
    IG
        Independent Gaussian model.
    ITGC
        Independent truncated Gaussian model, HMeta-d version.
    ITGCM
        Independent truncated Gaussian model, meta-d' version.
    """

    SDT = "SDT"
    NOISY = "Noisy"
    WEV = "WEV"
    PDA = "PDA"
    IG = "IG"
    ITGC = "ITGc"
    ITGCM = "ITGcm"

    @property
    def extra_parameter_names(self) -> tuple[str, ...]:
        """Names of model-specific parameters in vector order."""

        return _EXTRA_PARAMETERS[self]

    @property
    def n_extra_parameters(self) -> int:
        """Number of model-specific parameters."""

        return len(_EXTRA_PARAMETERS[self])

    @property
    def extra_parameter_bounds(self) -> dict[str, tuple[float, float, bool]]:
        """Validity range ``(low, high, closed)`` per model-specific parameter.

        Closed ranges include both ends; open ranges exclude both.
        """

        return dict(_EXTRA_PARAMETER_BOUNDS[self])

    @property
    def extra_parameter_grid(self) -> dict[str, tuple[float, ...]]:
        """Default grid candidates for this variant's model-specific parameters."""

        return {name: EXTRA_PARAMETER_GRID[name] for name in _EXTRA_PARAMETERS[self]}

    def extras_in_range(self, extras: Mapping[str, float]) -> bool:
        """Whether every model-specific parameter is present and inside its range."""

        for name, (low, high, closed) in _EXTRA_PARAMETER_BOUNDS[self].items():
            if name not in extras:
                return False
            value = float(extras[name])
            if closed and not low <= value <= high:
                return False
            if not closed and not low < value < high:
                return False
        return True

    @property
    def requires_integration(self) -> bool:
        """Whether cell probabilities need quadrature over ``x``."""

        return self in (ModelVariant.NOISY, ModelVariant.WEV, ModelVariant.PDA)

    @property
    def is_truncated(self) -> bool:
        """Whether ``y`` can never contradict the discrimination response."""

        return self in (ModelVariant.SDT, ModelVariant.ITGC, ModelVariant.ITGCM)


_EXTRA_PARAMETERS: dict[ModelVariant, tuple[str, ...]] = {
    ModelVariant.SDT: (),
    ModelVariant.NOISY: ("sigma",),
    ModelVariant.WEV: ("w", "sigma"),
    ModelVariant.PDA: ("a",),
    ModelVariant.IG: ("a",),
    ModelVariant.ITGC: ("m",),
    ModelVariant.ITGCM: ("m",),
}

_POSITIVE = (0.0, math.inf, False)

_EXTRA_PARAMETER_BOUNDS: dict[ModelVariant, dict[str, tuple[float, float, bool]]] = {
    ModelVariant.SDT: {},
    ModelVariant.NOISY: {"sigma": _POSITIVE},
    ModelVariant.WEV: {"w": (0.0, 1.0, True), "sigma": _POSITIVE},
    ModelVariant.PDA: {"a": _POSITIVE},
    ModelVariant.IG: {"a": _POSITIVE},
    ModelVariant.ITGC: {"m": _POSITIVE},
    ModelVariant.ITGCM: {"m": _POSITIVE},
}

# Coarse grid candidates for model-specific parameters.
EXTRA_PARAMETER_GRID: dict[str, tuple[float, ...]] = {
    "sigma": (0.5, 1.0, 1.5, 2.0),
    "w": (0.0, 0.5, 1.0),
    "a": (0.5, 1.0, 1.5, 2.0),
    "m": (0.5, 1.0, 1.5, 2.0),
}


def coerce_model_variant(model: ModelVariant | str) -> ModelVariant:
    """Resolve a model name into :class:`ModelVariant`.

    Raises
    ------
    InputShapeError
        If ``model`` does not name an implemented variant.
    """

    if isinstance(model, ModelVariant):
        return model
    for variant in ModelVariant:
        if variant.value == model:
            return variant
    choices = ", ".join(repr(variant.value) for variant in ModelVariant)
    raise InputShapeError(f"model {model!r} not implemented; choose one of: {choices}")


def resolve_model_names(models: ModelVariant | str | Sequence[ModelVariant | str]) -> tuple[ModelVariant, ...]:
    """Expand a model request into an ordered, de-duplicated variant tuple.

    Parameters
    ----------
    models : ModelVariant | str | Sequence[ModelVariant | str]
        One model name, ``"all"``, or a sequence of names.

    Returns
    -------
    tuple[ModelVariant, ...]
        Requested variants; ``"all"`` yields every variant in declaration
        order.
    """

    if isinstance(models, (str, ModelVariant)):
        if models == ALL_MODELS:
            return tuple(ModelVariant)
        return (coerce_model_variant(models),)

    out: list[ModelVariant] = []
    for name in models:
        for variant in resolve_model_names(name):
            if variant not in out:
                out.append(variant)
    if not out:
        raise InputShapeError("at least one model must be requested")
    return tuple(out)


def variant_position(variant: ModelVariant) -> int:
    """Stable zero-based position of ``variant`` in declaration order."""

    return tuple(ModelVariant).index(variant)


__all__ = [
    "ALL_MODELS",
    "EXTRA_PARAMETER_GRID",
    "ModelVariant",
    "coerce_model_variant",
    "resolve_model_names",
    "variant_position",
]
