"""Parameter vectors, their named layout, and the shared validity predicate."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

import numpy as np

from .variants import ModelVariant, coerce_model_variant


@dataclass(frozen=True, slots=True)
class ModelParameters:
    """Structured view of one parameter vector.

    Parameters
    ----------
    sensitivity : numpy.ndarray
        Sensitivities ``d_1..d_K``.
    theta : float
        Decision criterion.
    criteria_a : numpy.ndarray
        Increasing confidence criteria for response A (``R = -1``).
    criteria_b : numpy.ndarray
        Increasing confidence criteria for response B (``R = +1``).
    extras : Mapping[str, float], optional
        Model-specific parameters by name.
    """

    sensitivity: np.ndarray
    theta: float
    criteria_a: np.ndarray
    criteria_b: np.ndarray
    extras: Mapping[str, float] = field(default_factory=dict)

    @property
    def n_conditions(self) -> int:
        return int(self.sensitivity.size)

    @property
    def n_ratings(self) -> int:
        return int(self.criteria_a.size) + 1


@dataclass(frozen=True, slots=True)
class ParameterLayout:
    """Ordering and naming of a model's parameter vector.

    The vector is ``[d_1..d_K, theta, crit_A_1..crit_A_{L-1},
    crit_B_1..crit_B_{L-1}, extras...]``.

    Parameters
    ----------
    variant : ModelVariant
        Model variant.
    condition_labels : tuple[str, ...]
        Difficulty level labels used in ``d_<level>`` names.
    n_ratings : int
        Number of rating levels ``L``.
    """

    variant: ModelVariant
    condition_labels: tuple[str, ...]
    n_ratings: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "variant", coerce_model_variant(self.variant))
        object.__setattr__(self, "condition_labels", tuple(str(label) for label in self.condition_labels))
        if len(self.condition_labels) < 1:
            raise ValueError("condition_labels must not be empty")
        if self.n_ratings < 2:
            raise ValueError("n_ratings must be >= 2")

    @property
    def n_conditions(self) -> int:
        return len(self.condition_labels)

    @property
    def n_criteria(self) -> int:
        """Number of confidence criteria per response side."""

        return self.n_ratings - 1

    @property
    def n_parameters(self) -> int:
        """Free parameter count ``k = K + 1 + 2(L-1) + extras``."""

        return self.n_conditions + 1 + 2 * self.n_criteria + self.variant.n_extra_parameters

    @property
    def parameter_names(self) -> tuple[str, ...]:
        names = [f"d_{label}" for label in self.condition_labels]
        names.append("theta")
        names.extend(f"crit_A_{index}" for index in range(1, self.n_ratings))
        names.extend(f"crit_B_{index}" for index in range(1, self.n_ratings))
        names.extend(self.variant.extra_parameter_names)
        return tuple(names)

    def unpack(self, vector: Sequence[float] | np.ndarray) -> ModelParameters:
        """Split a flat vector into :class:`ModelParameters`."""

        values = np.asarray(vector, dtype=float)
        if values.shape != (self.n_parameters,):
            raise ValueError(
                f"parameter vector must have length {self.n_parameters}, got shape {values.shape}"
            )
        n_cond, n_crit = self.n_conditions, self.n_criteria
        start_a = n_cond + 1
        start_b = start_a + n_crit
        start_extra = start_b + n_crit
        extras = {
            name: float(value)
            for name, value in zip(self.variant.extra_parameter_names, values[start_extra:], strict=True)
        }
        return ModelParameters(
            sensitivity=values[:n_cond].copy(),
            theta=float(values[n_cond]),
            criteria_a=values[start_a:start_b].copy(),
            criteria_b=values[start_b:start_extra].copy(),
            extras=extras,
        )

    def pack(self, params: ModelParameters) -> np.ndarray:
        """Flatten :class:`ModelParameters` into layout order."""

        if params.n_conditions != self.n_conditions or params.n_ratings != self.n_ratings:
            raise ValueError("parameters do not match layout dimensions")
        missing = [name for name in self.variant.extra_parameter_names if name not in params.extras]
        if missing:
            raise ValueError(f"missing model-specific parameters: {missing}")
        return np.concatenate(
            (
                np.asarray(params.sensitivity, dtype=float),
                [float(params.theta)],
                np.asarray(params.criteria_a, dtype=float),
                np.asarray(params.criteria_b, dtype=float),
                [float(params.extras[name]) for name in self.variant.extra_parameter_names],
            )
        )

    def to_mapping(self, vector: Sequence[float] | np.ndarray) -> dict[str, float]:
        """Name every entry of ``vector``."""

        values = np.asarray(vector, dtype=float)
        if values.shape != (self.n_parameters,):
            raise ValueError(
                f"parameter vector must have length {self.n_parameters}, got shape {values.shape}"
            )
        return {name: float(value) for name, value in zip(self.parameter_names, values, strict=True)}

    def from_mapping(self, params: Mapping[str, float]) -> np.ndarray:
        """Build a vector from a complete name-to-value mapping."""

        missing = [name for name in self.parameter_names if name not in params]
        if missing:
            raise ValueError(f"missing parameters: {missing}")
        unknown = sorted(set(params) - set(self.parameter_names))
        if unknown:
            raise ValueError(f"unknown parameters: {unknown}")
        return np.asarray([float(params[name]) for name in self.parameter_names], dtype=float)

    @classmethod
    def infer_from_mapping(cls, variant: ModelVariant | str, params: Mapping[str, float]) -> ParameterLayout:
        """Infer layout dimensions from parameter names.

        Condition labels follow the insertion order of ``d_<level>`` keys and
        ``L`` is one more than the number of ``crit_A_<i>`` keys.
        """

        labels = tuple(name[2:] for name in params if name.startswith("d_"))
        n_criteria = sum(1 for name in params if name.startswith("crit_A_"))
        return cls(variant=coerce_model_variant(variant), condition_labels=labels, n_ratings=n_criteria + 1)


def inner_boundary(variant: ModelVariant, params: ModelParameters) -> float | None:
    """Return the value separating the two response sides on the ``y`` axis.

    ``None`` means ``y`` is unbounded on both sides, so response A criteria
    and response B criteria are not separated by any fixed point.
    """

    if variant == ModelVariant.SDT or variant == ModelVariant.ITGC:
        return float(params.theta)
    if variant == ModelVariant.ITGCM:
        return float(params.extras["m"]) * float(params.theta)
    return None


def is_valid_parameters(variant: ModelVariant | str, params: ModelParameters) -> bool:
    """Shared validity predicate for lattice points and optimizer proposals.

    A parameter set is valid when every value is finite, sensitivities are
    positive, both criteria sets are strictly increasing, truncated models keep
    response A criteria below and response B criteria above the truncation
    point, and model-specific parameters lie in their ranges.
    """

    variant = coerce_model_variant(variant)
    values = np.concatenate(
        (
            params.sensitivity,
            [params.theta],
            params.criteria_a,
            params.criteria_b,
            list(params.extras.values()),
        )
    )
    if not np.all(np.isfinite(values)):
        return False
    if np.any(params.sensitivity <= 0.0):
        return False
    if np.any(np.diff(params.criteria_a) <= 0.0) or np.any(np.diff(params.criteria_b) <= 0.0):
        return False

    if not variant.extras_in_range(params.extras):
        return False

    boundary = inner_boundary(variant, params)
    if boundary is not None:
        if params.criteria_a[-1] >= boundary or params.criteria_b[0] <= boundary:
            return False
    return True


__all__ = [
    "ModelParameters",
    "ParameterLayout",
    "inner_boundary",
    "is_valid_parameters",
]
