"""Trial records and the encoded dataset used by the fitting engine.

Input data arrive in several shapes (column mappings, data frames, row
mappings, :class:`ConfidenceTrial` sequences). :func:`coerce_confidence_data`
validates them once and produces :class:`ConfidenceData`, whose integer codes
and count table are all the likelihood engine ever sees.
"""

from __future__ import annotations

import warnings
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

REQUIRED_COLUMNS: tuple[str, ...] = ("stimulus", "rating", "correct")
DEFAULT_CONDITION_LEVEL = "1"


class InputShapeError(ValueError):
    """Raised when a dataset or model request has an unsupported shape."""


@dataclass(frozen=True, slots=True)
class ConfidenceTrial:
    """One observed trial of a binary discrimination task with confidence.

    Parameters
    ----------
    stimulus : Any
        Stimulus category label.
    rating : Any
        Discrete confidence rating label.
    correct : int
        ``1`` for a correct discrimination response, ``0`` otherwise.
    condition : Any, optional
        Difficulty level label. Defaults to a single level.
    """

    stimulus: Any
    rating: Any
    correct: int
    condition: Any = DEFAULT_CONDITION_LEVEL


@dataclass(frozen=True, slots=True)
class ConfidenceData:
    """Validated and encoded confidence dataset.

    Parameters
    ----------
    condition_levels : tuple[Any, ...]
        Ordered difficulty levels (hardest to easiest).
    stimulus_levels : tuple[Any, ...]
        The two stimulus labels. The first is category A (``S = -1``), the
        second is category B (``S = +1``).
    rating_levels : tuple[Any, ...]
        Ordered rating levels, lowest confidence first.
    condition_index : numpy.ndarray
        Per-trial index into ``condition_levels``.
    stimulus : numpy.ndarray
        Per-trial stimulus code in ``{-1, +1}``.
    response : numpy.ndarray
        Per-trial response code in ``{-1, +1}``.
    rating_index : numpy.ndarray
        Per-trial index into ``rating_levels``.

    Raises
    ------
    InputShapeError
        If arrays are empty, misaligned, or hold out-of-range codes.
    """

    condition_levels: tuple[Any, ...]
    stimulus_levels: tuple[Any, ...]
    rating_levels: tuple[Any, ...]
    condition_index: np.ndarray
    stimulus: np.ndarray
    response: np.ndarray
    rating_index: np.ndarray

    def __post_init__(self) -> None:
        if len(self.stimulus_levels) != 2:
            raise InputShapeError("there must be exactly two different values of stimulus")
        if len(self.rating_levels) < 2:
            raise InputShapeError("rating must have at least two levels")
        if len(self.condition_levels) < 1:
            raise InputShapeError("condition must have at least one level")

        n_trials = int(np.size(self.stimulus))
        if n_trials == 0:
            raise InputShapeError("dataset must include at least one trial")
        for name in ("condition_index", "response", "rating_index"):
            if int(np.size(getattr(self, name))) != n_trials:
                raise InputShapeError(f"{name} must have one entry per trial")

        if not np.all(np.isin(self.stimulus, (-1, 1))):
            raise InputShapeError("stimulus codes must be -1 or 1")
        if not np.all(np.isin(self.response, (-1, 1))):
            raise InputShapeError("response codes must be -1 or 1")
        if np.any(self.condition_index < 0) or np.any(self.condition_index >= len(self.condition_levels)):
            raise InputShapeError("condition_index out of range")
        if np.any(self.rating_index < 0) or np.any(self.rating_index >= len(self.rating_levels)):
            raise InputShapeError("rating_index out of range")

    @property
    def n_trials(self) -> int:
        """Return number of trials."""

        return int(np.size(self.stimulus))

    @property
    def n_conditions(self) -> int:
        """Return number of difficulty levels."""

        return len(self.condition_levels)

    @property
    def n_ratings(self) -> int:
        """Return number of rating levels."""

        return len(self.rating_levels)

    @property
    def condition_labels(self) -> tuple[str, ...]:
        """Return condition levels as strings for parameter naming."""

        return tuple(str(level) for level in self.condition_levels)

    @property
    def correct(self) -> np.ndarray:
        """Return per-trial correctness as ``0``/``1`` integers."""

        return (self.stimulus == self.response).astype(int)

    def counts(self) -> np.ndarray:
        """Count trials by condition, stimulus, response and rating.

        Returns
        -------
        numpy.ndarray
            Integer array with shape ``(K, 2, 2, L)``. Stimulus and response
            axes are ordered ``(-1, +1)``.
        """

        table = np.zeros((self.n_conditions, 2, 2, self.n_ratings), dtype=np.int64)
        np.add.at(
            table,
            (
                self.condition_index,
                (self.stimulus + 1) // 2,
                (self.response + 1) // 2,
                self.rating_index,
            ),
            1,
        )
        return table

    def trials(self) -> tuple[ConfidenceTrial, ...]:
        """Decode the dataset back into trial records."""

        out: list[ConfidenceTrial] = []
        for cond, stim, resp, rating in zip(
            self.condition_index, self.stimulus, self.response, self.rating_index
        ):
            out.append(
                ConfidenceTrial(
                    stimulus=self.stimulus_levels[(int(stim) + 1) // 2],
                    rating=self.rating_levels[int(rating)],
                    correct=int(stim == resp),
                    condition=self.condition_levels[int(cond)],
                )
            )
        return tuple(out)


def coerce_confidence_data(
    data: Any,
    *,
    rating_levels: Sequence[Any] | None = None,
    condition_levels: Sequence[Any] | None = None,
    stimulus_levels: Sequence[Any] | None = None,
) -> ConfidenceData:
    """Validate and encode a dataset for fitting.

    Parameters
    ----------
    data : Any
        :class:`ConfidenceData`, a mapping of columns, a data frame indexable
        by column name, or a non-empty sequence of row mappings or
        :class:`ConfidenceTrial` records. Required columns are ``stimulus``,
        ``rating`` and ``correct``; ``condition`` is optional.
    rating_levels : Sequence[Any] | None, optional
        Explicit rating order (lowest confidence first). Inferred by sorting
        the observed values when omitted.
    condition_levels : Sequence[Any] | None, optional
        Explicit condition order (hardest first).
    stimulus_levels : Sequence[Any] | None, optional
        Explicit stimulus order; the first level is category A.

    Returns
    -------
    ConfidenceData
        Encoded dataset.

    Raises
    ------
    InputShapeError
        If the stimulus does not have exactly two values, ``correct`` holds
        values other than 0/1, or columns are missing or inconsistent.
    TypeError
        If ``data`` is not a supported container.
    """

    if isinstance(data, ConfidenceData):
        if rating_levels is None and condition_levels is None and stimulus_levels is None:
            return data
        data = data.trials()

    columns = _columns_from_container(data)
    n_trials = len(columns["stimulus"])
    if n_trials == 0:
        raise InputShapeError("dataset must include at least one trial")
    for name, values in columns.items():
        if len(values) != n_trials:
            raise InputShapeError(f"column {name!r} must have one entry per trial")

    stimuli = columns["stimulus"]
    observed_stimuli = _distinct_sorted(stimuli)
    if len(observed_stimuli) != 2:
        raise InputShapeError("there must be exactly two different values of stimulus")
    stim_levels = _resolve_levels(stimulus_levels, observed_stimuli, field_name="stimulus")
    if len(stim_levels) != 2:
        raise InputShapeError("stimulus_levels must contain exactly two values")

    correct = _coerce_correct(columns["correct"])

    ratings = columns["rating"]
    rate_levels = _resolve_levels(rating_levels, _distinct_sorted(ratings), field_name="rating")
    if len(rate_levels) < 2:
        raise InputShapeError("rating must have at least two levels")

    conditions = columns.get("condition")
    if conditions is None:
        conditions = [DEFAULT_CONDITION_LEVEL] * n_trials
    cond_levels = _resolve_levels(condition_levels, _distinct_sorted(conditions), field_name="condition")

    stimulus_codes = 2 * _encode(stimuli, stim_levels, "stimulus") - 1
    response_codes = np.where(correct == 1, stimulus_codes, -stimulus_codes)

    return ConfidenceData(
        condition_levels=cond_levels,
        stimulus_levels=stim_levels,
        rating_levels=rate_levels,
        condition_index=_encode(conditions, cond_levels, "condition"),
        stimulus=stimulus_codes,
        response=response_codes,
        rating_index=_encode(ratings, rate_levels, "rating"),
    )


def _columns_from_container(data: Any) -> dict[str, list[Any]]:
    """Extract column lists from supported dataset containers."""

    if isinstance(data, Mapping) or hasattr(data, "columns"):
        available = set(data.keys())
        missing = [name for name in REQUIRED_COLUMNS if name not in available]
        if missing:
            raise InputShapeError(f"dataset missing required columns: {missing}")
        out = {name: list(data[name]) for name in REQUIRED_COLUMNS}
        if "condition" in available:
            out["condition"] = list(data["condition"])
        return out

    if isinstance(data, Sequence) and not isinstance(data, (str, bytes, bytearray)):
        rows = tuple(data)
        if not rows:
            raise InputShapeError("dataset must include at least one trial")
        if all(isinstance(row, ConfidenceTrial) for row in rows):
            return {
                "stimulus": [row.stimulus for row in rows],
                "rating": [row.rating for row in rows],
                "correct": [row.correct for row in rows],
                "condition": [row.condition for row in rows],
            }
        if all(isinstance(row, Mapping) for row in rows):
            for index, row in enumerate(rows):
                missing = [name for name in REQUIRED_COLUMNS if name not in row]
                if missing:
                    raise InputShapeError(f"row {index}: missing required columns: {missing}")
            out = {name: [row[name] for row in rows] for name in REQUIRED_COLUMNS}
            if any("condition" in row for row in rows):
                out["condition"] = [row.get("condition", DEFAULT_CONDITION_LEVEL) for row in rows]
            return out
        raise TypeError("row sequences must contain only ConfidenceTrial items or only mappings")

    raise TypeError(
        "data must be ConfidenceData, a column mapping or data frame, "
        "or a non-empty sequence of rows"
    )


def _coerce_correct(values: Sequence[Any]) -> np.ndarray:
    """Require 0/1 correctness codes."""

    out = np.empty(len(values), dtype=np.int64)
    for index, value in enumerate(values):
        if isinstance(value, str) or value not in (0, 1):
            raise InputShapeError("correct should be 1 or 0")
        out[index] = int(value)
    return out


def _distinct_sorted(values: Sequence[Any]) -> tuple[Any, ...]:
    """Return distinct values, sorted when the values are comparable."""

    distinct: list[Any] = []
    seen: set[Any] = set()
    for value in values:
        key = _level_value(value)
        if key not in seen:
            seen.add(key)
            distinct.append(_level_value(value))
    try:
        return tuple(sorted(distinct))
    except TypeError:
        return tuple(distinct)


def _resolve_levels(
    explicit: Sequence[Any] | None,
    observed: tuple[Any, ...],
    *,
    field_name: str,
) -> tuple[Any, ...]:
    """Resolve explicit or inferred level order for one categorical column."""

    if explicit is not None:
        levels = tuple(_level_value(value) for value in explicit)
        if len({_level_value(value) for value in levels}) != len(levels):
            raise InputShapeError(f"{field_name} levels must be unique")
        return levels

    if field_name != "stimulus" and len(observed) > 1 and any(isinstance(value, str) for value in observed):
        warnings.warn(
            f"{field_name} levels inferred by sorting values {list(observed)!r}; "
            f"pass {field_name}_levels to set the order explicitly",
            stacklevel=3,
        )
    return observed


def _encode(values: Sequence[Any], levels: tuple[Any, ...], field_name: str) -> np.ndarray:
    """Encode values as integer indices into ``levels``."""

    lookup = {_level_value(level): index for index, level in enumerate(levels)}
    out = np.empty(len(values), dtype=np.int64)
    for index, value in enumerate(values):
        key = _level_value(value)
        if key not in lookup:
            raise InputShapeError(f"{field_name} value {value!r} is not one of the levels {list(levels)!r}")
        out[index] = lookup[key]
    return out


def _level_value(value: Any) -> Any:
    """Convert numpy scalars to Python scalars so levels compare cleanly."""

    if isinstance(value, np.generic):
        return value.item()
    return value


__all__ = [
    "ConfidenceData",
    "ConfidenceTrial",
    "DEFAULT_CONDITION_LEVEL",
    "InputShapeError",
    "REQUIRED_COLUMNS",
    "coerce_confidence_data",
]
