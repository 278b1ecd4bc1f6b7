"""Tabular CSV I/O helpers for confidence datasets and fit results.

Trial CSV files carry one row per trial with columns ``stimulus``, ``rating``
and ``correct`` plus optional ``condition`` and ``subject`` columns. Numeric
cells are parsed back into numbers so that rating and condition levels sort
numerically after a round trip.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from conf_model.core.data import (
    DEFAULT_CONDITION_LEVEL,
    REQUIRED_COLUMNS,
    ConfidenceData,
    ConfidenceTrial,
    InputShapeError,
)

TRIAL_COLUMNS: tuple[str, ...] = ("condition", "stimulus", "rating", "correct")
SUBJECT_COLUMN = "subject"


def write_confidence_trials_csv(
    data: ConfidenceData | Iterable[ConfidenceTrial],
    path: str | Path,
) -> Path:
    """Write confidence trials to a CSV file.

    Parameters
    ----------
    data : ConfidenceData | Iterable[ConfidenceTrial]
        Dataset or trial records to write.
    path : str | pathlib.Path
        Destination CSV path.

    Returns
    -------
    pathlib.Path
        Output CSV path.

    Raises
    ------
    ValueError
        If no trials are provided.
    """

    trials = data.trials() if isinstance(data, ConfidenceData) else tuple(data)
    if not trials:
        raise ValueError("trials must not be empty")

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=list(TRIAL_COLUMNS))
        writer.writeheader()
        for trial in trials:
            writer.writerow(
                {
                    "condition": trial.condition,
                    "stimulus": trial.stimulus,
                    "rating": trial.rating,
                    "correct": int(trial.correct),
                }
            )
    return output_path


def read_confidence_trials_csv(path: str | Path) -> tuple[ConfidenceTrial, ...]:
    """Read confidence trials from CSV.

    Parameters
    ----------
    path : str | pathlib.Path
        Input CSV path. A missing ``condition`` column means one condition.

    Returns
    -------
    tuple[ConfidenceTrial, ...]
        Parsed trial records in file order.

    Raises
    ------
    ValueError
        If required columns are missing or ``correct`` is not an integer.
    """

    input_path = Path(path)
    with input_path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        _require_columns(reader.fieldnames, required=REQUIRED_COLUMNS)
        return tuple(
            _trial_from_csv_mapping(raw, row_index=index) for index, raw in enumerate(reader)
        )


def read_subject_trials_csv(
    path: str | Path,
    *,
    subject_column: str = SUBJECT_COLUMN,
) -> dict[str, tuple[ConfidenceTrial, ...]]:
    """Read a multi-subject trial CSV grouped by subject.

    Returns
    -------
    dict[str, tuple[ConfidenceTrial, ...]]
        Subject identifier to trials, subjects in order of first appearance.
    """

    input_path = Path(path)
    grouped: dict[str, list[ConfidenceTrial]] = {}
    with input_path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        _require_columns(reader.fieldnames, required=(subject_column, *REQUIRED_COLUMNS))
        for index, raw in enumerate(reader):
            subject_id = str(raw[subject_column]).strip()
            if not subject_id:
                raise ValueError(f"row {index}: {subject_column!r} must not be empty")
            grouped.setdefault(subject_id, []).append(_trial_from_csv_mapping(raw, row_index=index))
    return {subject_id: tuple(trials) for subject_id, trials in grouped.items()}


def write_fit_rows_csv(rows: Sequence[Mapping[str, Any]], path: str | Path) -> Path:
    """Write fit result rows to CSV.

    Columns are the union of row keys in order of first appearance; missing
    values (including an undefined AICc) are written as empty cells.
    """

    if not rows:
        raise ValueError("rows must not be empty")

    fieldnames: list[str] = []
    for row in rows:
        for key in row:
            if key not in fieldnames:
                fieldnames.append(str(key))

    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=fieldnames, restval="")
        writer.writeheader()
        for row in rows:
            writer.writerow({key: ("" if value is None else value) for key, value in row.items()})
    return output_path


def read_fit_rows_csv(path: str | Path) -> tuple[dict[str, Any], ...]:
    """Read fit rows written by :func:`write_fit_rows_csv`.

    Numeric cells become numbers, ``True``/``False`` become booleans and empty
    cells become ``None``.
    """

    input_path = Path(path)
    with input_path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        _require_columns(reader.fieldnames, required=("model", "negLogLik"))
        return tuple(
            {key: _parse_fit_cell(value) for key, value in raw.items()} for raw in reader
        )


def _trial_from_csv_mapping(raw: Mapping[str, Any], *, row_index: int) -> ConfidenceTrial:
    """Parse one CSV row into :class:`ConfidenceTrial`."""

    correct = _parse_scalar(raw["correct"])
    if isinstance(correct, str) or correct not in (0, 1):
        raise InputShapeError(f"row {row_index}: correct should be 1 or 0, got {str(raw['correct']).strip()!r}")

    # Blank cells join the default level, parsed like any other cell.
    condition = raw.get("condition")
    if condition is None or str(condition).strip() == "":
        condition = DEFAULT_CONDITION_LEVEL

    return ConfidenceTrial(
        stimulus=_parse_scalar(raw["stimulus"]),
        rating=_parse_scalar(raw["rating"]),
        correct=int(correct),
        condition=_parse_scalar(condition),
    )


def _parse_scalar(value: Any) -> Any:
    """Return ``value`` as int or float when it reads as one, else stripped text."""

    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return text


def _parse_fit_cell(value: Any) -> Any:
    text = "" if value is None else str(value).strip()
    if text == "":
        return None
    if text in {"True", "False"}:
        return text == "True"
    return _parse_scalar(text)


def _require_columns(fieldnames: Sequence[str] | None, *, required: Sequence[str]) -> None:
    """Validate that required CSV columns are present."""

    if fieldnames is None:
        raise ValueError("CSV file must include a header row")
    missing = [name for name in required if name not in fieldnames]
    if missing:
        raise ValueError(f"CSV file is missing required columns: {missing}")


__all__ = [
    "SUBJECT_COLUMN",
    "TRIAL_COLUMNS",
    "read_confidence_trials_csv",
    "read_fit_rows_csv",
    "read_subject_trials_csv",
    "write_confidence_trials_csv",
    "write_fit_rows_csv",
]
