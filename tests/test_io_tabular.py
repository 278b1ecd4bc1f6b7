"""Tests for tabular CSV I/O helpers."""

from __future__ import annotations

import pytest

from conf_model.core.data import ConfidenceTrial, InputShapeError, coerce_confidence_data
from conf_model.io import (
    read_confidence_trials_csv,
    read_fit_rows_csv,
    read_subject_trials_csv,
    write_confidence_trials_csv,
    write_fit_rows_csv,
)


def _trials() -> tuple[ConfidenceTrial, ...]:
    """Build a small two-condition trial list."""

    return (
        ConfidenceTrial(stimulus=0, rating=1, correct=1, condition=1),
        ConfidenceTrial(stimulus=1, rating=3, correct=1, condition=2),
        ConfidenceTrial(stimulus=1, rating=2, correct=0, condition=1),
        ConfidenceTrial(stimulus=0, rating=3, correct=0, condition=2),
    )


def test_trial_csv_roundtrip(tmp_path) -> None:
    """Trial CSV writer/reader should round-trip numeric fields."""

    path = write_confidence_trials_csv(_trials(), tmp_path / "trials.csv")

    loaded = read_confidence_trials_csv(path)

    assert loaded == _trials()


def test_dataset_csv_roundtrip_preserves_counts(tmp_path) -> None:
    """Writing encoded data and reading it back should keep the count table."""

    data = coerce_confidence_data(_trials())
    path = write_confidence_trials_csv(data, tmp_path / "nested" / "trials.csv")

    restored = coerce_confidence_data(read_confidence_trials_csv(path))

    assert restored.rating_levels == (1, 2, 3)
    assert (restored.counts() == data.counts()).all()


def test_missing_condition_column_means_single_condition(tmp_path) -> None:
    """Files without a condition column should load as one condition."""

    path = tmp_path / "trials.csv"
    path.write_text("stimulus,rating,correct\nA,1,1\nB,2,0\n", encoding="utf-8")

    trials = read_confidence_trials_csv(path)

    assert [trial.condition for trial in trials] == [1, 1]
    assert [trial.stimulus for trial in trials] == ["A", "B"]


def test_trial_csv_rejects_missing_columns_and_bad_correct(tmp_path) -> None:
    """Malformed files should fail with informative messages."""

    missing = tmp_path / "missing.csv"
    missing.write_text("stimulus,rating\n0,1\n", encoding="utf-8")
    with pytest.raises(ValueError, match=r"missing required columns: \['correct'\]"):
        read_confidence_trials_csv(missing)

    bad = tmp_path / "bad.csv"
    bad.write_text("stimulus,rating,correct\n0,1,yes\n", encoding="utf-8")
    with pytest.raises(InputShapeError, match="row 0: correct should be 1 or 0, got 'yes'"):
        read_confidence_trials_csv(bad)


def test_correct_accepts_float_codes_like_in_memory_data(tmp_path) -> None:
    """CSV correctness cells should follow the same 0/1 rule as in-memory columns."""

    path = tmp_path / "trials.csv"
    path.write_text("stimulus,rating,correct\n0,1,1.0\n1,2,0.0\n", encoding="utf-8")

    trials = read_confidence_trials_csv(path)

    assert [trial.correct for trial in trials] == [1, 0]
    assert coerce_confidence_data(trials).n_trials == 2

    bad = tmp_path / "bad.csv"
    bad.write_text("stimulus,rating,correct\n0,1,1\n1,2,0.5\n", encoding="utf-8")
    with pytest.raises(InputShapeError, match="row 1: correct should be 1 or 0"):
        read_confidence_trials_csv(bad)


def test_blank_condition_cells_join_numeric_default_level(tmp_path) -> None:
    """Blank condition cells should share a level with rows labelled ``1``."""

    path = tmp_path / "trials.csv"
    path.write_text(
        "condition,stimulus,rating,correct\n,0,1,1\n1,1,2,0\n2,0,2,1\n2,1,1,0\n",
        encoding="utf-8",
    )

    trials = read_confidence_trials_csv(path)
    data = coerce_confidence_data(trials)

    assert [trial.condition for trial in trials] == [1, 1, 2, 2]
    assert data.condition_levels == (1, 2)


def test_subject_csv_groups_rows_in_order(tmp_path) -> None:
    """Multi-subject files should group trials by subject."""

    path = tmp_path / "study.csv"
    path.write_text(
        "subject,stimulus,rating,correct\ns2,0,1,1\ns1,1,2,0\ns2,1,2,1\n",
        encoding="utf-8",
    )

    grouped = read_subject_trials_csv(path)

    assert list(grouped) == ["s2", "s1"]
    assert len(grouped["s2"]) == 2
    assert grouped["s1"][0].rating == 2


def test_fit_rows_csv_roundtrip(tmp_path) -> None:
    """Fit rows should round-trip numbers, booleans and undefined AICc."""

    rows = [
        {"model": "SDT", "d_1": 1.25, "negLogLik": 12.5, "k": 4, "AICc": None, "converged": True},
        {"model": "IG", "d_1": 1.1, "a": 0.8, "negLogLik": 11.0, "k": 5, "AICc": 40.0, "converged": False},
    ]

    path = write_fit_rows_csv(rows, tmp_path / "fits.csv")
    loaded = read_fit_rows_csv(path)

    assert loaded[0] == {
        "model": "SDT",
        "d_1": 1.25,
        "negLogLik": 12.5,
        "k": 4,
        "AICc": None,
        "converged": True,
        "a": None,
    }
    assert loaded[1]["a"] == pytest.approx(0.8)
    assert loaded[1]["converged"] is False
