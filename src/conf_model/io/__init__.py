"""CSV input/output for trials and fit results."""

from .tabular import (
    SUBJECT_COLUMN,
    TRIAL_COLUMNS,
    read_confidence_trials_csv,
    read_fit_rows_csv,
    read_subject_trials_csv,
    write_confidence_trials_csv,
    write_fit_rows_csv,
)

__all__ = [
    "SUBJECT_COLUMN",
    "TRIAL_COLUMNS",
    "read_confidence_trials_csv",
    "read_fit_rows_csv",
    "read_subject_trials_csv",
    "write_confidence_trials_csv",
    "write_fit_rows_csv",
]
