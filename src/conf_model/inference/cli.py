"""CLI helpers for config-driven model fitting."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Sequence

from conf_model.core import load_config_mapping
from conf_model.io.tabular import (
    read_confidence_trials_csv,
    read_subject_trials_csv,
    write_fit_rows_csv,
)

from .config import fit_dataset_from_config, fit_study_from_config
from .fitting import ConfidenceFitResult, fit_result_rows
from .model_selection import SELECTION_CRITERIA, compare_fitted_models


def run_fit_cli(argv: Sequence[str] | None = None) -> int:
    """Run config-driven fitting from tabular CSV input.

    Parameters
    ----------
    argv : Sequence[str] | None, optional
        CLI argument list. When ``None``, process arguments are used.

    Returns
    -------
    int
        Exit code (`0` on success).
    """

    parser = argparse.ArgumentParser(description="Fit static confidence models from CSV and config.")
    parser.add_argument("--config", required=True, help="Path to fitting JSON or YAML config.")
    parser.add_argument("--input-csv", required=True, help="Path to input trial CSV file.")
    parser.add_argument(
        "--subject-column",
        default=None,
        help="Column identifying subjects; fits every subject separately when given.",
    )
    parser.add_argument(
        "--criterion",
        choices=SELECTION_CRITERIA,
        default="bic",
        help="Criterion used to select the best model in the summary.",
    )
    parser.add_argument(
        "--output-dir",
        default=".",
        help="Directory for output CSV and summary JSON.",
    )
    parser.add_argument(
        "--prefix",
        default="fit",
        help="Output filename prefix.",
    )
    parser.add_argument(
        "--log-level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        default="WARNING",
        help="Logging level.",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(level=getattr(logging, str(args.log_level)), format="%(name)s: %(message)s")

    config = load_config_mapping(args.config)
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    fits_path = output_dir / f"{str(args.prefix)}_fits.csv"
    summary_path = output_dir / f"{str(args.prefix)}_summary.json"

    if args.subject_column is None:
        results = fit_dataset_from_config(read_confidence_trials_csv(args.input_csv), config=config)
        write_fit_rows_csv(fit_result_rows(results), fits_path)
        summary = {
            "level": "dataset",
            **_selection_summary(results, criterion=str(args.criterion)),
        }
    else:
        datasets = read_subject_trials_csv(args.input_csv, subject_column=str(args.subject_column))
        study = fit_study_from_config(datasets, config=config)
        write_fit_rows_csv(study.rows(), fits_path)
        summary = {
            "level": "study",
            "n_subjects": study.n_subjects,
            "total_neg_log_likelihood": study.total_neg_log_likelihood,
            "subjects": {
                subject.subject_id: _selection_summary(subject.fits, criterion=str(args.criterion))
                for subject in study.subject_results
            },
        }

    summary_path.write_text(json.dumps(summary, indent=2, sort_keys=True), encoding="utf-8")

    print(f"Fit complete: level={summary['level']}")
    print(f"Fits CSV: {fits_path}")
    print(f"Summary JSON: {summary_path}")
    return 0


def _selection_summary(results: Sequence[ConfidenceFitResult], *, criterion: str) -> dict[str, Any]:
    """Build a compact JSON-serializable comparison summary."""

    comparison = compare_fitted_models(results, criterion=criterion)  # type: ignore[arg-type]
    return {
        "criterion": criterion,
        "n_observations": comparison.n_observations,
        "selected_model": comparison.selected_model,
        "ranking": list(comparison.ranking()),
        "models": {
            item.model: {
                "negLogLik": item.neg_log_likelihood,
                "k": item.n_parameters,
                "score": item.score,
                "delta": item.delta,
                "converged": item.fit_result.converged,
            }
            for item in comparison.comparisons
        },
    }


def main() -> None:
    """Execute fit CLI and exit with returned code."""

    raise SystemExit(run_fit_cli())


if __name__ == "__main__":
    main()


__all__ = ["main", "run_fit_cli"]
