"""Study-level fitting: many subjects, many models, optionally in parallel."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

import numpy as np
from joblib import Parallel, delayed

from conf_model.core.data import coerce_confidence_data
from conf_model.models.variants import ALL_MODELS, ModelVariant, resolve_model_names

from .fitting import ConfidenceFitResult, FitSpec, fit_model

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SubjectFitResult:
    """Fit output for one subject.

    Parameters
    ----------
    subject_id : str
        Subject identifier.
    n_trials : int
        Number of trials in the subject's dataset.
    random_seed : int | None
        Seed the subject's fits used.
    fits : tuple[ConfidenceFitResult, ...]
        One fit per requested model, in request order.
    """

    subject_id: str
    n_trials: int
    random_seed: int | None
    fits: tuple[ConfidenceFitResult, ...]

    def fit_for(self, model: ModelVariant | str) -> ConfidenceFitResult:
        """Return the fit of ``model``."""

        name = model.value if isinstance(model, ModelVariant) else str(model)
        for fit in self.fits:
            if fit.model.value == name:
                return fit
        raise KeyError(f"model {name!r} was not fitted for subject {self.subject_id!r}")


@dataclass(frozen=True, slots=True)
class StudyFitResult:
    """Fit output for a full study.

    Parameters
    ----------
    subject_results : tuple[SubjectFitResult, ...]
        Per-subject fit summaries in input order.
    total_neg_log_likelihood : dict[str, float]
        Summed negative log-likelihood per model across subjects.
    """

    subject_results: tuple[SubjectFitResult, ...]
    total_neg_log_likelihood: dict[str, float]

    @property
    def n_subjects(self) -> int:
        """Return number of fitted subjects."""

        return len(self.subject_results)

    def rows(self) -> list[dict[str, Any]]:
        """Flat fit rows with a leading ``subject`` column."""

        out: list[dict[str, Any]] = []
        for subject in self.subject_results:
            for fit in subject.fits:
                row: dict[str, Any] = {"subject": subject.subject_id}
                row.update(fit.as_row())
                out.append(row)
        return out


def fit_subjects(
    datasets_by_subject: Mapping[str, Any],
    models: ModelVariant | str | Sequence[ModelVariant | str] = ALL_MODELS,
    *,
    fit_spec: FitSpec | None = None,
    n_jobs: int = 1,
) -> StudyFitResult:
    """Fit every requested model to every subject.

    Parameters
    ----------
    datasets_by_subject : Mapping[str, Any]
        Subject identifier to dataset accepted by
        :func:`~conf_model.core.data.coerce_confidence_data`.
    models : ModelVariant | str | Sequence[ModelVariant | str], optional
        Models to fit; ``"all"`` by default.
    fit_spec : FitSpec | None, optional
        Estimator specification shared by all tasks.
    n_jobs : int, optional
        Number of (subject, model) tasks run concurrently via :mod:`joblib`.

    Returns
    -------
    StudyFitResult
        Per-subject fits and per-model totals.

    Notes
    -----
    Each subject receives its own seed spawned from ``fit_spec.random_seed``;
    models within a subject derive distinct streams from that seed. Results
    therefore do not depend on ``n_jobs`` or on task scheduling.
    """

    if not datasets_by_subject:
        raise ValueError("datasets_by_subject must not be empty")
    spec = fit_spec if fit_spec is not None else FitSpec()
    variants = resolve_model_names(models)

    subject_ids = tuple(str(subject_id) for subject_id in datasets_by_subject)
    if len(set(subject_ids)) != len(subject_ids):
        raise ValueError("subject identifiers must be unique")
    encoded = {
        str(subject_id): coerce_confidence_data(data)
        for subject_id, data in datasets_by_subject.items()
    }
    seeds = _subject_seeds(spec.random_seed, len(subject_ids))
    subject_specs = {
        subject_id: replace(spec, random_seed=seed)
        for subject_id, seed in zip(subject_ids, seeds, strict=True)
    }

    tasks = [(subject_id, variant) for subject_id in subject_ids for variant in variants]
    logger.info("fitting %d subject(s) x %d model(s)", len(subject_ids), len(variants))
    if int(n_jobs) == 1:
        fits = [
            fit_model(encoded[subject_id], variant, fit_spec=subject_specs[subject_id])
            for subject_id, variant in tasks
        ]
    else:
        fits = Parallel(n_jobs=int(n_jobs))(
            delayed(fit_model)(encoded[subject_id], variant, fit_spec=subject_specs[subject_id])
            for subject_id, variant in tasks
        )

    by_subject: dict[str, list[ConfidenceFitResult]] = {subject_id: [] for subject_id in subject_ids}
    for (subject_id, _), fit in zip(tasks, fits, strict=True):
        by_subject[subject_id].append(fit)

    subject_results = tuple(
        SubjectFitResult(
            subject_id=subject_id,
            n_trials=encoded[subject_id].n_trials,
            random_seed=subject_specs[subject_id].random_seed,
            fits=tuple(by_subject[subject_id]),
        )
        for subject_id in subject_ids
    )
    totals = {
        variant.value: float(
            sum(result.fit_for(variant).neg_log_likelihood for result in subject_results)
        )
        for variant in variants
    }
    return StudyFitResult(subject_results=subject_results, total_neg_log_likelihood=totals)


def _subject_seeds(random_seed: int | None, n_subjects: int) -> tuple[int | None, ...]:
    """Spawn one independent integer seed per subject."""

    if random_seed is None:
        return tuple(None for _ in range(n_subjects))
    children = np.random.SeedSequence(int(random_seed)).spawn(n_subjects)
    return tuple(int(child.generate_state(1)[0]) for child in children)


__all__ = [
    "StudyFitResult",
    "SubjectFitResult",
    "fit_subjects",
]
