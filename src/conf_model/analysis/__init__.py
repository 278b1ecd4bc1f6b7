"""Analysis utilities for model comparison."""

from .information_criteria import InformationCriteria, aic, aicc, bic, score_fit

__all__ = ["InformationCriteria", "aic", "aicc", "bic", "score_fit"]
