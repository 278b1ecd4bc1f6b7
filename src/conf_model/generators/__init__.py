"""Synthetic data generators."""

from .simulation import DEFAULT_STIMULUS_LEVELS, simulate_confidence_data

__all__ = ["DEFAULT_STIMULUS_LEVELS", "simulate_confidence_data"]
