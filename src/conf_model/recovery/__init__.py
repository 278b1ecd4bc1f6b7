"""Simulate-and-fit recovery workflows."""

from .parameter import ParameterRecoveryCase, ParameterRecoveryResult, run_parameter_recovery

__all__ = ["ParameterRecoveryCase", "ParameterRecoveryResult", "run_parameter_recovery"]
