from __future__ import annotations


class TrainingError(RuntimeError):
    """Raised when a training run cannot start or continue."""


class ConfigurationError(TrainingError, ValueError):
    """Invalid hyperparameters, ratios or input files, detected before training."""
