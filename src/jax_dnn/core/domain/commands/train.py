from __future__ import annotations

from dataclasses import dataclass, field

from jax_dnn.core.domain.errors.training import ConfigurationError
from jax_dnn.core.domain.utils.error_measures import ErrorMeasure


@dataclass(frozen=True)
class TrainConfig:
    """Hyperparameters read by the network and the training loop.

    Built once before training. The loop derives the per-batch rate as
    `learning_rate / batch_size`; this object is never mutated.
    """

    learning_rate: float = 0.1
    # Spread of the normal distribution used when initializing weights
    variance: float = 0.01
    min_valid_accuracy: float = 0.5
    max_epoch: int = 100000
    # Patience window for the out-of-sample non-increase test
    n_non_inc_epoch: int = 6

    def validate(self) -> None:
        if not self.learning_rate > 0:
            raise ConfigurationError(f"learning_rate must be > 0, got {self.learning_rate}")
        if not self.variance > 0:
            raise ConfigurationError(f"variance must be > 0, got {self.variance}")
        if not 0.0 <= self.min_valid_accuracy <= 1.0:
            raise ConfigurationError(
                f"min_valid_accuracy must be in [0, 1], got {self.min_valid_accuracy}"
            )
        if self.max_epoch < 1:
            raise ConfigurationError(f"max_epoch must be >= 1, got {self.max_epoch}")
        if self.n_non_inc_epoch < 1:
            raise ConfigurationError(f"n_non_inc_epoch must be >= 1, got {self.n_non_inc_epoch}")


@dataclass(frozen=True)
class TrainCommand:
    """Intent to train a network on a train/valid pair."""

    config: TrainConfig = field(default_factory=TrainConfig)
    batch_size: int = 32
    error_measure: ErrorMeasure = ErrorMeasure.CROSS_ENTROPY

    # Chunk size for the full-set evaluation passes; bounds transfer size only.
    eval_batch_size: int = 2048

    def validate(self) -> None:
        self.config.validate()
        if self.batch_size < 1:
            raise ConfigurationError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.eval_batch_size < 1:
            raise ConfigurationError(f"eval_batch_size must be >= 1, got {self.eval_batch_size}")
