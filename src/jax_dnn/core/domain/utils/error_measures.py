from __future__ import annotations

import enum

import jax
import jax.numpy as jnp
import optax


class ErrorMeasure(enum.Enum):
    CROSS_ENTROPY = "cross_entropy"  # classification, softmax output
    L2_ERROR = "l2_error"  # regression, linear output

    @classmethod
    def from_type(cls, task_type: int) -> ErrorMeasure:
        """Map the CLI `--type` selector (0 classification, 1 regression)."""

        if task_type == 0:
            return cls.CROSS_ENTROPY
        if task_type == 1:
            return cls.L2_ERROR
        raise ValueError(f"--type must be 0 (classification) or 1 (regression), got {task_type}")

    @property
    def output_kind(self) -> str:
        return "softmax" if self is ErrorMeasure.CROSS_ENTROPY else "linear"


def _as_matrix(targets: jax.Array, like: jax.Array) -> jax.Array:
    return jnp.reshape(targets, (like.shape[0], -1)).astype(like.dtype)


class ErrorEvaluator:
    """Error terms and zero/one counts for one error measure."""

    def __init__(self, measure: ErrorMeasure = ErrorMeasure.CROSS_ENTROPY) -> None:
        self._measure = measure

    @property
    def measure(self) -> ErrorMeasure:
        return self._measure

    def error(self, targets: jax.Array, predictions: jax.Array) -> jax.Array:
        """Gradient of the summed loss w.r.t. the output pre-activation."""

        predictions = jnp.asarray(predictions)
        if self._measure is ErrorMeasure.CROSS_ENTROPY:
            one_hot = jax.nn.one_hot(jnp.asarray(targets), predictions.shape[-1], dtype=predictions.dtype)
            return predictions - one_hot
        return predictions - _as_matrix(jnp.asarray(targets), predictions)

    def zero_one(self, predictions: jax.Array, targets: jax.Array) -> int:
        """Number of mis-classified rows."""

        predictions = jnp.asarray(predictions)
        targets = jnp.asarray(targets)
        if self._measure is ErrorMeasure.CROSS_ENTROPY:
            wrong = jnp.argmax(predictions, axis=-1) != targets
        else:
            predicted_on = predictions >= 0.5
            target_on = _as_matrix(targets, predictions) >= 0.5
            wrong = jnp.any(predicted_on != target_on, axis=-1)
        return int(jnp.sum(wrong))

    def loss(self, targets: jax.Array, predictions: jax.Array) -> float:
        """Mean loss, for metrics only."""

        predictions = jnp.asarray(predictions)
        if self._measure is ErrorMeasure.CROSS_ENTROPY:
            log_probs = jnp.log(jnp.clip(predictions, 1e-12, 1.0))
            labels = jnp.asarray(targets).astype(jnp.int32)
            return float(optax.softmax_cross_entropy_with_integer_labels(log_probs, labels).mean())
        diff = predictions - _as_matrix(jnp.asarray(targets), predictions)
        return float(jnp.mean(jnp.square(diff)))
