from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jax
import jax.numpy as jnp
import numpy as np
import optax
from safetensors import safe_open
from safetensors.numpy import save_file

from jax_dnn.core.domain.commands.train import TrainConfig
from jax_dnn.core.domain.entities.model import MlpFns, OutputKind, Params
from jax_dnn.core.domain.errors.training import ConfigurationError
from jax_dnn.core.domain.utils.learning_rate import FixedLearningRate, LearningRatePolicy
from jax_dnn.core.ports.network import NetworkPort

_FORMAT = "jax-dnn/mlp-v1"


class JaxFeedForwardNetwork(NetworkPort):
    """Stateful MLP trained by SGD steps on an externally computed error term.

    The error is the gradient w.r.t. the output pre-activation; it is pulled
    back through the network with `jax.vjp` and applied with `optax.sgd`.
    """

    def __init__(
        self,
        *,
        fns: MlpFns,
        params: Params,
        config: TrainConfig | None = None,
        lr_policy: LearningRatePolicy | None = None,
    ) -> None:
        self._fns = fns
        self._params = params
        self._config = config or TrainConfig()
        self._policy = lr_policy or FixedLearningRate()

        self._optimizer = optax.inject_hyperparams(optax.sgd)(learning_rate=0.0)
        self._opt_state = self._optimizer.init(params)

        optimizer = self._optimizer

        def sgd_step(p: Params, s: optax.OptState, x: jax.Array, error: jax.Array):
            _, pull_back = jax.vjp(lambda pp: fns.pre_activation(pp, x), p)
            (grads,) = pull_back(error)
            updates, s2 = optimizer.update(grads, s, p)
            return optax.apply_updates(p, updates), s2

        self._forward = jax.jit(fns.apply)
        self._sgd_step = jax.jit(sgd_step)

    @classmethod
    def create(
        cls,
        *,
        layer_sizes: tuple[int, ...],
        output: OutputKind = "softmax",
        variance: float = 0.01,
        seed: int = 0,
        lr_policy: LearningRatePolicy | None = None,
    ) -> JaxFeedForwardNetwork:
        """Randomly initialize weights from N(0, variance)."""

        if not variance > 0:
            raise ConfigurationError(f"variance must be > 0, got {variance}")
        fns = MlpFns(layer_sizes=tuple(int(s) for s in layer_sizes), output=output)
        params = fns.init(key=jax.random.PRNGKey(seed), variance=variance)
        return cls(fns=fns, params=params, config=TrainConfig(variance=variance), lr_policy=lr_policy)

    @classmethod
    def load(cls, path: str | Path, *, lr_policy: LearningRatePolicy | None = None) -> JaxFeedForwardNetwork:
        p = Path(path)
        if not p.exists():
            raise ConfigurationError(f"model file not found: {p}")

        with safe_open(str(p), framework="numpy") as f:
            meta = f.metadata() or {}
            tensors = {k: f.get_tensor(k) for k in f.keys()}

        if meta.get("format") != _FORMAT:
            raise ConfigurationError(f"{p} is not a {_FORMAT} model file")

        layer_sizes = tuple(json.loads(meta["layer_sizes"]))
        fns = MlpFns(layer_sizes=layer_sizes, output=meta.get("output", "softmax"))
        params = [
            {"w": jnp.asarray(tensors[f"layer_{i}.w"]), "b": jnp.asarray(tensors[f"layer_{i}.b"])}
            for i in range(len(layer_sizes) - 1)
        ]
        return cls(fns=fns, params=params, lr_policy=lr_policy)

    @property
    def fns(self) -> MlpFns:
        return self._fns

    @property
    def params(self) -> Params:
        return self._params

    @property
    def config(self) -> TrainConfig:
        return self._config

    @config.setter
    def config(self, value: TrainConfig) -> None:
        self._config = value

    @property
    def learning_rate_scale(self) -> float:
        return float(self._policy.scale)

    def feed_forward(self, x: Any) -> jax.Array:
        x = jnp.asarray(x, dtype=jnp.float32)
        if x.shape[-1] != self._fns.input_dim:
            raise ValueError(f"expected {self._fns.input_dim} input features, got {x.shape[-1]}")
        return self._forward(self._params, x)

    def back_propagate(self, error: Any, x: Any, predictions: Any, learning_rate: float) -> None:
        """One SGD step with rate `learning_rate * policy scale`.

        `predictions` must come from the matching `feed_forward(x)`; the
        activations are recomputed under `jax.vjp`, so only its shape is used.
        """

        error = jnp.asarray(error, dtype=jnp.float32)
        if error.shape != jnp.shape(predictions):
            raise ValueError(f"error shape {error.shape} does not match predictions {jnp.shape(predictions)}")

        rate = learning_rate * self._policy.scale
        self._opt_state.hyperparams["learning_rate"] = jnp.asarray(rate, dtype=jnp.float32)
        self._params, self._opt_state = self._sgd_step(
            self._params, self._opt_state, jnp.asarray(x, dtype=jnp.float32), error
        )

    def adjust_learning_rate(self, train_acc: float) -> None:
        self._policy.update(train_acc)

    def save(self, path: str | Path) -> None:
        flat = {}
        for i, layer in enumerate(self._params):
            flat[f"layer_{i}.w"] = np.asarray(layer["w"], dtype=np.float32)
            flat[f"layer_{i}.b"] = np.asarray(layer["b"], dtype=np.float32)

        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        save_file(
            flat,
            str(p),
            metadata={
                "format": _FORMAT,
                "layer_sizes": json.dumps(list(self._fns.layer_sizes)),
                "output": self._fns.output,
            },
        )
