from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal, Protocol

import jax
import jax.numpy as jnp

Params = Any  # JAX pytree
OutputKind = Literal["softmax", "linear"]


class NetworkFns(Protocol):
    """Pure model functions the network adapter jits and differentiates."""

    def init(self, *, key: jax.Array, variance: float) -> Params: ...

    def pre_activation(self, params: Params, x: jax.Array) -> jax.Array: ...

    def apply(self, params: Params, x: jax.Array) -> jax.Array: ...


@dataclass(frozen=True)
class MlpFns:
    """Fully connected network: sigmoid hidden layers, softmax or linear output.

    `layer_sizes` is (input_dim, *hidden, output_dim).
    """

    layer_sizes: tuple[int, ...]
    output: OutputKind = "softmax"
    activation: Callable[[jax.Array], jax.Array] = jax.nn.sigmoid

    def __post_init__(self) -> None:
        if len(self.layer_sizes) < 2 or min(self.layer_sizes) < 1:
            raise ValueError(f"layer_sizes needs at least input and output sizes >= 1, got {self.layer_sizes}")
        if self.output not in ("softmax", "linear"):
            raise ValueError(f"output must be 'softmax' or 'linear', got {self.output!r}")

    @property
    def input_dim(self) -> int:
        return self.layer_sizes[0]

    @property
    def output_dim(self) -> int:
        return self.layer_sizes[-1]

    def init(self, *, key: jax.Array, variance: float) -> Params:
        std = jnp.sqrt(variance)

        def init_layer(m: int, n: int, k: jax.Array):
            w_key, b_key = jax.random.split(k)
            w = std * jax.random.normal(w_key, (m, n))
            b = std * jax.random.normal(b_key, (n,))
            return {"w": w, "b": b}

        sizes = self.layer_sizes
        keys = jax.random.split(key, len(sizes) - 1)
        return [init_layer(m, n, k) for (m, n), k in zip(zip(sizes[:-1], sizes[1:]), keys)]

    def pre_activation(self, params: Params, x: jax.Array) -> jax.Array:
        # x: (batch, input_dim)
        h = x
        for layer in params[:-1]:
            h = self.activation(jnp.dot(h, layer["w"]) + layer["b"])
        last = params[-1]
        return jnp.dot(h, last["w"]) + last["b"]

    def apply(self, params: Params, x: jax.Array) -> jax.Array:
        z = self.pre_activation(params, x)
        if self.output == "softmax":
            return jax.nn.softmax(z, axis=-1)
        return z
