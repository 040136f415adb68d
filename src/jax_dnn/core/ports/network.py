from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol

from jax_dnn.core.domain.commands.train import TrainConfig


class NetworkPort(Protocol):
    """Port for the network being trained.

    The core drives it through forward inference, a gradient step fed with
    an error term, and a once-per-epoch learning-rate hook. How weights are
    stored and updated is up to the adapter.
    """

    @property
    def config(self) -> TrainConfig: ...

    @config.setter
    def config(self, value: TrainConfig) -> None: ...

    def feed_forward(self, x: Any) -> Any: ...

    def back_propagate(self, error: Any, x: Any, predictions: Any, learning_rate: float) -> None: ...

    def adjust_learning_rate(self, train_acc: float) -> None: ...

    def save(self, path: str | Path) -> None: ...
