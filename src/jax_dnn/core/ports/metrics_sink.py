from __future__ import annotations

from typing import Any, Protocol


class MetricsSinkPort(Protocol):
    """Receives structured training events.

    `step` is the number of gradient updates applied so far. `metrics` holds an
    `event` name (`run_start`, `skipped_epoch`, `converged`, `exhausted`) or,
    for per-epoch records, the epoch's accuracies and error counts.
    """

    def log(self, *, step: int, metrics: dict[str, Any]) -> None: ...
