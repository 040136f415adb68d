from __future__ import annotations

from typing import Protocol


class ProgressReporterPort(Protocol):
    """Port for the human-readable training progress report."""

    def start(self) -> None: ...

    def epoch(
        self,
        *,
        epoch: int,
        train_acc: float,
        train_correct: int,
        valid_acc: float,
        valid_correct: int,
    ) -> None: ...

    def skipped_epoch(self, *, epoch: int) -> None: ...

    def summary(
        self,
        *,
        epochs: int,
        elapsed_seconds: float,
        train_errors: int,
        train_size: int,
        valid_errors: int,
        valid_size: int,
    ) -> None: ...
