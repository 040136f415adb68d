from __future__ import annotations

import sys
from typing import TextIO

from jax_dnn.core.ports.progress_reporter import ProgressReporterPort

_HEADER = (
    "._______._________________________._________________________.\n"
    "|       |                         |                         |\n"
    "|       |        In-Sample        |      Out-of-Sample      |\n"
    "| Epoch |__________.______________|__________.______________|\n"
    "|       |          |              |          |              |\n"
    "|       | Accuracy | # of correct | Accuracy | # of correct |\n"
    "|_______|__________|______________|__________|______________|"
)


def format_accuracy(n_errors: int, total: int) -> str:
    correct = total - n_errors
    acc = 100.0 * correct / total if total else 0.0
    return f"{acc:.2f} % ({correct} / {total})"


class StdoutProgressTable(ProgressReporterPort):
    """Epoch table in the classic in-sample / out-of-sample layout."""

    def __init__(self, *, stream: TextIO | None = None) -> None:
        self._stream = stream

    def _write(self, text: str, *, end: str = "\n") -> None:
        stream = self._stream or sys.stdout
        stream.write(text + end)
        stream.flush()

    def start(self) -> None:
        self._write("Training...")
        self._write(_HEADER)

    def epoch(
        self,
        *,
        epoch: int,
        train_acc: float,
        train_correct: int,
        valid_acc: float,
        valid_correct: int,
    ) -> None:
        self._write(
            f"|{epoch:4d}   |  {train_acc * 100:.2f} % |  {train_correct:7d}     "
            f"|  {valid_acc * 100:.2f} % |  {valid_correct:7d}     |"
        )

    def skipped_epoch(self, *, epoch: int) -> None:
        self._write(".", end="")

    def summary(
        self,
        *,
        epochs: int,
        elapsed_seconds: float,
        train_errors: int,
        train_size: int,
        valid_errors: int,
        valid_size: int,
    ) -> None:
        self._write(f"\n{epochs} epochs in total")
        self._write(f"Time elapsed: {elapsed_seconds:.2f} seconds")
        self._write(f"[   In-Sample   ] {format_accuracy(train_errors, train_size)}")
        self._write(f"[ Out-of-Sample ] {format_accuracy(valid_errors, valid_size)}")
