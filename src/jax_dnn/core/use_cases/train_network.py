from __future__ import annotations

import enum
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from jax_dnn.core.domain.commands.train import TrainCommand
from jax_dnn.core.domain.entities.base import Batch, BatchRange
from jax_dnn.core.domain.entities.dataset import DataSet
from jax_dnn.core.domain.errors.training import TrainingError
from jax_dnn.core.domain.utils.batches import Batches
from jax_dnn.core.domain.utils.error_measures import ErrorEvaluator
from jax_dnn.core.domain.utils.stopping import is_eout_stop_decrease
from jax_dnn.core.ports.device_transfer import DeviceTransferPort
from jax_dnn.core.ports.metrics_sink import MetricsSinkPort
from jax_dnn.core.ports.network import NetworkPort
from jax_dnn.core.ports.progress_reporter import ProgressReporterPort

StoppingRule = Callable[[Sequence[int], int, int], bool]


class TrainingState(enum.Enum):
    RUNNING = "running"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class TrainResult:
    state: TrainingState
    epochs: int
    train_errors: int
    eout: tuple[int, ...]
    train_size: int
    valid_size: int
    elapsed_seconds: float
    history: list[dict[str, Any]] = field(default_factory=list)

    @property
    def train_accuracy(self) -> float:
        return 1.0 - self.train_errors / self.train_size

    @property
    def valid_accuracy(self) -> float:
        return 1.0 - self.eout[-1] / self.valid_size


def _fetch(data: DataSet, batch_range: BatchRange, device: DeviceTransferPort | None) -> Batch:
    batch = data[batch_range]
    if device is None:
        return batch
    return device.put(source=data.x, batch_range=batch_range, batch=batch)


def count_errors(
    network: NetworkPort,
    data: DataSet,
    evaluator: ErrorEvaluator,
    *,
    batch_size: int = 2048,
    device: DeviceTransferPort | None = None,
) -> int:
    """Zero/one error count of `network` over the whole of `data`.

    Runs in chunks of `batch_size` rows to bound transfer size.
    """

    n_error = 0
    for batch_range in Batches(batch_size, data.size()):
        batch = _fetch(data, batch_range, device)
        predictions = network.feed_forward(batch.x)
        n_error += evaluator.zero_one(predictions, batch.y)
    return n_error


class TrainNetworkUseCase:
    def __init__(
        self,
        *,
        network: NetworkPort,
        progress_reporter: ProgressReporterPort | None = None,
        metrics_sink: MetricsSinkPort | None = None,
        device: DeviceTransferPort | None = None,
        evaluator: ErrorEvaluator | None = None,
        stopping_rule: StoppingRule = is_eout_stop_decrease,
    ) -> None:
        self._network = network
        self._progress = progress_reporter
        self._metrics = metrics_sink
        self._device = device
        self._evaluator = evaluator
        self._stopping_rule = stopping_rule

    @property
    def network(self) -> NetworkPort:
        return self._network

    def run(
        self,
        command: TrainCommand,
        *,
        train: DataSet,
        valid: DataSet,
        run_info: dict[str, Any] | None = None,
    ) -> TrainResult:
        """Train until convergence or `max_epoch`.

        `run_info` carries caller details (file names, split ratio) into the
        single `run_start` event.
        """
        command.validate()
        n_train, n_valid = train.size(), valid.size()
        if n_train == 0:
            raise TrainingError("training set is empty")
        if n_valid == 0:
            raise TrainingError("validation set is empty")
        if train.input_dim != valid.input_dim:
            raise TrainingError(
                f"train and valid dimensions differ: {train.input_dim} != {valid.input_dim}"
            )

        evaluator = self._evaluator or ErrorEvaluator(command.error_measure)
        self._network.config = command.config
        config = self._network.config

        lr = config.learning_rate / command.batch_size

        if self._progress:
            self._progress.start()
        if self._metrics:
            self._metrics.log(
                step=0,
                metrics={
                    "event": "run_start",
                    **(run_info or {}),
                    "train_size": n_train,
                    "valid_size": n_valid,
                    "batch_size": command.batch_size,
                    "error_measure": command.error_measure,
                    "learning_rate": config.learning_rate,
                    "max_epoch": config.max_epoch,
                    "min_valid_accuracy": config.min_valid_accuracy,
                    "n_non_inc_epoch": config.n_non_inc_epoch,
                },
            )

        start_time = time.perf_counter()
        state = TrainingState.RUNNING
        history: list[dict[str, Any]] = []
        eout: list[int] = []
        ein = 0
        epochs_run = 0
        global_step = 0

        for epoch in range(config.max_epoch):
            batch_losses: list[float] = []
            for batch_range in Batches(command.batch_size, n_train):
                batch = _fetch(train, batch_range, self._device)

                predictions = self._network.feed_forward(batch.x)
                error = evaluator.error(batch.y, predictions)
                self._network.back_propagate(error, batch.x, predictions, lr)
                global_step += 1

                if self._metrics:
                    batch_losses.append(evaluator.loss(batch.y, predictions))

            ein = count_errors(
                self._network, train, evaluator, batch_size=command.eval_batch_size, device=self._device
            )
            eout.append(
                count_errors(
                    self._network, valid, evaluator, batch_size=command.eval_batch_size, device=self._device
                )
            )
            epochs_run = epoch + 1

            train_acc = 1.0 - ein / n_train

            # An inconsistent count must not end the run or move the learning rate.
            if train_acc < 0:
                if self._progress:
                    self._progress.skipped_epoch(epoch=epoch)
                if self._metrics:
                    self._metrics.log(
                        step=global_step,
                        metrics={"event": "skipped_epoch", "epoch": epoch, "train/errors": ein},
                    )
                continue

            valid_acc = 1.0 - eout[epoch] / n_valid

            epoch_summary = {
                "epoch": epoch,
                "train/acc": train_acc,
                "train/errors": ein,
                "valid/acc": valid_acc,
                "valid/errors": eout[epoch],
                "train/loss": (sum(batch_losses) / len(batch_losses)) if batch_losses else None,
                "global_step": global_step,
            }
            history.append(epoch_summary)

            if self._progress:
                self._progress.epoch(
                    epoch=epoch,
                    train_acc=train_acc,
                    train_correct=n_train - ein,
                    valid_acc=valid_acc,
                    valid_correct=n_valid - eout[epoch],
                )
            if self._metrics:
                self._metrics.log(step=global_step, metrics=epoch_summary)

            if valid_acc > config.min_valid_accuracy and self._stopping_rule(
                eout, epoch, config.n_non_inc_epoch
            ):
                state = TrainingState.CONVERGED
                break

            self._network.adjust_learning_rate(train_acc)
        else:
            state = TrainingState.EXHAUSTED

        elapsed = time.perf_counter() - start_time

        if self._metrics:
            self._metrics.log(
                step=global_step,
                metrics={
                    "event": state.value,
                    "epochs": epochs_run,
                    "elapsed_seconds": elapsed,
                    "train/errors": ein,
                    "valid/errors": eout[-1],
                },
            )
        if self._progress:
            self._progress.summary(
                epochs=epochs_run,
                elapsed_seconds=elapsed,
                train_errors=ein,
                train_size=n_train,
                valid_errors=eout[-1],
                valid_size=n_valid,
            )

        return TrainResult(
            state=state,
            epochs=epochs_run,
            train_errors=ein,
            eout=tuple(eout),
            train_size=n_train,
            valid_size=n_valid,
            elapsed_seconds=elapsed,
            history=history,
        )
