from __future__ import annotations

import os

# Ensure tests run on CPU-only machines even if JAX is installed with CUDA extras.
os.environ.setdefault("JAX_PLATFORMS", "cpu")

import numpy as np

from jax_dnn.adapters.right.device_cache import DeviceBatchCache
from jax_dnn.adapters.right.network_jax import JaxFeedForwardNetwork
from jax_dnn.adapters.right.progress_table import StdoutProgressTable
from jax_dnn.core.domain.commands.train import TrainCommand, TrainConfig
from jax_dnn.core.domain.entities.dataset import DataSet, split_dataset
from jax_dnn.core.domain.utils.error_measures import ErrorEvaluator
from jax_dnn.core.use_cases.train_network import TrainingState, TrainNetworkUseCase, count_errors


def _two_class_dataset(n: int = 1000) -> DataSet:
    rng = np.random.default_rng(0)
    half = n // 2
    # class-sorted rows, like many raw data files
    x = np.concatenate(
        [rng.normal(loc=-1.5, size=(half, 2)), rng.normal(loc=1.5, size=(n - half, 2))]
    ).astype(np.float32)
    y = np.asarray([0] * half + [1] * (n - half), dtype=np.int32)
    return DataSet(x, y)


def test_two_class_run_stops_after_accuracy_floor_and_reloads(tmp_path, capsys) -> None:
    train, valid = split_dataset(_two_class_dataset(), 5)
    assert (train.size(), valid.size()) == (833, 167)

    network = JaxFeedForwardNetwork.create(layer_sizes=(2, 8, 2), variance=0.1)
    use_case = TrainNetworkUseCase(
        network=network,
        progress_reporter=StdoutProgressTable(),
        device=DeviceBatchCache(cache_mb=4),
    )
    command = TrainCommand(
        config=TrainConfig(learning_rate=1.0, min_valid_accuracy=0.9, max_epoch=50, n_non_inc_epoch=5),
        batch_size=32,
    )

    result = use_case.run(command, train=train, valid=valid)

    assert result.epochs <= 50
    assert len(result.eout) == result.epochs
    assert result.state is TrainingState.CONVERGED
    assert result.valid_accuracy > 0.9

    # stopping never fires at or below the accuracy floor
    for row in result.history[:-1]:
        assert row["epoch"] < result.history[-1]["epoch"]
    assert result.history[-1]["valid/acc"] > 0.9

    best = np.maximum.accumulate([row["valid/acc"] for row in result.history])
    assert np.all(np.diff(best) >= 0)

    out = capsys.readouterr().out
    assert "Out-of-Sample" in out
    assert f"{result.epochs} epochs in total" in out

    path = tmp_path / "blobs.model"
    network.save(path)
    reloaded = JaxFeedForwardNetwork.load(path)
    assert count_errors(reloaded, valid, ErrorEvaluator()) == result.eout[-1]
    assert count_errors(reloaded, train, ErrorEvaluator()) == result.train_errors
