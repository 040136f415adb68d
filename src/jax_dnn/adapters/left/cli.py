from __future__ import annotations

from dataclasses import asdict
import os
from pathlib import Path

import inject
import typer

# Default to CPU unless explicitly overridden by the user.
# This avoids noisy CUDA plugin initialization errors on machines without CUDA libraries.
os.environ.setdefault("JAX_PLATFORMS", "cpu")

from jax_dnn.adapters.left.inject_config import configure_injections
from jax_dnn.adapters.right.data_loaders import load_dataset
from jax_dnn.adapters.right.device_cache import DeviceBatchCache
from jax_dnn.adapters.right.metrics_jsonl import JsonlFileMetricsSink
from jax_dnn.adapters.right.network_jax import JaxFeedForwardNetwork
from jax_dnn.adapters.right.progress_table import StdoutProgressTable, format_accuracy
from jax_dnn.core.domain.commands.train import TrainCommand, TrainConfig
from jax_dnn.core.domain.entities.dataset import DataSet, split_dataset
from jax_dnn.core.domain.errors.training import ConfigurationError
from jax_dnn.core.domain.utils.error_measures import ErrorEvaluator, ErrorMeasure
from jax_dnn.core.domain.utils.learning_rate import make_policy
from jax_dnn.core.domain.utils.normalization import FeatureStatistics, NormType, normalize
from jax_dnn.core.use_cases.train_network import TrainNetworkUseCase, count_errors

app = typer.Typer(add_completion=False, no_args_is_help=True)

_NORMALIZE_HELP = (
    "Feature normalization: 0 -- do not normalize; "
    "1 -- rescale each dimension to [0, 1]; "
    "2 -- standard score z = (x-u)/sigma"
)
_TYPE_HELP = "0 -- classification (cross-entropy); 1 -- regression (L2 error)"


def default_model_out(training_set_file: str) -> str:
    """`<basename of the training file>.model` in the working directory."""

    return Path(training_set_file).name + ".model"


def _error_measure(task_type: int) -> ErrorMeasure:
    try:
        return ErrorMeasure.from_type(task_type)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


def _prepare_data(
    path: str,
    *,
    input_dim: int,
    base: int,
    normalize_type: int,
    stats_path: str,
    measure: ErrorMeasure,
) -> tuple[DataSet, FeatureStatistics | None]:
    try:
        norm = NormType(normalize_type)
    except ValueError as e:
        raise typer.BadParameter(f"--normalize must be 0, 1 or 2, got {normalize_type}") from e

    try:
        data = load_dataset(
            path, input_dim=input_dim, base=base, regression=measure is ErrorMeasure.L2_ERROR
        )
    except ConfigurationError as e:
        raise typer.BadParameter(str(e)) from e

    if norm is NormType.NONE:
        return data, None

    stats = FeatureStatistics.load(stats_path) if stats_path else FeatureStatistics.compute(data.x)
    return DataSet(normalize(data.x, norm, stats), data.y), stats


def _echo_summary(data: DataSet) -> None:
    info = data.describe()
    typer.echo(f"Data: {info.size} rows, input dim {info.input_dim}")
    if info.class_counts is not None:
        counts = ", ".join(f"{k}: {c}" for k, c in enumerate(info.class_counts))
        typer.echo(f"Classes: {info.num_classes} ({counts})")


@app.command()
def init(
    model_out: str = typer.Argument(..., help="Where to write the initialized model"),
    input_dim: int = typer.Option(..., "--input-dim", min=1, help="Dimension of the feature vectors"),
    output_dim: int = typer.Option(0, "--output-dim", min=0, help="Number of classes; 0 for 2 (classification) or 1 (regression)"),
    hidden: list[int] = typer.Option([64], help="Repeatable hidden sizes: --hidden 64 --hidden 32"),
    variance: float = typer.Option(0.01, help="Variance of the normal distribution used for the weights"),
    task_type: int = typer.Option(0, "--type", help=_TYPE_HELP),
    seed: int = typer.Option(0),
) -> None:
    """Create a randomly initialized network for `train`."""

    measure = _error_measure(task_type)
    regression = measure is ErrorMeasure.L2_ERROR
    if regression and output_dim not in (0, 1):
        raise typer.BadParameter(f"--type 1 models have a single output, got --output-dim {output_dim}")
    output_dim = output_dim or (1 if regression else 2)

    try:
        network = JaxFeedForwardNetwork.create(
            layer_sizes=(input_dim, *hidden, output_dim),
            output=measure.output_kind,
            variance=variance,
            seed=seed,
        )
    except (ConfigurationError, ValueError) as e:
        raise typer.BadParameter(str(e)) from e

    network.save(model_out)
    typer.echo(f"Model {network.fns.layer_sizes} saved to {model_out}")


@app.command()
def train(
    training_set_file: str = typer.Argument(..., help="Training data (text or .npz)"),
    model_in: str = typer.Argument(..., help="Initial model, e.g. from `init`"),
    model_out: str = typer.Argument("", help="Defaults to <training_set_file basename>.model"),
    input_dim: int = typer.Option(0, "--input-dim", min=0, help="Dimension of feature; 0 for auto detection"),
    normalize_type: int = typer.Option(0, "--normalize", help=_NORMALIZE_HELP),
    stats_in: str = typer.Option("", "--nf", help="Load pre-computed normalization statistics from file"),
    stats_out: str = typer.Option("", "--save-nf", help="Save the normalization statistics to this .npz file"),
    base: int = typer.Option(0, "--base", help="Label id starts from 0 or 1?"),
    ratio: int = typer.Option(5, "-v", "--ratio", help="Ratio of training set to validation set (split automatically)"),
    max_epoch: int = typer.Option(100000, "--max-epoch", help="Number of maximum epochs"),
    min_acc: float = typer.Option(0.5, "--min-acc", help="Minimum cross-validation accuracy"),
    n_non_inc_epoch: int = typer.Option(6, "--patience", help="Epochs of non-increasing validation error before stopping"),
    learning_rate: float = typer.Option(0.1, "--learning-rate", help="Learning rate in back-propagation"),
    variance: float = typer.Option(0.01, "--variance", help="Variance of the normal distribution for weight init"),
    batch_size: int = typer.Option(32, "--batch-size", help="Number of data per mini-batch"),
    task_type: int = typer.Option(0, "--type", help=_TYPE_HELP),
    lr_policy: str = typer.Option("fixed", "--lr-policy", help="Learning-rate adjustment: fixed | milestone"),
    cache_mb: int = typer.Option(16, "--cache", help="Device memory (in MB) used to cache batches"),
    seed: int = typer.Option(0, help="Seed of the train/valid split"),
    log_path: str = typer.Option(
        "",
        help="If set, append metrics/events as JSONL to this path (e.g. logs/train.jsonl)",
    ),
) -> None:
    """Train a network with mini-batch back-propagation and early stopping."""

    measure = _error_measure(task_type)
    cmd = TrainCommand(
        config=TrainConfig(
            learning_rate=learning_rate,
            variance=variance,
            min_valid_accuracy=min_acc,
            max_epoch=max_epoch,
            n_non_inc_epoch=n_non_inc_epoch,
        ),
        batch_size=batch_size,
        error_measure=measure,
    )
    try:
        cmd.validate()
        policy = make_policy(lr_policy)
        if ratio < 1:
            raise ConfigurationError(f"-v must be a positive integer, got {ratio}")
        if cache_mb < 0:
            raise ConfigurationError(f"--cache must be >= 0, got {cache_mb}")
        network = JaxFeedForwardNetwork.load(model_in, lr_policy=policy)
        if input_dim and input_dim != network.fns.input_dim:
            raise ConfigurationError(f"--input-dim {input_dim} does not match the model input dim {network.fns.input_dim}")
        if network.fns.output != measure.output_kind:
            raise ConfigurationError(f"--type {task_type} needs a {measure.output_kind} model, got {network.fns.output}")
        if measure is ErrorMeasure.L2_ERROR and network.fns.output_dim != 1:
            raise ConfigurationError(f"--type 1 needs a single-output model, got {network.fns.output_dim} outputs")
    except (ConfigurationError, ValueError) as e:
        raise typer.BadParameter(str(e)) from e

    data, stats = _prepare_data(
        training_set_file,
        input_dim=input_dim or network.fns.input_dim,
        base=base,
        normalize_type=normalize_type,
        stats_path=stats_in,
        measure=measure,
    )
    if data.is_classification and data.size() and int(data.y.max()) >= network.fns.output_dim:
        raise typer.BadParameter(
            f"label {int(data.y.max())} does not fit the model's {network.fns.output_dim} outputs (check --base)"
        )
    if stats is not None and stats_out:
        stats.save(stats_out)
    _echo_summary(data)

    train_set, valid_set = split_dataset(data, ratio, seed=seed)
    typer.echo(f"Split: {train_set.size()} training / {valid_set.size()} validation rows")
    if not train_set.size() or not valid_set.size():
        raise typer.BadParameter(
            f"{data.size()} rows cannot be split into non-empty training and validation sets with -v {ratio}"
        )
    typer.echo(f"Config: {asdict(cmd.config)}")

    metrics = JsonlFileMetricsSink(path=log_path) if log_path else None
    configure_injections(
        network=network,
        progress_reporter=StdoutProgressTable(),
        device=DeviceBatchCache(cache_mb=cache_mb),
        metrics_sink=metrics,
    )
    use_case = inject.instance(TrainNetworkUseCase)

    run_info = {
        "command": "train",
        "training_set_file": training_set_file,
        "model_in": model_in,
        "ratio": ratio,
        "lr_policy": lr_policy,
        "variance": variance,
    }
    try:
        use_case.run(cmd, train=train_set, valid=valid_set, run_info=run_info)
    except ConfigurationError as e:
        raise typer.BadParameter(str(e)) from e

    out = model_out or default_model_out(training_set_file)
    network.save(out)
    typer.echo(f"Model saved to {out}")


@app.command()
def predict(
    data_file: str = typer.Argument(..., help="Labeled data (text or .npz)"),
    model_file: str = typer.Argument(..., help="Trained model"),
    normalize_type: int = typer.Option(0, "--normalize", help=_NORMALIZE_HELP),
    stats_in: str = typer.Option("", "--nf", help="Normalization statistics saved by `train --save-nf`"),
    base: int = typer.Option(0, "--base", help="Label id starts from 0 or 1?"),
    task_type: int = typer.Option(0, "--type", help=_TYPE_HELP),
    batch_size: int = typer.Option(2048, "--batch-size", min=1, help="Rows per evaluation chunk"),
) -> None:
    """Report the zero/one accuracy of a saved model on labeled data."""

    measure = _error_measure(task_type)
    if normalize_type and not stats_in:
        raise typer.BadParameter("--normalize needs --nf with the statistics saved by `train --save-nf`")
    try:
        network = JaxFeedForwardNetwork.load(model_file)
    except ConfigurationError as e:
        raise typer.BadParameter(str(e)) from e

    data, _ = _prepare_data(
        data_file,
        input_dim=network.fns.input_dim,
        base=base,
        normalize_type=normalize_type,
        stats_path=stats_in,
        measure=measure,
    )
    n_error = count_errors(network, data, ErrorEvaluator(measure), batch_size=batch_size)
    typer.echo(f"[ Accuracy ] {format_accuracy(n_error, data.size())}")


if __name__ == "__main__":
    app()
