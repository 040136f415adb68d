
from pathlib import Path

from jax_dnn.core.domain.entities.dataset import DataSet
from jax_dnn.core.domain.errors.training import ConfigurationError

from .npz_dataset import load_npz_dataset
from .text_dataset import load_text_dataset


def load_dataset(path: str | Path, *, input_dim: int = 0, base: int = 0, regression: bool = False) -> DataSet:
    """Pick the loader from the file suffix: `.npz` archives, anything else as text."""

    if Path(path).suffix.lower() != ".npz":
        return load_text_dataset(path, input_dim=input_dim, base=base, regression=regression)

    dataset = load_npz_dataset(path, base=base, regression=regression)
    if input_dim and dataset.input_dim != input_dim:
        raise ConfigurationError(f"{path}: expected input dim {input_dim}, got {dataset.input_dim}")
    return dataset


__all__ = [
	"load_dataset",
	"load_npz_dataset",
	"load_text_dataset",
]
