from __future__ import annotations

from pathlib import Path

import numpy as np

from jax_dnn.adapters.right.data_loaders.text_dataset import to_labels
from jax_dnn.core.domain.entities.dataset import DataSet
from jax_dnn.core.domain.errors.training import ConfigurationError


def load_npz_dataset(path: str | Path, *, base: int = 0, regression: bool = False) -> DataSet:
    """Loads supervised arrays from a .npz file.

    Expected keys: `x` (n, dim) and `y` (n,). Pre-split archives with
    `x_train`/`y_train` are accepted too; only the training arrays are read,
    since the split is done by the trainer.
    """

    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"data file not found: {p}")

    with np.load(p) as data:
        if "x" in data and "y" in data:
            x, y = data["x"], data["y"]
        elif "x_train" in data and "y_train" in data:
            x, y = data["x_train"], data["y_train"]
        else:
            raise ConfigurationError(f"{p} must contain 'x' and 'y' arrays")

        # Flatten any (N, ...) into (N, D)
        x = np.reshape(np.asarray(x, dtype=np.float32), (x.shape[0], -1))
        y = to_labels(np.asarray(y).reshape(-1), base=base, regression=regression, source=str(p))

    return DataSet(x, y)
