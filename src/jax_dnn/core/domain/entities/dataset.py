from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from jax_dnn.core.domain.entities.base import Batch, BatchRange
from jax_dnn.core.domain.errors.training import ConfigurationError


@dataclass(frozen=True)
class DatasetInfo:
    """Summary shown before training starts."""

    size: int
    input_dim: int
    num_classes: int | None = None
    class_counts: tuple[int, ...] | None = None


class DataSet:
    """In-memory labeled rows.

    `x` has shape (n, input_dim). `y` has shape (n,) with integer class ids
    for classification, or (n,) / (n, k) float targets for regression.
    """

    def __init__(self, x: np.ndarray, y: np.ndarray) -> None:
        x = np.asarray(x, dtype=np.float32)
        y = np.asarray(y)
        if x.ndim != 2:
            raise ConfigurationError(f"features must be a 2-D matrix, got shape {x.shape}")
        if len(y) != len(x):
            raise ConfigurationError(f"got {len(x)} feature rows but {len(y)} labels")
        self._x = x
        self._y = y

    @property
    def x(self) -> np.ndarray:
        return self._x

    @property
    def y(self) -> np.ndarray:
        return self._y

    @property
    def input_dim(self) -> int:
        return int(self._x.shape[1])

    @property
    def is_classification(self) -> bool:
        return np.issubdtype(self._y.dtype, np.integer)

    def size(self) -> int:
        return int(self._x.shape[0])

    def __len__(self) -> int:
        return self.size()

    def __getitem__(self, key: BatchRange | slice) -> Batch:
        sel = key.as_slice() if isinstance(key, BatchRange) else key
        return Batch(x=self._x[sel], y=self._y[sel])

    def take(self, indices: np.ndarray) -> DataSet:
        return DataSet(self._x[indices], self._y[indices])

    def describe(self) -> DatasetInfo:
        if not self.is_classification:
            return DatasetInfo(size=self.size(), input_dim=self.input_dim)

        counts = np.bincount(self._y, minlength=1) if self.size() else np.zeros(0, dtype=np.int64)
        return DatasetInfo(
            size=self.size(),
            input_dim=self.input_dim,
            num_classes=int(len(counts)),
            class_counts=tuple(int(c) for c in counts),
        )


def train_split_size(total: int, ratio: int) -> int:
    """Number of training rows for a train:valid = ratio:1 split.

    round(total * ratio / (ratio + 1)), halves rounded up, in integer arithmetic.
    """

    return (2 * total * ratio + ratio + 1) // (2 * (ratio + 1))


def split_dataset(data: DataSet, ratio: int, *, seed: int = 0) -> tuple[DataSet, DataSet]:
    """Split `data` into (train, valid) with train:valid = ratio:1.

    Rows are picked through a seeded permutation so class-sorted files still
    give a mixed validation set. Both parts keep the input row order.
    """

    if isinstance(ratio, bool) or int(ratio) != ratio or ratio < 1:
        raise ConfigurationError(f"split ratio must be a positive integer, got {ratio}")

    n = data.size()
    n_train = train_split_size(n, int(ratio))

    perm = np.random.default_rng(seed).permutation(n)
    train_idx = np.sort(perm[:n_train])
    valid_idx = np.sort(perm[n_train:])
    return data.take(train_idx), data.take(valid_idx)
