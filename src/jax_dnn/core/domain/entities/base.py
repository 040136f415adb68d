from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

DatasetSplit = Literal["train", "valid"]


@dataclass(frozen=True)
class BatchRange:
    """Half-open row range `[start, end)` over a DataSet."""

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start

    def as_slice(self) -> slice:
        return slice(self.start, self.end)


@dataclass(frozen=True)
class Batch:
    """A single supervised batch.

    `x` is a NumPy array on the host, or a JAX array once a device transfer
    handle has moved it. `y` holds integer class ids of shape (batch,) for
    classification, float targets for regression.
    """

    x: Any
    y: Any
