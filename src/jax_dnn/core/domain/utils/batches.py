from __future__ import annotations

from collections.abc import Iterator

from jax_dnn.core.domain.entities.base import BatchRange


class Batches:
    """Contiguous mini-batch ranges over `[0, total)`.

    Iterating twice yields the same ascending ranges; the last range holds
    the `total % batch_size` remainder when there is one.
    """

    def __init__(self, batch_size: int, total: int) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be > 0, got {batch_size}")
        if total < 0:
            raise ValueError(f"total must be >= 0, got {total}")
        self._batch_size = int(batch_size)
        self._total = int(total)

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def total(self) -> int:
        return self._total

    def __len__(self) -> int:
        return -(-self._total // self._batch_size)

    def __iter__(self) -> Iterator[BatchRange]:
        for start in range(0, self._total, self._batch_size):
            yield BatchRange(start, min(start + self._batch_size, self._total))
