from __future__ import annotations

import pytest

from jax_dnn.core.domain.entities.base import BatchRange
from jax_dnn.core.domain.utils.batches import Batches


def test_batches_cover_range_with_short_last_batch() -> None:
    batches = Batches(32, 100)
    assert list(batches) == [BatchRange(0, 32), BatchRange(32, 64), BatchRange(64, 96), BatchRange(96, 100)]
    assert len(batches) == 4


def test_batches_exact_multiple_has_full_last_batch() -> None:
    assert [len(b) for b in Batches(25, 100)] == [25, 25, 25, 25]


def test_batches_empty_total() -> None:
    batches = Batches(8, 0)
    assert list(batches) == []
    assert len(batches) == 0


def test_batches_are_restartable() -> None:
    batches = Batches(3, 10)
    assert list(batches) == list(batches)


@pytest.mark.parametrize("total", [0, 1, 7, 31, 32, 33, 100, 257])
@pytest.mark.parametrize("batch_size", [1, 5, 32, 300])
def test_batches_partition_in_ascending_order(total: int, batch_size: int) -> None:
    ranges = list(Batches(batch_size, total))

    covered = [i for r in ranges for i in range(r.start, r.end)]
    assert covered == list(range(total))

    sizes = [len(r) for r in ranges]
    assert all(s == batch_size for s in sizes[:-1])
    if ranges:
        assert sizes[-1] == (total % batch_size or batch_size)


@pytest.mark.parametrize("batch_size,total", [(0, 10), (-1, 10), (4, -1)])
def test_batches_reject_bad_arguments(batch_size: int, total: int) -> None:
    with pytest.raises(ValueError):
        Batches(batch_size, total)
