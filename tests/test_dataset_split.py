from __future__ import annotations

import numpy as np
import pytest

from jax_dnn.core.domain.entities.base import BatchRange
from jax_dnn.core.domain.entities.dataset import DataSet, split_dataset, train_split_size
from jax_dnn.core.domain.errors.training import ConfigurationError


def _indexed_dataset(n: int) -> DataSet:
    # First feature carries the row id so row identity can be checked after the split.
    x = np.stack([np.arange(n, dtype=np.float32), np.ones(n, dtype=np.float32)], axis=1)
    y = (np.arange(n) % 3).astype(np.int32)
    return DataSet(x, y)


@pytest.mark.parametrize(
    "total,ratio,expected",
    [(1000, 5, 833), (600, 5, 500), (10, 1, 5), (7, 1, 4), (3, 2, 2), (1, 5, 1), (0, 5, 0)],
)
def test_train_split_size_rounds_half_up(total: int, ratio: int, expected: int) -> None:
    assert train_split_size(total, ratio) == expected


@pytest.mark.parametrize("n,ratio", [(1000, 5), (101, 3), (17, 1), (1, 4), (0, 2)])
def test_split_partitions_rows(n: int, ratio: int) -> None:
    data = _indexed_dataset(n)
    train, valid = split_dataset(data, ratio)

    assert train.size() + valid.size() == n
    assert train.size() == train_split_size(n, ratio)

    train_ids = set(train.x[:, 0].astype(int).tolist())
    valid_ids = set(valid.x[:, 0].astype(int).tolist())
    assert not train_ids & valid_ids
    assert train_ids | valid_ids == set(range(n))

    # labels travel with their rows
    np.testing.assert_array_equal(train.y, train.x[:, 0].astype(int) % 3)
    np.testing.assert_array_equal(valid.y, valid.x[:, 0].astype(int) % 3)


def test_split_is_deterministic() -> None:
    data = _indexed_dataset(250)
    a_train, a_valid = split_dataset(data, 4, seed=3)
    b_train, b_valid = split_dataset(data, 4, seed=3)
    np.testing.assert_array_equal(a_train.x, b_train.x)
    np.testing.assert_array_equal(a_valid.x, b_valid.x)


def test_split_keeps_row_order_within_each_part() -> None:
    train, valid = split_dataset(_indexed_dataset(120), 5)
    assert np.all(np.diff(train.x[:, 0]) > 0)
    assert np.all(np.diff(valid.x[:, 0]) > 0)


def test_split_mixes_class_sorted_rows() -> None:
    y = np.asarray([0] * 500 + [1] * 500, dtype=np.int32)
    data = DataSet(np.zeros((1000, 2), dtype=np.float32), y)
    _, valid = split_dataset(data, 5)
    assert set(np.unique(valid.y).tolist()) == {0, 1}


@pytest.mark.parametrize("ratio", [0, -2, 1.5])
def test_split_rejects_bad_ratio(ratio) -> None:
    with pytest.raises(ConfigurationError):
        split_dataset(_indexed_dataset(10), ratio)


def test_dataset_subscript_returns_batch_view() -> None:
    data = _indexed_dataset(10)
    batch = data[BatchRange(2, 5)]
    assert batch.x[:, 0].tolist() == [2.0, 3.0, 4.0]
    assert batch.y.tolist() == [2, 0, 1]
    assert data[7:10].x.shape == (3, 2)


def test_dataset_rejects_mismatched_rows() -> None:
    with pytest.raises(ConfigurationError):
        DataSet(np.zeros((3, 2)), np.zeros(4, dtype=np.int32))
    with pytest.raises(ConfigurationError):
        DataSet(np.zeros(3), np.zeros(3, dtype=np.int32))


def test_describe_counts_classes() -> None:
    info = _indexed_dataset(7).describe()
    assert info.size == 7
    assert info.input_dim == 2
    assert info.num_classes == 3
    assert info.class_counts == (3, 2, 2)
