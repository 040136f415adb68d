from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from jax_dnn.adapters.right.data_loaders import load_dataset, load_npz_dataset, load_text_dataset
from jax_dnn.core.domain.errors.training import ConfigurationError


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_dense_text_rows(tmp_path: Path) -> None:
    p = _write(tmp_path / "train.dat", "0 1.0 2.0 3.0\n# comment\n\n1 4 5 6\n")
    data = load_text_dataset(p)

    assert data.size() == 2
    assert data.input_dim == 3
    np.testing.assert_array_equal(data.x, [[1, 2, 3], [4, 5, 6]])
    assert data.y.tolist() == [0, 1]
    assert data.y.dtype == np.int32


def test_sparse_text_rows_with_auto_dim(tmp_path: Path) -> None:
    p = _write(tmp_path / "train.svm", "1 1:0.5 4:2\n2 2:1.5\n")
    data = load_text_dataset(p, base=1)

    assert data.input_dim == 4
    np.testing.assert_array_equal(data.x, [[0.5, 0, 0, 2.0], [0, 1.5, 0, 0]])
    assert data.y.tolist() == [0, 1]


def test_explicit_input_dim_pads_and_checks(tmp_path: Path) -> None:
    p = _write(tmp_path / "train.svm", "0 2:1\n")
    assert load_text_dataset(p, input_dim=5).input_dim == 5
    with pytest.raises(ConfigurationError):
        load_text_dataset(p, input_dim=1)


def test_label_below_base_is_rejected(tmp_path: Path) -> None:
    p = _write(tmp_path / "train.dat", "0 1 2\n")
    with pytest.raises(ConfigurationError):
        load_text_dataset(p, base=1)


@pytest.mark.parametrize("text", ["x 1 2\n", "0 1 abc\n", "0 0:1\n", "0.5 1 2\n"])
def test_malformed_rows_are_configuration_errors(tmp_path: Path, text: str) -> None:
    p = _write(tmp_path / "bad.dat", text)
    with pytest.raises(ConfigurationError):
        load_text_dataset(p)


def test_regression_labels_stay_float(tmp_path: Path) -> None:
    p = _write(tmp_path / "reg.dat", "0.25 1 2\n1.75 3 4\n")
    data = load_text_dataset(p, regression=True)
    assert data.y.dtype == np.float32
    assert data.y.tolist() == [0.25, 1.75]
    assert not data.is_classification


def test_npz_dataset(tmp_path: Path) -> None:
    p = tmp_path / "data.npz"
    np.savez(p, x=np.arange(12, dtype=np.float64).reshape(3, 2, 2), y=np.asarray([1, 2, 1]))
    data = load_npz_dataset(p, base=1)

    assert data.x.shape == (3, 4)
    assert data.x.dtype == np.float32
    assert data.y.tolist() == [0, 1, 0]


def test_load_dataset_dispatches_on_suffix(tmp_path: Path) -> None:
    npz = tmp_path / "data.npz"
    np.savez(npz, x_train=np.zeros((2, 3)), y_train=np.asarray([0, 1]))
    assert load_dataset(npz).input_dim == 3
    with pytest.raises(ConfigurationError):
        load_dataset(npz, input_dim=4)

    txt = _write(tmp_path / "data.txt", "1 0 0\n")
    assert load_dataset(txt).input_dim == 2


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_dataset(tmp_path / "missing.dat")
    with pytest.raises(ConfigurationError):
        load_dataset(tmp_path / "missing.npz")
