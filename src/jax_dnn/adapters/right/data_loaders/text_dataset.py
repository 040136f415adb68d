from __future__ import annotations

from pathlib import Path

import numpy as np

from jax_dnn.core.domain.entities.dataset import DataSet
from jax_dnn.core.domain.errors.training import ConfigurationError


def _is_sparse(tokens: list[str]) -> bool:
    return any(":" in t for t in tokens)


def _parse_label(token: str, *, path: Path, line_no: int) -> float:
    try:
        return float(token)
    except ValueError as e:
        raise ConfigurationError(f"{path}:{line_no}: bad label {token!r}") from e


def read_text_rows(path: str | Path) -> list[tuple[int, list[str]]]:
    """Non-empty, non-comment lines as (line number, tokens)."""

    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"data file not found: {p}")

    rows: list[tuple[int, list[str]]] = []
    with p.open("r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            rows.append((line_no, line.split()))
    return rows


def load_text_dataset(
    path: str | Path,
    *,
    input_dim: int = 0,
    base: int = 0,
    regression: bool = False,
) -> DataSet:
    """Load `label f1 f2 ...` (dense) or `label i:v j:w ...` (sparse, 1-based) rows.

    The format is detected per file. `input_dim=0` takes the widest row
    (dense) or the largest feature index (sparse). Class labels are shifted
    down by `base` so they start at 0.
    """

    p = Path(path)
    rows = read_text_rows(p)
    if input_dim < 0:
        raise ConfigurationError(f"input_dim must be >= 0, got {input_dim}")

    sparse = any(_is_sparse(tokens[1:]) for _, tokens in rows)

    labels: list[float] = []
    features: list[dict[int, float]] = []
    max_dim = 0
    for line_no, tokens in rows:
        labels.append(_parse_label(tokens[0], path=p, line_no=line_no))
        values: dict[int, float] = {}
        try:
            if sparse:
                for tok in tokens[1:]:
                    idx_s, val_s = tok.split(":", 1)
                    values[int(idx_s) - 1] = float(val_s)
            else:
                for j, tok in enumerate(tokens[1:]):
                    values[j] = float(tok)
        except ValueError as e:
            raise ConfigurationError(f"{p}:{line_no}: bad feature value ({e})") from e

        if values and min(values) < 0:
            raise ConfigurationError(f"{p}:{line_no}: sparse feature indices start at 1")

        if values:
            max_dim = max(max_dim, max(values) + 1)
        features.append(values)

    dim = input_dim or max_dim
    if max_dim > dim:
        raise ConfigurationError(f"{p}: found feature index {max_dim} beyond --input-dim {dim}")

    x = np.zeros((len(rows), dim), dtype=np.float32)
    for i, values in enumerate(features):
        for j, v in values.items():
            x[i, j] = v

    return DataSet(x, to_labels(np.asarray(labels), base=base, regression=regression, source=str(p)))


def to_labels(raw: np.ndarray, *, base: int, regression: bool, source: str) -> np.ndarray:
    """Class ids (int32, starting at 0) or regression targets (float32)."""

    if regression:
        return np.asarray(raw, dtype=np.float32)

    raw = np.asarray(raw, dtype=np.float64)
    if raw.size and not np.all(raw == np.round(raw)):
        raise ConfigurationError(f"{source}: classification labels must be integers")
    y = raw.astype(np.int64) - int(base)
    if y.size and y.min() < 0:
        raise ConfigurationError(f"{source}: label {int(y.min()) + base} is below --base {base}")
    return y.astype(np.int32)
