from __future__ import annotations

import enum
import json
import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import numpy as np

from jax_dnn.core.ports.metrics_sink import MetricsSinkPort


def _to_jsonable(value: Any) -> Any:
    """Convert training event values to strict-JSON types.

    Non-finite floats become null; enums are written by value; device and
    NumPy arrays become scalars or nested lists.
    """

    if value is None or isinstance(value, (bool, int, str)):
        return value

    if isinstance(value, float):
        return value if math.isfinite(value) else None

    if isinstance(value, enum.Enum):
        return _to_jsonable(value.value)

    if isinstance(value, Path):
        return str(value)

    # numpy scalars and numpy / jax arrays
    if isinstance(value, np.generic) or (hasattr(value, "shape") and hasattr(value, "dtype")):
        arr = np.asarray(value)
        return _to_jsonable(arr.item() if arr.shape == () else arr.tolist())

    if isinstance(value, dict):
        return {str(k): _to_jsonable(v) for k, v in value.items()}

    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]

    return str(value)


class JsonlFileMetricsSink(MetricsSinkPort):
    """Append-only JSONL event log for a training run.

    Each call writes one JSON object on a single line:
      {"ts": "...", "step": 123, "metrics": {...}}
    where `step` counts gradient updates so far.
    """

    def __init__(self, *, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def log(self, *, step: int, metrics: dict[str, Any]) -> None:
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "step": int(step),
            "metrics": _to_jsonable(metrics),
        }
        line = json.dumps(record, ensure_ascii=False, allow_nan=False)

        with self._path.open("a", encoding="utf-8") as f:
            f.write(line)
            f.write("\n")
