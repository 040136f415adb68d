from __future__ import annotations

import json

import numpy as np

from jax_dnn.adapters.right.metrics_jsonl import JsonlFileMetricsSink
from jax_dnn.core.domain.utils.error_measures import ErrorMeasure
from jax_dnn.core.use_cases.train_network import TrainingState


def test_jsonl_sink_appends_one_record_per_event(tmp_path) -> None:
    p = tmp_path / "logs" / "train.jsonl"
    sink = JsonlFileMetricsSink(path=p)

    sink.log(step=0, metrics={"event": "run_start", "error_measure": ErrorMeasure.CROSS_ENTROPY})
    sink.log(step=26, metrics={"epoch": 0, "train/errors": np.int64(12), "valid/acc": np.float32(0.75)})
    sink.log(step=52, metrics={"event": TrainingState.CONVERGED, "train/loss": float("nan")})

    lines = [ln for ln in p.read_text(encoding="utf-8").splitlines() if ln.strip()]
    assert len(lines) == 3

    rec0, rec1, rec2 = (json.loads(ln) for ln in lines)
    assert rec0["step"] == 0
    assert rec0["metrics"] == {"event": "run_start", "error_measure": "cross_entropy"}

    assert rec1["metrics"]["train/errors"] == 12
    assert rec1["metrics"]["valid/acc"] == 0.75

    assert rec2["metrics"]["event"] == "converged"
    assert rec2["metrics"]["train/loss"] is None
