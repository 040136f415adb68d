from __future__ import annotations

import io

from jax_dnn.adapters.right.progress_table import StdoutProgressTable, format_accuracy


def test_table_rows_and_summary() -> None:
    stream = io.StringIO()
    table = StdoutProgressTable(stream=stream)

    table.start()
    table.epoch(epoch=3, train_acc=0.9512, train_correct=951, valid_acc=0.9, valid_correct=180)
    table.skipped_epoch(epoch=4)
    table.summary(
        epochs=5, elapsed_seconds=1.5, train_errors=49, train_size=1000, valid_errors=20, valid_size=200
    )

    text = stream.getvalue()
    assert "In-Sample" in text
    assert "|   3   |  95.12 % |      951     |  90.00 % |      180     |" in text
    assert ".\n5 epochs in total" in text
    assert "[   In-Sample   ] 95.10 % (951 / 1000)" in text
    assert "[ Out-of-Sample ] 90.00 % (180 / 200)" in text


def test_format_accuracy_handles_empty_sets() -> None:
    assert format_accuracy(0, 0) == "0.00 % (0 / 0)"
