from __future__ import annotations

from collections.abc import Sequence


def is_eout_stop_decrease(eout: Sequence[int], epoch: int, n_non_inc_epoch: int) -> bool:
    """Whether out-of-sample errors stopped decreasing at `epoch`.

    True unless one of the previous `n_non_inc_epoch - 1` epochs (never epoch 0)
    had strictly fewer errors than `eout[epoch]`. Always true at epoch 0, so
    callers pair it with an accuracy threshold.
    """

    if n_non_inc_epoch < 1:
        raise ValueError(f"n_non_inc_epoch must be >= 1, got {n_non_inc_epoch}")

    current = eout[epoch]
    for i in range(n_non_inc_epoch):
        prev = epoch - i
        if prev <= 0:
            break
        if current > eout[prev]:
            return False

    return True
